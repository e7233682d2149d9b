"""HTTP client for the remote question-answering backend.

The backend is an independently deployed service reached through a tunnel
URL that rotates between sessions. It exposes:

- GET  /ping    liveness probe
- POST /upload  multipart PDFs plus unit metadata, indexes them
- POST /ask     JSON question with optional hierarchy filters
- GET  /debug   document/chunk counts, optionally filtered

Every call has its own bounded timeout. Nothing is retried.
"""

from __future__ import annotations

import json
import time
from dataclasses import dataclass
from typing import Any

import httpx
import structlog

from course_rag.config.app_config import BackendConfig

logger = structlog.get_logger(__name__)

# Sent on every request; the tunnel serves an HTML interstitial without it
DEFAULT_HEADERS = {
    "Accept": "application/json",
    "ngrok-skip-browser-warning": "true",
}

INVALID_PAYLOAD_MESSAGE = "Backend returned an invalid response"


# =============================================================================
# ERRORS
# =============================================================================


class BackendError(Exception):
    """Error during interaction with the remote backend."""

    pass


class BackendUnavailableError(BackendError):
    """Backend could not be reached or failed its liveness probe."""

    pass


class BackendTimeoutError(BackendError):
    """Backend did not answer within the bounded wait."""

    def __init__(self, endpoint: str, timeout: float):
        self.endpoint = endpoint
        self.timeout = timeout
        super().__init__(f"Backend {endpoint} timed out after {timeout:g}s")


class BackendResponseError(BackendError):
    """Backend answered with an error status or a malformed payload."""

    def __init__(self, message: str, status_code: int | None = None):
        self.status_code = status_code
        super().__init__(message)


# =============================================================================
# DATA CLASSES
# =============================================================================


@dataclass
class UploadFilePart:
    """A stored file to be re-submitted to the backend."""

    name: str
    content: bytes
    content_type: str = "application/pdf"


# =============================================================================
# CLIENT
# =============================================================================


class BackendClient:
    """Thin JSON-over-HTTP wrapper around the remote backend."""

    def __init__(
        self,
        config: BackendConfig | None = None,
        transport: httpx.BaseTransport | None = None,
    ):
        """Initialize backend client.

        Args:
            config: Base URL and timeouts (defaults to BackendConfig())
            transport: Optional httpx transport, e.g. httpx.MockTransport in tests
        """
        self.config = config or BackendConfig()
        self._client = httpx.Client(
            headers=DEFAULT_HEADERS,
            transport=transport,
            follow_redirects=True,
        )

        logger.info("backend_client_initialized", base_url=self.config.base_url)

    @property
    def base_url(self) -> str:
        return self.config.base_url

    def close(self) -> None:
        self._client.close()

    def __enter__(self) -> BackendClient:
        return self

    def __exit__(self, *exc_info: Any) -> None:
        self.close()

    # -------------------------------------------------------------------------
    # Liveness
    # -------------------------------------------------------------------------

    def check(self) -> None:
        """Probe the backend's liveness endpoint.

        Raises:
            BackendUnavailableError: If the probe fails, times out or is not 2xx
        """
        url = self.config.url("ping")
        try:
            response = self._client.get(url, timeout=self.config.ping_timeout)
        except httpx.TimeoutException as e:
            raise BackendUnavailableError(
                f"Backend ping timed out after {self.config.ping_timeout:g}s"
            ) from e
        except httpx.HTTPError as e:
            raise BackendUnavailableError(f"Backend not reachable: {e}") from e

        if not response.is_success:
            raise BackendUnavailableError(
                f"Backend not reachable: {response.status_code}"
            )

        logger.debug("backend.ping_ok", base_url=self.config.base_url)

    def ping(self) -> bool:
        """Check if the backend answers its liveness probe."""
        try:
            self.check()
        except BackendUnavailableError as e:
            logger.warning("backend.ping_failed", base_url=self.config.base_url, error=str(e))
            return False
        return True

    # -------------------------------------------------------------------------
    # Endpoints
    # -------------------------------------------------------------------------

    def ask(self, question: str, filters: dict[str, int] | None = None) -> dict[str, Any]:
        """Submit a question with optional hierarchy filters.

        Args:
            question: Question text
            filters: Any of courseId, yearId, semesterId, unitId

        Returns:
            The backend's JSON object (answer, sources, ...) unchanged

        Raises:
            BackendTimeoutError: If the ask timeout is exceeded
            BackendUnavailableError: On transport failure
            BackendResponseError: On error status or malformed payload
        """
        payload: dict[str, Any] = {"question": question}
        payload.update({k: v for k, v in (filters or {}).items() if v is not None})

        return self._request(
            "POST",
            "ask",
            timeout=self.config.ask_timeout,
            json=payload,
        )

    def upload(
        self,
        files: list[UploadFilePart],
        unit_id: int,
        hierarchy: dict[str, Any] | None = None,
    ) -> dict[str, Any]:
        """Submit stored files for indexing.

        Args:
            files: Files re-read from local storage
            unit_id: Unit the files belong to
            hierarchy: Ancestor metadata, sent as a JSON form field when present

        Returns:
            The backend's JSON object unchanged
        """
        data = {"unitId": str(unit_id)}
        if hierarchy:
            data["courseHierarchy"] = json.dumps(hierarchy)

        return self._request(
            "POST",
            "upload",
            timeout=self.config.upload_timeout,
            data=data,
            files=[("files", (f.name, f.content, f.content_type)) for f in files],
        )

    def debug(self, params: dict[str, str] | None = None) -> dict[str, Any]:
        """Fetch the backend's diagnostic counts."""
        return self._request(
            "GET",
            "debug",
            timeout=self.config.debug_timeout,
            params={k: v for k, v in (params or {}).items() if v},
        )

    # -------------------------------------------------------------------------
    # Internals
    # -------------------------------------------------------------------------

    def _request(
        self,
        method: str,
        endpoint: str,
        timeout: float,
        **kwargs: Any,
    ) -> dict[str, Any]:
        url = self.config.url(endpoint)
        start_time = time.time()

        try:
            response = self._client.request(method, url, timeout=timeout, **kwargs)
        except httpx.TimeoutException as e:
            logger.warning("backend.timeout", endpoint=endpoint, timeout=timeout)
            raise BackendTimeoutError(endpoint, timeout) from e
        except httpx.HTTPError as e:
            raise BackendUnavailableError(f"Backend not reachable: {e}") from e

        latency_ms = int((time.time() - start_time) * 1000)

        if not response.is_success:
            raise BackendResponseError(
                _error_message(response, endpoint), status_code=response.status_code
            )

        try:
            payload = response.json()
        except ValueError as e:
            raise BackendResponseError(INVALID_PAYLOAD_MESSAGE, response.status_code) from e

        if not isinstance(payload, dict):
            raise BackendResponseError(INVALID_PAYLOAD_MESSAGE, response.status_code)

        logger.debug(
            "backend.response",
            endpoint=endpoint,
            status_code=response.status_code,
            latency_ms=latency_ms,
        )
        return payload


def _error_message(response: httpx.Response, endpoint: str) -> str:
    """Build an error message, preferring the backend's own error text."""
    message = f"Backend {endpoint} failed: {response.status_code}"
    try:
        body = response.json()
    except ValueError:
        return message

    if isinstance(body, dict):
        detail = body.get("error") or body.get("detail")
        if isinstance(detail, str) and detail:
            return f"{message} ({detail})"

    return message
