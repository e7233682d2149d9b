"""Shared fixtures.

Every test gets its own SQLite file and upload directory under tmp_path.
The remote backend is faked with httpx.MockTransport, so no network is used.
"""

from __future__ import annotations

from pathlib import Path
from typing import Any, Callable

import httpx
import pytest
from fastapi.testclient import TestClient

from course_rag.backend.client import BackendClient
from course_rag.config.app_config import AppConfig, BackendConfig, PathsConfig
from course_rag.db.database import Database
from course_rag.web.api import create_app

BACKEND_URL = "http://backend.test"

# Minimal bytes that look like a PDF; nothing here parses them
PDF_BYTES = b"%PDF-1.4\n1 0 obj\n<< /Type /Catalog >>\nendobj\ntrailer\n%%EOF\n"

Handler = Callable[[httpx.Request], httpx.Response]


class FakeBackend:
    """Scriptable stand-in for the remote question-answering service."""

    def __init__(self) -> None:
        self.requests: list[httpx.Request] = []
        self.handlers: dict[str, Handler] = {
            "/ping": lambda request: httpx.Response(200, json={"status": "ok"}),
            "/ask": lambda request: httpx.Response(
                200,
                json={
                    "answer": "Binary search halves the interval each step.",
                    "sources": [{"title": "notes.pdf", "excerpt": "halves the interval"}],
                },
            ),
            "/upload": lambda request: httpx.Response(
                200, json={"message": "Processed 1 document"}
            ),
            "/debug": lambda request: httpx.Response(
                200,
                json={"total_document_chunks": 12, "unique_sources": ["a.pdf", "b.pdf"]},
            ),
        }

    def __call__(self, request: httpx.Request) -> httpx.Response:
        request.read()
        self.requests.append(request)
        handler = self.handlers.get(request.url.path)
        if handler is None:
            return httpx.Response(404, json={"error": "no such endpoint"})
        return handler(request)

    def respond(self, path: str, status_code: int = 200, **kwargs: Any) -> None:
        self.handlers[path] = lambda request: httpx.Response(status_code, **kwargs)

    def fail(self, path: str, exc_type: type[httpx.TransportError]) -> None:
        def _raise(request: httpx.Request) -> httpx.Response:
            raise exc_type("simulated failure", request=request)

        self.handlers[path] = _raise

    def calls(self, path: str) -> list[httpx.Request]:
        return [r for r in self.requests if r.url.path == path]


@pytest.fixture
def app_config(tmp_path: Path) -> AppConfig:
    return AppConfig(
        backend=BackendConfig(base_url=BACKEND_URL),
        paths=PathsConfig(
            db_path=tmp_path / "data" / "test.db",
            upload_dir=tmp_path / "uploads",
        ),
    )


@pytest.fixture
def db(app_config: AppConfig) -> Database:
    database = Database(app_config.paths.db_path)
    database.init()
    return database


@pytest.fixture
def fake_backend() -> FakeBackend:
    return FakeBackend()


@pytest.fixture
def backend_client(app_config: AppConfig, fake_backend: FakeBackend) -> BackendClient:
    client = BackendClient(app_config.backend, transport=httpx.MockTransport(fake_backend))
    yield client
    client.close()


@pytest.fixture
def client(app_config: AppConfig, backend_client: BackendClient) -> TestClient:
    """Create test client over an isolated store and a fake backend."""
    app = create_app(app_config, backend=backend_client)
    return TestClient(app)


@pytest.fixture
def pdf_bytes() -> bytes:
    return PDF_BYTES


@pytest.fixture
def upload(client: TestClient) -> Callable[..., httpx.Response]:
    """POST (name, content) pairs to /api/upload; unit_id=None omits unitId."""

    def _upload(unit_id: int | str | None, *files: tuple[str, bytes]) -> httpx.Response:
        data = {} if unit_id is None else {"unitId": str(unit_id)}
        return client.post(
            "/api/upload",
            data=data,
            files=[("files", (name, content, "application/pdf")) for name, content in files],
        )

    return _upload


@pytest.fixture
def hierarchy(client: TestClient) -> dict[str, int]:
    """Create Course → Year → Semester → Unit through the API."""
    course = client.post("/api/courses", json={"name": "CS", "description": "Computing"}).json()
    year = client.post(
        f"/api/courses/{course['id']}/years", json={"year_number": 1, "name": "Year 1"}
    ).json()
    semester = client.post(
        f"/api/years/{year['id']}/semesters", json={"semester_number": 1, "name": "Sem 1"}
    ).json()
    unit = client.post(
        f"/api/semesters/{semester['id']}/units",
        json={"code": "CS101", "name": "Intro to Programming"},
    ).json()
    return {
        "course_id": course["id"],
        "year_id": year["id"],
        "semester_id": semester["id"],
        "unit_id": unit["id"],
    }
