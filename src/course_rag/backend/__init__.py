"""Client for the remote question-answering backend."""

from course_rag.backend.client import (
    BackendClient,
    BackendError,
    BackendResponseError,
    BackendTimeoutError,
    BackendUnavailableError,
    UploadFilePart,
)

__all__ = [
    "BackendClient",
    "BackendError",
    "BackendResponseError",
    "BackendTimeoutError",
    "BackendUnavailableError",
    "UploadFilePart",
]
