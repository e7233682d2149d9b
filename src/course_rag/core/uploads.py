"""Upload-and-forward pipeline.

Saves a batch of PDFs under a per-unit directory, records one document row
per file, then forwards the stored files to the remote backend for indexing.

Outcomes:
- 200: every step succeeded
- 207: files saved locally but the backend was unreachable or failed
- 400: nothing was saved (all files rejected)

Local persistence is never rolled back when the remote step fails.
"""

from __future__ import annotations

import os
import re
import shutil
import sqlite3
import uuid
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import structlog

from course_rag.backend.client import (
    BackendClient,
    BackendError,
    BackendUnavailableError,
    UploadFilePart,
)
from course_rag.db.database import Database
from course_rag.db.documents_repository import create_document
from course_rag.db.hierarchy_repository import get_ancestry, get_unit

logger = structlog.get_logger(__name__)

PDF_ONLY_MESSAGE = "Only PDF files are allowed"
SAVE_FAILED_MESSAGE = "Failed to save file"
NOTHING_SAVED_MESSAGE = "No files were successfully saved."
BACKEND_UNAVAILABLE_MESSAGE = (
    "Files uploaded locally but backend is not available for processing. "
    "Please try again later."
)

_WHITESPACE = re.compile(r"\s+")


class UploadError(Exception):
    """Base error for upload requests rejected before any file is saved."""

    pass


class UploadValidationError(UploadError):
    """Missing or malformed unit id, or an empty batch."""

    pass


class UnitNotFoundError(UploadError):
    """The target unit does not exist."""

    def __init__(self, unit_id: int):
        self.unit_id = unit_id
        super().__init__("Unit not found")


@dataclass
class IncomingFile:
    """A file as received from the client."""

    name: str
    content: bytes


@dataclass
class FileResult:
    """Per-file outcome reported back to the client."""

    name: str
    success: bool
    error: str | None = None
    id: int | None = None

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {"name": self.name, "success": self.success}
        if self.error is not None:
            data["error"] = self.error
        if self.id is not None:
            data["id"] = self.id
        return data


@dataclass
class SavedFile:
    """A file written to disk and recorded in the store."""

    document_id: int
    path: Path
    name: str


@dataclass
class UploadOutcome:
    """Result of a whole upload request."""

    status_code: int
    message: str
    results: list[FileResult] = field(default_factory=list)
    backend_result: dict[str, Any] | None = None
    backend_error: str | None = None

    @property
    def saved_count(self) -> int:
        return sum(1 for r in self.results if r.success)

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {
            "message": self.message,
            "results": [r.to_dict() for r in self.results],
        }
        if self.backend_result is not None:
            data["backendResult"] = self.backend_result
        if self.backend_error is not None:
            data["backendError"] = self.backend_error
        return data


def parse_unit_id(raw: str | int | None) -> int:
    """Parse the unitId form field.

    Raises:
        UploadValidationError: If missing or not an integer
    """
    if raw is None or str(raw).strip() == "":
        raise UploadValidationError("Invalid or missing unitId")
    try:
        return int(str(raw).strip())
    except ValueError as e:
        raise UploadValidationError("Invalid or missing unitId") from e


def is_pdf(filename: str) -> bool:
    return filename.lower().endswith(".pdf")


def make_stored_filename(original: str) -> str:
    """Collision-resistant on-disk name: <uuid4>-<name with whitespace as _>."""
    return f"{uuid.uuid4()}-{_WHITESPACE.sub('_', original)}"


def _client_basename(filename: str) -> str:
    """Strip any directory part a client put in the filename."""
    return os.path.basename(filename.replace("\\", "/"))


def _resolve_hierarchy(db: Database, unit_id: int) -> dict[str, Any]:
    """Best-effort ancestor metadata; failures are logged, never raised."""
    try:
        ancestry = get_ancestry(db, unit_id)
    except Exception as e:
        logger.warning("upload.hierarchy_unavailable", unit_id=unit_id, error=str(e))
        return {}

    if ancestry is None:
        logger.warning("upload.hierarchy_incomplete", unit_id=unit_id)
        return {}

    return ancestry.to_dict()


def _save_file(
    db: Database, unit_id: int, unit_dir: Path, incoming: IncomingFile
) -> tuple[FileResult, SavedFile | None]:
    name = incoming.name
    if not is_pdf(name):
        return FileResult(name=name, success=False, error=PDF_ONLY_MESSAGE), None

    stored_name = make_stored_filename(_client_basename(name))
    file_path = unit_dir / stored_name

    try:
        file_path.write_bytes(incoming.content)
    except OSError as e:
        logger.error("upload.file_save_failed", file=name, unit_id=unit_id, error=str(e))
        return FileResult(name=name, success=False, error=SAVE_FAILED_MESSAGE), None

    try:
        record = create_document(
            db,
            unit_id=unit_id,
            filename=stored_name,
            original_filename=name,
            file_path=str(file_path),
        )
    except sqlite3.Error as e:
        logger.error("upload.record_failed", file=name, unit_id=unit_id, error=str(e))
        remove_stored_files([file_path])
        return FileResult(name=name, success=False, error=SAVE_FAILED_MESSAGE), None

    logger.info("upload.file_saved", file=name, document_id=record.id, path=str(file_path))
    return (
        FileResult(name=name, success=True, id=record.id),
        SavedFile(document_id=record.id, path=file_path, name=name),
    )


def save_files(
    db: Database,
    upload_dir: Path,
    unit_id: int,
    files: list[IncomingFile],
) -> tuple[list[FileResult], list[SavedFile]]:
    """Write each PDF under upload_dir/unit-<id> and record it.

    Each file succeeds or fails on its own; one bad file never stops the batch.
    """
    unit_dir = upload_dir / f"unit-{unit_id}"
    unit_dir.mkdir(parents=True, exist_ok=True)

    results: list[FileResult] = []
    saved: list[SavedFile] = []
    for incoming in files:
        result, saved_file = _save_file(db, unit_id, unit_dir, incoming)
        results.append(result)
        if saved_file is not None:
            saved.append(saved_file)

    return results, saved


def remove_stored_files(paths: list[Path | str]) -> None:
    """Unlink stored files; failures are logged, not raised."""
    for path in paths:
        try:
            Path(path).unlink(missing_ok=True)
        except OSError as e:
            logger.warning("storage.file_remove_failed", path=str(path), error=str(e))


def remove_unit_directories(upload_dir: Path, unit_ids: list[int]) -> None:
    """Remove the unit-<id> directories of deleted units, with their files."""
    for unit_id in unit_ids:
        unit_dir = upload_dir / f"unit-{unit_id}"
        if not unit_dir.exists():
            continue
        try:
            shutil.rmtree(unit_dir)
        except OSError as e:
            logger.warning("storage.unit_dir_remove_failed", path=str(unit_dir), error=str(e))
        else:
            logger.info("storage.unit_dir_removed", unit_id=unit_id)


def forward_to_backend(
    backend: BackendClient,
    unit_id: int,
    saved: list[SavedFile],
    results: list[FileResult],
    hierarchy: dict[str, Any],
) -> UploadOutcome:
    """Probe the backend, then re-submit the stored files for indexing."""
    try:
        backend.check()
    except BackendUnavailableError as e:
        logger.warning("upload.backend_unavailable", unit_id=unit_id, error=str(e))
        return UploadOutcome(
            status_code=207,
            message=BACKEND_UNAVAILABLE_MESSAGE,
            results=results,
            backend_error=str(e),
        )

    logger.info("upload.forwarding", unit_id=unit_id, files=len(saved), base_url=backend.base_url)

    try:
        parts = [UploadFilePart(name=s.name, content=s.path.read_bytes()) for s in saved]
        backend_result = backend.upload(parts, unit_id=unit_id, hierarchy=hierarchy or None)
    except (BackendError, OSError) as e:
        logger.error("upload.backend_failed", unit_id=unit_id, error=str(e))
        return UploadOutcome(
            status_code=207,
            message=(
                "Files uploaded locally but there was an error with backend "
                f"processing: {e}"
            ),
            results=results,
            backend_error=str(e),
        )

    saved_count = sum(1 for r in results if r.success)
    backend_message = backend_result.get("message") or "Completed"
    logger.info("upload.backend_done", unit_id=unit_id, files=saved_count)

    return UploadOutcome(
        status_code=200,
        message=f"Uploaded {saved_count} files successfully. Backend processing: {backend_message}",
        results=results,
        backend_result=backend_result,
    )


def process_upload(
    db: Database,
    backend: BackendClient,
    upload_dir: Path,
    unit_id_raw: str | int | None,
    files: list[IncomingFile],
) -> UploadOutcome:
    """Run the whole upload-and-forward pipeline.

    Args:
        db: Store handle
        backend: Remote backend client
        upload_dir: Root directory for stored PDFs
        unit_id_raw: unitId as received from the form
        files: Uploaded files

    Returns:
        UploadOutcome carrying the HTTP status to report

    Raises:
        UploadValidationError: Missing/invalid unitId or empty batch
        UnitNotFoundError: Unit does not exist (nothing written to disk)
    """
    unit_id = parse_unit_id(unit_id_raw)

    if get_unit(db, unit_id) is None:
        raise UnitNotFoundError(unit_id)

    if not files:
        raise UploadValidationError("No files provided")

    hierarchy = _resolve_hierarchy(db, unit_id)
    results, saved = save_files(db, upload_dir, unit_id, files)

    if not saved:
        return UploadOutcome(status_code=400, message=NOTHING_SAVED_MESSAGE, results=results)

    return forward_to_backend(backend, unit_id, saved, results, hierarchy)
