"""Upload endpoint: store PDFs for a unit and forward them to the backend."""

from pathlib import Path

import structlog
from fastapi import APIRouter, Depends, File, Form, HTTPException, UploadFile, status
from fastapi.responses import JSONResponse

from course_rag.backend.client import BackendClient
from course_rag.core.uploads import (
    IncomingFile,
    UnitNotFoundError,
    UploadValidationError,
    process_upload,
)
from course_rag.db.database import Database
from course_rag.web.dependencies import get_backend, get_database, get_upload_dir

logger = structlog.get_logger(__name__)

router = APIRouter(prefix="/api/upload", tags=["upload"])


def _read_files(files: list[UploadFile] | None) -> list[IncomingFile]:
    incoming = []
    for upload in files or []:
        incoming.append(IncomingFile(name=upload.filename or "", content=upload.file.read()))
    return incoming


@router.post("")
def upload_documents(
    files: list[UploadFile] | None = File(default=None),
    unit_id: str | None = Form(default=None, alias="unitId"),
    db: Database = Depends(get_database),
    backend: BackendClient = Depends(get_backend),
    upload_dir: Path = Depends(get_upload_dir),
) -> JSONResponse:
    """Save PDFs under a unit, then submit them to the backend for indexing.

    Responds 207 when the files were saved locally but the backend step
    failed, so callers can tell "saved, not yet searchable" from failure.
    """
    try:
        outcome = process_upload(
            db,
            backend,
            upload_dir=upload_dir,
            unit_id_raw=unit_id,
            files=_read_files(files),
        )
    except UploadValidationError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e)) from e
    except UnitNotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e)) from e
    except Exception as e:
        logger.exception("upload.failed", unit_id=unit_id, error=str(e))
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=str(e) or "Failed to process upload",
        ) from e

    logger.info(
        "upload.completed",
        unit_id=unit_id,
        status_code=outcome.status_code,
        saved=outcome.saved_count,
        total=len(outcome.results),
    )
    return JSONResponse(status_code=outcome.status_code, content=outcome.to_dict())
