"""Diagnostic endpoints (dev only).

- /api/debug proxies the backend's index counts
- /api/debug/local reports the local store
- /api/backend/status combines the liveness probe with the index counts
"""

import os

import structlog
from fastapi import APIRouter, Depends, HTTPException, Query, status

from course_rag.backend.client import (
    BackendClient,
    BackendError,
    BackendResponseError,
    BackendUnavailableError,
)
from course_rag.config.app_config import AppConfig
from course_rag.db.database import Database
from course_rag.db.hierarchy_repository import count_hierarchy
from course_rag.web.dependencies import get_backend, get_config, get_database
from course_rag.web.errors import failure_boundary
from course_rag.web.schemas import BackendStatusResponse, LocalDebugResponse

logger = structlog.get_logger(__name__)

router = APIRouter(prefix="/api", tags=["debug"])


@router.get("/debug")
def debug_backend(
    unit_id: str | None = Query(default=None, alias="unitId"),
    course_id: str | None = Query(default=None, alias="courseId"),
    year_id: str | None = Query(default=None, alias="yearId"),
    semester_id: str | None = Query(default=None, alias="semesterId"),
    backend: BackendClient = Depends(get_backend),
) -> dict:
    """Return the backend's document/chunk counts for the given filters."""
    params = {
        "unitId": unit_id,
        "courseId": course_id,
        "yearId": year_id,
        "semesterId": semester_id,
    }

    try:
        return backend.debug(params)
    except BackendResponseError as e:
        if e.status_code is not None and e.status_code >= 400:
            raise HTTPException(
                status_code=e.status_code,
                detail=f"Backend responded with status {e.status_code}",
            ) from e
        logger.error("debug.invalid_payload", error=str(e))
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to fetch debug information",
        ) from e
    except BackendError as e:
        logger.error("debug.failed", error=str(e))
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to fetch debug information",
        ) from e


@router.get("/debug/local", response_model=LocalDebugResponse)
async def debug_local(
    db: Database = Depends(get_database),
    config: AppConfig = Depends(get_config),
) -> LocalDebugResponse:
    """Report local store counts and configured locations."""
    with failure_boundary("fetch local debug information"):
        counts = count_hierarchy(db)

    upload_dir = config.paths.upload_dir
    return LocalDebugResponse(
        db_path=os.path.abspath(db.path),
        upload_dir=os.path.abspath(upload_dir),
        upload_dir_exists=upload_dir.exists(),
        counts=counts,
        backend_url=config.backend.base_url,
    )


@router.get("/backend/status", response_model=BackendStatusResponse)
def backend_status(backend: BackendClient = Depends(get_backend)) -> BackendStatusResponse:
    """Probe the backend and summarize what it has indexed."""
    try:
        backend.check()
    except BackendUnavailableError as e:
        return BackendStatusResponse(
            connected=False,
            base_url=backend.base_url,
            error=f"Cannot connect to the backend API ({e}). The tunnel URL may have expired.",
        )

    try:
        info = backend.debug()
        document_count = int(info.get("total_document_chunks") or 0)
    except (BackendError, TypeError, ValueError) as e:
        logger.warning("backend_status.debug_failed", error=str(e))
        return BackendStatusResponse(
            connected=True,
            base_url=backend.base_url,
            error="Connected to backend but couldn't fetch document information",
        )

    sources = info.get("unique_sources") or []
    return BackendStatusResponse(
        connected=True,
        base_url=backend.base_url,
        documentCount=document_count,
        uniqueSources=len(sources) if isinstance(sources, list) else 0,
    )
