"""Liveness of the API process and its local store.

The remote backend is not probed here; see /api/backend/status.
"""

import sqlite3

import structlog
from fastapi import APIRouter, Depends

from course_rag import __version__
from course_rag.db.database import Database
from course_rag.web.dependencies import get_database
from course_rag.web.schemas import HealthResponse

logger = structlog.get_logger(__name__)

router = APIRouter(tags=["health"])


@router.get("/health", response_model=HealthResponse)
async def health_check(db: Database = Depends(get_database)) -> HealthResponse:
    try:
        with db.connect() as conn:
            conn.execute("SELECT 1").fetchone()
    except sqlite3.Error as e:
        logger.warning("health.store_unavailable", db_path=str(db.path), error=str(e))
        return HealthResponse(status="degraded", version=__version__, database="unavailable")

    return HealthResponse(version=__version__)
