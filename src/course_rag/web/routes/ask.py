"""Ask endpoint: proxy a question to the remote backend."""

import sqlite3
from typing import Any

import structlog
from fastapi import APIRouter, Depends, HTTPException, status

from course_rag.backend.client import (
    BackendClient,
    BackendError,
    BackendTimeoutError,
    BackendUnavailableError,
)
from course_rag.core.questions import QuestionScope, QuestionValidationError, ask_question
from course_rag.db.database import Database
from course_rag.web.dependencies import get_backend, get_database
from course_rag.web.schemas import AskRequest, error_body

logger = structlog.get_logger(__name__)

router = APIRouter(prefix="/api/ask", tags=["ask"])

BACKEND_UNREACHABLE_MESSAGE = (
    "Cannot reach the backend API. The tunnel URL may have expired."
)
BACKEND_TIMEOUT_MESSAGE = (
    "The backend took too long to answer. It may still be processing "
    "documents; please try again shortly."
)


@router.post("")
def ask(
    request: AskRequest,
    db: Database = Depends(get_database),
    backend: BackendClient = Depends(get_backend),
) -> dict[str, Any]:
    """Answer a question, optionally scoped to part of the hierarchy.

    Returns the backend's {answer, sources} payload plus a `context` string.
    """
    scope = QuestionScope(
        course_id=request.courseId,
        year_id=request.yearId,
        semester_id=request.semesterId,
        unit_id=request.unitId,
    )

    try:
        return ask_question(db, backend, request.question, scope)
    except QuestionValidationError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e)) from e
    except BackendUnavailableError as e:
        logger.warning("ask.backend_unavailable", error=str(e))
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail=error_body(BACKEND_UNREACHABLE_MESSAGE, str(e)),
        ) from e
    except BackendTimeoutError as e:
        logger.warning("ask.backend_timeout", timeout=e.timeout)
        raise HTTPException(
            status_code=status.HTTP_504_GATEWAY_TIMEOUT,
            detail=error_body(BACKEND_TIMEOUT_MESSAGE, str(e)),
        ) from e
    except BackendError as e:
        logger.error("ask.backend_failed", error=str(e))
        raise HTTPException(
            status_code=status.HTTP_502_BAD_GATEWAY,
            detail=error_body("Failed to process question with backend API", str(e)),
        ) from e
    except sqlite3.Error as e:
        logger.error("ask.failed", error=str(e))
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to process question",
        ) from e
