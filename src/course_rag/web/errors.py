"""Error rendering for the Web API.

Every error response carries an `{"error": "<message>"}` body. Request
validation failures are reported as 400 rather than FastAPI's default 422.
"""

from __future__ import annotations

import sqlite3
from contextlib import contextmanager
from typing import Generator

import structlog
from fastapi import FastAPI, HTTPException, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from course_rag.web.schemas import error_body

logger = structlog.get_logger(__name__)


@contextmanager
def failure_boundary(action: str) -> Generator[None, None, None]:
    """Turn store and filesystem failures into a 500 naming the action.

    Example:
        with failure_boundary("fetch courses"):
            courses = list_courses(db)
    """
    try:
        yield
    except (sqlite3.Error, OSError) as e:
        logger.error("request_failed", action=action, error=str(e))
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=f"Failed to {action}",
        ) from e


def format_validation_errors(exc: RequestValidationError) -> str:
    """Collapse pydantic errors into one readable message."""
    messages = []
    for err in exc.errors():
        loc = [str(part) for part in err.get("loc", ()) if part not in ("body", "path", "query")]
        field = ".".join(loc) or "request"
        if err.get("type") == "missing":
            messages.append(f"{field} is required")
        else:
            messages.append(f"Invalid {field}: {err.get('msg', 'invalid value')}")
    return "; ".join(messages) or "Invalid request"


async def http_exception_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    if isinstance(exc.detail, dict):
        content = exc.detail
    else:
        content = error_body(str(exc.detail))
    return JSONResponse(status_code=exc.status_code, content=content, headers=exc.headers)


async def validation_exception_handler(
    request: Request, exc: RequestValidationError
) -> JSONResponse:
    message = format_validation_errors(exc)
    logger.info("request_invalid", path=request.url.path, error=message)
    return JSONResponse(status_code=status.HTTP_400_BAD_REQUEST, content=error_body(message))


async def unhandled_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.exception(
        "request_unhandled",
        path=request.url.path,
        error_type=type(exc).__name__,
        error=str(exc),
    )
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content=error_body("Internal server error"),
    )


def install_error_handlers(app: FastAPI) -> None:
    app.add_exception_handler(StarletteHTTPException, http_exception_handler)
    app.add_exception_handler(RequestValidationError, validation_exception_handler)
    app.add_exception_handler(Exception, unhandled_exception_handler)
