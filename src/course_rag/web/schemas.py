"""Pydantic schemas for Web API.

Request bodies for each hierarchy level and their serialized responses.
Blank strings are rejected like missing fields.
"""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Any

from pydantic import BaseModel, ConfigDict, Field


class _RequestModel(BaseModel):
    model_config = ConfigDict(str_strip_whitespace=True)


# =============================================================================
# COURSE SCHEMAS
# =============================================================================


class CourseWrite(_RequestModel):
    """Request body for creating or replacing a course."""

    name: str = Field(..., min_length=1, max_length=200)
    description: str = Field(default="", max_length=2000)


class CourseResponse(BaseModel):
    """Response for a course."""

    id: int
    name: str
    description: str = ""
    created_at: str | None = None

    model_config = ConfigDict(from_attributes=True)


# =============================================================================
# YEAR SCHEMAS
# =============================================================================


class YearWrite(_RequestModel):
    """Request body for creating or replacing a year."""

    year_number: int = Field(..., ge=1)
    name: str = Field(..., min_length=1, max_length=200)


class YearResponse(BaseModel):
    """Response for a year."""

    id: int
    course_id: int
    year_number: int
    name: str
    created_at: str | None = None

    model_config = ConfigDict(from_attributes=True)


# =============================================================================
# SEMESTER SCHEMAS
# =============================================================================


class SemesterWrite(_RequestModel):
    """Request body for creating or replacing a semester."""

    semester_number: int = Field(..., ge=1)
    name: str = Field(..., min_length=1, max_length=200)


class SemesterResponse(BaseModel):
    """Response for a semester."""

    id: int
    year_id: int
    semester_number: int
    name: str
    created_at: str | None = None

    model_config = ConfigDict(from_attributes=True)


# =============================================================================
# UNIT SCHEMAS
# =============================================================================


class UnitWrite(_RequestModel):
    """Request body for creating or replacing a unit."""

    code: str = Field(..., min_length=1, max_length=50)
    name: str = Field(..., min_length=1, max_length=200)
    description: str = Field(default="", max_length=2000)


class UnitResponse(BaseModel):
    """Response for a unit."""

    id: int
    semester_id: int
    code: str
    name: str
    description: str = ""
    created_at: str | None = None

    model_config = ConfigDict(from_attributes=True)


class UnitHierarchyResponse(BaseModel):
    """Ancestor chain of a unit."""

    course_id: int
    course_name: str
    year_id: int
    year_name: str
    semester_id: int
    semester_name: str
    unit_id: int
    unit_name: str

    model_config = ConfigDict(from_attributes=True)


# =============================================================================
# DOCUMENT SCHEMAS
# =============================================================================


class DocumentResponse(BaseModel):
    """Response for an uploaded document."""

    id: int
    unit_id: int
    filename: str
    original_filename: str
    file_path: str
    created_at: str | None = None

    model_config = ConfigDict(from_attributes=True)


class DocumentWithHierarchyResponse(BaseModel):
    """Document plus the ids and names of its ancestors."""

    id: int
    filename: str
    original_filename: str
    file_path: str
    created_at: str | None = None
    unit_id: int
    unit_code: str
    unit_name: str
    semester_id: int
    semester_name: str
    semester_number: int
    year_id: int
    year_name: str
    year_number: int
    course_id: int
    course_name: str

    model_config = ConfigDict(from_attributes=True)


# =============================================================================
# ASK SCHEMAS
# =============================================================================


class AskRequest(BaseModel):
    """Question plus optional hierarchy filters (camelCase, as sent by clients)."""

    question: str | None = Field(default=None, max_length=4000)
    courseId: int | None = None
    yearId: int | None = None
    semesterId: int | None = None
    unitId: int | None = None


# =============================================================================
# SHARED SCHEMAS
# =============================================================================


class DeleteResponse(BaseModel):
    success: bool = True


class BackendStatusResponse(BaseModel):
    """Connectivity and index summary of the remote backend."""

    connected: bool
    base_url: str
    documentCount: int = 0
    uniqueSources: int = 0
    error: str | None = None


class LocalDebugResponse(BaseModel):
    """Local store diagnostics (dev only)."""

    db_path: str
    upload_dir: str
    upload_dir_exists: bool
    counts: dict[str, int]
    backend_url: str


class HealthResponse(BaseModel):
    """Health check response; `database` is "ok" or "unavailable"."""

    status: str = "ok"
    version: str
    timestamp: str = Field(default_factory=lambda: datetime.now(timezone.utc).isoformat())
    database: str = "ok"


def error_body(message: str, details: Any = None) -> dict[str, Any]:
    """Standard error payload: {error} plus optional details."""
    body: dict[str, Any] = {"error": message}
    if details is not None:
        body["details"] = details
    return body
