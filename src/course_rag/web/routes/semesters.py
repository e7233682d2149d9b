"""Semester endpoints, plus the units collection of a semester."""

import sqlite3
from pathlib import Path

from fastapi import APIRouter, Depends, HTTPException, status

from course_rag.core.uploads import remove_unit_directories
from course_rag.db import hierarchy_repository as repo
from course_rag.db.database import Database
from course_rag.web.dependencies import get_database, get_upload_dir
from course_rag.web.errors import failure_boundary
from course_rag.web.schemas import (
    DeleteResponse,
    SemesterResponse,
    SemesterWrite,
    UnitResponse,
    UnitWrite,
)

router = APIRouter(prefix="/api/semesters", tags=["semesters"])


def _semester_not_found() -> HTTPException:
    return HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Semester not found")


@router.get("/{semester_id}", response_model=SemesterResponse)
async def get_semester(
    semester_id: int, db: Database = Depends(get_database)
) -> SemesterResponse:
    with failure_boundary("fetch semester"):
        semester = repo.get_semester(db, semester_id)

    if semester is None:
        raise _semester_not_found()

    return SemesterResponse.model_validate(semester)


@router.put("/{semester_id}", response_model=SemesterResponse)
async def update_semester(
    semester_id: int, body: SemesterWrite, db: Database = Depends(get_database)
) -> SemesterResponse:
    with failure_boundary("update semester"):
        updated = repo.update_semester(
            db, semester_id, semester_number=body.semester_number, name=body.name
        )
        semester = repo.get_semester(db, semester_id) if updated else None

    if semester is None:
        raise _semester_not_found()

    return SemesterResponse.model_validate(semester)


@router.delete("/{semester_id}", response_model=DeleteResponse)
async def delete_semester(
    semester_id: int,
    db: Database = Depends(get_database),
    upload_dir: Path = Depends(get_upload_dir),
) -> DeleteResponse:
    with failure_boundary("delete semester"):
        unit_ids = repo.list_unit_ids_under(db, semester_id=semester_id)
        deleted = repo.delete_semester(db, semester_id)

    if not deleted:
        raise _semester_not_found()

    remove_unit_directories(upload_dir, unit_ids)

    return DeleteResponse(success=True)


@router.get("/{semester_id}/units", response_model=list[UnitResponse])
async def list_units(semester_id: int, db: Database = Depends(get_database)) -> list[UnitResponse]:
    with failure_boundary("fetch units"):
        units = repo.list_units(db, semester_id)

    return [UnitResponse.model_validate(u) for u in units]


@router.post(
    "/{semester_id}/units",
    response_model=UnitResponse,
    status_code=status.HTTP_201_CREATED,
)
async def create_unit(
    semester_id: int, body: UnitWrite, db: Database = Depends(get_database)
) -> UnitResponse:
    """Create a new unit under a semester."""
    with failure_boundary("create unit"):
        if repo.get_semester(db, semester_id) is None:
            raise _semester_not_found()
        try:
            unit = repo.create_unit(
                db, semester_id, code=body.code, name=body.name, description=body.description
            )
        except sqlite3.IntegrityError as e:
            raise _semester_not_found() from e

    return UnitResponse.model_validate(unit)
