"""Year endpoints, plus the semesters collection of a year."""

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
    YearResponse,
    YearWrite,
)

router = APIRouter(prefix="/api/years", tags=["years"])


def _year_not_found() -> HTTPException:
    return HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Year not found")


@router.get("/{year_id}", response_model=YearResponse)
async def get_year(year_id: int, db: Database = Depends(get_database)) -> YearResponse:
    with failure_boundary("fetch year"):
        year = repo.get_year(db, year_id)

    if year is None:
        raise _year_not_found()

    return YearResponse.model_validate(year)


@router.put("/{year_id}", response_model=YearResponse)
async def update_year(
    year_id: int, body: YearWrite, db: Database = Depends(get_database)
) -> YearResponse:
    with failure_boundary("update year"):
        updated = repo.update_year(db, year_id, year_number=body.year_number, name=body.name)
        year = repo.get_year(db, year_id) if updated else None

    if year is None:
        raise _year_not_found()

    return YearResponse.model_validate(year)


@router.delete("/{year_id}", response_model=DeleteResponse)
async def delete_year(
    year_id: int,
    db: Database = Depends(get_database),
    upload_dir: Path = Depends(get_upload_dir),
) -> DeleteResponse:
    with failure_boundary("delete year"):
        unit_ids = repo.list_unit_ids_under(db, year_id=year_id)
        deleted = repo.delete_year(db, year_id)

    if not deleted:
        raise _year_not_found()

    remove_unit_directories(upload_dir, unit_ids)

    return DeleteResponse(success=True)


@router.get("/{year_id}/semesters", response_model=list[SemesterResponse])
async def list_semesters(
    year_id: int, db: Database = Depends(get_database)
) -> list[SemesterResponse]:
    with failure_boundary("fetch semesters"):
        semesters = repo.list_semesters(db, year_id)

    return [SemesterResponse.model_validate(s) for s in semesters]


@router.post(
    "/{year_id}/semesters",
    response_model=SemesterResponse,
    status_code=status.HTTP_201_CREATED,
)
async def create_semester(
    year_id: int, body: SemesterWrite, db: Database = Depends(get_database)
) -> SemesterResponse:
    """Create a new semester under a year."""
    with failure_boundary("create semester"):
        if repo.get_year(db, year_id) is None:
            raise _year_not_found()
        try:
            semester = repo.create_semester(
                db, year_id, semester_number=body.semester_number, name=body.name
            )
        except sqlite3.IntegrityError as e:
            raise _year_not_found() from e

    return SemesterResponse.model_validate(semester)
