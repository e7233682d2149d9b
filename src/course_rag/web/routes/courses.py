"""Course endpoints, plus the years collection of a course."""

import sqlite3
from pathlib import Path

from fastapi import APIRouter, Depends, HTTPException, status

from course_rag.core.uploads import remove_unit_directories
from course_rag.db import hierarchy_repository as repo
from course_rag.db.database import Database
from course_rag.web.dependencies import get_database, get_upload_dir
from course_rag.web.errors import failure_boundary
from course_rag.web.schemas import (
    CourseResponse,
    CourseWrite,
    DeleteResponse,
    YearResponse,
    YearWrite,
)

router = APIRouter(prefix="/api/courses", tags=["courses"])


def _course_not_found() -> HTTPException:
    return HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Course not found")


@router.get("", response_model=list[CourseResponse])
async def list_courses(db: Database = Depends(get_database)) -> list[CourseResponse]:
    """List all courses."""
    with failure_boundary("fetch courses"):
        courses = repo.list_courses(db)

    return [CourseResponse.model_validate(c) for c in courses]


@router.post("", response_model=CourseResponse, status_code=status.HTTP_201_CREATED)
async def create_course(
    body: CourseWrite, db: Database = Depends(get_database)
) -> CourseResponse:
    """Create a new course."""
    with failure_boundary("create course"):
        course = repo.create_course(db, name=body.name, description=body.description)

    return CourseResponse.model_validate(course)


@router.get("/{course_id}", response_model=CourseResponse)
async def get_course(course_id: int, db: Database = Depends(get_database)) -> CourseResponse:
    """Get a specific course by ID."""
    with failure_boundary("fetch course"):
        course = repo.get_course(db, course_id)

    if course is None:
        raise _course_not_found()

    return CourseResponse.model_validate(course)


@router.put("/{course_id}", response_model=CourseResponse)
async def update_course(
    course_id: int, body: CourseWrite, db: Database = Depends(get_database)
) -> CourseResponse:
    """Replace a course's name and description."""
    with failure_boundary("update course"):
        updated = repo.update_course(db, course_id, name=body.name, description=body.description)
        course = repo.get_course(db, course_id) if updated else None

    if course is None:
        raise _course_not_found()

    return CourseResponse.model_validate(course)


@router.delete("/{course_id}", response_model=DeleteResponse)
async def delete_course(
    course_id: int,
    db: Database = Depends(get_database),
    upload_dir: Path = Depends(get_upload_dir),
) -> DeleteResponse:
    """Delete a course and, by cascade, everything below it."""
    with failure_boundary("delete course"):
        unit_ids = repo.list_unit_ids_under(db, course_id=course_id)
        deleted = repo.delete_course(db, course_id)

    if not deleted:
        raise _course_not_found()

    remove_unit_directories(upload_dir, unit_ids)

    return DeleteResponse(success=True)


@router.get("/{course_id}/years", response_model=list[YearResponse])
async def list_years(course_id: int, db: Database = Depends(get_database)) -> list[YearResponse]:
    """List the years of a course."""
    with failure_boundary("fetch years"):
        years = repo.list_years(db, course_id)

    return [YearResponse.model_validate(y) for y in years]


@router.post(
    "/{course_id}/years",
    response_model=YearResponse,
    status_code=status.HTTP_201_CREATED,
)
async def create_year(
    course_id: int, body: YearWrite, db: Database = Depends(get_database)
) -> YearResponse:
    """Create a new year under a course."""
    with failure_boundary("create year"):
        if repo.get_course(db, course_id) is None:
            raise _course_not_found()
        try:
            year = repo.create_year(
                db, course_id, year_number=body.year_number, name=body.name
            )
        except sqlite3.IntegrityError as e:
            # Parent removed after the check above
            raise _course_not_found() from e

    return YearResponse.model_validate(year)
