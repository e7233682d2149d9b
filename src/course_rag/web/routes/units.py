"""Unit endpoints, plus the documents and ancestor chain of a unit."""

from pathlib import Path

from fastapi import APIRouter, Depends, HTTPException, status

from course_rag.core.uploads import remove_unit_directories
from course_rag.db import hierarchy_repository as repo
from course_rag.db.database import Database
from course_rag.db.documents_repository import list_documents_by_unit
from course_rag.web.dependencies import get_database, get_upload_dir
from course_rag.web.errors import failure_boundary
from course_rag.web.schemas import (
    DeleteResponse,
    DocumentResponse,
    UnitHierarchyResponse,
    UnitResponse,
    UnitWrite,
)

router = APIRouter(prefix="/api/units", tags=["units"])


def _unit_not_found() -> HTTPException:
    return HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Unit not found")


@router.get("/{unit_id}", response_model=UnitResponse)
async def get_unit(unit_id: int, db: Database = Depends(get_database)) -> UnitResponse:
    with failure_boundary("fetch unit"):
        unit = repo.get_unit(db, unit_id)

    if unit is None:
        raise _unit_not_found()

    return UnitResponse.model_validate(unit)


@router.put("/{unit_id}", response_model=UnitResponse)
async def update_unit(
    unit_id: int, body: UnitWrite, db: Database = Depends(get_database)
) -> UnitResponse:
    with failure_boundary("update unit"):
        updated = repo.update_unit(
            db, unit_id, code=body.code, name=body.name, description=body.description
        )
        unit = repo.get_unit(db, unit_id) if updated else None

    if unit is None:
        raise _unit_not_found()

    return UnitResponse.model_validate(unit)


@router.delete("/{unit_id}", response_model=DeleteResponse)
async def delete_unit(
    unit_id: int,
    db: Database = Depends(get_database),
    upload_dir: Path = Depends(get_upload_dir),
) -> DeleteResponse:
    """Delete a unit with its document rows and its stored files."""
    with failure_boundary("delete unit"):
        deleted = repo.delete_unit(db, unit_id)

    if not deleted:
        raise _unit_not_found()

    remove_unit_directories(upload_dir, [unit_id])
    return DeleteResponse(success=True)


@router.get("/{unit_id}/documents", response_model=list[DocumentResponse])
async def list_unit_documents(
    unit_id: int, db: Database = Depends(get_database)
) -> list[DocumentResponse]:
    """List documents uploaded to a unit, newest first."""
    with failure_boundary("fetch documents"):
        documents = list_documents_by_unit(db, unit_id)

    return [DocumentResponse.model_validate(d) for d in documents]


@router.get("/{unit_id}/hierarchy", response_model=UnitHierarchyResponse)
async def get_unit_hierarchy(
    unit_id: int, db: Database = Depends(get_database)
) -> UnitHierarchyResponse:
    """Resolve the course, year and semester a unit belongs to."""
    with failure_boundary("fetch unit hierarchy"):
        ancestry = repo.get_ancestry(db, unit_id)

    if ancestry is None:
        raise _unit_not_found()

    return UnitHierarchyResponse.model_validate(ancestry)
