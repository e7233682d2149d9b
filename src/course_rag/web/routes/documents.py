"""Document endpoints.

Documents are created only through /api/upload; this router lists,
inspects and removes them.
"""

from fastapi import APIRouter, Depends, HTTPException, Query, status

from course_rag.core.uploads import remove_stored_files
from course_rag.db import documents_repository as repo
from course_rag.db.database import Database
from course_rag.web.dependencies import get_database
from course_rag.web.errors import failure_boundary
from course_rag.web.schemas import (
    DeleteResponse,
    DocumentResponse,
    DocumentWithHierarchyResponse,
)

router = APIRouter(prefix="/api/documents", tags=["documents"])


@router.get("", response_model=list[DocumentWithHierarchyResponse])
async def list_documents(
    course_id: int | None = Query(default=None, alias="courseId"),
    year_id: int | None = Query(default=None, alias="yearId"),
    semester_id: int | None = Query(default=None, alias="semesterId"),
    unit_id: int | None = Query(default=None, alias="unitId"),
    db: Database = Depends(get_database),
) -> list[DocumentWithHierarchyResponse]:
    """List documents with their hierarchy, optionally filtered by any level."""
    with failure_boundary("fetch documents"):
        documents = repo.list_documents_with_hierarchy(
            db,
            course_id=course_id,
            year_id=year_id,
            semester_id=semester_id,
            unit_id=unit_id,
        )

    return [DocumentWithHierarchyResponse.model_validate(d) for d in documents]


@router.get("/{document_id}", response_model=DocumentResponse)
async def get_document(
    document_id: int, db: Database = Depends(get_database)
) -> DocumentResponse:
    with failure_boundary("fetch document"):
        document = repo.get_document(db, document_id)

    if document is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Document not found")

    return DocumentResponse.model_validate(document)


@router.delete("/{document_id}", response_model=DeleteResponse)
async def delete_document(
    document_id: int, db: Database = Depends(get_database)
) -> DeleteResponse:
    """Delete a document record and its stored file."""
    with failure_boundary("delete document"):
        document = repo.get_document(db, document_id)
        if document is None or not repo.delete_document(db, document_id):
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND, detail="Document not found"
            )

    remove_stored_files([document.file_path])

    return DeleteResponse(success=True)
