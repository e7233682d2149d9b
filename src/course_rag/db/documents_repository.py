"""Repository functions for documents table.

Provides CRUD operations for uploaded PDF records and hierarchy-aware listing.
"""

from __future__ import annotations

from dataclasses import asdict, dataclass

import structlog

from course_rag.db.database import Database

logger = structlog.get_logger(__name__)


@dataclass
class DocumentRecord:
    """Document record from database."""

    id: int
    unit_id: int
    filename: str
    original_filename: str
    file_path: str
    created_at: str | None = None

    def to_dict(self) -> dict:
        return asdict(self)


@dataclass
class DocumentWithHierarchy:
    """Document joined with every ancestor's id and name."""

    id: int
    filename: str
    original_filename: str
    file_path: str
    created_at: str | None
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

    def to_dict(self) -> dict:
        return asdict(self)


def create_document(
    db: Database,
    unit_id: int,
    filename: str,
    original_filename: str,
    file_path: str,
) -> DocumentRecord:
    """Insert a new document record.

    Args:
        unit_id: Owning unit
        filename: Generated unique name on disk
        original_filename: Name as uploaded by the client
        file_path: Location of the stored file

    Raises:
        sqlite3.IntegrityError: If the unit does not exist
    """
    with db.connect() as conn:
        cursor = conn.execute(
            """
            INSERT INTO documents (unit_id, filename, original_filename, file_path)
            VALUES (?, ?, ?, ?)
            """,
            (unit_id, filename, original_filename, file_path),
        )
        row = conn.execute(
            "SELECT * FROM documents WHERE id = ?", (cursor.lastrowid,)
        ).fetchone()

    logger.debug("documents.inserted", document_id=row["id"], unit_id=unit_id)
    return _row_to_record(row)


def list_documents_by_unit(db: Database, unit_id: int) -> list[DocumentRecord]:
    """Get all documents of a unit, newest first."""
    with db.connect() as conn:
        rows = conn.execute(
            """
            SELECT * FROM documents
            WHERE unit_id = ?
            ORDER BY created_at DESC, id DESC
            """,
            (unit_id,),
        ).fetchall()

    return [_row_to_record(row) for row in rows]


def get_document(db: Database, document_id: int) -> DocumentRecord | None:
    with db.connect() as conn:
        row = conn.execute(
            "SELECT * FROM documents WHERE id = ?", (document_id,)
        ).fetchone()

    if row is None:
        return None

    return _row_to_record(row)


def delete_document(db: Database, document_id: int) -> bool:
    """Delete document record by ID.

    Returns:
        True if deleted, False if not found
    """
    with db.connect() as conn:
        cursor = conn.execute("DELETE FROM documents WHERE id = ?", (document_id,))

    deleted = cursor.rowcount > 0
    if deleted:
        logger.debug("documents.deleted", document_id=document_id)

    return deleted


def list_documents_with_hierarchy(
    db: Database,
    course_id: int | None = None,
    year_id: int | None = None,
    semester_id: int | None = None,
    unit_id: int | None = None,
) -> list[DocumentWithHierarchy]:
    """Get documents joined with their ancestors, newest first.

    Every filter that is given must match; with no filters all documents
    are returned.
    """
    clauses = []
    params: list[int] = []
    for column, value in (
        ("c.id", course_id),
        ("y.id", year_id),
        ("s.id", semester_id),
        ("u.id", unit_id),
    ):
        if value is not None:
            clauses.append(f"{column} = ?")
            params.append(value)

    where = f"WHERE {' AND '.join(clauses)}" if clauses else ""

    with db.connect() as conn:
        rows = conn.execute(
            f"""
            SELECT
                d.id, d.filename, d.original_filename, d.file_path, d.created_at,
                u.id AS unit_id, u.code AS unit_code, u.name AS unit_name,
                s.id AS semester_id, s.name AS semester_name, s.semester_number,
                y.id AS year_id, y.name AS year_name, y.year_number,
                c.id AS course_id, c.name AS course_name
            FROM documents d
            JOIN units u ON d.unit_id = u.id
            JOIN semesters s ON u.semester_id = s.id
            JOIN years y ON s.year_id = y.id
            JOIN courses c ON y.course_id = c.id
            {where}
            ORDER BY d.created_at DESC, d.id DESC
            """,
            params,
        ).fetchall()

    return [DocumentWithHierarchy(**{key: row[key] for key in row.keys()}) for row in rows]


def _row_to_record(row) -> DocumentRecord:
    """Convert database row to DocumentRecord."""
    return DocumentRecord(
        id=row["id"],
        unit_id=row["unit_id"],
        filename=row["filename"],
        original_filename=row["original_filename"],
        file_path=row["file_path"],
        created_at=row["created_at"],
    )
