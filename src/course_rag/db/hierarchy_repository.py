"""Repository functions for the course hierarchy tables.

Provides CRUD operations for courses, years, semesters and units. Updates
replace every mutable field; parent ids never change after creation.
Descendants are removed by the schema's ON DELETE CASCADE, never here.
"""

from __future__ import annotations

import sqlite3
from dataclasses import asdict, dataclass

import structlog

from course_rag.db.database import Database

logger = structlog.get_logger(__name__)


# =============================================================================
# RECORDS
# =============================================================================


@dataclass
class CourseRecord:
    """Course record from database."""

    id: int
    name: str
    description: str
    created_at: str | None = None

    def to_dict(self) -> dict:
        return asdict(self)


@dataclass
class YearRecord:
    """Year record from database."""

    id: int
    course_id: int
    year_number: int
    name: str
    created_at: str | None = None

    def to_dict(self) -> dict:
        return asdict(self)


@dataclass
class SemesterRecord:
    """Semester record from database."""

    id: int
    year_id: int
    semester_number: int
    name: str
    created_at: str | None = None

    def to_dict(self) -> dict:
        return asdict(self)


@dataclass
class UnitRecord:
    """Unit record from database."""

    id: int
    semester_id: int
    code: str
    name: str
    description: str
    created_at: str | None = None

    def to_dict(self) -> dict:
        return asdict(self)


@dataclass
class UnitAncestry:
    """Full ancestor chain of a unit, used as upload metadata."""

    course_id: int
    course_name: str
    year_id: int
    year_name: str
    semester_id: int
    semester_name: str
    unit_id: int
    unit_name: str

    def to_dict(self) -> dict:
        return asdict(self)


# =============================================================================
# COURSES
# =============================================================================


def create_course(db: Database, name: str, description: str = "") -> CourseRecord:
    """Insert a new course and return it with its assigned id."""
    with db.connect() as conn:
        cursor = conn.execute(
            "INSERT INTO courses (name, description) VALUES (?, ?)",
            (name, description),
        )
        row = _fetch_by_id(conn, "courses", cursor.lastrowid)

    logger.debug("courses.inserted", course_id=row["id"])
    return _row_to_course(row)


def list_courses(db: Database) -> list[CourseRecord]:
    """Get all courses ordered by name."""
    with db.connect() as conn:
        rows = conn.execute("SELECT * FROM courses ORDER BY name, id").fetchall()

    return [_row_to_course(row) for row in rows]


def get_course(db: Database, course_id: int) -> CourseRecord | None:
    """Get course by ID, or None if it does not exist."""
    with db.connect() as conn:
        row = _fetch_by_id(conn, "courses", course_id)

    return _row_to_course(row) if row is not None else None


def update_course(db: Database, course_id: int, name: str, description: str = "") -> bool:
    """Replace a course's fields.

    Returns:
        True if updated, False if not found
    """
    with db.connect() as conn:
        cursor = conn.execute(
            "UPDATE courses SET name = ?, description = ? WHERE id = ?",
            (name, description, course_id),
        )

    updated = cursor.rowcount > 0
    if updated:
        logger.debug("courses.updated", course_id=course_id)
    return updated


def delete_course(db: Database, course_id: int) -> bool:
    """Delete course by ID, cascading to its years and everything below.

    Returns:
        True if deleted, False if not found
    """
    return _delete_by_id(db, "courses", course_id)


# =============================================================================
# YEARS
# =============================================================================


def create_year(db: Database, course_id: int, year_number: int, name: str) -> YearRecord:
    """Insert a new year under a course.

    Raises:
        sqlite3.IntegrityError: If the course does not exist
    """
    with db.connect() as conn:
        cursor = conn.execute(
            "INSERT INTO years (course_id, year_number, name) VALUES (?, ?, ?)",
            (course_id, year_number, name),
        )
        row = _fetch_by_id(conn, "years", cursor.lastrowid)

    logger.debug("years.inserted", year_id=row["id"], course_id=course_id)
    return _row_to_year(row)


def list_years(db: Database, course_id: int) -> list[YearRecord]:
    """Get all years of a course ordered by year number."""
    with db.connect() as conn:
        rows = conn.execute(
            "SELECT * FROM years WHERE course_id = ? ORDER BY year_number, id",
            (course_id,),
        ).fetchall()

    return [_row_to_year(row) for row in rows]


def get_year(db: Database, year_id: int) -> YearRecord | None:
    with db.connect() as conn:
        row = _fetch_by_id(conn, "years", year_id)

    return _row_to_year(row) if row is not None else None


def update_year(db: Database, year_id: int, year_number: int, name: str) -> bool:
    with db.connect() as conn:
        cursor = conn.execute(
            "UPDATE years SET year_number = ?, name = ? WHERE id = ?",
            (year_number, name, year_id),
        )

    updated = cursor.rowcount > 0
    if updated:
        logger.debug("years.updated", year_id=year_id)
    return updated


def delete_year(db: Database, year_id: int) -> bool:
    return _delete_by_id(db, "years", year_id)


# =============================================================================
# SEMESTERS
# =============================================================================


def create_semester(
    db: Database, year_id: int, semester_number: int, name: str
) -> SemesterRecord:
    """Insert a new semester under a year.

    Raises:
        sqlite3.IntegrityError: If the year does not exist
    """
    with db.connect() as conn:
        cursor = conn.execute(
            "INSERT INTO semesters (year_id, semester_number, name) VALUES (?, ?, ?)",
            (year_id, semester_number, name),
        )
        row = _fetch_by_id(conn, "semesters", cursor.lastrowid)

    logger.debug("semesters.inserted", semester_id=row["id"], year_id=year_id)
    return _row_to_semester(row)


def list_semesters(db: Database, year_id: int) -> list[SemesterRecord]:
    with db.connect() as conn:
        rows = conn.execute(
            "SELECT * FROM semesters WHERE year_id = ? ORDER BY semester_number, id",
            (year_id,),
        ).fetchall()

    return [_row_to_semester(row) for row in rows]


def get_semester(db: Database, semester_id: int) -> SemesterRecord | None:
    with db.connect() as conn:
        row = _fetch_by_id(conn, "semesters", semester_id)

    return _row_to_semester(row) if row is not None else None


def update_semester(db: Database, semester_id: int, semester_number: int, name: str) -> bool:
    with db.connect() as conn:
        cursor = conn.execute(
            "UPDATE semesters SET semester_number = ?, name = ? WHERE id = ?",
            (semester_number, name, semester_id),
        )

    updated = cursor.rowcount > 0
    if updated:
        logger.debug("semesters.updated", semester_id=semester_id)
    return updated


def delete_semester(db: Database, semester_id: int) -> bool:
    return _delete_by_id(db, "semesters", semester_id)


# =============================================================================
# UNITS
# =============================================================================


def create_unit(
    db: Database, semester_id: int, code: str, name: str, description: str = ""
) -> UnitRecord:
    """Insert a new unit under a semester.

    Raises:
        sqlite3.IntegrityError: If the semester does not exist
    """
    with db.connect() as conn:
        cursor = conn.execute(
            "INSERT INTO units (semester_id, code, name, description) VALUES (?, ?, ?, ?)",
            (semester_id, code, name, description),
        )
        row = _fetch_by_id(conn, "units", cursor.lastrowid)

    logger.debug("units.inserted", unit_id=row["id"], semester_id=semester_id)
    return _row_to_unit(row)


def list_units(db: Database, semester_id: int) -> list[UnitRecord]:
    with db.connect() as conn:
        rows = conn.execute(
            "SELECT * FROM units WHERE semester_id = ? ORDER BY name, id",
            (semester_id,),
        ).fetchall()

    return [_row_to_unit(row) for row in rows]


def get_unit(db: Database, unit_id: int) -> UnitRecord | None:
    with db.connect() as conn:
        row = _fetch_by_id(conn, "units", unit_id)

    return _row_to_unit(row) if row is not None else None


def update_unit(
    db: Database, unit_id: int, code: str, name: str, description: str = ""
) -> bool:
    with db.connect() as conn:
        cursor = conn.execute(
            "UPDATE units SET code = ?, name = ?, description = ? WHERE id = ?",
            (code, name, description, unit_id),
        )

    updated = cursor.rowcount > 0
    if updated:
        logger.debug("units.updated", unit_id=unit_id)
    return updated


def delete_unit(db: Database, unit_id: int) -> bool:
    return _delete_by_id(db, "units", unit_id)


# =============================================================================
# HIERARCHY QUERIES
# =============================================================================


def get_ancestry(db: Database, unit_id: int) -> UnitAncestry | None:
    """Resolve Unit -> Semester -> Year -> Course in a single query.

    Args:
        unit_id: Unit identifier

    Returns:
        UnitAncestry if the unit exists, None otherwise
    """
    with db.connect() as conn:
        row = conn.execute(
            """
            SELECT
                c.id AS course_id, c.name AS course_name,
                y.id AS year_id, y.name AS year_name,
                s.id AS semester_id, s.name AS semester_name,
                u.id AS unit_id, u.name AS unit_name
            FROM units u
            JOIN semesters s ON u.semester_id = s.id
            JOIN years y ON s.year_id = y.id
            JOIN courses c ON y.course_id = c.id
            WHERE u.id = ?
            """,
            (unit_id,),
        ).fetchone()

    if row is None:
        return None

    return UnitAncestry(**{key: row[key] for key in row.keys()})


def list_unit_ids_under(
    db: Database,
    course_id: int | None = None,
    year_id: int | None = None,
    semester_id: int | None = None,
) -> list[int]:
    """Ids of every unit below the given course, year or semester.

    Filters combine with AND; with none given every unit id is returned.
    """
    clauses = []
    params: list[int] = []
    for column, value in (
        ("y.course_id", course_id),
        ("s.year_id", year_id),
        ("u.semester_id", semester_id),
    ):
        if value is not None:
            clauses.append(f"{column} = ?")
            params.append(value)

    where = f"WHERE {' AND '.join(clauses)}" if clauses else ""

    with db.connect() as conn:
        rows = conn.execute(
            f"""
            SELECT u.id
            FROM units u
            JOIN semesters s ON u.semester_id = s.id
            JOIN years y ON s.year_id = y.id
            {where}
            ORDER BY u.id
            """,
            params,
        ).fetchall()

    return [row["id"] for row in rows]


def count_hierarchy(db: Database) -> dict[str, int]:
    """Count rows per hierarchy table."""
    counts = {}
    with db.connect() as conn:
        for table in ("courses", "years", "semesters", "units", "documents"):
            counts[table] = conn.execute(f"SELECT COUNT(*) FROM {table}").fetchone()[0]

    return counts


# =============================================================================
# HELPERS
# =============================================================================


def _fetch_by_id(conn: sqlite3.Connection, table: str, row_id: int) -> sqlite3.Row | None:
    return conn.execute(f"SELECT * FROM {table} WHERE id = ?", (row_id,)).fetchone()


def _delete_by_id(db: Database, table: str, row_id: int) -> bool:
    with db.connect() as conn:
        cursor = conn.execute(f"DELETE FROM {table} WHERE id = ?", (row_id,))

    deleted = cursor.rowcount > 0
    if deleted:
        logger.debug(f"{table}.deleted", id=row_id)

    return deleted


def _row_to_course(row) -> CourseRecord:
    """Convert database row to CourseRecord."""
    return CourseRecord(
        id=row["id"],
        name=row["name"],
        description=row["description"] or "",
        created_at=row["created_at"],
    )


def _row_to_year(row) -> YearRecord:
    return YearRecord(
        id=row["id"],
        course_id=row["course_id"],
        year_number=row["year_number"],
        name=row["name"],
        created_at=row["created_at"],
    )


def _row_to_semester(row) -> SemesterRecord:
    return SemesterRecord(
        id=row["id"],
        year_id=row["year_id"],
        semester_number=row["semester_number"],
        name=row["name"],
        created_at=row["created_at"],
    )


def _row_to_unit(row) -> UnitRecord:
    return UnitRecord(
        id=row["id"],
        semester_id=row["semester_id"],
        code=row["code"],
        name=row["name"],
        description=row["description"] or "",
        created_at=row["created_at"],
    )
