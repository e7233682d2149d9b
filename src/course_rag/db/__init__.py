"""Database module for SQLite persistence.

Provides:
- The Database store handle and schema initialization
- Repository functions for courses, years, semesters and units
- Repository functions for uploaded documents
"""

from course_rag.db.database import Database

__all__ = ["Database"]
