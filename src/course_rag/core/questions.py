"""Question-answering flow.

Probes the remote backend, checks that local documents exist for the
requested scope, then forwards the question and hierarchy filters. The
backend's answer/sources payload is returned unchanged, with a short
`context` string naming the searched scope.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

import structlog

from course_rag.backend.client import BackendClient
from course_rag.db.database import Database
from course_rag.db.documents_repository import list_documents_with_hierarchy

logger = structlog.get_logger(__name__)

NO_DOCUMENTS_ANSWER = (
    "There are no documents uploaded for the selected criteria. "
    "Please upload documents first."
)


class QuestionValidationError(Exception):
    """Question text missing or blank."""

    pass


@dataclass
class QuestionScope:
    """Optional hierarchy filters for a question."""

    course_id: int | None = None
    year_id: int | None = None
    semester_id: int | None = None
    unit_id: int | None = None

    def level(self) -> str | None:
        """Most specific level with a filter set."""
        if self.unit_id is not None:
            return "unit"
        if self.semester_id is not None:
            return "semester"
        if self.year_id is not None:
            return "year"
        if self.course_id is not None:
            return "course"
        return None

    def describe(self) -> str:
        level = self.level()
        if level is None:
            return "Searched all available documents."
        return f"Searched documents from a specific {level}."

    def to_filters(self) -> dict[str, int]:
        """Filters in the backend's camelCase naming, unset ones omitted."""
        filters = {
            "courseId": self.course_id,
            "yearId": self.year_id,
            "semesterId": self.semester_id,
            "unitId": self.unit_id,
        }
        return {k: v for k, v in filters.items() if v is not None}


def count_documents_in_scope(db: Database, scope: QuestionScope) -> int:
    """Count local documents under the most specific filter."""
    level = scope.level()
    kwargs = {}
    if level is not None:
        kwargs[f"{level}_id"] = getattr(scope, f"{level}_id")

    return len(list_documents_with_hierarchy(db, **kwargs))


def ask_question(
    db: Database,
    backend: BackendClient,
    question: str | None,
    scope: QuestionScope | None = None,
) -> dict[str, Any]:
    """Answer a question through the remote backend.

    Raises:
        QuestionValidationError: If the question is blank
        BackendUnavailableError: If the liveness probe fails
        BackendTimeoutError: If the ask call exceeds its timeout
        BackendResponseError: If the backend returns an error or malformed payload
    """
    if not question or not question.strip():
        raise QuestionValidationError("Question is required")

    scope = scope or QuestionScope()

    backend.check()

    document_count = count_documents_in_scope(db, scope)
    if document_count == 0:
        logger.info("ask.no_documents", scope=scope.level() or "all")
        return {"answer": NO_DOCUMENTS_ANSWER, "sources": []}

    logger.info("ask.forwarding", scope=scope.level() or "all", documents=document_count)
    result = backend.ask(question.strip(), scope.to_filters())

    return {**result, "context": scope.describe()}
