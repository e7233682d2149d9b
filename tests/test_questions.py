"""Tests for the ask flow (service level)."""

import json

import httpx
import pytest

from course_rag.backend.client import (
    BackendResponseError,
    BackendTimeoutError,
    BackendUnavailableError,
)
from course_rag.core.questions import (
    NO_DOCUMENTS_ANSWER,
    QuestionScope,
    QuestionValidationError,
    ask_question,
)
from course_rag.db import documents_repository as docs
from course_rag.db import hierarchy_repository as repo


@pytest.fixture
def unit_with_document(db):
    course = repo.create_course(db, "CS")
    year = repo.create_year(db, course.id, 1, "Year 1")
    semester = repo.create_semester(db, year.id, 1, "Sem 1")
    unit = repo.create_unit(db, semester.id, "CS101", "Intro")
    docs.create_document(db, unit.id, "x-notes.pdf", "notes.pdf", "/tmp/x-notes.pdf")
    return course, year, semester, unit


class TestQuestionScope:
    """Tests for QuestionScope."""

    def test_most_specific_level_wins(self):
        scope = QuestionScope(course_id=1, semester_id=3)
        assert scope.level() == "semester"
        assert scope.describe() == "Searched documents from a specific semester."

    def test_unscoped(self):
        scope = QuestionScope()
        assert scope.level() is None
        assert scope.describe() == "Searched all available documents."
        assert scope.to_filters() == {}

    def test_filters_use_camel_case(self):
        scope = QuestionScope(course_id=1, unit_id=4)
        assert scope.to_filters() == {"courseId": 1, "unitId": 4}


class TestAskQuestion:
    """Tests for ask_question."""

    @pytest.mark.parametrize("question", [None, "", "   "])
    def test_blank_question_rejected(self, db, backend_client, question):
        with pytest.raises(QuestionValidationError, match="Question is required"):
            ask_question(db, backend_client, question)

    def test_returns_backend_payload_with_context(
        self, db, backend_client, fake_backend, unit_with_document
    ):
        *_, unit = unit_with_document
        result = ask_question(
            db, backend_client, "What is binary search?", QuestionScope(unit_id=unit.id)
        )

        assert result["answer"] == "Binary search halves the interval each step."
        assert result["sources"] == [{"title": "notes.pdf", "excerpt": "halves the interval"}]
        assert result["context"] == "Searched documents from a specific unit."

        (request,) = fake_backend.calls("/ask")
        assert json.loads(request.content) == {
            "question": "What is binary search?",
            "unitId": unit.id,
        }

    def test_no_documents_short_circuits(self, db, backend_client, fake_backend):
        result = ask_question(db, backend_client, "Anything?")

        assert result == {"answer": NO_DOCUMENTS_ANSWER, "sources": []}
        assert fake_backend.calls("/ask") == []

    def test_scope_without_documents(self, db, backend_client, unit_with_document):
        other = repo.create_course(db, "Empty")
        result = ask_question(db, backend_client, "Q?", QuestionScope(course_id=other.id))

        assert result["answer"] == NO_DOCUMENTS_ANSWER

    def test_year_scope_finds_documents(self, db, backend_client, unit_with_document):
        _, year, _, _ = unit_with_document
        result = ask_question(db, backend_client, "Q?", QuestionScope(year_id=year.id))

        assert result["context"] == "Searched documents from a specific year."

    def test_probe_failure_raises_unavailable(
        self, db, backend_client, fake_backend, unit_with_document
    ):
        fake_backend.fail("/ping", httpx.ConnectError)

        with pytest.raises(BackendUnavailableError):
            ask_question(db, backend_client, "Q?")
        assert fake_backend.calls("/ask") == []

    def test_ask_timeout_raises_timeout(
        self, db, backend_client, fake_backend, unit_with_document
    ):
        fake_backend.fail("/ask", httpx.ReadTimeout)

        with pytest.raises(BackendTimeoutError):
            ask_question(db, backend_client, "Q?")

    def test_backend_error_propagates(
        self, db, backend_client, fake_backend, unit_with_document
    ):
        fake_backend.respond("/ask", 500, json={"error": "model crashed"})

        with pytest.raises(BackendResponseError, match="model crashed"):
            ask_question(db, backend_client, "Q?")
