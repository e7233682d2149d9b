"""Tests for the upload-and-forward pipeline (service level)."""

import re
import sqlite3
from unittest.mock import patch

import httpx
import pytest

from course_rag.core.uploads import (
    IncomingFile,
    UnitNotFoundError,
    UploadValidationError,
    is_pdf,
    make_stored_filename,
    parse_unit_id,
    process_upload,
    remove_stored_files,
    remove_unit_directories,
)
from course_rag.db import hierarchy_repository as repo
from course_rag.db.documents_repository import list_documents_by_unit


@pytest.fixture
def unit(db):
    course = repo.create_course(db, "CS")
    year = repo.create_year(db, course.id, 1, "Year 1")
    semester = repo.create_semester(db, year.id, 1, "Sem 1")
    return repo.create_unit(db, semester.id, "CS101", "Intro")


@pytest.fixture
def upload_dir(app_config):
    return app_config.paths.upload_dir


@pytest.fixture
def one_pdf(pdf_bytes):
    return [IncomingFile("a.pdf", pdf_bytes)]


class TestHelpers:
    """Tests for small helpers."""

    @pytest.mark.parametrize("raw,expected", [("7", 7), (" 12 ", 12), (3, 3)])
    def test_parse_unit_id(self, raw, expected):
        assert parse_unit_id(raw) == expected

    @pytest.mark.parametrize("raw", [None, "", "abc", "1.5"])
    def test_parse_unit_id_rejects(self, raw):
        with pytest.raises(UploadValidationError, match="unitId"):
            parse_unit_id(raw)

    def test_is_pdf_case_insensitive(self):
        assert is_pdf("notes.PDF")
        assert not is_pdf("notes.pdf.exe")
        assert not is_pdf("")

    def test_stored_filename_is_unique_and_whitespace_free(self):
        first = make_stored_filename("Week 1  notes.pdf")
        second = make_stored_filename("Week 1  notes.pdf")

        assert first != second
        assert first.endswith("-Week_1_notes.pdf")
        assert re.match(r"^[0-9a-f-]{36}-", first)


class TestProcessUpload:
    """Tests for process_upload."""

    def test_rejects_missing_unit_before_writing(self, db, backend_client, upload_dir, one_pdf):
        with pytest.raises(UnitNotFoundError):
            process_upload(db, backend_client, upload_dir, "999", one_pdf)

        assert not (upload_dir / "unit-999").exists()

    def test_rejects_empty_batch(self, db, backend_client, upload_dir, unit):
        with pytest.raises(UploadValidationError, match="No files provided"):
            process_upload(db, backend_client, upload_dir, unit.id, [])

    def test_full_success(self, db, backend_client, fake_backend, upload_dir, unit, pdf_bytes):
        outcome = process_upload(
            db, backend_client, upload_dir, str(unit.id), [IncomingFile("week 1.pdf", pdf_bytes)]
        )

        assert outcome.status_code == 200
        assert outcome.message == (
            "Uploaded 1 files successfully. Backend processing: Processed 1 document"
        )
        assert outcome.backend_result == {"message": "Processed 1 document"}

        (document,) = list_documents_by_unit(db, unit.id)
        stored = upload_dir / f"unit-{unit.id}" / document.filename
        assert stored.read_bytes() == pdf_bytes
        assert document.original_filename == "week 1.pdf"

        (request,) = fake_backend.calls("/upload")
        assert b'"course_name": "CS"' in request.content

    def test_partial_batch_independence(self, db, backend_client, upload_dir, unit, pdf_bytes):
        outcome = process_upload(
            db,
            backend_client,
            upload_dir,
            unit.id,
            [
                IncomingFile("slides.pptx", b"not a pdf"),
                IncomingFile("notes.pdf", pdf_bytes),
            ],
        )

        results = [r.to_dict() for r in outcome.results]
        assert results[0] == {
            "name": "slides.pptx",
            "success": False,
            "error": "Only PDF files are allowed",
        }
        assert results[1]["success"] is True
        assert isinstance(results[1]["id"], int)
        assert len(list_documents_by_unit(db, unit.id)) == 1

    def test_nothing_saved_returns_400(self, db, backend_client, fake_backend, upload_dir, unit):
        outcome = process_upload(
            db, backend_client, upload_dir, unit.id, [IncomingFile("a.txt", b"text")]
        )

        assert outcome.status_code == 400
        assert outcome.message == "No files were successfully saved."
        assert fake_backend.requests == []

    def test_failed_record_leaves_no_file(
        self, db, backend_client, fake_backend, upload_dir, unit, one_pdf
    ):
        with patch(
            "course_rag.core.uploads.create_document",
            side_effect=sqlite3.OperationalError("database is locked"),
        ):
            outcome = process_upload(db, backend_client, upload_dir, unit.id, one_pdf)

        assert outcome.status_code == 400
        assert outcome.results[0].to_dict() == {
            "name": "a.pdf",
            "success": False,
            "error": "Failed to save file",
        }
        assert list((upload_dir / f"unit-{unit.id}").iterdir()) == []
        assert fake_backend.requests == []

    def test_backend_down_is_partial_success(
        self, db, backend_client, fake_backend, upload_dir, unit, one_pdf
    ):
        fake_backend.fail("/ping", httpx.ConnectError)

        outcome = process_upload(db, backend_client, upload_dir, unit.id, one_pdf)

        assert outcome.status_code == 207
        assert "backend is not available" in outcome.message
        assert outcome.backend_error
        assert len(list_documents_by_unit(db, unit.id)) == 1
        assert fake_backend.calls("/upload") == []

    def test_backend_upload_timeout_is_partial_success(
        self, db, backend_client, fake_backend, upload_dir, unit, one_pdf
    ):
        fake_backend.fail("/upload", httpx.ReadTimeout)

        outcome = process_upload(db, backend_client, upload_dir, unit.id, one_pdf)

        assert outcome.status_code == 207
        assert "timed out" in outcome.backend_error
        assert outcome.message.startswith(
            "Files uploaded locally but there was an error with backend processing"
        )

    def test_backend_malformed_payload_is_partial_success(
        self, db, backend_client, fake_backend, upload_dir, unit, one_pdf
    ):
        fake_backend.respond("/upload", 200, text="OK")

        outcome = process_upload(db, backend_client, upload_dir, unit.id, one_pdf)

        assert outcome.status_code == 207
        assert outcome.backend_error == "Backend returned an invalid response"

    def test_hierarchy_failure_is_swallowed(
        self, db, backend_client, fake_backend, upload_dir, unit, one_pdf
    ):
        with patch(
            "course_rag.core.uploads.get_ancestry", side_effect=RuntimeError("lookup broke")
        ):
            outcome = process_upload(db, backend_client, upload_dir, unit.id, one_pdf)

        assert outcome.status_code == 200
        (request,) = fake_backend.calls("/upload")
        assert b"courseHierarchy" not in request.content

    def test_client_path_is_stripped(self, db, backend_client, upload_dir, unit, pdf_bytes):
        process_upload(
            db, backend_client, upload_dir, unit.id, [IncomingFile("../../evil.pdf", pdf_bytes)]
        )

        (document,) = list_documents_by_unit(db, unit.id)
        assert "/" not in document.filename
        assert document.filename.endswith("-evil.pdf")
        assert (upload_dir / f"unit-{unit.id}" / document.filename).exists()


class TestStorageCleanup:
    """Tests for removing stored files."""

    def test_remove_stored_files_tolerates_missing(self, tmp_path):
        present = tmp_path / "a.pdf"
        present.write_bytes(b"x")

        remove_stored_files([present, tmp_path / "gone.pdf"])

        assert not present.exists()

    def test_remove_unit_directories(self, upload_dir):
        kept = upload_dir / "unit-2"
        for unit_dir in (upload_dir / "unit-1", kept):
            unit_dir.mkdir(parents=True)
            (unit_dir / "x.pdf").write_bytes(b"x")

        remove_unit_directories(upload_dir, [1, 3])

        assert not (upload_dir / "unit-1").exists()
        assert (kept / "x.pdf").exists()
