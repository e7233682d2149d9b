"""Tests for diagnostic endpoints and the health check."""

import sqlite3
from unittest.mock import patch

import httpx
import pytest

from course_rag import __version__
from course_rag.db.database import Database


class TestBackendDebug:
    """Tests for GET /api/debug."""

    def test_proxies_counts(self, client, fake_backend):
        response = client.get("/api/debug", params={"unitId": "3"})

        assert response.status_code == 200
        assert response.json() == {
            "total_document_chunks": 12,
            "unique_sources": ["a.pdf", "b.pdf"],
        }
        (request,) = fake_backend.calls("/debug")
        assert dict(request.url.params) == {"unitId": "3"}

    def test_backend_status_passed_through(self, client, fake_backend):
        fake_backend.respond("/debug", 404, json={"detail": "Not Found"})

        response = client.get("/api/debug")

        assert response.status_code == 404
        assert response.json() == {"error": "Backend responded with status 404"}

    def test_transport_failure_is_500(self, client, fake_backend):
        fake_backend.fail("/debug", httpx.ConnectError)

        response = client.get("/api/debug")

        assert response.status_code == 500
        assert response.json() == {"error": "Failed to fetch debug information"}


class TestLocalDebug:
    """Tests for GET /api/debug/local."""

    def test_reports_counts_and_paths(self, client, hierarchy, app_config):
        data = client.get("/api/debug/local").json()

        assert data["counts"] == {
            "courses": 1,
            "years": 1,
            "semesters": 1,
            "units": 1,
            "documents": 0,
        }
        assert data["upload_dir_exists"] is True
        assert data["db_path"].endswith("test.db")
        assert data["backend_url"] == app_config.backend.base_url


class TestBackendStatus:
    """Tests for GET /api/backend/status."""

    def test_connected(self, client):
        data = client.get("/api/backend/status").json()

        assert data["connected"] is True
        assert data["documentCount"] == 12
        assert data["uniqueSources"] == 2
        assert data["error"] is None

    def test_disconnected(self, client, fake_backend):
        fake_backend.fail("/ping", httpx.ConnectError)

        response = client.get("/api/backend/status")

        assert response.status_code == 200
        data = response.json()
        assert data["connected"] is False
        assert "tunnel URL may have expired" in data["error"]

    def test_connected_without_counts(self, client, fake_backend):
        fake_backend.respond("/debug", 500, text="oops")

        data = client.get("/api/backend/status").json()

        assert data["connected"] is True
        assert data["documentCount"] == 0
        assert "couldn't fetch document information" in data["error"]


def test_health(client):
    response = client.get("/health")

    assert response.status_code == 200
    data = response.json()
    assert data["status"] == "ok"
    assert data["version"] == __version__
    assert data["database"] == "ok"


def test_health_reports_unavailable_store(client):
    with patch.object(Database, "connect", side_effect=sqlite3.OperationalError("disk I/O error")):
        response = client.get("/health")

    assert response.status_code == 200
    assert response.json()["status"] == "degraded"
    assert response.json()["database"] == "unavailable"


class TestBackendStatusPayload:
    """Odd but well-formed /debug payloads never crash the status endpoint."""

    @pytest.mark.parametrize("count", ["n/a", ["12"], {"total": 1}])
    def test_non_numeric_count(self, client, fake_backend, count):
        fake_backend.respond(
            "/debug", 200, json={"total_document_chunks": count, "unique_sources": []}
        )

        response = client.get("/api/backend/status")

        assert response.status_code == 200
        data = response.json()
        assert data["connected"] is True
        assert data["documentCount"] == 0
        assert "couldn't fetch document information" in data["error"]

    def test_numeric_string_count(self, client, fake_backend):
        fake_backend.respond(
            "/debug", 200, json={"total_document_chunks": "7", "unique_sources": "a.pdf"}
        )

        data = client.get("/api/backend/status").json()

        assert data["documentCount"] == 7
        assert data["uniqueSources"] == 0
        assert data["error"] is None
