"""Tests for the application shell and middleware."""

import pytest
from fastapi.testclient import TestClient
from sqlalchemy.exc import OperationalError


@pytest.mark.integration
class TestAppEndpoints:
    def test_health(self, client: TestClient):
        response = client.get("/health")

        assert response.status_code == 200
        assert response.json()["status"] == "healthy"
        assert response.json()["service"] == "projekt-l"

    def test_ready(self, client: TestClient):
        response = client.get("/ready")

        assert response.status_code == 200
        assert response.json()["checks"] == {"database": True, "config": True}

    def test_ready_reports_database_failure(self, client: TestClient, monkeypatch):
        class BrokenSession:
            def execute(self, statement):
                raise OperationalError("SELECT 1", {}, Exception("database is locked"))

            def close(self):
                pass

        monkeypatch.setattr("projekt_l.main.SessionLocal", BrokenSession)

        response = client.get("/ready")

        assert response.status_code == 503
        assert response.json()["status"] == "not_ready"
        assert "database is locked" in response.json()["errors"][0]

    def test_root_redirects_to_docs(self, client: TestClient):
        response = client.get("/", follow_redirects=False)

        assert response.status_code == 307
        assert response.headers["location"] == "/docs"


@pytest.mark.integration
class TestMiddleware:
    def test_security_headers(self, client: TestClient):
        response = client.get("/health")

        assert response.headers["X-Frame-Options"] == "DENY"
        assert response.headers["X-Content-Type-Options"] == "nosniff"
        assert "Content-Security-Policy" in response.headers

    def test_oversized_body_rejected(self, client: TestClient, auth_headers):
        response = client.post(
            "/v1/geist/journal", json={"content": "x" * 70 * 1024}, headers=auth_headers
        )

        assert response.status_code == 413
        assert response.headers["content-type"].startswith("application/problem+json")

    def test_import_routes_allow_larger_bodies(self, client: TestClient, auth_headers):
        content = "Vorname;Nachname\n" + "Jana;Klein\n" * 8000

        response = client.post(
            "/v1/contacts/import/preview", json={"content": content}, headers=auth_headers
        )

        assert response.status_code == 200

    def test_validation_errors_are_problem_details(self, client: TestClient, auth_headers):
        response = client.post("/v1/geist/mood", json={}, headers=auth_headers)

        assert response.status_code == 422
        body = response.json()
        assert body["title"] == "Validation Error"
        assert body["errors"][0]["loc"] == ["body", "mood"]

    def test_unknown_route_is_problem_details(self, client: TestClient):
        response = client.get("/v1/gibt-es-nicht")

        assert response.status_code == 404
        assert response.json()["title"] == "Not Found"
