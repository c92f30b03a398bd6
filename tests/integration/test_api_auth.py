"""Tests for authentication and faction API endpoints."""

import uuid

import pytest
from fastapi.testclient import TestClient

PASSWORD = "sicheres-passwort-123"


def _register(client: TestClient, email: str, password: str = PASSWORD):
    return client.post(
        "/v1/auth/register",
        json={"email": email, "password": password, "display_name": "Mara"},
    )


@pytest.mark.integration
class TestAuthAPI:
    """Test registration, login, refresh and the profile endpoint."""

    def test_register_returns_token_pair(self, client: TestClient):
        response = _register(client, f"mara-{uuid.uuid4().hex[:8]}@example.com")

        assert response.status_code == 201
        data = response.json()
        assert data["token_type"] == "bearer"
        assert data["access_token"]
        assert data["refresh_token"]
        assert "user_id" in data

    def test_register_duplicate_email_conflicts(self, client: TestClient):
        email = f"Dup-{uuid.uuid4().hex[:8]}@Example.com"
        assert _register(client, email).status_code == 201

        response = _register(client, email.lower())

        assert response.status_code == 409
        assert response.headers["content-type"].startswith("application/problem+json")
        assert response.json()["title"] == "Email Already Registered"

    def test_register_short_password_rejected(self, client: TestClient):
        response = _register(client, f"kurz-{uuid.uuid4().hex[:8]}@example.com", password="kurz")

        assert response.status_code == 422

    def test_register_invalid_email_rejected(self, client: TestClient):
        assert _register(client, "keine-email").status_code == 422

    def test_login_success_and_failure(self, client: TestClient):
        email = f"login-{uuid.uuid4().hex[:8]}@example.com"
        _register(client, email)

        ok = client.post("/v1/auth/login", json={"email": email.upper(), "password": PASSWORD})
        bad = client.post("/v1/auth/login", json={"email": email, "password": "falsches-passwort"})
        unknown = client.post(
            "/v1/auth/login", json={"email": "niemand@example.com", "password": PASSWORD}
        )

        assert ok.status_code == 200
        assert ok.json()["access_token"]
        assert bad.status_code == 401
        assert unknown.status_code == 401

    def test_refresh_issues_new_access_token(self, client: TestClient):
        tokens = _register(client, f"refresh-{uuid.uuid4().hex[:8]}@example.com").json()

        response = client.post("/v1/auth/refresh", json={"refresh_token": tokens["refresh_token"]})

        assert response.status_code == 200
        new_token = response.json()["access_token"]
        me = client.get("/v1/auth/me", headers={"Authorization": f"Bearer {new_token}"})
        assert me.status_code == 200

    def test_access_token_cannot_refresh(self, client: TestClient):
        tokens = _register(client, f"wrong-{uuid.uuid4().hex[:8]}@example.com").json()

        response = client.post("/v1/auth/refresh", json={"refresh_token": tokens["access_token"]})

        assert response.status_code == 401

    def test_me_returns_fresh_profile(self, client: TestClient, auth_headers):
        response = client.get("/v1/auth/me", headers=auth_headers)

        assert response.status_code == 200
        data = response.json()
        assert data["display_name"] == "Testerin"
        assert data["total_xp"] == 0
        assert data["level"] == 1
        assert data["tier"] == "Beginner"

    def test_me_requires_token(self, client: TestClient):
        assert client.get("/v1/auth/me").status_code == 401

    def test_me_rejects_garbage_token(self, client: TestClient):
        response = client.get("/v1/auth/me", headers={"Authorization": "Bearer nicht-gueltig"})

        assert response.status_code == 401


@pytest.mark.integration
class TestFactionsAPI:
    """Test the faction overview."""

    def test_new_user_has_seven_zeroed_factions(self, client: TestClient, auth_headers):
        response = client.get("/v1/factions", headers=auth_headers)

        assert response.status_code == 200
        factions = response.json()["factions"]
        assert [f["id"] for f in factions] == [
            "karriere",
            "hobby",
            "koerper",
            "geist",
            "finanzen",
            "soziales",
            "wissen",
        ]
        assert all(f["total_xp"] == 0 and f["level"] == 1 for f in factions)

    def test_legacy_faction_id_resolves(self, client: TestClient, auth_headers):
        response = client.get("/v1/factions/familie", headers=auth_headers)

        assert response.status_code == 200
        assert response.json()["id"] == "soziales"

    def test_unknown_faction_is_404(self, client: TestClient, auth_headers):
        assert client.get("/v1/factions/weltherrschaft", headers=auth_headers).status_code == 404

    def test_reset_weekly_counters(self, client: TestClient, auth_headers):
        response = client.post(
            "/v1/factions/reset-periods", json={"period": "weekly"}, headers=auth_headers
        )

        assert response.status_code == 200
        assert response.json() == {"period": "weekly", "reset_count": 7}

    def test_reset_rejects_unknown_period(self, client: TestClient, auth_headers):
        response = client.post(
            "/v1/factions/reset-periods", json={"period": "daily"}, headers=auth_headers
        )

        assert response.status_code == 422
