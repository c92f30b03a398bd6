"""Tests for domain, skill, connection and graph view API endpoints."""

from uuid import uuid4

import pytest
from fastapi.testclient import TestClient


def create_domain(client, headers, name="Sport", faction_key="koerper"):
    response = client.post(
        "/v1/domains",
        json={"name": name, "icon": "🏃", "faction_key": faction_key},
        headers=headers,
    )
    assert response.status_code == 201, response.text
    return response.json()


def create_skill(client, headers, domain_id, name, parent_id=None):
    payload = {"domain_id": domain_id, "name": name}
    if parent_id:
        payload["parent_skill_id"] = parent_id
    response = client.post("/v1/skills", json=payload, headers=headers)
    assert response.status_code == 201, response.text
    return response.json()


@pytest.mark.integration
class TestDomainsAPI:
    """Test domain CRUD and the nested skill tree."""

    def test_create_and_list(self, client: TestClient, auth_headers):
        domain = create_domain(client, auth_headers)

        assert domain["faction_key"] == "koerper"
        listed = client.get("/v1/domains", headers=auth_headers).json()
        assert [d["id"] for d in listed] == [domain["id"]]

    def test_legacy_faction_key_is_migrated(self, client: TestClient, auth_headers):
        domain = create_domain(client, auth_headers, name="Lesen", faction_key="lernen")

        assert domain["faction_key"] == "wissen"

    def test_duplicate_name_conflicts(self, client: TestClient, auth_headers):
        create_domain(client, auth_headers, name="Musik")

        response = client.post("/v1/domains", json={"name": "Musik"}, headers=auth_headers)

        assert response.status_code == 409

    def test_name_with_markup_rejected(self, client: TestClient, auth_headers):
        response = client.post("/v1/domains", json={"name": "<b>Sport</b>"}, headers=auth_headers)

        assert response.status_code == 422

    def test_update_domain(self, client: TestClient, auth_headers):
        domain = create_domain(client, auth_headers)

        response = client.patch(
            f"/v1/domains/{domain['id']}", json={"description": "Ausdauer"}, headers=auth_headers
        )

        assert response.status_code == 200
        assert response.json()["description"] == "Ausdauer"
        assert response.json()["name"] == "Sport"

    def test_tree_nests_children(self, client: TestClient, auth_headers):
        domain = create_domain(client, auth_headers)
        root = create_skill(client, auth_headers, domain["id"], "Laufen")
        child = create_skill(client, auth_headers, domain["id"], "Intervalle", root["id"])
        create_skill(client, auth_headers, domain["id"], "Sprints", child["id"])

        response = client.get(f"/v1/domains/{domain['id']}/tree", headers=auth_headers)

        assert response.status_code == 200
        skills = response.json()["skills"]
        assert [s["name"] for s in skills] == ["Laufen"]
        assert skills[0]["children"][0]["name"] == "Intervalle"
        assert skills[0]["children"][0]["children"][0]["name"] == "Sprints"

    def test_delete_domain_removes_skills(self, client: TestClient, auth_headers):
        domain = create_domain(client, auth_headers)
        skill = create_skill(client, auth_headers, domain["id"], "Laufen")

        assert client.delete(f"/v1/domains/{domain['id']}", headers=auth_headers).status_code == 204
        assert client.get(f"/v1/skills/{skill['id']}", headers=auth_headers).status_code == 404

    def test_other_users_domain_is_forbidden(self, client: TestClient, auth_headers, other_auth_headers):
        domain = create_domain(client, auth_headers)

        response = client.get(f"/v1/domains/{domain['id']}", headers=other_auth_headers)

        assert response.status_code == 403
        assert response.json()["title"] == "Forbidden"


@pytest.mark.integration
class TestSkillsAPI:
    """Test skill hierarchy rules and skill XP."""

    def test_ancestors_and_descendants(self, client: TestClient, auth_headers):
        domain = create_domain(client, auth_headers)
        a = create_skill(client, auth_headers, domain["id"], "A")
        b = create_skill(client, auth_headers, domain["id"], "B", a["id"])
        c = create_skill(client, auth_headers, domain["id"], "C", b["id"])

        ancestors = client.get(f"/v1/skills/{c['id']}/ancestors", headers=auth_headers).json()
        descendants = client.get(f"/v1/skills/{a['id']}/descendants", headers=auth_headers).json()

        assert [s["name"] for s in ancestors] == ["A", "B"]
        assert [s["name"] for s in descendants] == ["B", "C"]

    def test_cycle_is_rejected(self, client: TestClient, auth_headers):
        domain = create_domain(client, auth_headers)
        a = create_skill(client, auth_headers, domain["id"], "A")
        b = create_skill(client, auth_headers, domain["id"], "B", a["id"])

        response = client.patch(
            f"/v1/skills/{a['id']}", json={"parent_skill_id": b["id"]}, headers=auth_headers
        )

        assert response.status_code == 400

    def test_parent_in_other_domain_rejected(self, client: TestClient, auth_headers):
        sport = create_domain(client, auth_headers)
        musik = create_domain(client, auth_headers, name="Musik", faction_key="hobby")
        gitarre = create_skill(client, auth_headers, musik["id"], "Gitarre")

        response = client.post(
            "/v1/skills",
            json={"domain_id": sport["id"], "name": "Laufen", "parent_skill_id": gitarre["id"]},
            headers=auth_headers,
        )

        assert response.status_code == 400

    def test_delete_reparents_children(self, client: TestClient, auth_headers):
        domain = create_domain(client, auth_headers)
        a = create_skill(client, auth_headers, domain["id"], "A")
        b = create_skill(client, auth_headers, domain["id"], "B", a["id"])
        c = create_skill(client, auth_headers, domain["id"], "C", b["id"])

        assert client.delete(f"/v1/skills/{b['id']}", headers=auth_headers).status_code == 204

        moved = client.get(f"/v1/skills/{c['id']}", headers=auth_headers).json()
        assert moved["parent_skill_id"] == a["id"]

    def test_skill_xp_levels_skill_profile_and_faction(self, client: TestClient, auth_headers):
        domain = create_domain(client, auth_headers)
        skill = create_skill(client, auth_headers, domain["id"], "Laufen")

        response = client.post(
            f"/v1/skills/{skill['id']}/xp",
            json={"xp": 400, "description": "Halbmarathon"},
            headers=auth_headers,
        )

        assert response.status_code == 200
        data = response.json()
        assert data["new_level"] == 2
        assert data["new_xp"] == 118
        assert data["leveled_up"] is True
        assert data["faction_id"] == "koerper"
        assert data["faction_leveled_up"] is True
        assert data["total_xp"] == 400

        koerper = client.get("/v1/factions/koerper", headers=auth_headers).json()
        assert koerper["total_xp"] == 400
        assert client.get("/v1/auth/me", headers=auth_headers).json()["total_xp"] == 400

        experiences = client.get(f"/v1/skills/{skill['id']}/experiences", headers=auth_headers).json()
        assert [e["description"] for e in experiences] == ["Halbmarathon"]

    def test_skill_xp_explicit_faction_overrides_domain(self, client: TestClient, auth_headers):
        domain = create_domain(client, auth_headers)
        skill = create_skill(client, auth_headers, domain["id"], "Yoga")

        response = client.post(
            f"/v1/skills/{skill['id']}/xp",
            json={"xp": 20, "description": "Morgens", "faction_id": "geist"},
            headers=auth_headers,
        )

        assert response.json()["faction_id"] == "geist"

    def test_skill_xp_must_be_positive(self, client: TestClient, auth_headers):
        domain = create_domain(client, auth_headers)
        skill = create_skill(client, auth_headers, domain["id"], "Laufen")

        response = client.post(
            f"/v1/skills/{skill['id']}/xp", json={"xp": 0, "description": "nichts"}, headers=auth_headers
        )

        assert response.status_code == 422

    def test_missing_and_foreign_skills(self, client: TestClient, auth_headers, other_auth_headers):
        domain = create_domain(client, auth_headers)
        skill = create_skill(client, auth_headers, domain["id"], "Laufen")

        assert client.get(f"/v1/skills/{uuid4()}", headers=auth_headers).status_code == 404
        assert client.get(f"/v1/skills/{skill['id']}", headers=other_auth_headers).status_code == 403
        assert client.get("/v1/skills/kein-uuid", headers=auth_headers).status_code == 422


@pytest.mark.integration
class TestConnectionsAPI:
    """Test typed edges between skills."""

    def test_connection_lifecycle(self, client: TestClient, auth_headers):
        domain = create_domain(client, auth_headers)
        a = create_skill(client, auth_headers, domain["id"], "A")
        b = create_skill(client, auth_headers, domain["id"], "B")
        payload = {"source_skill_id": a["id"], "target_skill_id": b["id"], "connection_type": "synergy"}

        created = client.post("/v1/skills/connections", json=payload, headers=auth_headers)
        duplicate = client.post("/v1/skills/connections", json=payload, headers=auth_headers)

        assert created.status_code == 201
        assert created.json()["strength"] == 5
        assert duplicate.status_code == 409

        listed = client.get(
            "/v1/skills/connections", params={"domain_id": domain["id"]}, headers=auth_headers
        ).json()
        assert [c["id"] for c in listed] == [created.json()["id"]]

        deleted = client.delete(f"/v1/skills/connections/{created.json()['id']}", headers=auth_headers)
        assert deleted.status_code == 204

    def test_self_connection_rejected(self, client: TestClient, auth_headers):
        domain = create_domain(client, auth_headers)
        a = create_skill(client, auth_headers, domain["id"], "A")

        response = client.post(
            "/v1/skills/connections",
            json={"source_skill_id": a["id"], "target_skill_id": a["id"]},
            headers=auth_headers,
        )

        assert response.status_code == 400


@pytest.mark.integration
class TestGraphViewsAPI:
    """Test saved graph layouts."""

    def test_save_state_creates_default_view(self, client: TestClient, auth_headers):
        domain = create_domain(client, auth_headers)

        response = client.put(
            "/v1/graph-views/save-state",
            json={
                "domain_id": domain["id"],
                "viewport_x": 10,
                "viewport_y": -5,
                "viewport_zoom": 1.5,
                "node_positions": {"a": {"x": 1, "y": 2}},
            },
            headers=auth_headers,
        )

        assert response.status_code == 200
        view = response.json()
        assert view["name"] == "Standard"
        assert view["is_default"] is True
        assert view["node_positions"] == {"a": {"x": 1.0, "y": 2.0}}

        default = client.get(
            "/v1/graph-views/default", params={"domain_id": domain["id"]}, headers=auth_headers
        )
        assert default.json()["id"] == view["id"]

    def test_only_one_default_per_domain(self, client: TestClient, auth_headers):
        domain = create_domain(client, auth_headers)
        first = client.post(
            "/v1/graph-views",
            json={"domain_id": domain["id"], "name": "Erste", "is_default": True},
            headers=auth_headers,
        ).json()
        second = client.post(
            "/v1/graph-views", json={"domain_id": domain["id"], "name": "Zweite"}, headers=auth_headers
        ).json()

        client.post(f"/v1/graph-views/{second['id']}/default", headers=auth_headers)

        views = client.get(
            "/v1/graph-views", params={"domain_id": domain["id"]}, headers=auth_headers
        ).json()
        assert [(v["id"], v["is_default"]) for v in views] == [
            (second["id"], True),
            (first["id"], False),
        ]

    def test_no_default_view_is_404(self, client: TestClient, auth_headers):
        domain = create_domain(client, auth_headers)

        response = client.get(
            "/v1/graph-views/default", params={"domain_id": domain["id"]}, headers=auth_headers
        )

        assert response.status_code == 404
