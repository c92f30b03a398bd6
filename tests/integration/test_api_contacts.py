"""Tests for contact, import, calendar export and interaction API endpoints."""

from datetime import date, datetime, timedelta, timezone

import pytest
from fastapi.testclient import TestClient


def create_contact(client, headers, **overrides):
    payload = {"first_name": "Anna", "last_name": "Schmidt", "relationship_type": "friend"}
    payload.update(overrides)
    response = client.post("/v1/contacts", json=payload, headers=headers)
    assert response.status_code == 201, response.text
    return response.json()


def birthday_in(days: int, age: int = 30) -> date:
    target = datetime.now(timezone.utc).date() + timedelta(days=days)
    if (target.month, target.day) == (2, 29):
        target += timedelta(days=1)
    return target.replace(year=target.year - age)


@pytest.mark.integration
class TestContactsAPI:
    """Test contact CRUD and derived fields."""

    def test_create_fills_derived_fields(self, client: TestClient, auth_headers):
        contact = create_contact(client, auth_headers, relationship_type="colleague", nickname="Anni")

        assert contact["display_name"] == "Anni"
        assert contact["relationship_category"] == "professional"
        assert contact["relationship_label"] == "Kollege/in"
        assert contact["trust_level"] == 50
        assert contact["relationship_level"] == 1
        assert contact["xp_for_next_level"] == 100
        assert contact["needs_attention"] is True

    def test_update_changes_category_with_type(self, client: TestClient, auth_headers):
        contact = create_contact(client, auth_headers)

        response = client.patch(
            f"/v1/contacts/{contact['id']}",
            json={"relationship_type": "sibling", "tags": ["familie"]},
            headers=auth_headers,
        )

        assert response.status_code == 200
        assert response.json()["relationship_category"] == "family"
        assert response.json()["tags"] == ["familie"]
        assert response.json()["first_name"] == "Anna"

    def test_list_filters_and_order(self, client: TestClient, auth_headers):
        create_contact(client, auth_headers, first_name="Bert", last_name=None)
        fav = create_contact(client, auth_headers, first_name="Zoe", last_name=None, is_favorite=True)
        create_contact(client, auth_headers, first_name="Carla", last_name=None, relationship_type="mentor")

        everyone = client.get("/v1/contacts", headers=auth_headers).json()
        professional = client.get(
            "/v1/contacts", params={"category": "professional"}, headers=auth_headers
        ).json()
        searched = client.get("/v1/contacts", params={"search": "ER"}, headers=auth_headers).json()

        assert [c["first_name"] for c in everyone] == ["Zoe", "Bert", "Carla"]
        assert everyone[0]["id"] == fav["id"]
        assert [c["first_name"] for c in professional] == ["Carla"]
        assert [c["first_name"] for c in searched] == ["Bert"]

    def test_archive_hides_from_list(self, client: TestClient, auth_headers):
        contact = create_contact(client, auth_headers)

        archived = client.post(f"/v1/contacts/{contact['id']}/archive", headers=auth_headers).json()

        assert archived["is_archived"] is True
        assert client.get("/v1/contacts", headers=auth_headers).json() == []
        assert len(client.get("/v1/contacts", params={"include_archived": True}, headers=auth_headers).json()) == 1
        restored = client.post(f"/v1/contacts/{contact['id']}/unarchive", headers=auth_headers).json()
        assert restored["is_archived"] is False

    def test_favorite_toggles(self, client: TestClient, auth_headers):
        contact = create_contact(client, auth_headers)

        on = client.post(f"/v1/contacts/{contact['id']}/favorite", headers=auth_headers).json()
        off = client.post(f"/v1/contacts/{contact['id']}/favorite", headers=auth_headers).json()

        assert (on["is_favorite"], off["is_favorite"]) == (True, False)

    def test_stats(self, client: TestClient, auth_headers):
        create_contact(client, auth_headers, is_favorite=True)
        create_contact(client, auth_headers, first_name="Max", relationship_type="parent")
        create_contact(client, auth_headers, first_name="Ruhig", suppress_attention_reminder=True)

        stats = client.get("/v1/contacts/stats", headers=auth_headers).json()

        assert stats["total"] == 3
        assert stats["by_category"]["family"] == 1
        assert stats["by_category"]["friend"] == 2
        assert stats["favorites"] == 1
        assert stats["needing_attention"] == 2

    def test_upcoming_birthdays(self, client: TestClient, auth_headers):
        soon = create_contact(client, auth_headers, birthday=birthday_in(3).isoformat())
        create_contact(client, auth_headers, first_name="Spaet", birthday=birthday_in(60).isoformat())

        upcoming = client.get(
            "/v1/contacts/birthdays/upcoming", params={"days": 30}, headers=auth_headers
        ).json()

        assert [b["contact"]["id"] for b in upcoming] == [soon["id"]]
        assert upcoming[0]["days_until"] in (3, 4)
        assert upcoming[0]["turns"] == 30

    def test_delete_and_ownership(self, client: TestClient, auth_headers, other_auth_headers):
        contact = create_contact(client, auth_headers)

        assert client.get(f"/v1/contacts/{contact['id']}", headers=other_auth_headers).status_code == 403
        assert client.delete(f"/v1/contacts/{contact['id']}", headers=auth_headers).status_code == 204
        assert client.get(f"/v1/contacts/{contact['id']}", headers=auth_headers).status_code == 404

    def test_first_name_required(self, client: TestClient, auth_headers):
        assert client.post("/v1/contacts", json={"first_name": " "}, headers=auth_headers).status_code == 422


@pytest.mark.integration
class TestInteractionsAPI:
    """Test interaction XP, relationship levels and statistics."""

    def test_interaction_levels_relationship_and_faction(self, client: TestClient, auth_headers):
        contact = create_contact(client, auth_headers)

        response = client.post(
            f"/v1/contacts/{contact['id']}/interactions",
            json={"interaction_type": "meeting", "quality": "great", "duration_minutes": 60},
            headers=auth_headers,
        )

        assert response.status_code == 201
        data = response.json()
        assert data["xp_gained"] == 120
        assert data["relationship_level"] == 2
        assert data["leveled_up"] is True
        assert data["faction_id"] == "soziales"

        updated = client.get(f"/v1/contacts/{contact['id']}", headers=auth_headers).json()
        assert updated["current_xp"] == 20
        assert updated["interaction_count"] == 1
        assert updated["avg_interaction_quality"] == 4.0
        assert updated["needs_attention"] is False
        assert client.get("/v1/factions/soziales", headers=auth_headers).json()["total_xp"] == 120

    def test_professional_contacts_feed_karriere(self, client: TestClient, auth_headers):
        contact = create_contact(client, auth_headers, relationship_type="colleague")

        data = client.post(
            f"/v1/contacts/{contact['id']}/interactions",
            json={"interaction_type": "call"},
            headers=auth_headers,
        ).json()

        assert data["xp_gained"] == 23
        assert data["faction_id"] == "karriere"

    def test_stats_and_delete(self, client: TestClient, auth_headers):
        contact = create_contact(client, auth_headers)
        url = f"/v1/contacts/{contact['id']}/interactions"
        first = client.post(url, json={"interaction_type": "call", "quality": "good"}, headers=auth_headers).json()
        client.post(url, json={"interaction_type": "message", "quality": "poor"}, headers=auth_headers)

        stats = client.get(f"{url}/stats", headers=auth_headers).json()

        assert stats["total"] == 2
        assert stats["last_7_days"] == 2
        assert stats["avg_quality"] == 2.0
        assert stats["by_type"] == {"call": 1, "message": 1}

        interaction_id = first["interaction"]["id"]
        assert client.delete(f"{url}/{interaction_id}", headers=auth_headers).status_code == 204
        assert len(client.get(url, headers=auth_headers).json()) == 1


@pytest.mark.integration
class TestContactImportExportAPI:
    """Test import preview, bulk import and calendar export."""

    VCARD = "BEGIN:VCARD\nVERSION:3.0\nN:Müller;Lena;;;\nBDAY:19880315\nEND:VCARD\n"

    def test_preview_vcard(self, client: TestClient, auth_headers):
        response = client.post(
            "/v1/contacts/import/preview",
            json={"content": self.VCARD, "filename": "kontakte.vcf"},
            headers=auth_headers,
        )

        assert response.status_code == 200
        data = response.json()
        assert data["format"] == "vcard"
        assert data["contacts"][0]["first_name"] == "Lena"
        assert data["contacts"][0]["birthday"] == "1988-03-15"

    def test_preview_csv_without_mapping_asks_for_columns(self, client: TestClient, auth_headers):
        data = client.post(
            "/v1/contacts/import/preview",
            json={"content": "Vorname;Nachname\nJana;Klein\n"},
            headers=auth_headers,
        ).json()

        assert data["format"] == "csv"
        assert data["headers"] == ["Vorname", "Nachname"]
        assert data["contacts"] == []
        assert data["warnings"] == ["Bitte Spalten zuordnen"]

    def test_preview_csv_with_mapping(self, client: TestClient, auth_headers):
        data = client.post(
            "/v1/contacts/import/preview",
            json={
                "content": "Vorname;Nachname\nJana;Klein\n",
                "mapping": {"first_name": "Vorname", "last_name": "Nachname"},
            },
            headers=auth_headers,
        ).json()

        assert [(c["first_name"], c["last_name"]) for c in data["contacts"]] == [("Jana", "Klein")]

    def test_preview_unknown_format(self, client: TestClient, auth_headers):
        data = client.post(
            "/v1/contacts/import/preview", json={"content": "nur text"}, headers=auth_headers
        ).json()

        assert data["format"] == "unknown"
        assert data["errors"] == ["Unbekanntes Dateiformat"]

    def test_bulk_import_skips_duplicates_and_reports_errors(self, client: TestClient, auth_headers):
        create_contact(client, auth_headers)

        response = client.post(
            "/v1/contacts/import",
            json={
                "contacts": [
                    {"first_name": "anna", "last_name": "SCHMIDT"},
                    {"first_name": "Jan", "email": "jan@example.com", "suggested_type": "colleague"},
                    {"first_name": "Jan"},
                    {"first_name": "Kaputt", "birthday": "kein datum"},
                    {"first_name": "Nicht", "selected": False},
                ]
            },
            headers=auth_headers,
        )

        assert response.status_code == 200
        data = response.json()
        assert data["imported"] == 1
        assert data["skipped"] == 2
        assert [e["name"] for e in data["errors"]] == ["Kaputt"]

        jan = client.get("/v1/contacts", params={"search": "jan"}, headers=auth_headers).json()[0]
        assert jan["relationship_category"] == "professional"
        assert jan["contact_info"]["email"] == "jan@example.com"

    def test_ics_export(self, client: TestClient, auth_headers):
        create_contact(client, auth_headers, birthday="1990-05-12", anniversary="2015-08-01")
        archived = create_contact(client, auth_headers, first_name="Weg", birthday="1985-01-01")
        client.post(f"/v1/contacts/{archived['id']}/archive", headers=auth_headers)

        everything = client.get("/v1/contacts/export/ics", headers=auth_headers)
        birthdays = client.get(
            "/v1/contacts/export/ics", params={"type": "birthdays"}, headers=auth_headers
        )

        assert everything.status_code == 200
        assert everything.headers["content-type"].startswith("text/calendar")
        assert everything.text.count("BEGIN:VEVENT") == 2
        assert "Weg" not in everything.text
        assert birthdays.text.count("BEGIN:VEVENT") == 1
        assert "projekt-l-geburtstage-" in birthdays.headers["content-disposition"]
