"""Tests for habit, streak insurance and quest API endpoints."""

from datetime import datetime, timedelta, timezone

import pytest
from fastapi.testclient import TestClient


def create_habit(client, headers, **overrides):
    payload = {"name": "Laufen", "icon": "🏃", "faction_id": "koerper", "xp_per_completion": 10}
    payload.update(overrides)
    response = client.post("/v1/habits", json=payload, headers=headers)
    assert response.status_code == 201, response.text
    return response.json()


def create_quest(client, headers, **overrides):
    payload = {"title": "Buch lesen", "xp_reward": 100, "required_actions": 2}
    payload.update(overrides)
    response = client.post("/v1/quests", json=payload, headers=headers)
    assert response.status_code == 201, response.text
    return response.json()


@pytest.mark.integration
class TestHabitsAPI:
    """Test positive and negative habit check-ins."""

    def test_complete_positive_habit(self, client: TestClient, auth_headers):
        habit = create_habit(client, auth_headers)

        response = client.post(f"/v1/habits/{habit['id']}/complete", json={}, headers=auth_headers)

        assert response.status_code == 200
        data = response.json()
        assert data["xp_gained"] == 10
        assert data["bonus_xp"] == 0
        assert data["habit"]["current_streak"] == 1
        assert data["habit"]["total_completions"] == 1
        assert [(r["faction_id"], r["amount"]) for r in data["faction_results"]] == [("koerper", 10)]

    def test_weighted_factions_split_xp(self, client: TestClient, auth_headers):
        habit = create_habit(
            client,
            auth_headers,
            faction_id=None,
            factions=[{"faction_id": "geist", "weight": 1}, {"faction_id": "koerper", "weight": 2}],
        )
        assert habit["faction_id"] == "koerper"

        data = client.post(f"/v1/habits/{habit['id']}/complete", json={}, headers=auth_headers).json()

        amounts = {r["faction_id"]: r["amount"] for r in data["faction_results"]}
        assert amounts == {"koerper": 7, "geist": 3}

    def test_uncompleted_check_in_pays_nothing(self, client: TestClient, auth_headers):
        habit = create_habit(client, auth_headers)

        data = client.post(
            f"/v1/habits/{habit['id']}/complete", json={"completed": False}, headers=auth_headers
        ).json()

        assert data["xp_gained"] == 0
        assert data["habit"]["current_streak"] == 0

    def test_specific_days_requires_target_days(self, client: TestClient, auth_headers):
        response = client.post(
            "/v1/habits", json={"name": "Gym", "frequency": "specific_days"}, headers=auth_headers
        )

        assert response.status_code == 422

    def test_negative_habit_resist_and_relapse(self, client: TestClient, auth_headers):
        habit = create_habit(client, auth_headers, name="Rauchen", icon="🚭", habit_type="negative")
        assert habit["streak_start_date"] is not None

        first = client.post(f"/v1/habits/{habit['id']}/resist", headers=auth_headers).json()
        second = client.post(f"/v1/habits/{habit['id']}/resist", headers=auth_headers).json()

        assert first["xp_gained"] == 10
        assert first["already_confirmed_today"] is False
        assert second["xp_gained"] == 0
        assert second["already_confirmed_today"] is True
        assert second["habit"]["resistance_count"] == 1

        relapse = client.post(
            f"/v1/habits/{habit['id']}/relapse", json={"notes": "Party"}, headers=auth_headers
        )
        assert relapse.status_code == 200
        assert relapse.json()["habit"]["current_streak"] == 0

    def test_positive_habit_cannot_relapse(self, client: TestClient, auth_headers):
        habit = create_habit(client, auth_headers)

        response = client.post(f"/v1/habits/{habit['id']}/relapse", json={}, headers=auth_headers)

        assert response.status_code == 400

    def test_delete_is_soft(self, client: TestClient, auth_headers):
        habit = create_habit(client, auth_headers)

        assert client.delete(f"/v1/habits/{habit['id']}", headers=auth_headers).status_code == 204

        active = client.get("/v1/habits", headers=auth_headers).json()
        everything = client.get(
            "/v1/habits", params={"include_inactive": True}, headers=auth_headers
        ).json()
        assert active == []
        assert [h["is_active"] for h in everything] == [False]

    def test_logs_and_stats(self, client: TestClient, auth_headers):
        habit = create_habit(client, auth_headers)
        client.post(f"/v1/habits/{habit['id']}/complete", json={"notes": "5 km"}, headers=auth_headers)

        logs = client.get(
            f"/v1/habits/{habit['id']}/logs", params={"days": 10}, headers=auth_headers
        ).json()
        stats = client.get("/v1/habits/stats", headers=auth_headers).json()

        assert [log["notes"] for log in logs["logs"]] == ["5 km"]
        assert logs["completion_rate"] == 10.0
        assert stats["completed_today"] == 1
        assert stats["total_completions"] == 1

    def test_other_users_habit_is_forbidden(self, client: TestClient, auth_headers, other_auth_headers):
        habit = create_habit(client, auth_headers)

        response = client.post(
            f"/v1/habits/{habit['id']}/complete", json={}, headers=other_auth_headers
        )

        assert response.status_code == 403


@pytest.mark.integration
class TestStreakInsuranceAPI:
    """Test granting and spending streak tokens."""

    def test_grant_use_and_exhaust(self, client: TestClient, auth_headers):
        habit = create_habit(client, auth_headers)
        granted = client.post(
            "/v1/streak-insurance/grant", json={"reason": "Woche geschafft"}, headers=auth_headers
        )
        assert granted.status_code == 201

        used = client.post(
            "/v1/streak-insurance/use", json={"habit_id": habit["id"]}, headers=auth_headers
        )
        again = client.post(
            "/v1/streak-insurance/use", json={"habit_id": habit["id"]}, headers=auth_headers
        )
        stats = client.get("/v1/streak-insurance/stats", headers=auth_headers).json()

        assert used.status_code == 200
        assert used.json()["token"]["used_for_habit_id"] == habit["id"]
        assert again.status_code == 400
        assert stats == {"available": 0, "used": 1, "expired": 0, "total": 1}

    def test_soonest_expiring_token_is_used_first(self, client: TestClient, auth_headers):
        habit = create_habit(client, auth_headers)
        client.post(
            "/v1/streak-insurance/grant",
            json={"reason": "lang", "expires_in_days": 90},
            headers=auth_headers,
        )
        short = client.post(
            "/v1/streak-insurance/grant",
            json={"reason": "kurz", "expires_in_days": 3},
            headers=auth_headers,
        ).json()

        used = client.post(
            "/v1/streak-insurance/use", json={"habit_id": habit["id"]}, headers=auth_headers
        ).json()

        assert used["token"]["id"] == short["id"]
        assert len(client.get("/v1/streak-insurance", headers=auth_headers).json()) == 1


@pytest.mark.integration
class TestQuestsAPI:
    """Test quest progress, completion rewards and expiry."""

    def test_progress_to_completion_pays_factions(self, client: TestClient, auth_headers):
        quest = create_quest(client, auth_headers, target_faction_ids=["wissen", "geist"])

        step = client.post(f"/v1/quests/{quest['id']}/progress", json={}, headers=auth_headers).json()
        assert step["completed"] is False
        assert step["quest"]["progress"] == 50

        done = client.post(f"/v1/quests/{quest['id']}/progress", json={}, headers=auth_headers).json()
        assert done["completed"] is True
        assert done["xp_awarded"] == 100
        assert done["quest"]["status"] == "completed"
        assert sorted((r["faction_id"], r["amount"]) for r in done["faction_results"]) == [
            ("geist", 50),
            ("wissen", 50),
        ]
        assert client.get("/v1/auth/me", headers=auth_headers).json()["total_xp"] == 100

    def test_completed_quest_cannot_progress(self, client: TestClient, auth_headers):
        quest = create_quest(client, auth_headers, required_actions=1)
        client.post(
            f"/v1/quests/{quest['id']}/progress", json={"action": "complete"}, headers=auth_headers
        )

        response = client.post(f"/v1/quests/{quest['id']}/progress", json={}, headers=auth_headers)

        assert response.status_code == 400

    def test_quest_rewards_target_skill(self, client: TestClient, auth_headers):
        domain = client.post("/v1/domains", json={"name": "Lesen"}, headers=auth_headers).json()
        skill = client.post(
            "/v1/skills", json={"domain_id": domain["id"], "name": "Romane"}, headers=auth_headers
        ).json()
        quest = create_quest(client, auth_headers, required_actions=1, target_skill_ids=[skill["id"]])

        done = client.post(
            f"/v1/quests/{quest['id']}/progress", json={"action": "complete"}, headers=auth_headers
        ).json()

        assert [(r["skill_id"], r["xp"]) for r in done["skill_results"]] == [(skill["id"], 100)]
        assert client.get(f"/v1/skills/{skill['id']}", headers=auth_headers).json()["current_xp"] == 100

    def test_expired_quest_is_marked_on_progress(self, client: TestClient, auth_headers):
        past = (datetime.now(timezone.utc) - timedelta(days=1)).isoformat()
        quest = create_quest(client, auth_headers, expires_at=past)

        response = client.post(f"/v1/quests/{quest['id']}/progress", json={}, headers=auth_headers)

        assert response.status_code == 400
        assert client.get(f"/v1/quests/{quest['id']}", headers=auth_headers).json()["status"] == "expired"

    def test_expire_endpoint_and_stats(self, client: TestClient, auth_headers):
        past = (datetime.now(timezone.utc) - timedelta(hours=1)).isoformat()
        create_quest(client, auth_headers, expires_at=past)
        create_quest(client, auth_headers, title="Offen")

        assert client.post("/v1/quests/expire", headers=auth_headers).json() == {"expired": 1}

        stats = client.get("/v1/quests/stats", headers=auth_headers).json()
        assert (stats["active"], stats["expired"], stats["total"]) == (1, 1, 2)
        active = client.get("/v1/quests", headers=auth_headers).json()
        assert [q["title"] for q in active] == ["Offen"]

    def test_unknown_status_filter(self, client: TestClient, auth_headers):
        response = client.get("/v1/quests", params={"status": "vergessen"}, headers=auth_headers)

        assert response.status_code == 400

    def test_lowering_required_actions_caps_progress(self, client: TestClient, auth_headers):
        quest = create_quest(client, auth_headers, required_actions=4)
        client.post(f"/v1/quests/{quest['id']}/progress", json={}, headers=auth_headers)
        client.post(f"/v1/quests/{quest['id']}/progress", json={}, headers=auth_headers)

        updated = client.patch(
            f"/v1/quests/{quest['id']}", json={"required_actions": 2}, headers=auth_headers
        ).json()

        assert updated["completed_actions"] == 2
        assert updated["progress"] == 100
