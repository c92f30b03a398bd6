"""End-to-end progression across skills, habits, quests and the mind tracker.

Every XP source writes to the same profile, faction counters and activity
feed; these tests check that the pieces agree after a realistic day.
"""

import pytest
from fastapi.testclient import TestClient


@pytest.mark.integration
class TestProgressionFlow:
    def _day_of_activity(self, client: TestClient, headers):
        domain = client.post(
            "/v1/domains", json={"name": "Sport", "faction_key": "koerper"}, headers=headers
        ).json()
        skill = client.post(
            "/v1/skills", json={"domain_id": domain["id"], "name": "Laufen"}, headers=headers
        ).json()
        client.post(
            f"/v1/skills/{skill['id']}/xp", json={"xp": 50, "description": "5 km"}, headers=headers
        )

        habit = client.post(
            "/v1/habits",
            json={"name": "Dehnen", "faction_id": "koerper", "xp_per_completion": 10},
            headers=headers,
        ).json()
        client.post(f"/v1/habits/{habit['id']}/complete", json={}, headers=headers)

        quest = client.post(
            "/v1/quests",
            json={"title": "Kurs beenden", "xp_reward": 100, "faction_id": "wissen"},
            headers=headers,
        ).json()
        client.post(
            f"/v1/quests/{quest['id']}/progress", json={"action": "complete"}, headers=headers
        )

        client.post("/v1/geist/mood", json={"mood": "great"}, headers=headers)
        return skill

    def test_profile_factions_and_feed_agree(self, client: TestClient, auth_headers):
        self._day_of_activity(client, auth_headers)

        me = client.get("/v1/auth/me", headers=auth_headers).json()
        factions = {
            f["id"]: f["total_xp"]
            for f in client.get("/v1/factions", headers=auth_headers).json()["factions"]
        }
        summary = client.get("/v1/activity/summary", headers=auth_headers).json()

        assert me["total_xp"] == 160
        assert factions["koerper"] == 60
        assert factions["wissen"] == 100
        # first habit and first quest achievements pay 10 each
        assert factions["geist"] == 12
        assert factions["karriere"] == 10
        assert summary["total_xp_gained"] == 182
        assert {"habit_completed", "quest_completed", "mood_logged", "achievement_unlocked"} <= set(
            summary["by_type"]
        )

    def test_users_do_not_see_each_others_progress(
        self, client: TestClient, auth_headers, other_auth_headers
    ):
        skill = self._day_of_activity(client, auth_headers)

        other_me = client.get("/v1/auth/me", headers=other_auth_headers).json()
        other_feed = client.get("/v1/activity", headers=other_auth_headers).json()

        assert other_me["total_xp"] == 0
        assert other_feed == []
        assert client.get(f"/v1/skills/{skill['id']}", headers=other_auth_headers).status_code == 403

    def test_weekly_reset_keeps_totals(self, client: TestClient, auth_headers):
        self._day_of_activity(client, auth_headers)

        client.post("/v1/factions/reset-periods", json={"period": "weekly"}, headers=auth_headers)

        koerper = client.get("/v1/factions/koerper", headers=auth_headers).json()
        assert koerper["weekly_xp"] == 0
        assert koerper["monthly_xp"] == 60
        assert koerper["total_xp"] == 60
