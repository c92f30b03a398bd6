"""Unit tests for the achievement catalog and weekly report rules."""

from datetime import date, datetime, timedelta, timezone

import pytest

from projekt_l.core.enums import AchievementRequirement
from projekt_l.domain.achievements import (
    ACHIEVEMENTS,
    AchievementState,
    definitions_for,
    get_achievement,
    next_to_unlock,
    progress_percent,
    recent_unlocks,
)
from projekt_l.domain.reports import (
    FILLER_WINS,
    WeeklyStats,
    compose_report,
    has_enough_activity,
    week_bounds,
)


def state(key, progress=0, unlocked=False, unlocked_at=None):
    return AchievementState(get_achievement(key), progress, unlocked, unlocked_at)


@pytest.mark.unit
class TestAchievementCatalog:
    def test_keys_are_unique(self):
        keys = [a.key for a in ACHIEVEMENTS]
        assert len(keys) == len(set(keys))

    def test_rewarding_achievements_name_a_faction(self):
        assert all(a.faction_id is not None for a in ACHIEVEMENTS if a.xp_reward > 0)

    def test_definitions_for_requirement(self):
        keys = [a.key for a in definitions_for(AchievementRequirement.HABIT_STREAK)]
        assert keys == ["streak_7", "streak_30", "streak_100"]

    def test_unknown_key(self):
        assert get_achievement("mondlandung") is None

    def test_progress_percent(self):
        assert progress_percent(3, 7) == 42.9
        assert progress_percent(10, 7) == 100.0
        assert progress_percent(0, 0) == 100.0

    def test_unlocked_state_is_complete(self):
        assert state("streak_7", progress=3, unlocked=True).percent == 100.0

    def test_next_to_unlock_orders_by_closeness(self):
        states = [
            state("first_habit", progress=1, unlocked=True),
            state("streak_7", progress=5),
            state("streak_30", progress=5),
            state("resistance_10", progress=9),
            state("quest_10", progress=0),
        ]

        keys = [s.definition.key for s in next_to_unlock(states)]

        assert keys == ["resistance_10", "streak_7", "streak_30"]

    def test_recent_unlocks_newest_first(self):
        now = datetime.now(timezone.utc)
        states = [
            state("first_habit", 1, True, now - timedelta(days=3)),
            state("first_quest", 1, True, now),
            state("streak_7", 4),
        ]

        keys = [s.definition.key for s in recent_unlocks(states)]

        assert keys == ["first_quest", "first_habit"]


@pytest.mark.unit
class TestWeeklyReportRules:
    def test_week_is_the_last_seven_days(self):
        assert week_bounds(date(2026, 10, 19)) == (date(2026, 10, 13), date(2026, 10, 19))

    def test_minimum_activity(self):
        assert not has_enough_activity(WeeklyStats(quests_completed=1, habits_tracked=1))
        assert has_enough_activity(WeeklyStats(quests_completed=1, habits_tracked=2))

    def test_report_from_an_active_week(self):
        stats = WeeklyStats(
            quests_completed=2,
            habits_tracked=5,
            total_xp=70,
            faction_activity={"koerper": 50, "wissen": 20},
        )

        report = compose_report(stats)

        assert report.top_wins == [
            "2 Quest(s) abgeschlossen",
            "5 Habit-Einträge getrackt",
            "💪 Körper: +50 XP",
        ]
        assert report.attention_area == "💼 Karriere kam diese Woche zu kurz (0 XP)."
        assert report.recognized_pattern == "Deine XP konzentrieren sich stark auf Körper."
        assert "Karriere" in report.recommendation

    def test_quiet_week_is_padded_to_three_wins(self):
        report = compose_report(WeeklyStats(habits_tracked=3))

        assert report.top_wins == ["3 Habit-Einträge getrackt", FILLER_WINS[0], FILLER_WINS[1]]

    def test_failed_quests_shape_pattern_and_advice(self):
        report = compose_report(WeeklyStats(quests_completed=1, quests_failed=2, habits_tracked=4))

        assert report.recognized_pattern.startswith("Mehr Quests sind gescheitert")
        assert "kleinere Schritte" in report.recommendation

    def test_stats_snapshot_is_plain_dict(self):
        snapshot = WeeklyStats(habits_tracked=3, faction_activity={"geist": 4}).to_dict()

        assert snapshot["habits_tracked"] == 3
        assert snapshot["faction_activity"] == {"geist": 4}
