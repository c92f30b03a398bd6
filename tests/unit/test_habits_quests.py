"""Unit tests for habit streak and quest progress rules."""

from datetime import date, datetime, timedelta, timezone

import pytest

from projekt_l.domain.habits import (
    RESIST_XP,
    complete_positive,
    completion_rate,
    completion_title,
    days_since,
    relapse,
    resist,
    streak_bonus,
    validate_schedule,
)
from projekt_l.domain.quests import (
    QuestExpiredError,
    QuestNotActiveError,
    apply_progress,
    check_progressable,
    is_expired,
    progress_percent,
)


@pytest.mark.unit
class TestHabitRules:
    """Test positive and negative habit streak handling."""

    def test_streak_bonus_per_full_week(self):
        assert streak_bonus(6) == 0
        assert streak_bonus(7) == 5
        assert streak_bonus(13) == 5
        assert streak_bonus(14) == 10

    def test_complete_positive_reaching_a_week(self):
        outcome = complete_positive(6, 6, 10, 10)

        assert outcome.current_streak == 7
        assert outcome.longest_streak == 7
        assert outcome.total_completions == 11
        assert outcome.bonus_xp == 5
        assert outcome.xp_gained == 15

    def test_complete_positive_keeps_longer_record(self):
        outcome = complete_positive(2, 30, 40, 10)

        assert outcome.current_streak == 3
        assert outcome.longest_streak == 30
        assert outcome.xp_gained == 10

    def test_completion_title_mentions_bonus(self):
        assert completion_title("🏃", "Laufen", 3, 0) == "🏃 Laufen erledigt"
        assert completion_title("🏃", "Laufen", 7, 5) == "🏃 Laufen erledigt (7 Tage Streak! +5 Bonus)"

    def test_days_since(self):
        assert days_since(None, date(2026, 1, 1)) == 0
        assert days_since(date(2026, 1, 1), date(2026, 1, 11)) == 10
        assert days_since(date(2026, 2, 1), date(2026, 1, 11)) == 0

    def test_relapse_after_clean_days(self):
        outcome = relapse("🚭", "Rauchen", date(2026, 1, 1), date(2026, 1, 11))

        assert outcome.previous_streak == 10
        assert outcome.title == "🚭 Rauchen - Rückfall nach 10 Tagen"
        assert outcome.note == "Rückfall nach 10 Tagen"

    def test_relapse_keeps_user_notes(self):
        outcome = relapse("🚭", "Rauchen", None, date(2026, 1, 11), notes="Party")

        assert outcome.previous_streak == 0
        assert outcome.note == "Party"
        assert outcome.title == "🚭 Rauchen - Rückfall geloggt"

    def test_resist_pays_once_per_day(self):
        today = date(2026, 3, 10)
        first = resist("Rauchen", date(2026, 3, 1), None, 5, 2, today)
        again = resist("Rauchen", date(2026, 3, 1), today, 9, 3, today)

        assert first.xp_gained == RESIST_XP
        assert first.resistance_count == 3
        assert first.current_streak == 9
        assert first.longest_streak == 9
        assert first.already_confirmed_today is False
        assert again.xp_gained == 0
        assert again.resistance_count == 3
        assert again.already_confirmed_today is True

    def test_completion_rate_counts_distinct_days(self):
        days = [date(2026, 1, 1), date(2026, 1, 1), date(2026, 1, 2)]

        assert completion_rate(days, 10) == 20.0
        assert completion_rate(days, 0) == 0.0

    def test_specific_days_requires_target_days(self):
        with pytest.raises(ValueError):
            validate_schedule("specific_days", [])
        validate_schedule("specific_days", ["mon"])
        validate_schedule("daily", None)


@pytest.mark.unit
class TestQuestRules:
    """Test quest step counting and expiry."""

    def test_progress_percent(self):
        assert progress_percent(1, 3) == 33
        assert progress_percent(2, 3) == 67
        assert progress_percent(0, 0) == 100

    def test_increment_completes_at_required(self):
        outcome = apply_progress("increment", 2, 3)

        assert outcome.completed_actions == 3
        assert outcome.progress == 100
        assert outcome.is_complete is True
        assert outcome.note == "Schritt 3 von 3"

    def test_increment_is_capped(self):
        assert apply_progress("increment", 3, 3).completed_actions == 3

    def test_decrement_floors_at_zero(self):
        outcome = apply_progress("decrement", 0, 3)

        assert outcome.completed_actions == 0
        assert outcome.is_complete is False

    def test_complete_jumps_to_required(self):
        outcome = apply_progress("complete", 0, 5)

        assert outcome.completed_actions == 5
        assert outcome.is_complete is True

    def test_expiry(self):
        now = datetime(2026, 5, 1, 12, tzinfo=timezone.utc)

        assert is_expired(None, now) is False
        assert is_expired(now - timedelta(seconds=1), now) is True
        assert is_expired(now + timedelta(hours=1), now) is False

    def test_check_progressable(self):
        now = datetime(2026, 5, 1, 12, tzinfo=timezone.utc)

        check_progressable("active", None, now)
        with pytest.raises(QuestNotActiveError):
            check_progressable("completed", None, now)
        with pytest.raises(QuestExpiredError):
            check_progressable("active", now - timedelta(days=1), now)

    def test_quest_errors_are_value_errors(self):
        assert issubclass(QuestExpiredError, ValueError)
        assert issubclass(QuestNotActiveError, ValueError)
