"""Unit tests for the XP curve and faction XP rules."""

import pytest

from projekt_l.core.enums import FactionId, RelationshipCategory
from projekt_l.domain.factions import (
    FACTIONS,
    apply_faction_xp,
    distribute_xp,
    faction_for_category,
    faction_level_progress,
    get_faction,
    migrate_faction_id,
    primary_faction,
    split_evenly,
)
from projekt_l.domain.xp import (
    add_xp,
    format_xp,
    level_from_xp,
    level_tier,
    progress_to_next_level,
    round_half_up,
    total_xp_for_level,
    xp_for_level,
)


@pytest.mark.unit
class TestXpCurve:
    """Test the power curve and level arithmetic."""

    def test_xp_for_level_follows_power_curve(self):
        assert xp_for_level(0) == 0
        assert xp_for_level(1) == 100
        assert xp_for_level(2) == 282
        assert xp_for_level(3) == 519
        assert xp_for_level(4) == 800

    def test_total_xp_for_level(self):
        assert total_xp_for_level(1) == 100
        assert total_xp_for_level(2) == 382

    def test_level_from_xp_has_minimum_of_one(self):
        assert level_from_xp(0) == 1
        assert level_from_xp(381) == 1
        assert level_from_xp(382) == 2

    def test_add_xp_exact_threshold_levels_up(self):
        result = add_xp(1, 0, 282)

        assert result.new_level == 2
        assert result.new_xp == 0
        assert result.leveled_up is True
        assert result.levels_gained == 1

    def test_add_xp_rolls_over_multiple_levels(self):
        result = add_xp(1, 0, 900)

        assert result.new_level == 3
        assert result.new_xp == 99
        assert result.levels_gained == 2

    def test_add_xp_without_level_up(self):
        result = add_xp(2, 10, 50)

        assert result.new_level == 2
        assert result.new_xp == 60
        assert result.leveled_up is False

    def test_progress_to_next_level(self):
        assert progress_to_next_level(1, 141) == 50.0
        assert progress_to_next_level(1, 10_000) == 100.0

    def test_round_half_up(self):
        assert round_half_up(2.5) == 3
        assert round_half_up(3.4) == 3
        assert round_half_up(-0.5) == 0

    @pytest.mark.parametrize(
        "level,tier",
        [(1, "Beginner"), (24, "Beginner"), (25, "Advanced"), (50, "Expert"), (75, "Master"), (100, "Legendary")],
    )
    def test_level_tier(self, level, tier):
        assert level_tier(level) == tier

    def test_format_xp(self):
        assert format_xp(999) == "999"
        assert format_xp(1500) == "1.5K"
        assert format_xp(2_000_000) == "2.0M"


@pytest.mark.unit
class TestFactions:
    """Test faction metadata and XP distribution."""

    def test_seven_fixed_factions(self):
        assert [f.id for f in FACTIONS] == list(FactionId)
        assert get_faction("geist").name == "Geist & Seele"
        assert get_faction("familie") is None

    def test_legacy_ids_are_migrated(self):
        assert migrate_faction_id("familie") == FactionId.SOZIALES
        assert migrate_faction_id("gesundheit") == FactionId.KOERPER
        assert migrate_faction_id("lernen") == FactionId.WISSEN
        assert migrate_faction_id("karriere") == FactionId.KARRIERE

    def test_unknown_faction_raises(self):
        with pytest.raises(ValueError):
            migrate_faction_id("weltherrschaft")

    def test_faction_for_relationship_category(self):
        assert faction_for_category(RelationshipCategory.PROFESSIONAL) == FactionId.KARRIERE
        assert faction_for_category("family") == FactionId.SOZIALES

    def test_apply_faction_xp_floors_at_zero(self):
        change = apply_faction_xp(50, 10, 20, -30)

        assert change.total_xp == 20
        assert change.weekly_xp == 0
        assert change.monthly_xp == 0
        assert change.leveled_up is False

    def test_apply_faction_xp_detects_level_up(self):
        assert apply_faction_xp(90, 0, 0, 20).leveled_up is False
        change = apply_faction_xp(300, 0, 0, 100)
        assert change.level == 2
        assert change.leveled_up is True

    def test_faction_level_progress(self):
        assert faction_level_progress(0) == 0
        assert faction_level_progress(241) == 50

    def test_distribute_xp_primary_absorbs_remainder(self):
        parts = distribute_xp(10, "koerper", [("koerper", 2), ("geist", 1)])

        assert parts == [("koerper", 7), ("geist", 3)]
        assert sum(amount for _, amount in parts) == 10

    def test_distribute_xp_without_weights(self):
        assert distribute_xp(10, "wissen") == [("wissen", 10)]
        assert distribute_xp(10, None) == []

    def test_distribute_xp_unweighted_primary_falls_back_to_heaviest(self):
        parts = distribute_xp(10, "hobby", [("koerper", 1), ("geist", 3)])

        assert parts == [("geist", 8), ("koerper", 2)]

    def test_distribute_xp_many_equal_weights_never_negative(self):
        weights = [(faction.id.value, 10) for faction in FACTIONS]

        parts = distribute_xp(4, "karriere", weights)

        assert all(amount >= 0 for _, amount in parts)
        assert sum(amount for _, amount in parts) == 4
        assert parts[0] == ("karriere", 1)
        assert [amount for _, amount in parts] == [1, 1, 1, 1, 0, 0, 0]

    def test_distribute_xp_leftover_goes_to_largest_remainder(self):
        parts = distribute_xp(10, "geist", [("geist", 1), ("koerper", 1), ("wissen", 4)])

        assert parts == [("geist", 2), ("koerper", 1), ("wissen", 7)]

    def test_negative_xp_distributes_as_penalty(self):
        parts = distribute_xp(-10, "koerper", [("koerper", 1), ("geist", 1)])

        assert parts == [("koerper", -5), ("geist", -5)]

    def test_negative_xp_with_many_factions_stays_non_positive(self):
        weights = [(faction.id.value, 1) for faction in FACTIONS]

        parts = distribute_xp(-3, "wissen", weights)

        assert all(amount <= 0 for _, amount in parts)
        assert sum(amount for _, amount in parts) == -3

    def test_split_evenly_rounds_each_share(self):
        assert split_evenly(25, ["a", "b"]) == [("a", 13), ("b", 13)]
        assert split_evenly(25, []) == []

    def test_primary_faction_first_wins_ties(self):
        assert primary_faction([("geist", 2), ("koerper", 2)]) == "geist"
        assert primary_faction([("geist", 1), ("koerper", 3)]) == "koerper"
        assert primary_faction([]) is None
