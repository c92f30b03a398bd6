"""
Achievement catalog and progress rules.

Achievements are fixed definitions measured against one counter each
(habit count, longest streak, resisted temptations, reached savings goals,
completed quests). Unlocking one pays its XP reward into its faction.
"""

from dataclasses import dataclass
from datetime import datetime
from typing import Dict, Iterable, List, Optional, Sequence, Tuple

from ..core.enums import AchievementRarity, AchievementRequirement, FactionId

R = AchievementRequirement


@dataclass(frozen=True)
class AchievementDefinition:
    key: str
    name: str
    description: str
    icon: str
    category: str
    rarity: AchievementRarity
    requirement_type: AchievementRequirement
    requirement_value: int
    xp_reward: int
    faction_id: Optional[FactionId] = None


ACHIEVEMENTS: Tuple[AchievementDefinition, ...] = (
    AchievementDefinition(
        "first_habit", "Erster Schritt", "Lege deine erste Gewohnheit an",
        "🌱", "habits", AchievementRarity.COMMON, R.HABIT_COUNT, 1, 10, FactionId.GEIST,
    ),
    AchievementDefinition(
        "habit_collector", "Gewohnheitstier", "Pflege 5 aktive Gewohnheiten",
        "🗂️", "habits", AchievementRarity.RARE, R.HABIT_COUNT, 5, 25, FactionId.GEIST,
    ),
    AchievementDefinition(
        "streak_7", "Eine Woche stark", "Halte einen Streak 7 Tage lang",
        "🔥", "habits", AchievementRarity.COMMON, R.HABIT_STREAK, 7, 25, FactionId.GEIST,
    ),
    AchievementDefinition(
        "streak_30", "Monatsmarathon", "Halte einen Streak 30 Tage lang",
        "🏅", "habits", AchievementRarity.RARE, R.HABIT_STREAK, 30, 75, FactionId.GEIST,
    ),
    AchievementDefinition(
        "streak_100", "Unaufhaltsam", "Halte einen Streak 100 Tage lang",
        "💎", "habits", AchievementRarity.LEGENDARY, R.HABIT_STREAK, 100, 200, FactionId.GEIST,
    ),
    AchievementDefinition(
        "first_resistance", "Standhaft", "Widerstehe zum ersten Mal einer Versuchung",
        "🛡️", "habits", AchievementRarity.COMMON, R.RESISTANCE_COUNT, 1, 10, FactionId.GEIST,
    ),
    AchievementDefinition(
        "resistance_10", "Willensstark", "Widerstehe 10 Mal einer Versuchung",
        "💪", "habits", AchievementRarity.RARE, R.RESISTANCE_COUNT, 10, 50, FactionId.GEIST,
    ),
    AchievementDefinition(
        "resistance_50", "Eiserner Wille", "Widerstehe 50 Mal einer Versuchung",
        "🗿", "habits", AchievementRarity.EPIC, R.RESISTANCE_COUNT, 50, 150, FactionId.GEIST,
    ),
    AchievementDefinition(
        "first_savings_goal", "Sparfuchs", "Erreiche dein erstes Sparziel",
        "🐷", "finance", AchievementRarity.COMMON, R.SAVINGS_GOAL, 1, 25, FactionId.FINANZEN,
    ),
    AchievementDefinition(
        "savings_goal_3", "Schatzmeister", "Erreiche 3 Sparziele",
        "💰", "finance", AchievementRarity.EPIC, R.SAVINGS_GOAL, 3, 75, FactionId.FINANZEN,
    ),
    AchievementDefinition(
        "first_quest", "Abenteurer", "Schließe deine erste Quest ab",
        "🗺️", "quests", AchievementRarity.COMMON, R.QUEST_COUNT, 1, 10, FactionId.KARRIERE,
    ),
    AchievementDefinition(
        "quest_10", "Held des Alltags", "Schließe 10 Quests ab",
        "🏆", "quests", AchievementRarity.RARE, R.QUEST_COUNT, 10, 50, FactionId.KARRIERE,
    ),
)

ACHIEVEMENTS_BY_KEY: Dict[str, AchievementDefinition] = {a.key: a for a in ACHIEVEMENTS}

CATEGORIES = tuple(dict.fromkeys(a.category for a in ACHIEVEMENTS))


def get_achievement(key: str) -> Optional[AchievementDefinition]:
    return ACHIEVEMENTS_BY_KEY.get(key)


def definitions_for(requirement_type: AchievementRequirement) -> List[AchievementDefinition]:
    requirement_type = AchievementRequirement(requirement_type)
    return [a for a in ACHIEVEMENTS if a.requirement_type == requirement_type]


def progress_percent(current: int, required: int) -> float:
    if required <= 0:
        return 100.0
    return round(min(100.0, max(0.0, current / required * 100)), 1)


@dataclass(frozen=True)
class AchievementState:
    """A definition merged with one user's progress."""

    definition: AchievementDefinition
    current_progress: int = 0
    is_unlocked: bool = False
    unlocked_at: Optional[datetime] = None

    @property
    def percent(self) -> float:
        if self.is_unlocked:
            return 100.0
        return progress_percent(self.current_progress, self.definition.requirement_value)


def next_to_unlock(states: Iterable[AchievementState], limit: int = 3) -> List[AchievementState]:
    """Locked achievements with some progress, closest to completion first."""
    started = [s for s in states if not s.is_unlocked and s.current_progress > 0]
    return sorted(started, key=lambda s: s.percent, reverse=True)[:limit]


def recent_unlocks(states: Sequence[AchievementState], limit: int = 5) -> List[AchievementState]:
    unlocked = [s for s in states if s.is_unlocked and s.unlocked_at is not None]
    return sorted(unlocked, key=lambda s: s.unlocked_at, reverse=True)[:limit]
