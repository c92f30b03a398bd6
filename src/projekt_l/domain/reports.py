"""
Weekly review rules.

A report covers the seven days ending today. It is only written when the
week had some activity, and its text is composed from the week's numbers.
"""

from dataclasses import asdict, dataclass, field
from datetime import date, timedelta
from typing import Any, Dict, List, Optional, Tuple

from .factions import FACTIONS, Faction

MIN_ACTIVITY = 3
TOP_WINS = 3

FILLER_WINS = (
    "Du hast dir Zeit für deinen Wochen-Rückblick genommen",
    "Jeder Eintrag bringt dich weiter",
    "Du bist drangeblieben",
)


@dataclass
class WeeklyStats:
    quests_completed: int = 0
    quests_failed: int = 0
    habits_tracked: int = 0
    total_xp: int = 0
    faction_activity: Dict[str, int] = field(default_factory=dict)
    achievements_unlocked: int = 0
    gold_earned: int = 0
    gold_spent: int = 0
    mood_entries: int = 0
    journal_entries: int = 0

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass(frozen=True)
class ReportText:
    top_wins: List[str]
    attention_area: str
    recognized_pattern: str
    recommendation: str


def week_bounds(today: date) -> Tuple[date, date]:
    """First and last day of the seven day window ending today."""
    return today - timedelta(days=6), today


def has_enough_activity(stats: WeeklyStats) -> bool:
    return stats.quests_completed + stats.habits_tracked >= MIN_ACTIVITY


def _ranked_factions(stats: WeeklyStats) -> List[Tuple[Faction, int]]:
    """Factions by weekly XP, highest first; display order breaks ties."""
    ranked = [(f, stats.faction_activity.get(f.id.value, 0)) for f in FACTIONS]
    return sorted(ranked, key=lambda item: item[1], reverse=True)


def top_faction(stats: WeeklyStats) -> Optional[Tuple[Faction, int]]:
    ranked = _ranked_factions(stats)
    return ranked[0] if ranked[0][1] > 0 else None


def neglected_faction(stats: WeeklyStats) -> Tuple[Faction, int]:
    ranked = _ranked_factions(stats)
    lowest = min(xp for _, xp in ranked)
    return next((f, xp) for f, xp in ranked if xp == lowest)


def _wins(stats: WeeklyStats) -> List[str]:
    wins = []
    if stats.quests_completed:
        wins.append(f"{stats.quests_completed} Quest(s) abgeschlossen")
    if stats.habits_tracked:
        wins.append(f"{stats.habits_tracked} Habit-Einträge getrackt")
    best = top_faction(stats)
    if best:
        faction, xp = best
        wins.append(f"{faction.icon} {faction.name}: +{xp} XP")
    if stats.achievements_unlocked:
        wins.append(f"{stats.achievements_unlocked} Erfolg(e) freigeschaltet")
    if stats.mood_entries or stats.journal_entries:
        wins.append(
            f"{stats.mood_entries} Stimmungs- und {stats.journal_entries} Journaleinträge"
        )
    if stats.gold_earned:
        wins.append(f"{stats.gold_earned} Gold verdient")

    for filler in FILLER_WINS:
        if len(wins) >= TOP_WINS:
            break
        wins.append(filler)
    return wins[:TOP_WINS]


def _pattern(stats: WeeklyStats) -> str:
    if stats.quests_failed > stats.quests_completed:
        return "Mehr Quests sind gescheitert als abgeschlossen wurden."
    best = top_faction(stats)
    if best and stats.total_xp > 0 and best[1] / stats.total_xp >= 0.6:
        return f"Deine XP konzentrieren sich stark auf {best[0].name}."
    if stats.habits_tracked >= 7:
        return "Du trackst deine Gewohnheiten fast täglich."
    return "Deine Aktivität verteilt sich auf mehrere Lebensbereiche."


def compose_report(stats: WeeklyStats) -> ReportText:
    """Build the report text from the week's numbers."""
    faction, xp = neglected_faction(stats)
    attention = f"{faction.icon} {faction.name} kam diese Woche zu kurz ({xp} XP)."

    if stats.quests_failed > stats.quests_completed:
        recommendation = (
            "Teile deine nächste Quest in kleinere Schritte auf, "
            "damit du sie sicher abschließen kannst."
        )
    else:
        recommendation = (
            f"Plane für nächste Woche eine kleine Aktivität in {faction.name}, "
            "zum Beispiel zweimal 15 Minuten."
        )

    return ReportText(
        top_wins=_wins(stats),
        attention_area=attention,
        recognized_pattern=_pattern(stats),
        recommendation=recommendation,
    )
