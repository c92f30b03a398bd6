"""Mood and journal rules."""

import random
from dataclasses import dataclass
from datetime import date, timedelta
from typing import Dict, Iterable, List, Optional

from ..core.enums import MoodValue

MOOD_XP = 2
JOURNAL_XP = 5


@dataclass(frozen=True)
class MoodMeta:
    emoji: str
    score: int
    label: str
    color: str


MOODS: Dict[MoodValue, MoodMeta] = {
    MoodValue.GREAT: MoodMeta("😄", 5, "Grossartig", "#22C55E"),
    MoodValue.GOOD: MoodMeta("🙂", 4, "Gut", "#84CC16"),
    MoodValue.OKAY: MoodMeta("😐", 3, "Okay", "#EAB308"),
    MoodValue.BAD: MoodMeta("😔", 2, "Schlecht", "#F97316"),
    MoodValue.TERRIBLE: MoodMeta("😢", 1, "Sehr schlecht", "#EF4444"),
}

JOURNAL_PROMPTS: List[str] = [
    "Wofür bin ich heute dankbar?",
    "Was hat mich heute glücklich gemacht?",
    "Was habe ich heute gelernt?",
    "Was möchte ich morgen erreichen?",
    "Wie fühle ich mich gerade und warum?",
    "Was war heute meine größte Herausforderung?",
    "Worauf bin ich heute stolz?",
    "Was hat mich heute inspiriert?",
    "Welche positiven Dinge sind mir heute aufgefallen?",
    "Was möchte ich loslassen?",
]


def mood_score(mood: str) -> int:
    return MOODS[MoodValue(mood)].score


def average_mood_score(moods: Iterable[str]) -> Optional[float]:
    scores = [mood_score(m) for m in moods]
    if not scores:
        return None
    return round(sum(scores) / len(scores), 1)


def mood_streak(log_days: Iterable[date], today: date) -> int:
    """Consecutive days with a mood log, ending today or yesterday."""
    days = set(log_days)
    if today in days:
        cursor = today
    elif today - timedelta(days=1) in days:
        cursor = today - timedelta(days=1)
    else:
        return 0

    streak = 0
    while cursor in days:
        streak += 1
        cursor -= timedelta(days=1)
    return streak


def word_count(content: str) -> int:
    return len(content.split())


def random_prompt(rng: Optional[random.Random] = None) -> str:
    return (rng or random).choice(JOURNAL_PROMPTS)
