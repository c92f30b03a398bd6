"""
Relationship metadata and pure contact rules.

Covers relationship types and categories, interaction XP, contact levels,
birthday arithmetic and the "needs attention" check.
"""

import calendar
import math
from dataclasses import dataclass
from datetime import date, datetime
from typing import Dict, Optional

from ..core.enums import InteractionQuality, InteractionType, RelationshipCategory, RelationshipType
from .xp import round_half_up

DEFAULT_ATTENTION_DAYS = 30


@dataclass(frozen=True)
class RelationshipTypeMeta:
    label: str
    label_de: str
    icon: str
    category: RelationshipCategory


_FAMILY = RelationshipCategory.FAMILY
_FRIEND = RelationshipCategory.FRIEND
_PRO = RelationshipCategory.PROFESSIONAL
_OTHER = RelationshipCategory.OTHER

RELATIONSHIP_TYPES: Dict[RelationshipType, RelationshipTypeMeta] = {
    RelationshipType.PARTNER: RelationshipTypeMeta("Partner", "Partner/in", "💕", _FAMILY),
    RelationshipType.SPOUSE: RelationshipTypeMeta("Spouse", "Ehepartner/in", "💍", _FAMILY),
    RelationshipType.CHILD: RelationshipTypeMeta("Child", "Kind", "👶", _FAMILY),
    RelationshipType.PARENT: RelationshipTypeMeta("Parent", "Elternteil", "👨‍👩‍👧", _FAMILY),
    RelationshipType.GRANDPARENT: RelationshipTypeMeta("Grandparent", "Großeltern", "👴", _FAMILY),
    RelationshipType.SIBLING: RelationshipTypeMeta("Sibling", "Geschwister", "👫", _FAMILY),
    RelationshipType.SIBLING_IN_LAW: RelationshipTypeMeta("Sibling-in-law", "Schwager/in", "👥", _FAMILY),
    RelationshipType.PARENT_IN_LAW: RelationshipTypeMeta("Parent-in-law", "Schwiegereltern", "👪", _FAMILY),
    RelationshipType.CHILD_IN_LAW: RelationshipTypeMeta("Child-in-law", "Schwiegerkind", "👨‍👩‍👧", _FAMILY),
    RelationshipType.COUSIN: RelationshipTypeMeta("Cousin", "Cousin/e", "👦", _FAMILY),
    RelationshipType.AUNT_UNCLE: RelationshipTypeMeta("Aunt/Uncle", "Tante/Onkel", "🧑", _FAMILY),
    RelationshipType.NIECE_NEPHEW: RelationshipTypeMeta("Niece/Nephew", "Nichte/Neffe", "👧", _FAMILY),
    RelationshipType.STEP_PARENT: RelationshipTypeMeta("Step-parent", "Stiefeltern", "👨", _FAMILY),
    RelationshipType.STEP_CHILD: RelationshipTypeMeta("Step-child", "Stiefkind", "👦", _FAMILY),
    RelationshipType.STEP_SIBLING: RelationshipTypeMeta("Step-sibling", "Stiefgeschwister", "👫", _FAMILY),
    RelationshipType.CLOSE_FRIEND: RelationshipTypeMeta("Close Friend", "Enge/r Freund/in", "💛", _FRIEND),
    RelationshipType.FRIEND: RelationshipTypeMeta("Friend", "Freund/in", "😊", _FRIEND),
    RelationshipType.ACQUAINTANCE: RelationshipTypeMeta("Acquaintance", "Bekannte/r", "👋", _FRIEND),
    RelationshipType.COLLEAGUE: RelationshipTypeMeta("Colleague", "Kollege/in", "💼", _PRO),
    RelationshipType.MENTOR: RelationshipTypeMeta("Mentor", "Mentor/in", "🎓", _PRO),
    RelationshipType.MENTEE: RelationshipTypeMeta("Mentee", "Mentee", "📚", _PRO),
    RelationshipType.NEIGHBOR: RelationshipTypeMeta("Neighbor", "Nachbar/in", "🏠", _OTHER),
    RelationshipType.OTHER: RelationshipTypeMeta("Other", "Andere", "👤", _OTHER),
}


@dataclass(frozen=True)
class InteractionTypeMeta:
    label: str
    label_de: str
    icon: str
    base_xp: int


INTERACTION_TYPES: Dict[InteractionType, InteractionTypeMeta] = {
    InteractionType.CALL: InteractionTypeMeta("Call", "Anruf", "📞", 15),
    InteractionType.VIDEO_CALL: InteractionTypeMeta("Video Call", "Videoanruf", "📹", 25),
    InteractionType.MESSAGE: InteractionTypeMeta("Message", "Nachricht", "💬", 5),
    InteractionType.MEETING: InteractionTypeMeta("Meeting", "Treffen", "🤝", 40),
    InteractionType.ACTIVITY: InteractionTypeMeta("Activity", "Aktivität", "🎯", 50),
    InteractionType.EVENT: InteractionTypeMeta("Event", "Event", "🎉", 60),
    InteractionType.GIFT: InteractionTypeMeta("Gift", "Geschenk", "🎁", 30),
    InteractionType.SUPPORT: InteractionTypeMeta("Support", "Unterstützung", "🤗", 45),
    InteractionType.QUALITY_TIME: InteractionTypeMeta("Quality Time", "Quality Time", "⏰", 55),
    InteractionType.OTHER: InteractionTypeMeta("Other", "Andere", "📝", 10),
}

QUALITY_MULTIPLIER: Dict[InteractionQuality, float] = {
    InteractionQuality.POOR: 0.5,
    InteractionQuality.NEUTRAL: 1.0,
    InteractionQuality.GOOD: 1.5,
    InteractionQuality.GREAT: 2.0,
    InteractionQuality.EXCEPTIONAL: 3.0,
}

QUALITY_SCORE: Dict[InteractionQuality, int] = {
    InteractionQuality.POOR: 1,
    InteractionQuality.NEUTRAL: 2,
    InteractionQuality.GOOD: 3,
    InteractionQuality.GREAT: 4,
    InteractionQuality.EXCEPTIONAL: 5,
}


def category_for_type(relationship_type: str) -> RelationshipCategory:
    return RELATIONSHIP_TYPES[RelationshipType(relationship_type)].category


def relationship_label(relationship_type: str) -> str:
    return RELATIONSHIP_TYPES[RelationshipType(relationship_type)].label_de


def interaction_xp(
    interaction_type: str, quality: str, duration_minutes: Optional[int] = None
) -> int:
    """XP for an interaction; long ones earn up to double (at 120+ minutes)."""
    base = INTERACTION_TYPES[InteractionType(interaction_type)].base_xp
    multiplier = QUALITY_MULTIPLIER[InteractionQuality(quality)]
    duration_factor = 1.0
    if duration_minutes:
        duration_factor = min(2.0, 1 + duration_minutes / 120)
    return round_half_up(base * multiplier * duration_factor)


def xp_for_next_level(level: int) -> int:
    return math.ceil(100 * math.pow(level, 1.5))


@dataclass(frozen=True)
class ContactLevel:
    level: int
    current_xp: int
    leveled_up: bool


def add_contact_xp(level: int, current_xp: int, gained: int) -> ContactLevel:
    new_level = level
    new_xp = current_xp + gained
    while new_xp >= xp_for_next_level(new_level):
        new_xp -= xp_for_next_level(new_level)
        new_level += 1
    return ContactLevel(level=new_level, current_xp=new_xp, leveled_up=new_level > level)


def level_progress_percent(level: int, current_xp: int) -> int:
    required = xp_for_next_level(level)
    return max(0, min(100, round_half_up(current_xp / required * 100)))


def running_average(previous_avg: Optional[float], previous_count: int, score: int) -> float:
    """Mean of previous_count scores averaging previous_avg plus one new score."""
    if not previous_count or previous_avg is None:
        return float(score)
    return round((previous_avg * previous_count + score) / (previous_count + 1), 2)


def display_name(first_name: str, last_name: Optional[str], nickname: Optional[str]) -> str:
    if nickname:
        return nickname
    if last_name:
        return f"{first_name} {last_name}"
    return first_name


def _anniversary_in_year(day: date, year: int) -> date:
    # 29 Feb falls back to 28 Feb outside leap years
    if day.month == 2 and day.day == 29 and not calendar.isleap(year):
        return date(year, 2, 28)
    return date(year, day.month, day.day)


def days_until(day: Optional[date], today: date) -> Optional[int]:
    """Days until the next yearly occurrence of day (0 when it is today)."""
    if day is None:
        return None
    upcoming = _anniversary_in_year(day, today.year)
    if upcoming < today:
        upcoming = _anniversary_in_year(day, today.year + 1)
    return (upcoming - today).days


def days_since_interaction(last_interaction_at: Optional[datetime], now: datetime) -> Optional[int]:
    if last_interaction_at is None:
        return None
    return max(0, (now - last_interaction_at).days)


def needs_attention(
    last_interaction_at: Optional[datetime],
    reminder_frequency_days: Optional[int],
    suppressed: bool,
    now: datetime,
) -> bool:
    """A contact needs attention once the reminder interval has passed."""
    if suppressed:
        return False
    if last_interaction_at is None:
        return True
    threshold = reminder_frequency_days or DEFAULT_ATTENTION_DAYS
    return (now - last_interaction_at).days > threshold
