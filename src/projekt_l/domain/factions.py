"""
Faction metadata and faction XP rules.

Factions aggregate XP from skills, habits, quests and contacts into seven
fixed life areas.
"""

from dataclasses import dataclass
from typing import Dict, List, Optional, Sequence, Tuple

from ..core.enums import FactionId, RelationshipCategory
from .xp import level_from_xp, round_half_up, total_xp_for_level, xp_for_level


@dataclass(frozen=True)
class Faction:
    id: FactionId
    name: str
    icon: str
    color: str
    description: str


FACTIONS: Tuple[Faction, ...] = (
    Faction(FactionId.KARRIERE, "Karriere", "💼", "#3B82F6", "Beruf, Projekte und berufliche Entwicklung"),
    Faction(FactionId.HOBBY, "Hobby", "🎨", "#8B5CF6", "Kreative Projekte und Freizeit"),
    Faction(FactionId.KOERPER, "Körper", "💪", "#10B981", "Fitness, Ernährung und Gesundheit"),
    Faction(FactionId.GEIST, "Geist & Seele", "🧠", "#F59E0B", "Achtsamkeit, Stimmung und Reflexion"),
    Faction(FactionId.FINANZEN, "Finanzen", "💰", "#14B8A6", "Budget, Sparen und Vermögen"),
    Faction(FactionId.SOZIALES, "Soziales", "👥", "#EC4899", "Familie, Freunde und Beziehungen"),
    Faction(FactionId.WISSEN, "Wissen", "📚", "#6366F1", "Lernen, Lesen und Bildung"),
)

FACTIONS_BY_ID: Dict[str, Faction] = {f.id.value: f for f in FACTIONS}

LEGACY_FACTION_IDS: Dict[str, FactionId] = {
    "familie": FactionId.SOZIALES,
    "freunde": FactionId.SOZIALES,
    "gesundheit": FactionId.KOERPER,
    "lernen": FactionId.WISSEN,
    "hobbys": FactionId.HOBBY,
}

CATEGORY_FACTIONS: Dict[RelationshipCategory, FactionId] = {
    RelationshipCategory.FAMILY: FactionId.SOZIALES,
    RelationshipCategory.FRIEND: FactionId.SOZIALES,
    RelationshipCategory.PROFESSIONAL: FactionId.KARRIERE,
    RelationshipCategory.OTHER: FactionId.SOZIALES,
}


def get_faction(faction_id: str) -> Optional[Faction]:
    return FACTIONS_BY_ID.get(faction_id)


def migrate_faction_id(faction_id: str) -> FactionId:
    """Map a legacy faction id to its current id.

    Raises:
        ValueError: If the id is neither current nor legacy
    """
    if faction_id in FACTIONS_BY_ID:
        return FactionId(faction_id)
    if faction_id in LEGACY_FACTION_IDS:
        return LEGACY_FACTION_IDS[faction_id]
    raise ValueError(f"Unknown faction id: {faction_id}")


def faction_for_category(category: RelationshipCategory) -> FactionId:
    return CATEGORY_FACTIONS.get(RelationshipCategory(category), FactionId.SOZIALES)


def faction_level(total_xp: int) -> int:
    return level_from_xp(max(0, total_xp))


def faction_level_progress(total_xp: int) -> int:
    """Percent progress inside the current faction level, 0..100."""
    level = faction_level(total_xp)
    required = xp_for_level(level + 1)
    if required <= 0:
        return 100
    into_level = max(0, total_xp) - total_xp_for_level(level)
    return max(0, min(100, round_half_up(into_level / required * 100)))


@dataclass(frozen=True)
class FactionStatsChange:
    """New counter values after applying an XP delta to a faction."""

    total_xp: int
    weekly_xp: int
    monthly_xp: int
    level: int
    leveled_up: bool


def apply_faction_xp(
    total_xp: int, weekly_xp: int, monthly_xp: int, amount: int
) -> FactionStatsChange:
    """Add (or subtract) XP, flooring every counter at zero."""
    old_level = faction_level(total_xp)
    new_total = max(0, total_xp + amount)
    new_level = faction_level(new_total)
    return FactionStatsChange(
        total_xp=new_total,
        weekly_xp=max(0, weekly_xp + amount),
        monthly_xp=max(0, monthly_xp + amount),
        level=new_level,
        leveled_up=new_level > old_level,
    )


def distribute_xp(
    xp: int,
    primary_faction_id: Optional[str],
    weights: Sequence[Tuple[str, int]] = (),
) -> List[Tuple[str, int]]:
    """Split xp across weighted factions.

    Every faction gets the floor of its proportional share of |xp|; the
    leftover units go one each to the largest remainders, the primary
    faction first on ties. All parts carry the sign of xp and sum to xp.
    The primary faction is listed first.
    """
    weighted = [(fid, w) for fid, w in weights if w > 0]
    total_weight = sum(w for _, w in weighted)

    if not weighted or total_weight <= 0:
        if primary_faction_id is None:
            return []
        return [(primary_faction_id, xp)]

    primary = primary_faction_id
    if primary is None or primary not in {fid for fid, _ in weighted}:
        primary = max(weighted, key=lambda item: item[1])[0]
    ordered = [item for item in weighted if item[0] == primary] + [
        item for item in weighted if item[0] != primary
    ]

    sign = -1 if xp < 0 else 1
    magnitude = abs(xp)
    shares = []
    for fid, weight in ordered:
        whole, remainder = divmod(magnitude * weight, total_weight)
        shares.append([fid, whole, remainder])

    leftover = magnitude - sum(share[1] for share in shares)
    # sorted() is stable, so the primary wins ties
    for share in sorted(shares, key=lambda s: s[2], reverse=True)[:leftover]:
        share[1] += 1

    return [(fid, sign * amount) for fid, amount, _ in shares]


def split_evenly(xp: int, ids: Sequence[str]) -> List[Tuple[str, int]]:
    """Give every id an equal, rounded share of xp."""
    if not ids:
        return []
    share = round_half_up(xp / len(ids))
    return [(item, share) for item in ids]


def primary_faction(weights: Sequence[Tuple[str, int]]) -> Optional[str]:
    """The faction with the highest weight, first one wins ties."""
    if not weights:
        return None
    best_id, best_weight = weights[0]
    for fid, weight in weights[1:]:
        if weight > best_weight:
            best_id, best_weight = fid, weight
    return best_id
