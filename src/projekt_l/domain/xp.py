"""
XP curve and level arithmetic.

Levels follow a power curve: reaching level L from L-1 costs floor(100 * L^1.5) XP.
All functions are pure and safe to call from any layer.
"""

import math
from dataclasses import dataclass

LEVEL_CAP_SEARCH = 10_000


def round_half_up(value: float) -> int:
    """Round to the nearest integer, halves away from negative infinity."""
    return math.floor(value + 0.5)


def xp_for_level(level: int) -> int:
    """XP needed to go from level-1 to level."""
    if level <= 0:
        return 0
    return math.floor(100 * math.pow(level, 1.5))


def total_xp_for_level(level: int) -> int:
    """Cumulative XP needed to reach level from zero."""
    return sum(xp_for_level(i) for i in range(1, level + 1))


def level_from_xp(total_xp: int) -> int:
    """Highest level whose cumulative requirement fits in total_xp (minimum 1)."""
    level = 0
    cumulative = 0
    while level < LEVEL_CAP_SEARCH:
        needed = xp_for_level(level + 1)
        if cumulative + needed > total_xp:
            break
        cumulative += needed
        level += 1
    return max(1, level)


def progress_to_next_level(level: int, current_xp: int) -> float:
    """Percentage of the way from level to level+1."""
    required = xp_for_level(level + 1)
    if required <= 0:
        return 100.0
    return max(0.0, min(100.0, current_xp / required * 100))


@dataclass(frozen=True)
class XpResult:
    """Outcome of adding XP to a level/xp pair."""

    new_level: int
    new_xp: int
    leveled_up: bool
    levels_gained: int


def add_xp(level: int, current_xp: int, gained: int) -> XpResult:
    """Add XP and roll over into as many levels as it pays for."""
    new_level = level
    new_xp = current_xp + gained

    while new_xp >= xp_for_level(new_level + 1):
        new_xp -= xp_for_level(new_level + 1)
        new_level += 1

    levels_gained = new_level - level
    return XpResult(
        new_level=new_level,
        new_xp=new_xp,
        leveled_up=levels_gained > 0,
        levels_gained=levels_gained,
    )


def format_xp(amount: int) -> str:
    if amount >= 1_000_000:
        return f"{amount / 1_000_000:.1f}M"
    if amount >= 1_000:
        return f"{amount / 1_000:.1f}K"
    return str(amount)


def level_tier(level: int) -> str:
    """Display tier for a level."""
    if level >= 100:
        return "Legendary"
    if level >= 75:
        return "Master"
    if level >= 50:
        return "Expert"
    if level >= 25:
        return "Advanced"
    return "Beginner"
