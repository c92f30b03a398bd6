"""
Pure habit streak rules.

Positive habits build a streak by completion. Negative habits count clean
days since streak_start_date; a relapse restarts the count and a daily
"resist" confirmation earns a small bonus.
"""

from dataclasses import dataclass
from datetime import date
from typing import Iterable, Optional

from ..core.enums import HabitFrequency

STREAK_BONUS_EVERY_DAYS = 7
STREAK_BONUS_XP = 5
RESIST_XP = 10


def streak_bonus(streak: int) -> int:
    """Bonus XP for long streaks: +5 per full week once a week is reached."""
    if streak < STREAK_BONUS_EVERY_DAYS:
        return 0
    return (streak // STREAK_BONUS_EVERY_DAYS) * STREAK_BONUS_XP


def days_since(start: Optional[date], today: date) -> int:
    """Whole days between start and today, never negative."""
    if start is None:
        return 0
    return max(0, (today - start).days)


@dataclass(frozen=True)
class CompletionOutcome:
    """Counter values and XP after logging a habit completion."""

    current_streak: int
    longest_streak: int
    total_completions: int
    xp_gained: int
    bonus_xp: int


def complete_positive(
    current_streak: int,
    longest_streak: int,
    total_completions: int,
    base_xp: int,
) -> CompletionOutcome:
    """Apply a successful completion of a positive habit."""
    new_streak = current_streak + 1
    bonus = streak_bonus(new_streak)
    return CompletionOutcome(
        current_streak=new_streak,
        longest_streak=max(longest_streak, new_streak),
        total_completions=total_completions + 1,
        xp_gained=base_xp + bonus,
        bonus_xp=bonus,
    )


def completion_title(icon: str, name: str, streak: int, bonus: int) -> str:
    title = f"{icon} {name} erledigt"
    if bonus > 0:
        title += f" ({streak} Tage Streak! +{bonus} Bonus)"
    return title


@dataclass(frozen=True)
class RelapseOutcome:
    previous_streak: int
    note: str
    title: str
    message: str


def relapse(
    icon: str, name: str, streak_start: Optional[date], today: date, notes: Optional[str] = None
) -> RelapseOutcome:
    """Describe a relapse of a negative habit."""
    previous = days_since(streak_start, today)
    if previous > 0:
        title = f"{icon} {name} - Rückfall nach {previous} Tagen"
        message = f"Du hattest {previous} Tage geschafft. Dein neuer Streak startet jetzt!"
    else:
        title = f"{icon} {name} - Rückfall geloggt"
        message = "Dein Streak startet jetzt neu. Du schaffst das!"
    return RelapseOutcome(
        previous_streak=previous,
        note=notes or f"Rückfall nach {previous} Tagen",
        title=title,
        message=message,
    )


@dataclass(frozen=True)
class ResistOutcome:
    current_streak: int
    longest_streak: int
    resistance_count: int
    xp_gained: int
    already_confirmed_today: bool
    message: str


def resist(
    name: str,
    streak_start: Optional[date],
    last_resistance_at: Optional[date],
    longest_streak: int,
    resistance_count: int,
    today: date,
) -> ResistOutcome:
    """Confirm a clean day for a negative habit; only the first one per day pays."""
    streak = days_since(streak_start, today)
    if last_resistance_at == today:
        return ResistOutcome(
            current_streak=streak,
            longest_streak=max(longest_streak, streak),
            resistance_count=resistance_count,
            xp_gained=0,
            already_confirmed_today=True,
            message=f"Du hast heute bereits bestätigt. Aktueller Streak: {streak} Tage",
        )
    return ResistOutcome(
        current_streak=streak,
        longest_streak=max(longest_streak, streak),
        resistance_count=resistance_count + 1,
        xp_gained=RESIST_XP,
        already_confirmed_today=False,
        message=f"Super! Tag {streak} ohne {name}! +{RESIST_XP} XP",
    )


def completion_rate(completed_days: Iterable[date], days: int) -> float:
    """Distinct completed days in the window as a percentage (1 decimal)."""
    if days <= 0:
        return 0.0
    distinct = len(set(completed_days))
    return round(distinct / days * 100, 1)


def validate_schedule(frequency: str, target_days: Optional[list]) -> None:
    """
    Raises:
        ValueError: If specific_days is chosen without any target day
    """
    if HabitFrequency(frequency) == HabitFrequency.SPECIFIC_DAYS and not target_days:
        raise ValueError("target_days must not be empty for specific_days habits")
