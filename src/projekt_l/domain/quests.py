"""Pure quest progress rules."""

from dataclasses import dataclass
from datetime import datetime
from typing import Optional

from ..core.enums import QuestProgressAction, QuestStatus
from .xp import round_half_up


class QuestNotActiveError(ValueError):
    """Progress was requested on a quest that is no longer active."""


class QuestExpiredError(ValueError):
    """The quest ran past its expires_at timestamp."""


@dataclass(frozen=True)
class QuestProgress:
    completed_actions: int
    progress: int
    is_complete: bool
    note: str


def progress_percent(completed: int, required: int) -> int:
    if required <= 0:
        return 100
    return max(0, min(100, round_half_up(completed / required * 100)))


def is_expired(expires_at: Optional[datetime], now: datetime) -> bool:
    return expires_at is not None and expires_at < now


def check_progressable(status: str, expires_at: Optional[datetime], now: datetime) -> None:
    """
    Raises:
        QuestNotActiveError: If the quest is completed, failed or expired
        QuestExpiredError: If the quest is active but past its deadline
    """
    if QuestStatus(status) != QuestStatus.ACTIVE:
        raise QuestNotActiveError("Quest is not active")
    if is_expired(expires_at, now):
        raise QuestExpiredError("Quest has expired")


def apply_progress(action: str, completed: int, required: int) -> QuestProgress:
    """Move a quest's step counter and derive its percentage."""
    required = max(1, required)
    action = QuestProgressAction(action)

    if action == QuestProgressAction.INCREMENT:
        new_completed = min(required, completed + 1)
    elif action == QuestProgressAction.DECREMENT:
        new_completed = max(0, completed - 1)
    else:
        new_completed = required

    return QuestProgress(
        completed_actions=new_completed,
        progress=progress_percent(new_completed, required),
        is_complete=new_completed >= required,
        note=f"Schritt {new_completed} von {required}",
    )
