"""Habit API endpoints: CRUD, completion, relapse/resist and statistics."""

from dataclasses import asdict
from datetime import datetime, timedelta, timezone
from typing import List, Optional, Sequence, Tuple
from uuid import UUID

from fastapi import APIRouter, Depends, Query, Response, status
from sqlalchemy.orm import Session

from ..auth.dependencies import get_current_user
from ..core.enums import AchievementRequirement, ActivityType, FactionId, HabitType
from ..core.progression import FactionAward, ProgressionEngine
from ..db.database import get_db
from ..db.models import Habit, HabitFaction, HabitLog, User
from ..domain.factions import distribute_xp, primary_faction
from ..domain.habits import (
    complete_positive,
    completion_rate,
    completion_title,
    relapse,
    resist,
    validate_schedule,
)
from ..repositories.dependencies import get_progression_engine
from ..utils.logging_config import get_logger
from .middleware import bad_request
from .ownership import get_owned
from .schemas import (
    FactionAwardResponse,
    HabitCompleteRequest,
    HabitCompleteResponse,
    HabitCreate,
    HabitLogResponse,
    HabitLogsResponse,
    HabitNotesRequest,
    HabitRelapseResponse,
    HabitResistResponse,
    HabitResponse,
    HabitStatsResponse,
    HabitUpdate,
    ProblemDetails,
)

router = APIRouter(prefix="/v1/habits", tags=["habits"])
logger = get_logger("api")

OWNERSHIP_RESPONSES = {
    403: {"model": ProblemDetails, "description": "Habit belongs to another user"},
    404: {"model": ProblemDetails, "description": "Habit not found"},
}


def _today():
    return datetime.now(timezone.utc).date()


def _weights(habit: Habit) -> List[Tuple[str, int]]:
    return [(f.faction_id, f.weight) for f in habit.factions]


def _replace_factions(db: Session, habit: Habit, factions: Sequence) -> None:
    """Swap the weighted faction rows; old rows are flushed away first."""
    habit.factions = []
    db.flush()
    habit.factions = [HabitFaction(faction_id=f.faction_id, weight=f.weight) for f in factions]
    weights = [(f.faction_id, f.weight) for f in factions]
    if weights:
        habit.faction_id = primary_faction(weights)


def _award_responses(awards: List[FactionAward]) -> List[FactionAwardResponse]:
    return [FactionAwardResponse(**asdict(award)) for award in awards]


async def _check_habit_achievements(
    db: Session, engine: ProgressionEngine, user_id: UUID, *requirements: AchievementRequirement
) -> List[str]:
    """Feed the current habit counters into the achievement tracker."""
    db.flush()
    habits = db.query(Habit).filter(Habit.user_id == user_id).all()
    counters = {
        AchievementRequirement.HABIT_COUNT: sum(1 for h in habits if h.is_active),
        AchievementRequirement.HABIT_STREAK: max((h.longest_streak or 0 for h in habits), default=0),
        AchievementRequirement.RESISTANCE_COUNT: sum(h.resistance_count or 0 for h in habits),
    }
    unlocked = []
    for requirement in requirements:
        unlocked += await engine.check_achievements(user_id, requirement, counters[requirement])
    return [a.key for a in unlocked]


@router.get("/stats", response_model=HabitStatsResponse)
def get_habit_stats(
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> HabitStatsResponse:
    habits = db.query(Habit).filter(Habit.user_id == current_user.id).all()
    active = [h for h in habits if h.is_active]

    start_of_day = datetime.combine(_today(), datetime.min.time(), tzinfo=timezone.utc)
    completed_today = (
        db.query(HabitLog.habit_id)
        .filter(
            HabitLog.user_id == current_user.id,
            HabitLog.completed.is_(True),
            HabitLog.logged_at >= start_of_day,
        )
        .distinct()
        .count()
    )

    return HabitStatsResponse(
        total_habits=len(habits),
        active_habits=len(active),
        completed_today=completed_today,
        total_streaks=sum(h.current_streak for h in active),
        longest_streak=max((h.longest_streak for h in habits), default=0),
        total_completions=sum(h.total_completions for h in habits),
    )


@router.post(
    "",
    response_model=HabitResponse,
    status_code=status.HTTP_201_CREATED,
    responses={
        201: {"description": "Habit created"},
        422: {"model": ProblemDetails, "description": "Validation error"},
    },
)
async def create_habit(
    data: HabitCreate,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
    engine: ProgressionEngine = Depends(get_progression_engine),
) -> HabitResponse:
    """
    Create a habit.

    Negative habits start their clean streak today. When weighted factions
    are given, the heaviest one becomes the primary faction_id.
    """
    values = data.model_dump(exclude={"factions"})
    habit = Habit(user_id=current_user.id, **values)
    if data.habit_type == HabitType.NEGATIVE.value:
        habit.streak_start_date = _today()
    db.add(habit)
    if data.factions:
        _replace_factions(db, habit, data.factions)
    await _check_habit_achievements(db, engine, current_user.id, AchievementRequirement.HABIT_COUNT)
    await engine.repos.commit()
    db.refresh(habit)

    logger.info(f"Created {habit.habit_type} habit {habit.id} for user {current_user.id}")
    return HabitResponse.model_validate(habit)


@router.get("", response_model=List[HabitResponse])
def list_habits(
    include_inactive: bool = Query(False),
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> List[HabitResponse]:
    query = db.query(Habit).filter(Habit.user_id == current_user.id)
    if not include_inactive:
        query = query.filter(Habit.is_active.is_(True))
    habits = query.order_by(Habit.created_at).all()
    return [HabitResponse.model_validate(h) for h in habits]


@router.get("/{habit_id}", response_model=HabitResponse, responses=OWNERSHIP_RESPONSES)
def get_habit(
    habit_id: UUID,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> HabitResponse:
    habit = get_owned(db, Habit, habit_id, current_user, "Habit")
    return HabitResponse.model_validate(habit)


@router.patch(
    "/{habit_id}",
    response_model=HabitResponse,
    responses={
        400: {"model": ProblemDetails, "description": "Invalid schedule"},
        **OWNERSHIP_RESPONSES,
    },
)
def update_habit(
    habit_id: UUID,
    data: HabitUpdate,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> HabitResponse:
    habit = get_owned(db, Habit, habit_id, current_user, "Habit")
    updates = data.model_dump(exclude_unset=True, exclude={"factions"})

    try:
        validate_schedule(
            updates.get("frequency") or habit.frequency,
            updates["target_days"] if "target_days" in updates else habit.target_days,
        )
    except ValueError as e:
        raise bad_request(str(e))

    for key, value in updates.items():
        if value is None and key not in ("description", "faction_id"):
            continue
        setattr(habit, key, value)
    if data.factions is not None:
        _replace_factions(db, habit, data.factions)
    db.commit()
    db.refresh(habit)

    logger.info(f"Updated habit {habit.id}")
    return HabitResponse.model_validate(habit)


@router.delete("/{habit_id}", status_code=status.HTTP_204_NO_CONTENT, responses=OWNERSHIP_RESPONSES)
def delete_habit(
    habit_id: UUID,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> Response:
    """Soft delete: the habit is deactivated and keeps its history."""
    habit = get_owned(db, Habit, habit_id, current_user, "Habit")
    habit.is_active = False
    db.commit()
    logger.info(f"Deactivated habit {habit_id}")
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.post("/{habit_id}/complete", response_model=HabitCompleteResponse, responses=OWNERSHIP_RESPONSES)
async def complete_habit(
    habit_id: UUID,
    data: HabitCompleteRequest,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
    engine: ProgressionEngine = Depends(get_progression_engine),
) -> HabitCompleteResponse:
    """
    Log a habit check-in.

    A completed positive habit extends its streak and pays
    xp_per_completion plus the weekly streak bonus, spread over its factions.
    Every other check-in is only logged.
    """
    habit = get_owned(db, Habit, habit_id, current_user, "Habit")

    xp_gained = 0
    bonus_xp = 0
    awards: List[FactionAward] = []
    if data.completed and habit.habit_type == HabitType.POSITIVE.value:
        outcome = complete_positive(
            habit.current_streak, habit.longest_streak, habit.total_completions, habit.xp_per_completion
        )
        habit.current_streak = outcome.current_streak
        habit.longest_streak = outcome.longest_streak
        habit.total_completions = outcome.total_completions
        xp_gained = outcome.xp_gained
        bonus_xp = outcome.bonus_xp

        parts = distribute_xp(xp_gained, habit.faction_id, _weights(habit))
        awards = await engine.award_faction_parts(current_user.id, parts)
        await engine.add_profile_xp(current_user, xp_gained)
        await engine.log_activity(
            current_user.id,
            ActivityType.HABIT_COMPLETED,
            title=completion_title(habit.icon, habit.name, habit.current_streak, bonus_xp),
            faction_id=habit.faction_id,
            xp_amount=xp_gained,
            related_entity_type="habit",
            related_entity_id=habit.id,
            details={"streak": habit.current_streak, "bonus_xp": bonus_xp},
        )

    db.add(
        HabitLog(
            habit_id=habit.id,
            user_id=current_user.id,
            completed=data.completed,
            notes=data.notes,
            xp_gained=xp_gained,
        )
    )
    unlocked = await _check_habit_achievements(
        db, engine, current_user.id, AchievementRequirement.HABIT_STREAK
    )
    await engine.repos.commit()
    db.refresh(habit)

    logger.info(f"Habit {habit.id} check-in (completed={data.completed}, +{xp_gained} XP)")
    return HabitCompleteResponse(
        habit=HabitResponse.model_validate(habit),
        xp_gained=xp_gained,
        bonus_xp=bonus_xp,
        faction_results=_award_responses(awards),
        achievements_unlocked=unlocked,
    )


@router.post(
    "/{habit_id}/relapse",
    response_model=HabitRelapseResponse,
    responses={
        400: {"model": ProblemDetails, "description": "Habit is not negative"},
        **OWNERSHIP_RESPONSES,
    },
)
async def relapse_habit(
    habit_id: UUID,
    data: HabitNotesRequest,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
    engine: ProgressionEngine = Depends(get_progression_engine),
) -> HabitRelapseResponse:
    """Record a relapse of a negative habit and restart its clean streak."""
    habit = get_owned(db, Habit, habit_id, current_user, "Habit")
    if habit.habit_type != HabitType.NEGATIVE.value:
        raise bad_request("Only negative habits can relapse")

    today = _today()
    outcome = relapse(habit.icon, habit.name, habit.streak_start_date, today, data.notes)
    habit.streak_start_date = today
    habit.current_streak = 0
    habit.total_completions = (habit.total_completions or 0) + 1

    db.add(
        HabitLog(
            habit_id=habit.id,
            user_id=current_user.id,
            completed=False,
            notes=outcome.note,
            xp_gained=0,
        )
    )
    penalty = distribute_xp(-habit.xp_per_completion, habit.faction_id, _weights(habit))
    await engine.award_faction_parts(current_user.id, penalty)
    await engine.log_activity(
        current_user.id,
        ActivityType.HABIT_RELAPSE,
        title=outcome.title,
        description=outcome.note,
        faction_id=habit.faction_id,
        related_entity_type="habit",
        related_entity_id=habit.id,
        details={"previous_streak": outcome.previous_streak},
    )
    await engine.repos.commit()
    db.refresh(habit)

    logger.info(f"Habit {habit.id} relapse after {outcome.previous_streak} days")
    return HabitRelapseResponse(
        habit=HabitResponse.model_validate(habit),
        previous_streak=outcome.previous_streak,
        message=outcome.message,
    )


@router.post(
    "/{habit_id}/resist",
    response_model=HabitResistResponse,
    responses={
        400: {"model": ProblemDetails, "description": "Habit is not negative"},
        **OWNERSHIP_RESPONSES,
    },
)
async def resist_habit(
    habit_id: UUID,
    data: Optional[HabitNotesRequest] = None,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
    engine: ProgressionEngine = Depends(get_progression_engine),
) -> HabitResistResponse:
    """Confirm another clean day; only the first confirmation per day pays XP."""
    habit = get_owned(db, Habit, habit_id, current_user, "Habit")
    if habit.habit_type != HabitType.NEGATIVE.value:
        raise bad_request("Only negative habits can be resisted")

    today = _today()
    outcome = resist(
        habit.name,
        habit.streak_start_date,
        habit.last_resistance_at,
        habit.longest_streak,
        habit.resistance_count,
        today,
    )
    habit.current_streak = outcome.current_streak
    habit.longest_streak = outcome.longest_streak

    if not outcome.already_confirmed_today:
        habit.resistance_count = outcome.resistance_count
        habit.last_resistance_at = today
        faction = habit.faction_id or FactionId.GEIST.value
        await engine.update_faction_stats(current_user.id, faction, outcome.xp_gained)
        await engine.log_activity(
            current_user.id,
            ActivityType.HABIT_COMPLETED,
            title=f"{habit.icon} {habit.name} widerstanden",
            description=data.notes if data else None,
            faction_id=faction,
            xp_amount=outcome.xp_gained,
            related_entity_type="habit",
            related_entity_id=habit.id,
            details={"streak": outcome.current_streak, "resisted": True},
        )
    unlocked = await _check_habit_achievements(
        db,
        engine,
        current_user.id,
        AchievementRequirement.RESISTANCE_COUNT,
        AchievementRequirement.HABIT_STREAK,
    )
    await engine.repos.commit()
    db.refresh(habit)

    logger.info(
        f"Habit {habit.id} resisted (streak {outcome.current_streak}, +{outcome.xp_gained} XP)"
    )
    return HabitResistResponse(
        habit=HabitResponse.model_validate(habit),
        current_streak=outcome.current_streak,
        xp_gained=outcome.xp_gained,
        already_confirmed_today=outcome.already_confirmed_today,
        message=outcome.message,
        achievements_unlocked=unlocked,
    )


@router.get("/{habit_id}/logs", response_model=HabitLogsResponse, responses=OWNERSHIP_RESPONSES)
def get_habit_logs(
    habit_id: UUID,
    days: int = Query(30, ge=1, le=365),
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> HabitLogsResponse:
    """Logs of the last N days and the share of those days with a completion."""
    habit = get_owned(db, Habit, habit_id, current_user, "Habit")
    since = datetime.now(timezone.utc) - timedelta(days=days)
    logs = (
        db.query(HabitLog)
        .filter(HabitLog.habit_id == habit.id, HabitLog.logged_at >= since)
        .order_by(HabitLog.logged_at.desc())
        .all()
    )
    rate = completion_rate((log.logged_at.date() for log in logs if log.completed), days)
    return HabitLogsResponse(
        logs=[HabitLogResponse.model_validate(log) for log in logs],
        days=days,
        completion_rate=rate,
    )
