"""Streak insurance token API endpoints."""

from datetime import datetime, timedelta, timezone
from typing import List

from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from ..auth.dependencies import get_current_user
from ..config import get_config
from ..core.enums import ActivityType, HabitType
from ..core.progression import ProgressionEngine
from ..db.database import get_db
from ..db.models import Habit, HabitLog, StreakInsuranceToken, User
from ..repositories.dependencies import get_progression_engine
from ..utils.logging_config import get_logger
from .middleware import bad_request
from .ownership import get_owned
from .schemas import (
    ProblemDetails,
    StreakTokenResponse,
    TokenGrantRequest,
    TokenStatsResponse,
    TokenUseRequest,
    TokenUseResponse,
)

router = APIRouter(prefix="/v1/streak-insurance", tags=["streak-insurance"])
logger = get_logger("api")


def available_tokens(db: Session, user: User, now: datetime) -> List[StreakInsuranceToken]:
    """Unused, unexpired tokens, soonest expiry first."""
    return (
        db.query(StreakInsuranceToken)
        .filter(
            StreakInsuranceToken.user_id == user.id,
            StreakInsuranceToken.used_at.is_(None),
            StreakInsuranceToken.expires_at > now,
        )
        .order_by(StreakInsuranceToken.expires_at, StreakInsuranceToken.granted_at)
        .all()
    )


@router.get("", response_model=List[StreakTokenResponse])
def list_available_tokens(
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> List[StreakTokenResponse]:
    tokens = available_tokens(db, current_user, datetime.now(timezone.utc))
    return [StreakTokenResponse.model_validate(t) for t in tokens]


@router.get("/stats", response_model=TokenStatsResponse)
def get_token_stats(
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> TokenStatsResponse:
    now = datetime.now(timezone.utc)
    tokens = db.query(StreakInsuranceToken).filter(StreakInsuranceToken.user_id == current_user.id).all()
    used = sum(1 for t in tokens if t.used_at is not None)
    expired = sum(1 for t in tokens if t.used_at is None and t.expires_at <= now)
    return TokenStatsResponse(
        available=len(tokens) - used - expired,
        used=used,
        expired=expired,
        total=len(tokens),
    )


@router.post(
    "/grant",
    response_model=StreakTokenResponse,
    status_code=status.HTTP_201_CREATED,
    responses={422: {"model": ProblemDetails, "description": "Validation error"}},
)
def grant_token(
    data: TokenGrantRequest,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> StreakTokenResponse:
    now = datetime.now(timezone.utc)
    days = data.expires_in_days or get_config().app.streak_token_expiry_days
    token = StreakInsuranceToken(
        user_id=current_user.id,
        token_type=data.token_type,
        reason=data.reason,
        granted_at=now,
        expires_at=now + timedelta(days=days),
    )
    db.add(token)
    db.commit()
    db.refresh(token)

    logger.info(f"Granted {token.token_type} streak token {token.id} to user {current_user.id}")
    return StreakTokenResponse.model_validate(token)


@router.post(
    "/use",
    response_model=TokenUseResponse,
    responses={
        400: {"model": ProblemDetails, "description": "No tokens available"},
        403: {"model": ProblemDetails, "description": "Habit belongs to another user"},
        404: {"model": ProblemDetails, "description": "Habit not found"},
    },
)
async def use_token(
    data: TokenUseRequest,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
    engine: ProgressionEngine = Depends(get_progression_engine),
) -> TokenUseResponse:
    """
    Spend the token closest to expiry to protect a habit's streak.

    Positive habits keep their streak and get a protective log entry;
    negative habits are left untouched.
    """
    habit = get_owned(db, Habit, data.habit_id, current_user, "Habit")
    now = datetime.now(timezone.utc)
    tokens = available_tokens(db, current_user, now)
    if not tokens:
        raise bad_request("No tokens available")

    token = tokens[0]
    token.used_at = now
    token.used_for_habit_id = habit.id

    if habit.habit_type == HabitType.POSITIVE.value:
        db.add(
            HabitLog(
                habit_id=habit.id,
                user_id=current_user.id,
                completed=True,
                notes="Streak-Versicherung eingesetzt",
                xp_gained=0,
                logged_at=now,
            )
        )

    await engine.log_activity(
        current_user.id,
        ActivityType.STREAK_SAVED,
        title=f"🛡️ Streak gerettet: {habit.name}",
        faction_id=habit.faction_id,
        related_entity_type="habit",
        related_entity_id=habit.id,
        details={"token_id": str(token.id), "streak": habit.current_streak},
    )
    await engine.repos.commit()
    db.refresh(token)

    logger.info(f"Streak token {token.id} used for habit {habit.id}")
    return TokenUseResponse(
        token=StreakTokenResponse.model_validate(token),
        habit_id=habit.id,
        current_streak=habit.current_streak,
        message=f"Streak von {habit.name} ist geschützt ({habit.current_streak} Tage)",
    )
