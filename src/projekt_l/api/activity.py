"""Activity feed API endpoints."""

from collections import Counter
from datetime import date, datetime, time, timedelta, timezone
from typing import List, Optional

from fastapi import APIRouter, Depends, Query, status

from ..auth.dependencies import get_current_user
from ..core.enums import ActivityType
from ..core.progression import ProgressionEngine
from ..db.models import User
from ..domain.factions import migrate_faction_id
from ..repositories.dependencies import get_progression_engine
from ..utils.logging_config import get_logger
from .middleware import bad_request
from .schemas import (
    ActivityCreate,
    ActivityResponse,
    ActivitySummaryResponse,
    DailyActivityPoint,
    ProblemDetails,
)

router = APIRouter(prefix="/v1/activity", tags=["activity"])
logger = get_logger("api")

# Aggregations read at most this many entries
MAX_ENTRIES = 10000


def _day_start(day: date) -> datetime:
    return datetime.combine(day, time.min, tzinfo=timezone.utc)


@router.get("", response_model=List[ActivityResponse])
async def list_activities(
    limit: int = Query(50, ge=1, le=500),
    faction_id: Optional[str] = Query(None),
    activity_type: Optional[ActivityType] = Query(None, alias="type"),
    start: Optional[date] = Query(None, description="First day, inclusive"),
    end: Optional[date] = Query(None, description="Last day, inclusive"),
    current_user: User = Depends(get_current_user),
    engine: ProgressionEngine = Depends(get_progression_engine),
) -> List[ActivityResponse]:
    """Recent activity, newest first, optionally filtered."""
    if faction_id:
        try:
            faction_id = migrate_faction_id(faction_id).value
        except ValueError:
            raise bad_request(f"Unknown faction: {faction_id}")

    entries = await engine.repos.activity.list_for_user(
        current_user.id,
        faction_id=faction_id,
        activity_type=activity_type.value if activity_type else None,
        since=_day_start(start) if start else None,
        until=_day_start(end + timedelta(days=1)) if end else None,
        limit=limit,
    )
    return [ActivityResponse.model_validate(e) for e in entries]


@router.get("/today", response_model=List[ActivityResponse])
async def list_todays_activities(
    current_user: User = Depends(get_current_user),
    engine: ProgressionEngine = Depends(get_progression_engine),
) -> List[ActivityResponse]:
    today = datetime.now(timezone.utc).date()
    entries = await engine.repos.activity.list_for_user(
        current_user.id, since=_day_start(today), limit=MAX_ENTRIES
    )
    return [ActivityResponse.model_validate(e) for e in entries]


@router.get("/summary", response_model=ActivitySummaryResponse)
async def get_activity_summary(
    days: int = Query(7, ge=1, le=365),
    current_user: User = Depends(get_current_user),
    engine: ProgressionEngine = Depends(get_progression_engine),
) -> ActivitySummaryResponse:
    since = datetime.now(timezone.utc) - timedelta(days=days)
    entries = await engine.repos.activity.list_for_user(
        current_user.id, since=since, limit=MAX_ENTRIES
    )
    return ActivitySummaryResponse(
        days=days,
        total_activities=len(entries),
        total_xp_gained=sum(e.xp_amount for e in entries if e.xp_amount > 0),
        by_type=dict(Counter(e.activity_type for e in entries)),
        by_faction=dict(Counter(e.faction_id for e in entries if e.faction_id)),
    )


@router.get("/daily", response_model=List[DailyActivityPoint])
async def get_daily_activity(
    days: int = Query(7, ge=1, le=365),
    current_user: User = Depends(get_current_user),
    engine: ProgressionEngine = Depends(get_progression_engine),
) -> List[DailyActivityPoint]:
    """One row per day, oldest first; days without activity are zero."""
    today = datetime.now(timezone.utc).date()
    first_day = today - timedelta(days=days - 1)
    entries = await engine.repos.activity.list_for_user(
        current_user.id, since=_day_start(first_day), limit=MAX_ENTRIES
    )

    points = {
        first_day + timedelta(days=i): DailyActivityPoint(date=first_day + timedelta(days=i), count=0, xp=0)
        for i in range(days)
    }
    for entry in entries:
        point = points.get(entry.occurred_at.date())
        if point is None:
            continue
        point.count += 1
        point.xp += max(entry.xp_amount, 0)
    return list(points.values())


@router.post(
    "",
    response_model=ActivityResponse,
    status_code=status.HTTP_201_CREATED,
    responses={422: {"model": ProblemDetails, "description": "Validation error"}},
)
async def create_activity(
    data: ActivityCreate,
    current_user: User = Depends(get_current_user),
    engine: ProgressionEngine = Depends(get_progression_engine),
) -> ActivityResponse:
    entry = await engine.log_activity(
        current_user.id,
        data.activity_type,
        title=data.title,
        description=data.description,
        faction_id=data.faction_id,
        xp_amount=data.xp_amount,
        details=data.details,
    )
    await engine.repos.commit()

    logger.info(f"Manual activity {entry.id} logged for user {current_user.id}")
    return ActivityResponse.model_validate(entry)
