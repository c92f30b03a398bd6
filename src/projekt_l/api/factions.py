"""Faction API endpoints."""

from fastapi import APIRouter, Depends

from ..auth.dependencies import get_current_user
from ..core.progression import ProgressionEngine
from ..db.models import User
from ..domain.factions import migrate_faction_id
from ..repositories.dependencies import get_progression_engine
from ..utils.logging_config import get_logger
from .middleware import not_found
from .schemas import (
    FactionListResponse,
    FactionResponse,
    ProblemDetails,
    ResetPeriodRequest,
    ResetPeriodResponse,
)

router = APIRouter(prefix="/v1/factions", tags=["factions"])
logger = get_logger("api")


@router.get(
    "",
    response_model=FactionListResponse,
    responses={
        200: {"description": "All factions with the user's stats"},
        401: {"model": ProblemDetails, "description": "Not authenticated"},
    },
)
async def list_factions(
    current_user: User = Depends(get_current_user),
    engine: ProgressionEngine = Depends(get_progression_engine),
) -> FactionListResponse:
    """List the seven factions in display order, merged with the user's XP."""
    overview = await engine.faction_overview(current_user.id)
    return FactionListResponse(factions=[FactionResponse(**f) for f in overview])


@router.post(
    "/reset-periods",
    response_model=ResetPeriodResponse,
    responses={
        200: {"description": "Period counters reset"},
        422: {"model": ProblemDetails, "description": "Unknown period"},
    },
)
async def reset_periods(
    data: ResetPeriodRequest,
    current_user: User = Depends(get_current_user),
    engine: ProgressionEngine = Depends(get_progression_engine),
) -> ResetPeriodResponse:
    """Zero the weekly or monthly XP counters of every faction."""
    count = await engine.repos.faction_stats.reset_period(current_user.id, data.period)
    await engine.repos.commit()
    logger.info(f"Reset {data.period} faction XP for user {current_user.id} ({count} rows)")
    return ResetPeriodResponse(period=data.period, reset_count=count)


@router.get(
    "/{faction_id}",
    response_model=FactionResponse,
    responses={
        200: {"description": "Faction retrieved successfully"},
        404: {"model": ProblemDetails, "description": "Faction not found"},
    },
)
async def get_faction_stats(
    faction_id: str,
    current_user: User = Depends(get_current_user),
    engine: ProgressionEngine = Depends(get_progression_engine),
) -> FactionResponse:
    """Get one faction; legacy ids resolve to their current faction."""
    try:
        key = migrate_faction_id(faction_id).value
    except ValueError:
        raise not_found("Faction", faction_id)

    overview = await engine.faction_overview(current_user.id)
    entry = next(f for f in overview if f["id"] == key)
    return FactionResponse(**entry)
