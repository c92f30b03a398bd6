"""Achievement API endpoints: catalog with progress and unlock statistics."""

from collections import Counter
from typing import List, Optional

from fastapi import APIRouter, Depends, Query

from ..auth.dependencies import get_current_user
from ..core.progression import ProgressionEngine
from ..db.models import User
from ..domain.achievements import (
    ACHIEVEMENTS,
    AchievementState,
    get_achievement,
    next_to_unlock,
    recent_unlocks,
)
from ..repositories.dependencies import get_progression_engine
from .middleware import not_found
from .schemas import AchievementResponse, AchievementStatsResponse, ProblemDetails

router = APIRouter(prefix="/v1/achievements", tags=["achievements"])


async def _states(engine: ProgressionEngine, user_id) -> List[AchievementState]:
    rows = {r.achievement_key: r for r in await engine.repos.achievement.list_for_user(user_id)}
    states = []
    for definition in ACHIEVEMENTS:
        row = rows.get(definition.key)
        if row is None:
            states.append(AchievementState(definition))
        else:
            states.append(
                AchievementState(definition, row.current_progress, row.is_unlocked, row.unlocked_at)
            )
    return states


def _response(state: AchievementState) -> AchievementResponse:
    d = state.definition
    return AchievementResponse(
        key=d.key,
        name=d.name,
        description=d.description,
        icon=d.icon,
        category=d.category,
        rarity=d.rarity.value,
        faction_id=d.faction_id.value if d.faction_id else None,
        xp_reward=d.xp_reward,
        requirement_type=d.requirement_type.value,
        requirement_value=d.requirement_value,
        current_progress=state.current_progress,
        is_unlocked=state.is_unlocked,
        unlocked_at=state.unlocked_at,
        progress_percent=state.percent,
    )


@router.get("", response_model=List[AchievementResponse])
async def list_achievements(
    category: Optional[str] = Query(None, max_length=30),
    current_user: User = Depends(get_current_user),
    engine: ProgressionEngine = Depends(get_progression_engine),
) -> List[AchievementResponse]:
    """The full catalog in display order, merged with the user's progress."""
    states = await _states(engine, current_user.id)
    if category:
        states = [s for s in states if s.definition.category == category]
    return [_response(s) for s in states]


@router.get("/stats", response_model=AchievementStatsResponse)
async def get_achievement_stats(
    current_user: User = Depends(get_current_user),
    engine: ProgressionEngine = Depends(get_progression_engine),
) -> AchievementStatsResponse:
    states = await _states(engine, current_user.id)
    unlocked = [s for s in states if s.is_unlocked]
    return AchievementStatsResponse(
        total=len(states),
        unlocked=len(unlocked),
        completion_percent=round(len(unlocked) / len(states) * 100, 1) if states else 0.0,
        xp_earned=sum(s.definition.xp_reward for s in unlocked),
        by_rarity=dict(Counter(s.definition.rarity.value for s in unlocked)),
        recent_unlocks=[_response(s) for s in recent_unlocks(states)],
        next_to_unlock=[_response(s) for s in next_to_unlock(states)],
    )


@router.get(
    "/{key}",
    response_model=AchievementResponse,
    responses={404: {"model": ProblemDetails, "description": "Unknown achievement"}},
)
async def get_achievement_detail(
    key: str,
    current_user: User = Depends(get_current_user),
    engine: ProgressionEngine = Depends(get_progression_engine),
) -> AchievementResponse:
    if get_achievement(key) is None:
        raise not_found("Achievement", key)
    states = await _states(engine, current_user.id)
    return _response(next(s for s in states if s.definition.key == key))
