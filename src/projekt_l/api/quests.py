"""Quest API endpoints: CRUD, progress tracking, completion rewards and expiry."""

from dataclasses import asdict
from datetime import datetime, timezone
from typing import List, Optional
from uuid import UUID

from fastapi import APIRouter, Depends, Query, Response, status
from sqlalchemy.orm import Session

from ..auth.dependencies import get_current_user
from ..core.enums import AchievementRequirement, QuestStatus
from ..core.progression import ProgressionEngine
from ..db.database import get_db
from ..db.models import Quest, QuestAction, Skill, User
from ..domain.quests import (
    QuestExpiredError,
    QuestNotActiveError,
    apply_progress,
    check_progressable,
    is_expired,
    progress_percent,
)
from ..repositories.dependencies import get_progression_engine
from ..utils.logging_config import get_logger
from .middleware import bad_request
from .ownership import get_owned
from .schemas import (
    FactionAwardResponse,
    ProblemDetails,
    QuestCreate,
    QuestExpireResponse,
    QuestProgressRequest,
    QuestProgressResponse,
    QuestResponse,
    QuestStatsResponse,
    QuestUpdate,
    SkillResultResponse,
)

router = APIRouter(prefix="/v1/quests", tags=["quests"])
logger = get_logger("api")

OWNERSHIP_RESPONSES = {
    403: {"model": ProblemDetails, "description": "Quest belongs to another user"},
    404: {"model": ProblemDetails, "description": "Quest not found"},
}


def _reward_skills(db: Session, user: User, quest: Quest) -> List[Skill]:
    """Target skills of the quest, falling back to its single skill_id."""
    ids = [UUID(str(s)) for s in (quest.target_skill_ids or [])]
    if not ids and quest.skill_id:
        ids = [quest.skill_id]
    if not ids:
        return []
    skills = db.query(Skill).filter(Skill.user_id == user.id, Skill.id.in_(ids)).all()
    by_id = {s.id: s for s in skills}
    return [by_id[i] for i in ids if i in by_id]


@router.post(
    "",
    response_model=QuestResponse,
    status_code=status.HTTP_201_CREATED,
    responses={
        201: {"description": "Quest created"},
        422: {"model": ProblemDetails, "description": "Validation error"},
    },
)
def create_quest(
    data: QuestCreate,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> QuestResponse:
    if data.skill_id is not None:
        get_owned(db, Skill, data.skill_id, current_user, "Skill")

    values = data.model_dump()
    values["target_skill_ids"] = [str(s) for s in data.target_skill_ids]
    quest = Quest(
        user_id=current_user.id,
        status=QuestStatus.ACTIVE.value,
        completed_actions=0,
        progress=0,
        **values,
    )
    db.add(quest)
    db.commit()
    db.refresh(quest)

    logger.info(f"Created {quest.quest_type} quest {quest.id} for user {current_user.id}")
    return QuestResponse.model_validate(quest)


@router.get("", response_model=List[QuestResponse])
def list_quests(
    status_filter: str = Query("active", alias="status", description="Quest status or 'all'"),
    quest_type: Optional[str] = Query(None, alias="type"),
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> List[QuestResponse]:
    query = db.query(Quest).filter(Quest.user_id == current_user.id)
    if status_filter != "all":
        try:
            query = query.filter(Quest.status == QuestStatus(status_filter).value)
        except ValueError:
            raise bad_request(f"Unknown quest status: {status_filter}")
    if quest_type:
        query = query.filter(Quest.quest_type == quest_type)
    quests = query.order_by(Quest.created_at.desc()).all()
    return [QuestResponse.model_validate(q) for q in quests]


@router.get("/stats", response_model=QuestStatsResponse)
def get_quest_stats(
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> QuestStatsResponse:
    statuses = [q.status for q in db.query(Quest.status).filter(Quest.user_id == current_user.id)]
    return QuestStatsResponse(
        active=statuses.count(QuestStatus.ACTIVE.value),
        completed=statuses.count(QuestStatus.COMPLETED.value),
        failed=statuses.count(QuestStatus.FAILED.value),
        expired=statuses.count(QuestStatus.EXPIRED.value),
        total=len(statuses),
    )


@router.post("/expire", response_model=QuestExpireResponse)
def expire_quests(
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> QuestExpireResponse:
    """Mark every active quest whose deadline has passed as expired."""
    now = datetime.now(timezone.utc)
    candidates = (
        db.query(Quest)
        .filter(
            Quest.user_id == current_user.id,
            Quest.status == QuestStatus.ACTIVE.value,
            Quest.expires_at.isnot(None),
        )
        .all()
    )
    expired = 0
    for quest in candidates:
        if is_expired(quest.expires_at, now):
            quest.status = QuestStatus.EXPIRED.value
            expired += 1
    db.commit()

    if expired:
        logger.info(f"Expired {expired} quests for user {current_user.id}")
    return QuestExpireResponse(expired=expired)


@router.get("/{quest_id}", response_model=QuestResponse, responses=OWNERSHIP_RESPONSES)
def get_quest(
    quest_id: UUID,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> QuestResponse:
    quest = get_owned(db, Quest, quest_id, current_user, "Quest")
    return QuestResponse.model_validate(quest)


@router.patch("/{quest_id}", response_model=QuestResponse, responses=OWNERSHIP_RESPONSES)
def update_quest(
    quest_id: UUID,
    data: QuestUpdate,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> QuestResponse:
    quest = get_owned(db, Quest, quest_id, current_user, "Quest")
    updates = data.model_dump(exclude_unset=True)
    if data.target_skill_ids is not None:
        updates["target_skill_ids"] = [str(s) for s in data.target_skill_ids]

    for key, value in updates.items():
        if value is None and key in ("title", "xp_reward", "required_actions", "target_faction_ids", "target_skill_ids"):
            continue
        setattr(quest, key, value)
    if "required_actions" in updates and updates["required_actions"]:
        quest.completed_actions = min(quest.completed_actions, quest.required_actions)
        quest.progress = progress_percent(quest.completed_actions, quest.required_actions)
    db.commit()
    db.refresh(quest)

    logger.info(f"Updated quest {quest.id}")
    return QuestResponse.model_validate(quest)


@router.delete("/{quest_id}", status_code=status.HTTP_204_NO_CONTENT, responses=OWNERSHIP_RESPONSES)
def delete_quest(
    quest_id: UUID,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> Response:
    quest = get_owned(db, Quest, quest_id, current_user, "Quest")
    db.delete(quest)
    db.commit()
    logger.info(f"Deleted quest {quest_id}")
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.post(
    "/{quest_id}/progress",
    response_model=QuestProgressResponse,
    responses={
        400: {"model": ProblemDetails, "description": "Quest not active or expired"},
        **OWNERSHIP_RESPONSES,
    },
)
async def progress_quest(
    quest_id: UUID,
    data: QuestProgressRequest,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
    engine: ProgressionEngine = Depends(get_progression_engine),
) -> QuestProgressResponse:
    """
    Move a quest forward or back by one step, or complete it outright.

    Reaching the required number of actions completes the quest and pays
    its XP reward to the profile, its factions and its skills.
    """
    quest = get_owned(db, Quest, quest_id, current_user, "Quest")
    now = datetime.now(timezone.utc)

    try:
        check_progressable(quest.status, quest.expires_at, now)
    except QuestExpiredError as e:
        quest.status = QuestStatus.EXPIRED.value
        db.commit()
        logger.info(f"Quest {quest.id} expired on progress attempt")
        raise bad_request(str(e))
    except QuestNotActiveError as e:
        raise bad_request(str(e))

    outcome = apply_progress(data.action, quest.completed_actions, quest.required_actions)
    quest.completed_actions = outcome.completed_actions
    quest.progress = outcome.progress
    db.add(
        QuestAction(
            quest_id=quest.id,
            user_id=current_user.id,
            action_type=data.action,
            notes=f"{outcome.note}: {data.notes}" if data.notes else outcome.note,
            xp_gained=0,
        )
    )

    response = QuestProgressResponse(quest=QuestResponse.model_validate(quest), completed=False)
    if outcome.is_complete:
        quest.status = QuestStatus.COMPLETED.value
        quest.completed_at = now
        rewards = await engine.award_quest_completion(
            current_user, quest, _reward_skills(db, current_user, quest)
        )
        response.completed = True
        response.xp_awarded = rewards.xp_awarded
        response.faction_results = [FactionAwardResponse(**asdict(f)) for f in rewards.faction_results]
        response.skill_results = [
            SkillResultResponse(
                skill_id=s.skill_id,
                xp=s.experience.xp_gained if s.experience else 0,
                new_level=s.xp.new_level,
                leveled_up=s.xp.leveled_up,
            )
            for s in rewards.skill_results
        ]
        db.flush()
        completed_count = (
            db.query(Quest)
            .filter(Quest.user_id == current_user.id, Quest.status == QuestStatus.COMPLETED.value)
            .count()
        )
        unlocked = await engine.check_achievements(
            current_user.id, AchievementRequirement.QUEST_COUNT, completed_count
        )
        response.achievements_unlocked = [a.key for a in unlocked]

    await engine.repos.commit()
    db.refresh(quest)
    response.quest = QuestResponse.model_validate(quest)

    logger.info(f"Quest {quest.id} progress {quest.completed_actions}/{quest.required_actions}")
    return response
