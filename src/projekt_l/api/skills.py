"""Skill, skill XP and skill connection API endpoints."""

from collections import deque
from typing import List, Optional
from uuid import UUID

from fastapi import APIRouter, Depends, Query, Response, status
from sqlalchemy.orm import Session

from ..auth.dependencies import get_current_user
from ..core.progression import ProgressionEngine
from ..db.database import get_db
from ..db.models import Skill, SkillConnection, SkillDomain, User, UserSkill
from ..domain.xp import progress_to_next_level
from ..repositories.dependencies import get_progression_engine
from ..utils.logging_config import get_logger
from .middleware import bad_request, conflict
from .ownership import get_owned
from .schemas import (
    ConnectionCreate,
    ConnectionResponse,
    ExperienceResponse,
    ProblemDetails,
    SkillCreate,
    SkillResponse,
    SkillUpdate,
    SkillXpRequest,
    SkillXpResponse,
)

router = APIRouter(prefix="/v1/skills", tags=["skills"])
logger = get_logger("api")

OWNERSHIP_RESPONSES = {
    403: {"model": ProblemDetails, "description": "Skill belongs to another user"},
    404: {"model": ProblemDetails, "description": "Skill not found"},
}


def _user_skill(db: Session, user: User, skill_id: UUID) -> Optional[UserSkill]:
    return (
        db.query(UserSkill)
        .filter(UserSkill.user_id == user.id, UserSkill.skill_id == skill_id)
        .first()
    )


def _skill_response(skill: Skill, user_skill: Optional[UserSkill]) -> SkillResponse:
    level = user_skill.level if user_skill else 1
    current_xp = user_skill.current_xp if user_skill else 0
    return SkillResponse(
        id=skill.id,
        domain_id=skill.domain_id,
        parent_skill_id=skill.parent_skill_id,
        name=skill.name,
        icon=skill.icon,
        description=skill.description,
        level=level,
        current_xp=current_xp,
        progress=progress_to_next_level(level, current_xp),
        last_used=user_skill.last_used if user_skill else None,
        created_at=skill.created_at,
    )


def _check_parent(db: Session, user: User, skill_domain_id: UUID, parent_id: UUID) -> Skill:
    parent = get_owned(db, Skill, parent_id, user, "Parent skill")
    if parent.domain_id != skill_domain_id:
        raise bad_request("Parent skill must belong to the same domain")
    return parent


def ancestors_of(db: Session, skill: Skill) -> List[Skill]:
    """Ancestors ordered from the root down to the direct parent."""
    chain: List[Skill] = []
    seen = {skill.id}
    parent_id = skill.parent_skill_id
    while parent_id is not None and parent_id not in seen:
        parent = db.query(Skill).filter(Skill.id == parent_id).first()
        if parent is None:
            break
        chain.append(parent)
        seen.add(parent.id)
        parent_id = parent.parent_skill_id
    chain.reverse()
    return chain


def descendants_of(db: Session, skill: Skill) -> List[Skill]:
    """Descendants in breadth-first order."""
    result: List[Skill] = []
    seen = {skill.id}
    queue = deque([skill.id])
    while queue:
        current = queue.popleft()
        children = (
            db.query(Skill)
            .filter(Skill.parent_skill_id == current)
            .order_by(Skill.name)
            .all()
        )
        for child in children:
            if child.id in seen:
                continue
            seen.add(child.id)
            result.append(child)
            queue.append(child.id)
    return result


def _would_cycle(db: Session, skill: Skill, new_parent: Skill) -> bool:
    if new_parent.id == skill.id:
        return True
    return any(a.id == skill.id for a in ancestors_of(db, new_parent))


# Connections are registered before /{skill_id} so the literal path wins.


@router.post(
    "/connections",
    response_model=ConnectionResponse,
    status_code=status.HTTP_201_CREATED,
    responses={
        400: {"model": ProblemDetails, "description": "Skill connected to itself"},
        409: {"model": ProblemDetails, "description": "Connection already exists"},
        **OWNERSHIP_RESPONSES,
    },
)
def create_connection(
    data: ConnectionCreate,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> ConnectionResponse:
    if data.source_skill_id == data.target_skill_id:
        raise bad_request("A skill cannot be connected to itself")
    get_owned(db, Skill, data.source_skill_id, current_user, "Skill")
    get_owned(db, Skill, data.target_skill_id, current_user, "Skill")

    existing = (
        db.query(SkillConnection)
        .filter(
            SkillConnection.source_skill_id == data.source_skill_id,
            SkillConnection.target_skill_id == data.target_skill_id,
            SkillConnection.connection_type == data.connection_type,
        )
        .first()
    )
    if existing:
        raise conflict("This connection already exists")

    connection = SkillConnection(user_id=current_user.id, **data.model_dump())
    db.add(connection)
    db.commit()
    db.refresh(connection)

    logger.info(
        f"Connected skill {data.source_skill_id} -> {data.target_skill_id} ({data.connection_type})"
    )
    return ConnectionResponse.model_validate(connection)


@router.get("/connections", response_model=List[ConnectionResponse])
def list_connections(
    domain_id: Optional[UUID] = Query(None, description="Only connections whose source is in this domain"),
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> List[ConnectionResponse]:
    query = db.query(SkillConnection).filter(SkillConnection.user_id == current_user.id)
    if domain_id is not None:
        get_owned(db, SkillDomain, domain_id, current_user, "Domain")
        query = query.join(Skill, Skill.id == SkillConnection.source_skill_id).filter(
            Skill.domain_id == domain_id
        )
    connections = query.order_by(SkillConnection.created_at).all()
    return [ConnectionResponse.model_validate(c) for c in connections]


@router.delete(
    "/connections/{connection_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    responses={
        403: {"model": ProblemDetails, "description": "Connection belongs to another user"},
        404: {"model": ProblemDetails, "description": "Connection not found"},
    },
)
def delete_connection(
    connection_id: UUID,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> Response:
    connection = get_owned(db, SkillConnection, connection_id, current_user, "Connection")
    db.delete(connection)
    db.commit()
    logger.info(f"Deleted skill connection {connection_id}")
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.post(
    "",
    response_model=SkillResponse,
    status_code=status.HTTP_201_CREATED,
    responses={
        201: {"description": "Skill created"},
        400: {"model": ProblemDetails, "description": "Parent skill in another domain"},
        **OWNERSHIP_RESPONSES,
    },
)
def create_skill(
    data: SkillCreate,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> SkillResponse:
    get_owned(db, SkillDomain, data.domain_id, current_user, "Domain")
    if data.parent_skill_id is not None:
        _check_parent(db, current_user, data.domain_id, data.parent_skill_id)

    skill = Skill(user_id=current_user.id, **data.model_dump())
    db.add(skill)
    db.commit()
    db.refresh(skill)

    logger.info(f"Created skill {skill.id} in domain {skill.domain_id}")
    return _skill_response(skill, None)


@router.get("", response_model=List[SkillResponse])
def list_skills(
    domain_id: Optional[UUID] = Query(None),
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> List[SkillResponse]:
    query = db.query(Skill).filter(Skill.user_id == current_user.id)
    if domain_id is not None:
        query = query.filter(Skill.domain_id == domain_id)
    skills = query.order_by(Skill.name).all()

    user_skills = {}
    if skills:
        user_skills = {
            us.skill_id: us
            for us in db.query(UserSkill).filter(
                UserSkill.user_id == current_user.id,
                UserSkill.skill_id.in_([s.id for s in skills]),
            )
        }
    return [_skill_response(s, user_skills.get(s.id)) for s in skills]


@router.get("/{skill_id}", response_model=SkillResponse, responses=OWNERSHIP_RESPONSES)
def get_skill(
    skill_id: UUID,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> SkillResponse:
    skill = get_owned(db, Skill, skill_id, current_user, "Skill")
    return _skill_response(skill, _user_skill(db, current_user, skill.id))


@router.patch(
    "/{skill_id}",
    response_model=SkillResponse,
    responses={
        400: {"model": ProblemDetails, "description": "Invalid parent (cycle or other domain)"},
        **OWNERSHIP_RESPONSES,
    },
)
def update_skill(
    skill_id: UUID,
    data: SkillUpdate,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> SkillResponse:
    """Update a skill; moving it under one of its own descendants is rejected."""
    skill = get_owned(db, Skill, skill_id, current_user, "Skill")
    updates = data.model_dump(exclude_unset=True)

    if "parent_skill_id" in updates and updates["parent_skill_id"] is not None:
        parent = _check_parent(db, current_user, skill.domain_id, updates["parent_skill_id"])
        if _would_cycle(db, skill, parent):
            raise bad_request("A skill cannot be its own ancestor")

    for key, value in updates.items():
        if key == "name" and value is None:
            continue
        setattr(skill, key, value)
    db.commit()
    db.refresh(skill)

    logger.info(f"Updated skill {skill.id}")
    return _skill_response(skill, _user_skill(db, current_user, skill.id))


@router.delete("/{skill_id}", status_code=status.HTTP_204_NO_CONTENT, responses=OWNERSHIP_RESPONSES)
def delete_skill(
    skill_id: UUID,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> Response:
    """Delete a skill; its children move up to the deleted skill's parent."""
    skill = get_owned(db, Skill, skill_id, current_user, "Skill")
    children = db.query(Skill).filter(Skill.parent_skill_id == skill.id).all()
    for child in children:
        child.parent_skill_id = skill.parent_skill_id
    db.flush()

    db.delete(skill)
    db.commit()

    logger.info(f"Deleted skill {skill_id}, re-parented {len(children)} children")
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.get("/{skill_id}/descendants", response_model=List[SkillResponse], responses=OWNERSHIP_RESPONSES)
def get_descendants(
    skill_id: UUID,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> List[SkillResponse]:
    skill = get_owned(db, Skill, skill_id, current_user, "Skill")
    return [
        _skill_response(s, _user_skill(db, current_user, s.id))
        for s in descendants_of(db, skill)
    ]


@router.get("/{skill_id}/ancestors", response_model=List[SkillResponse], responses=OWNERSHIP_RESPONSES)
def get_ancestors(
    skill_id: UUID,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> List[SkillResponse]:
    skill = get_owned(db, Skill, skill_id, current_user, "Skill")
    return [
        _skill_response(s, _user_skill(db, current_user, s.id))
        for s in ancestors_of(db, skill)
    ]


@router.post(
    "/{skill_id}/xp",
    response_model=SkillXpResponse,
    responses={
        200: {"description": "XP applied"},
        422: {"model": ProblemDetails, "description": "Validation error"},
        **OWNERSHIP_RESPONSES,
    },
)
async def add_skill_xp(
    skill_id: UUID,
    data: SkillXpRequest,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
    engine: ProgressionEngine = Depends(get_progression_engine),
) -> SkillXpResponse:
    """
    Award XP to a skill.

    The XP also counts toward the user's total and toward a faction: the
    explicit faction_id if given, otherwise the faction of the skill's domain.
    """
    skill = get_owned(db, Skill, skill_id, current_user, "Skill")
    award = await engine.award_skill_xp(
        current_user,
        skill,
        data.xp,
        data.description,
        on_date=data.date,
        faction_id=data.faction_id,
    )
    await engine.repos.commit()

    return SkillXpResponse(
        skill_id=skill.id,
        new_level=award.xp.new_level,
        new_xp=award.xp.new_xp,
        leveled_up=award.xp.leveled_up,
        levels_gained=award.xp.levels_gained,
        faction_id=award.faction.faction_id if award.faction else None,
        faction_leveled_up=award.faction_leveled_up,
        total_xp=current_user.total_xp,
    )


@router.get(
    "/{skill_id}/experiences",
    response_model=List[ExperienceResponse],
    responses=OWNERSHIP_RESPONSES,
)
async def list_experiences(
    skill_id: UUID,
    limit: int = Query(50, ge=1, le=500),
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
    engine: ProgressionEngine = Depends(get_progression_engine),
) -> List[ExperienceResponse]:
    """Experience entries of a skill, newest first."""
    get_owned(db, Skill, skill_id, current_user, "Skill")
    experiences = await engine.repos.experience.list_for_skill(skill_id, limit=limit)
    return [ExperienceResponse.model_validate(e) for e in experiences]
