"""Skill domain API endpoints."""

from typing import Dict, List, Optional
from uuid import UUID

from fastapi import APIRouter, Depends, Response, status
from sqlalchemy.orm import Session

from ..auth.dependencies import get_current_user
from ..core.progression import ProgressionEngine
from ..db.database import get_db
from ..db.models import Skill, SkillDomain, User, UserSkill
from ..domain.xp import progress_to_next_level
from ..repositories.dependencies import get_progression_engine
from ..utils.logging_config import get_logger
from .middleware import conflict
from .ownership import get_owned
from .schemas import (
    DomainCreate,
    DomainResponse,
    DomainTreeResponse,
    DomainUpdate,
    ProblemDetails,
    SkillTreeNode,
)

router = APIRouter(prefix="/v1/domains", tags=["skills"])
logger = get_logger("api")


def _ensure_unique_name(db: Session, user: User, name: str, exclude_id: Optional[UUID] = None) -> None:
    query = db.query(SkillDomain).filter(
        SkillDomain.user_id == user.id, SkillDomain.name == name
    )
    if exclude_id is not None:
        query = query.filter(SkillDomain.id != exclude_id)
    if query.first():
        raise conflict(f"Domain '{name}' already exists")


def build_skill_tree(
    skills: List[Skill], user_skills: Dict[UUID, UserSkill]
) -> List[SkillTreeNode]:
    """Nest skills under their parents; orphans whose parent is missing become roots."""
    nodes: Dict[UUID, SkillTreeNode] = {}
    for skill in skills:
        us = user_skills.get(skill.id)
        level = us.level if us else 1
        current_xp = us.current_xp if us else 0
        nodes[skill.id] = SkillTreeNode(
            id=skill.id,
            name=skill.name,
            icon=skill.icon,
            description=skill.description,
            parent_skill_id=skill.parent_skill_id,
            level=level,
            current_xp=current_xp,
            progress=progress_to_next_level(level, current_xp),
        )

    roots = []
    for skill in skills:
        node = nodes[skill.id]
        parent = nodes.get(skill.parent_skill_id) if skill.parent_skill_id else None
        if parent is None:
            roots.append(node)
        else:
            parent.children.append(node)
    return roots


@router.post(
    "",
    response_model=DomainResponse,
    status_code=status.HTTP_201_CREATED,
    responses={
        201: {"description": "Domain created"},
        409: {"model": ProblemDetails, "description": "Domain name already used"},
        422: {"model": ProblemDetails, "description": "Validation error"},
    },
)
def create_domain(
    data: DomainCreate,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> DomainResponse:
    _ensure_unique_name(db, current_user, data.name)
    domain = SkillDomain(user_id=current_user.id, **data.model_dump())
    db.add(domain)
    db.commit()
    db.refresh(domain)

    logger.info(f"Created domain {domain.id} for user {current_user.id}")
    return DomainResponse.model_validate(domain)


@router.get("", response_model=List[DomainResponse])
def list_domains(
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> List[DomainResponse]:
    domains = (
        db.query(SkillDomain)
        .filter(SkillDomain.user_id == current_user.id)
        .order_by(SkillDomain.name)
        .all()
    )
    return [DomainResponse.model_validate(d) for d in domains]


@router.get(
    "/{domain_id}",
    response_model=DomainResponse,
    responses={
        403: {"model": ProblemDetails, "description": "Domain belongs to another user"},
        404: {"model": ProblemDetails, "description": "Domain not found"},
    },
)
def get_domain(
    domain_id: UUID,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> DomainResponse:
    domain = get_owned(db, SkillDomain, domain_id, current_user, "Domain")
    return DomainResponse.model_validate(domain)


@router.patch(
    "/{domain_id}",
    response_model=DomainResponse,
    responses={
        403: {"model": ProblemDetails, "description": "Domain belongs to another user"},
        404: {"model": ProblemDetails, "description": "Domain not found"},
        409: {"model": ProblemDetails, "description": "Domain name already used"},
    },
)
def update_domain(
    domain_id: UUID,
    data: DomainUpdate,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> DomainResponse:
    domain = get_owned(db, SkillDomain, domain_id, current_user, "Domain")
    updates = data.model_dump(exclude_unset=True)
    if updates.get("name"):
        _ensure_unique_name(db, current_user, updates["name"], exclude_id=domain.id)

    for key, value in updates.items():
        if key == "name" and value is None:
            continue
        setattr(domain, key, value)
    db.commit()
    db.refresh(domain)

    logger.info(f"Updated domain {domain.id}")
    return DomainResponse.model_validate(domain)


@router.delete(
    "/{domain_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    responses={
        403: {"model": ProblemDetails, "description": "Domain belongs to another user"},
        404: {"model": ProblemDetails, "description": "Domain not found"},
    },
)
def delete_domain(
    domain_id: UUID,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> Response:
    """Delete a domain together with its skills and graph views."""
    domain = get_owned(db, SkillDomain, domain_id, current_user, "Domain")
    db.delete(domain)
    db.commit()

    logger.info(f"Deleted domain {domain_id}")
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.get(
    "/{domain_id}/tree",
    response_model=DomainTreeResponse,
    responses={
        403: {"model": ProblemDetails, "description": "Domain belongs to another user"},
        404: {"model": ProblemDetails, "description": "Domain not found"},
    },
)
async def get_domain_tree(
    domain_id: UUID,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
    engine: ProgressionEngine = Depends(get_progression_engine),
) -> DomainTreeResponse:
    """Skills of the domain nested by parent, with the user's level and XP."""
    domain = get_owned(db, SkillDomain, domain_id, current_user, "Domain")
    skills = (
        db.query(Skill)
        .filter(Skill.domain_id == domain.id, Skill.user_id == current_user.id)
        .order_by(Skill.name)
        .all()
    )
    user_skills = {
        us.skill_id: us
        for us in await engine.repos.user_skill.list_for_skills(
            current_user.id, [s.id for s in skills]
        )
    }

    return DomainTreeResponse(
        domain=DomainResponse.model_validate(domain),
        skills=build_skill_tree(skills, user_skills),
    )
