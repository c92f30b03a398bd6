"""Dependency injection for repository layer."""

from fastapi import Depends
from sqlalchemy.orm import Session

from ..core.progression import ProgressionEngine
from ..db.database import get_db
from .interfaces import RepositoryContainer
from .sqlalchemy_impl import (
    SQLAlchemyUserRepository,
    SQLAlchemyUserSkillRepository,
    SQLAlchemyExperienceRepository,
    SQLAlchemyFactionStatsRepository,
    SQLAlchemyActivityLogRepository,
    SQLAlchemyCurrencyRepository,
    SQLAlchemyAchievementRepository,
)


def build_repository_container(db: Session) -> RepositoryContainer:
    """Wire every repository to one session so they share a transaction."""
    return RepositoryContainer(
        user_repo=SQLAlchemyUserRepository(db),
        user_skill_repo=SQLAlchemyUserSkillRepository(db),
        experience_repo=SQLAlchemyExperienceRepository(db),
        faction_stats_repo=SQLAlchemyFactionStatsRepository(db),
        activity_repo=SQLAlchemyActivityLogRepository(db),
        currency_repo=SQLAlchemyCurrencyRepository(db),
        achievement_repo=SQLAlchemyAchievementRepository(db),
    )


def get_repository_container(
    db: Session = Depends(get_db),
) -> RepositoryContainer:
    """
    Create and configure a repository container with SQLAlchemy implementations.

    This is the main dependency injection point for repositories.
    """
    return build_repository_container(db)


def get_progression_engine(
    repos: RepositoryContainer = Depends(get_repository_container),
) -> ProgressionEngine:
    """Get a ProgressionEngine bound to the request's repositories."""
    return ProgressionEngine(repos)
