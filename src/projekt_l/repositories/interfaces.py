"""Abstract repository interfaces for the progression data."""

from abc import ABC, abstractmethod
from datetime import datetime
from typing import List, Optional
from uuid import UUID

from ..db.models import (
    User,
    UserSkill,
    Experience,
    UserFactionStats,
    ActivityLog,
    UserCurrency,
    CurrencyTransaction,
    UserAchievement,
)


class BaseRepository(ABC):
    """Base repository interface with common operations."""

    @abstractmethod
    async def save(self, entity) -> None:
        """Save an entity to the repository."""
        pass

    @abstractmethod
    async def delete(self, entity) -> None:
        """Delete an entity from the repository."""
        pass

    @abstractmethod
    async def commit(self) -> None:
        """Commit the current transaction."""
        pass

    @abstractmethod
    async def rollback(self) -> None:
        """Rollback the current transaction."""
        pass


class UserRepository(BaseRepository):
    """Repository interface for User entities."""

    @abstractmethod
    async def get_by_id(self, user_id: UUID) -> Optional[User]:
        """Get a user by ID."""
        pass

    @abstractmethod
    async def get_by_email(self, email: str) -> Optional[User]:
        """Get a user by email (case-insensitive)."""
        pass

    @abstractmethod
    async def create(
        self, email: str, display_name: str, password_salt: str, password_hash: str
    ) -> User:
        """Create a new user."""
        pass


class UserSkillRepository(BaseRepository):
    """Repository interface for a user's skill levels."""

    @abstractmethod
    async def get(self, user_id: UUID, skill_id: UUID) -> Optional[UserSkill]:
        """Get the user's progress on a skill."""
        pass

    @abstractmethod
    async def get_or_create(self, user_id: UUID, skill_id: UUID) -> UserSkill:
        """Get the user's progress on a skill, creating it at level 1."""
        pass

    @abstractmethod
    async def list_for_skills(self, user_id: UUID, skill_ids: List[UUID]) -> List[UserSkill]:
        """Get the user's progress on several skills."""
        pass


class ExperienceRepository(BaseRepository):
    """Repository interface for Experience entries."""

    @abstractmethod
    async def add(self, experience: Experience) -> Experience:
        """Stage a new experience entry."""
        pass

    @abstractmethod
    async def list_for_skill(self, skill_id: UUID, limit: int = 50) -> List[Experience]:
        """Get a skill's experiences, newest first."""
        pass


class FactionStatsRepository(BaseRepository):
    """Repository interface for per-faction XP counters."""

    @abstractmethod
    async def get(self, user_id: UUID, faction_id: str) -> Optional[UserFactionStats]:
        """Get one faction's stats for a user."""
        pass

    @abstractmethod
    async def get_or_create(self, user_id: UUID, faction_id: str) -> UserFactionStats:
        """Get one faction's stats, creating a zeroed row."""
        pass

    @abstractmethod
    async def list_for_user(self, user_id: UUID) -> List[UserFactionStats]:
        """Get all faction stats for a user."""
        pass

    @abstractmethod
    async def reset_period(self, user_id: UUID, period: str) -> int:
        """Zero the weekly or monthly counters; returns rows touched."""
        pass


class ActivityLogRepository(BaseRepository):
    """Repository interface for the activity feed."""

    @abstractmethod
    async def add(self, entry: ActivityLog) -> ActivityLog:
        """Stage a new activity entry."""
        pass

    @abstractmethod
    async def list_for_user(
        self,
        user_id: UUID,
        faction_id: Optional[str] = None,
        activity_type: Optional[str] = None,
        since: Optional[datetime] = None,
        until: Optional[datetime] = None,
        limit: int = 50,
    ) -> List[ActivityLog]:
        """Get activity entries, newest first, with optional filters."""
        pass


class CurrencyRepository(BaseRepository):
    """Repository interface for wallets and currency transactions."""

    @abstractmethod
    async def get_wallet(self, user_id: UUID) -> Optional[UserCurrency]:
        """Get the user's wallet."""
        pass

    @abstractmethod
    async def get_or_create_wallet(self, user_id: UUID, starting_gold: int) -> UserCurrency:
        """Get the user's wallet, creating it with the starting gold."""
        pass

    @abstractmethod
    async def add_transaction(self, transaction: CurrencyTransaction) -> CurrencyTransaction:
        """Stage a currency transaction."""
        pass

    @abstractmethod
    async def list_transactions(
        self, user_id: UUID, transaction_type: Optional[str] = None, limit: int = 50
    ) -> List[CurrencyTransaction]:
        """Get currency transactions, newest first."""
        pass


class AchievementRepository(BaseRepository):
    """Repository interface for per-user achievement progress."""

    @abstractmethod
    async def get(self, user_id: UUID, achievement_key: str) -> Optional[UserAchievement]:
        """Get the user's progress on one achievement."""
        pass

    @abstractmethod
    async def get_or_create(self, user_id: UUID, achievement_key: str) -> UserAchievement:
        """Get the user's progress on one achievement, creating it locked."""
        pass

    @abstractmethod
    async def list_for_user(self, user_id: UUID) -> List[UserAchievement]:
        """Get all achievement progress rows for a user."""
        pass


class RepositoryContainer:
    """Container for all repository interfaces to support dependency injection."""

    def __init__(
        self,
        user_repo: UserRepository,
        user_skill_repo: UserSkillRepository,
        experience_repo: ExperienceRepository,
        faction_stats_repo: FactionStatsRepository,
        activity_repo: ActivityLogRepository,
        currency_repo: CurrencyRepository,
        achievement_repo: AchievementRepository,
    ):
        self.user = user_repo
        self.user_skill = user_skill_repo
        self.experience = experience_repo
        self.faction_stats = faction_stats_repo
        self.activity = activity_repo
        self.currency = currency_repo
        self.achievement = achievement_repo

    async def commit(self) -> None:
        await self.user.commit()

    async def rollback(self) -> None:
        await self.user.rollback()
