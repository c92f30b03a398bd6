"""SQLAlchemy concrete implementations of repository interfaces."""

from datetime import datetime
from typing import List, Optional
from uuid import UUID

from sqlalchemy import func, desc
from sqlalchemy.orm import Session

from .interfaces import (
    UserRepository,
    UserSkillRepository,
    ExperienceRepository,
    FactionStatsRepository,
    ActivityLogRepository,
    CurrencyRepository,
    AchievementRepository,
)
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


class BaseSQLAlchemyRepository:
    """Base SQLAlchemy repository implementation."""

    def __init__(self, session: Session):
        self._session = session

    async def save(self, entity) -> None:
        """Save an entity to the repository."""
        self._session.add(entity)

    async def delete(self, entity) -> None:
        """Delete an entity from the repository."""
        self._session.delete(entity)

    async def commit(self) -> None:
        """Commit the current transaction."""
        self._session.commit()

    async def rollback(self) -> None:
        """Rollback the current transaction."""
        self._session.rollback()


class SQLAlchemyUserRepository(BaseSQLAlchemyRepository, UserRepository):
    """SQLAlchemy implementation of UserRepository."""

    async def get_by_id(self, user_id: UUID) -> Optional[User]:
        return self._session.query(User).filter(User.id == user_id).first()

    async def get_by_email(self, email: str) -> Optional[User]:
        return (
            self._session.query(User)
            .filter(func.lower(User.email) == email.lower())
            .first()
        )

    async def create(
        self, email: str, display_name: str, password_salt: str, password_hash: str
    ) -> User:
        user = User(
            email=email.lower(),
            display_name=display_name,
            password_salt=password_salt,
            password_hash=password_hash,
            total_xp=0,
        )
        await self.save(user)
        self._session.flush()
        return user


class SQLAlchemyUserSkillRepository(BaseSQLAlchemyRepository, UserSkillRepository):
    """SQLAlchemy implementation of UserSkillRepository."""

    async def get(self, user_id: UUID, skill_id: UUID) -> Optional[UserSkill]:
        return (
            self._session.query(UserSkill)
            .filter(UserSkill.user_id == user_id, UserSkill.skill_id == skill_id)
            .first()
        )

    async def get_or_create(self, user_id: UUID, skill_id: UUID) -> UserSkill:
        user_skill = await self.get(user_id, skill_id)
        if user_skill is None:
            user_skill = UserSkill(user_id=user_id, skill_id=skill_id, level=1, current_xp=0)
            await self.save(user_skill)
            self._session.flush()
        return user_skill

    async def list_for_skills(self, user_id: UUID, skill_ids: List[UUID]) -> List[UserSkill]:
        if not skill_ids:
            return []
        return (
            self._session.query(UserSkill)
            .filter(UserSkill.user_id == user_id, UserSkill.skill_id.in_(skill_ids))
            .all()
        )


class SQLAlchemyExperienceRepository(BaseSQLAlchemyRepository, ExperienceRepository):
    """SQLAlchemy implementation of ExperienceRepository."""

    async def add(self, experience: Experience) -> Experience:
        await self.save(experience)
        return experience

    async def list_for_skill(self, skill_id: UUID, limit: int = 50) -> List[Experience]:
        return (
            self._session.query(Experience)
            .filter(Experience.skill_id == skill_id)
            .order_by(desc(Experience.created_at))
            .limit(limit)
            .all()
        )


class SQLAlchemyFactionStatsRepository(BaseSQLAlchemyRepository, FactionStatsRepository):
    """SQLAlchemy implementation of FactionStatsRepository."""

    async def get(self, user_id: UUID, faction_id: str) -> Optional[UserFactionStats]:
        return (
            self._session.query(UserFactionStats)
            .filter(
                UserFactionStats.user_id == user_id,
                UserFactionStats.faction_id == faction_id,
            )
            .first()
        )

    async def get_or_create(self, user_id: UUID, faction_id: str) -> UserFactionStats:
        stats = await self.get(user_id, faction_id)
        if stats is None:
            stats = UserFactionStats(
                user_id=user_id,
                faction_id=faction_id,
                total_xp=0,
                weekly_xp=0,
                monthly_xp=0,
                level=1,
            )
            await self.save(stats)
            self._session.flush()
        return stats

    async def list_for_user(self, user_id: UUID) -> List[UserFactionStats]:
        return (
            self._session.query(UserFactionStats)
            .filter(UserFactionStats.user_id == user_id)
            .all()
        )

    async def reset_period(self, user_id: UUID, period: str) -> int:
        column = {"weekly": "weekly_xp", "monthly": "monthly_xp"}[period]
        return (
            self._session.query(UserFactionStats)
            .filter(UserFactionStats.user_id == user_id)
            .update({column: 0}, synchronize_session="fetch")
        )


class SQLAlchemyActivityLogRepository(BaseSQLAlchemyRepository, ActivityLogRepository):
    """SQLAlchemy implementation of ActivityLogRepository."""

    async def add(self, entry: ActivityLog) -> ActivityLog:
        await self.save(entry)
        return entry

    async def list_for_user(
        self,
        user_id: UUID,
        faction_id: Optional[str] = None,
        activity_type: Optional[str] = None,
        since: Optional[datetime] = None,
        until: Optional[datetime] = None,
        limit: int = 50,
    ) -> List[ActivityLog]:
        query = self._session.query(ActivityLog).filter(ActivityLog.user_id == user_id)

        if faction_id:
            query = query.filter(ActivityLog.faction_id == faction_id)
        if activity_type:
            query = query.filter(ActivityLog.activity_type == activity_type)
        if since:
            query = query.filter(ActivityLog.occurred_at >= since)
        if until:
            query = query.filter(ActivityLog.occurred_at < until)

        return query.order_by(desc(ActivityLog.occurred_at)).limit(limit).all()


class SQLAlchemyCurrencyRepository(BaseSQLAlchemyRepository, CurrencyRepository):
    """SQLAlchemy implementation of CurrencyRepository."""

    async def get_wallet(self, user_id: UUID) -> Optional[UserCurrency]:
        return (
            self._session.query(UserCurrency)
            .filter(UserCurrency.user_id == user_id)
            .first()
        )

    async def get_or_create_wallet(self, user_id: UUID, starting_gold: int) -> UserCurrency:
        wallet = await self.get_wallet(user_id)
        if wallet is None:
            wallet = UserCurrency(
                user_id=user_id,
                gold=starting_gold,
                gems=0,
                total_gold_earned=0,
                total_gold_spent=0,
            )
            await self.save(wallet)
            self._session.flush()
        return wallet

    async def add_transaction(self, transaction: CurrencyTransaction) -> CurrencyTransaction:
        await self.save(transaction)
        return transaction

    async def list_transactions(
        self, user_id: UUID, transaction_type: Optional[str] = None, limit: int = 50
    ) -> List[CurrencyTransaction]:
        query = self._session.query(CurrencyTransaction).filter(
            CurrencyTransaction.user_id == user_id
        )
        if transaction_type:
            query = query.filter(CurrencyTransaction.transaction_type == transaction_type)
        return query.order_by(desc(CurrencyTransaction.created_at)).limit(limit).all()


class SQLAlchemyAchievementRepository(BaseSQLAlchemyRepository, AchievementRepository):
    """SQLAlchemy implementation of AchievementRepository."""

    async def get(self, user_id: UUID, achievement_key: str) -> Optional[UserAchievement]:
        return (
            self._session.query(UserAchievement)
            .filter(
                UserAchievement.user_id == user_id,
                UserAchievement.achievement_key == achievement_key,
            )
            .first()
        )

    async def get_or_create(self, user_id: UUID, achievement_key: str) -> UserAchievement:
        row = await self.get(user_id, achievement_key)
        if row is None:
            row = UserAchievement(
                user_id=user_id,
                achievement_key=achievement_key,
                current_progress=0,
                is_unlocked=False,
            )
            await self.save(row)
            self._session.flush()
        return row

    async def list_for_user(self, user_id: UUID) -> List[UserAchievement]:
        return (
            self._session.query(UserAchievement)
            .filter(UserAchievement.user_id == user_id)
            .all()
        )
