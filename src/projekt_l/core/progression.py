"""Progression engine: applies XP to skills, factions and the user profile.

Wraps the pure functions in domain.xp and domain.factions and persists their
results through the repository container. Callers own the transaction and
commit once the whole operation has been staged.
"""

from dataclasses import dataclass, field
from datetime import date, datetime, timezone
from typing import Any, Dict, List, Optional, Sequence, Tuple
from uuid import UUID

from ..config import get_config
from ..db.models import ActivityLog, Experience, Quest, Skill, User
from ..domain.achievements import AchievementDefinition, definitions_for
from ..domain.factions import (
    FACTIONS,
    FactionStatsChange,
    apply_faction_xp,
    faction_level_progress,
    migrate_faction_id,
    split_evenly,
)
from ..domain.xp import XpResult, add_xp
from ..repositories.interfaces import RepositoryContainer
from ..utils.logging_config import get_logger
from .enums import ActivityType, AchievementRequirement


@dataclass(frozen=True)
class FactionAward:
    faction_id: str
    amount: int
    total_xp: int
    level: int
    leveled_up: bool


@dataclass
class SkillAward:
    """Result of awarding XP to a skill."""

    skill_id: UUID
    xp: XpResult
    faction: Optional[FactionAward] = None
    experience: Optional[Experience] = None

    @property
    def faction_leveled_up(self) -> bool:
        return bool(self.faction and self.faction.leveled_up)


@dataclass
class QuestRewards:
    xp_awarded: int
    faction_results: List[FactionAward] = field(default_factory=list)
    skill_results: List[SkillAward] = field(default_factory=list)


class ProgressionEngine:
    """Applies XP awards and writes the matching activity feed entries."""

    def __init__(self, repos: RepositoryContainer):
        self.repos = repos
        self.logger = get_logger(__name__)

    # Profile

    async def create_user_profile(self, user: User) -> None:
        """Create the wallet and zeroed stats for every faction."""
        await self.repos.currency.get_or_create_wallet(user.id, get_config().app.starting_gold)
        for faction in FACTIONS:
            await self.repos.faction_stats.get_or_create(user.id, faction.id.value)
        self.logger.info(f"Created profile for user {user.id}")

    async def add_profile_xp(self, user: User, amount: int) -> int:
        user.total_xp = max(0, (user.total_xp or 0) + amount)
        await self.repos.user.save(user)
        return user.total_xp

    # Factions

    async def update_faction_stats(
        self, user_id: UUID, faction_id: str, amount: int
    ) -> FactionAward:
        """Add amount to a faction's total/weekly/monthly counters (floored at 0)."""
        faction_key = migrate_faction_id(faction_id).value
        stats = await self.repos.faction_stats.get_or_create(user_id, faction_key)

        change: FactionStatsChange = apply_faction_xp(
            stats.total_xp or 0, stats.weekly_xp or 0, stats.monthly_xp or 0, amount
        )
        stats.total_xp = change.total_xp
        stats.weekly_xp = change.weekly_xp
        stats.monthly_xp = change.monthly_xp
        stats.level = change.level
        stats.last_activity = datetime.now(timezone.utc)
        await self.repos.faction_stats.save(stats)

        if change.leveled_up:
            self.logger.info(
                f"User {user_id} reached level {change.level} in faction {faction_key}"
            )
        return FactionAward(
            faction_id=faction_key,
            amount=amount,
            total_xp=change.total_xp,
            level=change.level,
            leveled_up=change.leveled_up,
        )

    async def award_faction_parts(
        self, user_id: UUID, parts: Sequence[Tuple[str, int]]
    ) -> List[FactionAward]:
        results = []
        for faction_id, amount in parts:
            if amount == 0:
                continue
            results.append(await self.update_faction_stats(user_id, faction_id, amount))
        return results

    async def faction_overview(self, user_id: UUID) -> List[Dict[str, Any]]:
        """Faction metadata merged with the user's counters."""
        stats_by_id = {
            s.faction_id: s for s in await self.repos.faction_stats.list_for_user(user_id)
        }
        overview = []
        for faction in FACTIONS:
            stats = stats_by_id.get(faction.id.value)
            total = stats.total_xp if stats else 0
            overview.append(
                {
                    "id": faction.id.value,
                    "name": faction.name,
                    "icon": faction.icon,
                    "color": faction.color,
                    "description": faction.description,
                    "total_xp": total,
                    "weekly_xp": stats.weekly_xp if stats else 0,
                    "monthly_xp": stats.monthly_xp if stats else 0,
                    "level": stats.level if stats else 1,
                    "progress": faction_level_progress(total),
                    "last_activity": stats.last_activity if stats else None,
                }
            )
        return overview

    # Skills

    @staticmethod
    def faction_for_skill(skill: Skill) -> Optional[str]:
        domain = skill.domain
        if domain is None or not domain.faction_key:
            return None
        return migrate_faction_id(domain.faction_key).value

    async def apply_skill_xp(
        self,
        user: User,
        skill: Skill,
        xp: int,
        description: str,
        on_date: Optional[date] = None,
        faction_id: Optional[str] = None,
    ) -> Tuple[XpResult, Experience]:
        """Level the user's skill and record the Experience row, nothing else."""
        user_skill = await self.repos.user_skill.get_or_create(user.id, skill.id)
        result = add_xp(user_skill.level or 1, user_skill.current_xp or 0, xp)

        user_skill.level = result.new_level
        user_skill.current_xp = result.new_xp
        user_skill.last_used = datetime.now(timezone.utc)
        await self.repos.user_skill.save(user_skill)

        experience = await self.repos.experience.add(
            Experience(
                user_id=user.id,
                skill_id=skill.id,
                description=description,
                xp_gained=xp,
                date=on_date or datetime.now(timezone.utc).date(),
                faction_id=faction_id,
            )
        )
        return result, experience

    async def award_skill_xp(
        self,
        user: User,
        skill: Skill,
        xp: int,
        description: str,
        on_date: Optional[date] = None,
        faction_id: Optional[str] = None,
        log_activity: bool = True,
    ) -> SkillAward:
        """Add XP to a skill, the profile and the skill's faction."""
        target_faction = migrate_faction_id(faction_id).value if faction_id else self.faction_for_skill(skill)
        result, experience = await self.apply_skill_xp(
            user, skill, xp, description, on_date=on_date, faction_id=target_faction
        )
        await self.add_profile_xp(user, xp)

        faction_award = None
        if target_faction:
            faction_award = await self.update_faction_stats(user.id, target_faction, xp)

        if log_activity:
            await self.log_activity(
                user.id,
                ActivityType.XP_GAINED,
                title=f"{skill.icon or '⭐'} {skill.name}: +{xp} XP",
                description=description,
                faction_id=target_faction,
                xp_amount=xp,
                related_entity_type="skill",
                related_entity_id=skill.id,
            )
            if result.leveled_up:
                await self.log_activity(
                    user.id,
                    ActivityType.LEVEL_UP,
                    title=f"{skill.icon or '⭐'} {skill.name} erreicht Level {result.new_level}",
                    faction_id=target_faction,
                    related_entity_type="skill",
                    related_entity_id=skill.id,
                    details={"levels_gained": result.levels_gained},
                )

        self.logger.info(
            f"Skill {skill.id} +{xp} XP for user {user.id} "
            f"(level {result.new_level}, leveled_up={result.leveled_up})"
        )
        return SkillAward(
            skill_id=skill.id, xp=result, faction=faction_award, experience=experience
        )

    # Quests

    async def award_quest_completion(
        self, user: User, quest: Quest, skills: Sequence[Skill]
    ) -> QuestRewards:
        """
        Pay out a completed quest.

        The full reward goes to the profile. Target factions (or the quest's
        faction) and target skills (or the quest's skill) each receive an
        even share of it.
        """
        xp = quest.xp_reward
        await self.add_profile_xp(user, xp)

        faction_ids = list(quest.target_faction_ids or [])
        if not faction_ids and quest.faction_id:
            faction_ids = [quest.faction_id]
        faction_results = await self.award_faction_parts(user.id, split_evenly(xp, faction_ids))

        skill_results = []
        shares = split_evenly(xp, [str(s.id) for s in skills])
        for skill, (_, share) in zip(skills, shares):
            result, experience = await self.apply_skill_xp(
                user, skill, share, f"Quest: {quest.title}"
            )
            skill_results.append(SkillAward(skill_id=skill.id, xp=result, experience=experience))

        await self.log_activity(
            user.id,
            ActivityType.QUEST_COMPLETED,
            title=f"🏆 Quest abgeschlossen: {quest.title}",
            faction_id=faction_ids[0] if faction_ids else None,
            xp_amount=xp,
            related_entity_type="quest",
            related_entity_id=quest.id,
            details={"factions": faction_ids, "skills": [str(s.id) for s in skills]},
        )
        self.logger.info(f"Quest {quest.id} completed by user {user.id} (+{xp} XP)")
        return QuestRewards(
            xp_awarded=xp, faction_results=faction_results, skill_results=skill_results
        )

    # Achievements

    async def check_achievements(
        self, user_id: UUID, requirement_type: AchievementRequirement, value: int
    ) -> List[AchievementDefinition]:
        """
        Record the latest counter for every achievement measured by
        requirement_type and unlock those whose threshold is reached.

        Returns the achievements unlocked by this call.
        """
        unlocked = []
        for definition in definitions_for(requirement_type):
            row = await self.repos.achievement.get_or_create(user_id, definition.key)
            if row.is_unlocked:
                continue
            row.current_progress = max(0, value)
            if value >= definition.requirement_value:
                row.is_unlocked = True
                row.unlocked_at = datetime.now(timezone.utc)
                unlocked.append(definition)
            await self.repos.achievement.save(row)

        for definition in unlocked:
            faction_id = definition.faction_id.value if definition.faction_id else None
            if faction_id and definition.xp_reward > 0:
                await self.update_faction_stats(user_id, faction_id, definition.xp_reward)
            await self.log_activity(
                user_id,
                ActivityType.ACHIEVEMENT_UNLOCKED,
                title=f"{definition.icon} Erfolg freigeschaltet: {definition.name}",
                description=definition.description,
                faction_id=faction_id,
                xp_amount=definition.xp_reward,
                related_entity_type="achievement",
                related_entity_id=definition.key,
                details={"key": definition.key, "rarity": definition.rarity.value},
            )
            self.logger.info(f"User {user_id} unlocked achievement {definition.key}")
        return unlocked

    # Activity feed

    async def log_activity(
        self,
        user_id: UUID,
        activity_type: ActivityType,
        title: str,
        description: Optional[str] = None,
        faction_id: Optional[str] = None,
        xp_amount: int = 0,
        related_entity_type: Optional[str] = None,
        related_entity_id: Optional[Any] = None,
        details: Optional[Dict[str, Any]] = None,
        occurred_at: Optional[datetime] = None,
    ) -> ActivityLog:
        entry = ActivityLog(
            user_id=user_id,
            activity_type=ActivityType(activity_type).value,
            faction_id=faction_id,
            title=title,
            description=description,
            xp_amount=xp_amount,
            related_entity_type=related_entity_type,
            related_entity_id=str(related_entity_id) if related_entity_id is not None else None,
            details=details or {},
            occurred_at=occurred_at or datetime.now(timezone.utc),
        )
        return await self.repos.activity.add(entry)
