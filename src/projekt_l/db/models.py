"""SQLAlchemy models for Projekt L."""

from datetime import datetime, timezone
from uuid import UUID, uuid4

from sqlalchemy import (
    Column,
    String,
    Integer,
    Float,
    Date,
    DateTime,
    Boolean,
    Text,
    JSON,
    ForeignKey,
    UniqueConstraint,
    CheckConstraint,
    Index,
)
from sqlalchemy.dialects.postgresql import UUID as PG_UUID
from sqlalchemy.orm import relationship
from sqlalchemy.types import TypeDecorator, CHAR

from .database import Base


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class GUID(TypeDecorator):
    """Platform-independent GUID type using CHAR(36) outside PostgreSQL."""

    impl = CHAR
    cache_ok = True

    def load_dialect_impl(self, dialect):
        if dialect.name == "postgresql":
            return dialect.type_descriptor(PG_UUID())
        return dialect.type_descriptor(CHAR(36))

    def process_bind_param(self, value, dialect):
        if value is None:
            return value
        return str(value)

    def process_result_value(self, value, dialect):
        if value is None or isinstance(value, UUID):
            return value
        return UUID(str(value))


class UTCDateTime(TypeDecorator):
    """Timezone-aware datetime stored as UTC.

    SQLite drops tzinfo on the way back, so results are re-tagged as UTC.
    """

    impl = DateTime(timezone=True)
    cache_ok = True

    def process_bind_param(self, value, dialect):
        if value is None:
            return value
        if value.tzinfo is None:
            value = value.replace(tzinfo=timezone.utc)
        return value.astimezone(timezone.utc)

    def process_result_value(self, value, dialect):
        if value is None:
            return value
        if value.tzinfo is None:
            return value.replace(tzinfo=timezone.utc)
        return value.astimezone(timezone.utc)


def _user_fk():
    return Column(GUID(), ForeignKey("users.id", ondelete="CASCADE"), nullable=False)


class User(Base):
    """An account holder and their overall XP profile."""

    __tablename__ = "users"

    id = Column(GUID(), primary_key=True, default=uuid4)
    email = Column(String(255), nullable=False, unique=True)
    display_name = Column(String(100), nullable=False)
    password_hash = Column(String(255), nullable=False)
    password_salt = Column(String(64), nullable=False)
    total_xp = Column(Integer, nullable=False, default=0)
    created_at = Column(UTCDateTime(), nullable=False, default=utcnow)
    updated_at = Column(UTCDateTime(), nullable=False, default=utcnow, onupdate=utcnow)

    faction_stats = relationship(
        "UserFactionStats", back_populates="user", cascade="all, delete-orphan"
    )
    currency = relationship(
        "UserCurrency", back_populates="user", uselist=False, cascade="all, delete-orphan"
    )

    def __repr__(self) -> str:
        return f"<User(id={self.id}, email='{self.email}')>"


class SkillDomain(Base):
    """A top-level life area containing skills."""

    __tablename__ = "skill_domains"

    id = Column(GUID(), primary_key=True, default=uuid4)
    user_id = _user_fk()
    name = Column(String(100), nullable=False)
    icon = Column(String(10), nullable=True)
    color = Column(String(20), nullable=True)
    description = Column(String(500), nullable=True)
    faction_key = Column(String(20), nullable=True)
    created_at = Column(UTCDateTime(), nullable=False, default=utcnow)

    skills = relationship("Skill", back_populates="domain", cascade="all, delete-orphan")
    graph_views = relationship(
        "GraphView", back_populates="domain", cascade="all, delete-orphan"
    )

    __table_args__ = (
        UniqueConstraint("user_id", "name", name="uq_domain_name_per_user"),
    )

    def __repr__(self) -> str:
        return f"<SkillDomain(id={self.id}, name='{self.name}')>"


class Skill(Base):
    """A trackable competency, optionally nested under a parent skill."""

    __tablename__ = "skills"

    id = Column(GUID(), primary_key=True, default=uuid4)
    user_id = _user_fk()
    domain_id = Column(
        GUID(), ForeignKey("skill_domains.id", ondelete="CASCADE"), nullable=False
    )
    parent_skill_id = Column(
        GUID(), ForeignKey("skills.id", ondelete="SET NULL"), nullable=True
    )
    name = Column(String(100), nullable=False)
    icon = Column(String(10), nullable=True)
    description = Column(String(500), nullable=True)
    created_at = Column(UTCDateTime(), nullable=False, default=utcnow)

    domain = relationship("SkillDomain", back_populates="skills")
    user_skills = relationship(
        "UserSkill", back_populates="skill", cascade="all, delete-orphan"
    )
    experiences = relationship(
        "Experience", back_populates="skill", cascade="all, delete-orphan"
    )

    __table_args__ = (
        Index("ix_skill_domain", "domain_id"),
        Index("ix_skill_parent", "parent_skill_id"),
    )

    def __repr__(self) -> str:
        return f"<Skill(id={self.id}, name='{self.name}')>"


class UserSkill(Base):
    """A user's level and XP on a skill."""

    __tablename__ = "user_skills"

    id = Column(GUID(), primary_key=True, default=uuid4)
    user_id = _user_fk()
    skill_id = Column(GUID(), ForeignKey("skills.id", ondelete="CASCADE"), nullable=False)
    level = Column(Integer, nullable=False, default=1)
    current_xp = Column(Integer, nullable=False, default=0)
    last_used = Column(UTCDateTime(), nullable=True)
    created_at = Column(UTCDateTime(), nullable=False, default=utcnow)

    skill = relationship("Skill", back_populates="user_skills")

    __table_args__ = (
        UniqueConstraint("user_id", "skill_id", name="uq_user_skill"),
    )


class Experience(Base):
    """A single XP award on a skill."""

    __tablename__ = "experiences"

    id = Column(GUID(), primary_key=True, default=uuid4)
    user_id = _user_fk()
    skill_id = Column(GUID(), ForeignKey("skills.id", ondelete="CASCADE"), nullable=False)
    description = Column(String(500), nullable=False)
    xp_gained = Column(Integer, nullable=False)
    date = Column(Date, nullable=False)
    faction_id = Column(String(20), nullable=True)
    created_at = Column(UTCDateTime(), nullable=False, default=utcnow)

    skill = relationship("Skill", back_populates="experiences")

    __table_args__ = (
        Index("ix_experience_skill_created", "skill_id", "created_at"),
        Index("ix_experience_user_date", "user_id", "date"),
    )


class SkillConnection(Base):
    """A typed, weighted edge between two skills."""

    __tablename__ = "skill_connections"

    id = Column(GUID(), primary_key=True, default=uuid4)
    user_id = _user_fk()
    source_skill_id = Column(
        GUID(), ForeignKey("skills.id", ondelete="CASCADE"), nullable=False
    )
    target_skill_id = Column(
        GUID(), ForeignKey("skills.id", ondelete="CASCADE"), nullable=False
    )
    connection_type = Column(String(20), nullable=False)
    strength = Column(Integer, nullable=False, default=5)
    created_at = Column(UTCDateTime(), nullable=False, default=utcnow)

    __table_args__ = (
        UniqueConstraint(
            "source_skill_id", "target_skill_id", "connection_type",
            name="uq_skill_connection",
        ),
        CheckConstraint("source_skill_id != target_skill_id", name="ck_connection_not_self"),
        CheckConstraint("strength BETWEEN 1 AND 10", name="ck_connection_strength"),
    )


class GraphView(Base):
    """Saved viewport and node positions for a domain's skill graph."""

    __tablename__ = "graph_views"

    id = Column(GUID(), primary_key=True, default=uuid4)
    user_id = _user_fk()
    domain_id = Column(
        GUID(), ForeignKey("skill_domains.id", ondelete="CASCADE"), nullable=False
    )
    name = Column(String(100), nullable=False)
    description = Column(String(500), nullable=True)
    viewport_x = Column(Float, nullable=False, default=0.0)
    viewport_y = Column(Float, nullable=False, default=0.0)
    viewport_zoom = Column(Float, nullable=False, default=1.0)
    direction = Column(String(2), nullable=False, default="TB")
    node_positions = Column(JSON, nullable=False, default=dict)
    is_default = Column(Boolean, nullable=False, default=False)
    created_at = Column(UTCDateTime(), nullable=False, default=utcnow)
    updated_at = Column(UTCDateTime(), nullable=False, default=utcnow, onupdate=utcnow)

    domain = relationship("SkillDomain", back_populates="graph_views")

    __table_args__ = (Index("ix_graph_view_user_domain", "user_id", "domain_id"),)


class UserFactionStats(Base):
    """Aggregated XP for one user in one faction."""

    __tablename__ = "user_faction_stats"

    id = Column(GUID(), primary_key=True, default=uuid4)
    user_id = _user_fk()
    faction_id = Column(String(20), nullable=False)
    total_xp = Column(Integer, nullable=False, default=0)
    weekly_xp = Column(Integer, nullable=False, default=0)
    monthly_xp = Column(Integer, nullable=False, default=0)
    level = Column(Integer, nullable=False, default=1)
    last_activity = Column(UTCDateTime(), nullable=True)

    user = relationship("User", back_populates="faction_stats")

    __table_args__ = (
        UniqueConstraint("user_id", "faction_id", name="uq_user_faction"),
    )


class Habit(Base):
    """A recurring behaviour tracked for streaks and XP."""

    __tablename__ = "habits"

    id = Column(GUID(), primary_key=True, default=uuid4)
    user_id = _user_fk()
    name = Column(String(100), nullable=False)
    description = Column(String(500), nullable=True)
    icon = Column(String(10), nullable=False, default="✅")
    habit_type = Column(String(10), nullable=False, default="positive")
    frequency = Column(String(20), nullable=False, default="daily")
    target_days = Column(JSON, nullable=False, default=list)
    xp_per_completion = Column(Integer, nullable=False, default=10)
    faction_id = Column(String(20), nullable=True)
    current_streak = Column(Integer, nullable=False, default=0)
    longest_streak = Column(Integer, nullable=False, default=0)
    total_completions = Column(Integer, nullable=False, default=0)
    streak_start_date = Column(Date, nullable=True)
    resistance_count = Column(Integer, nullable=False, default=0)
    last_resistance_at = Column(Date, nullable=True)
    is_active = Column(Boolean, nullable=False, default=True)
    created_at = Column(UTCDateTime(), nullable=False, default=utcnow)
    updated_at = Column(UTCDateTime(), nullable=False, default=utcnow, onupdate=utcnow)

    logs = relationship("HabitLog", back_populates="habit", cascade="all, delete-orphan")
    factions = relationship(
        "HabitFaction",
        back_populates="habit",
        cascade="all, delete-orphan",
        order_by="HabitFaction.weight.desc()",
    )

    __table_args__ = (Index("ix_habit_user_active", "user_id", "is_active"),)

    def __repr__(self) -> str:
        return f"<Habit(id={self.id}, name='{self.name}', type={self.habit_type})>"


class HabitFaction(Base):
    """Weighted faction assignment of a habit."""

    __tablename__ = "habit_factions"

    id = Column(GUID(), primary_key=True, default=uuid4)
    habit_id = Column(GUID(), ForeignKey("habits.id", ondelete="CASCADE"), nullable=False)
    faction_id = Column(String(20), nullable=False)
    weight = Column(Integer, nullable=False, default=100)

    habit = relationship("Habit", back_populates="factions")

    __table_args__ = (
        UniqueConstraint("habit_id", "faction_id", name="uq_habit_faction"),
    )


class HabitLog(Base):
    """One completion, relapse or protected day of a habit."""

    __tablename__ = "habit_logs"

    id = Column(GUID(), primary_key=True, default=uuid4)
    habit_id = Column(GUID(), ForeignKey("habits.id", ondelete="CASCADE"), nullable=False)
    user_id = _user_fk()
    completed = Column(Boolean, nullable=False, default=True)
    notes = Column(String(500), nullable=True)
    xp_gained = Column(Integer, nullable=False, default=0)
    logged_at = Column(UTCDateTime(), nullable=False, default=utcnow)

    habit = relationship("Habit", back_populates="logs")

    __table_args__ = (Index("ix_habit_log_habit_logged", "habit_id", "logged_at"),)


class StreakInsuranceToken(Base):
    """A consumable token that protects a habit streak for one day."""

    __tablename__ = "streak_insurance_tokens"

    id = Column(GUID(), primary_key=True, default=uuid4)
    user_id = _user_fk()
    token_type = Column(String(20), nullable=False, default="standard")
    reason = Column(String(200), nullable=True)
    granted_at = Column(UTCDateTime(), nullable=False, default=utcnow)
    expires_at = Column(UTCDateTime(), nullable=False)
    used_at = Column(UTCDateTime(), nullable=True)
    used_for_habit_id = Column(
        GUID(), ForeignKey("habits.id", ondelete="SET NULL"), nullable=True
    )

    __table_args__ = (Index("ix_streak_token_user_expires", "user_id", "expires_at"),)


class Quest(Base):
    """A task with multi-step progress and an XP reward."""

    __tablename__ = "quests"

    id = Column(GUID(), primary_key=True, default=uuid4)
    user_id = _user_fk()
    title = Column(String(200), nullable=False)
    description = Column(Text, nullable=True)
    xp_reward = Column(Integer, nullable=False, default=50)
    quest_type = Column(String(20), nullable=False, default="manual")
    difficulty = Column(String(20), nullable=True)
    status = Column(String(20), nullable=False, default="active")
    required_actions = Column(Integer, nullable=False, default=1)
    completed_actions = Column(Integer, nullable=False, default=0)
    progress = Column(Integer, nullable=False, default=0)
    skill_id = Column(GUID(), ForeignKey("skills.id", ondelete="SET NULL"), nullable=True)
    faction_id = Column(String(20), nullable=True)
    target_faction_ids = Column(JSON, nullable=False, default=list)
    target_skill_ids = Column(JSON, nullable=False, default=list)
    due_date = Column(Date, nullable=True)
    expires_at = Column(UTCDateTime(), nullable=True)
    completed_at = Column(UTCDateTime(), nullable=True)
    created_at = Column(UTCDateTime(), nullable=False, default=utcnow)
    updated_at = Column(UTCDateTime(), nullable=False, default=utcnow, onupdate=utcnow)

    actions = relationship(
        "QuestAction", back_populates="quest", cascade="all, delete-orphan"
    )

    __table_args__ = (Index("ix_quest_user_status", "user_id", "status"),)

    def __repr__(self) -> str:
        return f"<Quest(id={self.id}, title='{self.title}', status={self.status})>"


class QuestAction(Base):
    """A progress step recorded on a quest."""

    __tablename__ = "quest_actions"

    id = Column(GUID(), primary_key=True, default=uuid4)
    quest_id = Column(GUID(), ForeignKey("quests.id", ondelete="CASCADE"), nullable=False)
    user_id = _user_fk()
    action_type = Column(String(20), nullable=False)
    notes = Column(String(500), nullable=True)
    xp_gained = Column(Integer, nullable=False, default=0)
    created_at = Column(UTCDateTime(), nullable=False, default=utcnow)

    quest = relationship("Quest", back_populates="actions")


class Contact(Base):
    """A person the user keeps a relationship with."""

    __tablename__ = "contacts"

    id = Column(GUID(), primary_key=True, default=uuid4)
    user_id = _user_fk()
    first_name = Column(String(100), nullable=False)
    last_name = Column(String(100), nullable=True)
    nickname = Column(String(100), nullable=True)
    photo_url = Column(String(500), nullable=True)
    relationship_type = Column(String(30), nullable=False, default="friend")
    relationship_category = Column(String(20), nullable=False, default="friend")
    trust_level = Column(Integer, nullable=False, default=50)
    relationship_level = Column(Integer, nullable=False, default=1)
    current_xp = Column(Integer, nullable=False, default=0)
    birthday = Column(Date, nullable=True)
    anniversary = Column(Date, nullable=True)
    met_date = Column(Date, nullable=True)
    met_context = Column(String(500), nullable=True)
    contact_info = Column(JSON, nullable=False, default=dict)
    shared_interests = Column(JSON, nullable=False, default=list)
    notes = Column(Text, nullable=True)
    tags = Column(JSON, nullable=False, default=list)
    last_interaction_at = Column(UTCDateTime(), nullable=True)
    interaction_count = Column(Integer, nullable=False, default=0)
    avg_interaction_quality = Column(Float, nullable=True)
    is_favorite = Column(Boolean, nullable=False, default=False)
    is_archived = Column(Boolean, nullable=False, default=False)
    reminder_frequency_days = Column(Integer, nullable=True)
    suppress_attention_reminder = Column(Boolean, nullable=False, default=False)
    created_at = Column(UTCDateTime(), nullable=False, default=utcnow)
    updated_at = Column(UTCDateTime(), nullable=False, default=utcnow, onupdate=utcnow)

    interactions = relationship(
        "ContactInteraction", back_populates="contact", cascade="all, delete-orphan"
    )

    __table_args__ = (
        Index("ix_contact_user_archived", "user_id", "is_archived"),
        CheckConstraint("trust_level BETWEEN 0 AND 100", name="ck_contact_trust"),
    )

    def __repr__(self) -> str:
        return f"<Contact(id={self.id}, first_name='{self.first_name}')>"


class ContactInteraction(Base):
    """A call, meeting, message or other touchpoint with a contact."""

    __tablename__ = "contact_interactions"

    id = Column(GUID(), primary_key=True, default=uuid4)
    contact_id = Column(
        GUID(), ForeignKey("contacts.id", ondelete="CASCADE"), nullable=False
    )
    user_id = _user_fk()
    interaction_type = Column(String(20), nullable=False)
    title = Column(String(200), nullable=True)
    description = Column(String(2000), nullable=True)
    quality = Column(String(20), nullable=False, default="good")
    xp_gained = Column(Integer, nullable=False, default=0)
    duration_minutes = Column(Integer, nullable=True)
    occurred_at = Column(UTCDateTime(), nullable=False, default=utcnow)
    location = Column(String(200), nullable=True)
    participants = Column(JSON, nullable=False, default=list)
    related_skill_id = Column(
        GUID(), ForeignKey("skills.id", ondelete="SET NULL"), nullable=True
    )
    created_at = Column(UTCDateTime(), nullable=False, default=utcnow)

    contact = relationship("Contact", back_populates="interactions")

    __table_args__ = (
        Index("ix_interaction_contact_occurred", "contact_id", "occurred_at"),
    )


class MoodLog(Base):
    __tablename__ = "mood_logs"

    id = Column(GUID(), primary_key=True, default=uuid4)
    user_id = _user_fk()
    mood = Column(String(20), nullable=False)
    note = Column(String(500), nullable=True)
    created_at = Column(UTCDateTime(), nullable=False, default=utcnow)

    __table_args__ = (Index("ix_mood_user_created", "user_id", "created_at"),)


class JournalEntry(Base):
    __tablename__ = "journal_entries"

    id = Column(GUID(), primary_key=True, default=uuid4)
    user_id = _user_fk()
    content = Column(Text, nullable=False)
    prompt = Column(String(500), nullable=True)
    tags = Column(JSON, nullable=False, default=list)
    word_count = Column(Integer, nullable=False, default=0)
    created_at = Column(UTCDateTime(), nullable=False, default=utcnow)
    updated_at = Column(UTCDateTime(), nullable=False, default=utcnow, onupdate=utcnow)


class UserCurrency(Base):
    """Gold and gem balances of a user."""

    __tablename__ = "user_currency"

    id = Column(GUID(), primary_key=True, default=uuid4)
    user_id = Column(
        GUID(), ForeignKey("users.id", ondelete="CASCADE"), nullable=False, unique=True
    )
    gold = Column(Integer, nullable=False, default=100)
    gems = Column(Integer, nullable=False, default=0)
    total_gold_earned = Column(Integer, nullable=False, default=0)
    total_gold_spent = Column(Integer, nullable=False, default=0)
    updated_at = Column(UTCDateTime(), nullable=False, default=utcnow, onupdate=utcnow)

    user = relationship("User", back_populates="currency")


class CurrencyTransaction(Base):
    __tablename__ = "currency_transactions"

    id = Column(GUID(), primary_key=True, default=uuid4)
    user_id = _user_fk()
    amount = Column(Integer, nullable=False)
    currency = Column(String(10), nullable=False, default="gold")
    transaction_type = Column(String(30), nullable=False)
    description = Column(String(500), nullable=True)
    source_type = Column(String(50), nullable=True)
    source_id = Column(String(64), nullable=True)
    created_at = Column(UTCDateTime(), nullable=False, default=utcnow)

    __table_args__ = (Index("ix_currency_tx_user_created", "user_id", "created_at"),)


class ActivityLog(Base):
    """An entry in the user's activity feed."""

    __tablename__ = "activity_log"

    id = Column(GUID(), primary_key=True, default=uuid4)
    user_id = _user_fk()
    activity_type = Column(String(30), nullable=False)
    faction_id = Column(String(20), nullable=True)
    title = Column(String(300), nullable=False)
    description = Column(String(1000), nullable=True)
    xp_amount = Column(Integer, nullable=False, default=0)
    related_entity_type = Column(String(50), nullable=True)
    related_entity_id = Column(String(64), nullable=True)
    details = Column(JSON, nullable=False, default=dict)
    occurred_at = Column(UTCDateTime(), nullable=False, default=utcnow)

    __table_args__ = (
        Index("ix_activity_user_occurred", "user_id", "occurred_at"),
        Index("ix_activity_user_faction", "user_id", "faction_id"),
    )


class Account(Base):
    """A bank, savings, credit or cash account."""

    __tablename__ = "accounts"

    id = Column(GUID(), primary_key=True, default=uuid4)
    user_id = _user_fk()
    name = Column(String(100), nullable=False)
    account_type = Column(String(20), nullable=False, default="checking")
    institution = Column(String(100), nullable=True)
    currency = Column(String(3), nullable=False, default="EUR")
    current_balance = Column(Float, nullable=False, default=0.0)
    is_active = Column(Boolean, nullable=False, default=True)
    is_excluded_from_net_worth = Column(Boolean, nullable=False, default=False)
    icon = Column(String(10), nullable=True)
    color = Column(String(20), nullable=True)
    credit_limit = Column(Float, nullable=True)
    interest_rate = Column(Float, nullable=True)
    created_at = Column(UTCDateTime(), nullable=False, default=utcnow)
    updated_at = Column(UTCDateTime(), nullable=False, default=utcnow, onupdate=utcnow)


class FinanceTransaction(Base):
    """Money moving into, out of, or between accounts."""

    __tablename__ = "finance_transactions"

    id = Column(GUID(), primary_key=True, default=uuid4)
    user_id = _user_fk()
    account_id = Column(GUID(), ForeignKey("accounts.id", ondelete="CASCADE"), nullable=False)
    transaction_type = Column(String(20), nullable=False)
    category = Column(String(50), nullable=True)
    amount = Column(Float, nullable=False)
    description = Column(String(500), nullable=True)
    occurred_at = Column(Date, nullable=False)
    to_account_id = Column(
        GUID(), ForeignKey("accounts.id", ondelete="SET NULL"), nullable=True
    )
    tags = Column(JSON, nullable=False, default=list)
    created_at = Column(UTCDateTime(), nullable=False, default=utcnow)

    __table_args__ = (
        Index("ix_finance_tx_account_occurred", "account_id", "occurred_at"),
        Index("ix_finance_tx_user_occurred", "user_id", "occurred_at"),
    )


class SavingsGoal(Base):
    __tablename__ = "savings_goals"

    id = Column(GUID(), primary_key=True, default=uuid4)
    user_id = _user_fk()
    name = Column(String(100), nullable=False)
    description = Column(String(500), nullable=True)
    icon = Column(String(10), nullable=False, default="🎯")
    color = Column(String(20), nullable=False, default="#14B8A6")
    target_amount = Column(Float, nullable=False)
    current_amount = Column(Float, nullable=False, default=0.0)
    monthly_contribution = Column(Float, nullable=False, default=0.0)
    interest_rate = Column(Float, nullable=False, default=0.0)
    compounds_per_year = Column(Integer, nullable=False, default=12)
    start_date = Column(Date, nullable=False)
    target_date = Column(Date, nullable=True)
    is_achieved = Column(Boolean, nullable=False, default=False)
    achieved_at = Column(UTCDateTime(), nullable=True)
    reward_paid = Column(Boolean, nullable=False, default=False)
    created_at = Column(UTCDateTime(), nullable=False, default=utcnow)
    updated_at = Column(UTCDateTime(), nullable=False, default=utcnow, onupdate=utcnow)


class UserAchievement(Base):
    """A user's progress toward one achievement of the catalog."""

    __tablename__ = "user_achievements"

    id = Column(GUID(), primary_key=True, default=uuid4)
    user_id = _user_fk()
    achievement_key = Column(String(50), nullable=False)
    current_progress = Column(Integer, nullable=False, default=0)
    is_unlocked = Column(Boolean, nullable=False, default=False)
    unlocked_at = Column(UTCDateTime(), nullable=True)
    created_at = Column(UTCDateTime(), nullable=False, default=utcnow)
    updated_at = Column(UTCDateTime(), nullable=False, default=utcnow, onupdate=utcnow)

    __table_args__ = (
        UniqueConstraint("user_id", "achievement_key", name="uq_user_achievement"),
    )


class WeeklyReport(Base):
    """A stored seven day review with its stats snapshot."""

    __tablename__ = "weekly_reports"

    id = Column(GUID(), primary_key=True, default=uuid4)
    user_id = _user_fk()
    week_start = Column(Date, nullable=False)
    week_end = Column(Date, nullable=False)
    top_wins = Column(JSON, nullable=False, default=list)
    attention_area = Column(String(500), nullable=True)
    recognized_pattern = Column(String(500), nullable=True)
    recommendation = Column(String(1000), nullable=True)
    stats_snapshot = Column(JSON, nullable=False, default=dict)
    read_at = Column(UTCDateTime(), nullable=True)
    created_at = Column(UTCDateTime(), nullable=False, default=utcnow)

    __table_args__ = (
        UniqueConstraint("user_id", "week_start", name="uq_weekly_report_week"),
    )
