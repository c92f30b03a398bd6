"""Pydantic models for API request/response validation."""

from datetime import date, datetime
from datetime import date as date_type
from typing import Any, Dict, List, Literal, Optional
from uuid import UUID

from pydantic import BaseModel, Field, ConfigDict, field_validator, model_validator  # type: ignore

from ..core.enums import (
    AccountType,
    ActivityType,
    ConnectionType,
    CurrencyKind,
    CurrencyTransactionType,
    GraphDirection,
    HabitFrequency,
    HabitType,
    ImportFormat,
    InteractionQuality,
    InteractionType,
    MoodValue,
    QuestDifficulty,
    QuestProgressAction,
    QuestType,
    RelationshipCategory,
    RelationshipType,
    TokenType,
    TransactionType,
    Weekday,
)
from ..domain.factions import migrate_faction_id
from ..utils.sanitize import (
    contains_angle_brackets,
    is_safe_input,
    sanitize_html,
    sanitize_text,
)

EMAIL_PATTERN = r"^[^@\s]+@[^@\s]+\.[^@\s]+$"


def _plain_name(value: Optional[str]) -> Optional[str]:
    """Names and titles are plain text: trimmed, no angle brackets."""
    if value is None:
        return value
    value = value.strip()
    if not value:
        raise ValueError("must not be blank")
    if contains_angle_brackets(value):
        raise ValueError("must not contain < or >")
    return value


def _plain_text(value: Optional[str]) -> Optional[str]:
    """Free text with every tag stripped."""
    if value is None:
        return value
    if not is_safe_input(value):
        raise ValueError("contains unsafe content")
    return sanitize_text(value)


def _faction(value: Optional[str]) -> Optional[str]:
    if value is None:
        return value
    return migrate_faction_id(value).value


# Base models
class BaseResponse(BaseModel):
    """Base response model with common fields."""

    model_config = ConfigDict(from_attributes=True)


class BaseRequest(BaseModel):
    """Base request model; enum fields arrive as their plain values."""

    model_config = ConfigDict(use_enum_values=True, str_strip_whitespace=True)


class ProblemDetails(BaseModel):
    """RFC 9457 Problem Details for HTTP APIs."""

    type: str = Field(description="A URI reference that identifies the problem type")
    title: str = Field(
        description="A short, human-readable summary of the problem type"
    )
    status: int = Field(description="The HTTP status code")
    detail: Optional[str] = Field(
        None, description="A human-readable explanation specific to this occurrence"
    )
    instance: Optional[str] = Field(
        None, description="A URI reference that identifies the specific occurrence"
    )


class MessageResponse(BaseModel):
    message: str


# Authentication schemas
class RegisterRequest(BaseRequest):
    """Schema for account registration."""

    email: str = Field(description="Login email", pattern=EMAIL_PATTERN, max_length=255)
    password: str = Field(description="Password", min_length=8, max_length=128)
    display_name: str = Field(description="Name shown in the app", min_length=1, max_length=100)

    @field_validator("display_name")
    @classmethod
    def validate_name(cls, v):
        return _plain_name(v)


class LoginRequest(BaseRequest):
    email: str = Field(description="Login email", max_length=255)
    password: str = Field(description="Password", min_length=1, max_length=128)


class TokenPairResponse(BaseModel):
    """Schema for JWT token response."""

    access_token: str = Field(description="JWT access token")
    refresh_token: str = Field(description="JWT refresh token")
    token_type: str = Field(default="bearer", description="Token type")
    access_expires_at: datetime = Field(description="Access token expiration timestamp")
    refresh_expires_at: datetime = Field(description="Refresh token expiration timestamp")
    user_id: UUID = Field(description="UUID of the user")


class TokenRefreshRequest(BaseModel):
    refresh_token: str = Field(description="JWT refresh token")


class TokenRefreshResponse(BaseModel):
    access_token: str = Field(description="New JWT access token")
    token_type: str = Field(default="bearer", description="Token type")
    expires_at: datetime = Field(description="Access token expiration timestamp")


class UserProfileResponse(BaseResponse):
    """The authenticated user's profile with overall progression."""

    id: UUID
    email: str
    display_name: str
    total_xp: int
    level: int
    progress: float
    tier: str
    created_at: datetime


# Faction schemas
class FactionResponse(BaseModel):
    id: str
    name: str
    icon: str
    color: str
    description: str
    total_xp: int
    weekly_xp: int
    monthly_xp: int
    level: int
    progress: int
    last_activity: Optional[datetime] = None


class FactionListResponse(BaseModel):
    factions: List[FactionResponse]


class ResetPeriodRequest(BaseModel):
    period: Literal["weekly", "monthly"]


class ResetPeriodResponse(BaseModel):
    period: str
    reset_count: int


class FactionAwardResponse(BaseModel):
    faction_id: str
    amount: int
    total_xp: int
    level: int
    leveled_up: bool


# Skill domain schemas
class DomainCreate(BaseRequest):
    name: str = Field(min_length=1, max_length=100)
    icon: Optional[str] = Field(None, max_length=10)
    color: Optional[str] = Field(None, max_length=20)
    description: Optional[str] = Field(None, max_length=500)
    faction_key: Optional[str] = Field(None, description="Faction the domain feeds XP into")

    @field_validator("name")
    @classmethod
    def validate_name(cls, v):
        return _plain_name(v)

    @field_validator("description")
    @classmethod
    def validate_description(cls, v):
        return _plain_text(v)

    @field_validator("faction_key")
    @classmethod
    def validate_faction(cls, v):
        return _faction(v)


class DomainUpdate(DomainCreate):
    name: Optional[str] = Field(None, min_length=1, max_length=100)


class DomainResponse(BaseResponse):
    id: UUID
    name: str
    icon: Optional[str] = None
    color: Optional[str] = None
    description: Optional[str] = None
    faction_key: Optional[str] = None
    created_at: datetime


# Skill schemas
class SkillCreate(BaseRequest):
    domain_id: UUID
    parent_skill_id: Optional[UUID] = None
    name: str = Field(min_length=1, max_length=100)
    icon: Optional[str] = Field(None, max_length=10)
    description: Optional[str] = Field(None, max_length=500)

    @field_validator("name")
    @classmethod
    def validate_name(cls, v):
        return _plain_name(v)

    @field_validator("description")
    @classmethod
    def validate_description(cls, v):
        return _plain_text(v)


class SkillUpdate(BaseRequest):
    """Partial skill update; send parent_skill_id null to make a root skill."""

    parent_skill_id: Optional[UUID] = None
    name: Optional[str] = Field(None, min_length=1, max_length=100)
    icon: Optional[str] = Field(None, max_length=10)
    description: Optional[str] = Field(None, max_length=500)

    @field_validator("name")
    @classmethod
    def validate_name(cls, v):
        return _plain_name(v)

    @field_validator("description")
    @classmethod
    def validate_description(cls, v):
        return _plain_text(v)


class SkillResponse(BaseResponse):
    id: UUID
    domain_id: UUID
    parent_skill_id: Optional[UUID] = None
    name: str
    icon: Optional[str] = None
    description: Optional[str] = None
    level: int = 1
    current_xp: int = 0
    progress: float = 0.0
    last_used: Optional[datetime] = None
    created_at: datetime


class SkillTreeNode(BaseModel):
    id: UUID
    name: str
    icon: Optional[str] = None
    description: Optional[str] = None
    parent_skill_id: Optional[UUID] = None
    level: int
    current_xp: int
    progress: float
    children: List["SkillTreeNode"] = Field(default_factory=list)


class DomainTreeResponse(BaseModel):
    domain: DomainResponse
    skills: List[SkillTreeNode]


class SkillXpRequest(BaseRequest):
    xp: int = Field(gt=0, le=10000)
    description: str = Field(min_length=1, max_length=500)
    date: Optional[date_type] = None
    faction_id: Optional[str] = None

    @field_validator("description")
    @classmethod
    def validate_description(cls, v):
        return _plain_text(v)

    @field_validator("faction_id")
    @classmethod
    def validate_faction(cls, v):
        return _faction(v)


class SkillXpResponse(BaseModel):
    skill_id: UUID
    new_level: int
    new_xp: int
    leveled_up: bool
    levels_gained: int
    faction_id: Optional[str] = None
    faction_leveled_up: bool = False
    total_xp: int


class ExperienceResponse(BaseResponse):
    id: UUID
    skill_id: UUID
    description: str
    xp_gained: int
    date: date
    faction_id: Optional[str] = None
    created_at: datetime


class ConnectionCreate(BaseRequest):
    source_skill_id: UUID
    target_skill_id: UUID
    connection_type: ConnectionType = ConnectionType.RELATED
    strength: int = Field(5, ge=1, le=10)


class ConnectionResponse(BaseResponse):
    id: UUID
    source_skill_id: UUID
    target_skill_id: UUID
    connection_type: str
    strength: int
    created_at: datetime


# Graph view schemas
class NodePosition(BaseModel):
    x: float
    y: float


class GraphViewCreate(BaseRequest):
    domain_id: UUID
    name: str = Field(min_length=1, max_length=100)
    description: Optional[str] = Field(None, max_length=500)
    viewport_x: float = 0.0
    viewport_y: float = 0.0
    viewport_zoom: float = Field(1.0, gt=0)
    direction: GraphDirection = GraphDirection.TOP_BOTTOM
    node_positions: Dict[str, NodePosition] = Field(default_factory=dict)
    is_default: bool = False

    @field_validator("name")
    @classmethod
    def validate_name(cls, v):
        return _plain_name(v)

    @field_validator("description")
    @classmethod
    def validate_description(cls, v):
        return _plain_text(v)


class GraphViewUpdate(BaseRequest):
    name: Optional[str] = Field(None, min_length=1, max_length=100)
    description: Optional[str] = Field(None, max_length=500)
    viewport_x: Optional[float] = None
    viewport_y: Optional[float] = None
    viewport_zoom: Optional[float] = Field(None, gt=0)
    direction: Optional[GraphDirection] = None
    node_positions: Optional[Dict[str, NodePosition]] = None
    is_default: Optional[bool] = None

    @field_validator("name")
    @classmethod
    def validate_name(cls, v):
        return _plain_name(v)

    @field_validator("description")
    @classmethod
    def validate_description(cls, v):
        return _plain_text(v)


class SaveViewStateRequest(BaseRequest):
    """Viewport and node positions to persist for a domain's graph."""

    domain_id: UUID
    view_id: Optional[UUID] = None
    viewport_x: float
    viewport_y: float
    viewport_zoom: float = Field(gt=0)
    direction: Optional[GraphDirection] = None
    node_positions: Dict[str, NodePosition] = Field(default_factory=dict)


class GraphViewResponse(BaseResponse):
    id: UUID
    domain_id: UUID
    name: str
    description: Optional[str] = None
    viewport_x: float
    viewport_y: float
    viewport_zoom: float
    direction: str
    node_positions: Dict[str, NodePosition]
    is_default: bool
    created_at: datetime
    updated_at: datetime


# Habit schemas
class HabitFactionWeight(BaseRequest):
    faction_id: str
    weight: int = Field(100, ge=0, le=100)

    @field_validator("faction_id")
    @classmethod
    def validate_faction(cls, v):
        return _faction(v)


class HabitCreate(BaseRequest):
    name: str = Field(min_length=1, max_length=100)
    description: Optional[str] = Field(None, max_length=500)
    icon: str = Field("✅", max_length=10)
    habit_type: HabitType = HabitType.POSITIVE
    frequency: HabitFrequency = HabitFrequency.DAILY
    target_days: List[Weekday] = Field(default_factory=list)
    xp_per_completion: int = Field(10, ge=1, le=1000)
    faction_id: Optional[str] = None
    factions: List[HabitFactionWeight] = Field(default_factory=list)

    @field_validator("name")
    @classmethod
    def validate_name(cls, v):
        return _plain_name(v)

    @field_validator("description")
    @classmethod
    def validate_description(cls, v):
        return _plain_text(v)

    @field_validator("faction_id")
    @classmethod
    def validate_faction(cls, v):
        return _faction(v)

    @model_validator(mode="after")
    def validate_schedule(self):
        """specific_days habits need at least one target day."""
        if self.frequency == HabitFrequency.SPECIFIC_DAYS.value and not self.target_days:
            raise ValueError("target_days must not be empty for specific_days habits")
        ids = [f.faction_id for f in self.factions]
        if len(ids) != len(set(ids)):
            raise ValueError("factions must not repeat a faction_id")
        return self


class HabitUpdate(BaseRequest):
    name: Optional[str] = Field(None, min_length=1, max_length=100)
    description: Optional[str] = Field(None, max_length=500)
    icon: Optional[str] = Field(None, max_length=10)
    frequency: Optional[HabitFrequency] = None
    target_days: Optional[List[Weekday]] = None
    xp_per_completion: Optional[int] = Field(None, ge=1, le=1000)
    faction_id: Optional[str] = None
    factions: Optional[List[HabitFactionWeight]] = None
    is_active: Optional[bool] = None

    @field_validator("name")
    @classmethod
    def validate_name(cls, v):
        return _plain_name(v)

    @field_validator("description")
    @classmethod
    def validate_description(cls, v):
        return _plain_text(v)

    @field_validator("faction_id")
    @classmethod
    def validate_faction(cls, v):
        return _faction(v)


class HabitFactionResponse(BaseResponse):
    faction_id: str
    weight: int


class HabitResponse(BaseResponse):
    id: UUID
    name: str
    description: Optional[str] = None
    icon: str
    habit_type: str
    frequency: str
    target_days: List[str]
    xp_per_completion: int
    faction_id: Optional[str] = None
    factions: List[HabitFactionResponse] = Field(default_factory=list)
    current_streak: int
    longest_streak: int
    total_completions: int
    streak_start_date: Optional[date] = None
    resistance_count: int
    last_resistance_at: Optional[date] = None
    is_active: bool
    created_at: datetime
    updated_at: datetime


class HabitCompleteRequest(BaseRequest):
    completed: bool = True
    notes: Optional[str] = Field(None, max_length=500)

    @field_validator("notes")
    @classmethod
    def validate_notes(cls, v):
        return _plain_text(v)


class HabitNotesRequest(BaseRequest):
    notes: Optional[str] = Field(None, max_length=500)

    @field_validator("notes")
    @classmethod
    def validate_notes(cls, v):
        return _plain_text(v)


class HabitCompleteResponse(BaseModel):
    habit: HabitResponse
    xp_gained: int
    bonus_xp: int
    faction_results: List[FactionAwardResponse]
    achievements_unlocked: List[str] = Field(default_factory=list)


class HabitRelapseResponse(BaseModel):
    habit: HabitResponse
    previous_streak: int
    message: str


class HabitResistResponse(BaseModel):
    habit: HabitResponse
    current_streak: int
    xp_gained: int
    already_confirmed_today: bool
    message: str
    achievements_unlocked: List[str] = Field(default_factory=list)


class HabitLogResponse(BaseResponse):
    id: UUID
    habit_id: UUID
    completed: bool
    notes: Optional[str] = None
    xp_gained: int
    logged_at: datetime


class HabitLogsResponse(BaseModel):
    logs: List[HabitLogResponse]
    days: int
    completion_rate: float


class HabitStatsResponse(BaseModel):
    total_habits: int
    active_habits: int
    completed_today: int
    total_streaks: int
    longest_streak: int
    total_completions: int


# Streak insurance schemas
class TokenGrantRequest(BaseRequest):
    reason: str = Field(min_length=1, max_length=200)
    token_type: TokenType = TokenType.STANDARD
    expires_in_days: Optional[int] = Field(None, ge=1, le=365)

    @field_validator("reason")
    @classmethod
    def validate_reason(cls, v):
        return _plain_text(v)


class TokenUseRequest(BaseModel):
    habit_id: UUID


class StreakTokenResponse(BaseResponse):
    id: UUID
    token_type: str
    reason: Optional[str] = None
    granted_at: datetime
    expires_at: datetime
    used_at: Optional[datetime] = None
    used_for_habit_id: Optional[UUID] = None


class TokenUseResponse(BaseModel):
    token: StreakTokenResponse
    habit_id: UUID
    current_streak: int
    message: str


class TokenStatsResponse(BaseModel):
    available: int
    used: int
    expired: int
    total: int


# Quest schemas
class QuestCreate(BaseRequest):
    title: str = Field(min_length=1, max_length=200)
    description: Optional[str] = Field(None, max_length=2000)
    xp_reward: int = Field(50, ge=1, le=10000)
    quest_type: QuestType = QuestType.MANUAL
    difficulty: Optional[QuestDifficulty] = None
    required_actions: int = Field(1, ge=1)
    expires_at: Optional[datetime] = None
    due_date: Optional[date] = None
    skill_id: Optional[UUID] = None
    faction_id: Optional[str] = None
    target_faction_ids: List[str] = Field(default_factory=list)
    target_skill_ids: List[UUID] = Field(default_factory=list)

    @field_validator("title")
    @classmethod
    def validate_title(cls, v):
        return _plain_name(v)

    @field_validator("faction_id")
    @classmethod
    def validate_faction(cls, v):
        return _faction(v)

    @field_validator("description")
    @classmethod
    def clean_description(cls, v):
        """Keep simple formatting tags, drop everything else."""
        if v is None:
            return v
        return sanitize_html(v)

    @field_validator("target_faction_ids")
    @classmethod
    def migrate_target_factions(cls, v):
        return [_faction(f) for f in v]


class QuestUpdate(BaseRequest):
    title: Optional[str] = Field(None, min_length=1, max_length=200)
    description: Optional[str] = Field(None, max_length=2000)
    xp_reward: Optional[int] = Field(None, ge=1, le=10000)
    difficulty: Optional[QuestDifficulty] = None
    required_actions: Optional[int] = Field(None, ge=1)
    expires_at: Optional[datetime] = None
    due_date: Optional[date] = None
    faction_id: Optional[str] = None
    target_faction_ids: Optional[List[str]] = None
    target_skill_ids: Optional[List[UUID]] = None

    @field_validator("title")
    @classmethod
    def validate_title(cls, v):
        return _plain_name(v)

    @field_validator("faction_id")
    @classmethod
    def validate_faction(cls, v):
        return _faction(v)

    @field_validator("description")
    @classmethod
    def clean_description(cls, v):
        if v is None:
            return v
        return sanitize_html(v)

    @field_validator("target_faction_ids")
    @classmethod
    def migrate_target_factions(cls, v):
        if v is None:
            return v
        return [_faction(f) for f in v]


class QuestResponse(BaseResponse):
    id: UUID
    title: str
    description: Optional[str] = None
    xp_reward: int
    quest_type: str
    difficulty: Optional[str] = None
    status: str
    required_actions: int
    completed_actions: int
    progress: int
    skill_id: Optional[UUID] = None
    faction_id: Optional[str] = None
    target_faction_ids: List[str]
    target_skill_ids: List[str]
    due_date: Optional[date] = None
    expires_at: Optional[datetime] = None
    completed_at: Optional[datetime] = None
    created_at: datetime


class QuestProgressRequest(BaseRequest):
    action: QuestProgressAction = QuestProgressAction.INCREMENT
    notes: Optional[str] = Field(None, max_length=500)

    @field_validator("notes")
    @classmethod
    def validate_notes(cls, v):
        return _plain_text(v)


class SkillResultResponse(BaseModel):
    skill_id: UUID
    xp: int
    new_level: int
    leveled_up: bool


class QuestProgressResponse(BaseModel):
    quest: QuestResponse
    completed: bool
    xp_awarded: int = 0
    faction_results: List[FactionAwardResponse] = Field(default_factory=list)
    skill_results: List[SkillResultResponse] = Field(default_factory=list)
    achievements_unlocked: List[str] = Field(default_factory=list)


class QuestStatsResponse(BaseModel):
    active: int
    completed: int
    failed: int
    expired: int
    total: int


class QuestExpireResponse(BaseModel):
    expired: int


# Contact schemas
class ContactInfo(BaseModel):
    phone: Optional[str] = Field(None, max_length=50)
    email: Optional[str] = Field(None, max_length=255)
    address: Optional[str] = Field(None, max_length=500)
    social: Dict[str, str] = Field(default_factory=dict)


class ContactBase(BaseRequest):
    last_name: Optional[str] = Field(None, max_length=100)
    nickname: Optional[str] = Field(None, max_length=100)
    photo_url: Optional[str] = Field(None, max_length=500)
    birthday: Optional[date] = None
    anniversary: Optional[date] = None
    met_date: Optional[date] = None
    met_context: Optional[str] = Field(None, max_length=500)
    contact_info: Optional[ContactInfo] = None
    shared_interests: Optional[List[str]] = None
    notes: Optional[str] = Field(None, max_length=5000)
    tags: Optional[List[str]] = None
    trust_level: Optional[int] = Field(None, ge=0, le=100)
    is_favorite: Optional[bool] = None
    reminder_frequency_days: Optional[int] = Field(None, ge=1, le=3650)
    suppress_attention_reminder: Optional[bool] = None

    @field_validator("last_name", "nickname")
    @classmethod
    def validate_names(cls, v):
        return _plain_name(v) if v else None

    @field_validator("met_context", "notes")
    @classmethod
    def validate_text(cls, v):
        return _plain_text(v)

    @field_validator("birthday", "anniversary", "met_date", mode="before")
    @classmethod
    def empty_date_is_none(cls, v):
        if isinstance(v, str) and not v.strip():
            return None
        return v


class ContactCreate(ContactBase):
    first_name: str = Field(min_length=1, max_length=100)
    relationship_type: RelationshipType = RelationshipType.FRIEND

    @field_validator("first_name")
    @classmethod
    def validate_first_name(cls, v):
        return _plain_name(v)


class ContactUpdate(ContactBase):
    first_name: Optional[str] = Field(None, min_length=1, max_length=100)
    relationship_type: Optional[RelationshipType] = None

    @field_validator("first_name")
    @classmethod
    def validate_first_name(cls, v):
        return _plain_name(v)


class ContactResponse(BaseResponse):
    id: UUID
    first_name: str
    last_name: Optional[str] = None
    nickname: Optional[str] = None
    photo_url: Optional[str] = None
    display_name: str
    relationship_type: str
    relationship_category: str
    relationship_label: str
    trust_level: int
    relationship_level: int
    current_xp: int
    xp_for_next_level: int
    progress_percent: int
    birthday: Optional[date] = None
    anniversary: Optional[date] = None
    met_date: Optional[date] = None
    met_context: Optional[str] = None
    contact_info: Dict[str, Any]
    shared_interests: List[str]
    notes: Optional[str] = None
    tags: List[str]
    last_interaction_at: Optional[datetime] = None
    interaction_count: int
    avg_interaction_quality: Optional[float] = None
    days_since_interaction: Optional[int] = None
    days_until_birthday: Optional[int] = None
    needs_attention: bool
    is_favorite: bool
    is_archived: bool
    reminder_frequency_days: Optional[int] = None
    suppress_attention_reminder: bool
    created_at: datetime
    updated_at: datetime


class ContactStatsResponse(BaseModel):
    total: int
    by_category: Dict[str, int]
    favorites: int
    needing_attention: int


class UpcomingBirthdayResponse(BaseModel):
    contact: ContactResponse
    days_until: int
    turns: Optional[int] = None


class InteractionCreate(BaseRequest):
    interaction_type: InteractionType
    title: Optional[str] = Field(None, max_length=200)
    description: Optional[str] = Field(None, max_length=2000)
    quality: InteractionQuality = InteractionQuality.GOOD
    duration_minutes: Optional[int] = Field(None, ge=0, le=24 * 60)
    occurred_at: Optional[datetime] = None
    location: Optional[str] = Field(None, max_length=200)
    participants: List[str] = Field(default_factory=list)
    related_skill_id: Optional[UUID] = None

    @field_validator("title")
    @classmethod
    def validate_title(cls, v):
        return _plain_name(v) if v else None

    @field_validator("description", "location")
    @classmethod
    def validate_text(cls, v):
        return _plain_text(v)


class InteractionResponse(BaseResponse):
    id: UUID
    contact_id: UUID
    interaction_type: str
    title: Optional[str] = None
    description: Optional[str] = None
    quality: str
    xp_gained: int
    duration_minutes: Optional[int] = None
    occurred_at: datetime
    location: Optional[str] = None
    participants: List[str]
    related_skill_id: Optional[UUID] = None
    created_at: datetime


class InteractionCreateResponse(BaseModel):
    interaction: InteractionResponse
    xp_gained: int
    relationship_level: int
    leveled_up: bool
    faction_id: str


class InteractionStatsResponse(BaseModel):
    total: int
    last_30_days: int
    last_7_days: int
    avg_quality: Optional[float] = None
    total_xp: int
    by_type: Dict[str, int]
    quality_distribution: Dict[str, int]


class ColumnMappingSchema(BaseModel):
    first_name: str
    last_name: Optional[str] = None
    email: Optional[str] = None
    phone: Optional[str] = None
    birthday: Optional[str] = None
    address: Optional[str] = None
    notes: Optional[str] = None


class ImportPreviewRequest(BaseRequest):
    content: str = Field(min_length=1)
    filename: Optional[str] = Field(None, max_length=255)
    format: Optional[ImportFormat] = None
    mapping: Optional[ColumnMappingSchema] = None


class ImportContactSchema(BaseRequest):
    first_name: str = Field(min_length=1, max_length=100)
    last_name: Optional[str] = None
    nickname: Optional[str] = None
    email: Optional[str] = None
    phone: Optional[str] = None
    address: Optional[str] = None
    birthday: Optional[str] = None
    suggested_type: RelationshipType = RelationshipType.FRIEND
    suggested_category: RelationshipCategory = RelationshipCategory.FRIEND
    selected: bool = True


class ImportPreviewResponse(BaseModel):
    format: str
    headers: List[str] = Field(default_factory=list)
    contacts: List[ImportContactSchema]
    errors: List[str]
    warnings: List[str]


class BulkImportRequest(BaseModel):
    contacts: List[ImportContactSchema] = Field(max_length=5000)
    skip_duplicates: bool = True


class ImportErrorItem(BaseModel):
    name: str
    error: str


class BulkImportResponse(BaseModel):
    imported: int
    skipped: int
    errors: List[ImportErrorItem]


# Geist schemas
class MoodCreate(BaseRequest):
    mood: MoodValue
    note: Optional[str] = Field(None, max_length=500)

    @field_validator("note")
    @classmethod
    def validate_note(cls, v):
        return _plain_text(v)


class MoodResponse(BaseResponse):
    id: UUID
    mood: str
    note: Optional[str] = None
    emoji: str
    score: int
    label: str
    created_at: datetime


class MoodLogResponse(BaseModel):
    mood_log: MoodResponse
    xp_gained: int


class WeeklyMoodPoint(BaseModel):
    date: date
    mood: str
    score: int


class GeistStatsResponse(BaseModel):
    days: int
    total_logs: int
    mood_counts: Dict[str, int]
    avg_mood_score: Optional[float] = None
    streak_days: int
    journal_count: int
    total_words: int
    todays_mood: Optional[MoodResponse] = None


class JournalCreate(BaseRequest):
    content: str = Field(min_length=1, max_length=20000)
    prompt: Optional[str] = Field(None, max_length=500)
    tags: List[str] = Field(default_factory=list)

    @field_validator("content", "prompt")
    @classmethod
    def validate_text(cls, v):
        return _plain_text(v)


class JournalResponse(BaseResponse):
    id: UUID
    content: str
    prompt: Optional[str] = None
    tags: List[str]
    word_count: int
    created_at: datetime


class JournalCreateResponse(BaseModel):
    entry: JournalResponse
    xp_gained: int


class PromptResponse(BaseModel):
    prompt: str


# Currency schemas
class WalletResponse(BaseResponse):
    gold: int
    gems: int
    total_gold_earned: int
    total_gold_spent: int
    updated_at: datetime


class CurrencyChangeRequest(BaseRequest):
    amount: int = Field(gt=0, le=1_000_000)
    currency: CurrencyKind = CurrencyKind.GOLD
    transaction_type: CurrencyTransactionType = CurrencyTransactionType.REWARD
    description: Optional[str] = Field(None, max_length=500)
    source_type: Optional[str] = Field(None, max_length=50)
    source_id: Optional[str] = Field(None, max_length=64)

    @field_validator("description")
    @classmethod
    def validate_description(cls, v):
        return _plain_text(v)


class CurrencyTransactionResponse(BaseResponse):
    id: UUID
    amount: int
    currency: str
    transaction_type: str
    description: Optional[str] = None
    source_type: Optional[str] = None
    source_id: Optional[str] = None
    created_at: datetime


class CurrencyChangeResponse(BaseModel):
    wallet: WalletResponse
    transaction: CurrencyTransactionResponse


class CurrencyStatsResponse(BaseModel):
    gold: int
    gems: int
    total_gold_earned: int
    total_gold_spent: int
    transaction_count: int


# Activity schemas
class ActivityCreate(BaseRequest):
    activity_type: ActivityType = ActivityType.MANUAL
    faction_id: Optional[str] = None
    title: str = Field(min_length=1, max_length=300)
    description: Optional[str] = Field(None, max_length=1000)
    xp_amount: int = Field(0, ge=0, le=10000)
    details: Dict[str, Any] = Field(default_factory=dict)

    @field_validator("title")
    @classmethod
    def validate_title(cls, v):
        return _plain_name(v)

    @field_validator("description")
    @classmethod
    def validate_description(cls, v):
        return _plain_text(v)

    @field_validator("faction_id")
    @classmethod
    def validate_faction(cls, v):
        return _faction(v)


class ActivityResponse(BaseResponse):
    id: UUID
    activity_type: str
    faction_id: Optional[str] = None
    title: str
    description: Optional[str] = None
    xp_amount: int
    related_entity_type: Optional[str] = None
    related_entity_id: Optional[str] = None
    details: Dict[str, Any]
    occurred_at: datetime


class ActivitySummaryResponse(BaseModel):
    days: int
    total_activities: int
    total_xp_gained: int
    by_type: Dict[str, int]
    by_faction: Dict[str, int]


class DailyActivityPoint(BaseModel):
    date: date
    count: int
    xp: int


# Finance schemas
class AccountCreate(BaseRequest):
    name: str = Field(min_length=1, max_length=100)
    account_type: AccountType = AccountType.CHECKING
    institution: Optional[str] = Field(None, max_length=100)
    currency: str = Field("EUR", min_length=3, max_length=3)
    current_balance: float = 0.0
    is_excluded_from_net_worth: bool = False
    icon: Optional[str] = Field(None, max_length=10)
    color: Optional[str] = Field(None, max_length=20)
    credit_limit: Optional[float] = Field(None, ge=0)
    interest_rate: Optional[float] = Field(None, ge=0, le=1)

    @field_validator("name")
    @classmethod
    def validate_name(cls, v):
        return _plain_name(v)


class AccountUpdate(BaseRequest):
    name: Optional[str] = Field(None, min_length=1, max_length=100)
    institution: Optional[str] = Field(None, max_length=100)
    is_active: Optional[bool] = None
    is_excluded_from_net_worth: Optional[bool] = None
    icon: Optional[str] = Field(None, max_length=10)
    color: Optional[str] = Field(None, max_length=20)
    credit_limit: Optional[float] = Field(None, ge=0)
    interest_rate: Optional[float] = Field(None, ge=0, le=1)

    @field_validator("name")
    @classmethod
    def validate_name(cls, v):
        return _plain_name(v)


class BalanceUpdateRequest(BaseModel):
    current_balance: float


class AccountResponse(BaseResponse):
    id: UUID
    name: str
    account_type: str
    institution: Optional[str] = None
    currency: str
    current_balance: float
    is_active: bool
    is_excluded_from_net_worth: bool
    icon: Optional[str] = None
    color: Optional[str] = None
    credit_limit: Optional[float] = None
    interest_rate: Optional[float] = None
    created_at: datetime


class TransactionCreate(BaseRequest):
    account_id: UUID
    transaction_type: TransactionType
    category: Optional[str] = Field(None, max_length=50)
    amount: float = Field(gt=0)
    description: Optional[str] = Field(None, max_length=500)
    occurred_at: date
    to_account_id: Optional[UUID] = None
    tags: List[str] = Field(default_factory=list)

    @field_validator("description")
    @classmethod
    def validate_description(cls, v):
        return _plain_text(v)

    @model_validator(mode="after")
    def validate_transfer(self):
        if self.transaction_type == TransactionType.TRANSFER.value and self.to_account_id is None:
            raise ValueError("to_account_id is required for transfers")
        return self


class TransactionResponse(BaseResponse):
    id: UUID
    account_id: UUID
    transaction_type: str
    category: Optional[str] = None
    amount: float
    description: Optional[str] = None
    occurred_at: date
    to_account_id: Optional[UUID] = None
    tags: List[str]
    created_at: datetime


class CategoryTotalResponse(BaseModel):
    category: str
    total: float
    count: int


class CsvImportRequest(BaseModel):
    content: str = Field(min_length=1)


class CsvImportResponse(BaseModel):
    imported: int
    skipped: int


class CashflowResponse(BaseModel):
    year: int
    month: int
    income: float
    expenses: float
    savings: float
    net: float


class NetWorthResponse(BaseModel):
    assets: float
    liabilities: float
    net_worth: float
    net_worth_level: int


class SavingsGoalCreate(BaseRequest):
    name: str = Field(min_length=1, max_length=100)
    description: Optional[str] = Field(None, max_length=500)
    icon: str = Field("🎯", max_length=10)
    color: str = Field("#14B8A6", max_length=20)
    target_amount: float = Field(gt=0)
    current_amount: float = Field(0.0, ge=0)
    monthly_contribution: float = Field(0.0, ge=0)
    interest_rate: float = Field(0.0, ge=0, le=1)
    compounds_per_year: int = Field(12, ge=1, le=365)
    start_date: Optional[date] = None
    target_date: Optional[date] = None

    @field_validator("name")
    @classmethod
    def validate_name(cls, v):
        return _plain_name(v)

    @field_validator("description")
    @classmethod
    def validate_description(cls, v):
        return _plain_text(v)


class SavingsGoalUpdate(BaseRequest):
    name: Optional[str] = Field(None, min_length=1, max_length=100)
    description: Optional[str] = Field(None, max_length=500)
    icon: Optional[str] = Field(None, max_length=10)
    color: Optional[str] = Field(None, max_length=20)
    target_amount: Optional[float] = Field(None, gt=0)
    monthly_contribution: Optional[float] = Field(None, ge=0)
    interest_rate: Optional[float] = Field(None, ge=0, le=1)
    compounds_per_year: Optional[int] = Field(None, ge=1, le=365)
    target_date: Optional[date] = None

    @field_validator("name")
    @classmethod
    def validate_name(cls, v):
        return _plain_name(v)

    @field_validator("description")
    @classmethod
    def validate_description(cls, v):
        return _plain_text(v)


class GoalAmountRequest(BaseModel):
    current_amount: float = Field(ge=0)


class SavingsGoalResponse(BaseResponse):
    id: UUID
    name: str
    description: Optional[str] = None
    icon: str
    color: str
    target_amount: float
    current_amount: float
    monthly_contribution: float
    interest_rate: float
    compounds_per_year: int
    start_date: date
    target_date: Optional[date] = None
    is_achieved: bool
    achieved_at: Optional[datetime] = None
    progress_percent: float
    projected_amount: float
    days_remaining: Optional[int] = None
    months_to_goal: Optional[int] = None
    created_at: datetime


class GoalAmountResponse(BaseModel):
    goal: SavingsGoalResponse
    achieved_now: bool
    xp_awarded: int
    achievements_unlocked: List[str] = Field(default_factory=list)


class CompoundInterestResponse(BaseModel):
    projected_amount: float
    months_to_goal: Optional[int] = None


# Achievement schemas
class AchievementResponse(BaseModel):
    key: str
    name: str
    description: str
    icon: str
    category: str
    rarity: str
    faction_id: Optional[str] = None
    xp_reward: int
    requirement_type: str
    requirement_value: int
    current_progress: int = 0
    is_unlocked: bool = False
    unlocked_at: Optional[datetime] = None
    progress_percent: float = 0.0


class AchievementStatsResponse(BaseModel):
    total: int
    unlocked: int
    completion_percent: float
    xp_earned: int
    by_rarity: Dict[str, int]
    recent_unlocks: List[AchievementResponse]
    next_to_unlock: List[AchievementResponse]


# Weekly report schemas
class WeeklyReportResponse(BaseResponse):
    id: UUID
    week_start: date
    week_end: date
    top_wins: List[str]
    attention_area: Optional[str] = None
    recognized_pattern: Optional[str] = None
    recommendation: Optional[str] = None
    stats_snapshot: Dict[str, Any]
    read_at: Optional[datetime] = None
    created_at: datetime


class UnreadCountResponse(BaseModel):
    unread: int
