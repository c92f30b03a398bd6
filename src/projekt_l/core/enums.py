"""Enums for the Projekt L application."""

from enum import Enum


class FactionId(str, Enum):
    """The seven life areas XP is aggregated into."""

    KARRIERE = "karriere"
    HOBBY = "hobby"
    KOERPER = "koerper"
    GEIST = "geist"
    FINANZEN = "finanzen"
    SOZIALES = "soziales"
    WISSEN = "wissen"


class ConnectionType(str, Enum):
    """Kinds of edges between skills."""

    PREREQUISITE = "prerequisite"
    SYNERGY = "synergy"
    RELATED = "related"


class GraphDirection(str, Enum):
    """Layout direction of a saved skill graph view."""

    TOP_BOTTOM = "TB"
    LEFT_RIGHT = "LR"


class HabitType(str, Enum):
    """Positive habits are built, negative habits are avoided."""

    POSITIVE = "positive"
    NEGATIVE = "negative"


class HabitFrequency(str, Enum):
    DAILY = "daily"
    WEEKLY = "weekly"
    SPECIFIC_DAYS = "specific_days"


class Weekday(str, Enum):
    MON = "mon"
    TUE = "tue"
    WED = "wed"
    THU = "thu"
    FRI = "fri"
    SAT = "sat"
    SUN = "sun"


class TokenType(str, Enum):
    """Streak insurance token tiers."""

    STANDARD = "standard"
    PREMIUM = "premium"


class QuestStatus(str, Enum):
    ACTIVE = "active"
    COMPLETED = "completed"
    FAILED = "failed"
    EXPIRED = "expired"


class QuestType(str, Enum):
    DAILY = "daily"
    WEEKLY = "weekly"
    STORY = "story"
    MANUAL = "manual"


class QuestDifficulty(str, Enum):
    EASY = "easy"
    MEDIUM = "medium"
    HARD = "hard"
    EPIC = "epic"


class QuestProgressAction(str, Enum):
    INCREMENT = "increment"
    DECREMENT = "decrement"
    COMPLETE = "complete"


class RelationshipCategory(str, Enum):
    FAMILY = "family"
    FRIEND = "friend"
    PROFESSIONAL = "professional"
    OTHER = "other"


class RelationshipType(str, Enum):
    """Relationship of a contact to the user."""

    PARTNER = "partner"
    SPOUSE = "spouse"
    CHILD = "child"
    PARENT = "parent"
    GRANDPARENT = "grandparent"
    SIBLING = "sibling"
    SIBLING_IN_LAW = "sibling_in_law"
    PARENT_IN_LAW = "parent_in_law"
    CHILD_IN_LAW = "child_in_law"
    COUSIN = "cousin"
    AUNT_UNCLE = "aunt_uncle"
    NIECE_NEPHEW = "niece_nephew"
    STEP_PARENT = "step_parent"
    STEP_CHILD = "step_child"
    STEP_SIBLING = "step_sibling"
    CLOSE_FRIEND = "close_friend"
    FRIEND = "friend"
    ACQUAINTANCE = "acquaintance"
    COLLEAGUE = "colleague"
    MENTOR = "mentor"
    MENTEE = "mentee"
    NEIGHBOR = "neighbor"
    OTHER = "other"


class InteractionType(str, Enum):
    CALL = "call"
    VIDEO_CALL = "video_call"
    MESSAGE = "message"
    MEETING = "meeting"
    ACTIVITY = "activity"
    EVENT = "event"
    GIFT = "gift"
    SUPPORT = "support"
    QUALITY_TIME = "quality_time"
    OTHER = "other"


class InteractionQuality(str, Enum):
    POOR = "poor"
    NEUTRAL = "neutral"
    GOOD = "good"
    GREAT = "great"
    EXCEPTIONAL = "exceptional"


class ImportFormat(str, Enum):
    """Contact import source formats."""

    GOOGLE = "google"
    VCARD = "vcard"
    CSV = "csv"
    UNKNOWN = "unknown"


class IcsExportType(str, Enum):
    ALL = "all"
    BIRTHDAYS = "birthdays"
    ANNIVERSARIES = "anniversaries"


class ExportFormat(str, Enum):
    JSON = "json"
    CSV = "csv"


class MoodValue(str, Enum):
    GREAT = "great"
    GOOD = "good"
    OKAY = "okay"
    BAD = "bad"
    TERRIBLE = "terrible"


class CurrencyKind(str, Enum):
    GOLD = "gold"
    GEMS = "gems"


class CurrencyTransactionType(str, Enum):
    REWARD = "reward"
    PURCHASE = "purchase"
    BONUS = "bonus"
    REFUND = "refund"
    STREAK_MILESTONE = "streak_milestone"


class ActivityType(str, Enum):
    """Kinds of entries in the activity feed."""

    XP_GAINED = "xp_gained"
    LEVEL_UP = "level_up"
    HABIT_COMPLETED = "habit_completed"
    HABIT_RELAPSE = "habit_relapse"
    QUEST_COMPLETED = "quest_completed"
    SOCIAL_INTERACTION = "social_interaction"
    MOOD_LOGGED = "mood_logged"
    JOURNAL_WRITTEN = "journal_written"
    GOAL_ACHIEVED = "goal_achieved"
    STREAK_SAVED = "streak_saved"
    TRANSACTION_IMPORTED = "transaction_imported"
    ACHIEVEMENT_UNLOCKED = "achievement_unlocked"
    REPORT_GENERATED = "report_generated"
    MANUAL = "manual"


class AccountType(str, Enum):
    CHECKING = "checking"
    SAVINGS = "savings"
    CREDIT = "credit"
    INVESTMENT = "investment"
    CRYPTO = "crypto"
    CASH = "cash"
    LOAN = "loan"


class TransactionType(str, Enum):
    INCOME = "income"
    EXPENSE = "expense"
    TRANSFER = "transfer"


class AchievementRequirement(str, Enum):
    """The counter an achievement is measured against."""

    HABIT_COUNT = "habit_count"
    HABIT_STREAK = "habit_streak"
    RESISTANCE_COUNT = "resistance_count"
    SAVINGS_GOAL = "savings_goal"
    QUEST_COUNT = "quest_count"


class AchievementRarity(str, Enum):
    COMMON = "common"
    RARE = "rare"
    EPIC = "epic"
    LEGENDARY = "legendary"
