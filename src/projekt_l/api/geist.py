"""Geist API endpoints: mood tracking and journaling."""

from datetime import datetime, timedelta, timezone
from typing import List, Optional
from uuid import UUID

from fastapi import APIRouter, Depends, Query, Response, status
from sqlalchemy.orm import Session

from ..auth.dependencies import get_current_user
from ..core.enums import ActivityType, FactionId, MoodValue
from ..core.progression import ProgressionEngine
from ..db.database import get_db
from ..db.models import JournalEntry, MoodLog, User
from ..domain.geist import (
    JOURNAL_XP,
    MOOD_XP,
    MOODS,
    average_mood_score,
    mood_streak,
    random_prompt,
    word_count,
)
from ..repositories.dependencies import get_progression_engine
from ..utils.logging_config import get_logger
from .ownership import get_owned
from .schemas import (
    GeistStatsResponse,
    JournalCreate,
    JournalCreateResponse,
    JournalResponse,
    MoodCreate,
    MoodLogResponse,
    MoodResponse,
    ProblemDetails,
    PromptResponse,
    WeeklyMoodPoint,
)

router = APIRouter(prefix="/v1/geist", tags=["geist"])
logger = get_logger("api")

GEIST = FactionId.GEIST.value

OWNERSHIP_RESPONSES = {
    403: {"model": ProblemDetails, "description": "Entry belongs to another user"},
    404: {"model": ProblemDetails, "description": "Entry not found"},
}


def mood_response(log: MoodLog) -> MoodResponse:
    meta = MOODS[MoodValue(log.mood)]
    return MoodResponse(
        id=log.id,
        mood=log.mood,
        note=log.note,
        emoji=meta.emoji,
        score=meta.score,
        label=meta.label,
        created_at=log.created_at,
    )


def _mood_logs_since(db: Session, user: User, since: datetime) -> List[MoodLog]:
    return (
        db.query(MoodLog)
        .filter(MoodLog.user_id == user.id, MoodLog.created_at >= since)
        .order_by(MoodLog.created_at.desc())
        .all()
    )


def _start_of_today(now: datetime) -> datetime:
    return now.replace(hour=0, minute=0, second=0, microsecond=0)


def _todays_mood(db: Session, user: User, now: datetime) -> Optional[MoodLog]:
    return (
        db.query(MoodLog)
        .filter(MoodLog.user_id == user.id, MoodLog.created_at >= _start_of_today(now))
        .order_by(MoodLog.created_at.desc())
        .first()
    )


# Mood


@router.post(
    "/mood",
    response_model=MoodLogResponse,
    status_code=status.HTTP_201_CREATED,
    responses={422: {"model": ProblemDetails, "description": "Validation error"}},
)
async def log_mood(
    data: MoodCreate,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
    engine: ProgressionEngine = Depends(get_progression_engine),
) -> MoodLogResponse:
    log = MoodLog(user_id=current_user.id, mood=data.mood, note=data.note)
    db.add(log)
    db.flush()

    await engine.update_faction_stats(current_user.id, GEIST, MOOD_XP)
    meta = MOODS[MoodValue(data.mood)]
    await engine.log_activity(
        current_user.id,
        ActivityType.MOOD_LOGGED,
        title=f"{meta.emoji} Stimmung: {meta.label}",
        description=data.note,
        faction_id=GEIST,
        xp_amount=MOOD_XP,
        related_entity_type="mood_log",
        related_entity_id=log.id,
        details={"mood": data.mood, "score": meta.score},
    )
    await engine.repos.commit()
    db.refresh(log)

    logger.info(f"Mood {log.mood} logged for user {current_user.id}")
    return MoodLogResponse(mood_log=mood_response(log), xp_gained=MOOD_XP)


@router.get("/mood", response_model=List[MoodResponse])
def get_mood_history(
    days: int = Query(30, ge=1, le=365),
    limit: int = Query(100, ge=1, le=1000),
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> List[MoodResponse]:
    since = datetime.now(timezone.utc) - timedelta(days=days)
    return [mood_response(log) for log in _mood_logs_since(db, current_user, since)[:limit]]


@router.get("/mood/today", response_model=Optional[MoodResponse])
def get_todays_mood(
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> Optional[MoodResponse]:
    log = _todays_mood(db, current_user, datetime.now(timezone.utc))
    return mood_response(log) if log else None


@router.get("/mood/weekly", response_model=List[WeeklyMoodPoint])
def get_weekly_mood(
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> List[WeeklyMoodPoint]:
    """The latest mood of each of the last seven days, oldest first."""
    now = datetime.now(timezone.utc)
    since = _start_of_today(now) - timedelta(days=6)
    latest_per_day = {}
    for log in _mood_logs_since(db, current_user, since):
        latest_per_day.setdefault(log.created_at.date(), log)

    return [
        WeeklyMoodPoint(date=day, mood=log.mood, score=MOODS[MoodValue(log.mood)].score)
        for day, log in sorted(latest_per_day.items())
    ]


@router.get("/stats", response_model=GeistStatsResponse)
def get_geist_stats(
    days: int = Query(30, ge=1, le=365),
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> GeistStatsResponse:
    now = datetime.now(timezone.utc)
    logs = _mood_logs_since(db, current_user, now - timedelta(days=days))
    mood_counts = {mood.value: 0 for mood in MoodValue}
    for log in logs:
        mood_counts[log.mood] = mood_counts.get(log.mood, 0) + 1

    all_days = [
        created.date()
        for (created,) in db.query(MoodLog.created_at).filter(MoodLog.user_id == current_user.id)
    ]
    word_counts = [
        count
        for (count,) in db.query(JournalEntry.word_count).filter(JournalEntry.user_id == current_user.id)
    ]
    todays = _todays_mood(db, current_user, now)

    return GeistStatsResponse(
        days=days,
        total_logs=len(logs),
        mood_counts=mood_counts,
        avg_mood_score=average_mood_score(log.mood for log in logs),
        streak_days=mood_streak(all_days, now.date()),
        journal_count=len(word_counts),
        total_words=sum(word_counts),
        todays_mood=mood_response(todays) if todays else None,
    )


# Journal


@router.get("/journal/prompt", response_model=PromptResponse)
def get_journal_prompt(current_user: User = Depends(get_current_user)) -> PromptResponse:
    return PromptResponse(prompt=random_prompt())


@router.post(
    "/journal",
    response_model=JournalCreateResponse,
    status_code=status.HTTP_201_CREATED,
    responses={422: {"model": ProblemDetails, "description": "Validation error"}},
)
async def create_journal_entry(
    data: JournalCreate,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
    engine: ProgressionEngine = Depends(get_progression_engine),
) -> JournalCreateResponse:
    entry = JournalEntry(
        user_id=current_user.id,
        content=data.content,
        prompt=data.prompt,
        tags=list(data.tags),
        word_count=word_count(data.content),
    )
    db.add(entry)
    db.flush()

    await engine.update_faction_stats(current_user.id, GEIST, JOURNAL_XP)
    await engine.log_activity(
        current_user.id,
        ActivityType.JOURNAL_WRITTEN,
        title=f"📓 Tagebucheintrag ({entry.word_count} Wörter)",
        faction_id=GEIST,
        xp_amount=JOURNAL_XP,
        related_entity_type="journal_entry",
        related_entity_id=entry.id,
        details={"word_count": entry.word_count},
    )
    await engine.repos.commit()
    db.refresh(entry)

    logger.info(f"Journal entry {entry.id} written by user {current_user.id}")
    return JournalCreateResponse(entry=JournalResponse.model_validate(entry), xp_gained=JOURNAL_XP)


@router.get("/journal", response_model=List[JournalResponse])
def list_journal_entries(
    limit: int = Query(20, ge=1, le=200),
    offset: int = Query(0, ge=0),
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> List[JournalResponse]:
    entries = (
        db.query(JournalEntry)
        .filter(JournalEntry.user_id == current_user.id)
        .order_by(JournalEntry.created_at.desc())
        .offset(offset)
        .limit(limit)
        .all()
    )
    return [JournalResponse.model_validate(e) for e in entries]


@router.get("/journal/{entry_id}", response_model=JournalResponse, responses=OWNERSHIP_RESPONSES)
def get_journal_entry(
    entry_id: UUID,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> JournalResponse:
    return JournalResponse.model_validate(
        get_owned(db, JournalEntry, entry_id, current_user, "Journal entry")
    )


@router.delete(
    "/journal/{entry_id}", status_code=status.HTTP_204_NO_CONTENT, responses=OWNERSHIP_RESPONSES
)
def delete_journal_entry(
    entry_id: UUID,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> Response:
    entry = get_owned(db, JournalEntry, entry_id, current_user, "Journal entry")
    db.delete(entry)
    db.commit()
    logger.info(f"Deleted journal entry {entry_id}")
    return Response(status_code=status.HTTP_204_NO_CONTENT)
