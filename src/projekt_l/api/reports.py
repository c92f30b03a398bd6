"""Weekly report endpoints: generate, list and mark as read."""

from collections import defaultdict
from datetime import date, datetime, time, timedelta, timezone
from typing import List
from uuid import UUID

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy import or_
from sqlalchemy.orm import Session

from ..auth.dependencies import get_current_user
from ..core.enums import ActivityType, CurrencyKind, QuestStatus
from ..core.progression import ProgressionEngine
from ..db.database import get_db
from ..db.models import (
    ActivityLog,
    CurrencyTransaction,
    HabitLog,
    JournalEntry,
    MoodLog,
    Quest,
    User,
    UserAchievement,
    WeeklyReport,
)
from ..domain.reports import WeeklyStats, compose_report, has_enough_activity, week_bounds
from ..repositories.dependencies import get_progression_engine
from ..utils.logging_config import get_logger
from .middleware import bad_request, conflict, not_found
from .ownership import get_owned
from .schemas import ProblemDetails, UnreadCountResponse, WeeklyReportResponse

router = APIRouter(prefix="/v1/reports/weekly", tags=["reports"])
logger = get_logger("api")

OWNERSHIP_RESPONSES = {
    403: {"model": ProblemDetails, "description": "Report belongs to another user"},
    404: {"model": ProblemDetails, "description": "Report not found"},
}


def _window(week_start: date, week_end: date):
    start = datetime.combine(week_start, time.min, tzinfo=timezone.utc)
    end = datetime.combine(week_end + timedelta(days=1), time.min, tzinfo=timezone.utc)
    return start, end


def gather_weekly_stats(db: Session, user_id: UUID, week_start: date, week_end: date) -> WeeklyStats:
    """Count the user's activity between week_start and week_end, both inclusive."""
    start, end = _window(week_start, week_end)

    quests = (
        db.query(Quest)
        .filter(
            Quest.user_id == user_id,
            or_(
                Quest.completed_at.between(start, end),
                Quest.updated_at.between(start, end),
            ),
        )
        .all()
    )
    completed = [
        q for q in quests
        if q.status == QuestStatus.COMPLETED.value and q.completed_at and start <= q.completed_at < end
    ]
    failed = [q for q in quests if q.status == QuestStatus.FAILED.value]

    faction_activity = defaultdict(int)
    total_xp = 0
    for entry in (
        db.query(ActivityLog)
        .filter(
            ActivityLog.user_id == user_id,
            ActivityLog.occurred_at >= start,
            ActivityLog.occurred_at < end,
            ActivityLog.xp_amount > 0,
        )
        .all()
    ):
        total_xp += entry.xp_amount
        if entry.faction_id:
            faction_activity[entry.faction_id] += entry.xp_amount

    gold = [
        t.amount
        for t in db.query(CurrencyTransaction).filter(
            CurrencyTransaction.user_id == user_id,
            CurrencyTransaction.currency == CurrencyKind.GOLD.value,
            CurrencyTransaction.created_at >= start,
            CurrencyTransaction.created_at < end,
        )
    ]

    def count(model, column):
        return db.query(model).filter(model.user_id == user_id, column >= start, column < end).count()

    return WeeklyStats(
        quests_completed=len(completed),
        quests_failed=len(failed),
        habits_tracked=count(HabitLog, HabitLog.logged_at),
        total_xp=total_xp,
        faction_activity=dict(faction_activity),
        achievements_unlocked=count(UserAchievement, UserAchievement.unlocked_at),
        gold_earned=sum(a for a in gold if a > 0),
        gold_spent=sum(-a for a in gold if a < 0),
        mood_entries=count(MoodLog, MoodLog.created_at),
        journal_entries=count(JournalEntry, JournalEntry.created_at),
    )


@router.post(
    "/generate",
    response_model=WeeklyReportResponse,
    status_code=status.HTTP_201_CREATED,
    responses={
        400: {"model": ProblemDetails, "description": "Too little activity this week"},
        409: {"model": ProblemDetails, "description": "Report for this week exists"},
    },
)
async def generate_weekly_report(
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
    engine: ProgressionEngine = Depends(get_progression_engine),
) -> WeeklyReportResponse:
    """
    Write the review of the last seven days.

    At most one report exists per week start. Weeks where completed quests
    and tracked habits add up to less than three are skipped.
    """
    week_start, week_end = week_bounds(datetime.now(timezone.utc).date())
    existing = (
        db.query(WeeklyReport)
        .filter(WeeklyReport.user_id == current_user.id, WeeklyReport.week_start == week_start)
        .first()
    )
    if existing is not None:
        raise conflict(f"A report for the week starting {week_start.isoformat()} already exists")

    stats = gather_weekly_stats(db, current_user.id, week_start, week_end)
    if not has_enough_activity(stats):
        raise bad_request("Not enough activity this week for a report")

    text = compose_report(stats)
    report = WeeklyReport(
        user_id=current_user.id,
        week_start=week_start,
        week_end=week_end,
        top_wins=text.top_wins,
        attention_area=text.attention_area,
        recognized_pattern=text.recognized_pattern,
        recommendation=text.recommendation,
        stats_snapshot=stats.to_dict(),
    )
    db.add(report)
    db.flush()
    await engine.log_activity(
        current_user.id,
        ActivityType.REPORT_GENERATED,
        title="📊 Dein Wochen-Rückblick ist da",
        description=text.top_wins[0],
        related_entity_type="weekly_report",
        related_entity_id=report.id,
    )
    await engine.repos.commit()
    db.refresh(report)

    logger.info(f"Generated weekly report {report.id} for user {current_user.id}")
    return WeeklyReportResponse.model_validate(report)


@router.get("", response_model=List[WeeklyReportResponse])
def list_weekly_reports(
    limit: int = Query(10, ge=1, le=100),
    offset: int = Query(0, ge=0),
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> List[WeeklyReportResponse]:
    reports = (
        db.query(WeeklyReport)
        .filter(WeeklyReport.user_id == current_user.id)
        .order_by(WeeklyReport.week_start.desc())
        .offset(offset)
        .limit(limit)
        .all()
    )
    return [WeeklyReportResponse.model_validate(r) for r in reports]


@router.get(
    "/latest",
    response_model=WeeklyReportResponse,
    responses={404: {"model": ProblemDetails, "description": "No report yet"}},
)
def get_latest_report(
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> WeeklyReportResponse:
    report = (
        db.query(WeeklyReport)
        .filter(WeeklyReport.user_id == current_user.id)
        .order_by(WeeklyReport.week_start.desc())
        .first()
    )
    if report is None:
        raise not_found("Weekly report")
    return WeeklyReportResponse.model_validate(report)


@router.get("/unread-count", response_model=UnreadCountResponse)
def get_unread_count(
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> UnreadCountResponse:
    unread = (
        db.query(WeeklyReport)
        .filter(WeeklyReport.user_id == current_user.id, WeeklyReport.read_at.is_(None))
        .count()
    )
    return UnreadCountResponse(unread=unread)


@router.get("/{report_id}", response_model=WeeklyReportResponse, responses=OWNERSHIP_RESPONSES)
def get_weekly_report(
    report_id: UUID,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> WeeklyReportResponse:
    report = get_owned(db, WeeklyReport, report_id, current_user, "Weekly report")
    return WeeklyReportResponse.model_validate(report)


@router.post("/{report_id}/read", response_model=WeeklyReportResponse, responses=OWNERSHIP_RESPONSES)
def mark_report_read(
    report_id: UUID,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> WeeklyReportResponse:
    """Mark a report as read; the first read time is kept."""
    report = get_owned(db, WeeklyReport, report_id, current_user, "Weekly report")
    if report.read_at is None:
        report.read_at = datetime.now(timezone.utc)
        db.commit()
        db.refresh(report)
    return WeeklyReportResponse.model_validate(report)
