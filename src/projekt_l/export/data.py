"""
Full data export of one user's records as JSON or sectioned CSV.

The CSV form concatenates one section per table: a "## NAME" line, the
column header and the rows. Empty tables are left out.
"""

import csv
import io
import json
from datetime import datetime, timezone
from typing import Any, Dict, List

from fastapi.encoders import jsonable_encoder
from sqlalchemy import inspect
from sqlalchemy.orm import Session

from ..core.enums import ExportFormat
from ..db.models import (
    Account,
    ActivityLog,
    Contact,
    ContactInteraction,
    CurrencyTransaction,
    Experience,
    FinanceTransaction,
    Habit,
    HabitLog,
    JournalEntry,
    MoodLog,
    Quest,
    SavingsGoal,
    Skill,
    SkillDomain,
    User,
    UserAchievement,
    UserFactionStats,
    UserSkill,
    WeeklyReport,
)

EXPORT_TABLES = (
    ("skill_domains", SkillDomain),
    ("skills", Skill),
    ("user_skills", UserSkill),
    ("experiences", Experience),
    ("habits", Habit),
    ("habit_logs", HabitLog),
    ("quests", Quest),
    ("contacts", Contact),
    ("contact_interactions", ContactInteraction),
    ("accounts", Account),
    ("transactions", FinanceTransaction),
    ("savings_goals", SavingsGoal),
    ("mood_logs", MoodLog),
    ("journal_entries", JournalEntry),
    ("currency_transactions", CurrencyTransaction),
    ("user_faction_stats", UserFactionStats),
    ("user_achievements", UserAchievement),
    ("weekly_reports", WeeklyReport),
    ("activity_log", ActivityLog),
)


def row_to_dict(row) -> Dict[str, Any]:
    """Column values of a mapped row, made JSON compatible."""
    mapper = inspect(row).mapper
    return jsonable_encoder({attr.key: getattr(row, attr.key) for attr in mapper.column_attrs})


def collect_user_data(db: Session, user: User) -> Dict[str, Any]:
    data = {}
    for name, model in EXPORT_TABLES:
        rows = db.query(model).filter(model.user_id == user.id).all()
        data[name] = [row_to_dict(r) for r in rows]
    return {
        "exported_at": datetime.now(timezone.utc).isoformat(),
        "user_id": str(user.id),
        "data": data,
    }


def _cell(value: Any) -> str:
    if value is None:
        return ""
    if isinstance(value, (dict, list)):
        return json.dumps(value, ensure_ascii=False)
    return str(value)


def to_csv(export: Dict[str, Any]) -> str:
    out = io.StringIO()
    out.write("# Projekt L Data Export\n")
    out.write(f"# Exported at: {export['exported_at']}\n")
    out.write(f"# User ID: {export['user_id']}\n")

    writer = csv.writer(out, lineterminator="\n")
    for name, records in export["data"].items():
        if not records:
            continue
        headers: List[str] = list(records[0])
        out.write(f"\n## {name.upper()}\n")
        writer.writerow(headers)
        for record in records:
            writer.writerow([_cell(record.get(h)) for h in headers])
    return out.getvalue()


def export_filename(export_format: ExportFormat, today=None) -> str:
    today = today or datetime.now(timezone.utc).date()
    return f"projekt-l-export-{today.isoformat()}.{ExportFormat(export_format).value}"
