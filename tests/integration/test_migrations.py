"""Tests for the Alembic schema against the SQLAlchemy models."""

from pathlib import Path

import pytest
from alembic import command
from alembic.config import Config
from sqlalchemy import create_engine, inspect

from projekt_l.db import models  # noqa: F401
from projekt_l.db.database import Base


def _alembic_config(db_url: str) -> Config:
    cfg = Config()
    cfg.set_main_option("script_location", str(Path(__file__).resolve().parents[2] / "alembic"))
    cfg.set_main_option("sqlalchemy.url", db_url)
    return cfg


@pytest.mark.integration
class TestMigrations:
    def test_migrated_schema_matches_models(self, db_session):
        inspector = inspect(db_session.get_bind())

        assert set(inspector.get_table_names()) - {"alembic_version"} == set(Base.metadata.tables)
        for name, table in Base.metadata.tables.items():
            migrated = {c["name"] for c in inspector.get_columns(name)}
            assert migrated == set(table.columns.keys()), name

    def test_indexes_and_unique_constraints(self, db_session):
        inspector = inspect(db_session.get_bind())

        assert "ix_activity_user_occurred" in {i["name"] for i in inspector.get_indexes("activity_log")}
        assert {u["name"] for u in inspector.get_unique_constraints("user_achievements")} == {
            "uq_user_achievement"
        }
        assert {u["name"] for u in inspector.get_unique_constraints("weekly_reports")} == {
            "uq_weekly_report_week"
        }
        to_account = next(
            fk for fk in inspector.get_foreign_keys("finance_transactions")
            if fk["constrained_columns"] == ["to_account_id"]
        )
        assert to_account["options"].get("ondelete") == "SET NULL"

    def test_downgrade_drops_everything(self, tmp_path):
        db_url = f"sqlite:///{tmp_path / 'downgrade.db'}"
        cfg = _alembic_config(db_url)

        command.upgrade(cfg, "head")
        command.downgrade(cfg, "base")

        engine = create_engine(db_url)
        try:
            assert set(inspect(engine).get_table_names()) <= {"alembic_version"}
        finally:
            engine.dispose()
