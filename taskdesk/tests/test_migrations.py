"""Smoke tests for Taskdesk Alembic migrations."""

from __future__ import annotations

from pathlib import Path

from alembic import command
from alembic.config import Config
from sqlalchemy import create_engine, inspect

from taskdesk.config import settings


def test_alembic_upgrade_creates_every_table(tmp_path: Path, monkeypatch):
    db_path = tmp_path / "taskdesk_migrations.db"
    monkeypatch.setattr(settings, "database_url", f"sqlite+aiosqlite:///{db_path}")

    package_dir = Path(__file__).resolve().parents[1]
    cfg = Config(str(package_dir / "alembic.ini"))
    command.upgrade(cfg, "head")

    engine = create_engine(f"sqlite:///{db_path}")
    try:
        inspector = inspect(engine)
        tables = set(inspector.get_table_names())
        task_columns = {col["name"] for col in inspector.get_columns("task")}
    finally:
        engine.dispose()

    assert {
        "principal",
        "customer",
        "customer_contact",
        "task",
        "task_comment",
        "task_attachment",
        "call",
        "notification",
        "activity",
        "task_category",
    } <= tables
    assert {"version", "due_date", "assigned_to", "customer_id"} <= task_columns


def test_alembic_downgrade_drops_tables(tmp_path: Path, monkeypatch):
    db_path = tmp_path / "taskdesk_downgrade.db"
    monkeypatch.setattr(settings, "database_url", f"sqlite+aiosqlite:///{db_path}")

    cfg = Config(str(Path(__file__).resolve().parents[1] / "alembic.ini"))
    command.upgrade(cfg, "head")
    command.downgrade(cfg, "base")

    engine = create_engine(f"sqlite:///{db_path}")
    try:
        tables = set(inspect(engine).get_table_names())
    finally:
        engine.dispose()
    assert "task" not in tables
    assert "principal" not in tables
