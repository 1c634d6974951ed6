"""Tests for the due-soon reminder scan and its schedule math."""

from __future__ import annotations

from datetime import datetime, timedelta, timezone
from zoneinfo import ZoneInfo

import pytest
from sqlalchemy import select

from taskdesk.clock import utcnow
from taskdesk.jobs.reminders import seconds_until_next_run, send_task_reminders
from taskdesk.models.notification import Notification
from taskdesk.models.task import Task


def _task(title: str, due, assignee, creator, status="todo") -> Task:
    return Task(
        title=title,
        description="d",
        category="c",
        due_date=due,
        assigned_to=assignee,
        created_by=creator,
        status=status,
    )


@pytest.mark.asyncio
async def test_reminders_cover_open_tasks_due_within_a_day(db, side_effects, manager, user_c):
    now = utcnow()
    db.add_all(
        [
            _task("Due soon", now + timedelta(hours=3), user_c.id, manager.id),
            _task("Done already", now + timedelta(hours=3), user_c.id, manager.id, status="completed"),
            _task("Next week", now + timedelta(days=7), user_c.id, manager.id),
            _task("Overdue", now - timedelta(hours=1), user_c.id, manager.id),
        ]
    )
    await db.commit()

    queued = await send_task_reminders(db, now=now, side_effects=side_effects)
    await side_effects.drain()

    assert queued == 1
    notes = (await db.execute(select(Notification))).scalars().all()
    assert [(n.kind, n.recipient_id, n.message) for n in notes] == [
        ("task-reminder", user_c.id, 'Reminder: The task "Due soon" is due soon.')
    ]


@pytest.mark.asyncio
async def test_no_due_tasks_queues_nothing(db, side_effects):
    assert await send_task_reminders(db, side_effects=side_effects) == 0


def test_next_run_is_later_today_before_the_hour():
    tz = ZoneInfo("America/New_York")
    now = datetime(2026, 3, 2, 12, 0, tzinfo=timezone.utc)  # 07:00 in New York
    assert seconds_until_next_run(now, 9, tz) == 2 * 3600


def test_next_run_rolls_to_tomorrow_after_the_hour():
    tz = ZoneInfo("America/New_York")
    now = datetime(2026, 3, 2, 15, 0, tzinfo=timezone.utc)  # 10:00 in New York
    assert seconds_until_next_run(now, 9, tz) == 23 * 3600
