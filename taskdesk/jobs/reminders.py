"""Daily task-reminder scan and its scheduler."""

from __future__ import annotations

import asyncio
import logging
from datetime import datetime, timedelta
from typing import Optional
from zoneinfo import ZoneInfo

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from ..clock import utcnow
from ..config import settings
from ..dispatcher import NotificationSpec, SideEffectDispatcher, dispatcher
from ..models.task import Task
from ..services.task_svc import task_link

logger = logging.getLogger(__name__)


async def find_due_soon(db: AsyncSession, now: datetime | None = None) -> list[Task]:
    """Non-completed tasks due within the next 24 hours."""
    now = now or utcnow()
    stmt = (
        select(Task)
        .where(
            Task.status != "completed",
            Task.due_date >= now,
            Task.due_date < now + timedelta(hours=24),
        )
        .order_by(Task.due_date.asc())
    )
    return list((await db.execute(stmt)).scalars().all())


async def send_task_reminders(
    db: AsyncSession,
    *,
    now: datetime | None = None,
    side_effects: SideEffectDispatcher | None = None,
) -> int:
    """Queue one task-reminder per due-soon task. Returns how many were queued."""
    side_effects = side_effects or dispatcher
    tasks = await find_due_soon(db, now)
    if not tasks:
        logger.info("No upcoming tasks to send reminders for")
        return 0

    for task in tasks:
        side_effects.notify(
            NotificationSpec(
                recipient_id=task.assigned_to,
                kind="task-reminder",
                message=f'Reminder: The task "{task.title}" is due soon.',
                link=task_link(task.id),
                related_type="task",
                related_id=task.id,
            )
        )
    logger.info("Queued reminders for %d upcoming tasks", len(tasks))
    return len(tasks)


def seconds_until_next_run(now: datetime, hour: int, tz: ZoneInfo) -> float:
    local = now.astimezone(tz)
    target = local.replace(hour=hour, minute=0, second=0, microsecond=0)
    if target <= local:
        target = (local + timedelta(days=1)).replace(hour=hour, minute=0, second=0, microsecond=0)
    return max(0.0, (target - local).total_seconds())


class ReminderScheduler:
    """Runs ``send_task_reminders`` daily at ``reminder_hour`` local time."""

    def __init__(self, session_factory=None) -> None:
        self._session_factory = session_factory
        self._task: Optional[asyncio.Task] = None
        self._stop_event = asyncio.Event()

    def start(self) -> None:
        if self._task is not None or not settings.reminder_enabled:
            return
        self._stop_event.clear()
        self._task = asyncio.create_task(self._run_loop(), name="task-reminder-scheduler")
        logger.info(
            "Task reminder job scheduled daily at %02d:00 %s",
            settings.reminder_hour,
            settings.reminder_timezone,
        )

    async def stop(self) -> None:
        if self._task is None:
            return
        self._stop_event.set()
        self._task.cancel()
        try:
            await self._task
        except asyncio.CancelledError:
            pass
        finally:
            self._task = None

    async def run_once(self) -> int:
        if self._session_factory is None:
            from ..database import async_session_factory

            self._session_factory = async_session_factory
        async with self._session_factory() as db:
            return await send_task_reminders(db)

    async def _run_loop(self) -> None:
        tz = ZoneInfo(settings.reminder_timezone)
        while not self._stop_event.is_set():
            delay = seconds_until_next_run(utcnow(), settings.reminder_hour, tz)
            try:
                await asyncio.wait_for(self._stop_event.wait(), timeout=delay)
                return
            except asyncio.TimeoutError:
                pass
            try:
                await self.run_once()
            except asyncio.CancelledError:
                raise
            except Exception:
                logger.exception("Task reminder job failed")


reminder_scheduler = ReminderScheduler()
