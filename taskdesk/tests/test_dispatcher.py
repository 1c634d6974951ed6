"""Tests for detached side-effect dispatch."""

from __future__ import annotations

import asyncio
import uuid

import pytest
from sqlalchemy import select

from taskdesk.dispatcher import NotificationSpec, SideEffectDispatcher
from taskdesk.models.activity import ActivityRecord
from taskdesk.models.notification import Notification
from taskdesk.models.task import Task
from taskdesk.schemas.task import TaskCreate
from taskdesk.services import notification_svc, task_svc


@pytest.mark.asyncio
async def test_record_activity_and_notify_persist_one_row_each(db, session_factory, user_c):
    local = SideEffectDispatcher(session_factory)
    target = uuid.uuid4()

    local.record_activity(user_c.id, "update-task", "task", target, {"k": "v"})
    local.notify(
        NotificationSpec(
            recipient_id=user_c.id,
            kind="task-updated",
            message="hello",
            link=f"/tasks/{target}",
            related_type="task",
            related_id=target,
        )
    )
    assert await local.drain(timeout=5) == 0

    records = (await db.execute(select(ActivityRecord))).scalars().all()
    assert [(r.action, r.details) for r in records] == [("update-task", {"k": "v"})]
    notes = (await db.execute(select(Notification))).scalars().all()
    assert [n.message for n in notes] == ["hello"]
    assert local.completed == 2
    assert local.failed == 0


@pytest.mark.asyncio
async def test_side_effect_failure_never_reaches_the_mutation(
    db, side_effects, admin, user_c, next_week, monkeypatch, caplog
):
    async def broken(*args, **kwargs):
        raise RuntimeError("notification store offline")

    monkeypatch.setattr(notification_svc, "create_notification", broken)
    failed_before = side_effects.failed

    task = await task_svc.create_task(
        db,
        admin,
        TaskCreate(
            title="Resilient",
            description="Still saved",
            category="Ops",
            due_date=next_week,
            assigned_to=user_c.id,
        ),
    )
    await side_effects.drain()

    assert (await db.execute(select(Task).where(Task.id == task.id))).scalar_one()
    assert side_effects.failed == failed_before + 1
    assert "notify:new-task failed" in caplog.text
    # The audit record is independent of the failed notification.
    actions = (await db.execute(select(ActivityRecord.action))).scalars().all()
    assert actions == ["create-task"]


@pytest.mark.asyncio
async def test_settle_is_bounded_and_never_raises(session_factory):
    local = SideEffectDispatcher(session_factory)
    gate = asyncio.Event()

    async def slow(db):
        await gate.wait()

    handle = local.submit("slow", slow)
    assert await local.settle(handle, timeout=0.05) is False
    assert not handle.done()

    gate.set()
    assert await local.settle(handle, timeout=1) is True


@pytest.mark.asyncio
async def test_cancelling_the_waiter_propagates_and_spares_the_work(session_factory):
    local = SideEffectDispatcher(session_factory)
    gate = asyncio.Event()

    async def slow(db):
        await gate.wait()

    handle = local.submit("slow", slow)
    waiter = asyncio.create_task(local.settle(handle, timeout=30))
    await asyncio.sleep(0.01)
    waiter.cancel()

    with pytest.raises(asyncio.CancelledError):
        await waiter
    assert not handle.done()

    gate.set()
    assert await local.settle(handle, timeout=1) is True


@pytest.mark.asyncio
async def test_settle_reports_cancelled_work_as_unsettled(session_factory):
    local = SideEffectDispatcher(session_factory)

    async def forever(db):
        await asyncio.sleep(3600)

    handle = local.submit("forever", forever)
    await asyncio.sleep(0.01)
    handle.cancel()

    assert await local.settle(handle, timeout=1) is False


@pytest.mark.asyncio
async def test_drain_cancels_and_counts_abandoned_work(session_factory):
    local = SideEffectDispatcher(session_factory)

    async def forever(db):
        await asyncio.sleep(3600)

    async def quick(db):
        return None

    local.submit("forever", forever)
    local.submit("quick", quick)

    assert await local.drain(timeout=0.1) == 1
    assert local.pending_count == 0
    assert local.completed == 1


@pytest.mark.asyncio
async def test_drain_with_nothing_pending_returns_zero(session_factory):
    assert await SideEffectDispatcher(session_factory).drain(timeout=0) == 0
