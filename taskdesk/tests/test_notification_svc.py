"""Tests for the notification inbox."""

from __future__ import annotations

import uuid

import pytest

from taskdesk.errors import NotFound
from taskdesk.services import notification_svc


async def _seed(db, recipient_id, count: int, *, is_read: bool = False):
    for i in range(count):
        await notification_svc.create_notification(
            db,
            recipient_id=recipient_id,
            kind="task-updated",
            message=f"Update {i}",
            link="/tasks/x",
            related_type="task",
            related_id=uuid.uuid4(),
            is_read=is_read,
        )


@pytest.mark.asyncio
async def test_mark_all_read_is_idempotent(db, user_c, user_d):
    await _seed(db, user_c.id, 3)
    await _seed(db, user_d.id, 2)

    assert await notification_svc.unread_count(db, user_c) == 3
    assert await notification_svc.mark_all_read(db, user_c) == 3
    assert await notification_svc.unread_count(db, user_c) == 0
    assert await notification_svc.mark_all_read(db, user_c) == 0
    # Other recipients are untouched.
    assert await notification_svc.unread_count(db, user_d) == 2


@pytest.mark.asyncio
async def test_mark_read_only_for_own_notifications(db, user_c, user_d):
    await _seed(db, user_c.id, 1)
    rows, _, _, _ = await notification_svc.list_notifications(db, user_c)
    notification = rows[0]

    with pytest.raises(NotFound):
        await notification_svc.mark_read(db, user_d, notification.id)

    marked = await notification_svc.mark_read(db, user_c, notification.id)
    assert marked.is_read is True
    assert await notification_svc.unread_count(db, user_c) == 0


@pytest.mark.asyncio
async def test_list_notifications_filters_and_pages(db, user_c):
    await _seed(db, user_c.id, 3)
    await _seed(db, user_c.id, 2, is_read=True)

    rows, total, page, page_size = await notification_svc.list_notifications(
        db, user_c, is_read=False, page=2, page_size=2
    )
    assert total == 3
    assert (page, page_size) == (2, 2)
    assert len(rows) == 1

    rows, total, _, _ = await notification_svc.list_notifications(db, user_c, is_read=True)
    assert total == 2
