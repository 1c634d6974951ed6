"""Notification service - per-recipient inbox."""

from __future__ import annotations

import uuid

from sqlalchemy import func, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from ..errors import NotFound
from ..models.notification import Notification
from ..security import AuthPrincipal
from .paging import paginate


async def create_notification(db: AsyncSession, **kwargs) -> Notification:
    notification = Notification(**kwargs)
    db.add(notification)
    await db.commit()
    return notification


async def list_notifications(
    db: AsyncSession,
    principal: AuthPrincipal,
    *,
    is_read: bool | None = None,
    page: int | None = None,
    page_size: int | None = None,
):
    stmt = select(Notification).where(Notification.recipient_id == principal.id)
    if is_read is not None:
        stmt = stmt.where(Notification.is_read.is_(is_read))
    stmt = stmt.order_by(Notification.created_at.desc(), Notification.id)
    return await paginate(db, stmt, page=page, page_size=page_size)


async def unread_count(db: AsyncSession, principal: AuthPrincipal) -> int:
    stmt = select(func.count()).select_from(Notification).where(
        Notification.recipient_id == principal.id,
        Notification.is_read.is_(False),
    )
    return (await db.execute(stmt)).scalar() or 0


async def mark_read(
    db: AsyncSession, principal: AuthPrincipal, notification_id: uuid.UUID
) -> Notification:
    """Mark one notification read. Other recipients' notifications look missing."""
    stmt = select(Notification).where(
        Notification.id == notification_id,
        Notification.recipient_id == principal.id,
    )
    notification = (await db.execute(stmt)).scalar_one_or_none()
    if not notification:
        raise NotFound("Notification not found")
    if not notification.is_read:
        notification.is_read = True
        await db.commit()
    return notification


async def mark_all_read(db: AsyncSession, principal: AuthPrincipal) -> int:
    """Mark every unread notification read. Returns how many changed."""
    stmt = (
        update(Notification)
        .where(
            Notification.recipient_id == principal.id,
            Notification.is_read.is_(False),
        )
        .values(is_read=True)
        .execution_options(synchronize_session=False)
    )
    result = await db.execute(stmt)
    await db.commit()
    return result.rowcount or 0
