"""Notification inbox routes."""

from __future__ import annotations

import uuid

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from ..database import get_db
from ..deps import get_current_principal
from ..schemas.common import Page
from ..schemas.notification import NotificationRead, UnreadCount
from ..security import AuthPrincipal
from ..services import notification_svc

router = APIRouter(prefix="/api/notifications", tags=["notifications"])


@router.get("", response_model=Page[NotificationRead])
async def list_notifications(
    is_read: bool | None = None,
    page: int = 1,
    page_size: int | None = None,
    principal: AuthPrincipal = Depends(get_current_principal),
    db: AsyncSession = Depends(get_db),
):
    rows, total, page, page_size = await notification_svc.list_notifications(
        db, principal, is_read=is_read, page=page, page_size=page_size
    )
    items = [NotificationRead.model_validate(row) for row in rows]
    return Page[NotificationRead].build(items, total, page, page_size)


@router.get("/unread-count", response_model=UnreadCount)
async def unread_count(
    principal: AuthPrincipal = Depends(get_current_principal),
    db: AsyncSession = Depends(get_db),
):
    return UnreadCount(count=await notification_svc.unread_count(db, principal))


@router.patch("/read-all")
async def mark_all_read(
    principal: AuthPrincipal = Depends(get_current_principal),
    db: AsyncSession = Depends(get_db),
):
    changed = await notification_svc.mark_all_read(db, principal)
    return {"message": "All notifications marked as read", "updated": changed}


@router.patch("/{notification_id}/read", response_model=NotificationRead)
async def mark_read(
    notification_id: uuid.UUID,
    principal: AuthPrincipal = Depends(get_current_principal),
    db: AsyncSession = Depends(get_db),
):
    return await notification_svc.mark_read(db, principal, notification_id)
