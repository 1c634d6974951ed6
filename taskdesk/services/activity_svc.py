"""Activity service - append-only audit trail."""

from __future__ import annotations

import uuid

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from ..models.activity import ActivityRecord
from ..security import AuthPrincipal, require
from ..security.policy import is_privileged
from .paging import paginate


async def log_activity(
    db: AsyncSession,
    *,
    actor_id: uuid.UUID,
    action: str,
    entity_type: str,
    entity_id: uuid.UUID,
    details: dict | None = None,
) -> ActivityRecord:
    record = ActivityRecord(
        actor_id=actor_id,
        action=action,
        entity_type=entity_type,
        entity_id=entity_id,
        details=details,
    )
    db.add(record)
    await db.commit()
    return record


async def list_activities(
    db: AsyncSession,
    principal: AuthPrincipal,
    *,
    entity_type: str | None = None,
    entity_id: uuid.UUID | None = None,
    actor_id: uuid.UUID | None = None,
    action: str | None = None,
    page: int | None = None,
    page_size: int | None = None,
):
    """Admin/manager view of the audit trail, newest first."""
    require(is_privileged(principal), "Only admins and managers can view activity logs")

    stmt = select(ActivityRecord)
    if entity_type:
        stmt = stmt.where(ActivityRecord.entity_type == entity_type)
    if entity_id:
        stmt = stmt.where(ActivityRecord.entity_id == entity_id)
    if actor_id:
        stmt = stmt.where(ActivityRecord.actor_id == actor_id)
    if action:
        stmt = stmt.where(ActivityRecord.action == action)
    stmt = stmt.order_by(ActivityRecord.created_at.desc(), ActivityRecord.id)
    return await paginate(db, stmt, page=page, page_size=page_size)
