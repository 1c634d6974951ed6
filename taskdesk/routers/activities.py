"""Audit trail routes (admin/manager)."""

from __future__ import annotations

import uuid

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from ..database import get_db
from ..deps import get_current_principal
from ..schemas.common import Page
from ..schemas.notification import ActivityRead
from ..security import AuthPrincipal
from ..services import activity_svc
from ..services.projection import project_activities

router = APIRouter(prefix="/api/activity-logs", tags=["activity-logs"])


@router.get("", response_model=Page[ActivityRead])
async def list_activities(
    entity_type: str | None = None,
    entity_id: uuid.UUID | None = None,
    actor_id: uuid.UUID | None = None,
    action: str | None = None,
    page: int = 1,
    page_size: int | None = None,
    principal: AuthPrincipal = Depends(get_current_principal),
    db: AsyncSession = Depends(get_db),
):
    rows, total, page, page_size = await activity_svc.list_activities(
        db,
        principal,
        entity_type=entity_type,
        entity_id=entity_id,
        actor_id=actor_id,
        action=action,
        page=page,
        page_size=page_size,
    )
    return Page[ActivityRead].build(await project_activities(db, rows), total, page, page_size)
