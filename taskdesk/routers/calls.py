"""Call log routes."""

from __future__ import annotations

import uuid

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from ..database import get_db
from ..deps import get_current_principal
from ..schemas.call import CallCreate, CallRead, CallUpdate
from ..schemas.common import Page
from ..security import AuthPrincipal
from ..services import call_svc
from ..services.projection import project_call, project_calls

router = APIRouter(prefix="/api/calls", tags=["calls"])


@router.get("", response_model=Page[CallRead])
async def list_calls(
    direction: str | None = None,
    customer_id: uuid.UUID | None = None,
    user_id: uuid.UUID | None = None,
    follow_up_required: bool | None = None,
    search: str | None = None,
    sort: str | None = None,
    page: int = 1,
    page_size: int | None = None,
    principal: AuthPrincipal = Depends(get_current_principal),
    db: AsyncSession = Depends(get_db),
):
    rows, total, page, page_size = await call_svc.list_calls(
        db,
        principal,
        direction=direction,
        customer_id=customer_id,
        user_id=user_id,
        follow_up_required=follow_up_required,
        search=search,
        sort=sort,
        page=page,
        page_size=page_size,
    )
    return Page[CallRead].build(await project_calls(db, rows), total, page, page_size)


@router.post("", response_model=CallRead, status_code=201)
async def create_call(
    payload: CallCreate,
    principal: AuthPrincipal = Depends(get_current_principal),
    db: AsyncSession = Depends(get_db),
):
    return await project_call(db, await call_svc.create_call(db, principal, payload))


@router.get("/{call_id}", response_model=CallRead)
async def get_call(
    call_id: uuid.UUID,
    principal: AuthPrincipal = Depends(get_current_principal),
    db: AsyncSession = Depends(get_db),
):
    return await project_call(db, await call_svc.get_call(db, principal, call_id))


@router.put("/{call_id}", response_model=CallRead)
async def update_call(
    call_id: uuid.UUID,
    payload: CallUpdate,
    principal: AuthPrincipal = Depends(get_current_principal),
    db: AsyncSession = Depends(get_db),
):
    return await project_call(db, await call_svc.update_call(db, principal, call_id, payload))


@router.delete("/{call_id}")
async def delete_call(
    call_id: uuid.UUID,
    principal: AuthPrincipal = Depends(get_current_principal),
    db: AsyncSession = Depends(get_db),
):
    await call_svc.delete_call(db, principal, call_id)
    return {"message": "Call deleted successfully"}
