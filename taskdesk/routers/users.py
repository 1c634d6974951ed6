"""Principal management routes."""

from __future__ import annotations

import uuid

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from ..database import get_db
from ..deps import get_current_principal
from ..schemas.common import Page
from ..schemas.principal import PrincipalCreate, PrincipalRead, PrincipalUpdate
from ..security import AuthPrincipal
from ..services import principal_svc

router = APIRouter(prefix="/api/users", tags=["users"])


@router.get("", response_model=Page[PrincipalRead])
async def list_users(
    role: str | None = None,
    search: str | None = None,
    page: int = 1,
    page_size: int | None = None,
    principal: AuthPrincipal = Depends(get_current_principal),
    db: AsyncSession = Depends(get_db),
):
    rows, total, page, page_size = await principal_svc.list_principals(
        db, principal, role=role, search=search, page=page, page_size=page_size
    )
    items = [PrincipalRead.model_validate(row) for row in rows]
    return Page[PrincipalRead].build(items, total, page, page_size)


@router.post("", response_model=PrincipalRead, status_code=201)
async def create_user(
    payload: PrincipalCreate,
    principal: AuthPrincipal = Depends(get_current_principal),
    db: AsyncSession = Depends(get_db),
):
    return await principal_svc.create_principal(db, principal, payload)


@router.get("/{user_id}", response_model=PrincipalRead)
async def get_user(
    user_id: uuid.UUID,
    principal: AuthPrincipal = Depends(get_current_principal),
    db: AsyncSession = Depends(get_db),
):
    return await principal_svc.get_principal(db, principal, user_id)


@router.put("/{user_id}", response_model=PrincipalRead)
async def update_user(
    user_id: uuid.UUID,
    payload: PrincipalUpdate,
    principal: AuthPrincipal = Depends(get_current_principal),
    db: AsyncSession = Depends(get_db),
):
    return await principal_svc.update_principal(db, principal, user_id, payload)


@router.delete("/{user_id}")
async def deactivate_user(
    user_id: uuid.UUID,
    principal: AuthPrincipal = Depends(get_current_principal),
    db: AsyncSession = Depends(get_db),
):
    await principal_svc.deactivate_principal(db, principal, user_id)
    return {"message": "User deactivated successfully"}
