"""Task category routes."""

from __future__ import annotations

import uuid

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from ..database import get_db
from ..deps import get_current_principal
from ..schemas.notification import CategoryCreate, CategoryRead, CategoryUpdate
from ..security import AuthPrincipal
from ..services import category_svc

router = APIRouter(prefix="/api/task-categories", tags=["task-categories"])


@router.get("", response_model=list[CategoryRead])
async def list_categories(
    principal: AuthPrincipal = Depends(get_current_principal),
    db: AsyncSession = Depends(get_db),
):
    return await category_svc.list_categories(db, principal)


@router.post("", response_model=CategoryRead, status_code=201)
async def create_category(
    payload: CategoryCreate,
    principal: AuthPrincipal = Depends(get_current_principal),
    db: AsyncSession = Depends(get_db),
):
    return await category_svc.create_category(db, principal, payload)


@router.put("/{category_id}", response_model=CategoryRead)
async def update_category(
    category_id: uuid.UUID,
    payload: CategoryUpdate,
    principal: AuthPrincipal = Depends(get_current_principal),
    db: AsyncSession = Depends(get_db),
):
    return await category_svc.update_category(db, principal, category_id, payload)


@router.delete("/{category_id}")
async def delete_category(
    category_id: uuid.UUID,
    principal: AuthPrincipal = Depends(get_current_principal),
    db: AsyncSession = Depends(get_db),
):
    await category_svc.delete_category(db, principal, category_id)
    return {"message": "Category deleted successfully"}
