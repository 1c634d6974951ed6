"""Task category catalog."""

from __future__ import annotations

import uuid

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from ..errors import Conflict, NotFound
from ..models.category import TaskCategory
from ..schemas.notification import CategoryCreate, CategoryUpdate
from ..security import AuthPrincipal, can_create, require


async def list_categories(db: AsyncSession, principal: AuthPrincipal) -> list[TaskCategory]:
    result = await db.execute(select(TaskCategory).order_by(TaskCategory.name))
    return list(result.scalars().all())


async def _ensure_name_free(
    db: AsyncSession, name: str, exclude_id: uuid.UUID | None = None
) -> None:
    stmt = select(TaskCategory).where(func.lower(TaskCategory.name) == name.lower())
    existing = (await db.execute(stmt)).scalar_one_or_none()
    if existing and existing.id != exclude_id:
        raise Conflict(f"Category '{name}' already exists")


async def _load(db: AsyncSession, category_id: uuid.UUID) -> TaskCategory:
    category = await db.get(TaskCategory, category_id)
    if not category:
        raise NotFound("Task category not found")
    return category


async def create_category(
    db: AsyncSession, principal: AuthPrincipal, data: CategoryCreate
) -> TaskCategory:
    require(can_create(principal, "category"), "Only admins and managers can manage categories")
    name = data.name.strip()
    await _ensure_name_free(db, name)
    category = TaskCategory(name=name, description=data.description)
    db.add(category)
    await db.commit()
    return category


async def update_category(
    db: AsyncSession, principal: AuthPrincipal, category_id: uuid.UUID, data: CategoryUpdate
) -> TaskCategory:
    require(can_create(principal, "category"), "Only admins and managers can manage categories")
    category = await _load(db, category_id)
    changes = data.model_dump(exclude_unset=True)
    if changes.get("name"):
        changes["name"] = changes["name"].strip()
        await _ensure_name_free(db, changes["name"], exclude_id=category.id)
    for key, value in changes.items():
        setattr(category, key, value)
    await db.commit()
    return category


async def delete_category(
    db: AsyncSession, principal: AuthPrincipal, category_id: uuid.UUID
) -> None:
    require(can_create(principal, "category"), "Only admins and managers can manage categories")
    category = await _load(db, category_id)
    await db.delete(category)
    await db.commit()
