"""Offset pagination shared by the list operations."""

from __future__ import annotations

from sqlalchemy import Select, func, select
from sqlalchemy.ext.asyncio import AsyncSession

from ..config import settings


def clamp(page: int | None, page_size: int | None) -> tuple[int, int]:
    page = max(1, int(page or 1))
    size = int(page_size or settings.default_page_size)
    return page, max(1, min(size, settings.max_page_size))


async def paginate(
    db: AsyncSession,
    stmt: Select,
    *,
    page: int | None = None,
    page_size: int | None = None,
) -> tuple[list, int, int, int]:
    """Run ``stmt`` for one page. Returns (rows, total, page, page_size)."""
    page, page_size = clamp(page, page_size)

    count_stmt = select(func.count()).select_from(stmt.order_by(None).subquery())
    total = (await db.execute(count_stmt)).scalar() or 0

    result = await db.execute(stmt.offset((page - 1) * page_size).limit(page_size))
    return list(result.scalars().all()), total, page, page_size


def order_by_param(sort: str | None, columns: dict, default):
    """Translate ``field`` / ``-field`` into an ORDER BY clause."""
    if not sort:
        return default
    descending = sort.startswith("-")
    column = columns.get(sort.lstrip("-+"))
    if column is None:
        return default
    return column.desc() if descending else column.asc()
