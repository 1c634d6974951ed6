"""Optimistic version checks around read-modify-write commits."""

from __future__ import annotations

from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm.exc import StaleDataError

from ..errors import Conflict

STALE_MESSAGE = "Record was modified by another request; reload and retry"


def check_version(entity, expected: int | None) -> None:
    if expected is not None and expected != entity.version:
        raise Conflict(STALE_MESSAGE)


async def commit_or_conflict(db: AsyncSession) -> None:
    try:
        await db.commit()
    except StaleDataError:
        await db.rollback()
        raise Conflict(STALE_MESSAGE) from None
