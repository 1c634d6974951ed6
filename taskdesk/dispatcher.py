"""Detached side-effect dispatch: notifications and audit records.

Every mutation commits first and then hands its side effects to the
dispatcher. Each work item runs as its own asyncio task with its own
database session, so a failing side effect is logged and never reaches the
caller or rolls back the mutation.
"""

from __future__ import annotations

import asyncio
import logging
import uuid
from dataclasses import dataclass
from typing import Awaitable, Callable, Optional

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from .services import activity_svc, notification_svc

logger = logging.getLogger(__name__)

Work = Callable[[AsyncSession], Awaitable[object]]


@dataclass(frozen=True)
class NotificationSpec:
    recipient_id: uuid.UUID
    kind: str
    message: str
    link: str
    related_type: str
    related_id: uuid.UUID


class SideEffectDispatcher:
    """Fire-and-forget runner for post-commit work."""

    def __init__(self, session_factory: Optional[async_sessionmaker] = None) -> None:
        self._session_factory = session_factory
        self._pending: set[asyncio.Task] = set()
        self.completed = 0
        self.failed = 0

    def bind(self, session_factory: async_sessionmaker) -> None:
        self._session_factory = session_factory

    @property
    def pending_count(self) -> int:
        return len(self._pending)

    def _factory(self) -> async_sessionmaker:
        if self._session_factory is None:
            from .database import async_session_factory

            self._session_factory = async_session_factory
        return self._session_factory

    def submit(self, name: str, work: Work) -> asyncio.Task:
        task = asyncio.create_task(self._run(name, work), name=f"side-effect:{name}")
        self._pending.add(task)
        task.add_done_callback(self._pending.discard)
        return task

    async def _run(self, name: str, work: Work) -> None:
        try:
            async with self._factory()() as db:
                await work(db)
        except asyncio.CancelledError:
            logger.warning("Side effect %s cancelled before completion", name)
            raise
        except Exception:
            self.failed += 1
            logger.exception("Side effect %s failed", name)
        else:
            self.completed += 1

    def record_activity(
        self,
        actor_id: uuid.UUID,
        action: str,
        entity_type: str,
        entity_id: uuid.UUID,
        details: dict | None = None,
    ) -> asyncio.Task:
        async def work(db: AsyncSession) -> None:
            await activity_svc.log_activity(
                db,
                actor_id=actor_id,
                action=action,
                entity_type=entity_type,
                entity_id=entity_id,
                details=details,
            )

        return self.submit(action, work)

    def notify(self, spec: NotificationSpec) -> asyncio.Task:
        async def work(db: AsyncSession) -> None:
            await notification_svc.create_notification(
                db,
                recipient_id=spec.recipient_id,
                kind=spec.kind,
                message=spec.message,
                link=spec.link,
                related_type=spec.related_type,
                related_id=spec.related_id,
            )

        return self.submit(f"notify:{spec.kind}", work)

    async def settle(self, handle: asyncio.Task, timeout: float) -> bool:
        """Wait up to ``timeout`` seconds for one item.

        Returns False when the item is slow or was itself cancelled. A
        cancellation of the waiting task still propagates; the item keeps
        running either way.
        """
        try:
            await asyncio.wait_for(asyncio.shield(handle), timeout)
        except asyncio.TimeoutError:
            logger.warning("Side effect %s did not settle within %.1fs", handle.get_name(), timeout)
            return False
        except asyncio.CancelledError:
            current = asyncio.current_task()
            if current is not None and current.cancelling():
                raise
            return False
        return handle.done() and not handle.cancelled()

    async def drain(self, timeout: float | None = None) -> int:
        """Wait for pending work, cancel what is left, return the abandoned count."""
        if not self._pending:
            return 0
        _, still_pending = await asyncio.wait(set(self._pending), timeout=timeout)
        for task in still_pending:
            task.cancel()
        if still_pending:
            await asyncio.gather(*still_pending, return_exceptions=True)
            logger.warning("Abandoned %d pending side effects", len(still_pending))
        return len(still_pending)


dispatcher = SideEffectDispatcher()
