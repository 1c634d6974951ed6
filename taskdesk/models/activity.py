"""Activity model - append-only audit trail."""

from __future__ import annotations

import uuid

from sqlalchemy import JSON, ForeignKey, String, Uuid
from sqlalchemy.orm import Mapped, mapped_column

from .base import Base, CreatedAtMixin, UUIDMixin

ENTITY_TYPES = ("task", "customer", "call", "principal")


class ActivityRecord(UUIDMixin, CreatedAtMixin, Base):
    __tablename__ = "activity"

    actor_id: Mapped[uuid.UUID] = mapped_column(Uuid, ForeignKey("principal.id"), index=True)
    action: Mapped[str] = mapped_column(String(50))  # create-task, update-customer, ...
    entity_type: Mapped[str] = mapped_column(String(20), index=True)
    entity_id: Mapped[uuid.UUID] = mapped_column(Uuid, index=True)
    details: Mapped[dict | None] = mapped_column(JSON, default=None)

    def __repr__(self) -> str:
        return f"<ActivityRecord {self.action} {self.entity_type}>"
