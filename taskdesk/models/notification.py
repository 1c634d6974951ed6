"""Notification model - written only by the side-effect dispatcher."""

from __future__ import annotations

import uuid

from sqlalchemy import Boolean, ForeignKey, Index, String, Uuid
from sqlalchemy.orm import Mapped, mapped_column

from .base import Base, TimestampMixin, UUIDMixin

NOTIFICATION_KINDS = ("new-task", "task-updated", "comment-added", "call-logged", "task-reminder")
RELATED_TYPES = ("task", "call", "customer")


class Notification(UUIDMixin, TimestampMixin, Base):
    __tablename__ = "notification"
    __table_args__ = (
        Index("ix_notification_recipient_read", "recipient_id", "is_read", "created_at"),
    )

    recipient_id: Mapped[uuid.UUID] = mapped_column(Uuid, ForeignKey("principal.id"))
    kind: Mapped[str] = mapped_column(String(30))
    message: Mapped[str] = mapped_column(String(500))
    link: Mapped[str] = mapped_column(String(255))
    is_read: Mapped[bool] = mapped_column(Boolean, default=False)
    related_type: Mapped[str] = mapped_column(String(20))
    related_id: Mapped[uuid.UUID] = mapped_column(Uuid)

    def __repr__(self) -> str:
        return f"<Notification {self.kind} to={self.recipient_id}>"
