"""Call log model."""

from __future__ import annotations

import uuid
from datetime import datetime

from sqlalchemy import JSON, Boolean, DateTime, ForeignKey, Index, Integer, String, Text, Uuid
from sqlalchemy.orm import Mapped, mapped_column

from .base import Base, TimestampMixin, UUIDMixin, VersionMixin

CALL_DIRECTIONS = ("inbound", "outbound")


class Call(UUIDMixin, TimestampMixin, VersionMixin, Base):
    __tablename__ = "call"
    __table_args__ = (
        Index("ix_call_follow_up", "follow_up_required", "follow_up_date"),
    )

    customer_id: Mapped[uuid.UUID] = mapped_column(Uuid, ForeignKey("customer.id"), index=True)
    user_id: Mapped[uuid.UUID] = mapped_column(Uuid, ForeignKey("principal.id"), index=True)
    direction: Mapped[str] = mapped_column(String(20), index=True)  # inbound, outbound
    summary: Mapped[str] = mapped_column(Text)
    duration_seconds: Mapped[int | None] = mapped_column(Integer, default=None)
    outcome: Mapped[str | None] = mapped_column(String(200), default=None)
    follow_up_required: Mapped[bool] = mapped_column(Boolean, default=False)
    follow_up_date: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), default=None)
    tags: Mapped[list[str]] = mapped_column(JSON, default=list)

    def __repr__(self) -> str:
        return f"<Call {self.direction} customer={self.customer_id}>"
