"""Task model with its ordered comments and attachments."""

from __future__ import annotations

import uuid
from datetime import datetime

from sqlalchemy import DateTime, ForeignKey, Index, Integer, String, Text, Uuid
from sqlalchemy.ext.orderinglist import ordering_list
from sqlalchemy.orm import Mapped, mapped_column, relationship

from ..clock import utcnow
from .base import Base, TimestampMixin, UUIDMixin, VersionMixin

TASK_STATUSES = ("todo", "in-progress", "completed")
TASK_PRIORITIES = ("low", "medium", "high", "urgent")


class Task(UUIDMixin, TimestampMixin, VersionMixin, Base):
    __tablename__ = "task"
    __table_args__ = (
        Index("ix_task_assigned_status", "assigned_to", "status"),
    )

    title: Mapped[str] = mapped_column(String(200))
    description: Mapped[str] = mapped_column(Text)
    category: Mapped[str] = mapped_column(String(50))
    priority: Mapped[str] = mapped_column(String(20), default="medium", index=True)
    status: Mapped[str] = mapped_column(String(20), default="todo")  # todo, in-progress, completed
    due_date: Mapped[datetime] = mapped_column(DateTime(timezone=True), index=True)
    assigned_to: Mapped[uuid.UUID] = mapped_column(Uuid, ForeignKey("principal.id"))
    customer_id: Mapped[uuid.UUID | None] = mapped_column(
        Uuid, ForeignKey("customer.id"), default=None, index=True
    )
    created_by: Mapped[uuid.UUID] = mapped_column(Uuid, ForeignKey("principal.id"), index=True)

    comments: Mapped[list["TaskComment"]] = relationship(
        back_populates="task",
        order_by="TaskComment.position",
        collection_class=ordering_list("position"),
        cascade="all, delete-orphan",
        lazy="selectin",
    )
    attachments: Mapped[list["TaskAttachment"]] = relationship(
        back_populates="task",
        order_by="TaskAttachment.position",
        collection_class=ordering_list("position"),
        cascade="all, delete-orphan",
        lazy="selectin",
    )

    def __repr__(self) -> str:
        return f"<Task {self.title!r}>"


class TaskComment(UUIDMixin, Base):
    __tablename__ = "task_comment"

    task_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("task.id", ondelete="CASCADE"), index=True
    )
    position: Mapped[int] = mapped_column(Integer, default=0)
    text: Mapped[str] = mapped_column(String(500))
    author_id: Mapped[uuid.UUID] = mapped_column(Uuid, ForeignKey("principal.id"))
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow)

    task: Mapped[Task] = relationship(back_populates="comments")

    def __repr__(self) -> str:
        return f"<TaskComment task={self.task_id}>"


class TaskAttachment(UUIDMixin, Base):
    __tablename__ = "task_attachment"

    task_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("task.id", ondelete="CASCADE"), index=True
    )
    position: Mapped[int] = mapped_column(Integer, default=0)
    filename: Mapped[str] = mapped_column(String(255))
    blob_ref: Mapped[str] = mapped_column(String(128))
    mime_type: Mapped[str] = mapped_column(String(100))
    size: Mapped[int] = mapped_column(Integer)

    task: Mapped[Task] = relationship(back_populates="attachments")

    def __repr__(self) -> str:
        return f"<TaskAttachment {self.filename!r}>"
