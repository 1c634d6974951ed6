"""Taskdesk models - re-exports all models and Base.metadata."""

from .base import Base, UUIDMixin, CreatedAtMixin, TimestampMixin, VersionMixin
from .principal import Principal
from .customer import Customer, CustomerContact
from .category import TaskCategory
from .task import Task, TaskComment, TaskAttachment
from .call import Call
from .notification import Notification
from .activity import ActivityRecord

__all__ = [
    "Base",
    "UUIDMixin",
    "CreatedAtMixin",
    "TimestampMixin",
    "VersionMixin",
    "Principal",
    "Customer",
    "CustomerContact",
    "TaskCategory",
    "Task",
    "TaskComment",
    "TaskAttachment",
    "Call",
    "Notification",
    "ActivityRecord",
]
