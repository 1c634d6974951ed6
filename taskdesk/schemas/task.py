"""Task, comment and attachment schemas."""

from __future__ import annotations

import uuid
from datetime import datetime
from typing import Literal

from pydantic import BaseModel, Field

from .common import CustomerSummary, PrincipalSummary

TaskStatus = Literal["todo", "in-progress", "completed"]
TaskPriority = Literal["low", "medium", "high", "urgent"]


class TaskCreate(BaseModel):
    title: str = Field(min_length=1, max_length=200)
    description: str = Field(min_length=1, max_length=1000)
    category: str = Field(min_length=1, max_length=50)
    priority: TaskPriority = "medium"
    status: TaskStatus = "todo"
    due_date: datetime
    assigned_to: uuid.UUID
    customer_id: uuid.UUID | None = None


class TaskUpdate(BaseModel):
    """Partial update; only fields explicitly set are applied."""

    title: str | None = Field(default=None, min_length=1, max_length=200)
    description: str | None = Field(default=None, min_length=1, max_length=1000)
    category: str | None = Field(default=None, min_length=1, max_length=50)
    priority: TaskPriority | None = None
    status: TaskStatus | None = None
    due_date: datetime | None = None
    assigned_to: uuid.UUID | None = None
    customer_id: uuid.UUID | None = None
    version: int | None = None


class StatusUpdate(BaseModel):
    status: str


class CommentCreate(BaseModel):
    text: str = Field(min_length=1, max_length=500)


class AttachmentIn(BaseModel):
    filename: str = Field(min_length=1, max_length=255)
    blob_ref: str
    mime_type: str
    size: int = Field(ge=0)


class CommentRead(BaseModel):
    id: uuid.UUID
    text: str
    author_id: uuid.UUID
    author: PrincipalSummary | None = None
    created_at: datetime

    model_config = {"from_attributes": True}


class AttachmentRead(BaseModel):
    id: uuid.UUID
    filename: str
    blob_ref: str
    mime_type: str
    size: int

    model_config = {"from_attributes": True}


class TaskRead(BaseModel):
    id: uuid.UUID
    title: str
    description: str
    category: str
    priority: TaskPriority
    status: TaskStatus
    due_date: datetime
    assigned_to: uuid.UUID
    customer_id: uuid.UUID | None = None
    created_by: uuid.UUID
    version: int
    created_at: datetime
    updated_at: datetime
    comments: list[CommentRead] = []
    attachments: list[AttachmentRead] = []
    assignee: PrincipalSummary | None = None
    creator: PrincipalSummary | None = None
    customer: CustomerSummary | None = None

    model_config = {"from_attributes": True}
