"""Notification, activity and category schemas."""

from __future__ import annotations

import uuid
from datetime import datetime

from pydantic import BaseModel, Field

from .common import PrincipalSummary


class NotificationRead(BaseModel):
    id: uuid.UUID
    recipient_id: uuid.UUID
    kind: str
    message: str
    link: str
    is_read: bool
    related_type: str
    related_id: uuid.UUID
    created_at: datetime

    model_config = {"from_attributes": True}


class UnreadCount(BaseModel):
    count: int


class ActivityRead(BaseModel):
    id: uuid.UUID
    actor_id: uuid.UUID
    actor: PrincipalSummary | None = None
    action: str
    entity_type: str
    entity_id: uuid.UUID
    details: dict | None = None
    created_at: datetime

    model_config = {"from_attributes": True}


class CategoryCreate(BaseModel):
    name: str = Field(min_length=1, max_length=50)
    description: str | None = Field(default=None, max_length=200)


class CategoryUpdate(BaseModel):
    name: str | None = Field(default=None, min_length=1, max_length=50)
    description: str | None = Field(default=None, max_length=200)


class CategoryRead(BaseModel):
    id: uuid.UUID
    name: str
    description: str | None = None

    model_config = {"from_attributes": True}
