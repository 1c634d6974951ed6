"""Call log schemas."""

from __future__ import annotations

import uuid
from datetime import datetime
from typing import Literal

from pydantic import BaseModel, Field, field_validator

from .common import CustomerSummary, PrincipalSummary

CallDirection = Literal["inbound", "outbound"]


def _clean_tags(value: list[str] | None) -> list[str] | None:
    if value is None:
        return None
    seen: list[str] = []
    for tag in value:
        tag = tag.strip()
        if not tag or len(tag) > 50:
            raise ValueError("each tag must be 1-50 characters")
        if tag not in seen:
            seen.append(tag)
    return seen


class CallCreate(BaseModel):
    customer_id: uuid.UUID
    direction: CallDirection
    summary: str = Field(min_length=1, max_length=1000)
    duration_seconds: int | None = Field(default=None, ge=0)
    outcome: str | None = Field(default=None, max_length=200)
    follow_up_required: bool = False
    follow_up_date: datetime | None = None
    tags: list[str] = []

    @field_validator("tags")
    @classmethod
    def check_tags(cls, value):
        return _clean_tags(value)


class CallUpdate(BaseModel):
    direction: CallDirection | None = None
    summary: str | None = Field(default=None, min_length=1, max_length=1000)
    duration_seconds: int | None = Field(default=None, ge=0)
    outcome: str | None = Field(default=None, max_length=200)
    follow_up_required: bool | None = None
    follow_up_date: datetime | None = None
    tags: list[str] | None = None
    version: int | None = None

    @field_validator("tags")
    @classmethod
    def check_tags(cls, value):
        return _clean_tags(value)


class CallRead(BaseModel):
    id: uuid.UUID
    customer_id: uuid.UUID
    user_id: uuid.UUID
    direction: CallDirection
    summary: str
    duration_seconds: int | None = None
    outcome: str | None = None
    follow_up_required: bool
    follow_up_date: datetime | None = None
    tags: list[str] = []
    version: int
    created_at: datetime
    updated_at: datetime
    customer: CustomerSummary | None = None
    user: PrincipalSummary | None = None

    model_config = {"from_attributes": True}
