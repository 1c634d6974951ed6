"""Shared response shapes: pagination and embedded summaries."""

from __future__ import annotations

import math
import uuid
from typing import Generic, TypeVar

from pydantic import BaseModel

T = TypeVar("T")


class PrincipalSummary(BaseModel):
    id: uuid.UUID
    name: str
    email: str
    role: str

    model_config = {"from_attributes": True}


class CustomerSummary(BaseModel):
    id: uuid.UUID
    company_name: str
    company_type: str

    model_config = {"from_attributes": True}


class Page(BaseModel, Generic[T]):
    """1-based page of results."""

    items: list[T]
    total: int
    page: int
    page_size: int
    total_pages: int
    has_next: bool
    has_prev: bool

    @classmethod
    def build(cls, items: list, total: int, page: int, page_size: int) -> "Page":
        total_pages = math.ceil(total / page_size) if page_size else 0
        return cls(
            items=items,
            total=total,
            page=page,
            page_size=page_size,
            total_pages=total_pages,
            has_next=page < total_pages,
            has_prev=page > 1,
        )
