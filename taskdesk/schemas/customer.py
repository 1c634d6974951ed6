"""Customer and contact schemas."""

from __future__ import annotations

import uuid
from datetime import datetime

from pydantic import BaseModel, Field

from .common import PrincipalSummary


class Address(BaseModel):
    street: str | None = Field(default=None, max_length=200)
    city: str | None = Field(default=None, max_length=100)
    state: str | None = Field(default=None, max_length=100)
    zip_code: str | None = Field(default=None, max_length=20)
    country: str = Field(default="India", max_length=100)


class ContactIn(BaseModel):
    name: str = Field(min_length=1, max_length=100)
    email: str = Field(min_length=3, max_length=255)
    phone: str = Field(min_length=1, max_length=20)
    designation: str = Field(min_length=1, max_length=100)
    is_primary: bool = False


class CustomerCreate(BaseModel):
    company_name: str = Field(min_length=1, max_length=200)
    company_type: str = Field(min_length=1, max_length=100)
    url: str | None = Field(default=None, max_length=500)
    installation_date: datetime | None = None
    tax_id: str | None = None
    contacts: list[ContactIn] = Field(min_length=1)
    address: Address | None = None
    notes: str | None = Field(default=None, max_length=1000)


class CustomerUpdate(BaseModel):
    company_name: str | None = Field(default=None, min_length=1, max_length=200)
    company_type: str | None = Field(default=None, min_length=1, max_length=100)
    url: str | None = Field(default=None, max_length=500)
    installation_date: datetime | None = None
    tax_id: str | None = None
    contacts: list[ContactIn] | None = Field(default=None, min_length=1)
    address: Address | None = None
    notes: str | None = Field(default=None, max_length=1000)
    version: int | None = None


class ContactRead(ContactIn):
    id: uuid.UUID

    model_config = {"from_attributes": True}


class CustomerRead(BaseModel):
    id: uuid.UUID
    company_name: str
    company_type: str
    url: str | None = None
    installation_date: datetime | None = None
    tax_id: str | None = None
    contacts: list[ContactRead] = []
    address: Address | None = None
    notes: str | None = None
    is_active: bool
    created_by: uuid.UUID
    creator: PrincipalSummary | None = None
    version: int
    created_at: datetime
    updated_at: datetime

    model_config = {"from_attributes": True}
