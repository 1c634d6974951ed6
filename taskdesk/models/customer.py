"""Customer model and its ordered contact list."""

from __future__ import annotations

import uuid
from datetime import datetime

from sqlalchemy import JSON, Boolean, DateTime, ForeignKey, Integer, String, Text, Uuid
from sqlalchemy.ext.orderinglist import ordering_list
from sqlalchemy.orm import Mapped, mapped_column, relationship

from .base import Base, TimestampMixin, UUIDMixin, VersionMixin


class Customer(UUIDMixin, TimestampMixin, VersionMixin, Base):
    """Customer company. Soft-deleted via ``is_active``."""

    __tablename__ = "customer"

    company_name: Mapped[str] = mapped_column(String(200), index=True)
    company_type: Mapped[str] = mapped_column(String(100), index=True)
    url: Mapped[str | None] = mapped_column(String(500), default=None)
    installation_date: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), default=None)
    tax_id: Mapped[str | None] = mapped_column(String(15), default=None)
    address: Mapped[dict | None] = mapped_column(JSON, default=None)
    notes: Mapped[str | None] = mapped_column(Text, default=None)
    is_active: Mapped[bool] = mapped_column(Boolean, default=True, index=True)
    created_by: Mapped[uuid.UUID] = mapped_column(Uuid, ForeignKey("principal.id"), index=True)

    contacts: Mapped[list["CustomerContact"]] = relationship(
        back_populates="customer",
        order_by="CustomerContact.position",
        collection_class=ordering_list("position"),
        cascade="all, delete-orphan",
        lazy="selectin",
    )

    @property
    def primary_contact(self) -> "CustomerContact | None":
        return next((c for c in self.contacts if c.is_primary), None)

    def __repr__(self) -> str:
        return f"<Customer {self.company_name!r}>"


class CustomerContact(UUIDMixin, Base):
    __tablename__ = "customer_contact"

    customer_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("customer.id", ondelete="CASCADE"), index=True
    )
    position: Mapped[int] = mapped_column(Integer, default=0)
    name: Mapped[str] = mapped_column(String(100))
    email: Mapped[str] = mapped_column(String(255), index=True)
    phone: Mapped[str] = mapped_column(String(20))
    designation: Mapped[str] = mapped_column(String(100))
    is_primary: Mapped[bool] = mapped_column(Boolean, default=False)

    customer: Mapped[Customer] = relationship(back_populates="contacts")

    def __repr__(self) -> str:
        return f"<CustomerContact {self.email!r}>"
