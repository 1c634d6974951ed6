"""Principal model - identities that act on every other record."""

from __future__ import annotations

from datetime import datetime

from sqlalchemy import Boolean, DateTime, String
from sqlalchemy.orm import Mapped, mapped_column

from .base import Base, TimestampMixin, UUIDMixin

ROLES = ("admin", "manager", "user")
PRIVILEGED_ROLES = frozenset({"admin", "manager"})


class Principal(UUIDMixin, TimestampMixin, Base):
    """Login identity. Soft-deleted via ``is_active``; never removed."""

    __tablename__ = "principal"

    name: Mapped[str] = mapped_column(String(100))
    email: Mapped[str] = mapped_column(String(255), unique=True, index=True)
    password_hash: Mapped[str] = mapped_column(String(255))
    role: Mapped[str] = mapped_column(String(20), default="user", index=True)
    is_active: Mapped[bool] = mapped_column(Boolean, default=True)
    last_login_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), default=None)

    def __repr__(self) -> str:
        return f"<Principal {self.email!r} ({self.role})>"
