"""Authenticated identity passed to every service call."""

from __future__ import annotations

import uuid
from dataclasses import dataclass

from ..models.principal import Principal


@dataclass(frozen=True)
class AuthPrincipal:
    """A resolved principal, without its password hash."""

    id: uuid.UUID
    name: str
    email: str
    role: str
    is_active: bool = True

    @property
    def is_admin(self) -> bool:
        return self.role == "admin"

    @classmethod
    def from_model(cls, principal: Principal) -> "AuthPrincipal":
        return cls(
            id=principal.id,
            name=principal.name,
            email=principal.email,
            role=principal.role,
            is_active=principal.is_active,
        )
