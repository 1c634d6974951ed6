from .identity import AuthPrincipal
from .policy import (
    DELETE_POLICY,
    can_create,
    can_create_task,
    can_delete,
    can_read,
    can_write,
    require,
    visibility_clause,
)

__all__ = [
    "AuthPrincipal",
    "DELETE_POLICY",
    "can_create",
    "can_create_task",
    "can_delete",
    "can_read",
    "can_write",
    "require",
    "visibility_clause",
]
