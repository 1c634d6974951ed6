"""Access policy: pure role + ownership predicates, no I/O.

Every service consults these functions before reading or mutating a record,
and list/search queries use ``visibility_clause`` so that the same rule is
applied in SQL.
"""

from __future__ import annotations

from sqlalchemy import or_, true
from sqlalchemy.sql.elements import ColumnElement

from ..errors import Forbidden
from ..models.call import Call
from ..models.customer import Customer
from ..models.notification import Notification
from ..models.principal import PRIVILEGED_ROLES, Principal
from ..models.task import Task
from .identity import AuthPrincipal

# Which entities are physically removed and which are only deactivated.
DELETE_POLICY = {
    "task": "hard",
    "call": "hard",
    "customer": "soft",
    "principal": "soft",
}


def is_privileged(principal: AuthPrincipal) -> bool:
    return principal.role in PRIVILEGED_ROLES


def _owns_task(principal: AuthPrincipal, task: Task) -> bool:
    return principal.id == task.created_by or principal.id == task.assigned_to


def _owns_call(principal: AuthPrincipal, call: Call) -> bool:
    return principal.id == call.user_id


def can_read(principal: AuthPrincipal, resource) -> bool:
    if isinstance(resource, Notification):
        return resource.recipient_id == principal.id
    if isinstance(resource, Customer):
        return is_privileged(principal) or bool(resource.is_active)
    if isinstance(resource, Principal):
        return is_privileged(principal) or resource.id == principal.id
    if is_privileged(principal):
        return True
    if isinstance(resource, Task):
        return _owns_task(principal, resource)
    if isinstance(resource, Call):
        return _owns_call(principal, resource)
    return False


def can_write(principal: AuthPrincipal, resource) -> bool:
    if isinstance(resource, Notification):
        return resource.recipient_id == principal.id
    if isinstance(resource, Principal):
        return principal.is_admin or resource.id == principal.id
    if is_privileged(principal):
        return True
    if isinstance(resource, Task):
        return _owns_task(principal, resource)
    if isinstance(resource, Call):
        return _owns_call(principal, resource)
    # Customers carry no per-user ownership.
    return False


def can_create(principal: AuthPrincipal, entity_type: str) -> bool:
    if entity_type == "call":
        return True
    if entity_type == "principal":
        return principal.is_admin
    return is_privileged(principal)


def can_create_task(principal: AuthPrincipal) -> bool:
    return can_create(principal, "task")


def can_delete(principal: AuthPrincipal, resource) -> bool:
    if isinstance(resource, Principal):
        return principal.is_admin and resource.id != principal.id
    return is_privileged(principal)


def can_change_role(principal: AuthPrincipal) -> bool:
    return principal.is_admin


def visibility_clause(principal: AuthPrincipal, model) -> ColumnElement[bool]:
    """SQL form of ``can_read`` for list and search queries."""
    if model is Customer:
        return Customer.is_active.is_(True)
    if is_privileged(principal):
        return true()
    if model is Task:
        return or_(Task.created_by == principal.id, Task.assigned_to == principal.id)
    if model is Call:
        return Call.user_id == principal.id
    raise ValueError(f"No visibility rule for {model!r}")


def require(allowed: bool, message: str | None = None) -> None:
    if not allowed:
        raise Forbidden(message)
