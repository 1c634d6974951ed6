"""Error taxonomy shared by every service.

Each error carries a stable machine-readable ``kind`` and a human-readable
message. The HTTP layer maps kinds to status codes in one place (``app.py``).
"""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class FieldError:
    field: str
    reason: str

    def as_dict(self) -> dict[str, str]:
        return {"field": self.field, "reason": self.reason}


class TaskdeskError(Exception):
    kind = "error"
    default_message = "Request failed"

    def __init__(self, message: str | None = None):
        self.message = message or self.default_message
        super().__init__(self.message)

    def as_dict(self) -> dict:
        return {"kind": self.kind, "message": self.message}


class Unauthenticated(TaskdeskError):
    kind = "unauthenticated"
    default_message = "Authentication required"


class Forbidden(TaskdeskError):
    kind = "forbidden"
    default_message = "Access denied"


class NotFound(TaskdeskError):
    kind = "not_found"
    default_message = "Not found"


class InvalidReference(TaskdeskError):
    kind = "invalid_reference"
    default_message = "Referenced record is missing or inactive"

    def __init__(self, message: str | None = None, *, field: str | None = None):
        super().__init__(message)
        self.field = field

    def as_dict(self) -> dict:
        payload = super().as_dict()
        if self.field:
            payload["field"] = self.field
        return payload


class ValidationFailed(TaskdeskError):
    kind = "validation_failed"
    default_message = "Validation failed"

    def __init__(self, errors: list[FieldError], message: str | None = None):
        super().__init__(message)
        self.errors = list(errors)

    @property
    def fields(self) -> list[str]:
        return [err.field for err in self.errors]

    def as_dict(self) -> dict:
        payload = super().as_dict()
        payload["errors"] = [err.as_dict() for err in self.errors]
        return payload


class Conflict(TaskdeskError):
    kind = "conflict"
    default_message = "Conflicting update"


def raise_if_errors(errors: list[FieldError]) -> None:
    if errors:
        raise ValidationFailed(errors)
