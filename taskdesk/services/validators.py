"""Field format checks that collect FieldErrors instead of raising one at a time."""

from __future__ import annotations

import re

from ..errors import FieldError

EMAIL_RE = re.compile(r"^\w+([.-]?\w+)*@\w+([.-]?\w+)*(\.\w{2,3})+$")
PHONE_RE = re.compile(r"^[\+]?[1-9][\d]{0,15}$")
# Indian GSTIN: state code, PAN, entity number, "Z", checksum.
GST_RE = re.compile(r"^[0-9]{2}[A-Z]{5}[0-9]{4}[A-Z]{1}[1-9A-Z]{1}Z[0-9A-Z]{1}$")


def normalize_email(email: str | None) -> str:
    return (email or "").strip().lower()


def check_email(field: str, value: str, errors: list[FieldError]) -> None:
    if not EMAIL_RE.match(value or ""):
        errors.append(FieldError(field, "Please enter a valid email"))


def check_phone(field: str, value: str, errors: list[FieldError]) -> None:
    if not PHONE_RE.match(value or ""):
        errors.append(FieldError(field, "Please enter a valid phone number"))


def check_tax_id(field: str, value: str, errors: list[FieldError]) -> None:
    if not GST_RE.match(value or ""):
        errors.append(FieldError(field, "Please enter a valid GST number"))


def check_not_null(patch: dict, fields: tuple[str, ...], errors: list[FieldError]) -> None:
    """Flag explicit nulls sent for required columns in a partial update."""
    for key in fields:
        if key in patch and patch[key] is None:
            errors.append(FieldError(key, "Field cannot be null"))
