"""Principal service - account management for admins and self-service."""

from __future__ import annotations

import uuid

from sqlalchemy import or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from ..config import settings
from ..dispatcher import dispatcher
from ..errors import Conflict, FieldError, Forbidden, NotFound, raise_if_errors
from ..models.principal import Principal
from ..schemas.principal import PrincipalCreate, PrincipalUpdate, ProfileUpdate
from ..security import AuthPrincipal, can_create, can_delete, can_read, can_write, require
from ..security.policy import can_change_role, is_privileged
from ..security.tokens import hash_password_async
from .paging import paginate
from .validators import check_email, check_not_null, normalize_email

NOT_NULLABLE = ("name", "email", "role", "is_active")


async def get_by_email(db: AsyncSession, email: str) -> Principal | None:
    stmt = select(Principal).where(Principal.email == normalize_email(email))
    return (await db.execute(stmt)).scalar_one_or_none()


async def _load(db: AsyncSession, principal_id: uuid.UUID) -> Principal:
    principal = await db.get(Principal, principal_id)
    if not principal:
        raise NotFound("User not found")
    return principal


async def _ensure_email_free(
    db: AsyncSession, email: str, exclude_id: uuid.UUID | None = None
) -> None:
    existing = await get_by_email(db, email)
    if existing and existing.id != exclude_id:
        raise Conflict("User already exists with this email")


def _check_password(password: str, errors: list[FieldError]) -> None:
    if len(password or "") < settings.password_min_length:
        errors.append(
            FieldError(
                "password",
                f"Password must be at least {settings.password_min_length} characters",
            )
        )


async def insert_principal(
    db: AsyncSession,
    *,
    name: str,
    email: str,
    password: str,
    role: str = "user",
) -> Principal:
    """Validate, hash and persist a new principal."""
    email = normalize_email(email)
    errors: list[FieldError] = []
    if not (name or "").strip():
        errors.append(FieldError("name", "Name is required"))
    check_email("email", email, errors)
    _check_password(password, errors)
    raise_if_errors(errors)
    await _ensure_email_free(db, email)

    principal = Principal(
        name=name.strip(),
        email=email,
        password_hash=await hash_password_async(password),
        role=role,
    )
    db.add(principal)
    await db.commit()
    return principal


async def create_principal(
    db: AsyncSession, actor: AuthPrincipal, data: PrincipalCreate
) -> Principal:
    require(can_create(actor, "principal"), "Only admins can create users")
    return await insert_principal(
        db, name=data.name, email=data.email, password=data.password, role=data.role
    )


async def get_principal(
    db: AsyncSession, actor: AuthPrincipal, principal_id: uuid.UUID
) -> Principal:
    principal = await _load(db, principal_id)
    require(can_read(actor, principal))
    return principal


async def list_principals(
    db: AsyncSession,
    actor: AuthPrincipal,
    *,
    role: str | None = None,
    search: str | None = None,
    page: int | None = None,
    page_size: int | None = None,
):
    require(is_privileged(actor), "Only admins and managers can list users")
    stmt = select(Principal).where(Principal.is_active.is_(True))
    if role:
        stmt = stmt.where(Principal.role == role)
    if search:
        q = f"%{search.strip()}%"
        stmt = stmt.where(or_(Principal.name.ilike(q), Principal.email.ilike(q)))
    stmt = stmt.order_by(Principal.created_at.desc(), Principal.id)
    return await paginate(db, stmt, page=page, page_size=page_size)


async def update_principal(
    db: AsyncSession,
    actor: AuthPrincipal,
    principal_id: uuid.UUID,
    data: PrincipalUpdate,
) -> Principal:
    principal = await _load(db, principal_id)
    require(can_write(actor, principal))
    changes = data.model_dump(exclude_unset=True)

    if ("role" in changes or "is_active" in changes) and not can_change_role(actor):
        raise Forbidden("Only admins can change role or active status")
    if changes.get("is_active") is False and principal.id == actor.id:
        raise Forbidden("You cannot deactivate your own account")

    errors: list[FieldError] = []
    check_not_null(changes, NOT_NULLABLE, errors)
    raise_if_errors(errors)
    if "email" in changes:
        changes["email"] = normalize_email(changes["email"])
        check_email("email", changes["email"], errors)
    raise_if_errors(errors)
    if "email" in changes and changes["email"] != principal.email:
        await _ensure_email_free(db, changes["email"], exclude_id=principal.id)

    previous = {key: getattr(principal, key) for key in changes}
    for key, value in changes.items():
        setattr(principal, key, value)
    await db.commit()

    diff = {k: {"from": str(previous[k]), "to": str(v)} for k, v in changes.items() if previous[k] != v}
    if diff:
        action = "update-profile" if principal.id == actor.id else "update-user"
        dispatcher.record_activity(actor.id, action, "principal", principal.id, {"changes": diff})
    return principal


async def update_profile(db: AsyncSession, actor: AuthPrincipal, data: ProfileUpdate) -> Principal:
    """Self-service edit of name and email."""
    return await update_principal(
        db, actor, actor.id, PrincipalUpdate(**data.model_dump(exclude_unset=True))
    )


async def deactivate_principal(
    db: AsyncSession, actor: AuthPrincipal, principal_id: uuid.UUID
) -> Principal:
    principal = await _load(db, principal_id)
    if principal.id == actor.id:
        raise Forbidden("You cannot deactivate your own account")
    require(can_delete(actor, principal), "Only admins can deactivate users")
    if principal.is_active:
        principal.is_active = False
        await db.commit()
        dispatcher.record_activity(
            actor.id, "deactivate-user", "principal", principal.id, {"email": principal.email}
        )
    return principal
