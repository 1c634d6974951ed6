"""Capability resolver and account entry points (register, login, bootstrap)."""

from __future__ import annotations

import logging
import uuid
from datetime import datetime

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from ..clock import as_utc, utcnow
from ..config import settings
from ..dispatcher import dispatcher
from ..errors import Unauthenticated
from ..models.principal import Principal
from ..security import AuthPrincipal
from ..security.tokens import decode_token, issue_token, verify_password_async
from . import principal_svc

logger = logging.getLogger(__name__)


def _should_update_last_login(last_login_at: datetime | None, now: datetime) -> bool:
    """Avoid hot-write amplification during rapid repeated logins."""
    last = as_utc(last_login_at)
    if last is None:
        return True
    return (now - last).total_seconds() >= 60


def issue_for(principal: Principal | AuthPrincipal) -> str:
    return issue_token(settings.auth_secret, str(principal.id), settings.auth_token_ttl_seconds)


async def authenticate(db: AsyncSession, credential: str | None) -> AuthPrincipal:
    """Resolve a bearer credential into the acting principal."""
    claims = decode_token(settings.auth_secret, credential or "")
    if claims is None:
        raise Unauthenticated("Invalid or expired token")
    try:
        principal_id = uuid.UUID(claims.subject)
    except ValueError:
        raise Unauthenticated("Invalid or expired token") from None

    principal = await db.get(Principal, principal_id)
    if principal is None:
        raise Unauthenticated("User no longer exists")
    if not principal.is_active:
        raise Unauthenticated("Account is deactivated")
    return AuthPrincipal.from_model(principal)


async def register(
    db: AsyncSession, *, name: str, email: str, password: str
) -> tuple[str, Principal]:
    principal = await principal_svc.insert_principal(
        db, name=name, email=email, password=password, role="user"
    )
    return issue_for(principal), principal


async def login(db: AsyncSession, *, email: str, password: str) -> tuple[str, Principal]:
    principal = await principal_svc.get_by_email(db, email)
    # Same message for every failure; account existence is never revealed.
    if principal is None or not principal.is_active:
        raise Unauthenticated("Invalid credentials")
    if not await verify_password_async(password, principal.password_hash):
        raise Unauthenticated("Invalid credentials")

    now = utcnow()
    if _should_update_last_login(principal.last_login_at, now):
        principal.last_login_at = now
        await db.commit()

    dispatcher.record_activity(principal.id, "user-login", "principal", principal.id)
    return issue_for(principal), principal


def logout(principal: AuthPrincipal) -> None:
    # Tokens are stateless; only the audit trail changes.
    dispatcher.record_activity(principal.id, "user-logout", "principal", principal.id)


async def bootstrap_admin(
    db: AsyncSession, *, name: str, email: str, password: str
) -> Principal | None:
    """Create the first admin. Returns None when any admin already exists."""
    admins = (
        await db.execute(select(func.count()).select_from(Principal).where(Principal.role == "admin"))
    ).scalar() or 0
    if admins:
        logger.info("Admin already present; skipping bootstrap")
        return None
    principal = await principal_svc.insert_principal(
        db, name=name, email=email, password=password, role="admin"
    )
    logger.info("Bootstrapped admin %s", principal.email)
    return principal
