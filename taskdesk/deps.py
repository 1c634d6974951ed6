"""FastAPI dependencies: database session and the acting principal."""

from __future__ import annotations

from fastapi import Depends
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.ext.asyncio import AsyncSession

from .database import get_db
from .errors import Unauthenticated
from .security import AuthPrincipal
from .services import auth_svc

bearer = HTTPBearer(auto_error=False)


async def get_current_principal(
    credentials: HTTPAuthorizationCredentials | None = Depends(bearer),
    db: AsyncSession = Depends(get_db),
) -> AuthPrincipal:
    if credentials is None or credentials.scheme.lower() != "bearer":
        raise Unauthenticated("No token provided")
    return await auth_svc.authenticate(db, credentials.credentials)
