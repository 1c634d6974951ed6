"""Registration, login and self-service profile routes."""

from __future__ import annotations

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from ..database import get_db
from ..deps import get_current_principal
from ..schemas.principal import (
    LoginRequest,
    PrincipalRead,
    ProfileUpdate,
    RegisterRequest,
    TokenResponse,
)
from ..security import AuthPrincipal
from ..services import auth_svc, principal_svc

router = APIRouter(prefix="/api/auth", tags=["auth"])


@router.post("/register", response_model=TokenResponse, status_code=201)
async def register(payload: RegisterRequest, db: AsyncSession = Depends(get_db)):
    token, principal = await auth_svc.register(
        db, name=payload.name, email=payload.email, password=payload.password
    )
    return TokenResponse(token=token, principal=PrincipalRead.model_validate(principal))


@router.post("/login", response_model=TokenResponse)
async def login(payload: LoginRequest, db: AsyncSession = Depends(get_db)):
    token, principal = await auth_svc.login(db, email=payload.email, password=payload.password)
    return TokenResponse(token=token, principal=PrincipalRead.model_validate(principal))


@router.post("/logout")
async def logout(principal: AuthPrincipal = Depends(get_current_principal)):
    auth_svc.logout(principal)
    return {"message": "Logged out"}


@router.get("/me", response_model=PrincipalRead)
async def me(
    principal: AuthPrincipal = Depends(get_current_principal),
    db: AsyncSession = Depends(get_db),
):
    return await principal_svc.get_principal(db, principal, principal.id)


@router.put("/profile", response_model=PrincipalRead)
async def update_profile(
    payload: ProfileUpdate,
    principal: AuthPrincipal = Depends(get_current_principal),
    db: AsyncSession = Depends(get_db),
):
    return await principal_svc.update_profile(db, principal, payload)
