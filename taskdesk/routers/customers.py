"""Customer routes."""

from __future__ import annotations

import uuid

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from ..database import get_db
from ..deps import get_current_principal
from ..schemas.call import CallRead
from ..schemas.common import Page
from ..schemas.customer import CustomerCreate, CustomerRead, CustomerUpdate
from ..security import AuthPrincipal
from ..services import call_svc, customer_svc
from ..services.projection import project_calls, project_customer, project_customers

router = APIRouter(prefix="/api/customers", tags=["customers"])


@router.get("", response_model=Page[CustomerRead])
async def list_customers(
    company_type: str | None = None,
    search: str | None = None,
    sort: str | None = None,
    page: int = 1,
    page_size: int | None = None,
    principal: AuthPrincipal = Depends(get_current_principal),
    db: AsyncSession = Depends(get_db),
):
    rows, total, page, page_size = await customer_svc.list_customers(
        db,
        principal,
        company_type=company_type,
        search=search,
        sort=sort,
        page=page,
        page_size=page_size,
    )
    return Page[CustomerRead].build(await project_customers(db, rows), total, page, page_size)


@router.post("", response_model=CustomerRead, status_code=201)
async def create_customer(
    payload: CustomerCreate,
    principal: AuthPrincipal = Depends(get_current_principal),
    db: AsyncSession = Depends(get_db),
):
    customer = await customer_svc.create_customer(db, principal, payload)
    return await project_customer(db, customer)


@router.get("/{customer_id}", response_model=CustomerRead)
async def get_customer(
    customer_id: uuid.UUID,
    principal: AuthPrincipal = Depends(get_current_principal),
    db: AsyncSession = Depends(get_db),
):
    customer = await customer_svc.get_customer(db, principal, customer_id)
    return await project_customer(db, customer)


@router.get("/{customer_id}/calls", response_model=list[CallRead])
async def list_customer_calls(
    customer_id: uuid.UUID,
    principal: AuthPrincipal = Depends(get_current_principal),
    db: AsyncSession = Depends(get_db),
):
    await customer_svc.get_customer(db, principal, customer_id)
    calls = await call_svc.list_calls_for_customer(db, principal, customer_id)
    return await project_calls(db, calls)


@router.put("/{customer_id}", response_model=CustomerRead)
async def update_customer(
    customer_id: uuid.UUID,
    payload: CustomerUpdate,
    principal: AuthPrincipal = Depends(get_current_principal),
    db: AsyncSession = Depends(get_db),
):
    customer = await customer_svc.update_customer(db, principal, customer_id, payload)
    return await project_customer(db, customer)


@router.delete("/{customer_id}")
async def delete_customer(
    customer_id: uuid.UUID,
    principal: AuthPrincipal = Depends(get_current_principal),
    db: AsyncSession = Depends(get_db),
):
    await customer_svc.delete_customer(db, principal, customer_id)
    return {"message": "Customer deleted successfully"}
