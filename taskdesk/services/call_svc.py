"""Call log service."""

from __future__ import annotations

import uuid
from datetime import datetime

from sqlalchemy import String, and_, cast, or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from ..dispatcher import dispatcher
from ..errors import FieldError, InvalidReference, NotFound, raise_if_errors
from ..models.call import Call
from ..schemas.call import CallCreate, CallUpdate
from ..security import (
    AuthPrincipal,
    can_create,
    can_delete,
    can_read,
    can_write,
    require,
    visibility_clause,
)
from .concurrency import check_version, commit_or_conflict
from .customer_svc import get_active_customer
from .paging import order_by_param, paginate
from .validators import check_not_null

SORT_COLUMNS = {
    "created_at": Call.created_at,
    "follow_up_date": Call.follow_up_date,
    "duration_seconds": Call.duration_seconds,
}

NOT_NULLABLE = ("direction", "summary", "follow_up_required", "tags")


def _check_follow_up(required: bool, follow_up_date: datetime | None) -> None:
    errors: list[FieldError] = []
    if required and follow_up_date is None:
        errors.append(
            FieldError("follow_up_date", "Follow-up date is required when follow-up is needed")
        )
    raise_if_errors(errors)


async def _load(db: AsyncSession, call_id: uuid.UUID) -> Call:
    call = await db.get(Call, call_id)
    if not call:
        raise NotFound("Call not found")
    return call


async def create_call(db: AsyncSession, principal: AuthPrincipal, data: CallCreate) -> Call:
    """Log a call on behalf of the acting principal."""
    require(can_create(principal, "call"))
    _check_follow_up(data.follow_up_required, data.follow_up_date)

    customer = await get_active_customer(db, data.customer_id)
    if customer is None:
        raise InvalidReference("Customer not found or inactive", field="customer_id")

    call = Call(
        customer_id=customer.id,
        user_id=principal.id,
        direction=data.direction,
        summary=data.summary,
        duration_seconds=data.duration_seconds,
        outcome=data.outcome,
        follow_up_required=data.follow_up_required,
        follow_up_date=data.follow_up_date if data.follow_up_required else None,
        tags=list(data.tags),
    )
    db.add(call)
    await db.commit()

    dispatcher.record_activity(
        principal.id,
        "create-call",
        "call",
        call.id,
        {
            "customer_id": str(customer.id),
            "company_name": customer.company_name,
            "direction": call.direction,
        },
    )
    return call


async def get_call(db: AsyncSession, principal: AuthPrincipal, call_id: uuid.UUID) -> Call:
    call = await _load(db, call_id)
    require(can_read(principal, call))
    return call


async def list_calls(
    db: AsyncSession,
    principal: AuthPrincipal,
    *,
    direction: str | None = None,
    customer_id: uuid.UUID | None = None,
    user_id: uuid.UUID | None = None,
    follow_up_required: bool | None = None,
    search: str | None = None,
    sort: str | None = None,
    page: int | None = None,
    page_size: int | None = None,
):
    stmt = select(Call).where(visibility_clause(principal, Call))
    if direction:
        stmt = stmt.where(Call.direction == direction)
    if customer_id:
        stmt = stmt.where(Call.customer_id == customer_id)
    if user_id:
        stmt = stmt.where(Call.user_id == user_id)
    if follow_up_required is not None:
        stmt = stmt.where(Call.follow_up_required.is_(follow_up_required))
    if search:
        q = f"%{search.strip()}%"
        stmt = stmt.where(
            or_(Call.summary.ilike(q), Call.outcome.ilike(q), cast(Call.tags, String).ilike(q))
        )
    stmt = stmt.order_by(order_by_param(sort, SORT_COLUMNS, Call.created_at.desc()), Call.id)
    return await paginate(db, stmt, page=page, page_size=page_size)


async def list_calls_for_customer(
    db: AsyncSession, principal: AuthPrincipal, customer_id: uuid.UUID
) -> list[Call]:
    stmt = (
        select(Call)
        .where(and_(Call.customer_id == customer_id, visibility_clause(principal, Call)))
        .order_by(Call.created_at.desc())
    )
    return list((await db.execute(stmt)).scalars().all())


async def update_call(
    db: AsyncSession, principal: AuthPrincipal, call_id: uuid.UUID, data: CallUpdate
) -> Call:
    call = await _load(db, call_id)
    require(can_write(principal, call))
    check_version(call, data.version)

    changes = data.model_dump(exclude_unset=True, exclude={"version"})
    errors: list[FieldError] = []
    check_not_null(changes, NOT_NULLABLE, errors)
    raise_if_errors(errors)
    required = changes.get("follow_up_required", call.follow_up_required)
    follow_up_date = changes.get("follow_up_date", call.follow_up_date)
    _check_follow_up(required, follow_up_date)
    if not required:
        changes["follow_up_date"] = None

    changed_fields = [key for key, value in changes.items() if getattr(call, key) != value]
    for key, value in changes.items():
        setattr(call, key, value)
    await commit_or_conflict(db)

    dispatcher.record_activity(
        principal.id, "update-call", "call", call.id, {"changed_fields": changed_fields}
    )
    return call


async def delete_call(db: AsyncSession, principal: AuthPrincipal, call_id: uuid.UUID) -> None:
    call = await _load(db, call_id)
    require(can_delete(principal, call), "Only admins and managers can delete calls")
    details = {
        "customer_id": str(call.customer_id),
        "direction": call.direction,
        "summary": call.summary[:200],
    }
    await db.delete(call)
    await db.commit()
    dispatcher.record_activity(principal.id, "delete-call", "call", call_id, details)
