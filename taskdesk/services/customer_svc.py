"""Customer service - CRUD over active customers and their contact lists."""

from __future__ import annotations

import uuid

from sqlalchemy import func, or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from ..clock import utcnow
from ..dispatcher import dispatcher
from ..errors import Conflict, FieldError, NotFound, raise_if_errors
from ..models.customer import Customer, CustomerContact
from ..schemas.customer import ContactIn, CustomerCreate, CustomerUpdate
from ..security import AuthPrincipal, can_create, can_delete, can_read, can_write, require
from .concurrency import check_version, commit_or_conflict
from .paging import order_by_param, paginate
from .validators import check_email, check_not_null, check_phone, check_tax_id, normalize_email

SORT_COLUMNS = {
    "company_name": Customer.company_name,
    "company_type": Customer.company_type,
    "created_at": Customer.created_at,
    "updated_at": Customer.updated_at,
}

NOT_NULLABLE = ("company_name", "company_type")


def normalize_contacts(contacts: list[ContactIn]) -> list[dict]:
    """Return contact dicts with exactly one primary.

    No primary: the first contact becomes primary. Several: only the first
    flagged contact keeps the flag.
    """
    rows = [c.model_dump() for c in contacts]
    for row in rows:
        row["email"] = normalize_email(row["email"])
    primary = next((i for i, row in enumerate(rows) if row["is_primary"]), 0)
    for i, row in enumerate(rows):
        row["is_primary"] = i == primary
    return rows


def _validate_contacts(rows: list[dict], errors: list[FieldError]) -> None:
    if not rows:
        errors.append(FieldError("contacts", "At least one contact is required"))
    for i, row in enumerate(rows):
        check_email(f"contacts.{i}.email", row["email"], errors)
        check_phone(f"contacts.{i}.phone", row["phone"], errors)


def _normalize_tax_id(value: str | None, errors: list[FieldError]) -> str | None:
    if value is None or not value.strip():
        return None
    value = value.strip().upper()
    check_tax_id("tax_id", value, errors)
    return value


async def _ensure_name_free(
    db: AsyncSession, company_name: str, exclude_id: uuid.UUID | None = None
) -> None:
    stmt = select(Customer.id).where(
        func.lower(Customer.company_name) == company_name.strip().lower(),
        Customer.is_active.is_(True),
    )
    if exclude_id is not None:
        stmt = stmt.where(Customer.id != exclude_id)
    if (await db.execute(stmt.limit(1))).scalar_one_or_none():
        raise Conflict("A customer with this company name already exists")


async def _load_active(db: AsyncSession, customer_id: uuid.UUID) -> Customer:
    customer = await db.get(Customer, customer_id)
    if not customer or not customer.is_active:
        raise NotFound("Customer not found")
    return customer


async def get_active_customer(db: AsyncSession, customer_id: uuid.UUID) -> Customer | None:
    """Reference lookup used by tasks and calls."""
    stmt = select(Customer).where(Customer.id == customer_id, Customer.is_active.is_(True))
    return (await db.execute(stmt)).scalar_one_or_none()


async def create_customer(
    db: AsyncSession, principal: AuthPrincipal, data: CustomerCreate
) -> Customer:
    require(can_create(principal, "customer"), "Only admins and managers can create customers")

    errors: list[FieldError] = []
    contacts = normalize_contacts(data.contacts)
    _validate_contacts(contacts, errors)
    tax_id = _normalize_tax_id(data.tax_id, errors)
    raise_if_errors(errors)
    await _ensure_name_free(db, data.company_name)

    customer = Customer(
        company_name=data.company_name.strip(),
        company_type=data.company_type.strip(),
        url=data.url,
        installation_date=data.installation_date,
        tax_id=tax_id,
        address=data.address.model_dump() if data.address else None,
        notes=data.notes,
        created_by=principal.id,
        contacts=[CustomerContact(**row) for row in contacts],
    )
    db.add(customer)
    await db.commit()

    dispatcher.record_activity(
        principal.id,
        "create-customer",
        "customer",
        customer.id,
        {"company_name": customer.company_name, "company_type": customer.company_type},
    )
    return customer


async def get_customer(
    db: AsyncSession, principal: AuthPrincipal, customer_id: uuid.UUID
) -> Customer:
    customer = await _load_active(db, customer_id)
    require(can_read(principal, customer))
    return customer


async def list_customers(
    db: AsyncSession,
    principal: AuthPrincipal,
    *,
    company_type: str | None = None,
    search: str | None = None,
    sort: str | None = None,
    page: int | None = None,
    page_size: int | None = None,
):
    stmt = select(Customer).where(Customer.is_active.is_(True))
    if company_type:
        stmt = stmt.where(Customer.company_type == company_type)
    if search:
        q = f"%{search.strip()}%"
        stmt = stmt.where(
            or_(
                Customer.company_name.ilike(q),
                Customer.company_type.ilike(q),
                Customer.tax_id.ilike(q),
                Customer.contacts.any(
                    or_(CustomerContact.name.ilike(q), CustomerContact.email.ilike(q))
                ),
            )
        )
    stmt = stmt.order_by(
        order_by_param(sort, SORT_COLUMNS, Customer.created_at.desc()), Customer.id
    )
    return await paginate(db, stmt, page=page, page_size=page_size)


async def update_customer(
    db: AsyncSession,
    principal: AuthPrincipal,
    customer_id: uuid.UUID,
    data: CustomerUpdate,
) -> Customer:
    customer = await _load_active(db, customer_id)
    require(can_write(principal, customer), "Only admins and managers can update customers")
    check_version(customer, data.version)

    changes = data.model_dump(exclude_unset=True, exclude={"version", "contacts"})
    errors: list[FieldError] = []
    check_not_null(changes, NOT_NULLABLE, errors)
    if "contacts" in data.model_fields_set and data.contacts is None:
        errors.append(FieldError("contacts", "Field cannot be null"))
    contacts = None
    if data.contacts is not None:
        contacts = normalize_contacts(data.contacts)
        _validate_contacts(contacts, errors)
    if "tax_id" in changes:
        changes["tax_id"] = _normalize_tax_id(changes["tax_id"], errors)
    raise_if_errors(errors)

    if changes.get("company_name"):
        changes["company_name"] = changes["company_name"].strip()
        if changes["company_name"].lower() != customer.company_name.lower():
            await _ensure_name_free(db, changes["company_name"], exclude_id=customer.id)
    if "address" in changes and data.address is not None:
        changes["address"] = data.address.model_dump()

    changed_fields = [key for key, value in changes.items() if getattr(customer, key) != value]
    for key, value in changes.items():
        setattr(customer, key, value)
    if contacts is not None:
        customer.contacts = [CustomerContact(**row) for row in contacts]
        customer.updated_at = utcnow()
        changed_fields.append("contacts")
    await commit_or_conflict(db)

    dispatcher.record_activity(
        principal.id,
        "update-customer",
        "customer",
        customer.id,
        {"company_name": customer.company_name, "changed_fields": changed_fields},
    )
    return customer


async def delete_customer(
    db: AsyncSession, principal: AuthPrincipal, customer_id: uuid.UUID
) -> Customer:
    """Soft delete: the customer disappears from reads but keeps its history."""
    customer = await _load_active(db, customer_id)
    require(can_delete(principal, customer), "Only admins and managers can delete customers")
    customer.is_active = False
    await commit_or_conflict(db)

    dispatcher.record_activity(
        principal.id,
        "delete-customer",
        "customer",
        customer.id,
        {"company_name": customer.company_name},
    )
    return customer
