"""Tests for cross-entity search: visibility, ranking, partial failure."""

from __future__ import annotations

from datetime import timedelta

import pytest
from sqlalchemy import select

from taskdesk.clock import utcnow
from taskdesk.errors import ValidationFailed
from taskdesk.models.call import Call
from taskdesk.models.customer import Customer, CustomerContact
from taskdesk.models.task import Task
from taskdesk.schemas.task import TaskCreate
from taskdesk.services import search_svc, task_svc


def test_split_terms_lowercases_and_dedupes():
    assert search_svc.split_terms("  TechCorp techcorp  renewal ") == ["techcorp", "renewal"]


def _task(owner, due, **fields) -> Task:
    return Task(
        due_date=due,
        assigned_to=owner.id,
        created_by=owner.id,
        comments=[],
        attachments=[],
        **fields,
    )


@pytest.mark.asyncio
async def test_relevance_counts_weighted_hits_in_sql(db, manager, next_week):
    task = _task(manager, next_week, title="Zephyr zephyr rollout", description="", category="ops")
    db.add(task)
    await db.commit()

    rank = search_svc.relevance(search_svc.TASK_FIELDS, ["zephyr", "ops"])
    assert await db.scalar(select(rank).where(Task.id == task.id)) == 8


async def _customer(db, manager, name: str, *, notes=None, email="info@example.com"):
    row = Customer(
        company_name=name,
        company_type="Services",
        notes=notes,
        created_by=manager.id,
        contacts=[
            CustomerContact(
                name="Front Desk", email=email, phone="9876543210", designation="Reception", is_primary=True
            )
        ],
    )
    db.add(row)
    await db.commit()
    return row


@pytest.mark.asyncio
async def test_techcorp_ranks_above_single_hit(db, session_factory, manager, customer):
    # `customer` is TechCorp Solutions with contact alice@techcorp.com.
    unrelated = await _customer(db, manager, "Initech", notes="Was referred by techcorp once")

    results = await search_svc.search(
        manager, "TechCorp", ["customers"], session_factory=session_factory
    )

    assert [c.id for c in results.customers] == [customer.id, unrelated.id]
    assert results.tasks == [] and results.calls == []
    assert results.errors == {}


@pytest.mark.asyncio
async def test_contact_email_alone_is_enough_to_match(db, session_factory, manager, user_c):
    hidden = await _customer(db, manager, "Quiet Co", email="bob@umbrella-labs.com")

    results = await search_svc.search(
        user_c, "umbrella", ["customers"], session_factory=session_factory
    )
    assert [c.id for c in results.customers] == [hidden.id]


@pytest.mark.asyncio
async def test_search_respects_task_and_call_visibility(
    db, session_factory, admin, user_c, user_d, customer, next_week
):
    task = await task_svc.create_task(
        db,
        admin,
        TaskCreate(
            title="Implement new CRM features",
            description="Roadmap item",
            category="Development",
            due_date=next_week,
            assigned_to=user_c.id,
        ),
    )
    db.add(Call(customer_id=customer.id, user_id=user_d.id, direction="inbound", summary="CRM demo call", tags=[]))
    await db.commit()

    as_c = await search_svc.search(user_c, "crm", session_factory=session_factory)
    assert [t.id for t in as_c.tasks] == [task.id]
    assert as_c.calls == []

    as_d = await search_svc.search(user_d, "crm", session_factory=session_factory)
    assert as_d.tasks == []
    assert [c.summary for c in as_d.calls] == ["CRM demo call"]

    as_admin = await search_svc.search(admin, "crm", session_factory=session_factory)
    assert len(as_admin.tasks) == 1 and len(as_admin.calls) == 1


@pytest.mark.asyncio
async def test_inactive_customers_never_match(db, session_factory, manager, customer):
    customer.is_active = False
    await db.commit()
    results = await search_svc.search(manager, "techcorp", session_factory=session_factory)
    assert results.customers == []


@pytest.mark.asyncio
async def test_results_truncated_to_page_size(db, session_factory, manager):
    for i in range(12):
        await _customer(db, manager, f"Acme Branch {i}")
    results = await search_svc.search(manager, "acme", ["customers"], session_factory=session_factory)
    assert len(results.customers) == 10


@pytest.mark.asyncio
async def test_one_failing_entity_type_degrades_to_partial_results(
    db, session_factory, manager, customer, monkeypatch
):
    async def boom(*args, **kwargs):
        raise RuntimeError("calls index unavailable")

    monkeypatch.setitem(search_svc.SEARCHERS, "calls", boom)

    results = await search_svc.search(manager, "techcorp", session_factory=session_factory)
    assert [c.id for c in results.customers] == [customer.id]
    assert results.calls == []
    assert results.errors == {"calls": search_svc.UNAVAILABLE_MESSAGE}
    assert "calls index unavailable" not in str(results.errors)


@pytest.mark.asyncio
async def test_all_entity_types_failing_raises(db, session_factory, manager, monkeypatch):
    async def boom(*args, **kwargs):
        raise RuntimeError("store down")

    for name in search_svc.ENTITY_TYPES:
        monkeypatch.setitem(search_svc.SEARCHERS, name, boom)

    with pytest.raises(RuntimeError, match="store down"):
        await search_svc.search(manager, "anything", session_factory=session_factory)


@pytest.mark.asyncio
async def test_blank_query_and_unknown_types_are_rejected(manager, session_factory):
    with pytest.raises(ValidationFailed):
        await search_svc.search(manager, "   ", session_factory=session_factory)
    with pytest.raises(ValidationFailed):
        await search_svc.search(manager, "x", ["invoices"], session_factory=session_factory)


@pytest.mark.asyncio
async def test_best_match_wins_over_many_newer_weak_matches(db, session_factory, manager, next_week):
    best = _task(
        manager,
        next_week,
        title="Zephyr migration",
        category="zephyr",
        description="Move every zephyr queue",
        updated_at=utcnow() - timedelta(days=30),
    )
    db.add(best)
    db.add_all(
        _task(manager, next_week, title=f"Routine check {i}", category="ops", description="mentions zephyr")
        for i in range(200)
    )
    await db.commit()

    results = await search_svc.search(manager, "zephyr", ["tasks"], session_factory=session_factory)

    assert results.tasks[0].id == best.id
    assert len(results.tasks) == 10
