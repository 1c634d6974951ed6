"""Cross-entity search with per-type relevance ranking.

Each entity type runs in its own session, concurrently with the others. A
candidate matches when any query term appears in one of its designated
fields. Visible candidates are ranked in SQL by weighted term occurrence,
newest first on ties, so only the page that is returned leaves the database.
"""

from __future__ import annotations

import asyncio
import logging
import operator
from dataclasses import dataclass, field
from functools import reduce
from typing import Awaitable, Callable

from sqlalchemy import String, cast, func, or_, select
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from ..config import settings
from ..errors import FieldError, ValidationFailed
from ..models.call import Call
from ..models.customer import Customer, CustomerContact
from ..models.task import Task
from ..security import AuthPrincipal, visibility_clause

logger = logging.getLogger(__name__)

ENTITY_TYPES = ("tasks", "customers", "calls")

# Reported per failed entity type; the exception itself only goes to the log.
UNAVAILABLE_MESSAGE = "search unavailable"

TASK_FIELDS = ((Task.title, 3), (Task.category, 2), (Task.description, 1))
CUSTOMER_FIELDS = (
    (Customer.company_name, 3),
    (Customer.company_type, 2),
    (Customer.tax_id, 2),
    (Customer.notes, 1),
)
CONTACT_FIELDS = ((CustomerContact.name, 2), (CustomerContact.email, 1))
CALL_FIELDS = ((cast(Call.tags, String), 2), (Call.outcome, 2), (Call.summary, 1))


@dataclass
class SearchResults:
    query: str
    tasks: list[Task] = field(default_factory=list)
    customers: list[Customer] = field(default_factory=list)
    calls: list[Call] = field(default_factory=list)
    errors: dict[str, str] = field(default_factory=dict)


def split_terms(query: str) -> list[str]:
    terms: list[str] = []
    for raw in (query or "").lower().split():
        term = raw.strip()
        if term and term not in terms:
            terms.append(term)
    return terms


def _any_term(columns, terms: list[str]):
    return or_(*[col.ilike(f"%{term}%") for col in columns for term in terms])


def occurrences(column, term: str):
    """Non-overlapping count of ``term`` in ``column``, case-folded, as SQL."""
    lowered = func.lower(func.coalesce(column, ""))
    removed = func.length(lowered) - func.length(func.replace(lowered, term, ""))
    return removed // len(term)


def relevance(weighted_columns, terms: list[str]):
    """Sum of weight times occurrences over every column and term."""
    parts = [weight * occurrences(col, term) for col, weight in weighted_columns for term in terms]
    return reduce(operator.add, parts)


async def _ranked(db: AsyncSession, stmt, rank, model, limit: int) -> list:
    stmt = stmt.order_by(rank.desc(), model.updated_at.desc(), model.id).limit(limit)
    return list((await db.execute(stmt)).scalars().all())


async def _search_tasks(db: AsyncSession, principal: AuthPrincipal, terms: list[str], limit: int):
    stmt = (
        select(Task)
        .where(visibility_clause(principal, Task))
        .where(_any_term([col for col, _ in TASK_FIELDS], terms))
    )
    return await _ranked(db, stmt, relevance(TASK_FIELDS, terms), Task, limit)


async def _search_customers(
    db: AsyncSession, principal: AuthPrincipal, terms: list[str], limit: int
):
    contact_match = Customer.contacts.any(
        _any_term([col for col, _ in CONTACT_FIELDS], terms)
    )
    contact_rank = (
        select(func.coalesce(func.sum(relevance(CONTACT_FIELDS, terms)), 0))
        .where(CustomerContact.customer_id == Customer.id)
        .correlate(Customer)
        .scalar_subquery()
    )
    stmt = (
        select(Customer)
        .where(visibility_clause(principal, Customer))
        .where(or_(_any_term([col for col, _ in CUSTOMER_FIELDS], terms), contact_match))
    )
    rank = relevance(CUSTOMER_FIELDS, terms) + contact_rank
    return await _ranked(db, stmt, rank, Customer, limit)


async def _search_calls(db: AsyncSession, principal: AuthPrincipal, terms: list[str], limit: int):
    stmt = (
        select(Call)
        .where(visibility_clause(principal, Call))
        .where(_any_term([col for col, _ in CALL_FIELDS], terms))
    )
    return await _ranked(db, stmt, relevance(CALL_FIELDS, terms), Call, limit)


SEARCHERS: dict[str, Callable[..., Awaitable[list]]] = {
    "tasks": _search_tasks,
    "customers": _search_customers,
    "calls": _search_calls,
}


async def search(
    principal: AuthPrincipal,
    query: str,
    entity_types: list[str] | None = None,
    *,
    session_factory: async_sessionmaker | None = None,
    limit: int | None = None,
) -> SearchResults:
    """Ranked results per entity type.

    A failing entity type comes back empty and is flagged in ``errors``. When every
    requested type fails the first error is raised.
    """
    terms = split_terms(query)
    if not terms:
        raise ValidationFailed([FieldError("q", "Search query (q) is required")])

    types = list(dict.fromkeys(entity_types or ENTITY_TYPES))
    unknown = [t for t in types if t not in SEARCHERS]
    if unknown:
        raise ValidationFailed(
            [FieldError("resources", f"Unknown entity type: {name}") for name in unknown]
        )

    if session_factory is None:
        from ..database import async_session_factory

        session_factory = async_session_factory
    limit = limit or settings.search_page_size

    async def run(entity_type: str) -> list:
        async with session_factory() as db:
            return await SEARCHERS[entity_type](db, principal, terms, limit)

    outcomes = await asyncio.gather(*(run(t) for t in types), return_exceptions=True)

    results = SearchResults(query=query)
    failures: list[BaseException] = []
    for entity_type, outcome in zip(types, outcomes):
        if isinstance(outcome, BaseException):
            logger.error("Search over %s failed", entity_type, exc_info=outcome)
            results.errors[entity_type] = UNAVAILABLE_MESSAGE
            failures.append(outcome)
            continue
        setattr(results, entity_type, outcome)

    if failures and len(failures) == len(types):
        raise failures[0]
    return results
