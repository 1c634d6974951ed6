"""Read-side projection: expand stored ids into embedded summaries.

Rows only keep foreign ids. After policy filtering, responses get the
principal and customer summaries in one batched lookup per kind.
"""

from __future__ import annotations

import uuid
from typing import Iterable

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from ..models.activity import ActivityRecord
from ..models.call import Call
from ..models.customer import Customer
from ..models.principal import Principal
from ..models.task import Task
from ..schemas.call import CallRead
from ..schemas.common import CustomerSummary, PrincipalSummary
from ..schemas.customer import CustomerRead
from ..schemas.notification import ActivityRead
from ..schemas.task import TaskRead


async def principal_summaries(
    db: AsyncSession, ids: Iterable[uuid.UUID | None]
) -> dict[uuid.UUID, PrincipalSummary]:
    wanted = {i for i in ids if i is not None}
    if not wanted:
        return {}
    result = await db.execute(select(Principal).where(Principal.id.in_(wanted)))
    return {p.id: PrincipalSummary.model_validate(p) for p in result.scalars().all()}


async def customer_summaries(
    db: AsyncSession, ids: Iterable[uuid.UUID | None]
) -> dict[uuid.UUID, CustomerSummary]:
    wanted = {i for i in ids if i is not None}
    if not wanted:
        return {}
    result = await db.execute(select(Customer).where(Customer.id.in_(wanted)))
    return {c.id: CustomerSummary.model_validate(c) for c in result.scalars().all()}


async def project_tasks(db: AsyncSession, tasks: list[Task]) -> list[TaskRead]:
    principal_ids: set[uuid.UUID] = set()
    for task in tasks:
        principal_ids.update((task.assigned_to, task.created_by))
        principal_ids.update(c.author_id for c in task.comments)
    people = await principal_summaries(db, principal_ids)
    customers = await customer_summaries(db, (t.customer_id for t in tasks))

    reads = []
    for task in tasks:
        read = TaskRead.model_validate(task)
        read.assignee = people.get(task.assigned_to)
        read.creator = people.get(task.created_by)
        read.customer = customers.get(task.customer_id) if task.customer_id else None
        for comment in read.comments:
            comment.author = people.get(comment.author_id)
        reads.append(read)
    return reads


async def project_task(db: AsyncSession, task: Task) -> TaskRead:
    return (await project_tasks(db, [task]))[0]


async def project_customers(db: AsyncSession, customers: list[Customer]) -> list[CustomerRead]:
    people = await principal_summaries(db, (c.created_by for c in customers))
    reads = []
    for customer in customers:
        read = CustomerRead.model_validate(customer)
        read.creator = people.get(customer.created_by)
        reads.append(read)
    return reads


async def project_customer(db: AsyncSession, customer: Customer) -> CustomerRead:
    return (await project_customers(db, [customer]))[0]


async def project_calls(db: AsyncSession, calls: list[Call]) -> list[CallRead]:
    people = await principal_summaries(db, (c.user_id for c in calls))
    customers = await customer_summaries(db, (c.customer_id for c in calls))
    reads = []
    for call in calls:
        read = CallRead.model_validate(call)
        read.user = people.get(call.user_id)
        read.customer = customers.get(call.customer_id)
        reads.append(read)
    return reads


async def project_call(db: AsyncSession, call: Call) -> CallRead:
    return (await project_calls(db, [call]))[0]


async def project_activities(
    db: AsyncSession, records: list[ActivityRecord]
) -> list[ActivityRead]:
    people = await principal_summaries(db, (r.actor_id for r in records))
    reads = []
    for record in records:
        read = ActivityRead.model_validate(record)
        read.actor = people.get(record.actor_id)
        reads.append(read)
    return reads
