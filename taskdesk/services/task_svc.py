"""Task lifecycle service.

Every mutation follows the same order: load, policy check, validate
references, mutate, commit, then hand notifications and the audit record to
the dispatcher. Nothing is written when a check fails.
"""

from __future__ import annotations

import logging
import uuid
from datetime import datetime

from sqlalchemy import func, or_, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from ..clock import as_utc, utcnow
from ..config import settings
from ..dispatcher import NotificationSpec, dispatcher
from ..errors import FieldError, InvalidReference, NotFound, ValidationFailed, raise_if_errors
from ..models.principal import Principal
from ..models.task import TASK_STATUSES, Task, TaskAttachment, TaskComment
from ..schemas.task import AttachmentIn, TaskCreate, TaskUpdate
from ..security import (
    AuthPrincipal,
    can_create_task,
    can_delete,
    can_read,
    can_write,
    require,
    visibility_clause,
)
from ..storage.blobstore import AttachmentBlobStore, BlobstoreError, get_blobstore
from .concurrency import check_version, commit_or_conflict
from .customer_svc import get_active_customer
from .paging import order_by_param, paginate
from .validators import check_not_null

logger = logging.getLogger(__name__)

SORT_COLUMNS = {
    "created_at": Task.created_at,
    "updated_at": Task.updated_at,
    "due_date": Task.due_date,
    "priority": Task.priority,
    "status": Task.status,
    "title": Task.title,
}

NOT_NULLABLE = ("title", "description", "category", "priority", "status", "due_date", "assigned_to")


def task_link(task_id: uuid.UUID) -> str:
    return f"/tasks/{task_id}"


def _jsonable(value):
    if isinstance(value, datetime):
        return as_utc(value).isoformat()
    if isinstance(value, uuid.UUID):
        return str(value)
    return value


def _notify_task(recipient_id: uuid.UUID, kind: str, message: str, task: Task) -> None:
    dispatcher.notify(
        NotificationSpec(
            recipient_id=recipient_id,
            kind=kind,
            message=message[:500],
            link=task_link(task.id),
            related_type="task",
            related_id=task.id,
        )
    )


async def _active_assignee(db: AsyncSession, principal_id: uuid.UUID) -> Principal:
    assignee = await db.get(Principal, principal_id)
    if assignee is None or not assignee.is_active:
        raise InvalidReference("Invalid assigned user", field="assigned_to")
    return assignee


async def _check_customer(db: AsyncSession, customer_id: uuid.UUID | None) -> None:
    if customer_id is None:
        return
    if await get_active_customer(db, customer_id) is None:
        raise InvalidReference("Invalid customer", field="customer_id")


async def _load(db: AsyncSession, task_id: uuid.UUID) -> Task:
    task = await db.get(Task, task_id)
    if task is None:
        raise NotFound("Task not found")
    return task


async def _release_blobs(
    db: AsyncSession, refs: list[str], blobstore: AttachmentBlobStore | None
) -> None:
    """Best-effort removal of blobs no other attachment still points at."""
    if not refs:
        return
    store = blobstore or get_blobstore()
    for ref in set(refs):
        try:
            still_used = await db.scalar(
                select(func.count())
                .select_from(TaskAttachment)
                .where(TaskAttachment.blob_ref == ref)
            )
            if still_used:
                continue
            store.delete(ref)
        except (OSError, BlobstoreError, SQLAlchemyError):
            logger.warning("Failed to release attachment blob %s", ref, exc_info=True)


async def create_task(db: AsyncSession, principal: AuthPrincipal, data: TaskCreate) -> Task:
    require(can_create_task(principal), "Only admins and managers can create tasks")
    await _active_assignee(db, data.assigned_to)
    await _check_customer(db, data.customer_id)

    task = Task(
        title=data.title.strip(),
        description=data.description.strip(),
        category=data.category.strip(),
        priority=data.priority,
        status=data.status,
        due_date=data.due_date,
        assigned_to=data.assigned_to,
        customer_id=data.customer_id,
        created_by=principal.id,
        comments=[],
        attachments=[],
    )
    db.add(task)
    await db.commit()

    if task.assigned_to != principal.id:
        _notify_task(
            task.assigned_to,
            "new-task",
            f'You have been assigned a new task: "{task.title}" by {principal.name}.',
            task,
        )
    dispatcher.record_activity(principal.id, "create-task", "task", task.id, {"title": task.title})
    return task


async def get_task(db: AsyncSession, principal: AuthPrincipal, task_id: uuid.UUID) -> Task:
    task = await _load(db, task_id)
    require(can_read(principal, task))
    return task


async def list_tasks(
    db: AsyncSession,
    principal: AuthPrincipal,
    *,
    status: str | None = None,
    priority: str | None = None,
    category: str | None = None,
    assigned_to: uuid.UUID | None = None,
    customer_id: uuid.UUID | None = None,
    search: str | None = None,
    sort: str | None = None,
    page: int | None = None,
    page_size: int | None = None,
):
    """Tasks visible to ``principal``; users only see tasks they created or hold."""
    stmt = select(Task).where(visibility_clause(principal, Task))
    if status:
        stmt = stmt.where(Task.status == status)
    if priority:
        stmt = stmt.where(Task.priority == priority)
    if category:
        stmt = stmt.where(Task.category == category)
    if assigned_to:
        stmt = stmt.where(Task.assigned_to == assigned_to)
    if customer_id:
        stmt = stmt.where(Task.customer_id == customer_id)
    if search:
        q = f"%{search.strip()}%"
        stmt = stmt.where(
            or_(Task.title.ilike(q), Task.description.ilike(q), Task.category.ilike(q))
        )
    stmt = stmt.order_by(order_by_param(sort, SORT_COLUMNS, Task.created_at.desc()), Task.id)
    return await paginate(db, stmt, page=page, page_size=page_size)


async def update_task(
    db: AsyncSession, principal: AuthPrincipal, task_id: uuid.UUID, data: TaskUpdate
) -> Task:
    task = await _load(db, task_id)
    require(can_write(principal, task))
    check_version(task, data.version)

    patch = data.model_dump(exclude_unset=True, exclude={"version"})
    errors: list[FieldError] = []
    check_not_null(patch, NOT_NULLABLE, errors)
    raise_if_errors(errors)
    for key in ("title", "description", "category"):
        if key in patch:
            patch[key] = patch[key].strip()

    if "assigned_to" in patch and patch["assigned_to"] != task.assigned_to:
        await _active_assignee(db, patch["assigned_to"])
    if "customer_id" in patch and patch["customer_id"] != task.customer_id:
        await _check_customer(db, patch["customer_id"])

    def changed(key: str) -> bool:
        if key not in patch:
            return False
        if key == "due_date":
            return as_utc(patch[key]) != as_utc(task.due_date)
        return patch[key] != getattr(task, key)

    changed_fields = [key for key in patch if changed(key)]
    previous = {key: _jsonable(getattr(task, key)) for key in changed_fields}
    reassigned = "assigned_to" in changed_fields
    progress_parts = []
    if "status" in changed_fields:
        progress_parts.append(f'status to "{patch["status"]}"')
    if "priority" in changed_fields:
        progress_parts.append(f'priority to "{patch["priority"]}"')
    if "due_date" in changed_fields:
        progress_parts.append("due date")

    for key in changed_fields:
        setattr(task, key, patch[key])
    if changed_fields:
        await commit_or_conflict(db)

    if task.assigned_to != principal.id:
        if reassigned:
            _notify_task(
                task.assigned_to,
                "task-updated",
                f'You have been assigned a new task: "{task.title}".',
                task,
            )
        elif progress_parts:
            _notify_task(
                task.assigned_to,
                "task-updated",
                f'The task "{task.title}" has been updated: {", ".join(progress_parts)}.',
                task,
            )

    if changed_fields:
        dispatcher.record_activity(
            principal.id,
            "update-task",
            "task",
            task.id,
            {"updated_fields": changed_fields, "previous_values": previous},
        )
    return task


async def update_task_status(
    db: AsyncSession, principal: AuthPrincipal, task_id: uuid.UUID, status: str
) -> Task:
    """Status-only shortcut; accepts the canonical statuses only."""
    if status not in TASK_STATUSES:
        raise ValidationFailed(
            [FieldError("status", f"Invalid status; expected one of {', '.join(TASK_STATUSES)}")]
        )
    return await update_task(db, principal, task_id, TaskUpdate(status=status))


async def add_comment(
    db: AsyncSession, principal: AuthPrincipal, task_id: uuid.UUID, text: str
) -> Task:
    text = (text or "").strip()
    if not text or len(text) > 500:
        raise ValidationFailed([FieldError("text", "Comment must be between 1 and 500 characters")])

    task = await _load(db, task_id)
    require(can_write(principal, task))

    task.comments.append(TaskComment(text=text, author_id=principal.id, created_at=utcnow()))
    task.updated_at = utcnow()
    await commit_or_conflict(db)

    recipients = {task.created_by, task.assigned_to} - {principal.id}
    for recipient_id in recipients:
        _notify_task(
            recipient_id,
            "comment-added",
            f'{principal.name} commented on the task: "{task.title}"',
            task,
        )
    dispatcher.record_activity(principal.id, "add-comment", "task", task.id, {"comment": text})
    return task


async def add_attachments(
    db: AsyncSession,
    principal: AuthPrincipal,
    task_id: uuid.UUID,
    attachments: list[AttachmentIn],
) -> Task:
    if not attachments:
        raise ValidationFailed([FieldError("attachments", "No files uploaded")])
    task = await _load(db, task_id)
    require(can_write(principal, task))

    for item in attachments:
        task.attachments.append(
            TaskAttachment(
                filename=item.filename,
                blob_ref=item.blob_ref,
                mime_type=item.mime_type,
                size=item.size,
            )
        )
    task.updated_at = utcnow()
    await commit_or_conflict(db)

    for item in attachments:
        dispatcher.record_activity(
            principal.id, "upload-attachment", "task", task.id, {"filename": item.filename}
        )
    return task


async def remove_attachment(
    db: AsyncSession,
    principal: AuthPrincipal,
    task_id: uuid.UUID,
    attachment_id: uuid.UUID,
    *,
    blobstore: AttachmentBlobStore | None = None,
) -> Task:
    task = await _load(db, task_id)
    require(can_write(principal, task))

    attachment = next((a for a in task.attachments if a.id == attachment_id), None)
    if attachment is None:
        raise NotFound("Attachment not found")

    task.attachments.remove(attachment)
    task.updated_at = utcnow()
    await commit_or_conflict(db)
    await _release_blobs(db, [attachment.blob_ref], blobstore)

    dispatcher.record_activity(
        principal.id, "remove-attachment", "task", task.id, {"filename": attachment.filename}
    )
    return task


async def delete_task(
    db: AsyncSession,
    principal: AuthPrincipal,
    task_id: uuid.UUID,
    *,
    blobstore: AttachmentBlobStore | None = None,
) -> None:
    """Hard delete. The audit record is settled first so it can snapshot the task."""
    task = await _load(db, task_id)
    require(can_delete(principal, task), "Only admins and managers can delete tasks")

    snapshot = {
        "title": task.title,
        "status": task.status,
        "priority": task.priority,
        "category": task.category,
        "due_date": _jsonable(task.due_date),
        "assigned_to": str(task.assigned_to),
        "created_by": str(task.created_by),
        "customer_id": _jsonable(task.customer_id),
        "comment_count": len(task.comments),
        "attachments": [a.filename for a in task.attachments],
    }
    handle = dispatcher.record_activity(principal.id, "delete-task", "task", task.id, snapshot)
    await dispatcher.settle(handle, settings.audit_settle_seconds)

    blob_refs = [a.blob_ref for a in task.attachments]
    await db.delete(task)
    await db.commit()
    await _release_blobs(db, blob_refs, blobstore)
