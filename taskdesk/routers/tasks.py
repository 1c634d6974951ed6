"""Task routes, including comments, attachments and the status shortcut."""

from __future__ import annotations

import uuid
from typing import AsyncIterator

from fastapi import APIRouter, Depends, File, UploadFile
from fastapi.responses import FileResponse
from sqlalchemy.ext.asyncio import AsyncSession

from ..database import get_db
from ..deps import get_current_principal
from ..errors import NotFound
from ..schemas.common import Page
from ..schemas.task import AttachmentIn, CommentCreate, StatusUpdate, TaskCreate, TaskRead, TaskUpdate
from ..security import AuthPrincipal, can_write, require
from ..services import task_svc
from ..services.projection import project_task, project_tasks
from ..storage.blobstore import check_upload_batch, get_blobstore

router = APIRouter(prefix="/api/tasks", tags=["tasks"])

CHUNK_SIZE = 64 * 1024


async def _chunks(upload: UploadFile) -> AsyncIterator[bytes]:
    while True:
        chunk = await upload.read(CHUNK_SIZE)
        if not chunk:
            break
        yield chunk


@router.get("", response_model=Page[TaskRead])
async def list_tasks(
    status: str | None = None,
    priority: str | None = None,
    category: str | None = None,
    assigned_to: uuid.UUID | None = None,
    customer_id: uuid.UUID | None = None,
    search: str | None = None,
    sort: str | None = None,
    page: int = 1,
    page_size: int | None = None,
    principal: AuthPrincipal = Depends(get_current_principal),
    db: AsyncSession = Depends(get_db),
):
    rows, total, page, page_size = await task_svc.list_tasks(
        db,
        principal,
        status=status,
        priority=priority,
        category=category,
        assigned_to=assigned_to,
        customer_id=customer_id,
        search=search,
        sort=sort,
        page=page,
        page_size=page_size,
    )
    return Page[TaskRead].build(await project_tasks(db, rows), total, page, page_size)


@router.post("", response_model=TaskRead, status_code=201)
async def create_task(
    payload: TaskCreate,
    principal: AuthPrincipal = Depends(get_current_principal),
    db: AsyncSession = Depends(get_db),
):
    task = await task_svc.create_task(db, principal, payload)
    return await project_task(db, task)


@router.get("/{task_id}", response_model=TaskRead)
async def get_task(
    task_id: uuid.UUID,
    principal: AuthPrincipal = Depends(get_current_principal),
    db: AsyncSession = Depends(get_db),
):
    return await project_task(db, await task_svc.get_task(db, principal, task_id))


@router.put("/{task_id}", response_model=TaskRead)
async def update_task(
    task_id: uuid.UUID,
    payload: TaskUpdate,
    principal: AuthPrincipal = Depends(get_current_principal),
    db: AsyncSession = Depends(get_db),
):
    task = await task_svc.update_task(db, principal, task_id, payload)
    return await project_task(db, task)


@router.patch("/{task_id}/status", response_model=TaskRead)
async def update_task_status(
    task_id: uuid.UUID,
    payload: StatusUpdate,
    principal: AuthPrincipal = Depends(get_current_principal),
    db: AsyncSession = Depends(get_db),
):
    task = await task_svc.update_task_status(db, principal, task_id, payload.status)
    return await project_task(db, task)


@router.delete("/{task_id}")
async def delete_task(
    task_id: uuid.UUID,
    principal: AuthPrincipal = Depends(get_current_principal),
    db: AsyncSession = Depends(get_db),
):
    await task_svc.delete_task(db, principal, task_id)
    return {"message": "Task deleted successfully"}


@router.post("/{task_id}/comments", response_model=TaskRead)
async def add_comment(
    task_id: uuid.UUID,
    payload: CommentCreate,
    principal: AuthPrincipal = Depends(get_current_principal),
    db: AsyncSession = Depends(get_db),
):
    task = await task_svc.add_comment(db, principal, task_id, payload.text)
    return await project_task(db, task)


@router.post("/{task_id}/attachments", response_model=TaskRead)
async def upload_attachments(
    task_id: uuid.UUID,
    attachments: list[UploadFile] = File(...),
    principal: AuthPrincipal = Depends(get_current_principal),
    db: AsyncSession = Depends(get_db),
):
    task = await task_svc.get_task(db, principal, task_id)
    require(can_write(principal, task))
    check_upload_batch([upload.filename or "" for upload in attachments])

    store = get_blobstore()
    items = []
    for i, upload in enumerate(attachments):
        written = await store.write_stream(_chunks(upload), field=f"attachments.{i}")
        items.append(
            AttachmentIn(
                filename=upload.filename or written.ref,
                blob_ref=written.ref,
                mime_type=upload.content_type or "application/octet-stream",
                size=written.size,
            )
        )
    task = await task_svc.add_attachments(db, principal, task_id, items)
    return await project_task(db, task)


@router.get("/{task_id}/attachments/{attachment_id}")
async def download_attachment(
    task_id: uuid.UUID,
    attachment_id: uuid.UUID,
    principal: AuthPrincipal = Depends(get_current_principal),
    db: AsyncSession = Depends(get_db),
):
    task = await task_svc.get_task(db, principal, task_id)
    attachment = next((a for a in task.attachments if a.id == attachment_id), None)
    if attachment is None:
        raise NotFound("Attachment not found")
    path = get_blobstore().path_for(attachment.blob_ref)
    if not path.is_file():
        raise NotFound("Attachment content is missing")
    return FileResponse(path, media_type=attachment.mime_type, filename=attachment.filename)


@router.delete("/{task_id}/attachments/{attachment_id}", response_model=TaskRead)
async def remove_attachment(
    task_id: uuid.UUID,
    attachment_id: uuid.UUID,
    principal: AuthPrincipal = Depends(get_current_principal),
    db: AsyncSession = Depends(get_db),
):
    task = await task_svc.remove_attachment(db, principal, task_id, attachment_id)
    return await project_task(db, task)
