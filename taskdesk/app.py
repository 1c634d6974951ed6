"""FastAPI application for the Taskdesk API."""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from .config import settings
from .errors import FieldError, TaskdeskError, ValidationFailed
from .logging_config import configure_logging

logger = logging.getLogger(__name__)

STATUS_BY_KIND = {
    "unauthenticated": 401,
    "forbidden": 403,
    "not_found": 404,
    "invalid_reference": 400,
    "validation_failed": 400,
    "conflict": 409,
}


@asynccontextmanager
async def lifespan(app: FastAPI):
    from .database import async_session_factory, engine
    from .dispatcher import dispatcher
    from .jobs.reminders import reminder_scheduler

    configure_logging()
    if settings.is_production and settings.auth_secret == "change-me":
        raise RuntimeError("TASKDESK_AUTH_SECRET must be set in production")
    # Auto-create tables for SQLite (local dev); PostgreSQL uses Alembic migrations
    if "sqlite" in settings.database_url:
        from .models import Base
        async with engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)

    dispatcher.bind(async_session_factory)
    reminder_scheduler.start()
    try:
        yield
    finally:
        await reminder_scheduler.stop()
        abandoned = await dispatcher.drain(settings.side_effect_drain_seconds)
        if abandoned:
            logger.warning("Shutdown abandoned %d side effects", abandoned)


app = FastAPI(title=settings.app_title, lifespan=lifespan)


@app.exception_handler(TaskdeskError)
async def taskdesk_error_handler(request: Request, exc: TaskdeskError):
    status = STATUS_BY_KIND.get(exc.kind, 400)
    headers = {"WWW-Authenticate": "Bearer"} if status == 401 else None
    return JSONResponse(status_code=status, content=exc.as_dict(), headers=headers)


def _field_path(loc) -> str:
    parts = [str(p) for p in loc if p not in ("body", "query", "path")]
    return ".".join(parts) or "request"


@app.exception_handler(RequestValidationError)
async def request_validation_handler(request: Request, exc: RequestValidationError):
    errors = [FieldError(_field_path(err.get("loc", ())), err.get("msg", "invalid")) for err in exc.errors()]
    failure = ValidationFailed(errors)
    return JSONResponse(status_code=400, content=failure.as_dict())


# Import and register routers
from .routers import (  # noqa: E402
    activities, auth, calls, categories, customers, health, notifications, search, tasks, users,
)

app.include_router(auth.router)
app.include_router(users.router)
app.include_router(tasks.router)
app.include_router(customers.router)
app.include_router(calls.router)
app.include_router(notifications.router)
app.include_router(categories.router)
app.include_router(search.router)
app.include_router(activities.router)
app.include_router(health.router)
