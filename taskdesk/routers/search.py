"""Cross-entity search route."""

from __future__ import annotations

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from ..database import async_session_factory, get_db
from ..deps import get_current_principal
from ..schemas.search import SearchResponse
from ..security import AuthPrincipal
from ..services import search_svc
from ..services.projection import project_calls, project_customers, project_tasks

router = APIRouter(prefix="/api/search", tags=["search"])


def get_search_session_factory() -> async_sessionmaker:
    """Each entity type searches in its own session from this factory."""
    return async_session_factory


@router.get("", response_model=SearchResponse)
async def search(
    q: str = Query("", description="Search query"),
    resources: str | None = Query(None, description="Comma-separated: tasks,customers,calls"),
    principal: AuthPrincipal = Depends(get_current_principal),
    db: AsyncSession = Depends(get_db),
    session_factory: async_sessionmaker = Depends(get_search_session_factory),
):
    entity_types = [r.strip() for r in resources.split(",") if r.strip()] if resources else None
    results = await search_svc.search(
        principal, q, entity_types, session_factory=session_factory
    )
    return SearchResponse(
        query=results.query,
        tasks=await project_tasks(db, results.tasks),
        customers=await project_customers(db, results.customers),
        calls=await project_calls(db, results.calls),
        errors=results.errors,
    )
