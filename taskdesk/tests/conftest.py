"""Async test fixtures for Taskdesk tests using SQLite."""

from __future__ import annotations

from datetime import timedelta

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

from taskdesk.clock import utcnow
from taskdesk.config import settings
from taskdesk.database import get_db
from taskdesk.dispatcher import dispatcher
from taskdesk.models.base import Base
from taskdesk.models.customer import Customer, CustomerContact
from taskdesk.models.principal import Principal
from taskdesk.security import AuthPrincipal
from taskdesk.security.tokens import hash_password
from taskdesk.storage import blobstore as blobstore_mod

PASSWORD = "password123"
# Cheap hash for fixtures; login tests still go through verify_password.
FIXTURE_HASH = hash_password(PASSWORD, iterations=1_000)


@pytest.fixture(scope="session")
def anyio_backend():
    return "asyncio"


@pytest_asyncio.fixture
async def engine(tmp_path):
    # File-backed so side effects can write from their own connections.
    eng = create_async_engine(f"sqlite+aiosqlite:///{tmp_path / 'taskdesk.db'}", echo=False)
    async with eng.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield eng
    await eng.dispose()


@pytest_asyncio.fixture
async def session_factory(engine):
    return async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)


@pytest_asyncio.fixture
async def side_effects(session_factory):
    dispatcher.bind(session_factory)
    yield dispatcher
    await dispatcher.drain(timeout=5)


@pytest_asyncio.fixture
async def db(session_factory, side_effects):
    async with session_factory() as session:
        yield session


@pytest.fixture(autouse=True)
def blob_dir(tmp_path, monkeypatch):
    path = tmp_path / "uploads"
    monkeypatch.setattr(settings, "blobstore_dir", str(path))
    blobstore_mod.get_blobstore.cache_clear()
    yield path
    blobstore_mod.get_blobstore.cache_clear()


async def make_principal(db: AsyncSession, name: str, role: str = "user", **kwargs) -> Principal:
    principal = Principal(
        name=name,
        email=kwargs.pop("email", f"{name.lower().replace(' ', '.')}@example.com"),
        password_hash=FIXTURE_HASH,
        role=role,
        **kwargs,
    )
    db.add(principal)
    await db.commit()
    return principal


def as_actor(principal: Principal) -> AuthPrincipal:
    return AuthPrincipal.from_model(principal)


@pytest_asyncio.fixture
async def admin(db):
    return as_actor(await make_principal(db, "Ada Admin", "admin"))


@pytest_asyncio.fixture
async def manager(db):
    return as_actor(await make_principal(db, "Max Manager", "manager"))


@pytest_asyncio.fixture
async def user_c(db):
    return as_actor(await make_principal(db, "Cara User"))


@pytest_asyncio.fixture
async def user_d(db):
    return as_actor(await make_principal(db, "Dev User"))


@pytest_asyncio.fixture
async def customer(db, manager):
    row = Customer(
        company_name="TechCorp Solutions",
        company_type="Software",
        created_by=manager.id,
        contacts=[
            CustomerContact(
                name="Alice Smith",
                email="alice@techcorp.com",
                phone="+919876543210",
                designation="CTO",
                is_primary=True,
            )
        ],
    )
    db.add(row)
    await db.commit()
    return row


@pytest.fixture
def next_week():
    return utcnow() + timedelta(days=7)


@pytest_asyncio.fixture
async def client(session_factory, side_effects):
    """HTTPX async test client against the Taskdesk app."""
    from taskdesk.app import app
    from taskdesk.routers.search import get_search_session_factory

    async def override_get_db():
        async with session_factory() as session:
            yield session

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_search_session_factory] = lambda: session_factory

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as c:
        yield c

    app.dependency_overrides.clear()


def bearer(principal) -> dict[str, str]:
    from taskdesk.services import auth_svc

    return {"Authorization": f"Bearer {auth_svc.issue_for(principal)}"}
