"""
Pytest configuration and fixtures for the PPDO search backend tests.
"""
import os

# Settings are read at import time by the rate limiter, so set them first.
os.environ["DATABASE_URL"] = "sqlite+aiosqlite://"
os.environ["AUTH_PROVIDER"] = "dev"
os.environ["APP_ENV"] = "development"
os.environ["RATE_LIMIT_ENABLED"] = "false"

from collections.abc import AsyncGenerator, Callable
from datetime import UTC, datetime
from typing import Any

import pytest
from fastapi import FastAPI
from httpx import ASGITransport, AsyncClient
from sqlalchemy import event
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.pool import StaticPool

from ppdo.config import get_settings
from ppdo.domain.search.indexing import SearchIndexer
from ppdo.domain.search.service import SearchService
from ppdo.domain.search.types import EntityType, IndexUpdate
from ppdo.infrastructure.auth.provider import AuthProvider, AuthUser
from ppdo.infrastructure.database import models  # noqa: F401
from ppdo.infrastructure.database.connection import build_session_factory, get_session
from ppdo.infrastructure.database.models.base import Base
from ppdo.infrastructure.database.repositories import SearchIndexRepository
from ppdo.shared.exceptions import TokenInvalidError

get_settings.cache_clear()

FIXED_NOW = datetime(2025, 6, 1, 12, 0, tzinfo=UTC)

ADMIN_ID = "00000000-0000-0000-0000-00000000000a"
STAFF_ID = "00000000-0000-0000-0000-00000000000b"


class StubAuthProvider(AuthProvider):
    """Maps fixed bearer tokens to test users."""

    def __init__(self) -> None:
        self.users = {
            "admin-token": AuthUser(id=ADMIN_ID, email="admin@ppdo.local", role="admin"),
            "staff-token": AuthUser(id=STAFF_ID, email="staff@ppdo.local", role="user"),
        }

    async def verify_token(self, token: str) -> AuthUser:
        user = self.users.get(token)
        if user is None:
            raise TokenInvalidError("Token is invalid")
        return user


# ----- Database -----


@pytest.fixture
def fixed_now() -> datetime:
    """Clock value used by the indexer and search service fixtures."""
    return FIXED_NOW


@pytest.fixture
async def engine() -> AsyncGenerator[AsyncEngine, None]:
    """In-memory SQLite engine with working savepoints."""
    engine = create_async_engine(
        "sqlite+aiosqlite://",
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )

    @event.listens_for(engine.sync_engine, "connect")
    def _disable_driver_transactions(dbapi_connection: Any, connection_record: Any) -> None:
        dbapi_connection.isolation_level = None

    @event.listens_for(engine.sync_engine, "begin")
    def _emit_begin(conn: Any) -> None:
        conn.exec_driver_sql("BEGIN")

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield engine

    await engine.dispose()


@pytest.fixture
def session_factory(engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    return build_session_factory(engine)


@pytest.fixture
async def session(
    session_factory: async_sessionmaker[AsyncSession],
) -> AsyncGenerator[AsyncSession, None]:
    async with session_factory() as session:
        yield session


@pytest.fixture
def store(session: AsyncSession) -> SearchIndexRepository:
    return SearchIndexRepository(session)


@pytest.fixture
def indexer(store: SearchIndexRepository) -> SearchIndexer:
    return SearchIndexer(store, clock=lambda: FIXED_NOW)


@pytest.fixture
def search_service(store: SearchIndexRepository) -> SearchService:
    return SearchService(store, clock=lambda: FIXED_NOW)


@pytest.fixture
def make_update() -> Callable[..., IndexUpdate]:
    """Build an IndexUpdate with test defaults."""

    def _make(
        entity_id: str,
        primary_text: str,
        entity_type: EntityType = EntityType.BUDGET_ITEM,
        **kwargs: Any,
    ) -> IndexUpdate:
        kwargs.setdefault("updated_at", FIXED_NOW)
        kwargs.setdefault("created_at", FIXED_NOW)
        return IndexUpdate(
            entity_type=entity_type,
            entity_id=entity_id,
            primary_text=primary_text,
            **kwargs,
        )

    return _make


# ----- API -----


@pytest.fixture
def app(session_factory: async_sessionmaker[AsyncSession]) -> FastAPI:
    """Create test FastAPI application bound to the test database."""
    from ppdo.main import create_app

    app = create_app()
    app.state.auth_provider = StubAuthProvider()

    async def _get_test_session() -> AsyncGenerator[AsyncSession, None]:
        async with session_factory() as session:
            try:
                yield session
                await session.commit()
            except Exception:
                await session.rollback()
                raise

    app.dependency_overrides[get_session] = _get_test_session
    return app


@pytest.fixture
async def async_client(app: FastAPI) -> AsyncGenerator[AsyncClient, None]:
    """Create async test client."""
    async with AsyncClient(
        transport=ASGITransport(app=app),
        base_url="http://test",
    ) as client:
        yield client


@pytest.fixture
def admin_headers() -> dict[str, str]:
    return {"Authorization": "Bearer admin-token"}


@pytest.fixture
def staff_headers() -> dict[str, str]:
    return {"Authorization": "Bearer staff-token"}
