from __future__ import annotations

import os
from typing import TYPE_CHECKING

import pytest
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

from timeleave.db import get_session
from timeleave.main import app
from timeleave.models import SQLModel
from timeleave.services.employee import InMemoryEmployeeDirectory, set_employee_directory
from timeleave.services.events import SessionEventBus, set_event_bus
from timeleave.services.notification import StoreNotificationDispatcher, set_notification_dispatcher

if TYPE_CHECKING:
    from collections.abc import AsyncIterator, Iterator
    from pathlib import Path

    from sqlalchemy.ext.asyncio import AsyncEngine


@pytest.fixture
async def engine(tmp_path: Path) -> AsyncIterator[AsyncEngine]:
    """Create a fresh schema per test.

    Uses a throwaway SQLite file unless TEST_DATABASE_URL points at a
    disposable Postgres database.
    """
    url = os.environ.get("TEST_DATABASE_URL") or f"sqlite+aiosqlite:///{tmp_path / 'timeleave.db'}"
    _engine = create_async_engine(url)
    async with _engine.begin() as conn:
        await conn.run_sync(SQLModel.metadata.drop_all)
        await conn.run_sync(SQLModel.metadata.create_all)
    yield _engine
    async with _engine.begin() as conn:
        await conn.run_sync(SQLModel.metadata.drop_all)
    await _engine.dispose()


@pytest.fixture
def session_factory(engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    return async_sessionmaker(engine, expire_on_commit=False)


@pytest.fixture
async def db_session(session_factory: async_sessionmaker[AsyncSession]) -> AsyncIterator[AsyncSession]:
    """A session for calling services directly. Services commit their own work."""
    async with session_factory() as session:
        yield session


@pytest.fixture
async def async_client(session_factory: async_sessionmaker[AsyncSession]) -> AsyncIterator[AsyncClient]:
    """Async HTTP client where every request gets its own database session."""

    async def _override_get_session() -> AsyncIterator[AsyncSession]:
        async with session_factory() as session:
            yield session

    app.dependency_overrides[get_session] = _override_get_session
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as client:
        yield client
    app.dependency_overrides.clear()


@pytest.fixture(autouse=True)
def _isolated_collaborators() -> Iterator[None]:
    """Give every test its own event bus, dispatcher and employee directory."""
    set_event_bus(SessionEventBus())
    set_notification_dispatcher(StoreNotificationDispatcher())
    set_employee_directory(InMemoryEmployeeDirectory())
    yield
    set_event_bus(SessionEventBus())
    set_notification_dispatcher(StoreNotificationDispatcher())
    set_employee_directory(InMemoryEmployeeDirectory())
