from __future__ import annotations

from typing import TYPE_CHECKING
from unittest.mock import AsyncMock

from httpx import ASGITransport, AsyncClient
from sqlalchemy.exc import OperationalError
from sqlalchemy.ext.asyncio import AsyncSession

from timeleave.db import get_session
from timeleave.main import app
from timeleave.services.events import on_session_updated

if TYPE_CHECKING:
    from collections.abc import AsyncIterator


async def test_health_returns_200(async_client: AsyncClient) -> None:
    response = await async_client.get("/health")
    assert response.status_code == 200


async def test_health_response_body(async_client: AsyncClient) -> None:
    response = await async_client.get("/health")
    data = response.json()
    assert data["status"] == "ok"
    assert data["database"] == "ok"
    assert data["version"] == "0.1.0"
    assert data["environment"] == "development"


async def test_health_reports_session_subscribers(async_client: AsyncClient) -> None:
    unsubscribe = on_session_updated(lambda event: None)

    response = await async_client.get("/health")
    unsubscribe()

    assert response.json()["session_subscribers"] == 1


async def test_health_degraded_on_db_failure() -> None:
    """GET /health returns degraded status when the database is unreachable."""
    mock_session = AsyncMock(spec=AsyncSession)
    mock_session.execute.side_effect = OperationalError("SELECT 1", {}, ConnectionError("DB unreachable"))

    async def _broken_session() -> AsyncIterator[AsyncSession]:
        yield mock_session

    app.dependency_overrides[get_session] = _broken_session
    try:
        async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as client:
            response = await client.get("/health")
        data = response.json()
        assert response.status_code == 200
        assert data["status"] == "degraded"
        assert data["database"] == "unreachable"
    finally:
        app.dependency_overrides.clear()


async def test_unhandled_database_error_maps_to_503() -> None:
    mock_session = AsyncMock(spec=AsyncSession)
    mock_session.execute.side_effect = OperationalError("SELECT", {}, ConnectionError("DB unreachable"))

    async def _broken_session() -> AsyncIterator[AsyncSession]:
        yield mock_session

    company_id = "00000000-0000-0000-0000-000000000001"
    headers = {"X-Company-Id": company_id, "X-User-Id": company_id}
    app.dependency_overrides[get_session] = _broken_session
    try:
        async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as client:
            response = await client.get(f"/companies/{company_id}/sessions/active", headers=headers)
        assert response.status_code == 503
        assert response.json()["code"] == "persistence_error"
    finally:
        app.dependency_overrides.clear()
