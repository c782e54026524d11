"""Integration-test fixtures.

Requires PostgreSQL migrated to head (`alembic upgrade head`) and Redis, at
the URLs in config/settings.py. Run with: pytest -m integration

All integration tests share a single event-loop so that the module-level
SQLAlchemy async engine pool and Redis pool (both created at import time)
remain valid across the entire test session.
"""

import uuid

import pytest_asyncio
from httpx import ASGITransport, AsyncClient

from src.main import app


@pytest_asyncio.fixture(loop_scope="session", scope="session")
async def client() -> AsyncClient:  # type: ignore[override]
    """Session-scoped async HTTP client — keeps the engine pool alive."""
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac


@pytest_asyncio.fixture(loop_scope="session")
async def booking_id(client: AsyncClient) -> str:
    """A fresh booking in `request` status for a throwaway couple/vendor pair."""
    suffix = uuid.uuid4().hex[:8]
    resp = await client.post("/api/v1/bookings", json={
        "couple_id": f"couple-{suffix}",
        "vendor_id": f"vendor-{suffix}",
        "service_name": "Integration Photo Package",
        "event_date": "2027-02-14",
    })
    assert resp.status_code == 201, resp.text
    return resp.json()["data"]["id"]
