"""Tests for the Redis fixed-window payment rate limiter."""

from unittest.mock import AsyncMock, patch

import pytest
from fastapi import FastAPI
from httpx import ASGITransport, AsyncClient
from redis.exceptions import ConnectionError as RedisConnectionError

from config.settings import settings
from src.wb_gateway.middleware.rate_limit import RateLimitMiddleware


def _make_app() -> FastAPI:
    app = FastAPI()
    app.add_middleware(RateLimitMiddleware)

    @app.post("/api/v1/bookings/{booking_id}/payments")
    async def pay(booking_id: str) -> dict[str, str]:
        return {"booking_id": booking_id}

    @app.get("/api/v1/bookings/{booking_id}/payments")
    async def history(booking_id: str) -> dict[str, str]:
        return {"booking_id": booking_id}

    return app


@pytest.fixture
async def client() -> AsyncClient:
    transport = ASGITransport(app=_make_app())
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac


def _redis(count: int) -> AsyncMock:
    redis = AsyncMock()
    redis.incr.return_value = count
    return redis


class TestRateLimit:
    async def test_first_request_sets_expiry(self, client: AsyncClient) -> None:
        redis = _redis(1)
        with patch("src.wb_gateway.middleware.rate_limit.get_redis", AsyncMock(return_value=redis)):
            resp = await client.post("/api/v1/bookings/b-1/payments")
        assert resp.status_code == 200
        redis.expire.assert_awaited_once_with(
            "ratelimit:127.0.0.1:payments", settings.RATE_LIMIT_WINDOW_SECONDS
        )

    async def test_under_limit_does_not_reset_expiry(self, client: AsyncClient) -> None:
        redis = _redis(2)
        with patch("src.wb_gateway.middleware.rate_limit.get_redis", AsyncMock(return_value=redis)):
            resp = await client.post("/api/v1/bookings/b-1/payments")
        assert resp.status_code == 200
        redis.expire.assert_not_awaited()

    async def test_over_limit_returns_429(self, client: AsyncClient) -> None:
        redis = _redis(settings.PAYMENT_RATE_LIMIT_PER_WINDOW + 1)
        with patch("src.wb_gateway.middleware.rate_limit.get_redis", AsyncMock(return_value=redis)):
            resp = await client.post("/api/v1/bookings/b-1/payments")
        assert resp.status_code == 429
        assert resp.json()["code"] == 9001
        assert resp.headers["retry-after"] == str(settings.RATE_LIMIT_WINDOW_SECONDS)

    async def test_forwarded_for_is_the_key(self, client: AsyncClient) -> None:
        redis = _redis(1)
        with patch("src.wb_gateway.middleware.rate_limit.get_redis", AsyncMock(return_value=redis)):
            await client.post(
                "/api/v1/bookings/b-1/payments",
                headers={"X-Forwarded-For": "203.0.113.9, 10.0.0.1"},
            )
        redis.incr.assert_awaited_once_with("ratelimit:203.0.113.9:payments")

    async def test_get_is_not_limited(self, client: AsyncClient) -> None:
        get_redis = AsyncMock()
        with patch("src.wb_gateway.middleware.rate_limit.get_redis", get_redis):
            resp = await client.get("/api/v1/bookings/b-1/payments")
        assert resp.status_code == 200
        get_redis.assert_not_awaited()

    async def test_redis_down_fails_open(self, client: AsyncClient) -> None:
        redis = AsyncMock()
        redis.incr.side_effect = RedisConnectionError("refused")
        with patch("src.wb_gateway.middleware.rate_limit.get_redis", AsyncMock(return_value=redis)):
            resp = await client.post("/api/v1/bookings/b-1/payments")
        assert resp.status_code == 200

    async def test_limit_applies_per_window(self, client: AsyncClient) -> None:
        redis = _redis(3)
        with (
            patch.object(settings, "PAYMENT_RATE_LIMIT_PER_WINDOW", 2),
            patch.object(settings, "RATE_LIMIT_WINDOW_SECONDS", 300),
            patch("src.wb_gateway.middleware.rate_limit.get_redis", AsyncMock(return_value=redis)),
        ):
            resp = await client.post("/api/v1/bookings/b-1/payments")
        assert resp.status_code == 429
        assert resp.headers["retry-after"] == "300"
