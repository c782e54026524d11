"""Rate limiting middleware for payment submissions.

Fixed-window counting in Redis:
  - Applies to POST requests whose path ends with /payments
  - Key pattern: "ratelimit:{client_ip}:payments"
  - INCR the key; on the first hit in a window EXPIRE it
  - Over the limit → 429 with AppError code 9001 and a Retry-After header

If Redis is unreachable the request is let through (fail open); the booking
row lock and transaction-id uniqueness still protect the ledger.
"""

import logging

from fastapi.responses import JSONResponse
from redis.exceptions import RedisError
from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response

from config.settings import settings
from src.wb_common.errors import RateLimitError
from src.wb_common.redis_client import get_redis
from src.wb_common.response import error_response

logger = logging.getLogger(__name__)


def _client_ip(request: Request) -> str:
    forwarded = request.headers.get("x-forwarded-for")
    if forwarded:
        return forwarded.split(",")[0].strip()
    return request.client.host if request.client else "unknown"


def _is_limited_path(request: Request) -> bool:
    return request.method == "POST" and request.url.path.rstrip("/").endswith("/payments")


class RateLimitMiddleware(BaseHTTPMiddleware):
    async def dispatch(self, request: Request, call_next: RequestResponseEndpoint) -> Response:
        if not _is_limited_path(request):
            return await call_next(request)

        key = f"ratelimit:{_client_ip(request)}:payments"
        window = settings.RATE_LIMIT_WINDOW_SECONDS
        try:
            redis = await get_redis()
            count = await redis.incr(key)
            if count == 1:
                await redis.expire(key, window)
        except RedisError as exc:
            logger.warning("Rate limiter unavailable, allowing request: %s", exc)
            return await call_next(request)

        if count > settings.PAYMENT_RATE_LIMIT_PER_WINDOW:
            exc = RateLimitError()
            resp = error_response(
                exc.code, exc.message, getattr(request.state, "request_id", None)
            )
            logger.info("Rate limit hit for %s (%d requests)", key, count)
            return JSONResponse(
                status_code=exc.http_status,
                content=resp.model_dump(),
                headers={"Retry-After": str(window)},
            )
        return await call_next(request)
