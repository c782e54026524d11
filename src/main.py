"""FastAPI application entry point.

Run with: uvicorn src.main:app --reload --port 8000
"""

# ruff: noqa: E402  -- uvloop.install() must run before other imports

import uvloop

uvloop.install()

import logging
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError

from config.settings import settings
from src.wb_booking.api.router import router as booking_router
from src.wb_common.database import engine
from src.wb_common.errors import (
    AppError,
    InternalError,
    InvalidPaymentAmountError,
    InvalidQuoteAmountError,
    InvalidRequestError,
)
from src.wb_common.redis_client import close_redis, get_redis
from src.wb_common.response import error_response
from src.wb_gateway.middleware.rate_limit import RateLimitMiddleware
from src.wb_gateway.middleware.request_log import RequestLogMiddleware

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Startup: verify DB + Redis connections. Shutdown: dispose."""
    # Startup
    async with engine.connect() as conn:
        await conn.execute(text("SELECT 1"))
    await get_redis()
    yield
    # Shutdown
    await engine.dispose()
    await close_redis()


app = FastAPI(
    title=settings.APP_NAME,
    version="0.1.0",
    lifespan=lifespan,
)


# Last added runs first: request ids exist before the rate limiter answers
app.add_middleware(RateLimitMiddleware)
app.add_middleware(RequestLogMiddleware)


def _render(request: Request, exc: AppError) -> JSONResponse:
    resp = error_response(exc.code, exc.message, getattr(request.state, "request_id", None))
    return JSONResponse(
        status_code=exc.http_status,
        content=resp.model_dump(),
    )


def _validation_to_app_error(exc: RequestValidationError) -> AppError:
    """Pick the named error for the first field that failed request validation.

    Amount fields keep their domain codes so a non-integer amount reads the
    same as a negative one; everything else is a generic 9003.
    """
    errors = exc.errors()
    for err in errors:
        loc = err.get("loc", ())
        if not loc or err.get("type") == "missing":
            continue
        if loc[-1] == "amount_centavos":
            return InvalidPaymentAmountError(err.get("input"))
        if loc[-1] == "total_amount_centavos":
            return InvalidQuoteAmountError(err.get("input"))
    if not errors:
        return InvalidRequestError("Invalid request")
    first = errors[0]
    where = ".".join(str(part) for part in first.get("loc", ()))
    return InvalidRequestError(f"{where}: {first.get('msg', 'invalid value')}")


@app.exception_handler(AppError)
async def app_error_handler(request: Request, exc: AppError) -> JSONResponse:
    return _render(request, exc)


@app.exception_handler(RequestValidationError)
async def validation_error_handler(
    request: Request, exc: RequestValidationError
) -> JSONResponse:
    app_exc = _validation_to_app_error(exc)
    logger.warning("Rejected %s %s: %s", request.method, request.url.path, app_exc.message)
    return _render(request, app_exc)


@app.exception_handler(SQLAlchemyError)
async def database_error_handler(request: Request, exc: SQLAlchemyError) -> JSONResponse:
    logger.exception("Database error on %s %s", request.method, request.url.path)
    return _render(request, InternalError())


app.include_router(booking_router, prefix="/api/v1")


@app.get("/health")
async def health() -> dict[str, str]:
    return {"status": "ok", "version": "0.1.0"}
