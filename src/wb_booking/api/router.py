"""wb_booking REST API — booking lifecycle and payment endpoints.

Identity is passed explicitly (couple_id / vendor_id); the caller is expected
to have normalized user ids before reaching this API.
"""

from typing import Annotated

from fastapi import APIRouter, Depends, Query, Request
from sqlalchemy.ext.asyncio import AsyncSession

from src.wb_booking.application.schemas import (
    ApplyPaymentRequest,
    CancelBookingRequest,
    CreateBookingRequest,
    MarkCompletedRequest,
    RejectQuoteRequest,
    SendQuoteRequest,
)
from src.wb_booking.application.service import BookingApplicationService
from src.wb_common.database import get_db_session
from src.wb_common.response import ApiResponse, success_response

router = APIRouter(prefix="/bookings", tags=["bookings"])

_service = BookingApplicationService()


def _request_id(request: Request) -> str | None:
    return getattr(request.state, "request_id", None)


@router.post("", status_code=201)
async def create_booking(
    body: CreateBookingRequest,
    db: Annotated[AsyncSession, Depends(get_db_session)],
    request: Request,
) -> ApiResponse:
    data = await _service.create_booking(db, body)
    return success_response(data.model_dump(mode="json"), _request_id(request))


@router.get("")
async def list_bookings(
    db: Annotated[AsyncSession, Depends(get_db_session)],
    request: Request,
    couple_id: str | None = Query(None, description="Filter by couple"),
    vendor_id: str | None = Query(None, description="Filter by vendor"),
    status: str | None = Query(None, description="Filter by booking status"),
    limit: int = Query(20, ge=1, le=100, description="Items per page"),
    cursor: str | None = Query(None, description="Pagination cursor (booking ID)"),
) -> ApiResponse:
    data = await _service.list_bookings(db, couple_id, vendor_id, status, cursor, limit)
    return success_response(data.model_dump(mode="json"), _request_id(request))


@router.get("/stats")
async def vendor_stats(
    db: Annotated[AsyncSession, Depends(get_db_session)],
    request: Request,
    vendor_id: str = Query(..., min_length=1, description="Vendor to summarize"),
) -> ApiResponse:
    data = await _service.get_vendor_stats(db, vendor_id)
    return success_response(data.model_dump(mode="json"), _request_id(request))


@router.get("/stats/couple/{couple_id}")
async def couple_stats(
    couple_id: str,
    db: Annotated[AsyncSession, Depends(get_db_session)],
    request: Request,
) -> ApiResponse:
    data = await _service.get_couple_stats(db, couple_id)
    return success_response(data.model_dump(mode="json"), _request_id(request))


@router.get("/{booking_id}")
async def get_booking(
    booking_id: str,
    db: Annotated[AsyncSession, Depends(get_db_session)],
    request: Request,
) -> ApiResponse:
    data = await _service.get_booking(db, booking_id)
    return success_response(data.model_dump(mode="json"), _request_id(request))


@router.post("/{booking_id}/quote")
async def send_quote(
    booking_id: str,
    body: SendQuoteRequest,
    db: Annotated[AsyncSession, Depends(get_db_session)],
    request: Request,
) -> ApiResponse:
    data = await _service.send_quote(db, booking_id, body.total_amount_centavos)
    return success_response(data.model_dump(mode="json"), _request_id(request))


@router.post("/{booking_id}/accept-quote")
async def accept_quote(
    booking_id: str,
    db: Annotated[AsyncSession, Depends(get_db_session)],
    request: Request,
) -> ApiResponse:
    data = await _service.accept_quote(db, booking_id)
    return success_response(data.model_dump(mode="json"), _request_id(request))


@router.post("/{booking_id}/reject-quote")
async def reject_quote(
    booking_id: str,
    body: RejectQuoteRequest,
    db: Annotated[AsyncSession, Depends(get_db_session)],
    request: Request,
) -> ApiResponse:
    data = await _service.reject_quote(db, booking_id, body.reason)
    return success_response(data.model_dump(mode="json"), _request_id(request))


@router.post("/{booking_id}/cancel")
async def cancel_booking(
    booking_id: str,
    body: CancelBookingRequest,
    db: Annotated[AsyncSession, Depends(get_db_session)],
    request: Request,
) -> ApiResponse:
    data = await _service.cancel(db, booking_id, body.reason)
    return success_response(data.model_dump(mode="json"), _request_id(request))


@router.post("/{booking_id}/payments")
async def apply_payment(
    booking_id: str,
    body: ApplyPaymentRequest,
    db: Annotated[AsyncSession, Depends(get_db_session)],
    request: Request,
) -> ApiResponse:
    data = await _service.apply_payment(db, booking_id, body)
    return success_response(data.model_dump(mode="json"), _request_id(request))


@router.get("/{booking_id}/payments")
async def list_payments(
    booking_id: str,
    db: Annotated[AsyncSession, Depends(get_db_session)],
    request: Request,
) -> ApiResponse:
    data = await _service.list_payments(db, booking_id)
    return success_response(data.model_dump(mode="json"), _request_id(request))


@router.post("/{booking_id}/complete")
async def mark_completed(
    booking_id: str,
    body: MarkCompletedRequest,
    db: Annotated[AsyncSession, Depends(get_db_session)],
    request: Request,
) -> ApiResponse:
    data = await _service.mark_completed(db, booking_id, body.party, body.notes)
    return success_response(data.model_dump(mode="json"), _request_id(request))


@router.get("/{booking_id}/completion")
async def completion_status(
    booking_id: str,
    db: Annotated[AsyncSession, Depends(get_db_session)],
    request: Request,
) -> ApiResponse:
    data = await _service.get_completion_status(db, booking_id)
    return success_response(data.model_dump(mode="json"), _request_id(request))
