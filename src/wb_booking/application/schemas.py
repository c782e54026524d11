"""Pydantic schemas for the wb_booking API.

Amounts travel as integer centavos with a parallel `*_display` string.
Payment and quote amounts are range-checked by the ledger, not here. Input that
is not an integer at all is rejected by pydantic, and the app-level
RequestValidationError handler reports it under the same error codes.
"""
from datetime import date, datetime, timezone
from typing import Literal

from pydantic import BaseModel, Field, field_validator

from src.wb_booking.domain.ledger import completion_waiting_for, compute_display_status
from src.wb_booking.domain.models import Booking, PaymentRecord
from src.wb_common.centavos import MAX_CENTAVOS, centavos_to_display

# ---------------------------------------------------------------------------
# Request schemas
# ---------------------------------------------------------------------------


class CreateBookingRequest(BaseModel):
    couple_id: str = Field(..., min_length=1, max_length=64)
    vendor_id: str = Field(..., min_length=1, max_length=64)
    service_name: str = Field(..., min_length=1, max_length=200)
    event_date: date | None = None
    total_amount_centavos: int = Field(
        0, ge=0, le=MAX_CENTAVOS, description="Listed price, if already known"
    )


class SendQuoteRequest(BaseModel):
    total_amount_centavos: int


class RejectQuoteRequest(BaseModel):
    reason: str | None = Field(None, max_length=500)


class CancelBookingRequest(BaseModel):
    reason: str = Field(..., min_length=1, max_length=500)


class ApplyPaymentRequest(BaseModel):
    amount_centavos: int
    payment_type: str
    payment_method: str = Field(..., min_length=1, max_length=32)
    transaction_id: str = Field(..., max_length=128)
    occurred_at: datetime | None = None

    @field_validator("transaction_id")
    @classmethod
    def no_whitespace(cls, v: str) -> str:
        if not v or v != v.strip() or " " in v:
            raise ValueError("transaction_id must not contain whitespace")
        return v

    @field_validator("occurred_at")
    @classmethod
    def to_utc(cls, v: datetime | None) -> datetime | None:
        if v is None:
            return None
        if v.tzinfo is None or v.utcoffset() is None:
            raise ValueError("occurred_at must include a timezone offset")
        return v.astimezone(timezone.utc)


class MarkCompletedRequest(BaseModel):
    party: Literal["vendor", "couple"]
    notes: str | None = Field(None, max_length=1000)


# ---------------------------------------------------------------------------
# Response schemas
# ---------------------------------------------------------------------------


class DisplayStatusResponse(BaseModel):
    category: str
    label: str
    payment_progress_percentage: int
    remaining_balance_centavos: int
    remaining_balance_display: str
    next_action: str | None


class BookingResponse(BaseModel):
    id: str
    couple_id: str
    vendor_id: str
    service_name: str
    event_date: date | None
    status: str
    total_amount_centavos: int
    total_amount_display: str
    total_paid_centavos: int
    total_paid_display: str
    remaining_balance_centavos: int
    remaining_balance_display: str
    payment_progress_percentage: int
    last_payment_date: datetime | None
    payment_method: str | None
    transaction_id: str | None
    status_reason: str | None
    quote_sent_at: datetime | None
    vendor_completed: bool
    couple_completed: bool
    completed_at: datetime | None
    completion_notes: str | None
    version: int
    created_at: datetime | None
    updated_at: datetime | None
    display: DisplayStatusResponse

    @classmethod
    def from_domain(cls, b: Booking) -> "BookingResponse":
        shown = compute_display_status(b)
        return cls(
            id=b.id,
            couple_id=b.couple_id,
            vendor_id=b.vendor_id,
            service_name=b.service_name,
            event_date=b.event_date,
            status=b.status,
            total_amount_centavos=b.total_amount,
            total_amount_display=centavos_to_display(b.total_amount),
            total_paid_centavos=b.total_paid,
            total_paid_display=centavos_to_display(b.total_paid),
            remaining_balance_centavos=b.remaining_balance,
            remaining_balance_display=centavos_to_display(b.remaining_balance),
            payment_progress_percentage=b.payment_progress_percentage,
            last_payment_date=b.last_payment_date,
            payment_method=b.payment_method,
            transaction_id=b.transaction_id,
            status_reason=b.status_reason,
            quote_sent_at=b.quote_sent_at,
            vendor_completed=b.vendor_completed,
            couple_completed=b.couple_completed,
            completed_at=b.completed_at,
            completion_notes=b.completion_notes,
            version=b.version,
            created_at=b.created_at,
            updated_at=b.updated_at,
            display=DisplayStatusResponse(
                category=shown.category.value,
                label=shown.label,
                payment_progress_percentage=shown.payment_progress_percentage,
                remaining_balance_centavos=shown.remaining_balance,
                remaining_balance_display=centavos_to_display(shown.remaining_balance),
                next_action=shown.next_action,
            ),
        )


class PaymentResultResponse(BaseModel):
    booking: BookingResponse
    duplicate: bool  # True when the event was a replay and nothing changed


class PaymentItem(BaseModel):
    transaction_id: str
    payment_type: str
    payment_method: str
    amount_centavos: int
    amount_display: str
    amount_applied_centavos: int
    occurred_at: datetime

    @classmethod
    def from_domain(cls, p: PaymentRecord) -> "PaymentItem":
        return cls(
            transaction_id=p.transaction_id,
            payment_type=p.payment_type,
            payment_method=p.method,
            amount_centavos=p.amount,
            amount_display=centavos_to_display(p.amount),
            amount_applied_centavos=p.amount_applied,
            occurred_at=p.occurred_at,
        )


class PaymentListResponse(BaseModel):
    booking_id: str
    items: list[PaymentItem]


class BookingListResponse(BaseModel):
    items: list[BookingResponse]
    next_cursor: str | None
    has_more: bool


class VendorStatsResponse(BaseModel):
    vendor_id: str
    total_bookings: int
    by_category: dict[str, int]
    total_collected_centavos: int
    total_collected_display: str


class CompletionStatusResponse(BaseModel):
    booking_id: str
    status: str
    vendor_completed: bool
    couple_completed: bool
    both_completed: bool
    completed_at: datetime | None
    completion_notes: str | None
    waiting_for: str | None  # vendor / couple / both; None once both confirmed

    @classmethod
    def from_domain(cls, b: Booking) -> "CompletionStatusResponse":
        return cls(
            booking_id=b.id,
            status=b.status,
            vendor_completed=b.vendor_completed,
            couple_completed=b.couple_completed,
            both_completed=b.vendor_completed and b.couple_completed,
            completed_at=b.completed_at,
            completion_notes=b.completion_notes,
            waiting_for=completion_waiting_for(b),
        )


class CoupleStatsResponse(BaseModel):
    couple_id: str
    total_receipts: int
    by_payment_type: dict[str, int]
    by_payment_method: dict[str, int]
    total_paid_centavos: int
    total_paid_display: str
