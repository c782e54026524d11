"""BookingLedger — pure lifecycle and payment transformations.

Every function takes a Booking snapshot and returns a new one (or raises a
named AppError). No I/O, no clock reads: timestamps arrive as arguments.
The caller owns loading, serializing per booking id, and persisting.

Status flow:
    request → quote_sent → confirmed → downpayment_paid → paid_in_full → completed
    quote_sent → quote_rejected          (terminal)
    any non-terminal → cancelled         (terminal)

accept_quote lands on `confirmed` directly; `quote_accepted` is still a valid
stored status (older rows) and is treated exactly like `confirmed`.
"""

from dataclasses import replace
from datetime import datetime

from src.wb_booking.domain.models import Booking, DisplayStatus, PaymentEvent, PaymentRecord
from src.wb_common.centavos import is_valid_amount
from src.wb_common.datetime_utils import require_utc
from src.wb_common.enums import BookingStatus, CompletionParty, DisplayCategory, PaymentType
from src.wb_common.errors import (
    CompletionAlreadyConfirmedError,
    DuplicatePaymentError,
    InvalidBookingStateError,
    InvalidPaymentAmountError,
    InvalidQuoteAmountError,
    InvalidRequestError,
    UnknownPaymentTypeError,
)

_SETTLING_TYPES = frozenset({PaymentType.FULL_PAYMENT.value, PaymentType.REMAINING_BALANCE.value})
_PAYMENT_TYPES = frozenset(t.value for t in PaymentType)
_QUOTABLE = frozenset({BookingStatus.REQUEST.value, BookingStatus.QUOTE_SENT.value})


# ---------------------------------------------------------------------------
# Payments
# ---------------------------------------------------------------------------


def is_duplicate_payment(booking: Booking, event: PaymentEvent) -> bool:
    """True when this exact event (transaction id, type, amount) was already applied."""
    existing = booking.find_payment(event.transaction_id)
    return (
        existing is not None
        and existing.payment_type == event.payment_type
        and existing.amount == event.amount
    )


def apply_payment(booking: Booking, event: PaymentEvent) -> Booking:
    """Credit a payment event and advance the status.

    - downpayment: total_paid += amount (clamped to total_amount) → downpayment_paid,
      or paid_in_full when the clamp settles the booking.
    - full_payment / remaining_balance: settles the booking regardless of the
      stated amount → paid_in_full.

    A replay of an already-applied event returns `booking` itself, unchanged.
    Reusing a transaction id for a different type or amount raises DuplicatePaymentError.
    """
    if not is_valid_amount(event.amount):
        raise InvalidPaymentAmountError(event.amount)
    if event.payment_type not in _PAYMENT_TYPES:
        raise UnknownPaymentTypeError(event.payment_type)
    require_utc("occurred_at", event.occurred_at)

    existing = booking.find_payment(event.transaction_id)
    if existing is not None:
        if is_duplicate_payment(booking, event):
            return booking
        raise DuplicatePaymentError(event.transaction_id)

    if booking.is_terminal:
        raise InvalidBookingStateError(booking.id, booking.status, "payment")
    if booking.total_amount <= 0:
        # Nothing has been quoted yet, so there is no balance to pay against
        raise InvalidBookingStateError(booking.id, booking.status, "payment before a quote")

    if event.payment_type in _SETTLING_TYPES:
        new_total_paid = booking.total_amount
    else:
        new_total_paid = min(booking.total_amount, booking.total_paid + event.amount)

    if new_total_paid >= booking.total_amount:
        new_status = BookingStatus.PAID_IN_FULL.value
    else:
        new_status = BookingStatus.DOWNPAYMENT_PAID.value

    record = PaymentRecord(
        transaction_id=event.transaction_id,
        payment_type=event.payment_type,
        method=event.method,
        amount=event.amount,
        amount_applied=new_total_paid - booking.total_paid,
        occurred_at=event.occurred_at,
    )
    return replace(
        booking,
        status=new_status,
        total_paid=new_total_paid,
        last_payment_date=event.occurred_at,
        payment_method=event.method,
        transaction_id=event.transaction_id,
        payments=booking.payments + (record,),
    )


# ---------------------------------------------------------------------------
# Quote negotiation
# ---------------------------------------------------------------------------


def send_quote(booking: Booking, total_amount: int, at: datetime) -> Booking:
    """Vendor quotes (or re-quotes) a price for a pending request."""
    if booking.status not in _QUOTABLE:
        raise InvalidBookingStateError(booking.id, booking.status, "sending a quote")
    if not is_valid_amount(total_amount):
        raise InvalidQuoteAmountError(total_amount)
    require_utc("at", at)
    return replace(
        booking,
        status=BookingStatus.QUOTE_SENT.value,
        total_amount=total_amount,
        quote_sent_at=at,
    )


def accept_quote(booking: Booking) -> Booking:
    if booking.status != BookingStatus.QUOTE_SENT.value:
        raise InvalidBookingStateError(booking.id, booking.status, "accepting a quote")
    return replace(booking, status=BookingStatus.CONFIRMED.value)


def reject_quote(booking: Booking, reason: str | None = None) -> Booking:
    if booking.status != BookingStatus.QUOTE_SENT.value:
        raise InvalidBookingStateError(booking.id, booking.status, "rejecting a quote")
    return replace(
        booking,
        status=BookingStatus.QUOTE_REJECTED.value,
        status_reason=reason,
    )


def cancel(booking: Booking, reason: str) -> Booking:
    if booking.is_terminal:
        raise InvalidBookingStateError(booking.id, booking.status, "cancellation")
    return replace(
        booking,
        status=BookingStatus.CANCELLED.value,
        status_reason=reason,
    )


# ---------------------------------------------------------------------------
# Completion
# ---------------------------------------------------------------------------


def mark_completed(
    booking: Booking, party: str, at: datetime, notes: str | None = None
) -> Booking:
    """Record one party's confirmation that the service was delivered.

    The booking becomes `completed` once both vendor and couple have confirmed.
    Notes, when given, replace any earlier completion notes.
    There is no reverse operation: a confirmation cannot be withdrawn.
    """
    if booking.status != BookingStatus.PAID_IN_FULL.value:
        raise InvalidBookingStateError(booking.id, booking.status, "completion")
    require_utc("at", at)

    if party == CompletionParty.VENDOR.value:
        if booking.vendor_completed:
            raise CompletionAlreadyConfirmedError(booking.id, party)
        updated = replace(booking, vendor_completed=True)
    elif party == CompletionParty.COUPLE.value:
        if booking.couple_completed:
            raise CompletionAlreadyConfirmedError(booking.id, party)
        updated = replace(booking, couple_completed=True)
    else:
        raise InvalidRequestError(f"party must be 'vendor' or 'couple', got {party!r}")

    if notes is not None:
        updated = replace(updated, completion_notes=notes)
    if updated.vendor_completed and updated.couple_completed:
        updated = replace(updated, status=BookingStatus.COMPLETED.value, completed_at=at)
    return updated


# ---------------------------------------------------------------------------
# Presentation
# ---------------------------------------------------------------------------

_CATEGORY_BY_STATUS: dict[str, DisplayCategory] = {
    BookingStatus.REQUEST.value: DisplayCategory.AWAITING_QUOTE,
    BookingStatus.QUOTE_SENT.value: DisplayCategory.QUOTE_RECEIVED,
    BookingStatus.QUOTE_ACCEPTED.value: DisplayCategory.CONFIRMED,
    BookingStatus.CONFIRMED.value: DisplayCategory.CONFIRMED,
    BookingStatus.DOWNPAYMENT_PAID.value: DisplayCategory.DEPOSIT_PAID,
    BookingStatus.PAID_IN_FULL.value: DisplayCategory.FULLY_PAID,
    BookingStatus.COMPLETED.value: DisplayCategory.COMPLETED,
    BookingStatus.QUOTE_REJECTED.value: DisplayCategory.DECLINED,
    BookingStatus.CANCELLED.value: DisplayCategory.CANCELLED,
}

_LABELS: dict[DisplayCategory, str] = {
    DisplayCategory.AWAITING_QUOTE: "Request Submitted",
    DisplayCategory.QUOTE_RECEIVED: "Quote Sent",
    DisplayCategory.CONFIRMED: "Confirmed",
    DisplayCategory.DEPOSIT_PAID: "Deposit Paid",
    DisplayCategory.FULLY_PAID: "Fully Paid",
    DisplayCategory.COMPLETED: "Completed",
    DisplayCategory.DECLINED: "Quote Rejected",
    DisplayCategory.CANCELLED: "Cancelled",
}


def display_category_for(status: str) -> DisplayCategory:
    """Status-only half of compute_display_status, for aggregate reports."""
    try:
        return _CATEGORY_BY_STATUS[status]
    except KeyError:
        raise ValueError(f"Unknown booking status: {status}") from None


def _next_action(booking: Booking, category: DisplayCategory) -> str | None:
    if category is DisplayCategory.AWAITING_QUOTE:
        return "Vendor to send a quote"
    if category is DisplayCategory.QUOTE_RECEIVED:
        return "Couple to accept or reject the quote"
    if category is DisplayCategory.CONFIRMED:
        return "Couple to pay the downpayment"
    if category is DisplayCategory.DEPOSIT_PAID:
        return "Couple to pay the remaining balance"
    if category is DisplayCategory.FULLY_PAID:
        waiting = completion_waiting_for(booking)
        if waiting == CompletionParty.COUPLE.value:
            return "Couple to confirm completion"
        if waiting == CompletionParty.VENDOR.value:
            return "Vendor to confirm completion"
        return "Vendor and couple to confirm completion"
    return None


def completion_waiting_for(booking: Booking) -> str | None:
    """Which side still has to confirm completion: 'vendor', 'couple', 'both', or None."""
    if booking.vendor_completed and booking.couple_completed:
        return None
    if booking.vendor_completed:
        return CompletionParty.COUPLE.value
    if booking.couple_completed:
        return CompletionParty.VENDOR.value
    return "both"


def compute_display_status(booking: Booking) -> DisplayStatus:
    category = display_category_for(booking.status)
    return DisplayStatus(
        category=category,
        label=_LABELS[category],
        payment_progress_percentage=booking.payment_progress_percentage,
        remaining_balance=booking.remaining_balance,
        next_action=_next_action(booking, category),
    )
