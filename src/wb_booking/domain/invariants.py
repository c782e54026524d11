"""Booking invariant verification, run after every ledger mutation before persisting.

Raises AssertionError on violation; the caller's transaction rolls back.
"""

import logging

from src.wb_booking.domain.models import LIFECYCLE_ORDER, Booking
from src.wb_common.enums import BookingStatus

logger = logging.getLogger(__name__)

_SETTLED = frozenset({BookingStatus.PAID_IN_FULL.value, BookingStatus.COMPLETED.value})
_SIDE_BRANCHES = frozenset({BookingStatus.QUOTE_REJECTED.value, BookingStatus.CANCELLED.value})


def verify_booking_invariants(booking: Booking) -> None:
    """Check the money and progress invariants of a single snapshot."""
    paid = booking.total_paid
    total = booking.total_amount
    progress = booking.payment_progress_percentage

    assert 0 <= paid <= total, (
        f"paid out of range: booking={booking.id} total_paid={paid} total_amount={total}"
    )
    applied = sum(p.amount_applied for p in booking.payments)
    assert applied == paid, (
        f"payment records disagree: booking={booking.id} "
        f"sum(amount_applied)={applied} != total_paid={paid}"
    )
    tx_ids = [p.transaction_id for p in booking.payments]
    assert len(tx_ids) == len(set(tx_ids)), (
        f"transaction id applied twice: booking={booking.id}"
    )
    assert (progress == 0) == (paid == 0), (
        f"progress/paid mismatch: booking={booking.id} progress={progress} total_paid={paid}"
    )
    if booking.status not in _SIDE_BRANCHES:
        assert (progress == 100) == (booking.status in _SETTLED), (
            f"progress/status mismatch: booking={booking.id} "
            f"progress={progress} status={booking.status}"
        )

    logger.debug(
        "Invariants OK: booking=%s, status=%s, paid=%d/%d",
        booking.id, booking.status, paid, total,
    )


def verify_transition(before: Booking, after: Booking) -> None:
    """Status may only move forward along the lifecycle, or into a side branch."""
    if after.status in _SIDE_BRANCHES or after.status == before.status:
        return
    assert before.status in LIFECYCLE_ORDER and after.status in LIFECYCLE_ORDER, (
        f"illegal transition: booking={before.id} {before.status} -> {after.status}"
    )
    assert LIFECYCLE_ORDER.index(after.status) > LIFECYCLE_ORDER.index(before.status), (
        f"status moved backward: booking={before.id} {before.status} -> {after.status}"
    )
