"""BookingApplicationService — composition layer around the pure ledger.

Every mutation follows the same path:
  per-booking asyncio.Lock → SELECT ... FOR UPDATE → ledger function →
  invariant checks → versioned UPDATE (+ payment row) → commit.
Any exception rolls the session back and propagates to the AppError handler.
Read-only operations run without an explicit transaction.
"""

import asyncio
import logging
import weakref
from collections.abc import Callable

from sqlalchemy.ext.asyncio import AsyncSession

from src.wb_booking.application.schemas import (
    ApplyPaymentRequest,
    BookingListResponse,
    BookingResponse,
    CompletionStatusResponse,
    CoupleStatsResponse,
    CreateBookingRequest,
    PaymentItem,
    PaymentListResponse,
    PaymentResultResponse,
    VendorStatsResponse,
)
from src.wb_booking.domain import ledger
from src.wb_booking.domain.invariants import verify_booking_invariants, verify_transition
from src.wb_booking.domain.models import Booking, PaymentEvent
from src.wb_booking.domain.repository import BookingRepositoryProtocol
from src.wb_booking.infrastructure.persistence import BookingRepository
from src.wb_common.centavos import centavos_to_display
from src.wb_common.datetime_utils import utc_now
from src.wb_common.enums import BookingStatus, DisplayCategory, PaymentType
from src.wb_common.errors import BookingNotFoundError
from src.wb_common.id_generator import generate_id

logger = logging.getLogger(__name__)


class BookingApplicationService:
    def __init__(self, repo: BookingRepositoryProtocol | None = None) -> None:
        self._repo: BookingRepositoryProtocol = repo or BookingRepository()
        # Entries disappear once no coroutine holds or waits on the lock
        self._booking_locks: weakref.WeakValueDictionary[str, asyncio.Lock] = (
            weakref.WeakValueDictionary()
        )

    def _lock_for(self, booking_id: str) -> asyncio.Lock:
        lock = self._booking_locks.get(booking_id)
        if lock is None:
            lock = asyncio.Lock()
            self._booking_locks[booking_id] = lock
        return lock

    async def _mutate(
        self,
        db: AsyncSession,
        booking_id: str,
        action: str,
        change: Callable[[Booking], Booking],
    ) -> tuple[Booking, bool]:
        """Apply `change` under the booking's lock. Returns (booking, changed)."""
        async with self._lock_for(booking_id):
            try:
                current = await self._repo.get_for_update(db, booking_id)
                if current is None:
                    raise BookingNotFoundError(booking_id)

                updated = change(current)
                if updated is current:
                    await db.rollback()
                    return current, False

                verify_transition(current, updated)
                verify_booking_invariants(updated)
                saved = await self._repo.update(db, updated, expected_version=current.version)
                if len(updated.payments) > len(current.payments):
                    await self._repo.insert_payment(db, booking_id, updated.payments[-1])
                await db.commit()
            except Exception:
                await db.rollback()
                raise

        logger.info(
            "Booking %s: %s %s -> %s (paid %d/%d, v%d)",
            booking_id, action, current.status, saved.status,
            saved.total_paid, saved.total_amount, saved.version,
        )
        return saved, True

    # ------------------------------------------------------------------
    # Creation and queries
    # ------------------------------------------------------------------

    async def create_booking(
        self, db: AsyncSession, req: CreateBookingRequest
    ) -> BookingResponse:
        booking = Booking(
            id=generate_id(),
            couple_id=req.couple_id,
            vendor_id=req.vendor_id,
            service_name=req.service_name,
            event_date=req.event_date,
            status=BookingStatus.REQUEST.value,
            total_amount=req.total_amount_centavos,
        )
        try:
            created = await self._repo.create(db, booking)
            await db.commit()
        except Exception:
            await db.rollback()
            raise
        logger.info("Booking %s created for couple=%s vendor=%s",
                    created.id, created.couple_id, created.vendor_id)
        return BookingResponse.from_domain(created)

    async def get_booking(self, db: AsyncSession, booking_id: str) -> BookingResponse:
        booking = await self._repo.get_by_id(db, booking_id)
        if booking is None:
            raise BookingNotFoundError(booking_id)
        return BookingResponse.from_domain(booking)

    async def list_bookings(
        self,
        db: AsyncSession,
        couple_id: str | None,
        vendor_id: str | None,
        status: str | None,
        cursor: str | None,
        limit: int,
    ) -> BookingListResponse:
        # Fetch limit+1 to detect has_more without COUNT(*)
        bookings = await self._repo.list_bookings(
            db, couple_id, vendor_id, status, cursor, limit + 1
        )
        has_more = len(bookings) > limit
        page = bookings[:limit]
        next_cursor = page[-1].id if has_more and page else None
        return BookingListResponse(
            items=[BookingResponse.from_domain(b) for b in page],
            next_cursor=next_cursor,
            has_more=has_more,
        )

    async def list_payments(self, db: AsyncSession, booking_id: str) -> PaymentListResponse:
        booking = await self._repo.get_by_id(db, booking_id)
        if booking is None:
            raise BookingNotFoundError(booking_id)
        return PaymentListResponse(
            booking_id=booking_id,
            items=[PaymentItem.from_domain(p) for p in booking.payments],
        )

    async def get_vendor_stats(self, db: AsyncSession, vendor_id: str) -> VendorStatsResponse:
        rows = await self._repo.status_counts(db, vendor_id)
        by_category = {c.value: 0 for c in DisplayCategory}
        total_bookings = 0
        collected = 0
        for status, count, paid_sum in rows:
            by_category[ledger.display_category_for(status).value] += count
            total_bookings += count
            collected += paid_sum
        return VendorStatsResponse(
            vendor_id=vendor_id,
            total_bookings=total_bookings,
            by_category=by_category,
            total_collected_centavos=collected,
            total_collected_display=centavos_to_display(collected),
        )

    async def get_couple_stats(self, db: AsyncSession, couple_id: str) -> CoupleStatsResponse:
        rows = await self._repo.couple_payment_counts(db, couple_id)
        by_type = {t.value: 0 for t in PaymentType}
        by_method: dict[str, int] = {}
        receipts = 0
        paid = 0
        for payment_type, method, count, applied_sum in rows:
            by_type[payment_type] = by_type.get(payment_type, 0) + count
            by_method[method] = by_method.get(method, 0) + count
            receipts += count
            paid += applied_sum
        return CoupleStatsResponse(
            couple_id=couple_id,
            total_receipts=receipts,
            by_payment_type=by_type,
            by_payment_method=by_method,
            total_paid_centavos=paid,
            total_paid_display=centavos_to_display(paid),
        )

    async def get_completion_status(
        self, db: AsyncSession, booking_id: str
    ) -> CompletionStatusResponse:
        booking = await self._repo.get_by_id(db, booking_id)
        if booking is None:
            raise BookingNotFoundError(booking_id)
        return CompletionStatusResponse.from_domain(booking)

    # ------------------------------------------------------------------
    # Lifecycle mutations
    # ------------------------------------------------------------------

    async def send_quote(
        self, db: AsyncSession, booking_id: str, total_amount: int
    ) -> BookingResponse:
        now = utc_now()
        booking, _ = await self._mutate(
            db, booking_id, "send_quote", lambda b: ledger.send_quote(b, total_amount, now)
        )
        return BookingResponse.from_domain(booking)

    async def accept_quote(self, db: AsyncSession, booking_id: str) -> BookingResponse:
        booking, _ = await self._mutate(db, booking_id, "accept_quote", ledger.accept_quote)
        return BookingResponse.from_domain(booking)

    async def reject_quote(
        self, db: AsyncSession, booking_id: str, reason: str | None
    ) -> BookingResponse:
        booking, _ = await self._mutate(
            db, booking_id, "reject_quote", lambda b: ledger.reject_quote(b, reason)
        )
        return BookingResponse.from_domain(booking)

    async def cancel(self, db: AsyncSession, booking_id: str, reason: str) -> BookingResponse:
        booking, _ = await self._mutate(
            db, booking_id, "cancel", lambda b: ledger.cancel(b, reason)
        )
        return BookingResponse.from_domain(booking)

    async def mark_completed(
        self, db: AsyncSession, booking_id: str, party: str, notes: str | None = None
    ) -> BookingResponse:
        now = utc_now()
        booking, _ = await self._mutate(
            db, booking_id, f"mark_completed[{party}]",
            lambda b: ledger.mark_completed(b, party, now, notes),
        )
        return BookingResponse.from_domain(booking)

    async def apply_payment(
        self, db: AsyncSession, booking_id: str, req: ApplyPaymentRequest
    ) -> PaymentResultResponse:
        event = PaymentEvent(
            amount=req.amount_centavos,
            payment_type=req.payment_type,
            method=req.payment_method,
            transaction_id=req.transaction_id,
            occurred_at=req.occurred_at or utc_now(),
        )
        booking, changed = await self._mutate(
            db, booking_id, f"apply_payment[{event.payment_type}]",
            lambda b: ledger.apply_payment(b, event),
        )
        if not changed:
            logger.info(
                "Booking %s: duplicate payment %s ignored", booking_id, event.transaction_id
            )
        return PaymentResultResponse(
            booking=BookingResponse.from_domain(booking), duplicate=not changed
        )
