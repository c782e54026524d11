# src/wb_booking/infrastructure/persistence.py
"""BookingRepository — raw SQL persistence implementation.

Derived values (remaining_balance, payment progress) are never stored; they are
recomputed from total_amount and total_paid by the domain model.

Transaction ownership: the CALLER (application service) commits or rolls back.
"""
from dataclasses import replace
from typing import Any

from sqlalchemy import text
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from src.wb_booking.domain.models import Booking, PaymentRecord
from src.wb_common.errors import ConcurrentBookingUpdateError, DuplicatePaymentError
from src.wb_common.id_generator import generate_id

# ---------------------------------------------------------------------------
# SQL statements
# ---------------------------------------------------------------------------

_SELECT_COLUMNS = """
    id, couple_id, vendor_id, service_name, event_date, status,
    total_amount, total_paid, last_payment_date, payment_method, transaction_id,
    status_reason, quote_sent_at, vendor_completed, couple_completed, completed_at,
    completion_notes, version, created_at, updated_at
"""

_INSERT_BOOKING_SQL = text("""
    INSERT INTO bookings (id, couple_id, vendor_id, service_name, event_date,
        status, total_amount, total_paid)
    VALUES (:id, :couple_id, :vendor_id, :service_name, :event_date,
        :status, :total_amount, :total_paid)
    RETURNING version, created_at, updated_at
""")

_UPDATE_BOOKING_SQL = text("""
    UPDATE bookings
    SET status = :status,
        total_amount = :total_amount,
        total_paid = :total_paid,
        last_payment_date = :last_payment_date,
        payment_method = :payment_method,
        transaction_id = :transaction_id,
        status_reason = :status_reason,
        quote_sent_at = :quote_sent_at,
        vendor_completed = :vendor_completed,
        couple_completed = :couple_completed,
        completed_at = :completed_at,
        completion_notes = :completion_notes,
        version = version + 1
    WHERE id = :id AND version = :expected_version
    RETURNING version, updated_at
""")

_GET_BOOKING_SQL = text(f"""
    SELECT {_SELECT_COLUMNS}
    FROM bookings WHERE id = :id
""")

_GET_BOOKING_FOR_UPDATE_SQL = text(f"""
    SELECT {_SELECT_COLUMNS}
    FROM bookings WHERE id = :id
    FOR UPDATE
""")

_LIST_BOOKINGS_SQL = text(f"""
    SELECT {_SELECT_COLUMNS}
    FROM bookings
    WHERE (CAST(:couple_id AS TEXT) IS NULL OR couple_id = :couple_id)
      AND (CAST(:vendor_id AS TEXT) IS NULL OR vendor_id = :vendor_id)
      AND (CAST(:status AS TEXT) IS NULL OR status = :status)
      AND (CAST(:cursor_id AS TEXT) IS NULL OR id < :cursor_id)
    ORDER BY id DESC
    LIMIT :limit
""")

_STATUS_COUNTS_SQL = text("""
    SELECT status, COUNT(*) AS booking_count, COALESCE(SUM(total_paid), 0) AS paid_sum
    FROM bookings
    WHERE vendor_id = :vendor_id
    GROUP BY status
""")

_COUPLE_PAYMENT_COUNTS_SQL = text("""
    SELECT p.payment_type, p.payment_method,
           COUNT(*) AS receipt_count,
           COALESCE(SUM(p.amount_applied), 0) AS applied_sum
    FROM booking_payments p
    JOIN bookings b ON b.id = p.booking_id
    WHERE b.couple_id = :couple_id
    GROUP BY p.payment_type, p.payment_method
""")

_INSERT_PAYMENT_SQL = text("""
    INSERT INTO booking_payments (id, booking_id, transaction_id, payment_type,
        payment_method, amount, amount_applied, occurred_at)
    VALUES (:id, :booking_id, :transaction_id, :payment_type,
        :payment_method, :amount, :amount_applied, :occurred_at)
""")

_LIST_PAYMENTS_SQL = text("""
    SELECT transaction_id, payment_type, payment_method, amount, amount_applied, occurred_at
    FROM booking_payments
    WHERE booking_id = :booking_id
    ORDER BY id ASC
""")


# ---------------------------------------------------------------------------
# Row mappers
# ---------------------------------------------------------------------------


def _row_to_payment(row: Any) -> PaymentRecord:
    return PaymentRecord(
        transaction_id=row.transaction_id,
        payment_type=row.payment_type,
        method=row.payment_method,
        amount=row.amount,
        amount_applied=row.amount_applied,
        occurred_at=row.occurred_at,
    )


def _row_to_booking(row: Any, payments: tuple[PaymentRecord, ...] = ()) -> Booking:
    """Convert a DB result row to a Booking domain object."""
    return Booking(
        id=row.id,
        couple_id=row.couple_id,
        vendor_id=row.vendor_id,
        service_name=row.service_name,
        event_date=row.event_date,
        status=row.status,
        total_amount=row.total_amount,
        total_paid=row.total_paid,
        last_payment_date=row.last_payment_date,
        payment_method=row.payment_method,
        transaction_id=row.transaction_id,
        status_reason=row.status_reason,
        quote_sent_at=row.quote_sent_at,
        vendor_completed=row.vendor_completed,
        couple_completed=row.couple_completed,
        completed_at=row.completed_at,
        completion_notes=row.completion_notes,
        payments=payments,
        version=row.version,
        created_at=row.created_at,
        updated_at=row.updated_at,
    )


# ---------------------------------------------------------------------------
# Repository
# ---------------------------------------------------------------------------


class BookingRepository:
    """Concrete implementation of BookingRepositoryProtocol using raw SQL."""

    async def create(self, db: AsyncSession, booking: Booking) -> Booking:
        result = await db.execute(
            _INSERT_BOOKING_SQL,
            {
                "id": booking.id,
                "couple_id": booking.couple_id,
                "vendor_id": booking.vendor_id,
                "service_name": booking.service_name,
                "event_date": booking.event_date,
                "status": booking.status,
                "total_amount": booking.total_amount,
                "total_paid": booking.total_paid,
            },
        )
        row = result.fetchone()
        return replace(
            booking, version=row.version, created_at=row.created_at, updated_at=row.updated_at
        )

    async def get_by_id(self, db: AsyncSession, booking_id: str) -> Booking | None:
        result = await db.execute(_GET_BOOKING_SQL, {"id": booking_id})
        row = result.fetchone()
        if row is None:
            return None
        return _row_to_booking(row, tuple(await self.list_payments(db, booking_id)))

    async def get_for_update(self, db: AsyncSession, booking_id: str) -> Booking | None:
        """Load a booking with its payments, holding a row lock until commit/rollback."""
        result = await db.execute(_GET_BOOKING_FOR_UPDATE_SQL, {"id": booking_id})
        row = result.fetchone()
        if row is None:
            return None
        return _row_to_booking(row, tuple(await self.list_payments(db, booking_id)))

    async def update(
        self, db: AsyncSession, booking: Booking, expected_version: int
    ) -> Booking:
        result = await db.execute(
            _UPDATE_BOOKING_SQL,
            {
                "id": booking.id,
                "expected_version": expected_version,
                "status": booking.status,
                "total_amount": booking.total_amount,
                "total_paid": booking.total_paid,
                "last_payment_date": booking.last_payment_date,
                "payment_method": booking.payment_method,
                "transaction_id": booking.transaction_id,
                "status_reason": booking.status_reason,
                "quote_sent_at": booking.quote_sent_at,
                "vendor_completed": booking.vendor_completed,
                "couple_completed": booking.couple_completed,
                "completed_at": booking.completed_at,
                "completion_notes": booking.completion_notes,
            },
        )
        row = result.fetchone()
        if row is None:
            raise ConcurrentBookingUpdateError(booking.id)
        return replace(booking, version=row.version, updated_at=row.updated_at)

    async def insert_payment(
        self, db: AsyncSession, booking_id: str, payment: PaymentRecord
    ) -> None:
        """Insert an applied payment.

        A transaction id already stored on another booking violates
        uq_booking_payments_transaction_id.
        """
        try:
            await db.execute(
                _INSERT_PAYMENT_SQL,
                {
                    "id": generate_id(),
                    "booking_id": booking_id,
                    "transaction_id": payment.transaction_id,
                    "payment_type": payment.payment_type,
                    "payment_method": payment.method,
                    "amount": payment.amount,
                    "amount_applied": payment.amount_applied,
                    "occurred_at": payment.occurred_at,
                },
            )
        except IntegrityError:
            raise DuplicatePaymentError(payment.transaction_id) from None

    async def list_payments(self, db: AsyncSession, booking_id: str) -> list[PaymentRecord]:
        result = await db.execute(_LIST_PAYMENTS_SQL, {"booking_id": booking_id})
        return [_row_to_payment(row) for row in result.fetchall()]

    async def list_bookings(
        self,
        db: AsyncSession,
        couple_id: str | None,
        vendor_id: str | None,
        status: str | None,
        cursor_id: str | None,
        limit: int,
    ) -> list[Booking]:
        """Page of bookings without their payment history."""
        result = await db.execute(
            _LIST_BOOKINGS_SQL,
            {
                "couple_id": couple_id,
                "vendor_id": vendor_id,
                "status": status,
                "cursor_id": cursor_id,
                "limit": limit,
            },
        )
        return [_row_to_booking(row) for row in result.fetchall()]

    async def status_counts(
        self, db: AsyncSession, vendor_id: str
    ) -> list[tuple[str, int, int]]:
        """(status, booking count, sum of total_paid) per status for one vendor."""
        result = await db.execute(_STATUS_COUNTS_SQL, {"vendor_id": vendor_id})
        return [(row.status, row.booking_count, row.paid_sum) for row in result.fetchall()]

    async def couple_payment_counts(
        self, db: AsyncSession, couple_id: str
    ) -> list[tuple[str, str, int, int]]:
        """(payment_type, method, receipt count, sum of amount_applied) across a couple's bookings."""
        result = await db.execute(_COUPLE_PAYMENT_COUNTS_SQL, {"couple_id": couple_id})
        return [
            (row.payment_type, row.payment_method, row.receipt_count, row.applied_sum)
            for row in result.fetchall()
        ]
