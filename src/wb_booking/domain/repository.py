"""BookingRepository Protocol — interface contract for persistence layer."""
from typing import Protocol

from sqlalchemy.ext.asyncio import AsyncSession

from src.wb_booking.domain.models import Booking, PaymentRecord


class BookingRepositoryProtocol(Protocol):
    async def create(self, db: AsyncSession, booking: Booking) -> Booking: ...

    async def get_by_id(self, db: AsyncSession, booking_id: str) -> Booking | None: ...

    async def get_for_update(self, db: AsyncSession, booking_id: str) -> Booking | None: ...

    async def update(
        self, db: AsyncSession, booking: Booking, expected_version: int
    ) -> Booking: ...

    async def insert_payment(
        self, db: AsyncSession, booking_id: str, payment: PaymentRecord
    ) -> None: ...

    async def list_payments(self, db: AsyncSession, booking_id: str) -> list[PaymentRecord]: ...

    async def list_bookings(
        self,
        db: AsyncSession,
        couple_id: str | None,
        vendor_id: str | None,
        status: str | None,
        cursor_id: str | None,
        limit: int,
    ) -> list[Booking]: ...

    async def status_counts(
        self, db: AsyncSession, vendor_id: str
    ) -> list[tuple[str, int, int]]: ...

    async def couple_payment_counts(
        self, db: AsyncSession, couple_id: str
    ) -> list[tuple[str, str, int, int]]: ...
