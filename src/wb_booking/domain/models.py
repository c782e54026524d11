"""Domain models for wb_booking — frozen dataclasses, no SQLAlchemy dependency.

Every ledger operation returns a new Booking via dataclasses.replace; a snapshot
is never mutated in place.
"""

from dataclasses import dataclass
from datetime import date, datetime

from src.wb_common.centavos import percentage_of
from src.wb_common.enums import BookingStatus, DisplayCategory

TERMINAL_STATUSES: frozenset[str] = frozenset({
    BookingStatus.PAID_IN_FULL.value,
    BookingStatus.COMPLETED.value,
    BookingStatus.QUOTE_REJECTED.value,
    BookingStatus.CANCELLED.value,
})

# Forward order of the main lifecycle; side branches are not ranked.
LIFECYCLE_ORDER: tuple[str, ...] = (
    BookingStatus.REQUEST.value,
    BookingStatus.QUOTE_SENT.value,
    BookingStatus.QUOTE_ACCEPTED.value,
    BookingStatus.CONFIRMED.value,
    BookingStatus.DOWNPAYMENT_PAID.value,
    BookingStatus.PAID_IN_FULL.value,
    BookingStatus.COMPLETED.value,
)


@dataclass(frozen=True)
class PaymentEvent:
    """A payment confirmation from the gateway webhook or the couple's checkout."""

    amount: int  # centavos, as stated by the event
    payment_type: str  # downpayment / full_payment / remaining_balance
    method: str
    transaction_id: str
    occurred_at: datetime


@dataclass(frozen=True)
class PaymentRecord:
    """A payment already applied to a booking."""

    transaction_id: str
    payment_type: str
    method: str
    amount: int  # stated by the event
    amount_applied: int  # credited to total_paid
    occurred_at: datetime


@dataclass(frozen=True)
class Booking:
    id: str
    couple_id: str
    vendor_id: str
    service_name: str
    status: str
    total_amount: int  # centavos
    total_paid: int = 0  # centavos
    event_date: date | None = None
    # Last payment audit
    last_payment_date: datetime | None = None
    payment_method: str | None = None
    transaction_id: str | None = None
    # Workflow audit
    status_reason: str | None = None
    quote_sent_at: datetime | None = None
    vendor_completed: bool = False
    couple_completed: bool = False
    completed_at: datetime | None = None
    completion_notes: str | None = None
    payments: tuple[PaymentRecord, ...] = ()
    version: int = 0
    created_at: datetime | None = None
    updated_at: datetime | None = None

    @property
    def remaining_balance(self) -> int:
        return self.total_amount - self.total_paid

    @property
    def payment_progress_percentage(self) -> int:
        """Exact paid/total ratio, kept off 0 and 100 until nothing/everything is paid."""
        if self.total_amount <= 0 or self.total_paid <= 0:
            return 0
        if self.total_paid >= self.total_amount:
            return 100
        return min(99, max(1, percentage_of(self.total_paid, self.total_amount)))

    @property
    def is_terminal(self) -> bool:
        return self.status in TERMINAL_STATUSES

    def find_payment(self, transaction_id: str) -> PaymentRecord | None:
        for record in self.payments:
            if record.transaction_id == transaction_id:
                return record
        return None


@dataclass(frozen=True)
class DisplayStatus:
    """What presentation layers show for a booking."""

    category: DisplayCategory
    label: str
    payment_progress_percentage: int
    remaining_balance: int
    next_action: str | None
