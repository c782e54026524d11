# tests/unit/test_ledger_payments.py
"""Unit tests for ledger.apply_payment — payment crediting and idempotency."""
from datetime import UTC, datetime, timedelta, timezone

import pytest

from src.wb_booking.domain.ledger import apply_payment, is_duplicate_payment
from src.wb_booking.domain.models import Booking, PaymentEvent
from src.wb_common.centavos import MAX_CENTAVOS
from src.wb_common.errors import (
    DuplicatePaymentError,
    InvalidBookingStateError,
    InvalidPaymentAmountError,
    InvalidRequestError,
    UnknownPaymentTypeError,
)

_AT = datetime(2026, 3, 14, 9, 30, tzinfo=UTC)


def _make_booking(status: str = "request", total: int = 50000, paid: int = 0) -> Booking:
    return Booking(
        id="0000000000000000001",
        couple_id="couple-1",
        vendor_id="vendor-1",
        service_name="Photo and Video Package",
        status=status,
        total_amount=total,
        total_paid=paid,
    )


def _event(
    amount: int = 15000,
    payment_type: str = "downpayment",
    tx: str = "tx1",
    method: str = "gcash",
    at: datetime = _AT,
) -> PaymentEvent:
    return PaymentEvent(
        amount=amount, payment_type=payment_type, method=method,
        transaction_id=tx, occurred_at=at,
    )


class TestPaymentFlow:
    def test_downpayment_from_request(self) -> None:
        result = apply_payment(_make_booking(), _event())
        assert result.status == "downpayment_paid"
        assert result.total_paid == 15000
        assert result.remaining_balance == 35000
        assert result.payment_progress_percentage == 30

    def test_remaining_balance_settles(self) -> None:
        after_down = apply_payment(_make_booking(), _event())
        result = apply_payment(after_down, _event(35000, "remaining_balance", "tx2"))
        assert result.status == "paid_in_full"
        assert result.total_paid == 50000
        assert result.remaining_balance == 0
        assert result.payment_progress_percentage == 100

    def test_replay_is_noop(self) -> None:
        after_down = apply_payment(_make_booking(), _event())
        replay = apply_payment(after_down, _event())
        assert replay is after_down
        assert replay.total_paid == 15000

    def test_cancelled_rejects_payment(self) -> None:
        booking = _make_booking(status="cancelled")
        with pytest.raises(InvalidBookingStateError) as exc_info:
            apply_payment(booking, _event())
        assert exc_info.value.code == 1002
        assert booking.total_paid == 0


class TestDownpayment:
    def test_two_downpayments_accumulate(self) -> None:
        first = apply_payment(_make_booking(), _event(10000, tx="tx1"))
        second = apply_payment(first, _event(5000, tx="tx2"))
        assert second.total_paid == 15000
        assert second.status == "downpayment_paid"
        assert [p.transaction_id for p in second.payments] == ["tx1", "tx2"]

    def test_overpayment_is_clamped(self) -> None:
        result = apply_payment(_make_booking(paid=0), _event(80000))
        assert result.total_paid == 50000
        assert result.status == "paid_in_full"
        assert result.payments[-1].amount == 80000
        assert result.payments[-1].amount_applied == 50000

    def test_downpayment_reaching_total_is_paid_in_full(self) -> None:
        booking = _make_booking(status="downpayment_paid", paid=40000)
        result = apply_payment(booking, _event(10000, tx="tx9"))
        assert result.status == "paid_in_full"
        assert result.payment_progress_percentage == 100

    def test_tiny_payment_shows_at_least_one_percent(self) -> None:
        result = apply_payment(_make_booking(total=1_000_000), _event(1))
        assert result.payment_progress_percentage == 1

    def test_almost_full_payment_shows_at_most_99(self) -> None:
        result = apply_payment(_make_booking(total=1_000_000), _event(999_999))
        assert result.payment_progress_percentage == 99
        assert result.status == "downpayment_paid"


class TestSettlingPayments:
    @pytest.mark.parametrize("payment_type", ["full_payment", "remaining_balance"])
    def test_settles_regardless_of_stated_amount(self, payment_type: str) -> None:
        result = apply_payment(_make_booking(), _event(100, payment_type))
        assert result.total_paid == 50000
        assert result.status == "paid_in_full"
        assert result.payments[-1].amount == 100
        assert result.payments[-1].amount_applied == 50000

    def test_full_payment_from_quote_sent(self) -> None:
        result = apply_payment(_make_booking(status="quote_sent"), _event(50000, "full_payment"))
        assert result.status == "paid_in_full"


class TestAuditFields:
    def test_last_payment_fields_set(self) -> None:
        result = apply_payment(_make_booking(), _event(method="paymaya", tx="PM-001"))
        assert result.last_payment_date == _AT
        assert result.payment_method == "paymaya"
        assert result.transaction_id == "PM-001"

    def test_input_is_not_mutated(self) -> None:
        booking = _make_booking()
        apply_payment(booking, _event())
        assert booking.total_paid == 0
        assert booking.status == "request"
        assert booking.payments == ()


class TestValidation:
    @pytest.mark.parametrize("amount", [0, -1, -15000])
    def test_non_positive_amount(self, amount: int) -> None:
        booking = _make_booking()
        with pytest.raises(InvalidPaymentAmountError):
            apply_payment(booking, _event(amount))
        assert booking.total_paid == 0

    @pytest.mark.parametrize("amount", [150.5, "15000", True, None])
    def test_non_integer_amount(self, amount) -> None:
        with pytest.raises(InvalidPaymentAmountError):
            apply_payment(_make_booking(), _event(amount))

    def test_amount_past_bigint_range(self) -> None:
        with pytest.raises(InvalidPaymentAmountError) as exc_info:
            apply_payment(_make_booking(), _event(MAX_CENTAVOS + 1))
        assert exc_info.value.code == 2001

    def test_largest_amount_is_clamped_to_total(self) -> None:
        result = apply_payment(_make_booking(), _event(MAX_CENTAVOS))
        assert result.status == "paid_in_full"
        assert result.total_paid == 50000
        assert result.payments[-1].amount == MAX_CENTAVOS
        assert result.payments[-1].amount_applied == 50000

    def test_unknown_type(self) -> None:
        with pytest.raises(UnknownPaymentTypeError) as exc_info:
            apply_payment(_make_booking(), _event(payment_type="installment"))
        assert exc_info.value.code == 2002

    def test_amount_checked_before_type(self) -> None:
        with pytest.raises(InvalidPaymentAmountError):
            apply_payment(_make_booking(), _event(0, "installment"))

    def test_naive_timestamp_rejected(self) -> None:
        with pytest.raises(InvalidRequestError):
            apply_payment(_make_booking(), _event(at=datetime(2026, 3, 14, 9, 30)))

    def test_non_utc_offset_rejected(self) -> None:
        manila = timezone(timedelta(hours=8))
        with pytest.raises(InvalidRequestError):
            apply_payment(_make_booking(), _event(at=datetime(2026, 3, 14, 17, 30, tzinfo=manila)))

    @pytest.mark.parametrize("status", ["paid_in_full", "completed", "quote_rejected"])
    def test_terminal_states_reject_payment(self, status: str) -> None:
        with pytest.raises(InvalidBookingStateError):
            apply_payment(_make_booking(status=status), _event())

    def test_zero_total_rejects_payment(self) -> None:
        with pytest.raises(InvalidBookingStateError):
            apply_payment(_make_booking(total=0), _event())


class TestDuplicates:
    def test_replay_with_different_timestamp_is_still_noop(self) -> None:
        after = apply_payment(_make_booking(), _event())
        replay = apply_payment(after, _event(at=_AT + timedelta(minutes=5)))
        assert replay is after

    def test_same_tx_different_amount_conflicts(self) -> None:
        after = apply_payment(_make_booking(), _event())
        with pytest.raises(DuplicatePaymentError) as exc_info:
            apply_payment(after, _event(amount=20000))
        assert exc_info.value.http_status == 409

    def test_same_tx_different_type_conflicts(self) -> None:
        after = apply_payment(_make_booking(), _event())
        with pytest.raises(DuplicatePaymentError):
            apply_payment(after, _event(payment_type="full_payment"))

    def test_replay_after_settlement_is_noop(self) -> None:
        settled = apply_payment(_make_booking(), _event(50000, "full_payment", "tx-full"))
        assert apply_payment(settled, _event(50000, "full_payment", "tx-full")) is settled

    def test_is_duplicate_payment(self) -> None:
        after = apply_payment(_make_booking(), _event())
        assert is_duplicate_payment(after, _event())
        assert not is_duplicate_payment(after, _event(tx="tx2"))
        assert not is_duplicate_payment(after, _event(amount=1))
