"""Tests for wb_common.enums — all enum values must match DB CHECK constraints."""

from src.wb_common.enums import BookingStatus, CompletionParty, DisplayCategory, PaymentType


class TestAllEnumsAreStr:
    """All enums inherit from (str, Enum) for JSON serialization."""

    def test_booking_status_is_str(self) -> None:
        assert isinstance(BookingStatus.REQUEST, str)
        assert BookingStatus.REQUEST == "request"

    def test_payment_type_is_str(self) -> None:
        assert PaymentType.DOWNPAYMENT == "downpayment"


class TestBookingStatus:
    def test_all_values(self) -> None:
        expected = {
            "request", "quote_sent", "quote_accepted", "confirmed", "downpayment_paid",
            "paid_in_full", "completed", "quote_rejected", "cancelled",
        }
        assert {s.value for s in BookingStatus} == expected


class TestPaymentType:
    def test_all_values(self) -> None:
        assert {t.value for t in PaymentType} == {
            "downpayment", "full_payment", "remaining_balance",
        }


class TestCompletionParty:
    def test_all_values(self) -> None:
        assert {p.value for p in CompletionParty} == {"vendor", "couple"}


class TestDisplayCategory:
    def test_count(self) -> None:
        assert len(DisplayCategory) == 8
