"""Global enums — must match DB CHECK constraints exactly."""

from enum import Enum


class BookingStatus(str, Enum):
    REQUEST = "request"
    QUOTE_SENT = "quote_sent"
    QUOTE_ACCEPTED = "quote_accepted"
    CONFIRMED = "confirmed"
    DOWNPAYMENT_PAID = "downpayment_paid"
    PAID_IN_FULL = "paid_in_full"
    COMPLETED = "completed"
    QUOTE_REJECTED = "quote_rejected"
    CANCELLED = "cancelled"


class PaymentType(str, Enum):
    DOWNPAYMENT = "downpayment"
    FULL_PAYMENT = "full_payment"
    REMAINING_BALANCE = "remaining_balance"


class CompletionParty(str, Enum):
    VENDOR = "vendor"
    COUPLE = "couple"


class DisplayCategory(str, Enum):
    """UI bucket for a booking; several statuses may share one bucket."""
    AWAITING_QUOTE = "awaiting_quote"
    QUOTE_RECEIVED = "quote_received"
    CONFIRMED = "confirmed"
    DEPOSIT_PAID = "deposit_paid"
    FULLY_PAID = "fully_paid"
    COMPLETED = "completed"
    DECLINED = "declined"
    CANCELLED = "cancelled"
