"""Unified error codes and custom exceptions.

Error code ranges:
  1xxx: Booking lifecycle
  2xxx: Payment
  3xxx: Quote
  9xxx: System
"""


class AppError(Exception):
    """Base application error."""

    def __init__(
        self,
        code: int,
        message: str,
        http_status: int = 500,
    ) -> None:
        self.code = code
        self.message = message
        self.http_status = http_status
        super().__init__(message)


# --- 1xxx: Booking ---

class BookingNotFoundError(AppError):
    def __init__(self, booking_id: str) -> None:
        super().__init__(1001, f"Booking not found: {booking_id}", 404)


class InvalidBookingStateError(AppError):
    def __init__(self, booking_id: str, status: str, action: str) -> None:
        super().__init__(
            1002,
            f"Booking {booking_id} in status {status} does not allow {action}",
            422,
        )


class ConcurrentBookingUpdateError(AppError):
    def __init__(self, booking_id: str) -> None:
        super().__init__(1003, f"Booking {booking_id} was modified concurrently", 409)


class CompletionAlreadyConfirmedError(AppError):
    def __init__(self, booking_id: str, party: str) -> None:
        super().__init__(
            1004, f"Booking {booking_id} completion already confirmed by {party}", 409
        )


# --- 2xxx: Payment ---

class InvalidPaymentAmountError(AppError):
    def __init__(self, amount: object) -> None:
        super().__init__(
            2001,
            f"Payment amount must be a positive centavo integer in range, got {amount!r}",
            422,
        )


class UnknownPaymentTypeError(AppError):
    def __init__(self, payment_type: str) -> None:
        super().__init__(2002, f"Unknown payment type: {payment_type}", 422)


class DuplicatePaymentError(AppError):
    def __init__(self, transaction_id: str) -> None:
        super().__init__(
            2003,
            f"Transaction {transaction_id} was already applied with different details",
            409,
        )


# --- 3xxx: Quote ---

class InvalidQuoteAmountError(AppError):
    def __init__(self, amount: object) -> None:
        super().__init__(
            3001,
            f"Quoted amount must be a positive centavo integer in range, got {amount!r}",
            422,
        )


# --- 9xxx: System ---

class RateLimitError(AppError):
    def __init__(self) -> None:
        super().__init__(9001, "Rate limit exceeded", 429)


class InternalError(AppError):
    def __init__(self, detail: str = "Internal server error") -> None:
        super().__init__(9002, detail, 500)


class InvalidRequestError(AppError):
    """Malformed input that no more specific error code describes."""

    def __init__(self, detail: str) -> None:
        super().__init__(9003, detail, 422)
