"""UTC datetime utilities."""

from datetime import datetime, timedelta, timezone

from src.wb_common.errors import InvalidRequestError


def utc_now() -> datetime:
    """Return timezone-aware UTC now."""
    return datetime.now(timezone.utc)


def require_utc(name: str, value: datetime) -> None:
    """Raise InvalidRequestError unless value is timezone-aware with a zero UTC offset."""
    if not isinstance(value, datetime) or value.tzinfo is None or value.utcoffset() is None:
        raise InvalidRequestError(f"{name} must be timezone-aware (UTC)")
    if value.utcoffset() != timedelta(0):
        raise InvalidRequestError(f"{name} must be a UTC timestamp (offset 0)")
