"""
Domain time utilities (pure).

Timestamps cross the service boundary in two shapes: timezone-aware UTC
datetimes inside the domain, and integer epoch milliseconds on the wire
(storage keys, signed URL expiries).
"""

from __future__ import annotations

from datetime import datetime, timedelta, timezone

EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)


def require_utc_timestamp(name: str, value: datetime) -> None:
    """
    Enforces that a timestamp is UTC.

    Invariants:
    - Timestamps must be timezone-aware.
    - Timestamps must have UTC offset 0.
    """

    if value.tzinfo is None or value.utcoffset() is None:
        raise ValueError(f"{name} must be timezone-aware (UTC)")
    if value.utcoffset() != timedelta(0):
        raise ValueError(f"{name} must be a UTC timestamp (offset 0)")


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def to_epoch_ms(value: datetime) -> int:
    """Convert a UTC datetime to integer epoch milliseconds (truncating)."""

    require_utc_timestamp("value", value)
    return (value - EPOCH) // timedelta(milliseconds=1)


def from_epoch_ms(value: int) -> datetime:
    return EPOCH + timedelta(milliseconds=value)
