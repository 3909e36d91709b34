"""UTC timestamp helpers.

All timestamps are stored as ISO-8601 strings with an explicit UTC offset.
Naive datetimes are interpreted as UTC.
"""

from __future__ import annotations

from datetime import datetime, timezone


def utc_now() -> datetime:
    """Current time as an aware UTC datetime."""
    return datetime.now(timezone.utc)


def ensure_utc(value: datetime) -> datetime:
    """Attach UTC to naive datetimes, convert aware ones to UTC."""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def to_iso(value: datetime) -> str:
    """Serialize a datetime for storage."""
    return ensure_utc(value).isoformat()


def from_iso(value: str) -> datetime:
    """Parse a stored timestamp back into an aware UTC datetime."""
    return ensure_utc(datetime.fromisoformat(value))
