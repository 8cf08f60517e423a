"""
utils.py — Time helpers
All persisted timestamps are naive UTC so they compare cleanly on SQLite
and PostgreSQL alike.
"""

from datetime import datetime, timedelta, timezone


def utcnow() -> datetime:
    return datetime.now(timezone.utc).replace(tzinfo=None)


def to_naive_utc(value: datetime | None) -> datetime | None:
    """Convert an aware datetime to naive UTC; naive values are assumed UTC already."""
    if value is None:
        return None
    if value.tzinfo is not None:
        value = value.astimezone(timezone.utc).replace(tzinfo=None)
    return value


def day_bounds(value: datetime) -> tuple[datetime, datetime]:
    """Start (inclusive) and end (exclusive) of the calendar day containing value."""
    start = value.replace(hour=0, minute=0, second=0, microsecond=0)
    return start, start + timedelta(days=1)
