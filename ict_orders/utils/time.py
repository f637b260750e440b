"""Time helpers shared by services and stores."""

from __future__ import annotations

from datetime import date, datetime, time, timedelta, timezone


def utcnow() -> datetime:
    """Return the current time as an aware UTC datetime."""
    return datetime.now(timezone.utc)


def as_utc(value: datetime) -> datetime:
    """Return ``value`` as an aware UTC datetime.

    SQLite hands back naive datetimes for ``DateTime(timezone=True)`` columns;
    every timestamp we store is UTC, so a naive value is interpreted as UTC.
    """
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def next_after(previous: datetime | None, now: datetime | None = None) -> datetime:
    """Return a timestamp that is strictly later than ``previous``."""
    current = now or utcnow()
    if previous is None:
        return current
    floor = as_utc(previous) + timedelta(microseconds=1)
    return current if current >= floor else floor


def start_of_bound(value: date | datetime) -> datetime:
    """Resolve a lower range bound; a bare date means the start of that day."""
    if isinstance(value, datetime):
        return as_utc(value)
    return datetime.combine(value, time.min, tzinfo=timezone.utc)


def end_of_bound(value: date | datetime) -> datetime:
    """Resolve an upper range bound; a bare date means the end of that day."""
    if isinstance(value, datetime):
        return as_utc(value)
    return datetime.combine(value, time.max, tzinfo=timezone.utc)


def parse_date_or_datetime(raw: str) -> date | datetime:
    """Parse ``YYYY-MM-DD`` into a date and anything longer into a datetime."""
    text = raw.strip()
    if len(text) == 10:
        return date.fromisoformat(text)
    return datetime.fromisoformat(text.replace("Z", "+00:00"))
