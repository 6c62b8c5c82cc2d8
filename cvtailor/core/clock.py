"""UTC time helpers shared by the store, processor and status reader."""

from datetime import datetime, timezone


def utcnow() -> datetime:
    """Current time as an aware UTC datetime."""
    return datetime.now(timezone.utc)


def as_utc(value: datetime | None) -> datetime | None:
    """Treat naive datetimes (SQLite round-trips) as UTC."""
    if value is None:
        return None
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def elapsed_ms(start: datetime | None, end: datetime | None) -> int | None:
    """Milliseconds between two timestamps, never negative."""
    start, end = as_utc(start), as_utc(end)
    if start is None or end is None:
        return None
    return max(0, int((end - start).total_seconds() * 1000))
