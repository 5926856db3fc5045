"""
UTC datetime utilities for consistent timezone handling.

Execution timestamps, statistics windows and exported rule snapshots are
all timezone-aware UTC. Use these helpers instead of datetime.now().
"""

from datetime import UTC, datetime, timedelta


def utc_now() -> datetime:
    """
    Return the current UTC datetime with timezone info.

    Returns:
        Timezone-aware datetime in UTC
    """
    return datetime.now(UTC)


def ensure_utc(dt: datetime | None) -> datetime | None:
    """
    Ensure a datetime is UTC-aware.

    Naive values (e.g. read back from SQLite in tests) are assumed to be UTC;
    aware values are converted.

    Args:
        dt: A datetime that may be naive or aware

    Returns:
        UTC-aware datetime or None
    """
    if dt is None:
        return None
    if dt.tzinfo is None:
        return dt.replace(tzinfo=UTC)
    return dt.astimezone(UTC)


def window_start(
    *, days: int = 0, hours: int = 0, reference: datetime | None = None
) -> datetime:
    """Return the start of a look-back window ending at reference (default now)."""
    return (reference or utc_now()) - timedelta(days=days, hours=hours)
