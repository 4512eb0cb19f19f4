"""
Time Utilities

MongoDB hands back naive datetimes (implicitly UTC) unless the client is tz-aware,
so every comparison against "now" goes through ensure_utc().
"""

from datetime import datetime, timezone


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def ensure_utc(dt: datetime) -> datetime:
    """Attach UTC to a naive datetime, convert an aware one."""
    if dt.tzinfo is None:
        return dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc)


def to_naive_utc(dt: datetime) -> datetime:
    """Naive UTC form used in store queries."""
    return ensure_utc(dt).replace(tzinfo=None)
