"""UTC time helpers. Every timestamp the engine compares is timezone-aware UTC."""

from datetime import datetime, timezone
from typing import Optional


def utc_now() -> datetime:
    """Return timezone-aware UTC datetime."""
    return datetime.now(timezone.utc)


def ensure_utc(value: Optional[datetime]) -> Optional[datetime]:
    """Attach UTC to naive datetimes and convert aware ones to UTC."""
    if value is None:
        return None
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def now_or_utc(now: Optional[datetime]) -> datetime:
    """The given instant in UTC, or the current time when none is given."""
    if now is None:
        return utc_now()
    return ensure_utc(now)
