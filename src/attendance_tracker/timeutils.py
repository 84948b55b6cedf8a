"""Local-time helpers shared by the code authority and session engine."""

from datetime import datetime, time, timedelta
from zoneinfo import ZoneInfo


def local_now(timezone_name: str, now: datetime | None = None) -> datetime:
    """Return `now` as an aware datetime in the given timezone.

    Naive values are interpreted as already being local wall-clock time.
    """
    tz = ZoneInfo(timezone_name)
    if now is None:
        return datetime.now(tz=tz)
    if now.tzinfo is None:
        return now.replace(tzinfo=tz)
    return now.astimezone(tz)


def midnight_after_next_day(issued_at: datetime) -> datetime:
    """Return local midnight two calendar days after `issued_at`.

    A code issued at 2024-01-10T15:00 stays valid through all of 2024-01-11.
    """
    expiry_day = issued_at.date() + timedelta(days=2)
    return datetime.combine(expiry_day, time.min, tzinfo=issued_at.tzinfo)


def format_hours(elapsed: timedelta) -> str:
    """Format an elapsed duration as hours with two decimals."""
    seconds = max(elapsed.total_seconds(), 0.0)
    return f"{seconds / 3600:.2f}"
