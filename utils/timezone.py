"""UTC-everywhere time handling. Eliminates timezone bugs at the source."""

from datetime import date, datetime, timedelta, timezone
from typing import Callable

Clock = Callable[[], datetime]


def now_utc() -> datetime:
    """
    Current time in UTC.

    Use this instead of datetime.now() everywhere. Services accept a Clock
    and default to this function.
    """
    return datetime.now(timezone.utc)


def to_utc(dt: datetime) -> datetime:
    """
    Convert a datetime to UTC.

    Raises ValueError if datetime is naive (no timezone).
    """
    if dt.tzinfo is None:
        raise ValueError(
            "Cannot convert naive datetime to UTC. Datetime must be timezone-aware."
        )
    return dt.astimezone(timezone.utc)


def today_utc(now: datetime) -> date:
    """Calendar date of an aware datetime, in UTC."""
    return to_utc(now).date()


def add_days(day: date, days: int) -> date:
    return day + timedelta(days=days)


def fixed_clock(instant: datetime) -> Clock:
    """
    Clock that always returns the same instant.

    Intended for tests and replays where "now" must be deterministic.
    """
    instant = to_utc(instant)

    def clock() -> datetime:
        return instant

    return clock
