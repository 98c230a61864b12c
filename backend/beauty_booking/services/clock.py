"""
Single time source for the engine.

Every "now" read goes through a Clock so availability and policy decisions
can be pinned in tests. Transitions sample the clock once and pass the value
down.
"""

from datetime import datetime, timedelta, timezone
from zoneinfo import ZoneInfo


class SystemClock:
    """Wall clock, always timezone-aware UTC."""

    def now(self) -> datetime:
        return datetime.now(timezone.utc)


class FixedClock:
    """Clock frozen at a given instant; naive values are taken as UTC."""

    def __init__(self, at: datetime):
        if at.tzinfo is None:
            at = at.replace(tzinfo=timezone.utc)
        self._at = at

    def now(self) -> datetime:
        return self._at

    def advance(self, **delta) -> None:
        self._at += timedelta(**delta)

    def set(self, at: datetime) -> None:
        if at.tzinfo is None:
            at = at.replace(tzinfo=timezone.utc)
        self._at = at


_system_clock = SystemClock()


def get_clock():
    """FastAPI dependency; overridden in tests."""
    return _system_clock


def to_local(now: datetime, tz_name: str) -> datetime:
    """Convert an aware instant to naive provider-local wall time."""
    return now.astimezone(ZoneInfo(tz_name)).replace(tzinfo=None)


def to_storage(now: datetime) -> datetime:
    """Naive UTC, the form DateTime columns hold."""
    return now.astimezone(timezone.utc).replace(tzinfo=None)
