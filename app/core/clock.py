"""Injectable wall clock.

All timestamps in this service are naive UTC datetimes, matching what the
DateTime columns store.
"""

from datetime import datetime, timedelta, timezone


def utcnow() -> datetime:
    return datetime.now(timezone.utc).replace(tzinfo=None)


class Clock:
    """Default clock reading the system time."""

    def now(self) -> datetime:
        return utcnow()


class FrozenClock(Clock):
    """Clock pinned to a fixed instant; advance it explicitly."""

    def __init__(self, instant: datetime | None = None):
        self.instant = instant or utcnow()

    def now(self) -> datetime:
        return self.instant

    def advance(self, **kwargs) -> datetime:
        self.instant = self.instant + timedelta(**kwargs)
        return self.instant


system_clock = Clock()
