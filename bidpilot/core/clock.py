"""Time source for ingestion.

Everything that needs "now" (deadline fallback, log timestamps, retention
cutoffs) takes a clock instead of reading the wall clock directly, so tests
can freeze or advance time.

All values are naive UTC datetimes, matching what the tables store.
"""
from __future__ import annotations

from datetime import datetime, timedelta, timezone


def naive_utc(value: datetime) -> datetime:
    """Aware datetimes are converted to UTC; naive ones are assumed to be UTC already."""
    if value.tzinfo is not None:
        return value.astimezone(timezone.utc).replace(tzinfo=None)
    return value


class SystemClock:
    def now(self) -> datetime:
        return datetime.now(timezone.utc).replace(tzinfo=None)


class FrozenClock:
    """Clock that only moves when told to."""

    def __init__(self, start: datetime) -> None:
        self._now = naive_utc(start)

    def now(self) -> datetime:
        return self._now

    def advance(self, **kwargs) -> datetime:
        self._now = self._now + timedelta(**kwargs)
        return self._now

    def set(self, value: datetime) -> None:
        self._now = naive_utc(value)


system_clock = SystemClock()
