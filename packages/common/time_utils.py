"""Wall-clock helpers shared by services.

All timestamps are timezone-aware UTC. Durations exchanged with clients are
integer milliseconds.
"""
from __future__ import annotations

import datetime as _dt
from abc import ABC, abstractmethod

__all__ = ["SECOND_MS", "MINUTE_MS", "utcnow", "ms_between", "Clock", "SystemClock"]

SECOND_MS: int = 1_000
MINUTE_MS: int = 60_000


def utcnow() -> _dt.datetime:
    """Return the current time as an aware UTC datetime."""
    return _dt.datetime.now(tz=_dt.timezone.utc)


def ms_between(start: _dt.datetime, end: _dt.datetime) -> int:
    """Return whole milliseconds from `start` to `end` (negative if `end` is earlier)."""
    return int((end - start) / _dt.timedelta(milliseconds=1))


class Clock(ABC):
    """Source of "now" for code that must be testable against a fixed time."""

    @abstractmethod
    def now(self) -> _dt.datetime:
        """Return the current time as an aware UTC datetime."""


class SystemClock(Clock):
    def now(self) -> _dt.datetime:
        return utcnow()
