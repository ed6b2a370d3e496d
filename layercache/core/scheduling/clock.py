"""
Clock Abstraction

Every time-dependent component (local TTLs, breaker cooldown, in-memory backend
expiry, periodic jobs) reads time through a Clock so tests can drive virtual
time instead of sleeping.
"""

import time
from typing import Protocol, runtime_checkable


@runtime_checkable
class Clock(Protocol):
    """Source of monotonic time in seconds."""

    def now(self) -> float:
        ...


class SystemClock:
    """Wall clock backed by time.monotonic()."""

    def now(self) -> float:
        return time.monotonic()


class ManualClock:
    """
    Clock that only moves when told to.

    Usage:
        clock = ManualClock()
        cache.set("user:42", data, ttl_ms=5000)
        clock.advance(6)
        assert cache.get("user:42") is None
    """

    def __init__(self, start: float = 0.0):
        self._now = start

    def now(self) -> float:
        return self._now

    def advance(self, seconds: float) -> float:
        """Move time forward and return the new reading."""
        if seconds < 0:
            raise ValueError("ManualClock cannot move backwards")
        self._now += seconds
        return self._now
