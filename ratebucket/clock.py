"""Monotonic time sources used by the token bucket."""

from __future__ import annotations

import time
from dataclasses import dataclass, field
from typing import Protocol

NANOS_PER_SECOND = 1_000_000_000
NANOS_PER_MILLI = 1_000_000


class Clock(Protocol):
    """Minimal time source: a monotonic reading and a way to wait."""

    def now_ns(self) -> int:
        """Return the current monotonic time in nanoseconds."""

    def sleep_ns(self, duration_ns: int) -> None:
        """Block the caller for ``duration_ns`` nanoseconds."""


class MonotonicClock:
    """Process monotonic clock backed by ``time.monotonic_ns``."""

    def now_ns(self) -> int:
        return time.monotonic_ns()

    def sleep_ns(self, duration_ns: int) -> None:
        if duration_ns > 0:
            time.sleep(duration_ns / NANOS_PER_SECOND)


@dataclass
class ManualClock:
    """Virtual clock that only moves when told to.

    ``sleep_ns`` advances the clock instead of blocking, so blocking code can
    be driven deterministically. ``overshoot_ns`` is added to every sleep to
    model a scheduler that wakes late.
    """

    start_ns: int = 0
    overshoot_ns: int = 0
    sleeps: list[int] = field(default_factory=list)
    _now_ns: int = field(init=False)

    def __post_init__(self) -> None:
        if self.start_ns < 0:
            raise ValueError("start_ns must be non-negative")
        if self.overshoot_ns < 0:
            raise ValueError("overshoot_ns must be non-negative")
        self._now_ns = self.start_ns

    def now_ns(self) -> int:
        return self._now_ns

    def sleep_ns(self, duration_ns: int) -> None:
        if duration_ns < 0:
            raise ValueError("cannot sleep for a negative duration")
        self.sleeps.append(duration_ns)
        self._now_ns += duration_ns + self.overshoot_ns

    def advance_ns(self, duration_ns: int) -> None:
        if duration_ns < 0:
            raise ValueError("clock cannot move backwards")
        self._now_ns += duration_ns

    def advance(self, seconds: float) -> None:
        self.advance_ns(round(seconds * NANOS_PER_SECOND))

    def advance_ms(self, millis: int) -> None:
        self.advance_ns(millis * NANOS_PER_MILLI)
