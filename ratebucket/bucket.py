"""Token bucket that stores its fill level as a single monotonic timestamp.

The bucket never keeps a token count. ``last_refreshed_ns`` is the virtual
time at which the most recent token was credited; the number of tokens on
hand is the number of whole refresh intervals between that point and now,
capped at ``max_capacity`` by never looking further back than
``max_refresh_duration_ns``.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field

from ratebucket import metrics
from ratebucket.clock import NANOS_PER_MILLI, NANOS_PER_SECOND, Clock, MonotonicClock
from ratebucket.errors import (
    BucketConfigError,
    ClockUnderflowError,
    DurationOverflowError,
    ZeroRefreshIntervalError,
)

logger = logging.getLogger(__name__)

# Durations are millisecond counts held in an unsigned 64-bit integer.
MAX_DURATION_MS = 2**64 - 1


@dataclass(repr=False)
class TokenBucket:
    """Single-owner token bucket; not safe for concurrent takers."""

    last_refreshed_ns: int
    refresh_interval_ns: int
    max_refresh_duration_ns: int
    clock: Clock = field(default_factory=MonotonicClock, compare=False)

    def __post_init__(self) -> None:
        _require_int("last_refreshed_ns", self.last_refreshed_ns)
        _require_int("refresh_interval_ns", self.refresh_interval_ns)
        _require_int("max_refresh_duration_ns", self.max_refresh_duration_ns)
        if self.refresh_interval_ns <= 0:
            raise ZeroRefreshIntervalError()
        if self.max_refresh_duration_ns < 0:
            raise BucketConfigError("max_refresh_duration_ns must be non-negative")
        if self.max_refresh_duration_ns % self.refresh_interval_ns:
            raise BucketConfigError(
                "max_refresh_duration_ns must be a whole number of refresh intervals"
            )
        if self.last_refreshed_ns < 0:
            raise ClockUnderflowError(-self.last_refreshed_ns, 0)

    @classmethod
    def create(
        cls,
        refresh_interval_ms: int,
        max_capacity: int,
        initial_capacity: int,
        clock: Clock | None = None,
    ) -> TokenBucket:
        """Build a bucket holding ``min(max_capacity, initial_capacity)`` tokens.

        Raises a ``BucketConfigError`` subclass when the interval is zero, when
        the capacity ceiling overflows the duration range, or when the clock
        cannot be back-dated far enough for the initial tokens.
        """
        for name, value in (
            ("refresh_interval_ms", refresh_interval_ms),
            ("max_capacity", max_capacity),
            ("initial_capacity", initial_capacity),
        ):
            _require_int(name, value)
            if value < 0:
                raise BucketConfigError(f"{name} must be non-negative, got {value}")
        if refresh_interval_ms == 0:
            raise ZeroRefreshIntervalError()
        if refresh_interval_ms * max_capacity > MAX_DURATION_MS:
            raise DurationOverflowError(refresh_interval_ms, max_capacity, MAX_DURATION_MS)

        clock = clock or MonotonicClock()
        refresh_interval_ns = refresh_interval_ms * NANOS_PER_MILLI
        offset_ns = refresh_interval_ns * min(max_capacity, initial_capacity)
        now = clock.now_ns()
        if offset_ns > now:
            raise ClockUnderflowError(offset_ns, now)

        return cls(
            last_refreshed_ns=now - offset_ns,
            refresh_interval_ns=refresh_interval_ns,
            max_refresh_duration_ns=refresh_interval_ns * max_capacity,
            clock=clock,
        )

    @classmethod
    def new(
        cls,
        refresh_interval_ms: int,
        max_capacity: int,
        initial_capacity: int,
        clock: Clock | None = None,
    ) -> TokenBucket | None:
        """Like ``create`` but returns None instead of raising."""
        try:
            return cls.create(refresh_interval_ms, max_capacity, initial_capacity, clock)
        except BucketConfigError:
            return None

    def try_take(self) -> bool:
        """Consume one token if a whole one is available right now."""
        now = self.clock.now_ns()
        next_refreshed = self._effective_last_refreshed(now) + self.refresh_interval_ns
        if now < next_refreshed:
            metrics.record_try_take(False)
            return False
        self.last_refreshed_ns = next_refreshed
        metrics.record_try_take(True)
        return True

    def take(self) -> None:
        """Consume one token, sleeping until it accrues if the bucket is empty.

        The wake deadline is fixed before sleeping and becomes the new
        ``last_refreshed_ns``, so late wake-ups do not push later tokens back.
        An early wake-up is not retried; the next call sleeps the remainder.
        """
        now = self.clock.now_ns()
        next_refreshed = self._effective_last_refreshed(now) + self.refresh_interval_ns
        wait_ns = next_refreshed - now
        if wait_ns > 0:
            logger.debug(
                "Bucket empty; sleeping %.3f ms for next token (interval %.3f ms).",
                wait_ns / NANOS_PER_MILLI,
                self.refresh_interval_ns / NANOS_PER_MILLI,
            )
            self.clock.sleep_ns(wait_ns)
        self.last_refreshed_ns = next_refreshed
        metrics.record_take(max(wait_ns, 0) / NANOS_PER_SECOND)

    def available_tokens(self) -> int:
        """Whole tokens currently in the bucket; does not consume anything."""
        if self.refresh_interval_ns <= 0:
            return 0
        now = self.clock.now_ns()
        elapsed = now - self._effective_last_refreshed(now)
        return max(elapsed, 0) // self.refresh_interval_ns

    def _effective_last_refreshed(self, now: int) -> int:
        return max(self.last_refreshed_ns, now - self.max_refresh_duration_ns)

    def __repr__(self) -> str:
        return f"TokenBucket({self.available_tokens()})"


def _require_int(name: str, value: object) -> None:
    # bool is an int subclass but never a meaningful count.
    if isinstance(value, bool) or not isinstance(value, int):
        raise BucketConfigError(f"{name} must be an integer, got {value!r}")
