"""Exceptions raised while building token buckets."""

from __future__ import annotations


class BucketConfigError(ValueError):
    """Bucket parameters that cannot produce a valid bucket."""


class ZeroRefreshIntervalError(BucketConfigError):
    def __init__(self) -> None:
        super().__init__("refresh_interval_ms must be greater than zero")


class DurationOverflowError(BucketConfigError):
    """refresh_interval_ms * max_capacity does not fit the duration range."""

    def __init__(self, refresh_interval_ms: int, max_capacity: int, limit_ms: int) -> None:
        self.duration_ms = refresh_interval_ms * max_capacity
        self.limit_ms = limit_ms
        super().__init__(
            f"max refresh duration {refresh_interval_ms} ms x {max_capacity} "
            f"exceeds {limit_ms} ms"
        )


class ClockUnderflowError(BucketConfigError):
    """The monotonic clock is too young to back-date the initial tokens."""

    def __init__(self, offset_ns: int, now_ns: int) -> None:
        self.offset_ns = offset_ns
        self.now_ns = now_ns
        super().__init__(
            f"cannot place last refresh {offset_ns} ns before clock reading {now_ns} ns"
        )


class ConfigError(ValueError):
    """Invalid bucket settings supplied through the environment or CLI."""
