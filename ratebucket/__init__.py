"""Token-bucket rate limiting on a monotonic virtual clock."""

from __future__ import annotations

from .bucket import MAX_DURATION_MS, TokenBucket
from .clock import Clock, ManualClock, MonotonicClock
from .config import BucketConfig, bucket_config_from_env
from .errors import (
    BucketConfigError,
    ClockUnderflowError,
    ConfigError,
    DurationOverflowError,
    ZeroRefreshIntervalError,
)

__all__ = [
    "MAX_DURATION_MS",
    "BucketConfig",
    "BucketConfigError",
    "Clock",
    "ClockUnderflowError",
    "ConfigError",
    "DurationOverflowError",
    "ManualClock",
    "MonotonicClock",
    "TokenBucket",
    "ZeroRefreshIntervalError",
    "bucket_config_from_env",
]
