"""Bucket parameters and their environment-variable loader."""

from __future__ import annotations

import os
from dataclasses import dataclass, replace
from typing import Mapping

from ratebucket.bucket import TokenBucket
from ratebucket.clock import Clock
from ratebucket.errors import ConfigError

ENV_REFRESH_INTERVAL_MS = "RATEBUCKET_REFRESH_INTERVAL_MS"
ENV_MAX_CAPACITY = "RATEBUCKET_MAX_CAPACITY"
ENV_INITIAL_CAPACITY = "RATEBUCKET_INITIAL_CAPACITY"


@dataclass(frozen=True)
class BucketConfig:
    """Construction parameters for a TokenBucket."""

    refresh_interval_ms: int = 100
    max_capacity: int = 25
    initial_capacity: int = 3

    def build(self, clock: Clock | None = None) -> TokenBucket:
        """Create the bucket; raises BucketConfigError on invalid parameters."""
        return TokenBucket.create(
            self.refresh_interval_ms,
            self.max_capacity,
            self.initial_capacity,
            clock=clock,
        )

    def with_overrides(
        self,
        refresh_interval_ms: int | None = None,
        max_capacity: int | None = None,
        initial_capacity: int | None = None,
    ) -> BucketConfig:
        """Return a copy with every non-None argument applied."""
        changes = {
            name: value
            for name, value in (
                ("refresh_interval_ms", refresh_interval_ms),
                ("max_capacity", max_capacity),
                ("initial_capacity", initial_capacity),
            )
            if value is not None
        }
        return replace(self, **changes)


def bucket_config_from_env(environ: Mapping[str, str] | None = None) -> BucketConfig:
    """Read RATEBUCKET_* variables, falling back to BucketConfig defaults."""
    env = os.environ if environ is None else environ
    defaults = BucketConfig()
    return BucketConfig(
        refresh_interval_ms=_non_negative_int(env, ENV_REFRESH_INTERVAL_MS, defaults.refresh_interval_ms),
        max_capacity=_non_negative_int(env, ENV_MAX_CAPACITY, defaults.max_capacity),
        initial_capacity=_non_negative_int(env, ENV_INITIAL_CAPACITY, defaults.initial_capacity),
    )


def _non_negative_int(env: Mapping[str, str], name: str, default: int) -> int:
    raw = env.get(name)
    if raw is None or not raw.strip():
        return default
    try:
        value = int(raw)
    except ValueError as exc:
        raise ConfigError(f"{name} must be an integer, got {raw!r}") from exc
    if value < 0:
        raise ConfigError(f"{name} must be non-negative, got {value}")
    return value
