"""Prometheus instruments updated by token bucket operations."""

from __future__ import annotations

from prometheus_client import Counter, Histogram

BUCKET_TAKES_TOTAL = Counter(
    "ratebucket_takes_total",
    "Token consumption attempts by mode and outcome",
    ["mode", "outcome"],
)
BUCKET_WAIT_SECONDS = Histogram(
    "ratebucket_wait_seconds",
    "Time take() slept waiting for the next token",
    buckets=(0.0001, 0.001, 0.005, 0.01, 0.05, 0.1, 0.5, 1.0, 5.0, float("inf")),
)

# Resolved once so the take paths skip the label lookup.
TRY_TAKE_ACQUIRED = BUCKET_TAKES_TOTAL.labels(mode="try_take", outcome="acquired")
TRY_TAKE_UNAVAILABLE = BUCKET_TAKES_TOTAL.labels(mode="try_take", outcome="unavailable")
TAKE_ACQUIRED = BUCKET_TAKES_TOTAL.labels(mode="take", outcome="acquired")
TAKE_WAITED = BUCKET_TAKES_TOTAL.labels(mode="take", outcome="waited")


def record_try_take(acquired: bool) -> None:
    if acquired:
        TRY_TAKE_ACQUIRED.inc()
    else:
        TRY_TAKE_UNAVAILABLE.inc()


def record_take(wait_seconds: float) -> None:
    if wait_seconds > 0:
        TAKE_WAITED.inc()
        BUCKET_WAIT_SECONDS.observe(wait_seconds)
    else:
        TAKE_ACQUIRED.inc()
