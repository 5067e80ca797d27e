from __future__ import annotations

import logging
import time

from ratebucket import ManualClock, TokenBucket

START_NS = 60_000_000_000
MS = 1_000_000
# Platform sleep overshoot budget, in seconds.
EPSILON = 0.005


def test_can_take_all_initial():
    bucket = TokenBucket.new(50, 3, 3)

    start = time.monotonic()
    for _ in range(3):
        bucket.take()
    elapsed = time.monotonic() - start

    assert elapsed < EPSILON


def test_can_take_after_waiting():
    # Measured from before construction so the full interval is guaranteed.
    start = time.monotonic()
    bucket = TokenBucket.new(50, 2, 1)
    bucket.take()
    bucket.take()
    elapsed = time.monotonic() - start

    assert 0.050 <= elapsed <= 0.050 + EPSILON


def test_can_take_multiple_after_waiting():
    start = time.monotonic()
    bucket = TokenBucket.new(10, 2, 0)
    for _ in range(10):
        bucket.take()
    elapsed = time.monotonic() - start

    assert 0.100 <= elapsed <= 0.100 + EPSILON


def test_can_take_generated_tokens():
    bucket = TokenBucket.new(50, 2, 0)
    time.sleep(0.1)

    start = time.monotonic()
    bucket.take()
    bucket.take()
    elapsed = time.monotonic() - start

    assert elapsed < EPSILON


def test_take_sleeps_exactly_until_next_token():
    clock = ManualClock(start_ns=START_NS)
    bucket = TokenBucket.new(100, 2, 0, clock=clock)

    clock.advance_ms(30)
    bucket.take()

    assert clock.sleeps == [70 * MS]
    assert bucket.last_refreshed_ns == START_NS + 100 * MS
    assert clock.now_ns() == bucket.last_refreshed_ns


def test_take_with_tokens_does_not_sleep():
    clock = ManualClock(start_ns=START_NS)
    bucket = TokenBucket.new(100, 2, 2, clock=clock)

    bucket.take()
    bucket.take()

    assert clock.sleeps == []
    assert clock.now_ns() == START_NS


def test_sleep_never_exceeds_one_interval():
    clock = ManualClock(start_ns=START_NS, overshoot_ns=7 * MS)
    bucket = TokenBucket.new(25, 4, 0, clock=clock)

    for _ in range(20):
        bucket.take()

    assert clock.sleeps
    assert max(clock.sleeps) <= 25 * MS


def test_overshoot_does_not_accumulate():
    clock = ManualClock(start_ns=START_NS, overshoot_ns=3 * MS)
    bucket = TokenBucket.new(10, 5, 0, clock=clock)

    for k in range(1, 11):
        bucket.take()
        assert bucket.last_refreshed_ns == START_NS + k * 10 * MS

    # Each wake is late by the overshoot, so later sleeps shrink to compensate.
    assert clock.sleeps[0] == 10 * MS
    assert all(sleep == 7 * MS for sleep in clock.sleeps[1:])


def test_early_wake_is_absorbed_by_next_take():
    class EarlyClock(ManualClock):
        def sleep_ns(self, duration_ns: int) -> None:
            super().sleep_ns(duration_ns)
            self._now_ns -= 2 * MS

    clock = EarlyClock(start_ns=START_NS)
    bucket = TokenBucket.new(10, 1, 0, clock=clock)

    bucket.take()
    assert bucket.last_refreshed_ns == START_NS + 10 * MS
    assert clock.now_ns() == START_NS + 8 * MS

    bucket.take()
    assert clock.sleeps == [10 * MS, 12 * MS]
    assert bucket.last_refreshed_ns == START_NS + 20 * MS


def test_take_logs_sleep_at_debug(caplog):
    clock = ManualClock(start_ns=START_NS)
    bucket = TokenBucket.new(100, 1, 0, clock=clock)

    with caplog.at_level(logging.DEBUG, logger="ratebucket.bucket"):
        bucket.take()

    assert "sleeping 100.000 ms" in caplog.text
