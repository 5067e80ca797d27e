"""Command-line driver that builds one bucket and reports its state."""

from __future__ import annotations

import argparse
import logging
import time
from typing import Callable

from ratebucket.bucket import TokenBucket
from ratebucket.clock import NANOS_PER_MILLI, Clock
from ratebucket.config import bucket_config_from_env
from ratebucket.errors import BucketConfigError, ConfigError

logger = logging.getLogger("ratebucket.cli")

EXIT_OK = 0
EXIT_CONFIG = 2


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="ratebucket",
        description="Build a token bucket, let it fill, and print its token count.",
    )
    parser.add_argument(
        "--refresh-interval-ms",
        type=int,
        default=None,
        help="Milliseconds to accrue one token (overrides RATEBUCKET_REFRESH_INTERVAL_MS).",
    )
    parser.add_argument(
        "--max-capacity",
        type=int,
        default=None,
        help="Most tokens the bucket holds while idle (overrides RATEBUCKET_MAX_CAPACITY).",
    )
    parser.add_argument(
        "--initial-capacity",
        type=int,
        default=None,
        help="Tokens available right after construction (overrides RATEBUCKET_INITIAL_CAPACITY).",
    )
    parser.add_argument(
        "--warmup-seconds",
        type=float,
        default=2.0,
        help="Seconds to wait before printing the bucket state (default: 2.0).",
    )
    parser.add_argument(
        "--takes",
        type=int,
        default=0,
        help="Number of blocking takes to perform after the report.",
    )
    return parser


def _run_takes(bucket: TokenBucket, count: int) -> None:
    start_ns = bucket.clock.now_ns()
    for index in range(count):
        bucket.take()
        elapsed_ms = (bucket.clock.now_ns() - start_ns) / NANOS_PER_MILLI
        logger.info("Take %s/%s at +%.1f ms.", index + 1, count, elapsed_ms)


def main(
    argv: list[str] | None = None,
    clock: Clock | None = None,
    sleep_func: Callable[[float], None] = time.sleep,
) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    logging.basicConfig(level=logging.INFO, format="%(asctime)s %(levelname)s %(message)s")

    try:
        config = bucket_config_from_env().with_overrides(
            refresh_interval_ms=args.refresh_interval_ms,
            max_capacity=args.max_capacity,
            initial_capacity=args.initial_capacity,
        )
        bucket = config.build(clock=clock)
    except (ConfigError, BucketConfigError) as exc:
        logger.error("Cannot construct token bucket: %s", exc)
        return EXIT_CONFIG

    logger.info(
        "Token bucket ready (interval=%s ms, max=%s, initial=%s).",
        config.refresh_interval_ms,
        config.max_capacity,
        config.initial_capacity,
    )
    if args.warmup_seconds > 0:
        sleep_func(args.warmup_seconds)
    print(repr(bucket))

    if args.takes > 0:
        _run_takes(bucket, args.takes)
    return EXIT_OK
