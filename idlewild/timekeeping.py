"""Timekeeping utilities for Idlewild."""

from __future__ import annotations

import time

MS_PER_SECOND = 1000


def now_ms() -> int:
    return int(time.time() * MS_PER_SECOND)


def normalize_timestamp(value: object) -> int:
    try:
        stamp = int(value)  # type: ignore[arg-type]
    except (TypeError, ValueError):
        return 0
    return max(stamp, 0)


def elapsed_seconds(now: int, last_saved: int) -> int:
    """Whole seconds between two epoch-millisecond stamps (negative if clocks went back)."""

    return (normalize_timestamp(now) - normalize_timestamp(last_saved)) // MS_PER_SECOND


def offline_seconds(now: int, last_saved: int, *, max_seconds: int) -> int:
    elapsed = elapsed_seconds(now, last_saved)
    if elapsed <= 0:
        return 0
    return min(elapsed, max(int(max_seconds), 0))


def interval_seconds(interval_ms: int) -> float:
    return max(int(interval_ms), 1) / MS_PER_SECOND
