"""
Time utilities for timestamps, ETA formatting and performance measurement.
"""
from __future__ import annotations

import logging
import time
from collections.abc import Iterator
from contextlib import contextmanager
from datetime import datetime, timezone


def now() -> float:
    """Get current timestamp in seconds (float)."""
    return time.time()


def ms() -> int:
    """Get current timestamp in milliseconds (int)."""
    return int(time.time() * 1000)


def utc_iso(ts: float | None = None) -> str:
    """ISO 8601 UTC timestamp with a trailing Z."""
    if ts is None:
        ts = now()
    return datetime.fromtimestamp(ts, tz=timezone.utc).isoformat().replace("+00:00", "Z")


def format_duration(duration_ms: float) -> str:
    """
    Format a remaining-time estimate for progress reporting.

    Below one second there is nothing useful to show ("---"); under a minute
    only seconds are shown ("16s"), otherwise minutes and seconds ("2m 5s").
    """
    if duration_ms < 1000:
        return "---"
    total_sec = int(duration_ms // 1000)
    minutes, seconds = divmod(total_sec, 60)
    return f"{minutes}m {seconds}s" if minutes > 0 else f"{seconds}s"


@contextmanager
def timer(label: str, logger: logging.Logger | None = None) -> Iterator[None]:
    """
    Context manager for timing operations.

    Usage:
        with timer("reference index build", logger):
            await builder.build_index()
    """
    start = now()
    try:
        yield
    finally:
        elapsed = now() - start
        msg = f"{label} took {elapsed:.3f}s"
        if logger:
            logger.debug(msg)
        else:
            print(msg)
