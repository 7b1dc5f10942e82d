"""Epoch-millisecond clock utilities.

Round timestamps are stored as int epoch milliseconds so that window
arithmetic stays integer-only.
"""

import time
from datetime import datetime, timezone


def now_ms() -> int:
    """Return current wall-clock time in epoch milliseconds."""
    return int(time.time() * 1000)


def utc_now() -> datetime:
    """Return timezone-aware UTC now."""
    return datetime.now(timezone.utc)
