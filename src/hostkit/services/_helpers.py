"""Shared service-layer helper functions."""

from __future__ import annotations

import time
from datetime import UTC, datetime


def now_iso() -> str:
    """Current UTC time as standard ISO 8601."""
    return datetime.now(UTC).isoformat()


def elapsed_ms(started: float) -> int:
    """Milliseconds since *started* (a ``time.perf_counter()`` reading)."""
    return int((time.perf_counter() - started) * 1000)
