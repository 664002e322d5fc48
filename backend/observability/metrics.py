"""
Timing helpers for observability.

- Durations use monotonic time; ts_ms uses wall-clock time
- One metric = one log event, never aggregated
- `timed()` always stops its timer, even when the block raises
"""

from __future__ import annotations

import time
from contextlib import contextmanager
from typing import Any, Iterator

from observability.logger import log_event


@contextmanager
def timed(
    name: str,
    *,
    session_id: str | None = None,
    details: dict[str, Any] | None = None,
) -> Iterator[None]:
    """
    Measure the enclosed block and emit exactly one METRIC_TIMER line.

    Usage:
        with timed("transport_connect_latency", session_id=sid):
            await transport.connect(secret)

    The emitted line carries "ok": False when the block raised; the
    exception still propagates.
    """
    start_ns = time.monotonic_ns()
    ok = False
    try:
        yield
        ok = True
    finally:
        log_event({
            "ts_ms": time.time_ns() // 1_000_000,
            "event_type": "METRIC_TIMER",
            "metric": name,
            "value_ms": (time.monotonic_ns() - start_ns) // 1_000_000,
            "ok": ok,
            "session_id": session_id,
            "details": details or {},
        })
