"""
JSONL event logger.

- Write one JSON object per line
- Output to stdout
- No buffering, no batching
- Level threshold from config (LOG_LEVEL); below-threshold events are dropped
"""

from __future__ import annotations

import json
import sys
from typing import Any, Mapping, Callable


LEVELS: dict[str, int] = {
    "debug": 10,
    "info": 20,
    "warning": 30,
    "error": 40,
}


# ------------------------------------------------------------------
# Explicit output sink (patchable in tests)
# ------------------------------------------------------------------

def _stdout_print(line: str) -> None:
    sys.stdout.write(line + "\n")
    sys.stdout.flush()

_print: Callable[[str], None] = _stdout_print

_min_level: int = LEVELS["info"]


def configure(level: str) -> None:
    """Set the minimum level; unknown names fall back to info."""
    global _min_level  # pylint: disable=global-statement
    _min_level = LEVELS.get(level.strip().lower(), LEVELS["info"])


def log_event(event: Mapping[str, Any], *, level: str = "info") -> None:
    """
    Write a single JSONL event to stdout.

    The caller supplies a fully-formed event dict (ts_ms, session_id,
    event_type, ...). The level is recorded on the line.

    Never raises.
    """
    if LEVELS.get(level, LEVELS["info"]) < _min_level:
        return

    try:
        line = json.dumps(
            {**event, "level": level},
            ensure_ascii=False,
            separators=(",", ":"),
        )
    except (TypeError, ValueError) as e:
        # Logging must never crash the runtime
        fallback: dict[str, Any] = {
            "ts_ms": event.get("ts_ms"),
            "event_type": "LOGGER_SERIALIZATION_ERROR",
            "level": "error",
            "error": str(e),
            "original_event_repr": repr(event),
        }
        line = json.dumps(fallback, ensure_ascii=False, separators=(",", ":"))

    _print(line)
