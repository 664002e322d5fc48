"""
Tool-call argument parsing.

Arguments arrive either as a JSON string or already structured. Malformed
input degrades to an empty argument object so the turn proceeds.
"""

from __future__ import annotations

import json
from typing import Any


def parse_tool_arguments(raw: Any) -> dict[str, Any]:
    if isinstance(raw, dict):
        return dict(raw)

    if isinstance(raw, (str, bytes, bytearray)):
        try:
            decoded = json.loads(raw)
        except (TypeError, ValueError):
            return {}
        return decoded if isinstance(decoded, dict) else {}

    return {}


def string_arg(args: dict[str, Any], key: str, default: str) -> str:
    """Non-empty string argument or default."""
    value = args.get(key)
    if isinstance(value, str) and value.strip():
        return value.strip()
    return default
