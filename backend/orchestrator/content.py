"""
Text extraction from multi-part history items.

Pure helpers. No reducer logic.
"""

from __future__ import annotations

from typing import Any, Iterable

# part type -> field carrying its text
_TEXT_FIELDS: dict[str, str] = {
    "text": "text",
    "input_text": "text",
    "output_text": "text",
    "audio": "transcript",
    "input_audio": "transcript",
    "output_audio": "transcript",
}


def extract_text(content: Iterable[Any] | None) -> str:
    """
    Concatenate all text-bearing parts in part order.

    Parts are joined with a single space and the result is trimmed.
    Non-dict parts, unknown part types and missing/None fields contribute
    an empty string.
    """
    if not content:
        return ""

    pieces: list[str] = []
    for part in content:
        if not isinstance(part, dict):
            pieces.append("")
            continue
        field_name = _TEXT_FIELDS.get(part.get("type", ""))
        value = part.get(field_name) if field_name else None
        pieces.append(value if isinstance(value, str) else "")

    return " ".join(pieces).strip()
