"""
Capture requests for tool-driven recordings.

Media capture and upload happen in the client or in an injected recorder;
this module only derives the target path and the request handed to it.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from datetime import datetime, timezone

from constants import RECORDING_FILE_EXTENSIONS
from orchestrator.enums.recording import RecordingKind


_UNSAFE_PATH_CHARS = re.compile(r"[^a-zA-Z0-9]")


def sanitize_path_segment(value: str) -> str:
    return _UNSAFE_PATH_CHARS.sub("_", value)


def format_recording_path(
    subject_name: str,
    purpose: str,
    kind: RecordingKind,
    when: datetime,
) -> str:
    """
    <Subject>/<YYYY-MM-DD>/<Subject>_<Purpose>_<HH-MM-SS>.<ext>

    `when` is rendered in UTC.
    """
    when = when.astimezone(timezone.utc)
    name = sanitize_path_segment(subject_name)
    return (
        f"{name}/{when.strftime('%Y-%m-%d')}/"
        f"{name}_{sanitize_path_segment(purpose)}_{when.strftime('%H-%M-%S')}"
        f".{RECORDING_FILE_EXTENSIONS[kind.value]}"
    )


@dataclass(frozen=True)
class CaptureRequest:
    """Everything the recorder needs to begin one capture."""
    kind: RecordingKind
    purpose: str
    description: str
    subject_name: str
    target_path: str

