"""
Recording orchestration enumerations.

Rules:
- Enums only. No behavior, no side effects.
- Phase transitions are defined exclusively in the reducer.
"""

from __future__ import annotations

from enum import Enum


class RecordingPhase(str, Enum):
    """
    Lifecycle of a capture started by a tool call.

    IDLE -> ARMED        startRecording observed, assistant interrupted
    ARMED -> RECORDING   settle delay elapsed, capture requested
    RECORDING -> STOPPING  stopRecording observed
    STOPPING -> PROCESSING recorder signalled to finalize
    PROCESSING -> IDLE   recording completed or failed
    """

    IDLE = "IDLE"
    ARMED = "ARMED"
    RECORDING = "RECORDING"
    STOPPING = "STOPPING"
    PROCESSING = "PROCESSING"


class RecordingKind(str, Enum):
    """Media kind requested by the capture tool call."""

    AUDIO = "audio"
    VIDEO = "video"

    @classmethod
    def parse(cls, raw: object) -> RecordingKind:
        if isinstance(raw, str) and raw.strip().lower() == cls.VIDEO.value:
            return cls.VIDEO
        return cls.AUDIO
