"""
Unified event definitions for the session reducer.

Rules:
- Events describe facts that have occurred.
- Events carry data only (no behavior).
- All reducer decisions are based on these events.
- No clocks, no timers, no async, no side effects: timestamps and any
  generated ids are supplied by whoever constructs the event.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any


# =============================================================================
# Event Type Enumeration
# =============================================================================

class EventType(str, Enum):
    """
    Canonical event types understood by the reducer.

    Every event type must be explicitly handled or explicitly ignored
    by the reducer.
    """

    # ------------------------------------------------------------------
    # Connection / session lifecycle
    # ------------------------------------------------------------------
    CONNECT_REQUESTED = "CONNECT_REQUESTED"
    CONNECT_FAILED = "CONNECT_FAILED"
    DISCONNECT_REQUESTED = "DISCONNECT_REQUESTED"
    TRANSPORT_CONNECTING = "TRANSPORT_CONNECTING"
    TRANSPORT_CONNECTED = "TRANSPORT_CONNECTED"
    TRANSPORT_DISCONNECTED = "TRANSPORT_DISCONNECTED"
    SESSION_RESET = "SESSION_RESET"

    # ------------------------------------------------------------------
    # Streaming deltas
    # ------------------------------------------------------------------
    ASSISTANT_DELTA = "ASSISTANT_DELTA"
    USER_SPEECH_STARTED = "USER_SPEECH_STARTED"
    USER_TRANSCRIPTION_DELTA = "USER_TRANSCRIPTION_DELTA"
    USER_TRANSCRIPTION_COMPLETED = "USER_TRANSCRIPTION_COMPLETED"

    # ------------------------------------------------------------------
    # Turn / guardrail
    # ------------------------------------------------------------------
    GUARDRAIL_TRIPPED = "GUARDRAIL_TRIPPED"
    RESPONSE_DONE = "RESPONSE_DONE"

    # ------------------------------------------------------------------
    # Authoritative history
    # ------------------------------------------------------------------
    HISTORY_ITEM_ADDED = "HISTORY_ITEM_ADDED"
    HISTORY_ITEM_UPDATED = "HISTORY_ITEM_UPDATED"

    # ------------------------------------------------------------------
    # Presentation controls
    # ------------------------------------------------------------------
    PUSH_TO_TALK_TOGGLED = "PUSH_TO_TALK_TOGGLED"
    PUSH_TO_TALK_PRESSED = "PUSH_TO_TALK_PRESSED"
    PUSH_TO_TALK_RELEASED = "PUSH_TO_TALK_RELEASED"
    AUDIO_PLAYBACK_TOGGLED = "AUDIO_PLAYBACK_TOGGLED"
    USER_TEXT_SUBMITTED = "USER_TEXT_SUBMITTED"

    # ------------------------------------------------------------------
    # Recording orchestration
    # ------------------------------------------------------------------
    RECORDING_SETTLED = "RECORDING_SETTLED"
    CAPTURE_STOPPED = "CAPTURE_STOPPED"
    RECORDING_COMPLETED = "RECORDING_COMPLETED"
    RECORDING_FAILED = "RECORDING_FAILED"


# =============================================================================
# Base Event
# =============================================================================

@dataclass(frozen=True)
class Event:
    """
    Base event type.

    All events must specify:
    - event_type: discriminant
    - ts_ms: timestamp provided by the source (or fake in tests)
    """

    event_type: EventType
    ts_ms: int


# =============================================================================
# Connection / Session Events
# =============================================================================

@dataclass(frozen=True)
class ConnectRequested(Event):
    """Explicit connect() call accepted by the gateway."""


@dataclass(frozen=True)
class ConnectFailed(Event):
    """Credential fetch or transport open failed."""
    reason: str


@dataclass(frozen=True)
class DisconnectRequested(Event):
    """Explicit disconnect(); local state wins over transport confirmation."""


@dataclass(frozen=True)
class TransportConnecting(Event):
    """Transport reports it is (re)connecting."""


@dataclass(frozen=True)
class TransportConnected(Event):
    """
    Transport handshake completed.

    greeting_item_id is generated by the gateway so the reducer stays
    deterministic.
    """
    greeting_item_id: str


@dataclass(frozen=True)
class TransportDisconnected(Event):
    """Transport closed or failed."""
    reason: str | None = None


@dataclass(frozen=True)
class SessionReset(Event):
    """Full reset: transcript, tool-call record and recording state."""


# =============================================================================
# Streaming Delta Events
# =============================================================================

@dataclass(frozen=True)
class AssistantDelta(Event):
    """
    Assistant text or audio-transcript fragment.

    At least one of item_id / response_id is present.
    """
    delta: str
    item_id: str | None = None
    response_id: str | None = None


@dataclass(frozen=True)
class UserSpeechStarted(Event):
    """VAD detected the start of a user speech segment."""
    item_id: str


@dataclass(frozen=True)
class UserTranscriptionDelta(Event):
    """Partial live transcription of user speech."""
    item_id: str
    delta: str


@dataclass(frozen=True)
class UserTranscriptionCompleted(Event):
    """
    Final transcription of user speech.

    This text is authoritative and replaces any streamed text.
    """
    item_id: str
    transcript: str


# =============================================================================
# Turn / Guardrail Events
# =============================================================================

@dataclass(frozen=True)
class GuardrailTripped(Event):
    """Session-scoped guardrail trip; item_id is absent in today's protocol."""
    item_id: str | None = None
    rationale: str | None = None


@dataclass(frozen=True)
class ResponseDone(Event):
    """The generation engine finished an assistant turn."""
    response_id: str | None = None


# =============================================================================
# History Events
# =============================================================================

@dataclass(frozen=True)
class HistoryItem:
    """
    Authoritative description of one conversation item.

    item_type is "message" or "function_call"; other types are ignored.
    """
    item_id: str
    item_type: str
    role: str | None = None
    content: tuple[dict[str, Any], ...] = ()
    status: str | None = None
    name: str | None = None
    arguments: Any = None
    output: Any = None


@dataclass(frozen=True)
class HistoryItemAdded(Event):
    item: HistoryItem


@dataclass(frozen=True)
class HistoryItemUpdated(Event):
    item: HistoryItem


# =============================================================================
# Presentation Control Events
# =============================================================================

@dataclass(frozen=True)
class PushToTalkToggled(Event):
    enabled: bool


@dataclass(frozen=True)
class PushToTalkPressed(Event):
    """Talk button down."""


@dataclass(frozen=True)
class PushToTalkReleased(Event):
    """Talk button up."""


@dataclass(frozen=True)
class AudioPlaybackToggled(Event):
    enabled: bool


@dataclass(frozen=True)
class UserTextSubmitted(Event):
    """Typed user message; item_id is generated by the gateway."""
    item_id: str
    text: str


# =============================================================================
# Recording Events
# =============================================================================

@dataclass(frozen=True)
class RecordingSettled(Event):
    """Settle delay after the capture-start interrupt elapsed (timer)."""


@dataclass(frozen=True)
class CaptureStopped(Event):
    """Recorder was signalled to finalize."""


@dataclass(frozen=True)
class RecordingCompleted(Event):
    """Recorder persisted the capture."""
    metadata: dict[str, Any]


@dataclass(frozen=True)
class RecordingFailed(Event):
    """Recorder could not finalize or persist the capture."""
    error: str
