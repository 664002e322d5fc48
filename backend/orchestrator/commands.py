"""
Side-effect command definitions for the session reducer.

Rules:
- Commands are declarative requests for side effects.
- Commands are emitted by the reducer and executed by the runtime.
- No behavior, no async, no I/O, no clocks.
- Reducer logic remains pure and deterministic.
Invariant:
    - All concrete Command subclasses MUST be frozen dataclasses.
    - Commands are immutable value objects emitted by the reducer.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any

from orchestrator.enums.recording import RecordingKind
from orchestrator.events import EventType

# =============================================================================
# Command Type Enumeration
# =============================================================================

class CommandType(str, Enum):
    """
    Canonical command types emitted by the reducer.

    These are stable discriminants used for logging, replay,
    and runtime dispatch.
    """

    # Transport
    SEND_TRANSPORT_EVENT = "SEND_TRANSPORT_EVENT"
    PUSH_SESSION_CONFIG = "PUSH_SESSION_CONFIG"
    INTERRUPT_RESPONSE = "INTERRUPT_RESPONSE"
    MUTE_OUTPUT = "MUTE_OUTPUT"

    # Timers
    START_TIMER = "START_TIMER"
    CANCEL_TIMER = "CANCEL_TIMER"

    # Recording collaborator
    START_CAPTURE = "START_CAPTURE"
    STOP_CAPTURE = "STOP_CAPTURE"

    # Observability
    LOG_EVENT = "LOG_EVENT"


# =============================================================================
# Base Command
# =============================================================================

class Command:
    """
    Base command type.

    command_type is an explicit discriminant and must never be inferred
    from Python type identity.
    """

    command_type: CommandType


# =============================================================================
# Transport Commands
# =============================================================================

@dataclass(frozen=True)
class SendTransportEvent(Command):
    """Generic passthrough of a client event to the transport."""
    payload: dict[str, Any]
    reason: str = ""
    command_type: CommandType = CommandType.SEND_TRANSPORT_EVENT


@dataclass(frozen=True)
class PushSessionConfig(Command):
    """
    Send a session.update with the given session fields.

    turn_detection is None under push-to-talk.
    """
    session: dict[str, Any]
    command_type: CommandType = CommandType.PUSH_SESSION_CONFIG


@dataclass(frozen=True)
class InterruptResponse(Command):
    """Cancel in-flight assistant generation and clear local playback."""
    command_type: CommandType = CommandType.INTERRUPT_RESPONSE


@dataclass(frozen=True)
class MuteOutput(Command):
    """Mute or unmute assistant output audio on the transport."""
    muted: bool
    command_type: CommandType = CommandType.MUTE_OUTPUT


# =============================================================================
# Timer Commands
# =============================================================================

@dataclass(frozen=True)
class StartTimer(Command):
    """
    Request to start a named timer.

    On expiration, the runtime must inject the specified timeout event.
    """
    timer_id: str
    duration_ms: int
    timeout_event_type: EventType
    command_type: CommandType = CommandType.START_TIMER


@dataclass(frozen=True)
class CancelTimer(Command):
    """Request to cancel a previously scheduled timer."""
    timer_id: str
    command_type: CommandType = CommandType.CANCEL_TIMER


# =============================================================================
# Recording Commands
# =============================================================================

@dataclass(frozen=True)
class StartCapture(Command):
    """Ask the recording collaborator to begin capturing."""
    kind: RecordingKind
    purpose: str
    description: str
    subject_name: str
    command_type: CommandType = CommandType.START_CAPTURE


@dataclass(frozen=True)
class StopCapture(Command):
    """
    Ask the recording collaborator to finalize and persist.

    The runtime must emit exactly one CaptureStopped afterwards,
    whether or not the collaborator call succeeded.
    """
    command_type: CommandType = CommandType.STOP_CAPTURE


# =============================================================================
# Observability Commands
# =============================================================================

@dataclass(frozen=True)
class LogEvent(Command):
    """Request to emit a structured observability event."""
    event: dict[str, Any]
    command_type: CommandType = CommandType.LOG_EVENT
