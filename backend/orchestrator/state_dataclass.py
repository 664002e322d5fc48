"""
Authoritative session state container.

Rules:
- This dataclass is a pure data model.
- It contains ALL state the reducer may ever need.
- No behavior beyond read-only views for the presentation layer.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

from agent_configs.registry import AgentProfile
from constants import (
    DEFAULT_RECORDING_DESCRIPTION,
    DEFAULT_RECORDING_PURPOSE,
    DEFAULT_SUBJECT_NAME,
)
from orchestrator.enums.recording import RecordingKind, RecordingPhase
from session.connection_status import ConnectionStatus
from transcript.store import TranscriptStore


# =============================================================================
# Recording orchestration
# =============================================================================

@dataclass(frozen=True)
class RecordingState:
    """
    Tool-driven capture workflow.

    Mutated only by the tool-dispatch branch of the reducer.
    subject_name persists across turns and recordings.
    """
    phase: RecordingPhase = RecordingPhase.IDLE
    kind: RecordingKind = RecordingKind.AUDIO
    purpose: str = DEFAULT_RECORDING_PURPOSE
    description: str = DEFAULT_RECORDING_DESCRIPTION
    subject_name: str = DEFAULT_SUBJECT_NAME

    def to_dict(self) -> dict[str, Any]:
        return {
            "phase": self.phase.value,
            "kind": self.kind.value,
            "purpose": self.purpose,
            "description": self.description,
            "subject_name": self.subject_name,
        }


# =============================================================================
# Session State
# =============================================================================

@dataclass(frozen=True)
class SessionState:
    """Immutable snapshot of all reducer-owned state for one session."""

    # ------------------------------------------------------------------
    # Agent configuration
    # ------------------------------------------------------------------
    agents: tuple[AgentProfile, ...] = ()
    root_agent: str | None = None

    # ------------------------------------------------------------------
    # Connection
    # ------------------------------------------------------------------
    connection_status: ConnectionStatus = ConnectionStatus.DISCONNECTED

    # Always a member of `agents` while CONNECTED, None otherwise.
    active_agent: str | None = None

    # ------------------------------------------------------------------
    # Input / output preferences
    # ------------------------------------------------------------------
    push_to_talk_enabled: bool = False
    ptt_user_speaking: bool = False
    audio_playback_enabled: bool = True

    # ------------------------------------------------------------------
    # Transcript
    # ------------------------------------------------------------------
    transcript: TranscriptStore = field(default_factory=TranscriptStore)

    # response_id -> item_id, learned from deltas carrying both
    response_aliases: dict[str, str] = field(default_factory=dict)

    # ------------------------------------------------------------------
    # Tool calls
    # ------------------------------------------------------------------
    # Function-call item ids with a breadcrumb. Only grows until a full
    # session reset.
    logged_tool_calls: frozenset[str] = frozenset()

    # Function-call item ids whose tool already ran. A call is first seen
    # with empty arguments; it runs once its arguments arrive.
    dispatched_tool_calls: frozenset[str] = frozenset()

    recording: RecordingState = field(default_factory=RecordingState)

    # ------------------------------------------------------------------
    # Error handling
    # ------------------------------------------------------------------
    last_error: str | None = None

    @property
    def is_connected(self) -> bool:
        return self.connection_status is ConnectionStatus.CONNECTED

    def snapshot(self) -> dict[str, Any]:
        """JSON-friendly view for the presentation layer."""
        return {
            "connection_status": self.connection_status.value,
            "active_agent": self.active_agent,
            "agents": [a.to_dict() for a in self.agents],
            "push_to_talk_enabled": self.push_to_talk_enabled,
            "ptt_user_speaking": self.ptt_user_speaking,
            "audio_playback_enabled": self.audio_playback_enabled,
            "recording": self.recording.to_dict(),
            "transcript": self.transcript.to_dict(),
            "last_error": self.last_error,
        }
