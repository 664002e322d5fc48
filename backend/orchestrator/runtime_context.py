"""
Runtime execution context.

Provides Runtime with live access to session-owned imperative resources
needed for command execution (transport, recorder, control outbox).

This module contains:
- Narrow Protocols (capabilities, not implementations)
- Zero orchestration logic
- Zero state mutation
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Protocol, runtime_checkable

if TYPE_CHECKING:
    from services.recording_service import CaptureRequest
    from session.voice_session import VoiceSession


# ---------------------------------------------------------------------
# Collaborator Protocols
# ---------------------------------------------------------------------

@runtime_checkable
class RealtimeTransportProtocol(Protocol):
    """
    Bidirectional realtime channel to the generation engine.

    Contract:
    - connect() raises on failure; success is reported separately through
      the connection-change callback
    - send_event() transmits one client event verbatim
    - interrupt() cancels in-flight generation; mute() gates output audio
    """

    async def connect(self, secret: str) -> None: ...
    async def disconnect(self) -> None: ...
    async def send_event(self, payload: dict[str, Any]) -> None: ...
    async def interrupt(self) -> None: ...
    async def mute(self, muted: bool) -> None: ...


@runtime_checkable
class CredentialProviderProtocol(Protocol):
    async def fetch(self) -> str | None:
        """Short-lived session secret, or None when unavailable."""


@runtime_checkable
class RecorderProtocol(Protocol):
    """
    Capture collaborator.

    stop() returns the completed recording's metadata, or None when
    completion will be reported later (out-of-process upload).
    """

    async def start(self, request: CaptureRequest) -> None: ...
    async def stop(self) -> dict[str, Any] | None: ...


# ---------------------------------------------------------------------
# Runtime Execution Context
# ---------------------------------------------------------------------

class RuntimeExecutionContext:
    """
    Imperative execution context for Runtime.

    Live views into session-owned resources, so Runtime does not cache
    collaborators that the gateway may attach later.

    Runtime is allowed to:
    - Call the transport and recorder
    - Publish control messages

    Runtime is NOT allowed to:
    - Mutate session wiring
    - Perform orchestration decisions
    """

    def __init__(self, session: VoiceSession) -> None:
        self.session = session

    @property
    def session_id(self) -> str:
        return self.session.session_id

    @property
    def transport(self) -> RealtimeTransportProtocol | None:
        return self.session.transport

    @property
    def recorder(self) -> RecorderProtocol | None:
        return self.session.recorder

    def publish(self, msg: dict[str, Any]) -> None:
        self.session.enqueue_control(msg)
