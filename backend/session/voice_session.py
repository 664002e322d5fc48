"""
Voice session container.

- Owns session identity and collaborator wiring
- Owns the control outbox (messages for the presentation layer)
- Owned and mutated by SessionGateway
- NOT a state machine; contains no orchestration logic
"""

from __future__ import annotations

import asyncio
import time
from collections import deque
from dataclasses import dataclass, field
from typing import Any

from orchestrator.runtime import Runtime


@dataclass
class VoiceSession:
    """Mutable runtime container for a single realtime session."""

    # ------------------------------------------------------------------
    # Identity / lifecycle
    # ------------------------------------------------------------------

    session_id: str
    created_at: float = field(default_factory=time.time)

    # ------------------------------------------------------------------
    # Runtime (executes commands + owns authoritative state)
    # ------------------------------------------------------------------

    runtime: Runtime | None = None

    # ------------------------------------------------------------------
    # Collaborators (concrete, side-effectful)
    # ------------------------------------------------------------------

    transport: Any = None  # RealtimeTransportProtocol in practice
    recorder: Any = None  # RecorderProtocol in practice

    def __post_init__(self) -> None:
        self._control_out: deque[dict[str, Any]] = deque()
        self._control_ready = asyncio.Event()

    # ------------------------------------------------------------------
    # Wiring helpers (called by SessionGateway)
    # ------------------------------------------------------------------

    def attach_transport(self, transport: Any) -> None:
        self.transport = transport

    def attach_recorder(self, recorder: Any) -> None:
        self.recorder = recorder

    def attach_runtime(self, runtime: Runtime) -> None:
        """Must be called after collaborators are attached."""
        self.runtime = runtime

    # ------------------------------------------------------------------
    # Control outbox
    # ------------------------------------------------------------------

    def enqueue_control(self, msg: dict[str, Any]) -> None:
        """
        Enqueue a control message for delivery to the client.

        Messages are buffered in FIFO order and later retrieved via
        drain_control().
        """
        self._control_out.append(msg)
        self._control_ready.set()

    def drain_control(self) -> tuple[dict[str, Any], ...]:
        """
        Atomically drain all pending control messages.

        After this call, the control queue is empty.
        """
        self._control_ready.clear()
        if not self._control_out:
            return ()
        out = tuple(self._control_out)
        self._control_out.clear()
        return out

    async def wait_control(self) -> tuple[dict[str, Any], ...]:
        """Block until at least one control message is pending, then drain."""
        await self._control_ready.wait()
        return self.drain_control()
