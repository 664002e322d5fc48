"""
Runtime execution shell for a single realtime session.

Responsibilities:
- Own session state
- Call the pure reducer
- Execute commands with side effects (transport, recorder, timers)
- Convert timer expiry and recorder outcomes into events
- Publish state snapshots to the session control outbox

Non-responsibilities:
- Inbound protocol translation (gateway)
- Any orchestration decision (reducer)
"""

from __future__ import annotations

import asyncio
import time
from collections import deque
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import TYPE_CHECKING

from orchestrator.reducer import reduce
from orchestrator.commands import (
    CancelTimer,
    Command,
    InterruptResponse,
    LogEvent,
    MuteOutput,
    PushSessionConfig,
    SendTransportEvent,
    StartCapture,
    StartTimer,
    StopCapture,
)
from orchestrator.events import (
    CaptureStopped,
    Event,
    EventType,
    RecordingCompleted,
    RecordingFailed,
    RecordingSettled,
)
from orchestrator.state_dataclass import SessionState

from observability.logger import log_event

from services.recording_service import CaptureRequest, format_recording_path


if TYPE_CHECKING:
    from orchestrator.runtime_context import (
        RealtimeTransportProtocol,
        RuntimeExecutionContext,
    )


def _now_ms() -> int:
    return time.time_ns() // 1_000_000


# ------------------------------------------------------------------
# Reduction result boundary
# ------------------------------------------------------------------

@dataclass(frozen=True)
class ReduceOutcome:
    """
    Result of one reduction attempt.

    error is set when the reducer raised; state is then the unchanged
    previous state and commands is empty.
    """
    state: SessionState
    commands: tuple[Command, ...] = ()
    error: str | None = None

    @property
    def ok(self) -> bool:
        return self.error is None


def reduce_safely(state: SessionState, event: Event) -> ReduceOutcome:
    try:
        new_state, commands = reduce(state, event)
    except Exception as exc:  # pylint: disable=broad-exception-caught
        return ReduceOutcome(state=state, error=f"{type(exc).__name__}: {exc}")
    return ReduceOutcome(state=new_state, commands=commands)


class Runtime:
    """
    Runtime execution boundary for a single session.

    Guarantees:
    - Reducer is called exactly once per incoming event
    - Events are processed strictly in arrival order; events raised while
      commands execute (timers, recorder outcomes) are queued, never
      re-entered
    - All side effects occur *after* state has been updated
    - A failing side effect is logged and never stops the remaining
      commands or the event loop
    """

    def __init__(
        self,
        *,
        initial_state: SessionState,
        context: RuntimeExecutionContext,
    ) -> None:
        self._state = initial_state
        self._ctx = context
        self._timers: dict[str, asyncio.Task[None]] = {}
        self._pending: deque[Event] = deque()
        self._draining = False

    @property
    def state(self) -> SessionState:
        """
        Current immutable session state.

        Only Runtime swaps this value, and only through the reducer.
        """
        return self._state

    async def handle_event(self, event: Event) -> None:
        """
        Single entry point for every event affecting session state.

        If a drain is already in progress (this call originates from a
        command side effect or a concurrent source), the event is queued
        and processed by the active drain after the current event's
        commands complete.
        """
        self._pending.append(event)
        if self._draining:
            return

        self._draining = True
        try:
            while self._pending:
                await self._process(self._pending.popleft())
        finally:
            self._draining = False

    async def shutdown(self) -> None:
        """
        Cancel all in-flight timers and wait for them to finish.

        Called by the gateway on session teardown.
        """
        tasks = list(self._timers.values())
        for timer_id in list(self._timers.keys()):
            self._cancel_timer(timer_id)

        if tasks:
            await asyncio.gather(*tasks, return_exceptions=True)

    # ------------------------------------------------------------------
    # Event processing
    # ------------------------------------------------------------------

    async def _process(self, event: Event) -> None:
        outcome = reduce_safely(self._state, event)
        if not outcome.ok:
            log_event({
                "ts_ms": _now_ms(),
                "event_type": "reducer_error",
                "session_id": self._ctx.session_id,
                "source_event": event.event_type.value,
                "error": outcome.error,
            }, level="error")
            return

        prev_state = self._state
        self._state = outcome.state

        for cmd in outcome.commands:
            await self._execute_safely(cmd)

        if self._state is not prev_state:
            self._ctx.publish({
                "type": "state",
                "ts_ms": event.ts_ms,
                "state": self._state.snapshot(),
            })

    async def _execute_safely(self, cmd: Command) -> None:
        try:
            await self._execute_command(cmd)
        except Exception as exc:  # pylint: disable=broad-exception-caught
            log_event({
                "ts_ms": _now_ms(),
                "event_type": "command_failed",
                "session_id": self._ctx.session_id,
                "command_type": cmd.command_type.value,
                "error": f"{type(exc).__name__}: {exc}",
            }, level="warning")

    # ------------------------------------------------------------------
    # Command execution (side effects)
    # ------------------------------------------------------------------

    async def _execute_command(self, cmd: Command) -> None:
        """Execute a single command with side effects."""

        if isinstance(cmd, LogEvent):
            log_event({
                **cmd.event,
                "session_id": self._ctx.session_id,
            })

        # ------------------------------------------------------------
        # Transport
        # ------------------------------------------------------------

        elif isinstance(cmd, SendTransportEvent):
            transport = self._require_transport(cmd)
            if transport is not None:
                await transport.send_event(cmd.payload)

        elif isinstance(cmd, PushSessionConfig):
            transport = self._require_transport(cmd)
            if transport is not None:
                await transport.send_event({
                    "type": "session.update",
                    "session": cmd.session,
                })

        elif isinstance(cmd, InterruptResponse):
            transport = self._require_transport(cmd)
            if transport is not None:
                await transport.interrupt()

        elif isinstance(cmd, MuteOutput):
            transport = self._require_transport(cmd)
            if transport is not None:
                await transport.mute(cmd.muted)

        # ------------------------------------------------------------
        # Timers
        # ------------------------------------------------------------

        elif isinstance(cmd, StartTimer):
            self._start_timer(
                timer_id=cmd.timer_id,
                duration_ms=cmd.duration_ms,
                timeout_event_type=cmd.timeout_event_type,
            )

        elif isinstance(cmd, CancelTimer):
            log_event({
                "ts_ms": _now_ms(),
                "event_type": "TIMER_CANCELLED",
                "timer_id": cmd.timer_id,
                "session_id": self._ctx.session_id,
            }, level="debug")
            self._cancel_timer(cmd.timer_id)

        # ------------------------------------------------------------
        # Recording
        # ------------------------------------------------------------

        elif isinstance(cmd, StartCapture):
            await self._start_capture(cmd)

        elif isinstance(cmd, StopCapture):
            await self._stop_capture()

        else:
            raise TypeError(f"Unknown command: {type(cmd).__name__}")

    def _require_transport(self, cmd: Command) -> RealtimeTransportProtocol | None:
        transport = self._ctx.transport
        if transport is None:
            log_event({
                "ts_ms": _now_ms(),
                "event_type": "transport_missing",
                "session_id": self._ctx.session_id,
                "command_type": cmd.command_type.value,
            }, level="warning")
        return transport

    async def _start_capture(self, cmd: StartCapture) -> None:
        recorder = self._ctx.recorder
        request = CaptureRequest(
            kind=cmd.kind,
            purpose=cmd.purpose,
            description=cmd.description,
            subject_name=cmd.subject_name,
            target_path=format_recording_path(
                cmd.subject_name,
                cmd.purpose,
                cmd.kind,
                datetime.now(timezone.utc),
            ),
        )

        if recorder is None:
            # Capture is handled by the presentation layer; it reports
            # completion through the gateway.
            self._ctx.publish({
                "type": "capture_requested",
                "ts_ms": _now_ms(),
                "request": {
                    "kind": request.kind.value,
                    "purpose": request.purpose,
                    "description": request.description,
                    "subject_name": request.subject_name,
                    "target_path": request.target_path,
                },
            })
            return

        await recorder.start(request)
        log_event({
            "ts_ms": _now_ms(),
            "event_type": "capture_started",
            "session_id": self._ctx.session_id,
            "target_path": request.target_path,
        })

    async def _stop_capture(self) -> None:
        """
        Signal the recorder, then always dispatch CaptureStopped.

        Recorder metadata (or failure) follows as RecordingCompleted /
        RecordingFailed. A recorder returning None reports completion
        later through the gateway.
        """
        recorder = self._ctx.recorder
        metadata = None
        error: str | None = None

        if recorder is None:
            self._ctx.publish({"type": "capture_stop_requested", "ts_ms": _now_ms()})
        else:
            try:
                metadata = await recorder.stop()
            except Exception as exc:  # pylint: disable=broad-exception-caught
                error = f"{type(exc).__name__}: {exc}"
                log_event({
                    "ts_ms": _now_ms(),
                    "event_type": "capture_stop_failed",
                    "session_id": self._ctx.session_id,
                    "error": error,
                }, level="warning")

        await self.handle_event(
            CaptureStopped(event_type=EventType.CAPTURE_STOPPED, ts_ms=_now_ms())
        )

        if error is not None:
            await self.handle_event(
                RecordingFailed(
                    event_type=EventType.RECORDING_FAILED,
                    ts_ms=_now_ms(),
                    error=error,
                )
            )
        elif metadata is not None:
            await self.handle_event(
                RecordingCompleted(
                    event_type=EventType.RECORDING_COMPLETED,
                    ts_ms=_now_ms(),
                    metadata=metadata,
                )
            )

    # ------------------------------------------------------------------
    # Timer management
    # ------------------------------------------------------------------

    def _start_timer(
        self,
        *,
        timer_id: str,
        duration_ms: int,
        timeout_event_type: EventType,
    ) -> None:
        """
        Start or replace a timer that emits a timeout event.

        Timer tasks re-enter handle_event() when they expire,
        maintaining the single event entry point invariant.
        """
        self._cancel_timer(timer_id)

        async def _timer_task() -> None:
            try:
                await asyncio.sleep(duration_ms / 1000.0)
            except asyncio.CancelledError:
                return

            self._timers.pop(timer_id, None)
            await self.handle_event(
                self._construct_timeout_event(
                    timer_id=timer_id,
                    timeout_event_type=timeout_event_type,
                )
            )

        self._timers[timer_id] = asyncio.create_task(_timer_task())

    def _cancel_timer(self, timer_id: str) -> None:
        """
        Cancel an in-flight timer if it exists.

        Idempotent: safe to call even if timer doesn't exist.
        """
        task = self._timers.pop(timer_id, None)
        if task is not None and not task.done():
            task.cancel()

    def _construct_timeout_event(
        self,
        *,
        timer_id: str,
        timeout_event_type: EventType,
    ) -> Event:
        if timeout_event_type is EventType.RECORDING_SETTLED:
            return RecordingSettled(
                event_type=EventType.RECORDING_SETTLED,
                ts_ms=_now_ms(),
            )

        raise ValueError(
            f"Unknown timeout event type: {timeout_event_type} "
            f"for timer_id: {timer_id}"
        )
