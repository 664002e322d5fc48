"""
Session gateway.

Responsibilities:
- Owns VoiceSession lifecycle and collaborator wiring
- Runs the connect sequence (credential fetch, transport open)
- Routes inbound transport callbacks -> reducer events
- Routes inbound client control messages -> reducer events
- Forwards events into runtime

NOT responsible for:
- Executing commands
- Any state machine logic (the reducer decides every transition)
"""

from __future__ import annotations

import json
import time
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, TYPE_CHECKING

from uuid import uuid4

from agent_configs.registry import order_with_root, resolve_agent_set
from constants import GREETING_ITEM_ID_PREFIX
from orchestrator.events import (
    AudioPlaybackToggled,
    ConnectFailed,
    ConnectRequested,
    DisconnectRequested,
    Event,
    EventType,
    HistoryItemAdded,
    HistoryItemUpdated,
    PushToTalkPressed,
    PushToTalkReleased,
    PushToTalkToggled,
    RecordingCompleted,
    RecordingFailed,
    SessionReset,
    TransportConnected,
    TransportConnecting,
    TransportDisconnected,
    UserTextSubmitted,
)
from orchestrator.runtime_context import RuntimeExecutionContext
from orchestrator.runtime import Runtime
from orchestrator.state_dataclass import SessionState

from protocol.realtime_events import (
    RealtimeProtocolError,
    decode_history_item,
    decode_server_event,
)

from session.connection_status import ConnectionStatus
from session.transport import OpenAIRealtimeTransport
from session.voice_session import VoiceSession

from observability.logger import log_event
from observability.metrics import timed

if TYPE_CHECKING:
    from config import AppConfig
    from orchestrator.runtime_context import (
        CredentialProviderProtocol,
        RealtimeTransportProtocol,
        RecorderProtocol,
    )

# ------------------------------------------------------------------
# Helpers
# ------------------------------------------------------------------

def _now_ms() -> int:
    return time.time_ns() // 1_000_000


def _new_session_id() -> str:
    return f"sess_{uuid4().hex[:12]}"


def _new_item_id(prefix: str = "item_") -> str:
    return f"{prefix}{uuid4().hex[:16]}"


@dataclass(frozen=True)
class TransportCallbacks:
    """Callbacks handed to one transport; bound to the connect that built it."""
    on_connection_change: Callable[[str], Awaitable[None]]
    on_message: Callable[[dict[str, Any]], Awaitable[None]]
    on_history_added: Callable[[dict[str, Any]], Awaitable[None]]
    on_history_updated: Callable[[list[dict[str, Any]]], Awaitable[None]]


TransportFactory = Callable[[TransportCallbacks], "RealtimeTransportProtocol"]


# ------------------------------------------------------------------
# Gateway result
# ------------------------------------------------------------------

@dataclass(frozen=True)
class GatewayResult:
    """
    Return value for gateway boundary methods.

    outbound_json:
        JSON messages to send to the client
    """
    outbound_json: tuple[dict[str, Any], ...] = ()


# ------------------------------------------------------------------
# SessionGateway
# ------------------------------------------------------------------

class SessionGateway:
    """
    One gateway == one realtime session.

    Collaborators are injected so tests can substitute fakes; the
    transport is built per connect() by transport_factory.

    Each connect() and disconnect() starts a new generation. A transport
    only reaches the reducer while its generation is current, so a socket
    left over from an earlier connect cannot move the state machine.
    """

    def __init__(
        self,
        *,
        config: AppConfig,
        credential_provider: CredentialProviderProtocol,
        transport_factory: TransportFactory | None = None,
        recorder: RecorderProtocol | None = None,
        agent_set: str | None = None,
        root_agent: str | None = None,
    ) -> None:
        self._config = config
        self._credentials = credential_provider
        self._transport_factory = transport_factory or self._default_transport
        self._recorder = recorder
        self._agent_set_key, agents = resolve_agent_set(agent_set or config.agent_set)
        self._agents = order_with_root(agents, root_agent)
        self._generation = 0
        self.session: VoiceSession | None = None

    # ------------------------------------------------------------------
    # Session lifecycle
    # ------------------------------------------------------------------

    async def on_ws_connect(self) -> GatewayResult:
        """Create the session. The realtime transport is opened by connect()."""
        session_id = _new_session_id()
        self.session = VoiceSession(session_id=session_id)

        if self._recorder is not None:
            self.session.attach_recorder(self._recorder)

        runtime = Runtime(
            initial_state=SessionState(
                agents=self._agents,
                root_agent=self._agents[0].name if self._agents else None,
                push_to_talk_enabled=self._config.push_to_talk,
                audio_playback_enabled=self._config.audio_playback,
            ),
            context=RuntimeExecutionContext(session=self.session),
        )
        self.session.attach_runtime(runtime)

        log_event({
            "ts_ms": _now_ms(),
            "event_type": "SESSION_STARTED",
            "session_id": session_id,
            "agent_set": self._agent_set_key,
        })

        init_msg: dict[str, Any] = {
            "type": "SESSION_INIT",
            "session_id": session_id,
            "agent_set": self._agent_set_key,
            "state": runtime.state.snapshot(),
        }
        return GatewayResult(outbound_json=(init_msg,) + self._drain_control_out())

    async def on_ws_disconnect(self, reason: str | None = None) -> GatewayResult:
        """Client went away: tear down the transport and runtime timers."""
        if self.session is None:
            log_event({
                "ts_ms": _now_ms(),
                "event_type": "WS_DISCONNECT_WITHOUT_SESSION",
                "reason": reason,
            })
            return GatewayResult()

        if self.status is not ConnectionStatus.DISCONNECTED:
            await self.disconnect()

        runtime = self.session.runtime
        if runtime is not None:
            await runtime.shutdown()

        log_event({
            "ts_ms": _now_ms(),
            "event_type": "SESSION_ENDED",
            "session_id": self.session.session_id,
            "reason": reason,
        })
        return GatewayResult(outbound_json=self._drain_control_out())

    @property
    def status(self) -> ConnectionStatus:
        runtime = self._runtime()
        if runtime is None:
            return ConnectionStatus.DISCONNECTED
        return runtime.state.connection_status

    # ------------------------------------------------------------------
    # Connect / disconnect
    # ------------------------------------------------------------------

    async def connect(self) -> None:
        """
        Fetch a session secret and open the transport.

        No-op unless DISCONNECTED. Any failure ends in DISCONNECTED with
        the reason recorded; nothing is retried.
        """
        if self.session is None or self.status is not ConnectionStatus.DISCONNECTED:
            log_event({
                "ts_ms": _now_ms(),
                "event_type": "connect_ignored",
                "connection_status": self.status.value,
            })
            return

        session_id = self.session.session_id
        self._generation += 1
        generation = self._generation
        await self._dispatch(ConnectRequested(event_type=EventType.CONNECT_REQUESTED, ts_ms=_now_ms()))

        secret: str | None = None
        reason = "missing_credential"
        try:
            with timed("credential_fetch_latency", session_id=session_id):
                secret = await self._credentials.fetch()
        except Exception as exc:  # pylint: disable=broad-exception-caught
            reason = f"credential_fetch_failed: {type(exc).__name__}: {exc}"

        if generation != self._generation:
            self._log_stale("credential_fetch", reason if not secret else None)
            return

        if not secret:
            await self._dispatch(
                ConnectFailed(event_type=EventType.CONNECT_FAILED, ts_ms=_now_ms(), reason=reason)
            )
            return

        if self.status is not ConnectionStatus.CONNECTING:
            return

        transport = self._transport_factory(self._bind_callbacks(generation))
        self.session.attach_transport(transport)

        try:
            with timed("transport_connect_latency", session_id=session_id):
                await transport.connect(secret)
        except Exception as exc:  # pylint: disable=broad-exception-caught
            if self.session.transport is not transport:
                # A later disconnect() or connect() already owns the session.
                self._log_stale("connect_failed", f"{type(exc).__name__}: {exc}")
                return
            self.session.attach_transport(None)
            await self._dispatch(
                ConnectFailed(
                    event_type=EventType.CONNECT_FAILED,
                    ts_ms=_now_ms(),
                    reason=f"transport_connect_failed: {type(exc).__name__}: {exc}",
                )
            )
            return

        # Disconnected while the socket was opening: close the orphan.
        if self.session.transport is not transport:
            await transport.disconnect()

    async def disconnect(self) -> None:
        """Local intent wins: state is DISCONNECTED before the transport closes."""
        if self.session is None:
            return

        await self._dispatch(DisconnectRequested(event_type=EventType.DISCONNECT_REQUESTED, ts_ms=_now_ms()))

        self._generation += 1
        transport = self.session.transport
        self.session.attach_transport(None)
        if transport is None:
            return

        try:
            await transport.disconnect()
        except Exception as exc:  # pylint: disable=broad-exception-caught
            log_event({
                "ts_ms": _now_ms(),
                "event_type": "transport_disconnect_failed",
                "session_id": self.session.session_id,
                "error": f"{type(exc).__name__}: {exc}",
            }, level="warning")

    async def reset(self) -> None:
        """Clear transcript, tool-call record and recording state."""
        await self._dispatch(SessionReset(event_type=EventType.SESSION_RESET, ts_ms=_now_ms()))

    # ------------------------------------------------------------------
    # Transport callbacks
    # ------------------------------------------------------------------

    async def on_connection_change(self, raw_status: str) -> None:
        status = ConnectionStatus.from_transport(raw_status)
        ts = _now_ms()

        event: Event
        if status is ConnectionStatus.CONNECTED:
            event = TransportConnected(
                event_type=EventType.TRANSPORT_CONNECTED,
                ts_ms=ts,
                greeting_item_id=_new_item_id(GREETING_ITEM_ID_PREFIX),
            )
        elif status is ConnectionStatus.CONNECTING:
            event = TransportConnecting(event_type=EventType.TRANSPORT_CONNECTING, ts_ms=ts)
        else:
            event = TransportDisconnected(
                event_type=EventType.TRANSPORT_DISCONNECTED,
                ts_ms=ts,
                reason=None if raw_status == "disconnected" else f"transport_status: {raw_status}",
            )
        await self._dispatch(event)

    async def on_transport_message(self, data: dict[str, Any]) -> None:
        try:
            event = decode_server_event(data, ts_ms=_now_ms())
        except RealtimeProtocolError as e:
            self._log_discard(str(e), data.get("type"))
            return

        if event is not None:
            await self._dispatch(event)

    async def on_history_added(self, raw_item: dict[str, Any]) -> None:
        try:
            item = decode_history_item(raw_item)
        except RealtimeProtocolError as e:
            self._log_discard(str(e), "history_added")
            return

        await self._dispatch(
            HistoryItemAdded(event_type=EventType.HISTORY_ITEM_ADDED, ts_ms=_now_ms(), item=item)
        )

    async def on_history_updated(self, raw_items: list[dict[str, Any]]) -> None:
        for raw_item in raw_items:
            try:
                item = decode_history_item(raw_item)
            except RealtimeProtocolError as e:
                self._log_discard(str(e), "history_updated")
                continue

            await self._dispatch(
                HistoryItemUpdated(event_type=EventType.HISTORY_ITEM_UPDATED, ts_ms=_now_ms(), item=item)
            )

    # ------------------------------------------------------------------
    # Presentation controls
    # ------------------------------------------------------------------

    async def set_push_to_talk(self, enabled: bool) -> None:
        await self._dispatch(
            PushToTalkToggled(event_type=EventType.PUSH_TO_TALK_TOGGLED, ts_ms=_now_ms(), enabled=enabled)
        )

    async def set_audio_playback(self, enabled: bool) -> None:
        await self._dispatch(
            AudioPlaybackToggled(event_type=EventType.AUDIO_PLAYBACK_TOGGLED, ts_ms=_now_ms(), enabled=enabled)
        )

    async def send_user_text(self, text: str) -> None:
        await self._dispatch(
            UserTextSubmitted(
                event_type=EventType.USER_TEXT_SUBMITTED,
                ts_ms=_now_ms(),
                item_id=_new_item_id(),
                text=text,
            )
        )

    async def talk_button_down(self) -> None:
        await self._dispatch(PushToTalkPressed(event_type=EventType.PUSH_TO_TALK_PRESSED, ts_ms=_now_ms()))

    async def talk_button_up(self) -> None:
        await self._dispatch(PushToTalkReleased(event_type=EventType.PUSH_TO_TALK_RELEASED, ts_ms=_now_ms()))

    async def recording_completed(self, metadata: dict[str, Any]) -> None:
        await self._dispatch(
            RecordingCompleted(event_type=EventType.RECORDING_COMPLETED, ts_ms=_now_ms(), metadata=metadata)
        )

    async def recording_failed(self, error: str) -> None:
        await self._dispatch(
            RecordingFailed(event_type=EventType.RECORDING_FAILED, ts_ms=_now_ms(), error=error)
        )

    def snapshot(self) -> dict[str, Any]:
        runtime = self._runtime()
        if runtime is None:
            return {}
        return runtime.state.snapshot()

    # ------------------------------------------------------------------
    # Client control messages
    # ------------------------------------------------------------------

    async def on_json_message(self, payload: str) -> GatewayResult:
        """Route one client control message; returns pending outbound messages."""
        if self.session is None:
            log_event({
                "ts_ms": _now_ms(),
                "event_type": "MESSAGE_WITHOUT_SESSION",
                "payload_preview": payload[:100],
            })
            return GatewayResult()

        try:
            data = json.loads(payload)
        except json.JSONDecodeError as e:
            log_event({
                "ts_ms": _now_ms(),
                "event_type": "JSON_DECODE_ERROR",
                "session_id": self.session.session_id,
                "error": str(e),
                "payload_preview": payload[:100],
            })
            return GatewayResult()

        if not isinstance(data, dict):
            self._log_discard("control message is not an object", None)
            return GatewayResult()

        msg_type = data.get("type")

        if msg_type == "CONNECT":
            await self.connect()
        elif msg_type == "DISCONNECT":
            await self.disconnect()
        elif msg_type == "RESET":
            await self.reset()
        elif msg_type == "SET_PUSH_TO_TALK":
            await self.set_push_to_talk(bool(data.get("enabled")))
        elif msg_type == "SET_AUDIO_PLAYBACK":
            await self.set_audio_playback(bool(data.get("enabled")))
        elif msg_type == "SEND_TEXT":
            text = data.get("text")
            await self.send_user_text(text if isinstance(text, str) else "")
        elif msg_type == "TALK_DOWN":
            await self.talk_button_down()
        elif msg_type == "TALK_UP":
            await self.talk_button_up()
        elif msg_type == "RECORDING_COMPLETE":
            metadata = data.get("metadata")
            await self.recording_completed(metadata if isinstance(metadata, dict) else {})
        elif msg_type == "RECORDING_FAILED":
            await self.recording_failed(str(data.get("error") or "unknown"))
        elif msg_type == "GET_STATE":
            self.session.enqueue_control({"type": "state", "ts_ms": _now_ms(), "state": self.snapshot()})
        else:
            log_event({
                "ts_ms": _now_ms(),
                "event_type": "UNKNOWN_MESSAGE_TYPE",
                "msg_type": msg_type,
                "session_id": self.session.session_id,
            })
            return GatewayResult()

        return GatewayResult(outbound_json=self._drain_control_out())

    # ------------------------------------------------------------------
    # Reducer dispatch
    # ------------------------------------------------------------------

    async def _dispatch(self, event: Event) -> None:
        """Forward event into runtime."""
        runtime = self._runtime()
        if runtime is None:
            log_event({
                "ts_ms": _now_ms(),
                "event_type": "DISPATCH_WITHOUT_SESSION",
                "dropped_event": event.event_type.value,
            })
            return

        await runtime.handle_event(event)

    def _runtime(self) -> Runtime | None:
        if self.session is None:
            return None
        return self.session.runtime

    def _drain_control_out(self) -> tuple[dict[str, Any], ...]:
        if self.session is None:
            return ()
        return self.session.drain_control()

    def _log_discard(self, reason: str, msg_type: Any) -> None:
        log_event({
            "ts_ms": _now_ms(),
            "event_type": "inbound_discarded",
            "session_id": self.session.session_id if self.session else None,
            "msg_type": msg_type,
            "reason": reason,
        }, level="warning")

    def _log_stale(self, callback: str, detail: Any = None) -> None:
        log_event({
            "ts_ms": _now_ms(),
            "event_type": "stale_transport_event",
            "session_id": self.session.session_id if self.session else None,
            "callback": callback,
            "detail": detail,
        })

    def _bind_callbacks(self, generation: int) -> TransportCallbacks:
        def current(callback: str, detail: Any = None) -> bool:
            if generation == self._generation:
                return True
            self._log_stale(callback, detail)
            return False

        async def on_connection_change(raw_status: str) -> None:
            if current("connection_change", raw_status):
                await self.on_connection_change(raw_status)

        async def on_message(data: dict[str, Any]) -> None:
            if current("message", data.get("type")):
                await self.on_transport_message(data)

        async def on_history_added(raw_item: dict[str, Any]) -> None:
            if current("history_added"):
                await self.on_history_added(raw_item)

        async def on_history_updated(raw_items: list[dict[str, Any]]) -> None:
            if current("history_updated"):
                await self.on_history_updated(raw_items)

        return TransportCallbacks(
            on_connection_change=on_connection_change,
            on_message=on_message,
            on_history_added=on_history_added,
            on_history_updated=on_history_updated,
        )

    def _default_transport(self, callbacks: TransportCallbacks) -> RealtimeTransportProtocol:
        return OpenAIRealtimeTransport(
            url=self._config.realtime_url,
            model=self._config.realtime_model,
            on_connection_change=callbacks.on_connection_change,
            on_message=callbacks.on_message,
            on_history_added=callbacks.on_history_added,
            on_history_updated=callbacks.on_history_updated,
        )
