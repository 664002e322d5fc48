"""
Realtime WebSocket transport (OpenAI realtime endpoint).

Core model:
- One socket per connect(); no automatic reconnection.
- Connection changes, raw server events and history items are surfaced
  through callbacks. The transport never touches session state.
- Item lifecycle events become history callbacks; everything else is
  forwarded raw for the gateway to translate.

Design constraints:
- Must not call the reducer directly.
- Output audio is dropped at the transport while muted.
"""

from __future__ import annotations

import asyncio
import json
import time
from typing import Any, Awaitable, Callable

from websockets.asyncio.client import ClientConnection, connect as ws_connect
from websockets.exceptions import ConnectionClosed

from constants import TRANSPORT_MAX_MESSAGE_BYTES
from observability.logger import log_event


def _now_ms() -> int:
    return time.time_ns() // 1_000_000


# Server event types that carry a conversation item snapshot.
_ITEM_ADDED_TYPES = frozenset({
    "conversation.item.created",
    "conversation.item.added",
})
_ITEM_UPDATED_TYPES = frozenset({
    "conversation.item.done",
    "response.output_item.done",
})
_OUTPUT_AUDIO_TYPES = frozenset({
    "response.audio.delta",
    "response.output_audio.delta",
})


class OpenAIRealtimeTransport:
    """
    WebSocket client for the realtime endpoint.

    Callbacks:
    - on_connection_change("connecting" | "connected" | "disconnected")
    - on_message(raw server event dict)
    - on_history_added(item dict)
    - on_history_updated(list of item dicts)
    """

    def __init__(
        self,
        *,
        url: str,
        model: str,
        on_connection_change: Callable[[str], Awaitable[None]],
        on_message: Callable[[dict[str, Any]], Awaitable[None]],
        on_history_added: Callable[[dict[str, Any]], Awaitable[None]],
        on_history_updated: Callable[[list[dict[str, Any]]], Awaitable[None]],
    ) -> None:
        self._url = url
        self._model = model
        self._on_connection_change = on_connection_change
        self._on_message = on_message
        self._on_history_added = on_history_added
        self._on_history_updated = on_history_updated

        self._ws: ClientConnection | None = None
        self._recv_task: asyncio.Task[None] | None = None
        self._muted = False
        self._closing = False

    @property
    def muted(self) -> bool:
        return self._muted

    # -------------------------------------------------------------------------
    # RealtimeTransportProtocol
    # -------------------------------------------------------------------------

    async def connect(self, secret: str) -> None:
        """Open the socket; raises on failure."""
        if self._ws is not None:
            raise RuntimeError("transport already connected")

        await self._on_connection_change("connecting")

        self._ws = await ws_connect(
            f"{self._url}?model={self._model}",
            additional_headers={
                "Authorization": f"Bearer {secret}",
                "OpenAI-Beta": "realtime=v1",
            },
            max_size=TRANSPORT_MAX_MESSAGE_BYTES,
        )
        self._closing = False
        self._recv_task = asyncio.create_task(self._recv_loop(self._ws))

        await self._on_connection_change("connected")

    async def disconnect(self) -> None:
        self._closing = True
        ws = self._ws
        self._ws = None

        task = self._recv_task
        self._recv_task = None
        if task is not None and not task.done():
            task.cancel()

        if ws is not None:
            await ws.close()
            await self._on_connection_change("disconnected")

    async def send_event(self, payload: dict[str, Any]) -> None:
        if self._ws is None:
            raise RuntimeError("transport not connected")
        await self._ws.send(json.dumps(payload))

    async def interrupt(self) -> None:
        await self.send_event({"type": "response.cancel"})

    async def mute(self, muted: bool) -> None:
        self._muted = muted

    # -------------------------------------------------------------------------
    # Background loop
    # -------------------------------------------------------------------------

    async def _recv_loop(self, ws: ClientConnection) -> None:
        reason: str | None = None
        try:
            async for raw in ws:
                try:
                    data = json.loads(raw)
                except ValueError as e:
                    log_event({
                        "ts_ms": _now_ms(),
                        "event_type": "transport_malformed_message",
                        "error": repr(e),
                    }, level="warning")
                    continue

                if isinstance(data, dict):
                    await self._dispatch(data)
        except asyncio.CancelledError:
            return
        except ConnectionClosed as e:
            reason = f"closed: {e.rcvd.code if e.rcvd else 'no close frame'}"

        if self._closing:
            return

        self._ws = None
        self._recv_task = None
        log_event({
            "ts_ms": _now_ms(),
            "event_type": "transport_closed",
            "reason": reason,
        }, level="warning")
        await self._on_connection_change("disconnected")

    async def _dispatch(self, data: dict[str, Any]) -> None:
        msg_type = data.get("type")

        if msg_type in _ITEM_ADDED_TYPES:
            item = data.get("item")
            if isinstance(item, dict):
                await self._on_history_added(item)
            return

        if msg_type in _ITEM_UPDATED_TYPES:
            item = data.get("item")
            if isinstance(item, dict):
                await self._on_history_updated([item])
            return

        if msg_type in _OUTPUT_AUDIO_TYPES and self._muted:
            return

        await self._on_message(data)
