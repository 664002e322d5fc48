# pylint: disable=missing-module-docstring,missing-function-docstring,protected-access

import asyncio
from typing import Any

import pytest

from session.transport import OpenAIRealtimeTransport


class Recorder:
    def __init__(self) -> None:
        self.statuses: list[str] = []
        self.messages: list[dict[str, Any]] = []
        self.added: list[dict[str, Any]] = []
        self.updated: list[list[dict[str, Any]]] = []

    async def on_connection_change(self, status: str) -> None:
        self.statuses.append(status)

    async def on_message(self, data: dict[str, Any]) -> None:
        self.messages.append(data)

    async def on_history_added(self, item: dict[str, Any]) -> None:
        self.added.append(item)

    async def on_history_updated(self, items: list[dict[str, Any]]) -> None:
        self.updated.append(items)


def make_transport(rec: Recorder) -> OpenAIRealtimeTransport:
    return OpenAIRealtimeTransport(
        url="wss://example.invalid/v1/realtime",
        model="gpt-4o-realtime-preview",
        on_connection_change=rec.on_connection_change,
        on_message=rec.on_message,
        on_history_added=rec.on_history_added,
        on_history_updated=rec.on_history_updated,
    )


def test_item_events_are_routed_to_history_callbacks():
    rec = Recorder()
    transport = make_transport(rec)

    async def scenario() -> None:
        await transport._dispatch({"type": "conversation.item.created", "item": {"id": "i1"}})
        await transport._dispatch({"type": "response.output_item.done", "item": {"id": "i2"}})
        await transport._dispatch({"type": "response.audio_transcript.delta", "delta": "x"})

    asyncio.run(scenario())

    assert rec.added == [{"id": "i1"}]
    assert rec.updated == [[{"id": "i2"}]]
    assert [m["type"] for m in rec.messages] == ["response.audio_transcript.delta"]


def test_output_audio_is_dropped_while_muted():
    rec = Recorder()
    transport = make_transport(rec)

    async def scenario() -> None:
        await transport.mute(True)
        await transport._dispatch({"type": "response.audio.delta", "delta": "AAAA"})
        await transport.mute(False)
        await transport._dispatch({"type": "response.audio.delta", "delta": "BBBB"})

    asyncio.run(scenario())

    assert [m["delta"] for m in rec.messages] == ["BBBB"]


def test_send_before_connect_raises():
    transport = make_transport(Recorder())

    with pytest.raises(RuntimeError):
        asyncio.run(transport.send_event({"type": "response.create"}))


def test_disconnect_without_socket_is_silent():
    rec = Recorder()
    transport = make_transport(rec)

    asyncio.run(transport.disconnect())

    assert rec.statuses == []
