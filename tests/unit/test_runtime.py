# pylint: disable=missing-module-docstring,missing-function-docstring

import asyncio
from typing import Any

import pytest

import orchestrator.reducer as reducer_mod
import orchestrator.runtime as runtime_mod
from orchestrator.runtime import Runtime
from orchestrator.runtime_context import RuntimeExecutionContext
from orchestrator.state_dataclass import SessionState
from orchestrator.enums.recording import RecordingPhase
from orchestrator.events import (
    ConnectRequested,
    EventType,
    HistoryItem,
    HistoryItemAdded,
    TransportConnected,
    UserTextSubmitted,
)
from services.recording_service import CaptureRequest
from session.voice_session import VoiceSession


class FakeTransport:
    def __init__(self, *, fail_interrupt: bool = False) -> None:
        self.sent: list[dict[str, Any]] = []
        self.calls: list[str] = []
        self.fail_interrupt = fail_interrupt

    async def connect(self, secret: str) -> None:
        self.calls.append("connect")

    async def disconnect(self) -> None:
        self.calls.append("disconnect")

    async def send_event(self, payload: dict[str, Any]) -> None:
        self.sent.append(payload)

    async def interrupt(self) -> None:
        self.calls.append("interrupt")
        if self.fail_interrupt:
            raise RuntimeError("no active response")

    async def mute(self, muted: bool) -> None:
        self.calls.append(f"mute:{muted}")


class FakeRecorder:
    def __init__(self, *, metadata: dict[str, Any] | None = None, fail_stop: bool = False) -> None:
        self.started: list[CaptureRequest] = []
        self.stopped = 0
        self.metadata = metadata
        self.fail_stop = fail_stop

    async def start(self, request: CaptureRequest) -> None:
        self.started.append(request)

    async def stop(self) -> dict[str, Any] | None:
        self.stopped += 1
        if self.fail_stop:
            raise OSError("upload failed")
        return self.metadata


def make_runtime(
    transport: FakeTransport | None = None,
    recorder: FakeRecorder | None = None,
) -> tuple[Runtime, VoiceSession]:
    session = VoiceSession(session_id="sess_test", transport=transport, recorder=recorder)
    runtime = Runtime(initial_state=SessionState(), context=RuntimeExecutionContext(session))
    session.attach_runtime(runtime)
    return runtime, session


def tool_call(item_id: str, name: str) -> HistoryItemAdded:
    return HistoryItemAdded(
        event_type=EventType.HISTORY_ITEM_ADDED,
        ts_ms=0,
        item=HistoryItem(
            item_id=item_id,
            item_type="function_call",
            name=name,
            arguments="{}",
            status="completed",
        ),
    )


async def go_online(runtime: Runtime) -> None:
    await runtime.handle_event(ConnectRequested(event_type=EventType.CONNECT_REQUESTED, ts_ms=0))
    await runtime.handle_event(
        TransportConnected(event_type=EventType.TRANSPORT_CONNECTED, ts_ms=1, greeting_item_id="greet-1")
    )


@pytest.fixture(autouse=True)
def quiet(monkeypatch: pytest.MonkeyPatch) -> list[dict[str, Any]]:
    emitted: list[dict[str, Any]] = []

    def fake_log_event(payload: dict[str, Any], **_: Any) -> None:
        emitted.append(payload)

    monkeypatch.setattr(runtime_mod, "log_event", fake_log_event)
    monkeypatch.setattr(reducer_mod, "RECORDING_SETTLE_DELAY_MS", 0)
    return emitted


def test_connect_flushes_config_greeting_and_response():
    transport = FakeTransport()
    runtime, _ = make_runtime(transport)

    asyncio.run(go_online(runtime))

    assert [p["type"] for p in transport.sent] == [
        "session.update",
        "conversation.item.create",
        "response.create",
    ]
    assert transport.calls == ["mute:False"]


def test_state_snapshot_is_published_after_change():
    runtime, session = make_runtime(FakeTransport())

    asyncio.run(go_online(runtime))

    out = session.drain_control()
    assert [m["type"] for m in out] == ["state", "state"]
    assert out[-1]["state"]["connection_status"] == "CONNECTED"


def test_settle_timer_fires_even_when_interrupt_fails(quiet: list[dict[str, Any]]):
    transport = FakeTransport(fail_interrupt=True)
    recorder = FakeRecorder()
    runtime, _ = make_runtime(transport, recorder)

    async def scenario() -> None:
        await go_online(runtime)
        await runtime.handle_event(tool_call("fc1", "startRecording"))
        await asyncio.sleep(0.05)

    asyncio.run(scenario())

    assert "interrupt" in transport.calls
    assert any(e["event_type"] == "command_failed" for e in quiet)
    assert runtime.state.recording.phase is RecordingPhase.RECORDING
    assert len(recorder.started) == 1
    assert recorder.started[0].target_path.startswith("Student/")
    assert recorder.started[0].target_path.endswith(".mp3")


def test_stop_dispatches_capture_stopped_then_completion():
    recorder = FakeRecorder(metadata={"file_path": "Student/x.mp3"})
    runtime, _ = make_runtime(FakeTransport(), recorder)

    async def scenario() -> None:
        await go_online(runtime)
        await runtime.handle_event(tool_call("fc1", "startRecording"))
        await asyncio.sleep(0.05)
        await runtime.handle_event(tool_call("fc2", "stopRecording"))

    asyncio.run(scenario())

    assert recorder.stopped == 1
    assert runtime.state.recording.phase is RecordingPhase.IDLE
    titles = [b.title for b in runtime.state.transcript.breadcrumbs()]
    assert titles[-1] == "Recording metadata saved"


def test_recorder_failure_becomes_recording_failed():
    runtime, _ = make_runtime(FakeTransport(), FakeRecorder(fail_stop=True))

    async def scenario() -> None:
        await go_online(runtime)
        await runtime.handle_event(tool_call("fc1", "startRecording"))
        await asyncio.sleep(0.05)
        await runtime.handle_event(tool_call("fc2", "stopRecording"))

    asyncio.run(scenario())

    assert runtime.state.recording.phase is RecordingPhase.IDLE
    crumb = runtime.state.transcript.breadcrumbs()[-1]
    assert crumb.title == "Failed to save recording"
    assert crumb.data is not None
    assert "upload failed" in crumb.data["error"]


def test_recorder_returning_none_waits_in_processing():
    runtime, _ = make_runtime(FakeTransport(), FakeRecorder(metadata=None))

    async def scenario() -> None:
        await go_online(runtime)
        await runtime.handle_event(tool_call("fc1", "startRecording"))
        await asyncio.sleep(0.05)
        await runtime.handle_event(tool_call("fc2", "stopRecording"))

    asyncio.run(scenario())

    assert runtime.state.recording.phase is RecordingPhase.PROCESSING


def test_stop_before_settle_cancels_timer():
    recorder = FakeRecorder()
    runtime, _ = make_runtime(FakeTransport(), recorder)

    async def scenario() -> None:
        await go_online(runtime)
        await runtime.handle_event(tool_call("fc1", "startRecording"))
        await runtime.handle_event(tool_call("fc2", "stopRecording"))
        await asyncio.sleep(0.05)

    asyncio.run(scenario())

    assert recorder.started == []
    assert runtime.state.recording.phase is RecordingPhase.IDLE


def test_missing_transport_is_logged_not_raised(quiet: list[dict[str, Any]]):
    runtime, _ = make_runtime(transport=None)

    asyncio.run(go_online(runtime))

    assert any(e["event_type"] == "transport_missing" for e in quiet)
    assert runtime.state.is_connected


def test_reducer_error_keeps_previous_state(monkeypatch: pytest.MonkeyPatch, quiet: list[dict[str, Any]]):
    runtime, _ = make_runtime(FakeTransport())

    def broken_reduce(state: SessionState, event: Any) -> Any:
        raise ValueError("boom")

    monkeypatch.setattr(runtime_mod, "reduce", broken_reduce)
    before = runtime.state

    asyncio.run(runtime.handle_event(ConnectRequested(event_type=EventType.CONNECT_REQUESTED, ts_ms=0)))

    assert runtime.state is before
    errors = [e for e in quiet if e["event_type"] == "reducer_error"]
    assert errors and "boom" in errors[0]["error"]


def test_events_are_processed_in_arrival_order():
    transport = FakeTransport()
    runtime, _ = make_runtime(transport)

    async def scenario() -> None:
        await go_online(runtime)
        transport.sent.clear()
        await asyncio.gather(
            runtime.handle_event(
                UserTextSubmitted(event_type=EventType.USER_TEXT_SUBMITTED, ts_ms=2, item_id="t1", text="one")
            ),
            runtime.handle_event(
                UserTextSubmitted(event_type=EventType.USER_TEXT_SUBMITTED, ts_ms=3, item_id="t2", text="two")
            ),
        )

    asyncio.run(scenario())

    created = [p["item"]["id"] for p in transport.sent if p["type"] == "conversation.item.create"]
    assert created == ["t1", "t2"]
    assert [i.item_id for i in runtime.state.transcript.items()][-2:] == ["t1", "t2"]
