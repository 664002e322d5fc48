# pylint: disable=missing-module-docstring,missing-function-docstring

from orchestrator.reducer import reduce
from orchestrator.state_dataclass import SessionState
from orchestrator.events import ConnectRequested, EventType, ResponseDone
from orchestrator.commands import LogEvent


REQUIRED_FIELDS = (
    "ts_ms",
    "connection_status",
    "active_agent",
    "recording_phase",
    "event_type",
    "decision",
    "details",
)


def test_reducer_emits_logevent_with_required_fields():
    event = ConnectRequested(event_type=EventType.CONNECT_REQUESTED, ts_ms=123)

    _, commands = reduce(SessionState(), event)

    log_events = [c for c in commands if isinstance(c, LogEvent)]
    assert log_events, "Reducer must emit at least one LogEvent"

    payload = log_events[0].event
    for key in REQUIRED_FIELDS:
        assert key in payload

    assert payload["ts_ms"] == 123
    assert payload["event_type"] == "CONNECT_REQUESTED"
    assert payload["recording_phase"] == "IDLE"


def test_ignored_event_still_logs_reason():
    _, commands = reduce(SessionState(), ResponseDone(event_type=EventType.RESPONSE_DONE, ts_ms=1))

    assert len(commands) == 1
    log = commands[0]
    assert isinstance(log, LogEvent)
    assert log.event["decision"] == "ignore"
    assert log.event["details"]["reason"]


def test_state_changed_log_is_emitted_last():
    _, commands = reduce(SessionState(), ConnectRequested(event_type=EventType.CONNECT_REQUESTED, ts_ms=0))

    last = commands[-1]
    assert isinstance(last, LogEvent)
    assert last.event["decision"] == "state_changed"
    assert last.event["details"]["to_state"] == "CONNECTING"
