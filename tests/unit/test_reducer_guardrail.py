# pylint: disable=missing-module-docstring,missing-function-docstring

from orchestrator.reducer import reduce
from orchestrator.state_dataclass import SessionState
from orchestrator.events import (
    AssistantDelta,
    Event,
    EventType,
    GuardrailTripped,
    HistoryItem,
    HistoryItemUpdated,
    ResponseDone,
)
from transcript.items import GuardrailCategory, GuardrailStatus


def assistant_delta(item_id: str, delta: str = "text") -> AssistantDelta:
    return AssistantDelta(event_type=EventType.ASSISTANT_DELTA, ts_ms=0, delta=delta, item_id=item_id)


def trip(item_id: str | None = None, rationale: str | None = None) -> GuardrailTripped:
    return GuardrailTripped(event_type=EventType.GUARDRAIL_TRIPPED, ts_ms=0, item_id=item_id, rationale=rationale)


def done() -> ResponseDone:
    return ResponseDone(event_type=EventType.RESPONSE_DONE, ts_ms=0, response_id="r1")


def completed_snapshot(item_id: str) -> HistoryItemUpdated:
    return HistoryItemUpdated(
        event_type=EventType.HISTORY_ITEM_UPDATED,
        ts_ms=0,
        item=HistoryItem(
            item_id=item_id,
            item_type="message",
            role="assistant",
            content=({"type": "text", "text": "text"},),
            status="completed",
        ),
    )


def run(events: list[Event]) -> SessionState:
    state = SessionState()
    for event in events:
        state, _ = reduce(state, event)
    return state


def guardrail_of(state: SessionState, item_id: str):
    got = state.transcript.get(item_id)
    assert got is not None
    return got.guardrail


def test_trip_then_done_stays_off_brand():
    state = run([assistant_delta("a1"), trip(), done()])

    result = guardrail_of(state, "a1")
    assert result.category is GuardrailCategory.OFF_BRAND
    assert result.status is GuardrailStatus.DONE


def test_done_then_trip_overrides_pass():
    state = run([assistant_delta("a1"), done(), trip()])

    result = guardrail_of(state, "a1")
    assert result.category is GuardrailCategory.OFF_BRAND
    assert result.rationale == "Guardrail triggered"


def test_done_without_trip_passes():
    state = run([assistant_delta("a1"), done()])

    result = guardrail_of(state, "a1")
    assert result.status is GuardrailStatus.DONE
    assert result.category is GuardrailCategory.NONE


def test_completed_snapshot_resolves_pass_but_not_over_trip():
    passed = run([assistant_delta("a1"), completed_snapshot("a1")])
    assert guardrail_of(passed, "a1").category is GuardrailCategory.NONE

    tripped = run([assistant_delta("a1"), trip(), completed_snapshot("a1")])
    assert guardrail_of(tripped, "a1").category is GuardrailCategory.OFF_BRAND


def test_trip_targets_most_recent_assistant_item():
    state = run([assistant_delta("a1"), done(), assistant_delta("a2"), trip()])

    assert guardrail_of(state, "a1").category is GuardrailCategory.NONE
    assert guardrail_of(state, "a2").category is GuardrailCategory.OFF_BRAND


def test_explicit_item_id_wins_over_recency():
    state = run([assistant_delta("a1"), assistant_delta("a2"), trip(item_id="a1", rationale="off topic")])

    assert guardrail_of(state, "a1").category is GuardrailCategory.OFF_BRAND
    assert guardrail_of(state, "a1").rationale == "off topic"
    assert guardrail_of(state, "a2").is_pending


def test_trip_without_assistant_item_is_ignored():
    state, cmds = reduce(SessionState(), trip())

    assert len(state.transcript) == 0
    assert cmds[0].event["details"]["reason"] == "no_assistant_item"
