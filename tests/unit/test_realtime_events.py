# pylint: disable=missing-module-docstring,missing-function-docstring

import pytest

from orchestrator.events import (
    AssistantDelta,
    GuardrailTripped,
    ResponseDone,
    UserSpeechStarted,
    UserTranscriptionCompleted,
    UserTranscriptionDelta,
)
from protocol.realtime_events import (
    MalformedEvent,
    decode_history_item,
    decode_server_event,
)


def test_assistant_transcript_delta_carries_both_ids():
    event = decode_server_event(
        {"type": "response.audio_transcript.delta", "item_id": "a1", "response_id": "r1", "delta": "Hi"},
        ts_ms=5,
    )

    assert isinstance(event, AssistantDelta)
    assert (event.item_id, event.response_id, event.delta, event.ts_ms) == ("a1", "r1", "Hi", 5)


def test_camel_case_ids_and_text_field_are_accepted():
    event = decode_server_event(
        {"type": "response.output_text.delta", "responseId": "r9", "text": "yo"},
        ts_ms=0,
    )

    assert isinstance(event, AssistantDelta)
    assert event.item_id is None
    assert event.response_id == "r9"
    assert event.delta == "yo"


def test_assistant_delta_without_ids_is_malformed():
    with pytest.raises(MalformedEvent):
        decode_server_event({"type": "response.text.delta", "delta": "x"}, ts_ms=0)


def test_user_speech_events():
    started = decode_server_event({"type": "input_audio_buffer.speech_started", "item_id": "u1"}, ts_ms=0)
    delta = decode_server_event(
        {"type": "conversation.item.input_audio_transcription.delta", "item_id": "u1", "delta": "He"},
        ts_ms=0,
    )
    done = decode_server_event(
        {"type": "conversation.item.input_audio_transcription.completed", "item_id": "u1", "transcript": "Hey"},
        ts_ms=0,
    )

    assert isinstance(started, UserSpeechStarted)
    assert isinstance(delta, UserTranscriptionDelta)
    assert isinstance(done, UserTranscriptionCompleted)
    assert done.transcript == "Hey"


def test_transcription_completed_requires_transcript():
    with pytest.raises(MalformedEvent):
        decode_server_event(
            {"type": "conversation.item.input_audio_transcription.completed", "item_id": "u1"},
            ts_ms=0,
        )


def test_guardrail_rationale_may_be_nested():
    event = decode_server_event(
        {"type": "guardrail_tripped", "info": {"rationale": "off topic"}},
        ts_ms=0,
    )

    assert isinstance(event, GuardrailTripped)
    assert event.item_id is None
    assert event.rationale == "off topic"


def test_response_done_reads_nested_response_id():
    event = decode_server_event({"type": "response.done", "response": {"id": "r1"}}, ts_ms=0)

    assert isinstance(event, ResponseDone)
    assert event.response_id == "r1"


def test_unknown_types_decode_to_none():
    assert decode_server_event({"type": "session.updated"}, ts_ms=0) is None
    assert decode_server_event({}, ts_ms=0) is None


def test_history_item_normalization():
    item = decode_history_item({
        "itemId": "m1",
        "type": "message",
        "role": "assistant",
        "status": "completed",
        "content": [{"type": "text", "text": "hi"}, "junk"],
    })

    assert item.item_id == "m1"
    assert item.role == "assistant"
    assert item.content == ({"type": "text", "text": "hi"},)


def test_history_item_without_type_is_malformed():
    with pytest.raises(MalformedEvent):
        decode_history_item({"id": "x"})
