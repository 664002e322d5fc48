"""
Realtime server-event decoding.

Translates raw realtime server events (already JSON-decoded) into reducer
events. Pure: timestamps and ids are supplied by the caller.

    event = decode_server_event(data, ts_ms=now_ms)
    if event is not None:
        await runtime.handle_event(event)

Unknown event types decode to None (ignored). Known types missing their
required fields raise MalformedEvent so the caller can log and discard.

Both snake_case and camelCase id spellings are accepted (item_id/itemId,
response_id/responseId), and deltas may arrive as `delta` or `text`.
"""

from __future__ import annotations

from typing import Any, Mapping

from orchestrator.events import (
    AssistantDelta,
    Event,
    EventType,
    GuardrailTripped,
    HistoryItem,
    ResponseDone,
    UserSpeechStarted,
    UserTranscriptionCompleted,
    UserTranscriptionDelta,
)


# -------------------------
# Exceptions
# -------------------------

class RealtimeProtocolError(Exception):
    """Base class for realtime protocol decoding errors."""


class MalformedEvent(RealtimeProtocolError):
    """
    A recognized event type lacks a required field, or a field has the
    wrong type. The event is unsafe to apply and must be dropped.
    """


# -------------------------
# Event type groups
# -------------------------

ASSISTANT_DELTA_TYPES = frozenset({
    "response.text.delta",
    "response.audio_transcript.delta",
    "response.output_text.delta",
    "response.output_audio_transcript.delta",
})

USER_TRANSCRIPTION_DELTA_TYPES = frozenset({
    "conversation.input_audio_transcription.delta",
    "conversation.item.input_audio_transcription.delta",
})

USER_TRANSCRIPTION_COMPLETED = "conversation.item.input_audio_transcription.completed"
USER_SPEECH_STARTED = "input_audio_buffer.speech_started"
GUARDRAIL_TRIPPED = "guardrail_tripped"
RESPONSE_DONE = "response.done"


# -------------------------
# Low-level helpers
# -------------------------

def _first_str(data: Mapping[str, Any], *keys: str) -> str | None:
    """First non-empty string value among keys."""
    for key in keys:
        value = data.get(key)
        if isinstance(value, str) and value:
            return value
    return None


def _item_id(data: Mapping[str, Any]) -> str | None:
    return _first_str(data, "item_id", "itemId")


def _response_id(data: Mapping[str, Any]) -> str | None:
    found = _first_str(data, "response_id", "responseId")
    if found is not None:
        return found
    response = data.get("response")
    if isinstance(response, Mapping):
        return _first_str(response, "id")
    return None


def _delta_text(data: Mapping[str, Any]) -> str | None:
    for key in ("delta", "text"):
        value = data.get(key)
        if isinstance(value, str):
            return value
    return None


# -------------------------
# Decoders
# -------------------------

def decode_server_event(data: Mapping[str, Any], *, ts_ms: int) -> Event | None:
    """
    Map one raw server event to a reducer event.

    Returns:
        The event, or None when the type is not one the reducer consumes.

    Raises:
        MalformedEvent when a consumed type is missing required fields.
    """
    msg_type = data.get("type")

    if msg_type in ASSISTANT_DELTA_TYPES:
        delta = _delta_text(data)
        item_id = _item_id(data)
        response_id = _response_id(data)
        if delta is None:
            raise MalformedEvent(f"{msg_type}: missing delta")
        if item_id is None and response_id is None:
            raise MalformedEvent(f"{msg_type}: missing item and response id")
        return AssistantDelta(
            event_type=EventType.ASSISTANT_DELTA,
            ts_ms=ts_ms,
            delta=delta,
            item_id=item_id,
            response_id=response_id,
        )

    if msg_type == USER_SPEECH_STARTED:
        item_id = _item_id(data)
        if item_id is None:
            raise MalformedEvent(f"{msg_type}: missing item id")
        return UserSpeechStarted(
            event_type=EventType.USER_SPEECH_STARTED,
            ts_ms=ts_ms,
            item_id=item_id,
        )

    if msg_type in USER_TRANSCRIPTION_DELTA_TYPES:
        item_id = _item_id(data)
        delta = _delta_text(data)
        if item_id is None or delta is None:
            raise MalformedEvent(f"{msg_type}: missing item id or delta")
        return UserTranscriptionDelta(
            event_type=EventType.USER_TRANSCRIPTION_DELTA,
            ts_ms=ts_ms,
            item_id=item_id,
            delta=delta,
        )

    if msg_type == USER_TRANSCRIPTION_COMPLETED:
        item_id = _item_id(data)
        transcript = data.get("transcript")
        if item_id is None or not isinstance(transcript, str):
            raise MalformedEvent(f"{msg_type}: missing item id or transcript")
        return UserTranscriptionCompleted(
            event_type=EventType.USER_TRANSCRIPTION_COMPLETED,
            ts_ms=ts_ms,
            item_id=item_id,
            transcript=transcript,
        )

    if msg_type == GUARDRAIL_TRIPPED:
        info = data.get("info") if isinstance(data.get("info"), Mapping) else {}
        return GuardrailTripped(
            event_type=EventType.GUARDRAIL_TRIPPED,
            ts_ms=ts_ms,
            item_id=_item_id(data),
            rationale=_first_str(data, "rationale") or _first_str(info, "rationale"),
        )

    if msg_type == RESPONSE_DONE:
        return ResponseDone(
            event_type=EventType.RESPONSE_DONE,
            ts_ms=ts_ms,
            response_id=_response_id(data),
        )

    return None


def decode_history_item(raw: Mapping[str, Any]) -> HistoryItem:
    """
    Normalize one conversation item snapshot.

    Raises:
        MalformedEvent when the item has no id or no type.
    """
    item_id = _first_str(raw, "id", "item_id", "itemId")
    item_type = _first_str(raw, "type")
    if item_id is None or item_type is None:
        raise MalformedEvent("history item missing id or type")

    content = raw.get("content")
    parts: tuple[dict[str, Any], ...] = ()
    if isinstance(content, (list, tuple)):
        parts = tuple(dict(p) for p in content if isinstance(p, Mapping))

    role = raw.get("role")
    status = raw.get("status")
    name = raw.get("name")

    return HistoryItem(
        item_id=item_id,
        item_type=item_type,
        role=role if isinstance(role, str) else None,
        content=parts,
        status=status if isinstance(status, str) else None,
        name=name if isinstance(name, str) else None,
        arguments=raw.get("arguments"),
        output=raw.get("output"),
    )
