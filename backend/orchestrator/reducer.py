# pylint: disable=too-many-lines,too-many-return-statements
"""
Pure session reducer.

(state, event) -> (new_state, commands)

Rules:
- Pure: no side effects, no IO, no clocks.
- Deterministic: output depends only on inputs.
- Total: every event is handled or explicitly ignored (logged).
- Idempotent: re-delivered deltas/snapshots never duplicate content or
  regress status.
"""

from __future__ import annotations

from dataclasses import replace
from typing import Any

from constants import (
    AGENT_BREADCRUMB_PREFIX,
    ASSISTANT_RESPONSE_KEY_PREFIX,
    DEFAULT_RECORDING_DESCRIPTION,
    DEFAULT_RECORDING_PURPOSE,
    GREETING_TRIGGER_TEXT,
    RECORDING_COMPLETED_BREADCRUMB,
    RECORDING_FAILED_BREADCRUMB,
    RECORDING_SETTLE_DELAY_MS,
    TIMER_RECORDING_SETTLE,
    TOOL_CALL_BREADCRUMB_PREFIX,
    TOOL_SAVE_SUBJECT_NAME,
    TOOL_START_RECORDING,
    TOOL_STOP_RECORDING,
    TRANSCRIBING_PLACEHOLDER,
    server_vad_turn_detection,
)
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
from orchestrator.content import extract_text
from orchestrator.enums.recording import RecordingKind, RecordingPhase
from orchestrator.events import (
    AssistantDelta,
    AudioPlaybackToggled,
    CaptureStopped,
    ConnectFailed,
    ConnectRequested,
    DisconnectRequested,
    Event,
    EventType,
    GuardrailTripped,
    HistoryItem,
    HistoryItemAdded,
    HistoryItemUpdated,
    PushToTalkPressed,
    PushToTalkReleased,
    PushToTalkToggled,
    RecordingCompleted,
    RecordingFailed,
    RecordingSettled,
    ResponseDone,
    SessionReset,
    TransportConnected,
    TransportConnecting,
    TransportDisconnected,
    UserSpeechStarted,
    UserTextSubmitted,
    UserTranscriptionCompleted,
    UserTranscriptionDelta,
)
from orchestrator.guardrail import PASSED, PENDING, can_pass, resolve_guardrail_target, tripped
from orchestrator.handoff import parse_transfer_target, resolve_agent
from orchestrator.state_dataclass import RecordingState, SessionState
from orchestrator.tool_args import parse_tool_arguments, string_arg
from session.connection_status import ConnectionStatus
from transcript.items import ItemStatus, Role, TranscriptItem
from transcript.store import TranscriptStore


Reduction = tuple[SessionState, tuple[Command, ...]]


# =============================================================================
# Small helpers
# =============================================================================

def _log(
    state: SessionState,
    event: Event,
    decision: str,
    details: dict[str, Any] | None = None,
) -> LogEvent:
    return LogEvent(
        event={
            "ts_ms": event.ts_ms,
            "connection_status": state.connection_status.value,
            "active_agent": state.active_agent,
            "recording_phase": state.recording.phase.value,
            "event_type": event.event_type.value,
            "decision": decision,
            "details": details or {},
        }
    )


def _logs_last(commands: tuple[Command, ...]) -> tuple[Command, ...]:
    non_logs: list[Command] = []
    logs: list[Command] = []
    state_change_logs: list[Command] = []

    for command in commands:
        if isinstance(command, LogEvent):
            if command.event.get("decision") == "state_changed":
                state_change_logs.append(command)
            else:
                logs.append(command)
        else:
            non_logs.append(command)

    return tuple(non_logs + logs + state_change_logs)


def _ignore(state: SessionState, event: Event, reason: str, **details: Any) -> Reduction:
    return state, (_log(state, event, "ignore", {"reason": reason, **details}),)


def _state_changed(
    prev: SessionState,
    new: SessionState,
    event: Event,
    source: str,
) -> LogEvent:
    return _log(
        new,
        event,
        "state_changed",
        {
            "from_state": prev.connection_status.value,
            "to_state": new.connection_status.value,
            "source": source,
        },
    )


def _session_config(state: SessionState) -> dict[str, Any]:
    """session.update body; turn detection is off under push-to-talk."""
    return {
        "turn_detection": None if state.push_to_talk_enabled else server_vad_turn_detection(),
    }


def _user_message_payload(item_id: str, text: str) -> dict[str, Any]:
    return {
        "type": "conversation.item.create",
        "item": {
            "id": item_id,
            "type": "message",
            "role": "user",
            "content": [{"type": "input_text", "text": text}],
        },
    }


_RESPONSE_CREATE: dict[str, Any] = {"type": "response.create"}


def _announce_agent(store: TranscriptStore, state: SessionState, name: str, ts_ms: int) -> TranscriptStore:
    profile = next((a for a in state.agents if a.name == name), None)
    return store.append_breadcrumb(
        f"{AGENT_BREADCRUMB_PREFIX}{name}",
        ts_ms=ts_ms,
        data=profile.to_dict() if profile else None,
    )


# =============================================================================
# Connection lifecycle
# =============================================================================

def _enter_disconnected(
    state: SessionState,
    event: Event,
    source: str,
    reason: str | None = None,
) -> Reduction:
    if state.connection_status is ConnectionStatus.DISCONNECTED and reason is None:
        return _ignore(state, event, "already_disconnected", source=source)

    new_state = replace(
        state,
        connection_status=ConnectionStatus.DISCONNECTED,
        active_agent=None,
        ptt_user_speaking=False,
        last_error=reason if reason is not None else state.last_error,
    )
    cmds: list[Command] = [_log(new_state, event, source, {"reason": reason})]
    if state.connection_status is not ConnectionStatus.DISCONNECTED:
        cmds.append(_state_changed(state, new_state, event, source))
    return new_state, _logs_last(tuple(cmds))


def _enter_connected(state: SessionState, event: TransportConnected) -> Reduction:
    root = state.root_agent or (state.agents[0].name if state.agents else None)

    new_state = replace(
        state,
        connection_status=ConnectionStatus.CONNECTED,
        active_agent=root,
        last_error=None,
    )

    store = new_state.transcript
    if root is not None:
        store = _announce_agent(store, new_state, root, event.ts_ms)

    # Hidden trigger so the agent speaks first.
    store = store.upsert(
        TranscriptItem(
            item_id=event.greeting_item_id,
            role=Role.USER,
            text=GREETING_TRIGGER_TEXT,
            status=ItemStatus.DONE,
            created_at_ms=event.ts_ms,
            hidden=True,
        )
    )
    new_state = replace(new_state, transcript=store)

    cmds: tuple[Command, ...] = (
        PushSessionConfig(session=_session_config(new_state)),
        MuteOutput(muted=not new_state.audio_playback_enabled),
        SendTransportEvent(
            payload=_user_message_payload(event.greeting_item_id, GREETING_TRIGGER_TEXT),
            reason="greeting_trigger",
        ),
        SendTransportEvent(payload=dict(_RESPONSE_CREATE), reason="greeting_trigger"),
        _log(new_state, event, "session_connected", {"active_agent": root}),
        _state_changed(state, new_state, event, "transport_connected"),
    )
    return new_state, _logs_last(cmds)


def _reduce_lifecycle(state: SessionState, event: Event) -> Reduction | None:
    if isinstance(event, ConnectRequested):
        if state.connection_status is not ConnectionStatus.DISCONNECTED:
            return _ignore(state, event, "connect_while_not_disconnected")
        new_state = replace(
            state,
            connection_status=ConnectionStatus.CONNECTING,
            last_error=None,
        )
        return new_state, _logs_last((
            _log(new_state, event, "connect_requested"),
            _state_changed(state, new_state, event, "connect_requested"),
        ))

    if isinstance(event, ConnectFailed):
        return _enter_disconnected(state, event, "connect_failed", event.reason)

    if isinstance(event, DisconnectRequested):
        return _enter_disconnected(state, event, "disconnect_requested")

    if isinstance(event, TransportDisconnected):
        return _enter_disconnected(state, event, "transport_disconnected", event.reason)

    if isinstance(event, TransportConnecting):
        # Only connect() may move DISCONNECTED -> CONNECTING.
        return _ignore(state, event, "transport_connecting_noop")

    if isinstance(event, TransportConnected):
        if state.connection_status is not ConnectionStatus.CONNECTING:
            return _ignore(
                state,
                event,
                "illegal_transition",
                from_state=state.connection_status.value,
            )
        return _enter_connected(state, event)

    if isinstance(event, SessionReset):
        new_state = replace(
            state,
            transcript=TranscriptStore(),
            response_aliases={},
            logged_tool_calls=frozenset(),
            dispatched_tool_calls=frozenset(),
            recording=RecordingState(),
        )
        cmds: list[Command] = []
        if state.recording.phase is RecordingPhase.ARMED:
            cmds.append(CancelTimer(timer_id=TIMER_RECORDING_SETTLE))
        cmds.append(_log(new_state, event, "session_reset", {"dropped_entries": len(state.transcript)}))
        return new_state, tuple(cmds)

    return None


# =============================================================================
# Streaming deltas
# =============================================================================

def _derived_assistant_key(response_id: str) -> str:
    return f"{ASSISTANT_RESPONSE_KEY_PREFIX}{response_id}"


def _normalize_assistant_key(
    state: SessionState,
    event: AssistantDelta,
) -> tuple[str | None, SessionState]:
    """
    Map an assistant delta onto one key scheme.

    item_id wins. A response-only delta resolves through known aliases,
    else the derived key. A delta carrying both ids records the alias and
    moves any row stored under the derived key onto the item id.
    """
    item_id = event.item_id or None
    response_id = event.response_id or None

    if item_id is None:
        if response_id is None:
            return None, state
        return state.response_aliases.get(response_id, _derived_assistant_key(response_id)), state

    if response_id is not None:
        aliases = state.response_aliases
        if aliases.get(response_id) != item_id:
            aliases = {**aliases, response_id: item_id}
        store = state.transcript.rekey(_derived_assistant_key(response_id), item_id)
        state = replace(state, response_aliases=aliases, transcript=store)

    return item_id, state


def _reduce_assistant_delta(state: SessionState, event: AssistantDelta) -> Reduction:
    if not event.delta:
        return _ignore(state, event, "missing_delta")

    key, state = _normalize_assistant_key(state, event)
    if key is None:
        return _ignore(state, event, "missing_id")

    existing = state.transcript.get(key)

    if existing is None:
        item = TranscriptItem(
            item_id=key,
            role=Role.ASSISTANT,
            text=event.delta,
            status=ItemStatus.IN_PROGRESS,
            created_at_ms=event.ts_ms,
            guardrail=PENDING,
        )
        new_state = replace(state, transcript=state.transcript.upsert(item))
        return new_state, (_log(new_state, event, "assistant_item_created", {"item_id": key}),)

    if existing.role is not Role.ASSISTANT:
        return _ignore(state, event, "role_mismatch", item_id=key)

    if existing.is_done:
        return _ignore(state, event, "delta_after_done", item_id=key)

    store = state.transcript.update(
        key,
        text=existing.text + event.delta,
        status=ItemStatus.IN_PROGRESS,
        guardrail=existing.guardrail or PENDING,
    )
    new_state = replace(state, transcript=store)
    return new_state, (
        _log(new_state, event, "assistant_delta_appended", {"item_id": key, "delta_len": len(event.delta)}),
    )


def _placeholder_user_item(item_id: str, ts_ms: int) -> TranscriptItem:
    return TranscriptItem(
        item_id=item_id,
        role=Role.USER,
        text=TRANSCRIBING_PLACEHOLDER,
        status=ItemStatus.IN_PROGRESS,
        created_at_ms=ts_ms,
        is_placeholder=True,
    )


def _reduce_user_speech_started(state: SessionState, event: UserSpeechStarted) -> Reduction:
    if not event.item_id:
        return _ignore(state, event, "missing_id")

    if state.transcript.contains(event.item_id):
        return _ignore(state, event, "item_exists", item_id=event.item_id)

    store = state.transcript.upsert(_placeholder_user_item(event.item_id, event.ts_ms))
    new_state = replace(state, transcript=store)
    return new_state, (_log(new_state, event, "user_placeholder_created", {"item_id": event.item_id}),)


def _reduce_user_transcription_delta(state: SessionState, event: UserTranscriptionDelta) -> Reduction:
    if not event.item_id:
        return _ignore(state, event, "missing_id")

    store = state.transcript
    existing = store.get(event.item_id)
    if existing is None:
        existing = _placeholder_user_item(event.item_id, event.ts_ms)
        store = store.upsert(existing)
    elif existing.role is not Role.USER:
        return _ignore(state, event, "role_mismatch", item_id=event.item_id)
    elif existing.is_done:
        return _ignore(state, event, "delta_after_done", item_id=event.item_id)

    if event.delta:
        # The placeholder is not content: the first real fragment replaces it.
        text = event.delta if existing.is_placeholder else existing.text + event.delta
        store = store.update(
            event.item_id,
            text=text,
            status=ItemStatus.IN_PROGRESS,
            is_placeholder=False,
        )

    new_state = replace(state, transcript=store)
    return new_state, (
        _log(new_state, event, "user_delta_appended", {"item_id": event.item_id, "delta_len": len(event.delta)}),
    )


def _reduce_user_transcription_completed(
    state: SessionState,
    event: UserTranscriptionCompleted,
) -> Reduction:
    if not event.item_id:
        return _ignore(state, event, "missing_id")

    text = event.transcript.strip()
    existing = state.transcript.get(event.item_id)

    if existing is None:
        store = state.transcript.upsert(
            TranscriptItem(
                item_id=event.item_id,
                role=Role.USER,
                text=text,
                status=ItemStatus.DONE,
                created_at_ms=event.ts_ms,
            )
        )
    elif existing.role is not Role.USER:
        return _ignore(state, event, "role_mismatch", item_id=event.item_id)
    else:
        store = state.transcript.update(
            event.item_id,
            text=text,
            status=ItemStatus.DONE,
            is_placeholder=False,
        )

    new_state = replace(state, transcript=store)
    return new_state, (_log(new_state, event, "user_transcript_finalized", {"item_id": event.item_id}),)


# =============================================================================
# Guardrail
# =============================================================================

def _reduce_guardrail_tripped(state: SessionState, event: GuardrailTripped) -> Reduction:
    target = resolve_guardrail_target(state.transcript, event.item_id)
    if target is None:
        return _ignore(state, event, "no_assistant_item")

    if target.guardrail is not None and target.guardrail.is_tripped:
        return _ignore(state, event, "already_tripped", item_id=target.item_id)

    store = state.transcript.update(target.item_id, guardrail=tripped(event.rationale))
    new_state = replace(state, transcript=store)
    return new_state, (_log(new_state, event, "guardrail_tripped", {"item_id": target.item_id}),)


def _reduce_response_done(state: SessionState, event: ResponseDone) -> Reduction:
    target = state.transcript.latest_item(Role.ASSISTANT)
    if target is None:
        return _ignore(state, event, "no_assistant_item")

    if not can_pass(target.guardrail):
        return _ignore(state, event, "guardrail_already_final", item_id=target.item_id)

    store = state.transcript.update(target.item_id, guardrail=PASSED)
    new_state = replace(state, transcript=store)
    return new_state, (_log(new_state, event, "guardrail_passed", {"item_id": target.item_id}),)


# =============================================================================
# History snapshots
# =============================================================================

def _reduce_history_message(state: SessionState, event: Event, item: HistoryItem) -> Reduction:
    role = Role.parse(item.role)
    if role is None:
        return _ignore(state, event, "unsupported_role", item_id=item.item_id, role=item.role)

    text = extract_text(item.content)
    if not text:
        return _ignore(state, event, "empty_content", item_id=item.item_id)

    completed = item.status == "completed"
    snapshot_status = ItemStatus.DONE if completed else ItemStatus.IN_PROGRESS
    existing = state.transcript.get(item.item_id)
    if existing is not None and existing.role is not role:
        return _ignore(state, event, "role_mismatch", item_id=item.item_id, role=item.role)

    if existing is None:
        store = state.transcript.upsert(
            TranscriptItem(
                item_id=item.item_id,
                role=role,
                text=text,
                status=snapshot_status,
                created_at_ms=event.ts_ms,
                guardrail=PENDING if role is Role.ASSISTANT else None,
            )
        )
        decision = "history_item_created"
    else:
        # Authoritative text wins; status never regresses from DONE.
        status = ItemStatus.DONE if existing.is_done else snapshot_status
        guardrail = existing.guardrail
        if existing.role is Role.ASSISTANT and guardrail is None:
            guardrail = PENDING

        if (
            existing.text == text
            and existing.status is status
            and existing.guardrail == guardrail
            and not existing.is_placeholder
        ):
            store = state.transcript
            decision = "history_item_confirmed"
        else:
            store = state.transcript.update(
                item.item_id,
                text=text,
                status=status,
                guardrail=guardrail,
                is_placeholder=False,
            )
            decision = "history_item_replaced"

    current = store.get(item.item_id)
    if (
        current is not None
        and current.role is Role.ASSISTANT
        and completed
        and can_pass(current.guardrail)
    ):
        store = store.update(item.item_id, guardrail=PASSED)

    if store is state.transcript:
        return state, (_log(state, event, decision, {"item_id": item.item_id}),)

    new_state = replace(state, transcript=store)
    return new_state, (
        _log(new_state, event, decision, {"item_id": item.item_id, "status": item.status}),
    )


def _reduce_function_call(state: SessionState, event: Event, item: HistoryItem) -> Reduction:
    """
    Breadcrumb a tool call once, and run it once its arguments are final.

    The call usually arrives first with empty arguments while in progress,
    then again completed with the real arguments.
    """
    if item.item_id in state.dispatched_tool_calls:
        return _ignore(state, event, "tool_call_already_logged", item_id=item.item_id)

    name = item.name or ""
    args = parse_tool_arguments(item.arguments)
    ready = item.status == "completed" or bool(args)
    cmds: list[Command] = []

    if item.item_id not in state.logged_tool_calls:
        data: dict[str, Any] = {"arguments": item.arguments}
        if item.output is not None:
            data["output"] = item.output

        state = replace(
            state,
            transcript=state.transcript.append_breadcrumb(
                f"{TOOL_CALL_BREADCRUMB_PREFIX}{name}",
                ts_ms=event.ts_ms,
                data=data,
            ),
            logged_tool_calls=state.logged_tool_calls | {item.item_id},
        )
        cmds.append(_log(state, event, "tool_call", {"item_id": item.item_id, "name": name, "arguments": args}))

    if not ready:
        cmds.append(_log(state, event, "tool_call_pending", {"item_id": item.item_id, "status": item.status}))
        return state, tuple(cmds)

    state = replace(state, dispatched_tool_calls=state.dispatched_tool_calls | {item.item_id})
    cmds.append(_log(state, event, "tool_call_dispatched", {"item_id": item.item_id, "name": name}))

    state, handoff_cmds = _resolve_handoff(state, event, name)
    cmds.extend(handoff_cmds)

    state, dispatch_cmds = _dispatch_tool(state, event, name, args)
    cmds.extend(dispatch_cmds)

    return state, _logs_last(tuple(cmds))


def _reduce_history(state: SessionState, event: HistoryItemAdded | HistoryItemUpdated) -> Reduction:
    item = event.item
    if not item.item_id:
        return _ignore(state, event, "missing_id")

    if item.item_type == "message":
        return _reduce_history_message(state, event, item)
    if item.item_type == "function_call":
        return _reduce_function_call(state, event, item)
    return _ignore(state, event, "unsupported_item_type", item_type=item.item_type)


# =============================================================================
# Agent handoff
# =============================================================================

def _resolve_handoff(
    state: SessionState,
    event: Event,
    tool_name: str,
) -> tuple[SessionState, list[Command]]:
    candidate = parse_transfer_target(tool_name)
    if candidate is None:
        return state, []

    agent = resolve_agent(candidate, state.agents)
    if agent is None:
        return state, [_log(state, event, "handoff_target_unknown", {"candidate": candidate})]

    if agent.name == state.active_agent:
        return state, [_log(state, event, "handoff_noop", {"agent": agent.name})]

    previous = state.active_agent
    new_state = replace(
        state,
        active_agent=agent.name,
        transcript=_announce_agent(state.transcript, state, agent.name, event.ts_ms),
    )
    cmds: list[Command] = []
    if new_state.is_connected:
        cmds.append(PushSessionConfig(session=_session_config(new_state)))
    cmds.append(_log(new_state, event, "agent_handoff", {"from_agent": previous, "to_agent": agent.name}))
    return new_state, cmds


# =============================================================================
# Tool dispatch (recording orchestration)
# =============================================================================

def _dispatch_tool(
    state: SessionState,
    event: Event,
    tool_name: str,
    args: dict[str, Any],
) -> tuple[SessionState, list[Command]]:
    recording = state.recording

    if tool_name == TOOL_START_RECORDING:
        if recording.phase is not RecordingPhase.IDLE:
            return state, [_log(state, event, "recording_busy", {"phase": recording.phase.value})]

        new_state = replace(
            state,
            recording=replace(
                recording,
                phase=RecordingPhase.ARMED,
                kind=RecordingKind.parse(args.get("recordingType")),
                purpose=string_arg(args, "purpose", DEFAULT_RECORDING_PURPOSE),
                description=string_arg(args, "description", DEFAULT_RECORDING_DESCRIPTION),
            ),
        )
        cmds: list[Command] = []
        if state.is_connected:
            cmds.append(InterruptResponse())
        cmds.append(
            StartTimer(
                timer_id=TIMER_RECORDING_SETTLE,
                duration_ms=RECORDING_SETTLE_DELAY_MS,
                timeout_event_type=EventType.RECORDING_SETTLED,
            )
        )
        cmds.append(_log(new_state, event, "recording_armed", new_state.recording.to_dict()))
        return new_state, cmds

    if tool_name == TOOL_SAVE_SUBJECT_NAME:
        name = string_arg(args, "name", "")
        if not name:
            return state, [_log(state, event, "subject_name_missing")]
        new_state = replace(state, recording=replace(recording, subject_name=name))
        return new_state, [_log(new_state, event, "subject_name_saved", {"subject_name": name})]

    if tool_name == TOOL_STOP_RECORDING:
        if recording.phase is RecordingPhase.RECORDING:
            new_state = replace(state, recording=replace(recording, phase=RecordingPhase.STOPPING))
            return new_state, [StopCapture(), _log(new_state, event, "recording_stopping")]

        if recording.phase is RecordingPhase.ARMED:
            new_state = replace(state, recording=replace(recording, phase=RecordingPhase.IDLE))
            return new_state, [
                CancelTimer(timer_id=TIMER_RECORDING_SETTLE),
                _log(new_state, event, "recording_aborted_before_start"),
            ]

        return state, [_log(state, event, "stop_without_recording", {"phase": recording.phase.value})]

    return state, []


def _reduce_recording(state: SessionState, event: Event) -> Reduction | None:
    recording = state.recording

    if isinstance(event, RecordingSettled):
        if recording.phase is not RecordingPhase.ARMED:
            return _ignore(state, event, "stale_settle", phase=recording.phase.value)
        new_state = replace(state, recording=replace(recording, phase=RecordingPhase.RECORDING))
        return new_state, (
            StartCapture(
                kind=recording.kind,
                purpose=recording.purpose,
                description=recording.description,
                subject_name=recording.subject_name,
            ),
            _log(new_state, event, "recording_started", new_state.recording.to_dict()),
        )

    if isinstance(event, CaptureStopped):
        if recording.phase is not RecordingPhase.STOPPING:
            return _ignore(state, event, "capture_stopped_unexpected", phase=recording.phase.value)
        new_state = replace(state, recording=replace(recording, phase=RecordingPhase.PROCESSING))
        return new_state, (_log(new_state, event, "recording_processing"),)

    if isinstance(event, (RecordingCompleted, RecordingFailed)) and recording.phase not in (
        RecordingPhase.STOPPING,
        RecordingPhase.PROCESSING,
    ):
        return _ignore(state, event, "recording_outcome_unexpected", phase=recording.phase.value)

    if isinstance(event, RecordingCompleted):
        new_state = replace(
            state,
            recording=replace(recording, phase=RecordingPhase.IDLE),
            transcript=state.transcript.append_breadcrumb(
                RECORDING_COMPLETED_BREADCRUMB,
                ts_ms=event.ts_ms,
                data=dict(event.metadata),
            ),
        )
        return new_state, (_log(new_state, event, "recording_completed", {"from_phase": recording.phase.value}),)

    if isinstance(event, RecordingFailed):
        new_state = replace(
            state,
            recording=replace(recording, phase=RecordingPhase.IDLE),
            transcript=state.transcript.append_breadcrumb(
                RECORDING_FAILED_BREADCRUMB,
                ts_ms=event.ts_ms,
                data={"error": event.error},
            ),
        )
        return new_state, (_log(new_state, event, "recording_failed", {"error": event.error}),)

    return None


# =============================================================================
# Presentation controls
# =============================================================================

def _reduce_controls(state: SessionState, event: Event) -> Reduction | None:
    if isinstance(event, PushToTalkToggled):
        if event.enabled == state.push_to_talk_enabled:
            return _ignore(state, event, "push_to_talk_unchanged")
        new_state = replace(state, push_to_talk_enabled=event.enabled)
        cmds: list[Command] = []
        if new_state.is_connected:
            cmds.append(PushSessionConfig(session=_session_config(new_state)))
        cmds.append(_log(new_state, event, "push_to_talk_toggled", {"enabled": event.enabled}))
        return new_state, tuple(cmds)

    if isinstance(event, AudioPlaybackToggled):
        new_state = replace(state, audio_playback_enabled=event.enabled)
        cmds = []
        if new_state.is_connected:
            cmds.append(MuteOutput(muted=not event.enabled))
        cmds.append(_log(new_state, event, "audio_playback_toggled", {"enabled": event.enabled}))
        return new_state, tuple(cmds)

    if isinstance(event, UserTextSubmitted):
        text = event.text.strip()
        if not text:
            return _ignore(state, event, "blank_text")
        if not state.is_connected:
            return _ignore(state, event, "not_connected")
        if not event.item_id or state.transcript.contains(event.item_id):
            return _ignore(state, event, "duplicate_or_missing_id", item_id=event.item_id)

        store = state.transcript.upsert(
            TranscriptItem(
                item_id=event.item_id,
                role=Role.USER,
                text=text,
                status=ItemStatus.DONE,
                created_at_ms=event.ts_ms,
            )
        )
        new_state = replace(state, transcript=store)
        return new_state, (
            InterruptResponse(),
            SendTransportEvent(payload=_user_message_payload(event.item_id, text), reason="user_text"),
            SendTransportEvent(payload=dict(_RESPONSE_CREATE), reason="user_text"),
            _log(new_state, event, "user_text_sent", {"item_id": event.item_id}),
        )

    if isinstance(event, PushToTalkPressed):
        if not state.is_connected:
            return _ignore(state, event, "not_connected")
        new_state = replace(state, ptt_user_speaking=True)
        return new_state, (
            InterruptResponse(),
            SendTransportEvent(payload={"type": "input_audio_buffer.clear"}, reason="ptt_down"),
            _log(new_state, event, "ptt_pressed"),
        )

    if isinstance(event, PushToTalkReleased):
        if not state.is_connected or not state.ptt_user_speaking:
            return _ignore(state, event, "ptt_not_active")
        new_state = replace(state, ptt_user_speaking=False)
        return new_state, (
            SendTransportEvent(payload={"type": "input_audio_buffer.commit"}, reason="ptt_up"),
            SendTransportEvent(payload=dict(_RESPONSE_CREATE), reason="ptt_up"),
            _log(new_state, event, "ptt_released"),
        )

    return None


# =============================================================================
# Reducer entrypoint
# =============================================================================

def reduce(state: SessionState, event: Event) -> Reduction:
    """
    Pure reducer for one realtime session.

    Given the current session state and a single event, returns:
    - the next state
    - a tuple of commands describing required side effects

    Properties:
    - Deterministic: no IO, clocks, or randomness
    - Total: every event is handled or explicitly ignored
    - Outbound transport commands are only emitted while CONNECTED
    """
    result = _reduce_lifecycle(state, event)
    if result is not None:
        return result

    if isinstance(event, AssistantDelta):
        return _reduce_assistant_delta(state, event)

    if isinstance(event, UserSpeechStarted):
        return _reduce_user_speech_started(state, event)

    if isinstance(event, UserTranscriptionDelta):
        return _reduce_user_transcription_delta(state, event)

    if isinstance(event, UserTranscriptionCompleted):
        return _reduce_user_transcription_completed(state, event)

    if isinstance(event, GuardrailTripped):
        return _reduce_guardrail_tripped(state, event)

    if isinstance(event, ResponseDone):
        return _reduce_response_done(state, event)

    if isinstance(event, (HistoryItemAdded, HistoryItemUpdated)):
        return _reduce_history(state, event)

    result = _reduce_recording(state, event)
    if result is not None:
        return result

    result = _reduce_controls(state, event)
    if result is not None:
        return result

    return _ignore(state, event, "unhandled_event")
