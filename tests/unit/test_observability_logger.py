# pylint: disable=missing-module-docstring,missing-function-docstring

import json
from typing import Any

import pytest

from observability import logger, metrics


@pytest.fixture
def captured(monkeypatch: pytest.MonkeyPatch) -> list[str]:
    lines: list[str] = []

    def fake_print(line: str) -> None:
        lines.append(line)

    # Patch the explicit output sink used by logger
    monkeypatch.setattr(logger, "_print", fake_print)
    monkeypatch.setattr(logger, "_min_level", logger.LEVELS["info"])
    return lines


def test_log_event_emits_valid_jsonl(captured: list[str]) -> None:
    """
    Contract:
    - log_event emits exactly one JSONL line
    - payload is serialized as-is, plus its level
    - output sink is patchable
    """
    payload: dict[str, Any] = {
        "event_type": "TEST",
        "value": 123,
    }

    logger.log_event(payload)

    # Exactly one line emitted
    assert len(captured) == 1

    decoded = json.loads(captured[0])
    assert decoded == {**payload, "level": "info"}


def test_events_below_threshold_are_dropped(captured: list[str]) -> None:
    logger.configure("WARNING")

    logger.log_event({"event_type": "DEBUGGY"}, level="debug")
    logger.log_event({"event_type": "CHATTY"})
    logger.log_event({"event_type": "LOUD"}, level="error")

    assert [json.loads(line)["event_type"] for line in captured] == ["LOUD"]


def test_unknown_level_name_falls_back_to_info(captured: list[str]) -> None:
    logger.configure("verbose")

    logger.log_event({"event_type": "A"}, level="debug")
    logger.log_event({"event_type": "B"})

    assert [json.loads(line)["event_type"] for line in captured] == ["B"]


def test_unserializable_payload_falls_back(captured: list[str]) -> None:
    logger.log_event({"ts_ms": 1, "event_type": "BAD", "value": object()})

    decoded = json.loads(captured[0])
    assert decoded["event_type"] == "LOGGER_SERIALIZATION_ERROR"
    assert decoded["ts_ms"] == 1


def test_timed_emits_one_metric_even_on_error(captured: list[str]) -> None:
    with pytest.raises(ValueError):
        with metrics.timed("transport_connect_latency", session_id="sess_1"):
            raise ValueError("boom")

    assert len(captured) == 1
    decoded = json.loads(captured[0])
    assert decoded["event_type"] == "METRIC_TIMER"
    assert decoded["metric"] == "transport_connect_latency"
    assert decoded["ok"] is False
    assert decoded["session_id"] == "sess_1"
