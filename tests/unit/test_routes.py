# pylint: disable=missing-module-docstring,missing-function-docstring

from typing import Any

import pytest
from fastapi.testclient import TestClient

import server.routes as routes_mod
from config import AppConfig
from server.app import create_app


class FakeCredentials:
    def __init__(self, secret: str | None) -> None:
        self.secret = secret

    async def fetch(self) -> str | None:
        return self.secret


def make_client(secret: str | None = "ek_test") -> TestClient:
    config = AppConfig(
        env="test",
        log_level="error",
        openai_api_key=None,
        realtime_model="gpt-4o-realtime-preview",
        realtime_url="wss://example.invalid/v1/realtime",
        agent_set=None,
        push_to_talk=False,
        audio_playback=True,
    )
    app = create_app(config, openai_client=object())
    app.state.credential_provider = FakeCredentials(secret)
    return TestClient(app)


def test_health():
    response = make_client().get("/health")

    assert response.status_code == 200
    assert response.json() == {"status": "ok"}


def test_mint_session_returns_client_secret():
    response = make_client("ek_abc").get("/api/session")

    assert response.status_code == 200
    assert response.json() == {"client_secret": {"value": "ek_abc"}}


def test_mint_session_reports_upstream_failure():
    response = make_client(None).get("/api/session")

    assert response.status_code == 502
    assert response.json() == {"error": "credential_unavailable"}


def test_missing_api_key_without_client_fails_fast(monkeypatch: pytest.MonkeyPatch):
    monkeypatch.delenv("OPENAI_API_KEY", raising=False)
    config = AppConfig.load_from_env()

    with pytest.raises(RuntimeError):
        create_app(config)


def test_websocket_sends_session_init_then_answers_state_requests():
    client = make_client()

    with client.websocket_connect("/ws") as ws:
        init: dict[str, Any] = ws.receive_json()
        assert init["type"] == "SESSION_INIT"
        assert init["agent_set"] == "studyCoach"

        ws.send_json({"type": "GET_STATE"})
        reply = ws.receive_json()
        assert reply["type"] == "state"
        assert reply["state"]["connection_status"] == "DISCONNECTED"


def test_websocket_connect_without_credential_reports_error():
    client = make_client(None)

    with client.websocket_connect("/ws") as ws:
        ws.receive_json()
        ws.send_json({"type": "CONNECT"})

        states = [ws.receive_json(), ws.receive_json()]
        assert [s["state"]["connection_status"] for s in states] == ["CONNECTING", "DISCONNECTED"]
        assert states[-1]["state"]["last_error"] == "missing_credential"


def test_websocket_sessions_leave_capture_to_the_client(monkeypatch: pytest.MonkeyPatch):
    gateways: list[routes_mod.SessionGateway] = []

    class TrackedGateway(routes_mod.SessionGateway):
        def __init__(self, **kwargs: Any) -> None:
            super().__init__(**kwargs)
            gateways.append(self)

    monkeypatch.setattr(routes_mod, "SessionGateway", TrackedGateway)

    with make_client().websocket_connect("/ws") as ws:
        ws.receive_json()

    assert len(gateways) == 1
    assert gateways[0].session is not None
    assert gateways[0].session.recorder is None
