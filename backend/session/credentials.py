"""
Ephemeral session credentials.

Exchanges the server-held API key for a short-lived realtime client
secret. The long-lived key never leaves the server.
"""

from __future__ import annotations

import time
from typing import Any

from observability.logger import log_event


def _now_ms() -> int:
    return time.time_ns() // 1_000_000


class OpenAIEphemeralKeyProvider:
    """
    CredentialProviderProtocol backed by the OpenAI SDK.

    fetch() returns None (and logs) when the request fails or the
    response carries no secret; it never raises.
    """

    def __init__(self, *, client: Any, model: str) -> None:
        # client: openai.AsyncOpenAI
        self._client = client
        self._model = model

    async def fetch(self) -> str | None:
        try:
            session = await self._client.beta.realtime.sessions.create(model=self._model)
        except Exception as exc:  # pylint: disable=broad-exception-caught
            log_event({
                "ts_ms": _now_ms(),
                "event_type": "credential_fetch_failed",
                "error": f"{type(exc).__name__}: {exc}",
            }, level="warning")
            return None

        secret = getattr(getattr(session, "client_secret", None), "value", None)
        if not isinstance(secret, str) or not secret:
            log_event({
                "ts_ms": _now_ms(),
                "event_type": "credential_missing",
            }, level="warning")
            return None
        return secret
