"""
Application configuration.

Responsibilities:
- Load deployment-specific configuration
- Read environment variables
- Provide a typed, immutable config object

Non-responsibilities:
- No reconciliation logic
- No behavioral constants (see constants.py)
- No runtime mutation
"""

from __future__ import annotations

import os
from dataclasses import dataclass

from constants import REALTIME_MODEL_DEFAULT, REALTIME_URL_DEFAULT


def _env_flag(name: str, default: bool) -> bool:
    raw = os.environ.get(name)
    if raw is None:
        return default
    return raw.strip().lower() in {"1", "true", "yes", "on"}


@dataclass(frozen=True)
class AppConfig:
    """
    Immutable application configuration.

    Constructed once at process startup.
    Passed downward to the server and each SessionGateway.
    """

    # ------------------------------------------------------------------
    # Environment
    # ------------------------------------------------------------------

    env: str
    log_level: str

    # ------------------------------------------------------------------
    # Realtime transport
    # ------------------------------------------------------------------

    openai_api_key: str | None
    realtime_model: str
    realtime_url: str

    # ------------------------------------------------------------------
    # Session defaults
    # ------------------------------------------------------------------

    agent_set: str | None
    push_to_talk: bool
    audio_playback: bool

    # ------------------------------------------------------------------
    # Factory
    # ------------------------------------------------------------------

    @staticmethod
    def load_from_env() -> AppConfig:
        """
        Load configuration from environment variables.

        Missing optional values fall back to defaults; the OpenAI key is
        validated by the server factory, not here.
        """
        return AppConfig(
            env=os.environ.get("ENV", "dev"),
            log_level=os.environ.get("LOG_LEVEL", "INFO"),

            openai_api_key=os.environ.get("OPENAI_API_KEY"),
            realtime_model=os.environ.get("REALTIME_MODEL", REALTIME_MODEL_DEFAULT),
            realtime_url=os.environ.get("REALTIME_URL", REALTIME_URL_DEFAULT),

            agent_set=os.environ.get("AGENT_SET"),
            push_to_talk=_env_flag("PUSH_TO_TALK", False),
            audio_playback=_env_flag("AUDIO_PLAYBACK", True),
        )
