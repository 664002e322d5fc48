"""
BEHAVIORAL CONSTANTS
--------------------
Single source of truth for every value that changes runtime behavior.

Rules:
- If changing a value changes runtime behavior, it belongs here.
- No magic numbers or magic strings elsewhere in the codebase.
- Other modules MUST import from this file.
"""

from __future__ import annotations

from typing import Any, Final

# =============================================================================
# Transcript
# =============================================================================

# Shown for user speech that is still being transcribed.
TRANSCRIBING_PLACEHOLDER: Final[str] = "Transcribing…"

# Derived key prefix for assistant deltas that only carry a response id.
ASSISTANT_RESPONSE_KEY_PREFIX: Final[str] = "assistant-"

BREADCRUMB_ID_PREFIX: Final[str] = "bc-"

AGENT_BREADCRUMB_PREFIX: Final[str] = "Agent: "
TOOL_CALL_BREADCRUMB_PREFIX: Final[str] = "Tool call: "

# =============================================================================
# Guardrail
# =============================================================================

GUARDRAIL_TRIP_DEFAULT_RATIONALE: Final[str] = "Guardrail triggered"

# =============================================================================
# Handoff
# =============================================================================

HANDOFF_TOOL_PATTERN: Final[str] = r"^transfer_to_(.+)$"

# =============================================================================
# Turn detection (server VAD), pushed via session.update
# =============================================================================

SERVER_VAD_THRESHOLD: Final[float] = 0.9
SERVER_VAD_PREFIX_PADDING_MS: Final[int] = 300
SERVER_VAD_SILENCE_DURATION_MS: Final[int] = 500
SERVER_VAD_CREATE_RESPONSE: Final[bool] = True


def server_vad_turn_detection() -> dict[str, Any]:
    """Fresh turn-detection payload used when push-to-talk is off."""
    return {
        "type": "server_vad",
        "threshold": SERVER_VAD_THRESHOLD,
        "prefix_padding_ms": SERVER_VAD_PREFIX_PADDING_MS,
        "silence_duration_ms": SERVER_VAD_SILENCE_DURATION_MS,
        "create_response": SERVER_VAD_CREATE_RESPONSE,
    }


# =============================================================================
# Greeting trigger (sent once on CONNECTED)
# =============================================================================

GREETING_TRIGGER_TEXT: Final[str] = "hi"
GREETING_ITEM_ID_PREFIX: Final[str] = "greet-"

# =============================================================================
# Tool names
# =============================================================================

TOOL_START_RECORDING: Final[str] = "startRecording"
TOOL_STOP_RECORDING: Final[str] = "stopRecording"
TOOL_SAVE_SUBJECT_NAME: Final[str] = "saveStudentName"

# =============================================================================
# Recording orchestration
# =============================================================================

# Wait after interrupting the assistant so trailing agent audio is not captured.
RECORDING_SETTLE_DELAY_MS: Final[int] = 3_000

DEFAULT_RECORDING_PURPOSE: Final[str] = "Daily Reflection"
DEFAULT_RECORDING_DESCRIPTION: Final[str] = "Student feedback recording"
DEFAULT_SUBJECT_NAME: Final[str] = "Student"

RECORDING_FILE_EXTENSIONS: Final[dict[str, str]] = {
    "audio": "mp3",
    "video": "mp4",
}

RECORDING_COMPLETED_BREADCRUMB: Final[str] = "Recording metadata saved"
RECORDING_FAILED_BREADCRUMB: Final[str] = "Failed to save recording"

# =============================================================================
# Timer IDs
# =============================================================================

TIMER_RECORDING_SETTLE: Final[str] = "recording_settle"

# =============================================================================
# Transport
# =============================================================================

REALTIME_URL_DEFAULT: Final[str] = "wss://api.openai.com/v1/realtime"
REALTIME_MODEL_DEFAULT: Final[str] = "gpt-4o-realtime-preview"
TRANSPORT_MAX_MESSAGE_BYTES: Final[int] = 2**24
