"""
Guardrail attribution and transitions.

Trip signals from the transport carry no item id today. Attribution is
therefore isolated here: an explicit id wins when present, otherwise the
most recently created assistant item is targeted. Overlapping assistant
turns are not supported; under interleaving the latest-assistant rule may
misattribute a result.

Pure helpers. The reducer owns when these are applied.
"""

from __future__ import annotations

from constants import GUARDRAIL_TRIP_DEFAULT_RATIONALE
from transcript.items import (
    GuardrailCategory,
    GuardrailResult,
    GuardrailStatus,
    Role,
    TranscriptItem,
)
from transcript.store import TranscriptStore


PENDING = GuardrailResult(status=GuardrailStatus.IN_PROGRESS)
PASSED = GuardrailResult(
    status=GuardrailStatus.DONE,
    category=GuardrailCategory.NONE,
    rationale="",
)


def resolve_guardrail_target(
    store: TranscriptStore,
    item_id: str | None = None,
) -> TranscriptItem | None:
    """Pick the assistant item a session-scoped guardrail signal applies to."""
    if item_id:
        explicit = store.get(item_id)
        if explicit is not None and explicit.role is Role.ASSISTANT:
            return explicit
    return store.latest_item(Role.ASSISTANT)


def tripped(rationale: str | None) -> GuardrailResult:
    return GuardrailResult(
        status=GuardrailStatus.DONE,
        category=GuardrailCategory.OFF_BRAND,
        rationale=rationale or GUARDRAIL_TRIP_DEFAULT_RATIONALE,
    )


def can_pass(current: GuardrailResult | None) -> bool:
    """A "no issue" resolution only applies to an absent or pending result."""
    return current is None or current.is_pending
