"""
Transcript entity definitions.

Rules:
- Pure data models (frozen dataclasses).
- Mutations happen by replacement through TranscriptStore.
- No reconciliation logic lives here.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any


# =============================================================================
# Enumerations
# =============================================================================

class Role(str, Enum):
    """Speaker of a transcript item."""
    USER = "user"
    ASSISTANT = "assistant"

    @classmethod
    def parse(cls, raw: object) -> Role | None:
        if raw == cls.USER.value:
            return cls.USER
        if raw == cls.ASSISTANT.value:
            return cls.ASSISTANT
        return None


class ItemStatus(str, Enum):
    """Text-completion status of a transcript item."""
    PENDING = "PENDING"
    IN_PROGRESS = "IN_PROGRESS"
    DONE = "DONE"


class GuardrailStatus(str, Enum):
    IN_PROGRESS = "IN_PROGRESS"
    DONE = "DONE"


class GuardrailCategory(str, Enum):
    NONE = "NONE"
    OFF_BRAND = "OFF_BRAND"


# =============================================================================
# Guardrail
# =============================================================================

@dataclass(frozen=True)
class GuardrailResult:
    """
    Safety review result for one assistant item.

    category is meaningful only when status is DONE. A DONE result with
    category != NONE is a trip and is terminal.
    """
    status: GuardrailStatus = GuardrailStatus.IN_PROGRESS
    category: GuardrailCategory = GuardrailCategory.NONE
    rationale: str = ""

    @property
    def is_pending(self) -> bool:
        return self.status is GuardrailStatus.IN_PROGRESS

    @property
    def is_tripped(self) -> bool:
        return (
            self.status is GuardrailStatus.DONE
            and self.category is not GuardrailCategory.NONE
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "status": self.status.value,
            "category": self.category.value,
            "rationale": self.rationale,
        }


# =============================================================================
# Entries
# =============================================================================

@dataclass(frozen=True)
class TranscriptItem:
    """One visible conversation turn, keyed by item_id."""
    item_id: str
    role: Role
    text: str
    status: ItemStatus
    created_at_ms: int
    guardrail: GuardrailResult | None = None

    # True while text is the transcribing placeholder, not real content.
    is_placeholder: bool = False

    # Presentation hint for machine-generated turns (greeting trigger).
    hidden: bool = False

    @property
    def is_done(self) -> bool:
        return self.status is ItemStatus.DONE

    def to_dict(self) -> dict[str, Any]:
        return {
            "kind": "message",
            "item_id": self.item_id,
            "role": self.role.value,
            "text": self.text,
            "status": self.status.value,
            "created_at_ms": self.created_at_ms,
            "guardrail": self.guardrail.to_dict() if self.guardrail else None,
            "is_placeholder": self.is_placeholder,
            "hidden": self.hidden,
        }


@dataclass(frozen=True)
class Breadcrumb:
    """
    Non-conversational annotation (agent switch, tool call, recording).

    Write-once: there is no update path for breadcrumbs.
    """
    breadcrumb_id: str
    title: str
    created_at_ms: int
    data: dict[str, Any] | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "kind": "breadcrumb",
            "breadcrumb_id": self.breadcrumb_id,
            "title": self.title,
            "data": self.data,
            "created_at_ms": self.created_at_ms,
        }


TranscriptEntry = TranscriptItem | Breadcrumb
