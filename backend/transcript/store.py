"""
Transcript entity store.

Responsibilities:
- Hold the ordered collection of transcript items and breadcrumbs
- Upsert items by identity, apply point updates, rekey derived ids
- Answer recency queries (latest assistant item)

Non-responsibilities:
- No merge policy (the reducer decides *what* to write)
- No IO, no clocks

The store is an immutable value: every mutation returns a new store, so
any reader holding a reference sees a consistent snapshot.
"""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from typing import Any

from constants import BREADCRUMB_ID_PREFIX
from transcript.items import Breadcrumb, Role, TranscriptEntry, TranscriptItem


@dataclass(frozen=True)
class TranscriptStore:
    """
    Ordered, append-mostly collection of transcript entries.

    Invariants:
    - Entries are kept in first-observation order
    - At most one TranscriptItem per item_id
    - created_at_ms of an item never changes once stored
    - Breadcrumbs are never modified after append
    """

    _entries: tuple[TranscriptEntry, ...] = ()

    # item_id -> position in _entries
    _index: dict[str, int] = field(default_factory=dict)

    _breadcrumb_count: int = 0

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def __len__(self) -> int:
        return len(self._entries)

    def contains(self, item_id: str) -> bool:
        return item_id in self._index

    def get(self, item_id: str) -> TranscriptItem | None:
        pos = self._index.get(item_id)
        if pos is None:
            return None
        return self._item_at(pos)

    def entries(self) -> tuple[TranscriptEntry, ...]:
        return self._entries

    def items(self) -> tuple[TranscriptItem, ...]:
        return tuple(e for e in self._entries if isinstance(e, TranscriptItem))

    def breadcrumbs(self) -> tuple[Breadcrumb, ...]:
        return tuple(e for e in self._entries if isinstance(e, Breadcrumb))

    def latest_item(self, role: Role) -> TranscriptItem | None:
        """Most recently created item with the given role (by position, not id)."""
        for entry in reversed(self._entries):
            if isinstance(entry, TranscriptItem) and entry.role is role:
                return entry
        return None

    def to_dict(self) -> list[dict[str, Any]]:
        return [e.to_dict() for e in self._entries]

    # ------------------------------------------------------------------
    # Mutations (return new stores)
    # ------------------------------------------------------------------

    def upsert(self, item: TranscriptItem) -> TranscriptStore:
        """
        Insert a new item at the end, or replace the existing one in place.

        Replacement keeps the original position and created_at_ms.
        """
        pos = self._index.get(item.item_id)
        if pos is None:
            index = dict(self._index)
            index[item.item_id] = len(self._entries)
            return replace(self, _entries=self._entries + (item,), _index=index)

        existing = self._item_at(pos)
        item = replace(item, created_at_ms=existing.created_at_ms)
        return replace(self, _entries=self._replaced(pos, item))

    def update(self, item_id: str, **changes: Any) -> TranscriptStore:
        """
        Point update of an existing item.

        Raises:
            KeyError if no item exists for item_id.
        """
        if "item_id" in changes or "created_at_ms" in changes:
            raise ValueError("item_id and created_at_ms are immutable")

        pos = self._index[item_id]
        existing = self._item_at(pos)
        return replace(self, _entries=self._replaced(pos, replace(existing, **changes)))

    def rekey(self, old_id: str, new_id: str) -> TranscriptStore:
        """
        Move an item to a new identity, keeping its position.

        Used when a derived key is later matched to the real item id.
        A no-op if old_id is unknown or new_id is already taken.
        """
        pos = self._index.get(old_id)
        if pos is None or new_id in self._index:
            return self

        existing = self._item_at(pos)

        index = dict(self._index)
        del index[old_id]
        index[new_id] = pos
        return replace(
            self,
            _entries=self._replaced(pos, replace(existing, item_id=new_id)),
            _index=index,
        )

    def append_breadcrumb(
        self,
        title: str,
        *,
        ts_ms: int,
        data: dict[str, Any] | None = None,
    ) -> TranscriptStore:
        count = self._breadcrumb_count + 1
        crumb = Breadcrumb(
            breadcrumb_id=f"{BREADCRUMB_ID_PREFIX}{count}",
            title=title,
            created_at_ms=ts_ms,
            data=data,
        )
        return replace(
            self,
            _entries=self._entries + (crumb,),
            _breadcrumb_count=count,
        )

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    def _item_at(self, pos: int) -> TranscriptItem:
        entry = self._entries[pos]
        if not isinstance(entry, TranscriptItem):
            raise TypeError(f"entry at {pos} is not a transcript item")
        return entry

    def _replaced(self, pos: int, entry: TranscriptEntry) -> tuple[TranscriptEntry, ...]:
        return self._entries[:pos] + (entry,) + self._entries[pos + 1:]
