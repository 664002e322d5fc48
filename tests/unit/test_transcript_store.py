# pylint: disable=missing-module-docstring,missing-function-docstring

import pytest

from transcript.items import ItemStatus, Role, TranscriptItem
from transcript.store import TranscriptStore


def item(item_id: str, role: Role = Role.USER, text: str = "x", ts_ms: int = 0) -> TranscriptItem:
    return TranscriptItem(
        item_id=item_id,
        role=role,
        text=text,
        status=ItemStatus.IN_PROGRESS,
        created_at_ms=ts_ms,
    )


def test_upsert_appends_then_replaces_in_place():
    store = TranscriptStore().upsert(item("a", ts_ms=1)).upsert(item("b", ts_ms=2))

    store2 = store.upsert(item("a", text="new", ts_ms=99))

    assert [i.item_id for i in store2.items()] == ["a", "b"]
    got = store2.get("a")
    assert got is not None
    assert got.text == "new"
    # created_at is never rewritten
    assert got.created_at_ms == 1


def test_mutations_do_not_touch_previous_snapshot():
    store = TranscriptStore().upsert(item("a"))
    store.update("a", text="changed")

    got = store.get("a")
    assert got is not None
    assert got.text == "x"


def test_update_unknown_item_raises():
    with pytest.raises(KeyError):
        TranscriptStore().update("missing", text="y")


def test_update_rejects_identity_fields():
    store = TranscriptStore().upsert(item("a"))
    with pytest.raises(ValueError):
        store.update("a", item_id="b")


def test_index_pointing_at_breadcrumb_raises_type_error():
    store = TranscriptStore().append_breadcrumb("Agent: Coach", ts_ms=0)
    broken = TranscriptStore(_entries=store.entries(), _index={"a": 0}, _breadcrumb_count=1)

    with pytest.raises(TypeError):
        broken.get("a")
    with pytest.raises(TypeError):
        broken.update("a", text="y")
    with pytest.raises(TypeError):
        broken.upsert(item("a"))
    with pytest.raises(TypeError):
        broken.rekey("a", "b")


def test_rekey_keeps_position_and_is_noop_when_target_taken():
    store = TranscriptStore().upsert(item("assistant-r1", Role.ASSISTANT)).upsert(item("u1"))

    moved = store.rekey("assistant-r1", "i1")
    assert [i.item_id for i in moved.items()] == ["i1", "u1"]
    assert not moved.contains("assistant-r1")

    assert moved.rekey("i1", "u1") is moved
    assert moved.rekey("nope", "zzz") is moved


def test_latest_item_is_by_position():
    store = (
        TranscriptStore()
        .upsert(item("z-first", Role.ASSISTANT))
        .upsert(item("a-second", Role.ASSISTANT))
        .upsert(item("u1", Role.USER))
    )

    latest = store.latest_item(Role.ASSISTANT)
    assert latest is not None
    assert latest.item_id == "a-second"
    assert TranscriptStore().latest_item(Role.ASSISTANT) is None


def test_breadcrumbs_get_sequential_ids_and_keep_order():
    store = TranscriptStore().upsert(item("u1"))
    store = store.append_breadcrumb("Agent: coach", ts_ms=5, data={"name": "coach"})
    store = store.append_breadcrumb("Tool call: x", ts_ms=6)

    crumbs = store.breadcrumbs()
    assert [c.breadcrumb_id for c in crumbs] == ["bc-1", "bc-2"]
    assert [e.to_dict()["kind"] for e in store.entries()] == ["message", "breadcrumb", "breadcrumb"]
    assert len(store) == 3
