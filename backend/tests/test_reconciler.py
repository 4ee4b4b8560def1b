"""
Unit tests for the mirror reconciler.

Tests cover:
- Insert/Update/Delete merge rules and idempotent replay
- Ordering (sorted by name, newest first)
- Optimistic insert confirm/discard, including the echo race
- Reset keeping in-flight optimistic records
"""

import pytest

from mishmaat.sync.decode import decode_row, draft_row
from mishmaat.sync.errors import DecodeError
from mishmaat.sync.reconciler import (
    BY_NAME,
    NEWEST_FIRST,
    ConfirmInsert,
    Delete,
    DiscardInsert,
    Insert,
    OptimisticInsert,
    Reset,
    Update,
    apply,
    apply_change,
    empty_state,
    replay,
)
from tests.helpers import event_row, soldier_row


def soldier(ident, name, status="Base", **extra):
    return decode_row("soldiers", soldier_row(ident, name, status, **extra))


def names(state):
    return [r.full_name for r in state.records]


class TestRemoteChanges:
    """Insert/Update/Delete as delivered by the change stream."""

    def test_insert_places_by_name(self):
        state = empty_state("soldiers", BY_NAME)
        state = replay(state, [Insert(soldier("c", "Carmel")), Insert(soldier("a", "Avi")), Insert(soldier("b", "Ben"))])
        assert names(state) == ["Avi", "Ben", "Carmel"]

    def test_insert_prepends_newest_first(self):
        state = empty_state("events", NEWEST_FIRST)
        for ident in ("e1", "e2", "e3"):
            state = apply(state, Insert(decode_row("events", event_row(ident, ident))))
        assert state.ids() == ["e3", "e2", "e1"]

    def test_insert_of_existing_id_replaces(self):
        state = apply(empty_state("soldiers", BY_NAME), Insert(soldier("a", "Avi")))
        state = apply(state, Insert(soldier("a", "Avi", "Home")))
        assert len(state) == 1
        assert state.get("a").status == "Home"

    def test_replayed_insert_is_idempotent(self):
        actions = [Insert(soldier("a", "Avi")), Insert(soldier("b", "Ben"))]
        once = replay(empty_state("soldiers", BY_NAME), actions)
        twice = replay(once, actions)
        assert twice.records == once.records

    def test_update_merges_fields(self):
        state = apply(empty_state("soldiers", BY_NAME), Insert(soldier("a", "Avi", role_in_unit="Medic")))
        state = apply(state, Update("a", {"status": "Home"}))
        record = state.get("a")
        assert record.status == "Home"
        assert record.role_in_unit == "Medic"

    def test_update_of_name_resorts(self):
        state = replay(empty_state("soldiers", BY_NAME), [Insert(soldier("a", "Avi")), Insert(soldier("b", "Ben"))])
        state = apply(state, Update("a", {"full_name": "Zohar"}))
        assert names(state) == ["Ben", "Zohar"]

    def test_update_unknown_id_is_noop(self):
        state = apply(empty_state("soldiers"), Insert(soldier("a", "Avi")))
        assert apply(state, Update("missing", {"status": "Home"})) is state

    def test_update_cannot_change_id(self):
        state = apply(empty_state("soldiers"), Insert(soldier("a", "Avi")))
        state = apply(state, Update("a", {"id": "b", "status": "Home"}))
        assert state.ids() == ["a"]

    def test_update_with_invalid_value_raises(self):
        state = apply(empty_state("soldiers"), Insert(soldier("a", "Avi")))
        with pytest.raises(DecodeError):
            apply(state, Update("a", {"status": "Away"}))

    def test_delete_and_unknown_delete(self):
        state = replay(empty_state("soldiers"), [Insert(soldier("a", "Avi")), Insert(soldier("b", "Ben"))])
        state = apply(state, Delete("a"))
        assert state.ids() == ["b"]
        assert apply(state, Delete("a")) is state

    def test_receipt_order_decides(self):
        """Delete then insert leaves the record; insert then delete removes it."""
        s = soldier("a", "Avi")
        assert replay(empty_state("soldiers"), [Delete("a"), Insert(s)]).ids() == ["a"]
        assert replay(empty_state("soldiers"), [Insert(s), Delete("a")]).ids() == []

    def test_no_duplicate_ids_after_mixed_stream(self):
        stream = [
            Insert(soldier("a", "Avi")),
            Insert(soldier("b", "Ben")),
            Update("a", {"status": "Home"}),
            Insert(soldier("a", "Avi")),
            Delete("b"),
            Insert(soldier("b", "Ben", "Home")),
            Insert(soldier("b", "Ben")),
            Delete("zzz"),
        ]
        state = replay(empty_state("soldiers", BY_NAME), stream + stream)
        assert sorted(state.ids()) == ["a", "b"]

    def test_apply_does_not_mutate_input(self):
        state = apply(empty_state("soldiers"), Insert(soldier("a", "Avi")))
        before = state.records
        apply(state, Update("a", {"status": "Home"}))
        apply(state, Delete("a"))
        assert state.records is before
        assert state.get("a").status == "Base"

    def test_unknown_action_rejected(self):
        with pytest.raises(TypeError):
            apply(empty_state("soldiers"), object())

    def test_apply_change_update_keeps_joined_soldier_name(self):
        state = apply(
            empty_state("events", NEWEST_FIRST),
            Insert(decode_row("events", event_row("e1", "Clinic", soldier_name="Avi"))),
        )
        state = apply_change(state, "update", new={"id": "e1", "title": "Clinic visit"}, old={"id": "e1"})
        record = state.get("e1")
        assert record.title == "Clinic visit"
        assert record.soldier_name == "Avi"

    def test_apply_change_delete_uses_old_row(self):
        state = apply(empty_state("soldiers"), Insert(soldier("a", "Avi")))
        state = apply_change(state, "delete", old={"id": "a"})
        assert len(state) == 0

    def test_apply_change_unknown_operation(self):
        with pytest.raises(ValueError):
            apply_change(empty_state("soldiers"), "truncate")


class TestOptimisticInsert:
    """Temporary records and their confirmation."""

    def draft(self, name):
        return draft_row("soldiers", {"full_name": name}, f"temp-{name}")

    def test_confirm_replaces_temp_in_place(self):
        state = apply(empty_state("soldiers", BY_NAME), OptimisticInsert("c1", self.draft("Dana")))
        assert state.ids() == ["temp-Dana"]
        state = apply(state, ConfirmInsert("c1", soldier("real", "Dana")))
        assert state.ids() == ["real"]
        assert state.pending == {}

    def test_confirm_after_echo_keeps_one_record(self):
        state = apply(empty_state("soldiers", BY_NAME), OptimisticInsert("c1", self.draft("Dana")))
        # the change stream delivered the committed row first, already edited once
        state = apply(state, Insert(soldier("real", "Dana", "Home")))
        state = apply(state, ConfirmInsert("c1", soldier("real", "Dana")))
        assert state.ids() == ["real"]
        assert state.get("real").status == "Home"

    def test_discard_removes_temp(self):
        state = apply(empty_state("soldiers"), Insert(soldier("a", "Avi")))
        state = apply(state, OptimisticInsert("c1", self.draft("Dana")))
        state = apply(state, DiscardInsert("c1"))
        assert state.ids() == ["a"]
        assert state.pending == {}

    def test_discard_unknown_correlation_is_noop(self):
        state = apply(empty_state("soldiers"), Insert(soldier("a", "Avi")))
        assert apply(state, DiscardInsert("nope")) is state

    def test_reset_keeps_pending_temps(self):
        state = apply(empty_state("soldiers", BY_NAME), Insert(soldier("old", "Old")))
        state = apply(state, OptimisticInsert("c1", self.draft("Dana")))
        state = apply(state, Reset([soldier("b", "Ben"), soldier("a", "Avi")]))
        assert names(state) == ["Avi", "Ben", "Dana"]
        assert state.pending == {"c1": "temp-Dana"}

    def test_reset_dedupes_fetched_rows(self):
        state = apply(empty_state("soldiers"), Reset([soldier("a", "Avi"), soldier("a", "Avi", "Home")]))
        assert len(state) == 1
        assert state.get("a").status == "Home"
