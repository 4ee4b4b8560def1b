"""
Tests for the change hub and ORM change capture.

Tests cover:
- Row filter parsing and matching
- Per-table fan-out, filtering and subscriber isolation
- Committed changes are published, rolled back ones are not
"""

import pytest

from mishmaat.models import Event, Soldier
from mishmaat.realtime.hub import ChangeEvent, ChangeHub, InvalidFilter, RowFilter, StreamClosed


class TestRowFilter:
    """column=eq.value"""

    def test_parse(self):
        f = RowFilter.parse("soldier_id=eq.abc-123")
        assert f == RowFilter("soldier_id", "abc-123")
        assert str(f) == "soldier_id=eq.abc-123"

    def test_empty_means_no_filter(self):
        assert RowFilter.parse(None) is None
        assert RowFilter.parse("") is None

    @pytest.mark.parametrize("raw", ["soldier_id", "soldier_id=abc", "soldier_id=gt.3", "=eq.3"])
    def test_invalid(self, raw):
        with pytest.raises(InvalidFilter):
            RowFilter.parse(raw)

    def test_matches_compares_as_text(self):
        f = RowFilter("soldier_id", "7")
        assert f.matches({"soldier_id": 7})
        assert not f.matches({"soldier_id": None})
        assert not f.matches({})


class TestChangeHub:
    """Fan-out semantics."""

    def test_routes_by_table_and_filter(self):
        hub = ChangeHub()
        all_events, mine = [], []
        hub.subscribe("events", all_events.append)
        hub.subscribe("events", mine.append, row_filter=RowFilter("soldier_id", "s1"))

        hub.publish(ChangeEvent("events", "insert", new={"id": "e1", "soldier_id": "s1"}))
        hub.publish(ChangeEvent("events", "insert", new={"id": "e2", "soldier_id": "s2"}))
        hub.publish(ChangeEvent("soldiers", "insert", new={"id": "s3"}))

        assert [e.new["id"] for e in all_events] == ["e1", "e2"]
        assert [e.new["id"] for e in mine] == ["e1"]

    def test_delete_filters_on_old_row(self):
        hub = ChangeHub()
        seen = []
        hub.subscribe("events", seen.append, row_filter=RowFilter("soldier_id", "s1"))
        hub.publish(ChangeEvent("events", "delete", old={"id": "e1", "soldier_id": "s1"}))
        assert len(seen) == 1

    def test_failing_subscriber_does_not_stop_others(self):
        hub = ChangeHub()
        seen = []

        def broken(event):
            raise RuntimeError("boom")

        hub.subscribe("soldiers", broken)
        hub.subscribe("soldiers", seen.append)
        hub.publish(ChangeEvent("soldiers", "insert", new={"id": "a"}))
        assert len(seen) == 1

    def test_unsubscribe_stops_delivery(self):
        hub = ChangeHub()
        seen = []
        sub = hub.subscribe("soldiers", seen.append)
        hub.unsubscribe(sub)
        hub.publish(ChangeEvent("soldiers", "insert", new={"id": "a"}))
        assert seen == []
        assert hub.subscriber_count == 0

    def test_close_reports_stream_closed(self):
        hub = ChangeHub()
        errors = []
        hub.subscribe("soldiers", lambda e: None, on_error=errors.append)
        hub.close()
        assert len(errors) == 1
        assert isinstance(errors[0], StreamClosed)
        assert hub.subscriber_count == 0


class TestChangeCapture:
    """Session commits feed the hub."""

    @pytest.fixture
    def seen(self, change_hub):
        events = []
        change_hub.subscribe("soldiers", events.append)
        return events

    def test_commit_publishes_insert(self, db_session, seen):
        db_session.add(Soldier(full_name="Avi Cohen"))
        db_session.commit()
        assert len(seen) == 1
        assert seen[0].operation == "insert"
        assert seen[0].new["full_name"] == "Avi Cohen"
        assert seen[0].new["status"] == "Base"

    def test_rollback_publishes_nothing(self, db_session, seen):
        db_session.add(Soldier(full_name="Avi Cohen"))
        db_session.flush()
        db_session.rollback()
        assert seen == []

    def test_update_carries_full_new_row(self, db_session, seen):
        s = Soldier(full_name="Avi Cohen")
        db_session.add(s)
        db_session.commit()
        s.status = "Home"
        db_session.commit()
        update = seen[-1]
        assert update.operation == "update"
        assert update.new["status"] == "Home"
        assert update.new["full_name"] == "Avi Cohen"
        assert update.old == {"id": s.id}

    def test_delete_carries_old_row(self, db_session, seen):
        s = Soldier(full_name="Avi Cohen")
        db_session.add(s)
        db_session.commit()
        db_session.delete(s)
        db_session.commit()
        assert seen[-1].operation == "delete"
        assert seen[-1].old["id"] == s.id

    def test_other_tables_use_their_own_channel(self, db_session, seen, change_hub):
        events = []
        change_hub.subscribe("events", events.append)
        db_session.add(Event(title="Clinic", category="Medical"))
        db_session.commit()
        assert seen == []
        assert events[0].new["source"] == "commander"
