"""
Unit tests for derived views.

Tests cover:
- Base/Home partition and percentages
- Search and status filters
- Checklist coverage
- Event partition and the pending-request badge
"""

from datetime import datetime, timezone
from types import SimpleNamespace

import pytest

from mishmaat.sync import views


def person(ident, name, status="Base", role=None):
    return SimpleNamespace(id=ident, full_name=name, status=status, role_in_unit=role)


def evt(ident, source="commander", ended=False):
    return SimpleNamespace(
        id=ident,
        source=source,
        ended_at=datetime(2024, 1, 1, tzinfo=timezone.utc) if ended else None,
    )


ROSTER = [
    person("1", "Avi Cohen", "Base", "Medic"),
    person("2", "Ben Levi", "Home", "Driver"),
    person("3", "Dana Mor", "Base", None),
    person("4", "Eli Katz", "Home", "Medic"),
    person("5", "Gal Ron", "Base", "Signals"),
    person("6", "Hadar Bar", "Home", None),
    person("7", "Idan Paz", "Home", "Cook"),
]


class TestStatusViews:
    """Partition and counts."""

    def test_partition_is_exhaustive_and_keeps_order(self):
        base, home = views.partition_by_status(ROSTER)
        assert [s.id for s in base] == ["1", "3", "5"]
        assert [s.id for s in home] == ["2", "4", "6", "7"]
        assert len(base) + len(home) == len(ROSTER)

    def test_partition_does_not_depend_on_arrival_order(self):
        base, home = views.partition_by_status(list(reversed(ROSTER)))
        assert {s.id for s in base} == {"1", "3", "5"}
        assert {s.id for s in home} == {"2", "4", "6", "7"}

    def test_status_counts(self):
        assert views.status_counts(ROSTER) == {"total": 7, "base": 3, "home": 4, "base_percentage": 43}

    @pytest.mark.parametrize(
        "part,total,expected",
        [(3, 7, 43), (0, 0, 0), (0, 5, 0), (5, 5, 100), (1, 2, 50), (1, 8, 13), (2, 3, 67)],
    )
    def test_completion_percentage(self, part, total, expected):
        assert views.completion_percentage(part, total) == expected


class TestFilters:
    """Search box and status pill."""

    def test_search_matches_name_or_role(self):
        assert [s.id for s in views.filter_soldiers(ROSTER, search="Medic")] == ["1", "4"]
        assert [s.id for s in views.filter_soldiers(ROSTER, search="Dana")] == ["3"]

    def test_search_is_case_sensitive(self):
        assert views.filter_soldiers(ROSTER, search="dana") == []

    def test_empty_search_matches_everyone(self):
        assert len(views.filter_soldiers(ROSTER)) == 7

    def test_status_filter_combines_with_search(self):
        assert [s.id for s in views.filter_soldiers(ROSTER, search="Medic", status="Home")] == ["4"]
        assert [s.id for s in views.filter_soldiers(ROSTER, status="Base")] == ["1", "3", "5"]

    def test_status_and_search_commute(self):
        for status in ("all", "Base", "Home"):
            for search in ("", "Medic", "a", "Cook"):
                one = views.filter_soldiers(views.filter_soldiers(ROSTER, status=status), search=search)
                two = views.filter_soldiers(views.filter_soldiers(ROSTER, search=search), status=status)
                assert one == two

    def test_filter_cycle(self):
        assert views.next_status_filter("all") == "Base"
        assert views.next_status_filter("Base") == "Home"
        assert views.next_status_filter("Home") == "all"


class TestChecklistCoverage:
    """Completed vs. missing."""

    def test_coverage_splits_population(self):
        completions = [
            SimpleNamespace(checklist_id="c1", soldier_id="1"),
            SimpleNamespace(checklist_id="c1", soldier_id="4"),
            SimpleNamespace(checklist_id="c2", soldier_id="2"),
        ]
        completed, missing = views.checklist_coverage(ROSTER, completions, "c1")
        assert [s.id for s in completed] == ["1", "4"]
        assert [s.id for s in missing] == ["2", "3", "5", "6", "7"]
        assert views.completion_percentage(len(completed), len(ROSTER)) == 29

    def test_completion_of_unknown_soldier_is_ignored(self):
        completions = [SimpleNamespace(checklist_id="c1", soldier_id="ghost")]
        completed, missing = views.checklist_coverage(ROSTER, completions, "c1")
        assert completed == []
        assert len(missing) == 7


class TestEventViews:
    """Active/ended and the navbar badge."""

    def test_partition_events(self):
        events = [evt("a"), evt("b", ended=True), evt("c")]
        active, ended = views.partition_events(events)
        assert [e.id for e in active] == ["a", "c"]
        assert [e.id for e in ended] == ["b"]

    def test_pending_request_count(self):
        events = [
            evt("a", source="soldier"),
            evt("b", source="soldier", ended=True),
            evt("c", source="commander"),
            evt("d", source="soldier"),
        ]
        assert views.pending_request_count(events) == 2
