"""
Derived views over mirrored collections.

Pure functions, recomputed from scratch on every change; the collections are
small (tens to low hundreds of rows) so nothing is maintained incrementally.
Records only need the attributes each function reads, so both row models and
ORM objects work.
"""
from __future__ import annotations

import math
from typing import Iterable, List, Literal, Optional, Sequence, Tuple, TypeVar

T = TypeVar("T")

StatusFilter = Literal["all", "Base", "Home"]

_FILTER_CYCLE = {"all": "Base", "Base": "Home", "Home": "all"}


def partition_by_status(soldiers: Iterable[T]) -> Tuple[List[T], List[T]]:
    base, home = [], []
    for s in soldiers:
        (base if s.status == "Base" else home).append(s)
    return base, home


def completion_percentage(part: int, total: int) -> int:
    """round(part / total * 100), 0 for an empty population. Halves round up."""
    if total <= 0:
        return 0
    return int(math.floor(part / total * 100 + 0.5))


def status_counts(soldiers: Sequence[T]) -> dict:
    base, home = partition_by_status(soldiers)
    return {
        "total": len(soldiers),
        "base": len(base),
        "home": len(home),
        "base_percentage": completion_percentage(len(base), len(soldiers)),
    }


def matches_search(soldier, search: str) -> bool:
    # case-sensitive substring on name or role
    if not search:
        return True
    if search in soldier.full_name:
        return True
    return bool(soldier.role_in_unit) and search in soldier.role_in_unit


def matches_status(soldier, status: Optional[StatusFilter]) -> bool:
    return status in (None, "all") or soldier.status == status


def filter_soldiers(
    soldiers: Iterable[T],
    search: str = "",
    status: Optional[StatusFilter] = "all",
) -> List[T]:
    return [s for s in soldiers if matches_search(s, search) and matches_status(s, status)]


def next_status_filter(current: StatusFilter) -> StatusFilter:
    """all -> Base -> Home -> all"""
    return _FILTER_CYCLE[current]


def completed_soldier_ids(completions: Iterable, checklist_id: str) -> set:
    return {c.soldier_id for c in completions if c.checklist_id == checklist_id}


def checklist_coverage(
    soldiers: Iterable[T],
    completions: Iterable,
    checklist_id: str,
) -> Tuple[List[T], List[T]]:
    """Split soldiers into (completed, missing) for one checklist."""
    done = completed_soldier_ids(completions, checklist_id)
    completed, missing = [], []
    for s in soldiers:
        (completed if s.id in done else missing).append(s)
    return completed, missing


def partition_events(events: Iterable[T]) -> Tuple[List[T], List[T]]:
    """(active, ended); an event is active while ended_at is unset."""
    active, ended = [], []
    for e in events:
        (active if e.ended_at is None else ended).append(e)
    return active, ended


def pending_request_count(events: Iterable) -> int:
    """Open soldier requests; the navbar badge."""
    return sum(1 for e in events if e.source == "soldier" and e.ended_at is None)
