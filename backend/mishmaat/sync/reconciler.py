"""
Reconciler: merge rules of the local mirror.

Pure function: (state, action) -> state
No IO, never mutates its input. Remote change events and optimistic local
edits both go through ``apply`` so the merge rules can be tested without a
store or a UI.

Invariants:
    - at most one record per identifier
    - actions take effect in the order they are applied (receipt order)
    - an Insert of an existing identifier replaces it (replay is idempotent)
    - Update/Delete of an unknown identifier is a no-op
"""
from __future__ import annotations

from dataclasses import dataclass, field, replace
from typing import Any, Dict, Literal, Mapping, Optional, Sequence, Tuple, Union

from pydantic import BaseModel

from .decode import decode_row, merge_row

OrderMode = Literal["sorted", "prepend", "append"]


@dataclass(frozen=True)
class Ordering:
    """How new records are placed.

    ``sorted`` keeps the collection sorted by ``key`` (e.g. full_name),
    ``prepend`` is for reverse-chronological lists (events, news),
    ``append`` keeps arrival order.
    """
    mode: OrderMode = "append"
    key: Optional[str] = None
    descending: bool = False

    def __post_init__(self):
        if self.mode == "sorted" and not self.key:
            raise ValueError("sorted ordering needs a key")


BY_NAME = Ordering(mode="sorted", key="full_name")
NEWEST_FIRST = Ordering(mode="prepend")


@dataclass(frozen=True)
class MirrorState:
    table: str
    order: Ordering = field(default_factory=Ordering)
    records: Tuple[BaseModel, ...] = ()
    # correlation id -> temporary record id of an in-flight optimistic insert
    pending: Mapping[str, str] = field(default_factory=dict)

    def ids(self) -> list[str]:
        return [r.id for r in self.records]

    def get(self, ident: str) -> Optional[BaseModel]:
        for r in self.records:
            if r.id == ident:
                return r
        return None

    def __len__(self) -> int:
        return len(self.records)


# ---------------------------------------------------------------------------
# Actions
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class Insert:
    record: BaseModel


@dataclass(frozen=True)
class Update:
    ident: str
    changes: Mapping[str, Any]


@dataclass(frozen=True)
class Delete:
    ident: str


@dataclass(frozen=True)
class OptimisticInsert:
    correlation_id: str
    record: BaseModel


@dataclass(frozen=True)
class ConfirmInsert:
    correlation_id: str
    record: BaseModel


@dataclass(frozen=True)
class DiscardInsert:
    correlation_id: str


@dataclass(frozen=True)
class Reset:
    records: Sequence[BaseModel]


Action = Union[Insert, Update, Delete, OptimisticInsert, ConfirmInsert, DiscardInsert, Reset]


def empty_state(table: str, order: Optional[Ordering] = None) -> MirrorState:
    return MirrorState(table=table, order=order or Ordering())


def apply(state: MirrorState, action: Action) -> MirrorState:
    handler = _HANDLERS.get(type(action))
    if handler is None:
        raise TypeError(f"unknown mirror action: {action!r}")
    return handler(state, action)


def replay(state: MirrorState, actions: Sequence[Action]) -> MirrorState:
    for action in actions:
        state = apply(state, action)
    return state


def apply_change(state: MirrorState, operation: str, new: Optional[Mapping[str, Any]] = None,
                 old: Optional[Mapping[str, Any]] = None) -> MirrorState:
    """Translate a remote change notification into a reconciler action."""
    if operation == "insert":
        return apply(state, Insert(decode_row(state.table, new or {})))
    if operation == "update":
        ident = (new or {}).get("id") or (old or {}).get("id")
        return apply(state, Update(ident, dict(new or {})))
    if operation == "delete":
        return apply(state, Delete((old or {}).get("id")))
    raise ValueError(f"unknown change operation: {operation!r}")


# ---------------------------------------------------------------------------
# Internal helpers
# ---------------------------------------------------------------------------

def _index(records: Sequence[BaseModel], ident: str) -> int:
    for i, r in enumerate(records):
        if r.id == ident:
            return i
    return -1


def _sort_key(name: str):
    def key(record: BaseModel):
        value = getattr(record, name, None)
        # None after any value (ascending)
        return (value is None, value if value is not None else "")
    return key


def _ordered(order: Ordering, records: list[BaseModel]) -> Tuple[BaseModel, ...]:
    if order.mode == "sorted":
        records = sorted(records, key=_sort_key(order.key), reverse=order.descending)
    return tuple(records)


def _place(order: Ordering, records: list[BaseModel], record: BaseModel) -> Tuple[BaseModel, ...]:
    if order.mode == "prepend":
        return tuple([record] + records)
    return _ordered(order, records + [record])


def _upsert(state: MirrorState, record: BaseModel) -> Tuple[BaseModel, ...]:
    records = list(state.records)
    i = _index(records, record.id)
    if i >= 0:
        records[i] = record
        return _ordered(state.order, records)
    return _place(state.order, records, record)


def _insert(state: MirrorState, action: Insert) -> MirrorState:
    return replace(state, records=_upsert(state, action.record))


def _update(state: MirrorState, action: Update) -> MirrorState:
    records = list(state.records)
    i = _index(records, action.ident)
    if i < 0:
        return state
    changes = {k: v for k, v in action.changes.items() if k != "id"}
    records[i] = merge_row(state.table, records[i], changes)
    return replace(state, records=_ordered(state.order, records))


def _delete(state: MirrorState, action: Delete) -> MirrorState:
    if _index(state.records, action.ident) < 0:
        return state
    return replace(state, records=tuple(r for r in state.records if r.id != action.ident))


def _optimistic_insert(state: MirrorState, action: OptimisticInsert) -> MirrorState:
    pending: Dict[str, str] = dict(state.pending)
    pending[action.correlation_id] = action.record.id
    return replace(state, records=_upsert(state, action.record), pending=pending)


def _confirm_insert(state: MirrorState, action: ConfirmInsert) -> MirrorState:
    pending = dict(state.pending)
    temp_id = pending.pop(action.correlation_id, None)
    records = list(state.records)
    echoed = _index(records, action.record.id) >= 0
    t = _index(records, temp_id) if temp_id is not None else -1
    if t >= 0:
        if echoed:
            # the server echo won the race and may already carry newer fields
            del records[t]
        else:
            records[t] = action.record
        return replace(state, records=_ordered(state.order, records), pending=pending)
    if echoed:
        return replace(state, pending=pending)
    return replace(state, records=_place(state.order, records, action.record), pending=pending)


def _discard_insert(state: MirrorState, action: DiscardInsert) -> MirrorState:
    pending = dict(state.pending)
    temp_id = pending.pop(action.correlation_id, None)
    if temp_id is None:
        return state
    records = tuple(r for r in state.records if r.id != temp_id)
    return replace(state, records=records, pending=pending)


def _reset(state: MirrorState, action: Reset) -> MirrorState:
    temp_ids = set(state.pending.values())
    temps = [r for r in state.records if r.id in temp_ids]
    seeded = replace(state, records=())
    for record in action.records:
        seeded = replace(seeded, records=_upsert_append(seeded, record))
    fetched = list(seeded.records)
    if state.order.mode == "prepend":
        merged = temps + [r for r in fetched if r.id not in temp_ids]
    else:
        merged = [r for r in fetched if r.id not in temp_ids] + temps
    return replace(state, records=_ordered(state.order, merged))


def _upsert_append(state: MirrorState, record: BaseModel) -> Tuple[BaseModel, ...]:
    # bulk fetch rows already arrive in view order; keep it
    records = list(state.records)
    i = _index(records, record.id)
    if i >= 0:
        records[i] = record
    else:
        records.append(record)
    return tuple(records)


_HANDLERS = {
    Insert: _insert,
    Update: _update,
    Delete: _delete,
    OptimisticInsert: _optimistic_insert,
    ConfirmInsert: _confirm_insert,
    DiscardInsert: _discard_insert,
    Reset: _reset,
}
