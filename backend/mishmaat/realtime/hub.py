"""
In-process change notification hub.

Every committed insert/update/delete on a mirrored table is published here as
a ChangeEvent. Subscribers register per table with an optional row filter in
the hosted backend's syntax (``soldier_id=eq.<id>``).

Callbacks run synchronously on the publishing thread (usually a threadpool
worker that just committed). Subscribers living on an event loop must hop
back onto it themselves, see ``DatabaseRemoteStore.subscribe``.
"""
from __future__ import annotations

import itertools
import logging
import threading
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Literal, Optional

logger = logging.getLogger(__name__)

Operation = Literal["insert", "update", "delete"]


@dataclass(frozen=True)
class ChangeEvent:
    table: str
    operation: Operation
    new: Optional[Dict[str, Any]] = None
    old: Optional[Dict[str, Any]] = None

    @property
    def row(self) -> Dict[str, Any]:
        """The row a filter is matched against: new, or old for deletes."""
        return (self.new if self.operation != "delete" else self.old) or {}

    def to_dict(self) -> Dict[str, Any]:
        return {
            "table": self.table,
            "operation": self.operation,
            "new": self.new,
            "old": self.old,
        }


class InvalidFilter(ValueError):
    pass


@dataclass(frozen=True)
class RowFilter:
    column: str
    value: str

    @classmethod
    def parse(cls, raw: Optional[str]) -> Optional["RowFilter"]:
        """Parse ``column=eq.value``; None/empty means no filter."""
        if not raw:
            return None
        column, sep, rest = raw.partition("=")
        op, dot, value = rest.partition(".")
        if not sep or not dot or op != "eq" or not column.strip():
            raise InvalidFilter(f"unsupported filter: {raw!r}")
        return cls(column=column.strip(), value=value)

    def matches(self, row: Dict[str, Any]) -> bool:
        cell = row.get(self.column)
        return cell is not None and str(cell) == self.value

    def __str__(self) -> str:
        return f"{self.column}=eq.{self.value}"


ChangeCallback = Callable[[ChangeEvent], None]
ErrorCallback = Callable[[Exception], None]


@dataclass
class Subscription:
    id: int
    table: str
    row_filter: Optional[RowFilter]
    on_change: ChangeCallback
    on_error: Optional[ErrorCallback] = None
    active: bool = field(default=True)


class StreamClosed(Exception):
    """Raised to subscribers when the hub shuts down."""


class ChangeHub:
    """Pub/sub fan-out of table change events."""

    def __init__(self):
        self._lock = threading.Lock()
        self._subs: Dict[int, Subscription] = {}
        self._ids = itertools.count(1)

    def subscribe(
        self,
        table: str,
        on_change: ChangeCallback,
        row_filter: Optional[RowFilter] = None,
        on_error: Optional[ErrorCallback] = None,
    ) -> Subscription:
        with self._lock:
            sub = Subscription(
                id=next(self._ids),
                table=table,
                row_filter=row_filter,
                on_change=on_change,
                on_error=on_error,
            )
            self._subs[sub.id] = sub
        logger.debug(f"[realtime] subscription {sub.id} on {table} ({row_filter or 'all rows'})")
        return sub

    def unsubscribe(self, sub: Subscription) -> None:
        with self._lock:
            sub.active = False
            self._subs.pop(sub.id, None)
        logger.debug(f"[realtime] subscription {sub.id} closed")

    @property
    def subscriber_count(self) -> int:
        with self._lock:
            return len(self._subs)

    def publish(self, event: ChangeEvent) -> None:
        with self._lock:
            targets = [s for s in self._subs.values() if s.table == event.table]

        for sub in targets:
            if not sub.active:
                continue
            if sub.row_filter is not None and not sub.row_filter.matches(event.row):
                continue
            try:
                sub.on_change(event)
            except Exception:
                # one broken subscriber must not fail the committing request
                logger.exception(f"[realtime] subscriber {sub.id} failed on {event.table}/{event.operation}")

    def close(self) -> None:
        """Drop every subscription and tell subscribers the stream is gone."""
        with self._lock:
            subs = list(self._subs.values())
            self._subs.clear()
        for sub in subs:
            sub.active = False
            if sub.on_error is not None:
                try:
                    sub.on_error(StreamClosed("change stream closed"))
                except Exception:
                    logger.exception(f"[realtime] error callback of subscription {sub.id} failed")


change_hub = ChangeHub()
