"""Shared builders and an in-memory remote store for the sync tests."""
import asyncio
from datetime import datetime, timezone

from mishmaat.realtime.hub import ChangeEvent
from mishmaat.sync.errors import RemoteStoreError, StaleReferenceError


async def settle(rounds: int = 5) -> None:
    """Let callbacks scheduled with call_soon_threadsafe run."""
    for _ in range(rounds):
        await asyncio.sleep(0)


def soldier_row(ident: str, name: str, status: str = "Base", **extra) -> dict:
    row = {
        "id": ident,
        "full_name": name,
        "status": status,
        "role_in_unit": None,
        "created_at": datetime(2024, 1, 1, tzinfo=timezone.utc),
    }
    row.update(extra)
    return row


def event_row(ident: str, title: str, **extra) -> dict:
    row = {
        "id": ident,
        "title": title,
        "category": "Personal",
        "source": "commander",
        "description": "",
        "created_at": datetime(2024, 1, 1, tzinfo=timezone.utc),
    }
    row.update(extra)
    return row


class FakeStore:
    """In-memory RemoteStore with hooks for injecting races and failures."""

    def __init__(self, rows=None, table="soldiers"):
        self.table = table
        self.rows = {r["id"]: dict(r) for r in rows or []}
        self.subs = []
        self.fail_with = None
        self.echo = False
        self.before_select = None
        self.select_gate = None
        self.insert_gate = None
        self.fail_selects = 0
        self.selects = 0
        self._ids = 0

    def _maybe_fail(self):
        if self.fail_with is not None:
            raise self.fail_with

    async def select(self, table, row_filter=None, order=None, limit=None):
        self.selects += 1
        snapshot = [dict(r) for r in self.rows.values()]
        if self.before_select is not None:
            self.before_select()
        if self.select_gate is not None:
            await self.select_gate.wait()
        self._maybe_fail()
        if self.fail_selects:
            self.fail_selects -= 1
            raise RemoteStoreError("offline")
        return snapshot

    async def insert(self, table, values):
        if self.insert_gate is not None:
            await self.insert_gate.wait()
        self._maybe_fail()
        self._ids += 1
        row = dict(values)
        row["id"] = f"row-{self._ids}"
        row.setdefault("created_at", datetime(2024, 1, 2, tzinfo=timezone.utc))
        row.setdefault("status", "Base")
        self.rows[row["id"]] = row
        if self.echo:
            self.emit("insert", new=row)
        return dict(row)

    async def update(self, table, ident, changes):
        self._maybe_fail()
        if ident not in self.rows:
            raise StaleReferenceError(table, ident)
        self.rows[ident].update(changes)
        return dict(self.rows[ident])

    async def delete(self, table, ident):
        self._maybe_fail()
        if ident not in self.rows:
            raise StaleReferenceError(table, ident)
        del self.rows[ident]

    async def subscribe(self, table, row_filter, on_change, on_error=None):
        handle = (table, on_change, on_error)
        self.subs.append(handle)
        return handle

    async def unsubscribe(self, handle):
        if handle in self.subs:
            self.subs.remove(handle)

    def emit(self, operation, new=None, old=None):
        for table, on_change, _ in list(self.subs):
            on_change(ChangeEvent(table, operation, new=new, old=old))

    def drop_stream(self, exc=None):
        subs, self.subs = self.subs, []
        for _, _, on_error in subs:
            if on_error is not None:
                on_error(exc or ConnectionError("socket closed"))
