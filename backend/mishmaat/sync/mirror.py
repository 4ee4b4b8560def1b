"""
Local mirror of one remote table.

Lifecycle per mounted view::

    unsubscribed -> subscribing -> subscribed -> unsubscribed

``open`` subscribes first and buffers notifications, then bulk-fetches, seeds
the reconciler and replays the buffer, so nothing committed between the fetch
and the subscription is lost. ``close`` is unconditional: once it runs, no
queued notification and no late fetch/mutation result touches the mirror, and
optimistic inserts still in flight are dropped. Deleting a temp record cancels
its insert: the server row is deleted once the insert returns.

Local mutations are optimistic. When the remote call fails the touched record
is put back the way it was before the edit (only that record, so remote
changes that arrived meanwhile are kept) and the error is raised to the
caller. Nothing is retried.
"""
from __future__ import annotations

import asyncio
import enum
import logging
from typing import Any, Callable, List, Mapping, Optional, Set
from uuid import uuid4

from pydantic import BaseModel

from mishmaat.realtime.hub import ChangeEvent, RowFilter

from .decode import decode_row, draft_row
from .errors import DecodeError, RemoteStoreError, StaleReferenceError, SyncError
from .reconciler import (
    ConfirmInsert,
    Delete,
    DiscardInsert,
    Insert,
    MirrorState,
    OptimisticInsert,
    Ordering,
    Reset,
    Update,
    apply,
    apply_change,
    empty_state,
)

logger = logging.getLogger(__name__)

RESYNC_ATTEMPTS = 5
RESYNC_BASE_DELAY = 0.5
RESYNC_MAX_DELAY = 8.0


class SubscriptionState(str, enum.Enum):
    UNSUBSCRIBED = "unsubscribed"
    SUBSCRIBING = "subscribing"
    SUBSCRIBED = "subscribed"


Listener = Callable[[MirrorState], None]


class LocalMirror:
    def __init__(
        self,
        store,
        table: str,
        order: Optional[Ordering] = None,
        row_filter: Optional[RowFilter] = None,
        fetch_order: Optional[str] = None,
        limit: Optional[int] = None,
        auto_resync: bool = False,
    ):
        self.store = store
        self.table = table
        self.row_filter = row_filter
        self.fetch_order = fetch_order
        self.limit = limit
        self.auto_resync = auto_resync

        self._state = empty_state(table, order)
        self._status = SubscriptionState.UNSUBSCRIBED
        self._handle: Any = None
        self._buffer: Optional[List[ChangeEvent]] = None
        # bumped on close; results issued under an older generation are dropped
        self._generation = 0
        self._listeners: List[Listener] = []
        self._resync_task: Optional[asyncio.Task] = None
        # token of the open() in progress; cleared when its stream is lost
        self._opening: Optional[object] = None
        # correlation ids of in-flight inserts whose temp record was deleted locally
        self._cancelled_inserts: Set[str] = set()

    # -- read side ------------------------------------------------------------

    @property
    def state(self) -> MirrorState:
        return self._state

    @property
    def records(self) -> tuple:
        return self._state.records

    @property
    def status(self) -> SubscriptionState:
        return self._status

    def get(self, ident: str) -> Optional[BaseModel]:
        return self._state.get(ident)

    def add_listener(self, fn: Listener) -> Callable[[], None]:
        self._listeners.append(fn)
        return lambda: self._listeners.remove(fn)

    def _commit(self, state: MirrorState) -> None:
        if state is self._state:
            return
        self._state = state
        for fn in list(self._listeners):
            fn(state)

    # -- lifecycle --------------------------------------------------------------

    async def open(self) -> "LocalMirror":
        if self._status != SubscriptionState.UNSUBSCRIBED:
            raise SyncError(f"{self.table} mirror is already {self._status.value}")
        self._status = SubscriptionState.SUBSCRIBING
        self._buffer = []
        gen = self._generation
        attempt = self._opening = object()

        try:
            handle = await self.store.subscribe(self.table, self.row_filter, self._on_change, self._on_stream_lost)
        except SyncError:
            if self._opening is attempt:
                self._opening = None
                self._status = SubscriptionState.UNSUBSCRIBED
                self._buffer = None
            raise
        if gen != self._generation or self._opening is not attempt:
            await self.store.unsubscribe(handle)
            return self
        self._handle = handle

        try:
            rows = await self.store.select(self.table, self.row_filter, self.fetch_order, self.limit)
            records = [decode_row(self.table, row) for row in rows]
        except SyncError:
            if gen == self._generation and self._opening is attempt:
                await self._teardown()
            raise
        if gen != self._generation:
            return self
        if self._opening is not attempt:
            # stream lost mid-fetch: keep the rows, stay unsubscribed, resync (if any) takes over
            if self._status == SubscriptionState.UNSUBSCRIBED:
                self._commit(apply(self._state, Reset(records)))
            logger.debug(f"[mirror] {self.table} open superseded after fetching {len(records)} row(s)")
            return self

        self._opening = None
        self._commit(apply(self._state, Reset(records)))
        buffered, self._buffer = self._buffer or [], None
        for event in buffered:
            self._apply_remote(event)
        self._status = SubscriptionState.SUBSCRIBED
        logger.debug(f"[mirror] {self.table} subscribed with {len(records)} row(s), replayed {len(buffered)}")
        return self

    async def close(self) -> None:
        """Unsubscribe and drop in-flight optimistic inserts; their results are ignored from now on."""
        self._generation += 1
        if self._resync_task is not None and not self._resync_task.done():
            self._resync_task.cancel()
        self._resync_task = None
        for correlation_id in list(self._state.pending):
            self._commit(apply(self._state, DiscardInsert(correlation_id)))
        await self._teardown()

    async def _teardown(self) -> None:
        self._status = SubscriptionState.UNSUBSCRIBED
        self._buffer = None
        self._opening = None
        handle, self._handle = self._handle, None
        if handle is not None:
            await self.store.unsubscribe(handle)

    async def resync(self) -> None:
        """Resubscribe and refetch; in-flight optimistic inserts are kept."""
        await self._teardown()
        await self.open()

    async def __aenter__(self) -> "LocalMirror":
        return await self.open()

    async def __aexit__(self, *exc) -> None:
        await self.close()

    # -- remote notifications -------------------------------------------------

    def _on_change(self, event: ChangeEvent) -> None:
        if self._status == SubscriptionState.UNSUBSCRIBED or event.table != self.table:
            return
        if self._buffer is not None:
            self._buffer.append(event)
            return
        self._apply_remote(event)

    def _apply_remote(self, event: ChangeEvent) -> None:
        try:
            state = apply_change(self._state, event.operation, event.new, event.old)
        except DecodeError as exc:
            logger.warning(f"[mirror] dropped malformed {self.table} {event.operation}: {exc}")
            return
        self._commit(state)

    def _on_stream_lost(self, exc: Exception) -> None:
        if self._status == SubscriptionState.UNSUBSCRIBED:
            return
        logger.warning(f"[mirror] {self.table} change stream lost: {exc}")
        self._status = SubscriptionState.UNSUBSCRIBED
        self._handle = None
        self._buffer = None
        self._opening = None
        if self.auto_resync:
            self._resync_task = asyncio.ensure_future(self._resync_with_backoff())

    async def _resync_with_backoff(self) -> None:
        gen = self._generation
        for attempt in range(RESYNC_ATTEMPTS):
            if gen != self._generation:
                return
            try:
                await self.resync()
                logger.info(f"[mirror] {self.table} resynced after {attempt + 1} attempt(s)")
                return
            except SyncError as exc:
                delay = min(RESYNC_BASE_DELAY * (2 ** attempt), RESYNC_MAX_DELAY)
                logger.warning(f"[mirror] {self.table} resync failed ({exc}); retrying in {delay:.1f}s")
                await asyncio.sleep(delay)
        logger.error(f"[mirror] {self.table} gave up resyncing after {RESYNC_ATTEMPTS} attempts")

    # -- optimistic mutations -------------------------------------------------

    async def insert(self, values: Mapping[str, Any]) -> BaseModel:
        gen = self._generation
        correlation_id = uuid4().hex
        draft = draft_row(self.table, values, f"temp-{uuid4()}")
        self._commit(apply(self._state, OptimisticInsert(correlation_id, draft)))
        try:
            row = await self.store.insert(self.table, values)
            record = decode_row(self.table, row)
        except SyncError:
            self._cancelled_inserts.discard(correlation_id)
            if gen == self._generation:
                self._commit(apply(self._state, DiscardInsert(correlation_id)))
            raise
        if correlation_id in self._cancelled_inserts:
            # the temp record was deleted while the insert was in flight
            self._cancelled_inserts.discard(correlation_id)
            if gen == self._generation:
                self._commit(apply(self._state, Delete(record.id)))
            try:
                await self.store.delete(self.table, record.id)
            except StaleReferenceError:
                pass
            return record
        if gen == self._generation:
            self._commit(apply(self._state, ConfirmInsert(correlation_id, record)))
        return record

    async def update(self, ident: str, changes: Mapping[str, Any]) -> Optional[BaseModel]:
        gen = self._generation
        previous = self._state.get(ident)
        self._commit(apply(self._state, Update(ident, changes)))
        try:
            row = await self.store.update(self.table, ident, changes)
        except StaleReferenceError:
            logger.info(f"[mirror] {self.table}/{ident} is gone remotely; dropping local copy")
            if gen == self._generation:
                self._commit(apply(self._state, Delete(ident)))
            return None
        except RemoteStoreError:
            if gen == self._generation and previous is not None:
                undo = {key: getattr(previous, key) for key in changes if key in type(previous).model_fields}
                self._commit(apply(self._state, Update(ident, undo)))
            raise
        if gen == self._generation:
            self._commit(apply(self._state, Update(ident, row)))
        return decode_row(self.table, row)

    async def delete(self, ident: str) -> None:
        for correlation_id, temp_id in self._state.pending.items():
            if temp_id == ident:
                self._cancelled_inserts.add(correlation_id)
                self._commit(apply(self._state, DiscardInsert(correlation_id)))
                return
        gen = self._generation
        previous = self._state.get(ident)
        self._commit(apply(self._state, Delete(ident)))
        try:
            await self.store.delete(self.table, ident)
        except StaleReferenceError:
            return
        except RemoteStoreError:
            if gen == self._generation and previous is not None and self._state.get(ident) is None:
                self._commit(apply(self._state, Insert(previous)))
            raise
