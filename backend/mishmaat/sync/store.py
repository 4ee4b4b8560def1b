"""
Remote store contract and its database-backed implementation.

The local mirror only talks to a ``RemoteStore``: point queries, mutations and
a per-table change subscription. ``DatabaseRemoteStore`` serves it from the
SQLAlchemy session factory and the in-process change hub; blocking session
work runs in the threadpool so the event loop stays responsive.
"""
from __future__ import annotations

import asyncio
import logging
from typing import Any, Callable, Dict, List, Mapping, Optional, Protocol

from fastapi.concurrency import run_in_threadpool
from sqlalchemy import select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError

from mishmaat.db import SessionLocal
from mishmaat.models import TABLES
from mishmaat.realtime import hub as hub_module
from mishmaat.realtime.capture import as_row, install_change_capture
from mishmaat.realtime.hub import ChangeEvent, RowFilter, Subscription

from .errors import RemoteStoreError, StaleReferenceError

logger = logging.getLogger(__name__)

Row = Dict[str, Any]

# Derived (joined) fields a table's rows carry besides its own columns
_EXTRA_FIELDS = {
    "events": ("soldier_name",),
}


class RemoteStore(Protocol):
    async def select(
        self,
        table: str,
        row_filter: Optional[RowFilter] = None,
        order: Optional[str] = None,
        limit: Optional[int] = None,
    ) -> List[Row]: ...

    async def insert(self, table: str, values: Mapping[str, Any]) -> Row: ...

    async def update(self, table: str, ident: str, changes: Mapping[str, Any]) -> Row: ...

    async def delete(self, table: str, ident: str) -> None: ...

    async def subscribe(
        self,
        table: str,
        row_filter: Optional[RowFilter],
        on_change: Callable[[ChangeEvent], None],
        on_error: Optional[Callable[[Exception], None]] = None,
    ) -> Any: ...

    async def unsubscribe(self, handle: Any) -> None: ...


class DatabaseRemoteStore:
    """RemoteStore over the application database.

    ``order`` is a column name, prefixed with ``-`` for descending
    (``"full_name"``, ``"-created_at"``).
    """

    def __init__(self, session_factory=SessionLocal, change_hub=None):
        self._session_factory = session_factory
        self._hub = change_hub
        install_change_capture()

    @property
    def hub(self):
        return self._hub or hub_module.change_hub

    # -- queries ------------------------------------------------------------

    async def select(self, table, row_filter=None, order=None, limit=None) -> List[Row]:
        return await run_in_threadpool(self._select, table, row_filter, order, limit)

    async def insert(self, table, values) -> Row:
        return await run_in_threadpool(self._insert, table, dict(values))

    async def update(self, table, ident, changes) -> Row:
        return await run_in_threadpool(self._update, table, ident, dict(changes))

    async def delete(self, table, ident) -> None:
        await run_in_threadpool(self._delete, table, ident)

    # -- change stream ------------------------------------------------------

    async def subscribe(self, table, row_filter, on_change, on_error=None) -> Subscription:
        _model(table)
        loop = asyncio.get_running_loop()

        def deliver(event: ChangeEvent) -> None:
            loop.call_soon_threadsafe(on_change, event)

        def lost(exc: Exception) -> None:
            loop.call_soon_threadsafe(on_error, exc)

        return self.hub.subscribe(
            table,
            deliver,
            row_filter=row_filter,
            on_error=lost if on_error is not None else None,
        )

    async def unsubscribe(self, handle: Subscription) -> None:
        self.hub.unsubscribe(handle)

    # -- blocking implementations -------------------------------------------

    def _row(self, table: str, obj) -> Row:
        row = as_row(obj)
        for name in _EXTRA_FIELDS.get(table, ()):
            row[name] = getattr(obj, name)
        return row

    def _select(self, table, row_filter, order, limit) -> List[Row]:
        model = _model(table)
        q = select(model)
        if row_filter is not None:
            q = q.where(_column(model, table, row_filter.column) == row_filter.value)
        if order:
            descending = order.startswith("-")
            col = _column(model, table, order.lstrip("-"))
            q = q.order_by(col.desc() if descending else col.asc())
        if limit is not None:
            q = q.limit(limit)
        try:
            with self._session_factory() as s:
                return [self._row(table, obj) for obj in s.execute(q).scalars().all()]
        except SQLAlchemyError as exc:
            logger.error(f"[store] select on {table} failed: {exc}")
            raise RemoteStoreError(f"select on {table} failed") from exc

    def _insert(self, table, values) -> Row:
        model = _model(table)
        for name in ("id",) + _EXTRA_FIELDS.get(table, ()):
            values.pop(name, None)
        try:
            obj = model(**values)
        except TypeError as exc:
            raise RemoteStoreError(f"invalid {table} row: {exc}") from exc
        with self._session_factory() as s:
            try:
                s.add(obj)
                s.commit()
                s.refresh(obj)
                return self._row(table, obj)
            except IntegrityError as exc:
                s.rollback()
                raise RemoteStoreError(f"{table} insert violates a constraint") from exc
            except SQLAlchemyError as exc:
                s.rollback()
                logger.error(f"[store] insert into {table} failed: {exc}")
                raise RemoteStoreError(f"insert into {table} failed") from exc

    def _update(self, table, ident, changes) -> Row:
        model = _model(table)
        changes.pop("id", None)
        for key in changes:
            _column(model, table, key)
        with self._session_factory() as s:
            obj = s.get(model, ident)
            if obj is None:
                raise StaleReferenceError(table, ident)
            try:
                for key, value in changes.items():
                    setattr(obj, key, value)
                s.commit()
                s.refresh(obj)
                return self._row(table, obj)
            except IntegrityError as exc:
                s.rollback()
                raise RemoteStoreError(f"{table} update violates a constraint") from exc
            except SQLAlchemyError as exc:
                s.rollback()
                logger.error(f"[store] update of {table}/{ident} failed: {exc}")
                raise RemoteStoreError(f"update of {table} failed") from exc

    def _delete(self, table, ident) -> None:
        model = _model(table)
        with self._session_factory() as s:
            obj = s.get(model, ident)
            if obj is None:
                raise StaleReferenceError(table, ident)
            try:
                s.delete(obj)
                s.commit()
            except SQLAlchemyError as exc:
                s.rollback()
                logger.error(f"[store] delete of {table}/{ident} failed: {exc}")
                raise RemoteStoreError(f"delete of {table} failed") from exc


def _model(table: str):
    try:
        return TABLES[table]
    except KeyError:
        raise RemoteStoreError(f"unknown table {table!r}") from None


def _column(model, table: str, name: str):
    if name not in model.__table__.columns:
        raise RemoteStoreError(f"{table} has no column {name!r}")
    return getattr(model, name)
