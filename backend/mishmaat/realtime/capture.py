"""
ORM-level change capture.

Rows inserted, updated or deleted during a flush are collected on the
session and published to the change hub once the transaction commits.
A rollback discards them, so subscribers never see uncommitted state.
"""
from __future__ import annotations

import logging
from typing import Any, Dict, List

from sqlalchemy import event, inspect
from sqlalchemy.orm import Session

from mishmaat.models import TABLES
from mishmaat.realtime import hub as hub_module
from mishmaat.realtime.hub import ChangeEvent

logger = logging.getLogger(__name__)

_PENDING_KEY = "mishmaat_pending_changes"


def as_row(obj: Any) -> Dict[str, Any]:
    """Flat column dict of a mapped instance (no relationships)."""
    mapper = inspect(obj).mapper
    return {attr.key: getattr(obj, attr.key) for attr in mapper.column_attrs}


def _pk_row(obj: Any) -> Dict[str, Any]:
    mapper = inspect(obj).mapper
    return {col.key: getattr(obj, col.key) for col in mapper.primary_key}


def _tracked(obj: Any) -> bool:
    return getattr(obj, "__tablename__", None) in TABLES


def _after_flush(session: Session, flush_context) -> None:
    pending: List[ChangeEvent] = session.info.setdefault(_PENDING_KEY, [])
    for obj in session.new:
        if _tracked(obj):
            pending.append(ChangeEvent(obj.__tablename__, "insert", new=as_row(obj)))
    for obj in session.dirty:
        if _tracked(obj) and session.is_modified(obj, include_collections=False):
            pending.append(ChangeEvent(obj.__tablename__, "update", new=as_row(obj), old=_pk_row(obj)))
    for obj in session.deleted:
        if _tracked(obj):
            pending.append(ChangeEvent(obj.__tablename__, "delete", old=as_row(obj)))


def _after_commit(session: Session) -> None:
    pending = session.info.pop(_PENDING_KEY, [])
    for change in pending:
        hub_module.change_hub.publish(change)
    if pending:
        logger.debug(f"[realtime] published {len(pending)} change(s)")


def _after_rollback(session: Session) -> None:
    dropped = session.info.pop(_PENDING_KEY, [])
    if dropped:
        logger.debug(f"[realtime] discarded {len(dropped)} uncommitted change(s)")


def install_change_capture(target=Session) -> None:
    """Hook the capture listeners onto ``target`` (all sessions by default). Idempotent."""
    if event.contains(target, "after_flush", _after_flush):
        return
    event.listen(target, "after_flush", _after_flush)
    event.listen(target, "after_commit", _after_commit)
    event.listen(target, "after_rollback", _after_rollback)
