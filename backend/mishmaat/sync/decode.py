"""
Schema-validated decode step at the remote store boundary.

Rows coming from the store are plain dicts; the mirror only ever holds the
typed row models from ``mishmaat.schemas``.
"""
from __future__ import annotations

from datetime import datetime, timezone
from typing import Any, Dict, Mapping

from pydantic import BaseModel, ValidationError

from mishmaat.schemas import ROW_MODELS
from .errors import DecodeError

# Timestamp columns the server fills in; drafts get a local "now" instead
_SERVER_TIMESTAMPS = ("created_at", "updated_at", "completed_at")


def row_model(table: str) -> type[BaseModel]:
    try:
        return ROW_MODELS[table]
    except KeyError:
        raise DecodeError(table, "unknown table") from None


def decode_row(table: str, raw: Mapping[str, Any]) -> BaseModel:
    model = row_model(table)
    try:
        return model.model_validate(dict(raw))
    except ValidationError as exc:
        raise DecodeError(table, str(exc)) from exc


def merge_row(table: str, record: BaseModel, changes: Mapping[str, Any]) -> BaseModel:
    """Apply a partial update and re-validate the result."""
    data = record.model_dump()
    data.update(changes)
    return decode_row(table, data)


def draft_row(table: str, values: Mapping[str, Any], temp_id: str) -> BaseModel:
    """A not-yet-persisted record for an optimistic insert."""
    model = row_model(table)
    data: Dict[str, Any] = dict(values)
    data["id"] = temp_id
    now = datetime.now(timezone.utc)
    for name in _SERVER_TIMESTAMPS:
        if name in model.model_fields and data.get(name) is None:
            data[name] = now
    if table == "soldiers":
        data.setdefault("status", "Base")
    if table == "events":
        data.setdefault("source", "commander")
    return decode_row(table, data)
