"""
Client-side collection sync: reconciler, local mirror, remote store, derived views.
"""
from .errors import SyncError, DecodeError, RemoteStoreError, StaleReferenceError
from .decode import decode_row, draft_row, merge_row
from .reconciler import (
    Ordering,
    BY_NAME,
    NEWEST_FIRST,
    MirrorState,
    Insert,
    Update,
    Delete,
    OptimisticInsert,
    ConfirmInsert,
    DiscardInsert,
    Reset,
    apply,
    apply_change,
    empty_state,
    replay,
)
from .store import RemoteStore, DatabaseRemoteStore
from .mirror import LocalMirror, SubscriptionState

__all__ = [
    "SyncError", "DecodeError", "RemoteStoreError", "StaleReferenceError",
    "decode_row", "draft_row", "merge_row",
    "Ordering", "BY_NAME", "NEWEST_FIRST", "MirrorState",
    "Insert", "Update", "Delete", "OptimisticInsert", "ConfirmInsert", "DiscardInsert", "Reset",
    "apply", "apply_change", "empty_state", "replay",
    "RemoteStore", "DatabaseRemoteStore",
    "LocalMirror", "SubscriptionState",
]
