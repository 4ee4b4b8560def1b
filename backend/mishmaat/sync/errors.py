"""Exceptions raised by the sync layer."""


class SyncError(Exception):
    """Base class for local mirror / remote store failures."""


class DecodeError(SyncError):
    """A remote row does not match the table's schema."""

    def __init__(self, table: str, message: str):
        super().__init__(f"{table}: {message}")
        self.table = table


class RemoteStoreError(SyncError):
    """Network, constraint or driver failure reported by the remote store."""


class StaleReferenceError(RemoteStoreError):
    """An update/delete targeted an identifier the remote store no longer has."""

    def __init__(self, table: str, ident: str):
        super().__init__(f"{table}/{ident} not found")
        self.table = table
        self.ident = ident
