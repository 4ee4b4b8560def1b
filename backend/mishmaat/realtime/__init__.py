from .hub import ChangeEvent, ChangeHub, RowFilter, InvalidFilter, StreamClosed, Subscription, change_hub
from .capture import as_row, install_change_capture

__all__ = [
    "ChangeEvent",
    "ChangeHub",
    "RowFilter",
    "InvalidFilter",
    "StreamClosed",
    "Subscription",
    "change_hub",
    "as_row",
    "install_change_capture",
]
