# backend/mishmaat/routers/realtime.py
"""
Change stream over WebSocket: /realtime/{table}?filter=soldier_id=eq.<id>

Each committed change on the table is pushed as
``{"table", "operation", "new", "old"}``. Closing the socket releases the
subscription.
"""
import asyncio
import logging
from typing import Optional

from fastapi import APIRouter, Query, WebSocket, WebSocketDisconnect, status
from fastapi.encoders import jsonable_encoder

from mishmaat.models import TABLES
from mishmaat.realtime import hub as hub_module
from mishmaat.realtime.hub import ChangeEvent, InvalidFilter, RowFilter

router = APIRouter(prefix="/realtime", tags=["realtime"])
logger = logging.getLogger(__name__)

_CLOSED = object()


@router.websocket("/{table}")
async def change_stream(
    websocket: WebSocket,
    table: str,
    raw_filter: Optional[str] = Query(None, alias="filter"),
):
    if table not in TABLES:
        await websocket.close(code=status.WS_1008_POLICY_VIOLATION, reason=f"unknown table {table}")
        return
    try:
        row_filter = RowFilter.parse(raw_filter)
    except InvalidFilter as exc:
        await websocket.close(code=status.WS_1008_POLICY_VIOLATION, reason=str(exc))
        return

    loop = asyncio.get_running_loop()
    queue: asyncio.Queue = asyncio.Queue()

    def on_change(event: ChangeEvent) -> None:
        loop.call_soon_threadsafe(queue.put_nowait, event)

    def on_error(exc: Exception) -> None:
        loop.call_soon_threadsafe(queue.put_nowait, _CLOSED)

    change_hub = hub_module.change_hub
    sub = change_hub.subscribe(table, on_change, row_filter=row_filter, on_error=on_error)

    async def pump():
        while True:
            item = await queue.get()
            if item is _CLOSED:
                await websocket.close(code=status.WS_1011_INTERNAL_ERROR, reason="change stream closed")
                return
            await websocket.send_json(jsonable_encoder(item.to_dict()))

    async def drain():
        # client messages are ignored; receive only to notice the disconnect
        try:
            while True:
                await websocket.receive_text()
        except WebSocketDisconnect:
            return

    try:
        # subscribed before accept so nothing committed after the handshake is missed
        await websocket.accept()
        logger.info(f"[realtime] socket subscribed to {table} ({row_filter or 'all rows'})")
        sender = asyncio.create_task(pump())
        receiver = asyncio.create_task(drain())
        done, pending = await asyncio.wait({sender, receiver}, return_when=asyncio.FIRST_COMPLETED)
        for task in pending:
            task.cancel()
        for task in done:
            exc = task.exception()
            if exc is not None and not isinstance(exc, WebSocketDisconnect):
                logger.warning(f"[realtime] socket on {table} failed: {exc}")
    finally:
        change_hub.unsubscribe(sub)
        logger.info(f"[realtime] socket on {table} released")
