# backend/mishmaat/routers/events.py
from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query, Path
from sqlalchemy import select
from sqlalchemy.orm import Session, selectinload

from mishmaat.db import get_db
from mishmaat.models.event import Event
from mishmaat.models.soldier import Soldier
from mishmaat.schemas.event import EventCreate, EventOut, RequestCount
from mishmaat.sync import views


router = APIRouter(prefix="/events", tags=["events"])
logger = logging.getLogger(__name__)

DEFAULT_LIMIT = 50


def _get_or_404(db: Session, event_id: str) -> Event:
    event = db.get(Event, event_id)
    if not event:
        raise HTTPException(status_code=404, detail="Event not found")
    return event


@router.get("", response_model=List[EventOut])
def list_events(
    soldier_id: Optional[str] = Query(None),
    active: Optional[bool] = Query(None),
    limit: int = Query(DEFAULT_LIMIT, ge=1, le=500),
    db: Session = Depends(get_db),
):
    """
    GET /events               newest first
    GET /events?active=true   open events only
    GET /events?soldier_id=…
    """
    q = select(Event).options(selectinload(Event.soldier)).order_by(Event.created_at.desc())
    if soldier_id is not None:
        q = q.where(Event.soldier_id == soldier_id)
    if active is True:
        q = q.where(Event.ended_at.is_(None))
    elif active is False:
        q = q.where(Event.ended_at.is_not(None))
    return db.execute(q.limit(limit)).scalars().all()


@router.get("/requests/count", response_model=RequestCount)
def pending_requests(db: Session = Depends(get_db)):
    """Open soldier requests, recounted from scratch on every call."""
    rows = db.execute(
        select(Event).where(Event.source == "soldier", Event.ended_at.is_(None))
    ).scalars().all()
    return RequestCount(count=views.pending_request_count(rows))


@router.post("", response_model=EventOut, status_code=201)
def create_event(payload: EventCreate, db: Session = Depends(get_db)):
    if payload.soldier_id is not None and db.get(Soldier, payload.soldier_id) is None:
        raise HTTPException(status_code=400, detail="soldier_id does not exist")
    event = Event(
        title=payload.title,
        soldier_id=payload.soldier_id,
        description=payload.description,
        category=payload.category,
        source="commander",
    )
    db.add(event)
    db.commit()
    db.refresh(event)
    logger.info(f"[events] created {event.id} [{event.category}]")
    return event


@router.post("/{event_id}/end", response_model=EventOut)
def end_event(event_id: str = Path(...), db: Session = Depends(get_db)):
    """Mark an event as ended. Ending twice keeps the first end time."""
    event = _get_or_404(db, event_id)
    if event.ended_at is None:
        event.ended_at = datetime.now(timezone.utc)
        db.commit()
        db.refresh(event)
    return event


@router.delete("/{event_id}", status_code=204)
def delete_event(event_id: str, db: Session = Depends(get_db)):
    event = _get_or_404(db, event_id)
    db.delete(event)
    db.commit()
    return None
