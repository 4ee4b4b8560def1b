# backend/mishmaat/routers/share.py
from datetime import datetime
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy import select
from sqlalchemy.orm import Session, selectinload

from mishmaat import share
from mishmaat.db import get_db
from mishmaat.models.event import Event
from mishmaat.models.platoon import Platoon
from mishmaat.models.soldier import Soldier
from mishmaat.schemas.chat import ShareOut

router = APIRouter(prefix="/share", tags=["share"])


@router.get("/roster", response_model=ShareOut)
def share_roster(platoon_id: Optional[str] = Query(None), db: Session = Depends(get_db)):
    """Who is on base and who is home, as a message ready to send."""
    q = select(Soldier).order_by(Soldier.full_name, Soldier.id)
    unit_name = "Platoon"
    if platoon_id is not None:
        platoon = db.get(Platoon, platoon_id)
        if platoon is None:
            raise HTTPException(status_code=404, detail="Platoon not found")
        unit_name = platoon.name
        q = q.where(Soldier.platoon_id == platoon_id)
    soldiers = db.execute(q).scalars().all()
    text = share.roster_text(soldiers, datetime.now(), unit_name=unit_name)
    return ShareOut(text=text, url=share.share_url(text))


@router.get("/events/{event_id}", response_model=ShareOut)
def share_event(event_id: str, db: Session = Depends(get_db)):
    event = db.execute(
        select(Event).options(selectinload(Event.soldier)).where(Event.id == event_id)
    ).scalar_one_or_none()
    if event is None:
        raise HTTPException(status_code=404, detail="Event not found")
    text = share.event_text(event, soldier_name=event.soldier_name)
    return ShareOut(text=text, url=share.share_url(text))
