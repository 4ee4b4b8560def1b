# backend/mishmaat/routers/self_service.py
"""
Soldier self-service link: /s/{soldier_id}.

No login on this path. Whoever holds the soldier's id may read the soldier's
own page, edit their profile and file requests on their behalf.
"""
import logging
from typing import List

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel
from sqlalchemy import select
from sqlalchemy.orm import Session

from mishmaat.db import get_db
from mishmaat.models.event import Event
from mishmaat.models.news import News
from mishmaat.models.soldier import Soldier
from mishmaat.schemas.event import EventOut, SoldierRequestCreate
from mishmaat.schemas.news import NewsOut
from mishmaat.schemas.soldier import SoldierOut, SoldierProfileUpdate

router = APIRouter(prefix="/s", tags=["self-service"])
logger = logging.getLogger(__name__)


class SoldierPage(BaseModel):
    soldier: SoldierOut
    events: List[EventOut]
    news: List[NewsOut]


def _soldier_or_404(db: Session, soldier_id: str) -> Soldier:
    soldier = db.get(Soldier, soldier_id)
    if not soldier:
        raise HTTPException(status_code=404, detail="Soldier not found")
    return soldier


@router.get("/{soldier_id}", response_model=SoldierPage)
def soldier_page(soldier_id: str, db: Session = Depends(get_db)):
    soldier = _soldier_or_404(db, soldier_id)
    events = db.execute(
        select(Event).where(Event.soldier_id == soldier_id).order_by(Event.created_at.desc())
    ).scalars().all()
    news = db.execute(select(News).order_by(News.created_at.desc())).scalars().all()
    return SoldierPage(
        soldier=SoldierOut.model_validate(soldier),
        events=[EventOut.model_validate(e) for e in events],
        news=[NewsOut.model_validate(n) for n in news],
    )


@router.patch("/{soldier_id}", response_model=SoldierOut)
def update_profile(soldier_id: str, payload: SoldierProfileUpdate, db: Session = Depends(get_db)):
    """Soldiers edit their own details; presence status stays with the commander."""
    soldier = _soldier_or_404(db, soldier_id)
    for key, value in payload.model_dump().items():
        setattr(soldier, key, value)
    db.commit()
    db.refresh(soldier)
    return soldier


@router.post("/{soldier_id}/requests", response_model=EventOut, status_code=201)
def submit_request(soldier_id: str, payload: SoldierRequestCreate, db: Session = Depends(get_db)):
    _soldier_or_404(db, soldier_id)
    event = Event(
        title=payload.title,
        soldier_id=soldier_id,
        category=payload.category,
        description=payload.description,
        source="soldier",
        creator_id=None,
    )
    db.add(event)
    db.commit()
    db.refresh(event)
    logger.info(f"[self-service] request {event.id} from soldier {soldier_id}")
    return event
