# backend/mishmaat/routers/soldiers.py
import logging
from typing import List, Literal, Optional

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from mishmaat.db import get_db
from mishmaat.models.soldier import Soldier
from mishmaat.models.platoon import Platoon
from mishmaat.models.event import Event
from mishmaat.models.checklist import ChecklistCompletion
from mishmaat.schemas.soldier import (
    MoveAllRequest,
    SoldierCreate,
    SoldierOut,
    SoldierUpdate,
    StatusSummary,
)
from mishmaat.schemas.event import EventOut
from mishmaat.sync import views
from pydantic import BaseModel

router = APIRouter(prefix="/soldiers", tags=["soldiers"])
logger = logging.getLogger(__name__)


class SoldierDetail(SoldierOut):
    events: List[EventOut] = []


def _get_or_404(db: Session, soldier_id: str) -> Soldier:
    soldier = db.get(Soldier, soldier_id)
    if not soldier:
        raise HTTPException(status_code=404, detail="Soldier not found")
    return soldier


def _check_platoon(db: Session, platoon_id: Optional[str]) -> None:
    if platoon_id is not None and db.get(Platoon, platoon_id) is None:
        raise HTTPException(status_code=400, detail="platoon_id does not exist")


@router.get("", response_model=List[SoldierOut])
def list_soldiers(
    status: Literal["all", "Base", "Home"] = Query("all"),
    search: str = Query(""),
    platoon_id: Optional[str] = Query(None),
    db: Session = Depends(get_db),
):
    """
    GET /soldiers
    GET /soldiers?status=Base&search=Dan
    """
    q = select(Soldier).order_by(Soldier.full_name, Soldier.id)
    if platoon_id is not None:
        q = q.where(Soldier.platoon_id == platoon_id)
    rows = db.execute(q).scalars().all()
    return views.filter_soldiers(rows, search=search, status=status)


@router.get("/summary", response_model=StatusSummary)
def soldiers_summary(db: Session = Depends(get_db)):
    rows = db.execute(select(Soldier)).scalars().all()
    return StatusSummary(**views.status_counts(rows))


@router.get("/{soldier_id}", response_model=SoldierDetail)
def get_soldier(soldier_id: str, db: Session = Depends(get_db)):
    soldier = _get_or_404(db, soldier_id)
    events = (
        db.execute(
            select(Event)
            .where(Event.soldier_id == soldier_id)
            .order_by(Event.created_at.desc())
        )
        .scalars()
        .all()
    )
    detail = SoldierDetail.model_validate(soldier)
    detail.events = [EventOut.model_validate(e) for e in events]
    return detail


@router.post("", response_model=SoldierOut, status_code=201)
def create_soldier(payload: SoldierCreate, db: Session = Depends(get_db)):
    _check_platoon(db, payload.platoon_id)
    soldier = Soldier(**payload.model_dump())
    db.add(soldier)
    try:
        db.commit()
    except IntegrityError:
        db.rollback()
        raise HTTPException(status_code=409, detail="Soldier could not be saved")
    db.refresh(soldier)
    logger.info(f"[soldiers] created {soldier.id} ({soldier.full_name})")
    return soldier


@router.patch("/{soldier_id}", response_model=SoldierOut)
def update_soldier(soldier_id: str, payload: SoldierUpdate, db: Session = Depends(get_db)):
    soldier = _get_or_404(db, soldier_id)

    values = payload.model_dump(exclude_unset=True)
    if "full_name" in values:
        if values["full_name"] is None or not values["full_name"].strip():
            raise HTTPException(status_code=400, detail="full_name is required")
        values["full_name"] = values["full_name"].strip()
    if "status" in values and values["status"] is None:
        raise HTTPException(status_code=400, detail="status cannot be empty")
    if "platoon_id" in values:
        _check_platoon(db, values["platoon_id"])
    for key in ("role_in_unit", "weapon_serial", "civilian_job", "notes"):
        if key in values and values[key] is not None:
            values[key] = values[key].strip() or None

    for key, value in values.items():
        setattr(soldier, key, value)
    try:
        db.commit()
    except IntegrityError:
        db.rollback()
        raise HTTPException(status_code=409, detail="Soldier could not be saved")
    db.refresh(soldier)
    return soldier


@router.post("/{soldier_id}/toggle-status", response_model=SoldierOut)
def toggle_status(soldier_id: str, db: Session = Depends(get_db)):
    soldier = _get_or_404(db, soldier_id)
    soldier.status = "Home" if soldier.status == "Base" else "Base"
    db.commit()
    db.refresh(soldier)
    return soldier


class MoveAllResult(BaseModel):
    status: str
    updated: int


@router.post("/move-all", response_model=MoveAllResult)
def move_all(payload: MoveAllRequest, db: Session = Depends(get_db)):
    rows = db.execute(select(Soldier).where(Soldier.status != payload.status)).scalars().all()
    for soldier in rows:
        soldier.status = payload.status
    db.commit()
    logger.info(f"[soldiers] moved {len(rows)} soldier(s) to {payload.status}")
    return MoveAllResult(status=payload.status, updated=len(rows))


@router.delete("/{soldier_id}", status_code=204)
def delete_soldier(soldier_id: str, db: Session = Depends(get_db)):
    """
    Deletes a soldier.
    Their checklist completions go with them; their events stay, detached.
    """
    soldier = _get_or_404(db, soldier_id)

    for completion in db.execute(
        select(ChecklistCompletion).where(ChecklistCompletion.soldier_id == soldier_id)
    ).scalars():
        db.delete(completion)
    for event in db.execute(select(Event).where(Event.soldier_id == soldier_id)).scalars():
        event.soldier_id = None

    db.delete(soldier)
    db.commit()
    logger.info(f"[soldiers] deleted {soldier_id}")
    return None
