from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy import select, func
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session
import logging

from mishmaat.db import get_db
from mishmaat.models.platoon import Platoon
from mishmaat.models.soldier import Soldier
from mishmaat.schemas.platoon import PlatoonIn, PlatoonOut

router = APIRouter(prefix="/platoons", tags=["platoons"])
logger = logging.getLogger(__name__)


@router.get("", response_model=list[PlatoonOut])
def list_platoons(db: Session = Depends(get_db)):
    return db.execute(select(Platoon).order_by(Platoon.name)).scalars().all()


@router.post("", response_model=PlatoonOut, status_code=201)
def create_platoon(payload: PlatoonIn, db: Session = Depends(get_db)):
    name = payload.name.strip()
    if not name:
        logger.warning("[platoons] Error: Empty name")
        raise HTTPException(status_code=400, detail="Name required")
    platoon = Platoon(name=name)
    db.add(platoon)
    try:
        db.commit()
    except IntegrityError as e:
        db.rollback()
        logger.error(f"[platoons] IntegrityError: {e}")
        raise HTTPException(status_code=409, detail="Platoon name already exists")
    db.refresh(platoon)
    logger.info(f"[platoons] Created platoon {platoon.id}")
    return platoon


@router.patch("/{platoon_id}", response_model=PlatoonOut)
def update_platoon(platoon_id: str, payload: PlatoonIn, db: Session = Depends(get_db)):
    platoon = db.get(Platoon, platoon_id)
    if not platoon:
        raise HTTPException(status_code=404, detail="Platoon not found")
    name = payload.name.strip()
    if not name:
        raise HTTPException(status_code=400, detail="Name required")
    platoon.name = name
    try:
        db.commit()
    except IntegrityError:
        db.rollback()
        raise HTTPException(status_code=409, detail="Platoon name already exists")
    db.refresh(platoon)
    return platoon


@router.delete("/{platoon_id}", status_code=204)
def delete_platoon(platoon_id: str, db: Session = Depends(get_db)):
    used = db.execute(
        select(func.count()).select_from(Soldier).where(Soldier.platoon_id == platoon_id)
    ).scalar_one()
    if used:
        raise HTTPException(status_code=400, detail="Platoon is used by soldiers")
    platoon = db.get(Platoon, platoon_id)
    if not platoon:
        raise HTTPException(status_code=404, detail="Platoon not found")
    db.delete(platoon)
    db.commit()
    return None
