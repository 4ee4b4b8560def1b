# backend/mishmaat/routers/checklists.py
from __future__ import annotations

import logging
from typing import List, Literal, Optional

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from mishmaat.db import get_db
from mishmaat.models.checklist import Checklist, ChecklistCompletion
from mishmaat.models.platoon import Platoon
from mishmaat.models.soldier import Soldier
from mishmaat.schemas.checklist import (
    ChecklistCreate,
    ChecklistOut,
    CompletionCreate,
    CompletionOut,
    CoverageOut,
)
from mishmaat.schemas.soldier import SoldierOut
from mishmaat.sync import views

router = APIRouter(prefix="/checklists", tags=["checklists"])
logger = logging.getLogger(__name__)


def _get_or_404(db: Session, checklist_id: str) -> Checklist:
    checklist = db.get(Checklist, checklist_id)
    if not checklist:
        raise HTTPException(status_code=404, detail="Checklist not found")
    return checklist


@router.get("", response_model=List[ChecklistOut])
def list_checklists(db: Session = Depends(get_db)):
    """List all checklists, newest first."""
    return db.execute(select(Checklist).order_by(Checklist.created_at.desc())).scalars().all()


@router.post("", response_model=ChecklistOut, status_code=201)
def create_checklist(payload: ChecklistCreate, db: Session = Depends(get_db)):
    title = payload.title.strip()
    if not title:
        raise HTTPException(status_code=400, detail="Title required")
    if payload.platoon_id is not None and db.get(Platoon, payload.platoon_id) is None:
        raise HTTPException(status_code=400, detail="platoon_id does not exist")
    checklist = Checklist(title=title, platoon_id=payload.platoon_id)
    db.add(checklist)
    db.commit()
    db.refresh(checklist)
    return checklist


@router.delete("/{checklist_id}", status_code=204)
def delete_checklist(checklist_id: str, db: Session = Depends(get_db)):
    """Delete a checklist together with its completions."""
    checklist = _get_or_404(db, checklist_id)
    for completion in db.execute(
        select(ChecklistCompletion).where(ChecklistCompletion.checklist_id == checklist_id)
    ).scalars():
        db.delete(completion)
    db.delete(checklist)
    db.commit()
    logger.info(f"[checklists] deleted {checklist_id}")
    return None


@router.get("/{checklist_id}/completions", response_model=List[CompletionOut])
def list_completions(checklist_id: str, db: Session = Depends(get_db)):
    _get_or_404(db, checklist_id)
    return (
        db.execute(
            select(ChecklistCompletion)
            .where(ChecklistCompletion.checklist_id == checklist_id)
            .order_by(ChecklistCompletion.completed_at)
        )
        .scalars()
        .all()
    )


@router.post("/{checklist_id}/completions", response_model=CompletionOut, status_code=201)
def complete(checklist_id: str, payload: CompletionCreate, db: Session = Depends(get_db)):
    """Mark a soldier as done for this checklist."""
    _get_or_404(db, checklist_id)
    if db.get(Soldier, payload.soldier_id) is None:
        raise HTTPException(status_code=400, detail="soldier_id does not exist")

    completion = ChecklistCompletion(checklist_id=checklist_id, soldier_id=payload.soldier_id)
    db.add(completion)
    try:
        db.commit()
    except IntegrityError:
        db.rollback()
        raise HTTPException(status_code=409, detail="Soldier already completed this checklist")
    db.refresh(completion)
    return completion


@router.delete("/{checklist_id}/completions/{soldier_id}", status_code=204)
def uncomplete(checklist_id: str, soldier_id: str, db: Session = Depends(get_db)):
    completion = db.execute(
        select(ChecklistCompletion).where(
            ChecklistCompletion.checklist_id == checklist_id,
            ChecklistCompletion.soldier_id == soldier_id,
        )
    ).scalar_one_or_none()
    if completion is None:
        raise HTTPException(status_code=404, detail="Completion not found")
    db.delete(completion)
    db.commit()
    return None


@router.get("/{checklist_id}/coverage", response_model=CoverageOut)
def coverage(
    checklist_id: str,
    status: Optional[Literal["Base", "Home"]] = Query(None),
    db: Session = Depends(get_db),
):
    """
    Completed vs. missing soldiers for a checklist.
    ?status=Base restricts the population to soldiers on base (attendance).
    """
    _get_or_404(db, checklist_id)
    q = select(Soldier).order_by(Soldier.full_name, Soldier.id)
    if status is not None:
        q = q.where(Soldier.status == status)
    soldiers = db.execute(q).scalars().all()
    completions = db.execute(
        select(ChecklistCompletion).where(ChecklistCompletion.checklist_id == checklist_id)
    ).scalars().all()

    completed, missing = views.checklist_coverage(soldiers, completions, checklist_id)
    return CoverageOut(
        checklist_id=checklist_id,
        completed=[SoldierOut.model_validate(s) for s in completed],
        missing=[SoldierOut.model_validate(s) for s in missing],
        percentage=views.completion_percentage(len(completed), len(soldiers)),
    )
