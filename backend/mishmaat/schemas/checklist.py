# backend/mishmaat/schemas/checklist.py
from __future__ import annotations
from datetime import datetime
from typing import List, Optional
from pydantic import BaseModel, Field
from pydantic.config import ConfigDict

from .soldier import SoldierOut


class ChecklistCreate(BaseModel):
    title: str = Field(..., min_length=1, max_length=200)
    platoon_id: Optional[str] = None


class ChecklistOut(BaseModel):
    id: str
    title: str
    platoon_id: Optional[str] = None
    created_by: Optional[str] = None
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)


class CompletionCreate(BaseModel):
    soldier_id: str


class CompletionOut(BaseModel):
    id: str
    checklist_id: str
    soldier_id: str
    completed_at: datetime

    model_config = ConfigDict(from_attributes=True)


class CoverageOut(BaseModel):
    checklist_id: str
    completed: List[SoldierOut]
    missing: List[SoldierOut]
    percentage: int
