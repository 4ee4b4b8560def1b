# backend/mishmaat/schemas/event.py
from __future__ import annotations
from datetime import datetime
from typing import Literal, Optional
from pydantic import BaseModel, Field, field_validator
from pydantic.config import ConfigDict

EventCategory = Literal["HR/Logistics", "Medical", "Leaves", "Personal"]
EventSource = Literal["commander", "soldier"]


class EventCreate(BaseModel):
    title: str = Field(..., min_length=1)
    soldier_id: Optional[str] = None
    description: str = ""
    category: EventCategory

    @field_validator("title")
    @classmethod
    def _title_not_blank(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("title is required")
        return v.strip()


class SoldierRequestCreate(BaseModel):
    """A request a soldier files about themself; soldier_id comes from the link."""
    title: str = Field(..., min_length=1)
    category: EventCategory
    description: str = ""

    @field_validator("title")
    @classmethod
    def _title_not_blank(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("title is required")
        return v.strip()


class EventOut(BaseModel):
    id: str
    title: Optional[str] = None
    soldier_id: Optional[str] = None
    creator_id: Optional[str] = None
    description: str = ""
    category: EventCategory
    source: EventSource
    ended_at: Optional[datetime] = None
    created_at: datetime
    soldier_name: Optional[str] = None

    model_config = ConfigDict(from_attributes=True)

    @property
    def is_active(self) -> bool:
        return self.ended_at is None


class RequestCount(BaseModel):
    count: int
