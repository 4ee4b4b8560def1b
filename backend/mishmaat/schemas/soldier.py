# backend/mishmaat/schemas/soldier.py
from __future__ import annotations
from datetime import datetime
from typing import Literal, Optional
from pydantic import BaseModel, Field, field_validator
from pydantic.config import ConfigDict

SoldierStatus = Literal["Base", "Home"]


def _blank_to_none(value: Optional[str]) -> Optional[str]:
    if value is None:
        return None
    value = value.strip()
    return value or None


class SoldierCreate(BaseModel):
    full_name: str = Field(..., min_length=2)
    role_in_unit: Optional[str] = None
    weapon_serial: Optional[str] = None
    civilian_job: Optional[str] = None
    notes: Optional[str] = None
    status: SoldierStatus = "Base"
    platoon_id: Optional[str] = None

    @field_validator("full_name")
    @classmethod
    def _strip_name(cls, v: str) -> str:
        v = v.strip()
        if len(v) < 2:
            raise ValueError("full_name must have at least 2 characters")
        return v

    @field_validator("role_in_unit", "weapon_serial", "civilian_job", "notes")
    @classmethod
    def _optional_text(cls, v):
        return _blank_to_none(v)


class SoldierUpdate(BaseModel):
    full_name: Optional[str] = Field(None, min_length=2)
    role_in_unit: Optional[str] = None
    weapon_serial: Optional[str] = None
    civilian_job: Optional[str] = None
    notes: Optional[str] = None
    status: Optional[SoldierStatus] = None
    platoon_id: Optional[str] = None


class SoldierProfileUpdate(BaseModel):
    """Fields a soldier may edit through the self-service link (no status)."""
    full_name: str
    role_in_unit: Optional[str] = None
    weapon_serial: Optional[str] = None
    civilian_job: Optional[str] = None
    notes: Optional[str] = None

    @field_validator("full_name")
    @classmethod
    def _required(cls, v: str) -> str:
        v = (v or "").strip()
        if not v:
            raise ValueError("full_name is required")
        return v

    @field_validator("role_in_unit", "weapon_serial", "civilian_job", "notes")
    @classmethod
    def _optional_text(cls, v):
        return _blank_to_none(v)


class MoveAllRequest(BaseModel):
    status: SoldierStatus


class SoldierOut(BaseModel):
    id: str
    full_name: str
    role_in_unit: Optional[str] = None
    weapon_serial: Optional[str] = None
    civilian_job: Optional[str] = None
    notes: Optional[str] = None
    status: SoldierStatus
    platoon_id: Optional[str] = None
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)


class StatusSummary(BaseModel):
    total: int
    base: int
    home: int
    base_percentage: int
