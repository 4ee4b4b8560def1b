# backend/mishmaat/schemas/platoon.py
from datetime import datetime
from pydantic import BaseModel
from pydantic.config import ConfigDict


class PlatoonIn(BaseModel):
    name: str


class PlatoonOut(BaseModel):
    id: str
    name: str
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)
