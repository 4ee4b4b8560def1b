# backend/mishmaat/models/soldier.py
from datetime import datetime, timezone
from uuid import uuid4
from sqlalchemy import String, Text, DateTime, ForeignKey, CheckConstraint
from sqlalchemy.orm import Mapped, mapped_column, relationship
from mishmaat.db import Base

SOLDIER_STATUSES = ("Base", "Home")

class Soldier(Base):
    __tablename__ = "soldiers"

    # The id is also the soldier's self-service link token, so never sequential
    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=lambda: str(uuid4()))
    full_name: Mapped[str] = mapped_column(String(128), nullable=False, index=True)
    role_in_unit: Mapped[str | None] = mapped_column(String(128), nullable=True)
    weapon_serial: Mapped[str | None] = mapped_column(String(64), nullable=True)
    civilian_job: Mapped[str | None] = mapped_column(String(128), nullable=True)
    notes: Mapped[str | None] = mapped_column(Text, nullable=True)
    status: Mapped[str] = mapped_column(String(8), default="Base", nullable=False)

    platoon_id: Mapped[str | None] = mapped_column(ForeignKey("platoons.id"), nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=lambda: datetime.now(timezone.utc))

    platoon = relationship("Platoon")

    __table_args__ = (
        CheckConstraint("status IN ('Base', 'Home')", name="chk_soldier_status"),
    )
