# backend/mishmaat/models/checklist.py
from datetime import datetime, timezone
from uuid import uuid4
from sqlalchemy import String, DateTime, ForeignKey, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column
from mishmaat.db import Base

class Checklist(Base):
    __tablename__ = "checklists"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=lambda: str(uuid4()))
    title: Mapped[str] = mapped_column(String(200), nullable=False)
    platoon_id: Mapped[str | None] = mapped_column(ForeignKey("platoons.id"), nullable=True)
    created_by: Mapped[str | None] = mapped_column(String(36), nullable=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=lambda: datetime.now(timezone.utc), nullable=False
    )


class ChecklistCompletion(Base):
    __tablename__ = "checklist_completions"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=lambda: str(uuid4()))
    checklist_id: Mapped[str] = mapped_column(ForeignKey("checklists.id", ondelete="CASCADE"), nullable=False)
    soldier_id: Mapped[str] = mapped_column(ForeignKey("soldiers.id", ondelete="CASCADE"), nullable=False)
    completed_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=lambda: datetime.now(timezone.utc), nullable=False
    )

    # a soldier is either completed or missing for a checklist, never twice
    __table_args__ = (UniqueConstraint("checklist_id", "soldier_id", name="uq_checklist_completion"),)
