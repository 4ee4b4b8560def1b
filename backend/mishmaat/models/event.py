# backend/mishmaat/models/event.py
from datetime import datetime, timezone
from uuid import uuid4
from sqlalchemy import String, Text, DateTime, ForeignKey, Index
from sqlalchemy.orm import Mapped, mapped_column, relationship
from mishmaat.db import Base

EVENT_CATEGORIES = ("HR/Logistics", "Medical", "Leaves", "Personal")
EVENT_SOURCES = ("commander", "soldier")

class Event(Base):
    __tablename__ = "events"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=lambda: str(uuid4()))
    title: Mapped[str | None] = mapped_column(String(200), nullable=True)
    soldier_id: Mapped[str | None] = mapped_column(ForeignKey("soldiers.id"), nullable=True)
    creator_id: Mapped[str | None] = mapped_column(String(36), nullable=True)
    description: Mapped[str] = mapped_column(Text, default="", nullable=False)
    category: Mapped[str] = mapped_column(String(32), nullable=False)
    source: Mapped[str] = mapped_column(String(16), default="commander", nullable=False)

    # Active while NULL; once set it is never cleared
    ended_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=lambda: datetime.now(timezone.utc), nullable=False
    )

    soldier = relationship("Soldier")

    @property
    def soldier_name(self) -> str | None:
        return self.soldier.full_name if self.soldier else None

Index("ix_events_source_open", Event.source, Event.ended_at)
