# backend/mishmaat/models/__init__.py
# IMPORTANT: Use Base from mishmaat.db since all models import from there
from mishmaat.db import Base

# import all model modules so tables get registered on Base.metadata
from .platoon import Platoon
from .soldier import Soldier
from .event import Event
from .checklist import Checklist, ChecklistCompletion
from .news import News

# Table name -> mapped class, used by the change stream and the remote store
TABLES = {
    model.__tablename__: model
    for model in (Platoon, Soldier, Event, Checklist, ChecklistCompletion, News)
}


__all__ = [
    "Base",
    "Platoon",
    "Soldier",
    "Event",
    "Checklist",
    "ChecklistCompletion",
    "News",
    "TABLES",
]
