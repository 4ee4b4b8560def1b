# backend/mishmaat/schemas/__init__.py

from .platoon import PlatoonIn, PlatoonOut
from .soldier import (
    SoldierCreate,
    SoldierUpdate,
    SoldierProfileUpdate,
    SoldierOut,
    MoveAllRequest,
    StatusSummary,
)
from .event import EventCreate, SoldierRequestCreate, EventOut, RequestCount
from .checklist import (
    ChecklistCreate,
    ChecklistOut,
    CompletionCreate,
    CompletionOut,
    CoverageOut,
)
from .news import NewsCreate, NewsUpdate, NewsOut
from .chat import ChatMessage, ChatRequest, ChatReply, ShareOut

# Row model per table; the sync layer decodes every remote row through these
ROW_MODELS = {
    "platoons": PlatoonOut,
    "soldiers": SoldierOut,
    "events": EventOut,
    "checklists": ChecklistOut,
    "checklist_completions": CompletionOut,
    "news": NewsOut,
}

__all__ = [
    "PlatoonIn", "PlatoonOut",
    "SoldierCreate", "SoldierUpdate", "SoldierProfileUpdate", "SoldierOut",
    "MoveAllRequest", "StatusSummary",
    "EventCreate", "SoldierRequestCreate", "EventOut", "RequestCount",
    "ChecklistCreate", "ChecklistOut", "CompletionCreate", "CompletionOut", "CoverageOut",
    "NewsCreate", "NewsUpdate", "NewsOut",
    "ChatMessage", "ChatRequest", "ChatReply", "ShareOut",
    "ROW_MODELS",
]
