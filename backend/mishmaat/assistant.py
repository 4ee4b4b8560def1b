"""
AI assistant for commanders.

The server summarises unit state from the database before each call and sends
it, with the last few turns of the conversation, to an OpenAI-compatible
chat-completions endpoint. The provider is an opaque text-in/text-out
collaborator; only the history truncation is part of the contract.
"""
from __future__ import annotations

import logging
import os
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Sequence

import httpx
from sqlalchemy import select
from sqlalchemy.orm import Session, selectinload

from mishmaat.models.checklist import Checklist
from mishmaat.models.event import Event
from mishmaat.models.news import News
from mishmaat.models.soldier import Soldier
from mishmaat.sync import views

logger = logging.getLogger(__name__)

ASSISTANT_API_URL = os.getenv("ASSISTANT_API_URL", "https://api.openai.com/v1")
ASSISTANT_API_KEY = os.getenv("ASSISTANT_API_KEY") or os.getenv("OPENAI_API_KEY")
ASSISTANT_MODEL = os.getenv("ASSISTANT_MODEL", "gpt-4o-mini")
ASSISTANT_HISTORY_TURNS = int(os.getenv("ASSISTANT_HISTORY_TURNS", "10"))

FALLBACK_REPLY = "I could not come up with an answer, please try again."

EVENTS_IN_CONTEXT = 50
CHECKLISTS_IN_CONTEXT = 20
NEWS_IN_CONTEXT = 10


class AssistantError(Exception):
    pass


@dataclass
class UnitContext:
    total: int = 0
    base: List[str] = field(default_factory=list)
    home: List[str] = field(default_factory=list)
    active_events: List[str] = field(default_factory=list)
    pending_requests: int = 0
    news: List[str] = field(default_factory=list)
    checklists: List[str] = field(default_factory=list)

    def render(self) -> str:
        def block(title: str, lines: Sequence[str]) -> str:
            body = "\n".join(f"- {line}" for line in lines) or "- none"
            return f"{title}:\n{body}"

        return "\n\n".join([
            f"Soldiers: {self.total} (base {len(self.base)}, home {len(self.home)}); "
            f"open events: {len(self.active_events)}; pending soldier requests: {self.pending_requests}",
            block("On base", self.base),
            block("At home", self.home),
            block("Open events", self.active_events),
            block("Latest news", self.news),
            block("Recent checklists", self.checklists),
        ])


def _soldier_line(s: Soldier) -> str:
    line = s.full_name
    if s.role_in_unit:
        line += f" ({s.role_in_unit})"
    if s.notes:
        line += f" [note: {s.notes}]"
    return line


def _event_line(e: Event) -> str:
    line = f"[{e.category}] {e.title or e.description}"
    if e.soldier_name:
        line += f" ({e.soldier_name})"
    if e.source == "soldier":
        line += " - soldier request"
    return f"{line} - {e.created_at:%d.%m.%Y}"


def build_context(db: Session) -> UnitContext:
    soldiers = db.execute(select(Soldier).order_by(Soldier.full_name)).scalars().all()
    events = db.execute(
        select(Event)
        .options(selectinload(Event.soldier))
        .order_by(Event.created_at.desc())
        .limit(EVENTS_IN_CONTEXT)
    ).scalars().all()
    checklists = db.execute(
        select(Checklist).order_by(Checklist.created_at.desc()).limit(CHECKLISTS_IN_CONTEXT)
    ).scalars().all()
    news = db.execute(select(News).order_by(News.created_at.desc()).limit(NEWS_IN_CONTEXT)).scalars().all()

    base, home = views.partition_by_status(soldiers)
    active, _ = views.partition_events(events)
    return UnitContext(
        total=len(soldiers),
        base=[_soldier_line(s) for s in base],
        home=[_soldier_line(s) for s in home],
        active_events=[_event_line(e) for e in active],
        pending_requests=views.pending_request_count(events),
        news=[f"{n.title}: {n.content}" for n in news],
        checklists=[f"{c.title} ({c.created_at:%d.%m.%Y})" for c in checklists],
    )


def truncate_history(messages: Sequence[Dict[str, Any]], turns: int = ASSISTANT_HISTORY_TURNS) -> List[Dict[str, Any]]:
    """Keep only the last ``turns`` messages."""
    if turns <= 0:
        return []
    return list(messages[-turns:])


class AssistantClient:
    def __init__(
        self,
        api_key: str,
        api_url: str = ASSISTANT_API_URL,
        model: str = ASSISTANT_MODEL,
        history_turns: int = ASSISTANT_HISTORY_TURNS,
        timeout: float = 60.0,
        transport: Optional[httpx.BaseTransport] = None,
    ):
        self.api_key = api_key
        self.api_url = api_url.rstrip("/")
        self.model = model
        self.history_turns = history_turns
        self.timeout = timeout
        self.transport = transport

    def reply(self, context: UnitContext, history: Sequence[Dict[str, Any]]) -> str:
        messages = [{"role": "system", "content": context.render()}]
        messages += truncate_history(history, self.history_turns)
        payload = {
            "model": self.model,
            "messages": messages,
            "max_tokens": 1000,
            "temperature": 0.7,
        }
        try:
            with httpx.Client(timeout=self.timeout, transport=self.transport) as client:
                resp = client.post(
                    f"{self.api_url}/chat/completions",
                    json=payload,
                    headers={"Authorization": f"Bearer {self.api_key}"},
                )
                resp.raise_for_status()
                data = resp.json()
        except (httpx.HTTPError, ValueError) as exc:
            logger.error(f"[assistant] provider call failed: {exc}")
            raise AssistantError("assistant provider failed") from exc

        choices = data.get("choices") or []
        content = ((choices[0] or {}).get("message") or {}).get("content") if choices else None
        return content.strip() if content and content.strip() else FALLBACK_REPLY
