"""
Outbound share action: plain-text summaries handed to a messaging app via deep link.

Fire-and-forget; the server only builds the link.
"""
from __future__ import annotations

from datetime import datetime
from typing import Optional, Sequence
from urllib.parse import quote

from mishmaat.sync import views

SHARE_BASE_URL = "https://wa.me/"


def share_url(text: str) -> str:
    return f"{SHARE_BASE_URL}?text={quote(text, safe='')}"


def roster_text(soldiers: Sequence, now: datetime, unit_name: str = "Platoon") -> str:
    base, home = views.partition_by_status(soldiers)
    lines = [f"{now:%A} ({now:%d.%m.%y})", unit_name, ""]
    lines.append(f"On base ({len(base)}):")
    lines += [f"• {s.full_name}" for s in base]
    lines.append("")
    lines.append(f"At home ({len(home)}):")
    lines += [f"• {s.full_name}" for s in home]
    return "\n".join(lines) + "\n"


def event_text(event, soldier_name: Optional[str] = None) -> str:
    lines = [
        event.title or "Event",
        f"Category: {event.category}",
        f"Date: {event.created_at:%d.%m.%y %H:%M}",
    ]
    if soldier_name:
        lines.append(f"Soldier: {soldier_name}")
    if event.description:
        lines += ["", "Description:", event.description]
    if event.ended_at:
        lines += ["", f"Ended: {event.ended_at:%d.%m.%y %H:%M}"]
    return "\n".join(lines)
