# backend/mishmaat/routers/chat.py
import logging

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session

from mishmaat import assistant
from mishmaat.db import get_db
from mishmaat.schemas.chat import ChatReply, ChatRequest

router = APIRouter(prefix="/chat", tags=["assistant"])
logger = logging.getLogger(__name__)


def get_assistant() -> assistant.AssistantClient:
    if not assistant.ASSISTANT_API_KEY:
        raise HTTPException(status_code=503, detail="Assistant is not configured")
    return assistant.AssistantClient(api_key=assistant.ASSISTANT_API_KEY)


@router.post("", response_model=ChatReply)
def chat(
    payload: ChatRequest,
    db: Session = Depends(get_db),
    client: assistant.AssistantClient = Depends(get_assistant),
):
    """Answer a commander's question with the current unit state as context."""
    context = assistant.build_context(db)
    history = [m.model_dump() for m in payload.messages]
    try:
        text = client.reply(context, history)
    except assistant.AssistantError:
        raise HTTPException(status_code=502, detail="Assistant provider failed")
    logger.info(f"[assistant] answered with {len(text)} chars ({len(history)} message(s) in request)")
    return ChatReply(message=text)
