# backend/mishmaat/schemas/chat.py
from typing import List, Literal
from pydantic import BaseModel, Field


class ChatMessage(BaseModel):
    role: Literal["user", "assistant"]
    content: str


class ChatRequest(BaseModel):
    messages: List[ChatMessage] = Field(..., min_length=1)


class ChatReply(BaseModel):
    message: str


class ShareOut(BaseModel):
    text: str
    url: str
