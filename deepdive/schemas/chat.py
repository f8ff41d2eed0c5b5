"""Chat transcript schemas."""

from __future__ import annotations

from typing import List, Literal

from pydantic import BaseModel, Field

ChatRole = Literal["user", "model"]


class ChatMessage(BaseModel):
    role: ChatRole
    text: str = ""


class ChatHistoryUpdate(BaseModel):
    """Body of ``POST /chat/{file_id}``."""

    messages: List[ChatMessage] = Field(default_factory=list)


__all__ = ["ChatHistoryUpdate", "ChatMessage", "ChatRole"]
