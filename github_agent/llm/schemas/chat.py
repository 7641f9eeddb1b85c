"""Pydantic schemas for chat messages and the chat endpoint."""

from __future__ import annotations

from typing import Any, Literal

from pydantic import BaseModel, Field


RoleLiteral = Literal["system", "user", "assistant"]


class ChatMessage(BaseModel):
    role: RoleLiteral
    content: str


class ChatRequest(BaseModel):
    user_id: str = Field(..., min_length=1, description="Chat user identifier")
    message: str = Field(..., description="Raw message text")


class ChatReply(BaseModel):
    type: Literal["text", "card"]
    text: str | None = None
    card: dict[str, Any] | None = None


class ChatResponse(BaseModel):
    handled: bool
    replies: list[ChatReply] = Field(default_factory=list)
