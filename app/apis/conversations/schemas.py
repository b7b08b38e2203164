from __future__ import annotations

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field

from app.modules.generation.models import TutorMode


class ConversationCreate(BaseModel):
    title: Optional[str] = Field(None, max_length=200)
    subject: Optional[str] = Field(None, max_length=100)
    mode: TutorMode = TutorMode.EXPLAIN


class ConversationUpdate(BaseModel):
    title: Optional[str] = Field(None, max_length=200)
    subject: Optional[str] = Field(None, max_length=100)
    mode: Optional[TutorMode] = None


class MessageCreate(BaseModel):
    message: Optional[str] = None
    model: Optional[str] = "auto"


class MessageRead(BaseModel):
    id: int
    role: str
    content: str
    created_at: Optional[datetime] = None

    model_config = {"from_attributes": True}


class ConversationSummary(BaseModel):
    id: int
    title: str
    subject: Optional[str] = None
    mode: TutorMode
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    model_config = {"from_attributes": True}


class ConversationRead(ConversationSummary):
    messages: list[MessageRead] = Field(default_factory=list)


class ExchangeRead(BaseModel):
    conversation_id: int
    title: str
    message: MessageRead
    reply: MessageRead
