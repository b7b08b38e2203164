from __future__ import annotations

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field, StrictBool, StrictInt

from app.modules.generation.models import FlashcardDraft


class GenerateFlashcardsRequest(BaseModel):
    content: Optional[str] = Field(None, description="Study material for the cards")
    count: Optional[StrictInt] = Field(None, description="Number of cards (default 10)")
    model: Optional[str] = Field("auto", description="Model selector")


class GenerateFlashcardsResponse(BaseModel):
    flashcards: list[FlashcardDraft]


class ReviewRequest(BaseModel):
    reviewed: StrictBool


class FlashcardRead(BaseModel):
    id: int
    study_kit_id: int
    question: str
    answer: str
    order_index: int
    reviewed: bool
    created_at: Optional[datetime] = None

    model_config = {"from_attributes": True}
