from __future__ import annotations

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field

from app.apis.flashcards.schemas import FlashcardRead


class StudyKitCreate(BaseModel):
    content: Optional[str] = Field(None, description="Source material for the kit")
    title: Optional[str] = Field(None, max_length=200)
    model: Optional[str] = "auto"


class QuizQuestionRead(BaseModel):
    id: int
    question: str
    options: list[str]
    correct_answer: str
    explanation: Optional[str] = None
    order_index: int

    model_config = {"from_attributes": True}


class QuizRead(BaseModel):
    id: int
    title: str
    questions: list[QuizQuestionRead] = Field(default_factory=list)

    model_config = {"from_attributes": True}


class StudyKitSummary(BaseModel):
    id: int
    title: str
    status: str
    created_at: Optional[datetime] = None


class StudyKitRead(StudyKitSummary):
    summary: Optional[str] = None
    flashcards: list[FlashcardRead] = Field(default_factory=list)
    quizzes: list[QuizRead] = Field(default_factory=list)
