from __future__ import annotations

from datetime import datetime
from typing import Literal, Optional

from pydantic import BaseModel, Field, StrictInt

from app.modules.generation.models import QuestionType


Difficulty = Literal["easy", "medium", "hard"]


class RefineRequest(BaseModel):
    content: Optional[str] = Field(None, description="Exam text to refine")
    model: Optional[str] = Field("auto", description="Model selector")


class RefineResponse(BaseModel):
    result: str


class ExamCreate(BaseModel):
    title: str = Field(..., min_length=1, max_length=200)
    difficulty: Difficulty = "medium"


class ExamGenerateRequest(BaseModel):
    exam_id: int
    content: Optional[str] = None
    count: Optional[StrictInt] = Field(None, description="Total questions (default 10)")
    type: Optional[QuestionType] = None
    types: list[QuestionType] = Field(default_factory=list)
    model: Optional[str] = "auto"


class ExamScoreUpdate(BaseModel):
    score: float = Field(..., ge=0)


class ExamQuestionRead(BaseModel):
    id: int
    question: str
    options: list[str]
    correct_answer: str
    explanation: Optional[str] = None
    type: str
    order_index: int

    model_config = {"from_attributes": True}


class ExamRead(BaseModel):
    id: int
    title: str
    difficulty: str
    status: str
    score: Optional[float] = None
    created_at: Optional[datetime] = None
    questions: list[ExamQuestionRead] = Field(default_factory=list)
