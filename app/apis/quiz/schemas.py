from __future__ import annotations

from typing import Optional

from pydantic import BaseModel, Field, StrictInt

from app.modules.generation.models import QuizQuestion


class GenerateQuizRequest(BaseModel):
    content: Optional[str] = Field(None, description="Study material to quiz on")
    count: Optional[StrictInt] = Field(None, description="Number of questions (default 5)")
    model: Optional[str] = Field("auto", description="Model selector: auto, fast, best or a model id")


class GenerateQuizResponse(BaseModel):
    questions: list[QuizQuestion]
