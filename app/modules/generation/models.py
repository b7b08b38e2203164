"""Pydantic models for AI generation output.

The ``Raw*`` models are what the provider is asked to return. They stay
loose on purpose (plain strings, no length constraints) so a slightly off
answer still parses and can be repaired by ``shaping``; the other models are
the validated shapes handed to API handlers and persistence.
"""

from __future__ import annotations

from enum import Enum
from typing import Optional, Union

from pydantic import BaseModel, Field, model_validator


class QuestionType(str, Enum):
    MCQ = "mcq"
    TRUE_FALSE = "true_false"


class SummaryLength(str, Enum):
    SHORT = "short"
    MEDIUM = "medium"
    LONG = "long"


class TutorMode(str, Enum):
    EXPLAIN = "explain"
    PRACTICE = "practice"
    QUIZ = "quiz"


class RawQuizQuestion(BaseModel):
    question: str = ""
    options: list[str] = Field(default_factory=list)
    correct_answer: Union[bool, str, int, None] = None
    explanation: Optional[str] = None


class RawQuizQuestionSet(BaseModel):
    """Structured output for quiz generation."""

    questions: list[RawQuizQuestion] = Field(default_factory=list)


class FlashcardDraft(BaseModel):
    """Simple question/answer flashcard."""

    question: str = ""
    answer: str = ""


class FlashcardDraftSet(BaseModel):
    flashcards: list[FlashcardDraft] = Field(default_factory=list)


class RawStudyMaterials(BaseModel):
    summary: str = ""
    flashcards: list[FlashcardDraft] = Field(default_factory=list)
    quiz_questions: list[RawQuizQuestion] = Field(default_factory=list)


class QuizQuestion(BaseModel):
    """A validated multiple-choice question."""

    question: str
    options: list[str] = Field(min_length=2)
    correct_answer: str
    correct_index: int
    explanation: Optional[str] = None
    type: QuestionType = QuestionType.MCQ
    order: int = 0

    @model_validator(mode="after")
    def _correct_answer_is_an_option(self) -> "QuizQuestion":
        if not 0 <= self.correct_index < len(self.options):
            raise ValueError("correct_index out of range")
        if self.options[self.correct_index] != self.correct_answer:
            raise ValueError("correct_answer must match options[correct_index]")
        return self


class StudyMaterials(BaseModel):
    summary: str
    flashcards: list[FlashcardDraft] = Field(default_factory=list)
    quiz_questions: list[QuizQuestion] = Field(default_factory=list)
