from __future__ import annotations

from datetime import datetime
from typing import TYPE_CHECKING, Optional
from sqlalchemy import (
    Boolean,
    DateTime,
    ForeignKey,
    Integer,
    String,
    Text,
    func,
    JSON,
    Enum,
    UniqueConstraint,
    text as sa_text,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship
import enum

from app.core.db.base import Base

if TYPE_CHECKING:
    from .auth import User


class GenerationStatus(enum.Enum):
    PROCESSING = "processing"
    READY = "ready"
    FAILED = "failed"


class StudyKit(Base):
    __tablename__ = "study_kits"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, index=True)
    user_id: Mapped[int] = mapped_column(
        ForeignKey("users.id"), nullable=False, index=True
    )
    title: Mapped[str] = mapped_column(String, nullable=False)
    source_text: Mapped[str] = mapped_column(Text, nullable=False)
    summary: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    status: Mapped[GenerationStatus] = mapped_column(
        Enum(GenerationStatus), default=GenerationStatus.PROCESSING, nullable=False
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime,
        nullable=False,
        server_default=func.now(),
        index=True,
    )

    user: Mapped["User"] = relationship("User", back_populates="study_kits")
    flashcards: Mapped[list["Flashcard"]] = relationship(
        "Flashcard",
        back_populates="study_kit",
        cascade="all, delete-orphan",
        order_by="Flashcard.order_index",
    )
    quizzes: Mapped[list["Quiz"]] = relationship(
        "Quiz", back_populates="study_kit", cascade="all, delete-orphan"
    )

    @classmethod
    def owner_clause(cls, user_id: int):
        return cls.user_id == user_id


class Flashcard(Base):
    __tablename__ = "flashcards"
    __table_args__ = (
        UniqueConstraint(
            "study_kit_id",
            "order_index",
            name="uq_flashcard_kit_order",
        ),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, index=True)
    study_kit_id: Mapped[int] = mapped_column(
        ForeignKey("study_kits.id"), nullable=False, index=True
    )
    question: Mapped[str] = mapped_column(Text, nullable=False)
    answer: Mapped[str] = mapped_column(Text, nullable=False)
    order_index: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    reviewed: Mapped[bool] = mapped_column(
        Boolean, nullable=False, default=False, server_default=sa_text("false")
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime,
        nullable=False,
        server_default=func.now(),
        index=True,
    )

    study_kit: Mapped["StudyKit"] = relationship(
        "StudyKit", back_populates="flashcards"
    )

    @classmethod
    def owner_clause(cls, user_id: int):
        # No owner column here; ownership is the parent kit's
        return cls.study_kit.has(StudyKit.owner_clause(user_id))


class Quiz(Base):
    __tablename__ = "quizzes"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, index=True)
    study_kit_id: Mapped[int] = mapped_column(
        ForeignKey("study_kits.id"), nullable=False, index=True
    )
    title: Mapped[str] = mapped_column(String, nullable=False)
    created_at: Mapped[datetime] = mapped_column(
        DateTime,
        nullable=False,
        server_default=func.now(),
        index=True,
    )

    study_kit: Mapped["StudyKit"] = relationship("StudyKit", back_populates="quizzes")
    questions: Mapped[list["QuizQuestion"]] = relationship(
        "QuizQuestion",
        back_populates="quiz",
        cascade="all, delete-orphan",
        order_by="QuizQuestion.order_index",
    )

    @classmethod
    def owner_clause(cls, user_id: int):
        return cls.study_kit.has(StudyKit.owner_clause(user_id))


class QuizQuestion(Base):
    __tablename__ = "quiz_questions"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, index=True)
    quiz_id: Mapped[int] = mapped_column(
        ForeignKey("quizzes.id"), nullable=False, index=True
    )
    question: Mapped[str] = mapped_column(Text, nullable=False)
    options: Mapped[list[str]] = mapped_column(JSON, nullable=False, default=list)
    correct_answer: Mapped[str] = mapped_column(Text, nullable=False)
    explanation: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    order_index: Mapped[int] = mapped_column(Integer, nullable=False, default=0)

    quiz: Mapped["Quiz"] = relationship("Quiz", back_populates="questions")

    @classmethod
    def owner_clause(cls, user_id: int):
        return cls.quiz.has(Quiz.owner_clause(user_id))


__all__ = [
    "GenerationStatus",
    "StudyKit",
    "Flashcard",
    "Quiz",
    "QuizQuestion",
]
