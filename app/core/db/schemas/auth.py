from __future__ import annotations

from typing import TYPE_CHECKING
from sqlalchemy import Integer
from sqlalchemy.orm import Mapped, mapped_column, relationship

from fastapi_users_db_sqlalchemy import SQLAlchemyBaseUserTable

from app.core.db.base import Base

if TYPE_CHECKING:
    from .conversations import Conversation
    from .exams import Exam
    from .study_kits import StudyKit
    from .summaries import Summary


class User(SQLAlchemyBaseUserTable[int], Base):
    __tablename__ = "users"
    id: Mapped[int] = mapped_column(Integer, primary_key=True, index=True)

    # Relationships
    study_kits: Mapped[list["StudyKit"]] = relationship(
        "StudyKit", back_populates="user", cascade="all, delete-orphan"
    )
    exams: Mapped[list["Exam"]] = relationship(
        "Exam", back_populates="user", cascade="all, delete-orphan"
    )
    summaries: Mapped[list["Summary"]] = relationship(
        "Summary", back_populates="user", cascade="all, delete-orphan"
    )
    conversations: Mapped[list["Conversation"]] = relationship(
        "Conversation", back_populates="user", cascade="all, delete-orphan"
    )


__all__ = ["User"]
