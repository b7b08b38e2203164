"""Database service classes for owned records and the artifacts built on them."""

from __future__ import annotations

from typing import Any, Iterable, Mapping, Optional, Sequence, TypeVar

from sqlalchemy import func, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from app.core.db.ownership import OwnerScope
from app.core.db.schemas.conversations import Conversation, ConversationMessage
from app.core.db.schemas.exams import Exam, ExamQuestion, ExamStatus
from app.core.db.schemas.study_kits import (
    Flashcard,
    GenerationStatus,
    Quiz,
    QuizQuestion,
    StudyKit,
)
from app.core.db.schemas.summaries import Summary
from app.core.errors import PersistenceError
from app.core.logging import get_logger
from app.modules.generation.models import (
    QuizQuestion as GeneratedQuestion,
    StudyMaterials,
)


logger = get_logger(__name__)

ModelT = TypeVar("ModelT")


def _reloaded(record: Optional[ModelT], name: str, record_id: int) -> ModelT:
    if record is None:
        raise PersistenceError(f"{name} {record_id} missing after commit")
    return record


class OwnedRecordService:
    """Lookups and writes filtered by an ``OwnerScope``.

    A record owned by someone else is reported exactly like a missing one:
    both return None.
    """

    def __init__(self, session: AsyncSession):
        self.session = session

    async def find_owned(
        self,
        model: type[ModelT],
        record_id: int,
        scope: OwnerScope,
        *,
        options: Sequence[Any] = (),
    ) -> Optional[ModelT]:
        stmt = scope.select_one(model, record_id).execution_options(
            populate_existing=True
        )
        if options:
            stmt = stmt.options(*options)
        try:
            result = await self.session.execute(stmt)
        except SQLAlchemyError as e:
            raise PersistenceError(f"lookup of {model.__name__} {record_id} failed") from e
        return result.scalar_one_or_none()

    async def list_owned(
        self,
        model: type[ModelT],
        scope: OwnerScope,
        *,
        order_by: Iterable[Any] = (),
        offset: int = 0,
        limit: Optional[int] = None,
    ) -> list[ModelT]:
        stmt = scope.select(model).order_by(*order_by).offset(offset).limit(limit)
        try:
            result = await self.session.execute(stmt)
        except SQLAlchemyError as e:
            raise PersistenceError(f"listing {model.__name__} failed") from e
        return list(result.scalars().all())

    async def count_owned(self, model: type[ModelT], scope: OwnerScope) -> int:
        stmt = select(func.count()).select_from(model).where(scope.clause(model))
        try:
            result = await self.session.execute(stmt)
        except SQLAlchemyError as e:
            raise PersistenceError(f"counting {model.__name__} failed") from e
        return int(result.scalar_one())

    async def update_owned(
        self,
        model: type[ModelT],
        record_id: int,
        scope: OwnerScope,
        patch: Mapping[str, Any],
    ) -> Optional[ModelT]:
        record = await self.find_owned(model, record_id, scope)
        if record is None:
            return None
        for field, value in patch.items():
            setattr(record, field, value)
        try:
            await self.session.commit()
            await self.session.refresh(record)
        except SQLAlchemyError as e:
            await self.session.rollback()
            raise PersistenceError(f"update of {model.__name__} {record_id} failed") from e
        return record


class StudyKitService:
    """Persists generated study material under one user."""

    def __init__(self, session: AsyncSession):
        self.session = session
        self.records = OwnedRecordService(session)

    async def create_from_materials(
        self,
        *,
        user_id: int,
        title: str,
        source_text: str,
        materials: StudyMaterials,
    ) -> StudyKit:
        """Write the kit, its flashcards and its quiz in a single commit."""
        kit = StudyKit(
            user_id=user_id,
            title=title,
            source_text=source_text,
            summary=materials.summary,
            status=GenerationStatus.READY,
        )
        kit.flashcards = [
            Flashcard(question=c.question, answer=c.answer, order_index=i)
            for i, c in enumerate(materials.flashcards)
        ]
        if materials.quiz_questions:
            kit.quizzes = [
                Quiz(
                    title=f"{title} Quiz",
                    questions=[
                        QuizQuestion(
                            question=q.question,
                            options=list(q.options),
                            correct_answer=q.correct_answer,
                            explanation=q.explanation,
                            order_index=i,
                        )
                        for i, q in enumerate(materials.quiz_questions)
                    ],
                )
            ]
        self.session.add(kit)
        try:
            await self.session.commit()
        except SQLAlchemyError as e:
            await self.session.rollback()
            raise PersistenceError("saving study kit failed") from e
        return _reloaded(
            await self.get_kit(kit.id, user_id=user_id), "study kit", kit.id
        )

    async def get_kit(self, kit_id: int, *, user_id: int) -> Optional[StudyKit]:
        return await self.records.find_owned(
            StudyKit,
            kit_id,
            OwnerScope(user_id),
            options=(
                selectinload(StudyKit.flashcards),
                selectinload(StudyKit.quizzes).selectinload(Quiz.questions),
            ),
        )

    async def list_kits(self, *, user_id: int) -> list[StudyKit]:
        return await self.records.list_owned(
            StudyKit, OwnerScope(user_id), order_by=(StudyKit.created_at.desc(), StudyKit.id.desc())
        )


class ExamService:
    def __init__(self, session: AsyncSession):
        self.session = session
        self.records = OwnedRecordService(session)

    async def create_exam(self, *, user_id: int, title: str, difficulty: str) -> Exam:
        exam = Exam(
            user_id=user_id,
            title=title,
            difficulty=difficulty,
            status=ExamStatus.DRAFT,
        )
        self.session.add(exam)
        try:
            await self.session.commit()
        except SQLAlchemyError as e:
            await self.session.rollback()
            raise PersistenceError("saving exam failed") from e
        return _reloaded(await self.get_exam(exam.id, user_id=user_id), "exam", exam.id)

    async def get_exam(self, exam_id: int, *, user_id: int) -> Optional[Exam]:
        return await self.records.find_owned(
            Exam,
            exam_id,
            OwnerScope(user_id),
            options=(selectinload(Exam.questions),),
        )

    async def add_questions(
        self,
        exam: Exam,
        questions: Sequence[GeneratedQuestion],
    ) -> Exam:
        """Append generated questions after the existing ones and mark the exam ready."""
        exam_id, user_id = exam.id, exam.user_id
        offset = len(exam.questions)
        for i, q in enumerate(questions):
            exam.questions.append(
                ExamQuestion(
                    question=q.question,
                    options=list(q.options),
                    correct_answer=q.correct_answer,
                    explanation=q.explanation,
                    type=q.type.value,
                    order_index=offset + i,
                )
            )
        exam.status = ExamStatus.READY
        try:
            await self.session.commit()
        except SQLAlchemyError as e:
            await self.session.rollback()
            raise PersistenceError(f"saving questions for exam {exam_id} failed") from e
        logger.info("exam %s: stored %d questions", exam_id, len(questions))
        return _reloaded(await self.get_exam(exam_id, user_id=user_id), "exam", exam_id)

    async def record_score(self, exam_id: int, *, user_id: int, score: float) -> Optional[Exam]:
        exam = await self.records.update_owned(
            Exam,
            exam_id,
            OwnerScope(user_id),
            {"score": score, "status": ExamStatus.COMPLETED},
        )
        if exam is None:
            return None
        return await self.get_exam(exam_id, user_id=user_id)


class SummaryService:
    def __init__(self, session: AsyncSession):
        self.session = session
        self.records = OwnedRecordService(session)

    async def create_summary(
        self,
        *,
        user_id: int,
        title: str,
        source_text: str,
        summary_text: str,
        length: str,
    ) -> Summary:
        summary = Summary(
            user_id=user_id,
            title=title,
            source_text=source_text,
            summary_text=summary_text,
            length=length,
        )
        self.session.add(summary)
        try:
            await self.session.commit()
        except SQLAlchemyError as e:
            await self.session.rollback()
            raise PersistenceError("saving summary failed") from e
        return _reloaded(
            await self.get_summary(summary.id, user_id=user_id), "summary", summary.id
        )

    async def get_summary(self, summary_id: int, *, user_id: int) -> Optional[Summary]:
        return await self.records.find_owned(Summary, summary_id, OwnerScope(user_id))

    async def list_page(
        self, *, user_id: int, skip: int, take: int
    ) -> tuple[list[Summary], int]:
        """One page of the caller's summaries, newest first, and their total."""
        scope = OwnerScope(user_id)
        items = await self.records.list_owned(
            Summary,
            scope,
            order_by=(Summary.created_at.desc(), Summary.id.desc()),
            offset=skip,
            limit=take,
        )
        return items, await self.records.count_owned(Summary, scope)


class ConversationService:
    def __init__(self, session: AsyncSession):
        self.session = session
        self.records = OwnedRecordService(session)

    async def create_conversation(
        self, *, user_id: int, title: str, subject: Optional[str], mode: str
    ) -> Conversation:
        conversation = Conversation(
            user_id=user_id, title=title, subject=subject, mode=mode
        )
        self.session.add(conversation)
        try:
            await self.session.commit()
        except SQLAlchemyError as e:
            await self.session.rollback()
            raise PersistenceError("saving conversation failed") from e
        return _reloaded(
            await self.get_conversation(conversation.id, user_id=user_id),
            "conversation",
            conversation.id,
        )

    async def get_conversation(
        self, conversation_id: int, *, user_id: int
    ) -> Optional[Conversation]:
        return await self.records.find_owned(
            Conversation,
            conversation_id,
            OwnerScope(user_id),
            options=(selectinload(Conversation.messages),),
        )

    async def list_conversations(self, *, user_id: int) -> list[Conversation]:
        return await self.records.list_owned(
            Conversation,
            OwnerScope(user_id),
            order_by=(Conversation.updated_at.desc(), Conversation.id.desc()),
        )

    async def update_conversation(
        self, conversation_id: int, *, user_id: int, patch: Mapping[str, Any]
    ) -> Optional[Conversation]:
        updated = await self.records.update_owned(
            Conversation, conversation_id, OwnerScope(user_id), patch
        )
        if updated is None:
            return None
        return await self.get_conversation(conversation_id, user_id=user_id)

    async def add_exchange(
        self,
        conversation: Conversation,
        *,
        message: str,
        reply: str,
        title: Optional[str] = None,
    ) -> Conversation:
        """Store a student message and the tutor's reply together."""
        conversation_id, user_id = conversation.id, conversation.user_id
        conversation.messages.append(ConversationMessage(role="user", content=message))
        conversation.messages.append(ConversationMessage(role="assistant", content=reply))
        if title:
            conversation.title = title
        conversation.updated_at = func.now()
        try:
            await self.session.commit()
        except SQLAlchemyError as e:
            await self.session.rollback()
            raise PersistenceError(
                f"saving messages for conversation {conversation_id} failed"
            ) from e
        return _reloaded(
            await self.get_conversation(conversation_id, user_id=user_id),
            "conversation",
            conversation_id,
        )
