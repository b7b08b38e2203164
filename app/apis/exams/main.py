from __future__ import annotations

from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.apis.deps import Generator, Identity
from app.core.config import settings
from app.core.db.base import get_session
from app.core.db.schemas.exams import Exam
from app.core.db_services import ExamService
from app.core.errors import NotFoundError
from app.core.logging import get_logger
from app.modules.generation.models import QuestionType, QuizQuestion
from app.modules.generation.validation import (
    require_content,
    resolve_count,
    resolve_model,
)
from .schemas import (
    ExamCreate,
    ExamGenerateRequest,
    ExamQuestionRead,
    ExamRead,
    ExamScoreUpdate,
    RefineRequest,
    RefineResponse,
)


router = APIRouter()

logger = get_logger(__name__)

DEFAULT_EXAM_QUESTION_COUNT = 10


def _exam_read(exam: Exam) -> ExamRead:
    return ExamRead(
        id=exam.id,
        title=exam.title,
        difficulty=exam.difficulty,
        status=exam.status.value,
        score=exam.score,
        created_at=exam.created_at,
        questions=[ExamQuestionRead.model_validate(q) for q in exam.questions],
    )


def split_count(total: int, types: list[QuestionType]) -> list[tuple[QuestionType, int]]:
    """Spread ``total`` evenly over ``types``; the first types take the remainder."""
    base, remainder = divmod(total, len(types))
    plan = []
    for i, qtype in enumerate(types):
        n = base + (1 if i < remainder else 0)
        if n > 0:
            plan.append((qtype, n))
    return plan


@router.post(
    f"/{settings.app.version}/exams/refine",
    response_model=RefineResponse,
    tags=["exams"],
)
async def refine_exam_text(
    req: RefineRequest,
    identity: Identity,
    client: Generator,
) -> RefineResponse:
    content = require_content(req.content)
    result = await client.refine_text(content, resolve_model(req.model))
    return RefineResponse(result=result)


@router.post(
    f"/{settings.app.version}/exams",
    response_model=ExamRead,
    status_code=status.HTTP_201_CREATED,
    tags=["exams"],
)
async def create_exam(
    req: ExamCreate,
    identity: Identity,
    session: AsyncSession = Depends(get_session),
) -> ExamRead:
    exam = await ExamService(session).create_exam(
        user_id=identity.user_id, title=req.title.strip(), difficulty=req.difficulty
    )
    return _exam_read(exam)


@router.get(
    f"/{settings.app.version}/exams/{{exam_id:int}}",
    response_model=ExamRead,
    tags=["exams"],
)
async def get_exam(
    exam_id: int,
    identity: Identity,
    session: AsyncSession = Depends(get_session),
) -> ExamRead:
    exam = await ExamService(session).get_exam(exam_id, user_id=identity.user_id)
    if not exam:
        raise NotFoundError(detail="Exam not found")
    return _exam_read(exam)


@router.post(
    f"/{settings.app.version}/exams/generate",
    response_model=ExamRead,
    tags=["exams"],
)
async def generate_exam_questions(
    req: ExamGenerateRequest,
    identity: Identity,
    client: Generator,
    session: AsyncSession = Depends(get_session),
) -> ExamRead:
    """Generate questions for an owned exam and store them.

    All generation happens before the first write, so a failed or abandoned
    request leaves the exam as it was.
    """
    content = require_content(req.content)
    total = resolve_count(
        req.count,
        default=DEFAULT_EXAM_QUESTION_COUNT,
        maximum=client.config.max_count,
    )
    types = list(dict.fromkeys(req.types)) or [req.type or QuestionType.MCQ]
    model = resolve_model(req.model)

    db = ExamService(session)
    exam = await db.get_exam(req.exam_id, user_id=identity.user_id)
    if not exam:
        raise NotFoundError(detail="Exam not found")

    questions: list[QuizQuestion] = []
    for qtype, n in split_count(total, types):
        questions.extend(
            await client.generate_quiz_questions(
                content,
                n,
                model,
                question_type=qtype,
                difficulty=exam.difficulty,
                start_order=len(questions),
            )
        )

    exam = await db.add_questions(exam, questions)
    return _exam_read(exam)


@router.patch(
    f"/{settings.app.version}/exams/{{exam_id:int}}",
    response_model=ExamRead,
    tags=["exams"],
)
async def record_exam_score(
    exam_id: int,
    req: ExamScoreUpdate,
    identity: Identity,
    session: AsyncSession = Depends(get_session),
) -> ExamRead:
    exam = await ExamService(session).record_score(
        exam_id, user_id=identity.user_id, score=req.score
    )
    if not exam:
        raise NotFoundError(detail="Exam not found")
    return _exam_read(exam)
