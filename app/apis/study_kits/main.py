from __future__ import annotations

from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.apis.deps import Generator, Identity
from app.apis.flashcards.schemas import FlashcardRead
from app.core.config import settings
from app.core.db.base import get_session
from app.core.db.schemas.study_kits import StudyKit
from app.core.db_services import StudyKitService
from app.core.errors import NotFoundError
from app.core.logging import get_logger
from app.modules.generation.validation import (
    derive_title,
    require_content,
    resolve_model,
)
from .schemas import QuizRead, StudyKitCreate, StudyKitRead, StudyKitSummary


router = APIRouter()

logger = get_logger(__name__)


def _kit_read(kit: StudyKit) -> StudyKitRead:
    return StudyKitRead(
        id=kit.id,
        title=kit.title,
        status=kit.status.value,
        created_at=kit.created_at,
        summary=kit.summary,
        flashcards=[FlashcardRead.model_validate(c) for c in kit.flashcards],
        quizzes=[QuizRead.model_validate(q) for q in kit.quizzes],
    )


@router.post(
    f"/{settings.app.version}/study-kits",
    response_model=StudyKitRead,
    status_code=status.HTTP_201_CREATED,
    tags=["study-kits"],
)
async def create_study_kit(
    req: StudyKitCreate,
    identity: Identity,
    client: Generator,
    session: AsyncSession = Depends(get_session),
) -> StudyKitRead:
    """Generate a summary, flashcards and a quiz from content and store them as one kit."""
    content = require_content(req.content)
    title = (req.title or "").strip() or derive_title(content)

    materials = await client.generate_study_materials(content, resolve_model(req.model))

    kit = await StudyKitService(session).create_from_materials(
        user_id=identity.user_id,
        title=title,
        source_text=content,
        materials=materials,
    )
    logger.info(
        "study kit %s: %d flashcards, %d quiz questions",
        kit.id,
        len(materials.flashcards),
        len(materials.quiz_questions),
    )
    return _kit_read(kit)


@router.get(
    f"/{settings.app.version}/study-kits",
    response_model=list[StudyKitSummary],
    tags=["study-kits"],
)
async def list_study_kits(
    identity: Identity,
    session: AsyncSession = Depends(get_session),
) -> list[StudyKitSummary]:
    kits = await StudyKitService(session).list_kits(user_id=identity.user_id)
    return [
        StudyKitSummary(
            id=k.id,
            title=k.title,
            status=k.status.value,
            created_at=k.created_at,
        )
        for k in kits
    ]


@router.get(
    f"/{settings.app.version}/study-kits/{{kit_id:int}}",
    response_model=StudyKitRead,
    tags=["study-kits"],
)
async def get_study_kit(
    kit_id: int,
    identity: Identity,
    session: AsyncSession = Depends(get_session),
) -> StudyKitRead:
    kit = await StudyKitService(session).get_kit(kit_id, user_id=identity.user_id)
    if not kit:
        raise NotFoundError(detail="Study kit not found")
    return _kit_read(kit)
