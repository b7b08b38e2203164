from __future__ import annotations

from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.apis.deps import Generator, Identity
from app.core.config import settings
from app.core.db.base import get_session
from app.core.db.schemas.study_kits import Flashcard
from app.core.db_services import OwnedRecordService
from app.core.errors import NotFoundError
from app.core.logging import get_logger
from app.modules.generation.client import DEFAULT_FLASHCARD_COUNT
from app.modules.generation.validation import (
    require_content,
    resolve_count,
    resolve_model,
)
from .schemas import (
    FlashcardRead,
    GenerateFlashcardsRequest,
    GenerateFlashcardsResponse,
    ReviewRequest,
)


router = APIRouter()

logger = get_logger(__name__)


@router.post(
    f"/{settings.app.version}/flashcards/generate",
    response_model=GenerateFlashcardsResponse,
    status_code=status.HTTP_200_OK,
    tags=["flashcards"],
)
async def generate_flashcards(
    req: GenerateFlashcardsRequest,
    identity: Identity,
    client: Generator,
) -> GenerateFlashcardsResponse:
    content = require_content(req.content)
    count = resolve_count(
        req.count,
        default=DEFAULT_FLASHCARD_COUNT,
        maximum=client.config.max_count,
    )
    cards = await client.generate_flashcards(content, count, resolve_model(req.model))
    return GenerateFlashcardsResponse(flashcards=cards)


@router.patch(
    f"/{settings.app.version}/flashcards/{{flashcard_id:int}}/review",
    response_model=FlashcardRead,
    tags=["flashcards"],
)
async def set_review_state(
    flashcard_id: int,
    req: ReviewRequest,
    identity: Identity,
    session: AsyncSession = Depends(get_session),
) -> FlashcardRead:
    """Mark a flashcard reviewed or not; only the owner of its study kit may."""
    card = await OwnedRecordService(session).update_owned(
        Flashcard,
        flashcard_id,
        identity.scope,
        {"reviewed": req.reviewed},
    )
    if card is None:
        raise NotFoundError("flashcard not found", detail="Flashcard not found")
    logger.info("flashcard %s reviewed=%s", flashcard_id, req.reviewed)
    return FlashcardRead.model_validate(card)
