from __future__ import annotations

from fastapi import APIRouter, status

from app.apis.deps import Generator, Identity
from app.core.config import settings
from app.core.logging import get_logger
from app.modules.generation.client import DEFAULT_QUESTION_COUNT
from app.modules.generation.validation import (
    require_content,
    resolve_count,
    resolve_model,
)
from .schemas import GenerateQuizRequest, GenerateQuizResponse


router = APIRouter()

logger = get_logger(__name__)


@router.post(
    f"/{settings.app.version}/quiz/generate",
    response_model=GenerateQuizResponse,
    status_code=status.HTTP_200_OK,
    tags=["quiz"],
)
async def generate_quiz(
    req: GenerateQuizRequest,
    identity: Identity,
    client: Generator,
) -> GenerateQuizResponse:
    """Generate quiz questions from pasted content; nothing is stored."""
    content = require_content(req.content)
    count = resolve_count(
        req.count,
        default=DEFAULT_QUESTION_COUNT,
        maximum=client.config.max_count,
    )
    questions = await client.generate_quiz_questions(
        content, count, resolve_model(req.model)
    )
    logger.info("generated %d quiz questions for %s", len(questions), identity)
    return GenerateQuizResponse(questions=questions)
