from __future__ import annotations

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.apis.deps import Generator, Identity
from app.core.config import settings
from app.core.db.base import get_session
from app.core.db_services import SummaryService
from app.core.errors import InvalidInputError, NotFoundError
from app.core.logging import get_logger
from app.modules.generation.validation import (
    derive_title,
    require_content,
    resolve_model,
)
from .schemas import (
    SummaryCreate,
    SummaryCreated,
    SummaryPage,
    SummaryRead,
    SummaryRequest,
    SummaryResponse,
)


router = APIRouter()

logger = get_logger(__name__)

MIN_SOURCE_LENGTH = 50
MAX_PAGE_SIZE = 50


@router.post(
    f"/{settings.app.version}/summary",
    response_model=SummaryResponse,
    tags=["summary"],
)
async def generate_summary(
    req: SummaryRequest,
    identity: Identity,
    client: Generator,
) -> SummaryResponse:
    content = require_content(req.content)
    summary = await client.generate_summary(content, resolve_model(req.model), req.length)
    return SummaryResponse(summary=summary)


@router.post(
    f"/{settings.app.version}/summaries",
    response_model=SummaryCreated,
    status_code=status.HTTP_201_CREATED,
    tags=["summary"],
)
async def create_summary(
    req: SummaryCreate,
    identity: Identity,
    client: Generator,
    session: AsyncSession = Depends(get_session),
) -> SummaryCreated:
    """Summarise the source text and keep the result for the caller."""
    source = require_content(req.source_text, "Source text")
    if len(source) < MIN_SOURCE_LENGTH:
        raise InvalidInputError(
            f"Content must be at least {MIN_SOURCE_LENGTH} characters long"
        )
    title = (req.title or "").strip() or f'Summary of "{derive_title(source)}"'

    text = await client.generate_summary(source, resolve_model(req.model), req.length)

    summary = await SummaryService(session).create_summary(
        user_id=identity.user_id,
        title=title,
        source_text=source,
        summary_text=text,
        length=req.length.value,
    )
    logger.info("summary %s stored (%s)", summary.id, req.length.value)
    return SummaryCreated(id=summary.id, title=summary.title)


@router.get(
    f"/{settings.app.version}/summaries",
    response_model=SummaryPage,
    tags=["summary"],
)
async def list_summaries(
    identity: Identity,
    skip: int = Query(0, ge=0),
    take: int = Query(10, ge=1),
    session: AsyncSession = Depends(get_session),
) -> SummaryPage:
    """The caller's summaries, newest first; ``take`` is capped at 50."""
    take = min(take, MAX_PAGE_SIZE)
    items, total = await SummaryService(session).list_page(
        user_id=identity.user_id, skip=skip, take=take
    )
    return SummaryPage(
        summaries=[SummaryRead.model_validate(s) for s in items],
        total=total,
        skip=skip,
        take=take,
        has_more=skip + take < total,
    )


@router.get(
    f"/{settings.app.version}/summaries/{{summary_id:int}}",
    response_model=SummaryRead,
    tags=["summary"],
)
async def get_summary(
    summary_id: int,
    identity: Identity,
    session: AsyncSession = Depends(get_session),
) -> SummaryRead:
    summary = await SummaryService(session).get_summary(
        summary_id, user_id=identity.user_id
    )
    if not summary:
        raise NotFoundError(detail="Summary not found")
    return SummaryRead.model_validate(summary)
