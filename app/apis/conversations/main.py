from __future__ import annotations

from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.apis.deps import Generator, Identity
from app.core.config import settings
from app.core.db.base import get_session
from app.core.db_services import ConversationService
from app.core.errors import NotFoundError
from app.core.logging import get_logger
from app.modules.generation.models import TutorMode
from app.modules.generation.validation import (
    derive_title,
    require_content,
    resolve_model,
)
from .schemas import (
    ConversationCreate,
    ConversationRead,
    ConversationSummary,
    ConversationUpdate,
    ExchangeRead,
    MessageCreate,
    MessageRead,
)


router = APIRouter()

logger = get_logger(__name__)

DEFAULT_TITLE = "New Conversation"


@router.post(
    f"/{settings.app.version}/conversations",
    response_model=ConversationRead,
    status_code=status.HTTP_201_CREATED,
    tags=["conversations"],
)
async def create_conversation(
    req: ConversationCreate,
    identity: Identity,
    session: AsyncSession = Depends(get_session),
) -> ConversationRead:
    conversation = await ConversationService(session).create_conversation(
        user_id=identity.user_id,
        title=(req.title or "").strip() or DEFAULT_TITLE,
        subject=(req.subject or "").strip() or None,
        mode=req.mode.value,
    )
    return ConversationRead.model_validate(conversation)


@router.get(
    f"/{settings.app.version}/conversations",
    response_model=list[ConversationSummary],
    tags=["conversations"],
)
async def list_conversations(
    identity: Identity,
    session: AsyncSession = Depends(get_session),
) -> list[ConversationSummary]:
    conversations = await ConversationService(session).list_conversations(
        user_id=identity.user_id
    )
    return [ConversationSummary.model_validate(c) for c in conversations]


@router.get(
    f"/{settings.app.version}/conversations/{{conversation_id:int}}",
    response_model=ConversationRead,
    tags=["conversations"],
)
async def get_conversation(
    conversation_id: int,
    identity: Identity,
    session: AsyncSession = Depends(get_session),
) -> ConversationRead:
    conversation = await ConversationService(session).get_conversation(
        conversation_id, user_id=identity.user_id
    )
    if not conversation:
        raise NotFoundError(detail="Conversation not found")
    return ConversationRead.model_validate(conversation)


@router.patch(
    f"/{settings.app.version}/conversations/{{conversation_id:int}}",
    response_model=ConversationRead,
    tags=["conversations"],
)
async def update_conversation(
    conversation_id: int,
    req: ConversationUpdate,
    identity: Identity,
    session: AsyncSession = Depends(get_session),
) -> ConversationRead:
    """Blank titles and modes are ignored; ``subject: null`` clears the subject."""
    patch: dict[str, object] = {}
    if req.title and req.title.strip():
        patch["title"] = req.title.strip()
    if "subject" in req.model_fields_set:
        patch["subject"] = (req.subject or "").strip() or None
    if req.mode:
        patch["mode"] = req.mode.value

    conversation = await ConversationService(session).update_conversation(
        conversation_id, user_id=identity.user_id, patch=patch
    )
    if not conversation:
        raise NotFoundError(detail="Conversation not found")
    return ConversationRead.model_validate(conversation)


@router.post(
    f"/{settings.app.version}/conversations/{{conversation_id:int}}/messages",
    response_model=ExchangeRead,
    tags=["conversations"],
)
async def send_message(
    conversation_id: int,
    req: MessageCreate,
    identity: Identity,
    client: Generator,
    session: AsyncSession = Depends(get_session),
) -> ExchangeRead:
    """Ask the tutor; the message and its reply are stored only once the reply exists."""
    message = require_content(req.message, "Message")

    db = ConversationService(session)
    conversation = await db.get_conversation(conversation_id, user_id=identity.user_id)
    if not conversation:
        raise NotFoundError(detail="Conversation not found")

    history = [(m.role, m.content) for m in conversation.messages]
    reply = await client.tutor_reply(
        message,
        history,
        subject=conversation.subject,
        mode=TutorMode(conversation.mode),
        model=resolve_model(req.model),
    )

    title = None
    if not history and conversation.title == DEFAULT_TITLE:
        title = derive_title(message)
    conversation = await db.add_exchange(
        conversation, message=message, reply=reply, title=title
    )
    logger.info(
        "conversation %s: %d messages", conversation.id, len(conversation.messages)
    )
    sent, answered = conversation.messages[-2:]
    return ExchangeRead(
        conversation_id=conversation.id,
        title=conversation.title,
        message=MessageRead.model_validate(sent),
        reply=MessageRead.model_validate(answered),
    )
