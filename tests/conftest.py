import os
import tempfile

# Settings are read at import time
_KEY_DIR = tempfile.mkdtemp(prefix="study-kit-tests-")
os.environ.setdefault("JWT_SECRET", "test-secret")
os.environ.setdefault("MODE", "test")
os.environ.setdefault("JWT_KEY_FILE", os.path.join(_KEY_DIR, "jwt_rsa_key.pem"))
os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///:memory:")

import httpx
import pytest
from pydantic_ai.messages import ModelResponse, TextPart, ToolCallPart
from pydantic_ai.models.function import AgentInfo, FunctionModel

from app.apis.deps import current_identity
from app.core.config import GenerationSettings
from app.core.db.base import Database
from app.core.db.schemas.auth import User
from app.core.db.schemas.study_kits import Flashcard, StudyKit
from app.modules.auth import CallerIdentity
from app.modules.generation.client import GenerationClient
from main import create_app


class ScriptedModel:
    """FunctionModel that replays queued replies and records every call.

    A reply is a dict (returned as the structured output), a string (returned
    as plain text) or an exception (raised from the model). The last queued
    reply repeats once the queue runs down to it.
    """

    def __init__(self):
        self.calls = []
        self.replies = []
        self.model = FunctionModel(self._respond)

    def queue(self, *replies):
        self.replies.extend(replies)
        return self

    def _respond(self, messages, info: AgentInfo) -> ModelResponse:
        self.calls.append(messages)
        reply = self.replies.pop(0) if len(self.replies) > 1 else self.replies[0]
        if isinstance(reply, BaseException):
            raise reply
        if info.output_tools:
            return ModelResponse(parts=[ToolCallPart(info.output_tools[0].name, reply)])
        return ModelResponse(parts=[TextPart(reply)])


def mcq(question, options=("Alpha", "Beta", "Gamma", "Delta"), answer="Alpha"):
    return {
        "question": question,
        "options": list(options),
        "correct_answer": answer,
        "explanation": f"Because of {question}",
    }


@pytest.fixture
def scripted_model():
    return ScriptedModel()


@pytest.fixture
def generation_settings():
    return GenerationSettings()


@pytest.fixture
def generation_client(scripted_model, generation_settings):
    return GenerationClient(generation_settings, model=scripted_model.model)


@pytest.fixture
async def database(tmp_path):
    db = Database(f"sqlite+aiosqlite:///{tmp_path / 'test.db'}")
    await db.create_schema()
    yield db
    await db.dispose()


@pytest.fixture
def app(database, generation_client):
    return create_app(database=database, generation_client=generation_client)


@pytest.fixture
async def client(app):
    transport = httpx.ASGITransport(app=app)
    async with httpx.AsyncClient(transport=transport, base_url="http://test") as c:
        yield c


@pytest.fixture
def make_user(database):
    async def _make(email):
        async with database.session_maker() as session:
            user = User(
                email=email,
                hashed_password="not-a-real-hash",
                is_active=True,
                is_superuser=False,
                is_verified=False,
            )
            session.add(user)
            await session.commit()
            return user.id

    return _make


@pytest.fixture
def login_as(app):
    """Authenticate every following request as ``user_id``."""

    def _login(user_id):
        app.dependency_overrides[current_identity] = lambda: CallerIdentity(
            user_id=user_id
        )

    yield _login
    app.dependency_overrides.clear()


@pytest.fixture
def make_kit(database):
    """Store a study kit with ``cards`` flashcards; returns (kit_id, [card ids])."""

    async def _make(user_id, cards=2, title="Cells"):
        async with database.session_maker() as session:
            kit = StudyKit(
                user_id=user_id,
                title=title,
                source_text="Cells are the basic unit of life.",
                summary="Cells.",
            )
            kit.flashcards = [
                Flashcard(question=f"Q{i}", answer=f"A{i}", order_index=i)
                for i in range(cards)
            ]
            session.add(kit)
            await session.commit()
            return kit.id, [c.id for c in kit.flashcards]

    return _make
