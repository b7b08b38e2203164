"""Client for the remote text-generation service.

Wraps pydantic-ai agents so each operation performs a single model request
(no output-validation retries, no SDK-level retries) bounded by the
configured timeout. Provider failures are translated into the error kinds of
``app.core.errors``:

- missing credentials, or HTTP 401/403 from the provider -> ConfigurationError
- any other non-success HTTP status                     -> UpstreamError
- connection failures and timeouts                      -> TransportError
- output that does not parse or cannot be repaired      -> GenerationError

``GENERATION_MAX_RETRIES`` enables bounded retry with exponential backoff,
for TransportError only. It is 0 by default.
"""

from __future__ import annotations

import asyncio
from typing import Any, Optional, Sequence, TypeVar

import httpx
from openai import APIConnectionError
from pydantic_ai import Agent
from pydantic_ai.exceptions import AgentRunError, ModelHTTPError
from pydantic_ai.models import Model
from pydantic_ai.settings import ModelSettings

from app.core.config import GenerationSettings
from app.core.errors import (
    ConfigurationError,
    GenerationError,
    TransportError,
    UpstreamError,
)
from app.core.logging import get_logger
from app.modules.generation import prompts
from app.modules.generation.models import (
    FlashcardDraft,
    FlashcardDraftSet,
    QuestionType,
    QuizQuestion,
    RawQuizQuestionSet,
    RawStudyMaterials,
    StudyMaterials,
    SummaryLength,
    TutorMode,
)
from app.modules.generation.shaping import shape_flashcards, shape_quiz_questions
from app.modules.generation.validation import require_content


logger = get_logger(__name__)

OutputT = TypeVar("OutputT")

DEFAULT_QUESTION_COUNT = 5
DEFAULT_FLASHCARD_COUNT = 10
TUTOR_HISTORY_LIMIT = 10


def _caused_by_transport(exc: BaseException) -> bool:
    seen: set[int] = set()
    cur: Optional[BaseException] = exc
    while cur is not None and id(cur) not in seen:
        if isinstance(cur, (httpx.TransportError, APIConnectionError, TimeoutError)):
            return True
        seen.add(id(cur))
        cur = cur.__cause__ or cur.__context__
    return False


class GenerationClient:
    """One instance per process; see ``main.lifespan``."""

    def __init__(
        self, config: GenerationSettings, *, model: Optional[Model] = None
    ) -> None:
        self.config = config
        # A fixed model bypasses provider selection (used by tests and scripts)
        self._fixed_model = model
        self._openai_client: Any = None
        self._openai_provider: Any = None
        self._google_provider: Any = None

    # Model selection ----------------------------------------------------
    def resolve_model_name(self, selector: Optional[str]) -> str:
        """Map a model selector to a concrete model id.

        ``auto``/``fast``/``best`` map to the configured tiers; anything else
        is taken as a provider model id and passed through.
        """
        key = (selector or "auto").strip() or "auto"
        if key.lower() == "fast":
            return self.config.fast_model
        if key.lower() == "best":
            return self.config.best_model
        if key.lower() == "auto":
            return self.config.auto_model
        return key

    def _build_openai_model(self, model_name: str) -> Model:
        """OpenAI-compatible endpoint (Groq, OpenRouter, ...), lazy import."""
        from openai import AsyncOpenAI
        from pydantic_ai.models.openai import OpenAIChatModel
        from pydantic_ai.providers.openai import OpenAIProvider

        if not self.config.api_key:
            raise ConfigurationError(
                "Generation API key not configured. Set GENERATION_API_KEY in your environment."
            )
        if self._openai_provider is None:
            self._openai_client = AsyncOpenAI(
                api_key=self.config.api_key,
                base_url=self.config.base_url,
                timeout=self.config.timeout_seconds,
                max_retries=0,
            )
            self._openai_provider = OpenAIProvider(openai_client=self._openai_client)
        return OpenAIChatModel(model_name, provider=self._openai_provider)

    def _build_google_model(self, model_name: str) -> Model:
        """Google Gemini model for pydantic-ai (lazy import)."""
        from pydantic_ai.models.google import GoogleModel
        from pydantic_ai.providers.google import GoogleProvider

        if not self.config.gemini_api_key:
            raise ConfigurationError(
                "Gemini API key not configured. Set GEMINI_API_KEY in your environment."
            )
        if self._google_provider is None:
            self._google_provider = GoogleProvider(api_key=self.config.gemini_api_key)
        return GoogleModel(model_name, provider=self._google_provider)

    def build_model(self, selector: Optional[str]) -> Model:
        if self._fixed_model is not None:
            return self._fixed_model
        model_name = self.resolve_model_name(selector)
        provider = (self.config.provider or "openai").lower()
        if provider == "google":
            return self._build_google_model(model_name)
        return self._build_openai_model(model_name)

    async def aclose(self) -> None:
        if self._openai_client is not None:
            await self._openai_client.close()
            self._openai_client = None
            self._openai_provider = None

    # Agent execution ----------------------------------------------------
    async def _run_once(
        self,
        *,
        operation: str,
        output_type: type[OutputT],
        system_prompt: str,
        instruction: str,
        selector: Optional[str],
    ) -> OutputT:
        model = self.build_model(selector)
        agent: Agent[None, OutputT] = Agent[None, OutputT](
            model=model,
            output_type=output_type,
            system_prompt=system_prompt,
            retries=0,
        )
        timeout = self.config.timeout_seconds
        try:
            res = await asyncio.wait_for(
                agent.run(instruction, model_settings=ModelSettings(timeout=timeout)),
                timeout=timeout,
            )
        except ModelHTTPError as e:
            logger.warning(
                "%s: provider returned HTTP %s: %s", operation, e.status_code, e.body
            )
            if e.status_code in (401, 403):
                raise ConfigurationError(
                    f"provider rejected credentials (HTTP {e.status_code})"
                ) from e
            raise UpstreamError(e.status_code, e.body) from e
        except asyncio.TimeoutError as e:
            logger.warning("%s: provider call timed out after %ss", operation, timeout)
            raise TransportError(f"timed out after {timeout}s") from e
        except (httpx.TransportError, APIConnectionError) as e:
            logger.warning("%s: transport failure: %s", operation, e)
            raise TransportError(str(e)) from e
        except AgentRunError as e:
            if _caused_by_transport(e):
                logger.warning("%s: transport failure: %s", operation, e)
                raise TransportError(str(e)) from e
            logger.warning("%s: unusable model output: %s", operation, e)
            raise GenerationError(str(e)) from e
        return res.output

    async def _run(self, **kwargs: Any) -> Any:
        attempts = max(0, int(self.config.max_retries)) + 1
        for attempt in range(attempts):
            try:
                return await self._run_once(**kwargs)
            except TransportError:
                if attempt + 1 >= attempts:
                    raise
                delay = self.config.retry_backoff_seconds * (2**attempt)
                logger.info(
                    "%s: retrying in %.2fs (attempt %d/%d)",
                    kwargs["operation"],
                    delay,
                    attempt + 2,
                    attempts,
                )
                await asyncio.sleep(delay)

    # Operations ---------------------------------------------------------
    async def generate_quiz_questions(
        self,
        content: str,
        count: Optional[int] = DEFAULT_QUESTION_COUNT,
        model: Optional[str] = "auto",
        question_type: QuestionType = QuestionType.MCQ,
        difficulty: Optional[str] = None,
        *,
        start_order: int = 0,
    ) -> list[QuizQuestion]:
        """Generate up to ``count`` questions; see ``shaping`` for the repair policy."""
        text = require_content(content)
        n = count if count and count > 0 else DEFAULT_QUESTION_COUNT
        raw: RawQuizQuestionSet = await self._run(
            operation="generate_quiz_questions",
            output_type=RawQuizQuestionSet,
            system_prompt=prompts.QUIZ_SYSTEM_PROMPT,
            instruction=prompts.quiz_instruction(text, n, question_type, difficulty),
            selector=model,
        )
        questions = shape_quiz_questions(
            raw.questions, n, question_type=question_type, start_order=start_order
        )
        if not questions:
            raise GenerationError(
                f"none of {len(raw.questions)} generated questions were usable"
            )
        if len(questions) < n:
            logger.info(
                "generate_quiz_questions: kept %d of %d requested", len(questions), n
            )
        return questions

    async def refine_text(self, content: str, model: Optional[str] = "auto") -> str:
        text = require_content(content)
        out: str = await self._run(
            operation="refine_text",
            output_type=str,
            system_prompt=prompts.REFINE_SYSTEM_PROMPT,
            instruction=prompts.refine_instruction(text),
            selector=model,
        )
        if not out or not out.strip():
            raise GenerationError("model returned empty text")
        return out

    async def generate_flashcards(
        self,
        content: str,
        count: Optional[int] = DEFAULT_FLASHCARD_COUNT,
        model: Optional[str] = "auto",
    ) -> list[FlashcardDraft]:
        text = require_content(content)
        n = count if count and count > 0 else DEFAULT_FLASHCARD_COUNT
        raw: FlashcardDraftSet = await self._run(
            operation="generate_flashcards",
            output_type=FlashcardDraftSet,
            system_prompt=prompts.FLASHCARDS_SYSTEM_PROMPT,
            instruction=prompts.flashcards_instruction(text, n),
            selector=model,
        )
        cards = shape_flashcards(raw.flashcards, n)
        if not cards:
            raise GenerationError("model returned no usable flashcards")
        return cards

    async def generate_summary(
        self,
        content: str,
        model: Optional[str] = "auto",
        length: SummaryLength = SummaryLength.MEDIUM,
    ) -> str:
        text = require_content(content)
        out: str = await self._run(
            operation="generate_summary",
            output_type=str,
            system_prompt=prompts.SUMMARY_SYSTEM_PROMPT,
            instruction=prompts.summary_instruction(text, length),
            selector=model,
        )
        if not out or not out.strip():
            raise GenerationError("model returned an empty summary")
        return out.strip()

    async def generate_study_materials(
        self, content: str, model: Optional[str] = "auto"
    ) -> StudyMaterials:
        """Summary, flashcards and quiz questions for a study kit in one call."""
        text = require_content(content)
        raw: RawStudyMaterials = await self._run(
            operation="generate_study_materials",
            output_type=RawStudyMaterials,
            system_prompt=prompts.STUDY_MATERIALS_SYSTEM_PROMPT,
            instruction=prompts.study_materials_instruction(text),
            selector=model,
        )
        summary = (raw.summary or "").strip()
        if not summary:
            raise GenerationError("model returned an empty summary")
        return StudyMaterials(
            summary=summary,
            flashcards=shape_flashcards(raw.flashcards, len(raw.flashcards)),
            quiz_questions=shape_quiz_questions(
                raw.quiz_questions, len(raw.quiz_questions)
            ),
        )

    async def tutor_reply(
        self,
        message: str,
        history: Sequence[tuple[str, str]] = (),
        *,
        subject: Optional[str] = None,
        mode: TutorMode = TutorMode.EXPLAIN,
        model: Optional[str] = "auto",
    ) -> str:
        """Answer a student's message; only the last few history turns are sent."""
        text = require_content(message, "Message")
        out: str = await self._run(
            operation="tutor_reply",
            output_type=str,
            system_prompt=prompts.tutor_system_prompt(subject, mode),
            instruction=prompts.tutor_instruction(
                text, list(history)[-TUTOR_HISTORY_LIMIT:]
            ),
            selector=model,
        )
        if not out or not out.strip():
            raise GenerationError("model returned an empty reply")
        return out.strip()
