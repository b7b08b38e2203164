"""Repair and validation of raw model output.

Policy for quiz questions, applied in order and without randomness:

1. keep only the first ``count`` entries the model returned;
2. strip question text and options, drop blank options and repeated
   options (case-insensitive, first one wins);
3. resolve the correct answer by exact option text, then case-insensitive
   text, then an option letter (``"B"``) or a 0-based index;
4. drop the question when its text is blank, fewer than two options
   remain, or the correct answer cannot be resolved.

True/false questions always get the options ``["True", "False"]``.
"""

from __future__ import annotations

import string
from typing import Iterable, Optional, Union

from app.modules.generation.models import (
    FlashcardDraft,
    QuestionType,
    QuizQuestion,
    RawQuizQuestion,
)


TRUE_FALSE_OPTIONS = ["True", "False"]


def _clean_options(options: Iterable[object]) -> list[str]:
    out: list[str] = []
    seen: set[str] = set()
    for opt in options:
        text = str(opt).strip()
        if not text or text.lower() in seen:
            continue
        seen.add(text.lower())
        out.append(text)
    return out


def _resolve_answer(
    answer: Union[bool, str, int, None], raw_options: list[str], options: list[str]
) -> Optional[int]:
    if answer is None:
        return None
    if isinstance(answer, bool):
        answer = "True" if answer else "False"

    if isinstance(answer, int):
        candidate = raw_options[answer] if 0 <= answer < len(raw_options) else None
    else:
        text = answer.strip()
        if text in options:
            return options.index(text)
        lowered = [o.lower() for o in options]
        if text.lower() in lowered:
            return lowered.index(text.lower())

        candidate = None
        if len(text) == 1 and text.upper() in string.ascii_uppercase:
            idx = string.ascii_uppercase.index(text.upper())
            if idx < len(raw_options):
                candidate = raw_options[idx]
        elif text.isdigit() and int(text) < len(raw_options):
            candidate = raw_options[int(text)]

    if candidate is None:
        return None
    lowered = [o.lower() for o in options]
    return lowered.index(candidate.lower()) if candidate.lower() in lowered else None


def shape_question(
    raw: RawQuizQuestion,
    *,
    question_type: QuestionType = QuestionType.MCQ,
    order: int = 0,
) -> Optional[QuizQuestion]:
    """Return a valid question, or None when ``raw`` cannot be repaired."""
    text = (raw.question or "").strip()
    if not text:
        return None

    raw_options = [str(o).strip() for o in (raw.options or [])]
    if question_type == QuestionType.TRUE_FALSE:
        options = list(TRUE_FALSE_OPTIONS)
    else:
        options = _clean_options(raw_options)
    if len(options) < 2:
        return None

    idx = _resolve_answer(raw.correct_answer, raw_options, options)
    if idx is None:
        return None

    explanation = (raw.explanation or "").strip() or None
    return QuizQuestion(
        question=text,
        options=options,
        correct_answer=options[idx],
        correct_index=idx,
        explanation=explanation,
        type=question_type,
        order=order,
    )


def shape_quiz_questions(
    raw_questions: Iterable[RawQuizQuestion],
    count: int,
    *,
    question_type: QuestionType = QuestionType.MCQ,
    start_order: int = 0,
) -> list[QuizQuestion]:
    out: list[QuizQuestion] = []
    for raw in list(raw_questions)[:count]:
        shaped = shape_question(
            raw, question_type=question_type, order=start_order + len(out)
        )
        if shaped is not None:
            out.append(shaped)
    return out


def shape_flashcards(
    drafts: Iterable[FlashcardDraft], count: int
) -> list[FlashcardDraft]:
    out: list[FlashcardDraft] = []
    for card in list(drafts)[:count]:
        q = (card.question or "").strip()
        a = (card.answer or "").strip()
        if q and a:
            out.append(FlashcardDraft(question=q, answer=a))
    return out
