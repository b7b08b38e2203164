"""System prompts and instruction builders for the generation client."""

from __future__ import annotations

from typing import Iterable, Optional

from app.modules.generation.models import QuestionType, SummaryLength, TutorMode


QUIZ_SYSTEM_PROMPT = (
    "You are an expert quiz author. Generate high-quality questions from the "
    "study material you are given. "
    "Return a JSON object that validates as the question set: {questions}. "
    "Each question has: {question, options, correct_answer, explanation}. Rules: "
    "- Create exactly N questions (provided in the instruction). "
    "- Multiple-choice questions have EXACTLY 4 concise, distinct options (plain text). "
    "- True/false questions have the options True and False. "
    "- correct_answer repeats the text of the correct option exactly. "
    "- explanation is one or two sentences on why the answer is correct. "
    "- Only ask about facts stated in or directly implied by the material. "
    "- Avoid markdown; do not include code fences."
)

_TYPE_HINTS = {
    QuestionType.MCQ: "multiple-choice (4 options)",
    QuestionType.TRUE_FALSE: "true/false",
}


def quiz_instruction(
    content: str,
    count: int,
    question_type: QuestionType = QuestionType.MCQ,
    difficulty: Optional[str] = None,
) -> str:
    return (
        "Create N questions from the study material below. "
        "Return only the JSON object.\n\n"
        f"N: {int(count)}\n"
        f"Question type: {_TYPE_HINTS[question_type]}\n"
        f"Difficulty: {difficulty or 'varied'}\n\n"
        f"Material:\n{content}"
    )


REFINE_SYSTEM_PROMPT = (
    "You are an editor helping a student prepare exam material. Rewrite the "
    "text you are given so it is clear, well organised and free of errors. "
    "Keep every fact, formula and term; do not add new information. "
    "Return only the rewritten text, with no preamble or commentary."
)


def refine_instruction(content: str) -> str:
    return f"Text to refine:\n\n{content}"


FLASHCARDS_SYSTEM_PROMPT = (
    "You are an expert educator who crafts focused, accurate flashcards. "
    "Return a single JSON object: {flashcards}, a list of {question, answer} "
    "pairs in plain text, no markdown. "
    "Each question is clear and atomic; each answer concise (1-4 sentences). "
    "Prefer conceptual understanding over trivia. "
    "Create exactly N cards (provided in the instruction). "
    "No extra keys or commentary; do not include code fences."
)


def flashcards_instruction(content: str, count: int) -> str:
    return (
        "Create flashcards for the study material below. "
        "Output only the JSON object.\n\n"
        f"N: {int(count)}\n\n"
        f"Material:\n{content}"
    )


SUMMARY_SYSTEM_PROMPT = (
    "You summarise study material for students. Write in plain prose with "
    "short paragraphs or bullet points, keep key terms, definitions and "
    "numbers, and leave out anything not in the source. Return only the summary."
)

_LENGTH_HINTS = {
    SummaryLength.SHORT: "3-5 sentences",
    SummaryLength.MEDIUM: "2-3 short paragraphs",
    SummaryLength.LONG: "a detailed summary of 5-8 paragraphs",
}


def summary_instruction(content: str, length: SummaryLength) -> str:
    return (
        f"Summarise the material below in {_LENGTH_HINTS[length]}.\n\n"
        f"Material:\n{content}"
    )


STUDY_MATERIALS_SYSTEM_PROMPT = (
    "You turn study material into a complete study kit. Return a JSON object "
    "{summary, flashcards, quiz_questions}. "
    "- summary: 2-3 short paragraphs of plain prose. "
    "- flashcards: 8-15 {question, answer} pairs, plain text. "
    "- quiz_questions: 5-10 multiple-choice questions, each "
    "{question, options (exactly 4), correct_answer (text of the correct option), explanation}. "
    "Only use facts from the material. No markdown, no code fences, no extra keys."
)


def study_materials_instruction(content: str) -> str:
    return f"Build a study kit for the material below.\n\nMaterial:\n{content}"


SUBJECT_PROMPTS = {
    "mathematics": (
        "You are an expert mathematics tutor. Use clear notation (LaTeX for "
        "equations), break problems into steps and explain the underlying "
        "principles rather than rules to memorise."
    ),
    "science": (
        "You are an expert science tutor. Use precise terminology, explain why "
        "phenomena happen and relate concepts to real-world applications."
    ),
    "programming": (
        "You are an expert programming tutor. Write clean, commented examples, "
        "explain the reasoning behind a solution and point out common pitfalls."
    ),
    "history": (
        "You are an expert history tutor. Give context, explain causes and "
        "effects with specific dates, names and events, and present differing "
        "interpretations."
    ),
    "language": (
        "You are an expert language tutor. Explain grammar with examples, give "
        "context for vocabulary and mention cultural nuances where relevant."
    ),
    "general": (
        "You are a helpful AI study assistant. Give clear, concise and "
        "encouraging explanations that support the student's learning."
    ),
}

MODE_INSTRUCTIONS = {
    TutorMode.EXPLAIN: (
        "Focus on clear, thorough explanations. Break complex topics into "
        "understandable parts."
    ),
    TutorMode.PRACTICE: (
        "After explaining the concept, set 2-3 practice problems for the "
        "student and offer hints rather than full solutions."
    ),
    TutorMode.QUIZ: (
        "Ask quiz-style questions to test understanding. When the student "
        "answers, give feedback and explain both correct and incorrect answers."
    ),
}


def tutor_system_prompt(subject: Optional[str], mode: TutorMode) -> str:
    """Unknown subjects fall back to the general tutor."""
    key = (subject or "").strip().lower()
    base = SUBJECT_PROMPTS.get(key, SUBJECT_PROMPTS["general"])
    return f"{base}\n\n{MODE_INSTRUCTIONS[mode]}"


def tutor_instruction(message: str, history: Iterable[tuple[str, str]] = ()) -> str:
    lines = [
        f"{'Student' if role == 'user' else 'Assistant'}: {content}"
        for role, content in history
    ]
    previous = "Previous conversation:\n" + "\n".join(lines) + "\n\n" if lines else ""
    return (
        f"{previous}Student: {message}\n\n"
        "Please provide a helpful, clear response."
    )
