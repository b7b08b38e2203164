from app.modules.generation.models import (
    FlashcardDraft,
    QuestionType,
    RawQuizQuestion,
)
from app.modules.generation.shaping import (
    shape_flashcards,
    shape_question,
    shape_quiz_questions,
)


def raw(**kwargs):
    base = {"question": "What is ATP?", "options": ["Fuel", "Enzyme", "Sugar"]}
    base.update(kwargs)
    return RawQuizQuestion(**base)


def test_answer_matched_by_exact_text():
    q = shape_question(raw(correct_answer="Enzyme"))
    assert q.correct_answer == "Enzyme"
    assert q.correct_index == 1


def test_answer_matched_case_insensitively():
    q = shape_question(raw(correct_answer="  sugar "))
    assert q.correct_answer == "Sugar"
    assert q.correct_index == 2


def test_answer_given_as_letter_or_index():
    assert shape_question(raw(correct_answer="B")).correct_answer == "Enzyme"
    assert shape_question(raw(correct_answer=0)).correct_answer == "Fuel"
    assert shape_question(raw(correct_answer="2")).correct_answer == "Sugar"


def test_blank_and_duplicate_options_are_dropped():
    q = shape_question(
        raw(options=["Fuel", " ", "fuel", "Enzyme"], correct_answer="Enzyme")
    )
    assert q.options == ["Fuel", "Enzyme"]
    assert q.correct_index == 1


def test_unresolvable_questions_are_dropped():
    assert shape_question(raw(correct_answer="Protein")) is None
    assert shape_question(raw(correct_answer=None)) is None
    assert shape_question(raw(question="   ", correct_answer="Fuel")) is None
    assert shape_question(raw(options=["Fuel"], correct_answer="Fuel")) is None


def test_true_false_options_are_fixed():
    q = shape_question(
        raw(options=["yes", "no"], correct_answer=False),
        question_type=QuestionType.TRUE_FALSE,
    )
    assert q.options == ["True", "False"]
    assert q.correct_answer == "False"
    assert q.type == QuestionType.TRUE_FALSE


def test_quiz_is_truncated_and_ordered():
    raws = [raw(question=f"Q{i}", correct_answer="Fuel") for i in range(6)]
    raws.insert(1, raw(question="bad", correct_answer="nope"))
    out = shape_quiz_questions(raws, 4, start_order=10)
    # The broken second entry counts against the limit and is dropped
    assert [q.question for q in out] == ["Q0", "Q1", "Q2"]
    assert [q.order for q in out] == [10, 11, 12]


def test_flashcards_without_answer_are_dropped():
    cards = shape_flashcards(
        [
            FlashcardDraft(question=" What? ", answer=" That. "),
            FlashcardDraft(question="Empty", answer=""),
        ],
        10,
    )
    assert cards == [FlashcardDraft(question="What?", answer="That.")]
