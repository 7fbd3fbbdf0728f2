"""Tests for answer-key construction and grading of answer sets."""

import pytest

from packages.schemas.assessment import Answer
from services.assessment.catalog import (
    AssessmentDefinition,
    ChoiceDef,
    PassageDef,
    QuestionDef,
    Timed,
    Untimed,
    kind_for,
    sanitize,
)
from services.assessment.errors import CatalogIntegrityError, InvalidAnswer
from services.assessment.scorer import build_answer_key, grade, normalize_answers, percentage


def _question(qid: int, correct: str) -> QuestionDef:
    # choice ids: qid*10 + 0..3 for A..D
    return QuestionDef(
        id=qid,
        text=f"q{qid}",
        order=qid,
        choices=tuple(
            ChoiceDef(id=qid * 10 + i, text=letter, order=i, is_correct=letter == correct)
            for i, letter in enumerate("ABCD")
        ),
    )


def _definition(key: str = "ABCD", duration: int | None = 30) -> AssessmentDefinition:
    questions = tuple(_question(i + 1, letter) for i, letter in enumerate(key))
    return AssessmentDefinition(
        id=7,
        title="Unit test",
        instructions=None,
        kind=kind_for(duration),
        passages=(
            PassageDef(id=1, title="P1", content="...", image_url=None, order=0, questions=questions[:2]),
            PassageDef(id=2, title="P2", content="...", image_url=None, order=1, questions=questions[2:]),
        ),
    )


def test_answer_key_covers_every_question() -> None:
    assert build_answer_key(_definition()) == {1: 10, 2: 21, 3: 32, 4: 43}


def test_partial_answers_grade_against_full_question_count() -> None:
    defn = _definition()
    result = grade(defn, [Answer(question_id=1, choice_id=10), Answer(question_id=2, choice_id=23), Answer(question_id=4, choice_id=43)])

    assert result.score == 2
    assert result.total_questions == 4
    assert result.answered_questions == 3
    assert percentage(result.score, result.total_questions) == 50.0
    by_question = {r.question_id: r for r in result.records}
    assert by_question[3].choice_id is None
    assert by_question[3].is_correct is False
    assert by_question[2].is_correct is False


def test_empty_answer_set_records_every_question_as_wrong() -> None:
    result = grade(_definition(), [])
    assert result.score == 0
    assert [r.question_id for r in result.records] == [1, 2, 3, 4]
    assert all(r.choice_id is None and not r.is_correct for r in result.records)


def test_null_choice_counts_as_unanswered() -> None:
    result = grade(_definition(), [Answer(question_id=1, choice_id=None)])
    assert result.answered_questions == 0
    assert result.records[0].choice_id is None


@pytest.mark.parametrize(
    "answers, fragment",
    [
        ([Answer(question_id=99, choice_id=10)], "not part of this assessment"),
        ([Answer(question_id=1, choice_id=21)], "does not belong to question 1"),
        ([Answer(question_id=1, choice_id=10), Answer(question_id=1, choice_id=11)], "more than once"),
    ],
)
def test_malformed_answers_are_rejected(answers, fragment) -> None:
    with pytest.raises(InvalidAnswer) as err:
        normalize_answers(_definition(), answers)
    assert fragment in err.value.message


def test_question_without_single_correct_choice_is_a_catalog_error() -> None:
    defn = _definition()
    broken = QuestionDef(
        id=5, text="q5", order=5,
        choices=tuple(ChoiceDef(id=50 + i, text=str(i), order=i, is_correct=i < 2) for i in range(4)),
    )
    defn = AssessmentDefinition(
        id=defn.id, title=defn.title, instructions=None, kind=defn.kind,
        passages=defn.passages + (PassageDef(id=3, title=None, content="", image_url=None, order=2, questions=(broken,)),),
    )
    with pytest.raises(CatalogIntegrityError):
        build_answer_key(defn)


def test_percentage_rounds_and_handles_empty_assessment() -> None:
    assert percentage(1, 3) == 33.33
    assert percentage(2, 3) == 66.67
    assert percentage(0, 0) == 0.0


def test_kind_is_derived_from_duration() -> None:
    assert kind_for(10) == Timed(10)
    assert kind_for(None) == Untimed()
    assert kind_for(0) == Untimed()
    assert Timed(10).duration_ms == 600_000


def test_sanitized_view_has_no_correctness() -> None:
    view = sanitize(_definition())
    payload = view.model_dump(by_alias=True)
    assert payload["kind"] == "timed"
    assert payload["totalQuestions"] == 4
    for passage in payload["passages"]:
        for question in passage["questions"]:
            assert len(question["choices"]) == 4
            for choice in question["choices"]:
                assert set(choice) == {"id", "text", "order"}
