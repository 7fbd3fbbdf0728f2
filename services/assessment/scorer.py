# services/assessment/scorer.py
"""Scoring utilities for the Assessment service.

Functions:
- build_answer_key: map every question to its single correct choice.
- normalize_answers: validate a raw answer payload against the assessment.
- grade: score every question, answered or not, and return the answer records to persist.
- percentage: score as a percentage rounded to two decimals.
"""

from dataclasses import dataclass
from typing import Dict, Iterable, List, Optional

from packages.schemas.assessment import Answer
from .catalog import AssessmentDefinition
from .errors import CatalogIntegrityError, InvalidAnswer


@dataclass(frozen=True)
class GradedAnswer:
    question_id: int
    choice_id: Optional[int]
    is_correct: bool


@dataclass(frozen=True)
class Grade:
    score: int
    total_questions: int
    answered_questions: int
    records: List[GradedAnswer]


def build_answer_key(defn: AssessmentDefinition) -> Dict[int, int]:
    """Return {question_id: correct_choice_id} for every question in `defn`.

    Raises:
        CatalogIntegrityError: a question has zero or several correct choices.
    """
    key: Dict[int, int] = {}
    for _, q in defn.questions():
        correct = [c.id for c in q.choices if c.is_correct]
        if len(correct) != 1:
            raise CatalogIntegrityError(
                f"Question {q.id} of assessment {defn.id} has {len(correct)} correct choices"
            )
        key[q.id] = correct[0]
    return key


def normalize_answers(defn: AssessmentDefinition, answers: Iterable[Answer]) -> Dict[int, Optional[int]]:
    """Return {question_id: choice_id or None} after checking each answer belongs to `defn`.

    Raises:
        InvalidAnswer: unknown question, a choice from another question, or a question answered twice.
    """
    choices_by_question = {q.id: {c.id for c in q.choices} for _, q in defn.questions()}
    chosen: Dict[int, Optional[int]] = {}
    for a in answers:
        valid_choices = choices_by_question.get(a.question_id)
        if valid_choices is None:
            raise InvalidAnswer(f"Question {a.question_id} is not part of this assessment")
        if a.question_id in chosen:
            raise InvalidAnswer(f"Question {a.question_id} is answered more than once")
        if a.choice_id is not None and a.choice_id not in valid_choices:
            raise InvalidAnswer(f"Choice {a.choice_id} does not belong to question {a.question_id}")
        chosen[a.question_id] = a.choice_id
    return chosen


def grade(defn: AssessmentDefinition, answers: Iterable[Answer]) -> Grade:
    """Grade `answers` against the catalog answer key.

    Every question of `defn` yields exactly one record, in catalog order; a
    question with no answer is recorded with `choice_id=None` and counts as wrong.
    """
    key = build_answer_key(defn)
    chosen = normalize_answers(defn, answers)
    records = []
    for _, q in defn.questions():
        choice_id = chosen.get(q.id)
        records.append(GradedAnswer(q.id, choice_id, choice_id is not None and choice_id == key[q.id]))
    return Grade(
        score=sum(1 for r in records if r.is_correct),
        total_questions=len(records),
        answered_questions=sum(1 for r in records if r.choice_id is not None),
        records=records,
    )


def percentage(score: int, total: int) -> float:
    """Return `score / total` as a percentage rounded to 2 decimals; 0.0 for an empty assessment."""
    if total <= 0:
        return 0.0
    return round(score / total * 100, 2)
