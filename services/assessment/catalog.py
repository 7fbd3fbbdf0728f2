"""Read adapter over the authored assessment catalog.

Loads an assessment tree into immutable definitions and renders the
student-facing (sanitized) view. Tests and homework share one shape; the
difference is carried by `kind`, either `Timed(duration_minutes)` or `Untimed()`.
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Iterator, Union

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from packages.common.time_utils import MINUTE_MS
from packages.schemas import assessment as schemas
from .errors import AssessmentNotFound
from .models import Assessment, Passage, Question


@dataclass(frozen=True)
class Timed:
    duration_minutes: int

    @property
    def duration_ms(self) -> int:
        return self.duration_minutes * MINUTE_MS


@dataclass(frozen=True)
class Untimed:
    pass


AssessmentKind = Union[Timed, Untimed]


@dataclass(frozen=True)
class ChoiceDef:
    id: int
    text: str
    order: int
    is_correct: bool


@dataclass(frozen=True)
class QuestionDef:
    id: int
    text: str
    order: int
    choices: tuple[ChoiceDef, ...]


@dataclass(frozen=True)
class PassageDef:
    id: int
    title: str | None
    content: str
    image_url: str | None
    order: int
    questions: tuple[QuestionDef, ...]


@dataclass(frozen=True)
class AssessmentDefinition:
    id: int
    title: str
    instructions: str | None
    kind: AssessmentKind
    passages: tuple[PassageDef, ...]

    @property
    def is_timed(self) -> bool:
        return isinstance(self.kind, Timed)

    @property
    def kind_name(self) -> str:
        return "timed" if self.is_timed else "untimed"

    @property
    def duration_minutes(self) -> int | None:
        return self.kind.duration_minutes if isinstance(self.kind, Timed) else None

    def questions(self) -> Iterator[tuple[PassageDef, QuestionDef]]:
        """Yield every question with its passage, in catalog order."""
        for passage in self.passages:
            for question in passage.questions:
                yield passage, question

    @property
    def total_questions(self) -> int:
        return sum(len(p.questions) for p in self.passages)


def kind_for(duration_minutes: int | None) -> AssessmentKind:
    """A positive duration makes a timed test; anything else is untimed homework."""
    if duration_minutes and duration_minutes > 0:
        return Timed(duration_minutes)
    return Untimed()


def _to_definition(row: Assessment) -> AssessmentDefinition:
    return AssessmentDefinition(
        id=row.id,
        title=row.title,
        instructions=row.instructions,
        kind=kind_for(row.duration_minutes),
        passages=tuple(
            PassageDef(
                id=p.id,
                title=p.title,
                content=p.content,
                image_url=p.image_url,
                order=p.position,
                questions=tuple(
                    QuestionDef(
                        id=q.id,
                        text=q.text,
                        order=q.position,
                        choices=tuple(
                            ChoiceDef(id=c.id, text=c.text, order=c.position, is_correct=c.is_correct)
                            for c in q.choices
                        ),
                    )
                    for q in p.questions
                ),
            )
            for p in row.passages
        ),
    )


async def load_assessment(session: AsyncSession, assessment_id: int) -> AssessmentDefinition:
    """Fetch the full assessment tree, ordered by passage, question and choice position.

    Raises:
        AssessmentNotFound: no assessment has this id.
    """
    res = await session.execute(
        select(Assessment)
        .where(Assessment.id == assessment_id)
        .options(
            selectinload(Assessment.passages)
            .selectinload(Passage.questions)
            .selectinload(Question.choices)
        )
    )
    row = res.scalar_one_or_none()
    if row is None:
        raise AssessmentNotFound()
    return _to_definition(row)


async def load_header(session: AsyncSession, assessment_id: int) -> Assessment:
    """Fetch only the assessment row (title, duration) without its tree."""
    row = await session.get(Assessment, assessment_id)
    if row is None:
        raise AssessmentNotFound()
    return row


def sanitize(defn: AssessmentDefinition) -> schemas.Assessment:
    """Render the student view of `defn` with every correctness flag removed."""
    return schemas.Assessment(
        id=defn.id,
        title=defn.title,
        instructions=defn.instructions,
        kind=defn.kind_name,
        duration_minutes=defn.duration_minutes,
        total_questions=defn.total_questions,
        passages=[
            schemas.Passage(
                id=p.id,
                title=p.title,
                content=p.content,
                image_url=p.image_url,
                order=p.order,
                questions=[
                    schemas.Question(
                        id=q.id,
                        text=q.text,
                        order=q.order,
                        choices=[schemas.Choice(id=c.id, text=c.text, order=c.order) for c in q.choices],
                    )
                    for q in p.questions
                ],
            )
            for p in defn.passages
        ],
    )
