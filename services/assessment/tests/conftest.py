"""Shared fixtures for the Assessment service tests.

Every test gets its own file-backed SQLite database, a frozen clock, and an
app whose auth and engine dependencies are overridden.
"""

import os
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import List, Optional

os.environ.setdefault("ENV", "test")
os.environ.setdefault("DATABASE_DSN", "sqlite+aiosqlite:///./unused.db")
os.environ.setdefault("JWT_PUBLIC_KEY", "unused")
os.environ.setdefault("OIDC_ISSUER", "https://issuer.test")
os.environ.setdefault("OIDC_AUDIENCE", "assessment-engine")

import pytest
import pytest_asyncio
from fastapi import Request
from httpx import ASGITransport, AsyncClient

from packages.common.auth import User, get_current_user
from packages.common.time_utils import Clock
from services.assessment.app import app
from services.assessment.context import EngineContext
from services.assessment.enrollment import SqlEnrollmentGateway
from services.assessment.models import Assessment, Choice, CourseAssessment, Enrollment, Passage, Question
from services.assessment.repo import Database
from services.assessment.routes import get_engine_context

LETTERS = "ABCD"


class FrozenClock(Clock):
    def __init__(self, at: datetime) -> None:
        self.at = at

    def now(self) -> datetime:
        return self.at

    def advance(self, **delta) -> None:
        self.at = self.at + timedelta(**delta)


@dataclass
class SeededAssessment:
    id: int
    questions: List[int]
    choices: List[List[int]]
    key: str

    def choice(self, question_index: int, letter: str) -> int:
        """Id of choice `letter` (A-D) of the n-th question."""
        return self.choices[question_index][LETTERS.index(letter)]

    def answer(self, question_index: int, letter: Optional[str]) -> dict:
        return {
            "questionId": self.questions[question_index],
            "choiceId": None if letter is None else self.choice(question_index, letter),
        }


async def seed_assessment(
    db: Database,
    *,
    key: str = "ABCD",
    passage_sizes: tuple = (2, 2),
    duration: Optional[int] = None,
    course_id: int = 1,
    title: str = "Reading Practice",
) -> SeededAssessment:
    """Create an assessment whose question i has `key[i]` as its correct letter."""
    assert len(key) == sum(passage_sizes)
    questions, choices = [], []
    async with db.sessions() as session:
        async with session.begin():
            a = Assessment(title=title, instructions="Read each passage carefully.", duration_minutes=duration)
            session.add(a)
            await session.flush()
            session.add(CourseAssessment(course_id=course_id, assessment_id=a.id))
            qi = 0
            for p_order, size in enumerate(passage_sizes):
                p = Passage(assessment_id=a.id, title=f"Passage {p_order + 1}", content="Lorem ipsum.", position=p_order)
                session.add(p)
                await session.flush()
                for q_order in range(size):
                    q = Question(passage_id=p.id, text=f"Question {qi + 1}", position=q_order)
                    session.add(q)
                    await session.flush()
                    row = []
                    for c_order, letter in enumerate(LETTERS):
                        c = Choice(
                            question_id=q.id,
                            text=f"Option {letter}",
                            position=c_order,
                            is_correct=letter == key[qi],
                        )
                        session.add(c)
                        await session.flush()
                        row.append(c.id)
                    questions.append(q.id)
                    choices.append(row)
                    qi += 1
            aid = a.id
    return SeededAssessment(id=aid, questions=questions, choices=choices, key=key)


async def enroll(db: Database, student_id: str, course_id: int = 1, active: bool = True) -> None:
    async with db.sessions() as session:
        async with session.begin():
            await session.merge(Enrollment(course_id=course_id, student_id=student_id, is_active=active))


@pytest_asyncio.fixture
async def db(tmp_path):
    database = Database(f"sqlite+aiosqlite:///{tmp_path / 'engine.db'}")
    await database.create_all()
    yield database
    await database.dispose()


@pytest.fixture
def clock() -> FrozenClock:
    return FrozenClock(datetime(2026, 3, 2, 9, 0, tzinfo=timezone.utc))


@pytest.fixture
def ctx(db, clock) -> EngineContext:
    return EngineContext(sessions=db.sessions, enrollment=SqlEnrollmentGateway(db.sessions), clock=clock)


@pytest.fixture
def student() -> str:
    return "student-1"


@pytest_asyncio.fixture
async def timed(db, student) -> SeededAssessment:
    seeded = await seed_assessment(db, duration=30, title="Timed Reading Test")
    await enroll(db, student)
    return seeded


@pytest_asyncio.fixture
async def homework(db, student) -> SeededAssessment:
    seeded = await seed_assessment(db, key="BCA", passage_sizes=(3,), title="Homework 1")
    await enroll(db, student)
    return seeded


def _header_user(request: Request) -> User:
    """Stand-in for JWT auth: identity comes from X-Test-* headers."""
    return User(
        sub=request.headers.get("X-Test-User", "student-1"),
        roles=request.headers.get("X-Test-Roles", "student").split(","),
    )


@pytest_asyncio.fixture
async def client(ctx):
    app.dependency_overrides[get_engine_context] = lambda: ctx
    app.dependency_overrides[get_current_user] = _header_user
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        yield ac
    app.dependency_overrides.clear()


@pytest.fixture
def make_assessment(db):
    async def make(**kwargs) -> SeededAssessment:
        return await seed_assessment(db, **kwargs)
    return make


@pytest.fixture
def enroll_student(db):
    async def do(student_id: str, course_id: int = 1, active: bool = True) -> None:
        await enroll(db, student_id, course_id=course_id, active=active)
    return do
