"""Enrollment collaborator: may this student take this assessment?

Enrollment requests and approvals live elsewhere; the engine only asks whether
the student holds an active enrollment in some course the assessment is assigned to.
"""

from typing import Protocol

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from .models import CourseAssessment, Enrollment


class EnrollmentGateway(Protocol):
    async def is_enrolled(self, student_id: str, assessment_id: int) -> bool: ...


class SqlEnrollmentGateway:
    """Answers enrollment questions from the shared `enrollments` / `course_assessments` tables."""

    def __init__(self, sessions: async_sessionmaker[AsyncSession]) -> None:
        self._sessions = sessions

    async def is_enrolled(self, student_id: str, assessment_id: int) -> bool:
        stmt = (
            select(Enrollment.course_id)
            .join(CourseAssessment, CourseAssessment.course_id == Enrollment.course_id)
            .where(
                CourseAssessment.assessment_id == assessment_id,
                Enrollment.student_id == student_id,
                Enrollment.is_active.is_(True),
            )
            .limit(1)
        )
        async with self._sessions() as session:
            res = await session.execute(stmt)
            return res.first() is not None
