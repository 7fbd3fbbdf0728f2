"""Attempt guard: starting an assessment.

Timed assessments get a persisted start marker, created at most once per
(assessment, student) by the `attempt_markers` unique constraint. Untimed
homework has no marker; starting it just serves the sanitized definition again.
"""

import logging

from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from packages.schemas.assessment import StartedAttempt
from .catalog import Timed, load_assessment, sanitize
from .context import EngineContext
from .errors import AlreadyStarted, AlreadySubmitted, NotEnrolled
from .metrics import mark_started
from .models import ATTEMPT_UNIQUE, AttemptMarker
from .repo import get_submission, is_unique_violation, run_transaction

log = logging.getLogger(__name__)


async def ensure_enrolled(ctx: EngineContext, assessment_id: int, student_id: str) -> None:
    if not await ctx.enrollment.is_enrolled(student_id, assessment_id):
        log.warning("not enrolled", extra={"assessment_id": assessment_id, "student_id": student_id})
        raise NotEnrolled()


async def start_attempt(ctx: EngineContext, assessment_id: int, student_id: str) -> StartedAttempt:
    """Start (timed) or open (untimed) an assessment for a student.

    Raises:
        AssessmentNotFound: unknown assessment.
        NotEnrolled: the student has no active enrollment covering it.
        AlreadySubmitted: the student already submitted it.
        AlreadyStarted: a timed attempt already exists, including one created by a racing request.
    """
    async with ctx.sessions() as session:
        defn = await load_assessment(session, assessment_id)
    await ensure_enrolled(ctx, assessment_id, student_id)
    async with ctx.sessions() as session:
        if await get_submission(session, assessment_id, student_id) is not None:
            raise AlreadySubmitted()

    view = sanitize(defn)
    if not isinstance(defn.kind, Timed):
        mark_started(defn.kind_name)
        return StartedAttempt(assessment=view, message="Take your time to complete this assessment")

    started_at = ctx.clock.now()

    async def insert_marker(session: AsyncSession) -> None:
        session.add(AttemptMarker(assessment_id=assessment_id, student_id=student_id, started_at=started_at))
        await session.flush()

    try:
        await run_transaction(ctx.sessions, insert_marker, ctx.tx_retries)
    except IntegrityError as exc:
        if not is_unique_violation(exc, ATTEMPT_UNIQUE, "attempt_markers"):
            raise
        log.warning("attempt already started", extra={"assessment_id": assessment_id, "student_id": student_id})
        raise AlreadyStarted() from None

    mark_started(defn.kind_name)
    log.info(
        "attempt started",
        extra={"assessment_id": assessment_id, "student_id": student_id, "duration_minutes": defn.kind.duration_minutes},
    )
    ctx.publish(
        "assessment.attempt_started",
        f"{assessment_id}:{student_id}",
        {"assessment_id": assessment_id, "student_id": student_id, "started_at": started_at.isoformat()},
    )
    return StartedAttempt(
        assessment=view,
        started_at=started_at,
        message=f"You have {defn.kind.duration_minutes} minutes to complete this assessment",
    )
