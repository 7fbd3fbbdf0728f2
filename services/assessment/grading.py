"""Grading engine: turn a submitted answer set into the one immutable Submission.

The answer key always comes from the catalog. The submission row and one
answer record per question are written in a single transaction; the
`submissions` unique constraint is what makes a second (or racing) submit fail.
"""

import datetime as dt
import logging

from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from packages.schemas.assessment import Answer, SubmissionResult
from .attempts import ensure_enrolled
from .catalog import AssessmentDefinition, Timed, load_assessment
from .context import EngineContext
from .errors import AlreadySubmitted, AttemptNotStarted, TimeExpired
from .metrics import mark_submitted
from .models import SUBMISSION_UNIQUE, AnswerRecord, Submission
from .repo import get_marker, get_submission, is_unique_violation, run_transaction
from .scorer import Grade, grade, percentage
from .status import remaining_ms

log = logging.getLogger(__name__)


async def _check_timer(
    ctx: EngineContext, session: AsyncSession, defn: AssessmentDefinition, student_id: str, now: dt.datetime
) -> None:
    """Timed assessments must have been started; late submits obey the configured policy."""
    marker = await get_marker(session, defn.id, student_id)
    if marker is None:
        raise AttemptNotStarted()
    left = remaining_ms(marker.started_at, defn.kind.duration_minutes, now)
    if left > 0:
        return
    late_by_ms = -left
    if ctx.late_policy == "reject" and late_by_ms > ctx.late_grace_seconds * 1000:
        log.warning(
            "late submission rejected",
            extra={"assessment_id": defn.id, "student_id": student_id, "late_by_ms": late_by_ms},
        )
        raise TimeExpired()
    log.info(
        "late submission accepted",
        extra={"assessment_id": defn.id, "student_id": student_id, "late_by_ms": late_by_ms},
    )


async def submit(
    ctx: EngineContext, assessment_id: int, student_id: str, answers: list[Answer]
) -> SubmissionResult:
    """Grade and persist a student's answers.

    Args:
        ctx: Engine collaborators.
        assessment_id: Assessment being submitted.
        student_id: Submitting student.
        answers: Possibly empty or partial list of {question_id, choice_id}.

    Returns:
        SubmissionResult with score out of the assessment's full question count.

    Raises:
        AssessmentNotFound, NotEnrolled, AlreadySubmitted, AttemptNotStarted,
        TimeExpired (only under the "reject" late policy), InvalidAnswer.
        They are checked in that order; a racing duplicate that passes the
        early checks still ends in AlreadySubmitted at insert time.
    """
    now = ctx.clock.now()
    async with ctx.sessions() as session:
        defn = await load_assessment(session, assessment_id)
    await ensure_enrolled(ctx, assessment_id, student_id)
    # A finished attempt is reported as such whatever the payload holds.
    async with ctx.sessions() as session:
        if await get_submission(session, assessment_id, student_id) is not None:
            raise AlreadySubmitted()
        if isinstance(defn.kind, Timed):
            await _check_timer(ctx, session, defn, student_id, now)
    result: Grade = grade(defn, answers)

    async def persist(session: AsyncSession) -> Submission:
        row = Submission(
            assessment_id=assessment_id,
            student_id=student_id,
            score=result.score,
            total_questions=result.total_questions,
            submitted_at=now,
        )
        session.add(row)
        await session.flush()
        session.add_all(
            AnswerRecord(
                submission_id=row.id,
                question_id=r.question_id,
                choice_id=r.choice_id,
                is_correct=r.is_correct,
            )
            for r in result.records
        )
        await session.flush()
        return row

    try:
        row = await run_transaction(ctx.sessions, persist, ctx.tx_retries)
    except IntegrityError as exc:
        if not is_unique_violation(exc, SUBMISSION_UNIQUE, "submissions"):
            raise
        log.warning("duplicate submission refused", extra={"assessment_id": assessment_id, "student_id": student_id})
        raise AlreadySubmitted() from None

    pct = percentage(result.score, result.total_questions)
    mark_submitted(defn.kind_name, result.score, result.total_questions)
    log.info(
        "submission graded",
        extra={
            "assessment_id": assessment_id,
            "student_id": student_id,
            "submission_id": row.id,
            "score": result.score,
            "total_questions": result.total_questions,
        },
    )
    ctx.publish(
        "assessment.submitted",
        f"{assessment_id}:{student_id}",
        {
            "assessment_id": assessment_id,
            "student_id": student_id,
            "submission_id": row.id,
            "score": result.score,
            "total_questions": result.total_questions,
        },
    )
    return SubmissionResult(
        submission_id=row.id,
        score=result.score,
        total_questions=result.total_questions,
        answered_questions=result.answered_questions,
        percentage=pct,
        submitted_at=now,
        message=f"You scored {result.score} out of {result.total_questions} ({pct:.2f}%)",
    )
