"""Status resolver: where is a student in an assessment's lifecycle?

Read-only. Remaining time is recomputed from the persisted start marker on
every call; expiry is reported, never acted on.
"""

import datetime as dt

from packages.common.time_utils import MINUTE_MS, ms_between
from packages.schemas.assessment import AttemptStatus
from .catalog import Timed, kind_for, load_header
from .context import EngineContext
from .repo import get_marker, get_submission


def remaining_ms(started_at: dt.datetime, duration_minutes: int, now: dt.datetime) -> int:
    """Milliseconds left before `started_at + duration`; zero or negative once expired."""
    return duration_minutes * MINUTE_MS - ms_between(started_at, now)


async def get_status(ctx: EngineContext, assessment_id: int, student_id: str) -> AttemptStatus:
    """Derive `not_started`, `in_progress` (with timer metadata) or `submitted`.

    Raises:
        AssessmentNotFound: unknown assessment.
    """
    async with ctx.sessions() as session:
        header = await load_header(session, assessment_id)
        submission = await get_submission(session, assessment_id, student_id)
        kind = kind_for(header.duration_minutes)
        timed = isinstance(kind, Timed)
        marker = None
        if submission is None and timed:
            marker = await get_marker(session, assessment_id, student_id)

    base = dict(
        assessment_id=header.id,
        title=header.title,
        kind="timed" if timed else "untimed",
        duration_minutes=kind.duration_minutes if timed else None,
    )
    if submission is not None:
        return AttemptStatus(
            status="submitted",
            submission_id=submission.id,
            score=submission.score,
            total_questions=submission.total_questions,
            submitted_at=submission.submitted_at,
            **base,
        )
    if marker is None:
        return AttemptStatus(status="not_started", **base)

    left = remaining_ms(marker.started_at, kind.duration_minutes, ctx.clock.now())
    return AttemptStatus(
        status="in_progress",
        started_at=marker.started_at,
        remaining_time_ms=max(left, 0),
        time_expired=left <= 0,
        **base,
    )
