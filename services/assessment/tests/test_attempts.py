"""Tests for starting timed and untimed assessments."""

import pytest
from sqlalchemy import func, select

from services.assessment.attempts import start_attempt
from services.assessment.errors import AlreadyStarted, AlreadySubmitted, AssessmentNotFound, NotEnrolled
from services.assessment.grading import submit
from services.assessment.models import AttemptMarker


async def _marker_count(db) -> int:
    async with db.sessions() as session:
        return await session.scalar(select(func.count()).select_from(AttemptMarker))


@pytest.mark.asyncio
async def test_timed_start_persists_marker_and_hides_answers(ctx, db, clock, timed, student) -> None:
    started = await start_attempt(ctx, timed.id, student)

    assert started.started_at == clock.now()
    assert started.message == "You have 30 minutes to complete this assessment"
    assert started.assessment.kind == "timed"
    assert started.assessment.total_questions == 4
    assert "isCorrect" not in started.model_dump_json(by_alias=True)
    assert await _marker_count(db) == 1


@pytest.mark.asyncio
async def test_timed_second_start_is_refused(ctx, db, timed, student) -> None:
    await start_attempt(ctx, timed.id, student)
    with pytest.raises(AlreadyStarted):
        await start_attempt(ctx, timed.id, student)
    assert await _marker_count(db) == 1


@pytest.mark.asyncio
async def test_untimed_start_is_idempotent_and_creates_no_marker(ctx, db, homework, student) -> None:
    first = await start_attempt(ctx, homework.id, student)
    second = await start_attempt(ctx, homework.id, student)

    assert first == second
    assert first.started_at is None
    assert first.message == "Take your time to complete this assessment"
    assert await _marker_count(db) == 0


@pytest.mark.asyncio
async def test_start_after_submission_reports_already_submitted(ctx, timed, homework, student) -> None:
    await start_attempt(ctx, timed.id, student)
    await submit(ctx, timed.id, student, [])
    await submit(ctx, homework.id, student, [])

    with pytest.raises(AlreadySubmitted):
        await start_attempt(ctx, timed.id, student)
    with pytest.raises(AlreadySubmitted):
        await start_attempt(ctx, homework.id, student)


@pytest.mark.asyncio
async def test_unknown_assessment(ctx, student) -> None:
    with pytest.raises(AssessmentNotFound):
        await start_attempt(ctx, 4040, student)


@pytest.mark.asyncio
async def test_enrollment_is_required(ctx, timed, enroll_student) -> None:
    with pytest.raises(NotEnrolled):
        await start_attempt(ctx, timed.id, "outsider")

    await enroll_student("lapsed", active=False)
    with pytest.raises(NotEnrolled):
        await start_attempt(ctx, timed.id, "lapsed")


@pytest.mark.asyncio
async def test_enrollment_in_another_course_does_not_count(ctx, student, make_assessment, enroll_student) -> None:
    other = await make_assessment(duration=15, course_id=2)
    await enroll_student(student, course_id=1)
    with pytest.raises(NotEnrolled):
        await start_attempt(ctx, other.id, student)
