# services/assessment/routes.py
from functools import lru_cache

from fastapi import APIRouter, Depends, status

from packages.common.auth import User
from packages.common.config import get_settings
from packages.common.events import get_event_bus
from packages.common.rbac import require_admin, require_student
from packages.schemas.assessment import (
    AssessmentSubmissions,
    AttemptStatus,
    ErrorBody,
    Review,
    StartedAttempt,
    SubmissionResult,
    SubmitAnswers,
)
from .attempts import start_attempt
from .context import EngineContext, build_context
from .grading import submit
from .repo import get_database
from .review import get_assessment_submissions, get_review
from .status import get_status

router = APIRouter(tags=["assessment"])

_errors = {code: {"model": ErrorBody} for code in (400, 403, 404)}


@lru_cache()
def get_engine_context() -> EngineContext:
    """Engine collaborators built once from settings; overridden in tests."""
    return build_context(get_database().sessions, get_settings(), events=get_event_bus())


@router.post("/assessments/{assessment_id}/attempt", response_model=StartedAttempt, responses=_errors)
async def start(
    assessment_id: int,
    user: User = Depends(require_student),
    ctx: EngineContext = Depends(get_engine_context),
) -> StartedAttempt:
    """Start a timed attempt, or fetch an untimed assessment, without answer keys."""
    return await start_attempt(ctx, assessment_id, user.sub)


@router.get(
    "/assessments/{assessment_id}/attempt",
    response_model=AttemptStatus,
    response_model_exclude_none=True,
    responses=_errors,
)
async def attempt_status(
    assessment_id: int,
    user: User = Depends(require_student),
    ctx: EngineContext = Depends(get_engine_context),
) -> AttemptStatus:
    """Poll the attempt state and, for a running timed attempt, the time left."""
    return await get_status(ctx, assessment_id, user.sub)


@router.post(
    "/assessments/{assessment_id}/submit",
    response_model=SubmissionResult,
    status_code=status.HTTP_201_CREATED,
    responses=_errors,
)
async def submit_answers(
    assessment_id: int,
    body: SubmitAnswers,
    user: User = Depends(require_student),
    ctx: EngineContext = Depends(get_engine_context),
) -> SubmissionResult:
    """Grade and store the answers; only the first submission per student is accepted."""
    return await submit(ctx, assessment_id, user.sub, body.answers)


@router.get("/assessments/{assessment_id}/submission", response_model=Review, responses=_errors)
async def submission_review(
    assessment_id: int,
    user: User = Depends(require_student),
    ctx: EngineContext = Depends(get_engine_context),
) -> Review:
    """Per-question review of the student's own submission, correct answers included."""
    return await get_review(ctx, assessment_id, user.sub)


@router.get(
    "/admin/assessments/{assessment_id}/submissions",
    response_model=AssessmentSubmissions,
    responses=_errors,
)
async def assessment_submissions(
    assessment_id: int,
    user: User = Depends(require_admin),
    ctx: EngineContext = Depends(get_engine_context),
) -> AssessmentSubmissions:
    """All submissions of an assessment, newest first."""
    return await get_assessment_submissions(ctx, assessment_id)
