"""Assessment schemas: sanitized assessment views, attempt status, submissions, and reviews.

Field names are snake_case in Python and camelCase on the wire.
Nothing served before a submission exists carries `is_correct` on a choice.
"""

from datetime import datetime
from typing import List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

AttemptState = Literal["not_started", "in_progress", "submitted"]
AssessmentKindName = Literal["timed", "untimed"]


class CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class Choice(CamelModel):
    """A selectable choice as shown while the assessment is being taken."""
    id: int
    text: str
    order: int


class Question(CamelModel):
    id: int
    text: str
    order: int
    choices: List[Choice]


class Passage(CamelModel):
    """A reading passage and the questions attached to it."""
    id: int
    title: Optional[str] = None
    content: str
    image_url: Optional[str] = None
    order: int
    questions: List[Question]


class Assessment(CamelModel):
    """Student-facing assessment; correctness is stripped."""
    id: int
    title: str
    instructions: Optional[str] = None
    kind: AssessmentKindName
    duration_minutes: Optional[int] = None
    total_questions: int
    passages: List[Passage]


class StartedAttempt(CamelModel):
    assessment: Assessment
    started_at: Optional[datetime] = None
    message: str


class AttemptStatus(CamelModel):
    """Derived state of one (assessment, student) pair."""
    status: AttemptState
    assessment_id: int
    title: str
    kind: AssessmentKindName
    duration_minutes: Optional[int] = None
    started_at: Optional[datetime] = None
    remaining_time_ms: Optional[int] = None
    time_expired: Optional[bool] = None
    submission_id: Optional[int] = None
    score: Optional[int] = None
    total_questions: Optional[int] = None
    submitted_at: Optional[datetime] = None


class Answer(CamelModel):
    """One submitted answer; `choice_id` None means the question was skipped."""
    question_id: int
    choice_id: Optional[int] = None


class SubmitAnswers(CamelModel):
    answers: List[Answer] = Field(default_factory=list)


class SubmissionResult(CamelModel):
    submission_id: int
    score: int
    total_questions: int
    answered_questions: int
    percentage: float
    submitted_at: datetime
    message: str


class PassageSummary(CamelModel):
    id: int
    title: Optional[str] = None
    content: str
    image_url: Optional[str] = None
    order: int


class ReviewChoice(CamelModel):
    id: int
    text: str
    is_correct: bool
    is_selected: bool


class ReviewAnswer(CamelModel):
    question_id: int
    question_text: str
    passage: PassageSummary
    selected_choice_id: Optional[int] = None
    selected_choice_text: Optional[str] = None
    is_correct: bool
    all_choices: List[ReviewChoice]


class Review(CamelModel):
    """Graded per-question breakdown of a submission."""
    id: int
    assessment_id: int
    assessment_title: str
    score: int
    total_questions: int
    percentage: float
    submitted_at: datetime
    answers: List[ReviewAnswer]


class SubmissionSummary(CamelModel):
    id: int
    student_id: str
    score: int
    total_questions: int
    percentage: float
    submitted_at: datetime


class AssessmentRef(CamelModel):
    id: int
    title: str


class AssessmentSubmissions(CamelModel):
    assessment: AssessmentRef
    submissions: List[SubmissionSummary]
    total_submissions: int


class ErrorBody(BaseModel):
    detail: str
    code: str
