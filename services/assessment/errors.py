"""Typed failures raised by the attempt/grading engine.

Every error carries the HTTP status and machine-readable `code` it maps to, so
the API layer renders them uniformly and clients can tell "already started"
apart from "already submitted" apart from a generic failure.
"""


class AssessmentError(Exception):
    status_code: int = 400
    code: str = "assessment_error"
    default_message: str = "Assessment request failed"

    def __init__(self, message: str | None = None) -> None:
        self.message = message or self.default_message
        super().__init__(self.message)


class AssessmentNotFound(AssessmentError):
    status_code = 404
    code = "assessment_not_found"
    default_message = "Assessment not found"


class SubmissionNotFound(AssessmentError):
    status_code = 404
    code = "submission_not_found"
    default_message = "Submission not found. You have not submitted this assessment yet."


class NotEnrolled(AssessmentError):
    status_code = 403
    code = "not_enrolled"
    default_message = "You are not enrolled in a course that contains this assessment"


class AlreadyStarted(AssessmentError):
    code = "already_started"
    default_message = "You have already started this assessment. Each assessment can only be attempted once."


class AlreadySubmitted(AssessmentError):
    code = "already_submitted"
    default_message = "You have already submitted this assessment. Each assessment can only be attempted once."


class AttemptNotStarted(AssessmentError):
    code = "attempt_not_started"
    default_message = "Start this timed assessment before submitting answers"


class TimeExpired(AssessmentError):
    code = "time_expired"
    default_message = "The time allowed for this assessment has expired"


class InvalidAnswer(AssessmentError):
    code = "invalid_answer"
    default_message = "Submitted answers do not match this assessment"


class CatalogIntegrityError(AssessmentError):
    """The stored assessment definition breaks the one-correct-choice rule."""

    status_code = 500
    code = "assessment_misconfigured"
    default_message = "This assessment is misconfigured; please contact your instructor"
