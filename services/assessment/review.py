"""Review projection: rebuild the graded breakdown of a stored submission.

Pure read and transform. Output order follows the catalog (passage, then
question, then choice order), so the same stored state always renders the same review.
"""

from packages.schemas import assessment as schemas
from .catalog import load_assessment, load_header
from .context import EngineContext
from .errors import SubmissionNotFound
from .repo import get_submission, list_submissions
from .scorer import percentage


async def get_review(ctx: EngineContext, assessment_id: int, student_id: str) -> schemas.Review:
    """Return the per-question review of the student's submission.

    Raises:
        AssessmentNotFound: unknown assessment.
        SubmissionNotFound: the student has not submitted it.
    """
    async with ctx.sessions() as session:
        defn = await load_assessment(session, assessment_id)
        submission = await get_submission(session, assessment_id, student_id, with_answers=True)
    if submission is None:
        raise SubmissionNotFound()

    records = {a.question_id: a for a in submission.answers}
    answers = []
    for passage, question in defn.questions():
        record = records.get(question.id)
        if record is None:
            continue
        selected = next((c for c in question.choices if c.id == record.choice_id), None)
        answers.append(
            schemas.ReviewAnswer(
                question_id=question.id,
                question_text=question.text,
                passage=schemas.PassageSummary(
                    id=passage.id,
                    title=passage.title,
                    content=passage.content,
                    image_url=passage.image_url,
                    order=passage.order,
                ),
                selected_choice_id=record.choice_id,
                selected_choice_text=selected.text if selected else None,
                is_correct=record.is_correct,
                all_choices=[
                    schemas.ReviewChoice(
                        id=c.id,
                        text=c.text,
                        is_correct=c.is_correct,
                        is_selected=c.id == record.choice_id,
                    )
                    for c in question.choices
                ],
            )
        )

    return schemas.Review(
        id=submission.id,
        assessment_id=defn.id,
        assessment_title=defn.title,
        score=submission.score,
        total_questions=submission.total_questions,
        percentage=percentage(submission.score, submission.total_questions),
        submitted_at=submission.submitted_at,
        answers=answers,
    )


async def get_assessment_submissions(ctx: EngineContext, assessment_id: int) -> schemas.AssessmentSubmissions:
    """Staff view: every submission of an assessment, newest first."""
    async with ctx.sessions() as session:
        header = await load_header(session, assessment_id)
        rows = await list_submissions(session, assessment_id)
    return schemas.AssessmentSubmissions(
        assessment=schemas.AssessmentRef(id=header.id, title=header.title),
        submissions=[
            schemas.SubmissionSummary(
                id=r.id,
                student_id=r.student_id,
                score=r.score,
                total_questions=r.total_questions,
                percentage=percentage(r.score, r.total_questions),
                submitted_at=r.submitted_at,
            )
            for r in rows
        ],
        total_submissions=len(rows),
    )
