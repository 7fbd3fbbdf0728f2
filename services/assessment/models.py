"""SQLAlchemy models for the Assessment service.

Catalog tables (read-only to this service):
- Assessment / Passage / Question / Choice: the authored assessment tree.
- CourseAssessment / Enrollment: which course carries an assessment and who is enrolled.

Attempt lifecycle tables (append-only):
- AttemptMarker: start timestamp of a timed attempt, one per (assessment, student).
- Submission / AnswerRecord: the graded, immutable result, one per (assessment, student).
"""

import datetime as dt

from sqlalchemy import Boolean, ForeignKey, Integer, String, Text, UniqueConstraint, DateTime
from sqlalchemy.orm import declarative_base, relationship, Mapped, mapped_column
from sqlalchemy.types import TypeDecorator

from packages.common.auth import MAX_SUBJECT_LENGTH

Base = declarative_base()

ATTEMPT_UNIQUE = "uq_attempt_markers_assessment_student"
SUBMISSION_UNIQUE = "uq_submissions_assessment_student"


class UTCDateTime(TypeDecorator):
    """Stores naive UTC, returns aware UTC; keeps SQLite and Postgres consistent."""

    impl = DateTime
    cache_ok = True

    def process_bind_param(self, value, dialect):
        if value is None:
            return None
        if value.tzinfo is None:
            raise ValueError("naive datetime passed to UTCDateTime column")
        return value.astimezone(dt.timezone.utc).replace(tzinfo=None)

    def process_result_value(self, value, dialect):
        if value is None:
            return None
        return value.replace(tzinfo=dt.timezone.utc)


class Assessment(Base):
    """A test (with `duration_minutes`) or a homework (without)."""

    __tablename__ = "assessments"
    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    title: Mapped[str] = mapped_column(String(255))
    instructions: Mapped[str | None] = mapped_column(Text, nullable=True)
    duration_minutes: Mapped[int | None] = mapped_column(Integer, nullable=True)
    passages = relationship("Passage", back_populates="assessment", order_by=lambda: [Passage.position, Passage.id])


class Passage(Base):
    __tablename__ = "passages"
    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    assessment_id: Mapped[int] = mapped_column(ForeignKey("assessments.id"), index=True)
    title: Mapped[str | None] = mapped_column(String(255), nullable=True)
    content: Mapped[str] = mapped_column(Text)
    image_url: Mapped[str | None] = mapped_column(String(1024), nullable=True)
    position: Mapped[int] = mapped_column(Integer, default=0)
    assessment = relationship("Assessment", back_populates="passages")
    questions = relationship("Question", back_populates="passage", order_by=lambda: [Question.position, Question.id])


class Question(Base):
    __tablename__ = "questions"
    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    passage_id: Mapped[int] = mapped_column(ForeignKey("passages.id"), index=True)
    text: Mapped[str] = mapped_column(Text)
    position: Mapped[int] = mapped_column(Integer, default=0)
    passage = relationship("Passage", back_populates="questions")
    choices = relationship("Choice", back_populates="question", order_by=lambda: [Choice.position, Choice.id])


class Choice(Base):
    __tablename__ = "choices"
    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    question_id: Mapped[int] = mapped_column(ForeignKey("questions.id"), index=True)
    text: Mapped[str] = mapped_column(Text)
    position: Mapped[int] = mapped_column(Integer, default=0)
    is_correct: Mapped[bool] = mapped_column(Boolean, default=False)
    question = relationship("Question", back_populates="choices")


class CourseAssessment(Base):
    __tablename__ = "course_assessments"
    course_id: Mapped[int] = mapped_column(Integer, primary_key=True)
    assessment_id: Mapped[int] = mapped_column(ForeignKey("assessments.id"), primary_key=True)


class Enrollment(Base):
    __tablename__ = "enrollments"
    course_id: Mapped[int] = mapped_column(Integer, primary_key=True)
    student_id: Mapped[str] = mapped_column(String(MAX_SUBJECT_LENGTH), primary_key=True)
    is_active: Mapped[bool] = mapped_column(Boolean, default=True)


class AttemptMarker(Base):
    """Existence means "timed attempt in progress until a Submission exists"."""

    __tablename__ = "attempt_markers"
    __table_args__ = (UniqueConstraint("assessment_id", "student_id", name=ATTEMPT_UNIQUE),)
    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    assessment_id: Mapped[int] = mapped_column(ForeignKey("assessments.id"))
    student_id: Mapped[str] = mapped_column(String(MAX_SUBJECT_LENGTH))
    started_at: Mapped[dt.datetime] = mapped_column(UTCDateTime)


class Submission(Base):
    __tablename__ = "submissions"
    __table_args__ = (UniqueConstraint("assessment_id", "student_id", name=SUBMISSION_UNIQUE),)
    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    assessment_id: Mapped[int] = mapped_column(ForeignKey("assessments.id"))
    student_id: Mapped[str] = mapped_column(String(MAX_SUBJECT_LENGTH))
    score: Mapped[int] = mapped_column(Integer)
    total_questions: Mapped[int] = mapped_column(Integer)
    submitted_at: Mapped[dt.datetime] = mapped_column(UTCDateTime)
    answers = relationship("AnswerRecord", back_populates="submission", order_by="AnswerRecord.id")


class AnswerRecord(Base):
    """One graded row per question; `choice_id` is None when unanswered."""

    __tablename__ = "answer_records"
    __table_args__ = (UniqueConstraint("submission_id", "question_id", name="uq_answer_records_submission_question"),)
    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    submission_id: Mapped[int] = mapped_column(ForeignKey("submissions.id"), index=True)
    question_id: Mapped[int] = mapped_column(ForeignKey("questions.id"))
    choice_id: Mapped[int | None] = mapped_column(ForeignKey("choices.id"), nullable=True)
    is_correct: Mapped[bool] = mapped_column(Boolean)
    submission = relationship("Submission", back_populates="answers")
