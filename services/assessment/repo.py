"""Repository layer for the Assessment service.

Owns the async engine/session factory, schema creation, and the transaction
helper every creation path goes through. Uniqueness of attempts and
submissions is decided by database constraints; this module only helps callers
recognise which constraint fired.
"""

import asyncio
import logging
from functools import lru_cache
from typing import Awaitable, Callable, TypeVar

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError, OperationalError
from sqlalchemy.ext.asyncio import create_async_engine, async_sessionmaker, AsyncSession
from sqlalchemy.orm import selectinload

from packages.common.config import get_settings
from .models import AttemptMarker, Base, Submission

log = logging.getLogger(__name__)
T = TypeVar("T")


class Database:
    """Async engine plus the session factory bound to it."""

    def __init__(self, dsn: str, echo: bool = False) -> None:
        self.engine = create_async_engine(dsn, echo=echo)
        self.sessions = async_sessionmaker(self.engine, expire_on_commit=False)

    async def create_all(self) -> None:
        """Create database schema if it doesn't exist."""
        async with self.engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)

    async def dispose(self) -> None:
        await self.engine.dispose()


@lru_cache()
def get_database() -> Database:
    """Return the process-wide `Database` built from settings."""
    s = get_settings()
    return Database(s.DATABASE_DSN, echo=s.DB_ECHO)


async def run_transaction(
    sessions: async_sessionmaker[AsyncSession],
    work: Callable[[AsyncSession], Awaitable[T]],
    retries: int = 3,
) -> T:
    """Run `work` inside one transaction, retrying transient operational failures.

    `IntegrityError` is never retried: a constraint violation is a definitive
    answer and is re-raised for the caller to translate.

    Args:
        sessions: Session factory.
        work: Coroutine function receiving the session; its result is returned after commit.
        retries: Total attempts for `OperationalError` (lock timeouts, serialization failures).
    """
    attempt = 1
    while True:
        try:
            async with sessions() as session:
                async with session.begin():
                    return await work(session)
        except OperationalError:
            if attempt >= retries:
                raise
            log.warning("transient database error, retrying", extra={"attempt": attempt}, exc_info=True)
            await asyncio.sleep(0.05 * attempt)
            attempt += 1


def is_unique_violation(exc: IntegrityError, constraint: str, table: str) -> bool:
    """Tell whether `exc` came from the (assessment_id, student_id) constraint of `table`.

    Postgres drivers expose the constraint name; SQLite only reports the columns.
    """
    orig = exc.orig
    for candidate in (orig, getattr(orig, "__cause__", None)):
        name = getattr(candidate, "constraint_name", None)
        if name:
            return name == constraint
    text = str(orig)
    return constraint in text or f"{table}.assessment_id, {table}.student_id" in text


async def get_marker(session: AsyncSession, assessment_id: int, student_id: str) -> AttemptMarker | None:
    """Fetch the attempt marker for the pair, if the timed attempt was started."""
    res = await session.execute(
        select(AttemptMarker).where(
            AttemptMarker.assessment_id == assessment_id,
            AttemptMarker.student_id == student_id,
        )
    )
    return res.scalar_one_or_none()


async def get_submission(
    session: AsyncSession, assessment_id: int, student_id: str, with_answers: bool = False
) -> Submission | None:
    """Fetch the pair's submission, optionally with its answer records."""
    q = select(Submission).where(
        Submission.assessment_id == assessment_id,
        Submission.student_id == student_id,
    )
    if with_answers:
        q = q.options(selectinload(Submission.answers))
    res = await session.execute(q)
    return res.scalar_one_or_none()


async def list_submissions(session: AsyncSession, assessment_id: int) -> list[Submission]:
    """List every submission for an assessment, newest first."""
    res = await session.execute(
        select(Submission)
        .where(Submission.assessment_id == assessment_id)
        .order_by(Submission.submitted_at.desc(), Submission.id.desc())
    )
    return list(res.scalars())
