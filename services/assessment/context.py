"""Collaborators the engine operations run against, bundled for injection."""

from dataclasses import dataclass
from typing import Literal, Optional

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from packages.common.config import Settings
from packages.common.events import EventBus
from packages.common.time_utils import Clock, SystemClock
from .enrollment import EnrollmentGateway, SqlEnrollmentGateway


@dataclass(frozen=True)
class EngineContext:
    sessions: async_sessionmaker[AsyncSession]
    enrollment: EnrollmentGateway
    clock: Clock
    events: Optional[EventBus] = None
    late_policy: Literal["accept", "reject"] = "accept"
    late_grace_seconds: int = 0
    tx_retries: int = 3

    def publish(self, event_type: str, key: str, value: dict) -> None:
        if self.events is not None:
            self.events.publish(event_type, key, value)


def build_context(
    sessions: async_sessionmaker[AsyncSession],
    settings: Settings,
    events: Optional[EventBus] = None,
    clock: Optional[Clock] = None,
) -> EngineContext:
    """Wire the default collaborators from settings."""
    return EngineContext(
        sessions=sessions,
        enrollment=SqlEnrollmentGateway(sessions),
        clock=clock or SystemClock(),
        events=events,
        late_policy=settings.LATE_SUBMISSION_POLICY,
        late_grace_seconds=settings.LATE_SUBMISSION_GRACE_SECONDS,
        tx_retries=settings.DB_TX_RETRIES,
    )
