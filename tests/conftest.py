"""Shared fixtures for the conference voice agent test suite."""

from datetime import datetime, timedelta, timezone
from typing import Any

import pytest

from conference_agent.domain.context.context_manager import ConversationContextManager
from conference_agent.domain.models.function_call import ConferenceSession, SpeakerInfo
from conference_agent.domain.tool.session_repository import InMemorySessionRepository
from conference_agent.infrastructure.config.settings import Settings

CONFERENCE_DAY = datetime(2025, 10, 15, 9, 0, tzinfo=timezone.utc)


class FakeClock:
    """Manually advanced clock."""

    def __init__(self, now: datetime = CONFERENCE_DAY) -> None:
        self.now = now

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs: Any) -> None:
        self.now = self.now + timedelta(**kwargs)


def make_row(title: str | None, speaker_name: str | None = None) -> dict[str, Any]:
    """Result row shaped like the executor's formatted sessions."""
    return {"title": title, "speaker": {"name": speaker_name}}


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def settings() -> Settings:
    return Settings(_env_file=None)


@pytest.fixture
async def context_manager(settings, clock):
    manager = ConversationContextManager(settings, clock=clock)
    yield manager
    await manager.shutdown()


@pytest.fixture
def conference_sessions() -> list[ConferenceSession]:
    day = CONFERENCE_DAY
    return [
        ConferenceSession(
            id="s1",
            title="Leading Through Change",
            description="Leadership lessons from a reorg",
            start_time=day,
            end_time=day + timedelta(minutes=45),
            speaker=SpeakerInfo(name="Jason Lengstorf", company="Learn With Jason"),
            venue="Main Stage",
            session_type="talk",
            topic="Leadership",
        ),
        ConferenceSession(
            id="s2",
            title="AI Pair Programming in Practice",
            description="What changed when the whole team adopted AI tools",
            start_time=day + timedelta(hours=1),
            end_time=day + timedelta(hours=1, minutes=30),
            speaker=SpeakerInfo(name="Charity Majors", company="Honeycomb"),
            venue="Demo Stage",
            session_type="demo",
            topic="AI",
            sponsor="Honeycomb",
        ),
        ConferenceSession(
            id="s3",
            title="Scaling Engineering Leadership",
            description="Growing managers of managers",
            start_time=day + timedelta(days=1, hours=2),
            end_time=day + timedelta(days=1, hours=3),
            speaker=SpeakerInfo(name="Lara Hogan"),
            venue="Room B",
            session_type="workshop",
            topic="Leadership",
        ),
    ]


@pytest.fixture
def repository(conference_sessions, clock) -> InMemorySessionRepository:
    return InMemorySessionRepository(conference_sessions, clock=clock)
