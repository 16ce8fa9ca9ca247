from typing import List, Optional, Callable, Iterable
from abc import ABC, abstractmethod
from datetime import datetime, timezone
from pathlib import Path
import json

import structlog

from conference_agent.domain.models.function_call import ConferenceSession

logger = structlog.get_logger(__name__)


class SessionRepository(ABC):
    """Read access to the conference schedule"""

    @abstractmethod
    async def get_current_sessions(self) -> List[ConferenceSession]:
        pass

    @abstractmethod
    async def get_upcoming_sessions(self, limit: int = 5) -> List[ConferenceSession]:
        pass

    @abstractmethod
    async def get_sessions_by_topic(self, topic: str) -> List[ConferenceSession]:
        pass

    @abstractmethod
    async def get_sessions_by_speaker(self, speaker_name: str) -> List[ConferenceSession]:
        pass

    @abstractmethod
    async def get_sessions_by_type(self, session_type: str) -> List[ConferenceSession]:
        pass

    @abstractmethod
    async def search_sessions(self, query: str) -> List[ConferenceSession]:
        pass

    @abstractmethod
    async def get_all_sessions(self) -> List[ConferenceSession]:
        pass


def _contains(haystack: Optional[str], needle: str) -> bool:
    return bool(haystack) and needle.lower() in haystack.lower()


def _sort_key(session: ConferenceSession):
    return session.start_time or datetime.max.replace(tzinfo=timezone.utc)


class InMemorySessionRepository(SessionRepository):
    """Schedule held in memory, matched with case-insensitive substring search"""

    def __init__(
        self,
        sessions: Optional[Iterable[ConferenceSession]] = None,
        clock: Callable[[], datetime] = lambda: datetime.now(timezone.utc),
    ):
        self.sessions: List[ConferenceSession] = sorted(sessions or [], key=_sort_key)
        self.clock = clock

    @classmethod
    def from_json_file(cls, path: str, **kwargs) -> "InMemorySessionRepository":
        """Load sessions from a JSON array of session objects"""

        raw = json.loads(Path(path).read_text(encoding="utf-8"))
        sessions = [ConferenceSession.model_validate(item) for item in raw]
        logger.info("Loaded conference sessions", path=path, count=len(sessions))
        return cls(sessions, **kwargs)

    async def get_current_sessions(self) -> List[ConferenceSession]:
        now = self.clock()
        return [
            s for s in self.sessions
            if s.start_time and s.end_time and s.start_time <= now <= s.end_time
        ]

    async def get_upcoming_sessions(self, limit: int = 5) -> List[ConferenceSession]:
        now = self.clock()
        upcoming = [s for s in self.sessions if s.start_time and s.start_time > now]
        return upcoming[:max(limit, 0)]

    async def get_sessions_by_topic(self, topic: str) -> List[ConferenceSession]:
        return [
            s for s in self.sessions
            if _contains(s.topic, topic) or _contains(s.title, topic) or _contains(s.description, topic)
        ]

    async def get_sessions_by_speaker(self, speaker_name: str) -> List[ConferenceSession]:
        return [s for s in self.sessions if _contains(s.speaker.name, speaker_name)]

    async def get_sessions_by_type(self, session_type: str) -> List[ConferenceSession]:
        return [s for s in self.sessions if _contains(s.session_type, session_type)]

    async def search_sessions(self, query: str) -> List[ConferenceSession]:
        return [
            s for s in self.sessions
            if any(
                _contains(field, query)
                for field in (s.title, s.description, s.topic, s.speaker.name, s.speaker.company)
            )
        ]

    async def get_all_sessions(self) -> List[ConferenceSession]:
        return list(self.sessions)
