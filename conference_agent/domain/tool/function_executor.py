from typing import Dict, Any, List, Optional, Callable, Awaitable
from datetime import datetime, timedelta, timezone
import time

import structlog

from conference_agent.domain.models.function_call import (
    ConferenceSession,
    FunctionName,
    FunctionParameters,
    FunctionResult,
)
from .function_registry import FunctionRegistry
from .session_repository import SessionRepository

logger = structlog.get_logger(__name__)


def format_time(value: Optional[datetime]) -> Optional[str]:
    """Render a start time the way it is read out on a call, e.g. '2:30 PM'"""
    if value is None:
        return None
    return value.strftime("%I:%M %p").lstrip("0")


def format_session(session: ConferenceSession) -> Dict[str, Any]:
    """Row returned to the voice model for one session"""
    return {
        "id": session.id,
        "title": session.title,
        "description": session.description,
        "start_time": session.start_time.isoformat() if session.start_time else None,
        "end_time": session.end_time.isoformat() if session.end_time else None,
        "formatted_time": format_time(session.start_time),
        "speaker": session.speaker.model_dump(),
        "venue": session.venue,
        "session_type": session.session_type,
        "topic": session.topic,
        "suitability_levels": list(session.suitability_levels),
        "sponsor": session.sponsor,
        "is_sponsored": session.is_sponsored,
    }


def _found(sessions: List[ConferenceSession], message: str) -> FunctionResult:
    return FunctionResult(
        success=True,
        count=len(sessions),
        data=[format_session(s) for s in sessions],
        message=message,
    )


ARGUMENT_LABELS = {
    "topic": "Topic",
    "speaker_name": "Speaker name",
    "session_query": "Session query",
    "session_type": "Session type",
    "query": "Search query",
}


def _missing(argument: str) -> FunctionResult:
    label = ARGUMENT_LABELS.get(argument, argument)
    return FunctionResult(success=False, error=f"{label} is required")


class FunctionExecutor:
    """Executes voice-model function calls against the session repository"""

    def __init__(
        self,
        repository: SessionRepository,
        registry: Optional[FunctionRegistry] = None,
        upcoming_limit: int = 5,
        clock: Callable[[], datetime] = lambda: datetime.now(timezone.utc),
    ):
        self.repository = repository
        self.registry = registry or FunctionRegistry()
        self.upcoming_limit = upcoming_limit
        self.clock = clock
        self._handlers: Dict[str, Callable[[FunctionParameters], Awaitable[FunctionResult]]] = {
            FunctionName.GET_CURRENT_SESSIONS.value: self.get_current_sessions,
            FunctionName.GET_UPCOMING_SESSIONS.value: self.get_upcoming_sessions,
            FunctionName.SEARCH_BY_TOPIC.value: self.search_by_topic,
            FunctionName.SEARCH_BY_SPEAKER.value: self.search_by_speaker,
            FunctionName.GET_SESSION_DETAILS.value: self.get_session_details,
            FunctionName.SEARCH_BY_TYPE.value: self.search_by_type,
            FunctionName.GET_FULL_SCHEDULE.value: self.get_full_schedule,
            FunctionName.SEARCH_GENERAL.value: self.search_general,
        }

    async def execute(self, function_name: str, parameters: FunctionParameters) -> FunctionResult:
        """Execute a function, turning every failure into an unsuccessful result"""

        function_name = getattr(function_name, "value", function_name)
        handler = self._handlers.get(function_name)
        if handler is None or not self.registry.is_registered(function_name):
            return FunctionResult(success=False, error=f"Unknown function: {function_name}")

        for argument in self.registry.required_parameters(function_name):
            if not getattr(parameters, argument, None):
                return _missing(argument)

        started = time.perf_counter()
        try:
            result = await handler(parameters)
        except Exception as e:
            logger.error("Error executing function", function_name=function_name, error=str(e))
            return FunctionResult(success=False, error=str(e))

        logger.debug(
            "Function executed",
            function_name=function_name,
            count=result.count,
            duration_ms=round((time.perf_counter() - started) * 1000, 1),
        )
        return result

    async def get_current_sessions(self, parameters: FunctionParameters) -> FunctionResult:
        sessions = await self.repository.get_current_sessions()
        return _found(
            sessions,
            "No sessions are currently running" if not sessions
            else f"Found {len(sessions)} current session(s)",
        )

    async def get_upcoming_sessions(self, parameters: FunctionParameters) -> FunctionResult:
        limit = parameters.limit if parameters.limit and parameters.limit > 0 else self.upcoming_limit
        sessions = await self.repository.get_upcoming_sessions(limit)
        return _found(
            sessions,
            "No upcoming sessions found" if not sessions
            else f"Found {len(sessions)} upcoming session(s)",
        )

    async def search_by_topic(self, parameters: FunctionParameters) -> FunctionResult:
        topic = parameters.topic
        sessions = await self.repository.get_sessions_by_topic(topic)
        return _found(
            sessions,
            f"No sessions found about {topic}" if not sessions
            else f"Found {len(sessions)} session(s) about {topic}",
        )

    async def search_by_speaker(self, parameters: FunctionParameters) -> FunctionResult:
        speaker_name = parameters.speaker_name
        sessions = await self.repository.get_sessions_by_speaker(speaker_name)
        return _found(
            sessions,
            f"No sessions found by {speaker_name}" if not sessions
            else f"Found {len(sessions)} session(s) by {speaker_name}",
        )

    async def get_session_details(self, parameters: FunctionParameters) -> FunctionResult:
        session_query = parameters.session_query
        sessions = await self.repository.search_sessions(session_query)
        if not sessions:
            sessions = await self.repository.get_sessions_by_speaker(session_query)

        return _found(
            sessions,
            f'No sessions found matching "{session_query}"' if not sessions
            else f'Found {len(sessions)} session(s) matching "{session_query}"',
        )

    async def search_by_type(self, parameters: FunctionParameters) -> FunctionResult:
        session_type = parameters.session_type
        sessions = await self.repository.get_sessions_by_type(session_type)
        return _found(
            sessions,
            f"No {session_type} sessions found" if not sessions
            else f"Found {len(sessions)} {session_type} session(s)",
        )

    async def get_full_schedule(self, parameters: FunctionParameters) -> FunctionResult:
        day = parameters.day or "all"
        sessions = await self.repository.get_all_sessions()

        if day in ("today", "tomorrow"):
            target = self.clock().date()
            if day == "tomorrow":
                target += timedelta(days=1)
            sessions = [s for s in sessions if s.start_time and s.start_time.date() == target]

        return _found(sessions, f"Conference schedule has {len(sessions)} sessions total")

    async def search_general(self, parameters: FunctionParameters) -> FunctionResult:
        query = parameters.query
        sessions = await self.repository.search_sessions(query)
        return _found(
            sessions,
            f'No results found for "{query}"' if not sessions
            else f'Found {len(sessions)} result(s) for "{query}"',
        )
