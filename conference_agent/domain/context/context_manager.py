from typing import Dict, List, Optional, Callable
import asyncio
import contextlib
import structlog
from datetime import datetime

from conference_agent.domain.models.conversation_state import (
    ConversationState,
    ConversationSummary,
    InteractionRecord,
    LastQuery,
    OrderedEntitySet,
    SessionSnapshot,
    utcnow,
)
from conference_agent.domain.models.function_call import FunctionParameters, FunctionResult
from conference_agent.infrastructure.config.settings import Settings
from conference_agent.infrastructure.observability.logging import context_logger
from .entity_extractor import EntityExtractor
from .reference_resolver import ReferenceResolver
from .suggestions import SuggestionGenerator, build_summary

logger = structlog.get_logger(__name__)


class ConversationContextManager:
    """Owns per-session conversation state with a sliding inactivity timeout"""

    def __init__(
        self,
        settings: Optional[Settings] = None,
        resolver: Optional[ReferenceResolver] = None,
        extractor: Optional[EntityExtractor] = None,
        suggestion_generator: Optional[SuggestionGenerator] = None,
        clock: Callable[[], datetime] = utcnow,
    ):
        self.settings = settings or Settings()
        self.resolver = resolver or ReferenceResolver()
        self.extractor = extractor or EntityExtractor()
        self.suggestion_generator = suggestion_generator or SuggestionGenerator()
        self.clock = clock
        self.contexts: Dict[str, ConversationState] = {}
        self._lock = asyncio.Lock()
        self._cleanup_task: Optional[asyncio.Task] = None

    def _session_key(self, session_id: Optional[str]) -> str:
        return session_id or self.settings.default_session_id

    def _new_state(self, session_id: str) -> ConversationState:
        now = self.clock()
        return ConversationState(
            session_id=session_id,
            created_at=now,
            last_activity_at=now,
            history_limit=self.settings.history_limit,
            mentioned_speakers=OrderedEntitySet(self.settings.max_mentioned_speakers),
            mentioned_sessions=OrderedEntitySet(self.settings.max_mentioned_sessions),
            recent_search_terms=OrderedEntitySet(self.settings.max_recent_search_terms),
        )

    def _get_or_create_locked(self, session_id: str) -> ConversationState:
        state = self.contexts.get(session_id)
        if state is None:
            state = self._new_state(session_id)
            self.contexts[session_id] = state
            context_logger.log_context_update(session_id, "created")
        else:
            state.touch(self.clock())
        return state

    async def start(self):
        """Start the periodic expiry sweep"""

        if self._cleanup_task is None or self._cleanup_task.done():
            self._cleanup_task = asyncio.create_task(self._cleanup_loop())
            logger.info(
                "Context cleanup started",
                interval_seconds=self.settings.cleanup_interval_seconds,
                timeout_seconds=self.settings.context_timeout_seconds,
            )

    async def _cleanup_loop(self):
        while True:
            await asyncio.sleep(self.settings.cleanup_interval_seconds)
            try:
                await self.evict_expired()
            except Exception as e:
                logger.error("Context cleanup error", error=str(e))

    async def get_or_create(self, session_id: Optional[str]) -> ConversationState:
        """Return the session's state, creating it on first use"""

        async with self._lock:
            return self._get_or_create_locked(self._session_key(session_id))

    async def resolve(
        self,
        session_id: Optional[str],
        function_name: str,
        parameters: FunctionParameters,
    ) -> FunctionParameters:
        """Resolve contextual references in function arguments"""

        async with self._lock:
            state = self._get_or_create_locked(self._session_key(session_id))
            resolved = self.resolver.resolve(state, function_name, parameters)

        if resolved != parameters:
            logger.debug(
                "Resolved contextual arguments",
                session_id=state.session_id,
                function_name=function_name,
                raw=parameters.as_dict(),
                resolved=resolved.as_dict(),
            )
        return resolved

    async def record_interaction(
        self,
        session_id: Optional[str],
        function_name: str,
        parameters: FunctionParameters,
        result: FunctionResult,
        user_query: Optional[str] = None,
    ) -> ConversationState:
        """Record a completed function call and update entities and topic"""

        async with self._lock:
            state = self._get_or_create_locked(self._session_key(session_id))
            now = self.clock()

            state.add_interaction(InteractionRecord(
                timestamp=now,
                function_name=function_name,
                parameters=parameters.as_dict(),
                result_count=result.count,
                user_query=user_query,
                success=result.success,
            ))

            state.last_query = LastQuery(
                function_name=function_name,
                parameters=parameters,
                results=list(result.data),
                timestamp=now,
            )
            state.last_results = list(result.data)

            added = self.extractor.extract(state, parameters, result.data)
            state.update_topic(function_name, parameters)

        context_logger.log_context_update(
            state.session_id,
            "interaction_recorded",
            {
                "function_name": function_name,
                "result_count": result.count,
                "current_topic": state.current_topic,
                "entities": {key: len(values) for key, values in added.items()},
            },
        )
        return state

    async def evict_expired(self) -> int:
        """Remove every context idle for longer than the timeout"""

        async with self._lock:
            now = self.clock()
            timeout = self.settings.context_timeout_seconds
            expired = [
                session_id for session_id, state in self.contexts.items()
                if state.is_expired(timeout, now)
            ]
            for session_id in expired:
                del self.contexts[session_id]

        for session_id in expired:
            logger.info("Cleaned up expired context", session_id=session_id)
        if expired:
            logger.info("Context cleanup", removed=len(expired), remaining=len(self.contexts))

        return len(expired)

    async def clear(self, session_id: str) -> bool:
        """Clear context for a session"""

        async with self._lock:
            removed = self.contexts.pop(session_id, None) is not None

        if removed:
            context_logger.log_context_update(session_id, "cleared")
        return removed

    def count(self) -> int:
        return len(self.contexts)

    def snapshot_all(self) -> List[SessionSnapshot]:
        """Lightweight view of every tracked context, for monitoring"""

        return [
            SessionSnapshot(
                session_id=state.session_id,
                created_at=state.created_at,
                last_activity_at=state.last_activity_at,
                interaction_count=len(state.history),
                current_topic=state.current_topic,
            )
            for state in list(self.contexts.values())
        ]

    def suggest(self, session_id: Optional[str]) -> List[str]:
        """Follow-up prompts for a session, empty when it is unknown"""

        return self.suggestion_generator.generate(self.contexts.get(self._session_key(session_id)))

    def summarize(self, session_id: Optional[str]) -> Optional[ConversationSummary]:
        state = self.contexts.get(self._session_key(session_id))
        if state is None:
            return None
        return build_summary(state, self.suggestion_generator.generate(state), now=self.clock())

    async def shutdown(self):
        """Stop the expiry sweep and drop all state"""

        task, self._cleanup_task = self._cleanup_task, None
        if task is not None and not task.done():
            task.cancel()
            with contextlib.suppress(asyncio.CancelledError):
                await task

        self.contexts.clear()
        logger.info("Context manager shut down")
