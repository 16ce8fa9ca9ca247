from typing import Dict, Any, List, Optional
import json
import time

import structlog
from pydantic import BaseModel, Field, ValidationError

from conference_agent.domain.context.context_manager import ConversationContextManager
from conference_agent.domain.models.conversation_state import ConversationSummary
from conference_agent.domain.models.function_call import FunctionParameters, FunctionResult
from conference_agent.domain.tool.function_executor import FunctionExecutor
from conference_agent.infrastructure.observability.logging import context_logger, MetricsCollector

logger = structlog.get_logger(__name__)


class InvalidArgumentsError(ValueError):
    """Function call arguments could not be decoded"""


class DispatchOutcome(BaseModel):
    """Everything the caller needs to answer one function call"""
    session_id: str
    function_name: str
    resolved_parameters: Dict[str, Any] = Field(default_factory=dict)
    result: FunctionResult
    suggestions: List[str] = Field(default_factory=list)
    context: Optional[ConversationSummary] = None


def parse_arguments(arguments: Any) -> FunctionParameters:
    """Decode realtime function-call arguments into typed parameters"""

    if arguments is None or arguments == "":
        return FunctionParameters()
    if isinstance(arguments, str):
        try:
            arguments = json.loads(arguments)
        except json.JSONDecodeError as e:
            raise InvalidArgumentsError(f"Arguments are not valid JSON: {e.msg}") from e
    if not isinstance(arguments, dict):
        raise InvalidArgumentsError("Arguments must be a JSON object")
    try:
        return FunctionParameters.model_validate(arguments)
    except ValidationError as e:
        raise InvalidArgumentsError(str(e)) from e


class FunctionCallDispatcher:
    """Resolves, executes and records function calls coming from the voice model"""

    def __init__(
        self,
        context_manager: ConversationContextManager,
        executor: FunctionExecutor,
        metrics: Optional[MetricsCollector] = None,
    ):
        self.context_manager = context_manager
        self.executor = executor
        self.metrics = metrics or MetricsCollector()

    async def dispatch(
        self,
        session_id: Optional[str],
        function_name: str,
        arguments: Any = None,
        user_query: Optional[str] = None,
    ) -> DispatchOutcome:
        """Run one function call with conversational context applied"""

        session_id = session_id or self.context_manager.settings.default_session_id
        started = time.perf_counter()

        try:
            raw = arguments if isinstance(arguments, FunctionParameters) else parse_arguments(arguments)
        except InvalidArgumentsError as e:
            logger.warning("Invalid function arguments", session_id=session_id,
                           function_name=function_name, error=str(e))
            self.metrics.increment_counter("function_calls.invalid_arguments")
            return DispatchOutcome(
                session_id=session_id,
                function_name=function_name,
                result=FunctionResult(success=False, error=str(e)),
                suggestions=self.context_manager.suggest(session_id),
                context=self.context_manager.summarize(session_id),
            )

        resolved = await self.context_manager.resolve(session_id, function_name, raw)
        result = await self.executor.execute(function_name, resolved)
        await self.context_manager.record_interaction(
            session_id, function_name, resolved, result, user_query
        )

        duration_ms = (time.perf_counter() - started) * 1000
        self.metrics.record_latency(f"function.{function_name}", duration_ms)
        self.metrics.increment_counter(
            "function_calls.succeeded" if result.success else "function_calls.failed"
        )
        context_logger.log_function_call(
            session_id=session_id,
            function_name=function_name,
            parameters=resolved.as_dict(),
            success=result.success,
            result_count=result.count,
            duration_ms=round(duration_ms, 1),
            error=result.error,
        )

        return DispatchOutcome(
            session_id=session_id,
            function_name=function_name,
            resolved_parameters=resolved.as_dict(),
            result=result,
            suggestions=self.context_manager.suggest(session_id),
            context=self.context_manager.summarize(session_id),
        )
