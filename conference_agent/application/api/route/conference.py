from typing import Any, Dict, List
from datetime import datetime, timezone

import structlog
from fastapi import APIRouter, HTTPException, Request

from conference_agent.domain.tool.function_executor import format_session
from ..schema import (
    AnalyticsResponse,
    CallActivity,
    DemoQueryRequest,
    DemoQueryResponse,
    FunctionCallOutput,
    FunctionCallRequest,
)

logger = structlog.get_logger(__name__)

router = APIRouter()


@router.get("/health")
async def health_check():
    return {"status": "healthy", "timestamp": datetime.now(timezone.utc).isoformat()}


@router.get("/functions")
async def list_functions(request: Request) -> List[Dict[str, Any]]:
    """Function definitions to register with the realtime session"""
    return request.app.state.executor.registry.get_function_definitions()


@router.post("/webhook/openai/function-call", response_model=FunctionCallOutput)
async def function_call_webhook(req: FunctionCallRequest, request: Request):
    """Execute a function call from the realtime voice model"""

    dispatcher = request.app.state.dispatcher
    session_id = req.session_id or request.app.state.settings.default_session_id

    logger.info("Executing function", function_name=req.name, session_id=session_id)
    outcome = await dispatcher.dispatch(session_id, req.name, req.arguments)

    result = outcome.result
    return FunctionCallOutput(
        call_id=req.call_id,
        success=result.success,
        data=result.data,
        message=result.message,
        count=result.count,
        error=result.error,
    )


@router.post("/demo/query", response_model=DemoQueryResponse)
async def demo_query(req: DemoQueryRequest, request: Request):
    """Run a function call with context resolution, for testing without a phone"""

    if not req.function_name:
        raise HTTPException(status_code=400, detail="function_name is required")

    settings = request.app.state.settings
    session_id = req.session_id or settings.demo_session_id

    outcome = await request.app.state.dispatcher.dispatch(
        session_id, req.function_name, req.parameters, user_query=req.query
    )
    return DemoQueryResponse(
        success=outcome.result.success,
        result=outcome.result,
        resolved_parameters=outcome.resolved_parameters,
        context=outcome.context,
        suggestions=outcome.suggestions,
    )


@router.get("/demo/sessions")
async def demo_sessions(request: Request) -> List[Dict[str, Any]]:
    sessions = await request.app.state.repository.get_all_sessions()
    return [format_session(s) for s in sessions]


@router.get("/analytics", response_model=AnalyticsResponse)
async def analytics(request: Request):
    state = request.app.state
    context_manager = state.context_manager

    total_sessions = len(await state.repository.get_all_sessions())
    calls = [
        CallActivity(call_id=call_id, **metadata)
        for call_id, metadata in state.connection_manager.get_call_metadata().items()
    ]
    state.metrics.set_gauge("contexts.active", context_manager.count())

    return AnalyticsResponse(
        active_calls=len(state.connection_manager.get_active_calls()),
        calls=calls,
        total_sessions=total_sessions,
        context_sessions=context_manager.count(),
        active_contexts=context_manager.snapshot_all(),
        metrics=state.metrics.get_metrics_summary(),
    )


@router.delete("/context/{session_id}")
async def clear_context(session_id: str, request: Request):
    removed = await request.app.state.context_manager.clear(session_id)
    if not removed:
        raise HTTPException(status_code=404, detail=f"No context for session {session_id}")
    return {"status": "cleared", "session_id": session_id}
