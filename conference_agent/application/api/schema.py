from typing import Dict, Any, List, Optional, Union
from pydantic import BaseModel, Field
from datetime import datetime, timezone

from conference_agent.domain.models.conversation_state import ConversationSummary, SessionSnapshot
from conference_agent.domain.models.function_call import FunctionResult


class FunctionCallRequest(BaseModel):
    """Function call forwarded by the realtime voice bridge"""
    name: str
    call_id: Optional[str] = Field(None, description="Function call id assigned by the voice model")
    session_id: Optional[str] = Field(None, description="Conversation (phone call) identifier")
    arguments: Union[str, Dict[str, Any], None] = Field(None, description="JSON-encoded or decoded arguments")


class FunctionCallOutput(BaseModel):
    """Output handed back to the voice model"""
    call_id: Optional[str] = None
    success: bool
    data: List[Dict[str, Any]] = Field(default_factory=list)
    message: Optional[str] = None
    count: int = 0
    error: Optional[str] = None


class DemoQueryRequest(BaseModel):
    """Text harness request that bypasses the voice call"""
    function_name: Optional[str] = None
    parameters: Dict[str, Any] = Field(default_factory=dict)
    session_id: Optional[str] = None
    query: Optional[str] = None


class DemoQueryResponse(BaseModel):
    success: bool = True
    result: FunctionResult
    resolved_parameters: Dict[str, Any] = Field(default_factory=dict)
    context: Optional[ConversationSummary] = None
    suggestions: List[str] = Field(default_factory=list)
    timestamp: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))


class CallActivity(BaseModel):
    """Realtime bridge connection for one phone call"""
    call_id: str
    connected_at: datetime
    last_activity: datetime
    function_calls: int = 0


class AnalyticsResponse(BaseModel):
    active_calls: int
    calls: List[CallActivity] = Field(default_factory=list)
    total_sessions: int
    context_sessions: int
    active_contexts: List[SessionSnapshot]
    metrics: Dict[str, Any] = Field(default_factory=dict)
