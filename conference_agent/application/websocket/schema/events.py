from typing import Dict, Any, Optional, Literal
from pydantic import BaseModel, Field
from enum import Enum
import json


class EventType(str, Enum):
    """Realtime bridge event types"""
    FUNCTION_CALL_ARGUMENTS_DONE = "response.function_call_arguments.done"
    CONVERSATION_ITEM_CREATE = "conversation.item.create"
    RESPONSE_CREATE = "response.create"
    ERROR = "error"


class BaseEvent(BaseModel):
    """Base event model for all WebSocket messages"""
    type: EventType
    event_id: Optional[str] = None


class FunctionCallEvent(BaseEvent):
    """Voice model finished streaming a function call's arguments"""
    type: Literal[EventType.FUNCTION_CALL_ARGUMENTS_DONE] = EventType.FUNCTION_CALL_ARGUMENTS_DONE
    name: str
    call_id: str
    arguments: Any = Field(None, description="JSON-encoded or decoded arguments, checked by the dispatcher")


class FunctionCallOutputItem(BaseModel):
    type: Literal["function_call_output"] = "function_call_output"
    call_id: str
    output: str = Field(description="JSON-encoded function output")


class ConversationItemCreateEvent(BaseEvent):
    """Hands a function output back to the voice model"""
    type: Literal[EventType.CONVERSATION_ITEM_CREATE] = EventType.CONVERSATION_ITEM_CREATE
    item: FunctionCallOutputItem

    @classmethod
    def function_output(cls, call_id: str, output: Dict[str, Any]):
        """Create a function_call_output item event"""
        return cls(item=FunctionCallOutputItem(call_id=call_id, output=json.dumps(output)))


class ResponseCreateEvent(BaseEvent):
    """Asks the voice model to speak a response using the new output"""
    type: Literal[EventType.RESPONSE_CREATE] = EventType.RESPONSE_CREATE


class ErrorEvent(BaseEvent):
    """Error event"""
    type: Literal[EventType.ERROR] = EventType.ERROR
    error: Dict[str, Any]
