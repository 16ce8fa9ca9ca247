from typing import Dict, Any
from fastapi import APIRouter, WebSocket, WebSocketDisconnect
from pydantic import ValidationError
import structlog

from conference_agent.domain.orchestration.dispatcher import FunctionCallDispatcher
from .connection_manager import ConnectionManager
from .schema.events import (
    EventType,
    FunctionCallEvent,
    ConversationItemCreateEvent,
    ResponseCreateEvent,
)

logger = structlog.get_logger(__name__)

router = APIRouter()


@router.websocket("/ws/realtime/{call_id}")
async def realtime_bridge(websocket: WebSocket, call_id: str):
    """Function-call channel for one phone call bridged to the realtime voice model"""

    connection_manager: ConnectionManager = websocket.app.state.connection_manager
    dispatcher: FunctionCallDispatcher = websocket.app.state.dispatcher

    await connection_manager.connect(websocket, call_id)
    structlog.contextvars.bind_contextvars(call_id=call_id)

    try:
        while True:
            data = await websocket.receive_json()

            if data.get("type") != EventType.FUNCTION_CALL_ARGUMENTS_DONE:
                logger.debug("Ignoring realtime event", event_type=data.get("type"))
                continue

            try:
                event = FunctionCallEvent.model_validate(data)
            except ValidationError as e:
                logger.warning("Malformed function call event", error=str(e))
                await connection_manager.send_error(call_id, "Malformed function call event", "invalid_event")
                continue

            await handle_function_call(call_id, event, dispatcher, connection_manager)

    except WebSocketDisconnect:
        logger.info("Realtime bridge closed by peer")
    except Exception as e:
        logger.error("WebSocket error", error=str(e))
    finally:
        structlog.contextvars.unbind_contextvars("call_id")
        await connection_manager.disconnect(call_id)


async def handle_function_call(
    call_id: str,
    event: FunctionCallEvent,
    dispatcher: FunctionCallDispatcher,
    connection_manager: ConnectionManager,
):
    """Dispatch a function call and send its output back to the voice model"""

    logger.info("Executing function", function_name=event.name, function_call_id=event.call_id)
    connection_manager.mark_function_call(call_id)

    outcome = await dispatcher.dispatch(call_id, event.name, event.arguments)
    result = outcome.result

    output: Dict[str, Any] = {
        "success": result.success,
        "data": result.data,
        "message": result.message,
        "count": result.count,
    }
    if not result.success:
        output = {"success": False, "error": result.error}

    await connection_manager.send_event(
        call_id, ConversationItemCreateEvent.function_output(event.call_id, output)
    )
    await connection_manager.send_event(call_id, ResponseCreateEvent())
