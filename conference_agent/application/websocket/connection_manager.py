from typing import Dict, Set, Optional
from fastapi import WebSocket
import asyncio
from datetime import datetime, timezone
import structlog

from .schema.events import BaseEvent, ErrorEvent

logger = structlog.get_logger(__name__)


class ConnectionManager:
    """Tracks realtime bridge connections, one per phone call"""

    def __init__(self):
        self.active_connections: Dict[str, WebSocket] = {}
        self.call_metadata: Dict[str, Dict] = {}
        self._lock = asyncio.Lock()

    async def connect(self, websocket: WebSocket, call_id: str):
        """Accept a new WebSocket connection"""
        await websocket.accept()

        async with self._lock:
            self.active_connections[call_id] = websocket
            self.call_metadata[call_id] = {
                "connected_at": datetime.now(timezone.utc),
                "last_activity": datetime.now(timezone.utc),
                "function_calls": 0,
            }

        logger.info("Realtime bridge connected", call_id=call_id)

    async def disconnect(self, call_id: str):
        """Disconnect a WebSocket connection"""
        async with self._lock:
            websocket = self.active_connections.pop(call_id, None)
            self.call_metadata.pop(call_id, None)

        if websocket is not None:
            try:
                await websocket.close()
            except Exception as e:
                # Already closed by the peer
                logger.debug("Error closing WebSocket", call_id=call_id, error=str(e))
            logger.info("Realtime bridge disconnected", call_id=call_id)

    def mark_function_call(self, call_id: str):
        metadata = self.call_metadata.get(call_id)
        if metadata is not None:
            metadata["function_calls"] += 1
            metadata["last_activity"] = datetime.now(timezone.utc)

    async def send_event(self, call_id: str, event: BaseEvent) -> bool:
        """Send an event to a specific call"""
        websocket = self.active_connections.get(call_id)
        if websocket is None:
            logger.warning("Attempted to send to disconnected call", call_id=call_id)
            return False

        try:
            await websocket.send_json(event.model_dump(mode="json", exclude_none=True))
            return True
        except Exception as e:
            logger.error("Failed to send event", call_id=call_id, error=str(e))
            await self.disconnect(call_id)
            return False

    async def send_error(self, call_id: str, message: str, code: Optional[str] = None):
        error = {"message": message}
        if code:
            error["code"] = code
        await self.send_event(call_id, ErrorEvent(error=error))

    def get_active_calls(self) -> Set[str]:
        return set(self.active_connections.keys())

    def get_call_metadata(self) -> Dict[str, Dict]:
        """Connection time, last activity and function-call count per open call"""
        return {call_id: dict(metadata) for call_id, metadata in self.call_metadata.items()}
