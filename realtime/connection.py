import json
import uuid
from datetime import datetime
from typing import Any, Optional

from fastapi import WebSocket, WebSocketDisconnect

from logging_config import get_logger

logger = get_logger(__name__)

ROLES = ("teacher", "student")


class ParticipantConnection:
    """One browser tab's live socket.

    ``role`` is a display tag only; authorization happens in the REST layer.
    Room membership is owned by the registry, not by this handle.
    """

    def __init__(self, websocket: WebSocket, role: str = "student", display_name: Optional[str] = None,
                 connection_id: Optional[str] = None):
        self.connection_id = connection_id or str(uuid.uuid4())
        self.websocket = websocket
        self.role = role if role in ROLES else "student"
        self.display_name = display_name.strip() if display_name and display_name.strip() else f"User_{self.connection_id[:8]}"
        self.connected_at = datetime.now().isoformat()
        self.closed = False

    async def send(self, message: dict[str, Any]) -> bool:
        """Hand one message to the transport. Returns False if the peer is unreachable."""
        if self.closed:
            return False
        try:
            await self.websocket.send_text(json.dumps(message))
            return True
        except (WebSocketDisconnect, RuntimeError, OSError) as e:
            # Socket went away between receive loop iterations; the endpoint's
            # disconnect handler owns the registry cleanup.
            self.closed = True
            logger.warning(f"Send to connection {self.connection_id} failed: {e}")
            return False

    def describe(self) -> dict[str, str]:
        return {
            "connection_id": self.connection_id,
            "role": self.role,
            "display_name": self.display_name,
            "connected_at": self.connected_at,
        }

    def __repr__(self) -> str:
        return f"ParticipantConnection({self.connection_id!r}, role={self.role!r})"
