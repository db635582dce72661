import asyncio
from enum import Enum
from typing import Dict, FrozenSet, Iterable, Optional

from constants import MAX_FRAME_BYTES
from logging_config import get_logger
from realtime.connection import ParticipantConnection
from realtime.events import (
    EventTag,
    MalformedEvent,
    RelayedEvent,
    make_event,
    parse_event,
    parse_frame,
)
from realtime.registry import RoomRegistry

logger = get_logger(__name__)


class Delivery(str, Enum):
    EXCLUDE_SENDER = "exclude-sender"
    INCLUDE_SENDER = "include-sender"


# Who receives a broadcast, per tag. Strokes are rendered locally by the
# drawing client before they are emitted, so echoing them back would draw twice.
FANOUT_POLICY: Dict[EventTag, Delivery] = {
    EventTag.DRAW_SEGMENT: Delivery.EXCLUDE_SENDER,
    EventTag.CLEAR_BOARD: Delivery.INCLUDE_SENDER,
    EventTag.ATTENDANCE_CHANGE: Delivery.INCLUDE_SENDER,
    EventTag.POST_CREATED: Delivery.INCLUDE_SENDER,
    EventTag.POST_UPDATED: Delivery.INCLUDE_SENDER,
    EventTag.POST_DELETED: Delivery.INCLUDE_SENDER,
    EventTag.COMMENT_CREATED: Delivery.INCLUDE_SENDER,
    EventTag.COMMENT_UPDATED: Delivery.INCLUDE_SENDER,
    EventTag.COMMENT_DELETED: Delivery.INCLUDE_SENDER,
    EventTag.REPLY_CREATED: Delivery.INCLUDE_SENDER,
    EventTag.REPLY_UPDATED: Delivery.INCLUDE_SENDER,
    EventTag.LIKE_TOGGLED: Delivery.INCLUDE_SENDER,
    EventTag.PARTICIPANT_JOINED: Delivery.INCLUDE_SENDER,
    EventTag.PARTICIPANT_LEFT: Delivery.INCLUDE_SENDER,
}

_unmapped = set(EventTag) - set(FANOUT_POLICY)
if _unmapped:
    raise RuntimeError(f"Event tags without a fan-out policy: {sorted(t.value for t in _unmapped)}")

# Discussion events are published only after the REST write persists, and
# presence comes from join/leave. Participants cannot emit either directly.
SERVER_ONLY_TAGS = frozenset({
    EventTag.POST_CREATED,
    EventTag.POST_UPDATED,
    EventTag.POST_DELETED,
    EventTag.COMMENT_CREATED,
    EventTag.COMMENT_UPDATED,
    EventTag.COMMENT_DELETED,
    EventTag.REPLY_CREATED,
    EventTag.REPLY_UPDATED,
    EventTag.LIKE_TOGGLED,
    EventTag.PARTICIPANT_JOINED,
    EventTag.PARTICIPANT_LEFT,
})


class EventRelay:
    """Fans out relayed events to the members of a room.

    Delivery is best-effort and at-most-once: unreachable peers are skipped,
    nothing is queued or retried, and no event is stored.
    """

    def __init__(self, registry: Optional[RoomRegistry] = None, max_frame_bytes: int = MAX_FRAME_BYTES):
        self.registry = registry if registry is not None else RoomRegistry()
        self.max_frame_bytes = max_frame_bytes
        # Format: {connection_id: ParticipantConnection}
        self.connections: Dict[str, ParticipantConnection] = {}

    # -- connection lifecycle -------------------------------------------------

    def attach(self, connection: ParticipantConnection) -> None:
        self.connections[connection.connection_id] = connection
        logger.info(f"Connection {connection.connection_id} attached ({connection.role}, {connection.display_name})")

    async def detach(self, connection_id: str) -> FrozenSet[str]:
        """Implicit leave of every joined room. Safe to call more than once."""
        connection = self.connections.pop(connection_id, None)
        if connection is None:
            return frozenset()
        connection.closed = True
        left = self.registry.on_disconnect(connection_id)
        for room_id in left:
            await self.publish(make_event(room_id, EventTag.PARTICIPANT_LEFT, connection_id=connection_id))
        logger.info(f"Connection {connection_id} detached, left rooms: {sorted(left)}")
        return left

    async def join(self, connection_id: str, room_id: str) -> bool:
        connection = self.connections.get(connection_id)
        if connection is None:
            raise ValueError(f"Connection {connection_id!r} is not attached")
        joined = self.registry.join(connection_id, room_id)
        if joined:
            logger.info(f"Connection {connection_id} joined room {room_id}")
            await self.publish(make_event(
                room_id,
                EventTag.PARTICIPANT_JOINED,
                connection_id=connection_id,
                role=connection.role,
                display_name=connection.display_name,
            ))
        return joined

    async def leave(self, connection_id: str, room_id: str) -> bool:
        left = self.registry.leave(connection_id, room_id)
        if left:
            logger.info(f"Connection {connection_id} left room {room_id}")
            await self.publish(make_event(room_id, EventTag.PARTICIPANT_LEFT, connection_id=connection_id))
        return left

    def participants_of(self, room_id: str) -> list[ParticipantConnection]:
        return [self.connections[c] for c in sorted(self.registry.members_of(room_id)) if c in self.connections]

    # -- fan-out --------------------------------------------------------------

    async def broadcast(self, sender_connection_id: str, room_id: str, event: RelayedEvent) -> int:
        """Deliver a participant's event to its room. Returns the number of peers reached."""
        if not sender_connection_id:
            raise ValueError("sender_connection_id is required")
        if not room_id:
            raise ValueError("room_id is required")
        if event.room_id != room_id:
            raise ValueError(f"Event for room {event.room_id!r} broadcast to room {room_id!r}")

        if not self.registry.is_member(sender_connection_id, room_id):
            logger.warning(f"Dropped {event.tag.value} from {sender_connection_id}: not a member of room {room_id}")
            return 0

        recipients = self.registry.members_of(room_id)
        if FANOUT_POLICY[event.tag] is Delivery.EXCLUDE_SENDER:
            recipients = recipients - {sender_connection_id}
        return await self._deliver(recipients, event, sender_connection_id)

    async def publish(self, event: RelayedEvent) -> int:
        """Server-originated broadcast (REST writes, presence) to every member of ``event.room_id``."""
        return await self._deliver(self.registry.members_of(event.room_id), event, None)

    async def _deliver(self, recipients: Iterable[str], event: RelayedEvent, sender: Optional[str]) -> int:
        frame = event.to_frame(sender=sender)
        targets = [self.connections[c] for c in recipients if c in self.connections]
        if not targets:
            logger.debug(f"No reachable members for {event.tag.value} in room {event.room_id}")
            return 0

        results = await asyncio.gather(*(t.send(frame) for t in targets), return_exceptions=True)
        delivered = 0
        for target, result in zip(targets, results):
            if result is True:
                delivered += 1
            elif isinstance(result, Exception):
                logger.warning(f"Dropped {event.tag.value} for {target.connection_id}: {result}")
        logger.debug(f"Relayed {event.tag.value} in room {event.room_id} to {delivered}/{len(targets)} connections")
        return delivered

    # -- inbound frames -------------------------------------------------------

    async def handle_frame(self, connection_id: str, raw: str) -> None:
        """Apply one inbound websocket frame. Malformed frames are logged and dropped."""
        try:
            frame = parse_frame(raw, max_bytes=self.max_frame_bytes)
            frame_type = frame["type"]
            if frame_type in ("join", "leave"):
                room_id = frame.get("room_id")
                if not isinstance(room_id, str) or not room_id:
                    raise MalformedEvent(f"{frame_type} without room_id")
                if frame_type == "join":
                    await self.join(connection_id, room_id)
                else:
                    await self.leave(connection_id, room_id)
                return

            event = parse_event(frame)
            if event.tag in SERVER_ONLY_TAGS:
                raise MalformedEvent(f"{event.tag.value} cannot be sent by participants")
            await self.broadcast(connection_id, event.room_id, event)
        except MalformedEvent as e:
            logger.warning(f"Dropped malformed frame from {connection_id}: {e}")
