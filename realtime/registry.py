from typing import Dict, FrozenSet, Set

from logging_config import get_logger

logger = get_logger(__name__)


def _require_id(value: str, name: str) -> None:
    if not isinstance(value, str) or not value:
        raise ValueError(f"{name} must be a non-empty string, got {value!r}")


class RoomRegistry:
    """In-memory map of room id -> member connection ids.

    Rooms are created on first join and reaped when their last member
    leaves. State lives for the process only; clients rejoin after a restart.
    Membership is mutated exclusively through ``join``, ``leave`` and
    ``on_disconnect``.
    """

    def __init__(self):
        # Format: {room_id: {connection_id, ...}}
        self._rooms: Dict[str, Set[str]] = {}
        # Reverse index so disconnect does not scan every room
        # Format: {connection_id: {room_id, ...}}
        self._memberships: Dict[str, Set[str]] = {}

    def join(self, connection_id: str, room_id: str) -> bool:
        """Add a connection to a room. Returns False if it was already a member."""
        _require_id(connection_id, "connection_id")
        _require_id(room_id, "room_id")

        members = self._rooms.setdefault(room_id, set())
        if connection_id in members:
            logger.debug(f"Connection {connection_id} already in room {room_id}")
            return False
        members.add(connection_id)
        self._memberships.setdefault(connection_id, set()).add(room_id)
        logger.debug(f"Connection {connection_id} joined room {room_id} (members: {len(members)})")
        return True

    def leave(self, connection_id: str, room_id: str) -> bool:
        """Remove a connection from a room. Returns False if it was not a member."""
        _require_id(connection_id, "connection_id")
        _require_id(room_id, "room_id")

        members = self._rooms.get(room_id)
        if not members or connection_id not in members:
            return False
        members.discard(connection_id)
        if not members:
            del self._rooms[room_id]
            logger.info(f"Room {room_id} is empty, reaped")

        rooms = self._memberships.get(connection_id)
        if rooms is not None:
            rooms.discard(room_id)
            if not rooms:
                del self._memberships[connection_id]
        logger.debug(f"Connection {connection_id} left room {room_id}")
        return True

    def on_disconnect(self, connection_id: str) -> FrozenSet[str]:
        """Remove a connection from every room it joined. Returns the rooms it left."""
        _require_id(connection_id, "connection_id")

        left = frozenset(self._memberships.get(connection_id, ()))
        for room_id in left:
            self.leave(connection_id, room_id)
        return left

    def members_of(self, room_id: str) -> FrozenSet[str]:
        _require_id(room_id, "room_id")
        return frozenset(self._rooms.get(room_id, ()))

    def rooms_of(self, connection_id: str) -> FrozenSet[str]:
        _require_id(connection_id, "connection_id")
        return frozenset(self._memberships.get(connection_id, ()))

    def is_member(self, connection_id: str, room_id: str) -> bool:
        return connection_id in self._rooms.get(room_id, ())

    def room_ids(self) -> FrozenSet[str]:
        return frozenset(self._rooms)
