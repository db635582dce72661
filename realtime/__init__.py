"""Room-scoped realtime relay.

Connections join rooms (one per class session); events emitted into a room
are fanned out to its members according to a fixed per-tag policy.
"""

from realtime.connection import ParticipantConnection
from realtime.events import EventTag, MalformedEvent, RelayedEvent, make_event, parse_event
from realtime.registry import RoomRegistry
from realtime.relay import FANOUT_POLICY, Delivery, EventRelay

__all__ = [
    "Delivery",
    "EventRelay",
    "EventTag",
    "FANOUT_POLICY",
    "MalformedEvent",
    "ParticipantConnection",
    "RelayedEvent",
    "RoomRegistry",
    "make_event",
    "parse_event",
]
