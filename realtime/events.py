"""Relayed event model.

Every frame that crosses the relay is ``{room_id, tag, payload}``. The tag
selects one payload model below; ``parse_event`` validates the pair and
raises ``MalformedEvent`` for anything the relay must drop.
"""

from __future__ import annotations

import json
from enum import Enum
from typing import Any, Literal, Optional, Union

from pydantic import BaseModel, Field, ValidationError

from schemas.attendance import AttendanceStatus
from schemas.discussion import Comment, Post, Reply


class MalformedEvent(ValueError):
    """Inbound frame that cannot be relayed (bad JSON, missing room, unknown tag, bad payload)."""


class EventTag(str, Enum):
    DRAW_SEGMENT = "draw-segment"
    CLEAR_BOARD = "clear-board"
    ATTENDANCE_CHANGE = "attendance-change"
    POST_CREATED = "post-created"
    POST_UPDATED = "post-updated"
    POST_DELETED = "post-deleted"
    COMMENT_CREATED = "comment-created"
    COMMENT_UPDATED = "comment-updated"
    COMMENT_DELETED = "comment-deleted"
    REPLY_CREATED = "reply-created"
    REPLY_UPDATED = "reply-updated"
    LIKE_TOGGLED = "like-toggled"
    PARTICIPANT_JOINED = "participant-joined"
    PARTICIPANT_LEFT = "participant-left"


class DrawSegment(BaseModel):
    x0: float
    y0: float
    x1: float
    y1: float
    color: str
    line_width: float = Field(gt=0)
    tool: Literal["pen", "eraser"] = "pen"

class ClearBoard(BaseModel):
    pass

class AttendanceChange(BaseModel):
    student_id: str
    status: AttendanceStatus
    timestamp: Optional[str] = None

class PostPayload(BaseModel):
    post: Post
    # Temp id of the author's provisional copy, echoed back so it is swapped in place
    client_id: Optional[str] = None

class PostDeleted(BaseModel):
    post_id: str

class CommentPayload(BaseModel):
    post_id: str
    comment: Comment
    client_id: Optional[str] = None

class CommentDeleted(BaseModel):
    post_id: str
    comment_id: str

class ReplyPayload(BaseModel):
    post_id: str
    comment_id: str
    reply: Reply

class LikeToggled(BaseModel):
    post_id: str
    comment_id: Optional[str] = None
    likes: list[str]

class ParticipantJoined(BaseModel):
    connection_id: str
    role: str
    display_name: str

class ParticipantLeft(BaseModel):
    connection_id: str


Payload = Union[
    DrawSegment, ClearBoard, AttendanceChange, PostPayload, PostDeleted, CommentPayload,
    CommentDeleted, ReplyPayload, LikeToggled, ParticipantJoined, ParticipantLeft,
]

PAYLOAD_MODELS: dict[EventTag, type[BaseModel]] = {
    EventTag.DRAW_SEGMENT: DrawSegment,
    EventTag.CLEAR_BOARD: ClearBoard,
    EventTag.ATTENDANCE_CHANGE: AttendanceChange,
    EventTag.POST_CREATED: PostPayload,
    EventTag.POST_UPDATED: PostPayload,
    EventTag.POST_DELETED: PostDeleted,
    EventTag.COMMENT_CREATED: CommentPayload,
    EventTag.COMMENT_UPDATED: CommentPayload,
    EventTag.COMMENT_DELETED: CommentDeleted,
    EventTag.REPLY_CREATED: ReplyPayload,
    EventTag.REPLY_UPDATED: ReplyPayload,
    EventTag.LIKE_TOGGLED: LikeToggled,
    EventTag.PARTICIPANT_JOINED: ParticipantJoined,
    EventTag.PARTICIPANT_LEFT: ParticipantLeft,
}

_missing = set(EventTag) - set(PAYLOAD_MODELS)
if _missing:
    raise RuntimeError(f"Event tags without a payload model: {sorted(t.value for t in _missing)}")


class RelayedEvent(BaseModel):
    room_id: str
    tag: EventTag
    payload: Payload

    def to_frame(self, sender: Optional[str] = None) -> dict[str, Any]:
        return {
            "type": "event",
            "room_id": self.room_id,
            "tag": self.tag.value,
            "payload": self.payload.model_dump(mode="json"),
            "sender": sender,
        }


def make_event(room_id: str, tag: EventTag, **payload: Any) -> RelayedEvent:
    """Build an event from keyword payload fields, validating against the tag's model."""
    return RelayedEvent(room_id=room_id, tag=tag, payload=PAYLOAD_MODELS[tag](**payload))


def parse_event(data: Any) -> RelayedEvent:
    """Validate a decoded ``{room_id, tag, payload}`` mapping."""
    if not isinstance(data, dict):
        raise MalformedEvent("event must be a JSON object")

    room_id = data.get("room_id")
    if not isinstance(room_id, str) or not room_id:
        raise MalformedEvent("missing room_id")

    try:
        tag = EventTag(data.get("tag"))
    except ValueError:
        raise MalformedEvent(f"unknown tag {data.get('tag')!r}") from None

    payload = data.get("payload") or {}
    try:
        model = PAYLOAD_MODELS[tag].model_validate(payload)
    except ValidationError as e:
        raise MalformedEvent(f"invalid {tag.value} payload: {e.error_count()} error(s)") from e

    return RelayedEvent(room_id=room_id, tag=tag, payload=model)


def parse_frame(raw: str, max_bytes: Optional[int] = None) -> dict[str, Any]:
    """Decode one websocket text frame into a dict with a ``type`` key."""
    if max_bytes is not None and len(raw.encode("utf-8")) > max_bytes:
        raise MalformedEvent(f"frame exceeds {max_bytes} bytes")
    try:
        data = json.loads(raw)
    except json.JSONDecodeError as e:
        raise MalformedEvent("frame is not valid JSON") from e
    if not isinstance(data, dict):
        raise MalformedEvent("frame must be a JSON object")
    if data.get("type") not in ("join", "leave", "event"):
        raise MalformedEvent(f"unknown frame type {data.get('type')!r}")
    return data
