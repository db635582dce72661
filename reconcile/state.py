from typing import Any, Callable, Dict, Tuple

from realtime.events import EventTag, RelayedEvent, parse_event
from reconcile.attendance import AttendanceSheet, Roster
from reconcile.discussion import DiscussionBoard
from reconcile.whiteboard import WhiteboardCanvas

# tag -> (feature attribute, handler method)
HANDLERS: Dict[EventTag, Tuple[str, str]] = {
    EventTag.DRAW_SEGMENT: ("whiteboard", "on_draw_segment"),
    EventTag.CLEAR_BOARD: ("whiteboard", "on_clear_board"),
    EventTag.ATTENDANCE_CHANGE: ("attendance", "on_attendance_change"),
    EventTag.POST_CREATED: ("discussion", "on_post_created"),
    EventTag.POST_UPDATED: ("discussion", "on_post_updated"),
    EventTag.POST_DELETED: ("discussion", "on_post_deleted"),
    EventTag.COMMENT_CREATED: ("discussion", "on_comment_created"),
    EventTag.COMMENT_UPDATED: ("discussion", "on_comment_updated"),
    EventTag.COMMENT_DELETED: ("discussion", "on_comment_deleted"),
    EventTag.REPLY_CREATED: ("discussion", "on_reply_created"),
    EventTag.REPLY_UPDATED: ("discussion", "on_reply_updated"),
    EventTag.LIKE_TOGGLED: ("discussion", "on_like_toggled"),
    EventTag.PARTICIPANT_JOINED: ("roster", "on_participant_joined"),
    EventTag.PARTICIPANT_LEFT: ("roster", "on_participant_left"),
}

_unhandled = set(EventTag) - set(HANDLERS)
if _unhandled:
    raise RuntimeError(f"Event tags without a reconciler: {sorted(t.value for t in _unhandled)}")


class ClassroomState:
    """Everything one client knows about one live session.

    ``apply`` is the single entry point the UI subscribes to. Events are
    processed one at a time in arrival order.
    """

    def __init__(self, room_id: str):
        self.room_id = room_id
        self.whiteboard = WhiteboardCanvas()
        self.discussion = DiscussionBoard()
        self.attendance = AttendanceSheet()
        self.roster = Roster()

    def handler_for(self, tag: EventTag) -> Callable[[Any], bool]:
        feature, method = HANDLERS[tag]
        return getattr(getattr(self, feature), method)

    def apply(self, event: RelayedEvent) -> bool:
        """Merge one event. Returns True if local state changed."""
        if event.room_id != self.room_id:
            return False
        return self.handler_for(event.tag)(event.payload)

    def apply_frame(self, frame: dict[str, Any]) -> bool:
        """Parse an outbound relay frame and merge it. Raises MalformedEvent on bad input."""
        return self.apply(parse_event(frame))
