"""Client-side merge of relay events into local classroom state."""

from reconcile.attendance import AttendanceSheet, Roster
from reconcile.discussion import DiscussionBoard
from reconcile.state import HANDLERS, ClassroomState
from reconcile.whiteboard import WhiteboardCanvas

__all__ = [
    "AttendanceSheet",
    "ClassroomState",
    "DiscussionBoard",
    "HANDLERS",
    "Roster",
    "WhiteboardCanvas",
]
