from realtime.events import ClearBoard, DrawSegment, EventTag, RelayedEvent, make_event


class WhiteboardCanvas:
    """Replay log of line segments for one session's shared board.

    A stroke is a run of independent segments emitted as the pointer moves;
    each segment is drawn on its own and never merged into a path.
    """

    def __init__(self):
        self.segments: list[DrawSegment] = []

    def draw_local(self, room_id: str, x0: float, y0: float, x1: float, y1: float,
                   color: str, line_width: float, tool: str = "pen") -> RelayedEvent:
        """Render a segment drawn on this client and return the event to emit.

        The relay does not echo strokes back to their sender, so the local
        copy is the only one this canvas gets.
        """
        event = make_event(room_id, EventTag.DRAW_SEGMENT, x0=x0, y0=y0, x1=x1, y1=y1,
                           color=color, line_width=line_width, tool=tool)
        self.segments.append(event.payload)
        return event

    def on_draw_segment(self, segment: DrawSegment) -> bool:
        self.segments.append(segment.model_copy())
        return True

    def on_clear_board(self, _: ClearBoard) -> bool:
        changed = bool(self.segments)
        self.segments.clear()
        return changed

    def __len__(self) -> int:
        return len(self.segments)
