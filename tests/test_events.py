import pytest

from realtime.events import (
    PAYLOAD_MODELS,
    DrawSegment,
    EventTag,
    MalformedEvent,
    make_event,
    parse_event,
    parse_frame,
)


def test_every_tag_has_a_payload_model():
    assert set(PAYLOAD_MODELS) == set(EventTag)


def test_parse_draw_segment():
    event = parse_event({
        "room_id": "S1",
        "tag": "draw-segment",
        "payload": {"x0": 0, "y0": 0, "x1": 10, "y1": 10, "color": "#000", "line_width": 3, "tool": "eraser"},
    })
    assert event.tag is EventTag.DRAW_SEGMENT
    assert isinstance(event.payload, DrawSegment)
    assert event.payload.tool == "eraser"


def test_parse_ignores_frame_envelope_fields():
    event = parse_event({"type": "event", "sender": "abc", "room_id": "S1", "tag": "post-deleted",
                         "payload": {"post_id": "p1"}})
    assert event.payload.post_id == "p1"


def test_like_toggled_comment_id_is_optional():
    event = make_event("S1", EventTag.LIKE_TOGGLED, post_id="p1", likes=["u1"])
    assert event.payload.comment_id is None


@pytest.mark.parametrize("data, message", [
    ("nope", "JSON object"),
    ({"tag": "clear-board"}, "room_id"),
    ({"room_id": "", "tag": "clear-board"}, "room_id"),
    ({"room_id": "S1", "tag": "nope"}, "unknown tag"),
    ({"room_id": "S1", "tag": "post-deleted", "payload": {}}, "invalid post-deleted"),
])
def test_parse_event_rejects(data, message):
    with pytest.raises(MalformedEvent, match=message):
        parse_event(data)


def test_to_frame_shape():
    event = make_event("S1", EventTag.ATTENDANCE_CHANGE, student_id="s1", status="present")
    frame = event.to_frame(sender=None)
    assert frame == {
        "type": "event",
        "room_id": "S1",
        "tag": "attendance-change",
        "payload": {"student_id": "s1", "status": "present", "timestamp": None},
        "sender": None,
    }


def test_frame_round_trips_through_parser():
    event = make_event("S1", EventTag.DRAW_SEGMENT, x0=1, y0=2, x1=3, y1=4, color="blue", line_width=1.5)
    assert parse_event(event.to_frame("A")) == event


def test_parse_frame():
    assert parse_frame('{"type": "join", "room_id": "S1"}') == {"type": "join", "room_id": "S1"}
    with pytest.raises(MalformedEvent):
        parse_frame('{"type": "join"', max_bytes=1000)
    with pytest.raises(MalformedEvent):
        parse_frame('{"type": "join", "room_id": "S1"}', max_bytes=10)
