from typing import Iterable, Optional

from realtime.events import AttendanceChange, ParticipantJoined, ParticipantLeft
from schemas.attendance import AttendanceRecord


class AttendanceSheet:
    """student id -> latest attendance status, replaced wholesale per event."""

    def __init__(self):
        self.records: dict[str, AttendanceRecord] = {}

    def load(self, records: Iterable[AttendanceRecord]) -> None:
        self.records = {r.student_id: r.model_copy() for r in records}

    def on_attendance_change(self, change: AttendanceChange) -> bool:
        current = self.records.get(change.student_id)
        if current is not None and current.status == change.status:
            return False
        fields = {"student_id": change.student_id, "status": change.status}
        if change.timestamp:
            fields["timestamp"] = change.timestamp
        self.records[change.student_id] = AttendanceRecord(**fields)
        return True

    def status_of(self, student_id: str) -> Optional[str]:
        record = self.records.get(student_id)
        return record.status if record else None

    def present(self) -> list[str]:
        return sorted(s for s, r in self.records.items() if r.status == "present")


class Roster:
    """Who is live in the room right now, fed by presence events."""

    def __init__(self):
        self.participants: dict[str, ParticipantJoined] = {}

    def on_participant_joined(self, joined: ParticipantJoined) -> bool:
        if joined.connection_id in self.participants:
            return False
        self.participants[joined.connection_id] = joined.model_copy()
        return True

    def on_participant_left(self, left: ParticipantLeft) -> bool:
        return self.participants.pop(left.connection_id, None) is not None

    def teachers(self) -> list[ParticipantJoined]:
        return [p for p in self.participants.values() if p.role == "teacher"]
