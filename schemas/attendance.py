from pydantic import BaseModel, Field
from typing import Literal
from datetime import datetime

AttendanceStatus = Literal["present", "absent"]


class AttendanceRecord(BaseModel):
    student_id: str
    status: AttendanceStatus = "absent"
    timestamp: str = Field(default_factory=lambda: datetime.now().isoformat())

class UpdateAttendanceRequest(BaseModel):
    student_id: str
    status: AttendanceStatus
