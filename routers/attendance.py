from fastapi import APIRouter, Depends
from backend import RedisBackend
from realtime.events import EventTag, make_event
from realtime.relay import EventRelay
from routers.deps import get_backend, get_relay
from schemas.attendance import AttendanceRecord, UpdateAttendanceRequest
from logging_config import get_logger

logger = get_logger(__name__)

attendance_router = APIRouter(prefix="/sessions/{session_id}/attendance", tags=["attendance"])


@attendance_router.get("/", response_model=list[AttendanceRecord])
async def list_attendance(session_id: str, backend: RedisBackend = Depends(get_backend)):
    return backend.list_attendance(session_id)


@attendance_router.post("/", response_model=AttendanceRecord)
async def update_attendance(
    session_id: str,
    body: UpdateAttendanceRequest,
    backend: RedisBackend = Depends(get_backend),
    relay: EventRelay = Depends(get_relay),
):
    # Upsert: one record per (session, student)
    record = backend.set_attendance(session_id, body.student_id, body.status)
    delivered = await relay.publish(make_event(
        session_id,
        EventTag.ATTENDANCE_CHANGE,
        student_id=record.student_id,
        status=record.status,
        timestamp=record.timestamp,
    ))
    logger.debug(f"Attendance change for {record.student_id} relayed to {delivered} connections")
    return record
