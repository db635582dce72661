from fastapi import APIRouter, Depends, Request
from schemas.rooms import OnlineParticipant, RoomDetailsResponse
from realtime.relay import EventRelay
from routers.deps import get_relay
from logging_config import get_logger

logger = get_logger(__name__)

rooms_router = APIRouter(prefix="/rooms", tags=["rooms"])


@rooms_router.get("/")
async def list_rooms(relay: EventRelay = Depends(get_relay)):
    rooms = {room_id: len(relay.registry.members_of(room_id)) for room_id in sorted(relay.registry.room_ids())}
    return {"rooms": rooms}


@rooms_router.get("/{room_id}", response_model=RoomDetailsResponse)
async def get_room_details(room_id: str, request: Request, relay: EventRelay = Depends(get_relay)):
    """
    Live details for a classroom session room.

    Returns:
    - room_id: Session identifier
    - online_users_count: Connections currently joined
    - online_users: connection id, role, display name and connect time per member

    Unknown rooms are not an error: they simply have no members.
    """
    client_host = request.client.host if request.client else 'unknown'
    logger.info(f"Room details request for {room_id} from {client_host}")

    participants = [OnlineParticipant(**p.describe()) for p in relay.participants_of(room_id)]

    logger.info(f"Room details retrieved for {room_id}: {len(participants)} users online")
    return RoomDetailsResponse(
        room_id=room_id,
        online_users_count=len(participants),
        online_users=participants,
    )
