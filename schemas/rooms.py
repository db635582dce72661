from pydantic import BaseModel
from typing import Optional


class OnlineParticipant(BaseModel):
    connection_id: str
    role: str
    display_name: str
    connected_at: str

class RoomDetailsResponse(BaseModel):
    room_id: str
    online_users_count: int
    online_users: Optional[list[OnlineParticipant]] = None
