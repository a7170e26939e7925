from datetime import datetime
from typing import Optional

from pydantic import BaseModel


class MirroredMatchEvent(BaseModel):
    """Event as stored under match-events/{match_id}/{id} in the real-time store."""

    id: int
    match_id: int
    player_id: int
    team_id: int
    event_type: str
    minute: int
    extra_time: Optional[int] = None
    description: Optional[str] = None
    assist_player_id: Optional[int] = None
    created_at: datetime

    player_name: Optional[str] = None
    team_name: Optional[str] = None
    assist_player_name: Optional[str] = None

    model_config = {"from_attributes": True}
