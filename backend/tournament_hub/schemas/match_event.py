from datetime import datetime
from typing import Optional

from pydantic import BaseModel

from tournament_hub.schemas.refs import PlayerRef, TeamRef


class MatchEventCreate(BaseModel):
    # Ranges and the assist rule are checked by MatchEventService so that
    # violations surface as 400 validation errors with a readable message.
    match_id: int
    team_id: int
    player_id: int
    event_type: str
    minute: int
    extra_time: Optional[int] = None
    assist_player_id: Optional[int] = None
    description: Optional[str] = None


class MatchEventBody(BaseModel):
    """Create payload when the match id comes from the URL."""

    team_id: int
    player_id: int
    event_type: str
    minute: int
    extra_time: Optional[int] = None
    assist_player_id: Optional[int] = None
    description: Optional[str] = None


class MatchEventUpdate(BaseModel):
    team_id: Optional[int] = None
    player_id: Optional[int] = None
    event_type: Optional[str] = None
    minute: Optional[int] = None
    extra_time: Optional[int] = None
    assist_player_id: Optional[int] = None
    description: Optional[str] = None


class MatchEventOut(BaseModel):
    id: int
    match_id: int
    team_id: int
    player_id: int
    event_type: str
    minute: int
    extra_time: Optional[int] = None
    assist_player_id: Optional[int] = None
    description: Optional[str] = None
    created_at: datetime

    player: Optional[PlayerRef] = None
    team: Optional[TeamRef] = None
    assist_player: Optional[PlayerRef] = None

    model_config = {"from_attributes": True}
