from datetime import date, datetime
from typing import Dict, List, Optional

from pydantic import BaseModel, Field

from tournament_hub.models.match import MatchStatus
from tournament_hub.schemas.refs import GroupRef, TeamRef, TournamentRef


class MatchCreate(BaseModel):
    tournament_id: int
    group_id: Optional[int] = None
    home_team_id: int
    away_team_id: int
    match_date: datetime
    location: Optional[str] = Field(default=None, max_length=200)
    round: Optional[str] = Field(default=None, max_length=64)
    match_number: Optional[int] = None


class MatchUpdate(BaseModel):
    match_date: Optional[datetime] = None
    location: Optional[str] = Field(default=None, max_length=200)
    round: Optional[str] = Field(default=None, max_length=64)
    group_id: Optional[int] = None
    status: Optional[MatchStatus] = None


class PredefinedFixture(BaseModel):
    home_team_id: int
    away_team_id: int
    date: date
    time: str = Field(pattern=r"^\d{2}:\d{2}(:\d{2})?$")  # "18:30"
    location: Optional[str] = Field(default=None, max_length=200)
    group_id: Optional[int] = None


class FixtureBody(BaseModel):
    group_id: Optional[int] = None
    start_date: datetime
    location: Optional[str] = Field(default=None, max_length=200)
    round: Optional[str] = Field(default=None, max_length=64)
    match_interval_days: int = 7
    matches_per_day: int = 1
    fixtures: Optional[List[PredefinedFixture]] = None


class FixtureRequest(FixtureBody):
    tournament_id: int


class AttendingPlayersUpdate(BaseModel):
    # {"<team_id>": [player_id, ...]}
    attending_players: Dict[str, List[int]]


class AttendingPlayerChange(BaseModel):
    team_id: int
    player_id: int


class MatchOut(BaseModel):
    id: int
    tournament_id: int
    group_id: Optional[int] = None
    home_team_id: int
    away_team_id: int
    match_date: datetime
    location: Optional[str] = None
    status: MatchStatus
    home_score: int
    away_score: int
    round: Optional[str] = None
    match_number: int
    start_time: Optional[datetime] = None
    end_time: Optional[datetime] = None
    attending_players: Optional[Dict[str, List[int]]] = None

    tournament: Optional[TournamentRef] = None
    group: Optional[GroupRef] = None
    home_team: Optional[TeamRef] = None
    away_team: Optional[TeamRef] = None

    created_at: datetime
    updated_at: datetime

    model_config = {"from_attributes": True}
