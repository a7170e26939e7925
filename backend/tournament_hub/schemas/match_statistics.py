from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel

from tournament_hub.schemas.refs import PlayerRef, TeamRef


class StatisticsValues(BaseModel):
    minutes_played: Optional[int] = None
    goals: Optional[int] = None
    assists: Optional[int] = None
    yellow_cards: Optional[int] = None
    red_cards: Optional[int] = None
    shots_on_target: Optional[int] = None
    shots_off_target: Optional[int] = None
    fouls_committed: Optional[int] = None
    fouls_received: Optional[int] = None
    corners: Optional[int] = None
    offsides: Optional[int] = None
    saves: Optional[int] = None


class StatisticsCreate(StatisticsValues):
    match_id: int
    player_id: int
    team_id: Optional[int] = None  # defaults to the player's current team


class PlayerStatisticsBody(StatisticsValues):
    player_id: int


class InitializeStatisticsRequest(BaseModel):
    player_ids: List[int]


class StatisticsOut(BaseModel):
    id: int
    match_id: int
    player_id: int
    team_id: int
    minutes_played: int
    goals: int
    assists: int
    yellow_cards: int
    red_cards: int
    shots_on_target: int
    shots_off_target: int
    fouls_committed: int
    fouls_received: int
    corners: int
    offsides: int
    saves: int

    player: Optional[PlayerRef] = None
    team: Optional[TeamRef] = None

    created_at: datetime
    updated_at: datetime

    model_config = {"from_attributes": True}


class PlayerTournamentStats(BaseModel):
    player_id: int
    player_name: str
    team_id: int
    team_name: str
    matches_played: int
    goals: int
    assists: int
    yellow_cards: int
    red_cards: int
    minutes_played: int


class TeamStanding(BaseModel):
    team_id: int
    team_name: str
    played: int
    wins: int
    draws: int
    losses: int
    goals_for: int
    goals_against: int
    goal_difference: int
    points: int


class TournamentStatistics(BaseModel):
    tournament_id: int
    matches_played: int
    total_goals: int
    total_yellow_cards: int
    total_red_cards: int
    average_goals_per_match: float
    top_scorers: List[PlayerTournamentStats]
    top_assists: List[PlayerTournamentStats]
    team_standings: List[TeamStanding]


class PlayerSeasonSummary(BaseModel):
    player_id: int
    tournament_id: int
    matches_played: int
    minutes_played: int
    goals: int
    assists: int
    yellow_cards: int
    red_cards: int
    shots_on_target: int
    shots_off_target: int
    shot_accuracy: float  # percent of shots on target
    goals_per_match: float
    assists_per_match: float
    average_minutes: float
