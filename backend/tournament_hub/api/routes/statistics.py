from typing import Optional

from fastapi import APIRouter, Depends

from tournament_hub.api.deps import get_statistics_service
from tournament_hub.core.errors import ValidationError
from tournament_hub.core.security import get_current_user, require_staff
from tournament_hub.schemas.common import ApiResponse, ok
from tournament_hub.schemas.match_statistics import (
    InitializeStatisticsRequest,
    PlayerSeasonSummary,
    PlayerStatisticsBody,
    PlayerTournamentStats,
    StatisticsCreate,
    StatisticsOut,
    StatisticsValues,
    TeamStanding,
    TournamentStatistics,
)
from tournament_hub.services.match_statistics_service import MatchStatisticsService

router = APIRouter(prefix="/api/v1", tags=["statistics"])


def _out(row) -> StatisticsOut:
    return StatisticsOut.model_validate(row)


# --- per match ---


@router.get("/matches/{match_id}/statistics", response_model=ApiResponse[list[StatisticsOut]])
def match_statistics(
    match_id: int,
    user=Depends(get_current_user),
    service: MatchStatisticsService = Depends(get_statistics_service),
):
    return ok([_out(r) for r in service.get_statistics_by_match(match_id)])


@router.put("/matches/{match_id}/statistics", response_model=ApiResponse[StatisticsOut])
def set_player_statistics(
    match_id: int,
    data: PlayerStatisticsBody,
    user=Depends(require_staff),
    service: MatchStatisticsService = Depends(get_statistics_service),
):
    values = StatisticsValues(**data.model_dump(exclude={"player_id"}))
    return ok(_out(service.set_player_statistics(match_id, data.player_id, values)), "Statistics saved")


@router.post("/matches/{match_id}/statistics/initialize", response_model=ApiResponse[list[StatisticsOut]])
def initialize_statistics(
    match_id: int,
    data: InitializeStatisticsRequest,
    user=Depends(require_staff),
    service: MatchStatisticsService = Depends(get_statistics_service),
):
    rows = service.initialize_match_statistics(match_id, data.player_ids)
    return ok([_out(r) for r in rows], "Statistics initialized")


# --- rows ---


@router.get("/statistics", response_model=ApiResponse[list[StatisticsOut]])
def search_statistics(
    player_id: Optional[int] = None,
    team_id: Optional[int] = None,
    tournament_id: Optional[int] = None,
    user=Depends(get_current_user),
    service: MatchStatisticsService = Depends(get_statistics_service),
):
    if player_id is not None:
        rows = service.get_statistics_by_player(player_id, tournament_id)
    elif team_id is not None:
        rows = service.get_statistics_by_team(team_id, tournament_id)
    else:
        raise ValidationError("player_id or team_id is required")
    return ok([_out(r) for r in rows])


@router.post("/statistics", response_model=ApiResponse[StatisticsOut], status_code=201)
def create_statistics(
    data: StatisticsCreate,
    user=Depends(require_staff),
    service: MatchStatisticsService = Depends(get_statistics_service),
):
    return ok(_out(service.create_statistics(data)), "Statistics created")


@router.get("/statistics/{statistics_id}", response_model=ApiResponse[StatisticsOut])
def get_statistics(
    statistics_id: int,
    user=Depends(get_current_user),
    service: MatchStatisticsService = Depends(get_statistics_service),
):
    return ok(_out(service.get_statistics_by_id(statistics_id)))


@router.patch("/statistics/{statistics_id}", response_model=ApiResponse[StatisticsOut])
def update_statistics(
    statistics_id: int,
    data: StatisticsValues,
    user=Depends(require_staff),
    service: MatchStatisticsService = Depends(get_statistics_service),
):
    return ok(_out(service.update_statistics(statistics_id, data)), "Statistics updated")


@router.delete("/statistics/{statistics_id}", response_model=ApiResponse[None])
def delete_statistics(
    statistics_id: int,
    user=Depends(require_staff),
    service: MatchStatisticsService = Depends(get_statistics_service),
):
    service.delete_statistics(statistics_id)
    return ok(None, "Statistics deleted")


@router.get("/players/{player_id}/summary", response_model=ApiResponse[PlayerSeasonSummary])
def player_summary(
    player_id: int,
    tournament_id: int,
    user=Depends(get_current_user),
    service: MatchStatisticsService = Depends(get_statistics_service),
):
    return ok(service.get_player_season_summary(player_id, tournament_id))


# --- tournament aggregates ---


@router.get("/tournaments/{tournament_id}/statistics", response_model=ApiResponse[TournamentStatistics])
def tournament_statistics(
    tournament_id: int,
    user=Depends(get_current_user),
    service: MatchStatisticsService = Depends(get_statistics_service),
):
    return ok(service.get_tournament_statistics(tournament_id))


@router.get("/tournaments/{tournament_id}/statistics/players", response_model=ApiResponse[list[PlayerTournamentStats]])
def tournament_player_stats(
    tournament_id: int,
    limit: int = 50,
    team_id: Optional[int] = None,
    user=Depends(get_current_user),
    service: MatchStatisticsService = Depends(get_statistics_service),
):
    return ok(service.get_player_tournament_stats(tournament_id, limit, team_id))


@router.get("/tournaments/{tournament_id}/statistics/teams", response_model=ApiResponse[list[TeamStanding]])
def tournament_team_stats(
    tournament_id: int,
    user=Depends(get_current_user),
    service: MatchStatisticsService = Depends(get_statistics_service),
):
    return ok(service.get_team_tournament_stats(tournament_id))


@router.get(
    "/tournaments/{tournament_id}/statistics/top-scorers",
    response_model=ApiResponse[list[PlayerTournamentStats]],
)
def top_scorers(
    tournament_id: int,
    limit: int = 10,
    user=Depends(get_current_user),
    service: MatchStatisticsService = Depends(get_statistics_service),
):
    return ok(service.get_top_scorers(tournament_id, limit))


@router.get(
    "/tournaments/{tournament_id}/statistics/top-assists",
    response_model=ApiResponse[list[PlayerTournamentStats]],
)
def top_assists(
    tournament_id: int,
    limit: int = 10,
    user=Depends(get_current_user),
    service: MatchStatisticsService = Depends(get_statistics_service),
):
    return ok(service.get_top_assists(tournament_id, limit))
