from typing import Optional

from fastapi import APIRouter, Depends

from tournament_hub.api.deps import get_player_service, get_team_service
from tournament_hub.core.security import get_current_user, require_staff
from tournament_hub.schemas.common import ApiResponse, ok
from tournament_hub.schemas.player import PlayerOut
from tournament_hub.schemas.team import TeamCreate, TeamOut, TeamUpdate
from tournament_hub.services.player_service import PlayerService
from tournament_hub.services.team_service import TeamService

router = APIRouter(prefix="/api/v1/teams", tags=["teams"])


@router.get("", response_model=ApiResponse[list[TeamOut]])
def list_teams(
    tournament_id: Optional[int] = None,
    user=Depends(get_current_user),
    service: TeamService = Depends(get_team_service),
):
    return ok([TeamOut.model_validate(t) for t in service.list(tournament_id)])


@router.post("", response_model=ApiResponse[TeamOut], status_code=201)
def create_team(data: TeamCreate, user=Depends(require_staff), service: TeamService = Depends(get_team_service)):
    return ok(TeamOut.model_validate(service.create(data)), "Team created")


@router.get("/{team_id}", response_model=ApiResponse[TeamOut])
def get_team(team_id: int, user=Depends(get_current_user), service: TeamService = Depends(get_team_service)):
    return ok(TeamOut.model_validate(service.get(team_id)))


@router.patch("/{team_id}", response_model=ApiResponse[TeamOut])
def update_team(
    team_id: int,
    data: TeamUpdate,
    user=Depends(require_staff),
    service: TeamService = Depends(get_team_service),
):
    return ok(TeamOut.model_validate(service.update(team_id, data)), "Team updated")


@router.delete("/{team_id}", response_model=ApiResponse[None])
def delete_team(team_id: int, user=Depends(require_staff), service: TeamService = Depends(get_team_service)):
    service.delete(team_id)
    return ok(None, "Team deleted")


@router.get("/{team_id}/players", response_model=ApiResponse[list[PlayerOut]])
def list_team_players(
    team_id: int,
    user=Depends(get_current_user),
    service: PlayerService = Depends(get_player_service),
):
    return ok([PlayerOut.model_validate(p) for p in service.list_by_team(team_id)])
