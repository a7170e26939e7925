from fastapi import APIRouter, Depends

from tournament_hub.api.deps import get_player_service
from tournament_hub.core.security import get_current_user, require_staff
from tournament_hub.schemas.common import ApiResponse, ok
from tournament_hub.schemas.player import PlayerCreate, PlayerOut, PlayerUpdate
from tournament_hub.services.player_service import PlayerService

router = APIRouter(prefix="/api/v1/players", tags=["players"])


@router.get("", response_model=ApiResponse[list[PlayerOut]])
def list_players(user=Depends(get_current_user), service: PlayerService = Depends(get_player_service)):
    return ok([PlayerOut.model_validate(p) for p in service.list()])


@router.post("", response_model=ApiResponse[PlayerOut], status_code=201)
def create_player(data: PlayerCreate, user=Depends(require_staff), service: PlayerService = Depends(get_player_service)):
    return ok(PlayerOut.model_validate(service.create(data)), "Player created")


@router.get("/{player_id}", response_model=ApiResponse[PlayerOut])
def get_player(player_id: int, user=Depends(get_current_user), service: PlayerService = Depends(get_player_service)):
    return ok(PlayerOut.model_validate(service.get(player_id)))


@router.patch("/{player_id}", response_model=ApiResponse[PlayerOut])
def update_player(
    player_id: int,
    data: PlayerUpdate,
    user=Depends(require_staff),
    service: PlayerService = Depends(get_player_service),
):
    return ok(PlayerOut.model_validate(service.update(player_id, data)), "Player updated")


@router.delete("/{player_id}", response_model=ApiResponse[None])
def delete_player(player_id: int, user=Depends(require_staff), service: PlayerService = Depends(get_player_service)):
    service.delete(player_id)
    return ok(None, "Player deleted")
