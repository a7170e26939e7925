from typing import Optional

from fastapi import APIRouter, Depends

from tournament_hub.api.deps import get_configuration_service, get_tournament_service
from tournament_hub.core.security import get_current_user, require_staff
from tournament_hub.schemas.common import ApiResponse, ok
from tournament_hub.schemas.tournament import CategoryIds, TournamentCreate, TournamentOut, TournamentUpdate
from tournament_hub.schemas.tournament_configuration import (
    ConfigurationCreate,
    ConfigurationOut,
    ConfigurationUpdate,
)
from tournament_hub.services.tournament_configuration_service import TournamentConfigurationService
from tournament_hub.services.tournament_service import TournamentService

router = APIRouter(prefix="/api/v1/tournaments", tags=["tournaments"])


def _out(t) -> TournamentOut:
    return TournamentOut.model_validate(t)


@router.get("", response_model=ApiResponse[list[TournamentOut]])
def list_tournaments(
    category_id: Optional[int] = None,
    user=Depends(get_current_user),
    service: TournamentService = Depends(get_tournament_service),
):
    return ok([_out(t) for t in service.list(category_id)])


@router.post("", response_model=ApiResponse[TournamentOut], status_code=201)
def create_tournament(
    data: TournamentCreate,
    user=Depends(require_staff),
    service: TournamentService = Depends(get_tournament_service),
):
    return ok(_out(service.create(data)), "Tournament created")


@router.get("/{tournament_id}", response_model=ApiResponse[TournamentOut])
def get_tournament(
    tournament_id: int,
    user=Depends(get_current_user),
    service: TournamentService = Depends(get_tournament_service),
):
    return ok(_out(service.get(tournament_id)))


@router.patch("/{tournament_id}", response_model=ApiResponse[TournamentOut])
def update_tournament(
    tournament_id: int,
    data: TournamentUpdate,
    user=Depends(require_staff),
    service: TournamentService = Depends(get_tournament_service),
):
    return ok(_out(service.update(tournament_id, data)), "Tournament updated")


@router.delete("/{tournament_id}", response_model=ApiResponse[None])
def delete_tournament(
    tournament_id: int,
    user=Depends(require_staff),
    service: TournamentService = Depends(get_tournament_service),
):
    service.delete(tournament_id)
    return ok(None, "Tournament deleted")


# --- categories / teams ---


@router.post("/{tournament_id}/categories", response_model=ApiResponse[TournamentOut])
def add_categories(
    tournament_id: int,
    data: CategoryIds,
    user=Depends(require_staff),
    service: TournamentService = Depends(get_tournament_service),
):
    return ok(_out(service.add_categories(tournament_id, data.category_ids)), "Categories added")


@router.delete("/{tournament_id}/categories/{category_id}", response_model=ApiResponse[TournamentOut])
def remove_category(
    tournament_id: int,
    category_id: int,
    user=Depends(require_staff),
    service: TournamentService = Depends(get_tournament_service),
):
    return ok(_out(service.remove_category(tournament_id, category_id)), "Category removed")


@router.post("/{tournament_id}/teams/{team_id}", response_model=ApiResponse[TournamentOut])
def register_team(
    tournament_id: int,
    team_id: int,
    user=Depends(require_staff),
    service: TournamentService = Depends(get_tournament_service),
):
    return ok(_out(service.register_team(tournament_id, team_id)), "Team registered")


@router.delete("/{tournament_id}/teams/{team_id}", response_model=ApiResponse[TournamentOut])
def unregister_team(
    tournament_id: int,
    team_id: int,
    user=Depends(require_staff),
    service: TournamentService = Depends(get_tournament_service),
):
    return ok(_out(service.unregister_team(tournament_id, team_id)), "Team unregistered")


# --- configuration ---


def _config_out(service: TournamentConfigurationService, config) -> ConfigurationOut:
    return ConfigurationOut(
        id=config.id,
        tournament_id=config.tournament_id,
        number_of_groups=config.number_of_groups,
        teams_per_group=config.teams_per_group,
        is_configured=config.is_configured,
        groups=service.groups(config.tournament_id),
        created_at=config.created_at,
        updated_at=config.updated_at,
    )


@router.get("/{tournament_id}/configuration", response_model=ApiResponse[ConfigurationOut])
def get_configuration(
    tournament_id: int,
    user=Depends(get_current_user),
    service: TournamentConfigurationService = Depends(get_configuration_service),
):
    return ok(_config_out(service, service.get(tournament_id)))


@router.post("/{tournament_id}/configuration", response_model=ApiResponse[ConfigurationOut], status_code=201)
def configure_tournament(
    tournament_id: int,
    data: ConfigurationCreate,
    user=Depends(require_staff),
    service: TournamentConfigurationService = Depends(get_configuration_service),
):
    return ok(_config_out(service, service.configure(tournament_id, data)), "Tournament configured")


@router.patch("/{tournament_id}/configuration", response_model=ApiResponse[ConfigurationOut])
def update_configuration(
    tournament_id: int,
    data: ConfigurationUpdate,
    user=Depends(require_staff),
    service: TournamentConfigurationService = Depends(get_configuration_service),
):
    return ok(_config_out(service, service.update(tournament_id, data)), "Configuration updated")


@router.delete("/{tournament_id}/configuration", response_model=ApiResponse[None])
def delete_configuration(
    tournament_id: int,
    user=Depends(require_staff),
    service: TournamentConfigurationService = Depends(get_configuration_service),
):
    service.delete(tournament_id)
    return ok(None, "Configuration deleted")
