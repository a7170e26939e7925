from datetime import datetime
from typing import Dict, List, Optional

from fastapi import APIRouter, Depends, Query

from tournament_hub.api.deps import get_match_service
from tournament_hub.core.security import get_current_user, require_staff
from tournament_hub.models.match import MatchStatus
from tournament_hub.schemas.common import ApiResponse, ok
from tournament_hub.schemas.match import (
    AttendingPlayerChange,
    AttendingPlayersUpdate,
    FixtureBody,
    FixtureRequest,
    MatchCreate,
    MatchOut,
    MatchUpdate,
)
from tournament_hub.services.match_service import MatchService

router = APIRouter(prefix="/api/v1", tags=["matches"])


def _out(m) -> MatchOut:
    return MatchOut.model_validate(m)


@router.get("/matches", response_model=ApiResponse[list[MatchOut]])
def list_matches(
    tournament_id: Optional[int] = None,
    group_id: Optional[int] = None,
    team_id: Optional[int] = None,
    status: Optional[MatchStatus] = None,
    date_from: Optional[datetime] = None,
    date_to: Optional[datetime] = None,
    user=Depends(get_current_user),
    service: MatchService = Depends(get_match_service),
):
    # Most specific filter wins; the rest narrow by tournament where supported
    if date_from is not None and date_to is not None:
        rows = service.get_matches_by_date_range(date_from, date_to, tournament_id)
    elif team_id is not None:
        rows = service.get_matches_by_team(team_id, tournament_id)
    elif status is not None:
        rows = service.get_matches_by_status(status, tournament_id)
    elif group_id is not None:
        rows = service.get_matches_by_group(group_id)
    elif tournament_id is not None:
        rows = service.get_matches_by_tournament(tournament_id)
    else:
        rows = service.get_all_matches()
    return ok([_out(m) for m in rows])


@router.get("/matches/upcoming", response_model=ApiResponse[list[MatchOut]])
def upcoming_matches(
    team_id: Optional[int] = None,
    limit: int = Query(default=10),
    user=Depends(get_current_user),
    service: MatchService = Depends(get_match_service),
):
    return ok([_out(m) for m in service.get_upcoming_matches(team_id, limit)])


@router.post("/matches", response_model=ApiResponse[MatchOut], status_code=201)
def create_match(data: MatchCreate, user=Depends(require_staff), service: MatchService = Depends(get_match_service)):
    return ok(_out(service.create_match(data)), "Match created")


@router.get("/matches/{match_id}", response_model=ApiResponse[MatchOut])
def get_match(match_id: int, user=Depends(get_current_user), service: MatchService = Depends(get_match_service)):
    return ok(_out(service.get_match_by_id(match_id)))


@router.patch("/matches/{match_id}", response_model=ApiResponse[MatchOut])
def update_match(
    match_id: int,
    data: MatchUpdate,
    user=Depends(require_staff),
    service: MatchService = Depends(get_match_service),
):
    return ok(_out(service.update_match(match_id, data)), "Match updated")


@router.delete("/matches/{match_id}", response_model=ApiResponse[None])
def delete_match(match_id: int, user=Depends(require_staff), service: MatchService = Depends(get_match_service)):
    service.delete_match(match_id)
    return ok(None, "Match deleted")


# --- transitions ---


@router.post("/matches/{match_id}/start", response_model=ApiResponse[MatchOut])
def start_match(match_id: int, user=Depends(require_staff), service: MatchService = Depends(get_match_service)):
    return ok(_out(service.start_match(match_id)), "Match started")


@router.post("/matches/{match_id}/finish", response_model=ApiResponse[MatchOut])
def finish_match(match_id: int, user=Depends(require_staff), service: MatchService = Depends(get_match_service)):
    return ok(_out(service.finish_match(match_id)), "Match finished")


@router.post("/matches/{match_id}/cancel", response_model=ApiResponse[MatchOut])
def cancel_match(match_id: int, user=Depends(require_staff), service: MatchService = Depends(get_match_service)):
    return ok(_out(service.cancel_match(match_id)), "Match cancelled")


@router.post("/matches/{match_id}/recalculate-score", response_model=ApiResponse[MatchOut])
def recalculate_score(match_id: int, user=Depends(require_staff), service: MatchService = Depends(get_match_service)):
    return ok(_out(service.recalculate_score(match_id)), "Score recalculated")


# --- attendance ---


@router.get("/matches/{match_id}/attending-players", response_model=ApiResponse[Dict[str, List[int]]])
def get_attending_players(
    match_id: int,
    user=Depends(get_current_user),
    service: MatchService = Depends(get_match_service),
):
    return ok(service.get_attending_players(match_id))


@router.put("/matches/{match_id}/attending-players", response_model=ApiResponse[MatchOut])
def set_attending_players(
    match_id: int,
    data: AttendingPlayersUpdate,
    user=Depends(require_staff),
    service: MatchService = Depends(get_match_service),
):
    return ok(_out(service.set_attending_players(match_id, data.attending_players)), "Attending players updated")


@router.post("/matches/{match_id}/attending-players", response_model=ApiResponse[MatchOut])
def add_attending_player(
    match_id: int,
    data: AttendingPlayerChange,
    user=Depends(require_staff),
    service: MatchService = Depends(get_match_service),
):
    return ok(_out(service.add_player_to_match(match_id, data.team_id, data.player_id)), "Player added")


@router.delete("/matches/{match_id}/attending-players/{team_id}/{player_id}", response_model=ApiResponse[MatchOut])
def remove_attending_player(
    match_id: int,
    team_id: int,
    player_id: int,
    user=Depends(require_staff),
    service: MatchService = Depends(get_match_service),
):
    return ok(_out(service.remove_player_from_match(match_id, team_id, player_id)), "Player removed")


# --- fixtures ---


@router.post("/tournaments/{tournament_id}/fixtures", response_model=ApiResponse[list[MatchOut]], status_code=201)
def generate_fixture(
    tournament_id: int,
    data: FixtureBody,
    user=Depends(require_staff),
    service: MatchService = Depends(get_match_service),
):
    matches = service.generate_fixture(FixtureRequest(tournament_id=tournament_id, **data.model_dump()))
    return ok([_out(m) for m in matches], f"{len(matches)} matches generated")


@router.get("/tournaments/{tournament_id}/fixtures", response_model=ApiResponse[list[MatchOut]])
def list_fixture(
    tournament_id: int,
    user=Depends(get_current_user),
    service: MatchService = Depends(get_match_service),
):
    return ok([_out(m) for m in service.get_matches_by_tournament(tournament_id)])
