from typing import Optional

from fastapi import APIRouter, Depends

from tournament_hub.api.deps import get_event_service
from tournament_hub.core.errors import ValidationError
from tournament_hub.core.security import get_current_user, require_staff
from tournament_hub.schemas.common import ApiResponse, ok
from tournament_hub.schemas.match_event import MatchEventBody, MatchEventCreate, MatchEventOut, MatchEventUpdate
from tournament_hub.services.match_event_service import MatchEventService

router = APIRouter(prefix="/api/v1", tags=["events"])


def _out(ev) -> MatchEventOut:
    return MatchEventOut.model_validate(ev)


@router.get("/matches/{match_id}/events", response_model=ApiResponse[list[MatchEventOut]])
def list_match_events(
    match_id: int,
    start_minute: Optional[int] = None,
    end_minute: Optional[int] = None,
    user=Depends(get_current_user),
    service: MatchEventService = Depends(get_event_service),
):
    if start_minute is not None or end_minute is not None:
        events = service.get_events_in_time_range(
            match_id,
            start_minute if start_minute is not None else 0,
            end_minute if end_minute is not None else 120,
        )
    else:
        events = service.get_events_by_match(match_id)
    return ok([_out(e) for e in events])


@router.post("/matches/{match_id}/events", response_model=ApiResponse[MatchEventOut], status_code=201)
def add_event(
    match_id: int,
    data: MatchEventBody,
    user=Depends(require_staff),
    service: MatchEventService = Depends(get_event_service),
):
    event = service.add_event(MatchEventCreate(match_id=match_id, **data.model_dump()))
    return ok(_out(event), "Event recorded")


@router.get("/events", response_model=ApiResponse[list[MatchEventOut]])
def search_events(
    player_id: Optional[int] = None,
    team_id: Optional[int] = None,
    event_type: Optional[str] = None,
    match_id: Optional[int] = None,
    tournament_id: Optional[int] = None,
    user=Depends(get_current_user),
    service: MatchEventService = Depends(get_event_service),
):
    if player_id is not None:
        events = service.get_events_by_player(player_id, tournament_id)
    elif team_id is not None:
        events = service.get_events_by_team(team_id, tournament_id)
    elif event_type is not None:
        events = service.get_events_by_type(event_type, match_id, tournament_id)
    else:
        raise ValidationError("One of player_id, team_id or event_type is required")
    return ok([_out(e) for e in events])


@router.get("/events/{event_id}", response_model=ApiResponse[MatchEventOut])
def get_event(event_id: int, user=Depends(get_current_user), service: MatchEventService = Depends(get_event_service)):
    return ok(_out(service.get_event_by_id(event_id)))


@router.patch("/events/{event_id}", response_model=ApiResponse[MatchEventOut])
def update_event(
    event_id: int,
    data: MatchEventUpdate,
    user=Depends(require_staff),
    service: MatchEventService = Depends(get_event_service),
):
    return ok(_out(service.update_event(event_id, data)), "Event updated")


@router.delete("/events/{event_id}", response_model=ApiResponse[None])
def remove_event(event_id: int, user=Depends(require_staff), service: MatchEventService = Depends(get_event_service)):
    service.remove_event(event_id)
    return ok(None, "Event removed")
