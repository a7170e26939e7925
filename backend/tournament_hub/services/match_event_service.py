"""
Match event log and its side effects.

Every mutation runs the same pipeline inside one transaction:

    event row -> statistics delta (+1 / -1) -> score replay (goal types only)

and, once committed, mirrors the event to the real-time store. The mirror
goes through a BestEffortNotifier, so a failing store never affects the
stored result. Mutations on the same match are serialized with match_locks.
"""

import logging
from typing import Dict, List, Optional

from tournament_hub.core.errors import NotFoundError, ValidationError
from tournament_hub.core.locks import match_locks
from tournament_hub.crud.interfaces import MatchDataSource, MatchEventDataSource, PlayerDirectory
from tournament_hub.db.unit_of_work import SqlAlchemyUnitOfWork
from tournament_hub.models.match import Match, MatchStatus
from tournament_hub.models.match_event import (
    ASSISTABLE_EVENT_TYPES,
    MatchEvent,
    MatchEventType,
)
from tournament_hub.realtime.notifier import MatchEventNotifier
from tournament_hub.realtime.payloads import MirroredMatchEvent
from tournament_hub.schemas.match_event import MatchEventCreate, MatchEventUpdate
from tournament_hub.services.match_statistics_service import MatchStatisticsService, require_positive_id
from tournament_hub.services.scoring import SCORE_TYPES, replay_score

logger = logging.getLogger(__name__)

EVENT_TYPES = {t.value for t in MatchEventType}
ASSIST_TYPES = {t.value for t in ASSISTABLE_EVENT_TYPES}

MAX_MINUTE = 120
MAX_EXTRA_TIME = 30

_SNAPSHOT_FIELDS = ("match_id", "team_id", "player_id", "event_type", "minute", "extra_time", "assist_player_id")


def validate_event(values: Dict) -> None:
    """Shape checks shared by create and update (on the merged event)."""
    require_positive_id(values.get("match_id"), "match ID")
    require_positive_id(values.get("team_id"), "team ID")
    require_positive_id(values.get("player_id"), "player ID")

    event_type = values.get("event_type")
    if not event_type:
        raise ValidationError("Event type is required")
    if event_type not in EVENT_TYPES:
        raise ValidationError(f"Invalid event type: {event_type}")

    minute = values.get("minute")
    if not isinstance(minute, int) or minute < 0 or minute > MAX_MINUTE:
        raise ValidationError(f"Minute must be between 0 and {MAX_MINUTE}")

    extra_time = values.get("extra_time")
    if extra_time is not None and (extra_time < 0 or extra_time > MAX_EXTRA_TIME):
        raise ValidationError(f"Extra time must be between 0 and {MAX_EXTRA_TIME}")

    assist_player_id = values.get("assist_player_id")
    if assist_player_id is not None:
        if event_type not in ASSIST_TYPES:
            raise ValidationError("Assist player can only be set for goal or penalty_goal events")
        require_positive_id(assist_player_id, "assist player ID")
        if assist_player_id == values.get("player_id"):
            raise ValidationError("Assist player cannot be the scorer")


def statistics_delta(event: Dict, multiplier: int) -> Dict[int, Dict[str, int]]:
    """Counter changes caused by one event, keyed by player id."""
    event_type = event["event_type"]
    player_id = event["player_id"]

    if event_type in ASSIST_TYPES:
        changes = {player_id: {"goals": multiplier}}
        if event.get("assist_player_id"):
            changes[event["assist_player_id"]] = {"assists": multiplier}
        return changes
    if event_type == MatchEventType.YELLOW_CARD.value:
        return {player_id: {"yellow_cards": multiplier}}
    if event_type == MatchEventType.RED_CARD.value:
        return {player_id: {"red_cards": multiplier}}
    # own_goal only moves the score; the remaining types carry no counter
    return {}


def _snapshot(event: MatchEvent) -> Dict:
    return {field: getattr(event, field) for field in _SNAPSHOT_FIELDS}


class MatchEventService:
    def __init__(
        self,
        uow: SqlAlchemyUnitOfWork,
        events: MatchEventDataSource,
        matches: MatchDataSource,
        statistics_service: MatchStatisticsService,
        players: PlayerDirectory,
        notifier: MatchEventNotifier,
    ):
        self.uow = uow
        self.events = events
        self.matches = matches
        self.statistics_service = statistics_service
        self.players = players
        self.notifier = notifier

    # --- helpers ---

    def _require_match(self, match_id: int) -> Match:
        match = self.matches.find_by_id(match_id)
        if match is None:
            raise NotFoundError(f"Match {match_id} not found")
        return match

    def _require_event(self, event_id: int) -> MatchEvent:
        event = self.events.find_by_id(event_id)
        if event is None:
            raise NotFoundError(f"Match event {event_id} not found")
        return event

    def _require_participants(self, values: Dict) -> None:
        if self.players.get_team_name(values["team_id"]) is None:
            raise NotFoundError(f"Team {values['team_id']} not found")
        for key in ("player_id", "assist_player_id"):
            player_id = values.get(key)
            if player_id is not None and self.players.get_team_id(player_id) is None:
                raise NotFoundError(f"Player {player_id} not found")

    def _apply_statistics(self, event: Dict, multiplier: int) -> None:
        for player_id, delta in statistics_delta(event, multiplier).items():
            self.statistics_service.upsert(event["match_id"], player_id, delta)

    def _mirror_payload(self, event: MatchEvent) -> MirroredMatchEvent:
        payload = MirroredMatchEvent.model_validate(event)
        payload.player_name = self.players.get_display_name(event.player_id)
        payload.team_name = self.players.get_team_name(event.team_id)
        if event.assist_player_id:
            payload.assist_player_name = self.players.get_display_name(event.assist_player_id)
        return payload

    def _publish(self, event: MatchEvent, match_id: int) -> None:
        # Runs after commit: the stored event stands even if the mirror copy cannot be built
        try:
            payload = self._mirror_payload(event)
        except Exception:
            logger.exception("Failed to build real-time payload for event of match %s", match_id)
            return
        self.notifier.sync_match_event(payload)

    # --- score ---

    def _replay_score(self, match_id: int) -> Match:
        with self.uow:
            match = replay_score(self.matches, self.events, match_id)
        logger.info("Match %s score recalculated: %s-%s", match_id, match.home_score, match.away_score)
        return match

    def update_match_score(self, match_id: int) -> Match:
        """Recount the score from every goal-type event of the match."""
        require_positive_id(match_id, "match ID")
        with match_locks.hold(match_id):
            return self._replay_score(match_id)

    # --- writes ---

    def add_event(self, request: MatchEventCreate) -> MatchEvent:
        values = request.model_dump()
        validate_event(values)
        match_id = values["match_id"]
        logger.info("Adding %s event to match %s", values["event_type"], match_id)

        with match_locks.hold(match_id):
            # Events are accepted in every match status so results can be corrected afterwards
            self._require_match(match_id)
            self._require_participants(values)

            with self.uow:
                event = self.events.create(values)
                self._apply_statistics(values, +1)
                if values["event_type"] in SCORE_TYPES:
                    self._replay_score(match_id)

        self._publish(event, match_id)
        logger.info("Event %s added to match %s", event.id, match_id)
        return event

    def update_event(self, event_id: int, request: MatchEventUpdate) -> MatchEvent:
        require_positive_id(event_id, "event ID")
        match_id = self._require_event(event_id).match_id

        with match_locks.hold(match_id):
            # Re-read under the lock: another request may have changed the event meanwhile
            existing = self._require_event(event_id)
            match = self._require_match(match_id)
            if match.status == MatchStatus.FINISHED.value:
                raise ValidationError("Cannot update events of a finished match")

            old = _snapshot(existing)
            changes = request.model_dump(exclude_unset=True)
            merged = {**old, **changes}
            validate_event(merged)
            self._require_participants(merged)

            with self.uow:
                self._apply_statistics(old, -1)
                event = self.events.update(event_id, changes)
                self._apply_statistics(merged, +1)
                if old["event_type"] in SCORE_TYPES or merged["event_type"] in SCORE_TYPES:
                    self._replay_score(match_id)

        self._publish(event, match_id)
        logger.info("Event %s of match %s updated", event_id, match_id)
        return event

    def remove_event(self, event_id: int) -> None:
        require_positive_id(event_id, "event ID")
        match_id = self._require_event(event_id).match_id

        with match_locks.hold(match_id):
            existing = self._require_event(event_id)
            match = self._require_match(match_id)
            if match.status == MatchStatus.FINISHED.value:
                raise ValidationError("Cannot remove events of a finished match")

            old = _snapshot(existing)
            with self.uow:
                self._apply_statistics(old, -1)
                self.events.delete(event_id)
                if old["event_type"] in SCORE_TYPES:
                    self._replay_score(match_id)

        self.notifier.remove_match_event(match_id, event_id)
        logger.info("Event %s removed from match %s", event_id, match_id)

    # --- reads ---

    def get_event_by_id(self, event_id: int) -> MatchEvent:
        require_positive_id(event_id, "event ID")
        return self._require_event(event_id)

    def get_events_by_match(self, match_id: int) -> List[MatchEvent]:
        require_positive_id(match_id, "match ID")
        self._require_match(match_id)
        return self.events.find_by_match(match_id)

    def get_events_by_player(self, player_id: int, tournament_id: Optional[int] = None) -> List[MatchEvent]:
        require_positive_id(player_id, "player ID")
        return self.events.find_by_player(player_id, tournament_id)

    def get_events_by_team(self, team_id: int, tournament_id: Optional[int] = None) -> List[MatchEvent]:
        require_positive_id(team_id, "team ID")
        return self.events.find_by_team(team_id, tournament_id)

    def get_events_by_type(
        self, event_type: str, match_id: Optional[int] = None, tournament_id: Optional[int] = None
    ) -> List[MatchEvent]:
        if event_type not in EVENT_TYPES:
            raise ValidationError(f"Invalid event type: {event_type}")
        return self.events.find_by_event_type([event_type], match_id=match_id, tournament_id=tournament_id)

    def get_events_in_time_range(self, match_id: int, start_minute: int, end_minute: int) -> List[MatchEvent]:
        require_positive_id(match_id, "match ID")
        if start_minute < 0 or end_minute > MAX_MINUTE or start_minute >= end_minute:
            raise ValidationError(f"Time range must satisfy 0 <= start < end <= {MAX_MINUTE}")
        self._require_match(match_id)
        return self.events.get_events_in_time_range(match_id, start_minute, end_minute)
