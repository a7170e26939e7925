"""
Match lifecycle: creation, fixtures, status transitions, attendance and
guarded deletion. Scores are only ever written by replaying the event log.
"""

import logging
from datetime import datetime, time, timedelta
from typing import Dict, List, Optional

from tournament_hub.core.errors import ConflictError, NotFoundError, ValidationError
from tournament_hub.core.locks import match_locks
from tournament_hub.crud.interfaces import (
    MatchDataSource,
    MatchEventDataSource,
    MatchStatisticsDataSource,
    PlayerDirectory,
)
from tournament_hub.db.unit_of_work import SqlAlchemyUnitOfWork
from tournament_hub.models.match import Match, MatchStatus
from tournament_hub.models.team import Team
from tournament_hub.models.tournament import Tournament
from tournament_hub.models.tournament_configuration import (
    TeamGroupAssignment,
    TournamentConfiguration,
    TournamentGroup,
)
from tournament_hub.realtime.notifier import MatchEventNotifier
from tournament_hub.schemas.match import FixtureRequest, MatchCreate, MatchUpdate
from tournament_hub.services.match_statistics_service import require_positive_id
from tournament_hub.services.scoring import replay_score

logger = logging.getLogger(__name__)

ALLOWED_TRANSITIONS = {
    MatchStatus.SCHEDULED.value: {MatchStatus.IN_PROGRESS.value, MatchStatus.CANCELLED.value},
    MatchStatus.IN_PROGRESS.value: {MatchStatus.FINISHED.value, MatchStatus.CANCELLED.value},
    MatchStatus.FINISHED.value: set(),
    MatchStatus.CANCELLED.value: set(),
}

UNDELETABLE_STATUSES = {MatchStatus.IN_PROGRESS.value, MatchStatus.FINISHED.value}

DEFAULT_LOCATION = "TBD"
DEFAULT_ROUND = "Group stage"
UPCOMING_LIMIT_MAX = 50


def validate_transition(current: str, target: str) -> None:
    if target not in ALLOWED_TRANSITIONS.get(current, set()):
        raise ValidationError(f"Invalid status transition from {current} to {target}")


def _status_value(status) -> str:
    value = status.value if isinstance(status, MatchStatus) else status
    if value not in ALLOWED_TRANSITIONS:
        raise ValidationError(f"Invalid match status: {status}")
    return value


class MatchService:
    def __init__(
        self,
        uow: SqlAlchemyUnitOfWork,
        matches: MatchDataSource,
        events: MatchEventDataSource,
        statistics: MatchStatisticsDataSource,
        players: PlayerDirectory,
        notifier: MatchEventNotifier,
    ):
        self.uow = uow
        self.db = uow.db
        self.matches = matches
        self.events = events
        self.statistics = statistics
        self.players = players
        self.notifier = notifier

    # --- lookups ---

    def _require_match(self, match_id: int) -> Match:
        require_positive_id(match_id, "match ID")
        match = self.matches.find_by_id(match_id)
        if match is None:
            raise NotFoundError(f"Match {match_id} not found")
        return match

    def _require_tournament(self, tournament_id: int) -> Tournament:
        tournament = self.db.query(Tournament).filter(Tournament.id == tournament_id).first()
        if tournament is None:
            raise NotFoundError(f"Tournament {tournament_id} not found")
        return tournament

    def _require_team(self, team_id: int) -> Team:
        team = self.db.query(Team).filter(Team.id == team_id).first()
        if team is None:
            raise NotFoundError(f"Team {team_id} not found")
        return team

    def _require_group(self, group_id: int, tournament_id: int) -> TournamentGroup:
        group = self.db.query(TournamentGroup).filter(TournamentGroup.id == group_id).first()
        if group is None:
            raise NotFoundError(f"Group {group_id} not found")
        if group.tournament_id != tournament_id:
            raise ValidationError(f"Group {group_id} does not belong to tournament {tournament_id}")
        return group

    # --- create / read ---

    def create_match(self, request: MatchCreate) -> Match:
        require_positive_id(request.tournament_id, "tournament ID")
        require_positive_id(request.home_team_id, "home team ID")
        require_positive_id(request.away_team_id, "away team ID")
        if request.home_team_id == request.away_team_id:
            raise ValidationError("Home team and away team must be different")
        if request.match_date < datetime.utcnow():
            raise ValidationError("Match date cannot be in the past")

        self._require_tournament(request.tournament_id)
        self._require_team(request.home_team_id)
        self._require_team(request.away_team_id)
        if request.group_id is not None:
            self._require_group(request.group_id, request.tournament_id)

        match_number = request.match_number
        if match_number is None:
            match_number = self.matches.get_next_match_number(request.tournament_id)
        else:
            require_positive_id(match_number, "match number")
            taken = [m for m in self.matches.find_by_tournament(request.tournament_id) if m.match_number == match_number]
            if taken:
                raise ConflictError(f"Match number {match_number} already used in this tournament")

        with self.uow:
            match = self.matches.create(
                {
                    "tournament_id": request.tournament_id,
                    "group_id": request.group_id,
                    "home_team_id": request.home_team_id,
                    "away_team_id": request.away_team_id,
                    "match_date": request.match_date,
                    "location": request.location,
                    "round": request.round,
                    "match_number": match_number,
                    "status": MatchStatus.SCHEDULED.value,
                    "home_score": 0,
                    "away_score": 0,
                }
            )
        logger.info("Created match %s (#%s) in tournament %s", match.id, match_number, request.tournament_id)
        return match

    def get_match_by_id(self, match_id: int) -> Match:
        return self._require_match(match_id)

    def get_all_matches(self) -> List[Match]:
        return self.matches.find_all()

    def get_matches_by_tournament(self, tournament_id: int) -> List[Match]:
        require_positive_id(tournament_id, "tournament ID")
        return self.matches.find_by_tournament(tournament_id)

    def get_matches_by_group(self, group_id: int) -> List[Match]:
        require_positive_id(group_id, "group ID")
        return self.matches.find_by_group(group_id)

    def get_matches_by_team(self, team_id: int, tournament_id: Optional[int] = None) -> List[Match]:
        require_positive_id(team_id, "team ID")
        return self.matches.find_by_team(team_id, tournament_id)

    def get_matches_by_status(self, status, tournament_id: Optional[int] = None) -> List[Match]:
        return self.matches.find_by_status(_status_value(status), tournament_id)

    def get_matches_by_date_range(
        self, start: datetime, end: datetime, tournament_id: Optional[int] = None
    ) -> List[Match]:
        if start >= end:
            raise ValidationError("Start date must be before end date")
        return self.matches.find_by_date_range(start, end, tournament_id)

    def get_upcoming_matches(self, team_id: Optional[int] = None, limit: int = 10) -> List[Match]:
        if limit < 1 or limit > UPCOMING_LIMIT_MAX:
            raise ValidationError(f"Limit must be between 1 and {UPCOMING_LIMIT_MAX}")
        return self.matches.find_upcoming(team_id, limit)

    # --- update / transitions ---

    def _transition_values(self, match: Match, target: str) -> Dict:
        validate_transition(match.status, target)
        values = {"status": target}
        now = datetime.utcnow()
        if target == MatchStatus.IN_PROGRESS.value:
            values["start_time"] = now
        elif target == MatchStatus.FINISHED.value:
            values["end_time"] = now
        return values

    def update_match(self, match_id: int, request: MatchUpdate) -> Match:
        match = self._require_match(match_id)
        changes = request.model_dump(exclude_unset=True)

        status = changes.pop("status", None)
        if status is not None:
            target = _status_value(status)
            if target != match.status:
                changes.update(self._transition_values(match, target))

        if changes.get("group_id") is not None:
            self._require_group(changes["group_id"], match.tournament_id)

        with self.uow:
            match = self.matches.update(match_id, changes)
        logger.info("Updated match %s (%s)", match_id, ", ".join(sorted(changes)) or "no changes")
        return match

    def _move_to(self, match_id: int, target: str) -> Match:
        match = self._require_match(match_id)
        values = self._transition_values(match, target)
        with self.uow:
            match = self.matches.update(match_id, values)
        logger.info("Match %s is now %s", match_id, target)
        return match

    def start_match(self, match_id: int) -> Match:
        return self._move_to(match_id, MatchStatus.IN_PROGRESS.value)

    def finish_match(self, match_id: int) -> Match:
        return self._move_to(match_id, MatchStatus.FINISHED.value)

    def cancel_match(self, match_id: int) -> Match:
        return self._move_to(match_id, MatchStatus.CANCELLED.value)

    def recalculate_score(self, match_id: int) -> Match:
        require_positive_id(match_id, "match ID")
        self._require_match(match_id)
        # Serialized with event mutations of the same match
        with match_locks.hold(match_id):
            with self.uow:
                match = replay_score(self.matches, self.events, match_id)
        logger.info("Match %s score recalculated: %s-%s", match_id, match.home_score, match.away_score)
        return match

    # --- delete ---

    def delete_match(self, match_id: int) -> None:
        match = self._require_match(match_id)
        if match.status in UNDELETABLE_STATUSES:
            raise ValidationError(f"Cannot delete a match that is {match.status}")

        with self.uow:
            removed_events = self.events.delete_by_match(match_id)
            removed_stats = self.statistics.delete_by_match(match_id)
            self.matches.delete(match_id)

        self.notifier.clear_match(match_id)
        logger.info(
            "Deleted match %s with %s events and %s statistics rows", match_id, removed_events, removed_stats
        )

    # --- fixtures ---

    def generate_fixture(self, request: FixtureRequest) -> List[Match]:
        require_positive_id(request.tournament_id, "tournament ID")
        if request.match_interval_days < 1:
            raise ValidationError("match_interval_days must be at least 1")
        if request.matches_per_day < 1:
            raise ValidationError("matches_per_day must be at least 1")
        if request.start_date < datetime.utcnow():
            raise ValidationError("Start date cannot be in the past")

        tournament = self._require_tournament(request.tournament_id)
        config = (
            self.db.query(TournamentConfiguration)
            .filter(TournamentConfiguration.tournament_id == tournament.id)
            .first()
        )
        if config is None or not config.is_configured:
            raise ValidationError("Tournament must be configured before generating fixtures")
        if request.group_id is not None:
            self._require_group(request.group_id, tournament.id)

        if request.fixtures:
            plans = self._predefined_plans(tournament, request)
        else:
            plans = self._round_robin_plans(tournament, request)

        with self.uow:
            created = self.matches.generate_fixture(tournament.id, plans)
        logger.info("Generated %s matches for tournament %s", len(created), tournament.id)
        return created

    def _predefined_plans(self, tournament: Tournament, request: FixtureRequest) -> List[Dict]:
        registered = {t.id for t in tournament.teams}
        plans = []
        for fx in request.fixtures:
            if fx.home_team_id == fx.away_team_id:
                raise ValidationError("Home team and away team must be different")
            for team_id in (fx.home_team_id, fx.away_team_id):
                if team_id not in registered:
                    raise ValidationError(f"Team {team_id} is not registered in tournament {tournament.id}")
            group_id = fx.group_id if fx.group_id is not None else request.group_id
            if group_id is not None:
                self._require_group(group_id, tournament.id)

            plans.append(
                {
                    "group_id": group_id,
                    "home_team_id": fx.home_team_id,
                    "away_team_id": fx.away_team_id,
                    "match_date": datetime.combine(fx.date, time.fromisoformat(fx.time)),
                    "location": fx.location or request.location or DEFAULT_LOCATION,
                    "round": request.round or DEFAULT_ROUND,
                    "status": MatchStatus.SCHEDULED.value,
                }
            )
        return plans

    def _round_robin_plans(self, tournament: Tournament, request: FixtureRequest) -> List[Dict]:
        if request.group_id is not None:
            team_ids = [
                a.team_id
                for a in self.db.query(TeamGroupAssignment)
                .filter(TeamGroupAssignment.group_id == request.group_id)
                .order_by(TeamGroupAssignment.team_id.asc())
                .all()
            ]
        else:
            team_ids = [t.id for t in tournament.teams]

        if len(team_ids) < 2:
            raise ValidationError("Tournament must have at least 2 teams to generate fixture")

        plans = []
        for i in range(len(team_ids)):
            for j in range(i + 1, len(team_ids)):
                slot = len(plans) // request.matches_per_day
                plans.append(
                    {
                        "group_id": request.group_id,
                        "home_team_id": team_ids[i],
                        "away_team_id": team_ids[j],
                        "match_date": request.start_date + timedelta(days=slot * request.match_interval_days),
                        "location": request.location or DEFAULT_LOCATION,
                        "round": request.round or DEFAULT_ROUND,
                        "status": MatchStatus.SCHEDULED.value,
                    }
                )
        return plans

    # --- attendance ---

    def _normalize_attendance(self, match: Match, mapping: Dict) -> Dict[str, List[int]]:
        sides = {match.home_team_id, match.away_team_id}
        normalized = {}
        for key, player_ids in mapping.items():
            try:
                team_id = int(key)
            except (TypeError, ValueError):
                raise ValidationError(f"Invalid team ID: {key}")
            if team_id <= 0:
                raise ValidationError(f"Invalid team ID: {key}")
            if team_id not in sides:
                raise ValidationError(f"Team {team_id} is not playing match {match.id}")
            if not isinstance(player_ids, list):
                raise ValidationError(f"Players for team {team_id} must be a list")
            for pid in player_ids:
                require_positive_id(pid, "player ID")
            if len(set(player_ids)) != len(player_ids):
                raise ValidationError(f"Duplicate player IDs for team {team_id}")
            normalized[str(team_id)] = list(player_ids)
        return normalized

    def _save_attendance(self, match_id: int, attendance: Dict[str, List[int]]) -> Match:
        # JSON columns are not change-tracked in place: always assign a fresh dict
        with self.uow:
            return self.matches.update(match_id, {"attending_players": dict(attendance)})

    def set_attending_players(self, match_id: int, mapping: Dict) -> Match:
        match = self._require_match(match_id)
        attendance = self._normalize_attendance(match, mapping)
        match = self._save_attendance(match_id, attendance)
        logger.info("Set attending players of match %s for %s teams", match_id, len(attendance))
        return match

    def add_player_to_match(self, match_id: int, team_id: int, player_id: int) -> Match:
        match = self._require_match(match_id)
        require_positive_id(team_id, "team ID")
        require_positive_id(player_id, "player ID")
        if team_id not in (match.home_team_id, match.away_team_id):
            raise ValidationError(f"Team {team_id} is not playing match {match_id}")

        player_team = self.players.get_team_id(player_id)
        if player_team is None:
            raise NotFoundError(f"Player {player_id} not found")
        if player_team != team_id:
            raise ValidationError(f"Player {player_id} does not belong to team {team_id}")

        attendance = {k: list(v) for k, v in (match.attending_players or {}).items()}
        roster = attendance.setdefault(str(team_id), [])
        if player_id in roster:
            return match
        roster.append(player_id)
        return self._save_attendance(match_id, attendance)

    def remove_player_from_match(self, match_id: int, team_id: int, player_id: int) -> Match:
        match = self._require_match(match_id)
        require_positive_id(team_id, "team ID")
        require_positive_id(player_id, "player ID")

        attendance = {k: list(v) for k, v in (match.attending_players or {}).items()}
        roster = attendance.get(str(team_id), [])
        if player_id not in roster:
            return match
        roster.remove(player_id)
        if not roster:
            del attendance[str(team_id)]
        return self._save_attendance(match_id, attendance)

    def get_attending_players(self, match_id: int) -> Dict[str, List[int]]:
        match = self._require_match(match_id)
        return match.attending_players or {}
