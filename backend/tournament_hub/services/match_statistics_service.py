"""
Per-player, per-match counters.

This service knows nothing about events; MatchEventService turns events into
deltas and calls upsert().
"""

import logging
from typing import Dict, Iterable, List, Optional

from tournament_hub.core.errors import ConflictError, NotFoundError, ValidationError
from tournament_hub.crud.interfaces import MatchDataSource, MatchStatisticsDataSource, PlayerDirectory
from tournament_hub.db.unit_of_work import SqlAlchemyUnitOfWork
from tournament_hub.models.match import MatchStatus
from tournament_hub.models.match_statistics import STAT_FIELDS, MatchStatistics
from tournament_hub.schemas.match_statistics import StatisticsCreate, StatisticsValues

logger = logging.getLogger(__name__)

# Upper bounds checked on every create/update
STAT_LIMITS = {
    "minutes_played": 120,
    "yellow_cards": 2,
    "red_cards": 1,
}

PLAYER_STATS_LIMIT_MAX = 100
TOP_LIMIT_MAX = 50


def require_positive_id(value, name: str) -> int:
    if not isinstance(value, int) or isinstance(value, bool) or value <= 0:
        raise ValidationError(f"Valid {name} is required")
    return value


def validate_statistics_values(values: Dict[str, int]) -> None:
    for field, value in values.items():
        if field not in STAT_FIELDS:
            raise ValidationError(f"Unknown statistics field: {field}")
        if not isinstance(value, int) or isinstance(value, bool):
            raise ValidationError(f"{field} must be an integer")
        if value < 0:
            raise ValidationError(f"{field} cannot be negative")
        limit = STAT_LIMITS.get(field)
        if limit is not None and value > limit:
            raise ValidationError(f"{field} cannot exceed {limit}")


def _limit(value: int, maximum: int) -> int:
    if value < 1 or value > maximum:
        raise ValidationError(f"Limit must be between 1 and {maximum}")
    return value


def _values(request: StatisticsValues) -> Dict[str, int]:
    return {k: v for k, v in request.model_dump(include=set(STAT_FIELDS)).items() if v is not None}


class MatchStatisticsService:
    def __init__(
        self,
        uow: SqlAlchemyUnitOfWork,
        statistics: MatchStatisticsDataSource,
        matches: MatchDataSource,
        players: PlayerDirectory,
    ):
        self.uow = uow
        self.statistics = statistics
        self.matches = matches
        self.players = players

    # --- helpers ---

    def _require_match(self, match_id: int):
        match = self.matches.find_by_id(match_id)
        if match is None:
            raise NotFoundError(f"Match {match_id} not found")
        return match

    def _require_player_team(self, player_id: int) -> int:
        team_id = self.players.get_team_id(player_id)
        if team_id is None:
            raise NotFoundError(f"Player {player_id} not found")
        return team_id

    def _require_row(self, statistics_id: int) -> MatchStatistics:
        row = self.statistics.find_by_id(statistics_id)
        if row is None:
            raise NotFoundError(f"Statistics {statistics_id} not found")
        return row

    # --- writes ---

    def upsert(self, match_id: int, player_id: int, delta: Dict[str, int]) -> MatchStatistics:
        require_positive_id(match_id, "match ID")
        require_positive_id(player_id, "player ID")
        for field in delta:
            if field not in STAT_FIELDS:
                raise ValidationError(f"Unknown statistics field: {field}")

        team_id = self._require_player_team(player_id)
        with self.uow:
            row = self.statistics.upsert(match_id, player_id, team_id, delta)
        logger.debug("Applied %s to statistics of player %s in match %s", delta, player_id, match_id)
        return row

    def initialize_match_statistics(self, match_id: int, player_ids: Iterable[int]) -> List[MatchStatistics]:
        require_positive_id(match_id, "match ID")
        player_ids = list(player_ids or [])
        if not player_ids:
            raise ValidationError("At least one player ID is required")
        for pid in player_ids:
            require_positive_id(pid, "player ID")

        self._require_match(match_id)

        unique_ids = list(dict.fromkeys(player_ids))
        players = [{"player_id": pid, "team_id": self._require_player_team(pid)} for pid in unique_ids]

        logger.info("Initializing statistics for %s players in match %s", len(players), match_id)
        with self.uow:
            rows = self.statistics.initialize_match_statistics(match_id, players)
        return rows

    def create_statistics(self, request: StatisticsCreate) -> MatchStatistics:
        require_positive_id(request.match_id, "match ID")
        require_positive_id(request.player_id, "player ID")
        if request.team_id is not None:
            require_positive_id(request.team_id, "team ID")
        values = _values(request)
        validate_statistics_values(values)

        self._require_match(request.match_id)
        team_id = request.team_id or self._require_player_team(request.player_id)
        if request.team_id is not None and self.players.get_team_id(request.player_id) is None:
            raise NotFoundError(f"Player {request.player_id} not found")

        if self.statistics.find_by_match_and_player(request.match_id, request.player_id) is not None:
            raise ConflictError(
                f"Statistics already exist for player {request.player_id} in match {request.match_id}"
            )

        with self.uow:
            row = self.statistics.create(
                {"match_id": request.match_id, "player_id": request.player_id, "team_id": team_id, **values}
            )
        logger.info("Created statistics %s for player %s in match %s", row.id, row.player_id, row.match_id)
        return row

    def set_player_statistics(self, match_id: int, player_id: int, request: StatisticsValues) -> MatchStatistics:
        require_positive_id(match_id, "match ID")
        require_positive_id(player_id, "player ID")
        values = _values(request)
        validate_statistics_values(values)

        match = self._require_match(match_id)
        team_id = self._require_player_team(player_id)
        if match.status == MatchStatus.FINISHED.value:
            logger.warning("Editing statistics of player %s in finished match %s", player_id, match_id)

        with self.uow:
            row = self.statistics.set_values(match_id, player_id, team_id, values)
        return row

    def update_statistics(self, statistics_id: int, request: StatisticsValues) -> MatchStatistics:
        require_positive_id(statistics_id, "statistics ID")
        values = _values(request)
        validate_statistics_values(values)

        row = self._require_row(statistics_id)
        match = self._require_match(row.match_id)
        if match.status == MatchStatus.FINISHED.value:
            logger.warning("Updating statistics %s of finished match %s", statistics_id, match.id)

        with self.uow:
            row = self.statistics.update(statistics_id, values)
        logger.info("Updated statistics %s", statistics_id)
        return row

    def delete_statistics(self, statistics_id: int) -> None:
        require_positive_id(statistics_id, "statistics ID")
        row = self._require_row(statistics_id)
        match = self._require_match(row.match_id)
        if match.status == MatchStatus.FINISHED.value:
            raise ValidationError("Cannot delete statistics of a finished match")

        with self.uow:
            self.statistics.delete(statistics_id)
        logger.info("Deleted statistics %s", statistics_id)

    # --- reads ---

    def get_statistics_by_id(self, statistics_id: int) -> MatchStatistics:
        require_positive_id(statistics_id, "statistics ID")
        return self._require_row(statistics_id)

    def get_statistics_by_match(self, match_id: int) -> List[MatchStatistics]:
        require_positive_id(match_id, "match ID")
        self._require_match(match_id)
        return self.statistics.find_by_match(match_id)

    def get_statistics_by_player(self, player_id: int, tournament_id: Optional[int] = None) -> List[MatchStatistics]:
        require_positive_id(player_id, "player ID")
        if tournament_id is not None:
            require_positive_id(tournament_id, "tournament ID")
        return self.statistics.find_by_player(player_id, tournament_id)

    def get_statistics_by_team(self, team_id: int, tournament_id: Optional[int] = None) -> List[MatchStatistics]:
        require_positive_id(team_id, "team ID")
        if tournament_id is not None:
            require_positive_id(tournament_id, "tournament ID")
        return self.statistics.find_by_team(team_id, tournament_id)

    def get_player_season_summary(self, player_id: int, tournament_id: int) -> dict:
        require_positive_id(player_id, "player ID")
        require_positive_id(tournament_id, "tournament ID")

        rows = self.statistics.find_by_player(player_id, tournament_id)
        totals = {field: sum(getattr(r, field) for r in rows) for field in STAT_FIELDS}
        matches = len(rows)
        shots = totals["shots_on_target"] + totals["shots_off_target"]

        return {
            "player_id": player_id,
            "tournament_id": tournament_id,
            "matches_played": matches,
            "minutes_played": totals["minutes_played"],
            "goals": totals["goals"],
            "assists": totals["assists"],
            "yellow_cards": totals["yellow_cards"],
            "red_cards": totals["red_cards"],
            "shots_on_target": totals["shots_on_target"],
            "shots_off_target": totals["shots_off_target"],
            "shot_accuracy": round(totals["shots_on_target"] / shots * 100, 1) if shots else 0.0,
            "goals_per_match": round(totals["goals"] / matches, 2) if matches else 0.0,
            "assists_per_match": round(totals["assists"] / matches, 2) if matches else 0.0,
            "average_minutes": round(totals["minutes_played"] / matches, 1) if matches else 0.0,
        }

    # --- tournament aggregates ---

    def get_player_tournament_stats(
        self, tournament_id: int, limit: int = 50, team_id: Optional[int] = None
    ) -> List[dict]:
        require_positive_id(tournament_id, "tournament ID")
        if team_id is not None:
            require_positive_id(team_id, "team ID")
        return self.statistics.get_player_tournament_stats(
            tournament_id, _limit(limit, PLAYER_STATS_LIMIT_MAX), team_id
        )

    def get_top_scorers(self, tournament_id: int, limit: int = 10) -> List[dict]:
        require_positive_id(tournament_id, "tournament ID")
        return self.statistics.get_top_scorers(tournament_id, _limit(limit, TOP_LIMIT_MAX))

    def get_top_assists(self, tournament_id: int, limit: int = 10) -> List[dict]:
        require_positive_id(tournament_id, "tournament ID")
        return self.statistics.get_top_assists(tournament_id, _limit(limit, TOP_LIMIT_MAX))

    def get_team_tournament_stats(self, tournament_id: int) -> List[dict]:
        require_positive_id(tournament_id, "tournament ID")
        return self.statistics.get_team_tournament_stats(tournament_id)

    def get_tournament_statistics(self, tournament_id: int) -> dict:
        require_positive_id(tournament_id, "tournament ID")
        totals = self.statistics.get_tournament_totals(tournament_id)
        played = totals["matches_played"]

        return {
            "tournament_id": tournament_id,
            **totals,
            "average_goals_per_match": round(totals["total_goals"] / played, 2) if played else 0.0,
            "top_scorers": self.statistics.get_top_scorers(tournament_id, 10),
            "top_assists": self.statistics.get_top_assists(tournament_id, 10),
            "team_standings": self.statistics.get_team_tournament_stats(tournament_id),
        }
