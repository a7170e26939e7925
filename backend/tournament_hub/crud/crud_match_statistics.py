from typing import Any, Dict, List, Optional

from sqlalchemy import func
from sqlalchemy.orm import Session

from tournament_hub.core.errors import NotFoundError
from tournament_hub.crud.interfaces import MatchStatisticsDataSource
from tournament_hub.models.match import Match, MatchStatus
from tournament_hub.models.match_statistics import STAT_FIELDS, MatchStatistics
from tournament_hub.models.player import Player
from tournament_hub.models.team import Team
from tournament_hub.models.tournament import team_tournaments

# Matches that count for player aggregates (something was played)
PLAYED_STATUSES = (MatchStatus.IN_PROGRESS.value, MatchStatus.FINISHED.value)

POINTS_WIN = 3
POINTS_DRAW = 1


def _zeroed() -> Dict[str, int]:
    return {field: 0 for field in STAT_FIELDS}


class SqlAlchemyMatchStatisticsDataSource(MatchStatisticsDataSource):
    def __init__(self, db: Session):
        self.db = db

    def create(self, values: Dict[str, Any]) -> MatchStatistics:
        row = MatchStatistics(**{**_zeroed(), **values})
        self.db.add(row)
        self.db.flush()
        return row

    def find_by_id(self, statistics_id: int) -> Optional[MatchStatistics]:
        return self.db.query(MatchStatistics).filter(MatchStatistics.id == statistics_id).one_or_none()

    def find_by_match(self, match_id: int) -> List[MatchStatistics]:
        return (
            self.db.query(MatchStatistics)
            .filter(MatchStatistics.match_id == match_id)
            .order_by(MatchStatistics.team_id.asc(), MatchStatistics.player_id.asc())
            .all()
        )

    def find_by_match_and_player(self, match_id: int, player_id: int) -> Optional[MatchStatistics]:
        return (
            self.db.query(MatchStatistics)
            .filter(MatchStatistics.match_id == match_id, MatchStatistics.player_id == player_id)
            .one_or_none()
        )

    def _scoped(self, q, tournament_id: Optional[int]):
        q = q.join(Match, Match.id == MatchStatistics.match_id)
        if tournament_id is not None:
            q = q.filter(Match.tournament_id == tournament_id)
        return q.order_by(Match.match_date.asc(), MatchStatistics.id.asc())

    def find_by_player(self, player_id: int, tournament_id: Optional[int] = None) -> List[MatchStatistics]:
        q = self.db.query(MatchStatistics).filter(MatchStatistics.player_id == player_id)
        return self._scoped(q, tournament_id).all()

    def find_by_team(self, team_id: int, tournament_id: Optional[int] = None) -> List[MatchStatistics]:
        q = self.db.query(MatchStatistics).filter(MatchStatistics.team_id == team_id)
        return self._scoped(q, tournament_id).all()

    def update(self, statistics_id: int, values: Dict[str, int]) -> MatchStatistics:
        row = self.find_by_id(statistics_id)
        if row is None:
            raise NotFoundError(f"Statistics {statistics_id} not found")
        for key, value in values.items():
            setattr(row, key, value)
        self.db.flush()
        return row

    def delete(self, statistics_id: int) -> None:
        row = self.find_by_id(statistics_id)
        if row is None:
            raise NotFoundError(f"Statistics {statistics_id} not found")
        self.db.delete(row)
        self.db.flush()

    def upsert(self, match_id: int, player_id: int, team_id: int, delta: Dict[str, int]) -> MatchStatistics:
        # FOR UPDATE is a no-op on SQLite; on Postgres/MySQL it pins the row until commit
        row = (
            self.db.query(MatchStatistics)
            .filter(MatchStatistics.match_id == match_id, MatchStatistics.player_id == player_id)
            .with_for_update()
            .populate_existing()
            .one_or_none()
        )
        if row is None:
            row = MatchStatistics(match_id=match_id, player_id=player_id, team_id=team_id, **_zeroed())
            self.db.add(row)

        for field, amount in delta.items():
            # Counters never go below zero, even if a reversal arrives for a row created late
            setattr(row, field, max(0, (getattr(row, field) or 0) + amount))

        self.db.flush()
        return row

    def set_values(self, match_id: int, player_id: int, team_id: int, values: Dict[str, int]) -> MatchStatistics:
        row = self.find_by_match_and_player(match_id, player_id)
        if row is None:
            return self.create({"match_id": match_id, "player_id": player_id, "team_id": team_id, **values})
        for key, value in values.items():
            setattr(row, key, value)
        self.db.flush()
        return row

    def delete_by_match(self, match_id: int) -> int:
        deleted = (
            self.db.query(MatchStatistics)
            .filter(MatchStatistics.match_id == match_id)
            .delete(synchronize_session="fetch")
        )
        self.db.flush()
        return deleted

    def initialize_match_statistics(self, match_id: int, players: List[Dict[str, int]]) -> List[MatchStatistics]:
        rows = []
        # One player at a time: existing rows are returned untouched
        for item in players:
            row = self.find_by_match_and_player(match_id, item["player_id"])
            if row is None:
                row = self.create({"match_id": match_id, "player_id": item["player_id"], "team_id": item["team_id"]})
            rows.append(row)
        return rows

    # --- Aggregates ---

    def _player_totals_query(self, tournament_id: int):
        goals = func.coalesce(func.sum(MatchStatistics.goals), 0)
        assists = func.coalesce(func.sum(MatchStatistics.assists), 0)
        return (
            self.db.query(
                MatchStatistics.player_id.label("player_id"),
                Player.first_name.label("first_name"),
                Player.last_name.label("last_name"),
                Player.team_id.label("team_id"),
                Team.name.label("team_name"),
                func.count(func.distinct(MatchStatistics.match_id)).label("matches_played"),
                goals.label("goals"),
                assists.label("assists"),
                func.coalesce(func.sum(MatchStatistics.yellow_cards), 0).label("yellow_cards"),
                func.coalesce(func.sum(MatchStatistics.red_cards), 0).label("red_cards"),
                func.coalesce(func.sum(MatchStatistics.minutes_played), 0).label("minutes_played"),
            )
            .join(Match, Match.id == MatchStatistics.match_id)
            .join(Player, Player.id == MatchStatistics.player_id)
            .join(Team, Team.id == Player.team_id)
            .filter(Match.tournament_id == tournament_id, Match.status.in_(PLAYED_STATUSES))
            .group_by(
                MatchStatistics.player_id,
                Player.first_name,
                Player.last_name,
                Player.team_id,
                Team.name,
            )
        ), goals, assists

    @staticmethod
    def _player_row(row) -> Dict[str, Any]:
        data = dict(row._mapping)
        data["player_name"] = f"{data.pop('first_name')} {data.pop('last_name')}"
        return data

    def get_player_tournament_stats(
        self, tournament_id: int, limit: int, team_id: Optional[int] = None
    ) -> List[Dict[str, Any]]:
        q, goals, assists = self._player_totals_query(tournament_id)
        if team_id is not None:
            q = q.filter(MatchStatistics.team_id == team_id)
        rows = q.order_by(goals.desc(), assists.desc(), MatchStatistics.player_id.asc()).limit(limit).all()
        return [self._player_row(r) for r in rows]

    def get_top_scorers(self, tournament_id: int, limit: int) -> List[Dict[str, Any]]:
        q, goals, assists = self._player_totals_query(tournament_id)
        rows = (
            q.having(goals > 0)
            .order_by(goals.desc(), assists.desc(), MatchStatistics.player_id.asc())
            .limit(limit)
            .all()
        )
        return [self._player_row(r) for r in rows]

    def get_top_assists(self, tournament_id: int, limit: int) -> List[Dict[str, Any]]:
        q, goals, assists = self._player_totals_query(tournament_id)
        rows = (
            q.having(assists > 0)
            .order_by(assists.desc(), goals.desc(), MatchStatistics.player_id.asc())
            .limit(limit)
            .all()
        )
        return [self._player_row(r) for r in rows]

    def get_team_tournament_stats(self, tournament_id: int) -> List[Dict[str, Any]]:
        table: Dict[int, Dict[str, Any]] = {}

        def entry(team_id: int, name: str) -> Dict[str, Any]:
            if team_id not in table:
                table[team_id] = {
                    "team_id": team_id,
                    "team_name": name,
                    "played": 0,
                    "wins": 0,
                    "draws": 0,
                    "losses": 0,
                    "goals_for": 0,
                    "goals_against": 0,
                    "goal_difference": 0,
                    "points": 0,
                }
            return table[team_id]

        # Registered teams appear in the table even before playing
        registered = (
            self.db.query(Team.id, Team.name)
            .join(team_tournaments, team_tournaments.c.team_id == Team.id)
            .filter(team_tournaments.c.tournament_id == tournament_id)
            .all()
        )
        for team_id, name in registered:
            entry(team_id, name)

        finished = (
            self.db.query(Match)
            .filter(Match.tournament_id == tournament_id, Match.status == MatchStatus.FINISHED.value)
            .all()
        )
        for m in finished:
            home = entry(m.home_team_id, m.home_team.name)
            away = entry(m.away_team_id, m.away_team.name)
            for side, scored, conceded in ((home, m.home_score, m.away_score), (away, m.away_score, m.home_score)):
                side["played"] += 1
                side["goals_for"] += scored
                side["goals_against"] += conceded
                if scored > conceded:
                    side["wins"] += 1
                    side["points"] += POINTS_WIN
                elif scored == conceded:
                    side["draws"] += 1
                    side["points"] += POINTS_DRAW
                else:
                    side["losses"] += 1

        for row in table.values():
            row["goal_difference"] = row["goals_for"] - row["goals_against"]

        return sorted(
            table.values(),
            key=lambda r: (-r["points"], -r["goal_difference"], -r["goals_for"], r["team_id"]),
        )

    def get_tournament_totals(self, tournament_id: int) -> Dict[str, int]:
        finished = Match.status == MatchStatus.FINISHED.value
        matches, goals = (
            self.db.query(
                func.count(Match.id),
                func.coalesce(func.sum(Match.home_score + Match.away_score), 0),
            )
            .filter(Match.tournament_id == tournament_id, finished)
            .one()
        )
        yellow, red = (
            self.db.query(
                func.coalesce(func.sum(MatchStatistics.yellow_cards), 0),
                func.coalesce(func.sum(MatchStatistics.red_cards), 0),
            )
            .join(Match, Match.id == MatchStatistics.match_id)
            .filter(Match.tournament_id == tournament_id, finished)
            .one()
        )
        return {
            "matches_played": int(matches),
            "total_goals": int(goals),
            "total_yellow_cards": int(yellow),
            "total_red_cards": int(red),
        }
