from datetime import datetime
from typing import Any, Dict, List, Optional

from sqlalchemy import func, or_
from sqlalchemy.orm import Session

from tournament_hub.core.errors import NotFoundError
from tournament_hub.crud.interfaces import MatchDataSource
from tournament_hub.models.match import Match, MatchStatus


class SqlAlchemyMatchDataSource(MatchDataSource):
    def __init__(self, db: Session):
        self.db = db

    def _ordered(self, q):
        return q.order_by(Match.match_date.asc(), Match.match_number.asc(), Match.id.asc())

    def create(self, values: Dict[str, Any]) -> Match:
        row = Match(**values)
        self.db.add(row)
        self.db.flush()
        return row

    def find_by_id(self, match_id: int) -> Optional[Match]:
        return self.db.query(Match).filter(Match.id == match_id).populate_existing().one_or_none()

    def find_all(self) -> List[Match]:
        return self._ordered(self.db.query(Match)).all()

    def find_by_tournament(self, tournament_id: int) -> List[Match]:
        return self._ordered(self.db.query(Match).filter(Match.tournament_id == tournament_id)).all()

    def find_by_group(self, group_id: int) -> List[Match]:
        return self._ordered(self.db.query(Match).filter(Match.group_id == group_id)).all()

    def find_by_team(self, team_id: int, tournament_id: Optional[int] = None) -> List[Match]:
        q = self.db.query(Match).filter(or_(Match.home_team_id == team_id, Match.away_team_id == team_id))
        if tournament_id is not None:
            q = q.filter(Match.tournament_id == tournament_id)
        return self._ordered(q).all()

    def find_by_status(self, status: str, tournament_id: Optional[int] = None) -> List[Match]:
        q = self.db.query(Match).filter(Match.status == status)
        if tournament_id is not None:
            q = q.filter(Match.tournament_id == tournament_id)
        return self._ordered(q).all()

    def find_by_date_range(
        self, start: datetime, end: datetime, tournament_id: Optional[int] = None
    ) -> List[Match]:
        q = self.db.query(Match).filter(Match.match_date >= start, Match.match_date <= end)
        if tournament_id is not None:
            q = q.filter(Match.tournament_id == tournament_id)
        return self._ordered(q).all()

    def find_upcoming(self, team_id: Optional[int] = None, limit: int = 10) -> List[Match]:
        q = self.db.query(Match).filter(
            Match.status == MatchStatus.SCHEDULED.value,
            Match.match_date >= datetime.utcnow(),
        )
        if team_id is not None:
            q = q.filter(or_(Match.home_team_id == team_id, Match.away_team_id == team_id))
        return self._ordered(q).limit(limit).all()

    def update(self, match_id: int, values: Dict[str, Any]) -> Match:
        row = self.find_by_id(match_id)
        if row is None:
            raise NotFoundError(f"Match {match_id} not found")
        for key, value in values.items():
            setattr(row, key, value)
        self.db.flush()
        return row

    def delete(self, match_id: int) -> None:
        row = self.find_by_id(match_id)
        if row is None:
            raise NotFoundError(f"Match {match_id} not found")
        self.db.delete(row)
        self.db.flush()

    def delete_by_tournament(self, tournament_id: int) -> int:
        rows = self.db.query(Match).filter(Match.tournament_id == tournament_id).all()
        for row in rows:
            self.db.delete(row)
        self.db.flush()
        return len(rows)

    def generate_fixture(self, tournament_id: int, fixtures: List[Dict[str, Any]]) -> List[Match]:
        next_number = self.get_next_match_number(tournament_id)
        created = []
        for offset, values in enumerate(fixtures):
            row = Match(tournament_id=tournament_id, match_number=next_number + offset, **values)
            self.db.add(row)
            created.append(row)
        self.db.flush()
        return created

    def get_next_match_number(self, tournament_id: int) -> int:
        current = (
            self.db.query(func.max(Match.match_number))
            .filter(Match.tournament_id == tournament_id)
            .scalar()
        )
        return (current or 0) + 1
