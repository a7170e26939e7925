from typing import Any, Dict, List, Optional

from sqlalchemy import func
from sqlalchemy.orm import Session

from tournament_hub.core.errors import NotFoundError
from tournament_hub.crud.interfaces import MatchEventDataSource
from tournament_hub.models.match import Match
from tournament_hub.models.match_event import MatchEvent


class SqlAlchemyMatchEventDataSource(MatchEventDataSource):
    def __init__(self, db: Session):
        self.db = db

    def _ordered(self, q):
        # Match clock order; extra time sorts after the regular minute
        return q.order_by(
            MatchEvent.match_id.asc(),
            MatchEvent.minute.asc(),
            func.coalesce(MatchEvent.extra_time, 0).asc(),
            MatchEvent.id.asc(),
        )

    def _in_tournament(self, q, tournament_id: Optional[int]):
        if tournament_id is None:
            return q
        return q.join(Match, Match.id == MatchEvent.match_id).filter(Match.tournament_id == tournament_id)

    def create(self, values: Dict[str, Any]) -> MatchEvent:
        row = MatchEvent(**values)
        self.db.add(row)
        self.db.flush()
        return row

    def find_by_id(self, event_id: int) -> Optional[MatchEvent]:
        return self.db.query(MatchEvent).filter(MatchEvent.id == event_id).populate_existing().one_or_none()

    def find_by_match(self, match_id: int) -> List[MatchEvent]:
        return self._ordered(self.db.query(MatchEvent).filter(MatchEvent.match_id == match_id)).all()

    def find_by_player(self, player_id: int, tournament_id: Optional[int] = None) -> List[MatchEvent]:
        q = self.db.query(MatchEvent).filter(MatchEvent.player_id == player_id)
        return self._ordered(self._in_tournament(q, tournament_id)).all()

    def find_by_team(self, team_id: int, tournament_id: Optional[int] = None) -> List[MatchEvent]:
        q = self.db.query(MatchEvent).filter(MatchEvent.team_id == team_id)
        return self._ordered(self._in_tournament(q, tournament_id)).all()

    def update(self, event_id: int, values: Dict[str, Any]) -> MatchEvent:
        row = self.find_by_id(event_id)
        if row is None:
            raise NotFoundError(f"Match event {event_id} not found")
        for key, value in values.items():
            setattr(row, key, value)
        self.db.flush()
        return row

    def delete(self, event_id: int) -> None:
        row = self.find_by_id(event_id)
        if row is None:
            raise NotFoundError(f"Match event {event_id} not found")
        self.db.delete(row)
        self.db.flush()

    def find_by_event_type(
        self,
        event_types: List[str],
        match_id: Optional[int] = None,
        tournament_id: Optional[int] = None,
    ) -> List[MatchEvent]:
        q = self.db.query(MatchEvent).filter(MatchEvent.event_type.in_(event_types)).populate_existing()
        if match_id is not None:
            q = q.filter(MatchEvent.match_id == match_id)
        return self._ordered(self._in_tournament(q, tournament_id)).all()

    def delete_by_match(self, match_id: int) -> int:
        deleted = (
            self.db.query(MatchEvent)
            .filter(MatchEvent.match_id == match_id)
            .delete(synchronize_session="fetch")
        )
        self.db.flush()
        return deleted

    def get_events_in_time_range(self, match_id: int, start_minute: int, end_minute: int) -> List[MatchEvent]:
        q = self.db.query(MatchEvent).filter(
            MatchEvent.match_id == match_id,
            MatchEvent.minute >= start_minute,
            MatchEvent.minute <= end_minute,
        )
        return self._ordered(q).all()
