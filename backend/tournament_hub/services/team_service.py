import logging
from typing import List, Optional

from sqlalchemy import or_
from sqlalchemy.orm import Session

from tournament_hub.core.errors import ConflictError, NotFoundError, ValidationError
from tournament_hub.db.unit_of_work import SqlAlchemyUnitOfWork
from tournament_hub.models.match import Match
from tournament_hub.models.team import Team
from tournament_hub.models.tournament import Tournament
from tournament_hub.schemas.team import TeamCreate, TeamUpdate

logger = logging.getLogger(__name__)


class TeamService:
    def __init__(self, db: Session):
        self.db = db
        self.uow = SqlAlchemyUnitOfWork(db)

    def _require(self, team_id: int) -> Team:
        row = self.db.query(Team).filter(Team.id == team_id).first()
        if row is None:
            raise NotFoundError(f"Team {team_id} not found")
        return row

    def _ensure_unique_name(self, name: str, exclude_id: Optional[int] = None) -> None:
        q = self.db.query(Team).filter(Team.name == name)
        if exclude_id is not None:
            q = q.filter(Team.id != exclude_id)
        if q.first():
            raise ConflictError(f"Team '{name}' already exists")

    def create(self, data: TeamCreate) -> Team:
        name = data.name.strip()
        self._ensure_unique_name(name)

        tournaments = []
        if data.tournament_ids:
            ids = list(dict.fromkeys(data.tournament_ids))
            tournaments = self.db.query(Tournament).filter(Tournament.id.in_(ids)).all()
            missing = sorted(set(ids) - {t.id for t in tournaments})
            if missing:
                raise NotFoundError(f"Tournaments not found: {missing}")
            for t in tournaments:
                if len(t.teams) >= t.max_teams:
                    raise ValidationError(f"Tournament {t.id} is full ({t.max_teams} teams)")

        with self.uow:
            row = Team(name=name, logo_path=data.logo_path, is_active=data.is_active)
            row.tournaments = tournaments
            self.db.add(row)
            self.db.flush()
        logger.info("Created team %s (%s)", row.id, row.name)
        return row

    def get(self, team_id: int) -> Team:
        return self._require(team_id)

    def list(self, tournament_id: Optional[int] = None) -> List[Team]:
        q = self.db.query(Team)
        if tournament_id is not None:
            q = q.filter(Team.tournaments.any(Tournament.id == tournament_id))
        return q.order_by(Team.name.asc()).all()

    def update(self, team_id: int, data: TeamUpdate) -> Team:
        row = self._require(team_id)
        changes = data.model_dump(exclude_unset=True)

        with self.uow:
            if changes.get("name") is not None:
                name = changes["name"].strip()
                self._ensure_unique_name(name, exclude_id=team_id)
                row.name = name
            if "logo_path" in changes:
                row.logo_path = changes["logo_path"]
            if changes.get("is_active") is not None:
                row.is_active = changes["is_active"]
            self.db.flush()
        return row

    def delete(self, team_id: int) -> None:
        row = self._require(team_id)
        played = (
            self.db.query(Match.id)
            .filter(or_(Match.home_team_id == team_id, Match.away_team_id == team_id))
            .first()
        )
        if played is not None:
            raise ValidationError(f"Team {team_id} has matches and cannot be deleted")
        if row.players:
            raise ValidationError(f"Team {team_id} still has {len(row.players)} players")

        with self.uow:
            self.db.delete(row)
        logger.info("Deleted team %s", team_id)
