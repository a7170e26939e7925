import logging
from datetime import datetime
from typing import List, Optional

from sqlalchemy.orm import Session

from tournament_hub.core.errors import ConflictError, NotFoundError, ValidationError
from tournament_hub.db.unit_of_work import SqlAlchemyUnitOfWork
from tournament_hub.models.category import Category
from tournament_hub.models.match import Match
from tournament_hub.models.team import Team
from tournament_hub.models.tournament import Tournament
from tournament_hub.schemas.tournament import TournamentCreate, TournamentUpdate

logger = logging.getLogger(__name__)


class TournamentService:
    def __init__(self, db: Session):
        self.db = db
        self.uow = SqlAlchemyUnitOfWork(db)

    def _require(self, tournament_id: int) -> Tournament:
        row = self.db.query(Tournament).filter(Tournament.id == tournament_id).first()
        if row is None:
            raise NotFoundError(f"Tournament {tournament_id} not found")
        return row

    def _categories(self, category_ids: List[int]) -> List[Category]:
        ids = list(dict.fromkeys(category_ids))
        rows = self.db.query(Category).filter(Category.id.in_(ids)).all()
        missing = sorted(set(ids) - {c.id for c in rows})
        if missing:
            raise NotFoundError(f"Categories not found: {missing}")
        return rows

    def create(self, data: TournamentCreate) -> Tournament:
        if data.end_date <= data.start_date:
            raise ValidationError("End date must be after start date")
        if data.start_date.date() < datetime.utcnow().date():
            raise ValidationError("Start date cannot be in the past")
        categories = self._categories(data.category_ids)

        with self.uow:
            row = Tournament(
                name=data.name.strip(),
                description=data.description,
                start_date=data.start_date,
                end_date=data.end_date,
                max_teams=data.max_teams,
                is_active=data.is_active,
            )
            row.categories = categories
            self.db.add(row)
            self.db.flush()
        logger.info("Created tournament %s (%s)", row.id, row.name)
        return row

    def get(self, tournament_id: int) -> Tournament:
        return self._require(tournament_id)

    def list(self, category_id: Optional[int] = None) -> List[Tournament]:
        q = self.db.query(Tournament)
        if category_id is not None:
            q = q.filter(Tournament.categories.any(Category.id == category_id))
        return q.order_by(Tournament.start_date.desc(), Tournament.id.desc()).all()

    def update(self, tournament_id: int, data: TournamentUpdate) -> Tournament:
        row = self._require(tournament_id)
        changes = data.model_dump(exclude_unset=True)
        # Only description may be cleared
        changes = {k: v for k, v in changes.items() if v is not None or k == "description"}

        start = changes.get("start_date") or row.start_date
        end = changes.get("end_date") or row.end_date
        if end <= start:
            raise ValidationError("End date must be after start date")
        if changes.get("max_teams") is not None and changes["max_teams"] < len(row.teams):
            raise ValidationError("max_teams cannot be lower than the number of registered teams")

        with self.uow:
            for key, value in changes.items():
                if key == "name" and value is not None:
                    value = value.strip()
                setattr(row, key, value)
            self.db.flush()
        return row

    def delete(self, tournament_id: int) -> None:
        row = self._require(tournament_id)
        matches = self.db.query(Match).filter(Match.tournament_id == tournament_id).count()
        if matches:
            raise ValidationError(f"Tournament {tournament_id} has {matches} matches and cannot be deleted")

        with self.uow:
            self.db.delete(row)
        logger.info("Deleted tournament %s", tournament_id)

    # --- categories ---

    def add_categories(self, tournament_id: int, category_ids: List[int]) -> Tournament:
        row = self._require(tournament_id)
        categories = self._categories(category_ids)
        with self.uow:
            current = {c.id for c in row.categories}
            row.categories.extend(c for c in categories if c.id not in current)
            self.db.flush()
        return row

    def remove_category(self, tournament_id: int, category_id: int) -> Tournament:
        row = self._require(tournament_id)
        remaining = [c for c in row.categories if c.id != category_id]
        if len(remaining) == len(row.categories):
            raise NotFoundError(f"Category {category_id} is not linked to tournament {tournament_id}")
        if not remaining:
            raise ValidationError("A tournament needs at least one category")
        with self.uow:
            row.categories = remaining
            self.db.flush()
        return row

    # --- teams ---

    def register_team(self, tournament_id: int, team_id: int) -> Tournament:
        row = self._require(tournament_id)
        team = self.db.query(Team).filter(Team.id == team_id).first()
        if team is None:
            raise NotFoundError(f"Team {team_id} not found")
        if not row.is_active:
            raise ValidationError("Tournament is not active")
        if any(t.id == team_id for t in row.teams):
            raise ConflictError(f"Team {team_id} is already registered in tournament {tournament_id}")
        if len(row.teams) >= row.max_teams:
            raise ValidationError(f"Tournament {tournament_id} is full ({row.max_teams} teams)")

        with self.uow:
            row.teams.append(team)
            self.db.flush()
        logger.info("Registered team %s in tournament %s", team_id, tournament_id)
        return row

    def unregister_team(self, tournament_id: int, team_id: int) -> Tournament:
        row = self._require(tournament_id)
        team = next((t for t in row.teams if t.id == team_id), None)
        if team is None:
            raise NotFoundError(f"Team {team_id} is not registered in tournament {tournament_id}")

        with self.uow:
            row.teams.remove(team)
            self.db.flush()
        logger.info("Unregistered team %s from tournament %s", team_id, tournament_id)
        return row
