import logging
from typing import List, Optional

from sqlalchemy.orm import Session

from tournament_hub.core.errors import ConflictError, NotFoundError, ValidationError
from tournament_hub.db.unit_of_work import SqlAlchemyUnitOfWork
from tournament_hub.models.match_event import MatchEvent
from tournament_hub.models.match_statistics import MatchStatistics
from tournament_hub.models.player import Player
from tournament_hub.models.team import Team
from tournament_hub.schemas.player import PlayerCreate, PlayerUpdate

logger = logging.getLogger(__name__)


class PlayerService:
    def __init__(self, db: Session):
        self.db = db
        self.uow = SqlAlchemyUnitOfWork(db)

    def _require(self, player_id: int) -> Player:
        row = self.db.query(Player).filter(Player.id == player_id).first()
        if row is None:
            raise NotFoundError(f"Player {player_id} not found")
        return row

    def _require_team(self, team_id: int) -> Team:
        team = self.db.query(Team).filter(Team.id == team_id).first()
        if team is None:
            raise NotFoundError(f"Team {team_id} not found")
        return team

    def _ensure_unique_email(self, email: str, exclude_id: Optional[int] = None) -> None:
        q = self.db.query(Player).filter(Player.email == email)
        if exclude_id is not None:
            q = q.filter(Player.id != exclude_id)
        if q.first():
            raise ConflictError(f"Email {email} is already registered")

    def _ensure_free_jersey(self, team_id: int, jersey_number: Optional[int], exclude_id: Optional[int] = None) -> None:
        if jersey_number is None:
            return
        q = self.db.query(Player).filter(Player.team_id == team_id, Player.jersey_number == jersey_number)
        if exclude_id is not None:
            q = q.filter(Player.id != exclude_id)
        if q.first():
            raise ConflictError(f"Jersey number {jersey_number} is already taken in team {team_id}")

    @staticmethod
    def _clean_phone(phone: Optional[str]) -> Optional[str]:
        if phone is None:
            return None
        phone = phone.strip()
        digits = phone[1:] if phone.startswith("+") else phone
        if not digits.isdigit():
            raise ValidationError("Phone must contain only digits")
        return phone

    def create(self, data: PlayerCreate) -> Player:
        self._require_team(data.team_id)
        email = data.email.lower().strip()
        self._ensure_unique_email(email)
        self._ensure_free_jersey(data.team_id, data.jersey_number)

        with self.uow:
            row = Player(
                first_name=data.first_name.strip(),
                last_name=data.last_name.strip(),
                email=email,
                phone=self._clean_phone(data.phone),
                date_of_birth=data.date_of_birth,
                position=data.position,
                jersey_number=data.jersey_number,
                team_id=data.team_id,
                profile_photo_path=data.profile_photo_path,
            )
            self.db.add(row)
            self.db.flush()
        logger.info("Created player %s (%s) in team %s", row.id, row.full_name, row.team_id)
        return row

    def get(self, player_id: int) -> Player:
        return self._require(player_id)

    def list(self) -> List[Player]:
        return self.db.query(Player).order_by(Player.last_name.asc(), Player.first_name.asc()).all()

    def list_by_team(self, team_id: int) -> List[Player]:
        self._require_team(team_id)
        return (
            self.db.query(Player)
            .filter(Player.team_id == team_id)
            .order_by(Player.jersey_number.asc(), Player.last_name.asc())
            .all()
        )

    def update(self, player_id: int, data: PlayerUpdate) -> Player:
        row = self._require(player_id)
        changes = data.model_dump(exclude_unset=True)
        # Optional columns may be cleared; required ones ignore null
        optional = {"phone", "position", "jersey_number", "profile_photo_path"}
        changes = {k: v for k, v in changes.items() if v is not None or k in optional}

        team_id = changes.get("team_id", row.team_id)
        if team_id != row.team_id:
            self._require_team(team_id)
        if "email" in changes:
            changes["email"] = changes["email"].lower().strip()
            self._ensure_unique_email(changes["email"], exclude_id=player_id)
        if "phone" in changes:
            changes["phone"] = self._clean_phone(changes["phone"])
        self._ensure_free_jersey(team_id, changes.get("jersey_number", row.jersey_number), exclude_id=player_id)

        with self.uow:
            for key, value in changes.items():
                if key in ("first_name", "last_name"):
                    value = value.strip()
                setattr(row, key, value)
            self.db.flush()
        return row

    def delete(self, player_id: int) -> None:
        row = self._require(player_id)
        has_history = (
            self.db.query(MatchEvent.id).filter(MatchEvent.player_id == player_id).first() is not None
            or self.db.query(MatchStatistics.id).filter(MatchStatistics.player_id == player_id).first() is not None
        )
        if has_history:
            raise ValidationError(f"Player {player_id} has match history; deactivate instead")

        with self.uow:
            self.db.delete(row)
        logger.info("Deleted player %s", player_id)
