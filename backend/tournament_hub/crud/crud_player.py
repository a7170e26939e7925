from typing import Optional

from sqlalchemy.orm import Session

from tournament_hub.crud.interfaces import PlayerDirectory
from tournament_hub.models.player import Player
from tournament_hub.models.team import Team


class SqlAlchemyPlayerDirectory(PlayerDirectory):
    def __init__(self, db: Session):
        self.db = db

    def get_team_id(self, player_id: int) -> Optional[int]:
        row = self.db.query(Player.team_id).filter(Player.id == player_id).first()
        return row.team_id if row else None

    def get_display_name(self, player_id: int) -> Optional[str]:
        row = self.db.query(Player.first_name, Player.last_name).filter(Player.id == player_id).first()
        if row is None:
            return None
        return f"{row.first_name} {row.last_name}"

    def get_team_name(self, team_id: int) -> Optional[str]:
        row = self.db.query(Team.name).filter(Team.id == team_id).first()
        return row.name if row else None
