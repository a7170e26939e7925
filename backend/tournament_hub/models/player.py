from datetime import datetime

from sqlalchemy import Boolean, Column, Date, DateTime, ForeignKey, Index, Integer, String, UniqueConstraint
from sqlalchemy.orm import relationship

from tournament_hub.db.base import Base


class Player(Base):
    __tablename__ = "players"

    id = Column(Integer, primary_key=True, index=True)

    first_name = Column(String(50), nullable=False)
    last_name = Column(String(50), nullable=False)
    email = Column(String(255), unique=True, nullable=False)
    phone = Column(String(15), nullable=True)
    date_of_birth = Column(Date, nullable=False)

    position = Column(String(50), nullable=True)
    jersey_number = Column(Integer, nullable=True)
    is_active = Column(Boolean, nullable=False, default=True)

    # Current team; statistics rows copy it when they are created
    team_id = Column(Integer, ForeignKey("teams.id"), nullable=False, index=True)
    profile_photo_path = Column(String(500), nullable=True)

    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)

    team = relationship("Team", back_populates="players", lazy="joined")

    __table_args__ = (
        UniqueConstraint("team_id", "jersey_number", name="uq_players_team_jersey"),
        Index("ix_players_team_name", "team_id", "last_name"),
    )

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}"
