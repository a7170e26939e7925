"""
Match ORM model. Scores are derived from the event log (see
services/match_event_service.py) and never written directly by clients.
"""

import enum
from datetime import datetime

from sqlalchemy import JSON, CheckConstraint, Column, DateTime, ForeignKey, Index, Integer, String, UniqueConstraint
from sqlalchemy.orm import relationship

from tournament_hub.db.base import Base


class MatchStatus(str, enum.Enum):
    SCHEDULED = "scheduled"
    IN_PROGRESS = "in_progress"
    FINISHED = "finished"
    CANCELLED = "cancelled"


class Match(Base):
    __tablename__ = "matches"

    id = Column(Integer, primary_key=True, index=True)
    tournament_id = Column(Integer, ForeignKey("tournaments.id", ondelete="CASCADE"), nullable=False, index=True)
    group_id = Column(Integer, ForeignKey("tournament_groups.id", ondelete="SET NULL"), nullable=True, index=True)

    home_team_id = Column(Integer, ForeignKey("teams.id"), nullable=False, index=True)
    away_team_id = Column(Integer, ForeignKey("teams.id"), nullable=False, index=True)

    match_date = Column(DateTime, nullable=False, index=True)
    location = Column(String(200), nullable=True)
    status = Column(String(16), nullable=False, default=MatchStatus.SCHEDULED.value)

    home_score = Column(Integer, nullable=False, default=0)
    away_score = Column(Integer, nullable=False, default=0)

    round = Column(String(64), nullable=True)  # "Group stage", "Final"
    match_number = Column(Integer, nullable=False)

    start_time = Column(DateTime, nullable=True)
    end_time = Column(DateTime, nullable=True)

    # {"<team_id>": [player_id, ...]}; keys are strings because JSON objects need them
    attending_players = Column(JSON, nullable=True)

    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)

    tournament = relationship("Tournament")
    group = relationship("TournamentGroup")
    home_team = relationship("Team", foreign_keys=[home_team_id])
    away_team = relationship("Team", foreign_keys=[away_team_id])

    events = relationship("MatchEvent", back_populates="match", cascade="all, delete-orphan", passive_deletes=True)
    statistics = relationship("MatchStatistics", back_populates="match", cascade="all, delete-orphan", passive_deletes=True)

    __table_args__ = (
        UniqueConstraint("tournament_id", "match_number", name="uq_match_tournament_number"),
        CheckConstraint("home_team_id <> away_team_id", name="ck_match_distinct_teams"),
        Index("ix_matches_tournament_status", "tournament_id", "status"),
    )
