"""
Player match statistics: one row per player per match.
Counters are maintained by event deltas and by direct edits.
"""

from datetime import datetime

from sqlalchemy import Column, DateTime, ForeignKey, Index, Integer, UniqueConstraint
from sqlalchemy.orm import relationship

from tournament_hub.db.base import Base

# Counter columns, in display order. Used for validation, zero-init and aggregates.
STAT_FIELDS = (
    "minutes_played",
    "goals",
    "assists",
    "yellow_cards",
    "red_cards",
    "shots_on_target",
    "shots_off_target",
    "fouls_committed",
    "fouls_received",
    "corners",
    "offsides",
    "saves",
)


class MatchStatistics(Base):
    __tablename__ = "match_statistics"

    id = Column(Integer, primary_key=True, index=True)
    match_id = Column(Integer, ForeignKey("matches.id", ondelete="CASCADE"), nullable=False)
    player_id = Column(Integer, ForeignKey("players.id", ondelete="CASCADE"), nullable=False, index=True)
    team_id = Column(Integer, ForeignKey("teams.id"), nullable=False, index=True)

    # --- GAME ---
    minutes_played = Column(Integer, nullable=False, default=0)

    # --- GOALS ---
    goals = Column(Integer, nullable=False, default=0)
    assists = Column(Integer, nullable=False, default=0)

    # --- CARDS ---
    yellow_cards = Column(Integer, nullable=False, default=0)
    red_cards = Column(Integer, nullable=False, default=0)

    # --- SHOTS ---
    shots_on_target = Column(Integer, nullable=False, default=0)
    shots_off_target = Column(Integer, nullable=False, default=0)

    # --- FOULS / SET PIECES ---
    fouls_committed = Column(Integer, nullable=False, default=0)
    fouls_received = Column(Integer, nullable=False, default=0)
    corners = Column(Integer, nullable=False, default=0)
    offsides = Column(Integer, nullable=False, default=0)

    # --- GOALKEEPING ---
    saves = Column(Integer, nullable=False, default=0)

    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)

    match = relationship("Match", back_populates="statistics")
    player = relationship("Player")
    team = relationship("Team")

    __table_args__ = (
        UniqueConstraint("match_id", "player_id", name="uq_match_statistics_match_player"),
        Index("ix_match_statistics_match", "match_id"),
    )
