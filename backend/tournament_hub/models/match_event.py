"""
Match events: goals, cards, substitutions.
Goal-type events drive the match score; see SCORE_EVENT_TYPES.
"""

import enum
from datetime import datetime

from sqlalchemy import Column, DateTime, ForeignKey, Index, Integer, String, Text
from sqlalchemy.orm import relationship

from tournament_hub.db.base import Base


class MatchEventType(str, enum.Enum):
    GOAL = "goal"
    PENALTY_GOAL = "penalty_goal"
    OWN_GOAL = "own_goal"
    YELLOW_CARD = "yellow_card"
    RED_CARD = "red_card"
    SUBSTITUTION_IN = "substitution_in"
    SUBSTITUTION_OUT = "substitution_out"
    PENALTY_MISSED = "penalty_missed"
    INJURY = "injury"


SCORE_EVENT_TYPES = frozenset({MatchEventType.GOAL, MatchEventType.PENALTY_GOAL, MatchEventType.OWN_GOAL})
ASSISTABLE_EVENT_TYPES = frozenset({MatchEventType.GOAL, MatchEventType.PENALTY_GOAL})


class MatchEvent(Base):
    __tablename__ = "match_events"

    id = Column(Integer, primary_key=True, index=True)
    match_id = Column(Integer, ForeignKey("matches.id", ondelete="CASCADE"), nullable=False)
    team_id = Column(Integer, ForeignKey("teams.id"), nullable=False)
    player_id = Column(Integer, ForeignKey("players.id"), nullable=False)

    event_type = Column(String(32), nullable=False)
    minute = Column(Integer, nullable=False)
    extra_time = Column(Integer, nullable=True)

    assist_player_id = Column(Integer, ForeignKey("players.id"), nullable=True)
    description = Column(Text, nullable=True)

    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)

    # --- relationships ---
    match = relationship("Match", back_populates="events")
    team = relationship("Team")
    player = relationship("Player", foreign_keys=[player_id])
    assist_player = relationship("Player", foreign_keys=[assist_player_id])

    # --- indexes ---
    __table_args__ = (
        Index("ix_match_events_match_id", "match_id"),
        Index("ix_match_events_player", "player_id"),
        Index("ix_match_events_type", "event_type"),
    )
