"""
Persistence contracts used by the match services.

The services only talk to these interfaces; crud/crud_*.py provide the
SQLAlchemy implementations. Adapters never commit: the caller owns the
transaction (see db/unit_of_work.py).
"""

from abc import ABC, abstractmethod
from datetime import datetime
from typing import Any, Dict, List, Optional

from tournament_hub.models.match import Match
from tournament_hub.models.match_event import MatchEvent
from tournament_hub.models.match_statistics import MatchStatistics


class MatchDataSource(ABC):
    @abstractmethod
    def create(self, values: Dict[str, Any]) -> Match:
        pass

    @abstractmethod
    def find_by_id(self, match_id: int) -> Optional[Match]:
        pass

    @abstractmethod
    def find_all(self) -> List[Match]:
        pass

    @abstractmethod
    def find_by_tournament(self, tournament_id: int) -> List[Match]:
        pass

    @abstractmethod
    def find_by_group(self, group_id: int) -> List[Match]:
        pass

    @abstractmethod
    def find_by_team(self, team_id: int, tournament_id: Optional[int] = None) -> List[Match]:
        pass

    @abstractmethod
    def find_by_status(self, status: str, tournament_id: Optional[int] = None) -> List[Match]:
        pass

    @abstractmethod
    def find_by_date_range(
        self, start: datetime, end: datetime, tournament_id: Optional[int] = None
    ) -> List[Match]:
        pass

    @abstractmethod
    def find_upcoming(self, team_id: Optional[int] = None, limit: int = 10) -> List[Match]:
        pass

    @abstractmethod
    def update(self, match_id: int, values: Dict[str, Any]) -> Match:
        pass

    @abstractmethod
    def delete(self, match_id: int) -> None:
        pass

    @abstractmethod
    def delete_by_tournament(self, tournament_id: int) -> int:
        pass

    @abstractmethod
    def generate_fixture(self, tournament_id: int, fixtures: List[Dict[str, Any]]) -> List[Match]:
        """Persist planned matches, numbering them after the current maximum."""

    @abstractmethod
    def get_next_match_number(self, tournament_id: int) -> int:
        pass


class MatchEventDataSource(ABC):
    @abstractmethod
    def create(self, values: Dict[str, Any]) -> MatchEvent:
        pass

    @abstractmethod
    def find_by_id(self, event_id: int) -> Optional[MatchEvent]:
        pass

    @abstractmethod
    def find_by_match(self, match_id: int) -> List[MatchEvent]:
        pass

    @abstractmethod
    def find_by_player(self, player_id: int, tournament_id: Optional[int] = None) -> List[MatchEvent]:
        pass

    @abstractmethod
    def find_by_team(self, team_id: int, tournament_id: Optional[int] = None) -> List[MatchEvent]:
        pass

    @abstractmethod
    def update(self, event_id: int, values: Dict[str, Any]) -> MatchEvent:
        pass

    @abstractmethod
    def delete(self, event_id: int) -> None:
        pass

    @abstractmethod
    def find_by_event_type(
        self,
        event_types: List[str],
        match_id: Optional[int] = None,
        tournament_id: Optional[int] = None,
    ) -> List[MatchEvent]:
        pass

    @abstractmethod
    def delete_by_match(self, match_id: int) -> int:
        pass

    @abstractmethod
    def get_events_in_time_range(self, match_id: int, start_minute: int, end_minute: int) -> List[MatchEvent]:
        pass


class MatchStatisticsDataSource(ABC):
    @abstractmethod
    def create(self, values: Dict[str, Any]) -> MatchStatistics:
        pass

    @abstractmethod
    def find_by_id(self, statistics_id: int) -> Optional[MatchStatistics]:
        pass

    @abstractmethod
    def find_by_match(self, match_id: int) -> List[MatchStatistics]:
        pass

    @abstractmethod
    def find_by_match_and_player(self, match_id: int, player_id: int) -> Optional[MatchStatistics]:
        pass

    @abstractmethod
    def find_by_player(self, player_id: int, tournament_id: Optional[int] = None) -> List[MatchStatistics]:
        pass

    @abstractmethod
    def find_by_team(self, team_id: int, tournament_id: Optional[int] = None) -> List[MatchStatistics]:
        pass

    @abstractmethod
    def update(self, statistics_id: int, values: Dict[str, int]) -> MatchStatistics:
        pass

    @abstractmethod
    def delete(self, statistics_id: int) -> None:
        pass

    @abstractmethod
    def upsert(self, match_id: int, player_id: int, team_id: int, delta: Dict[str, int]) -> MatchStatistics:
        """Add `delta` to the row's counters, creating a zeroed row first if needed."""

    @abstractmethod
    def set_values(self, match_id: int, player_id: int, team_id: int, values: Dict[str, int]) -> MatchStatistics:
        pass

    @abstractmethod
    def delete_by_match(self, match_id: int) -> int:
        pass

    @abstractmethod
    def initialize_match_statistics(self, match_id: int, players: List[Dict[str, int]]) -> List[MatchStatistics]:
        pass

    # --- Aggregates (tournament scope) ---

    @abstractmethod
    def get_player_tournament_stats(
        self, tournament_id: int, limit: int, team_id: Optional[int] = None
    ) -> List[Dict[str, Any]]:
        pass

    @abstractmethod
    def get_top_scorers(self, tournament_id: int, limit: int) -> List[Dict[str, Any]]:
        pass

    @abstractmethod
    def get_top_assists(self, tournament_id: int, limit: int) -> List[Dict[str, Any]]:
        pass

    @abstractmethod
    def get_team_tournament_stats(self, tournament_id: int) -> List[Dict[str, Any]]:
        pass

    @abstractmethod
    def get_tournament_totals(self, tournament_id: int) -> Dict[str, int]:
        pass


class PlayerDirectory(ABC):
    @abstractmethod
    def get_team_id(self, player_id: int) -> Optional[int]:
        """Current team of the player, or None if the player does not exist."""

    @abstractmethod
    def get_display_name(self, player_id: int) -> Optional[str]:
        pass

    @abstractmethod
    def get_team_name(self, team_id: int) -> Optional[str]:
        pass
