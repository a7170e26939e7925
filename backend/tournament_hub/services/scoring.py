from typing import Iterable, Tuple

from tournament_hub.core.errors import NotFoundError
from tournament_hub.crud.interfaces import MatchDataSource, MatchEventDataSource
from tournament_hub.models.match import Match
from tournament_hub.models.match_event import SCORE_EVENT_TYPES, MatchEventType

SCORE_TYPES = sorted(t.value for t in SCORE_EVENT_TYPES)


def tally_score(home_team_id: int, away_team_id: int, events: Iterable) -> Tuple[int, int]:
    """
    Derive (home, away) from goal-type events.

    Goals and penalty goals count for the event's team, own goals for the
    other side. Events from a team that is not playing are ignored.
    """
    home = 0
    away = 0
    for ev in events:
        event_type = ev.event_type
        if event_type in (MatchEventType.GOAL.value, MatchEventType.PENALTY_GOAL.value):
            if ev.team_id == home_team_id:
                home += 1
            elif ev.team_id == away_team_id:
                away += 1
        elif event_type == MatchEventType.OWN_GOAL.value:
            if ev.team_id == home_team_id:
                away += 1
            elif ev.team_id == away_team_id:
                home += 1
    return home, away


def replay_score(matches: MatchDataSource, events: MatchEventDataSource, match_id: int) -> Match:
    """Recount the score from the event log and store it.

    The caller holds match_locks for the match and an open unit of work.
    """
    match = matches.find_by_id(match_id)
    if match is None:
        raise NotFoundError(f"Match {match_id} not found")
    goal_events = events.find_by_event_type(SCORE_TYPES, match_id=match_id)
    home, away = tally_score(match.home_team_id, match.away_team_id, goal_events)
    return matches.update(match_id, {"home_score": home, "away_score": away})
