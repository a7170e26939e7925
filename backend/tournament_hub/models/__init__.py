# Import every model here so SQLAlchemy sees them before create_all
from tournament_hub.models.user import User  # noqa: F401
from tournament_hub.models.category import Category  # noqa: F401
from tournament_hub.models.tournament import Tournament, tournament_categories, team_tournaments  # noqa: F401
from tournament_hub.models.tournament_configuration import (  # noqa: F401
    TeamGroupAssignment,
    TournamentConfiguration,
    TournamentGroup,
)
from tournament_hub.models.team import Team  # noqa: F401
from tournament_hub.models.player import Player  # noqa: F401
from tournament_hub.models.match import Match, MatchStatus  # noqa: F401
from tournament_hub.models.match_event import MatchEvent, MatchEventType  # noqa: F401
from tournament_hub.models.match_statistics import MatchStatistics  # noqa: F401
