"""
Composition root: every request gets services built around its own DB
session. The real-time notifier is the only process-wide collaborator.
"""

from functools import lru_cache

from fastapi import Depends
from sqlalchemy.orm import Session

from tournament_hub.crud.crud_match import SqlAlchemyMatchDataSource
from tournament_hub.crud.crud_match_event import SqlAlchemyMatchEventDataSource
from tournament_hub.crud.crud_match_statistics import SqlAlchemyMatchStatisticsDataSource
from tournament_hub.crud.crud_player import SqlAlchemyPlayerDirectory
from tournament_hub.db.session import get_db
from tournament_hub.db.unit_of_work import SqlAlchemyUnitOfWork
from tournament_hub.realtime.notifier import BestEffortNotifier, MatchEventNotifier, build_notifier
from tournament_hub.services.auth_service import AuthService
from tournament_hub.services.category_service import CategoryService
from tournament_hub.services.match_event_service import MatchEventService
from tournament_hub.services.match_service import MatchService
from tournament_hub.services.match_statistics_service import MatchStatisticsService
from tournament_hub.services.player_service import PlayerService
from tournament_hub.services.team_service import TeamService
from tournament_hub.services.tournament_configuration_service import TournamentConfigurationService
from tournament_hub.services.tournament_service import TournamentService


@lru_cache
def _process_notifier() -> MatchEventNotifier:
    return BestEffortNotifier(build_notifier())


def get_notifier() -> MatchEventNotifier:
    return _process_notifier()


def build_statistics_service(db: Session) -> MatchStatisticsService:
    return MatchStatisticsService(
        uow=SqlAlchemyUnitOfWork(db),
        statistics=SqlAlchemyMatchStatisticsDataSource(db),
        matches=SqlAlchemyMatchDataSource(db),
        players=SqlAlchemyPlayerDirectory(db),
    )


def build_event_service(db: Session, notifier: MatchEventNotifier) -> MatchEventService:
    return MatchEventService(
        uow=SqlAlchemyUnitOfWork(db),
        events=SqlAlchemyMatchEventDataSource(db),
        matches=SqlAlchemyMatchDataSource(db),
        statistics_service=build_statistics_service(db),
        players=SqlAlchemyPlayerDirectory(db),
        notifier=notifier,
    )


def build_match_service(db: Session, notifier: MatchEventNotifier) -> MatchService:
    return MatchService(
        uow=SqlAlchemyUnitOfWork(db),
        matches=SqlAlchemyMatchDataSource(db),
        events=SqlAlchemyMatchEventDataSource(db),
        statistics=SqlAlchemyMatchStatisticsDataSource(db),
        players=SqlAlchemyPlayerDirectory(db),
        notifier=notifier,
    )


def get_statistics_service(db: Session = Depends(get_db)) -> MatchStatisticsService:
    return build_statistics_service(db)


def get_event_service(
    db: Session = Depends(get_db),
    notifier: MatchEventNotifier = Depends(get_notifier),
) -> MatchEventService:
    return build_event_service(db, notifier)


def get_match_service(
    db: Session = Depends(get_db),
    notifier: MatchEventNotifier = Depends(get_notifier),
) -> MatchService:
    return build_match_service(db, notifier)


def get_auth_service(db: Session = Depends(get_db)) -> AuthService:
    return AuthService(db)


def get_category_service(db: Session = Depends(get_db)) -> CategoryService:
    return CategoryService(db)


def get_tournament_service(db: Session = Depends(get_db)) -> TournamentService:
    return TournamentService(db)


def get_configuration_service(db: Session = Depends(get_db)) -> TournamentConfigurationService:
    return TournamentConfigurationService(db)


def get_team_service(db: Session = Depends(get_db)) -> TeamService:
    return TeamService(db)


def get_player_service(db: Session = Depends(get_db)) -> PlayerService:
    return PlayerService(db)
