"""
Group setup for a tournament: how many groups, their size and which team
plays in which group. Fixtures can only be generated once configured.
"""

import logging
import string
from typing import Dict, List, Optional

from sqlalchemy.orm import Session

from tournament_hub.core.errors import ConflictError, NotFoundError, ValidationError
from tournament_hub.db.unit_of_work import SqlAlchemyUnitOfWork
from tournament_hub.models.match import Match
from tournament_hub.models.tournament import Tournament
from tournament_hub.models.tournament_configuration import (
    TeamGroupAssignment,
    TournamentConfiguration,
    TournamentGroup,
)
from tournament_hub.schemas.tournament_configuration import (
    ConfigurationCreate,
    ConfigurationUpdate,
    TeamAssignment,
)

logger = logging.getLogger(__name__)

MAX_GROUPS = len(string.ascii_uppercase)


def group_name(order: int) -> str:
    return f"Group {string.ascii_uppercase[order]}"


class TournamentConfigurationService:
    def __init__(self, db: Session):
        self.db = db
        self.uow = SqlAlchemyUnitOfWork(db)

    def _require_tournament(self, tournament_id: int) -> Tournament:
        row = self.db.query(Tournament).filter(Tournament.id == tournament_id).first()
        if row is None:
            raise NotFoundError(f"Tournament {tournament_id} not found")
        return row

    def _find(self, tournament_id: int) -> Optional[TournamentConfiguration]:
        return (
            self.db.query(TournamentConfiguration)
            .filter(TournamentConfiguration.tournament_id == tournament_id)
            .first()
        )

    def _require(self, tournament_id: int) -> TournamentConfiguration:
        config = self._find(tournament_id)
        if config is None:
            raise NotFoundError(f"Tournament {tournament_id} is not configured")
        return config

    def _has_matches(self, tournament_id: int) -> bool:
        return self.db.query(Match.id).filter(Match.tournament_id == tournament_id).first() is not None

    @staticmethod
    def _validate_shape(number_of_groups: int, teams_per_group: int) -> None:
        if number_of_groups < 1 or number_of_groups > MAX_GROUPS:
            raise ValidationError(f"Number of groups must be between 1 and {MAX_GROUPS}")
        if teams_per_group < 1:
            raise ValidationError("Teams per group must be at least 1")

    def _validate_assignments(
        self,
        tournament: Tournament,
        assignments: List[TeamAssignment],
        number_of_groups: int,
        teams_per_group: int,
    ) -> None:
        registered = {t.id for t in tournament.teams}
        names = {group_name(i) for i in range(number_of_groups)}
        seen = set()
        per_group: Dict[str, int] = {}
        for a in assignments:
            if a.team_id not in registered:
                raise ValidationError(f"Team {a.team_id} is not registered in tournament {tournament.id}")
            if a.team_id in seen:
                raise ValidationError(f"Team {a.team_id} is assigned more than once")
            if a.group_name not in names:
                raise ValidationError(f"Unknown group: {a.group_name}")
            seen.add(a.team_id)
            per_group[a.group_name] = per_group.get(a.group_name, 0) + 1
            if per_group[a.group_name] > teams_per_group:
                raise ValidationError(f"{a.group_name} cannot hold more than {teams_per_group} teams")

    def _rebuild_groups(
        self, tournament_id: int, number_of_groups: int, assignments: List[TeamAssignment]
    ) -> None:
        self.db.query(TeamGroupAssignment).filter(TeamGroupAssignment.tournament_id == tournament_id).delete()
        self.db.query(TournamentGroup).filter(TournamentGroup.tournament_id == tournament_id).delete()
        self.db.flush()

        groups = {}
        for order in range(number_of_groups):
            group = TournamentGroup(tournament_id=tournament_id, group_name=group_name(order), group_order=order + 1)
            self.db.add(group)
            groups[group.group_name] = group
        self.db.flush()

        for a in assignments:
            self.db.add(
                TeamGroupAssignment(tournament_id=tournament_id, team_id=a.team_id, group_id=groups[a.group_name].id)
            )
        self.db.flush()

    def configure(self, tournament_id: int, data: ConfigurationCreate) -> TournamentConfiguration:
        tournament = self._require_tournament(tournament_id)
        if self._find(tournament_id) is not None:
            raise ConflictError(f"Tournament {tournament_id} is already configured")
        self._validate_shape(data.number_of_groups, data.teams_per_group)
        self._validate_assignments(tournament, data.assignments, data.number_of_groups, data.teams_per_group)

        with self.uow:
            config = TournamentConfiguration(
                tournament_id=tournament_id,
                number_of_groups=data.number_of_groups,
                teams_per_group=data.teams_per_group,
                is_configured=True,
            )
            self.db.add(config)
            self._rebuild_groups(tournament_id, data.number_of_groups, data.assignments)
        logger.info(
            "Configured tournament %s with %s groups of %s", tournament_id, data.number_of_groups, data.teams_per_group
        )
        return config

    def get(self, tournament_id: int) -> TournamentConfiguration:
        self._require_tournament(tournament_id)
        return self._require(tournament_id)

    def update(self, tournament_id: int, data: ConfigurationUpdate) -> TournamentConfiguration:
        tournament = self._require_tournament(tournament_id)
        config = self._require(tournament_id)
        if self._has_matches(tournament_id):
            raise ValidationError("Configuration cannot change once matches exist")

        number_of_groups = data.number_of_groups if data.number_of_groups is not None else config.number_of_groups
        teams_per_group = data.teams_per_group if data.teams_per_group is not None else config.teams_per_group
        self._validate_shape(number_of_groups, teams_per_group)

        if data.assignments is not None:
            assignments = data.assignments
        else:
            # Keep current assignments when only the shape changes
            current = self.db.query(TeamGroupAssignment).filter(TeamGroupAssignment.tournament_id == tournament_id)
            assignments = [TeamAssignment(team_id=a.team_id, group_name=a.group.group_name) for a in current]
        self._validate_assignments(tournament, assignments, number_of_groups, teams_per_group)

        with self.uow:
            config.number_of_groups = number_of_groups
            config.teams_per_group = teams_per_group
            config.is_configured = True
            self._rebuild_groups(tournament_id, number_of_groups, assignments)
        return config

    def delete(self, tournament_id: int) -> None:
        self._require_tournament(tournament_id)
        config = self._require(tournament_id)
        if self._has_matches(tournament_id):
            raise ValidationError("Configuration cannot be deleted once matches exist")

        with self.uow:
            self._rebuild_groups(tournament_id, 0, [])
            self.db.delete(config)
        logger.info("Deleted configuration of tournament %s", tournament_id)

    def groups(self, tournament_id: int) -> List[dict]:
        groups = (
            self.db.query(TournamentGroup)
            .filter(TournamentGroup.tournament_id == tournament_id)
            .order_by(TournamentGroup.group_order.asc())
            .all()
        )
        assignments = (
            self.db.query(TeamGroupAssignment)
            .filter(TeamGroupAssignment.tournament_id == tournament_id)
            .order_by(TeamGroupAssignment.team_id.asc())
            .all()
        )
        return [
            {
                "id": g.id,
                "group_name": g.group_name,
                "group_order": g.group_order,
                "team_ids": [a.team_id for a in assignments if a.group_id == g.id],
            }
            for g in groups
        ]
