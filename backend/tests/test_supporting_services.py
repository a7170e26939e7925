from datetime import date, datetime, timedelta

import pytest

from conftest import make_match, make_player, make_team, make_tournament
from tournament_hub.core.errors import ConflictError, NotFoundError, ValidationError
from tournament_hub.models.category import Category
from tournament_hub.schemas.category import CategoryCreate
from tournament_hub.schemas.player import PlayerCreate, PlayerUpdate
from tournament_hub.schemas.tournament import TournamentCreate
from tournament_hub.schemas.tournament_configuration import (
    ConfigurationCreate,
    ConfigurationUpdate,
    TeamAssignment,
)
from tournament_hub.services.category_service import CategoryService
from tournament_hub.services.player_service import PlayerService
from tournament_hub.services.tournament_configuration_service import TournamentConfigurationService
from tournament_hub.services.tournament_service import TournamentService


# --- tournaments ---


def _tournament_request(category_ids, **kw):
    start = kw.pop("start_date", datetime.utcnow() + timedelta(days=3))
    return TournamentCreate(
        name=kw.pop("name", "Torneo Clausura"),
        start_date=start,
        end_date=kw.pop("end_date", start + timedelta(days=40)),
        max_teams=kw.pop("max_teams", 2),
        category_ids=category_ids,
    )


def test_create_tournament_checks_dates_and_categories(db):
    cat = CategoryService(db).create(CategoryCreate(name="Libre"))
    service = TournamentService(db)

    t = service.create(_tournament_request([cat.id]))
    assert [c.name for c in t.categories] == ["Libre"]

    with pytest.raises(ValidationError, match="End date"):
        start = datetime.utcnow() + timedelta(days=3)
        service.create(_tournament_request([cat.id], start_date=start, end_date=start))
    with pytest.raises(ValidationError, match="past"):
        start = datetime.utcnow() - timedelta(days=3)
        service.create(_tournament_request([cat.id], start_date=start))
    with pytest.raises(NotFoundError, match=r"\[99\]"):
        service.create(_tournament_request([cat.id, 99]))


def test_register_team_rejects_duplicates_and_full_tournaments(db):
    t = make_tournament(db, max_teams=2)
    a, b, c = (make_team(db, name) for name in ("Halcones", "Pumas", "Leones"))
    service = TournamentService(db)

    service.register_team(t.id, a.id)
    with pytest.raises(ConflictError):
        service.register_team(t.id, a.id)
    service.register_team(t.id, b.id)
    with pytest.raises(ValidationError, match="full"):
        service.register_team(t.id, c.id)

    service.unregister_team(t.id, a.id)
    assert [team.id for team in service.get(t.id).teams] == [b.id]
    with pytest.raises(NotFoundError):
        service.unregister_team(t.id, a.id)


def test_category_delete_refused_while_linked(db):
    categories = CategoryService(db)
    cat = categories.create(CategoryCreate(name="Veteranos"))
    TournamentService(db).create(_tournament_request([cat.id]))

    with pytest.raises(ValidationError, match="used by 1 tournaments"):
        categories.delete(cat.id)
    with pytest.raises(ConflictError):
        categories.create(CategoryCreate(name="Veteranos"))

    spare = categories.create(CategoryCreate(name="Juvenil"))
    categories.delete(spare.id)
    assert db.query(Category).count() == 1


# --- configuration ---


@pytest.fixture
def four_teams(db):
    teams = [make_team(db, name) for name in ("Norte", "Sur", "Este", "Oeste")]
    return make_tournament(db, teams=teams), teams


def test_configure_builds_named_groups(db, four_teams):
    t, teams = four_teams
    service = TournamentConfigurationService(db)

    service.configure(
        t.id,
        ConfigurationCreate(
            number_of_groups=2,
            teams_per_group=2,
            assignments=[
                TeamAssignment(team_id=teams[0].id, group_name="Group A"),
                TeamAssignment(team_id=teams[3].id, group_name="Group B"),
                TeamAssignment(team_id=teams[1].id, group_name="Group A"),
            ],
        ),
    )

    groups = service.groups(t.id)
    assert [(g["group_name"], g["team_ids"]) for g in groups] == [
        ("Group A", [teams[0].id, teams[1].id]),
        ("Group B", [teams[3].id]),
    ]
    with pytest.raises(ConflictError):
        service.configure(t.id, ConfigurationCreate(number_of_groups=1, teams_per_group=4))


@pytest.mark.parametrize(
    "groups, per_group, assignment, message",
    [
        (0, 2, None, "between 1 and 26"),
        (2, 0, None, "at least 1"),
        (2, 2, ("Group C", 0), "Unknown group"),
        (1, 1, ("Group A", 0, 1), "cannot hold more than 1"),
    ],
)
def test_configure_validation(db, four_teams, groups, per_group, assignment, message):
    t, teams = four_teams
    assignments = []
    if assignment:
        name, *indexes = assignment
        assignments = [TeamAssignment(team_id=teams[i].id, group_name=name) for i in indexes]

    with pytest.raises(ValidationError, match=message):
        TournamentConfigurationService(db).configure(
            t.id, ConfigurationCreate(number_of_groups=groups, teams_per_group=per_group, assignments=assignments)
        )


def test_configure_rejects_unregistered_and_repeated_teams(db, four_teams):
    t, teams = four_teams
    outsider = make_team(db, "Visitante")
    service = TournamentConfigurationService(db)

    with pytest.raises(ValidationError, match="not registered"):
        service.configure(
            t.id,
            ConfigurationCreate(
                number_of_groups=1,
                teams_per_group=4,
                assignments=[TeamAssignment(team_id=outsider.id, group_name="Group A")],
            ),
        )
    with pytest.raises(ValidationError, match="more than once"):
        service.configure(
            t.id,
            ConfigurationCreate(
                number_of_groups=2,
                teams_per_group=2,
                assignments=[
                    TeamAssignment(team_id=teams[0].id, group_name="Group A"),
                    TeamAssignment(team_id=teams[0].id, group_name="Group B"),
                ],
            ),
        )


def test_update_keeps_assignments_and_locks_after_matches(db, four_teams):
    t, teams = four_teams
    service = TournamentConfigurationService(db)
    service.configure(
        t.id,
        ConfigurationCreate(
            number_of_groups=2,
            teams_per_group=2,
            assignments=[TeamAssignment(team_id=teams[2].id, group_name="Group B")],
        ),
    )

    config = service.update(t.id, ConfigurationUpdate(teams_per_group=3))
    assert config.teams_per_group == 3
    assert service.groups(t.id)[1]["team_ids"] == [teams[2].id]

    make_match(db, t, teams[0], teams[1])
    with pytest.raises(ValidationError, match="matches exist"):
        service.update(t.id, ConfigurationUpdate(number_of_groups=1))
    with pytest.raises(ValidationError, match="matches exist"):
        service.delete(t.id)


def test_delete_configuration(db, four_teams):
    t, _ = four_teams
    service = TournamentConfigurationService(db)
    service.configure(t.id, ConfigurationCreate(number_of_groups=2, teams_per_group=2))

    service.delete(t.id)
    assert service.groups(t.id) == []
    with pytest.raises(NotFoundError, match="not configured"):
        service.get(t.id)


# --- players ---


def _player_request(team_id, **kw):
    data = dict(
        first_name="Lucia",
        last_name="Mena",
        email="Lucia.Mena@Example.com",
        date_of_birth=date(2003, 7, 14),
        jersey_number=8,
        team_id=team_id,
    )
    data.update(kw)
    return PlayerCreate(**data)


def test_player_email_and_jersey_are_unique(db):
    team = make_team(db, "Cometas")
    other = make_team(db, "Estrellas")
    service = PlayerService(db)

    p = service.create(_player_request(team.id, phone="+5491122334455"))
    assert p.email == "lucia.mena@example.com"

    with pytest.raises(ConflictError, match="Email"):
        service.create(_player_request(other.id, email="LUCIA.MENA@example.com", jersey_number=3))
    with pytest.raises(ConflictError, match="Jersey number 8"):
        service.create(_player_request(team.id, email="otra@example.com"))

    # Same number in another team is fine
    service.create(_player_request(other.id, email="otra@example.com"))


def test_player_phone_must_be_digits(db):
    team = make_team(db, "Cometas")
    with pytest.raises(ValidationError, match="digits"):
        PlayerService(db).create(_player_request(team.id, phone="11-2233-4455"))


def test_player_update_ignores_null_required_fields(db):
    team = make_team(db, "Cometas")
    service = PlayerService(db)
    p = service.create(_player_request(team.id))

    updated = service.update(p.id, PlayerUpdate(first_name=None, position="Delantera", jersey_number=None))
    assert updated.first_name == "Lucia"
    assert updated.position == "Delantera"
    assert updated.jersey_number is None


def test_player_with_history_cannot_be_deleted(db, scenario, stats_service):
    stats_service.upsert(1, 101, {"goals": 1})

    with pytest.raises(ValidationError, match="match history"):
        PlayerService(db).delete(101)

    PlayerService(db).delete(102)
    with pytest.raises(NotFoundError):
        PlayerService(db).get(102)
