from datetime import date, datetime, timedelta

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

import tournament_hub.models  # noqa: F401
from tournament_hub.api.deps import (
    build_event_service,
    build_match_service,
    build_statistics_service,
    get_notifier,
)
from tournament_hub.core.roles import ROLE_ADMIN, ROLE_USER
from tournament_hub.core.security import create_access_token, hash_password
from tournament_hub.db.base import Base
from tournament_hub.db.session import enable_sqlite_foreign_keys, get_db
from tournament_hub.models.match import Match, MatchStatus
from tournament_hub.models.player import Player
from tournament_hub.models.team import Team
from tournament_hub.models.tournament import Tournament
from tournament_hub.models.user import User
from tournament_hub.realtime.notifier import BestEffortNotifier, MatchEventNotifier


class RecordingNotifier(MatchEventNotifier):
    """Keeps every mirror call; raises when `fail` is set."""

    def __init__(self):
        self.synced = []
        self.removed = []
        self.cleared = []
        self.fail = False

    def _maybe_fail(self):
        if self.fail:
            raise RuntimeError("real-time store unavailable")

    def sync_match_event(self, event):
        self._maybe_fail()
        self.synced.append(event)

    def remove_match_event(self, match_id, event_id):
        self._maybe_fail()
        self.removed.append((match_id, event_id))

    def clear_match(self, match_id):
        self._maybe_fail()
        self.cleared.append(match_id)


@pytest.fixture
def engine():
    eng = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    enable_sqlite_foreign_keys(eng)
    Base.metadata.create_all(bind=eng)
    yield eng
    eng.dispose()


@pytest.fixture
def db(engine):
    session = sessionmaker(bind=engine, autocommit=False, autoflush=False)()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def recorder():
    return RecordingNotifier()


@pytest.fixture
def notifier(recorder):
    return BestEffortNotifier(recorder)


@pytest.fixture
def stats_service(db):
    return build_statistics_service(db)


@pytest.fixture
def event_service(db, notifier):
    return build_event_service(db, notifier)


@pytest.fixture
def match_service(db, notifier):
    return build_match_service(db, notifier)


# --- factories ---


def make_tournament(db, name="Copa Primavera", teams=(), **kw):
    t = Tournament(
        name=name,
        start_date=kw.pop("start_date", datetime.utcnow() + timedelta(days=1)),
        end_date=kw.pop("end_date", datetime.utcnow() + timedelta(days=60)),
        max_teams=kw.pop("max_teams", 16),
        **kw,
    )
    t.teams = list(teams)
    db.add(t)
    db.commit()
    return t


def make_team(db, name, **kw):
    team = Team(name=name, **kw)
    db.add(team)
    db.commit()
    return team


def make_player(db, team, first_name, last_name, **kw):
    p = Player(
        first_name=first_name,
        last_name=last_name,
        email=kw.pop("email", f"{first_name}.{last_name}@example.com".lower()),
        date_of_birth=kw.pop("date_of_birth", date(2000, 1, 1)),
        team_id=team.id,
        **kw,
    )
    db.add(p)
    db.commit()
    return p


def make_match(db, tournament, home, away, status=MatchStatus.SCHEDULED, **kw):
    number = kw.pop("match_number", None)
    if number is None:
        number = db.query(Match).filter(Match.tournament_id == tournament.id).count() + 1
    m = Match(
        tournament_id=tournament.id,
        home_team_id=home.id,
        away_team_id=away.id,
        match_date=kw.pop("match_date", datetime.utcnow() + timedelta(days=2)),
        status=status.value,
        match_number=number,
        **kw,
    )
    db.add(m)
    db.commit()
    return m


def build_scenario(db):
    """
    Match 1: TeamA (id 10, home) vs TeamB (id 20, away), in progress.
    Players 101, 102 play for TeamA; 103, 201 for TeamB.
    """
    team_a = make_team(db, "TeamA", id=10)
    team_b = make_team(db, "TeamB", id=20)
    players = {
        101: make_player(db, team_a, "Ana", "Lopez", id=101, jersey_number=9),
        102: make_player(db, team_a, "Bea", "Ruiz", id=102, jersey_number=4),
        103: make_player(db, team_b, "Carla", "Diaz", id=103, jersey_number=7),
        201: make_player(db, team_b, "Dana", "Vidal", id=201, jersey_number=10),
    }
    tournament = make_tournament(db, teams=[team_a, team_b])
    match = make_match(db, tournament, team_a, team_b, status=MatchStatus.IN_PROGRESS, id=1)
    return {
        "team_a": team_a,
        "team_b": team_b,
        "players": players,
        "tournament": tournament,
        "match": match,
    }


@pytest.fixture
def scenario(db):
    return build_scenario(db)


@pytest.fixture
def two_sessions(tmp_path):
    """Two independent sessions on one SQLite file, as two concurrent requests would have."""
    eng = create_engine(f"sqlite:///{tmp_path / 'hub.sqlite'}", connect_args={"check_same_thread": False})
    enable_sqlite_foreign_keys(eng)
    Base.metadata.create_all(bind=eng)
    factory = sessionmaker(bind=eng, autocommit=False, autoflush=False)
    first, second = factory(), factory()
    try:
        yield first, second
    finally:
        first.close()
        second.close()
        eng.dispose()


# --- HTTP ---


def make_user(db, email, role, password="secret123"):
    u = User(email=email, password_hash=hash_password(password), name=email.split("@")[0], role=role)
    db.add(u)
    db.commit()
    return u


def auth_headers(user) -> dict:
    return {"Authorization": f"Bearer {create_access_token({'sub': str(user.id)})}"}


@pytest.fixture
def client(db, notifier):
    from tournament_hub.main import app

    def override_get_db():
        yield db

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_notifier] = lambda: notifier
    try:
        yield TestClient(app)
    finally:
        app.dependency_overrides.clear()


@pytest.fixture
def admin_headers(db):
    return auth_headers(make_user(db, "admin@example.com", ROLE_ADMIN))


@pytest.fixture
def user_headers(db):
    return auth_headers(make_user(db, "fan@example.com", ROLE_USER))
