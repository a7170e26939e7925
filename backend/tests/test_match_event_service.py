import logging

import pytest

from conftest import build_scenario, make_match, make_player, make_team
from tournament_hub.api.deps import build_event_service
from tournament_hub.core.errors import NotFoundError, ValidationError
from tournament_hub.models.match import Match, MatchStatus
from tournament_hub.models.match_event import MatchEvent
from tournament_hub.models.match_statistics import STAT_FIELDS, MatchStatistics
from tournament_hub.realtime.notifier import BestEffortNotifier
from tournament_hub.schemas.match_event import MatchEventCreate, MatchEventUpdate


def event(event_type="goal", match_id=1, team_id=10, player_id=101, minute=23, **kw):
    return MatchEventCreate(
        match_id=match_id, team_id=team_id, player_id=player_id, event_type=event_type, minute=minute, **kw
    )


def score(db, match_id=1):
    m = db.get(Match, match_id)
    db.refresh(m)
    return m.home_score, m.away_score


def stats_of(db, player_id, match_id=1):
    return (
        db.query(MatchStatistics)
        .filter(MatchStatistics.match_id == match_id, MatchStatistics.player_id == player_id)
        .one_or_none()
    )


def snapshot(db, match_id=1):
    rows = db.query(MatchStatistics).filter(MatchStatistics.match_id == match_id).all()
    return {r.player_id: {f: getattr(r, f) for f in STAT_FIELDS} for r in rows}


def expected_from_log(db, match_id=1):
    m = db.get(Match, match_id)
    home = away = 0
    for ev in db.query(MatchEvent).filter(MatchEvent.match_id == match_id):
        if ev.event_type in ("goal", "penalty_goal"):
            home += ev.team_id == m.home_team_id
            away += ev.team_id == m.away_team_id
        elif ev.event_type == "own_goal":
            away += ev.team_id == m.home_team_id
            home += ev.team_id == m.away_team_id
    return home, away


# --- Scenarios ---


def test_goal_updates_statistics_and_home_score(db, scenario, event_service):
    event_service.add_event(event("goal", team_id=10, player_id=101, minute=23))

    assert stats_of(db, 101).goals == 1
    assert score(db) == (1, 0)


def test_own_goal_credits_opponent_without_touching_statistics(db, scenario, event_service):
    event_service.add_event(event("goal", team_id=10, player_id=101, minute=23))
    event_service.add_event(event("own_goal", team_id=10, player_id=102, minute=55))

    assert score(db) == (1, 1)
    assert stats_of(db, 102) is None


def test_removing_goal_reverts_scorer_and_home_score(db, scenario, event_service):
    goal = event_service.add_event(event("goal", team_id=10, player_id=101, minute=23))
    event_service.add_event(event("own_goal", team_id=10, player_id=102, minute=55))

    event_service.remove_event(goal.id)

    assert stats_of(db, 101).goals == 0
    assert score(db) == (0, 1)


# --- Score correctness ---


def test_score_always_matches_event_log(db, scenario, event_service):
    ids = []
    ids.append(event_service.add_event(event("goal", team_id=10, player_id=101, minute=5)).id)
    ids.append(event_service.add_event(event("penalty_goal", team_id=20, player_id=201, minute=12)).id)
    ids.append(event_service.add_event(event("own_goal", team_id=20, player_id=103, minute=30)).id)
    ids.append(event_service.add_event(event("yellow_card", team_id=20, player_id=103, minute=31)).id)
    assert score(db) == expected_from_log(db) == (2, 1)

    event_service.update_event(ids[0], MatchEventUpdate(team_id=20, player_id=201))
    assert score(db) == expected_from_log(db) == (1, 2)

    event_service.update_event(ids[3], MatchEventUpdate(event_type="goal"))
    assert score(db) == expected_from_log(db) == (1, 3)

    event_service.remove_event(ids[2])
    event_service.update_event(ids[1], MatchEventUpdate(event_type="penalty_missed"))
    assert score(db) == expected_from_log(db) == (0, 2)


def test_own_goal_by_away_team_credits_home(db, scenario, event_service):
    event_service.add_event(event("own_goal", team_id=20, player_id=201, minute=70))
    assert score(db) == (1, 0)


def test_goal_by_team_outside_the_match_is_ignored_for_score(db, scenario, event_service):
    team_c = make_team(db, "TeamC")
    outsider = make_player(db, team_c, "Eva", "Sanz")

    event_service.add_event(event("goal", team_id=team_c.id, player_id=outsider.id))

    assert score(db) == (0, 0)
    assert stats_of(db, outsider.id).goals == 1


# --- Statistics reversibility ---


def test_add_then_remove_leaves_statistics_unchanged(db, scenario, event_service, stats_service):
    stats_service.initialize_match_statistics(1, [101, 102, 103, 201])
    event_service.add_event(event("yellow_card", team_id=20, player_id=103, minute=10))
    before = snapshot(db)

    for kind, kw in [
        ("goal", {"assist_player_id": 102}),
        ("penalty_goal", {}),
        ("yellow_card", {}),
        ("red_card", {}),
        ("own_goal", {}),
        ("substitution_in", {}),
    ]:
        ev = event_service.add_event(event(kind, minute=40, **kw))
        event_service.remove_event(ev.id)
        assert snapshot(db) == before, kind


def test_update_equals_remove_then_add(db, scenario, event_service):
    second = make_match(db, scenario["tournament"], scenario["team_a"], scenario["team_b"], MatchStatus.IN_PROGRESS)
    original = {"event_type": "goal", "team_id": 10, "player_id": 101, "minute": 15, "assist_player_id": 102}
    new_data = {"event_type": "yellow_card", "team_id": 20, "player_id": 103, "minute": 44, "assist_player_id": None}

    ev = event_service.add_event(MatchEventCreate(match_id=1, **original))
    event_service.update_event(ev.id, MatchEventUpdate(**new_data))

    ev2 = event_service.add_event(MatchEventCreate(match_id=second.id, **original))
    event_service.remove_event(ev2.id)
    event_service.add_event(MatchEventCreate(match_id=second.id, **new_data))

    assert snapshot(db, 1) == snapshot(db, second.id)
    assert score(db, 1) == score(db, second.id) == (0, 0)


def test_goal_with_assist_credits_both_players(db, scenario, event_service):
    event_service.add_event(event("goal", assist_player_id=102))

    assert stats_of(db, 101).goals == 1
    assert stats_of(db, 102).assists == 1


def test_cards_are_counted(db, scenario, event_service):
    event_service.add_event(event("yellow_card", team_id=20, player_id=103, minute=10))
    event_service.add_event(event("red_card", team_id=20, player_id=201, minute=80))

    assert stats_of(db, 103).yellow_cards == 1
    assert stats_of(db, 201).red_cards == 1


# --- Validation ---


def test_assist_rejected_for_non_goal_events(db, scenario, event_service):
    with pytest.raises(ValidationError):
        event_service.add_event(event("yellow_card", assist_player_id=102))
    assert db.query(MatchEvent).count() == 0


@pytest.mark.parametrize(
    "overrides",
    [
        {"minute": 121},
        {"minute": -1},
        {"extra_time": 31},
        {"extra_time": -2},
        {"event_type": ""},
        {"event_type": "corner_kick"},
        {"player_id": 0},
        {"team_id": -4},
        {"match_id": 0},
        {"assist_player_id": 101},
    ],
)
def test_invalid_events_are_rejected_before_writing(db, scenario, event_service, overrides):
    values = {"event_type": "goal", "match_id": 1, "team_id": 10, "player_id": 101, "minute": 10, **overrides}
    with pytest.raises(ValidationError):
        event_service.add_event(MatchEventCreate(**values))
    assert db.query(MatchEvent).count() == 0


def test_boundary_minutes_are_accepted(db, scenario, event_service):
    event_service.add_event(event("injury", minute=0))
    event_service.add_event(event("injury", minute=120, extra_time=30))
    assert db.query(MatchEvent).count() == 2


def test_event_for_missing_match_is_not_found(db, scenario, event_service):
    with pytest.raises(NotFoundError):
        event_service.add_event(event(match_id=999))


def test_event_for_missing_player_is_not_found(db, scenario, event_service):
    with pytest.raises(NotFoundError):
        event_service.add_event(event(player_id=5555))
    assert db.query(MatchEvent).count() == 0


# --- Status policy ---


def test_events_can_be_added_in_any_status(db, scenario, event_service):
    m = db.get(Match, 1)
    m.status = MatchStatus.FINISHED.value
    db.commit()

    event_service.add_event(event("goal"))
    assert score(db) == (1, 0)


def test_update_and_remove_refused_on_finished_match(db, scenario, event_service):
    ev = event_service.add_event(event("goal"))
    m = db.get(Match, 1)
    m.status = MatchStatus.FINISHED.value
    db.commit()

    with pytest.raises(ValidationError, match="finished"):
        event_service.update_event(ev.id, MatchEventUpdate(minute=50))
    with pytest.raises(ValidationError, match="finished"):
        event_service.remove_event(ev.id)

    assert stats_of(db, 101).goals == 1
    assert score(db) == (1, 0)


def test_update_missing_event_is_not_found(db, scenario, event_service):
    with pytest.raises(NotFoundError):
        event_service.update_event(404, MatchEventUpdate(minute=3))
    with pytest.raises(NotFoundError):
        event_service.remove_event(404)


def test_update_validates_merged_event(db, scenario, event_service):
    ev = event_service.add_event(event("goal", assist_player_id=102))

    with pytest.raises(ValidationError):
        event_service.update_event(ev.id, MatchEventUpdate(event_type="yellow_card"))

    # Nothing changed
    assert stats_of(db, 101).goals == 1
    assert stats_of(db, 102).assists == 1


# --- Transaction and mirror ---


def test_failure_in_statistics_rolls_back_the_event(db, scenario, event_service, recorder, monkeypatch):
    def boom(*args, **kwargs):
        raise RuntimeError("statistics store down")

    monkeypatch.setattr(event_service.statistics_service, "upsert", boom)

    with pytest.raises(RuntimeError):
        event_service.add_event(event("goal"))

    assert db.query(MatchEvent).count() == 0
    assert score(db) == (0, 0)
    assert recorder.synced == []


def test_mirror_failure_never_fails_the_write(db, scenario, event_service, recorder, caplog):
    recorder.fail = True

    with caplog.at_level(logging.ERROR):
        ev = event_service.add_event(event("goal"))
        event_service.remove_event(ev.id)

    assert db.query(MatchEvent).count() == 0
    assert score(db) == (0, 0)
    assert "Failed to sync event" in caplog.text
    assert "Failed to remove event" in caplog.text


def test_event_is_kept_when_mirror_payload_cannot_be_built(db, scenario, event_service, recorder, monkeypatch):
    def offline(player_id):
        raise RuntimeError("player directory offline")

    monkeypatch.setattr(event_service.players, "get_display_name", offline)

    ev = event_service.add_event(event("goal"))

    assert db.query(MatchEvent).count() == 1
    assert stats_of(db, 101).goals == 1
    assert score(db) == (1, 0)
    assert ev.id is not None
    assert recorder.synced == []


def test_mirror_receives_names(db, scenario, event_service, recorder):
    ev = event_service.add_event(event("goal", assist_player_id=102, description="Header"))

    payload = recorder.synced[-1]
    assert payload.id == ev.id
    assert payload.match_id == 1
    assert payload.player_name == "Ana Lopez"
    assert payload.team_name == "TeamA"
    assert payload.assist_player_name == "Bea Ruiz"
    assert payload.created_at is not None


def test_remove_clears_mirror_copy(db, scenario, event_service, recorder):
    ev = event_service.add_event(event("yellow_card"))
    event_service.remove_event(ev.id)
    assert recorder.removed == [(1, ev.id)]


# --- Reads ---


def test_events_are_ordered_by_match_clock(db, scenario, event_service):
    event_service.add_event(event("yellow_card", minute=45, extra_time=2))
    event_service.add_event(event("goal", minute=10))
    event_service.add_event(event("injury", minute=45))

    events = event_service.get_events_by_match(1)
    assert [(e.minute, e.extra_time) for e in events] == [(10, None), (45, None), (45, 2)]


def test_time_range_and_type_queries(db, scenario, event_service):
    event_service.add_event(event("goal", minute=10))
    event_service.add_event(event("yellow_card", minute=50))
    event_service.add_event(event("goal", team_id=20, player_id=201, minute=80))

    assert [e.minute for e in event_service.get_events_in_time_range(1, 0, 60)] == [10, 50]
    assert len(event_service.get_events_by_type("goal", match_id=1)) == 2
    assert len(event_service.get_events_by_player(201)) == 1
    assert len(event_service.get_events_by_team(10, scenario["tournament"].id)) == 2

    with pytest.raises(ValidationError):
        event_service.get_events_in_time_range(1, 60, 60)
    with pytest.raises(ValidationError):
        event_service.get_events_by_type("bogus")


# --- Concurrent requests ---


def _services(two_sessions, recorder):
    first, second = two_sessions
    notifier = BestEffortNotifier(recorder)
    return build_event_service(first, notifier), build_event_service(second, notifier)


def _counters(session, player_id):
    session.expire_all()
    row = stats_of(session, player_id)
    return row.goals, row.yellow_cards, row.red_cards


def test_remove_reverts_the_committed_version_of_the_event(two_sessions, recorder):
    first, second = two_sessions
    build_scenario(second)
    service_a, service_b = _services(two_sessions, recorder)

    ev = service_b.add_event(event("goal"))
    # Request A has already loaded the event when request B changes it
    assert service_a.get_event_by_id(ev.id).event_type == "goal"
    service_b.update_event(ev.id, MatchEventUpdate(event_type="yellow_card"))

    service_a.remove_event(ev.id)

    assert _counters(second, 101) == (0, 0, 0)
    assert score(second) == (0, 0)


def test_update_reverts_the_committed_version_of_the_event(two_sessions, recorder):
    first, second = two_sessions
    build_scenario(second)
    service_a, service_b = _services(two_sessions, recorder)

    ev = service_b.add_event(event("goal"))
    service_a.get_event_by_id(ev.id)
    service_b.update_event(ev.id, MatchEventUpdate(event_type="yellow_card"))

    service_a.update_event(ev.id, MatchEventUpdate(event_type="red_card", minute=80))

    assert _counters(second, 101) == (0, 0, 1)
    assert score(second) == (0, 0)
