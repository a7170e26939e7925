import logging

import pytest

from conftest import make_match, make_player, make_team, make_tournament
from tournament_hub.core.errors import ConflictError, NotFoundError, ValidationError
from tournament_hub.models.match import Match, MatchStatus
from tournament_hub.models.match_statistics import MatchStatistics
from tournament_hub.schemas.match_event import MatchEventCreate
from tournament_hub.schemas.match_statistics import StatisticsCreate, StatisticsValues


def goal(match_id, team_id, player_id, assist=None, kind="goal"):
    return MatchEventCreate(
        match_id=match_id,
        team_id=team_id,
        player_id=player_id,
        event_type=kind,
        minute=10,
        assist_player_id=assist,
    )


def test_initialize_twice_keeps_one_row_per_player(db, scenario, event_service, stats_service):
    event_service.add_event(goal(1, 10, 101))

    first = stats_service.initialize_match_statistics(1, [101, 102, 103])
    second = stats_service.initialize_match_statistics(1, [101, 102, 103])

    assert [r.player_id for r in first] == [101, 102, 103]
    assert [r.id for r in first] == [r.id for r in second]
    assert db.query(MatchStatistics).filter(MatchStatistics.match_id == 1).count() == 3
    row_101 = next(r for r in second if r.player_id == 101)
    assert row_101.goals == 1
    assert row_101.team_id == 10


def test_initialize_validation(db, scenario, stats_service):
    with pytest.raises(ValidationError):
        stats_service.initialize_match_statistics(1, [])
    with pytest.raises(ValidationError):
        stats_service.initialize_match_statistics(1, [101, -3])
    with pytest.raises(NotFoundError):
        stats_service.initialize_match_statistics(999, [101])
    with pytest.raises(NotFoundError):
        stats_service.initialize_match_statistics(1, [101, 9999])
    assert db.query(MatchStatistics).count() == 0


def test_upsert_creates_row_with_player_team_and_clamps_at_zero(db, scenario, stats_service):
    row = stats_service.upsert(1, 103, {"goals": 1, "assists": -1})
    assert row.team_id == 20
    assert row.goals == 1
    assert row.assists == 0

    row = stats_service.upsert(1, 103, {"goals": -1})
    assert row.goals == 0
    row = stats_service.upsert(1, 103, {"goals": -1})
    assert row.goals == 0


def test_upsert_rejects_unknown_player_and_field(db, scenario, stats_service):
    with pytest.raises(NotFoundError):
        stats_service.upsert(1, 777, {"goals": 1})
    with pytest.raises(ValidationError):
        stats_service.upsert(1, 101, {"passes": 1})


@pytest.mark.parametrize(
    "values",
    [
        {"minutes_played": 121},
        {"yellow_cards": 3},
        {"red_cards": 2},
        {"goals": -1},
        {"saves": -5},
    ],
)
def test_invalid_values_are_rejected_before_writing(db, scenario, stats_service, values):
    with pytest.raises(ValidationError):
        stats_service.create_statistics(StatisticsCreate(match_id=1, player_id=101, **values))
    assert db.query(MatchStatistics).count() == 0


def test_create_and_duplicate(db, scenario, stats_service):
    row = stats_service.create_statistics(
        StatisticsCreate(match_id=1, player_id=101, minutes_played=90, yellow_cards=2, red_cards=1)
    )
    assert row.team_id == 10
    assert row.minutes_played == 90

    with pytest.raises(ConflictError):
        stats_service.create_statistics(StatisticsCreate(match_id=1, player_id=101))


def test_set_player_statistics_creates_then_overwrites(db, scenario, stats_service):
    stats_service.set_player_statistics(1, 102, StatisticsValues(shots_on_target=2, corners=1))
    row = stats_service.set_player_statistics(1, 102, StatisticsValues(shots_on_target=3))

    assert row.shots_on_target == 3
    assert row.corners == 1


def test_update_on_finished_match_is_allowed_but_logged(db, scenario, stats_service, caplog):
    row = stats_service.create_statistics(StatisticsCreate(match_id=1, player_id=101))
    m = db.get(Match, 1)
    m.status = MatchStatus.FINISHED.value
    db.commit()

    with caplog.at_level(logging.WARNING):
        updated = stats_service.update_statistics(row.id, StatisticsValues(saves=4))

    assert updated.saves == 4
    assert "finished match" in caplog.text


def test_delete_refused_on_finished_match(db, scenario, stats_service):
    row = stats_service.create_statistics(StatisticsCreate(match_id=1, player_id=101))
    m = db.get(Match, 1)
    m.status = MatchStatus.FINISHED.value
    db.commit()

    with pytest.raises(ValidationError):
        stats_service.delete_statistics(row.id)
    assert stats_service.get_statistics_by_id(row.id) is not None


def test_delete_while_in_progress(db, scenario, stats_service):
    row = stats_service.create_statistics(StatisticsCreate(match_id=1, player_id=101))
    stats_service.delete_statistics(row.id)
    with pytest.raises(NotFoundError):
        stats_service.get_statistics_by_id(row.id)


# --- aggregates ---


@pytest.fixture
def league(db, scenario, event_service):
    """
    Three matches in the tournament of `scenario`:
    match 1 (in progress) A 2-1 B, match 2 (finished) B 2-0 A, match 3 (cancelled) whose goal must not count.
    """
    t = scenario["tournament"]
    a, b = scenario["team_a"], scenario["team_b"]

    event_service.add_event(goal(1, 10, 101, assist=102))
    event_service.add_event(goal(1, 10, 101))
    event_service.add_event(goal(1, 20, 201, assist=103))

    m2 = make_match(db, t, b, a, MatchStatus.IN_PROGRESS)
    event_service.add_event(goal(m2.id, 20, 103, assist=201))
    event_service.add_event(goal(m2.id, 20, 201, kind="penalty_goal"))
    event_service.add_event(
        MatchEventCreate(match_id=m2.id, team_id=10, player_id=102, event_type="yellow_card", minute=60)
    )
    m2.status = MatchStatus.FINISHED.value
    db.commit()

    m3 = make_match(db, t, a, b, MatchStatus.IN_PROGRESS)
    event_service.add_event(goal(m3.id, 10, 102))
    m3.status = MatchStatus.CANCELLED.value
    db.commit()
    return {"tournament": t, "m2": m2, "m3": m3}


def test_player_tournament_stats_sorted_and_excludes_cancelled(db, league, stats_service):
    rows = stats_service.get_player_tournament_stats(league["tournament"].id)

    by_player = {r["player_id"]: r for r in rows}
    assert by_player[101]["goals"] == 2
    assert by_player[201]["goals"] == 2
    assert by_player[201]["assists"] == 1
    assert by_player[102]["goals"] == 0  # cancelled match goal does not count
    assert by_player[102]["matches_played"] == 2

    # goals desc, assists desc, player id asc
    assert [r["player_id"] for r in rows] == [201, 101, 103, 102]
    assert rows[0]["player_name"] == "Dana Vidal"
    assert rows[0]["team_name"] == "TeamB"


def test_player_tournament_stats_team_filter_and_limit(db, league, stats_service):
    rows = stats_service.get_player_tournament_stats(league["tournament"].id, team_id=10)
    assert {r["player_id"] for r in rows} == {101, 102}

    assert len(stats_service.get_player_tournament_stats(league["tournament"].id, limit=1)) == 1
    with pytest.raises(ValidationError):
        stats_service.get_player_tournament_stats(league["tournament"].id, limit=101)
    with pytest.raises(ValidationError):
        stats_service.get_player_tournament_stats(league["tournament"].id, limit=0)


def test_top_scorers_and_assists_skip_zero(db, league, stats_service):
    tid = league["tournament"].id

    scorers = stats_service.get_top_scorers(tid)
    assert [r["player_id"] for r in scorers] == [201, 101, 103]

    assisters = stats_service.get_top_assists(tid)
    # assists desc, goals desc, id asc
    assert [r["player_id"] for r in assisters] == [201, 103, 102]

    with pytest.raises(ValidationError):
        stats_service.get_top_scorers(tid, limit=51)


def test_team_standings_use_finished_matches_only(db, league, stats_service):
    table = stats_service.get_team_tournament_stats(league["tournament"].id)

    assert [r["team_id"] for r in table] == [20, 10]
    b, a = table
    assert (b["played"], b["wins"], b["points"], b["goals_for"], b["goals_against"]) == (1, 1, 3, 2, 0)
    assert (a["played"], a["losses"], a["points"], a["goal_difference"]) == (1, 1, 0, -2)


def test_tournament_statistics_summary(db, league, stats_service):
    summary = stats_service.get_tournament_statistics(league["tournament"].id)

    assert summary["matches_played"] == 1
    assert summary["total_goals"] == 2
    assert summary["total_yellow_cards"] == 1
    assert summary["total_red_cards"] == 0
    assert summary["average_goals_per_match"] == 2.0
    assert summary["top_scorers"][0]["player_id"] == 201
    assert len(summary["team_standings"]) == 2


def test_registered_team_without_matches_appears_in_table(db, stats_service):
    a = make_team(db, "Solo FC")
    b = make_team(db, "Quiet United")
    t = make_tournament(db, name="Copa Vacía", teams=[a, b])

    table = stats_service.get_team_tournament_stats(t.id)
    assert [r["team_id"] for r in table] == sorted([a.id, b.id])
    assert all(r["played"] == 0 and r["points"] == 0 for r in table)


def test_player_season_summary(db, scenario, stats_service):
    tid = scenario["tournament"].id
    second = make_match(db, scenario["tournament"], scenario["team_a"], scenario["team_b"], MatchStatus.IN_PROGRESS)
    stats_service.create_statistics(
        StatisticsCreate(match_id=1, player_id=101, minutes_played=90, goals=2, shots_on_target=3, shots_off_target=1)
    )
    stats_service.create_statistics(
        StatisticsCreate(match_id=second.id, player_id=101, minutes_played=45, goals=1, assists=1)
    )

    s = stats_service.get_player_season_summary(101, tid)

    assert s["matches_played"] == 2
    assert s["minutes_played"] == 135
    assert s["goals"] == 3
    assert s["shot_accuracy"] == 75.0
    assert s["goals_per_match"] == 1.5
    assert s["assists_per_match"] == 0.5
    assert s["average_minutes"] == 67.5


def test_season_summary_for_player_without_matches(db, scenario, stats_service):
    other = make_player(db, scenario["team_b"], "Zoe", "Mora")
    s = stats_service.get_player_season_summary(other.id, scenario["tournament"].id)
    assert s["matches_played"] == 0
    assert s["shot_accuracy"] == 0.0
    assert s["goals_per_match"] == 0.0
