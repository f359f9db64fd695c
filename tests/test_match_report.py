# tests/test_match_report.py

from datetime import timedelta

import pytest

from matchday_backend.core.errors import ConflictError, InvalidStateError, NotFoundError
from matchday_backend.models.match_model import EventType, MatchEvent, TeamSide
from matchday_backend.models.match_report_model import MatchReportUpdate
from matchday_backend.services import match_state
from matchday_backend.services.match_report import (
    calculate_player_stats,
    calculate_possession,
    calculate_team_stats,
    create_match_report,
    delete_match_report,
    get_match_report,
    get_match_report_by_fixture,
    get_team_match_stats,
    update_match_report,
)
from matchday_backend.services.match_store import get_match

from conftest import NOW


def ev(event_type, team=TeamSide.HOME, **fields):
    return MatchEvent(match_id=1, sequence=1, minute=10, type=event_type, team=team, **fields)


# ==========================================
# Possession
# ==========================================
def test_possession_even_without_events():
    assert calculate_possession([], [], 0, 0) == 50


def test_possession_rewards_the_leading_side():
    assert calculate_possession([], [], 1, 0) == 65
    assert calculate_possession([], [], 0, 2) == 35


def test_possession_weighs_shots_corners_and_fouls():
    home = [
        ev(EventType.SHOT, on_target=True),
        ev(EventType.SHOT, on_target=True),
        ev(EventType.CORNER),
        ev(EventType.FOUL), ev(EventType.FOUL), ev(EventType.FOUL),
    ]
    away = [
        ev(EventType.SHOT, TeamSide.AWAY, on_target=False),
        ev(EventType.SHOT, TeamSide.AWAY),
        ev(EventType.CORNER, TeamSide.AWAY), ev(EventType.CORNER, TeamSide.AWAY), ev(EventType.CORNER, TeamSide.AWAY),
        ev(EventType.FOUL, TeamSide.AWAY),
    ]
    # 50 + 10 (all on-target shots) + 0 (shots level) - 3 (corners 1:3) - 2 (fouls 3:1)
    assert calculate_possession(home, away, 0, 0) == 55


def test_possession_is_clamped():
    home = [ev(EventType.SHOT, on_target=True), ev(EventType.CORNER)]
    assert calculate_possession(home, [], 3, 0) == 80

    away = [ev(EventType.SHOT, TeamSide.AWAY, on_target=True), ev(EventType.CORNER, TeamSide.AWAY)]
    assert calculate_possession([ev(EventType.FOUL)], away, 0, 1) == 20


def test_on_target_description_counts_as_on_target():
    home = [ev(EventType.SHOT, description="on_target")]
    away = [ev(EventType.SHOT, TeamSide.AWAY)]
    # +10 on-target share, shots level
    assert calculate_possession(home, away, 0, 0) == 60


# ==========================================
# Team / player statistics
# ==========================================
def test_player_stats_credit_assists_from_goal_events():
    events = [
        ev(EventType.GOAL, player="Striker", assist="Winger"),
        ev(EventType.GOAL, player="Striker"),
        ev(EventType.YELLOW_CARD, player="Winger"),
        ev(EventType.FOUL, player="Defender"),
        ev(EventType.CORNER),
    ]

    stats = {p["player_name"]: p for p in calculate_player_stats(events)}

    assert set(stats) == {"Striker", "Winger", "Defender"}
    assert stats["Striker"]["goals"] == 2
    assert stats["Winger"]["assists"] == 1
    assert stats["Winger"]["yellow_cards"] == 1
    assert stats["Defender"]["fouls"] == 1
    assert all(p["minutes_played"] == 90 for p in stats.values())


def test_team_stats_split_possession():
    events = [
        ev(EventType.GOAL, player="Striker"),
        ev(EventType.SHOT, on_target=True),
        ev(EventType.SHOT, TeamSide.AWAY),
        ev(EventType.RED_CARD, TeamSide.AWAY, player="Hothead"),
    ]

    home = calculate_team_stats(events, TeamSide.HOME, "Alpha FC", 1, 1, 0)
    away = calculate_team_stats(events, TeamSide.AWAY, "Bravo FC", 2, 1, 0)

    assert home["possession"] + away["possession"] == 100
    assert home["final_score"] == 1 and away["final_score"] == 0
    assert home["shots"] == 1 and home["shots_on_target"] == 1
    assert away["shots"] == 1 and away["shots_on_target"] == 0
    assert away["red_cards"] == 1
    assert (home["team_id"], home["team_name"]) == (1, "Alpha FC")


# ==========================================
# Persisted reports
# ==========================================
def test_finish_creates_one_report(session, bus, clubs, league_config, make_match):
    match = make_match(clubs[0], clubs[1])
    match_state.record_event(session, bus, match.id, {
        "minute": 30, "type": "goal", "team": "home", "player": "Striker", "assist": "Winger",
    }, now=NOW)
    outcome = match_state.finish_match(session, bus, match.id, now=NOW)

    report = get_match_report_by_fixture(session, match.id)
    assert outcome.report.id == report.id
    assert outcome.report_error is None
    assert (report.final_score_home, report.final_score_away) == (1, 0)
    assert report.home_team_name == "Alpha FC"
    assert report.events[0]["type"] == "goal"
    assert report.home_team_stats["possession"] == 65

    with pytest.raises(ConflictError):
        create_match_report(session, outcome.match, now=NOW)


def test_report_requires_finished_match(session, clubs, make_match):
    match = make_match(clubs[0], clubs[1])
    with pytest.raises(InvalidStateError):
        create_match_report(session, match, now=NOW)


def test_missing_report_is_not_found(session):
    with pytest.raises(NotFoundError):
        get_match_report_by_fixture(session, 999)


def test_team_match_stats(session, bus, clubs, league_config, make_match):
    alpha, bravo, charlie, _ = clubs
    results = [(alpha, bravo, 2, 0), (charlie, alpha, 1, 1), (alpha, charlie, 0, 3)]
    for hours, (home, away, home_goals, away_goals) in enumerate(results):
        match = make_match(home, away, kickoff=NOW + timedelta(hours=hours), venue=f"{home.name} Ground")
        for _ in range(home_goals):
            match_state.record_event(session, bus, match.id, {"minute": 5, "type": "goal", "team": "home"}, now=NOW)
        for _ in range(away_goals):
            match_state.record_event(session, bus, match.id, {"minute": 6, "type": "goal", "team": "away"}, now=NOW)
        match_state.finish_match(session, bus, match.id, now=NOW)

    stats = get_team_match_stats(session, alpha.id)

    assert stats["total_matches"] == 3
    assert (stats["wins"], stats["draws"], stats["losses"]) == (1, 1, 1)
    assert (stats["goals_for"], stats["goals_against"]) == (3, 4)
    assert stats["goal_difference"] == -1
    assert stats["win_percentage"] == 33.3
    assert len(stats["recent_matches"]) == 3

    assert get_team_match_stats(session, alpha.id, limit=1)["total_matches"] == 1
    with pytest.raises(NotFoundError):
        get_team_match_stats(session, 999)


def test_report_correction_and_removal(session, bus, clubs, league_config, make_match):
    match = make_match(clubs[0], clubs[1])
    report = match_state.finish_match(session, bus, match.id, now=NOW).report

    corrected = update_match_report(
        session, report.id, MatchReportUpdate(final_score_home=2, match_duration=93), now=NOW + timedelta(hours=1)
    )

    assert (corrected.final_score_home, corrected.final_score_away) == (2, 0)
    assert corrected.match_duration == 93
    assert corrected.fixture_id == match.id
    assert corrected.updated_at == NOW + timedelta(hours=1)

    delete_match_report(session, report.id)
    with pytest.raises(NotFoundError):
        get_match_report(session, report.id)
    with pytest.raises(NotFoundError):
        delete_match_report(session, report.id)

    # The fixture itself is untouched
    assert get_match(session, match.id).score_home == 0
