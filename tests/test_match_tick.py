# tests/test_match_tick.py

import random
from datetime import timedelta

from matchday_backend.core import event_bus as topics
from matchday_backend.models.match_model import Match, MatchPhase, MatchStatus
from matchday_backend.services.match_tick_service import process_match_tick

from conftest import NOW


def test_tick_starts_only_ready_fixtures_that_are_due(session, bus, clubs, make_match):
    due = make_match(clubs[0], clubs[1], kickoff=NOW - timedelta(minutes=1))
    later = make_match(clubs[2], clubs[3], kickoff=NOW + timedelta(hours=1))
    no_venue = make_match(clubs[0], clubs[2], kickoff=NOW - timedelta(hours=1), venue=None)

    result = process_match_tick(session, bus, now=NOW, rng=random.Random(1))

    assert result["started"] == [due.id]
    assert session.get(Match, due.id).status == MatchStatus.LIVE
    assert session.get(Match, later.id).status == MatchStatus.SCHEDULED
    assert session.get(Match, no_venue.id).status == MatchStatus.SCHEDULED
    assert topics.MATCH_STARTED in bus.topics()


def test_tick_persists_half_time(session, bus, clubs, make_match):
    match = make_match(clubs[0], clubs[1], kickoff=NOW)
    process_match_tick(session, bus, now=NOW, rng=random.Random(1))

    # One real second per game minute: 46 seconds puts the first half behind us
    result = process_match_tick(session, bus, now=NOW + timedelta(seconds=46), rng=random.Random(1))

    match = session.get(Match, match.id)
    assert result["live"] == 1
    assert match.match_phase == MatchPhase.HALF_TIME
    assert match.is_half_time is True
    assert 1 <= match.added_time <= 4
    assert match.first_half_ended_at is not None
    assert topics.MATCH_UPDATED in bus.topics()


def test_tick_auto_simulates_after_delay(session, bus, clubs, league_config, make_match):
    match = make_match(clubs[0], clubs[1], kickoff=NOW, auto_simulate=True)
    process_match_tick(session, bus, now=NOW, rng=random.Random(7))

    early = process_match_tick(session, bus, now=NOW + timedelta(minutes=1), rng=random.Random(7))
    assert early["auto_finished"] == []

    late = process_match_tick(session, bus, now=NOW + timedelta(minutes=3), rng=random.Random(7))
    assert late["auto_finished"] == [match.id]

    match = session.get(Match, match.id)
    assert match.status == MatchStatus.FINISHED
    assert topics.MATCH_FINISHED in bus.topics()
