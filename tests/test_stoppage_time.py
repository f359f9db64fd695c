# tests/test_stoppage_time.py

from datetime import datetime

from matchday_backend.core.stoppage_time import accrue_stoppage_time, stoppage_credit
from matchday_backend.models.match_model import EventType, Match, MatchPhase

NOW = datetime(2030, 6, 1, 14, 10)


def test_goal_in_play_adds_half_a_minute():
    match = Match(match_phase=MatchPhase.FIRST_HALF, stoppage_time_accumulated=0.0)

    credit = accrue_stoppage_time(match, EventType.GOAL, NOW)

    assert credit == 0.5
    assert match.stoppage_time_accumulated == 0.5
    assert match.last_event_time == NOW


def test_credits_accumulate_without_float_noise():
    match = Match(match_phase=MatchPhase.SECOND_HALF, stoppage_time_accumulated=0.0)
    for event_type in (EventType.YELLOW_CARD, EventType.FOUL, EventType.RED_CARD, EventType.SUBSTITUTION):
        accrue_stoppage_time(match, event_type, NOW)
    assert match.stoppage_time_accumulated == 1.8


def test_breaks_and_full_time_do_not_accrue():
    for phase in (MatchPhase.HALF_TIME, MatchPhase.EXTRA_TIME, MatchPhase.FULL_TIME):
        match = Match(match_phase=phase, stoppage_time_accumulated=1.0)
        assert accrue_stoppage_time(match, EventType.RED_CARD, NOW) == 0.0
        assert match.stoppage_time_accumulated == 1.0
        assert match.last_event_time is None


def test_credit_table():
    assert stoppage_credit("injury", MatchPhase.FIRST_HALF) == 1.5
    assert stoppage_credit(EventType.CORNER, MatchPhase.FIRST_HALF) == 0.0
    assert stoppage_credit(EventType.GOAL, MatchPhase.HALF_TIME) == 0.0
