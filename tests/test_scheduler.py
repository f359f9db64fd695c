# tests/test_scheduler.py

from collections import Counter
from datetime import date, datetime, timedelta
from itertools import combinations

import pytest

from matchday_backend.core.errors import CapacityError
from matchday_backend.core.scheduler import (
    assign_slots, build_team_days, find_free_day, find_free_slot, generate_round_robin_pairings, round_robin_rounds
)


@pytest.mark.parametrize("n", [2, 3, 4, 5, 6, 9, 10])
def test_every_club_meets_every_other_club_exactly_once(n):
    clubs = list(range(1, n + 1))
    pairings = generate_round_robin_pairings(clubs)

    meetings = Counter(frozenset(p) for p in pairings)
    assert set(meetings) == {frozenset(c) for c in combinations(clubs, 2)}
    assert all(count == 1 for count in meetings.values())
    assert all(home != away for home, away in pairings)


def test_round_counts_even_and_odd():
    even = round_robin_rounds([1, 2, 3, 4])
    assert len(even) == 3
    assert all(len(r) == 2 for r in even)

    odd = round_robin_rounds([1, 2, 3, 4, 5])
    assert len(odd) == 5
    assert all(len(r) == 2 for r in odd)
    assert None not in {club for r in odd for pair in r for club in pair}


def test_each_round_uses_a_club_at_most_once():
    for round_pairs in round_robin_rounds(list(range(1, 9))):
        clubs = [c for pair in round_pairs for c in pair]
        assert len(clubs) == len(set(clubs))


def test_assigned_slots_are_unique_and_one_match_per_club_per_day():
    pairings = generate_round_robin_pairings(list(range(1, 7)))
    assignments = assign_slots(pairings, datetime(2030, 6, 1), datetime(2030, 6, 30))

    assert len(assignments) == len(pairings)
    kickoffs = [kickoff for _, _, kickoff in assignments]
    assert len(kickoffs) == len(set(kickoffs))

    per_day = Counter()
    for home, away, kickoff in assignments:
        per_day[(home, kickoff.date())] += 1
        per_day[(away, kickoff.date())] += 1
    assert max(per_day.values()) == 1

    assert assignments[0][2] == datetime(2030, 6, 1, 14, 0)
    assert all(k.minute == 0 and (k.hour - 14) % 2 == 0 for k in kickoffs)


def test_existing_fixtures_are_respected():
    taken = {datetime(2030, 6, 1, 14, 0)}
    team_days = build_team_days([(1, 9, datetime(2030, 6, 1, 14, 0))])

    assignments = assign_slots([(1, 2), (3, 4)], datetime(2030, 6, 1), datetime(2030, 6, 30),
                               taken=taken, team_days=team_days)

    # Club 1 already plays on June 1st; the walk never moves backward
    assert assignments[0][2] == datetime(2030, 6, 2, 0, 0)
    assert assignments[1][2] == datetime(2030, 6, 2, 2, 0)


def test_window_too_short_reports_partial_assignment():
    pairings = generate_round_robin_pairings([1, 2, 3, 4])

    with pytest.raises(CapacityError) as excinfo:
        assign_slots(pairings, datetime(2030, 6, 1), datetime(2030, 6, 1, 23, 0))

    # Round one fits on day one; nobody can play twice that day
    assert [(h, a) for h, a, _ in excinfo.value.scheduled] == pairings[:2]
    assert excinfo.value.failed_pairing == pairings[2]


def test_find_free_slot_skips_taken_instants():
    desired = datetime(2030, 6, 1, 14, 0)
    slot = find_free_slot(desired, (1, 2), {desired}, {})
    assert slot == desired + timedelta(hours=2)


def test_find_free_slot_respects_daily_exclusivity():
    desired = datetime(2030, 6, 1, 14, 0)
    team_days = build_team_days([(2, 7, datetime(2030, 6, 1, 20, 0))])

    slot = find_free_slot(desired, (1, 2), set(), team_days)

    assert slot.date() == datetime(2030, 6, 2).date()


def test_find_free_slot_gives_up_after_probe_limit():
    desired = datetime(2030, 6, 1, 14, 0)
    taken = {desired + timedelta(hours=2 * i) for i in range(3)}
    assert find_free_slot(desired, (1, 2), taken, {}, probe_limit=3) is None
    assert find_free_slot(desired, (1, 2), taken, {}, probe_limit=4) == desired + timedelta(hours=6)


def test_find_free_day_keeps_kickoffs_together():
    # Club 3 played today, so both kickoffs move to tomorrow
    team_days = build_team_days([(2, 3, datetime(2030, 6, 10, 14, 0))])

    slots = find_free_day(date(2030, 6, 10), (18, 20), (1, 4, 2, 3), set(), team_days)

    assert slots == [datetime(2030, 6, 11, 18, 0), datetime(2030, 6, 11, 20, 0)]


def test_find_free_day_uses_the_first_day_when_everyone_is_idle():
    team_days = build_team_days([(5, 6, datetime(2030, 6, 10, 14, 0))])

    assert find_free_day(date(2030, 6, 10), (20,), (1, 2), set(), team_days) == [datetime(2030, 6, 10, 20, 0)]


def test_find_free_day_skips_days_with_a_taken_kickoff():
    taken = {datetime(2030, 6, 10, 20, 0)}

    slots = find_free_day(date(2030, 6, 10), (18, 20), (1, 2), taken, {})

    assert slots == [datetime(2030, 6, 11, 18, 0), datetime(2030, 6, 11, 20, 0)]


def test_find_free_day_gives_up_after_day_limit():
    team_days = {date(2030, 6, 10) + timedelta(days=i): {1} for i in range(3)}

    assert find_free_day(date(2030, 6, 10), (20,), (1, 2), set(), team_days, day_limit=3) is None
    assert find_free_day(date(2030, 6, 10), (20,), (1, 2), set(), team_days, day_limit=4) == [datetime(2030, 6, 13, 20, 0)]
