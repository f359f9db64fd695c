# matchday_backend/core/scheduler.py
"""
scheduler.py
------------
Scheduling feasibility solver. Pure functions, no database access:

- round_robin_rounds / generate_round_robin_pairings: classic circle method
- assign_slots: greedy, non-backtracking slot assignment inside a league window
- find_free_slot: bounded forward probing used for single fixtures (manual
  scheduling)
- find_free_day: day-by-day search for fixed kickoff hours (knockout seeding)

Constraints enforced everywhere:
  (a) no two fixtures share the same kickoff instant
  (b) a club plays at most one fixture per calendar day

The greedy solver can fail even when another assignment order would fit; that is
a known limitation. On failure it raises CapacityError carrying the partial
assignment and the pairing that could not be placed.
"""

from collections import defaultdict
from datetime import date, datetime, timedelta
from typing import Dict, Iterable, List, Optional, Set, Tuple

from matchday_backend.core.errors import CapacityError

Pairing = Tuple[int, int]
Assignment = Tuple[int, int, datetime]


# =====================================
# ROUND-ROBIN PAIRINGS
# =====================================
def round_robin_rounds(club_ids: List[int]) -> List[List[Pairing]]:
    """
    Circle method: keep the first club fixed and rotate the others one place
    each round. With an odd count a bye (None) is added and its pairs dropped.
    n clubs -> n-1 rounds (n even) or n rounds (n odd) of floor(n/2) pairs.
    """
    ids = list(club_ids)
    if len(ids) % 2 != 0:
        ids.append(None)  # Add a dummy "bye" if odd number of clubs

    half = len(ids) // 2
    rotated = ids[:]
    rounds = []

    for _ in range(len(ids) - 1):
        pairs = []
        for i in range(half):
            home = rotated[i]
            away = rotated[-i - 1]
            if home is None or away is None:
                continue  # Skip bye
            pairs.append((home, away))
        rounds.append(pairs)

        # Rotate clubs (keep the first club fixed)
        rotated = [rotated[0]] + [rotated[-1]] + rotated[1:-1]

    return rounds


def generate_round_robin_pairings(club_ids: List[int]) -> List[Pairing]:
    """Single round-robin flattened into one ordered list of (home, away)."""
    return [pair for round_pairs in round_robin_rounds(club_ids) for pair in round_pairs]


# =====================================
# SLOT ASSIGNMENT
# =====================================
def build_team_days(fixtures: Iterable[Tuple[Optional[int], Optional[int], Optional[datetime]]]) -> Dict[date, Set[int]]:
    """Calendar day -> clubs already playing that day."""
    team_days: Dict[date, Set[int]] = defaultdict(set)
    for home, away, kickoff in fixtures:
        if kickoff is None:
            continue
        for club_id in (home, away):
            if club_id is not None:
                team_days[kickoff.date()].add(club_id)
    return team_days


def slot_is_free(slot: datetime, teams: Iterable[int], taken: Set[datetime], team_days: Dict[date, Set[int]]) -> bool:
    if slot in taken:
        return False
    busy = team_days.get(slot.date(), set())
    return not any(t in busy for t in teams if t is not None)


def assign_slots(
    pairings: List[Pairing],
    window_start: datetime,
    window_end: datetime,
    kickoff_hour: int = 14,
    increment_hours: int = 2,
    taken: Optional[Iterable[datetime]] = None,
    team_days: Optional[Dict[date, Set[int]]] = None,
) -> List[Assignment]:
    """
    Walk forward from window_start at kickoff_hour in fixed increments and give
    each pairing the first slot that satisfies both constraints. Raises
    CapacityError as soon as a candidate slot passes window_end.
    """
    increment = timedelta(hours=increment_hours)
    taken_slots: Set[datetime] = set(taken or [])
    busy: Dict[date, Set[int]] = defaultdict(set)
    for day, clubs in (team_days or {}).items():
        busy[day] |= set(clubs)

    slot = window_start.replace(hour=kickoff_hour, minute=0, second=0, microsecond=0)
    scheduled: List[Assignment] = []

    for home, away in pairings:
        while not slot_is_free(slot, (home, away), taken_slots, busy):
            slot += increment
            if slot > window_end:
                break

        if slot > window_end:
            raise CapacityError(
                f"Cannot schedule all matches within league period "
                f"({window_start.date()} - {window_end.date()}). "
                f"Please extend the league period or reduce the number of clubs.",
                scheduled=scheduled,
                failed_pairing=(home, away),
            )

        scheduled.append((home, away, slot))
        taken_slots.add(slot)
        busy[slot.date()] |= {home, away}
        slot += increment

    return scheduled


def find_free_slot(
    desired: datetime,
    teams: Iterable[Optional[int]],
    taken: Set[datetime],
    team_days: Dict[date, Set[int]],
    increment_hours: int = 2,
    probe_limit: int = 96,
) -> Optional[datetime]:
    """
    Probe desired, desired + increment, ... at most probe_limit times.
    Returns the first free slot or None when the cap is reached.
    """
    teams = [t for t in teams if t is not None]
    slot = desired
    for _ in range(probe_limit):
        if slot_is_free(slot, teams, taken, team_days):
            return slot
        slot += timedelta(hours=increment_hours)
    return None


def find_free_day(
    first_day: date,
    kickoff_hours: Iterable[int],
    teams: Iterable[Optional[int]],
    taken: Set[datetime],
    team_days: Dict[date, Set[int]],
    day_limit: int = 14,
) -> Optional[List[datetime]]:
    """
    First day from first_day on which every kickoff hour is free and none of
    the teams already plays. Returns that day's kickoffs, or None after
    day_limit days.
    """
    teams = {t for t in teams if t is not None}
    hours = list(kickoff_hours)
    day = first_day
    for _ in range(day_limit):
        slots = [datetime.combine(day, datetime.min.time()) + timedelta(hours=h) for h in hours]
        if not teams & team_days.get(day, set()) and not any(s in taken for s in slots):
            return slots
        day += timedelta(days=1)
    return None
