# matchday_backend/core/stoppage_time.py
# Stoppage-time accumulator. Informational: the displayed minute only includes it
# when settings.show_stoppage_in_display is on (see core/match_clock.py).

from datetime import datetime

from matchday_backend.models.match_model import MatchPhase

# Game-minute credit per in-match event
STOPPAGE_CREDITS = {
    "goal": 0.5,
    "yellow_card": 0.3,
    "red_card": 1.0,
    "foul": 0.2,
    "substitution": 0.3,
    "injury": 1.5,
}

# Breaks and the terminal phase never accrue stoppage time
NO_ACCRUAL_PHASES = {MatchPhase.HALF_TIME, MatchPhase.EXTRA_TIME, MatchPhase.FULL_TIME}


def stoppage_credit(event_type, phase) -> float:
    """Credit (game minutes) an event earns in the given phase."""
    if phase in NO_ACCRUAL_PHASES:
        return 0.0
    key = getattr(event_type, "value", event_type)
    return STOPPAGE_CREDITS.get(key, 0.0)


def accrue_stoppage_time(match, event_type, now: datetime) -> float:
    """
    Add the event's credit to match.stoppage_time_accumulated and stamp
    match.last_event_time. Does nothing during breaks / full time.
    Returns the credit applied.
    """
    if match.match_phase in NO_ACCRUAL_PHASES:
        return 0.0

    credit = stoppage_credit(event_type, match.match_phase)
    match.stoppage_time_accumulated = round((match.stoppage_time_accumulated or 0.0) + credit, 2)
    match.last_event_time = now
    return credit
