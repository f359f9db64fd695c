# matchday_backend/core/match_clock.py
"""
match_clock.py
--------------
The live match clock. Side-effect free: given a Match's stored timing state and
the current instant it derives the displayed minute, the phase, and every natural
phase transition the stored state has not caught up with yet.

Timeline (acceleration = real seconds per game minute):
- first_half:  minute = elapsed game minutes, pinned at 45 -> half_time at 45
- half_time:   minute 45 until the half-time break (real minutes) has passed
- second_half: minute = 45 + elapsed, pinned at 90 -> extra_time at 90
- extra_time:  break after the second half, minute 90 until the break has passed
- full_time:   minute 90, terminal (the match is finished by a separate action)

Several boundaries can be crossed between two reads (e.g. a late poll); they are
returned in order so the state machine can stamp each one.
"""

from dataclasses import dataclass, field
from datetime import datetime, timedelta
from typing import List, Optional

from matchday_backend.core.config import settings
from matchday_backend.models.match_model import ClockReading, MatchPhase, MatchStatus

HALF_MINUTES = 45
FULL_MINUTES = 90

# Timestamp that marks the START of each phase
PHASE_START_FIELDS = {
    MatchPhase.FIRST_HALF: "match_started_at",
    MatchPhase.HALF_TIME: "first_half_ended_at",
    MatchPhase.SECOND_HALF: "second_half_started_at",
    MatchPhase.EXTRA_TIME: "second_half_ended_at",
    MatchPhase.FULL_TIME: "extra_time_ended_at",
}

IN_PLAY_PHASES = {MatchPhase.FIRST_HALF, MatchPhase.SECOND_HALF}
BREAK_PHASES = {MatchPhase.HALF_TIME, MatchPhase.EXTRA_TIME}

# in-play phase -> (first minute, pinned minute, phase entered at the whistle)
_HALVES = {
    MatchPhase.FIRST_HALF: (0, HALF_MINUTES, MatchPhase.HALF_TIME),
    MatchPhase.SECOND_HALF: (HALF_MINUTES, FULL_MINUTES, MatchPhase.EXTRA_TIME),
}

# break phase -> (pinned minute, break length attribute, phase entered afterwards)
_BREAKS = {
    MatchPhase.HALF_TIME: (HALF_MINUTES, "half_time_break_minutes", MatchPhase.SECOND_HALF),
    MatchPhase.EXTRA_TIME: (FULL_MINUTES, "extra_time_break_minutes", MatchPhase.FULL_TIME),
}

_BREAK_DISPLAY = {
    MatchPhase.HALF_TIME: "HT",
    MatchPhase.EXTRA_TIME: "90'",
    MatchPhase.FULL_TIME: "FT",
}


@dataclass
class PhaseTransition:
    """A phase boundary crossed at instant `at` (the new phase starts then)."""
    phase: MatchPhase
    at: datetime


@dataclass
class ClockState:
    reading: ClockReading
    transitions: List[PhaseTransition] = field(default_factory=list)
    # Minute before pinning to 45 / 90; exceeds the pin only while shown stoppage runs
    unpinned_minute: Optional[int] = None


def game_minutes_between(start: datetime, now: datetime, acceleration: int) -> int:
    """Whole game minutes elapsed between two real instants."""
    seconds = (now - start).total_seconds()
    if seconds <= 0:
        return 0
    return int(seconds // max(1, acceleration))


def zero_reading() -> ClockReading:
    return ClockReading(minute=0, display="0'", phase=None, stoppage_time=0.0)


def _in_play_display(minute: int, pinned: int, show_stoppage: bool) -> str:
    if show_stoppage and minute > pinned:
        return f"{pinned}+{minute - pinned}'"
    return f"{min(minute, pinned)}'"


def derive_clock(match, now: datetime, show_stoppage: Optional[bool] = None) -> ClockState:
    """
    Derive the clock for a live match without touching it.

    The phase the match is stored in may be re-anchored (manual override or an
    acceleration change): counting then starts from clock_anchor_minute at
    clock_anchor_at instead of the phase's start timestamp.
    """
    if show_stoppage is None:
        show_stoppage = settings.show_stoppage_in_display

    phase = match.match_phase or MatchPhase.FIRST_HALF
    acceleration = max(1, match.time_acceleration or 1)
    stoppage = float(match.stoppage_time_accumulated or 0.0)

    starts = {p: getattr(match, attr) for p, attr in PHASE_START_FIELDS.items()}
    anchored_phase = match.clock_anchor_phase if match.clock_anchor_at is not None else None
    transitions: List[PhaseTransition] = []

    while True:
        start = starts.get(phase) or now
        anchored = phase == anchored_phase and not transitions

        if phase in IN_PLAY_PHASES:
            first_minute, pinned, next_phase = _HALVES[phase]
            base = first_minute
            if anchored:
                start = match.clock_anchor_at
                base = match.clock_anchor_minute if match.clock_anchor_minute is not None else first_minute

            # Stoppage only lengthens the half when it is shown
            limit = pinned + (int(stoppage) if show_stoppage else 0)
            minute = base + game_minutes_between(start, now, acceleration)

            if minute >= limit:
                whistle = start + timedelta(seconds=max(0, limit - base) * acceleration)
                transitions.append(PhaseTransition(phase=next_phase, at=whistle))
                starts[next_phase] = whistle
                phase = next_phase
                continue

            reading = ClockReading(
                minute=min(minute, pinned),
                display=_in_play_display(minute, pinned, show_stoppage),
                phase=phase,
                stoppage_time=stoppage,
            )
            return ClockState(reading=reading, transitions=transitions, unpinned_minute=minute)

        if phase in BREAK_PHASES:
            pinned, length_attr, next_phase = _BREAKS[phase]
            if anchored:
                start = match.clock_anchor_at
            break_length = timedelta(minutes=getattr(match, length_attr) or 0)

            if now - start >= break_length:
                resume_at = start + break_length
                transitions.append(PhaseTransition(phase=next_phase, at=resume_at))
                starts[next_phase] = resume_at
                if next_phase == MatchPhase.SECOND_HALF:
                    stoppage = 0.0      # accumulator is per half
                phase = next_phase
                continue

            reading = ClockReading(minute=pinned, display=_BREAK_DISPLAY[phase], phase=phase, stoppage_time=stoppage)
            return ClockState(reading=reading, transitions=transitions)

        # full_time: terminal for display purposes
        reading = ClockReading(minute=FULL_MINUTES, display=_BREAK_DISPLAY[MatchPhase.FULL_TIME],
                               phase=MatchPhase.FULL_TIME, stoppage_time=stoppage)
        return ClockState(reading=reading, transitions=transitions)


def read_clock(match, now: Optional[datetime] = None, show_stoppage: Optional[bool] = None) -> ClockReading:
    """Polling read path: zeroed reading unless the match is live."""
    if match.status != MatchStatus.LIVE or match.match_started_at is None:
        return zero_reading()
    return derive_clock(match, now or datetime.utcnow(), show_stoppage=show_stoppage).reading
