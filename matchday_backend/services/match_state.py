# matchday_backend/services/match_state.py
"""
match_state.py
--------------
Authoritative lifecycle of a fixture: scheduled -> live -> finished, with the
live sub-phases derived by core/match_clock.py and persisted here.

Every mutating operation follows the same shape:
1. load the match and remember its version
2. validate input and state (raise before touching anything)
3. mutate in memory
4. save_match() compare-and-swap, then publish on the event bus
"""

import logging
import random
from dataclasses import dataclass, field
from datetime import datetime
from typing import List, Optional, Tuple

from pydantic import ValidationError as PydanticValidationError
from sqlalchemy import delete
from sqlmodel import Session, select

from matchday_backend.core import event_bus as topics
from matchday_backend.core.config import settings
from matchday_backend.core.errors import (
    ConflictError, InvalidStateError, NotFoundError, ValidationError
)
from matchday_backend.core.event_bus import EventBus
from matchday_backend.core.match_clock import (
    PHASE_START_FIELDS, IN_PLAY_PHASES, derive_clock, read_clock
)
from matchday_backend.core.scheduler import build_team_days, find_free_slot
from matchday_backend.core.stoppage_time import accrue_stoppage_time
from matchday_backend.models.club_model import Club
from matchday_backend.models.league_table_model import LeagueTable, TeamStanding
from matchday_backend.models.match_model import (
    Match, MatchEvent, MatchEventCreate, MatchPhase, MatchStage, MatchStatus,
    EventType, TeamSide, ClockReading, ScheduleRequest, PHASE_ORDER
)
from matchday_backend.models.match_report_model import MatchReport
from matchday_backend.services import knockout
from matchday_backend.services.event_ledger import append_event
from matchday_backend.services.league_config_service import season_and_name
from matchday_backend.services.league_table import (
    get_current_table, get_table, record_champion, update_table_for_match
)
from matchday_backend.services.match_payload import serialize_match
from matchday_backend.services.match_report import create_match_report
from matchday_backend.services.match_store import get_match, load_for_update, save_match

logger = logging.getLogger(__name__)

SLOT_TAKEN_MESSAGE = "Time slot already occupied. Please choose another time."

# Synthetic events used by the simulate path and the auto-simulate tick
SIMULATED_EVENT_POOL = [EventType.GOAL, EventType.YELLOW_CARD, EventType.FOUL, EventType.FOUL, EventType.YELLOW_CARD]
AUTO_SIMULATED_EVENT_POOL = [EventType.GOAL, EventType.YELLOW_CARD, EventType.FOUL]


@dataclass
class FinishOutcome:
    """
    Result of finishing a match. The finish itself is always committed; the
    best-effort match report reports its failure in report_error instead of
    rolling anything back.
    """
    match: Match
    table: Optional[LeagueTable] = None
    report: Optional[MatchReport] = None
    report_error: Optional[str] = None
    semis: List[Match] = field(default_factory=list)
    final: Optional[Match] = None
    champion_club_id: Optional[int] = None


def _now(now: Optional[datetime]) -> datetime:
    return now or datetime.utcnow()


def _validate_acceleration(value: int) -> int:
    if value is None or not (settings.min_time_acceleration <= value <= settings.max_time_acceleration):
        raise ValidationError(
            f"Time acceleration must be between {settings.min_time_acceleration} "
            f"and {settings.max_time_acceleration} seconds per game minute"
        )
    return value


def _require_live(match: Match) -> None:
    if match.status != MatchStatus.LIVE:
        raise InvalidStateError("Match not live")


# =========================================
# CLOCK PERSISTENCE
# =========================================
def _enter_phase(match: Match, phase: MatchPhase, at: datetime, rng) -> bool:
    """Apply one natural transition. Never moves the phase backward."""
    current = match.match_phase or MatchPhase.FIRST_HALF
    if PHASE_ORDER.index(phase) <= PHASE_ORDER.index(current):
        return False

    setattr(match, PHASE_START_FIELDS[phase], at)
    if phase == MatchPhase.HALF_TIME:
        match.is_half_time = True
        match.added_time = rng.randint(1, 4)
    elif phase == MatchPhase.SECOND_HALF:
        match.is_half_time = False
        match.stoppage_time_accumulated = 0.0
    elif phase == MatchPhase.EXTRA_TIME:
        match.added_time = rng.randint(1, 4)
    elif phase == MatchPhase.FULL_TIME:
        match.is_full_time = True

    match.match_phase = phase
    # An anchor only ever applies to the phase it was taken in
    match.clock_anchor_phase = None
    match.clock_anchor_minute = None
    match.clock_anchor_at = None
    logger.info("⏱️ Match %s entered %s at %s", match.id, phase.value, at)
    return True


def apply_clock(match: Match, now: datetime, rng=None) -> Tuple[ClockReading, List[MatchPhase]]:
    """
    Bring a live match's stored phase up to date with the derived clock
    (in memory). Returns the reading and the phases entered.
    """
    rng = rng or random
    state = derive_clock(match, now)
    entered = []
    for transition in state.transitions:
        if _enter_phase(match, transition.phase, transition.at, rng):
            entered.append(transition.phase)

    match.current_minute = min(120, max(match.current_minute or 0, state.reading.minute))
    return state.reading, entered


def advance_clock(
    session: Session, bus: EventBus, match_id: int, now: Optional[datetime] = None, rng=None
) -> ClockReading:
    """Persist any natural phase transitions that are due for a live match."""
    now = _now(now)
    match, version = load_for_update(session, match_id)
    _require_live(match)

    previous_minute = match.current_minute
    reading, entered = apply_clock(match, now, rng)
    if entered or match.current_minute != previous_minute:
        save_match(session, match, version)
        if entered:
            bus.publish(topics.MATCH_UPDATED, serialize_match(session, match, now))
    return reading


def get_current_time(session: Session, match_id: int, now: Optional[datetime] = None) -> ClockReading:
    """Pure read for pollers: zeroed reading unless the match is live."""
    return read_clock(get_match(session, match_id), _now(now))


# =========================================
# START
# =========================================
def _begin_live(match: Match, now: datetime, acceleration: Optional[int] = None) -> None:
    """Initialise every timing field for a fresh first half."""
    match.status = MatchStatus.LIVE
    match.match_started_at = now
    match.current_minute = 0
    match.match_phase = MatchPhase.FIRST_HALF
    match.time_acceleration = acceleration or settings.default_time_acceleration
    match.stoppage_time_accumulated = 0.0
    match.last_event_time = None
    match.added_time = None
    match.is_half_time = False
    match.is_full_time = False
    match.first_half_ended_at = None
    match.second_half_started_at = None
    match.second_half_ended_at = None
    match.extra_time_ended_at = None
    match.clock_anchor_phase = None
    match.clock_anchor_minute = None
    match.clock_anchor_at = None
    match.half_time_break_minutes = match.half_time_break_minutes or settings.half_time_break_minutes
    match.extra_time_break_minutes = match.extra_time_break_minutes or settings.extra_time_break_minutes


def start_match(
    session: Session,
    bus: EventBus,
    match_id: int,
    time_acceleration: Optional[int] = None,
    now: Optional[datetime] = None,
) -> Match:
    """Kick off a fully scheduled match."""
    now = _now(now)
    match, version = load_for_update(session, match_id)

    if match.status != MatchStatus.SCHEDULED:
        raise InvalidStateError("Only scheduled matches can be started")
    if not match.is_scheduled:
        raise InvalidStateError("Please click Schedule after setting teams, kickoff, and venue")
    if time_acceleration is not None:
        _validate_acceleration(time_acceleration)

    _begin_live(match, now, time_acceleration)
    save_match(session, match, version)

    logger.info("▶️ Match %s started (%ss per game minute)", match.id, match.time_acceleration)
    bus.publish(topics.MATCH_STARTED, serialize_match(session, match, now))
    return match


# =========================================
# EVENTS
# =========================================
def _parse_event(data) -> MatchEventCreate:
    if isinstance(data, MatchEventCreate):
        return data
    try:
        return MatchEventCreate.model_validate(data)
    except PydanticValidationError as exc:
        raise ValidationError(f"Invalid event: {exc.errors()[0].get('msg', 'bad value')}")


def record_event(
    session: Session, bus: EventBus, match_id: int, data, now: Optional[datetime] = None, rng=None
) -> Match:
    """
    Append an event to a live match. A match that is still scheduled is
    started first rather than rejecting the event.
    """
    now = _now(now)
    match, version = load_for_update(session, match_id)
    event_data = _parse_event(data)

    if match.status == MatchStatus.FINISHED:
        raise InvalidStateError("Match not live")

    auto_started = False
    if match.status == MatchStatus.SCHEDULED:
        _begin_live(match, now)
        auto_started = True
        logger.info("▶️ Match %s auto-started by an incoming event", match.id)

    # Phase must be current before deciding whether stoppage accrues
    apply_clock(match, now, rng)
    event = append_event(session, match, event_data)
    accrue_stoppage_time(match, event.type, now)
    save_match(session, match, version)

    payload = serialize_match(session, match, now)
    if auto_started:
        bus.publish(topics.MATCH_STARTED, payload)
    bus.publish(topics.MATCH_EVENT, payload)
    return match


# =========================================
# CLOCK CONTROL
# =========================================
def set_time_acceleration(
    session: Session, bus: EventBus, match_id: int, acceleration: int, now: Optional[datetime] = None, rng=None
) -> Match:
    """
    Change real seconds per game minute. The clock is re-anchored at the
    current minute so the display continues from where it was.
    """
    now = _now(now)
    match, version = load_for_update(session, match_id)
    _validate_acceleration(acceleration)
    _require_live(match)

    apply_clock(match, now, rng)
    if match.match_phase in IN_PLAY_PHASES:
        # Unpinned, so a shown 45+N' carries over
        match.clock_anchor_phase = match.match_phase
        match.clock_anchor_minute = derive_clock(match, now).unpinned_minute
        match.clock_anchor_at = now
    match.time_acceleration = acceleration
    save_match(session, match, version)

    logger.info("⏩ Match %s acceleration set to %ss per game minute", match.id, acceleration)
    bus.publish(topics.MATCH_UPDATED, serialize_match(session, match, now))
    return match


def _parse_phase(phase) -> MatchPhase:
    try:
        return MatchPhase(phase)
    except ValueError:
        raise ValidationError("Invalid phase")


def set_manual_time(
    session: Session,
    bus: EventBus,
    match_id: int,
    minute: int,
    phase: Optional[str] = None,
    now: Optional[datetime] = None,
) -> ClockReading:
    """
    Administrative override of minute and phase. May move the phase in any
    direction; each phase's start timestamp is only stamped the first time.
    """
    now = _now(now)
    match, version = load_for_update(session, match_id)

    if minute is None or not (0 <= minute <= 120):
        raise ValidationError("Minute must be between 0 and 120")
    new_phase = _parse_phase(phase) if phase is not None else (match.match_phase or MatchPhase.FIRST_HALF)
    _require_live(match)

    match.current_minute = minute
    match.match_phase = new_phase
    match.is_half_time = new_phase == MatchPhase.HALF_TIME
    match.is_full_time = new_phase == MatchPhase.FULL_TIME

    start_field = PHASE_START_FIELDS[new_phase]
    if getattr(match, start_field) is None:
        setattr(match, start_field, now)

    match.clock_anchor_phase = new_phase
    match.clock_anchor_minute = minute
    match.clock_anchor_at = now
    save_match(session, match, version)

    logger.info("🛠️ Match %s manually set to %s' (%s)", match.id, minute, new_phase.value)
    bus.publish(topics.MATCH_UPDATED, serialize_match(session, match, now))
    return read_clock(match, now)


# =========================================
# FINISH
# =========================================
def _declare_champion(session: Session, bus: EventBus, match: Match, table: Optional[LeagueTable]) -> Optional[int]:
    champion = knockout.final_winner(match)
    bus.publish(topics.FINAL_FINISHED, serialize_match(session, match))

    if table is not None:
        record_champion(session, table, champion)
    if champion is not None:
        logger.info("🏆 Club %s declared champion", champion)
        bus.publish(topics.LEAGUE_CHAMPION, {"club_id": champion, "fixture_id": match.id})
    else:
        logger.info("🤝 Final %s drawn; no champion declared", match.id)
    return champion


def _complete_match(
    session: Session, bus: EventBus, match: Match, version: int, now: datetime
) -> FinishOutcome:
    was_live = match.status == MatchStatus.LIVE
    match.status = MatchStatus.FINISHED
    match.finished_at = now
    if was_live:
        match.match_phase = MatchPhase.FULL_TIME
        match.is_half_time = False
        match.is_full_time = True
    save_match(session, match, version)
    logger.info("🏁 Match %s finished %d-%d", match.id, match.score_home, match.score_away)

    outcome = FinishOutcome(match=match)

    # (a) Match report: best effort, never undoes the finish
    try:
        outcome.report = create_match_report(session, match, now)
    except Exception as exc:
        session.rollback()
        outcome.report_error = getattr(exc, "message", None) or str(exc)
        logger.exception("Match report for %s could not be created", match.id)

    # (b) League table
    season, name = season_and_name(session)
    if match.stage == MatchStage.LEAGUE and match.home_club_id and match.away_club_id:
        outcome.table = update_table_for_match(
            session, season, name, match.home_club_id, match.away_club_id, match.score_home, match.score_away
        )
    else:
        outcome.table = get_table(session, season, name) or get_current_table(session)

    bus.publish(topics.MATCH_FINISHED, serialize_match(session, match, now))
    if match.stage == MatchStage.LEAGUE and outcome.table is not None:
        bus.publish(topics.TABLE_UPDATED, {"table_id": outcome.table.id, "season": season, "name": name})

    # (c) Knockout progression
    outcome.semis = knockout.seed_semi_finals_if_ready(session, bus, outcome.table, now)
    outcome.final = knockout.create_final_if_ready(session, bus, now)

    # (d) Champion
    if match.is_final:
        outcome.champion_club_id = _declare_champion(session, bus, match, outcome.table)

    return outcome


def finish_match(session: Session, bus: EventBus, match_id: int, now: Optional[datetime] = None) -> FinishOutcome:
    now = _now(now)
    match, version = load_for_update(session, match_id)
    if match.status == MatchStatus.FINISHED:
        raise InvalidStateError("Match already finished")
    return _complete_match(session, bus, match, version, now)


def declare_final_champion(session: Session, bus: EventBus, match_id: int, now: Optional[datetime] = None) -> dict:
    """
    Finish the final (if still open) and declare its winner. A drawn final
    closes the table without a champion.
    """
    now = _now(now)
    match = session.get(Match, match_id)
    if not match or not match.is_final:
        raise NotFoundError("Final match not found")

    if match.status != MatchStatus.FINISHED:
        outcome = _complete_match(session, bus, match, match.version, now)
        return {"match": outcome.match, "champion_club_id": outcome.champion_club_id}

    season, name = season_and_name(session)
    table = get_table(session, season, name) or get_current_table(session)
    champion = _declare_champion(session, bus, match, table)
    return {"match": match, "champion_club_id": champion}


def _synthesise_events(session: Session, match: Match, count: int, pool, player_prefix: str, rng) -> None:
    for _ in range(count):
        append_event(session, match, MatchEventCreate(
            minute=rng.randint(1, 90),
            type=rng.choice(pool),
            team=rng.choice([TeamSide.HOME, TeamSide.AWAY]),
            player=f"{player_prefix} {rng.randint(1, 30)}",
        ))


def simulate_match(
    session: Session, bus: EventBus, match_id: int, now: Optional[datetime] = None, rng=None
) -> FinishOutcome:
    """Demo path: 0-5 random events, then the normal finish side effects."""
    now = _now(now)
    rng = rng or random
    match, version = load_for_update(session, match_id)
    if match.status == MatchStatus.FINISHED:
        raise InvalidStateError("Match already finished")

    if match.status == MatchStatus.SCHEDULED:
        _begin_live(match, now)

    _synthesise_events(session, match, rng.randint(0, 5), SIMULATED_EVENT_POOL, "Player", rng)
    logger.info("🎲 Simulated match %s", match.id)
    return _complete_match(session, bus, match, version, now)


def auto_simulate_match(
    session: Session, bus: EventBus, match_id: int, now: Optional[datetime] = None, rng=None
) -> FinishOutcome:
    """Background variant: 1-5 extra events on a live match, then finish."""
    now = _now(now)
    rng = rng or random
    match, version = load_for_update(session, match_id)
    _require_live(match)

    _synthesise_events(session, match, rng.randint(1, 5), AUTO_SIMULATED_EVENT_POOL, "Auto Player", rng)
    logger.info("🤖 Auto-simulated match %s", match.id)
    return _complete_match(session, bus, match, version, now)


# =========================================
# SCHEDULING
# =========================================
def _require_club(session: Session, club_id: int) -> Club:
    club = session.get(Club, club_id)
    if not club:
        raise NotFoundError("Club not found")
    return club


def _occupied_except(session: Session, match_id: int):
    others = session.exec(
        select(Match).where(Match.id != match_id, Match.kickoff_at != None)  # noqa: E711
    ).all()
    taken = {m.kickoff_at for m in others}
    team_days = build_team_days((m.home_club_id, m.away_club_id, m.kickoff_at) for m in others)
    return taken, team_days


def schedule_match(
    session: Session, bus: EventBus, match_id: int, request: ScheduleRequest, now: Optional[datetime] = None
) -> Match:
    """
    Set any of kickoff, venue, teams and auto-simulate. A taken kickoff is moved
    forward in slot increments (bounded); ConflictError when nothing is free.
    """
    now = _now(now)
    match, version = load_for_update(session, match_id)

    home_id = request.home_team_id or match.home_club_id
    away_id = request.away_team_id or match.away_club_id
    if home_id and away_id and home_id == away_id:
        raise ValidationError("Home and away teams must be different")
    for club_id in (request.home_team_id, request.away_team_id):
        if club_id:
            _require_club(session, club_id)

    desired = request.kickoff_at or match.kickoff_at
    if desired is not None:
        taken, team_days = _occupied_except(session, match.id)
        slot = find_free_slot(
            desired, (home_id, away_id), taken, team_days,
            increment_hours=settings.slot_increment_hours,
            probe_limit=settings.slot_probe_limit,
        )
        if slot is None:
            logger.warning("⚠️ No free slot for match %s from %s", match.id, desired)
            raise ConflictError(SLOT_TAKEN_MESSAGE)
        match.kickoff_at = slot

    if request.auto_simulate is not None:
        match.auto_simulate = request.auto_simulate
    if request.venue_name is not None:
        match.venue_name = request.venue_name.strip() or None
    if request.home_team_id:
        match.home_club_id = request.home_team_id
    if request.away_team_id:
        match.away_club_id = request.away_team_id

    match.is_scheduled = match.has_all_schedule_fields()
    save_match(session, match, version)

    logger.info("📅 Match %s scheduled for %s at %s (ready: %s)", match.id, match.kickoff_at, match.venue_name, match.is_scheduled)
    bus.publish(topics.MATCH_UPDATED, serialize_match(session, match, now))
    return match


def update_teams(
    session: Session, bus: EventBus, match_id: int, home_team_id: int, away_team_id: int, now: Optional[datetime] = None
) -> Match:
    now = _now(now)
    match, version = load_for_update(session, match_id)

    if match.status != MatchStatus.SCHEDULED:
        raise InvalidStateError("Teams can only be changed for scheduled matches")
    if not home_team_id or not away_team_id or home_team_id == away_team_id:
        raise ValidationError("Invalid team selection")
    _require_club(session, home_team_id)
    _require_club(session, away_team_id)

    if match.kickoff_at is not None:
        _, team_days = _occupied_except(session, match.id)
        busy = team_days.get(match.kickoff_at.date(), set())
        if home_team_id in busy or away_team_id in busy:
            raise ConflictError("A club already has a match on that day")

    match.home_club_id = home_team_id
    match.away_club_id = away_team_id
    match.is_scheduled = match.has_all_schedule_fields()
    save_match(session, match, version)

    bus.publish(topics.MATCH_UPDATED, serialize_match(session, match, now))
    return match


# =========================================
# LISTING / RESET
# =========================================
def _priority(match: Match) -> int:
    if match.status == MatchStatus.LIVE:
        return 1
    if match.status == MatchStatus.SCHEDULED:
        return 2 if match.is_scheduled else 3
    return 4


def list_fixtures(session: Session) -> List[Match]:
    """Live first, then ready, then unready, then finished; kickoff ascending; newest first."""
    matches = session.exec(select(Match)).all()
    # Stable sorts applied from the least to the most significant key
    matches = sorted(matches, key=lambda m: (m.created_at, m.id), reverse=True)
    matches = sorted(matches, key=lambda m: (m.kickoff_at is None, m.kickoff_at or datetime.max))
    return sorted(matches, key=_priority)


def reset_league(session: Session) -> dict:
    """Delete every fixture, event, report and table."""
    counts = {}
    for label, model in (
        ("events", MatchEvent),
        ("reports", MatchReport),
        ("fixtures", Match),
        ("standings", TeamStanding),
        ("tables", LeagueTable),
    ):
        counts[label] = session.exec(delete(model)).rowcount
    session.commit()
    logger.info("🧹 League reset: %s", counts)
    return counts
