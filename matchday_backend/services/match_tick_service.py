# matchday_backend/services/match_tick_service.py
# Background match tick, run every few seconds by main.py:
# - starts ready fixtures whose kickoff has arrived
# - persists natural phase transitions of live matches
# - simulates and finishes auto-simulate matches that have been live long enough

import logging
import random
from datetime import datetime, timedelta
from typing import Optional

from sqlmodel import Session, select

from matchday_backend.core.config import settings
from matchday_backend.core.errors import ConflictError, InvalidStateError
from matchday_backend.core.event_bus import EventBus
from matchday_backend.models.match_model import Match, MatchStatus
from matchday_backend.services import match_state

logger = logging.getLogger(__name__)


def start_due_matches(session: Session, bus: EventBus, now: datetime) -> list:
    """Only fully scheduled fixtures are started automatically."""
    due = session.exec(
        select(Match.id).where(
            Match.status == MatchStatus.SCHEDULED,
            Match.is_scheduled == True,  # noqa: E712
            Match.kickoff_at <= now,
        )
    ).all()

    started = []
    for match_id in due:
        try:
            match_state.start_match(session, bus, match_id, now=now)
            started.append(match_id)
        except (ConflictError, InvalidStateError) as exc:
            # Another request got there first
            logger.warning("⚠️ Tick skipped start of match %s: %s", match_id, exc.message)
    return started


def advance_live_clocks(session: Session, bus: EventBus, now: datetime, rng=None) -> int:
    live = session.exec(select(Match.id).where(Match.status == MatchStatus.LIVE)).all()
    for match_id in live:
        try:
            match_state.advance_clock(session, bus, match_id, now=now, rng=rng)
        except (ConflictError, InvalidStateError) as exc:
            logger.warning("⚠️ Tick skipped clock of match %s: %s", match_id, exc.message)
    return len(live)


def auto_simulate_matches(session: Session, bus: EventBus, now: datetime, rng=None) -> list:
    cutoff = now - timedelta(minutes=settings.auto_simulate_after_minutes)
    due = session.exec(
        select(Match.id).where(
            Match.status == MatchStatus.LIVE,
            Match.auto_simulate == True,  # noqa: E712
            Match.match_started_at <= cutoff,
        )
    ).all()

    finished = []
    for match_id in due:
        try:
            match_state.auto_simulate_match(session, bus, match_id, now=now, rng=rng)
            finished.append(match_id)
        except (ConflictError, InvalidStateError) as exc:
            logger.warning("⚠️ Tick skipped auto-simulation of match %s: %s", match_id, exc.message)
    return finished


def process_match_tick(session: Session, bus: EventBus, now: Optional[datetime] = None, rng=None) -> dict:
    """One pass of the background scheduler."""
    now = now or datetime.utcnow()
    rng = rng or random

    started = start_due_matches(session, bus, now)
    live_count = advance_live_clocks(session, bus, now, rng)
    finished = auto_simulate_matches(session, bus, now, rng)

    if started or finished:
        logger.info("🔄 Match tick: started %s, auto-finished %s", started, finished)
    return {"started": started, "live": live_count, "auto_finished": finished}
