# fixture_routes.py
# API routes for fixtures: generation, scheduling, the live match clock and finishing.
# Services raise MatchdayError subclasses; main.py turns them into {"success": false, ...}.

from datetime import datetime
from typing import Optional

from fastapi import APIRouter, Body, Depends
from sqlmodel import Session, select

from matchday_backend.core.database import get_session
from matchday_backend.core.event_bus import EventBus, get_event_bus
from matchday_backend.models.club_model import Club
from matchday_backend.models.match_model import (
    MatchEventCreate, ScheduleRequest, UpdateTeamsRequest, StartMatchRequest,
    TimeAccelerationRequest, ManualTimeRequest
)
from matchday_backend.services import match_state
from matchday_backend.services.generate_fixtures import generate_fixtures
from matchday_backend.services.league_table import serialize_table
from matchday_backend.services.match_payload import serialize_match
from matchday_backend.services.match_store import get_match

router = APIRouter()


def _finish_payload(session: Session, outcome: match_state.FinishOutcome) -> dict:
    return {
        "match": serialize_match(session, outcome.match),
        "table": serialize_table(session, outcome.table) if outcome.table else None,
        "report_id": outcome.report.id if outcome.report else None,
        "report_error": outcome.report_error,
        "semis_created": [m.id for m in outcome.semis],
        "final_created": outcome.final.id if outcome.final else None,
        "champion_club_id": outcome.champion_club_id,
    }


# =========================================
# GENERATE / LIST / RESET
# =========================================
@router.post("/generate")
def generate(session: Session = Depends(get_session)):
    """Round-robin league fixtures inside the active league window."""
    fixtures = generate_fixtures(session)
    clubs = {c.id: c for c in session.exec(select(Club)).all()}
    return {
        "success": True,
        "data": [serialize_match(session, m, clubs=clubs, include_events=False) for m in fixtures],
        "message": f"{len(fixtures)} fixtures generated",
    }


@router.get("/")
def list_all(session: Session = Depends(get_session)):
    """Live first, then ready, then unscheduled, then finished."""
    now = datetime.utcnow()
    clubs = {c.id: c for c in session.exec(select(Club)).all()}
    return {
        "success": True,
        "data": [serialize_match(session, m, now=now, clubs=clubs) for m in match_state.list_fixtures(session)],
    }


@router.post("/reset")
def reset(session: Session = Depends(get_session)):
    counts = match_state.reset_league(session)
    return {"success": True, "data": counts, "message": "League reset: fixtures and table cleared"}


@router.get("/{match_id}")
def get_one(match_id: int, session: Session = Depends(get_session)):
    return {"success": True, "data": serialize_match(session, get_match(session, match_id))}


# =========================================
# SCHEDULING
# =========================================
@router.put("/{match_id}/schedule")
def schedule(
    match_id: int,
    request: ScheduleRequest,
    session: Session = Depends(get_session),
    bus: EventBus = Depends(get_event_bus),
):
    match = match_state.schedule_match(session, bus, match_id, request)
    return {"success": True, "data": serialize_match(session, match)}


@router.put("/{match_id}/teams")
def update_teams(
    match_id: int,
    request: UpdateTeamsRequest,
    session: Session = Depends(get_session),
    bus: EventBus = Depends(get_event_bus),
):
    match = match_state.update_teams(session, bus, match_id, request.home_team_id, request.away_team_id)
    return {"success": True, "data": serialize_match(session, match)}


# =========================================
# LIVE MATCH
# =========================================
@router.put("/{match_id}/start")
def start(
    match_id: int,
    request: Optional[StartMatchRequest] = Body(default=None),
    session: Session = Depends(get_session),
    bus: EventBus = Depends(get_event_bus),
):
    acceleration = request.time_acceleration if request else None
    match = match_state.start_match(session, bus, match_id, time_acceleration=acceleration)
    return {"success": True, "data": serialize_match(session, match)}


@router.put("/{match_id}/event")
def add_event(
    match_id: int,
    event: MatchEventCreate,
    session: Session = Depends(get_session),
    bus: EventBus = Depends(get_event_bus),
):
    match = match_state.record_event(session, bus, match_id, event)
    return {"success": True, "data": serialize_match(session, match)}


@router.get("/{match_id}/time")
def current_time(match_id: int, session: Session = Depends(get_session)):
    """Polling endpoint: derived minute, display and phase (no writes)."""
    reading = match_state.get_current_time(session, match_id)
    return {"success": True, "data": reading.model_dump()}


@router.put("/{match_id}/time-acceleration")
def time_acceleration(
    match_id: int,
    request: TimeAccelerationRequest,
    session: Session = Depends(get_session),
    bus: EventBus = Depends(get_event_bus),
):
    match = match_state.set_time_acceleration(session, bus, match_id, request.acceleration)
    return {
        "success": True,
        "data": {"time_acceleration": match.time_acceleration, "current_time": match_state.get_current_time(session, match_id).model_dump()},
        "message": f"Time acceleration set to {match.time_acceleration}s per game minute",
    }


@router.put("/{match_id}/manual-time")
def manual_time(
    match_id: int,
    request: ManualTimeRequest,
    session: Session = Depends(get_session),
    bus: EventBus = Depends(get_event_bus),
):
    reading = match_state.set_manual_time(session, bus, match_id, request.minute, request.phase)
    return {"success": True, "data": reading.model_dump()}


# =========================================
# FINISH
# =========================================
@router.put("/{match_id}/finish")
def finish(match_id: int, session: Session = Depends(get_session), bus: EventBus = Depends(get_event_bus)):
    outcome = match_state.finish_match(session, bus, match_id)
    return {"success": True, "data": _finish_payload(session, outcome)}


@router.post("/{match_id}/simulate")
def simulate(match_id: int, session: Session = Depends(get_session), bus: EventBus = Depends(get_event_bus)):
    """Demo helper: random events, then the normal finish."""
    outcome = match_state.simulate_match(session, bus, match_id)
    return {"success": True, "data": _finish_payload(session, outcome)}


@router.put("/final/{match_id}/finish-and-declare")
def finish_and_declare(match_id: int, session: Session = Depends(get_session), bus: EventBus = Depends(get_event_bus)):
    result = match_state.declare_final_champion(session, bus, match_id)
    return {
        "success": True,
        "data": {"final": serialize_match(session, result["match"]), "champion_club_id": result["champion_club_id"]},
    }
