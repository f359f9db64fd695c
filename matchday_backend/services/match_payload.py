# matchday_backend/services/match_payload.py
# Frontend-friendly dictionaries for fixtures and their events.

from datetime import datetime
from typing import Dict, Optional

from sqlmodel import Session

from matchday_backend.core.match_clock import read_clock
from matchday_backend.models.club_model import Club
from matchday_backend.models.match_model import Match, MatchEvent
from matchday_backend.services.event_ledger import list_events


def serialize_club(club: Optional[Club]) -> Optional[dict]:
    if not club:
        return None
    return {"id": club.id, "name": club.name, "logo": club.logo}


def serialize_event(event: MatchEvent) -> dict:
    payload = {
        "id": event.id,
        "sequence": event.sequence,
        "minute": event.minute,
        "type": event.type,
        "team": event.team,
        "player": event.player,
    }
    # Only include the type-specific fields that are set
    for key in ("assist", "goal_type", "field_side", "on_target", "player_in", "player_out", "description"):
        value = getattr(event, key)
        if value is not None:
            payload[key] = value
    return payload


def serialize_match(
    session: Session,
    match: Match,
    now: Optional[datetime] = None,
    clubs: Optional[Dict[int, Club]] = None,
    include_events: bool = True,
) -> dict:
    """
    Full fixture payload. `clubs` lets list endpoints pass a preloaded
    id -> Club map instead of one lookup per side.
    """
    def club(club_id):
        if club_id is None:
            return None
        if clubs is not None:
            return clubs.get(club_id)
        return session.get(Club, club_id)

    payload = {
        "id": match.id,
        "home_team": serialize_club(club(match.home_club_id)),
        "away_team": serialize_club(club(match.away_club_id)),
        "stage": match.stage,
        "is_final": match.is_final,
        "round_number": match.round_number,
        "status": match.status,
        "score": {"home": match.score_home, "away": match.score_away},
        "kickoff_at": match.kickoff_at,
        "venue_name": match.venue_name,
        "auto_simulate": match.auto_simulate,
        "is_scheduled": match.is_scheduled,
        "finished_at": match.finished_at,

        # Live timing
        "match_started_at": match.match_started_at,
        "current_minute": match.current_minute,
        "match_phase": match.match_phase,
        "time_acceleration": match.time_acceleration,
        "stoppage_time_accumulated": match.stoppage_time_accumulated,
        "added_time": match.added_time,
        "is_half_time": match.is_half_time,
        "is_full_time": match.is_full_time,
        "first_half_ended_at": match.first_half_ended_at,
        "second_half_started_at": match.second_half_started_at,
        "second_half_ended_at": match.second_half_ended_at,
        "extra_time_ended_at": match.extra_time_ended_at,
        "current_time": read_clock(match, now).model_dump(),

        "version": match.version,
        "created_at": match.created_at,
    }

    if include_events:
        payload["events"] = [serialize_event(e) for e in list_events(session, match.id)]
    return payload
