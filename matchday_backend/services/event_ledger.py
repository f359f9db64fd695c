# matchday_backend/services/event_ledger.py
# Append-only event ledger. The cached score on Match is incremented here, once
# per goal appended, and nowhere else.

from typing import List

from sqlmodel import Session, select, func

from matchday_backend.models.match_model import (
    Match, MatchEvent, MatchEventCreate, EventType, TeamSide, GoalType, FieldSide
)


def next_sequence(session: Session, match_id: int) -> int:
    count = session.exec(
        select(func.count()).select_from(MatchEvent).where(MatchEvent.match_id == match_id)
    ).one()
    return count + 1


def append_event(session: Session, match: Match, data: MatchEventCreate) -> MatchEvent:
    """
    Add one event to the match ledger (not committed) and keep the score
    projection in sync. Goals default to open play from the middle.
    """
    event = MatchEvent(
        match_id=match.id,
        sequence=next_sequence(session, match.id),
        minute=data.minute,
        type=data.type,
        team=data.team,
        player=data.player,
        assist=data.assist,
        goal_type=data.goal_type,
        field_side=data.field_side,
        on_target=data.on_target,
        player_in=data.player_in,
        player_out=data.player_out,
        description=data.description,
    )

    if event.type == EventType.GOAL:
        event.goal_type = event.goal_type or GoalType.OPEN_PLAY
        event.field_side = event.field_side or FieldSide.MID
        if event.team == TeamSide.HOME:
            match.score_home += 1
        else:
            match.score_away += 1

    session.add(event)
    # Flush so the next append in the same transaction sees this sequence number
    session.flush()
    return event


def list_events(session: Session, match_id: int) -> List[MatchEvent]:
    """Display order: minute ascending, ties by insertion order."""
    return session.exec(
        select(MatchEvent)
        .where(MatchEvent.match_id == match_id)
        .order_by(MatchEvent.minute, MatchEvent.sequence)
    ).all()
