# matchday_backend/services/match_report.py
# Post-match reports: team and player statistics folded from a finished
# fixture's event ledger, plus the possession estimate.

import logging
from datetime import datetime
from typing import Dict, List, Optional

from sqlmodel import Session, select, or_

from matchday_backend.core.errors import ConflictError, InvalidStateError, NotFoundError
from matchday_backend.models.club_model import Club
from matchday_backend.models.match_model import Match, MatchEvent, MatchStatus, EventType, TeamSide
from matchday_backend.models.match_report_model import MatchReport, MatchReportUpdate
from matchday_backend.services.event_ledger import list_events
from matchday_backend.services.match_payload import serialize_event

logger = logging.getLogger(__name__)

MIN_POSSESSION = 20
MAX_POSSESSION = 80
DEFAULT_MINUTES_PLAYED = 90


# =========================================
# POSSESSION HEURISTIC
# =========================================
def is_shot_on_target(event: MatchEvent) -> bool:
    return event.type == EventType.SHOT and (event.on_target is True or event.description == "on_target")


def _count(events: List[MatchEvent], event_type: EventType) -> int:
    return sum(1 for e in events if e.type == event_type)


def _ratio_adjustment(home: int, away: int, weight: float) -> float:
    """(home share - 0.5) * 2 * weight, or nothing when neither side registered any."""
    total = home + away
    if total == 0:
        return 0.0
    return (home / total - 0.5) * 2 * weight


def calculate_possession(
    home_events: List[MatchEvent], away_events: List[MatchEvent], home_goals: int, away_goals: int
) -> int:
    """
    Estimated home possession in percent. Base 50, then:
    - +/-15 for whoever scored more
    - +/-10 shots on target share, +/-8 shots share, +/-6 corners share
    - -/+4 fouls share (more fouls suggests less of the ball)
    Clamped to [20, 80] and rounded. Away possession is 100 minus this.
    """
    adjustment = 0.0

    if home_goals > away_goals:
        adjustment += 15
    elif away_goals > home_goals:
        adjustment -= 15

    home_on_target = sum(1 for e in home_events if is_shot_on_target(e))
    away_on_target = sum(1 for e in away_events if is_shot_on_target(e))
    adjustment += _ratio_adjustment(home_on_target, away_on_target, 10)
    adjustment += _ratio_adjustment(_count(home_events, EventType.SHOT), _count(away_events, EventType.SHOT), 8)
    adjustment += _ratio_adjustment(_count(home_events, EventType.CORNER), _count(away_events, EventType.CORNER), 6)
    adjustment -= _ratio_adjustment(_count(home_events, EventType.FOUL), _count(away_events, EventType.FOUL), 4)

    possession = max(MIN_POSSESSION, min(MAX_POSSESSION, 50 + adjustment))
    # Half-up rounding (Python's round() is banker's rounding)
    return int(possession + 0.5)


# =========================================
# TEAM / PLAYER STATISTICS
# =========================================
def _player_entry(name: str) -> dict:
    return {
        "player_name": name,
        "goals": 0,
        "assists": 0,
        "yellow_cards": 0,
        "red_cards": 0,
        "fouls": 0,
        "minutes_played": DEFAULT_MINUTES_PLAYED,
    }


def calculate_player_stats(team_events: List[MatchEvent]) -> List[dict]:
    players: Dict[str, dict] = {}

    for event in team_events:
        if event.player:
            entry = players.setdefault(event.player, _player_entry(event.player))
            if event.type == EventType.GOAL:
                entry["goals"] += 1
            elif event.type == EventType.YELLOW_CARD:
                entry["yellow_cards"] += 1
            elif event.type == EventType.RED_CARD:
                entry["red_cards"] += 1
            elif event.type == EventType.FOUL:
                entry["fouls"] += 1

        # The assisting player is credited on the goal event itself
        if event.type == EventType.GOAL and event.assist:
            players.setdefault(event.assist, _player_entry(event.assist))["assists"] += 1

    return list(players.values())


def calculate_team_stats(
    events: List[MatchEvent],
    side: TeamSide,
    team_name: str,
    team_id: int,
    home_goals: int,
    away_goals: int,
) -> dict:
    """Statistics for one side. Goals come from the cached score, not the ledger."""
    home_events = [e for e in events if e.team == TeamSide.HOME]
    away_events = [e for e in events if e.team == TeamSide.AWAY]
    team_events = home_events if side == TeamSide.HOME else away_events

    home_possession = calculate_possession(home_events, away_events, home_goals, away_goals)

    return {
        "team_id": team_id,
        "team_name": team_name,
        "final_score": home_goals if side == TeamSide.HOME else away_goals,
        "possession": home_possession if side == TeamSide.HOME else 100 - home_possession,
        "shots": _count(team_events, EventType.SHOT),
        "shots_on_target": sum(1 for e in team_events if is_shot_on_target(e)),
        "corners": _count(team_events, EventType.CORNER),
        "fouls": _count(team_events, EventType.FOUL),
        "yellow_cards": _count(team_events, EventType.YELLOW_CARD),
        "red_cards": _count(team_events, EventType.RED_CARD),
        "player_stats": calculate_player_stats(team_events),
    }


# =========================================
# REPORT CREATION
# =========================================
def create_match_report(session: Session, match: Match, now: Optional[datetime] = None) -> MatchReport:
    """Build and persist the report for a finished match (one per fixture)."""
    if match.status != MatchStatus.FINISHED:
        raise InvalidStateError("Can only create match data for finished fixtures")

    existing = session.exec(select(MatchReport).where(MatchReport.fixture_id == match.id)).first()
    if existing:
        raise ConflictError("Match data already exists for this fixture")

    home = session.get(Club, match.home_club_id) if match.home_club_id else None
    away = session.get(Club, match.away_club_id) if match.away_club_id else None
    if not home or not away:
        raise NotFoundError("Both clubs are required to build a match report")

    events = list_events(session, match.id)
    report = MatchReport(
        fixture_id=match.id,
        home_club_id=home.id,
        away_club_id=away.id,
        home_team_name=home.name,
        away_team_name=away.name,
        stage=match.stage,
        venue=match.venue_name,
        kickoff_time=match.kickoff_at,
        final_score_home=match.score_home,
        final_score_away=match.score_away,
        events=[_event_snapshot(e) for e in events],
        home_team_stats=calculate_team_stats(events, TeamSide.HOME, home.name, home.id, match.score_home, match.score_away),
        away_team_stats=calculate_team_stats(events, TeamSide.AWAY, away.name, away.id, match.score_home, match.score_away),
        completed_at=match.finished_at or now or datetime.utcnow(),
    )

    session.add(report)
    session.commit()
    session.refresh(report)
    logger.info("📝 Match report %s created for fixture %s", report.id, match.id)
    return report


def _event_snapshot(event: MatchEvent) -> dict:
    # JSON column: enums as plain strings
    return {k: getattr(v, "value", v) for k, v in serialize_event(event).items()}


# =========================================
# QUERIES
# =========================================
def list_match_reports(session: Session) -> List[MatchReport]:
    return session.exec(select(MatchReport).order_by(MatchReport.completed_at.desc(), MatchReport.id.desc())).all()


def get_match_report(session: Session, report_id: int) -> MatchReport:
    report = session.get(MatchReport, report_id)
    if not report:
        raise NotFoundError("Match data not found")
    return report


def get_match_report_by_fixture(session: Session, fixture_id: int) -> MatchReport:
    report = session.exec(select(MatchReport).where(MatchReport.fixture_id == fixture_id)).first()
    if not report:
        raise NotFoundError("Match data not found for this fixture")
    return report


def update_match_report(
    session: Session, report_id: int, update: MatchReportUpdate, now: Optional[datetime] = None
) -> MatchReport:
    """Manual correction of a stored report. Only the fields sent are changed."""
    report = get_match_report(session, report_id)
    for key, value in update.model_dump(exclude_unset=True, exclude_none=True).items():
        setattr(report, key, value)
    report.updated_at = now or datetime.utcnow()

    session.add(report)
    session.commit()
    session.refresh(report)
    logger.info("📝 Match report %s updated", report.id)
    return report


def delete_match_report(session: Session, report_id: int) -> None:
    report = get_match_report(session, report_id)
    fixture_id = report.fixture_id
    session.delete(report)
    session.commit()
    logger.info("🗑️ Match report %s deleted (fixture %s)", report_id, fixture_id)


def get_team_match_stats(session: Session, club_id: int, limit: int = 10) -> dict:
    """Aggregate record over a club's most recent reports."""
    if not session.get(Club, club_id):
        raise NotFoundError("Club not found")

    reports = session.exec(
        select(MatchReport)
        .where(or_(MatchReport.home_club_id == club_id, MatchReport.away_club_id == club_id))
        .order_by(MatchReport.completed_at.desc(), MatchReport.id.desc())
        .limit(limit)
    ).all()

    stats = {"total_matches": len(reports), "wins": 0, "draws": 0, "losses": 0, "goals_for": 0, "goals_against": 0}
    for report in reports:
        is_home = report.home_club_id == club_id
        scored = report.final_score_home if is_home else report.final_score_away
        conceded = report.final_score_away if is_home else report.final_score_home

        stats["goals_for"] += scored
        stats["goals_against"] += conceded
        if scored > conceded:
            stats["wins"] += 1
        elif scored == conceded:
            stats["draws"] += 1
        else:
            stats["losses"] += 1

    stats["goal_difference"] = stats["goals_for"] - stats["goals_against"]
    stats["win_percentage"] = round(stats["wins"] / stats["total_matches"] * 100, 1) if reports else 0.0
    stats["recent_matches"] = [r.model_dump() for r in reports]
    return stats
