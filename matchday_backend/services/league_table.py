# matchday_backend/services/league_table.py
# Standings for one (season, competition) table.
# A table is created lazily, grown whenever new clubs appear, and folded once
# for every finished league-stage match.

import logging
from datetime import datetime
from typing import Iterable, List, Optional, Tuple

from sqlmodel import Session, select

from matchday_backend.core.errors import NotFoundError
from matchday_backend.models.club_model import Club
from matchday_backend.models.league_table_model import LeagueTable, TeamStanding

logger = logging.getLogger(__name__)

WIN_POINTS = 3
DRAW_POINTS = 1


# =========================================
# POINTS
# =========================================
def calculate_points_from_score(home_goals: int, away_goals: int) -> Tuple[int, int]:
    """3 for a win, 1 each for a draw, 0 for a loss."""
    if home_goals > away_goals:
        return WIN_POINTS, 0
    if home_goals < away_goals:
        return 0, WIN_POINTS
    return DRAW_POINTS, DRAW_POINTS


# =========================================
# TABLE LOOKUP / CREATION
# =========================================
def get_table(session: Session, season: str, name: str) -> Optional[LeagueTable]:
    return session.exec(
        select(LeagueTable).where(LeagueTable.season == season, LeagueTable.name == name)
    ).first()


def get_current_table(session: Session) -> Optional[LeagueTable]:
    """Most recently touched table (the one the frontend shows)."""
    return session.exec(
        select(LeagueTable).order_by(LeagueTable.updated_at.desc(), LeagueTable.id.desc())
    ).first()


def _get_standing(session: Session, table: LeagueTable, club_id: int) -> Optional[TeamStanding]:
    return session.exec(
        select(TeamStanding).where(TeamStanding.table_id == table.id, TeamStanding.club_id == club_id)
    ).first()


def _ensure_standing(session: Session, table: LeagueTable, club_id: int) -> TeamStanding:
    standing = _get_standing(session, table, club_id)
    if not standing:
        standing = TeamStanding(table_id=table.id, club_id=club_id)
        session.add(standing)
        session.flush()
    return standing


def ensure_table_for_season(
    session: Session, season: str, name: str, club_ids: Iterable[int] = ()
) -> LeagueTable:
    """
    Return the table for (season, name), creating it if needed, with a zeroed
    standing for every club id not yet present. Existing standings are untouched.
    """
    table = get_table(session, season, name)
    if not table:
        table = LeagueTable(season=season, name=name)
        session.add(table)
        session.flush()
        logger.info("🆕 Created league table %s (%s)", name, season)

    for club_id in club_ids:
        _ensure_standing(session, table, club_id)

    sort_table(session, table)
    session.commit()
    session.refresh(table)
    return table


def initialize_table_with_all_clubs(session: Session, season: str, name: str) -> LeagueTable:
    club_ids = session.exec(select(Club.id).where(Club.is_active == True)).all()  # noqa: E712
    return ensure_table_for_season(session, season, name, club_ids)


# =========================================
# SORTING
# =========================================
def sort_table(session: Session, table: LeagueTable) -> List[TeamStanding]:
    """
    Order by points, goal difference, goals for (all descending) and finally
    club name, then write 1-based positions. Not committed.
    """
    rows = session.exec(
        select(TeamStanding, Club.name)
        .join(Club, Club.id == TeamStanding.club_id)
        .where(TeamStanding.table_id == table.id)
    ).all()

    rows = sorted(rows, key=lambda r: (-r[0].points, -r[0].gd, -r[0].gf, r[1]))
    standings = []
    for index, (standing, _name) in enumerate(rows, start=1):
        standing.position = index
        session.add(standing)
        standings.append(standing)
    return standings


def get_sorted_standings(session: Session, table: LeagueTable) -> List[TeamStanding]:
    return session.exec(
        select(TeamStanding)
        .where(TeamStanding.table_id == table.id)
        .order_by(TeamStanding.position, TeamStanding.id)
    ).all()


def pick_top_clubs(session: Session, table: LeagueTable, count: int) -> List[int]:
    return [s.club_id for s in get_sorted_standings(session, table)[:count]]


# =========================================
# FOLDING A RESULT
# =========================================
def _apply_result(standing: TeamStanding, goals_for: int, goals_against: int, points: int) -> None:
    standing.played += 1
    standing.gf += goals_for
    standing.ga += goals_against
    standing.gd = standing.gf - standing.ga
    standing.points += points

    if goals_for > goals_against:
        standing.won += 1
    elif goals_for < goals_against:
        standing.lost += 1
    else:
        standing.drawn += 1


def update_table_for_match(
    session: Session,
    season: str,
    name: str,
    home_club_id: int,
    away_club_id: int,
    home_goals: int,
    away_goals: int,
) -> LeagueTable:
    """Fold one finished league result into the table and re-sort it."""
    table = get_table(session, season, name)
    if not table:
        table = LeagueTable(season=season, name=name)
        session.add(table)
        session.flush()

    home = _ensure_standing(session, table, home_club_id)
    away = _ensure_standing(session, table, away_club_id)

    home_points, away_points = calculate_points_from_score(home_goals, away_goals)
    _apply_result(home, home_goals, away_goals, home_points)
    _apply_result(away, away_goals, home_goals, away_points)
    session.add(home)
    session.add(away)
    session.flush()

    sort_table(session, table)
    table.updated_at = datetime.utcnow()
    session.add(table)
    session.commit()
    session.refresh(table)

    logger.info("📊 Table %s updated: %s %d-%d %s", table.name, home_club_id, home_goals, away_goals, away_club_id)
    return table


def record_champion(session: Session, table: LeagueTable, club_id: Optional[int]) -> LeagueTable:
    """Close the table; champion stays empty when the final was drawn."""
    table.completed = True
    table.champion_club_id = club_id
    table.updated_at = datetime.utcnow()
    session.add(table)
    session.commit()
    session.refresh(table)
    return table


# =========================================
# PAYLOAD
# =========================================
def serialize_table(session: Session, table: LeagueTable) -> dict:
    clubs = {c.id: c for c in session.exec(select(Club)).all()}
    standings = []
    for s in get_sorted_standings(session, table):
        club = clubs.get(s.club_id)
        standings.append({
            "position": s.position,
            "club": {"id": s.club_id, "name": club.name if club else None, "logo": club.logo if club else None},
            "played": s.played,
            "won": s.won,
            "drawn": s.drawn,
            "lost": s.lost,
            "goals_for": s.gf,
            "goals_against": s.ga,
            "goal_difference": s.gd,
            "points": s.points,
        })

    return {
        "id": table.id,
        "season": table.season,
        "name": table.name,
        "completed": table.completed,
        "champion_club_id": table.champion_club_id,
        "standings": standings,
        "updated_at": table.updated_at,
    }


def get_table_or_404(session: Session, table_id: int) -> LeagueTable:
    table = session.get(LeagueTable, table_id)
    if not table:
        raise NotFoundError("League table not found")
    return table
