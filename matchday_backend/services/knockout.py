# matchday_backend/services/knockout.py
# Knockout progression: semi-finals once the league stage is complete, the final
# once both semis are decided, and the champion once the final is played.

import logging
from datetime import datetime
from typing import List, Optional, Tuple

from sqlmodel import Session, select, func

from matchday_backend.core import event_bus as topics
from matchday_backend.core.config import settings
from matchday_backend.core.event_bus import EventBus
from matchday_backend.core.scheduler import build_team_days, find_free_day
from matchday_backend.models.match_model import Match, MatchStage, MatchStatus
from matchday_backend.models.league_table_model import LeagueTable
from matchday_backend.services.league_table import pick_top_clubs

logger = logging.getLogger(__name__)

SEMI_FINAL_ENTRANTS = 4


# =========================================
# WINNERS
# =========================================
def semi_final_winner(match: Match) -> int:
    """Higher score goes through; a drawn semi is won by the home side."""
    if match.score_away > match.score_home:
        return match.away_club_id
    return match.home_club_id


def final_winner(match: Match) -> Optional[int]:
    """Champion club id, or None for a drawn final."""
    if match.score_home > match.score_away:
        return match.home_club_id
    if match.score_away > match.score_home:
        return match.away_club_id
    return None


# =========================================
# SLOT PLACEMENT
# =========================================
def _occupied(session: Session) -> Tuple[set, dict]:
    fixtures = session.exec(select(Match).where(Match.kickoff_at != None)).all()  # noqa: E711
    taken = {m.kickoff_at for m in fixtures}
    team_days = build_team_days((m.home_club_id, m.away_club_id, m.kickoff_at) for m in fixtures)
    return taken, team_days


def _place_on_day(first_day, kickoff_hours, teams, taken: set, team_days: dict) -> List[Optional[datetime]]:
    """
    Kickoffs at the given hours on the first day from first_day where all of
    them are free and none of the teams plays. Unscheduled (None) if no day is found.
    """
    slots = find_free_day(
        first_day, kickoff_hours, teams, taken, team_days,
        day_limit=settings.knockout_day_limit,
    )
    if slots is None:
        logger.warning("⚠️ No free matchday for %s from %s; fixtures left unscheduled", teams, first_day)
        return [None for _ in kickoff_hours]
    taken.update(slots)
    team_days.setdefault(slots[0].date(), set()).update(t for t in teams if t is not None)
    return slots


def _new_knockout_match(home_id: int, away_id: int, stage: MatchStage, kickoff: Optional[datetime]) -> Match:
    match = Match(
        home_club_id=home_id,
        away_club_id=away_id,
        stage=stage,
        is_final=stage == MatchStage.FINAL,
        kickoff_at=kickoff,
        status=MatchStatus.SCHEDULED,
    )
    match.is_scheduled = match.has_all_schedule_fields()
    return match


# =========================================
# SEMI-FINALS
# =========================================
def seed_semi_finals_if_ready(
    session: Session, bus: EventBus, table: Optional[LeagueTable], now: Optional[datetime] = None
) -> List[Match]:
    """
    Once every league match is finished and no knockout fixture exists yet,
    create 1st v 4th and 2nd v 3rd, two hours apart on the first day from
    today on which all four clubs are idle.
    """
    now = now or datetime.utcnow()
    if table is None:
        return []

    league_total = session.exec(
        select(func.count()).select_from(Match).where(Match.stage == MatchStage.LEAGUE)
    ).one()
    league_open = session.exec(
        select(func.count()).select_from(Match)
        .where(Match.stage == MatchStage.LEAGUE, Match.status != MatchStatus.FINISHED)
    ).one()
    knockout_exists = session.exec(
        select(Match).where(Match.stage.in_([MatchStage.SEMI, MatchStage.FINAL]))
    ).first()
    if league_total == 0 or league_open > 0 or knockout_exists:
        return []

    top = pick_top_clubs(session, table, SEMI_FINAL_ENTRANTS)
    if len(top) < SEMI_FINAL_ENTRANTS:
        logger.warning("⚠️ Only %d clubs in the table; semi-finals not seeded", len(top))
        return []

    # Both semis share one matchday on which all four clubs are idle
    taken, team_days = _occupied(session)
    first_slot, second_slot = _place_on_day(
        now.date(),
        (settings.semi_kickoff_hour, settings.semi_kickoff_hour + settings.slot_increment_hours),
        top, taken, team_days,
    )

    semis = [
        _new_knockout_match(top[0], top[3], MatchStage.SEMI, first_slot),
        _new_knockout_match(top[1], top[2], MatchStage.SEMI, second_slot),
    ]
    for semi in semis:
        session.add(semi)
    session.commit()

    for semi in semis:
        session.refresh(semi)
        bus.publish(topics.SEMI_CREATED, {"fixture_id": semi.id, "home_club_id": semi.home_club_id,
                                          "away_club_id": semi.away_club_id, "kickoff_at": semi.kickoff_at})
    logger.info("🏆 Semi-finals seeded: %s v %s, %s v %s", top[0], top[3], top[1], top[2])
    return semis


# =========================================
# FINAL
# =========================================
def create_final_if_ready(session: Session, bus: EventBus, now: Optional[datetime] = None) -> Optional[Match]:
    """Once both semis are finished and no final exists, pair their winners."""
    now = now or datetime.utcnow()

    semis = session.exec(
        select(Match).where(Match.stage == MatchStage.SEMI).order_by(Match.kickoff_at, Match.id)
    ).all()
    if len(semis) != 2 or any(s.status != MatchStatus.FINISHED for s in semis):
        return None
    if session.exec(select(Match).where(Match.stage == MatchStage.FINAL)).first():
        return None

    home_id, away_id = semi_final_winner(semis[0]), semi_final_winner(semis[1])
    taken, team_days = _occupied(session)
    kickoff = _place_on_day(now.date(), (settings.final_kickoff_hour,), (home_id, away_id), taken, team_days)[0]

    final = _new_knockout_match(home_id, away_id, MatchStage.FINAL, kickoff)
    session.add(final)
    session.commit()
    session.refresh(final)

    bus.publish(topics.FINAL_CREATED, {"fixture_id": final.id, "home_club_id": home_id,
                                       "away_club_id": away_id, "kickoff_at": final.kickoff_at})
    logger.info("🏆 Final created: %s v %s", home_id, away_id)
    return final
