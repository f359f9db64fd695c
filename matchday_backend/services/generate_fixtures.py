# generate_fixtures.py
# Service for generating league fixtures (single round-robin) inside the active league window.

import logging
from datetime import datetime
from typing import List, Optional

from sqlalchemy import delete
from sqlmodel import Session, select

from matchday_backend.core.config import settings
from matchday_backend.core.errors import ValidationError
from matchday_backend.core.scheduler import assign_slots, build_team_days, round_robin_rounds
from matchday_backend.models.club_model import Club
from matchday_backend.models.match_model import Match, MatchEvent, MatchStage, MatchStatus
from matchday_backend.models.match_report_model import MatchReport
from matchday_backend.services.league_config_service import get_league_config
from matchday_backend.services.league_table import ensure_table_for_season

logger = logging.getLogger(__name__)


def generate_fixtures(session: Session, now: Optional[datetime] = None) -> List[Match]:
    """
    Generates the league stage for every active club.
    - Single round-robin (circle method), one fixture per pairing
    - Kickoffs from the window start at the league kickoff hour, in fixed increments
    - No shared kickoff instant, no club twice on the same day
    - Replaces existing non-final fixtures; nothing is written if the window is too short
    """

    # ✅ Fetch active clubs (stable order so generation is reproducible)
    clubs = session.exec(select(Club).where(Club.is_active == True).order_by(Club.name)).all()  # noqa: E712
    if len(clubs) < 2:
        raise ValidationError("At least 2 active clubs are required to generate fixtures")

    # ✅ League window for this season
    config = get_league_config(session, now)
    club_ids = [club.id for club in clubs]

    # =====================================
    # ROUND-ROBIN PAIRINGS
    # =====================================
    pairings = []
    rounds = []
    for round_number, round_pairs in enumerate(round_robin_rounds(club_ids), start=1):
        for pair in round_pairs:
            pairings.append(pair)
            rounds.append(round_number)

    # =====================================
    # ASSIGN KICKOFF SLOTS (in memory first)
    # =====================================
    # The final survives regeneration, so its slot and day stay blocked
    kept = session.exec(select(Match).where(Match.is_final == True, Match.kickoff_at != None)).all()  # noqa: E712,E711
    assignments = assign_slots(
        pairings,
        config.start_date,
        config.end_date,
        kickoff_hour=settings.league_kickoff_hour,
        increment_hours=settings.slot_increment_hours,
        taken={m.kickoff_at for m in kept},
        team_days=build_team_days((m.home_club_id, m.away_club_id, m.kickoff_at) for m in kept),
    )

    # ✅ Every club gets a standing row, even before its first result
    ensure_table_for_season(session, config.season, config.name, club_ids)

    # ✅ Clear existing non-final fixtures (and what hangs off them)
    stale_ids = session.exec(select(Match.id).where(Match.is_final == False)).all()  # noqa: E712
    if stale_ids:
        session.exec(delete(MatchEvent).where(MatchEvent.match_id.in_(stale_ids)))
        session.exec(delete(MatchReport).where(MatchReport.fixture_id.in_(stale_ids)))
        session.exec(delete(Match).where(Match.id.in_(stale_ids)))

    fixtures = []
    for (home_id, away_id, kickoff), round_number in zip(assignments, rounds):
        match = Match(
            home_club_id=home_id,
            away_club_id=away_id,
            stage=MatchStage.LEAGUE,
            is_final=False,
            round_number=round_number,
            kickoff_at=kickoff,
            status=MatchStatus.SCHEDULED,
            is_scheduled=False,
        )
        session.add(match)
        fixtures.append(match)

    session.commit()
    for match in fixtures:
        session.refresh(match)

    logger.info("✅ Fixtures generated for %s, season %s (%d matches total)", config.name, config.season, len(fixtures))
    return fixtures
