# matchday_backend/services/match_store.py
# Loading and saving Match rows. Every mutation is a compare-and-swap on
# Match.version so two concurrent requests cannot both finish (or both append
# to) the same match from the same snapshot.

import logging
from datetime import datetime
from typing import Tuple

from sqlalchemy import update
from sqlalchemy.exc import IntegrityError
from sqlmodel import Session

from matchday_backend.core.errors import ConflictError, NotFoundError
from matchday_backend.models.match_model import Match

logger = logging.getLogger(__name__)


def get_match(session: Session, match_id: int) -> Match:
    match = session.get(Match, match_id)
    if not match:
        raise NotFoundError("Match not found")
    return match


def load_for_update(session: Session, match_id: int) -> Tuple[Match, int]:
    """Fetch a match together with the version the caller's changes are based on."""
    match = get_match(session, match_id)
    return match, match.version


def save_match(session: Session, match: Match, expected_version: int) -> Match:
    """
    Persist the in-memory changes of `match` only if nobody else saved it since
    `expected_version` was read. Raises ConflictError on a lost race or when the
    kickoff slot was taken concurrently (unique constraint).
    """
    try:
        result = session.exec(
            update(Match)
            .where(Match.id == match.id, Match.version == expected_version)
            .values(version=expected_version + 1)
            .execution_options(synchronize_session=False)
        )
        if result.rowcount != 1:
            session.rollback()
            logger.warning("⚠️ Match %s changed concurrently (expected version %s)", match.id, expected_version)
            raise ConflictError("Match was updated by another request. Please reload and retry.")

        match.version = expected_version + 1
        match.updated_at = datetime.utcnow()
        session.add(match)
        session.commit()
    except IntegrityError:
        session.rollback()
        logger.warning("⚠️ Kickoff slot clash while saving match %s", match.id)
        raise ConflictError("Time slot already occupied. Please choose another time.")

    session.refresh(match)
    return match
