# seed_league_config.py
# Makes sure an active league window exists before fixtures are generated.

import logging

from sqlmodel import Session

from matchday_backend.services.league_config_service import get_league_config

logger = logging.getLogger(__name__)


def seed_league_config(session: Session):
    config = get_league_config(session)
    logger.info("🗓️ Active league window: %s (%s) %s -> %s",
                config.name, config.season, config.start_date.date(), config.end_date.date())
    return config
