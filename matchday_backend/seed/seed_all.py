# seed_all.py
# Orchestrates the seed scripts in the correct order.

import logging

from sqlmodel import Session, select

from matchday_backend.core.database import sync_engine
from matchday_backend.core.logging_config import setup_logging
from matchday_backend.models.club_model import Club
from matchday_backend.seed.seed_clubs import seed_clubs
from matchday_backend.seed.seed_league_config import seed_league_config
from matchday_backend.services.league_config_service import season_and_name
from matchday_backend.services.league_table import initialize_table_with_all_clubs

logger = logging.getLogger(__name__)


def seed_all(session: Session = None):
    logger.info("🌱 Starting database seeding...")

    def run(s: Session):
        logger.info("➡️  Step 1: Seeding clubs...")
        seed_clubs(s)

        logger.info("➡️  Step 2: Seeding league window...")
        seed_league_config(s)

        logger.info("➡️  Step 3: Initialising league table...")
        season, name = season_and_name(s)
        initialize_table_with_all_clubs(s, season, name)

    if session is not None:
        run(session)
    else:
        with Session(sync_engine) as s:
            run(s)

    logger.info("✅ Database seeding complete.")


def needs_seeding(session: Session) -> bool:
    return session.exec(select(Club)).first() is None


if __name__ == "__main__":
    import asyncio
    from matchday_backend.core.database import init_db

    setup_logging()
    asyncio.run(init_db())
    seed_all()
