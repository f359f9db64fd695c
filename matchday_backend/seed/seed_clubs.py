# seed_clubs.py
# Development clubs. Idempotent: existing names are left alone.

import logging

from sqlmodel import Session, select

from matchday_backend.models.club_model import Club

logger = logging.getLogger(__name__)

DEFAULT_CLUBS = [
    ("Northbridge Rovers", "/logos/northbridge.png"),
    ("Eastvale United", "/logos/eastvale.png"),
    ("Harbour City FC", "/logos/harbour-city.png"),
    ("Millbrook Athletic", "/logos/millbrook.png"),
    ("Westfield Wanderers", "/logos/westfield.png"),
    ("Southgate Albion", "/logos/southgate.png"),
]


def seed_clubs(session: Session, clubs=DEFAULT_CLUBS) -> int:
    logger.info("🏟 Seeding clubs...")
    existing = set(session.exec(select(Club.name)).all())

    created = 0
    for name, logo in clubs:
        if name in existing:
            continue
        session.add(Club(name=name, logo=logo))
        created += 1

    session.commit()
    logger.info("✅ %d clubs created (%d already present)", created, len(existing))
    return created
