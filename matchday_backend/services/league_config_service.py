# matchday_backend/services/league_config_service.py
# Active season window used by fixture generation.

import calendar
import logging
from datetime import datetime, date
from typing import Optional

from sqlmodel import Session, select

from matchday_backend.core.config import settings
from matchday_backend.core.errors import ValidationError
from matchday_backend.models.league_config_model import LeagueConfig, LeagueConfigUpdate

logger = logging.getLogger(__name__)


def _add_months(day: date, months: int) -> date:
    """Same day N months later, clamped to the end of shorter months."""
    month_index = day.month - 1 + months
    year = day.year + month_index // 12
    month = month_index % 12 + 1
    return date(year, month, min(day.day, calendar.monthrange(year, month)[1]))


def default_window(now: Optional[datetime] = None):
    """Today (midnight) until the same date two months later."""
    today = (now or datetime.utcnow()).date()
    start = datetime.combine(today, datetime.min.time())
    end = datetime.combine(_add_months(today, 2), datetime.min.time())
    return start, end


def _create_default(session: Session, now: Optional[datetime] = None) -> LeagueConfig:
    start, end = default_window(now)
    config = LeagueConfig(
        season=settings.default_season,
        name=settings.default_competition,
        start_date=start,
        end_date=end,
        is_active=True,
    )
    session.add(config)
    session.commit()
    session.refresh(config)
    logger.info("🗓️ Created default league window %s -> %s", start.date(), end.date())
    return config


def get_active_config(session: Session) -> Optional[LeagueConfig]:
    return session.exec(
        select(LeagueConfig)
        .where(LeagueConfig.is_active == True)  # noqa: E712
        .order_by(LeagueConfig.created_at.desc(), LeagueConfig.id.desc())
    ).first()


def get_league_config(session: Session, now: Optional[datetime] = None) -> LeagueConfig:
    """Active config, creating the default window if none exists."""
    return get_active_config(session) or _create_default(session, now)


def update_league_config(
    session: Session, update: LeagueConfigUpdate, now: Optional[datetime] = None
) -> LeagueConfig:
    now = now or datetime.utcnow()

    if update.start_date >= update.end_date:
        raise ValidationError("Start date must be before end date")
    # Compared by day: a window may start today
    if update.start_date.date() < now.date():
        raise ValidationError("Start date cannot be in the past")

    config = get_active_config(session)
    if not config:
        config = LeagueConfig(
            season=settings.default_season,
            name=update.name or settings.default_competition,
            start_date=update.start_date,
            end_date=update.end_date,
        )

    config.start_date = update.start_date
    config.end_date = update.end_date
    if update.name:
        config.name = update.name
    if update.description is not None:
        config.description = update.description
    config.updated_at = now

    session.add(config)
    session.commit()
    session.refresh(config)
    logger.info("🗓️ League window set to %s -> %s", config.start_date, config.end_date)
    return config


def reset_league_config(session: Session, now: Optional[datetime] = None) -> LeagueConfig:
    """Deactivate every active config and start over with the default window."""
    for config in session.exec(select(LeagueConfig).where(LeagueConfig.is_active == True)).all():  # noqa: E712
        config.is_active = False
        session.add(config)
    session.commit()
    return _create_default(session, now)


def season_and_name(session: Session) -> tuple:
    """(season, competition name) the league table is keyed by."""
    config = get_active_config(session)
    if config:
        return config.season, config.name
    return settings.default_season, settings.default_competition
