# tests/conftest.py

from datetime import datetime

import pytest
from sqlalchemy.pool import StaticPool
from sqlmodel import SQLModel, Session, create_engine

import matchday_backend.models  # noqa: F401  (registers every table)
from matchday_backend.core.event_bus import ALL_TOPICS, EventBus
from matchday_backend.models.club_model import Club
from matchday_backend.models.league_config_model import LeagueConfig
from matchday_backend.models.match_model import Match, MatchStage, MatchStatus

# Fixed "now" used across the suite
NOW = datetime(2030, 6, 1, 12, 0, 0)


@pytest.fixture
def engine():
    """
    Fresh in-memory SQLite database per test. StaticPool keeps the single
    connection alive so every session (and the TestClient thread) sees it.
    """
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    SQLModel.metadata.create_all(engine)
    yield engine
    SQLModel.metadata.drop_all(engine)


@pytest.fixture
def session(engine):
    with Session(engine) as session:
        yield session


class RecordingBus(EventBus):
    """Event bus that remembers everything published on it."""

    def __init__(self):
        super().__init__()
        self.published = []
        self.subscribe(ALL_TOPICS, lambda topic, payload: self.published.append((topic, payload)))

    def topics(self):
        return [topic for topic, _ in self.published]


@pytest.fixture
def bus():
    return RecordingBus()


@pytest.fixture
def clubs(session):
    """Four active clubs, alphabetical by name."""
    created = [Club(name=name) for name in ("Alpha FC", "Bravo FC", "Charlie FC", "Delta FC")]
    session.add_all(created)
    session.commit()
    for club in created:
        session.refresh(club)
    return created


@pytest.fixture
def league_config(session):
    config = LeagueConfig(
        season="2030",
        name="Test League",
        start_date=datetime(2030, 6, 1),
        end_date=datetime(2030, 7, 31),
        is_active=True,
    )
    session.add(config)
    session.commit()
    session.refresh(config)
    return config


@pytest.fixture
def make_match(session):
    """Factory for fixtures that are ready to start unless told otherwise."""
    def _make(home, away, kickoff=NOW, venue="Main Stadium", stage=MatchStage.LEAGUE, **fields):
        match = Match(
            home_club_id=home.id if home else None,
            away_club_id=away.id if away else None,
            kickoff_at=kickoff,
            venue_name=venue,
            stage=stage,
            is_final=stage == MatchStage.FINAL,
            status=MatchStatus.SCHEDULED,
            **fields,
        )
        match.is_scheduled = match.has_all_schedule_fields()
        session.add(match)
        session.commit()
        session.refresh(match)
        return match
    return _make
