# league_table_model.py
# Defines the LeagueTable (one per season + competition) and its TeamStanding rows.

from typing import Optional
from datetime import datetime
from sqlalchemy import UniqueConstraint
from sqlmodel import SQLModel, Field


class LeagueTable(SQLModel, table=True):
    """
    Standings container keyed by (season, name).
    Created lazily, grown when new clubs appear, folded once per finished league match.
    """
    __table_args__ = (
        UniqueConstraint("season", "name", name="uq_league_table_season_name"),
    )

    id: Optional[int] = Field(default=None, primary_key=True)
    season: str = Field(index=True)
    name: str

    # Set once the final has produced a champion
    completed: bool = Field(default=False)
    champion_club_id: Optional[int] = Field(default=None, foreign_key="club.id")

    created_at: datetime = Field(default_factory=datetime.utcnow)
    updated_at: datetime = Field(default_factory=datetime.utcnow)


class TeamStanding(SQLModel, table=True):
    """One club's aggregate record inside a LeagueTable."""
    __table_args__ = (
        UniqueConstraint("table_id", "club_id", name="uq_standing_table_club"),
    )

    id: Optional[int] = Field(default=None, primary_key=True)
    table_id: int = Field(foreign_key="leaguetable.id", index=True)
    club_id: int = Field(foreign_key="club.id", index=True)

    position: int = Field(default=0)      # 1-based rank after the last sort
    played: int = Field(default=0)
    won: int = Field(default=0)
    drawn: int = Field(default=0)
    lost: int = Field(default=0)
    gf: int = Field(default=0)            # goals for
    ga: int = Field(default=0)            # goals against
    gd: int = Field(default=0)            # gf - ga
    points: int = Field(default=0)
