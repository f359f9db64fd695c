# league_config_model.py
# Season window that bounds fixture generation. One active record at a time.

from typing import Optional
from datetime import datetime
from sqlmodel import SQLModel, Field


class LeagueConfig(SQLModel, table=True):
    id: Optional[int] = Field(default=None, primary_key=True)
    season: str = Field(index=True)
    name: str

    # Fixture slots must fall inside [start_date, end_date]
    start_date: datetime
    end_date: datetime

    is_active: bool = Field(default=True, index=True)
    description: Optional[str] = Field(default=None, max_length=500)

    created_at: datetime = Field(default_factory=datetime.utcnow)
    updated_at: datetime = Field(default_factory=datetime.utcnow)


class LeagueConfigUpdate(SQLModel):
    """Body of PUT /league-config"""
    start_date: datetime
    end_date: datetime
    name: Optional[str] = None
    description: Optional[str] = None
