# match_report_model.py
# Post-match report built from a finished fixture and its event ledger.
# Kept apart from Match so the live fixture row stays lightweight.

from typing import Optional, List, Dict, Any
from datetime import datetime
from sqlmodel import SQLModel, Field, JSON, Column

from matchday_backend.models.match_model import MatchStage


class MatchReport(SQLModel, table=True):
    id: Optional[int] = Field(default=None, primary_key=True)

    # One report per fixture
    fixture_id: int = Field(foreign_key="match.id", unique=True, index=True)

    # Clubs
    home_club_id: int = Field(foreign_key="club.id", index=True)
    away_club_id: int = Field(foreign_key="club.id", index=True)
    home_team_name: str
    away_team_name: str

    # Match details
    stage: MatchStage = Field(index=True)
    venue: Optional[str] = None
    kickoff_time: Optional[datetime] = None
    final_score_home: int = Field(ge=0)
    final_score_away: int = Field(ge=0)
    match_duration: int = Field(default=90)

    # Snapshot of the ledger at finish time
    # Example: [{"minute": 12, "type": "goal", "team": "home", "player": "A. Striker"}, ...]
    events: List[Dict[str, Any]] = Field(default_factory=list, sa_column=Column(JSON))

    # Team statistics, see services/match_report.py for the keys
    home_team_stats: Dict[str, Any] = Field(default_factory=dict, sa_column=Column(JSON))
    away_team_stats: Dict[str, Any] = Field(default_factory=dict, sa_column=Column(JSON))

    completed_at: datetime = Field(default_factory=datetime.utcnow, index=True)
    created_at: datetime = Field(default_factory=datetime.utcnow)
    updated_at: datetime = Field(default_factory=datetime.utcnow)


class MatchReportUpdate(SQLModel):
    """Body of PUT /match-data/{id}. The fixture and creation time cannot change."""
    venue: Optional[str] = None
    kickoff_time: Optional[datetime] = None
    final_score_home: Optional[int] = Field(default=None, ge=0)
    final_score_away: Optional[int] = Field(default=None, ge=0)
    match_duration: Optional[int] = Field(default=None, ge=0)
    events: Optional[List[Dict[str, Any]]] = None
    home_team_stats: Optional[Dict[str, Any]] = None
    away_team_stats: Optional[Dict[str, Any]] = None
