# match_model.py
# Defines the Match model (fixture + live timing state), the MatchEvent ledger
# and the request schemas used by the fixture routes.

from typing import Optional
from datetime import datetime
from enum import Enum
from sqlmodel import SQLModel, Field

from matchday_backend.core.config import settings


class MatchStatus(str, Enum):
    """Coarse lifecycle of a fixture"""
    SCHEDULED = "scheduled"
    LIVE = "live"
    FINISHED = "finished"


class MatchStage(str, Enum):
    """Competitive phase the fixture belongs to"""
    LEAGUE = "league"
    SEMI = "semi"
    FINAL = "final"


class MatchPhase(str, Enum):
    """Fine-grained clock state of a live match (declaration order = play order)"""
    FIRST_HALF = "first_half"
    HALF_TIME = "half_time"
    SECOND_HALF = "second_half"
    EXTRA_TIME = "extra_time"    # break after the second half, not on-pitch extra time
    FULL_TIME = "full_time"


PHASE_ORDER = list(MatchPhase)


class EventType(str, Enum):
    GOAL = "goal"
    YELLOW_CARD = "yellow_card"
    RED_CARD = "red_card"
    FOUL = "foul"
    CORNER = "corner"
    SHOT = "shot"
    SUBSTITUTION = "substitution"


class TeamSide(str, Enum):
    HOME = "home"
    AWAY = "away"


class GoalType(str, Enum):
    OPEN_PLAY = "open_play"
    PENALTY = "penalty"
    FREE_KICK = "free_kick"
    HEADER = "header"
    VOLLEY = "volley"


class FieldSide(str, Enum):
    MID = "mid"
    RIGHT_WING = "rw"
    LEFT_WING = "lw"


# ==========================================
# MATCH (FIXTURE) MODEL
# ==========================================

class Match(SQLModel, table=True):
    """
    A single scheduled or played contest between two clubs.

    - Scheduling fields decide whether the fixture is ready to start (is_scheduled).
    - Timing fields are only meaningful once status is live.
    - score_home/score_away are a cached projection of the goal events in the ledger.
    - version is bumped on every mutation (compare-and-swap).
    """
    id: Optional[int] = Field(default=None, primary_key=True)

    # Clubs (may be unset while an admin is still scheduling a fixture)
    home_club_id: Optional[int] = Field(default=None, foreign_key="club.id", index=True)
    away_club_id: Optional[int] = Field(default=None, foreign_key="club.id", index=True)

    # Competitive context
    stage: MatchStage = Field(default=MatchStage.LEAGUE, index=True)
    is_final: bool = Field(default=False, index=True)
    round_number: Optional[int] = Field(default=None)      # Round-robin round (league stage)

    # Scheduling
    kickoff_at: Optional[datetime] = Field(default=None, unique=True)   # NULLs are exempt
    venue_name: Optional[str] = Field(default=None)
    auto_simulate: bool = Field(default=False)
    is_scheduled: bool = Field(default=False)

    # Lifecycle
    status: MatchStatus = Field(default=MatchStatus.SCHEDULED, index=True)
    finished_at: Optional[datetime] = None

    # Cached score projection
    score_home: int = Field(default=0, ge=0)
    score_away: int = Field(default=0, ge=0)

    # Live timing state
    match_started_at: Optional[datetime] = None
    current_minute: int = Field(default=0, ge=0, le=120)
    match_phase: Optional[MatchPhase] = Field(default=None)
    time_acceleration: int = Field(default_factory=lambda: settings.default_time_acceleration)
    stoppage_time_accumulated: float = Field(default=0.0)
    last_event_time: Optional[datetime] = None
    added_time: Optional[int] = None                      # Random 1-4 at each half's natural end
    half_time_break_minutes: int = Field(default_factory=lambda: settings.half_time_break_minutes)
    extra_time_break_minutes: int = Field(default_factory=lambda: settings.extra_time_break_minutes)
    is_half_time: bool = Field(default=False)
    is_full_time: bool = Field(default=False)

    # Phase transition timestamps
    first_half_ended_at: Optional[datetime] = None
    second_half_started_at: Optional[datetime] = None
    second_half_ended_at: Optional[datetime] = None
    extra_time_ended_at: Optional[datetime] = None

    # Clock re-anchoring (manual override / acceleration change)
    clock_anchor_phase: Optional[MatchPhase] = Field(default=None)
    clock_anchor_minute: Optional[int] = None
    clock_anchor_at: Optional[datetime] = None

    # Metadata
    version: int = Field(default=0)
    created_at: datetime = Field(default_factory=datetime.utcnow)
    updated_at: datetime = Field(default_factory=datetime.utcnow)

    def has_all_schedule_fields(self) -> bool:
        """Ready to start only when both clubs, a kickoff and a venue are set."""
        return bool(self.home_club_id and self.away_club_id and self.kickoff_at and self.venue_name)


# ==========================================
# EVENT LEDGER
# ==========================================

class MatchEvent(SQLModel, table=True):
    """
    One timed in-match event. Append-only: rows are never updated or deleted
    except by a full league reset.
    """
    id: Optional[int] = Field(default=None, primary_key=True)
    match_id: int = Field(foreign_key="match.id", index=True)
    sequence: int                                         # Insertion order within the match

    minute: int = Field(ge=0, le=120)
    type: EventType
    team: TeamSide
    player: Optional[str] = None

    # Goal-specific
    assist: Optional[str] = None
    goal_type: Optional[GoalType] = None
    field_side: Optional[FieldSide] = None

    # Shot-specific
    on_target: Optional[bool] = None

    # Substitution-specific
    player_in: Optional[str] = None
    player_out: Optional[str] = None

    description: Optional[str] = None
    created_at: datetime = Field(default_factory=datetime.utcnow)


# ==========================================
# REQUEST / RESPONSE SCHEMAS
# ==========================================

class MatchEventCreate(SQLModel):
    """Body of PUT /fixtures/{id}/event"""
    minute: int = Field(ge=0, le=120)
    type: EventType
    team: TeamSide
    player: Optional[str] = None
    assist: Optional[str] = None
    goal_type: Optional[GoalType] = None
    field_side: Optional[FieldSide] = None
    on_target: Optional[bool] = None
    player_in: Optional[str] = None
    player_out: Optional[str] = None
    description: Optional[str] = None


class ScheduleRequest(SQLModel):
    """Body of PUT /fixtures/{id}/schedule"""
    kickoff_at: Optional[datetime] = None
    venue_name: Optional[str] = None
    home_team_id: Optional[int] = None
    away_team_id: Optional[int] = None
    auto_simulate: Optional[bool] = None


class UpdateTeamsRequest(SQLModel):
    home_team_id: int
    away_team_id: int


class StartMatchRequest(SQLModel):
    time_acceleration: Optional[int] = None


class TimeAccelerationRequest(SQLModel):
    acceleration: int


class ManualTimeRequest(SQLModel):
    minute: int
    phase: Optional[str] = None


class ClockReading(SQLModel):
    """What a poller sees: derived minute, display string and phase."""
    minute: int = 0
    display: str = "0'"
    phase: Optional[MatchPhase] = None
    stoppage_time: float = 0.0
