# matchday_backend/models/__init__.py
# Centralized imports for all database models and schemas

# Club
from .club_model import Club

# Match, event ledger and fixture schemas
from .match_model import (
    Match, MatchEvent, MatchStatus, MatchStage, MatchPhase, PHASE_ORDER,
    EventType, TeamSide, GoalType, FieldSide,
    MatchEventCreate, ScheduleRequest, UpdateTeamsRequest, StartMatchRequest,
    TimeAccelerationRequest, ManualTimeRequest, ClockReading
)

# League table
from .league_table_model import LeagueTable, TeamStanding

# Season window
from .league_config_model import LeagueConfig, LeagueConfigUpdate

# Post-match reports
from .match_report_model import MatchReport, MatchReportUpdate
