from pydantic_settings import BaseSettings, SettingsConfigDict

# =====================================
# Global configuration for Matchday
# =====================================

# TEST_MODE:
# When True, testing features are enabled.
# Example uses:
#   - Verbose per-event logging during simulations
#   - Debug endpoints that force a match into a given phase
TEST_MODE = True


class Settings(BaseSettings):
    # --- DB ---
    database_url: str = "sqlite:///./matchday.db"
    async_database_url: str = "sqlite+aiosqlite:///./matchday.db"

    # Development mode: error responses include exception detail
    debug: bool = False

    # --- Competition defaults ---
    default_season: str = "2025"
    default_competition: str = "Default League"

    # --- Match clock ---
    default_time_acceleration: int = 1     # real seconds per game minute ("fast gameplay")
    min_time_acceleration: int = 1
    max_time_acceleration: int = 300
    half_time_break_minutes: int = 1       # real minutes
    extra_time_break_minutes: int = 1      # real minutes
    show_stoppage_in_display: bool = False

    # --- Scheduling ---
    league_kickoff_hour: int = 14
    slot_increment_hours: int = 2
    semi_kickoff_hour: int = 18
    final_kickoff_hour: int = 20
    slot_probe_limit: int = 96             # 96 x 2h = 8 days of probing
    knockout_day_limit: int = 14           # days searched for a knockout matchday

    # --- Background tick ---
    tick_interval_seconds: int = 5
    auto_simulate_after_minutes: int = 2

    # --- Realtime ---
    ws_queue_size: int = 100               # pending messages per client before dropping

    model_config = SettingsConfigDict(
        env_prefix="MATCHDAY_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )


# Global instance imported by the rest of the project
settings = Settings()
