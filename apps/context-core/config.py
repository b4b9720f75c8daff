from pydantic_settings import BaseSettings
from typing import Optional


class Settings(BaseSettings):
    # An empty URL/key leaves the store unreachable; reads return empty
    # results and writes are logged as failed.
    SUPABASE_URL: str = ""
    SUPABASE_SERVICE_ROLE_KEY: str = ""
    EVENTS_TABLE: str = "events"
    ENVIRONMENT: str = "development"
    LOG_LEVEL: str = "INFO"

    # Query layer
    DEFAULT_FEED_LIMIT: int = 50
    DEFAULT_TIMELINE_LIMIT: int = 100
    COOCCURRENCE_SCAN_CAP: int = 500  # Most recent events scanned for person pairs

    # Lookback windows (days)
    STATS_LOOKBACK_DAYS: int = 7
    FOLLOW_UP_LOOKBACK_DAYS: int = 14
    INTERACTION_LOOKBACK_DAYS: int = 30

    # Transcript linker
    LINKER_WINDOW_HOURS: int = 24
    LINKER_DEFAULT_LOOKBACK_DAYS: int = 7
    LINKER_TITLE_JACCARD_THRESHOLD: float = 0.5
    LINKER_TEMPORAL_FALLBACK_MINUTES: int = 120
    LINKER_CANDIDATE_LIMIT: int = 50
    LINKER_OPPORTUNITY_SCAN_LIMIT: int = 100

    # Brief generators
    BRIEF_FANOUT_WORKERS: int = 8
    PRE_MEETING_TIMELINE_LIMIT: int = 20
    PRE_MEETING_MAX_RECENT: int = 10
    POST_MEETING_MAX_ATTENDEES: int = 5
    POST_MEETING_MAX_THREADS: int = 5

    # Event writer
    WRITER_WORKERS: int = 4

    # Inbound webhook / debug endpoint auth
    TRANSCRIPT_WEBHOOK_SECRET: Optional[str] = None
    DEBUG_API_KEY: Optional[str] = None

    class Config:
        env_file = ".env"
        extra = "ignore"


settings = Settings()
