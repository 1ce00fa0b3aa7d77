"""
Engine configuration using Pydantic Settings.

Values are read from environment variables (or a local .env file).
"""

from datetime import time
from functools import lru_cache

from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Schedule engine settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=True,
        extra="ignore",
    )

    # ===========================================
    # Day window
    # ===========================================
    DAY_START: str = "06:00"
    DAY_END: str = "23:00"

    # IANA timezone name for "now" (empty = system local time)
    TIMEZONE: str = ""

    # ===========================================
    # Availability
    # ===========================================
    MIN_SLOT_MINUTES: int = 15
    SLOT_ROUNDING_MINUTES: int = 15
    MAX_ANCHOR_BUFFER_MINUTES: int = 30

    # ===========================================
    # Placement
    # ===========================================
    # Gap between an anchor's end and a task placed after it
    ANCHOR_FOLLOW_GAP_MINUTES: int = 15
    # Gap between consecutive tasks when spreading evenly
    SPREAD_GAP_MINUTES: int = 15
    DUE_SOON_HOURS: int = 24

    # ===========================================
    # Dialogue
    # ===========================================
    CLARIFICATION_OPTION_LIMIT: int = 4

    # ===========================================
    # Schedule analysis
    # ===========================================
    AFTER_ANCHOR_TOLERANCE_MINUTES: int = 5
    ANALYSIS_SUGGESTIONS_PER_SLOT: int = 3
    ANALYSIS_SUGGESTION_LIMIT: int = 10

    # ===========================================
    # Logging
    # ===========================================
    LOG_LEVEL: str = "INFO"

    @field_validator("DAY_START", "DAY_END")
    @classmethod
    def validate_clock(cls, value: str) -> str:
        time.fromisoformat(value)
        return value

    @property
    def day_start_time(self) -> time:
        """Default start of the schedulable day."""
        return time.fromisoformat(self.DAY_START)

    @property
    def day_end_time(self) -> time:
        """Default end of the schedulable day."""
        return time.fromisoformat(self.DAY_END)


@lru_cache()
def get_settings() -> Settings:
    """
    Get cached settings instance.

    Using lru_cache ensures settings are loaded only once.
    """
    return Settings()
