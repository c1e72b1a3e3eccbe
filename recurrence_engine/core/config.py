"""
Application configuration using Pydantic Settings.

The ENVIRONMENT variable switches between local runs and the test suite
(the periodic recurrence trigger is not started under "test").
"""

from functools import lru_cache
from typing import Literal

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=True,
        extra="ignore",
    )

    # ===========================================
    # Environment
    # ===========================================
    ENVIRONMENT: Literal["local", "test"] = "local"
    DEBUG: bool = False
    LOG_LEVEL: str = "INFO"

    # ===========================================
    # Database
    # ===========================================
    DATABASE_URL: str = "sqlite+aiosqlite:///./recurrence.db"

    # ===========================================
    # Recurrence Processor
    # ===========================================
    RECURRENCE_PROCESSOR_ENABLED: bool = True
    # Standard 5-field crontab; every minute by default
    RECURRENCE_PROCESSOR_CRON: str = "* * * * *"
    # IANA timezone used to decide what "today" is for a tick
    RECURRENCE_TIMEZONE: str = "UTC"
    # Upper bound for store I/O + task creation of a single pattern
    RECURRENCE_PATTERN_TIMEOUT_SECONDS: float = 30.0

    # ===========================================
    # Server
    # ===========================================
    HOST: str = "0.0.0.0"
    PORT: int = 8000

    @property
    def is_test(self) -> bool:
        """Check if running under the test suite."""
        return self.ENVIRONMENT == "test"

    @property
    def is_local(self) -> bool:
        """Check if running in local environment."""
        return self.ENVIRONMENT == "local"


@lru_cache()
def get_settings() -> Settings:
    """
    Get cached settings instance.

    Using lru_cache ensures settings are loaded only once.
    """
    return Settings()
