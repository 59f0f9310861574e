import logging
from functools import lru_cache

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Scheduler settings"""

    # Schedule map
    lookahead_days: int = Field(
        default=14, ge=1, le=90, description="Days covered by the schedule map"
    )
    default_task_start: str = Field(
        default="09:00",
        pattern=r"^([01]\d|2[0-3]):[0-5]\d$",
        description="Start time used for tasks without a scheduled time",
    )

    # Slot selection
    max_alternatives: int = Field(
        default=3, ge=0, description="Alternative slots returned with a suggestion"
    )
    fallback_hour: int = Field(
        default=10, ge=0, le=23, description="Hour of the fallback suggestion (tomorrow)"
    )
    fallback_score: float = Field(
        default=50, ge=0, le=100, description="Score reported for the fallback slot"
    )

    # Caching
    schedule_cache_ttl_seconds: float = Field(
        default=300, gt=0, description="TTL for slot suggestions"
    )
    ranking_cache_ttl_seconds: float = Field(
        default=300, gt=0, description="TTL for day rankings"
    )
    preferences_cache_ttl_seconds: float = Field(
        default=300, gt=0, description="TTL for user preferences"
    )
    cache_maxsize: int = Field(
        default=1024, ge=1, description="Maximum entries per cache"
    )

    # Logging
    log_level: str = Field(default="INFO", description="Root log level")

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        """Validate log level name"""
        level = v.upper()
        if level not in logging.getLevelNamesMapping():
            raise ValueError(f"Unknown log level: {v}")
        return level

    model_config = SettingsConfigDict(
        env_prefix="SCHEDULER_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )


@lru_cache
def get_settings() -> Settings:
    return Settings()


def configure_logging(level: str | None = None) -> None:
    """Configure root logging for embedding applications"""
    logging.basicConfig(level=level or get_settings().log_level)
