"""Application configuration via Pydantic settings."""

from functools import lru_cache

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Central configuration object loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    app_name: str = "Clinic Triage API"
    debug: bool = False
    log_level: str = Field("INFO", alias="LOG_LEVEL")

    database_url: str = Field("sqlite+aiosqlite:///./clinic.db", alias="DATABASE_URL")

    default_timezone: str = Field("UTC", alias="DEFAULT_TIMEZONE")
    default_staff_name: str = Field("Dr. Smith", alias="DEFAULT_STAFF_NAME")
    enforce_transitions: bool = Field(True, alias="ENFORCE_TRANSITIONS")

    weekly_goal: int = Field(40, alias="WEEKLY_GOAL")
    daily_capacity: int = Field(8, alias="DAILY_CAPACITY")
    demand_growth_factor: float = Field(1.1, alias="DEMAND_GROWTH_FACTOR")
    default_window_days: int = Field(30, alias="DEFAULT_WINDOW_DAYS")
    max_window_days: int = Field(365, alias="MAX_WINDOW_DAYS")


@lru_cache(1)
def get_settings() -> Settings:
    """Return a cached settings instance."""
    return Settings()


settings = get_settings()
