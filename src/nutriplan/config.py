"""Engine configuration using pydantic-settings."""

from functools import lru_cache

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Engine settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # Meal plan local search
    planner_max_passes: int = Field(default=80, ge=0)
    planner_min_improvement: float = Field(default=0.0001, ge=0)

    # Daily target tolerance (percent) used when judging a planned day
    macro_tolerance_pct: float = Field(default=5.0, ge=0)

    # Application
    environment: str = "development"
    log_level: str = "INFO"


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
