"""Application configuration management."""
from functools import lru_cache
from pathlib import Path

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Global engine settings loaded from environment variables."""

    PROJECT_NAME: str = "Glosa progress engine"

    DATABASE_URL: str = Field(
        "sqlite:///./glosa.db",
        description="SQLAlchemy database URL",
    )
    DATABASE_ECHO: bool = Field(False, description="Log every SQL statement")
    DATABASE_POOL_SIZE: int = Field(10, ge=1)
    DATABASE_MAX_OVERFLOW: int = Field(20, ge=0)
    DATABASE_POOL_RECYCLE: int = Field(
        3600, description="Recycle pooled connections after this many seconds"
    )

    REVIEW_QUEUE_DEFAULT_LIMIT: int = Field(20, ge=1)
    REVIEW_QUEUE_MAX_LIMIT: int = Field(100, ge=1)

    STREAK_GRACE_DAYS: int = Field(
        1,
        ge=0,
        description="How many days may pass since the last active day before the current streak resets",
    )
    RECENT_QUIZ_DAYS: int = Field(7, ge=1)
    RECENT_QUIZ_LIMIT: int = Field(10, ge=1)
    ACTIVITY_WINDOW_DAYS: int = Field(30, ge=1)

    # Quiz answers already record progress one by one; replaying them when the
    # session finishes counts every attempt twice.
    REPLAY_PROGRESS_ON_FINISH: bool = Field(
        False,
        description="Re-apply word progress for every answer when a quiz session finishes",
    )

    model_config = SettingsConfigDict(
        env_file=Path(__file__).resolve().parent.parent / ".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )


@lru_cache()
def get_settings() -> Settings:
    """Return cached application settings instance."""

    return Settings()


settings = get_settings()
