"""Configuration management for Empty Jar."""

from functools import lru_cache
from pathlib import Path

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_prefix="EMPTYJAR_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # Cloud store
    cloud_url: str = Field(
        default="",
        description="Base URL of the cloud REST store (blank for guest-only use)",
    )
    cloud_api_key: str = Field(
        default="",
        description="Public API key sent with every cloud request",
    )
    access_token: str = Field(
        default="",
        description="Bearer token of the signed-in account",
    )
    user_id: str = Field(
        default="",
        description="Account id of the signed-in user (blank means guest mode)",
    )
    request_timeout: float = Field(
        default=10.0,
        gt=0,
        le=120,
        description="Seconds before a cloud request is treated as offline",
    )

    # Offline queue
    replay_max_attempts: int = Field(
        default=5,
        ge=1,
        le=50,
        description="Failed replays before a queued change is dead-lettered",
    )

    # Local device storage
    database_path: Path = Field(
        default=Path("data/emptyjar.db"),
        description="Path to the local SQLite database file",
    )

    # Logging
    log_level: str = Field(
        default="WARNING",
        description="Log level for the command line interface",
    )

    @property
    def database_url(self) -> str:
        """SQLAlchemy database URL."""
        return f"sqlite:///{self.database_path}"

    @property
    def is_guest(self) -> bool:
        """True when no account is configured."""
        return not self.user_id


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
