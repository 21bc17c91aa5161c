"""
Configuration management for Kickbase Companion using pydantic-settings.

Environment variables are loaded from .env file and validated at startup.
"""

from functools import lru_cache
from pathlib import Path
from typing import Literal

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class KickbaseSettings(BaseSettings):
    """Kickbase API connection settings."""

    base_url: str = Field(
        default="https://api.kickbase.com/v4", description="Kickbase API base URL"
    )
    user_agent: str = Field(
        default="Kickbase/iOS 6.9.0",
        description="User agent sent to the provider (older clients are rejected)",
    )
    timeout: float = Field(default=30.0, gt=0, description="Request timeout in seconds")
    max_attempts: int = Field(
        default=3, ge=1, le=10, description="Attempts per proxied request"
    )
    retry_base_delay: float = Field(
        default=0.6, ge=0, description="Delay before the second attempt in seconds"
    )

    model_config = SettingsConfigDict(env_prefix="KICKBASE_")


class DatabaseSettings(BaseSettings):
    """Local store settings."""

    path: Path = Field(default=Path("data/kickbase.db"), description="SQLite file")

    model_config = SettingsConfigDict(env_prefix="DATABASE_")

    @field_validator("path", mode="before")
    @classmethod
    def ensure_path(cls, v: str | Path) -> Path:
        """Convert string to Path."""
        return Path(v)


class CacheSettings(BaseSettings):
    """Caching configuration."""

    dir: Path = Field(default=Path(".cache"), description="Cache directory path")
    matches_ttl: int = Field(
        default=900, description="League schedule cache TTL in seconds (15 minutes)"
    )

    model_config = SettingsConfigDict(env_prefix="CACHE_")

    @field_validator("dir", mode="before")
    @classmethod
    def ensure_path(cls, v: str | Path) -> Path:
        """Convert string to Path."""
        return Path(v)


class AppSettings(BaseSettings):
    """General application settings."""

    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = Field(
        default="INFO", description="Logging level"
    )
    api_host: str = Field(default="127.0.0.1", description="API server host")
    api_port: int = Field(default=8000, description="API server port")
    preferences_file: Path = Field(
        default=Path("data/preferences.json"),
        description="Where the selected league is remembered",
    )

    model_config = SettingsConfigDict(env_prefix="")


class Settings(BaseSettings):
    """Main settings class combining all configuration sections."""

    kickbase: KickbaseSettings = Field(default_factory=KickbaseSettings)
    database: DatabaseSettings = Field(default_factory=DatabaseSettings)
    cache: CacheSettings = Field(default_factory=CacheSettings)
    app: AppSettings = Field(default_factory=AppSettings)

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        env_nested_delimiter="__",
        extra="ignore",
    )


@lru_cache
def get_settings() -> Settings:
    """
    Get cached settings instance.

    Uses lru_cache to ensure settings are only loaded once.
    Call get_settings.cache_clear() to reload settings.
    """
    from dotenv import load_dotenv

    env_paths = [
        Path(".env"),
        Path(__file__).parent.parent.parent / ".env",  # project root
    ]

    for env_path in env_paths:
        if env_path.exists():
            load_dotenv(env_path, override=True)
            break

    return Settings()
