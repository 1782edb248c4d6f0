"""Centralized configuration for the movie bonus sync service.

All configuration values are sourced from environment variables (.env file).
One ``Settings`` object is built at startup with ``load_settings()`` and
handed to every component; nothing reads the environment afterwards.

Usage:
    from moviebonus.settings import load_settings

    settings = load_settings()
    settings.tmdb.api_key
    settings.sync.timeout_seconds
"""

from typing import Any

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from moviebonus.settings.api import APISettings, BackendSettings, TriggerSettings
from moviebonus.settings.base import LoggingSettings, SyncSettings
from moviebonus.settings.database import DatabaseSettings
from moviebonus.settings.sources import ScraperSettings, TMDBSettings

__all__ = [
    # Main
    "Settings",
    "load_settings",
    # Base
    "LoggingSettings",
    "SyncSettings",
    # Database
    "DatabaseSettings",
    # API
    "APISettings",
    "BackendSettings",
    "TriggerSettings",
    # Sources
    "ScraperSettings",
    "TMDBSettings",
]


# =============================================================================
# GLOBAL SETTINGS
# =============================================================================


class Settings(BaseSettings):
    """Application settings.

    Aggregates all configuration sections into a single object.
    """

    logging: LoggingSettings = Field(default_factory=LoggingSettings)
    sync: SyncSettings = Field(default_factory=SyncSettings)

    # Sources
    tmdb: TMDBSettings = Field(default_factory=TMDBSettings)
    scrapers: ScraperSettings = Field(default_factory=ScraperSettings)

    # Persistence
    backend: BackendSettings = Field(default_factory=BackendSettings)
    database: DatabaseSettings = Field(default_factory=DatabaseSettings)

    # Entry points
    api: APISettings = Field(default_factory=APISettings)
    trigger: TriggerSettings = Field(default_factory=TriggerSettings)

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    def masked(self) -> dict[str, Any]:
        """Return settings dict with sensitive values masked.

        Returns:
            Configuration dictionary safe for logging.
        """
        config = self.model_dump()
        mask = "***MASKED***"

        secrets = [
            ("tmdb", "api_key"),
            ("backend", "token"),
            ("database", "password"),
            ("database", "url"),
            ("trigger", "cron_secret"),
        ]

        for section, key in secrets:
            if config.get(section, {}).get(key):
                config[section][key] = mask

        return config


def load_settings() -> Settings:
    """Build the settings object from the environment.

    Returns:
        Fresh Settings instance.
    """
    return Settings()
