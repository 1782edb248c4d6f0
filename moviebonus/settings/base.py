"""Base configuration settings.

Contains foundational settings for logging and the sync pipeline.
"""

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

# =============================================================================
# LOGGING SETTINGS
# =============================================================================


class LoggingSettings(BaseSettings):
    """Logging configuration.

    Attributes:
        level: Log level (DEBUG, INFO, WARNING, ERROR, CRITICAL).
        log_dir: Log files directory, console only when unset.
    """

    level: str = Field(default="INFO", alias="LOG_LEVEL")
    log_dir: str | None = Field(default=None, alias="LOG_DIR")

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    @field_validator("level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        """Validate log level is valid."""
        valid_levels = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}
        v_upper = v.upper()
        if v_upper not in valid_levels:
            raise ValueError(f"Invalid LOG_LEVEL. Valid: {valid_levels}")
        return v_upper


# =============================================================================
# SYNC PIPELINE SETTINGS
# =============================================================================


class SyncSettings(BaseSettings):
    """Scrape-merge-sync pipeline configuration.

    Attributes:
        timeout_seconds: Wall-clock budget for one whole run.
        source_timeout_seconds: Budget for a single source adapter.
        max_parallel_sources: Adapters allowed to fetch at once.
        write_concurrency: Concurrent direct database writes.
        match_threshold: Title score a bonus must exceed to attach to a movie.
        release_window_days: Date gap beyond which a match is penalized.
        interval_hours: Scheduling interval, used to announce the next run.
    """

    timeout_seconds: float = Field(default=55.0, alias="SYNC_TIMEOUT_SECONDS")
    source_timeout_seconds: float = Field(default=45.0, alias="SOURCE_TIMEOUT_SECONDS")
    max_parallel_sources: int = Field(default=4, alias="MAX_PARALLEL_SOURCES")
    write_concurrency: int = Field(default=4, alias="WRITE_CONCURRENCY")

    # Matching
    match_threshold: float = Field(default=0.5, alias="MATCH_THRESHOLD")
    release_window_days: int = Field(default=180, alias="RELEASE_WINDOW_DAYS")

    interval_hours: int = Field(default=6, alias="SYNC_INTERVAL_HOURS")

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    @field_validator("match_threshold")
    @classmethod
    def validate_threshold(cls, v: float) -> float:
        """Validate threshold is a usable score."""
        if not 0.0 < v < 1.0:
            raise ValueError("MATCH_THRESHOLD must be in (0, 1)")
        return v

    @field_validator("max_parallel_sources", "write_concurrency")
    @classmethod
    def validate_positive(cls, v: int) -> int:
        """Validate concurrency limits are positive."""
        if v < 1:
            raise ValueError("Concurrency limits must be >= 1")
        return v
