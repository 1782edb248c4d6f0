"""TMDB API configuration settings.

Metadata provider: now-playing movies for one region.
"""

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class TMDBSettings(BaseSettings):
    """TMDB API configuration.

    Attributes:
        api_key: TMDB API key, the provider is skipped when unset.
        base_url: TMDB API base URL.
        image_base_url: TMDB image CDN base URL (without size segment).
        region: ISO 3166-1 region for now-playing listings.
        language: Language for API responses.
    """

    api_key: str | None = Field(default=None, alias="TMDB_API_KEY")
    base_url: str = Field(
        default="https://api.themoviedb.org/3",
        alias="TMDB_BASE_URL",
    )
    image_base_url: str = Field(
        default="https://image.tmdb.org/t/p",
        alias="TMDB_IMAGE_BASE_URL",
    )

    region: str = Field(default="TW", alias="TMDB_REGION")
    language: str = Field(default="zh-TW", alias="TMDB_LANGUAGE")
    max_pages: int = Field(default=3, alias="TMDB_MAX_PAGES")

    # Rate limiting
    requests_per_period: int = Field(default=40, alias="TMDB_REQUESTS_PER_PERIOD")
    period_seconds: int = Field(default=10, alias="TMDB_PERIOD_SECONDS")
    min_request_delay: float = Field(default=0.25, alias="TMDB_MIN_REQUEST_DELAY")

    detail_concurrency: int = Field(default=4, alias="TMDB_DETAIL_CONCURRENCY")
    enrich_movies: bool = Field(default=True, alias="TMDB_ENRICH_MOVIES")
    timeout: float = Field(default=10.0, alias="TMDB_TIMEOUT")
    max_attempts: int = Field(default=3, alias="TMDB_MAX_ATTEMPTS")
    retry_backoff: float = Field(default=1.0, alias="TMDB_RETRY_BACKOFF")

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    @property
    def is_configured(self) -> bool:
        """Check if TMDB API key is configured."""
        return bool(self.api_key and self.api_key != "your_api_key_here")
