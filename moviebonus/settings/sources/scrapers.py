"""Scraper configuration settings.

Cinema event pages, social feeds and the editorial listings.
"""

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

_DEFAULT_USER_AGENT = (
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Chrome/120.0.0.0 Safari/537.36"
)


class ScraperSettings(BaseSettings):
    """HTML scraping configuration.

    Attributes:
        delay: Pause between two exhibitors' event pages, in seconds.
        social_delay: Pause between two social feed pages.
        editorial_delay: Pause between the editorial listing pages.
        exhibitors_raw: Comma-separated exhibitor ids to scrape.
        max_age_days: Bonus announcements older than this are dropped.
    """

    delay: float = Field(default=1.5, alias="SCRAPING_DELAY")
    social_delay: float = Field(default=2.0, alias="SOCIAL_SCRAPING_DELAY")
    editorial_delay: float = Field(default=1.0, alias="EDITORIAL_SCRAPING_DELAY")

    timeout: float = Field(default=15.0, alias="SCRAPER_TIMEOUT")
    user_agent: str = Field(default=_DEFAULT_USER_AGENT, alias="SCRAPER_USER_AGENT")
    max_attempts: int = Field(default=3, alias="SCRAPER_MAX_ATTEMPTS")
    retry_backoff: float = Field(default=1.0, alias="SCRAPER_RETRY_BACKOFF")

    exhibitors_raw: str = Field(
        default="vieshow,showtimes,ambassador,miramar,in89",
        alias="SCRAPER_EXHIBITORS",
    )
    social_max_posts: int = Field(default=3, alias="SOCIAL_MAX_POSTS")
    max_age_days: int = Field(default=90, alias="BONUS_MAX_AGE_DAYS")

    editorial_base_url: str = Field(
        default="https://www.atmovies.com.tw",
        alias="EDITORIAL_BASE_URL",
    )

    enable_social_feeds: bool = Field(default=True, alias="ENABLE_SOCIAL_FEEDS")
    enable_editorial: bool = Field(default=True, alias="ENABLE_EDITORIAL")

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    @property
    def exhibitors(self) -> list[str]:
        """Parse exhibitor ids from 'a,b,c' format."""
        return [part.strip() for part in self.exhibitors_raw.split(",") if part.strip()]
