"""Source adapter settings."""

from moviebonus.settings.sources.scrapers import ScraperSettings
from moviebonus.settings.sources.tmdb import TMDBSettings

__all__ = [
    "ScraperSettings",
    "TMDBSettings",
]
