"""Source adapters producing seeds, bonus observations and tracked titles."""

from moviebonus.etl.extractors.base import AdapterResult, SourceAdapter, SourceItem
from moviebonus.etl.extractors.cinema import CinemaScraper, SocialFeedScraper
from moviebonus.etl.extractors.editorial import EditorialTracker
from moviebonus.etl.extractors.http import PageFetcher, PageFetchError
from moviebonus.etl.extractors.tmdb import TMDBProvider

__all__ = [
    "AdapterResult",
    "CinemaScraper",
    "EditorialTracker",
    "PageFetchError",
    "PageFetcher",
    "SocialFeedScraper",
    "SourceAdapter",
    "SourceItem",
    "TMDBProvider",
]
