"""Cinema and social feed scrapers."""

from moviebonus.etl.extractors.cinema.parser import BonusTextParser, is_recent
from moviebonus.etl.extractors.cinema.scraper import CinemaScraper
from moviebonus.etl.extractors.cinema.social import SocialFeedScraper

__all__ = [
    "BonusTextParser",
    "CinemaScraper",
    "SocialFeedScraper",
    "is_recent",
]
