"""TMDB metadata provider package."""

from moviebonus.etl.extractors.tmdb.client import (
    TMDBAuthError,
    TMDBClient,
    TMDBClientError,
    TMDBNotFoundError,
    TMDBRateLimitError,
)
from moviebonus.etl.extractors.tmdb.normalizer import TMDBNormalizer
from moviebonus.etl.extractors.tmdb.provider import TMDBProvider

__all__ = [
    "TMDBAuthError",
    "TMDBClient",
    "TMDBClientError",
    "TMDBNormalizer",
    "TMDBNotFoundError",
    "TMDBProvider",
    "TMDBRateLimitError",
]
