"""SQLAlchemy ORM models.

Tables:
    - movies: Canonical movies keyed by external id
    - promotions: Bonuses per movie and exhibitor
"""

from moviebonus.database.models.base import Base, TimestampMixin
from moviebonus.database.models.movie import DATA_SOURCES, MOVIE_STATUSES, Movie, Promotion

__all__ = [
    "Base",
    "DATA_SOURCES",
    "MOVIE_STATUSES",
    "Movie",
    "Promotion",
    "TimestampMixin",
]
