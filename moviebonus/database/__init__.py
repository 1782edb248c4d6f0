"""Database package: ORM models and connection management."""

from moviebonus.database.connection import DatabaseConnection
from moviebonus.database.models import Base, Movie, Promotion

__all__ = [
    "Base",
    "DatabaseConnection",
    "Movie",
    "Promotion",
]
