"""Movie and promotion models.

``movies`` holds one row per canonical movie, keyed by the provider's
external id. ``promotions`` holds the bonuses offered for a movie, one
row per (movie, bonus key).
"""

from datetime import date, datetime

from sqlalchemy import (
    Boolean,
    CheckConstraint,
    Date,
    DateTime,
    Float,
    ForeignKey,
    Integer,
    String,
    Text,
    UniqueConstraint,
    false,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from moviebonus.database.models.base import Base, TimestampMixin

DATA_SOURCES = ("manual", "metadata-provider", "scraper", "user-report")
MOVIE_STATUSES = ("showing", "coming_soon", "ended")

_DATA_SOURCE_CHECK = "data_source IN ({})".format(", ".join(f"'{s}'" for s in DATA_SOURCES))


# =============================================================================
# MOVIE
# =============================================================================


class Movie(Base, TimestampMixin):
    """Canonical movie row.

    Attributes:
        id: Internal primary key.
        external_id: Metadata provider identifier (upsert key).
        data_source: 'manual' rows keep their curated descriptive fields.
        is_rerelease: Sticky flag, never reset by a sync.
    """

    __tablename__ = "movies"
    __table_args__ = (
        CheckConstraint(_DATA_SOURCE_CHECK, name="ck_movies_data_source"),
        CheckConstraint(
            "status IN ({})".format(", ".join(f"'{s}'" for s in MOVIE_STATUSES)),
            name="ck_movies_status",
        ),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    external_id: Mapped[str] = mapped_column(String(64), unique=True, nullable=False, index=True)

    # Descriptive fields
    title: Mapped[str] = mapped_column(String(500), nullable=False)
    english_title: Mapped[str | None] = mapped_column(String(500))
    release_date: Mapped[date | None] = mapped_column(Date)
    synopsis: Mapped[str | None] = mapped_column(Text)
    poster_url: Mapped[str | None] = mapped_column(String(500))
    backdrop_url: Mapped[str | None] = mapped_column(String(500))
    vote_average: Mapped[float | None] = mapped_column(Float)
    rating: Mapped[str | None] = mapped_column(String(20))

    status: Mapped[str] = mapped_column(String(20), nullable=False, server_default="showing")
    is_rerelease: Mapped[bool] = mapped_column(Boolean, nullable=False, server_default=false())
    data_source: Mapped[str] = mapped_column(String(32), nullable=False, server_default="manual")

    promotions: Mapped[list["Promotion"]] = relationship(
        back_populates="movie",
        cascade="all, delete-orphan",
        order_by="Promotion.id",
    )

    def __repr__(self) -> str:
        """Return string representation."""
        return f"<Movie(id={self.id}, external_id='{self.external_id}', title='{self.title}')>"


# =============================================================================
# PROMOTION
# =============================================================================


class Promotion(Base, TimestampMixin):
    """Bonus offered by one exhibitor for one movie.

    Attributes:
        bonus_key: Digest of exhibitor, week and normalized description.
        data_source: 'manual' promotions are never overwritten by a sync.
        first_seen_at: Observation time of the first sync that wrote it.
    """

    __tablename__ = "promotions"
    __table_args__ = (
        UniqueConstraint("movie_id", "bonus_key", name="uq_promotions_movie_bonus"),
        CheckConstraint(_DATA_SOURCE_CHECK, name="ck_promotions_data_source"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    movie_id: Mapped[int] = mapped_column(
        ForeignKey("movies.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    bonus_key: Mapped[str] = mapped_column(String(64), nullable=False)

    exhibitor_id: Mapped[str] = mapped_column(String(64), nullable=False)
    exhibitor_name: Mapped[str] = mapped_column(String(200), nullable=False)
    week_index: Mapped[int | None] = mapped_column(Integer)
    description: Mapped[str] = mapped_column(Text, nullable=False)
    quantity: Mapped[str | None] = mapped_column(String(200))
    source_id: Mapped[str | None] = mapped_column(String(100))
    source_url: Mapped[str | None] = mapped_column(String(500))

    data_source: Mapped[str] = mapped_column(String(32), nullable=False, server_default="manual")
    first_seen_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True))

    movie: Mapped[Movie] = relationship(back_populates="promotions")

    def __repr__(self) -> str:
        """Return string representation."""
        return f"<Promotion(id={self.id}, movie_id={self.movie_id}, key='{self.bonus_key[:8]}')>"
