"""Pydantic schemas for the scrape-merge-sync pipeline.

Every entity is created fresh per run and frozen after construction.
Python attributes are snake_case; JSON output uses camelCase aliases
(``model_dump(by_alias=True)``) to match the run report format.
"""

from datetime import date, datetime
from enum import StrEnum
from typing import Any, Self

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

# =============================================================================
# ENUMS
# =============================================================================


class DataSource(StrEnum):
    """Origin of a persisted movie or promotion."""

    METADATA_PROVIDER = "metadata-provider"
    SCRAPER = "scraper"
    MANUAL = "manual"


class SyncPath(StrEnum):
    """Persistence path that serviced a batch."""

    PRIMARY = "primary"
    FALLBACK = "fallback"


class ErrorKind(StrEnum):
    """Category of a recorded, non-fatal pipeline error."""

    SOURCE_FETCH = "source_fetch"
    SOURCE_WARNING = "source_warning"
    PERSISTENCE_PRIMARY = "persistence_primary"
    PERSISTENCE_FALLBACK = "persistence_fallback"
    PIPELINE_TIMEOUT = "pipeline_timeout"


class Listing(StrEnum):
    """Editorial listing a tracked title was found on."""

    NOW_SHOWING = "now_showing"
    COMING_SOON = "coming_soon"


class _Frozen(BaseModel):
    model_config = ConfigDict(
        frozen=True,
        alias_generator=to_camel,
        populate_by_name=True,
        str_strip_whitespace=True,
    )


def _blank_to_none(value: Any) -> Any:
    if isinstance(value, str) and not value.strip():
        return None
    return value


# =============================================================================
# SOURCE OUTPUT
# =============================================================================


class CanonicalMovieSeed(_Frozen):
    """Canonical movie from the metadata provider.

    Attributes:
        external_id: Stable provider key, the only join key to storage.
        title: Localized display title.
        english_title: Original or English title when distinct.
        release_date: Local theatrical release date.
        synopsis: Plot overview.
        poster_url: Absolute poster image URL.
        backdrop_url: Absolute backdrop image URL.
        vote_average: Provider rating (0-10).
        rating: Local age certification.
        is_rerelease: Upstream re-release hint.
    """

    external_id: str = Field(min_length=1)
    title: str = Field(min_length=1, max_length=500)
    english_title: str | None = Field(default=None, max_length=500)
    release_date: date | None = None
    synopsis: str | None = None
    poster_url: str | None = None
    backdrop_url: str | None = None
    vote_average: float | None = Field(default=None, ge=0.0, le=10.0)
    rating: str | None = Field(default=None, max_length=20)
    is_rerelease: bool = False

    @field_validator("english_title", "release_date", "synopsis", "poster_url", "backdrop_url", "rating", mode="before")
    @classmethod
    def blank_optional(cls, v: Any) -> Any:
        """Treat empty strings as missing values."""
        return _blank_to_none(v)


class RawBonusObservation(_Frozen):
    """Unvalidated bonus announcement scraped from an exhibitor or feed.

    Attributes:
        source_id: Adapter and channel that produced it (e.g. 'cinema:vieshow').
        exhibitor_id: Exhibitor key (see ``moviebonus.etl.exhibitors``).
        exhibitor_name: Display name of the exhibitor.
        movie_title_raw: Title as written in the announcement.
        description: What is handed out.
        quantity: Stock hint ("限量500份"), free text.
        week_index: Distribution week (1 = opening week).
        observed_at: When the page was read.
        release_date_hint: Release date printed next to the offer, if any.
        source_url: Page the announcement came from.
    """

    source_id: str
    exhibitor_id: str
    exhibitor_name: str
    movie_title_raw: str = Field(min_length=1)
    description: str = Field(min_length=1)
    quantity: str | None = None
    week_index: int | None = Field(default=None, ge=1)
    observed_at: datetime
    release_date_hint: date | None = None
    source_url: str | None = None


class TrackedTitle(_Frozen):
    """Title listed by the editorial tracker.

    Attributes:
        title: Listed title.
        url: Detail page on the editorial site.
        listing: Which list it appeared on.
        is_rerelease: Whether the title reads as a re-release.
    """

    title: str = Field(min_length=1)
    url: str | None = None
    listing: Listing = Listing.NOW_SHOWING
    is_rerelease: bool = False


# =============================================================================
# MERGE OUTPUT
# =============================================================================


class ExhibitorBonusGroup(_Frozen):
    """Bonuses one exhibitor offers for one movie, in first-seen order."""

    exhibitor_id: str
    exhibitor_name: str
    bonuses: tuple[RawBonusObservation, ...] = ()


class MergedMovieRecord(CanonicalMovieSeed):
    """Seed plus classification and the bonuses matched to it.

    Attributes:
        data_source: Origin tag written to storage.
        exhibitor_groups: Bonuses grouped per exhibitor.
    """

    data_source: DataSource = DataSource.METADATA_PROVIDER
    exhibitor_groups: tuple[ExhibitorBonusGroup, ...] = ()

    @classmethod
    def from_seed(
        cls,
        seed: CanonicalMovieSeed,
        exhibitor_groups: tuple[ExhibitorBonusGroup, ...] = (),
    ) -> Self:
        """Build a record from a seed and its matched bonuses."""
        return cls(**seed.model_dump(), exhibitor_groups=exhibitor_groups)

    @property
    def bonus_count(self) -> int:
        """Number of bonuses across all exhibitors."""
        return sum(len(group.bonuses) for group in self.exhibitor_groups)


class UnmatchedObservation(_Frozen):
    """Observation that cleared the threshold against no seed.

    Attributes:
        observation: The unmatched bonus, kept for manual review.
        best_score: Highest score reached against any seed.
        best_candidate: External id of the closest seed, if any.
    """

    observation: RawBonusObservation
    best_score: float = 0.0
    best_candidate: str | None = None


# =============================================================================
# ERRORS AND OUTCOMES
# =============================================================================


class ErrorRecord(_Frozen):
    """Recorded failure that did not abort the run."""

    kind: ErrorKind
    message: str
    source: str | None = None
    external_id: str | None = None


class SyncOutcome(_Frozen):
    """Result of one ``PersistenceGateway.sync`` call.

    Attributes:
        saved_count: Movies written (inserted, updated or confirmed unchanged).
        skipped_count: Incoming values dropped to protect manual data.
        path: Path that serviced the batch.
        errors: Per-record failures.
        timestamp: Completion time.
        primary_error: Why the primary path was abandoned, if it was.
    """

    saved_count: int = 0
    skipped_count: int = 0
    path: SyncPath
    errors: tuple[ErrorRecord, ...] = ()
    timestamp: datetime
    primary_error: str | None = None


class RunReport(_Frozen):
    """Structured result of one pipeline run (the trigger response body)."""

    success: bool
    complete: bool = True
    last_scraped_at: datetime
    source_movie_count: int = 0
    total_bonuses: int = 0
    merged_movies: tuple[MergedMovieRecord, ...] = ()
    unmatched_bonuses: tuple[UnmatchedObservation, ...] = ()
    source_errors: tuple[ErrorRecord, ...] = ()
    errors: tuple[ErrorRecord, ...] = ()
    sync_outcome: SyncOutcome | None = None
    now_showing: tuple[TrackedTitle, ...] = ()
    missing_titles: tuple[str, ...] = ()
    execution_time_ms: int = 0
    next_sync: datetime | None = None
