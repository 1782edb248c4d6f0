"""Mapping of merged records to storage values.

Both persistence paths derive the same keys, statuses and field values
from a record, so that a batch written by either path looks identical.
"""

import hashlib
from datetime import date, timedelta
from typing import Any

from moviebonus.etl.aggregation.matcher import normalize_title
from moviebonus.etl.exhibitors import resolve_exhibitor_id
from moviebonus.etl.schemas import DataSource, ExhibitorBonusGroup, MergedMovieRecord, RawBonusObservation

# Movies released longer ago than this are considered out of theaters
ENDED_AFTER = timedelta(weeks=8)

MOVIE_FIELDS = (
    "title",
    "english_title",
    "release_date",
    "synopsis",
    "poster_url",
    "backdrop_url",
    "vote_average",
    "rating",
)
PROMOTION_FIELDS = ("exhibitor_name", "description", "quantity", "source_id", "source_url")


def movie_status(release_date: date | None, today: date) -> str:
    """Derive the screening status of a movie.

    Args:
        release_date: Theatrical release date, if known.
        today: Reference day.

    Returns:
        'coming_soon', 'showing' or 'ended'.
    """
    if release_date is None:
        return "showing"
    if release_date > today:
        return "coming_soon"
    if release_date < today - ENDED_AFTER:
        return "ended"
    return "showing"


def bonus_key(exhibitor_id: str, week_index: int | None, description: str) -> str:
    """Stable identity of a bonus within a movie.

    Args:
        exhibitor_id: Exhibitor id or name.
        week_index: Distribution week.
        description: Bonus description (normalized before hashing).

    Returns:
        Hex SHA-1 digest.
    """
    raw = f"{resolve_exhibitor_id(exhibitor_id)}|{week_index or 0}|{normalize_title(description)}"
    return hashlib.sha1(raw.encode("utf-8")).hexdigest()


def movie_values(record: MergedMovieRecord, today: date) -> dict[str, Any]:
    """Descriptive column values of a record."""
    values: dict[str, Any] = {name: getattr(record, name) for name in MOVIE_FIELDS}
    values["status"] = movie_status(record.release_date, today)
    return values


def promotion_values(group: ExhibitorBonusGroup, bonus: RawBonusObservation) -> dict[str, Any]:
    """Column values of one promotion, including its key."""
    return {
        "bonus_key": bonus_key(group.exhibitor_id, bonus.week_index, bonus.description),
        "exhibitor_id": group.exhibitor_id,
        "exhibitor_name": group.exhibitor_name,
        "week_index": bonus.week_index,
        "description": bonus.description,
        "quantity": bonus.quantity,
        "source_id": bonus.source_id,
        "source_url": bonus.source_url,
    }


def backend_payload(record: MergedMovieRecord, today: date) -> dict[str, Any]:
    """JSON body entry for one movie sent to the primary backend."""
    values = movie_values(record, today)
    if values["release_date"] is not None:
        values["release_date"] = values["release_date"].isoformat()
    return {
        "external_id": record.external_id,
        **values,
        "is_rerelease": record.is_rerelease,
        "data_source": record.data_source.value,
        "promotions": [
            {**promotion_values(group, bonus), "data_source": DataSource.SCRAPER.value}
            for group in record.exhibitor_groups
            for bonus in group.bonuses
        ],
    }
