"""TMDB data normalizer.

Transforms raw TMDB API responses into canonical movie seeds.
"""

import logging
from datetime import date
from typing import Any

from moviebonus.etl.schemas import CanonicalMovieSeed

logger = logging.getLogger(__name__)


class TMDBNormalizer:
    """Normalizes TMDB API data into ``CanonicalMovieSeed``.

    Attributes:
        image_base_url: Image CDN base, without size segment.
        region: Country whose release dates are used.
    """

    POSTER_SIZE = "w500"
    BACKDROP_SIZE = "w1280"

    # TMDB release type for theatrical runs
    THEATRICAL_TYPE = 3

    # Original languages whose original title is not shown as English title
    CHINESE_LANGUAGES = {"zh", "cn"}

    def __init__(self, image_base_url: str, region: str) -> None:
        self.image_base_url = image_base_url.rstrip("/")
        self.region = region

    def to_seed(
        self,
        movie: dict[str, Any],
        details: dict[str, Any] | None = None,
        release_dates: dict[str, Any] | None = None,
    ) -> CanonicalMovieSeed:
        """Build a seed from list data, enriched when details are available.

        Args:
            movie: Entry from a now-playing page.
            details: ``/movie/{id}`` response.
            release_dates: ``/movie/{id}/release_dates`` response.

        Returns:
            Canonical movie seed.
        """
        raw = {**movie, **(details or {})}
        theatrical_date, certification, is_rerelease = self._theatrical_release(release_dates)

        title = (
            self._clean_string(raw.get("title"))
            or self._clean_string(raw.get("original_title"))
            or str(raw["id"])
        )

        return CanonicalMovieSeed(
            external_id=str(raw["id"]),
            title=title,
            english_title=self._english_title(raw),
            release_date=theatrical_date or self._parse_date(raw.get("release_date")),
            synopsis=self._clean_string(raw.get("overview")),
            poster_url=self._image_url(raw.get("poster_path"), self.POSTER_SIZE),
            backdrop_url=self._image_url(raw.get("backdrop_path"), self.BACKDROP_SIZE),
            vote_average=raw.get("vote_average"),
            rating=certification,
            is_rerelease=is_rerelease,
        )

    # -------------------------------------------------------------------------
    # Field Helpers
    # -------------------------------------------------------------------------

    def _english_title(self, raw: dict[str, Any]) -> str | None:
        """Original title, unless the movie is Chinese-language or identical."""
        original = self._clean_string(raw.get("original_title"))
        if not original or raw.get("original_language") in self.CHINESE_LANGUAGES:
            return None
        if original == self._clean_string(raw.get("title")):
            return None
        return original

    def _image_url(self, path: str | None, size: str) -> str | None:
        if not path:
            return None
        return f"{self.image_base_url}/{size}{path}"

    def _theatrical_release(
        self,
        release_dates: dict[str, Any] | None,
    ) -> tuple[date | None, str | None, bool]:
        """Extract the regional theatrical picture.

        More than one theatrical date in the region means the movie is
        back in theaters.

        Returns:
            Tuple of (latest theatrical date, certification, is_rerelease).
        """
        if not release_dates:
            return None, None, False

        entry = next(
            (r for r in release_dates.get("results", []) if r.get("iso_3166_1") == self.region),
            None,
        )
        if entry is None:
            return None, None, False

        dates = entry.get("release_dates", [])
        theatrical = sorted(
            d
            for d in (
                self._parse_date((item.get("release_date") or "")[:10])
                for item in dates
                if item.get("type") == self.THEATRICAL_TYPE
            )
            if d is not None
        )
        certification = next(
            (c for c in (self._clean_string(item.get("certification")) for item in dates) if c),
            None,
        )

        latest = theatrical[-1] if theatrical else None
        return latest, certification, len(theatrical) > 1

    @staticmethod
    def _clean_string(value: str | None) -> str | None:
        """Clean and normalize a string value."""
        if value is None:
            return None
        cleaned = value.strip()
        return cleaned if cleaned else None

    @staticmethod
    def _parse_date(date_str: str | None) -> date | None:
        """Parse a YYYY-MM-DD string to a date, None when invalid."""
        if not date_str:
            return None
        try:
            return date.fromisoformat(date_str)
        except ValueError:
            logger.debug(f"Invalid date format: {date_str}")
            return None
