"""TMDB metadata provider adapter.

Produces the canonical movie seeds of a run from the now-playing
listing of one region, enriched with details and release dates.
"""

import asyncio
from typing import Any

import httpx

from moviebonus.etl.errors import SourceFetchError
from moviebonus.etl.extractors.base import SourceAdapter
from moviebonus.etl.extractors.tmdb.client import (
    TMDBAuthError,
    TMDBClient,
    TMDBClientError,
    TMDBNotFoundError,
)
from moviebonus.etl.extractors.tmdb.normalizer import TMDBNormalizer
from moviebonus.etl.schemas import CanonicalMovieSeed
from moviebonus.settings.sources import TMDBSettings


class TMDBProvider(SourceAdapter):
    """Metadata provider backed by the TMDB API.

    Without an API key the provider is disabled at construction and
    every fetch succeeds with zero seeds.
    """

    name = "tmdb"

    def __init__(
        self,
        settings: TMDBSettings,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        """Initialize provider.

        Args:
            settings: TMDB configuration.
            transport: Optional httpx transport (tests).
        """
        super().__init__()
        self._settings = settings
        self._transport = transport
        self._enabled = settings.is_configured
        self._normalizer = TMDBNormalizer(settings.image_base_url, settings.region)

    @property
    def enabled(self) -> bool:
        """Whether an API key was configured."""
        return self._enabled

    async def _fetch(self) -> list[CanonicalMovieSeed]:
        if not self._enabled:
            self.logger.info("⏭️ TMDB API key not configured, no canonical seeds this run")
            return []

        async with TMDBClient(self._settings, self._transport) as client:
            movies = await self._fetch_now_playing(client)
            if not self._settings.enrich_movies:
                return [self._normalizer.to_seed(movie) for movie in movies]

            semaphore = asyncio.Semaphore(self._settings.detail_concurrency)
            seeds = await asyncio.gather(
                *(self._build_seed(client, movie, semaphore) for movie in movies)
            )

        return [seed for seed in seeds if seed is not None]

    # -------------------------------------------------------------------------
    # Listing
    # -------------------------------------------------------------------------

    async def _fetch_now_playing(self, client: TMDBClient) -> list[dict[str, Any]]:
        """Collect now-playing movies across pages, deduplicated by id.

        Raises:
            SourceFetchError: When the first page cannot be fetched.
        """
        movies: dict[int, dict[str, Any]] = {}
        page = 1
        total_pages = 1

        while page <= min(total_pages, self._settings.max_pages):
            try:
                data = await client.get_now_playing(page)
            except (TMDBClientError, httpx.HTTPError) as e:
                if page == 1:
                    raise SourceFetchError(self.name, f"now_playing failed: {e}") from e
                self._warn(f"tmdb: now_playing page {page} failed: {e}")
                break

            for movie in data.get("results", []):
                if "id" in movie:
                    movies.setdefault(movie["id"], movie)
            total_pages = data.get("total_pages", 1)
            page += 1

        self.logger.info(f"Now playing ({self._settings.region}): {len(movies)} movies")
        return list(movies.values())

    # -------------------------------------------------------------------------
    # Enrichment
    # -------------------------------------------------------------------------

    async def _build_seed(
        self,
        client: TMDBClient,
        movie: dict[str, Any],
        semaphore: asyncio.Semaphore,
    ) -> CanonicalMovieSeed | None:
        """Enrich one listed movie; list data is kept if enrichment fails."""
        movie_id = movie["id"]
        async with semaphore:
            try:
                details = await client.get_movie_details(movie_id)
            except TMDBAuthError:
                raise
            except TMDBNotFoundError:
                self.logger.debug(f"Movie {movie_id} not found, skipped")
                return None
            except (TMDBClientError, httpx.HTTPError) as e:
                self.logger.warning(f"Details failed for {movie_id}, using list data: {e}")
                details = None

            try:
                release_dates = await client.get_release_dates(movie_id)
            except TMDBAuthError:
                raise
            except (TMDBClientError, httpx.HTTPError) as e:
                self.logger.debug(f"Release dates failed for {movie_id}: {e}")
                release_dates = None

        try:
            return self._normalizer.to_seed(movie, details, release_dates)
        except (KeyError, ValueError) as e:
            self.logger.warning(f"Failed to normalize movie {movie_id}: {e}")
            return None
