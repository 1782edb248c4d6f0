"""TMDB API client with rate limiting.

Handles async HTTP communication with The Movie Database API
including authentication, rate limiting, and retries.
"""

import asyncio
import logging
import time
from types import TracebackType
from typing import Any, Self

import httpx
from tenacity import AsyncRetrying, retry_if_exception_type, stop_after_attempt, wait_exponential

from moviebonus.settings.sources import TMDBSettings

logger = logging.getLogger(__name__)


class TMDBClientError(Exception):
    """Base exception for TMDB client errors."""


class TMDBRateLimitError(TMDBClientError):
    """Raised when rate limit is exceeded."""


class TMDBNotFoundError(TMDBClientError):
    """Raised when resource is not found."""


class TMDBAuthError(TMDBClientError):
    """Raised when the API key is rejected."""


class TMDBClient:
    """Async HTTP client for TMDB API with rate limiting.

    Implements sliding-window rate limiting to respect
    TMDB's API limits (40 requests per 10 seconds).
    """

    def __init__(
        self,
        settings: TMDBSettings,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        """Initialize TMDB client.

        Args:
            settings: TMDB configuration.
            transport: Optional httpx transport (tests).
        """
        self._settings = settings
        self._base_url = settings.base_url.rstrip("/")
        self._api_key = settings.api_key or ""
        self._transport = transport

        # Rate limiting state
        self._requests_per_period = settings.requests_per_period
        self._period_seconds = settings.period_seconds
        self._min_delay = settings.min_request_delay
        self._request_times: list[float] = []
        self._rate_lock = asyncio.Lock()

        self._client: httpx.AsyncClient | None = None

    # -------------------------------------------------------------------------
    # Context Manager
    # -------------------------------------------------------------------------

    async def __aenter__(self) -> Self:
        """Enter context and create HTTP client."""
        self._client = httpx.AsyncClient(
            timeout=self._settings.timeout,
            headers={"Accept": "application/json"},
            transport=self._transport,
        )
        return self

    async def __aexit__(
        self,
        _exc_type: type[BaseException] | None,
        _exc_val: BaseException | None,
        _exc_tb: TracebackType | None,
    ) -> None:
        """Exit context and close HTTP client."""
        if self._client:
            await self._client.aclose()
            self._client = None

    # -------------------------------------------------------------------------
    # Rate Limiting
    # -------------------------------------------------------------------------

    async def _wait_for_rate_limit(self) -> None:
        """Wait if necessary to respect rate limits."""
        async with self._rate_lock:
            now = time.monotonic()

            # Remove old request times outside the window
            cutoff = now - self._period_seconds
            self._request_times = [t for t in self._request_times if t > cutoff]

            if len(self._request_times) >= self._requests_per_period:
                wait_time = self._request_times[0] + self._period_seconds - now
                if wait_time > 0:
                    logger.debug(f"Rate limit: waiting {wait_time:.2f}s")
                    await asyncio.sleep(wait_time)

            # Enforce minimum delay between requests
            if self._request_times:
                elapsed = time.monotonic() - self._request_times[-1]
                if elapsed < self._min_delay:
                    await asyncio.sleep(self._min_delay - elapsed)

            self._request_times.append(time.monotonic())

    # -------------------------------------------------------------------------
    # HTTP Methods
    # -------------------------------------------------------------------------

    async def _get(
        self,
        endpoint: str,
        params: dict[str, Any] | None = None,
    ) -> dict[str, Any]:
        """Execute GET request with rate limiting and retries.

        Timeouts and 429 responses are retried with exponential backoff.

        Raises:
            TMDBClientError: On API errors.
        """
        retrying = AsyncRetrying(
            retry=retry_if_exception_type((httpx.TimeoutException, TMDBRateLimitError)),
            stop=stop_after_attempt(self._settings.max_attempts),
            wait=wait_exponential(multiplier=self._settings.retry_backoff, max=10),
            reraise=True,
        )
        return await retrying(self._get_once, endpoint, params)

    async def _get_once(
        self,
        endpoint: str,
        params: dict[str, Any] | None,
    ) -> dict[str, Any]:
        if self._client is None:
            msg = "Client not initialized. Use async context manager."
            raise TMDBClientError(msg)

        await self._wait_for_rate_limit()

        request_params = {"api_key": self._api_key, "language": self._settings.language}
        if params:
            request_params.update(params)

        try:
            response = await self._client.get(f"{self._base_url}{endpoint}", params=request_params)
        except httpx.TimeoutException:
            logger.warning(f"Request timeout: {endpoint}")
            raise

        return self._handle_response(response, endpoint)

    @staticmethod
    def _handle_response(
        response: httpx.Response,
        endpoint: str,
    ) -> dict[str, Any]:
        """Handle HTTP response and extract JSON.

        Raises:
            TMDBAuthError: When the API key is rejected (401).
            TMDBNotFoundError: When resource not found (404).
            TMDBRateLimitError: When rate limit exceeded (429).
            TMDBClientError: On other API errors.
        """
        if response.status_code == 200:
            return response.json()

        if response.status_code == 401:
            raise TMDBAuthError(f"Invalid API key: {endpoint}")

        if response.status_code == 404:
            raise TMDBNotFoundError(f"Not found: {endpoint}")

        if response.status_code == 429:
            retry_after = response.headers.get("Retry-After", "10")
            logger.warning(f"Rate limited. Retry after {retry_after}s")
            raise TMDBRateLimitError(f"Rate limited: {endpoint}")

        error_msg = f"TMDB API error {response.status_code}: {endpoint}"
        logger.error(error_msg)
        raise TMDBClientError(error_msg)

    # -------------------------------------------------------------------------
    # API Endpoints
    # -------------------------------------------------------------------------

    async def get_now_playing(self, page: int = 1) -> dict[str, Any]:
        """Get movies currently in theaters for the configured region.

        Args:
            page: Page number.

        Returns:
            Now-playing response with results and total_pages.
        """
        return await self._get("/movie/now_playing", {"page": page, "region": self._settings.region})

    async def get_movie_details(self, movie_id: int) -> dict[str, Any]:
        """Get detailed movie information."""
        return await self._get(f"/movie/{movie_id}")

    async def get_release_dates(self, movie_id: int) -> dict[str, Any]:
        """Get per-country release dates and certifications."""
        return await self._get(f"/movie/{movie_id}/release_dates")
