"""Throttled HTML page fetcher.

Shared by the scraping adapters: one async httpx client per adapter
run, a fixed delay between consecutive requests and exponential
retries on transient failures.
"""

import asyncio
import logging
import time
from types import TracebackType
from typing import Self

import httpx
from tenacity import AsyncRetrying, retry_if_exception_type, stop_after_attempt, wait_exponential

from moviebonus.settings.sources import ScraperSettings

logger = logging.getLogger(__name__)


class PageFetchError(Exception):
    """Raised when a page cannot be fetched.

    Attributes:
        url: Requested URL.
        status_code: HTTP status, None for transport failures.
    """

    def __init__(self, url: str, message: str, status_code: int | None = None) -> None:
        super().__init__(f"{message} ({url})")
        self.url = url
        self.status_code = status_code


class RetryablePageError(PageFetchError):
    """Raised for statuses worth retrying (429 and 5xx)."""


class PageFetcher:
    """Async HTML fetcher with inter-request delay and retries.

    Attributes:
        delay: Minimum seconds between two requests.
    """

    def __init__(
        self,
        settings: ScraperSettings,
        delay: float,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        """Initialize fetcher.

        Args:
            settings: Scraper configuration (timeout, retries, user agent).
            delay: Minimum seconds between two requests.
            transport: Optional httpx transport (tests).
        """
        self._settings = settings
        self.delay = delay
        self._transport = transport
        self._client: httpx.AsyncClient | None = None
        self._lock = asyncio.Lock()
        self._last_request: float | None = None

    # -------------------------------------------------------------------------
    # Context Manager
    # -------------------------------------------------------------------------

    async def __aenter__(self) -> Self:
        """Enter context and create HTTP client."""
        self._client = httpx.AsyncClient(
            timeout=self._settings.timeout,
            headers={
                "User-Agent": self._settings.user_agent,
                "Accept": "text/html,application/xhtml+xml,application/xml;q=0.9,*/*;q=0.8",
                "Accept-Language": "zh-TW,zh;q=0.9,en;q=0.8",
            },
            follow_redirects=True,
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
    # Fetching
    # -------------------------------------------------------------------------

    async def get_text(self, url: str) -> str:
        """Fetch a page and return its decoded body.

        Args:
            url: Page URL.

        Returns:
            Response text.

        Raises:
            PageFetchError: On HTTP errors or after retries are exhausted.
        """
        retrying = AsyncRetrying(
            retry=retry_if_exception_type((httpx.TransportError, RetryablePageError)),
            stop=stop_after_attempt(self._settings.max_attempts),
            wait=wait_exponential(multiplier=self._settings.retry_backoff, max=10),
            reraise=True,
        )
        try:
            return await retrying(self._request, url)
        except httpx.HTTPError as e:
            raise PageFetchError(url, f"{type(e).__name__}: {e}") from e

    async def _request(self, url: str) -> str:
        if self._client is None:
            msg = "Client not initialized. Use async context manager."
            raise PageFetchError(url, msg)

        await self._throttle()
        logger.debug(f"GET {url}")
        response = await self._client.get(url)

        if response.status_code == 200:
            return response.text
        if response.status_code == 429 or response.status_code >= 500:
            raise RetryablePageError(url, f"HTTP {response.status_code}", response.status_code)
        raise PageFetchError(url, f"HTTP {response.status_code}", response.status_code)

    async def _throttle(self) -> None:
        """Wait so that consecutive requests are at least ``delay`` apart."""
        async with self._lock:
            if self._last_request is not None:
                elapsed = time.monotonic() - self._last_request
                if elapsed < self.delay:
                    await asyncio.sleep(self.delay - elapsed)
            self._last_request = time.monotonic()
