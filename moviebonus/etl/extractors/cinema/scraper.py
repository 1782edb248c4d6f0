"""Cinema event page scraper.

Reads each exhibitor's event pages and turns bonus announcements into
raw observations.
"""

from collections.abc import Callable
from datetime import UTC, datetime

import httpx

from moviebonus.etl.errors import SourceFetchError
from moviebonus.etl.exhibitors import Exhibitor, select_exhibitors
from moviebonus.etl.extractors.base import SourceAdapter
from moviebonus.etl.extractors.cinema.html import extract_page_text
from moviebonus.etl.extractors.cinema.parser import BonusTextParser
from moviebonus.etl.extractors.http import PageFetcher, PageFetchError
from moviebonus.etl.schemas import RawBonusObservation
from moviebonus.settings.sources import ScraperSettings


def utc_now() -> datetime:
    """Current time, timezone-aware (UTC)."""
    return datetime.now(UTC)


class CinemaScraper(SourceAdapter):
    """Scrapes bonus announcements from exhibitor event pages.

    A page that cannot be fetched is a warning; the adapter fails only
    when no page at all could be read.
    """

    name = "cinema"

    _CONTENT_SELECTORS = (
        "main",
        "article",
        ".event",
        ".events",
        ".news",
        ".activity",
        "#content",
        ".content",
    )

    def __init__(
        self,
        settings: ScraperSettings,
        exhibitors: list[Exhibitor] | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
        clock: Callable[[], datetime] = utc_now,
    ) -> None:
        """Initialize scraper.

        Args:
            settings: Scraper configuration.
            exhibitors: Exhibitors to scrape, default from settings.
            transport: Optional httpx transport (tests).
            clock: Source of the observation timestamp.
        """
        super().__init__()
        self._settings = settings
        if exhibitors is None:
            exhibitors = select_exhibitors(settings.exhibitors)
        self._exhibitors = exhibitors
        self._transport = transport
        self._clock = clock
        self._parser = BonusTextParser(max_age_days=settings.max_age_days)

    async def _fetch(self) -> list[RawBonusObservation]:
        observations: list[RawBonusObservation] = []
        pages_total = 0
        pages_read = 0

        async with PageFetcher(self._settings, self._settings.delay, self._transport) as fetcher:
            for exhibitor in self._exhibitors:
                for url in exhibitor.event_urls:
                    pages_total += 1
                    try:
                        html = await fetcher.get_text(url)
                    except PageFetchError as e:
                        self._warn(f"cinema:{exhibitor.id}: {e}")
                        continue

                    pages_read += 1
                    found = self._parser.parse(
                        extract_page_text(html, self._CONTENT_SELECTORS),
                        exhibitor,
                        source_id=f"cinema:{exhibitor.id}",
                        observed_at=self._clock(),
                        source_url=url,
                    )
                    self.logger.info(f"{exhibitor.name}: {len(found)} bonuses on {url}")
                    observations.extend(found)

        if pages_total and not pages_read:
            raise SourceFetchError(self.name, f"all {pages_total} event pages failed")

        return observations
