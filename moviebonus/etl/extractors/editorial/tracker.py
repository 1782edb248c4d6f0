"""Editorial listing tracker.

Reads the now-showing and coming-soon lists of a movie news site. The
titles cross-check the metadata provider (titles it misses) and carry a
re-release hint.
"""

from urllib.parse import urljoin

import httpx
from bs4 import BeautifulSoup

from moviebonus.etl.aggregation.matcher import normalize_title
from moviebonus.etl.aggregation.rerelease import detect_rerelease
from moviebonus.etl.errors import SourceFetchError
from moviebonus.etl.extractors.base import SourceAdapter
from moviebonus.etl.extractors.cinema.html import strip_noise
from moviebonus.etl.extractors.http import PageFetcher, PageFetchError
from moviebonus.etl.schemas import Listing, TrackedTitle
from moviebonus.settings.sources import ScraperSettings


class EditorialTracker(SourceAdapter):
    """Tracks titles listed by the editorial site."""

    name = "editorial"

    LISTINGS: tuple[tuple[Listing, str], ...] = (
        (Listing.NOW_SHOWING, "/movie/now/"),
        (Listing.COMING_SOON, "/movie/next/"),
    )
    _ITEM_SELECTORS = ("ul.filmList li", ".filmListAll li", ".at0 li")
    _MAX_TITLE_LENGTH = 80

    def __init__(
        self,
        settings: ScraperSettings,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        super().__init__()
        self._settings = settings
        self._base_url = settings.editorial_base_url.rstrip("/")
        self._transport = transport

    async def _fetch(self) -> list[TrackedTitle]:
        tracked: dict[str, TrackedTitle] = {}
        lists_read = 0

        async with PageFetcher(self._settings, self._settings.editorial_delay, self._transport) as fetcher:
            for listing, path in self.LISTINGS:
                url = f"{self._base_url}{path}"
                try:
                    html = await fetcher.get_text(url)
                except PageFetchError as e:
                    self._warn(f"editorial:{listing}: {e}")
                    continue

                lists_read += 1
                items = self.parse_listing(html, listing, url)
                self.logger.info(f"{listing}: {len(items)} titles")
                for item in items:
                    tracked.setdefault(normalize_title(item.title), item)

        if not lists_read:
            raise SourceFetchError(self.name, "no editorial listing could be read")

        return list(tracked.values())

    def parse_listing(self, html: str, listing: Listing, page_url: str) -> list[TrackedTitle]:
        """Parse one listing page.

        Args:
            html: Listing markup.
            listing: Which list the page is.
            page_url: URL the page was read from, for relative links.

        Returns:
            Tracked titles in page order.
        """
        soup = strip_noise(BeautifulSoup(html, "html.parser"))

        items = []
        for selector in self._ITEM_SELECTORS:
            items = soup.select(selector)
            if items:
                break

        titles: list[TrackedTitle] = []
        for item in items:
            link = item.find("a")
            text = (link or item).get_text(" ", strip=True)
            if not text or len(text) > self._MAX_TITLE_LENGTH:
                continue
            href = link.get("href") if link else None
            titles.append(
                TrackedTitle(
                    title=text,
                    url=urljoin(page_url, href) if isinstance(href, str) else None,
                    listing=listing,
                    is_rerelease=detect_rerelease(text),
                )
            )
        return titles
