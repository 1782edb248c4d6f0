"""Social feed scraper.

Reads the latest posts of each exhibitor's public page through the
lightweight mbasic Facebook front end.
"""

from collections.abc import Callable
from datetime import datetime

import httpx

from moviebonus.etl.errors import SourceFetchError
from moviebonus.etl.exhibitors import Exhibitor, select_exhibitors
from moviebonus.etl.extractors.base import SourceAdapter
from moviebonus.etl.extractors.cinema.html import select_blocks
from moviebonus.etl.extractors.cinema.parser import BonusTextParser, is_recent
from moviebonus.etl.extractors.cinema.scraper import utc_now
from moviebonus.etl.extractors.http import PageFetcher, PageFetchError
from moviebonus.etl.schemas import RawBonusObservation
from moviebonus.settings.sources import ScraperSettings


class SocialFeedScraper(SourceAdapter):
    """Scrapes bonus announcements from exhibitors' social pages."""

    name = "social"

    BASE_URL = "https://mbasic.facebook.com"
    _POST_SELECTORS = (
        "article",
        "div[role=article]",
        "#recent .bx",
        ".story_body_container",
    )

    def __init__(
        self,
        settings: ScraperSettings,
        exhibitors: list[Exhibitor] | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
        clock: Callable[[], datetime] = utc_now,
    ) -> None:
        super().__init__()
        self._settings = settings
        chosen = exhibitors if exhibitors is not None else select_exhibitors(settings.exhibitors)
        self._exhibitors = [e for e in chosen if e.facebook_page]
        self._transport = transport
        self._clock = clock
        self._parser = BonusTextParser(max_age_days=settings.max_age_days)

    def page_url(self, exhibitor: Exhibitor) -> str:
        """mbasic URL of the exhibitor's page."""
        return f"{self.BASE_URL}/{exhibitor.facebook_page}"

    async def _fetch(self) -> list[RawBonusObservation]:
        observations: list[RawBonusObservation] = []
        pages_read = 0

        async with PageFetcher(self._settings, self._settings.social_delay, self._transport) as fetcher:
            for exhibitor in self._exhibitors:
                url = self.page_url(exhibitor)
                try:
                    html = await fetcher.get_text(url)
                except PageFetchError as e:
                    self._warn(f"social:{exhibitor.id}: {e}")
                    continue

                pages_read += 1
                observations.extend(self._parse_posts(html, exhibitor, url))

        if self._exhibitors and not pages_read:
            raise SourceFetchError(self.name, f"all {len(self._exhibitors)} social pages failed")

        return observations

    def _parse_posts(self, html: str, exhibitor: Exhibitor, url: str) -> list[RawBonusObservation]:
        """Parse the most recent posts of one page."""
        posts = select_blocks(html, self._POST_SELECTORS, limit=self._settings.social_max_posts)
        observed_at = self._clock()

        found: list[RawBonusObservation] = []
        for post in posts:
            if not is_recent(post, observed_at.date(), self._settings.max_age_days):
                continue
            found.extend(
                self._parser.parse(
                    post,
                    exhibitor,
                    source_id=f"social:{exhibitor.id}",
                    observed_at=observed_at,
                    source_url=url,
                )
            )

        self.logger.info(f"{exhibitor.name}: {len(found)} bonuses in {len(posts)} posts")
        return found
