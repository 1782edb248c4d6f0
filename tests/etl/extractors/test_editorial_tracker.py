"""Unit tests for the editorial listing tracker."""

import httpx
import pytest

from moviebonus.etl.extractors.editorial import EditorialTracker
from moviebonus.etl.schemas import Listing
from moviebonus.settings import ScraperSettings

NOW_PAGE = """
<html><body>
  <ul class="filmList">
    <li><a href="/movie/fdeen1/">鬼滅之刃 劇場版 無限城篇</a></li>
    <li><a href="/movie/fsen0/">神隱少女 4K數位修復版</a></li>
    <li></li>
  </ul>
</body></html>
"""

NEXT_PAGE = """
<html><body>
  <div class="filmListAll"><ul>
    <li><a href="/movie/fone1/">航海王</a></li>
    <li><a href="/movie/fdeen1/">鬼滅之刃 劇場版 無限城篇</a></li>
  </ul></div>
</body></html>
"""


@pytest.mark.unit
class TestEditorialTracker:
    @staticmethod
    def test_parse_listing(scraper_settings: ScraperSettings) -> None:
        tracker = EditorialTracker(scraper_settings)
        titles = tracker.parse_listing(NOW_PAGE, Listing.NOW_SHOWING, "https://www.atmovies.com.tw/movie/now/")

        assert [t.title for t in titles] == ["鬼滅之刃 劇場版 無限城篇", "神隱少女 4K數位修復版"]
        assert titles[0].url == "https://www.atmovies.com.tw/movie/fdeen1/"
        assert titles[0].is_rerelease is False
        assert titles[1].is_rerelease is True
        assert all(t.listing == Listing.NOW_SHOWING for t in titles)

    @staticmethod
    async def test_fetch_both_listings(scraper_settings: ScraperSettings) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            if request.url.path == "/movie/now/":
                return httpx.Response(200, text=NOW_PAGE)
            return httpx.Response(200, text=NEXT_PAGE)

        result = await EditorialTracker(scraper_settings, transport=httpx.MockTransport(handler)).fetch()

        assert result.success
        tracked = result.tracked_titles()
        assert [t.title for t in tracked] == ["鬼滅之刃 劇場版 無限城篇", "神隱少女 4K數位修復版", "航海王"]
        assert tracked[2].listing == Listing.COMING_SOON

    @staticmethod
    async def test_one_listing_failed(scraper_settings: ScraperSettings) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            if request.url.path == "/movie/now/":
                return httpx.Response(404)
            return httpx.Response(200, text=NEXT_PAGE)

        result = await EditorialTracker(scraper_settings, transport=httpx.MockTransport(handler)).fetch()

        assert result.success
        assert len(result.warnings) == 1
        assert len(result.tracked_titles()) == 2

    @staticmethod
    async def test_all_listings_failed(scraper_settings: ScraperSettings) -> None:
        transport = httpx.MockTransport(lambda request: httpx.Response(404))
        result = await EditorialTracker(scraper_settings, transport=transport).fetch()

        assert not result.success
        assert result.error is not None
        assert result.error.source == "editorial"
