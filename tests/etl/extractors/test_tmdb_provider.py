"""Unit tests for the TMDB metadata provider (HTTP mocked)."""

from collections.abc import Callable
from datetime import date
from typing import Any

import httpx
import pytest

from moviebonus.etl.extractors.tmdb import TMDBNormalizer, TMDBProvider
from moviebonus.settings import TMDBSettings

NOW_PLAYING = {
    "page": 1,
    "total_pages": 1,
    "results": [
        {
            "id": 100,
            "title": "鬼滅之刃",
            "original_title": "鬼滅の刃",
            "original_language": "ja",
            "release_date": "2025-08-22",
            "poster_path": "/poster.jpg",
            "vote_average": 8.1,
            "overview": "炭治郎一行人進入無限城。",
        },
        {
            "id": 200,
            "title": "航海王",
            "original_title": "ONE PIECE",
            "original_language": "ja",
            "release_date": "2025-09-05",
        },
    ],
}

DETAILS = {
    100: {"id": 100, "title": "鬼滅之刃 劇場版 無限城篇", "backdrop_path": "/backdrop.jpg"},
    200: {"id": 200, "title": "航海王"},
}

RELEASE_DATES = {
    "results": [
        {
            "iso_3166_1": "TW",
            "release_dates": [
                {"type": 3, "release_date": "2020-10-30T00:00:00.000Z", "certification": "輔12"},
                {"type": 3, "release_date": "2025-08-22T00:00:00.000Z", "certification": ""},
            ],
        },
        {"iso_3166_1": "JP", "release_dates": [{"type": 3, "release_date": "2025-07-18T00:00:00.000Z"}]},
    ]
}

Handler = Callable[[httpx.Request], httpx.Response]


def tmdb_handler(overrides: dict[str, Callable[[], httpx.Response]] | None = None) -> Handler:
    """Route TMDB paths to canned responses, with per-path overrides."""
    overrides = overrides or {}

    def handler(request: httpx.Request) -> httpx.Response:
        path = request.url.path.removeprefix("/3")
        if path in overrides:
            return overrides[path]()
        if path == "/movie/now_playing":
            return httpx.Response(200, json=NOW_PLAYING)
        if path.endswith("/release_dates"):
            return httpx.Response(200, json=RELEASE_DATES if "/100/" in path else {"results": []})
        movie_id = int(path.rsplit("/", 1)[-1])
        return httpx.Response(200, json=DETAILS[movie_id])

    return handler


async def _fetch(settings: TMDBSettings, handler: Handler) -> Any:
    return await TMDBProvider(settings, transport=httpx.MockTransport(handler)).fetch()


@pytest.mark.unit
class TestTMDBProvider:
    @staticmethod
    async def test_builds_enriched_seeds(tmdb_settings: TMDBSettings) -> None:
        result = await _fetch(tmdb_settings, tmdb_handler())

        assert result.success
        seeds = {seed.external_id: seed for seed in result.seeds()}
        assert set(seeds) == {"100", "200"}

        seed = seeds["100"]
        assert seed.title == "鬼滅之刃 劇場版 無限城篇"
        assert seed.english_title == "鬼滅の刃"
        assert seed.release_date == date(2025, 8, 22)
        assert seed.rating == "輔12"
        assert seed.is_rerelease is True
        assert seed.poster_url == "https://image.tmdb.org/t/p/w500/poster.jpg"
        assert seed.backdrop_url == "https://image.tmdb.org/t/p/w1280/backdrop.jpg"
        assert seed.vote_average == 8.1

        assert seeds["200"].release_date == date(2025, 9, 5)
        assert seeds["200"].is_rerelease is False

    @staticmethod
    async def test_sends_key_region_and_language(tmdb_settings: TMDBSettings) -> None:
        seen: list[httpx.Request] = []
        inner = tmdb_handler()

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append(request)
            return inner(request)

        await _fetch(tmdb_settings, handler)

        listing = next(r for r in seen if r.url.path.endswith("/now_playing"))
        assert listing.url.params["api_key"] == "test_api_key"
        assert listing.url.params["region"] == "TW"
        assert listing.url.params["language"] == "zh-TW"

    @staticmethod
    async def test_disabled_without_api_key() -> None:
        calls: list[httpx.Request] = []

        def handler(request: httpx.Request) -> httpx.Response:
            calls.append(request)
            return httpx.Response(500)

        provider = TMDBProvider(TMDBSettings(TMDB_API_KEY=""), transport=httpx.MockTransport(handler))
        result = await provider.fetch()

        assert not provider.enabled
        assert result.success
        assert result.items == ()
        assert calls == []

    @staticmethod
    async def test_invalid_key_fails_adapter(tmdb_settings: TMDBSettings) -> None:
        handler = tmdb_handler({"/movie/now_playing": lambda: httpx.Response(401)})
        result = await _fetch(tmdb_settings, handler)

        assert not result.success
        assert result.error is not None
        assert result.error.source == "tmdb"

    @staticmethod
    async def test_not_found_movie_skipped(tmdb_settings: TMDBSettings) -> None:
        handler = tmdb_handler({"/movie/200": lambda: httpx.Response(404)})
        result = await _fetch(tmdb_settings, handler)

        assert [seed.external_id for seed in result.seeds()] == ["100"]

    @staticmethod
    async def test_details_failure_keeps_list_data(tmdb_settings: TMDBSettings) -> None:
        handler = tmdb_handler({"/movie/100": lambda: httpx.Response(500)})
        result = await _fetch(tmdb_settings, handler)

        seed = next(s for s in result.seeds() if s.external_id == "100")
        assert seed.title == "鬼滅之刃"
        assert seed.rating == "輔12"

    @staticmethod
    async def test_rate_limit_retried(tmdb_settings: TMDBSettings) -> None:
        responses = iter([httpx.Response(429, headers={"Retry-After": "0"})])

        def now_playing() -> httpx.Response:
            return next(responses, httpx.Response(200, json=NOW_PLAYING))

        result = await _fetch(tmdb_settings, tmdb_handler({"/movie/now_playing": now_playing}))

        assert result.success
        assert len(result.seeds()) == 2

    @staticmethod
    async def test_later_page_failure_is_warning(tmdb_settings: TMDBSettings) -> None:
        def now_playing_pages() -> Handler:
            def handler(request: httpx.Request) -> httpx.Response:
                if request.url.params["page"] == "2":
                    return httpx.Response(500)
                return httpx.Response(200, json={**NOW_PLAYING, "total_pages": 5})

            return handler

        paging = now_playing_pages()
        inner = tmdb_handler()

        def handler(request: httpx.Request) -> httpx.Response:
            if request.url.path.endswith("/now_playing"):
                return paging(request)
            return inner(request)

        result = await _fetch(tmdb_settings, handler)

        assert result.success
        assert len(result.seeds()) == 2
        assert len(result.warnings) == 1


class TestTMDBNormalizer:
    @pytest.fixture
    def normalizer(self) -> TMDBNormalizer:
        return TMDBNormalizer("https://image.tmdb.org/t/p/", "TW")

    @staticmethod
    def test_chinese_original_title_not_english(normalizer: TMDBNormalizer) -> None:
        seed = normalizer.to_seed(
            {"id": 1, "title": "周處除三害", "original_title": "周處除三害", "original_language": "zh"}
        )
        assert seed.english_title is None

    @staticmethod
    def test_list_release_date_without_regional_entry(normalizer: TMDBNormalizer) -> None:
        seed = normalizer.to_seed({"id": 1, "title": "沙丘", "release_date": "2024-02-28"}, None, {"results": []})

        assert seed.release_date == date(2024, 2, 28)
        assert seed.rating is None
        assert seed.is_rerelease is False

    @staticmethod
    def test_blank_fields_become_none(normalizer: TMDBNormalizer) -> None:
        seed = normalizer.to_seed({"id": 1, "title": "沙丘", "overview": "  ", "release_date": ""})

        assert seed.synopsis is None
        assert seed.release_date is None
        assert seed.external_id == "1"
