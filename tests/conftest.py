"""Shared pytest fixtures for the movie bonus pipeline tests."""

from collections.abc import Callable, Generator
from datetime import UTC, date, datetime
from pathlib import Path
from typing import Any

import pytest

from moviebonus.database import DatabaseConnection
from moviebonus.etl.schemas import CanonicalMovieSeed, MergedMovieRecord, RawBonusObservation
from moviebonus.settings import ScraperSettings, TMDBSettings

OBSERVED_AT = datetime(2026, 10, 1, 8, 0, tzinfo=UTC)
TODAY = date(2026, 10, 1)

_ISOLATED_ENV = (
    "TMDB_API_KEY",
    "CRON_SECRET",
    "PYTHON_BACKEND_URL",
    "PYTHON_BACKEND_TOKEN",
    "DATABASE_URL",
    "POSTGRES_PASSWORD",
    "SCRAPER_EXHIBITORS",
    "LOG_DIR",
)


@pytest.fixture(autouse=True)
def isolated_env(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    """Keep the developer's environment and .env file out of the tests."""
    for name in _ISOLATED_ENV:
        monkeypatch.delenv(name, raising=False)
    monkeypatch.chdir(tmp_path)


@pytest.fixture
def scraper_settings() -> ScraperSettings:
    """Scraper settings without delays or backoff."""
    return ScraperSettings(
        SCRAPING_DELAY=0,
        SOCIAL_SCRAPING_DELAY=0,
        EDITORIAL_SCRAPING_DELAY=0,
        SCRAPER_RETRY_BACKOFF=0,
        SCRAPER_MAX_ATTEMPTS=2,
    )


@pytest.fixture
def tmdb_settings() -> TMDBSettings:
    """TMDB settings with a key and no throttling."""
    return TMDBSettings(
        TMDB_API_KEY="test_api_key",
        TMDB_MIN_REQUEST_DELAY=0,
        TMDB_RETRY_BACKOFF=0,
        TMDB_MAX_PAGES=2,
        TMDB_MAX_ATTEMPTS=2,
    )


@pytest.fixture
def db(tmp_path: Path) -> Generator[DatabaseConnection, None, None]:
    """SQLite database with the schema created."""
    connection = DatabaseConnection(f"sqlite:///{tmp_path / 'moviebonus.db'}")
    connection.create_tables()
    yield connection
    connection.dispose()


@pytest.fixture
def make_seed() -> Callable[..., CanonicalMovieSeed]:
    """Factory for canonical seeds."""

    def _make(external_id: str = "100", title: str = "鬼滅之刃", **fields: Any) -> CanonicalMovieSeed:
        return CanonicalMovieSeed(external_id=external_id, title=title, **fields)

    return _make


@pytest.fixture
def make_observation() -> Callable[..., RawBonusObservation]:
    """Factory for raw bonus observations."""

    def _make(
        movie_title_raw: str = "鬼滅之刃 劇場版",
        description: str = "入場海報",
        exhibitor_id: str = "A",
        week_index: int | None = 1,
        **fields: Any,
    ) -> RawBonusObservation:
        values: dict[str, Any] = {
            "source_id": f"cinema:{exhibitor_id}",
            "exhibitor_name": exhibitor_id,
            "observed_at": OBSERVED_AT,
        }
        values.update(fields)
        return RawBonusObservation(
            movie_title_raw=movie_title_raw,
            description=description,
            exhibitor_id=exhibitor_id,
            week_index=week_index,
            **values,
        )

    return _make


@pytest.fixture
def make_record(
    make_seed: Callable[..., CanonicalMovieSeed],
    make_observation: Callable[..., RawBonusObservation],
) -> Callable[..., MergedMovieRecord]:
    """Factory for merged records, grouped the way the merge engine groups them."""
    from moviebonus.etl.aggregation import MergeEngine

    def _make(
        external_id: str = "100",
        title: str = "鬼滅之刃",
        observations: list[RawBonusObservation] | None = None,
        **fields: Any,
    ) -> MergedMovieRecord:
        seed = make_seed(external_id, title, **fields)
        if observations is None:
            observations = [make_observation(movie_title_raw=title)]
        return MergeEngine().merge([seed], observations).records[0]

    return _make
