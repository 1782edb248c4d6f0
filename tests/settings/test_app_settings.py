"""Unit tests for configuration loading."""

import pytest
from pydantic import ValidationError

from moviebonus.settings import (
    BackendSettings,
    LoggingSettings,
    ScraperSettings,
    SyncSettings,
    TriggerSettings,
    load_settings,
)


@pytest.mark.unit
class TestSyncSettings:
    @staticmethod
    def test_defaults() -> None:
        settings = SyncSettings()

        assert settings.timeout_seconds == 55.0
        assert settings.match_threshold == 0.5
        assert settings.interval_hours == 6

    @staticmethod
    def test_from_env(monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("SYNC_TIMEOUT_SECONDS", "30")
        monkeypatch.setenv("MATCH_THRESHOLD", "0.6")

        settings = SyncSettings()

        assert settings.timeout_seconds == 30.0
        assert settings.match_threshold == 0.6

    @staticmethod
    @pytest.mark.parametrize("value", ["0", "1", "1.5"])
    def test_invalid_threshold(value: str) -> None:
        with pytest.raises(ValidationError):
            SyncSettings(MATCH_THRESHOLD=value)

    @staticmethod
    def test_invalid_concurrency() -> None:
        with pytest.raises(ValidationError):
            SyncSettings(WRITE_CONCURRENCY=0)


@pytest.mark.unit
class TestOtherSettings:
    @staticmethod
    def test_log_level_upper() -> None:
        assert LoggingSettings(LOG_LEVEL="debug").level == "DEBUG"
        with pytest.raises(ValidationError):
            LoggingSettings(LOG_LEVEL="verbose")

    @staticmethod
    def test_trigger_unconfigured_by_default() -> None:
        assert not TriggerSettings().is_configured
        assert TriggerSettings(CRON_SECRET="s3cret").is_configured

    @staticmethod
    def test_backend_optional() -> None:
        assert not BackendSettings().is_configured
        assert BackendSettings(PYTHON_BACKEND_URL="https://backend.test").is_configured

    @staticmethod
    def test_exhibitor_list(monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("SCRAPER_EXHIBITORS", " vieshow , ,miramar")

        assert ScraperSettings().exhibitors == ["vieshow", "miramar"]

    @staticmethod
    def test_masked(monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("CRON_SECRET", "s3cret")
        monkeypatch.setenv("TMDB_API_KEY", "tmdb-key")

        masked = load_settings().masked()

        assert masked["trigger"]["cron_secret"] == "***MASKED***"
        assert masked["tmdb"]["api_key"] == "***MASKED***"
        assert masked["backend"]["token"] is None
