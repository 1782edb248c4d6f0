"""Unit tests for the source adapter contract."""

import asyncio
from collections.abc import Sequence

import pytest

from moviebonus.etl.errors import SourceFetchError
from moviebonus.etl.extractors.base import AdapterResult, SourceAdapter, SourceItem
from moviebonus.etl.schemas import CanonicalMovieSeed, TrackedTitle


class ConcreteAdapter(SourceAdapter):
    name = "test"

    def __init__(self, outcome: Sequence[SourceItem] | BaseException) -> None:
        super().__init__()
        self._outcome = outcome

    async def _fetch(self) -> Sequence[SourceItem]:
        if isinstance(self._outcome, BaseException):
            raise self._outcome
        self._warn("one page skipped")
        return self._outcome


@pytest.mark.unit
class TestSourceAdapter:
    @staticmethod
    async def test_success_result() -> None:
        seed = CanonicalMovieSeed(external_id="1", title="沙丘")
        result = await ConcreteAdapter([seed]).fetch()

        assert result.success
        assert result.source == "test"
        assert result.items == (seed,)
        assert result.warnings == ("one page skipped",)
        assert result.duration_seconds >= 0

    @staticmethod
    async def test_source_error_kept() -> None:
        result = await ConcreteAdapter(SourceFetchError("test", "HTTP 503")).fetch()

        assert not result.success
        assert result.error is not None
        assert result.error.detail == "HTTP 503"

    @staticmethod
    async def test_unexpected_error_wrapped() -> None:
        result = await ConcreteAdapter(ValueError("bad markup")).fetch()

        assert not result.success
        assert result.error is not None
        assert result.error.source == "test"
        assert "ValueError" in result.error.detail

    @staticmethod
    async def test_cancellation_propagates() -> None:
        with pytest.raises(asyncio.CancelledError):
            await ConcreteAdapter(asyncio.CancelledError()).fetch()

    @staticmethod
    def test_logger_name() -> None:
        assert ConcreteAdapter([]).logger.name == "etl.test"


class TestAdapterResult:
    @staticmethod
    def test_item_filters() -> None:
        seed = CanonicalMovieSeed(external_id="1", title="沙丘")
        tracked = TrackedTitle(title="沙丘")
        result = AdapterResult(source="x", items=(seed, tracked))

        assert result.seeds() == [seed]
        assert result.tracked_titles() == [tracked]
        assert result.observations() == []

    @staticmethod
    def test_failed_factory() -> None:
        result = AdapterResult.failed("x", SourceFetchError("x", "down"))

        assert not result.success
        assert result.items == ()
