"""Unit tests for the exhibitor registry."""

import pytest

from moviebonus.etl.errors import ConfigurationError
from moviebonus.etl.exhibitors import get_exhibitor, resolve_exhibitor_id, select_exhibitors


@pytest.mark.unit
class TestExhibitors:
    @staticmethod
    @pytest.mark.parametrize("name", ["vieshow", "威秀影城", "威秀", "ＶＩＥＳＨＯＷ", "VS Cinemas"])
    def test_resolve_aliases(name: str) -> None:
        assert resolve_exhibitor_id(name) == "vieshow"

    @staticmethod
    def test_resolve_unknown_keeps_name() -> None:
        assert resolve_exhibitor_id(" 新光影城 ") == "新光影城"

    @staticmethod
    def test_get_exhibitor() -> None:
        assert get_exhibitor("showtimes").name == "秀泰影城"
        assert get_exhibitor("nope") is None

    @staticmethod
    def test_select_in_priority_order() -> None:
        chosen = select_exhibitors(["in89", "vieshow", "in89"])

        assert [e.id for e in chosen] == ["vieshow", "in89"]

    @staticmethod
    def test_select_unknown() -> None:
        with pytest.raises(ConfigurationError, match="nope"):
            select_exhibitors(["vieshow", "nope"])
