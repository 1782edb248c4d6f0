"""Unit tests for logger setup."""

import logging
from pathlib import Path

import pytest

from moviebonus.etl.utils import setup_logger


@pytest.mark.unit
class TestSetupLogger:
    @staticmethod
    def test_console_only() -> None:
        logger = setup_logger("tests.logger.console", level="debug")

        assert logger.level == logging.DEBUG
        assert logger.propagate is False
        assert len(logger.handlers) == 1

    @staticmethod
    def test_is_cached() -> None:
        first = setup_logger("tests.logger.cached")
        second = setup_logger("tests.logger.cached", level=logging.ERROR)

        assert first is second
        assert second.level == logging.INFO

    @staticmethod
    def test_file_handler(tmp_path: Path) -> None:
        logger = setup_logger("tests.logger.file", log_dir=tmp_path / "logs")
        logger.info("hello")
        for handler in logger.handlers:
            handler.flush()

        files = list((tmp_path / "logs").glob("tests_logger_file_*.log"))
        assert len(files) == 1
        assert "hello" in files[0].read_text(encoding="utf-8")
