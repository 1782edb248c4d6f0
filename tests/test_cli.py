"""Tests for the command line entry point."""

import sys
from pathlib import Path

import pytest
from sqlalchemy import inspect

from moviebonus.__main__ import main, run_init_db
from moviebonus.database import DatabaseConnection
from moviebonus.settings import load_settings


@pytest.mark.unit
class TestInitDb:
    @staticmethod
    def test_creates_tables(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        url = f"sqlite:///{tmp_path / 'cli.db'}"
        monkeypatch.setenv("DATABASE_URL", url)

        assert run_init_db(load_settings()) == 0

        db = DatabaseConnection(url)
        assert {"movies", "promotions"} <= set(inspect(db.engine).get_table_names())
        db.dispose()

    @staticmethod
    def test_requires_database() -> None:
        assert run_init_db(load_settings()) == 1

    @staticmethod
    def test_unreachable_database(tmp_path: Path, monkeypatch: pytest.MonkeyPatch, capsys: pytest.CaptureFixture[str]) -> None:
        monkeypatch.setenv("DATABASE_URL", f"sqlite:///{tmp_path / 'missing' / 'cli.db'}")

        assert run_init_db(load_settings()) == 1
        assert "unreachable" in capsys.readouterr().out


@pytest.mark.unit
class TestMain:
    @staticmethod
    def test_no_command_prints_help(monkeypatch: pytest.MonkeyPatch, capsys: pytest.CaptureFixture[str]) -> None:
        monkeypatch.setattr(sys, "argv", ["moviebonus"])

        with pytest.raises(SystemExit) as exc_info:
            main()

        assert exc_info.value.code == 1
        assert "init-db" in capsys.readouterr().out

    @staticmethod
    def test_dispatches_command(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("DATABASE_URL", f"sqlite:///{tmp_path / 'main.db'}")
        monkeypatch.setattr(sys, "argv", ["moviebonus", "init-db"])

        with pytest.raises(SystemExit) as exc_info:
            main()

        assert exc_info.value.code == 0
