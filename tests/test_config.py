"""
tests/test_config.py

Pytest tests for env-driven settings.
"""

from __future__ import annotations

import os
from pathlib import Path

import pytest

from app.config import (
    CSVImportSettings,
    get_csv_import_settings,
    get_log_level,
    load_env_files,
    parse_env_text,
)


@pytest.fixture(autouse=True)
def fresh_settings():
    get_csv_import_settings.cache_clear()
    yield
    get_csv_import_settings.cache_clear()


class TestEnvFiles:
    def test_parse_env_text(self) -> None:
        text = '# comment\n\nA=1\nB = "two"\nnot a pair\nC=\'x=y\'\n=orphan\n'
        assert parse_env_text(text) == {"A": "1", "B": "two", "C": "x=y"}

    def test_process_environment_wins(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        (tmp_path / ".env").write_text("IMPORT_TEST_KEPT=file\nIMPORT_TEST_NEW=file\n", encoding="utf-8")
        monkeypatch.setenv("IMPORT_TEST_KEPT", "process")
        # Registered so teardown removes the value the file sets.
        monkeypatch.setenv("IMPORT_TEST_NEW", "")
        monkeypatch.delenv("IMPORT_TEST_NEW")

        load_env_files(tmp_path)

        assert os.environ["IMPORT_TEST_KEPT"] == "process"
        assert os.environ["IMPORT_TEST_NEW"] == "file"


class TestImportSettings:
    def test_defaults(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.delenv("CSV_IMPORT_MAX_ROW_ISSUES", raising=False)
        monkeypatch.delenv("CSV_IMPORT_LOG_ROW_ISSUES", raising=False)
        assert get_csv_import_settings() == CSVImportSettings()

    def test_values_from_environment(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("CSV_IMPORT_MAX_ROW_ISSUES", "0")
        monkeypatch.setenv("CSV_IMPORT_LOG_ROW_ISSUES", "off")

        settings = get_csv_import_settings()

        assert settings.max_row_issues == 1
        assert settings.log_row_issues is False

    def test_unparseable_int_falls_back(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("CSV_IMPORT_MAX_ROW_ISSUES", "many")
        assert get_csv_import_settings().max_row_issues == 500


class TestLogLevel:
    @pytest.mark.parametrize("raw, expected", [("debug", "DEBUG"), ("verbose", "INFO"), (" ", "INFO")])
    def test_log_level(self, raw: str, expected: str, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("LOG_LEVEL", raw)
        assert get_log_level() == expected
