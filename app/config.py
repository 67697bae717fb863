"""
app/config.py

Environment-driven settings for the import pipeline and the API process.

Variables
---------
CSV_IMPORT_MAX_ROW_ISSUES   row issues kept per import (default 500, minimum 1)
CSV_IMPORT_LOG_ROW_ISSUES   log every row issue (default true)
LOG_LEVEL                   root log level name (default INFO)

Values may also come from ``.env`` / ``.env.local`` at the project root;
variables already set in the process win.
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from functools import lru_cache
from pathlib import Path

PROJECT_ROOT = Path(__file__).resolve().parents[1]
ENV_FILENAMES: tuple[str, ...] = (".env", ".env.local")

_LOG_LEVEL_NAMES = frozenset({"CRITICAL", "ERROR", "WARNING", "INFO", "DEBUG"})
_TRUTHY = frozenset({"1", "true", "yes", "on"})


def parse_env_text(text: str) -> dict[str, str]:
    """
    Parse ``KEY=VALUE`` lines; comments, blanks and lines without ``=`` are ignored.

    Surrounding quotes are stripped from values.
    """

    pairs: dict[str, str] = {}
    for line in text.splitlines():
        line = line.strip()
        if not line or line.startswith("#"):
            continue
        key, sep, value = line.partition("=")
        key = key.strip()
        if sep and key:
            pairs[key] = value.strip().strip('"').strip("'")
    return pairs


def load_env_files(root: Path = PROJECT_ROOT) -> None:
    """
    Copy settings from the project's env files into ``os.environ``.
    """

    for filename in ENV_FILENAMES:
        path = root / filename
        if not path.is_file():
            continue
        for key, value in parse_env_text(path.read_text(encoding="utf-8")).items():
            os.environ.setdefault(key, value)


@lru_cache(maxsize=1)
def _load_env_once() -> None:
    load_env_files()


def _env(name: str) -> str | None:
    _load_env_once()
    value = os.getenv(name)
    if value is None or not value.strip():
        return None
    return value.strip()


def _env_flag(name: str, default: bool) -> bool:
    value = _env(name)
    return default if value is None else value.lower() in _TRUTHY


def _env_int(name: str, default: int) -> int:
    value = _env(name)
    if value is None:
        return default
    try:
        return int(value)
    except ValueError:
        return default


@dataclass(frozen=True)
class CSVImportSettings:
    """How many row issues an import keeps and whether each one is logged."""

    max_row_issues: int = 500
    log_row_issues: bool = True


@lru_cache(maxsize=1)
def get_csv_import_settings() -> CSVImportSettings:
    defaults = CSVImportSettings()
    return CSVImportSettings(
        max_row_issues=max(1, _env_int("CSV_IMPORT_MAX_ROW_ISSUES", defaults.max_row_issues)),
        log_row_issues=_env_flag("CSV_IMPORT_LOG_ROW_ISSUES", defaults.log_row_issues),
    )


def get_log_level() -> str:
    """Root log level name; anything unrecognized means INFO."""
    level = (_env("LOG_LEVEL") or "INFO").upper()
    return level if level in _LOG_LEVEL_NAMES else "INFO"
