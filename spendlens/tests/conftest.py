"""Shared pytest fixtures for spendlens tests."""

from __future__ import annotations

from collections.abc import Callable, Iterator
from pathlib import Path

import pytest

from spendlens.runtime import load_description_preferences, load_description_rule_table, reset_paths

FIXTURES_DIR = Path(__file__).parent / "fixtures"


@pytest.fixture
def fixture_text() -> Callable[[str], str]:
    """Read a text fixture from tests/fixtures/."""

    def _read(name: str) -> str:
        return (FIXTURES_DIR / name).read_text(encoding="utf-8")

    return _read


@pytest.fixture
def project_root(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Iterator[Path]:
    """Point SPENDLENS_HOME at an empty temporary project."""
    monkeypatch.setenv("SPENDLENS_HOME", str(tmp_path))
    reset_paths()
    load_description_rule_table.cache_clear()
    load_description_preferences.cache_clear()
    yield tmp_path
    reset_paths()
    load_description_rule_table.cache_clear()
    load_description_preferences.cache_clear()
