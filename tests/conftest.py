"""Pytest configuration and fixtures."""

from __future__ import annotations

import os
import sys
from collections.abc import Callable
from pathlib import Path

import pytest

# Project root
PROJECT_ROOT = Path(__file__).parent.parent

# Add src to the Python path (development checkout)
SRC_DIR = PROJECT_ROOT / "src"
if str(SRC_DIR) not in sys.path:
    sys.path.insert(0, str(SRC_DIR))

FAKE_FINDER_PATH = PROJECT_ROOT / "tests" / "fixtures" / "fake_finder.py"


@pytest.fixture
def fake_finder() -> Callable[..., list[str]]:
    """Build a launcher command for the fake finder.

    Example:
        command = fake_finder("--mode", "pick", "--pick", "orange")
    """

    def make(*args: str) -> list[str]:
        return [sys.executable, str(FAKE_FINDER_PATH), *args]

    return make


@pytest.fixture(autouse=True)
def clean_env(monkeypatch: pytest.MonkeyPatch):
    """Drop FUZZY_PICK_* variables and reset the cached config per test."""
    for key in list(os.environ):
        if key.startswith("FUZZY_PICK_"):
            monkeypatch.delenv(key, raising=False)

    from fuzzy_pick.config import reload_config

    reload_config()
    yield
    reload_config()
