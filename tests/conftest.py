from __future__ import annotations

from datetime import timedelta
from pathlib import Path
import sys


import pytest


# Ensure the repository root (parent of ./tests) is importable during pytest collection.
# This avoids ModuleNotFoundError for imports like `import persistence...` under pytest import modes
# that don't automatically prepend the cwd/rootdir to sys.path.
REPO_ROOT = Path(__file__).resolve().parents[1]
if str(REPO_ROOT) not in sys.path:
    sys.path.insert(0, str(REPO_ROOT))


class FakeClock:
    """Wall clock in epoch seconds that only moves when told to."""

    def __init__(self, start: float = 1_700_000_000.0) -> None:
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, **kwargs: float) -> None:
        self.now += timedelta(**kwargs).total_seconds()


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def cache_path(tmp_path: Path) -> Path:
    return tmp_path / "data" / "cache.json"


@pytest.fixture
def favorites_path(tmp_path: Path) -> Path:
    return tmp_path / "data" / "favorites.json"


@pytest.fixture
def sandbox_env(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> Path:
    """
    Point every RECIPE_* setting at a temp directory so tests never touch real ./data.
    """
    for name in (
        "RECIPE_CACHE_FILE",
        "RECIPE_FAVORITES_FILE",
        "RECIPE_CACHE_TTL_SECONDS",
        "RECIPE_FAVORITES_ID_FIELD",
        "RECIPE_SWEEP_ON_STARTUP",
        "RECIPE_LOG_LEVEL",
    ):
        monkeypatch.delenv(name, raising=False)
    data = tmp_path / "data"
    monkeypatch.setenv("RECIPE_DATA_DIR", str(data))
    monkeypatch.chdir(tmp_path)
    return data
