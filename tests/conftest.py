"""Shared test fixtures for all tests."""

from pathlib import Path

import pytest

from cliphistory.core.storage import StorageContainer
from cliphistory.utils import ConfigManager

START_MS = 1_700_000_000_000


class FakeClock:
    """Millisecond clock that moves forward one second per reading."""

    def __init__(self, start_ms: int = START_MS, step_ms: int = 1000):
        self.now = start_ms
        self.step_ms = step_ms

    def __call__(self) -> int:
        current = self.now
        self.now += self.step_ms
        return current

    def advance_minutes(self, minutes: float) -> None:
        self.now += int(minutes * 60 * 1000)


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def db_path(tmp_path: Path) -> Path:
    """Path of a fresh database file inside the test's temp directory."""
    return tmp_path / "userdata.db"


@pytest.fixture
def store(db_path: Path, clock: FakeClock):
    """Storage container on a temporary database with a fake clock."""
    container = StorageContainer.open(str(db_path), clock=clock)
    yield container
    container.close()


@pytest.fixture
def config(tmp_path: Path) -> ConfigManager:
    """Configuration backed by a temp settings file (defaults only)."""
    return ConfigManager(config_path=str(tmp_path / "settings.yaml"))


@pytest.fixture
def add_texts(store: StorageContainer, config: ConfigManager):
    """Ingest ``count`` distinct text payloads named after ``prefix``."""

    def _add(prefix: str, count: int) -> None:
        for i in range(count):
            store.add_text(f"{prefix} {i}", None, config)

    return _add
