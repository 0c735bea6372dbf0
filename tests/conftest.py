"""Shared pytest fixtures."""

import pytest

from aurum.modules.config import AurumConfig
from tests.fakes import FakeBuilder, FakeDatabase, FakeInstaller, FakeMetadata, FakeSource


@pytest.fixture(autouse=True)
def quiet_logging(monkeypatch):
    """Keep test runs away from the user's log file and console."""
    monkeypatch.setenv("AURUM_LOGGING_LOG_TO_FILE", "false")
    monkeypatch.setenv("AURUM_LOGGING_LOG_TO_CONSOLE", "false")


@pytest.fixture
def settings(tmp_path):
    cfg = AurumConfig(locations=[])
    cfg.set("paths", "cache_dir", str(tmp_path / "cache"))
    cfg.set("paths", "build_dir", str(tmp_path / "build"))
    return cfg


@pytest.fixture
def cache_dir(tmp_path):
    path = tmp_path / "cache"
    path.mkdir(exist_ok=True)
    return path


@pytest.fixture
def database():
    return FakeDatabase()


@pytest.fixture
def installer(database):
    return FakeInstaller(database)


@pytest.fixture
def world(database, installer):
    """An empty AUR, trusted repo and system, wired together."""
    recipes = {}
    return {
        "database": database,
        "installer": installer,
        "recipes": recipes,
        "metadata": FakeMetadata(recipes),
        "source": FakeSource(recipes),
        "builder": FakeBuilder(database),
    }
