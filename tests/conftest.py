"""
Shared test fixtures and configuration.
"""

import os
from pathlib import Path

import pytest

from sprite_setup.adapters.mock import MockExecutor
from sprite_setup.core.config.env_file import SetupConfig
from sprite_setup.core.config.settings import Settings


@pytest.fixture
def settings(tmp_path: Path) -> Settings:
    """Settings with short daemon waits so timeouts resolve quickly."""
    return Settings(daemon_timeout=0.05, daemon_interval=0.01, base_dir=tmp_path)


@pytest.fixture
def config(tmp_path: Path, settings: Settings) -> SetupConfig:
    """A SetupConfig isolated from the real process environment."""
    env = {
        "PATH": os.environ.get("PATH", "/usr/bin:/bin"),
        "HOME": str(tmp_path),
        "USER": "sprite",
    }
    return SetupConfig(env=env, env_file=tmp_path / ".env", settings=settings)


@pytest.fixture
def mock() -> MockExecutor:
    """Mock executor: every probe fails, every action succeeds."""
    return MockExecutor()


@pytest.fixture
def write_env(tmp_path: Path):
    """Write a .env file into tmp_path and return its path."""

    def _write(content: str, name: str = ".env") -> Path:
        path = tmp_path / name
        path.write_text(content)
        return path

    return _write


@pytest.fixture
def events():
    """Listener that records (event, data) pairs."""

    class Recorder(list):
        def __call__(self, event, data):
            self.append((event, data))

        def __bool__(self):
            return True

        def names(self):
            return [name for name, _ in self]

    return Recorder()
