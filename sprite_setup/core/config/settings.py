"""
Settings loader — reads the optional sprite.yml into a Settings model.

sprite.yml only tunes the orchestrator (timeouts, secrets file
location, log level). The provisioning steps themselves are fixed in
the catalog and cannot be changed from here.
"""

from __future__ import annotations

import logging
from pathlib import Path

import yaml
from pydantic import BaseModel, ConfigDict, Field

from sprite_setup.core.errors import SettingsError

logger = logging.getLogger(__name__)

# Default settings filename
SETTINGS_FILE = "sprite.yml"


class Settings(BaseModel):
    """Orchestrator tuning knobs."""

    model_config = ConfigDict(extra="forbid")

    env_file: str = ".env"
    log_level: str | None = None
    daemon_timeout: float = Field(default=30.0, gt=0)
    daemon_interval: float = Field(default=1.0, gt=0)
    probe_timeout: int = Field(default=15, gt=0)
    command_timeout: int | None = Field(default=None, gt=0)

    # Directory relative paths are resolved against (set by the loader)
    base_dir: Path = Field(default_factory=Path.cwd, exclude=True)

    def env_file_path(self) -> Path:
        """Absolute path of the secrets file."""
        path = Path(self.env_file).expanduser()
        if not path.is_absolute():
            path = self.base_dir / path
        return path


def find_settings_file(start_dir: Path | None = None) -> Path | None:
    """Search for sprite.yml starting from the given directory, walking up.

    Args:
        start_dir: Directory to start searching from (default: cwd).

    Returns:
        Path to sprite.yml, or None if not found.
    """
    current = (start_dir or Path.cwd()).resolve()

    for _ in range(20):  # safety limit
        candidate = current / SETTINGS_FILE
        if candidate.is_file():
            return candidate
        parent = current.parent
        if parent == current:
            break  # filesystem root
        current = parent

    return None


def load_settings(path: Path | None = None) -> Settings:
    """Load and validate orchestrator settings.

    Args:
        path: Explicit path to sprite.yml. If None, searches upward and
            falls back to defaults when nothing is found.

    Returns:
        Validated Settings model.

    Raises:
        SettingsError: If an explicit file is missing, or any file is invalid.
    """
    explicit = path is not None
    if path is None:
        path = find_settings_file()

    if path is None:
        logger.debug("No %s found — using defaults", SETTINGS_FILE)
        return Settings()

    if not path.is_file():
        if explicit:
            raise SettingsError(f"Settings file not found: {path}")
        return Settings()

    logger.debug("Loading settings from %s", path)

    try:
        raw = path.read_text(encoding="utf-8")
    except OSError as e:
        raise SettingsError(f"Cannot read {path}: {e}") from e

    try:
        data = yaml.safe_load(raw)
    except yaml.YAMLError as e:
        raise SettingsError(f"Invalid YAML in {path}: {e}") from e

    if data is None:
        data = {}
    if not isinstance(data, dict):
        raise SettingsError(f"Expected a YAML mapping in {path}, got {type(data).__name__}")

    try:
        settings = Settings.model_validate({**data, "base_dir": path.parent.resolve()})
    except Exception as e:
        raise SettingsError(f"Invalid settings in {path}: {e}") from e

    logger.info("Loaded settings from %s", path)
    return settings
