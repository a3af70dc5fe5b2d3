"""
Environment loader — merges the secrets file into a SetupConfig.

The secrets file is a ``KEY=VALUE`` file written by the secrets
manager between phases (``doppler secrets substitute .env.example > .env``).
Values from the file override the process environment, matching what
``set -a; source .env`` would do in a shell.

Nothing here writes to ``os.environ``. The merged mapping lives on the
SetupConfig and is handed to every subprocess explicitly.
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Mapping

from sprite_setup.core.config.settings import Settings
from sprite_setup.core.errors import MissingConfiguration

logger = logging.getLogger(__name__)


def parse_env_file(path: Path) -> dict[str, str]:
    """Parse a .env file into a key/value dict.

    Handles:
    - KEY=value
    - KEY="value"
    - KEY='value'
    - export KEY=value
    - Comments (#)
    - Empty lines
    """
    result: dict[str, str] = {}

    content = path.read_text(encoding="utf-8")

    for line in content.splitlines():
        line = line.strip()
        if not line or line.startswith("#"):
            continue

        # Strip optional 'export'
        if line.startswith("export "):
            line = line[7:].strip()

        if "=" not in line:
            logger.debug("Ignoring malformed line in %s", path.name)
            continue

        key, _, value = line.partition("=")
        key = key.strip()
        value = value.strip()
        if not key:
            continue

        # Remove surrounding quotes
        if len(value) >= 2 and value[0] == value[-1] and value[0] in ('"', "'"):
            value = value[1:-1]

        result[key] = value

    return result


@dataclass
class SetupConfig:
    """Everything the orchestrator knows about its environment.

    Threaded through every component instead of ambient process state.
    ``env`` is written once at load time; afterwards only prompted
    values (``set_value``) and PATH extensions (``prepend_path``) are
    added.
    """

    env: dict[str, str] = field(default_factory=dict)
    env_file: Path | None = None
    loaded_env_file: bool = False
    loaded_keys: list[str] = field(default_factory=list)
    settings: Settings = field(default_factory=Settings)

    def get(self, key: str, default: str = "") -> str:
        return self.env.get(key, default)

    def has(self, key: str) -> bool:
        """Whether ``key`` is set to a non-empty value."""
        return bool(self.env.get(key))

    def missing(self, keys: list[str]) -> list[str]:
        """Subset of ``keys`` that are unset or empty."""
        return [key for key in keys if not self.has(key)]

    def set_value(self, key: str, value: str) -> None:
        """Record an interactively supplied value."""
        self.env[key] = value

    def prepend_path(self, entries: list[str]) -> None:
        """Put directories at the front of PATH (once each, in order)."""
        current = [p for p in self.env.get("PATH", "").split(os.pathsep) if p]
        expanded = [os.path.expanduser(e) for e in entries]
        for entry in reversed(expanded):
            if entry in current:
                current.remove(entry)
            current.insert(0, entry)
        self.env["PATH"] = os.pathsep.join(current)


def load_environment(
    path: Path,
    *,
    base: Mapping[str, str] | None = None,
    required: bool = False,
    remediation: list[str] | None = None,
    settings: Settings | None = None,
) -> SetupConfig:
    """Build a SetupConfig from the process environment plus a secrets file.

    Args:
        path: Location of the secrets file.
        base: Starting environment (default: a copy of ``os.environ``).
        required: If True, a missing file is an error.
        remediation: Commands that produce the file, shown when it's missing.
        settings: Orchestrator settings to carry along.

    Raises:
        MissingConfiguration: ``required`` and the file does not exist.
    """
    env = dict(os.environ if base is None else base)
    config = SetupConfig(env=env, env_file=path, settings=settings or Settings())

    if not path.is_file():
        if required:
            raise MissingConfiguration(
                f"{path.name} file not found at {path}",
                remediation=remediation or [],
            )
        logger.debug("No secrets file at %s — continuing without it", path)
        return config

    values = parse_env_file(path)
    env.update(values)
    config.loaded_env_file = True
    config.loaded_keys = sorted(values)
    logger.info("Loaded %d variables from %s", len(values), path.name)
    return config
