"""
Logging configuration — set up once by the CLI entry point.

Every module does ``logger = logging.getLogger(__name__)`` and inherits
this config. Logs go to stderr so they never interleave with the vendor
installers' own stdout.

Levels are resolved in precedence order:
    --debug  >  --verbose  >  --quiet  >  SPRITE_LOG_LEVEL  >  sprite.yml  >  WARNING

Optional file output via SPRITE_LOG_FILE / SPRITE_LOG_FILE_LEVEL.
"""

from __future__ import annotations

import logging
import os
import sys

# ── Format strings ──────────────────────────────────────────────

_FMT_MINIMAL = "%(message)s"

_FMT_VERBOSE = "%(asctime)s [%(name)s] %(message)s"
_DATEFMT_VERBOSE = "%H:%M:%S"

_FMT_DEBUG = "%(asctime)s %(levelname)-5s %(name)s:%(lineno)d — %(message)s"
_DATEFMT_DEBUG = "%H:%M:%S"

_FMT_FILE = "%(asctime)s %(levelname)-5s %(name)s:%(lineno)d — %(message)s"
_DATEFMT_FILE = "%Y-%m-%d %H:%M:%S"

LOG_LEVEL_ENV = "SPRITE_LOG_LEVEL"
LOG_FILE_ENV = "SPRITE_LOG_FILE"
LOG_FILE_LEVEL_ENV = "SPRITE_LOG_FILE_LEVEL"


def resolve_level(
    *,
    debug: bool = False,
    verbose: bool = False,
    quiet: bool = False,
    configured: str | None = None,
) -> str:
    """Pick the console log level from flags, env, and settings."""
    if debug:
        return "DEBUG"
    if verbose:
        return "INFO"
    if quiet:
        return "ERROR"
    return os.environ.get(LOG_LEVEL_ENV) or configured or "WARNING"


def setup_logging(
    level: str = "WARNING",
    log_file: str | None = None,
    log_file_level: str | None = None,
) -> None:
    """Configure Python logging for the entire process.

    Args:
        level: Log level name (DEBUG, INFO, WARNING, ERROR, CRITICAL).
        log_file: Optional path to a log file.
        log_file_level: Optional separate level for the log file.
            Defaults to the same as ``level``.
    """
    numeric_level = _parse_level(level)

    # ── Console handler (stderr) ────────────────────────────────
    if numeric_level <= logging.DEBUG:
        fmt, datefmt = _FMT_DEBUG, _DATEFMT_DEBUG
    elif numeric_level <= logging.INFO:
        fmt, datefmt = _FMT_VERBOSE, _DATEFMT_VERBOSE
    else:
        fmt, datefmt = _FMT_MINIMAL, None

    console = logging.StreamHandler(sys.stderr)
    console.setLevel(numeric_level)
    console.setFormatter(logging.Formatter(fmt, datefmt=datefmt))

    root = logging.getLogger()
    root.handlers.clear()
    root.addHandler(console)

    effective_level = numeric_level

    # ── File handler (optional) ─────────────────────────────────
    if log_file:
        file_level = _parse_level(log_file_level) if log_file_level else numeric_level
        effective_level = min(effective_level, file_level)

        fh = logging.FileHandler(log_file, encoding="utf-8")
        fh.setLevel(file_level)
        fh.setFormatter(logging.Formatter(_FMT_FILE, datefmt=_DATEFMT_FILE))
        root.addHandler(fh)

    root.setLevel(effective_level)

    logging.raiseExceptions = False


def _parse_level(level: str | None) -> int:
    """Convert a level name string to its numeric constant."""
    if not level:
        return logging.WARNING
    numeric = getattr(logging, level.upper(), None)
    if not isinstance(numeric, int):
        return logging.WARNING
    return numeric
