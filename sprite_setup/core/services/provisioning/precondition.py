"""
Precondition checks — "is this already installed / authenticated?"

A probe is a command whose exit code is the answer. Non-zero exits and
tools missing from PATH (bash exits 127) are a plain ``False``. Only a
failure to start the probe itself (``OSError``) propagates.
"""

from __future__ import annotations

import logging

from sprite_setup.adapters.base import Executor
from sprite_setup.core.config.env_file import SetupConfig
from sprite_setup.core.models.action import Command

logger = logging.getLogger(__name__)


def check_precondition(
    probe: Command | None,
    executor: Executor,
    config: SetupConfig,
) -> bool:
    """Run ``probe`` quietly and report whether it exited zero.

    A missing probe means "never satisfied".
    """
    if probe is None:
        return False

    receipt = executor.run(
        probe,
        config.env,
        capture=True,
        timeout=probe.timeout or config.settings.probe_timeout,
    )
    logger.debug("Probe %r → %s (exit %d)", probe.run, receipt.status, receipt.returncode)
    return receipt.ok
