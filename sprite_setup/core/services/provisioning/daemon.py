"""
Daemon supervision — make sure a background process is up before use.

If the process isn't running it is started detached, then its readiness
probe is polled until it passes or the timeout expires. There is no
fixed sleep: the wait ends as soon as the daemon answers.
"""

from __future__ import annotations

import logging

from sprite_setup.adapters.base import Executor
from sprite_setup.core.config.env_file import SetupConfig
from sprite_setup.core.errors import DaemonTimeout
from sprite_setup.core.models.step import DaemonSpec
from sprite_setup.core.reliability.wait import WaitTimeout, wait_for
from sprite_setup.core.services.provisioning.precondition import check_precondition

logger = logging.getLogger(__name__)


def ensure_daemon(
    spec: DaemonSpec,
    executor: Executor,
    config: SetupConfig,
    *,
    step: str = "",
) -> bool:
    """Start ``spec`` if needed and wait until it is ready.

    Returns:
        True if the daemon had to be started, False if it was already running.

    Raises:
        ExternalCommandFailure: the start command failed outright.
        DaemonTimeout: the readiness probe never passed.
    """
    if check_precondition(spec.running, executor, config):
        logger.info("%s already running", spec.name)
        return False

    logger.info("Starting %s", spec.name)
    executor.spawn(spec.start, config.env)

    timeout = spec.timeout if spec.timeout is not None else config.settings.daemon_timeout
    interval = spec.interval if spec.interval is not None else config.settings.daemon_interval

    try:
        wait_for(
            lambda: check_precondition(spec.ready, executor, config),
            timeout=timeout,
            interval=interval,
            description=spec.name,
        )
    except WaitTimeout as e:
        raise DaemonTimeout(
            f"{spec.name} did not become ready within {timeout:g}s",
            step=step,
            action="daemon",
            command=spec.ready.run,
            returncode=1,
        ) from e

    logger.info("%s is ready", spec.name)
    return True
