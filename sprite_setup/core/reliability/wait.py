"""
Bounded wait — poll a named condition until it holds or time runs out.

Used wherever the orchestrator must wait for something it started
(a background daemon) to become usable. Never waits blindly: every
wait has a condition, an interval, and a deadline, and a missed
deadline is an explicit failure.
"""

from __future__ import annotations

import logging
import time
from typing import Callable

logger = logging.getLogger(__name__)


class WaitTimeout(TimeoutError):
    """The condition did not hold before the deadline."""

    def __init__(self, description: str, timeout: float, attempts: int) -> None:
        super().__init__(
            f"Timed out after {timeout:g}s waiting for {description} ({attempts} checks)"
        )
        self.description = description
        self.timeout = timeout
        self.attempts = attempts


def wait_for(
    condition: Callable[[], bool],
    *,
    timeout: float,
    interval: float = 1.0,
    description: str = "condition",
    clock: Callable[[], float] = time.monotonic,
    sleep: Callable[[float], None] = time.sleep,
) -> int:
    """Poll ``condition`` every ``interval`` seconds, up to ``timeout``.

    The condition is always checked at least once, and once more at the
    deadline, so a zero timeout degenerates to a single check.

    Returns:
        Number of checks it took.

    Raises:
        WaitTimeout: the condition never held.
    """
    deadline = clock() + timeout
    attempts = 0

    while True:
        attempts += 1
        if condition():
            logger.debug("%s ready after %d check(s)", description, attempts)
            return attempts

        remaining = deadline - clock()
        if remaining <= 0:
            raise WaitTimeout(description, timeout, attempts)

        sleep(min(interval, remaining))
