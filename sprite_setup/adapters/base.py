"""
Executor base — the contract between the orchestrator and the outside world.

Every install, authenticate, verify, and probe goes through an
Executor. The orchestrator never calls ``subprocess`` itself, which is
what lets the whole run be exercised against MockExecutor.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Mapping

from sprite_setup.core.models.action import Command, Receipt


class Executor(ABC):
    """Abstract base class for command executors.

    A non-zero exit is a normal result, captured in the Receipt.
    Executors only raise when the command could not be started at all
    (``OSError``) or could not be rendered (``MissingConfiguration``),
    and ``spawn`` raises when the background command dies on start.
    """

    @property
    @abstractmethod
    def name(self) -> str:
        """The executor identifier (e.g. 'shell', 'mock')."""

    @abstractmethod
    def is_available(self) -> bool:
        """Whether this executor can run commands on this machine."""

    @abstractmethod
    def run(
        self,
        command: Command,
        env: Mapping[str, str],
        *,
        capture: bool = False,
        timeout: int | None = None,
    ) -> Receipt:
        """Run a command to completion.

        Args:
            command: What to run.
            env: Complete environment for the child process.
            capture: Capture output instead of passing it through to the
                operator's terminal. Probes capture; actions don't.
            timeout: Seconds before giving up (overrides ``command.timeout``).
        """

    @abstractmethod
    def spawn(self, command: Command, env: Mapping[str, str]) -> int:
        """Start a command in the background and return its pid.

        Raises:
            ExternalCommandFailure: the command could not be authorised
                or exited non-zero right after starting.
        """

    def __repr__(self) -> str:
        return f"<{self.__class__.__name__} name={self.name!r}>"
