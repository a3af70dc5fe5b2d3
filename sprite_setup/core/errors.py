"""
Error taxonomy — every failure that ends a phase.

All errors are fatal to the running phase. Nothing here is retried or
rolled back; a rerun relies on step preconditions to skip work that
already succeeded.

Each error carries the exit code the CLI should terminate with, and
the name of the step it happened in (empty for phase-level gating).
"""

from __future__ import annotations


class SetupError(Exception):
    """Base class for all phase-ending failures."""

    exit_code: int = 1

    def __init__(self, message: str, *, step: str = "") -> None:
        super().__init__(message)
        self.message = message
        self.step = step

    def to_dict(self) -> dict:
        return {
            "type": type(self).__name__,
            "message": self.message,
            "step": self.step,
            "exit_code": self.exit_code,
        }


class MissingConfiguration(SetupError):
    """A required file or variable is absent.

    Always carries the exact commands the operator should run to fix it.
    """

    def __init__(
        self,
        message: str,
        *,
        remediation: list[str] | None = None,
        step: str = "",
    ) -> None:
        super().__init__(message, step=step)
        self.remediation = list(remediation or [])

    def to_dict(self) -> dict:
        data = super().to_dict()
        data["remediation"] = self.remediation
        return data


class ExternalCommandFailure(SetupError):
    """An install/authenticate subprocess returned non-zero.

    The command's own exit code becomes the process exit code.
    """

    def __init__(
        self,
        message: str,
        *,
        step: str = "",
        action: str = "",
        command: str = "",
        returncode: int = 1,
    ) -> None:
        super().__init__(message, step=step)
        self.action = action
        self.command = command
        self.returncode = returncode

    @property
    def exit_code(self) -> int:  # type: ignore[override]
        # Signals surface as negative return codes
        return self.returncode if self.returncode > 0 else 1

    def to_dict(self) -> dict:
        data = super().to_dict()
        data.update(
            action=self.action,
            command=self.command,
            returncode=self.returncode,
        )
        return data


class DaemonTimeout(ExternalCommandFailure):
    """A background daemon never reported ready within its timeout."""

    @property
    def exit_code(self) -> int:  # type: ignore[override]
        return 1


class InvalidInput(SetupError):
    """The operator supplied an empty or unusable value at a prompt."""


class SettingsError(SetupError):
    """sprite.yml exists but cannot be parsed or validated."""
