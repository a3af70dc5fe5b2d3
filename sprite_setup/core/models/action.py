"""
Command and Receipt models — the execution contract.

Commands describe an external invocation (a bash line, optionally with
elevated privileges). Receipts describe what happened when an executor
ran one. Executors return Receipts for non-zero exits; they only raise
when the process could not be spawned at all.
"""

from __future__ import annotations

import re
import shlex
from datetime import UTC, datetime
from typing import Any, Literal, Mapping

from pydantic import BaseModel, ConfigDict, Field

from sprite_setup.core.errors import MissingConfiguration

# {VAR} placeholders, resolved from the setup environment at run time.
# Shell ${VAR} expansions are left for bash.
_PLACEHOLDER = re.compile(r"(?<!\$)\{([A-Z][A-Z0-9_]*)\}")


def _now_iso() -> str:
    """Current UTC time as ISO string."""
    return datetime.now(UTC).isoformat()


class Command(BaseModel):
    """A single external command.

    ``run`` is one bash line (pipes allowed, executed with pipefail).
    It may reference ``{VAR}`` placeholders; they are substituted
    (shell-quoted) from the setup environment only when the command is
    rendered, so the raw ``run`` text is always safe to display.
    """

    model_config = ConfigDict(frozen=True)

    run: str
    sudo: bool = False              # needs root
    stdin_env: str | None = None    # variable piped to stdin (tokens)
    timeout: int | None = None      # seconds; None = no limit

    @property
    def placeholders(self) -> list[str]:
        """Variable names referenced by ``{VAR}`` placeholders."""
        return _PLACEHOLDER.findall(self.run)

    def render(self, env: Mapping[str, str]) -> str:
        """Substitute placeholders from ``env``.

        Raises:
            MissingConfiguration: a referenced variable is unset or empty.
        """

        def _sub(match: re.Match[str]) -> str:
            name = match.group(1)
            value = env.get(name, "")
            if not value:
                raise MissingConfiguration(
                    f"{name} is required by: {self.run}",
                    remediation=[f"export {name}=..."],
                )
            return shlex.quote(value)

        return _PLACEHOLDER.sub(_sub, self.run)

    def stdin_data(self, env: Mapping[str, str]) -> str | None:
        """Value to pipe to stdin, if this command reads one."""
        if not self.stdin_env:
            return None
        value = env.get(self.stdin_env, "")
        if not value:
            raise MissingConfiguration(
                f"{self.stdin_env} is required by: {self.run}",
                remediation=[f"export {self.stdin_env}=..."],
            )
        return value + "\n"


class Receipt(BaseModel):
    """Result of running a Command."""

    command: str
    status: Literal["ok", "failed"] = "ok"
    returncode: int = 0

    started_at: str = Field(default_factory=_now_iso)
    ended_at: str = Field(default_factory=_now_iso)
    duration_ms: int = 0

    output: str = ""
    error: str | None = None

    metadata: dict[str, Any] = Field(default_factory=dict)

    @property
    def ok(self) -> bool:
        """Whether the command exited zero."""
        return self.status == "ok"

    @property
    def failed(self) -> bool:
        return self.status == "failed"

    @classmethod
    def success(cls, command: str, output: str = "", **kwargs: Any) -> Receipt:
        """Create a success receipt."""
        return cls(command=command, status="ok", returncode=0, output=output, **kwargs)

    @classmethod
    def failure(
        cls,
        command: str,
        returncode: int,
        error: str = "",
        **kwargs: Any,
    ) -> Receipt:
        """Create a failure receipt."""
        return cls(
            command=command,
            status="failed",
            returncode=returncode,
            error=error or f"Command exited with code {returncode}",
            **kwargs,
        )
