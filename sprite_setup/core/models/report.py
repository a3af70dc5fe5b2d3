"""
Run outcome models — what happened to each step and to the phase.
"""

from __future__ import annotations

from enum import Enum
from typing import Any

from pydantic import BaseModel, Field


class StepStatus(str, Enum):
    SKIPPED = "skipped"        # precondition already held
    INSTALLED = "installed"    # install and/or authenticate ran
    FAILED = "failed"
    PENDING = "pending"        # --check: would install


class PhaseState(str, Enum):
    """Lifecycle of a phase run.

    not_started → tools_installing ⇄ authenticating → complete
    Any state may transition to failed; failed and complete are terminal.
    """

    NOT_STARTED = "not_started"
    TOOLS_INSTALLING = "tools_installing"
    AUTHENTICATING = "authenticating"
    COMPLETE = "complete"
    FAILED = "failed"


class StepOutcome(BaseModel):
    """Per-step result."""

    step: str
    status: StepStatus
    actions: list[str] = Field(default_factory=list)   # "install", "daemon", "authenticate"
    verified: bool | None = None                        # None = verify didn't run
    reason: str = ""
    hints: list[str] = Field(default_factory=list)
    duration_ms: int = 0

    @classmethod
    def skipped(cls, step: str, **kwargs: Any) -> StepOutcome:
        return cls(step=step, status=StepStatus.SKIPPED, **kwargs)

    @classmethod
    def installed(cls, step: str, **kwargs: Any) -> StepOutcome:
        return cls(step=step, status=StepStatus.INSTALLED, **kwargs)

    @classmethod
    def failed(cls, step: str, reason: str, **kwargs: Any) -> StepOutcome:
        return cls(step=step, status=StepStatus.FAILED, reason=reason, **kwargs)


class PhaseReport(BaseModel):
    """Result of running one phase.

    The overall result is the first failed outcome, or success when
    every step completed (skips included).
    """

    phase: str
    state: PhaseState = PhaseState.NOT_STARTED
    dry_run: bool = False
    outcomes: list[StepOutcome] = Field(default_factory=list)
    error: dict[str, Any] | None = None
    exit_code: int = 0
    next_steps: list[str] = Field(default_factory=list)

    @property
    def ok(self) -> bool:
        return self.state == PhaseState.COMPLETE

    @property
    def first_failure(self) -> StepOutcome | None:
        for outcome in self.outcomes:
            if outcome.status == StepStatus.FAILED:
                return outcome
        return None

    @property
    def skipped(self) -> int:
        return sum(1 for o in self.outcomes if o.status == StepStatus.SKIPPED)

    @property
    def installed(self) -> int:
        return sum(1 for o in self.outcomes if o.status == StepStatus.INSTALLED)

    def to_dict(self) -> dict[str, Any]:
        data = self.model_dump(mode="json")
        data["summary"] = {
            "total": len(self.outcomes),
            "skipped": self.skipped,
            "installed": self.installed,
            "failed": 1 if self.first_failure else 0,
        }
        return data
