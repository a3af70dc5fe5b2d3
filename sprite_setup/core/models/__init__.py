"""
Domain models — Pydantic types for the bootstrap orchestrator.

All models are re-exported here for convenient access:

    from sprite_setup.core.models import Command, Step, Phase, PhaseReport
"""

from sprite_setup.core.models.action import Command, Receipt
from sprite_setup.core.models.report import (
    PhaseReport,
    PhaseState,
    StepOutcome,
    StepStatus,
)
from sprite_setup.core.models.step import (
    AuthSpec,
    AuthVariant,
    DaemonSpec,
    Phase,
    PromptSpec,
    Step,
)

__all__ = [
    # step.py
    "AuthSpec",
    "AuthVariant",
    # action.py
    "Command",
    "DaemonSpec",
    "Phase",
    # report.py
    "PhaseReport",
    "PhaseState",
    "PromptSpec",
    "Receipt",
    "Step",
    "StepOutcome",
    "StepStatus",
]
