"""
Step and Phase models — the provisioning sequence, expressed as data.

A Step describes the lifecycle of one external tool: how to tell it is
already in place, how to install it, how to authenticate it, and how to
show the operator that it works. A Phase is an ordered list of steps
plus the configuration that must exist before the first one runs.

Steps and phases are defined statically in the catalog and never
mutated at runtime.
"""

from __future__ import annotations

from typing import Mapping

from pydantic import BaseModel, ConfigDict, Field, field_validator

from sprite_setup.core.models.action import Command


class PromptSpec(BaseModel):
    """A single free-text value requested from the operator."""

    model_config = ConfigDict(frozen=True)

    var: str            # environment variable the answer is stored under
    message: str


class AuthVariant(BaseModel):
    """One way of authenticating a tool.

    A variant is eligible when every variable in ``requires_env`` is
    present and non-empty.
    """

    model_config = ConfigDict(frozen=True)

    name: str
    requires_env: list[str] = Field(default_factory=list)
    commands: list[Command]

    def eligible(self, env: Mapping[str, str]) -> bool:
        return all(env.get(key) for key in self.requires_env)


class AuthSpec(BaseModel):
    """Authentication for a step, polymorphic over its variants.

    Variants are tried in declaration order; the first eligible one
    runs. When none is eligible an ``optional`` auth is skipped (and
    ``fallback_hint`` is surfaced); a mandatory one is a configuration
    error.
    """

    model_config = ConfigDict(frozen=True)

    check: Command | None = None    # "already authenticated?" probe
    variants: list[AuthVariant]
    prompts: list[PromptSpec] = Field(default_factory=list)
    optional: bool = False
    fallback_hint: str = ""

    def select(self, env: Mapping[str, str]) -> AuthVariant | None:
        """Pick the first eligible variant, or None."""
        for variant in self.variants:
            if variant.eligible(env):
                return variant
        return None


class DaemonSpec(BaseModel):
    """A background process a step needs running before it authenticates."""

    model_config = ConfigDict(frozen=True)

    name: str
    running: Command                # probe: is the process alive?
    start: Command                  # spawned detached, never awaited
    ready: Command                  # probe: is it accepting requests?
    timeout: float | None = None    # seconds; None = use settings default
    interval: float | None = None


class Step(BaseModel):
    """The unit of provisioning work for one external tool."""

    model_config = ConfigDict(frozen=True)

    name: str                       # stable id, e.g. "github-cli"
    title: str = ""                 # display name, e.g. "GitHub CLI"

    precondition: Command | None = None     # fully satisfied → Skipped
    installed: Command | None = None        # already installed → skip install only
    install: list[Command] = Field(default_factory=list)
    auth: AuthSpec | None = None
    verify: list[Command] = Field(default_factory=list)

    required_env: list[str] = Field(default_factory=list)
    remediation: list[str] = Field(default_factory=list)   # shown when required_env is missing
    path_entries: list[str] = Field(default_factory=list)
    daemon: DaemonSpec | None = None
    hints: list[str] = Field(default_factory=list)

    @property
    def label(self) -> str:
        return self.title or self.name


class Phase(BaseModel):
    """An ordered group of steps gated by shared configuration."""

    model_config = ConfigDict(frozen=True)

    name: str                       # CLI selector: "phase1", "phase2"
    title: str
    description: str = ""
    steps: list[Step]

    env_file_required: bool = False
    required_env: list[str] = Field(default_factory=list)
    remediation: list[str] = Field(default_factory=list)       # env file missing
    env_remediation: list[str] = Field(default_factory=list)   # required_env missing
    next_steps: list[str] = Field(default_factory=list)

    @field_validator("steps")
    @classmethod
    def _unique_step_names(cls, steps: list[Step]) -> list[Step]:
        seen: set[str] = set()
        for step in steps:
            if step.name in seen:
                raise ValueError(f"Duplicate step name: {step.name}")
            seen.add(step.name)
        return steps

    def get_step(self, name: str) -> Step | None:
        """Look up a step by name."""
        for step in self.steps:
            if step.name == name:
                return step
        return None
