"""
Phase orchestrator — runs exactly one phase per invocation.

Flow:
    select phase → load secrets file → check required env → run steps in order → report

Gating happens before the first step: a phase whose secrets file or
required variables are missing fails without installing anything and
without starting any daemon. After that, the first failing step ends
the phase. Completed steps are left as they are; rerunning the phase
skips them through their preconditions.

Phases never chain: between phase 1 and phase 2 the operator has to
run the secrets manager by hand.
"""

from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import Any, Mapping

from sprite_setup.adapters.base import Executor
from sprite_setup.core.config.env_file import SetupConfig, load_environment
from sprite_setup.core.config.settings import Settings
from sprite_setup.core.errors import MissingConfiguration, SetupError
from sprite_setup.core.models.report import PhaseReport, PhaseState, StepOutcome
from sprite_setup.core.models.step import Phase
from sprite_setup.core.services.provisioning.catalog import PHASES
from sprite_setup.core.services.provisioning.prompt import Reader, click_reader
from sprite_setup.core.services.provisioning.step_runner import Listener, StepRunner

logger = logging.getLogger(__name__)

# Which phase state an action puts the run in
_ACTION_STATES = {
    "install": PhaseState.TOOLS_INSTALLING,
    "authenticate": PhaseState.AUTHENTICATING,
}


class PhaseOrchestrator:
    """Drive one phase from gating to report.

    Args:
        executor: Where commands run (ShellExecutor or MockExecutor).
        settings: Orchestrator settings (default: built-in defaults).
        env_file: Secrets file path (default: ``settings.env_file_path()``).
        base_env: Starting environment (default: ``os.environ``).
        reader: Reads operator answers for prompts.
        listener: Receives progress events for display.
        dry_run: Probe preconditions only; install nothing.
        phases: Phase table (default: the built-in catalog).
    """

    def __init__(
        self,
        executor: Executor,
        *,
        settings: Settings | None = None,
        env_file: Path | None = None,
        base_env: Mapping[str, str] | None = None,
        reader: Reader = click_reader,
        listener: Listener | None = None,
        dry_run: bool = False,
        phases: Mapping[str, Phase] | None = None,
    ):
        self.executor = executor
        self.settings = settings or Settings()
        self.env_file = env_file or self.settings.env_file_path()
        self.base_env = dict(os.environ if base_env is None else base_env)
        self.reader = reader
        self.listener = listener
        self.dry_run = dry_run
        self.phases = dict(PHASES if phases is None else phases)
        self.config: SetupConfig | None = None

    def _emit(self, event: str, **data: Any) -> None:
        if self.listener:
            self.listener(event, data)

    def load_config(self, phase: Phase) -> SetupConfig:
        """Load the secrets file and enforce the phase's required configuration.

        Raises:
            MissingConfiguration: secrets file or a required variable is missing.
        """
        config = load_environment(
            self.env_file,
            base=self.base_env,
            required=phase.env_file_required,
            remediation=phase.remediation,
            settings=self.settings,
        )
        if config.loaded_env_file:
            self._emit("env_loaded", path=self.env_file, count=len(config.loaded_keys))

        missing = config.missing(phase.required_env)
        if missing:
            raise MissingConfiguration(
                f"{', '.join(missing)} not found in {self.env_file.name}",
                remediation=phase.env_remediation,
            )
        return config

    def run(self, phase_name: str) -> PhaseReport:
        """Run one phase and report what happened.

        SetupErrors are captured on the report (state ``failed``, the
        error's exit code); they are not re-raised.

        Raises:
            ValueError: ``phase_name`` is not a known phase.
        """
        phase = self.phases.get(phase_name)
        if phase is None:
            raise ValueError(f"Unknown phase: {phase_name}")

        report = PhaseReport(phase=phase.name, dry_run=self.dry_run)
        logger.info("Starting %s (%d steps)", phase.name, len(phase.steps))
        self._emit("phase_start", phase=phase)

        def on_event(event: str, data: dict[str, Any]) -> None:
            if event == "step_start":
                self._transition(report, PhaseState.TOOLS_INSTALLING)
            elif event == "action" and data.get("action") in _ACTION_STATES:
                self._transition(report, _ACTION_STATES[data["action"]])
            self._emit(event, **data)

        try:
            self.config = self.load_config(phase)
            runner = StepRunner(
                self.executor,
                self.config,
                reader=self.reader,
                listener=on_event,
                dry_run=self.dry_run,
            )
            for step in phase.steps:
                report.outcomes.append(runner.run(step))
        except SetupError as e:
            logger.info("%s failed: %s", phase.name, e.message)
            if e.step:
                report.outcomes.append(StepOutcome.failed(e.step, e.message))
            report.error = e.to_dict()
            report.exit_code = e.exit_code
            self._transition(report, PhaseState.FAILED)
            self._emit("phase_failed", phase=phase, error=e, report=report)
            return report

        report.next_steps = self._next_steps(phase, report)
        self._transition(report, PhaseState.COMPLETE)
        logger.info(
            "%s complete: %d installed, %d skipped",
            phase.name, report.installed, report.skipped,
        )
        self._emit("phase_done", phase=phase, report=report)
        return report

    def _transition(self, report: PhaseReport, state: PhaseState) -> None:
        if report.state != state:
            logger.debug("%s: %s → %s", report.phase, report.state.value, state.value)
            report.state = state
            self._emit("state", state=state)

    def _next_steps(self, phase: Phase, report: PhaseReport) -> list[str]:
        lines = list(phase.next_steps)
        for outcome in report.outcomes:
            for hint in outcome.hints:
                if hint not in lines:
                    lines.append(hint)
        return lines
