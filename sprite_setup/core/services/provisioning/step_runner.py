"""
Step runner — install → authenticate → verify for one step.

Flow:
    PATH → required env → precondition ─ true ─→ verify → Skipped
                                        └ false → install → daemon → authenticate → verify → Installed

Fail-fast: the first install/authenticate command that exits non-zero
raises ExternalCommandFailure and nothing after it runs. Verify is a
confidence check for the operator: its failures are logged and recorded
on the outcome, never raised.
"""

from __future__ import annotations

import logging
import time
from typing import Any, Callable

from sprite_setup.adapters.base import Executor
from sprite_setup.core.config.env_file import SetupConfig
from sprite_setup.core.errors import ExternalCommandFailure, MissingConfiguration, SetupError
from sprite_setup.core.models.action import Command
from sprite_setup.core.models.report import StepOutcome, StepStatus
from sprite_setup.core.models.step import AuthSpec, Step
from sprite_setup.core.services.provisioning.daemon import ensure_daemon
from sprite_setup.core.services.provisioning.precondition import check_precondition
from sprite_setup.core.services.provisioning.prompt import Reader, click_reader, resolve_prompts

logger = logging.getLogger(__name__)

# (event name, payload), rendered by the UI layer
Listener = Callable[[str, dict[str, Any]], None]


def _ignore(event: str, data: dict[str, Any]) -> None:
    pass


def _no_credentials(step: Step, auth: AuthSpec) -> MissingConfiguration:
    needed = sorted({key for v in auth.variants for key in v.requires_env})
    return MissingConfiguration(
        f"No credentials to authenticate {step.label}: set {', '.join(needed)}",
        remediation=step.remediation or [f"export {key}=..." for key in needed],
        step=step.name,
    )


class StepRunner:
    """Run individual steps against one executor and one config."""

    def __init__(
        self,
        executor: Executor,
        config: SetupConfig,
        *,
        reader: Reader = click_reader,
        listener: Listener | None = None,
        dry_run: bool = False,
    ):
        self.executor = executor
        self.config = config
        self.reader = reader
        self.listener = listener or _ignore
        self.dry_run = dry_run

    def _emit(self, event: str, **data: Any) -> None:
        self.listener(event, data)

    def run(self, step: Step) -> StepOutcome:
        """Run one step.

        Raises:
            SetupError: any failure; ``step`` is filled in on the error.
        """
        start = time.monotonic()
        self._emit("step_start", step=step)
        try:
            outcome = self._run(step)
        except SetupError as e:
            e.step = e.step or step.name
            raise
        outcome.duration_ms = int((time.monotonic() - start) * 1000)
        self._emit("step_done", step=step, outcome=outcome)
        return outcome

    def _run(self, step: Step) -> StepOutcome:
        if step.path_entries:
            self.config.prepend_path(step.path_entries)

        missing = self.config.missing(step.required_env)
        if missing:
            raise MissingConfiguration(
                f"{', '.join(missing)} not set (required by {step.label})",
                remediation=step.remediation or [f"export {key}=..." for key in missing],
            )

        if check_precondition(step.precondition, self.executor, self.config):
            logger.info("%s already satisfied — skipping", step.label)
            self._emit("precondition", step=step, satisfied=True)
            verified = None if self.dry_run else self._verify(step)
            return StepOutcome.skipped(step.name, verified=verified)

        self._emit("precondition", step=step, satisfied=False)
        if self.dry_run:
            return StepOutcome(step=step.name, status=StepStatus.PENDING)

        # A mandatory credential that no variant can use stops us before install
        if step.auth and not step.auth.optional and not step.auth.prompts:
            if step.auth.select(self.config.env) is None:
                raise _no_credentials(step, step.auth)

        actions: list[str] = []
        hints = list(step.hints)

        if step.install:
            if check_precondition(step.installed, self.executor, self.config):
                logger.info("%s already installed", step.label)
                self._emit("installed", step=step)
            else:
                self._run_all(step, "install", step.install)
                actions.append("install")

        if step.daemon:
            self._emit("daemon", step=step, name=step.daemon.name)
            if ensure_daemon(step.daemon, self.executor, self.config, step=step.name):
                actions.append("daemon")

        if step.auth:
            if check_precondition(step.auth.check, self.executor, self.config):
                logger.info("%s already authenticated", step.label)
                self._emit("authenticated", step=step)
            else:
                resolve_prompts(step.auth.prompts, self.config, reader=self.reader, step=step.name)
                variant = step.auth.select(self.config.env)
                if variant is None:
                    if not step.auth.optional:
                        raise _no_credentials(step, step.auth)
                    logger.info("%s: no credentials, authentication skipped", step.label)
                    if step.auth.fallback_hint:
                        hints.append(step.auth.fallback_hint)
                    self._emit("auth_skipped", step=step, hint=step.auth.fallback_hint)
                else:
                    self._emit("auth_variant", step=step, variant=variant.name)
                    self._run_all(step, "authenticate", variant.commands)
                    actions.append("authenticate")

        verified = self._verify(step)
        return StepOutcome.installed(step.name, actions=actions, verified=verified, hints=hints)

    def _run_all(self, step: Step, action: str, commands: list[Command]) -> None:
        for command in commands:
            self._emit("action", step=step, action=action, command=command.run)
            receipt = self.executor.run(
                command,
                self.config.env,
                timeout=command.timeout or self.config.settings.command_timeout,
            )
            if receipt.failed:
                raise ExternalCommandFailure(
                    f"{step.label} {action} failed: {command.run} (exit {receipt.returncode})",
                    step=step.name,
                    action=action,
                    command=command.run,
                    returncode=receipt.returncode,
                )

    def _verify(self, step: Step) -> bool | None:
        """Run verify commands; report but never raise on failure."""
        if not step.verify:
            return None

        all_ok = True
        for command in step.verify:
            self._emit("action", step=step, action="verify", command=command.run)
            receipt = self.executor.run(command, self.config.env)
            if receipt.failed:
                all_ok = False
                logger.warning(
                    "%s verify failed: %s (exit %d)",
                    step.label, command.run, receipt.returncode,
                )
            self._emit("verify", step=step, command=command.run, ok=receipt.ok)
        return all_ok
