"""
Console rendering for phase runs.

The orchestrator emits progress events; ``ConsoleRenderer`` turns them
into the colored lines an operator watches while tools install.
Errors and their remediation commands go to stderr.
"""

from __future__ import annotations

from typing import Any

import click

from sprite_setup.core.errors import MissingConfiguration, SetupError
from sprite_setup.core.models.report import PhaseReport, StepStatus

_STATUS_ICONS = {
    StepStatus.SKIPPED: ("⊘", "cyan"),
    StepStatus.INSTALLED: ("✓", "green"),
    StepStatus.FAILED: ("✗", "red"),
    StepStatus.PENDING: ("…", "yellow"),
}


class ConsoleRenderer:
    """Listener that prints orchestrator events as they happen.

    Args:
        quiet: Only print step results and errors.
        show_commands: Echo each install/authenticate command line.
    """

    def __init__(self, *, quiet: bool = False, show_commands: bool = False):
        self.quiet = quiet
        self.show_commands = show_commands

    def __call__(self, event: str, data: dict[str, Any]) -> None:
        handler = getattr(self, f"_on_{event}", None)
        if handler is not None:
            handler(**data)

    # ── Phase ───────────────────────────────────────────────────

    def _on_phase_start(self, phase, **_: Any) -> None:
        if self.quiet:
            return
        click.secho(f"\n=== {phase.title} ===", fg="cyan", bold=True)
        if phase.description:
            click.echo(f"   {phase.description}")

    def _on_env_loaded(self, path, count, **_: Any) -> None:
        if not self.quiet:
            click.echo(f"   Loaded {count} variables from {path.name}")

    def _on_phase_failed(self, error: SetupError, **_: Any) -> None:
        print_error(error)

    def _on_phase_done(self, phase, report: PhaseReport, **_: Any) -> None:
        print_summary(report, quiet=self.quiet)

    # ── Step ────────────────────────────────────────────────────

    def _on_step_start(self, step, **_: Any) -> None:
        if not self.quiet:
            click.secho(f"\n→ {step.label}", fg="white", bold=True)

    def _on_precondition(self, step, satisfied: bool, **_: Any) -> None:
        if not self.quiet and satisfied:
            click.echo("   already set up")

    def _on_installed(self, step, **_: Any) -> None:
        if not self.quiet:
            click.echo("   already installed")

    def _on_daemon(self, step, name: str, **_: Any) -> None:
        if not self.quiet:
            click.echo(f"   ensuring {name} is running")

    def _on_authenticated(self, step, **_: Any) -> None:
        if not self.quiet:
            click.echo("   already authenticated")

    def _on_auth_variant(self, step, variant: str, **_: Any) -> None:
        if not self.quiet:
            click.echo(f"   authenticating ({variant})")

    def _on_auth_skipped(self, step, hint: str, **_: Any) -> None:
        if not self.quiet:
            click.secho("   ⚠️  no credentials, authentication skipped", fg="yellow")

    def _on_action(self, step, action: str, command: str, **_: Any) -> None:
        if self.show_commands and not self.quiet:
            click.secho(f"   $ {command}", dim=True)

    def _on_verify(self, step, command: str, ok: bool, **_: Any) -> None:
        if not ok:
            click.secho(f"   ⚠️  verify failed: {command}", fg="yellow")

    def _on_step_done(self, step, outcome, **_: Any) -> None:
        icon, color = _STATUS_ICONS[outcome.status]
        click.secho(f"   {icon} {step.label} {outcome.status.value}", fg=color)


def print_error(error: SetupError) -> None:
    """Print a phase-ending error and the commands that fix it."""
    where = f" [{error.step}]" if error.step else ""
    click.secho(f"❌ Error{where}: {error.message}", fg="red", bold=True, err=True)
    if isinstance(error, MissingConfiguration) and error.remediation:
        click.echo("\nRun:", err=True)
        for line in error.remediation:
            click.echo(f"   {line}", err=True)


def print_summary(report: PhaseReport, *, quiet: bool = False) -> None:
    """Print the end-of-phase summary and next steps."""
    if report.dry_run:
        pending = [o.step for o in report.outcomes if o.status == StepStatus.PENDING]
        if pending:
            click.secho(f"\n⚠️  Would install: {', '.join(pending)}", fg="yellow", bold=True)
        else:
            click.secho("\n✅ Everything already set up", fg="green", bold=True)
        return

    click.secho(
        f"\n✅ {report.phase} complete "
        f"({report.installed} installed, {report.skipped} already set up)",
        fg="green",
        bold=True,
    )
    if quiet or not report.next_steps:
        return

    click.secho("\nNext steps:", fg="cyan", bold=True)
    for line in report.next_steps:
        click.echo(f"   {line}")
    click.echo()
