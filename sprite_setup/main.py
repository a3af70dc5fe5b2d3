"""
Sprite Setup — CLI entrypoint.

Usage:
    setup --help
    setup phase1
    setup phase2 --check
    python -m sprite_setup.main phase1
"""

from __future__ import annotations

import json
import os
import sys
from pathlib import Path

import click

from sprite_setup import __version__
from sprite_setup.adapters import Executor, MockExecutor, ShellExecutor
from sprite_setup.core.config.settings import load_settings
from sprite_setup.core.errors import SetupError
from sprite_setup.core.observability.logging_config import (
    LOG_FILE_ENV,
    LOG_FILE_LEVEL_ENV,
    resolve_level,
    setup_logging,
)
from sprite_setup.core.services.provisioning import DEFAULT_PHASE, PHASES, PhaseOrchestrator
from sprite_setup.ui.cli.output import ConsoleRenderer, print_error


def _mock_executor() -> MockExecutor:
    """Mock executor where every daemon comes up as soon as it is spawned."""
    executor = MockExecutor()
    for phase in PHASES.values():
        for step in phase.steps:
            if step.daemon:
                executor.add_effect(
                    step.daemon.start.run,
                    {step.daemon.running.run: True, step.daemon.ready.run: True},
                )
    return executor


class SetupCommand(click.Command):
    """Usage errors (unknown options, extra arguments) exit 1 like an unknown phase."""

    def parse_args(self, ctx: click.Context, args: list[str]) -> list[str]:
        try:
            return super().parse_args(ctx, args)
        except click.UsageError as e:
            e.exit_code = 1
            raise


@click.command(cls=SetupCommand, context_settings={"help_option_names": ["-h", "--help"]})
@click.version_option(version=__version__, prog_name="setup")
@click.argument("phase", required=False, default=DEFAULT_PHASE, metavar="[phase1|phase2]")
@click.option("--verbose", "-v", is_flag=True, help="Enable verbose output.")
@click.option("--quiet", "-q", is_flag=True, help="Suppress non-essential output.")
@click.option("--debug", is_flag=True, help="Enable debug logging (very verbose).")
@click.option(
    "--config",
    "-c",
    "config_path",
    type=click.Path(exists=False),
    default=None,
    help="Path to sprite.yml (default: auto-detect).",
)
@click.option(
    "--env-file",
    "env_file",
    type=click.Path(exists=False),
    default=None,
    help="Secrets file to load (default: .env).",
)
@click.option("--check", is_flag=True, help="Only report what would be installed.")
@click.option("--mock", is_flag=True, help="Use the mock executor (runs nothing).")
@click.option("--json-output", "--json", "as_json", is_flag=True, help="Output as JSON.")
@click.pass_context
def cli(
    ctx: click.Context,
    phase: str,
    verbose: bool,
    quiet: bool,
    debug: bool,
    config_path: str | None,
    env_file: str | None,
    check: bool,
    mock: bool,
    as_json: bool,
) -> None:
    """Sprite Setup - Install and configure development tools.

    \b
    Phases:
      phase1   Install Doppler and GitHub CLI, then authenticate (default)
      phase2   Install Tailscale, Tinybird, S2, DuckDB and Docker (needs .env)

    \b
    Workflow:
      1. setup phase1
      2. doppler setup
      3. doppler secrets substitute .env.example > .env
      4. setup phase2

    \b
    Environment variables:
      GH_TOKEN             GitHub token (optional; browser login otherwise)
      TAILSCALE_AUTHKEY    Tailscale auth key (required for phase2)
      TAILSCALE_HOSTNAME   Tailscale machine name (prompted when unset)
      TINYBIRD_HOST        Tinybird API host (optional)
      TINYBIRD_TOKEN       Tinybird token (optional)
    """
    if phase not in PHASES:
        click.secho(f"Error: Unknown phase '{phase}'", fg="red", err=True)
        click.echo(ctx.get_help(), err=True)
        ctx.exit(1)

    try:
        settings = load_settings(Path(config_path) if config_path else None)
    except SetupError as e:
        print_error(e)
        sys.exit(e.exit_code)

    # ── Logging setup (once, at process start) ──────────────────
    setup_logging(
        level=resolve_level(
            debug=debug, verbose=verbose, quiet=quiet, configured=settings.log_level,
        ),
        log_file=os.environ.get(LOG_FILE_ENV),
        log_file_level=os.environ.get(LOG_FILE_LEVEL_ENV),
    )

    executor: Executor = _mock_executor() if mock else ShellExecutor()
    if not executor.is_available():
        click.secho(f"❌ Executor '{executor.name}' is not available (bash not found)", fg="red", err=True)
        sys.exit(1)

    orchestrator = PhaseOrchestrator(
        executor,
        settings=settings,
        env_file=Path(env_file) if env_file else None,
        listener=None if as_json else ConsoleRenderer(quiet=quiet, show_commands=verbose or debug),
        dry_run=check,
    )

    try:
        report = orchestrator.run(phase)
    except OSError as e:
        click.secho(f"❌ Cannot run command: {e}", fg="red", err=True)
        sys.exit(1)

    if as_json:
        click.echo(json.dumps(report.to_dict(), indent=2))

    sys.exit(report.exit_code)


if __name__ == "__main__":
    cli()
