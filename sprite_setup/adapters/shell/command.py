"""
Shell executor — runs commands through bash on the local machine.

The single place where ``subprocess`` is called. Each Command is one
bash line run with ``pipefail``, so ``curl ... | sh`` fails when either
side does.

Privilege:
- ``Command.sudo`` is the only way a command gets root.
- Already root → no prefix.
- Otherwise the whole line is wrapped in ``sudo``. No sudo binary is a
  configuration error, not a silent downgrade.
- A privileged ``spawn`` first runs ``sudo -v`` on the terminal, then
  starts ``sudo -n`` in the same session so the cached login applies.
"""

from __future__ import annotations

import logging
import os
import shutil
import subprocess
import tempfile
import time
from typing import Mapping

from sprite_setup.adapters.base import Executor
from sprite_setup.core.errors import ExternalCommandFailure, MissingConfiguration
from sprite_setup.core.models.action import Command, Receipt

logger = logging.getLogger(__name__)

_SHELL = "bash"

# Exit code reported for commands killed by our own timeout (matches coreutils timeout)
TIMEOUT_EXIT_CODE = 124

# Seconds a spawned command is watched for an immediate failure
SPAWN_GRACE = 0.5


def _is_root() -> bool:
    return os.geteuid() == 0


class ShellExecutor(Executor):
    """Execute commands with bash and report Receipts."""

    @property
    def name(self) -> str:
        return "shell"

    def is_available(self) -> bool:
        return shutil.which(_SHELL) is not None

    def _argv(self, command: Command, script: str, *, non_interactive: bool = False) -> list[str]:
        argv = [_SHELL, "-o", "pipefail", "-c", script]
        if not command.sudo or _is_root():
            return argv

        if shutil.which("sudo") is None:
            raise MissingConfiguration(
                f"Root privileges required for: {command.run}",
                remediation=["apt-get install -y sudo  # as root", "or rerun this command as root"],
            )
        prefix = ["sudo", "-n"] if non_interactive else ["sudo"]
        return prefix + ["--"] + argv

    def run(
        self,
        command: Command,
        env: Mapping[str, str],
        *,
        capture: bool = False,
        timeout: int | None = None,
    ) -> Receipt:
        script = command.render(env)
        argv = self._argv(command, script)
        stdin_data = command.stdin_data(env)
        timeout = timeout if timeout is not None else command.timeout

        logger.debug("Executing: %s (sudo=%s, capture=%s)", command.run, command.sudo, capture)
        start = time.monotonic()

        try:
            result = subprocess.run(
                argv,
                env=dict(env),
                input=stdin_data,
                stdin=subprocess.DEVNULL if (capture and stdin_data is None) else None,
                capture_output=capture,
                text=True,
                timeout=timeout,
            )
        except subprocess.TimeoutExpired:
            return Receipt.failure(
                command.run,
                TIMEOUT_EXIT_CODE,
                error=f"Command timed out after {timeout}s",
                duration_ms=int((time.monotonic() - start) * 1000),
            )

        elapsed_ms = int((time.monotonic() - start) * 1000)
        output = (result.stdout or "").strip()

        if result.returncode == 0:
            return Receipt.success(command.run, output=output, duration_ms=elapsed_ms)

        stderr = (result.stderr or "").strip()
        return Receipt.failure(
            command.run,
            result.returncode,
            error=stderr[-2000:] or f"Command exited with code {result.returncode}",
            output=output,
            duration_ms=elapsed_ms,
        )

    def spawn(self, command: Command, env: Mapping[str, str]) -> int:
        script = command.render(env)
        argv = self._argv(command, script, non_interactive=True)
        sudo = argv[0] == "sudo"

        if sudo:
            # Cache credentials while we own the terminal. The child keeps
            # our session and tty so sudo -n finds the same ticket.
            primed = subprocess.run(["sudo", "-v"], check=False)
            if primed.returncode != 0:
                raise ExternalCommandFailure(
                    f"sudo authentication failed, cannot start: {command.run}",
                    action="spawn",
                    command="sudo -v",
                    returncode=primed.returncode,
                )

        log = tempfile.NamedTemporaryFile(
            mode="w+", prefix="sprite-setup-", suffix=".log", delete=False,
        )
        logger.debug("Spawning: %s (log: %s)", command.run, log.name)

        with log:
            proc = subprocess.Popen(
                argv,
                env=dict(env),
                stdin=subprocess.DEVNULL,
                stdout=log,
                stderr=subprocess.STDOUT,
                start_new_session=not sudo,
            )
            try:
                returncode = proc.wait(timeout=SPAWN_GRACE)
            except subprocess.TimeoutExpired:
                returncode = None

            if returncode:
                log.seek(0)
                tail = log.read().strip()[-2000:]
                raise ExternalCommandFailure(
                    f"Background command exited with code {returncode}: {command.run}"
                    + (f"\n{tail}" if tail else ""),
                    action="spawn",
                    command=command.run,
                    returncode=returncode,
                )

        logger.info("Started background process %d: %s (log: %s)", proc.pid, command.run, log.name)
        return proc.pid
