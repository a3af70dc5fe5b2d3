"""
Mock executor — test double for every external command.

Used by the test suite and by ``setup --mock`` to walk a phase without
touching the machine. Commands are matched by their raw ``run`` text.

By default every probe fails (nothing is installed) and every action
succeeds. Probes can be pinned, actions can be made to fail, and
effects can flip probes once an action has run, so "install then
re-probe" sequences behave like the real thing.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Mapping

from sprite_setup.adapters.base import Executor
from sprite_setup.core.models.action import Command, Receipt


@dataclass
class MockCall:
    """One recorded executor call."""

    kind: str           # "probe", "run", or "spawn"
    command: str        # raw run text
    rendered: str       # after placeholder substitution
    stdin: str | None = None


class MockExecutor(Executor):
    """Universal mock executor for testing."""

    def __init__(
        self,
        *,
        available: bool = True,
        default_probe: bool = False,
        default_output: str = "[mock] executed",
    ):
        self._available = available
        self._default_probe = default_probe
        self._default_output = default_output
        self._probes: dict[str, bool] = {}
        self._failures: dict[str, int] = {}
        self._effects: dict[str, dict[str, bool]] = {}
        self._calls: list[MockCall] = []
        self._next_pid = 4000

    @property
    def name(self) -> str:
        return "mock"

    @property
    def calls(self) -> list[MockCall]:
        """Every call this mock has received, in order."""
        return self._calls

    def commands(self, kind: str | None = None) -> list[str]:
        """Raw run text of recorded calls, optionally filtered by kind."""
        return [c.command for c in self._calls if kind is None or c.kind == kind]

    def ran(self, run: str) -> bool:
        """Whether ``run`` was executed as an action (not a probe)."""
        return run in self.commands("run") or run in self.commands("spawn")

    def is_available(self) -> bool:
        return self._available

    def set_probe(self, run: str, result: bool) -> None:
        """Pin the result of a probe command."""
        self._probes[run] = result

    def set_failure(self, run: str, returncode: int = 1) -> None:
        """Make an action command exit non-zero."""
        self._failures[run] = returncode

    def add_effect(self, run: str, probes: dict[str, bool]) -> None:
        """After ``run`` succeeds (or is spawned), pin these probe results."""
        self._effects.setdefault(run, {}).update(probes)

    def _apply_effects(self, run: str) -> None:
        for probe, result in self._effects.get(run, {}).items():
            self._probes[probe] = result

    def run(
        self,
        command: Command,
        env: Mapping[str, str],
        *,
        capture: bool = False,
        timeout: int | None = None,
    ) -> Receipt:
        rendered = command.render(env)
        stdin = command.stdin_data(env)
        kind = "probe" if capture else "run"
        self._calls.append(MockCall(kind, command.run, rendered, stdin))

        if command.run in self._failures:
            code = self._failures[command.run]
            return Receipt.failure(command.run, code, metadata={"mock": True})

        if capture:
            ok = self._probes.get(command.run, self._default_probe)
            if not ok:
                return Receipt.failure(command.run, 1, metadata={"mock": True})
            return Receipt.success(command.run, output=self._default_output, metadata={"mock": True})

        self._apply_effects(command.run)
        return Receipt.success(command.run, output=self._default_output, metadata={"mock": True})

    def spawn(self, command: Command, env: Mapping[str, str]) -> int:
        rendered = command.render(env)
        self._calls.append(MockCall("spawn", command.run, rendered))
        self._apply_effects(command.run)
        self._next_pid += 1
        return self._next_pid

    def reset(self) -> None:
        """Clear call log, pinned probes, failures, and effects."""
        self._calls.clear()
        self._probes.clear()
        self._failures.clear()
        self._effects.clear()
