"""
Tests for executors — mock and real shell, plus precondition probes.
"""

import os
import signal
import subprocess

import pytest

from sprite_setup.adapters import Executor, MockExecutor, ShellExecutor
from sprite_setup.adapters.shell import command as shell_command
from sprite_setup.core.errors import ExternalCommandFailure, MissingConfiguration
from sprite_setup.core.models.action import Command
from sprite_setup.core.services.provisioning.precondition import check_precondition


def _env(**extra):
    return {"PATH": os.environ.get("PATH", "/usr/bin:/bin"), **extra}


# ── Mock Executor ────────────────────────────────────────────────────


class TestMockExecutor:
    def test_is_executor(self):
        mock = MockExecutor()
        assert isinstance(mock, Executor)
        assert mock.name == "mock"
        assert mock.is_available()
        assert "mock" in repr(mock)

    def test_probes_fail_by_default(self):
        mock = MockExecutor()
        assert mock.run(Command(run="gh --version"), {}, capture=True).failed

    def test_default_probe_true(self):
        mock = MockExecutor(default_probe=True)
        assert mock.run(Command(run="gh --version"), {}, capture=True).ok

    def test_actions_succeed_by_default(self):
        mock = MockExecutor()
        receipt = mock.run(Command(run="apt install gh -y"), {})
        assert receipt.ok
        assert receipt.metadata == {"mock": True}
        assert mock.ran("apt install gh -y")

    def test_set_probe(self):
        mock = MockExecutor()
        mock.set_probe("doppler me", True)
        assert mock.run(Command(run="doppler me"), {}, capture=True).ok

    def test_set_failure(self):
        mock = MockExecutor()
        mock.set_failure("apt update", 100)
        receipt = mock.run(Command(run="apt update"), {})
        assert receipt.failed
        assert receipt.returncode == 100

    def test_effects_flip_probes(self):
        mock = MockExecutor()
        mock.add_effect("install tool", {"tool --version": True})
        assert mock.run(Command(run="tool --version"), {}, capture=True).failed
        mock.run(Command(run="install tool"), {})
        assert mock.run(Command(run="tool --version"), {}, capture=True).ok

    def test_records_calls(self):
        mock = MockExecutor()
        mock.run(Command(run="probe"), {}, capture=True)
        mock.run(Command(run="echo {NAME}"), {"NAME": "x"})
        mock.run(Command(run="login", stdin_env="TOKEN"), {"TOKEN": "t"})
        assert mock.commands() == ["probe", "echo {NAME}", "login"]
        assert mock.commands("probe") == ["probe"]
        assert mock.calls[1].rendered == "echo x"
        assert mock.calls[2].stdin == "t\n"
        assert not mock.ran("probe")

    def test_render_errors_propagate(self):
        mock = MockExecutor()
        with pytest.raises(MissingConfiguration):
            mock.run(Command(run="echo {MISSING}"), {})

    def test_spawn(self):
        mock = MockExecutor()
        mock.add_effect("tailscaled", {"pgrep -x tailscaled": True})
        pid = mock.spawn(Command(run="tailscaled"), {})
        assert pid > 0
        assert mock.commands("spawn") == ["tailscaled"]
        assert mock.ran("tailscaled")
        assert mock.run(Command(run="pgrep -x tailscaled"), {}, capture=True).ok

    def test_reset(self):
        mock = MockExecutor()
        mock.set_probe("x", True)
        mock.run(Command(run="x"), {}, capture=True)
        mock.reset()
        assert mock.calls == []
        assert mock.run(Command(run="x"), {}, capture=True).failed


# ── Shell Executor ───────────────────────────────────────────────────


class TestShellExecutor:
    def test_available(self):
        shell = ShellExecutor()
        assert shell.name == "shell"
        assert shell.is_available()

    def test_true(self):
        receipt = ShellExecutor().run(Command(run="true"), _env(), capture=True)
        assert receipt.ok
        assert receipt.returncode == 0

    def test_false(self):
        receipt = ShellExecutor().run(Command(run="false"), _env(), capture=True)
        assert receipt.failed
        assert receipt.returncode == 1

    def test_missing_binary(self):
        receipt = ShellExecutor().run(
            Command(run="sprite-definitely-not-installed --version"), _env(), capture=True,
        )
        assert receipt.failed
        assert receipt.returncode == 127

    def test_pipefail(self):
        receipt = ShellExecutor().run(Command(run="false | cat"), _env(), capture=True)
        assert receipt.failed

    def test_captures_output_and_stderr(self):
        receipt = ShellExecutor().run(
            Command(run="echo out; echo err >&2; exit 3"), _env(), capture=True,
        )
        assert receipt.returncode == 3
        assert receipt.output == "out"
        assert receipt.error == "err"

    def test_uses_given_environment_only(self, monkeypatch):
        monkeypatch.setenv("SPRITE_TEST_AMBIENT", "leak")
        shell = ShellExecutor()
        assert shell.run(Command(run="printenv SPRITE_TEST_AMBIENT"), _env(), capture=True).failed
        receipt = shell.run(Command(run="printenv SPRITE_ONLY"), _env(SPRITE_ONLY="x"), capture=True)
        assert receipt.output == "x"

    def test_stdin_env(self):
        receipt = ShellExecutor().run(
            Command(run="cat", stdin_env="TOKEN"), _env(TOKEN="s3cret"), capture=True,
        )
        assert receipt.output == "s3cret"

    def test_placeholder_is_quoted(self):
        receipt = ShellExecutor().run(
            Command(run="printf %s {NAME}"), _env(NAME="a b; echo pwned"), capture=True,
        )
        assert receipt.output == "a b; echo pwned"

    def test_timeout(self):
        receipt = ShellExecutor().run(Command(run="sleep 5"), _env(), capture=True, timeout=1)
        assert receipt.failed
        assert receipt.returncode == shell_command.TIMEOUT_EXIT_CODE
        assert "timed out" in receipt.error

    def test_spawn_returns_pid(self):
        pid = ShellExecutor().spawn(Command(run="sleep 0"), _env())
        assert isinstance(pid, int)
        assert pid > 0

    def test_spawn_long_running(self):
        pid = ShellExecutor().spawn(Command(run="sleep 5"), _env())
        try:
            assert pid > 0
        finally:
            os.kill(pid, signal.SIGTERM)

    def test_spawn_immediate_failure(self):
        with pytest.raises(ExternalCommandFailure, match="boom") as exc:
            ShellExecutor().spawn(Command(run="echo boom >&2; exit 3"), _env())
        assert exc.value.returncode == 3
        assert exc.value.action == "spawn"


class TestShellPrivilege:
    @pytest.fixture
    def non_root(self, monkeypatch):
        monkeypatch.setattr(shell_command, "_is_root", lambda: False)
        monkeypatch.setattr(shell_command.shutil, "which", lambda name: f"/usr/bin/{name}")

    def test_no_sudo_when_not_requested(self):
        argv = ShellExecutor()._argv(Command(run="x"), "x")
        assert argv == ["bash", "-o", "pipefail", "-c", "x"]

    def test_root_runs_directly(self, monkeypatch):
        monkeypatch.setattr(shell_command, "_is_root", lambda: True)
        argv = ShellExecutor()._argv(Command(run="apt update", sudo=True), "apt update")
        assert argv[0] == "bash"

    def test_non_root_wraps_in_sudo(self, monkeypatch):
        monkeypatch.setattr(shell_command, "_is_root", lambda: False)
        monkeypatch.setattr(shell_command.shutil, "which", lambda name: f"/usr/bin/{name}")
        cmd = Command(run="apt update", sudo=True)
        assert ShellExecutor()._argv(cmd, "apt update")[:3] == ["sudo", "--", "bash"]
        assert ShellExecutor()._argv(cmd, "apt update", non_interactive=True)[:3] == [
            "sudo", "-n", "--",
        ]

    def test_missing_sudo(self, monkeypatch):
        monkeypatch.setattr(shell_command, "_is_root", lambda: False)
        monkeypatch.setattr(shell_command.shutil, "which", lambda name: None)
        with pytest.raises(MissingConfiguration, match="Root privileges required"):
            ShellExecutor()._argv(Command(run="apt update", sudo=True), "apt update")

    def test_spawn_primes_sudo_and_keeps_session(self, non_root, monkeypatch):
        runs = []
        spawned = {}

        class FakePopen:
            pid = 4242

            def __init__(self, argv, **kwargs):
                spawned["argv"] = argv
                spawned["kwargs"] = kwargs

            def wait(self, timeout=None):
                raise subprocess.TimeoutExpired(spawned["argv"], timeout)

        def fake_run(argv, **kwargs):
            runs.append(argv)
            return subprocess.CompletedProcess(argv, 0)

        monkeypatch.setattr(shell_command.subprocess, "run", fake_run)
        monkeypatch.setattr(shell_command.subprocess, "Popen", FakePopen)

        pid = ShellExecutor().spawn(Command(run="tailscaled", sudo=True), _env())
        assert pid == 4242
        assert runs == [["sudo", "-v"]]
        assert spawned["argv"][:3] == ["sudo", "-n", "--"]
        assert spawned["kwargs"]["start_new_session"] is False

    def test_spawn_sudo_refused(self, non_root, monkeypatch):
        def fake_run(argv, **kwargs):
            return subprocess.CompletedProcess(argv, 1)

        def no_popen(*args, **kwargs):
            raise AssertionError("daemon must not start without sudo")

        monkeypatch.setattr(shell_command.subprocess, "run", fake_run)
        monkeypatch.setattr(shell_command.subprocess, "Popen", no_popen)

        with pytest.raises(ExternalCommandFailure, match="sudo authentication failed") as exc:
            ShellExecutor().spawn(Command(run="tailscaled", sudo=True), _env())
        assert exc.value.command == "sudo -v"


# ── Preconditions ────────────────────────────────────────────────────


class TestPrecondition:
    def test_none_is_never_satisfied(self, config, mock):
        assert check_precondition(None, mock, config) is False
        assert mock.calls == []

    def test_probe_captures(self, config, mock):
        mock.set_probe("gh auth status", True)
        assert check_precondition(Command(run="gh auth status"), mock, config)
        assert mock.commands("probe") == ["gh auth status"]

    def test_real_true_and_false(self, config):
        shell = ShellExecutor()
        assert check_precondition(Command(run="true"), shell, config) is True
        assert check_precondition(Command(run="false"), shell, config) is False

    def test_real_missing_tool(self, config):
        probe = Command(run="sprite-definitely-not-installed --version")
        assert check_precondition(probe, ShellExecutor(), config) is False
