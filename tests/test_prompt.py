"""
Tests for interactive prompts — single-shot values fed into auth commands.
"""

import pytest

from sprite_setup.core.errors import InvalidInput
from sprite_setup.core.models import PromptSpec
from sprite_setup.core.services.provisioning import catalog
from sprite_setup.core.services.provisioning.prompt import prompt_value, resolve_prompts
from sprite_setup.core.services.provisioning.step_runner import StepRunner

HOSTNAME = PromptSpec(var="TAILSCALE_HOSTNAME", message="Enter hostname for this Tailscale machine")


def _answer(value):
    asked = []

    def reader(message):
        asked.append(message)
        return value

    reader.asked = asked
    return reader


class TestPromptValue:
    def test_trims(self):
        assert prompt_value("Name", reader=_answer("  dev-box \n")) == "dev-box"

    def test_passes_message(self):
        reader = _answer("x")
        prompt_value("Enter hostname", reader=reader)
        assert reader.asked == ["Enter hostname"]

    @pytest.mark.parametrize("answer", ["", "   ", "\t\n"])
    def test_empty_rejected(self, answer):
        with pytest.raises(InvalidInput, match="cannot be empty"):
            prompt_value("Enter hostname for this Tailscale machine", reader=_answer(answer))

    def test_none_rejected(self):
        with pytest.raises(InvalidInput):
            prompt_value("Name", reader=_answer(None))


class TestResolvePrompts:
    def test_sets_value(self, config):
        resolve_prompts([HOSTNAME], config, reader=_answer("sprite-01"))
        assert config.get("TAILSCALE_HOSTNAME") == "sprite-01"

    def test_environment_value_wins(self, config):
        config.set_value("TAILSCALE_HOSTNAME", "preset")
        reader = _answer("ignored")
        resolve_prompts([HOSTNAME], config, reader=reader)
        assert reader.asked == []
        assert config.get("TAILSCALE_HOSTNAME") == "preset"

    def test_error_names_step(self, config):
        with pytest.raises(InvalidInput) as exc:
            resolve_prompts([HOSTNAME], config, reader=_answer(""), step="tailscale")
        assert exc.value.step == "tailscale"


class TestTailscaleHostname:
    def _mock(self, mock):
        daemon = catalog.TAILSCALE.daemon
        mock.add_effect(daemon.start.run, {daemon.running.run: True, daemon.ready.run: True})
        return mock

    def test_hostname_reaches_auth_command(self, mock, config):
        config.set_value("TAILSCALE_AUTHKEY", "tskey-auth-123")
        reader = _answer("  my-sprite ")
        StepRunner(self._mock(mock), config, reader=reader).run(catalog.TAILSCALE)

        assert reader.asked == ["Enter hostname for this Tailscale machine"]
        up = [c for c in mock.calls if c.command.startswith("tailscale up")]
        assert len(up) == 1
        assert up[0].rendered == "tailscale up --authkey=tskey-auth-123 --hostname=my-sprite"

    def test_empty_hostname_aborts(self, mock, config):
        config.set_value("TAILSCALE_AUTHKEY", "tskey-auth-123")
        with pytest.raises(InvalidInput) as exc:
            StepRunner(self._mock(mock), config, reader=_answer("")).run(catalog.TAILSCALE)
        assert exc.value.step == "tailscale"
        assert not any(c.startswith("tailscale up") for c in mock.commands())
