"""
Provisioning catalog — every step and phase. Pure data, no logic.

Phase 1 installs the identity tooling (Doppler for secrets, GitHub CLI
for source control). Phase 2 installs everything that needs secrets
from the .env file Doppler produces in between.

Install commands are Debian/apt specific and delegate to each vendor's
own install script.
"""

from __future__ import annotations

from sprite_setup.core.models.action import Command
from sprite_setup.core.models.step import (
    AuthSpec,
    AuthVariant,
    DaemonSpec,
    Phase,
    PromptSpec,
    Step,
)

# ── Shared remediation ──────────────────────────────────────────

GENERATE_ENV = "doppler secrets substitute .env.example > .env"
ENV_REMEDIATION = ["doppler setup", GENERATE_ENV]

# ── Phase 1: identity / secrets ─────────────────────────────────

DOPPLER = Step(
    name="doppler",
    title="Doppler CLI",
    precondition=Command(run="doppler me"),
    installed=Command(run="doppler --version"),
    install=[
        Command(run="curl -fsSL https://cli.doppler.com/install.sh | sh", sudo=True),
    ],
    auth=AuthSpec(
        check=Command(run="doppler me"),
        variants=[
            # The CLI reads DOPPLER_TOKEN itself; just prove the token works.
            AuthVariant(
                name="token",
                requires_env=["DOPPLER_TOKEN"],
                commands=[Command(run="doppler me")],
            ),
            AuthVariant(name="interactive", commands=[Command(run="doppler login")]),
        ],
    ),
    verify=[Command(run="doppler --version")],
)

_GH_KEYRING = "/usr/share/keyrings/githubcli-archive-keyring.gpg"

GITHUB_CLI = Step(
    name="github-cli",
    title="GitHub CLI",
    precondition=Command(run="gh auth status"),
    installed=Command(run="gh --version"),
    install=[
        Command(
            run=f"curl -fsSL https://cli.github.com/packages/githubcli-archive-keyring.gpg | dd of={_GH_KEYRING}",
            sudo=True,
        ),
        Command(run=f"chmod go+r {_GH_KEYRING}", sudo=True),
        Command(
            run=(
                'echo "deb [arch=$(dpkg --print-architecture) '
                f'signed-by={_GH_KEYRING}] https://cli.github.com/packages stable main" '
                "> /etc/apt/sources.list.d/github-cli.list"
            ),
            sudo=True,
        ),
        Command(run="apt update", sudo=True),
        Command(run="apt install gh -y", sudo=True),
    ],
    auth=AuthSpec(
        check=Command(run="gh auth status"),
        variants=[
            AuthVariant(
                name="token",
                requires_env=["GH_TOKEN"],
                commands=[Command(run="gh auth login --with-token", stdin_env="GH_TOKEN")],
            ),
            AuthVariant(
                name="web",
                commands=[Command(run="gh auth login --web --git-protocol https")],
            ),
        ],
    ),
    verify=[Command(run="gh --version"), Command(run="gh auth status")],
)

# ── Phase 2: tools ──────────────────────────────────────────────

_TS_STATE = "/var/lib/tailscale/tailscaled.state"
_TS_SOCKET = "/var/run/tailscale/tailscaled.sock"

TAILSCALE = Step(
    name="tailscale",
    title="Tailscale",
    required_env=["TAILSCALE_AUTHKEY"],
    remediation=[GENERATE_ENV],
    precondition=Command(run="tailscale status"),
    installed=Command(run="tailscale version"),
    install=[Command(run="curl -fsSL https://tailscale.com/install.sh | sh")],
    # No systemd on the target hosts: run the daemon ourselves.
    daemon=DaemonSpec(
        name="tailscaled",
        running=Command(run="pgrep -x tailscaled"),
        start=Command(run=f"tailscaled --state={_TS_STATE} --socket={_TS_SOCKET}", sudo=True),
        ready=Command(run=f"test -S {_TS_SOCKET}"),
    ),
    auth=AuthSpec(
        check=Command(run="tailscale status"),
        prompts=[
            PromptSpec(
                var="TAILSCALE_HOSTNAME",
                message="Enter hostname for this Tailscale machine",
            ),
        ],
        variants=[
            AuthVariant(
                name="authkey",
                requires_env=["TAILSCALE_AUTHKEY", "TAILSCALE_HOSTNAME"],
                commands=[
                    Command(
                        run="tailscale up --authkey={TAILSCALE_AUTHKEY} --hostname={TAILSCALE_HOSTNAME}",
                        sudo=True,
                    ),
                ],
            ),
        ],
    ),
    verify=[Command(run="tailscale status")],
)

TINYBIRD = Step(
    name="tinybird",
    title="Tinybird CLI",
    path_entries=["~/.local/bin"],
    precondition=Command(run="tb --version"),
    install=[Command(run="curl -fsSL https://tinybird.co | sh")],
    auth=AuthSpec(
        optional=True,
        variants=[
            AuthVariant(
                name="token",
                requires_env=["TINYBIRD_HOST", "TINYBIRD_TOKEN"],
                commands=[
                    Command(run="tb --cloud --host {TINYBIRD_HOST} --token {TINYBIRD_TOKEN} auth info"),
                ],
            ),
        ],
        fallback_hint="Run 'tb login' to authenticate with Tinybird",
    ),
    verify=[Command(run="tb --version")],
)

S2 = Step(
    name="s2",
    title="S2 CLI",
    path_entries=["~/.s2/bin"],
    precondition=Command(run="s2 --version"),
    install=[Command(run="curl -fsSL https://s2.dev/install.sh | bash")],
    verify=[Command(run="s2 --version")],
)

DUCKDB = Step(
    name="duckdb",
    title="DuckDB",
    path_entries=["~/.duckdb/cli/latest"],
    precondition=Command(run="duckdb --version"),
    install=[Command(run="curl -fsSL https://install.duckdb.org | sh")],
    verify=[Command(run="duckdb --version")],
)

DOCKER = Step(
    name="docker",
    title="Docker",
    precondition=Command(run="docker --version"),
    required_env=["USER"],
    remediation=["export USER=$(id -un)"],
    install=[
        Command(run="curl -fsSL https://get.docker.com | sh"),
        # Run docker without sudo; {USER} is expanded before sudo changes it
        Command(run="usermod -aG docker {USER}", sudo=True),
    ],
    hints=["Log out and back in for docker group membership to take effect"],
    verify=[Command(run="docker --version"), Command(run="docker compose version")],
)

# ── Phases ──────────────────────────────────────────────────────

PHASE1 = Phase(
    name="phase1",
    title="Phase 1: Doppler Setup",
    description="Install Doppler/GitHub CLI and authenticate",
    steps=[DOPPLER, GITHUB_CLI],
    next_steps=[
        "doppler setup",
        GENERATE_ENV,
        "setup phase2",
    ],
)

PHASE2 = Phase(
    name="phase2",
    title="Phase 2: Tools Setup",
    description="Install remaining tools (Tailscale, Tinybird, S2, DuckDB, Docker)",
    steps=[TAILSCALE, TINYBIRD, S2, DUCKDB, DOCKER],
    env_file_required=True,
    required_env=["TAILSCALE_AUTHKEY"],
    remediation=ENV_REMEDIATION,
    env_remediation=[GENERATE_ENV],
    next_steps=[
        "Add to your shell profile (~/.zshrc or ~/.bashrc):",
        'export PATH="$HOME/.local/bin:$HOME/.s2/bin:$HOME/.duckdb/cli/latest:$PATH"',
    ],
)

PHASES: dict[str, Phase] = {
    PHASE1.name: PHASE1,
    PHASE2.name: PHASE2,
}

DEFAULT_PHASE = PHASE1.name


def get_phase(name: str) -> Phase | None:
    """Look up a phase by CLI name."""
    return PHASES.get(name)
