"""
Provisioning service — package re-exports.

    from sprite_setup.core.services.provisioning import PhaseOrchestrator

Layers, leaf first: catalog (data) → precondition / prompt / daemon →
step_runner → orchestrator.
"""

# ── Data ──
from sprite_setup.core.services.provisioning.catalog import (  # noqa: F401
    DEFAULT_PHASE,
    PHASES,
    get_phase,
)

# ── Building blocks ──
from sprite_setup.core.services.provisioning.daemon import ensure_daemon  # noqa: F401
from sprite_setup.core.services.provisioning.precondition import (  # noqa: F401
    check_precondition,
)
from sprite_setup.core.services.provisioning.prompt import (  # noqa: F401
    prompt_value,
    resolve_prompts,
)

# ── Orchestration ──
from sprite_setup.core.services.provisioning.orchestrator import (  # noqa: F401
    PhaseOrchestrator,
)
from sprite_setup.core.services.provisioning.step_runner import StepRunner  # noqa: F401
