"""
Entry point wiring the Uniswap V3 plan to the migration engine.
"""

from __future__ import annotations

from typing import Any, Mapping, Sequence

from deploy_v3.core.config import DeployConfig
from deploy_v3.core.context import Broadcaster, DeployContext
from deploy_v3.core.engine import MigrationEngine, check_plan
from deploy_v3.core.step import StepDefinition
from deploy_v3.services.artifacts import ArtifactStore
from deploy_v3.steps import MIGRATION_STEPS
from deploy_v3.types import StateChangeCallback


def deploy(
    config: DeployConfig,
    broadcaster: Broadcaster,
    initial_state: Mapping[str, Any] | None = None,
    on_state_change: StateChangeCallback | None = None,
    artifacts: ArtifactStore | None = None,
    steps: Sequence[StepDefinition] = MIGRATION_STEPS,
) -> MigrationEngine:
    """Create an engine that deploys ``steps`` (the full V3 plan by default).

    Nothing runs until the caller pulls the first batch from the returned
    engine.

    Args:
        config: Validated static deployment parameters.
        broadcaster: Submits transactions on behalf of the deployer.
        initial_state: Previously persisted state to resume from.
        on_state_change: Called with the complete state after every step.
        artifacts: Artifact store; defaults to ``config.artifacts_dir``.
        steps: The ordered step list.

    Returns:
        A MigrationEngine yielding one result batch per step.
    """
    check_plan(steps)
    ctx = DeployContext(
        config=config,
        broadcaster=broadcaster,
        artifacts=artifacts or ArtifactStore(config.artifacts_dir),
    )
    return MigrationEngine(
        steps,
        ctx,
        initial_state=initial_state,
        on_state_change=on_state_change,
    )
