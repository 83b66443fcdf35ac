"""Step definitions and the runner that executes one step against the state.

A step is identified by a stable ``key``. The runner asks the step whether
the state already satisfies it; if so, the recorded result is replayed and
nothing is submitted. Otherwise the step's arguments are computed from the
read-only state and configuration, its actions are submitted, and the runner
hands back the state delta and result batch for the engine to merge.
"""

from __future__ import annotations

import logging
from typing import Any, Mapping

from deploy_v3.core.config import DeployConfig
from deploy_v3.core.context import DeployContext
from deploy_v3.core.state import MigrationState
from deploy_v3.exceptions import PlanError, PrerequisiteError
from deploy_v3.types import StepOutcome, StepResult
from deploy_v3.utils.logging import log_with_context


def require(state: Mapping[str, Any], key: str, label: str) -> Any:
    """Return ``state[key]`` or fail with a missing-prerequisite error."""
    value = state.get(key)
    if value in (None, ""):
        raise PrerequisiteError(f"Missing {label}")
    return value


class StepDefinition:
    """Base class for one unit of deployable work.

    Subclasses set ``key`` and implement ``execute``. ``requires`` lists the
    state keys the step reads; they are checked before arguments are computed.
    ``writes`` lists the keys the step's delta may contain (``key`` by default).
    """

    key: str = ""
    description: str = ""
    requires: tuple[str, ...] = ()

    @property
    def writes(self) -> tuple[str, ...]:
        return (self.key,)

    def is_complete(self, state: Mapping[str, Any]) -> bool:
        """Whether the recorded state already satisfies this step."""
        return state.get(self.key) not in (None, "")

    def replay(self, state: Mapping[str, Any]) -> tuple[StepResult, ...]:
        """Results reported for a step that is already complete."""
        return (
            StepResult(
                key=self.key,
                message=f"{self.description or self.key} already complete",
            ),
        )

    def compute_arguments(self, state: Mapping[str, Any], config: DeployConfig) -> Any:
        """Derive the step's inputs. Must not have side effects."""
        return ()

    def execute(
        self, state: Mapping[str, Any], ctx: DeployContext, args: Any
    ) -> StepOutcome:
        raise NotImplementedError

    def __repr__(self) -> str:
        return f"{type(self).__name__}(key={self.key!r})"


class StepRunner:
    """Runs a single step: skip check, prerequisites, arguments, submission."""

    def __init__(self, ctx: DeployContext) -> None:
        self.ctx = ctx

    def run(self, step: StepDefinition, state: MigrationState) -> StepOutcome:
        view = state.view()

        if step.is_complete(view):
            log_with_context(
                logging.DEBUG, f"Step {step.key} already complete, skipping", step=step.key
            )
            return StepOutcome(results=tuple(step.replay(view)), skipped=True)

        missing = [k for k in step.requires if view.get(k) in (None, "")]
        if missing:
            raise PrerequisiteError(
                f"Step {step.key} is missing prerequisite state: {', '.join(missing)}"
            )

        args = step.compute_arguments(view, self.ctx.config)
        log_with_context(
            logging.DEBUG, f"Executing step {step.key} with arguments {args!r}", step=step.key
        )
        outcome = step.execute(view, self.ctx, args)

        unexpected = set(outcome.delta) - set(step.writes)
        if unexpected:
            raise PlanError(
                f"Step {step.key} wrote keys it does not own: {', '.join(sorted(unexpected))}"
            )
        return outcome
