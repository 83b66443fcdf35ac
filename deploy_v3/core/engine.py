"""
Migration engine: drives the fixed step list one step at a time.

For every step, in declaration order, the engine runs the step, merges the
returned delta into the state, hands the complete state to the state-change
callback for persistence and only then yields the step's result batch. The
caller waits for confirmations between batches; the next step does not start
until the caller asks for the next batch.
"""

from __future__ import annotations

import logging
from typing import Any, Iterator, Mapping, Sequence

from deploy_v3.core.context import DeployContext
from deploy_v3.core.state import MigrationState
from deploy_v3.core.step import StepDefinition, StepRunner
from deploy_v3.exceptions import PlanError
from deploy_v3.types import StateChangeCallback, StepBatch
from deploy_v3.utils.logging import log_with_context


def check_plan(steps: Sequence[StepDefinition]) -> None:
    """Validate a step list without running it.

    Every key must be unique and every declared requirement must be written
    by an earlier step. The declared order is never changed.

    Raises:
        PlanError: If the plan violates either rule.
    """
    produced: set[str] = set()
    seen: set[str] = set()
    for step in steps:
        if not step.key:
            raise PlanError(f"{step!r} has no key")
        if step.key in seen:
            raise PlanError(f"Duplicate step key: {step.key}")
        seen.add(step.key)

        unknown = [k for k in step.requires if k not in produced]
        if unknown:
            raise PlanError(
                f"Step {step.key} requires {', '.join(unknown)}, "
                "which no earlier step produces"
            )
        produced.update(step.writes)


def _ignore_state_change(state: Mapping[str, Any]) -> None:
    return None


class MigrationEngine:
    """Runs a fixed, ordered list of steps against a resumable state.

    The engine is an iterator of ``StepBatch`` objects, one per step. It can be
    consumed with a ``for`` loop or pulled explicitly with ``next_batch()``.
    ``state`` always reflects everything merged so far, including after a
    failure, and ``failed_step`` names the step that raised.
    """

    def __init__(
        self,
        steps: Sequence[StepDefinition],
        ctx: DeployContext,
        initial_state: Mapping[str, Any] | None = None,
        on_state_change: StateChangeCallback | None = None,
    ) -> None:
        keys = [s.key for s in steps]
        duplicates = sorted({k for k in keys if keys.count(k) > 1})
        if duplicates:
            raise PlanError(f"Duplicate step keys: {', '.join(duplicates)}")

        self.steps: tuple[StepDefinition, ...] = tuple(steps)
        self.state = MigrationState(initial_state)
        self.runner = StepRunner(ctx)
        self.on_state_change = on_state_change or _ignore_state_change
        self.visited: list[str] = []
        self.failed_step: str | None = None
        self._batches = self._drive()

    def __iter__(self) -> Iterator[StepBatch]:
        return self

    def __next__(self) -> StepBatch:
        return next(self._batches)

    def next_batch(self) -> StepBatch | None:
        """Run the next step and return its batch, or None once all steps ran."""
        return next(self._batches, None)

    def _drive(self) -> Iterator[StepBatch]:
        total = len(self.steps)
        for index, step in enumerate(self.steps, start=1):
            try:
                outcome = self.runner.run(step, self.state)
            except Exception as e:
                self.failed_step = step.key
                log_with_context(
                    logging.ERROR,
                    f"Step {index}/{total} ({step.key}) failed: {e}",
                    step=step.key,
                )
                raise

            if outcome.delta:
                self.state.merge(outcome.delta)
            self.visited.append(step.key)

            # Persist before yielding: a crash while the caller waits for
            # confirmations must not lose this step's record.
            try:
                self.on_state_change(self.state.snapshot())
            except Exception as e:
                self.failed_step = step.key
                log_with_context(
                    logging.ERROR,
                    f"Failed to persist state after step {step.key}: {e}",
                    step=step.key,
                )
                raise

            log_with_context(
                logging.DEBUG,
                f"Step {index}/{total} ({step.key}) "
                f"{'skipped' if outcome.skipped else 'submitted'}",
                step=step.key,
            )
            yield StepBatch(
                index=index,
                key=step.key,
                results=tuple(outcome.results),
                skipped=outcome.skipped,
            )
