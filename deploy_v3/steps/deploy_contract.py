"""Step that deploys one contract artifact and records its address."""

from __future__ import annotations

import logging
from typing import Any, Callable, Mapping, Sequence

from deploy_v3.core.config import DeployConfig
from deploy_v3.core.context import DeployContext
from deploy_v3.core.step import StepDefinition
from deploy_v3.exceptions import SubmissionError
from deploy_v3.types import StepOutcome, StepResult
from deploy_v3.utils.logging import log_with_context

ArgumentsFn = Callable[[Mapping[str, Any], DeployConfig], Sequence[Any]]
LibrariesFn = Callable[[Mapping[str, Any], DeployConfig], Mapping[str, str]]


class DeployContractStep(StepDefinition):
    """Deploy ``artifact`` with computed constructor arguments and libraries.

    The step is complete once an address is recorded under ``key``.
    """

    def __init__(
        self,
        key: str,
        artifact: str,
        compute_arguments: ArgumentsFn | None = None,
        compute_libraries: LibrariesFn | None = None,
        requires: Sequence[str] = (),
    ) -> None:
        self.key = key
        self.artifact = artifact
        self.description = f"Contract {artifact}"
        self.requires = tuple(requires)
        self._compute_arguments = compute_arguments
        self._compute_libraries = compute_libraries

    def compute_arguments(
        self, state: Mapping[str, Any], config: DeployConfig
    ) -> list[Any]:
        if self._compute_arguments is None:
            return []
        return list(self._compute_arguments(state, config))

    def compute_libraries(
        self, state: Mapping[str, Any], config: DeployConfig
    ) -> dict[str, str]:
        if self._compute_libraries is None:
            return {}
        return dict(self._compute_libraries(state, config))

    def replay(self, state: Mapping[str, Any]) -> tuple[StepResult, ...]:
        return (
            StepResult(
                key=self.key,
                message=f"Contract {self.artifact} was already deployed",
                address=state[self.key],
            ),
        )

    def execute(
        self, state: Mapping[str, Any], ctx: DeployContext, args: list[Any]
    ) -> StepOutcome:
        libraries = self.compute_libraries(state, ctx.config)
        artifact = ctx.artifacts.get(self.artifact)
        data = artifact.deploy_data(args, libraries)

        try:
            tx = ctx.broadcaster.deploy(data, ctx.gas_price)
        except Exception as e:
            log_with_context(
                logging.ERROR,
                f"Failed to deploy {self.artifact}: {e}",
                step=self.key,
            )
            raise

        if not tx.contract_address:
            raise SubmissionError(
                f"Deployment of {self.artifact} returned no contract address ({tx.hash})"
            )

        log_with_context(
            logging.INFO,
            f"Contract {self.artifact} deploying at {tx.contract_address} ({tx.hash})",
            step=self.key,
        )
        return StepOutcome(
            delta={self.key: tx.contract_address},
            results=(
                StepResult(
                    key=self.key,
                    message=f"Contract {self.artifact} deployed",
                    hash=tx.hash,
                    address=tx.contract_address,
                ),
            ),
        )
