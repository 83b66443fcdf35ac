"""Immutable deployment context.

DeployContext bundles everything a step needs besides the migration state:
the static configuration, the broadcaster that submits transactions and the
artifact store. It is created once per run and shared read-only with every
step.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, Protocol

from deploy_v3.core.config import DeployConfig
from deploy_v3.types import PendingTransaction

if TYPE_CHECKING:
    from deploy_v3.services.artifacts import ArtifactStore


class Broadcaster(Protocol):
    """Signs and submits transactions. Submission never waits for confirmation."""

    @property
    def sender(self) -> str:
        """Checksummed address transactions are sent from."""
        ...

    def deploy(self, data: bytes, gas_price: int | None = None) -> PendingTransaction:
        """Submit a contract-creation transaction."""
        ...

    def transact(
        self, to: str, data: bytes, gas_price: int | None = None
    ) -> PendingTransaction:
        """Submit a call transaction to ``to``."""
        ...

    def call(self, to: str, data: bytes) -> bytes:
        """Execute a read-only call against the latest block."""
        ...


@dataclass(frozen=True)
class DeployContext:
    """Immutable context for a deployment run. Created once, shared everywhere."""

    config: DeployConfig
    broadcaster: Broadcaster
    artifacts: ArtifactStore

    @property
    def gas_price(self) -> int | None:
        return self.config.gas_price_wei
