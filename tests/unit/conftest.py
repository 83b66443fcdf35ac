"""Unit test configuration and shared fixtures."""

from __future__ import annotations

from typing import Any

import pytest
from eth_abi import encode
from eth_utils import to_checksum_address

from deploy_v3.core.config import DeployConfig
from deploy_v3.core.context import DeployContext
from deploy_v3.core.step import require
from deploy_v3.services.artifacts import ArtifactStore, ContractArtifact
from deploy_v3.services.rpc import compute_contract_address
from deploy_v3.steps.deploy_contract import DeployContractStep
from deploy_v3.types import PendingTransaction
from tests.conftest import OWNER, SENDER, WETH9, artifact_json, uniswap_artifact_jsons

# ---------------------------------------------------------------------------
# Fake broadcaster
# ---------------------------------------------------------------------------


class FakeBroadcaster:
    """In-memory Broadcaster that records every submission.

    Deployment addresses are derived from the sender and a local nonce, the
    same way a real node assigns them. Read-only calls are answered from
    ``call_results`` keyed by ``(address, selector)``, falling back to
    ``default_results`` keyed by selector alone.
    """

    def __init__(self, sender: str = SENDER) -> None:
        self._sender = sender
        self.nonce = 0
        self.deployments: list[tuple[bytes, int | None]] = []
        self.transactions: list[tuple[str, bytes, int | None]] = []
        self.calls: list[tuple[str, bytes]] = []
        self.call_results: dict[tuple[str, bytes], bytes] = {}
        self.default_results: dict[bytes, bytes] = {}
        self.fail_with: Exception | None = None

    @property
    def sender(self) -> str:
        return self._sender

    @property
    def submissions(self) -> int:
        return len(self.deployments) + len(self.transactions)

    def _next_hash(self) -> str:
        return "0x" + f"{self.submissions + 1:064x}"

    def deploy(self, data: bytes, gas_price: int | None = None) -> PendingTransaction:
        if self.fail_with is not None:
            raise self.fail_with
        tx_hash = self._next_hash()
        address = compute_contract_address(self._sender, self.nonce)
        self.nonce += 1
        self.deployments.append((data, gas_price))
        return PendingTransaction(hash=tx_hash, contract_address=address)

    def transact(
        self, to: str, data: bytes, gas_price: int | None = None
    ) -> PendingTransaction:
        if self.fail_with is not None:
            raise self.fail_with
        tx_hash = self._next_hash()
        self.nonce += 1
        self.transactions.append((to_checksum_address(to), data, gas_price))
        return PendingTransaction(hash=tx_hash)

    def call(self, to: str, data: bytes) -> bytes:
        self.calls.append((to_checksum_address(to), data))
        selector = data[:4]
        key = (to_checksum_address(to), selector)
        if key in self.call_results:
            return self.call_results[key]
        return self.default_results[selector]


# ---------------------------------------------------------------------------
# Builders
# ---------------------------------------------------------------------------


def make_config(**overrides: Any) -> DeployConfig:
    """Build a DeployConfig with test defaults."""
    values: dict[str, Any] = {
        "weth9_address": WETH9,
        "native_currency_label": "ETH",
        "owner_address": OWNER,
    }
    values.update(overrides)
    return DeployConfig(**values)


def simple_artifacts() -> dict[str, ContractArtifact]:
    """Artifacts for the two-step A/B plan: B's constructor takes A's address."""
    return {
        "A": ContractArtifact.from_json(artifact_json("A")),
        "B": ContractArtifact.from_json(artifact_json("B", constructor=["address"])),
    }


def uniswap_artifacts() -> dict[str, ContractArtifact]:
    return {
        name: ContractArtifact.from_json(data)
        for name, data in uniswap_artifact_jsons().items()
    }


def make_ab_steps() -> list[DeployContractStep]:
    """Step A has no dependencies, step B depends on A's recorded address."""
    return [
        DeployContractStep(key="A", artifact="A"),
        DeployContractStep(
            key="B",
            artifact="B",
            compute_arguments=lambda state, config: [require(state, "A", "A")],
        ),
    ]


def encode_result(types: list[str], values: list[Any]) -> bytes:
    return encode(types, values)


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------


@pytest.fixture()
def broadcaster() -> FakeBroadcaster:
    return FakeBroadcaster()


@pytest.fixture()
def config() -> DeployConfig:
    return make_config()


@pytest.fixture()
def ctx(tmp_path, config, broadcaster) -> DeployContext:
    """Context over the simple A/B artifacts."""
    return DeployContext(
        config=config,
        broadcaster=broadcaster,
        artifacts=ArtifactStore(tmp_path, preloaded=simple_artifacts()),
    )


@pytest.fixture()
def uniswap_ctx(tmp_path, config, broadcaster) -> DeployContext:
    """Context over the full V3 artifact set.

    The fake chain reports no 1 bp fee tier yet and the signer as the owner
    of every Ownable contract.
    """
    artifacts = uniswap_artifacts()
    factory = artifacts["UniswapV3Factory"]
    broadcaster.default_results[factory.encode_call("feeAmountTickSpacing", [100])[:4]] = (
        encode_result(["int24"], [0])
    )
    broadcaster.default_results[factory.encode_call("owner")[:4]] = encode_result(
        ["address"], [SENDER]
    )
    return DeployContext(
        config=config,
        broadcaster=broadcaster,
        artifacts=ArtifactStore(tmp_path, preloaded=artifacts),
    )


@pytest.fixture()
def ab_steps() -> list[DeployContractStep]:
    return make_ab_steps()
