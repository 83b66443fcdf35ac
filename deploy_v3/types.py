"""Shared type definitions for the deployment tool.

Plain dataclasses for the records flowing between steps, the runner, the
engine and the caller, plus TypedDicts for the JSON shapes read from disk
or returned by the RPC node.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Callable, Mapping, TypedDict

# ---------------------------------------------------------------------------
# Step output types
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class StepResult:
    """One outcome of executing (or replaying) a step's action."""

    key: str
    message: str
    hash: str | None = None
    address: str | None = None

    def to_dict(self) -> dict[str, Any]:
        """Return a JSON-friendly dict, omitting empty fields."""
        data: dict[str, Any] = {"key": self.key, "message": self.message}
        if self.hash is not None:
            data["hash"] = self.hash
        if self.address is not None:
            data["address"] = self.address
        return data


@dataclass(frozen=True)
class StepOutcome:
    """What a single step run produced: its state delta and result batch."""

    delta: dict[str, Any] = field(default_factory=dict)
    results: tuple[StepResult, ...] = ()
    skipped: bool = False


@dataclass(frozen=True)
class PendingTransaction:
    """A submitted, not yet confirmed transaction."""

    hash: str
    contract_address: str | None = None


StateChangeCallback = Callable[[Mapping[str, Any]], None]


# ---------------------------------------------------------------------------
# On-disk and on-wire shapes
# ---------------------------------------------------------------------------


class LinkReference(TypedDict):
    """Byte offset of a library placeholder inside deployment bytecode."""

    start: int
    length: int


class ArtifactJson(TypedDict, total=False):
    """A Hardhat-style compiled contract artifact."""

    contractName: str
    sourceName: str
    abi: list[dict[str, Any]]
    bytecode: str
    linkReferences: dict[str, dict[str, list[LinkReference]]]


class TransactionReceipt(TypedDict, total=False):
    """The subset of ``eth_getTransactionReceipt`` fields the tool reads."""

    transactionHash: str
    blockNumber: str
    status: str
    contractAddress: str | None
    gasUsed: str


@dataclass(frozen=True)
class StepBatch:
    """The result batch the engine yields for one step, in declaration order."""

    index: int
    key: str
    results: tuple[StepResult, ...]
    skipped: bool = False

    def __iter__(self):
        return iter(self.results)

    def __len__(self) -> int:
        return len(self.results)

    @property
    def hashes(self) -> list[str]:
        return [r.hash for r in self.results if r.hash]
