"""Steps that configure already-deployed contracts.

These read on-chain state before submitting, so a step whose record was
lost still does not submit a transaction that has already landed.
"""

from __future__ import annotations

import logging
from typing import Any, Mapping

from eth_utils import to_checksum_address

from deploy_v3.core.config import DeployConfig
from deploy_v3.core.context import DeployContext
from deploy_v3.core.step import StepDefinition, require
from deploy_v3.exceptions import SubmissionError
from deploy_v3.types import StepOutcome, StepResult
from deploy_v3.utils.logging import log_with_context


class EnableFeeTierStep(StepDefinition):
    """Enable a fee tier on the V3 core factory if it is not enabled yet."""

    def __init__(
        self,
        key: str,
        fee: int,
        tick_spacing: int,
        factory_key: str = "v3CoreFactoryAddress",
        factory_artifact: str = "UniswapV3Factory",
    ) -> None:
        self.key = key
        self.fee = fee
        self.tick_spacing = tick_spacing
        self.factory_key = factory_key
        self.factory_artifact = factory_artifact
        self.requires = (factory_key,)
        self.description = f"{factory_artifact} {self.bps} bps fee tier"

    @property
    def bps(self) -> str:
        return f"{self.fee / 100:g}"

    def compute_arguments(self, state: Mapping[str, Any], config: DeployConfig) -> str:
        return require(state, self.factory_key, "V3 Core Factory")

    def replay(self, state: Mapping[str, Any]) -> tuple[StepResult, ...]:
        record = state[self.key]
        tx_hash = record.get("hash") if isinstance(record, dict) else None
        return (
            StepResult(
                key=self.key,
                message=f"{self.factory_artifact} {self.bps} bps fee tier already enabled",
                hash=tx_hash,
            ),
        )

    def execute(
        self, state: Mapping[str, Any], ctx: DeployContext, args: str
    ) -> StepOutcome:
        factory_address = args
        factory = ctx.artifacts.get(self.factory_artifact)

        raw = ctx.broadcaster.call(
            factory_address, factory.encode_call("feeAmountTickSpacing", [self.fee])
        )
        (current_spacing,) = factory.decode_result("feeAmountTickSpacing", raw)

        if current_spacing != 0:
            log_with_context(
                logging.INFO,
                f"Fee tier {self.fee} already enabled with tick spacing {current_spacing}",
                step=self.key,
            )
            record = {"fee": self.fee, "tickSpacing": current_spacing, "hash": None}
            message = f"{self.factory_artifact} {self.bps} bps fee tier already exists"
            return StepOutcome(
                delta={self.key: record},
                results=(StepResult(key=self.key, message=message),),
            )

        tx = ctx.broadcaster.transact(
            factory_address,
            factory.encode_call("enableFeeAmount", [self.fee, self.tick_spacing]),
            ctx.gas_price,
        )
        record = {"fee": self.fee, "tickSpacing": self.tick_spacing, "hash": tx.hash}
        return StepOutcome(
            delta={self.key: record},
            results=(
                StepResult(
                    key=self.key,
                    message=f"{self.factory_artifact} added a new fee tier {self.bps} bps",
                    hash=tx.hash,
                ),
            ),
        )


class TransferOwnershipStep(StepDefinition):
    """Hand ownership of a deployed contract to the configured owner.

    Records the new owner under ``key``. Fails if the contract is owned by
    neither the configured owner nor the signer.
    """

    def __init__(
        self,
        key: str,
        target_key: str,
        artifact: str,
        transfer_function: str,
        label: str,
    ) -> None:
        self.key = key
        self.target_key = target_key
        self.artifact = artifact
        self.transfer_function = transfer_function
        self.label = label
        self.requires = (target_key,)
        self.description = f"{artifact} ownership"

    def compute_arguments(
        self, state: Mapping[str, Any], config: DeployConfig
    ) -> tuple[str, str]:
        return require(state, self.target_key, self.label), config.owner_address

    def replay(self, state: Mapping[str, Any]) -> tuple[StepResult, ...]:
        return (
            StepResult(
                key=self.key,
                message=f"{self.artifact} ownership already set to {state[self.key]}",
            ),
        )

    def execute(
        self, state: Mapping[str, Any], ctx: DeployContext, args: tuple[str, str]
    ) -> StepOutcome:
        target, new_owner = args
        contract = ctx.artifacts.get(self.artifact)

        raw = ctx.broadcaster.call(target, contract.encode_call("owner"))
        (current,) = contract.decode_result("owner", raw)
        current = to_checksum_address(current)

        if current == new_owner:
            return StepOutcome(
                delta={self.key: new_owner},
                results=(
                    StepResult(
                        key=self.key,
                        message=f"{self.artifact} owned by {new_owner} already",
                    ),
                ),
            )

        if current != ctx.broadcaster.sender:
            raise SubmissionError(
                f"{self.artifact}.owner is {current}, not the signer {ctx.broadcaster.sender}"
            )

        tx = ctx.broadcaster.transact(
            target,
            contract.encode_call(self.transfer_function, [new_owner]),
            ctx.gas_price,
        )
        log_with_context(
            logging.INFO,
            f"Transferring {self.artifact} ownership to {new_owner} ({tx.hash})",
            step=self.key,
        )
        return StepOutcome(
            delta={self.key: new_owner},
            results=(
                StepResult(
                    key=self.key,
                    message=f"{self.artifact} ownership set to {new_owner}",
                    hash=tx.hash,
                ),
            ),
        )
