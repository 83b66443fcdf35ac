"""Waiting for submitted transactions to reach the required confirmations.

The waiter is used by the caller between result batches; the migration
engine itself never blocks on confirmation.
"""

from __future__ import annotations

import logging
import time
from concurrent.futures import ThreadPoolExecutor
from typing import Callable, Sequence

from deploy_v3.exceptions import ConfirmationTimeoutError, TransactionRevertedError
from deploy_v3.services.rpc import JsonRpcClient
from deploy_v3.types import StepResult, TransactionReceipt
from deploy_v3.utils.logging import log_with_context


class ConfirmationWaiter:
    """Polls a node until transactions are mined and buried deep enough."""

    def __init__(
        self,
        client: JsonRpcClient,
        poll_interval: float = 2.0,
        clock: Callable[[], float] = time.monotonic,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        self.client = client
        self.poll_interval = poll_interval
        self._clock = clock
        self._sleep = sleep

    def wait_for_transaction(
        self, tx_hash: str, confirmations: int, timeout: float
    ) -> TransactionReceipt:
        """Block until ``tx_hash`` has ``confirmations`` confirmations.

        A transaction in the latest block has one confirmation. With
        ``confirmations`` of 0 the receipt is returned as soon as it exists.

        Raises:
            ConfirmationTimeoutError: If ``timeout`` seconds elapse first.
            TransactionRevertedError: If the mined transaction failed.
        """
        deadline = self._clock() + timeout
        while True:
            receipt = self.client.get_transaction_receipt(tx_hash)
            if receipt and receipt.get("blockNumber"):
                status = receipt.get("status")
                if status is not None and int(status, 16) == 0:
                    raise TransactionRevertedError(f"Transaction {tx_hash} reverted")
                mined_in = int(receipt["blockNumber"], 16)
                depth = self.client.block_number() - mined_in + 1
                if depth >= confirmations:
                    log_with_context(
                        logging.DEBUG,
                        f"Transaction {tx_hash} confirmed ({depth} confirmations)",
                    )
                    return receipt

            if self._clock() >= deadline:
                raise ConfirmationTimeoutError(
                    f"Timed out after {timeout:.0f}s waiting for {confirmations} "
                    f"confirmations of {tx_hash}"
                )
            self._sleep(self.poll_interval)

    def wait_for_batch(
        self, results: Sequence[StepResult], confirmations: int, timeout: float
    ) -> list[TransactionReceipt]:
        """Wait for every transaction in one step's result batch, concurrently.

        Results without a transaction hash (skipped or read-only outcomes)
        are ignored. The first failure is re-raised once all waits settle.
        """
        hashes = [r.hash for r in results if r.hash]
        if not hashes:
            return []

        log_with_context(
            logging.INFO,
            f"Waiting for {confirmations} confirmation(s) of {len(hashes)} transaction(s)",
        )
        with ThreadPoolExecutor(max_workers=len(hashes)) as pool:
            futures = [
                pool.submit(self.wait_for_transaction, h, confirmations, timeout)
                for h in hashes
            ]
        return [f.result() for f in futures]
