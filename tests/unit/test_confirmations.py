"""Unit tests for ConfirmationWaiter."""

from unittest.mock import MagicMock

import pytest

from deploy_v3.exceptions import ConfirmationTimeoutError, TransactionRevertedError
from deploy_v3.services.confirmations import ConfirmationWaiter
from deploy_v3.services.rpc import JsonRpcClient
from deploy_v3.types import StepResult


class FakeClock:
    """Deterministic clock advanced by the waiter's sleep calls."""

    def __init__(self):
        self.now = 0.0
        self.sleeps = []

    def __call__(self):
        return self.now

    def sleep(self, seconds):
        self.sleeps.append(seconds)
        self.now += seconds


def _receipt(block, status="0x1"):
    return {"transactionHash": "0x01", "blockNumber": hex(block), "status": status}


@pytest.fixture()
def client():
    return MagicMock(spec=JsonRpcClient)


@pytest.fixture()
def clock():
    return FakeClock()


@pytest.fixture()
def waiter(client, clock):
    return ConfirmationWaiter(client, poll_interval=2, clock=clock, sleep=clock.sleep)


class TestWaitForTransaction:
    """Tests for ConfirmationWaiter.wait_for_transaction()."""

    def test_returns_once_deep_enough(self, waiter, client, clock):
        client.get_transaction_receipt.return_value = _receipt(10)
        client.block_number.side_effect = [10, 11]

        receipt = waiter.wait_for_transaction("0x01", confirmations=2, timeout=60)

        assert receipt["blockNumber"] == hex(10)
        assert clock.sleeps == [2]

    def test_polls_until_mined(self, waiter, client, clock):
        client.get_transaction_receipt.side_effect = [None, None, _receipt(5)]
        client.block_number.return_value = 5

        waiter.wait_for_transaction("0x01", confirmations=1, timeout=60)

        assert client.get_transaction_receipt.call_count == 3

    def test_zero_confirmations_returns_on_receipt(self, waiter, client):
        client.get_transaction_receipt.return_value = _receipt(5)
        client.block_number.return_value = 4

        assert waiter.wait_for_transaction("0x01", confirmations=0, timeout=60)

    def test_reverted_transaction_raises(self, waiter, client):
        client.get_transaction_receipt.return_value = _receipt(5, status="0x0")

        with pytest.raises(TransactionRevertedError, match="0x01 reverted"):
            waiter.wait_for_transaction("0x01", confirmations=1, timeout=60)

    def test_times_out(self, waiter, client, clock):
        client.get_transaction_receipt.return_value = None

        with pytest.raises(ConfirmationTimeoutError, match="Timed out after 10s"):
            waiter.wait_for_transaction("0x01", confirmations=1, timeout=10)
        assert clock.now >= 10

    def test_pending_receipt_without_block_keeps_polling(self, waiter, client):
        client.get_transaction_receipt.side_effect = [
            {"transactionHash": "0x01", "blockNumber": None},
            _receipt(3),
        ]
        client.block_number.return_value = 3

        waiter.wait_for_transaction("0x01", confirmations=1, timeout=60)

        assert client.get_transaction_receipt.call_count == 2


class TestWaitForBatch:
    """Tests for ConfirmationWaiter.wait_for_batch()."""

    def test_results_without_hash_need_no_waiting(self, waiter, client):
        results = [StepResult(key="A", message="already deployed", address="0x1")]

        assert waiter.wait_for_batch(results, confirmations=2, timeout=60) == []
        client.get_transaction_receipt.assert_not_called()

    def test_waits_for_every_hash(self, client):
        client.get_transaction_receipt.side_effect = lambda h: {
            "transactionHash": h,
            "blockNumber": hex(1),
            "status": "0x1",
        }
        client.block_number.return_value = 1
        waiter = ConfirmationWaiter(client, poll_interval=0)
        results = [
            StepResult(key="A", message="a", hash="0xaa"),
            StepResult(key="A", message="b"),
            StepResult(key="A", message="c", hash="0xcc"),
        ]

        receipts = waiter.wait_for_batch(results, confirmations=1, timeout=5)

        assert [r["transactionHash"] for r in receipts] == ["0xaa", "0xcc"]

    def test_failure_is_reraised(self, client):
        client.get_transaction_receipt.return_value = _receipt(1, status="0x0")
        waiter = ConfirmationWaiter(client, poll_interval=0)

        with pytest.raises(TransactionRevertedError):
            waiter.wait_for_batch(
                [StepResult(key="A", message="a", hash="0xaa")], 1, 5
            )
