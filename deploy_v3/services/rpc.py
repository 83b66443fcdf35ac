"""
JSON-RPC utilities for the Uniswap V3 deployment tool
"""

from __future__ import annotations

import itertools
import logging
import time
from typing import Any

import requests
import rlp
from eth_account import Account
from eth_utils import keccak, to_canonical_address, to_checksum_address, to_hex

from deploy_v3.constants import (
    DEFAULT_MAX_RETRIES,
    DEFAULT_RETRY_DELAY,
    MAX_RETRY_DELAY,
    RETRY_BACKOFF_FACTOR,
    RPC_REQUEST_TIMEOUT,
)
from deploy_v3.exceptions import ConfigError, RpcError, SubmissionError
from deploy_v3.types import PendingTransaction, TransactionReceipt
from deploy_v3.utils.logging import log_rpc_request, log_rpc_response, log_with_context

# Methods that never change chain state and are safe to resend
READ_ONLY_METHODS = frozenset(
    {
        "eth_blockNumber",
        "eth_call",
        "eth_chainId",
        "eth_estimateGas",
        "eth_gasPrice",
        "eth_getTransactionCount",
        "eth_getTransactionReceipt",
    }
)


def compute_contract_address(sender: str, nonce: int) -> str:
    """Return the address a contract created by ``sender`` at ``nonce`` will have."""
    encoded = rlp.encode([to_canonical_address(sender), nonce])
    return to_checksum_address(keccak(encoded)[12:])


def _is_retryable_status(status: int) -> bool:
    return status == 429 or status >= 500


class JsonRpcClient:
    """Minimal JSON-RPC 2.0 client over HTTP.

    Read-only methods are retried on transport failures, rate limiting and
    server errors with exponential backoff. State-changing methods are sent
    exactly once.
    """

    def __init__(
        self,
        url: str,
        max_retries: int = DEFAULT_MAX_RETRIES,
        retry_delay: float = DEFAULT_RETRY_DELAY,
        timeout: float = RPC_REQUEST_TIMEOUT,
        session: requests.Session | None = None,
    ) -> None:
        self.url = url
        self.max_retries = max_retries
        self.retry_delay = retry_delay
        self.timeout = timeout
        self.session = session or requests.Session()
        self._ids = itertools.count(1)

    def request(self, method: str, params: list[Any] | None = None) -> Any:
        """Send a JSON-RPC request and return its ``result``.

        Raises:
            RpcError: On a JSON-RPC error response, or when the endpoint stays
                unreachable after all retries.
        """
        params = params or []
        attempts = self.max_retries + 1 if method in READ_ONLY_METHODS else 1

        for attempt in range(attempts):
            try:
                return self._send(method, params)
            except requests.exceptions.RequestException as e:
                status = getattr(getattr(e, "response", None), "status_code", None)
                if status is not None and not _is_retryable_status(status):
                    log_with_context(
                        logging.WARNING,
                        f"Client error ({status}) not retried: {e}",
                        component="rpc",
                    )
                    raise RpcError(f"{method} failed with HTTP {status}: {e}") from e

                if attempt + 1 >= attempts:
                    if attempts > 1:
                        log_with_context(
                            logging.ERROR,
                            f"Max retries reached for {method}. Last error: {e}",
                            component="rpc",
                        )
                    raise RpcError(f"{method} failed: {e}") from e

                sleep_time = min(
                    self.retry_delay * (RETRY_BACKOFF_FACTOR**attempt), MAX_RETRY_DELAY
                )
                log_with_context(
                    logging.WARNING,
                    f"{method} failed ({e}), retrying in {sleep_time:.1f} seconds...",
                    component="rpc",
                )
                time.sleep(sleep_time)

        # Unreachable: the loop either returns or raises
        raise RpcError(f"{method} failed")

    def _send(self, method: str, params: list[Any]) -> Any:
        payload = {
            "jsonrpc": "2.0",
            "id": next(self._ids),
            "method": method,
            "params": params,
        }
        log_rpc_request(method, self.url, params)
        response = self.session.post(self.url, json=payload, timeout=self.timeout)
        response.raise_for_status()
        body = response.json()
        log_rpc_response(method, self.url, body)

        if not isinstance(body, dict):
            raise RpcError(f"{method} returned a malformed response")
        if body.get("error"):
            error = body["error"]
            if isinstance(error, dict):
                raise RpcError(
                    f"{method} error: {error.get('message', error)}",
                    code=error.get("code"),
                )
            raise RpcError(f"{method} error: {error}")
        return body.get("result")

    def block_number(self) -> int:
        return int(self.request("eth_blockNumber"), 16)

    def chain_id(self) -> int:
        return int(self.request("eth_chainId"), 16)

    def get_transaction_receipt(self, tx_hash: str) -> TransactionReceipt | None:
        return self.request("eth_getTransactionReceipt", [tx_hash])


class JsonRpcBroadcaster:
    """Broadcaster that submits transactions through a node-managed account.

    Signing is delegated to the node (``eth_sendTransaction``), so ``sender``
    must be an account the node can sign for. Nonces are fetched explicitly
    before each submission so that contract addresses can be predicted.
    """

    def __init__(self, client: JsonRpcClient, sender: str) -> None:
        self.client = client
        self._sender = to_checksum_address(sender)

    @property
    def sender(self) -> str:
        return self._sender

    def _next_nonce(self) -> int:
        return int(
            self.client.request("eth_getTransactionCount", [self._sender, "pending"]), 16
        )

    def _submit(self, method: str, payload: Any) -> str:
        try:
            tx_hash = self.client.request(method, [payload])
        except RpcError as e:
            raise SubmissionError(f"Transaction submission rejected: {e}") from e
        if not isinstance(tx_hash, str):
            raise SubmissionError(f"Node returned no transaction hash: {tx_hash!r}")
        return tx_hash

    def _send(self, tx: dict[str, Any], gas_price: int | None) -> str:
        if gas_price is not None:
            tx["gasPrice"] = hex(gas_price)
        return self._submit("eth_sendTransaction", tx)

    def deploy(self, data: bytes, gas_price: int | None = None) -> PendingTransaction:
        nonce = self._next_nonce()
        tx = {"from": self._sender, "data": "0x" + data.hex(), "nonce": hex(nonce)}
        tx_hash = self._send(tx, gas_price)
        address = compute_contract_address(self._sender, nonce)
        log_with_context(
            logging.DEBUG,
            f"Submitted deployment {tx_hash} (nonce {nonce}, expected address {address})",
        )
        return PendingTransaction(hash=tx_hash, contract_address=address)

    def transact(
        self, to: str, data: bytes, gas_price: int | None = None
    ) -> PendingTransaction:
        nonce = self._next_nonce()
        tx = {
            "from": self._sender,
            "to": to_checksum_address(to),
            "data": "0x" + data.hex(),
            "nonce": hex(nonce),
        }
        tx_hash = self._send(tx, gas_price)
        log_with_context(logging.DEBUG, f"Submitted transaction {tx_hash} to {to}")
        return PendingTransaction(hash=tx_hash)

    def call(self, to: str, data: bytes) -> bytes:
        tx = {
            "from": self._sender,
            "to": to_checksum_address(to),
            "data": "0x" + data.hex(),
        }
        result = self.client.request("eth_call", [tx, "latest"])
        if not result or result == "0x":
            return b""
        return bytes.fromhex(result[2:] if result.startswith("0x") else result)


class SigningBroadcaster(JsonRpcBroadcaster):
    """Broadcaster that signs transactions locally with a private key.

    Works against any endpoint, including public ones that manage no
    accounts. Gas is estimated by the node, the gas price falls back to
    ``eth_gasPrice`` and the signed payload goes out via
    ``eth_sendRawTransaction``. The sender is the key's address, so address
    prediction is unchanged.
    """

    def __init__(self, client: JsonRpcClient, private_key: str) -> None:
        try:
            self._account = Account.from_key(private_key)
        except (TypeError, ValueError) as e:
            raise ConfigError("Invalid private key!") from e
        super().__init__(client, self._account.address)
        self._chain_id: int | None = None

    @property
    def chain_id(self) -> int:
        if self._chain_id is None:
            self._chain_id = self.client.chain_id()
            log_with_context(
                logging.DEBUG, f"Signing for chain {self._chain_id}", component="rpc"
            )
        return self._chain_id

    def _send(self, tx: dict[str, Any], gas_price: int | None) -> str:
        estimate = {k: tx[k] for k in ("from", "to", "data") if k in tx}
        try:
            gas = int(self.client.request("eth_estimateGas", [estimate]), 16)
        except RpcError as e:
            raise SubmissionError(f"Gas estimation failed: {e}") from e
        if gas_price is None:
            gas_price = int(self.client.request("eth_gasPrice"), 16)

        unsigned = {
            "chainId": self.chain_id,
            "nonce": int(tx["nonce"], 16),
            "gas": gas,
            "gasPrice": gas_price,
            "value": 0,
            "data": tx["data"],
        }
        if "to" in tx:
            unsigned["to"] = tx["to"]
        signed = self._account.sign_transaction(unsigned)
        return self._submit("eth_sendRawTransaction", to_hex(signed.raw_transaction))
