"""Custom exception hierarchy for the Uniswap V3 deployment tool."""

from __future__ import annotations


class DeployerError(Exception):
    """Base exception for all deployment-related errors."""


class ConfigError(DeployerError):
    """Raised when the static deployment configuration is invalid or missing."""


class PlanError(DeployerError):
    """Raised when a step list is malformed (duplicate keys, unknown dependencies)."""


class PrerequisiteError(DeployerError):
    """Raised when a step needs a state entry that an earlier step has not recorded."""


class ArtifactError(DeployerError):
    """Raised when a contract artifact cannot be found, parsed or linked."""


class StateFileError(DeployerError):
    """Raised when the persisted migration state cannot be read or written."""


class SubmissionError(DeployerError):
    """Raised when an action cannot be submitted to the network."""


class RpcError(SubmissionError):
    """Raised when the JSON-RPC endpoint returns an error or is unreachable."""

    def __init__(self, message: str, code: int | None = None) -> None:
        super().__init__(message)
        self.code = code


class ConfirmationTimeoutError(DeployerError):
    """Raised when a transaction does not reach the required confirmations in time."""


class TransactionRevertedError(DeployerError):
    """Raised when a mined transaction reports a failed status."""
