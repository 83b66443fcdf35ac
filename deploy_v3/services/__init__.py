"""Collaborators around the engine: artifacts, JSON-RPC and confirmation waiting."""

__all__ = [
    "artifacts",
    "confirmations",
    "rpc",
]
