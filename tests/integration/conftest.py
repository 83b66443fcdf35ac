"""Integration test configuration.

These tests require a running JSON-RPC node and are skipped by default.
Set the DEPLOY_V3_RPC_URL environment variable (for example to a local
dev node) to enable them.
"""

import os

import pytest


@pytest.fixture()
def rpc_url():
    """Return the node URL, skipping the test when none is configured."""
    url = os.environ.get("DEPLOY_V3_RPC_URL")
    if not url:
        pytest.skip("Integration tests require DEPLOY_V3_RPC_URL env var")
    return url
