"""Smoke tests against a live JSON-RPC node."""

from deploy_v3.services.rpc import JsonRpcClient


def test_node_reports_chain_and_block(rpc_url):
    client = JsonRpcClient(rpc_url)
    assert client.chain_id() > 0
    assert client.block_number() >= 0
