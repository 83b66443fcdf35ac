"""Shared test fixtures for the deploy_v3 test suite."""

import json

import pytest

SENDER = "0x1000000000000000000000000000000000000001"
WETH9 = "0x4200000000000000000000000000000000000023"
OWNER = "0x2000000000000000000000000000000000000002"

# Well-known development account (Hardhat/Anvil account #0)
DEV_KEY = "0xac0974bec39a17e36ba4a6b4d238ff944bacb478cbed5efcae784d7bf4f2ff80"
DEV_ADDRESS = "0xf39Fd6e51aad88F6F4ce6aB8827279cffFb92266"

# 20-byte library placeholder as emitted by solc
LIBRARY_PLACEHOLDER = "__$cea9be979eee3d87fb124d6cbb244bb0b5$__"


def _fn(name, inputs=(), outputs=(), mutability="nonpayable"):
    return {
        "type": "function",
        "name": name,
        "inputs": [{"name": f"arg{i}", "type": t} for i, t in enumerate(inputs)],
        "outputs": [{"name": "", "type": t} for t in outputs],
        "stateMutability": mutability,
    }


def _constructor(*types):
    return {
        "type": "constructor",
        "inputs": [{"name": f"arg{i}", "type": t} for i, t in enumerate(types)],
        "stateMutability": "nonpayable",
    }


def artifact_json(name, constructor=(), functions=(), bytecode="0x60806040", link_references=None):
    """Return a minimal Hardhat-style artifact dict."""
    abi = list(functions)
    if constructor:
        abi.insert(0, _constructor(*constructor))
    return {
        "_format": "hh-sol-artifact-1",
        "contractName": name,
        "sourceName": f"contracts/{name}.sol",
        "abi": abi,
        "bytecode": bytecode,
        "deployedBytecode": "0x",
        "linkReferences": link_references or {},
        "deployedLinkReferences": {},
    }


def uniswap_artifact_jsons():
    """Artifacts for every contract in the V3 deployment plan."""
    ownable = [
        _fn("owner", outputs=["address"], mutability="view"),
    ]
    return {
        "UniswapV3Factory": artifact_json(
            "UniswapV3Factory",
            functions=[
                *ownable,
                _fn("setOwner", ["address"]),
                _fn("feeAmountTickSpacing", ["uint24"], ["int24"], "view"),
                _fn("enableFeeAmount", ["uint24", "int24"]),
            ],
        ),
        "UniswapInterfaceMulticall": artifact_json("UniswapInterfaceMulticall"),
        "ProxyAdmin": artifact_json(
            "ProxyAdmin",
            functions=[*ownable, _fn("transferOwnership", ["address"])],
        ),
        "TickLens": artifact_json("TickLens"),
        "NFTDescriptor": artifact_json("NFTDescriptor"),
        "NonfungibleTokenPositionDescriptor": artifact_json(
            "NonfungibleTokenPositionDescriptor",
            constructor=["address", "bytes32"],
            bytecode="0x6080" + LIBRARY_PLACEHOLDER + "5050",
            link_references={
                "contracts/libraries/NFTDescriptor.sol": {
                    "NFTDescriptor": [{"start": 2, "length": 20}]
                }
            },
        ),
        "TransparentUpgradeableProxy": artifact_json(
            "TransparentUpgradeableProxy", constructor=["address", "address", "bytes"]
        ),
        "NonfungiblePositionManager": artifact_json(
            "NonfungiblePositionManager", constructor=["address", "address", "address"]
        ),
        "V3Migrator": artifact_json(
            "V3Migrator", constructor=["address", "address", "address"]
        ),
        "UniswapV3Staker": artifact_json(
            "UniswapV3Staker", constructor=["address", "address", "uint256", "uint256"]
        ),
        "QuoterV2": artifact_json("QuoterV2", constructor=["address", "address"]),
        "SwapRouter": artifact_json("SwapRouter", constructor=["address", "address"]),
    }


@pytest.fixture()
def artifacts_dir(tmp_path):
    """Write the V3 artifacts to a Hardhat-like directory tree and return its root."""
    root = tmp_path / "artifacts"
    for name, data in uniswap_artifact_jsons().items():
        contract_dir = root / "contracts" / f"{name}.sol"
        contract_dir.mkdir(parents=True, exist_ok=True)
        (contract_dir / f"{name}.json").write_text(json.dumps(data))
        (contract_dir / f"{name}.dbg.json").write_text(json.dumps({"buildInfo": "x"}))
    return root


@pytest.fixture()
def config_values():
    """Return a raw config dict with every required field populated."""
    return {
        "weth9_address": WETH9,
        "native_currency_label": "ETH",
        "owner_address": OWNER,
        "confirmations": 2,
    }
