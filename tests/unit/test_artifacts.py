"""Unit tests for artifact loading, library linking and ABI encoding."""

import json

import pytest
from eth_abi import decode
from eth_utils import keccak

from deploy_v3.exceptions import ArtifactError
from deploy_v3.services.artifacts import ArtifactStore, ContractArtifact
from tests.conftest import LIBRARY_PLACEHOLDER, WETH9, artifact_json, uniswap_artifact_jsons

LIBRARY = "0x00000000000000000000000000000000000000bb"


@pytest.fixture()
def descriptor():
    return ContractArtifact.from_json(
        uniswap_artifact_jsons()["NonfungibleTokenPositionDescriptor"]
    )


@pytest.fixture()
def factory():
    return ContractArtifact.from_json(uniswap_artifact_jsons()["UniswapV3Factory"])


class TestContractArtifact:
    """Tests for ContractArtifact."""

    def test_from_json_requires_abi_and_bytecode(self):
        data = artifact_json("X")
        del data["bytecode"]
        with pytest.raises(ArtifactError, match="missing abi or bytecode"):
            ContractArtifact.from_json(data)

    def test_name_falls_back_to_argument(self):
        data = artifact_json("X")
        del data["contractName"]
        assert ContractArtifact.from_json(data, name="Y").contract_name == "Y"

    def test_library_names(self, descriptor):
        assert descriptor.library_names == {"NFTDescriptor"}

    def test_unlinked_bytecode_is_plain(self):
        artifact = ContractArtifact.from_json(artifact_json("X"))
        assert artifact.linked_bytecode() == bytes.fromhex("60806040")

    def test_links_library_at_offset(self, descriptor):
        code = descriptor.linked_bytecode({"NFTDescriptor": LIBRARY})
        assert code == bytes.fromhex("6080" + LIBRARY[2:] + "5050")

    def test_linking_accepts_checksummed_address(self, descriptor):
        checksummed = "0x5C69bEe701ef814a2B6a3EDD4B1652CB9cc5aA6f"
        code = descriptor.linked_bytecode({"NFTDescriptor": checksummed})
        assert code[2:22] == bytes.fromhex(checksummed[2:])

    def test_missing_library_address(self, descriptor):
        with pytest.raises(ArtifactError, match="Missing address for library NFTDescriptor"):
            descriptor.linked_bytecode({})

    def test_invalid_library_address(self, descriptor):
        with pytest.raises(ArtifactError, match="Invalid address"):
            descriptor.linked_bytecode({"NFTDescriptor": "0x12"})

    def test_placeholder_without_link_reference_is_invalid_hex(self):
        artifact = ContractArtifact.from_json(
            artifact_json("X", bytecode="0x6080" + LIBRARY_PLACEHOLDER)
        )
        with pytest.raises(ArtifactError, match="not valid hex"):
            artifact.linked_bytecode()

    def test_deploy_data_appends_constructor_arguments(self, descriptor):
        label = b"ETH".ljust(32, b"\x00")

        data = descriptor.deploy_data([WETH9, label], {"NFTDescriptor": LIBRARY})

        code = descriptor.linked_bytecode({"NFTDescriptor": LIBRARY})
        assert data.startswith(code)
        weth, decoded_label = decode(["address", "bytes32"], data[len(code) :])
        assert weth.lower() == WETH9.lower()
        assert decoded_label == label

    def test_deploy_data_checks_arity(self, descriptor):
        with pytest.raises(ArtifactError, match="takes 2 arguments, got 1"):
            descriptor.deploy_data([WETH9], {"NFTDescriptor": LIBRARY})

    def test_encode_call_prefixes_selector(self, factory):
        data = factory.encode_call("enableFeeAmount", [100, 1])

        assert data[:4] == keccak(text="enableFeeAmount(uint24,int24)")[:4]
        assert decode(["uint24", "int24"], data[4:]) == (100, 1)

    def test_encode_call_unknown_function(self, factory):
        with pytest.raises(ArtifactError, match="has no function"):
            factory.encode_call("doesNotExist")

    def test_decode_result(self, factory):
        raw = bytes(31) + b"\x0a"
        assert factory.decode_result("feeAmountTickSpacing", raw) == (10,)

    def test_tuple_parameters_are_canonicalised(self):
        fn = {
            "type": "function",
            "name": "exactInputSingle",
            "inputs": [
                {
                    "name": "params",
                    "type": "tuple",
                    "components": [
                        {"name": "tokenIn", "type": "address"},
                        {"name": "amountIn", "type": "uint256"},
                    ],
                }
            ],
            "outputs": [],
            "stateMutability": "payable",
        }
        artifact = ContractArtifact.from_json(artifact_json("R", functions=[fn]))

        data = artifact.encode_call("exactInputSingle", [(WETH9, 5)])

        assert data[:4] == keccak(text="exactInputSingle((address,uint256))")[:4]


class TestArtifactStore:
    """Tests for ArtifactStore."""

    def test_loads_from_nested_directories(self, artifacts_dir):
        store = ArtifactStore(artifacts_dir)
        artifact = store.get("SwapRouter")
        assert artifact.contract_name == "SwapRouter"

    def test_ignores_debug_files(self, artifacts_dir):
        store = ArtifactStore(artifacts_dir)
        assert store.get("TickLens").abi == []

    def test_caches_artifacts(self, artifacts_dir):
        store = ArtifactStore(artifacts_dir)
        assert store.get("TickLens") is store.get("TickLens")

    def test_missing_directory(self, tmp_path):
        with pytest.raises(ArtifactError, match="does not exist"):
            ArtifactStore(tmp_path / "nope").get("TickLens")

    def test_missing_artifact(self, artifacts_dir):
        with pytest.raises(ArtifactError, match="No artifact named Unknown"):
            ArtifactStore(artifacts_dir).get("Unknown")

    def test_malformed_json(self, tmp_path):
        (tmp_path / "Broken.json").write_text("{")
        with pytest.raises(ArtifactError, match="Failed to read artifact"):
            ArtifactStore(tmp_path).get("Broken")

    def test_non_object_json(self, tmp_path):
        (tmp_path / "List.json").write_text(json.dumps([1]))
        with pytest.raises(ArtifactError, match="not a JSON object"):
            ArtifactStore(tmp_path).get("List")

    def test_preloaded_artifacts_skip_disk(self, tmp_path):
        artifact = ContractArtifact.from_json(artifact_json("Mem"))
        store = ArtifactStore(tmp_path / "absent", preloaded={"Mem": artifact})
        assert store.get("Mem") is artifact
