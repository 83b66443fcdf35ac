"""Compiled contract artifacts: loading, library linking and ABI encoding."""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Mapping, Sequence

from eth_abi import decode, encode
from eth_utils import function_abi_to_4byte_selector, is_address, remove_0x_prefix

from deploy_v3.exceptions import ArtifactError
from deploy_v3.types import ArtifactJson, LinkReference
from deploy_v3.utils.logging import log_with_context


def _abi_type(param: Mapping[str, Any]) -> str:
    """Collapse an ABI parameter (including tuples) to its canonical type string."""
    abi_type = param["type"]
    if abi_type.startswith("tuple"):
        inner = ",".join(_abi_type(c) for c in param.get("components", []))
        return f"({inner}){abi_type[len('tuple'):]}"
    return abi_type


def _abi_types(params: Sequence[Mapping[str, Any]]) -> list[str]:
    return [_abi_type(p) for p in params]


@dataclass(frozen=True)
class ContractArtifact:
    """A compiled contract: ABI, deployment bytecode and library link offsets."""

    contract_name: str
    abi: list[dict[str, Any]]
    bytecode: str
    link_references: dict[str, dict[str, list[LinkReference]]] = field(
        default_factory=dict
    )

    @classmethod
    def from_json(cls, data: ArtifactJson, name: str | None = None) -> ContractArtifact:
        contract_name = data.get("contractName") or name
        if not contract_name:
            raise ArtifactError("Artifact has no contractName")
        if "abi" not in data or "bytecode" not in data:
            raise ArtifactError(f"Artifact {contract_name} is missing abi or bytecode")
        return cls(
            contract_name=contract_name,
            abi=list(data["abi"]),
            bytecode=data["bytecode"],
            link_references=dict(data.get("linkReferences") or {}),
        )

    @property
    def library_names(self) -> set[str]:
        return {
            lib for libs in self.link_references.values() for lib in libs.keys()
        }

    def linked_bytecode(self, libraries: Mapping[str, str] | None = None) -> bytes:
        """Return deployment bytecode with every library placeholder resolved.

        Raises:
            ArtifactError: If a referenced library has no address, or an
                address is malformed.
        """
        libraries = libraries or {}
        missing = sorted(self.library_names - set(libraries))
        if missing:
            raise ArtifactError(
                f"Missing address for library {', '.join(missing)} "
                f"linked by {self.contract_name}"
            )
        code = remove_0x_prefix(self.bytecode)
        for libs in self.link_references.values():
            for lib_name, refs in libs.items():
                address = libraries[lib_name]
                if not is_address(address):
                    raise ArtifactError(f"Invalid address for library {lib_name}: {address}")
                address_hex = remove_0x_prefix(address).lower()
                for ref in refs:
                    start = ref["start"] * 2
                    length = ref["length"] * 2
                    code = code[:start] + address_hex[:length] + code[start + length :]
        try:
            return bytes.fromhex(code)
        except ValueError as e:
            raise ArtifactError(
                f"Bytecode for {self.contract_name} is not valid hex (unlinked library?)"
            ) from e

    @property
    def constructor_inputs(self) -> list[dict[str, Any]]:
        for entry in self.abi:
            if entry.get("type") == "constructor":
                return list(entry.get("inputs", []))
        return []

    def function_abi(self, name: str) -> dict[str, Any]:
        for entry in self.abi:
            if entry.get("type") == "function" and entry.get("name") == name:
                return entry
        raise ArtifactError(f"{self.contract_name} has no function {name}")

    def deploy_data(
        self, args: Sequence[Any] = (), libraries: Mapping[str, str] | None = None
    ) -> bytes:
        """Return linked bytecode followed by the ABI-encoded constructor arguments."""
        inputs = self.constructor_inputs
        if len(inputs) != len(args):
            raise ArtifactError(
                f"{self.contract_name} constructor takes {len(inputs)} arguments, got {len(args)}"
            )
        code = self.linked_bytecode(libraries)
        if not inputs:
            return code
        return code + encode(_abi_types(inputs), list(args))

    def encode_call(self, name: str, args: Sequence[Any] = ()) -> bytes:
        """Return calldata for ``name(args...)``."""
        fn = self.function_abi(name)
        inputs = fn.get("inputs", [])
        if len(inputs) != len(args):
            raise ArtifactError(
                f"{self.contract_name}.{name} takes {len(inputs)} arguments, got {len(args)}"
            )
        return function_abi_to_4byte_selector(fn) + encode(_abi_types(inputs), list(args))

    def decode_result(self, name: str, data: bytes) -> tuple[Any, ...]:
        """Decode the return data of ``name``."""
        fn = self.function_abi(name)
        return tuple(decode(_abi_types(fn.get("outputs", [])), data))


class ArtifactStore:
    """Resolves contract names to artifacts under a directory tree.

    Files are matched by ``<ContractName>.json`` anywhere below ``root``;
    Hardhat debug files (``*.dbg.json``) are ignored. Loaded artifacts are
    cached.
    """

    def __init__(
        self,
        root: Path | str,
        preloaded: Mapping[str, ContractArtifact] | None = None,
    ) -> None:
        self.root = Path(root)
        self._cache: dict[str, ContractArtifact] = dict(preloaded or {})

    def get(self, name: str) -> ContractArtifact:
        if name in self._cache:
            return self._cache[name]

        artifact = self._load(name)
        self._cache[name] = artifact
        return artifact

    def _load(self, name: str) -> ContractArtifact:
        if not self.root.is_dir():
            raise ArtifactError(f"Artifacts directory {self.root} does not exist")

        matches = sorted(
            p for p in self.root.rglob(f"{name}.json") if not p.name.endswith(".dbg.json")
        )
        if not matches:
            raise ArtifactError(f"No artifact named {name} under {self.root}")
        if len(matches) > 1:
            log_with_context(
                logging.WARNING,
                f"Found {len(matches)} artifacts named {name}, using {matches[0]}",
            )

        path = matches[0]
        try:
            data = json.loads(path.read_text(encoding="utf-8"))
        except (json.JSONDecodeError, OSError) as e:
            raise ArtifactError(f"Failed to read artifact {path}: {e}") from e
        if not isinstance(data, dict):
            raise ArtifactError(f"Artifact {path} is not a JSON object")

        log_with_context(logging.DEBUG, f"Loaded artifact {name} from {path}")
        return ContractArtifact.from_json(data, name=name)
