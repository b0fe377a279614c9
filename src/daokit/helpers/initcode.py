"""
Init code assembly: creation bytecode ‖ ABI-encoded constructor arguments.

Creation bytecode comes either from raw hex or from a Hardhat artifact
(``artifacts/contracts/<File>.sol/<Name>.json``); no compiler is invoked.
"""
from __future__ import annotations

import logging
from collections.abc import Sequence
from dataclasses import dataclass
from pathlib import Path
from typing import Any

from eth_abi import decode
from eth_abi.exceptions import DecodingError
from eth_utils import keccak

from daokit.errors import ArgumentMismatch, ArtifactNotFound, EmptyBytecode
from daokit.helpers.abi_signature import abi_param_type, encode_values, parse_type_list
from daokit.helpers.hexutil import hex_to_bytes, to_hex
from daokit.helpers.payloads import read_json

logger = logging.getLogger(__name__)

__all__ = [
    "Artifact",
    "InitcodeBundle",
    "assemble",
    "build_initcode",
    "initcode_hash",
    "decode_constructor_args",
    "load_artifact",
    "constructor_types",
]


def _types(argument_types: Sequence[str] | str) -> tuple[str, ...]:
    if isinstance(argument_types, str):
        return parse_type_list(argument_types)
    return parse_type_list(",".join(argument_types), unwrap=False) if argument_types else ()


def build_initcode(
    creation_bytecode: str | bytes,
    argument_types: Sequence[str] | str = (),
    argument_values: Sequence[Any] = (),
) -> bytes:
    """
    Concatenate creation bytecode with the encoded constructor arguments.

    Args:
        creation_bytecode: Contract creation bytecode (hex or bytes)
        argument_types: Constructor parameter types, e.g. ``["uint256", "address"]``
        argument_values: Values in the same order

    Returns:
        Init code bytes; ``len == len(bytecode) + len(encoded args)``

    Raises:
        EmptyBytecode: creation bytecode is empty
        ArgumentMismatch: values do not match the types
    """
    bytecode = hex_to_bytes(creation_bytecode, "creation bytecode")
    if not bytecode:
        raise EmptyBytecode("Creation bytecode is empty")
    types = _types(argument_types)
    encoded = encode_values(types, list(argument_values), "constructor arguments") if types or argument_values else b""
    return bytecode + encoded


def initcode_hash(init_code: str | bytes) -> bytes:
    code = hex_to_bytes(init_code, "init code")
    if not code:
        raise EmptyBytecode("Init code is empty")
    return keccak(code)


def decode_constructor_args(
    init_code: str | bytes,
    creation_bytecode: str | bytes,
    argument_types: Sequence[str] | str,
) -> tuple[Any, ...]:
    """Decode the constructor-argument tail of ``init_code``."""
    code = hex_to_bytes(init_code, "init code")
    bytecode = hex_to_bytes(creation_bytecode, "creation bytecode")
    if not code.startswith(bytecode):
        raise ArgumentMismatch("Init code does not start with the given creation bytecode")
    try:
        return decode(list(_types(argument_types)), code[len(bytecode):])
    except DecodingError as e:
        raise ArgumentMismatch(f"Constructor arguments do not decode: {e}") from e


@dataclass(frozen=True)
class InitcodeBundle:
    bytecode: bytes
    encoded_args: bytes
    argument_types: tuple[str, ...]

    @property
    def init_code(self) -> bytes:
        return self.bytecode + self.encoded_args

    @property
    def hash(self) -> bytes:
        return keccak(self.init_code)

    @property
    def hash_hex(self) -> str:
        return to_hex(self.hash)

    def summary(self) -> dict[str, Any]:
        return {
            "bytecode_length": len(self.bytecode),
            "constructor_types": list(self.argument_types),
            "constructor_args": to_hex(self.encoded_args),
            "initcode_length": len(self.init_code),
            "initcode_hash": self.hash_hex,
        }


def assemble(
    creation_bytecode: str | bytes,
    argument_types: Sequence[str] | str = (),
    argument_values: Sequence[Any] = (),
) -> InitcodeBundle:
    init_code = build_initcode(creation_bytecode, argument_types, argument_values)
    bytecode = hex_to_bytes(creation_bytecode, "creation bytecode")
    return InitcodeBundle(
        bytecode=bytecode,
        encoded_args=init_code[len(bytecode):],
        argument_types=_types(argument_types),
    )


# ---------------------------------------------------------------------------
# Hardhat artifacts
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class Artifact:
    contract_name: str
    abi: list[dict[str, Any]]
    bytecode: str
    deployed_bytecode: str
    path: Path

    @property
    def constructor_types(self) -> tuple[str, ...]:
        return constructor_types(self.abi)


def constructor_types(abi: list[dict[str, Any]]) -> tuple[str, ...]:
    for entry in abi:
        if entry.get("type") == "constructor":
            return tuple(abi_param_type(p) for p in entry.get("inputs", []))
    return ()


def load_artifact(name_or_path: str, artifacts_dir: str | Path = "artifacts") -> Artifact:
    """
    Load a Hardhat artifact by contract name or by path to its JSON file.

    Raises:
        ArtifactNotFound: no artifact matches, or more than one does
    """
    candidate = Path(name_or_path)
    if candidate.suffix == ".json" and candidate.exists():
        path = candidate
    else:
        root = Path(artifacts_dir)
        matches = [p for p in root.rglob(f"{name_or_path}.json") if not p.name.endswith(".dbg.json")]
        if not matches:
            raise ArtifactNotFound(f"No artifact named {name_or_path} under {root}")
        if len(matches) > 1:
            raise ArtifactNotFound(f"Ambiguous artifact {name_or_path}: {', '.join(str(m) for m in matches)}")
        path = matches[0]

    data = read_json(path, "artifact")
    bytecode = data.get("bytecode") or ""
    if isinstance(bytecode, dict):
        bytecode = bytecode.get("object", "")
    deployed = data.get("deployedBytecode") or ""
    if isinstance(deployed, dict):
        deployed = deployed.get("object", "")
    logger.debug("Loaded artifact %s from %s", data.get("contractName"), path)
    return Artifact(
        contract_name=data.get("contractName", path.stem),
        abi=data.get("abi", []),
        bytecode=bytecode if bytecode.startswith("0x") else "0x" + bytecode,
        deployed_bytecode=deployed if deployed.startswith("0x") else "0x" + deployed,
        path=path,
    )
