"""
Read-only on-chain inspection: code, ownership, roles, storage.

Everything here is a plain ``eth_call`` / ``eth_getCode`` read; nothing is
signed. Reverts propagate as web3 exceptions; use
``daokit.helpers.diagnostics`` when a revert is an expected outcome.
"""
from __future__ import annotations

import logging
from collections.abc import Sequence
from dataclasses import dataclass
from typing import Any

from eth_utils import keccak
from web3 import Web3

from daokit.config.abis import OWNABLE_ABI, REGISTRY_ABI
from daokit.errors import DeploymentCheckError, InvalidHex
from daokit.helpers.abi_signature import ContractInterface, FunctionDescriptor
from daokit.helpers.hexutil import hex_to_bytes, same_address, to_address, to_hex

logger = logging.getLogger(__name__)

__all__ = [
    "DEFAULT_ADMIN_ROLE",
    "ContractCreation",
    "call_view",
    "code_matches",
    "get_code",
    "has_role",
    "read_owner",
    "read_role_constant",
    "read_storage_slot",
    "require_code",
    "role_id",
    "scan_factory_creations",
    "strip_metadata",
]

DEFAULT_ADMIN_ROLE = b"\x00" * 32

OWNER = ContractInterface(OWNABLE_ABI).get("owner")
HAS_ROLE = ContractInterface(REGISTRY_ABI).get("hasRole")

# topic0 of ``Deployed(address indexed addr, uint256 value)``
DEPLOYED_TOPIC = keccak(text="Deployed(address,uint256)")


def role_id(name: str) -> bytes:
    """Role identifier: ``DEFAULT_ADMIN_ROLE``, a 32-byte hex id, or ``keccak256(name)``."""
    if name == "DEFAULT_ADMIN_ROLE":
        return DEFAULT_ADMIN_ROLE
    if name.startswith("0x"):
        raw = hex_to_bytes(name, "role")
        if len(raw) != 32:
            raise InvalidHex(f"role id must be 32 bytes, got {len(raw)}")
        return raw
    return keccak(text=name)


def get_code(w3: Web3, address: str) -> bytes:
    return bytes(w3.eth.get_code(to_address(address)))


def require_code(w3: Web3, address: str, label: str = "contract") -> bytes:
    """
    Return the runtime code at ``address``.

    Raises:
        DeploymentCheckError: the address holds no code
    """
    code = get_code(w3, address)
    if not code:
        raise DeploymentCheckError(f"No code at {to_address(address)} ({label})")
    logger.debug("%s at %s has %d bytes of code", label, address, len(code))
    return code


def strip_metadata(code: bytes) -> bytes:
    """Drop the trailing CBOR metadata solc appends (length in the last 2 bytes)."""
    if len(code) < 2:
        return code
    meta_len = int.from_bytes(code[-2:], "big")
    if meta_len + 2 > len(code) or code[-meta_len - 2] & 0xE0 != 0xA0:
        return code
    return code[:-meta_len - 2]


def code_matches(deployed: bytes | str, expected: bytes | str, ignore_metadata: bool = True) -> bool:
    deployed_b = hex_to_bytes(deployed, "deployed code")
    expected_b = hex_to_bytes(expected, "expected code")
    if ignore_metadata:
        deployed_b, expected_b = strip_metadata(deployed_b), strip_metadata(expected_b)
    return deployed_b == expected_b


def call_view(
    w3: Web3,
    address: str,
    descriptor: FunctionDescriptor | str,
    args: Sequence[Any] = (),
    sender: str | None = None,
) -> tuple[Any, ...]:
    if isinstance(descriptor, str):
        descriptor = FunctionDescriptor.parse(descriptor)
    tx: dict[str, Any] = {"to": to_address(address), "data": descriptor.encode_call(args)}
    if sender:
        tx["from"] = to_address(sender, "sender")
    return descriptor.decode_output(w3.eth.call(tx))


def read_owner(w3: Web3, address: str) -> str:
    return to_address(call_view(w3, address, OWNER)[0])


def has_role(w3: Web3, address: str, role: bytes | str, account: str) -> bool:
    if isinstance(role, str):
        role = role_id(role)
    return bool(call_view(w3, address, HAS_ROLE, [role, account])[0])


def read_role_constant(w3: Web3, address: str, name: str) -> bytes:
    """Read a public ``bytes32`` role constant such as ``REGISTRAR_ROLE()``."""
    return bytes(call_view(w3, address, f"function {name}() view returns (bytes32)")[0])


def read_storage_slot(w3: Web3, address: str, slot: int) -> bytes:
    return bytes(w3.eth.get_storage_at(to_address(address), slot)).rjust(32, b"\x00")


@dataclass(frozen=True)
class ContractCreation:
    block_number: int
    tx_hash: str
    sender: str
    address: str
    code_size: int


def _created_addresses(receipt: Any, factory: str) -> list[str]:
    if receipt.get("contractAddress"):
        return [receipt["contractAddress"]]
    found = []
    for log in receipt.get("logs", []):
        topics = log.get("topics", [])
        if not same_address(log.get("address", ""), factory) or len(topics) < 2:
            continue
        if bytes(topics[0]) == DEPLOYED_TOPIC:
            found.append(to_address(bytes(topics[1])[12:]))
    return found


def scan_factory_creations(w3: Web3, factory: str, blocks: int = 5) -> list[ContractCreation]:
    """
    Look through the last ``blocks`` blocks for transactions sent to
    ``factory`` and report the contracts they created.

    Created addresses come from the receipt's ``contractAddress`` or from
    ``Deployed(address indexed, uint256)`` events emitted by the factory.
    """
    factory = to_address(factory, "factory")
    latest = w3.eth.block_number
    creations: list[ContractCreation] = []
    for number in range(latest, max(latest - blocks, -1), -1):
        block = w3.eth.get_block(number, full_transactions=True)
        for tx in block.get("transactions", []):
            if not tx.get("to") or not same_address(tx["to"], factory):
                continue
            tx_hash = to_hex(bytes(tx["hash"]))
            receipt = w3.eth.get_transaction_receipt(tx_hash)
            for created in _created_addresses(receipt, factory):
                creations.append(ContractCreation(
                    block_number=number,
                    tx_hash=tx_hash,
                    sender=to_address(tx["from"]),
                    address=to_address(created),
                    code_size=len(get_code(w3, created)),
                ))
    logger.debug("Scanned %d blocks from %d: %d creations", blocks, latest, len(creations))
    return creations
