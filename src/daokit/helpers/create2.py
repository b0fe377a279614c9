"""
Deterministic contract address prediction.

Two modes:

* local CREATE2 formula (EIP-1014)::

      address = keccak256(0xff ‖ factory ‖ salt ‖ keccak256(init_code))[12:]

* factory-delegated prediction, for factories that apply their own salt
  convention (e.g. mixing in ``msg.sender``). The factory's view function is
  called through ``eth_call`` and its answer is returned verbatim.

CREATE (nonce based) prediction is included for factories that deploy with
plain ``create``.

Public API
----------
compute_create2_address(factory, salt, init_code)
compute_create2_address_from_hash(factory, salt, init_code_hash)
compute_create_address(deployer, nonce)
predict_via_factory(w3, factory, descriptor, args, sender=None)
predict_create_via_nonce(w3, factory)
salt_from_label(label) / protected_salt(caller, label) / parse_salt(value)
"""
from __future__ import annotations

import logging
from collections.abc import Sequence
from typing import Any

import rlp
from eth_utils import keccak, to_checksum_address
from web3 import Web3

from daokit.errors import ArgumentMismatch, EmptyBytecode, InvalidSalt
from daokit.helpers.abi_signature import FunctionDescriptor
from daokit.helpers.hexutil import hex_to_bytes, same_address, strip0x, to_address

logger = logging.getLogger(__name__)

__all__ = [
    "compute_create2_address",
    "compute_create2_address_from_hash",
    "compute_create_address",
    "predict_via_factory",
    "predict_create_via_nonce",
    "salt_from_label",
    "protected_salt",
    "parse_salt",
    "salt_has_caller_prefix",
]

CREATE2_PREFIX = b"\xff"


def _address_bytes(value: str | bytes, name: str) -> bytes:
    return bytes.fromhex(strip0x(to_address(value, name)))


def parse_salt(value: str | bytes) -> bytes:
    """Return a 32-byte salt from hex or bytes; anything else is rejected."""
    try:
        salt = hex_to_bytes(value, "salt")
    except ValueError as e:
        raise InvalidSalt(str(e)) from e
    if len(salt) != 32:
        raise InvalidSalt(f"Salt must be exactly 32 bytes, got {len(salt)}")
    return salt


def salt_from_label(label: str) -> bytes:
    """keccak256 of the UTF-8 label, e.g. ``salt_from_label("counter-1")``."""
    return keccak(text=label)


def protected_salt(caller: str, label: str) -> bytes:
    """Salt for factories that only let ``caller`` claim it.

    The first 20 bytes are the caller address, the remaining 12 bytes are the
    leading bytes of ``keccak256(label)``.
    """
    return _address_bytes(caller, "caller") + keccak(text=label)[:12]


def salt_has_caller_prefix(salt: bytes, caller: str) -> bool:
    return same_address("0x" + parse_salt(salt)[:20].hex(), caller)


def compute_create2_address_from_hash(factory: str | bytes, salt: str | bytes, init_code_hash: str | bytes) -> str:
    factory_bytes = _address_bytes(factory, "factory")
    salt_bytes = parse_salt(salt)
    code_hash = hex_to_bytes(init_code_hash, "init code hash")
    if len(code_hash) != 32:
        raise ArgumentMismatch(f"Init code hash must be 32 bytes, got {len(code_hash)}")
    digest = keccak(CREATE2_PREFIX + factory_bytes + salt_bytes + code_hash)
    return to_checksum_address(digest[12:])


def compute_create2_address(factory: str | bytes, salt: str | bytes, init_code: str | bytes) -> str:
    """
    Compute the CREATE2 address a factory will deploy ``init_code`` to.

    Args:
        factory: Deploying contract address
        salt: 32-byte salt (hex or bytes)
        init_code: Creation bytecode with encoded constructor arguments

    Returns:
        Checksum-formatted address

    Raises:
        InvalidAddress, InvalidSalt, EmptyBytecode, InvalidHex
    """
    code = hex_to_bytes(init_code, "init code")
    if not code:
        raise EmptyBytecode("Init code is empty")
    return compute_create2_address_from_hash(factory, salt, keccak(code))


def compute_create_address(deployer: str | bytes, nonce: int) -> str:
    """Address of the contract created by ``deployer`` at ``nonce`` (plain CREATE)."""
    if nonce < 0:
        raise ArgumentMismatch(f"Nonce must be non-negative, got {nonce}")
    encoded = rlp.encode([_address_bytes(deployer, "deployer"), nonce])
    return to_checksum_address(keccak(encoded)[12:])


def predict_via_factory(
    w3: Web3,
    factory: str,
    descriptor: FunctionDescriptor | str,
    args: Sequence[Any] = (),
    sender: str | None = None,
) -> str:
    """
    Ask the factory where it will deploy.

    The call is encoded and validated locally before the single ``eth_call``.
    Reverts and transport errors propagate to the caller.
    """
    if isinstance(descriptor, str):
        descriptor = FunctionDescriptor.parse(descriptor)
    if descriptor.outputs and descriptor.outputs[0] != "address":
        raise ArgumentMismatch(f"{descriptor.signature} does not return an address")

    factory = to_address(factory, "factory")
    tx: dict[str, Any] = {"to": factory, "data": descriptor.encode_call(args)}
    if sender:
        tx["from"] = to_address(sender, "sender")

    logger.debug("eth_call %s.%s", factory, descriptor.signature)
    raw = w3.eth.call(tx)
    if len(raw) < 32:
        raise ArgumentMismatch(f"{descriptor.signature} returned {len(raw)} bytes, expected an address")
    predicted = to_checksum_address(bytes(raw[12:32]))
    logger.info("Factory %s predicts %s", factory, predicted)
    return predicted


def predict_create_via_nonce(w3: Web3, factory: str) -> str:
    """Predict the next CREATE address of ``factory`` from its current nonce."""
    factory = to_address(factory, "factory")
    nonce = w3.eth.get_transaction_count(factory)
    return compute_create_address(factory, nonce)
