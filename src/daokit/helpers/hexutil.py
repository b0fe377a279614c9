"""
Hex and address parsing shared by the encoders.

All functions validate before anything touches the network and raise the
``daokit.errors`` validation types with a message naming the offending field.
"""
from __future__ import annotations

import re

from eth_utils import is_address, is_checksum_address, to_checksum_address

from daokit.errors import InvalidAddress, InvalidHex

__all__ = [
    "strip0x",
    "hex_to_bytes",
    "to_hex",
    "to_address",
    "same_address",
    "ZERO_ADDRESS",
]

ZERO_ADDRESS = "0x0000000000000000000000000000000000000000"

_HEX_RE = re.compile(r"^[0-9a-fA-F]*$")
_ADDRESS_RE = re.compile(r"^(0x)?[0-9a-fA-F]{40}$")


def strip0x(value: str) -> str:
    return value[2:] if value[:2] in ("0x", "0X") else value


def hex_to_bytes(value: str | bytes, name: str = "value") -> bytes:
    """Decode a 0x-prefixed (or bare) hex string. Bytes pass through unchanged."""
    if isinstance(value, (bytes, bytearray)):
        return bytes(value)
    if not isinstance(value, str):
        raise InvalidHex(f"{name} must be a hex string, got {type(value).__name__}")
    body = strip0x(value.strip())
    if len(body) % 2 != 0:
        raise InvalidHex(f"{name} has an odd number of hex digits ({len(body)})")
    if not _HEX_RE.match(body):
        raise InvalidHex(f"{name} is not valid hex")
    return bytes.fromhex(body)


def to_hex(value: bytes) -> str:
    return "0x" + bytes(value).hex()


def to_address(value: str | bytes, name: str = "address") -> str:
    """Return the EIP-55 checksum form of ``value``.

    Mixed-case input must already carry a valid checksum; all-lowercase or
    all-uppercase input is accepted and checksummed.
    """
    if isinstance(value, (bytes, bytearray)):
        if len(value) != 20:
            raise InvalidAddress(f"{name} must be 20 bytes, got {len(value)}")
        return to_checksum_address(bytes(value))
    if not isinstance(value, str) or not _ADDRESS_RE.match(value.strip()):
        raise InvalidAddress(f"{name} is not a 20-byte hex address: {value!r}")
    value = value.strip()
    if not value.startswith("0x"):
        value = "0x" + value
    body = value[2:]
    mixed_case = body != body.lower() and body != body.upper()
    if mixed_case and not is_checksum_address(value):
        raise InvalidAddress(f"{name} fails the EIP-55 checksum: {value}")
    if not is_address(value.lower()):
        raise InvalidAddress(f"{name} is not a valid address: {value}")
    return to_checksum_address(value)


def same_address(a: str, b: str) -> bool:
    """Case-insensitive address equality."""
    return strip0x(a).lower() == strip0x(b).lower()
