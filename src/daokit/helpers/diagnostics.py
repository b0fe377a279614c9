"""
Static-call probing with typed failure outcomes.

Debugging a deployment mostly means asking "would this call revert, and
why?". ``static_call`` runs one ``eth_call`` and returns a
:class:`CallOutcome` instead of raising on a revert; the revert data is
decoded against ``Error(string)``, ``Panic(uint256)`` and the custom errors
the DAO contracts are known to use. Transport failures still raise.
"""
from __future__ import annotations

import logging
import re
from collections.abc import Iterable
from dataclasses import dataclass
from enum import Enum
from typing import Any, Optional

from eth_abi import decode
from eth_abi.exceptions import DecodingError
from web3 import Web3
from web3.exceptions import ContractLogicError

from daokit.errors import InvalidHex
from daokit.helpers.abi_signature import FunctionDescriptor
from daokit.helpers.hexutil import hex_to_bytes, to_address, to_hex

logger = logging.getLogger(__name__)

__all__ = [
    "FailureKind",
    "CallOutcome",
    "KNOWN_ERRORS",
    "classify_revert",
    "static_call",
    "expect_failure",
]


class FailureKind(str, Enum):
    REVERT = "revert"
    CUSTOM_ERROR = "custom_error"
    ACCESS_DENIED = "access_denied"
    PANIC = "panic"


ERROR_STRING = FunctionDescriptor.parse("Error(string)")
PANIC = FunctionDescriptor.parse("Panic(uint256)")

KNOWN_ERRORS: dict[bytes, FunctionDescriptor] = {
    d.selector: d
    for d in map(FunctionDescriptor.parse, [
        "EmptyInitcode()",
        "DeployFailed()",
        "FailedDeployment()",
        "Create2EmptyBytecode()",
        "OwnableUnauthorizedAccount(address account)",
        "AccessControlUnauthorizedAccount(address account, bytes32 neededRole)",
        "OwnableInvalidOwner(address owner)",
        "InsufficientBalance(uint256 balance, uint256 needed)",
    ])
}

ACCESS_ERRORS = {"OwnableUnauthorizedAccount", "AccessControlUnauthorizedAccount"}

# Pre-5.0 OpenZeppelin require strings
_LEGACY_ACCESS = re.compile(
    r"Ownable: caller is not the owner|AccessControl: account 0x[0-9a-fA-F]{40} is missing role"
)

PANIC_CODES = {
    0x00: "generic compiler panic",
    0x01: "assertion failed",
    0x11: "arithmetic overflow or underflow",
    0x12: "division or modulo by zero",
    0x21: "invalid enum value",
    0x22: "corrupt storage byte array",
    0x31: "pop on empty array",
    0x32: "array index out of bounds",
    0x41: "out of memory",
    0x51: "call to zero-initialized function",
}


@dataclass(frozen=True)
class CallOutcome:
    """Result of one static call: success with return data, or a typed failure."""

    success: bool
    return_data: bytes = b""
    kind: Optional[FailureKind] = None
    error_name: Optional[str] = None
    error_args: tuple[Any, ...] = ()
    message: str = ""
    revert_data: bytes = b""

    def matches(self, kind: FailureKind | str) -> bool:
        return not self.success and self.kind == FailureKind(kind)

    def describe(self) -> str:
        if self.success:
            return f"success ({len(self.return_data)} bytes returned)"
        detail = self.error_name or "revert"
        if self.error_args:
            detail += "(" + ", ".join(_fmt(a) for a in self.error_args) + ")"
        if self.message and self.message not in detail:
            detail += f": {self.message}"
        return f"{self.kind.value} - {detail}"


def _fmt(value: Any) -> str:
    if isinstance(value, bytes):
        return to_hex(value)
    return str(value)


def classify_revert(
    data: bytes,
    message: str = "",
    extra_errors: Iterable[FunctionDescriptor | str] = (),
) -> CallOutcome:
    """Decode revert ``data`` into a failed :class:`CallOutcome`."""
    known = dict(KNOWN_ERRORS)
    for err in extra_errors:
        desc = err if isinstance(err, FunctionDescriptor) else FunctionDescriptor.parse(err)
        known[desc.selector] = desc

    if len(data) < 4:
        kind = FailureKind.ACCESS_DENIED if _LEGACY_ACCESS.search(message) else FailureKind.REVERT
        return CallOutcome(False, kind=kind, message=message, revert_data=data)

    selector, body = data[:4], data[4:]
    try:
        if selector == ERROR_STRING.selector:
            (reason,) = decode(["string"], body)
            kind = FailureKind.ACCESS_DENIED if _LEGACY_ACCESS.search(reason) else FailureKind.REVERT
            return CallOutcome(False, kind=kind, error_name="Error", message=reason, revert_data=data)
        if selector == PANIC.selector:
            (code,) = decode(["uint256"], body)
            return CallOutcome(
                False,
                kind=FailureKind.PANIC,
                error_name="Panic",
                error_args=(code,),
                message=PANIC_CODES.get(code, f"panic code {code:#x}"),
                revert_data=data,
            )
        if selector in known:
            desc = known[selector]
            args = decode(list(desc.inputs), body)
            kind = FailureKind.ACCESS_DENIED if desc.name in ACCESS_ERRORS else FailureKind.CUSTOM_ERROR
            return CallOutcome(False, kind=kind, error_name=desc.name, error_args=tuple(args), revert_data=data)
    except DecodingError as e:
        logger.debug("Revert data %s did not decode: %s", to_hex(data), e)

    return CallOutcome(
        False,
        kind=FailureKind.CUSTOM_ERROR,
        message=f"unknown error selector {to_hex(selector)}",
        revert_data=data,
    )


def _revert_bytes(data: Any) -> bytes:
    if isinstance(data, dict):
        data = data.get("data")
    if isinstance(data, (bytes, bytearray)):
        return bytes(data)
    if isinstance(data, str):
        try:
            return hex_to_bytes(data, "revert data")
        except InvalidHex:
            return b""
    return b""


def static_call(
    w3: Web3,
    to: str,
    data: bytes | str,
    sender: Optional[str] = None,
    value: int = 0,
    extra_errors: Iterable[FunctionDescriptor | str] = (),
) -> CallOutcome:
    """
    Run ``eth_call`` and report the outcome.

    Reverts become failed outcomes; connection and RPC errors propagate.
    """
    tx: dict[str, Any] = {"to": to_address(to, "to"), "data": hex_to_bytes(data, "calldata")}
    if sender:
        tx["from"] = to_address(sender, "sender")
    if value:
        tx["value"] = value

    try:
        raw = w3.eth.call(tx)
    except ContractLogicError as e:
        outcome = classify_revert(_revert_bytes(e.data), e.message or str(e), extra_errors)
        logger.debug("Static call to %s failed: %s", tx["to"], outcome.describe())
        return outcome
    return CallOutcome(True, return_data=bytes(raw))


def expect_failure(outcome: CallOutcome, kind: FailureKind | str, error_name: Optional[str] = None) -> bool:
    """True when ``outcome`` failed with ``kind`` (and ``error_name``, if given)."""
    if not outcome.matches(kind):
        return False
    return error_name is None or outcome.error_name == error_name
