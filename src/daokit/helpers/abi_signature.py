"""
Typed function descriptors built from human-readable ABI fragments.

A fragment such as::

    "function deploy(bytes calldata initcode) external payable returns (address addr)"

is parsed once into a :class:`FunctionDescriptor` holding the function name,
canonical parameter types and state mutability. The descriptor then encodes
and decodes calldata with ``eth_abi`` without building a web3 contract object.

Public API
----------
FunctionDescriptor.parse(fragment)
    Parse and validate a fragment.
ContractInterface(fragments)
    A group of descriptors resolved by name or canonical signature.
normalize_value(abi_type, value)
    Coerce JSON-friendly values (hex strings, decimal strings) to what
    ``eth_abi`` expects for ``abi_type``.
"""
from __future__ import annotations

import re
from collections.abc import Iterable, Sequence
from dataclasses import dataclass
from typing import Any

from eth_abi import decode, encode, is_encodable, is_encodable_type
from eth_abi.exceptions import DecodingError, EncodingError
from eth_abi.grammar import normalize
from eth_utils import keccak

from daokit.errors import ArgumentMismatch, ValidationError, UnknownFunction
from daokit.helpers.hexutil import hex_to_bytes, to_address, to_hex

__all__ = [
    "FunctionDescriptor",
    "ContractInterface",
    "normalize_value",
    "normalize_values",
    "split_top_level",
    "parse_type_list",
    "abi_param_type",
]

_NAME_RE = re.compile(r"^([A-Za-z_$][A-Za-z0-9_$]*)\s*\(")
_ELEMENTARY_RE = re.compile(r"^([a-z]+[0-9x]*)((?:\[[0-9]*\])*)$")
_ARRAY_RE = re.compile(r"^(.*)\[([0-9]*)\]$")
_MUTABILITIES = ("pure", "view", "payable")


def _matching_paren(text: str, open_idx: int) -> int:
    depth = 0
    for idx in range(open_idx, len(text)):
        ch = text[idx]
        if ch == "(":
            depth += 1
        elif ch == ")":
            depth -= 1
            if depth == 0:
                return idx
    raise UnknownFunction(f"Unbalanced parentheses in {text!r}")


def split_top_level(text: str) -> list[str]:
    """Split ``text`` on commas that are not nested inside parentheses."""
    parts: list[str] = []
    depth = 0
    current = []
    for ch in text:
        if ch == "(":
            depth += 1
        elif ch == ")":
            depth -= 1
        if ch == "," and depth == 0:
            parts.append("".join(current).strip())
            current = []
        else:
            current.append(ch)
    tail = "".join(current).strip()
    if tail or parts:
        parts.append(tail)
    return parts


def _canonical_type(raw: str) -> str:
    raw = raw.strip()
    if raw.startswith("tuple("):
        raw = raw[len("tuple"):]
    if raw.startswith("("):
        close = _matching_paren(raw, 0)
        inner = raw[1:close]
        suffix = raw[close + 1:].strip()
        members = [_param_type(p) for p in split_top_level(inner)] if inner.strip() else []
        return "(" + ",".join(members) + ")" + suffix
    match = _ELEMENTARY_RE.match(raw)
    if not match:
        raise UnknownFunction(f"Unrecognised ABI type {raw!r}")
    base, dims = match.groups()
    return normalize(base + dims)


def _param_type(param: str) -> str:
    """Extract the canonical type from ``"bytes calldata initcode"`` style params."""
    param = param.strip()
    if not param:
        raise UnknownFunction("Empty parameter in fragment")
    if param.startswith("(") or param.startswith("tuple("):
        start = param.index("(")
        end = _matching_paren(param, start) + 1
        while end < len(param) and param[end] == "[":
            close = param.index("]", end)
            end = close + 1
        return _canonical_type(param[:end])
    return _canonical_type(param.split()[0])


def parse_type_list(text: str, unwrap: bool = True) -> tuple[str, ...]:
    """
    Parse ``"uint256,address"`` or ``"uint256 initial, address owner"``.

    With ``unwrap`` a fully parenthesised list such as ``"(uint256,address)"``
    is read as the parameter list itself; a single tuple parameter is then
    written ``"((address,uint64))"``.
    """
    text = text.strip()
    if unwrap and text.startswith("(") and _matching_paren(text, 0) == len(text) - 1:
        text = text[1:-1]
    if not text.strip():
        return ()
    types = tuple(_param_type(p) for p in split_top_level(text))
    for abi_type in types:
        if not is_encodable_type(abi_type):
            raise UnknownFunction(f"Type {abi_type!r} is not ABI-encodable")
    return types


# ---------------------------------------------------------------------------
# Value normalisation
# ---------------------------------------------------------------------------

def normalize_value(abi_type: str, value: Any, name: str = "argument") -> Any:
    array = _ARRAY_RE.match(abi_type)
    if array:
        inner, size = array.groups()
        if not isinstance(value, (list, tuple)):
            raise ArgumentMismatch(f"{name} must be a list for type {abi_type}")
        if size and len(value) != int(size):
            raise ArgumentMismatch(f"{name} must have {size} elements, got {len(value)}")
        return [normalize_value(inner, v, f"{name}[{i}]") for i, v in enumerate(value)]

    if abi_type.startswith("("):
        members = split_top_level(abi_type[1:-1])
        if isinstance(value, dict):
            value = list(value.values())
        if not isinstance(value, (list, tuple)) or len(value) != len(members):
            raise ArgumentMismatch(f"{name} must be a {len(members)}-tuple for type {abi_type}")
        return tuple(normalize_value(t, v, f"{name}.{i}") for i, (t, v) in enumerate(zip(members, value)))

    try:
        if abi_type == "address":
            return to_address(value, name)
        if abi_type == "bool":
            if isinstance(value, str) and value.lower() in ("true", "false"):
                return value.lower() == "true"
            return value
        if abi_type == "string":
            return value
        if abi_type.startswith("bytes"):
            data = hex_to_bytes(value, name) if isinstance(value, str) else value
            size = abi_type[len("bytes"):]
            if size and isinstance(data, (bytes, bytearray)) and len(data) != int(size):
                raise ArgumentMismatch(f"{name} must be exactly {size} bytes for {abi_type}, got {len(data)}")
            return data
        if abi_type.startswith(("uint", "int")):
            if isinstance(value, bool):
                raise ArgumentMismatch(f"{name} must be an integer, got a bool")
            if isinstance(value, str):
                text = value.strip()
                return int(text, 16) if text.lower().startswith("0x") else int(text)
            return value
    except ArgumentMismatch:
        raise
    except (ValidationError, ValueError) as e:
        raise ArgumentMismatch(f"{name} is not a valid {abi_type}: {e}") from e
    return value


def normalize_values(types: Sequence[str], values: Sequence[Any], context: str = "arguments") -> list[Any]:
    """Normalise ``values`` against ``types`` and check they are encodable."""
    if isinstance(values, (str, bytes)) or not isinstance(values, Sequence):
        raise ArgumentMismatch(f"{context} must be a list")
    if len(types) != len(values):
        raise ArgumentMismatch(
            f"{context}: expected {len(types)} values for ({','.join(types)}), got {len(values)}"
        )
    normalized = [normalize_value(t, v, f"{context}[{i}]") for i, (t, v) in enumerate(zip(types, values))]
    for idx, (abi_type, value) in enumerate(zip(types, normalized)):
        if not is_encodable(abi_type, value):
            raise ArgumentMismatch(f"{context}[{idx}] is not encodable as {abi_type}: {value!r}")
    return normalized


def encode_values(types: Sequence[str], values: Sequence[Any], context: str = "arguments") -> bytes:
    normalized = normalize_values(types, values, context)
    try:
        return encode(list(types), normalized)
    except EncodingError as e:
        raise ArgumentMismatch(f"{context}: {e}") from e


# ---------------------------------------------------------------------------
# Descriptors
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class FunctionDescriptor:
    """A validated function signature with its parameter and return types."""

    name: str
    inputs: tuple[str, ...]
    outputs: tuple[str, ...] = ()
    state_mutability: str = "nonpayable"

    @classmethod
    def parse(cls, fragment: str) -> FunctionDescriptor:
        text = fragment.strip().rstrip(";").strip()
        for keyword in ("function ", "error "):
            if text.startswith(keyword):
                text = text[len(keyword):].strip()
        match = _NAME_RE.match(text)
        if not match:
            raise UnknownFunction(f"Cannot parse function fragment {fragment!r}")
        name = match.group(1)
        open_idx = match.end() - 1
        close = _matching_paren(text, open_idx)
        inputs = parse_type_list(text[open_idx + 1:close], unwrap=False)

        rest = text[close + 1:]
        outputs: tuple[str, ...] = ()
        modifiers = rest
        if "returns" in rest:
            idx = rest.index("returns")
            modifiers = rest[:idx]
            ret = rest[idx + len("returns"):].strip()
            if not ret.startswith("("):
                raise UnknownFunction(f"Malformed returns clause in {fragment!r}")
            ret_close = _matching_paren(ret, 0)
            outputs = parse_type_list(ret[1:ret_close], unwrap=False)

        mutability = "nonpayable"
        for token in modifiers.split():
            if token in _MUTABILITIES:
                mutability = token
        return cls(name=name, inputs=inputs, outputs=outputs, state_mutability=mutability)

    @property
    def signature(self) -> str:
        return f"{self.name}({','.join(self.inputs)})"

    @property
    def selector(self) -> bytes:
        return keccak(text=self.signature)[:4]

    @property
    def is_view(self) -> bool:
        return self.state_mutability in ("view", "pure")

    def encode_call(self, args: Sequence[Any] = ()) -> bytes:
        """Return ``selector ‖ abi.encode(inputs, args)``."""
        return self.selector + encode_values(self.inputs, list(args), self.signature)

    def decode_call(self, calldata: bytes | str) -> tuple[Any, ...]:
        data = hex_to_bytes(calldata, "calldata")
        if data[:4] != self.selector:
            raise ArgumentMismatch(
                f"calldata selector {to_hex(data[:4])} does not match {self.signature} ({to_hex(self.selector)})"
            )
        try:
            return decode(list(self.inputs), data[4:])
        except DecodingError as e:
            raise ArgumentMismatch(f"calldata does not decode as {self.signature}: {e}") from e

    def decode_output(self, data: bytes | str) -> tuple[Any, ...]:
        raw = hex_to_bytes(data, "return data")
        try:
            return decode(list(self.outputs), raw)
        except DecodingError as e:
            raise ArgumentMismatch(f"return data does not decode as ({','.join(self.outputs)}): {e}") from e

    def __str__(self) -> str:
        return self.signature


def abi_param_type(param: dict[str, Any]) -> str:
    """Canonical type of a JSON-ABI parameter, expanding tuple components."""
    abi_type = param["type"]
    if abi_type.startswith("tuple"):
        members = ",".join(abi_param_type(c) for c in param.get("components", []))
        return f"({members}){abi_type[len('tuple'):]}"
    return abi_type


class ContractInterface:
    """A minimal contract interface assembled from fragments."""

    def __init__(self, fragments: Iterable[str | FunctionDescriptor]):
        self.functions: list[FunctionDescriptor] = [
            f if isinstance(f, FunctionDescriptor) else FunctionDescriptor.parse(f) for f in fragments
        ]

    @classmethod
    def from_abi(cls, abi: Iterable[dict[str, Any]]) -> ContractInterface:
        """Build from a JSON ABI (as found in Hardhat artifacts); non-functions are skipped."""
        functions = []
        for entry in abi:
            if entry.get("type", "function") != "function":
                continue
            mutability = entry.get("stateMutability")
            if mutability is None:
                mutability = "view" if entry.get("constant") else "payable" if entry.get("payable") else "nonpayable"
            functions.append(FunctionDescriptor(
                name=entry["name"],
                inputs=tuple(abi_param_type(p) for p in entry.get("inputs", [])),
                outputs=tuple(abi_param_type(p) for p in entry.get("outputs", [])),
                state_mutability=mutability,
            ))
        return cls(functions)

    def get(self, name: str, arg_count: int | None = None) -> FunctionDescriptor:
        """Resolve by bare name (``grantRole``) or signature (``grantRole(bytes32,address)``)."""
        if "(" in name:
            wanted = FunctionDescriptor.parse(name).signature
            for fn in self.functions:
                if fn.signature == wanted:
                    return fn
            raise UnknownFunction(f"{wanted} is not part of this interface")

        candidates = [fn for fn in self.functions if fn.name == name]
        if arg_count is not None and len(candidates) > 1:
            candidates = [fn for fn in candidates if len(fn.inputs) == arg_count]
        if not candidates:
            known = ", ".join(fn.signature for fn in self.functions) or "none"
            raise UnknownFunction(f"Function {name!r} not found (known: {known})")
        if len(candidates) > 1:
            raise UnknownFunction(
                f"Function {name!r} is overloaded; use a full signature "
                f"({', '.join(fn.signature for fn in candidates)})"
            )
        return candidates[0]

    def by_selector(self, selector: bytes) -> FunctionDescriptor:
        for fn in self.functions:
            if fn.selector == selector[:4]:
                return fn
        raise UnknownFunction(f"No function with selector {to_hex(selector[:4])}")

    def encode(self, name: str, args: Sequence[Any] = ()) -> bytes:
        return self.get(name, len(args)).encode_call(args)

    def __contains__(self, name: str) -> bool:
        return any(fn.name == name or fn.signature == name for fn in self.functions)

    def __iter__(self):
        return iter(self.functions)
