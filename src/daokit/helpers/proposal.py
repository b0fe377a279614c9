"""
Governance proposal encoding.

Turns an ordered list of intended calls into the parallel ``targets`` /
``values`` / ``calldatas`` arrays a Governor ``propose`` expects. Actions
keep their insertion order; execution order is the caller's responsibility.
"""
from __future__ import annotations

import logging
from collections.abc import Iterable, Sequence
from dataclasses import dataclass
from typing import Any

from eth_abi import encode
from eth_utils import keccak

from daokit.config.abis import GOVERNOR_ABI
from daokit.errors import ArgumentMismatch, EmptyProposal
from daokit.helpers.abi_signature import ContractInterface, FunctionDescriptor
from daokit.helpers.hexutil import hex_to_bytes, to_address, to_hex

logger = logging.getLogger(__name__)

__all__ = [
    "ProposalAction",
    "Proposal",
    "ProposalBuilder",
    "IntendedCall",
    "encode_proposal",
    "PROPOSE",
]

MAX_UINT256 = 2**256 - 1

PROPOSE = ContractInterface(GOVERNOR_ABI).get("propose")


@dataclass(frozen=True)
class ProposalAction:
    target: str
    value: int
    calldata: bytes
    note: str = ""

    def __post_init__(self):
        object.__setattr__(self, "target", to_address(self.target, "target"))
        if isinstance(self.value, bool) or not isinstance(self.value, int) or not 0 <= self.value <= MAX_UINT256:
            raise ArgumentMismatch(f"Action value must be a uint256, got {self.value!r}")
        object.__setattr__(self, "calldata", hex_to_bytes(self.calldata, "calldata"))

    def to_dict(self) -> dict[str, Any]:
        return {
            "target": self.target,
            "value": str(self.value),
            "calldata": to_hex(self.calldata),
            "note": self.note,
        }


@dataclass(frozen=True)
class Proposal:
    actions: tuple[ProposalAction, ...]
    description: str = ""

    def __post_init__(self):
        if not self.actions:
            raise EmptyProposal("A proposal needs at least one action")

    @property
    def targets(self) -> list[str]:
        return [a.target for a in self.actions]

    @property
    def values(self) -> list[int]:
        return [a.value for a in self.actions]

    @property
    def calldatas(self) -> list[bytes]:
        return [a.calldata for a in self.actions]

    @property
    def description_hash(self) -> bytes:
        return keccak(text=self.description)

    @property
    def proposal_id(self) -> int:
        """OpenZeppelin Governor ``hashProposal`` for these actions."""
        packed = encode(
            ["address[]", "uint256[]", "bytes[]", "bytes32"],
            [self.targets, self.values, self.calldatas, self.description_hash],
        )
        return int.from_bytes(keccak(packed), "big")

    @classmethod
    def from_payload(cls, payload: dict[str, Any]) -> Proposal:
        """Rebuild from a saved payload's parallel arrays."""
        targets, values, calldatas = payload["targets"], payload["values"], payload["calldatas"]
        if not len(targets) == len(values) == len(calldatas):
            raise ArgumentMismatch(
                f"payload arrays differ in length: {len(targets)} targets, "
                f"{len(values)} values, {len(calldatas)} calldatas"
            )
        actions = tuple(ProposalAction(t, int(v), c) for t, v, c in zip(targets, values, calldatas))
        return cls(actions=actions, description=payload.get("description", ""))

    def propose_calldata(self) -> bytes:
        return PROPOSE.encode_call([self.targets, self.values, self.calldatas, self.description])

    def to_payload(self) -> dict[str, Any]:
        return {
            "description": self.description,
            "targets": self.targets,
            "values": [str(v) for v in self.values],
            "calldatas": [to_hex(c) for c in self.calldatas],
            "actions": [a.to_dict() for a in self.actions],
            "proposalId": str(self.proposal_id),
            "descriptionHash": to_hex(self.description_hash),
        }


@dataclass(frozen=True)
class IntendedCall:
    """A call a proposal should make: target, function fragment, arguments."""

    target: str
    function: FunctionDescriptor | str
    args: Sequence[Any] = ()
    value: int = 0
    note: str = ""


class ProposalBuilder:
    """Accumulates actions in order and produces a :class:`Proposal`."""

    def __init__(self, description: str = "", interface: ContractInterface | None = None):
        self.description = description
        self.interface = interface
        self._actions: list[ProposalAction] = []

    def _resolve(self, function: FunctionDescriptor | str, arg_count: int) -> FunctionDescriptor:
        if isinstance(function, FunctionDescriptor):
            return function
        if self.interface is not None and "(" not in function:
            return self.interface.get(function, arg_count)
        return FunctionDescriptor.parse(function)

    def add_call(
        self,
        target: str,
        function: FunctionDescriptor | str,
        args: Sequence[Any] = (),
        value: int = 0,
        note: str = "",
    ) -> ProposalBuilder:
        descriptor = self._resolve(function, len(args))
        calldata = descriptor.encode_call(args)
        logger.debug("Action %d: %s.%s", len(self._actions) + 1, target, descriptor.signature)
        self._actions.append(ProposalAction(target, value, calldata, note or descriptor.signature))
        return self

    def add_raw(self, target: str, calldata: bytes | str, value: int = 0, note: str = "") -> ProposalBuilder:
        self._actions.append(ProposalAction(target, value, calldata, note))
        return self

    def __len__(self) -> int:
        return len(self._actions)

    def build(self) -> Proposal:
        return Proposal(actions=tuple(self._actions), description=self.description)


def encode_proposal(calls: Iterable[IntendedCall], description: str = "") -> Proposal:
    builder = ProposalBuilder(description)
    for call in calls:
        builder.add_call(call.target, call.function, call.args, call.value, call.note)
    return builder.build()
