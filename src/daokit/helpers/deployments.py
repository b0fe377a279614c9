"""
Deployment plans: which factory call deploys an init code, and where it lands.

A plan is the single proposal action that deploys a contract through one of
the supported factories, together with the predicted address when it can be
known ahead of execution.

====================  ======================================  ===================
kind                  factory call                            prediction
====================  ======================================  ===================
``singleton``         ``deploy(bytes,bytes32)`` (EIP-2470)    local CREATE2
``immutable``         ``safeCreate2(bytes32,bytes)``          local CREATE2
``create2``           ``deployCreate2(bytes32,bytes)``        local or factory view
``create``            ``deploy(bytes)``                       factory nonce
``register``          ``deployAndRegister(...)``              factory nonce
====================  ======================================  ===================
"""
from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Any, Optional

from eth_utils import keccak
from web3 import Web3

from daokit.config.abis import BYTECODE_FACTORY_ABI, IMMUTABLE_FACTORY_ABI, SINGLETON_FACTORY_ABI
from daokit.config.contracts import WELL_KNOWN_ADDRESSES, get_contract_warning
from daokit.errors import MissingConfiguration
from daokit.helpers.abi_signature import ContractInterface
from daokit.helpers.create2 import (
    compute_create2_address,
    parse_salt,
    predict_create_via_nonce,
    predict_via_factory,
    salt_has_caller_prefix,
)
from daokit.helpers.hexutil import to_address, to_hex
from daokit.helpers.initcode import InitcodeBundle
from daokit.helpers.proposal import ProposalAction

logger = logging.getLogger(__name__)

__all__ = ["FactoryKind", "DeploymentPlan", "plan_deployment"]

SINGLETON = ContractInterface(SINGLETON_FACTORY_ABI)
IMMUTABLE = ContractInterface(IMMUTABLE_FACTORY_ABI)
BYTECODE_FACTORY = ContractInterface(BYTECODE_FACTORY_ABI)


class FactoryKind(str, Enum):
    SINGLETON = "singleton"
    IMMUTABLE = "immutable"
    CREATE2 = "create2"
    CREATE = "create"
    REGISTER = "register"


@dataclass(frozen=True)
class DeploymentPlan:
    kind: FactoryKind
    factory: str
    calldata: bytes
    bundle: InitcodeBundle
    predicted: Optional[str] = None
    salt: Optional[bytes] = None
    warnings: tuple[str, ...] = ()

    def action(self, note: str = "") -> ProposalAction:
        return ProposalAction(self.factory, 0, self.calldata, note or f"deploy via {self.kind.value} factory")

    def summary(self) -> dict[str, Any]:
        return {
            "kind": self.kind.value,
            "factory": self.factory,
            "salt": to_hex(self.salt) if self.salt is not None else None,
            "predictedAddress": self.predicted,
            "initcodeHash": to_hex(self.bundle.hash),
            "initcodeLength": len(self.bundle.init_code),
            "warnings": list(self.warnings),
        }


def _require(value: Optional[str], what: str) -> str:
    if not value:
        raise MissingConfiguration(f"{what} is required for this factory kind")
    return value


def plan_deployment(
    kind: FactoryKind | str,
    bundle: InitcodeBundle,
    factory: Optional[str] = None,
    salt: Optional[bytes | str] = None,
    caller: Optional[str] = None,
    w3: Optional[Web3] = None,
    onchain: bool = False,
    registry: Optional[str] = None,
    contract_kind: str = "",
    version: int = 1,
    label: str = "",
    uri: str = "",
) -> DeploymentPlan:
    """
    Build the factory call deploying ``bundle`` and predict its address.

    Args:
        kind: Factory kind (see module table)
        bundle: Assembled init code
        factory: Factory address; defaults to the well-known address for
            ``singleton`` and ``immutable``
        salt: 32-byte salt for the CREATE2 kinds
        caller: Account that will execute the call (the timelock), used to
            check the immutable factory's salt prefix
        w3: Needed for nonce-based and on-chain predictions
        onchain: Ask a ``create2`` factory's ``computeAddress`` view instead
            of using the local formula
        registry, contract_kind, version, label, uri: ``register`` arguments;
            ``contract_kind`` is hashed into the registry's ``bytes32 kind``

    Raises:
        MissingConfiguration: a required address or salt is absent
    """
    kind = FactoryKind(kind)
    warnings: list[str] = []
    init_code = bundle.init_code

    if kind is FactoryKind.SINGLETON:
        factory = to_address(factory or WELL_KNOWN_ADDRESSES["singletonFactory"], "factory")
        salt_b = parse_salt(_require(salt, "salt"))
        calldata = SINGLETON.encode("deploy", [init_code, salt_b])
        predicted = compute_create2_address(factory, salt_b, init_code)

    elif kind is FactoryKind.IMMUTABLE:
        factory = to_address(factory or WELL_KNOWN_ADDRESSES["immutableCreate2Factory"], "factory")
        salt_b = parse_salt(_require(salt, "salt"))
        if salt_b[:20] != b"\x00" * 20 and caller and not salt_has_caller_prefix(salt_b, caller):
            warnings.append(
                f"salt does not start with the caller {to_address(caller)}; safeCreate2 will revert"
            )
        calldata = IMMUTABLE.encode("safeCreate2", [salt_b, init_code])
        predicted = compute_create2_address(factory, salt_b, init_code)

    elif kind is FactoryKind.CREATE2:
        factory = to_address(_require(factory, "factory address"), "factory")
        salt_b = parse_salt(_require(salt, "salt"))
        calldata = BYTECODE_FACTORY.encode("deployCreate2", [salt_b, init_code])
        if onchain:
            if w3 is None:
                raise MissingConfiguration("an RPC connection is required for on-chain prediction")
            predicted = predict_via_factory(
                w3, factory, BYTECODE_FACTORY.get("computeAddress"), [salt_b, init_code], sender=caller
            )
        else:
            predicted = compute_create2_address(factory, salt_b, init_code)

    else:
        factory = to_address(_require(factory, "factory address"), "factory")
        salt_b = None
        if kind is FactoryKind.CREATE:
            calldata = BYTECODE_FACTORY.encode("deploy", [init_code])
        else:
            registry = to_address(_require(registry, "registry address"), "registry")
            calldata = BYTECODE_FACTORY.encode(
                "deployAndRegister",
                [init_code, registry, keccak(text=contract_kind or label), version, label, uri],
            )
        predicted = None
        if w3 is not None:
            predicted = predict_create_via_nonce(w3, factory)
            warnings.append("CREATE address assumes no other deployment through the factory before execution")

    factory_warning = get_contract_warning(factory)
    if factory_warning:
        warnings.append(factory_warning)
    for message in warnings:
        logger.warning(message)

    logger.info("Planned %s deployment via %s -> %s", kind.value, factory, predicted or "unknown address")
    return DeploymentPlan(
        kind=kind,
        factory=factory,
        calldata=calldata,
        bundle=bundle,
        predicted=predicted,
        salt=salt_b,
        warnings=tuple(warnings),
    )
