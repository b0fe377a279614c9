"""
Init code and address commands: ``build-initcode`` and ``compute-address``.
"""
from __future__ import annotations

import argparse
import logging

from daokit.commands.common import (
    add_initcode_args,
    add_salt_args,
    connect,
    get_settings,
    parse_json_arg,
    print_exports,
    print_json,
    resolve_initcode,
    resolve_salt,
)
from daokit.config.abis import BYTECODE_FACTORY_ABI, COUNTER_FACTORY_ABI
from daokit.config.contracts import CONTRACT_ADDRESSES, WELL_KNOWN_ADDRESSES
from daokit.config.settings import env_or, pick
from daokit.errors import MissingConfiguration
from daokit.helpers.abi_signature import ContractInterface, FunctionDescriptor
from daokit.helpers.create2 import (
    compute_create2_address,
    compute_create2_address_from_hash,
    compute_create_address,
    predict_create_via_nonce,
    predict_via_factory,
)
from daokit.helpers.hexutil import same_address, to_address, to_hex

logger = logging.getLogger(__name__)


def onchain_function(name: str, factory: str, chain: str, arg_count: int) -> FunctionDescriptor | str:
    """Resolve a bare view name against the factory's interface; full fragments pass through."""
    if "(" in name:
        return name
    counter_factory = CONTRACT_ADDRESSES.get(chain, {}).get("counterFactory")
    abi = COUNTER_FACTORY_ABI if counter_factory and same_address(factory, counter_factory) else BYTECODE_FACTORY_ABI
    return ContractInterface(abi).get(name, arg_count)


def cmd_build_initcode(args: argparse.Namespace) -> int:
    bundle = resolve_initcode(args)
    summary = bundle.summary()

    if args.json:
        print_json({**summary, "initcode": to_hex(bundle.init_code)})
        return 0

    print("=== Init Code ===")
    print(f"Bytecode length:   {summary['bytecode_length']} bytes")
    print(f"Constructor types: {', '.join(summary['constructor_types']) or '(none)'}")
    print(f"Constructor args:  {summary['constructor_args']} ({len(bundle.encoded_args)} bytes)")
    print(f"Init code length:  {summary['initcode_length']} bytes")
    print(f"Init code hash:    {summary['initcode_hash']}")
    print()
    print_exports({"INITCODE": to_hex(bundle.init_code), "INITCODE_HASH": summary["initcode_hash"]})
    return 0


def cmd_compute_address(args: argparse.Namespace) -> int:
    # CREATE: nonce-based
    if args.create_nonce or args.nonce is not None:
        deployer = pick(args.factory, "FACTORY_ADDRESS", "deployer address (--factory)")
        if args.nonce is not None:
            predicted = compute_create_address(deployer, args.nonce)
        else:
            predicted = predict_create_via_nonce(connect(args), deployer)
        print(f"Deployer:         {to_address(deployer)}")
        print(f"Predicted (CREATE): {predicted}")
        print_exports({"PREDICTED": predicted})
        return 0

    factory = args.factory or env_or("FACTORY_ADDRESS") or WELL_KNOWN_ADDRESSES["singletonFactory"]

    # Factory-delegated prediction
    if args.onchain:
        call_args = parse_json_arg(args.call_args, "--call-args")
        function = onchain_function(args.onchain, factory, get_settings(args).chain, len(call_args))
        predicted = predict_via_factory(connect(args), factory, function, call_args, sender=args.sender)
        print(f"Factory:          {to_address(factory)}")
        print(f"Function:         {args.onchain}")
        print(f"Predicted (factory view): {predicted}")
        print_exports({"PREDICTED": predicted})
        return 0

    salt = resolve_salt(args, caller=args.sender or env_or("TIMELOCK_ADDRESS"))
    if salt is None:
        raise MissingConfiguration("A salt is required (--salt, --salt-label, --protected-label, SALT or SALT_STRING)")

    if args.initcode_hash:
        predicted = compute_create2_address_from_hash(factory, salt, args.initcode_hash)
        code_hash = args.initcode_hash
    else:
        bundle = resolve_initcode(args)
        predicted = compute_create2_address(factory, salt, bundle.init_code)
        code_hash = bundle.hash_hex

    print(f"Factory:          {to_address(factory)}")
    print(f"Salt:             {to_hex(salt)}")
    print(f"Init code hash:   {code_hash}")
    print(f"Predicted (CREATE2): {predicted}")
    print_exports({"PREDICTED": predicted})
    return 0


def register(sub: argparse._SubParsersAction) -> None:
    p_build = sub.add_parser("build-initcode", help="Assemble creation bytecode + constructor args and hash it")
    add_initcode_args(p_build)
    p_build.add_argument("--json", action="store_true", help="Print a JSON summary instead of text")
    p_build.set_defaults(func=cmd_build_initcode)

    p_addr = sub.add_parser("compute-address", help="Predict a CREATE2/CREATE deployment address")
    p_addr.add_argument("--factory", help="Factory/deployer address (env FACTORY_ADDRESS, default EIP-2470 singleton)")
    add_salt_args(p_addr)
    add_initcode_args(p_addr)
    p_addr.add_argument("--initcode-hash", help="Use a known keccak256(init code) instead of the init code")
    p_addr.add_argument("--onchain", metavar="SIGNATURE",
                        help="Ask the factory instead: a view name such as computeAddress, or a full fragment")
    p_addr.add_argument("--call-args", help="JSON array of arguments for --onchain")
    p_addr.add_argument("--from", dest="sender", help="Caller used for --onchain and protected salts")
    p_addr.add_argument("--create-nonce", action="store_true", help="Predict the factory's next CREATE address from its nonce")
    p_addr.add_argument("--nonce", type=int, help="Predict the CREATE address for this deployer nonce (offline)")
    p_addr.set_defaults(func=cmd_compute_address)
