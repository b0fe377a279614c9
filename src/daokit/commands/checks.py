"""
Read-only diagnostic commands: ``check-registry``, ``check-bytecode``,
``check-deployment`` and ``probe``.
"""
from __future__ import annotations

import argparse
import logging

from daokit.commands.common import connect, get_settings, parse_json_arg, print_table
from daokit.config.contracts import CONTRACT_ADDRESSES, get_known_address
from daokit.config.settings import env_or, pick
from daokit.errors import DeploymentCheckError
from daokit.helpers.abi_signature import FunctionDescriptor
from daokit.helpers.diagnostics import FailureKind, expect_failure, static_call
from daokit.helpers.hexutil import to_address, to_hex
from daokit.helpers.initcode import load_artifact
from daokit.helpers.inspect import (
    DEFAULT_ADMIN_ROLE,
    code_matches,
    get_code,
    has_role,
    read_role_constant,
    require_code,
    role_id,
    scan_factory_creations,
)

logger = logging.getLogger(__name__)


def cmd_check_registry(args: argparse.Namespace) -> int:
    settings = get_settings(args)
    w3 = connect(args)
    registry = to_address(args.registry or env_or("REGISTRY_ADDRESS")
                          or get_known_address("contractRegistry", settings.chain), "registry")
    require_code(w3, registry, "registry")

    accounts = args.account or [
        address for name, address in CONTRACT_ADDRESSES.get(settings.chain, {}).items()
        if name != "contractRegistry"
    ]
    roles = args.role or ["REGISTRAR_ROLE", "DEFAULT_ADMIN_ROLE"]

    print(f"Registry: {registry}")
    role_ids = {}
    for name in roles:
        expected = role_id(name)
        if name != "DEFAULT_ADMIN_ROLE" and not name.startswith("0x"):
            onchain = read_role_constant(w3, registry, name)
            marker = "✅" if onchain == expected else "❌ on-chain value differs"
            print(f"{name} = {to_hex(onchain)} {marker}")
        role_ids[name] = expected

    rows = []
    missing = []
    for account in accounts:
        row = [to_address(account)]
        for name, rid in role_ids.items():
            granted = has_role(w3, registry, rid, account)
            row.append("✅" if granted else "❌")
            if not granted and rid != DEFAULT_ADMIN_ROLE:
                missing.append((name, to_address(account)))
        rows.append(row)
    print_table(rows, ["Account", *role_ids.keys()])

    for name, account in missing:
        print(f"💡 daokit role-proposal --registry {registry} --role {name} --account {account}")
    return 0


def cmd_check_bytecode(args: argparse.Namespace) -> int:
    settings = get_settings(args)
    w3 = connect(args)
    address = to_address(args.address, "address")
    artifact = load_artifact(args.artifact, args.artifacts_dir or settings.artifacts_dir)

    deployed = require_code(w3, address, artifact.contract_name)
    expected = artifact.deployed_bytecode
    print(f"Deployed runtime code: {len(deployed)} bytes")
    print(f"Artifact runtime code: {(len(expected) - 2) // 2} bytes ({artifact.path})")

    if code_matches(deployed, expected, ignore_metadata=not args.exact):
        print("✅ Bytecode matches" + ("" if args.exact else " (metadata ignored)"))
        return 0
    print("❌ Bytecode mismatch: compiled with different settings or source")
    return 1


def cmd_check_deployment(args: argparse.Namespace) -> int:
    w3 = connect(args)
    address = to_address(pick(args.address, "PREDICTED", "expected address (--address)"), "address")
    print(f"Expected address: {address}")

    code = get_code(w3, address)
    if code:
        print(f"✅ Contract found ({len(code)} bytes of code)")
        return 0

    print("❌ No contract at expected address")
    if args.factory:
        print(f"\nScanning the last {args.blocks} blocks for creations through {to_address(args.factory)}...")
        creations = scan_factory_creations(w3, args.factory, args.blocks)
        if creations:
            print_table(
                [[c.block_number, c.address, c.code_size, c.sender, c.tx_hash] for c in creations],
                ["Block", "Created", "Code size", "Sender", "Tx"],
            )
        else:
            print("No contract creations found")
    raise DeploymentCheckError(f"No code at {address}")


EXPECTATIONS = ["success"] + [k.value for k in FailureKind]


def cmd_probe(args: argparse.Namespace) -> int:
    w3 = connect(args)
    descriptor = None
    if args.calldata:
        data = args.calldata
    else:
        descriptor = FunctionDescriptor.parse(pick(args.function, "PROBE_FUNCTION", "function (--function)"))
        data = descriptor.encode_call(parse_json_arg(args.call_args, "--call-args"))

    outcome = static_call(w3, args.to, data, sender=args.sender, value=args.value, extra_errors=args.error_sig or ())
    print(f"Call: {to_address(args.to)}{'.' + descriptor.signature if descriptor else ''} from {args.sender or '(none)'}")
    print(f"Outcome: {outcome.describe()}")
    if outcome.success and descriptor is not None and descriptor.outputs:
        print(f"Returned: {list(descriptor.decode_output(outcome.return_data))}")

    if args.expect == "success":
        met = outcome.success
    else:
        met = expect_failure(outcome, args.expect, args.error)
    print(f"{'✅' if met else '❌'} expected {args.expect}{' ' + args.error if args.error else ''}")
    return 0 if met else 1


def register(sub: argparse._SubParsersAction) -> None:
    p_reg = sub.add_parser("check-registry", help="Show which accounts hold registry roles")
    p_reg.add_argument("--registry", help="Registry address (env REGISTRY_ADDRESS)")
    p_reg.add_argument("--account", action="append", help="Account to check (repeatable; default: known deployment)")
    p_reg.add_argument("--role", action="append", help="Role name or id (repeatable; default REGISTRAR_ROLE and DEFAULT_ADMIN_ROLE)")
    p_reg.set_defaults(func=cmd_check_registry)

    p_code = sub.add_parser("check-bytecode", help="Compare deployed runtime code with an artifact")
    p_code.add_argument("--address", required=True, help="Deployed contract address")
    p_code.add_argument("--artifact", required=True, help="Hardhat artifact name or path")
    p_code.add_argument("--artifacts-dir", help="Artifacts root (env ARTIFACTS_DIR)")
    p_code.add_argument("--exact", action="store_true", help="Also compare the trailing metadata")
    p_code.set_defaults(func=cmd_check_bytecode)

    p_dep = sub.add_parser("check-deployment", help="Check that an expected address holds code")
    p_dep.add_argument("--address", help="Expected address (env PREDICTED)")
    p_dep.add_argument("--factory", help="Factory whose recent creations are scanned when the address is empty")
    p_dep.add_argument("--blocks", type=int, default=5, help="Blocks to scan (default 5)")
    p_dep.set_defaults(func=cmd_check_deployment)

    p_probe = sub.add_parser("probe", help="Static-call a function and check the outcome")
    p_probe.add_argument("--to", required=True, help="Contract address")
    group = p_probe.add_mutually_exclusive_group()
    group.add_argument("--function", help="Function fragment, e.g. 'deploy(bytes) returns (address)'")
    group.add_argument("--calldata", help="Raw calldata hex")
    p_probe.add_argument("--call-args", help="JSON array of arguments for --function")
    p_probe.add_argument("--from", dest="sender", help="Caller address")
    p_probe.add_argument("--value", type=int, default=0, help="Wei sent with the call")
    p_probe.add_argument("--expect", choices=EXPECTATIONS, default="success", help="Expected outcome")
    p_probe.add_argument("--error", help="Expected error name, e.g. OwnableUnauthorizedAccount")
    p_probe.add_argument("--error-sig", action="append", help="Extra custom error signature to decode (repeatable)")
    p_probe.set_defaults(func=cmd_probe)
