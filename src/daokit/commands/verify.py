"""
Source verification commands: ``verify`` and ``verify-status``.
"""
from __future__ import annotations

import argparse
import logging
from pathlib import Path

from daokit.commands.common import get_settings, parse_json_arg
from daokit.config.network import address_link, get_blockscout_url, get_explorer_api_url
from daokit.config.settings import env_or
from daokit.errors import MissingConfiguration, VerificationError
from daokit.helpers.abi_signature import encode_values, parse_type_list
from daokit.helpers.explorer import LICENSE_CODES, ExplorerClient, VerificationRequest
from daokit.helpers.hexutil import strip0x, to_address, to_hex

logger = logging.getLogger(__name__)

DEFAULT_COMPILER = "v0.8.24+commit.e801b13b"


def _client(args: argparse.Namespace) -> ExplorerClient:
    settings = get_settings(args)
    return ExplorerClient(get_explorer_api_url(settings.chain), settings.require_api_key())


def _constructor_args(args: argparse.Namespace) -> str:
    if args.constructor_args:
        return args.constructor_args
    if args.types:
        values = parse_json_arg(args.ctor_args, "constructor arguments")
        return to_hex(encode_values(parse_type_list(args.types), values, "constructor arguments"))
    return ""


def print_manual_verification_instructions(request: VerificationRequest, chain: str) -> None:
    print(f"\n{'=' * 60}")
    print("MANUAL VERIFICATION INSTRUCTIONS")
    print(f"{'=' * 60}")
    print(f"1. Go to: {address_link(request.contract_address, chain)}")
    print("2. Click 'Verify and Publish'")
    print(f"3. Compiler version: {request.compiler_version}")
    print(f"4. Optimization: {'Yes, ' + str(request.runs) + ' runs' if request.optimization_used else 'No'}")
    print(f"5. Constructor arguments: {strip0x(request.constructor_arguments) or '(none)'}")
    print(f"{'=' * 60}")


def cmd_verify(args: argparse.Namespace) -> int:
    settings = get_settings(args)
    client = _client(args)
    address = to_address(args.address, "address")

    if not args.force and client.is_verified(address):
        print(f"✅ {address} is already verified")
        print(f"🔗 {address_link(address, settings.chain)}")
        return 0

    source_path = Path(args.source)
    if not source_path.exists():
        raise MissingConfiguration(f"Source file not found: {source_path}")

    request = VerificationRequest(
        contract_address=address,
        source_code=source_path.read_text(encoding="utf-8"),
        contract_name=args.contract_name,
        compiler_version=args.compiler_version or env_or("COMPILER_VERSION", DEFAULT_COMPILER),
        optimization_used=not args.no_optimize,
        runs=args.runs,
        license=args.license,
        constructor_arguments=_constructor_args(args),
        code_format="solidity-standard-json-input" if args.standard_json else "solidity-single-file",
        evm_version=args.evm_version,
    )

    print(f"🔍 Verifying {request.contract_name} at {address}...")
    try:
        guid = client.submit_verification(request)
    except VerificationError as e:
        if "already verified" in str(e.result or "").lower():
            print(f"✅ {address} is already verified")
            return 0
        print(f"❌ Verification submission failed: {e}")
        print_manual_verification_instructions(request, settings.chain)
        raise

    print(f"📤 Verification submitted successfully! GUID: {guid}")
    if not args.wait:
        print(f"Check later with: daokit verify-status --guid {guid}")
        return 0

    print("⏳ Checking verification status...")
    status = client.wait_for_verification(guid, attempts=args.attempts, interval=args.interval)
    if status.verified:
        print("✅ Contract verified successfully!")
        print(f"🔗 View verified contract: {address_link(address, settings.chain)}")
        return 0
    if status.pending:
        print("⏰ Verification timeout. Check status manually.")
    else:
        print(f"❌ Verification failed: {status.result}")
    print_manual_verification_instructions(request, settings.chain)
    return 1


def cmd_verify_status(args: argparse.Namespace) -> int:
    settings = get_settings(args)
    client = _client(args)

    if args.guid:
        status = client.check_status(args.guid)
        print(f"Status: {status.status} ({status.message})")
        print(f"Result: {status.result}")
        return 0 if status.verified or status.pending else 1

    if not args.address:
        raise MissingConfiguration("Pass --guid or --address")
    address = to_address(args.address, "address")
    info = client.get_source_code(address)
    if info.get("SourceCode"):
        print(f"✅ {address} is verified as {info.get('ContractName')} ({info.get('CompilerVersion')})")
        print(f"🔗 {address_link(address, settings.chain)}")
        return 0
    print(f"❌ {address} is not verified")
    print(f"Blockscout may still show it: {get_blockscout_url(settings.chain)}/address/{address}")
    return 1


def register(sub: argparse._SubParsersAction) -> None:
    p_verify = sub.add_parser("verify", help="Submit source code to the block explorer")
    p_verify.add_argument("--address", required=True, help="Deployed contract address")
    p_verify.add_argument("--source", required=True, help="Flattened source file or standard JSON input")
    p_verify.add_argument("--contract-name", required=True, help="Contract name (or path:Name for standard JSON)")
    p_verify.add_argument("--compiler-version", help=f"solc version (env COMPILER_VERSION, default {DEFAULT_COMPILER})")
    p_verify.add_argument("--runs", type=int, default=200, help="Optimizer runs (default 200)")
    p_verify.add_argument("--no-optimize", action="store_true", help="Optimizer was disabled")
    p_verify.add_argument("--license", default="mit", choices=sorted(LICENSE_CODES), help="SPDX license (default mit)")
    p_verify.add_argument("--evm-version", help="EVM version, e.g. paris")
    p_verify.add_argument("--standard-json", action="store_true", help="--source is standard JSON input")
    p_verify.add_argument("--constructor-args", help="ABI-encoded constructor arguments as hex")
    p_verify.add_argument("--types", help="Constructor types to encode --args with; one tuple parameter is '((address,uint64))'")
    p_verify.add_argument("--args", dest="ctor_args", help="Constructor arguments as a JSON array")
    p_verify.add_argument("--force", action="store_true", help="Submit even if the explorer reports it verified")
    p_verify.add_argument("--wait", action="store_true", help="Poll until the verification finishes")
    p_verify.add_argument("--attempts", type=int, default=12, help="Status polls with --wait (default 12)")
    p_verify.add_argument("--interval", type=float, default=5.0, help="Seconds between polls (default 5)")
    p_verify.set_defaults(func=cmd_verify)

    p_status = sub.add_parser("verify-status", help="Check a verification GUID or an address")
    p_status.add_argument("--guid", help="GUID returned by verify")
    p_status.add_argument("--address", help="Contract address")
    p_status.set_defaults(func=cmd_verify_status)
