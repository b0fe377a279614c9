"""
Shared plumbing for the daokit commands: settings, RPC connection, and
resolving init code / salts / JSON arguments from flags or environment.
"""
from __future__ import annotations

import argparse
import json
import logging
from typing import Any, Optional

from tabulate import tabulate
from web3 import Web3

from daokit.config.settings import Settings, env_or, pick
from daokit.errors import ArgumentMismatch, MissingConfiguration
from daokit.helpers.create2 import parse_salt, protected_salt, salt_from_label
from daokit.helpers.initcode import InitcodeBundle, assemble, load_artifact
from daokit.helpers.web3_setup import get_web3_instance, require_connection

logger = logging.getLogger(__name__)


def get_settings(args: argparse.Namespace) -> Settings:
    return Settings.from_env(chain=getattr(args, "chain", None), rpc_url=getattr(args, "rpc_url", None))


def connect(args: argparse.Namespace) -> Web3:
    settings = get_settings(args)
    w3 = require_connection(get_web3_instance(settings.rpc_url, settings.chain))
    logger.info("Connected to %s (chain id %s)", settings.chain, w3.eth.chain_id)
    return w3


def parse_json_arg(text: Optional[str], what: str = "arguments") -> list[Any]:
    """Parse a JSON array given on the command line; empty means no values."""
    if text is None or not text.strip():
        return []
    try:
        value = json.loads(text)
    except json.JSONDecodeError as e:
        raise ArgumentMismatch(f"{what} must be a JSON array: {e}") from e
    if not isinstance(value, list):
        raise ArgumentMismatch(f"{what} must be a JSON array, got {type(value).__name__}")
    return value


def add_initcode_args(parser: argparse.ArgumentParser) -> None:
    group = parser.add_mutually_exclusive_group()
    group.add_argument("--artifact", help="Hardhat artifact name or path (reads bytecode and constructor types)")
    group.add_argument("--bytecode", help="Creation bytecode as hex")
    group.add_argument("--initcode", help="Complete init code as hex (env INITCODE)")
    parser.add_argument("--types", help="Constructor types, e.g. 'uint256,address'; outer parentheses read as the parameter list, so one tuple parameter is '((address,uint64))' (default: from the artifact)")
    parser.add_argument("--args", dest="ctor_args", help="Constructor arguments as a JSON array (env ARGS)")
    parser.add_argument("--artifacts-dir", help="Artifacts root (env ARTIFACTS_DIR, default artifacts)")


def resolve_initcode(args: argparse.Namespace) -> InitcodeBundle:
    """Init code from ``--initcode``, ``--artifact`` or ``--bytecode`` (flags, then env)."""
    settings = get_settings(args)
    ctor_args = parse_json_arg(getattr(args, "ctor_args", None) or env_or("ARGS"), "constructor arguments")

    initcode = getattr(args, "initcode", None) or (
        None if args.artifact or args.bytecode else env_or("INITCODE")
    )
    if initcode:
        if ctor_args:
            raise ArgumentMismatch("--args cannot be combined with a complete --initcode")
        return assemble(initcode)

    if args.artifact:
        artifact = load_artifact(args.artifact, args.artifacts_dir or settings.artifacts_dir)
        types = args.types if args.types is not None else list(artifact.constructor_types)
        return assemble(artifact.bytecode, types, ctor_args)

    bytecode = pick(args.bytecode, "BYTECODE", "creation bytecode (--artifact, --bytecode or --initcode)")
    return assemble(bytecode, args.types or (), ctor_args)


def add_salt_args(parser: argparse.ArgumentParser) -> None:
    group = parser.add_mutually_exclusive_group()
    group.add_argument("--salt", help="32-byte salt as hex (env SALT)")
    group.add_argument("--salt-label", help="Derive the salt as keccak256(label) (env SALT_STRING)")
    group.add_argument("--protected-label", help="Caller-prefixed salt: caller address + keccak256(label)[:12]")


def resolve_salt(args: argparse.Namespace, caller: Optional[str] = None) -> Optional[bytes]:
    if args.salt:
        return parse_salt(args.salt)
    if args.salt_label:
        return salt_from_label(args.salt_label)
    if args.protected_label:
        if not caller:
            raise MissingConfiguration("--protected-label needs the calling account (--caller or TIMELOCK_ADDRESS)")
        return protected_salt(caller, args.protected_label)
    if env_or("SALT"):
        return parse_salt(env_or("SALT"))
    if env_or("SALT_STRING"):
        return salt_from_label(env_or("SALT_STRING"))
    return None


def print_json(obj: Any) -> None:
    print(json.dumps(obj, indent=2))


def print_exports(values: dict[str, Any]) -> None:
    for key, value in values.items():
        print(f"export {key}={value}")


def print_table(rows: list[list[Any]], headers: list[str]) -> None:
    print(tabulate(rows, headers=headers, tablefmt="grid"))
