#!/usr/bin/env python3
"""
daokit command line.

Usage::

    daokit [--env-file .env] [--chain sepolia] [--rpc-url URL] [--debug] <command> ...

Exit codes: 0 success, 1 runtime failure (RPC, revert, explorer, missing
code), 2 invalid input or configuration.
"""
from __future__ import annotations

import argparse
import logging
import sys

import requests
from web3.exceptions import Web3Exception

from daokit import __version__
from daokit.commands import checks, deploy, initcode, proposals, verify
from daokit.config.logging_config import get_command_logger
from daokit.config.network import CHAINS
from daokit.config.settings import load_env_file
from daokit.errors import DaokitError, ValidationError

logger = logging.getLogger("daokit.cli")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="daokit", description="DAO deployment, proposal and debugging toolkit")
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    parser.add_argument("--env-file", default=".env", help="Path to .env file to load before resolving env vars (default .env)")
    parser.add_argument("--chain", choices=sorted(CHAINS), help="Chain name (env CHAIN, default sepolia)")
    parser.add_argument("--rpc-url", help="RPC endpoint (env RPC_URL, default the chain's public endpoint)")
    parser.add_argument("--debug", action="store_true", help="Verbose logging with file/line")
    parser.add_argument("--no-log-file", action="store_true", help="Log to stderr only")
    sub = parser.add_subparsers(dest="cmd")

    initcode.register(sub)
    proposals.register(sub)
    checks.register(sub)
    deploy.register(sub)
    verify.register(sub)
    return parser


def main(argv: list[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    if not hasattr(args, "func"):
        parser.print_help()
        return 2

    load_env_file(args.env_file)
    get_command_logger(args.cmd, debug=args.debug, to_file=not args.no_log_file)
    logger.debug("Running %s", args.cmd)

    try:
        return int(args.func(args))
    except ValidationError as e:
        logger.debug("Validation failed", exc_info=True)
        print(f"Error: {e}", file=sys.stderr)
        return 2
    except (DaokitError, Web3Exception, requests.RequestException, OSError) as e:
        logger.error("%s failed: %s", args.cmd, e, exc_info=args.debug)
        print(f"Error: {e}", file=sys.stderr)
        return 1
    except ValueError as e:
        logger.debug("Invalid input", exc_info=True)
        print(f"Error: {e}", file=sys.stderr)
        return 2


if __name__ == "__main__":
    raise SystemExit(main())
