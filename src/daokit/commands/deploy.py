"""
Transaction-sending commands: ``deploy`` and ``grant-role``.

Both sign with ``PRIVATE_KEY`` and send exactly one transaction.
"""
from __future__ import annotations

import argparse
import json
import logging
import time
from pathlib import Path
from typing import Any

from web3 import Web3

from daokit.commands.common import add_initcode_args, connect, get_settings, resolve_initcode
from daokit.config.abis import REGISTRY_ABI
from daokit.config.contracts import get_known_address
from daokit.config.network import address_link, tx_link
from daokit.config.settings import env_or, pick
from daokit.helpers.abi_signature import ContractInterface
from daokit.helpers.hexutil import to_address, to_hex
from daokit.helpers.inspect import has_role, role_id
from daokit.helpers.transactions import deploy_contract, load_account, send_transaction

logger = logging.getLogger(__name__)

REGISTRY = ContractInterface(REGISTRY_ABI)


def save_deployment_info(path: Path, info: dict[str, Any]) -> Path:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(json.dumps(info, indent=2) + "\n", encoding="utf-8")
    return path


def cmd_deploy(args: argparse.Namespace) -> int:
    settings = get_settings(args)
    bundle = resolve_initcode(args)
    w3 = connect(args)
    account = load_account(settings.require_private_key())

    balance = w3.eth.get_balance(account.address)
    print(f"Deploying from account: {account.address}")
    print(f"Account balance: {Web3.from_wei(balance, 'ether'):.6f} ETH")
    print(f"Init code: {len(bundle.init_code)} bytes, hash {bundle.hash_hex}")

    print("\n🚀 Deploying contract...")
    address, receipt = deploy_contract(w3, account, bundle.init_code, args.value)
    tx_hash = to_hex(bytes(receipt["transactionHash"]))

    print(f"\n✅ Contract deployed successfully!")
    print(f"📍 Contract address: {address}")
    print(f"⛽ Gas used: {receipt['gasUsed']:,}")
    print(f"🧱 Block number: {receipt['blockNumber']}")
    print(f"🔗 {tx_link(tx_hash, settings.chain)}")

    name = args.name or args.artifact or "contract"
    info = {
        "address": address,
        "contract_name": name,
        "tx_hash": tx_hash,
        "block_number": receipt["blockNumber"],
        "deployer": account.address,
        "gas_used": receipt["gasUsed"],
        "constructor_args": to_hex(bundle.encoded_args),
        "timestamp": int(time.time()),
        "network": settings.chain,
    }
    out = Path(args.out) if args.out else Path("deployments") / settings.chain / f"{Path(name).stem}.json"
    save_deployment_info(out, info)
    print(f"\n💾 Deployment info saved to {out}")
    print(f"🔗 {address_link(address, settings.chain)}")
    return 0


def cmd_grant_role(args: argparse.Namespace) -> int:
    settings = get_settings(args)
    registry = to_address(args.registry or env_or("REGISTRY_ADDRESS")
                          or get_known_address("contractRegistry", settings.chain), "registry")
    account_to_grant = to_address(pick(args.account, "FACTORY_ADDRESS", "account to grant (--account)"), "account")
    role = role_id(args.role)

    w3 = connect(args)
    if has_role(w3, registry, role, account_to_grant):
        print(f"✅ {account_to_grant} already has {args.role}")
        return 0

    signer = load_account(settings.require_private_key())
    print(f"📤 Granting {args.role} to {account_to_grant} from {signer.address}")
    receipt = send_transaction(w3, signer, registry, REGISTRY.encode("grantRole", [role, account_to_grant]))
    print(f"🔗 {tx_link(to_hex(bytes(receipt['transactionHash'])), settings.chain)}")

    if not has_role(w3, registry, role, account_to_grant):
        print(f"❌ {account_to_grant} still lacks {args.role}")
        return 1
    print(f"✅ {account_to_grant} now has {args.role}")
    return 0


def register(sub: argparse._SubParsersAction) -> None:
    p_deploy = sub.add_parser("deploy", help="Deploy a contract from the configured key")
    add_initcode_args(p_deploy)
    p_deploy.add_argument("--value", type=int, default=0, help="Wei sent with the creation transaction")
    p_deploy.add_argument("--name", help="Name recorded in the deployment file")
    p_deploy.add_argument("--out", help="Deployment info path (default deployments/<chain>/<name>.json)")
    p_deploy.set_defaults(func=cmd_deploy)

    p_grant = sub.add_parser("grant-role", help="Grant a registry role from the configured key")
    p_grant.add_argument("--registry", help="Registry address (env REGISTRY_ADDRESS)")
    p_grant.add_argument("--role", default="REGISTRAR_ROLE", help="Role name or 32-byte id (default REGISTRAR_ROLE)")
    p_grant.add_argument("--account", help="Account receiving the role (env FACTORY_ADDRESS)")
    p_grant.set_defaults(func=cmd_grant_role)
