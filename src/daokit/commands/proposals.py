"""
Governance proposal commands.

``deploy-proposal``
    One factory deployment action (plus optional follow-up actions that
    reference the predicted address as ``$PREDICTED``).
``build-proposal``
    Encode an actions file into ``targets`` / ``values`` / ``calldatas``.
``role-proposal``
    ``grantRole(role, account)`` on the registry.
``submit-proposal``
    Send ``Governor.propose`` for a saved payload from the configured key.

Actions files are JSON, either a list of actions or
``{"description": ..., "actions": [...]}``. Each action is either
``{"target", "function", "args", "value", "note"}`` or
``{"target", "calldata", "value", "note"}``; a bare function name needs an
``"artifact"`` whose ABI resolves it.
"""
from __future__ import annotations

import argparse
import json
import logging
from pathlib import Path
from typing import Any, Optional

from daokit.commands.common import (
    add_initcode_args,
    add_salt_args,
    connect,
    get_settings,
    print_exports,
    print_json,
    resolve_initcode,
    resolve_salt,
)
from daokit.config.abis import REGISTRY_ABI
from daokit.config.contracts import get_known_address
from daokit.config.network import tx_link
from daokit.config.settings import env_or, pick
from daokit.errors import ArgumentMismatch, MissingConfiguration
from daokit.helpers.abi_signature import ContractInterface
from daokit.helpers.deployments import FactoryKind, plan_deployment
from daokit.helpers.diagnostics import static_call
from daokit.helpers.hexutil import to_address, to_hex
from daokit.helpers.initcode import load_artifact
from daokit.helpers.inspect import has_role, role_id
from daokit.helpers.payloads import load_payload, read_json, save_payload
from daokit.helpers.proposal import Proposal, ProposalBuilder
from daokit.helpers.transactions import load_account, send_transaction

logger = logging.getLogger(__name__)

PREDICTED_PLACEHOLDER = "$PREDICTED"

REGISTRY = ContractInterface(REGISTRY_ABI)


# ---------------------------------------------------------------------------
# Actions files
# ---------------------------------------------------------------------------

def substitute(value: Any, substitutions: dict[str, str]) -> Any:
    """Replace placeholder strings anywhere inside nested lists/dicts."""
    if isinstance(value, str):
        if value in substitutions:
            return substitutions[value]
        for key in substitutions:
            if key in value:
                raise ArgumentMismatch(f"{key} is only allowed as a whole value, got {value!r}")
        return value
    if isinstance(value, list):
        return [substitute(v, substitutions) for v in value]
    if isinstance(value, dict):
        return {k: substitute(v, substitutions) for k, v in value.items()}
    return value


def load_actions_file(path: str | Path) -> tuple[list[dict[str, Any]], str]:
    data = read_json(path, "actions file")
    if isinstance(data, list):
        return data, ""
    if isinstance(data, dict) and isinstance(data.get("actions"), list):
        return data["actions"], data.get("description", "")
    raise ArgumentMismatch(f"{path}: expected a list of actions or an object with an 'actions' list")


def _parse_value(raw: Any) -> int:
    """Accept an int or a decimal/hex string."""
    if raw is None:
        return 0
    if isinstance(raw, int) and not isinstance(raw, bool):
        return raw
    if isinstance(raw, str):
        text = raw.strip()
        try:
            return int(text, 16) if text.lower().startswith("0x") else int(text)
        except ValueError as e:
            raise ArgumentMismatch(f"action value {raw!r} is not an integer") from e
    raise ArgumentMismatch(f"action value must be an integer or a numeric string, got {raw!r}")


def add_actions(
    builder: ProposalBuilder,
    actions: list[dict[str, Any]],
    artifacts_dir: str | Path = "artifacts",
) -> ProposalBuilder:
    for idx, action in enumerate(actions):
        if not isinstance(action, dict) or "target" not in action:
            raise ArgumentMismatch(f"action {idx} must be an object with a 'target'")
        value = _parse_value(action.get("value", 0))
        note = action.get("note", "")
        if "calldata" in action:
            builder.add_raw(action["target"], action["calldata"], value, note)
            continue
        if "function" not in action:
            raise ArgumentMismatch(f"action {idx} needs 'function' or 'calldata'")
        function = action["function"]
        args = action.get("args", [])
        if "(" not in function:
            if "artifact" not in action:
                raise ArgumentMismatch(f"action {idx}: bare function name {function!r} needs an 'artifact'")
            interface = ContractInterface.from_abi(load_artifact(action["artifact"], artifacts_dir).abi)
            function = interface.get(function, len(args))
        builder.add_call(action["target"], function, args, value, note)
    return builder


def report_proposal(proposal: Proposal, show_propose: bool = False) -> None:
    print("=== Proposal ===")
    for i, action in enumerate(proposal.actions, 1):
        print(f"{i}. {action.target}  value={action.value}  {action.note}")
    print()
    print("targets   =", json.dumps(proposal.targets))
    print("values    =", json.dumps([str(v) for v in proposal.values]))
    print("calldatas =", json.dumps([to_hex(c) for c in proposal.calldatas]))
    print(f"proposalId = {proposal.proposal_id}")
    if show_propose:
        print(f"propose calldata = {to_hex(proposal.propose_calldata())}")


def _save(args: argparse.Namespace, payload: dict[str, Any], name: str) -> Optional[Path]:
    if args.no_save:
        return None
    directory = args.out_dir or get_settings(args).proposals_dir
    path = save_payload(payload, name, directory)
    print(f"💾 Proposal saved to: {path}")
    return path


def _caller(args: argparse.Namespace) -> Optional[str]:
    caller = getattr(args, "caller", None) or env_or("TIMELOCK_ADDRESS")
    return to_address(caller, "caller") if caller else None


# ---------------------------------------------------------------------------
# Commands
# ---------------------------------------------------------------------------

def cmd_deploy_proposal(args: argparse.Namespace) -> int:
    bundle = resolve_initcode(args)
    caller = _caller(args)
    kind = FactoryKind(args.kind)
    salt = resolve_salt(args, caller=caller)

    needs_rpc = args.onchain_predict or args.check or kind in (FactoryKind.CREATE, FactoryKind.REGISTER)
    w3 = connect(args) if needs_rpc and not args.offline else None

    factory = args.factory or env_or("FACTORY_ADDRESS")
    plan = plan_deployment(
        kind,
        bundle,
        factory=factory,
        salt=salt,
        caller=caller,
        w3=w3,
        onchain=args.onchain_predict,
        registry=args.registry or env_or("REGISTRY_ADDRESS"),
        contract_kind=args.contract_kind or "",
        version=args.version,
        label=args.label or "",
        uri=args.uri or "",
    )

    description = args.description or f"Deploy contract via {kind.value} factory"
    builder = ProposalBuilder(description).add_raw(plan.factory, plan.calldata, 0, f"deploy via {kind.value} factory")

    if args.follow_up:
        actions, _ = load_actions_file(args.follow_up)
        if plan.predicted is None and PREDICTED_PLACEHOLDER in json.dumps(actions):
            raise MissingConfiguration(f"follow-up actions use {PREDICTED_PLACEHOLDER} but the address is unknown")
        substitutions = {PREDICTED_PLACEHOLDER: plan.predicted} if plan.predicted else {}
        add_actions(builder, substitute(actions, substitutions), get_settings(args).artifacts_dir)

    proposal = builder.build()

    print(f"Factory kind:      {kind.value}")
    print(f"Factory:           {plan.factory}")
    if plan.salt is not None:
        print(f"Salt:              {to_hex(plan.salt)}")
    print(f"Init code length:  {len(bundle.init_code)} bytes")
    print(f"Init code hash:    {bundle.hash_hex}")
    print(f"Predicted address: {plan.predicted or 'unknown (needs RPC)'}")
    for warning in plan.warnings:
        print(f"⚠️  {warning}")

    if args.check and w3 is not None:
        sender = caller or get_known_address("timelock", get_settings(args).chain)
        outcome = static_call(w3, plan.factory, plan.calldata, sender=sender)
        print(f"Static call from {sender}: {'✅' if outcome.success else '❌'} {outcome.describe()}")

    print()
    report_proposal(proposal)

    payload = {**proposal.to_payload(), "deployment": plan.summary()}
    _save(args, payload, args.name or f"deploy-{kind.value}")
    if plan.predicted:
        print_exports({"PREDICTED": plan.predicted})
    return 0


def cmd_build_proposal(args: argparse.Namespace) -> int:
    actions, file_description = load_actions_file(args.actions_file)
    description = args.description or file_description
    if not description:
        raise MissingConfiguration("A description is required (--description or 'description' in the file)")

    builder = add_actions(ProposalBuilder(description), actions, get_settings(args).artifacts_dir)
    proposal = builder.build()

    if args.json:
        print_json(proposal.to_payload())
    else:
        report_proposal(proposal, show_propose=args.propose_calldata)

    payload = proposal.to_payload()
    if args.propose_calldata:
        payload["proposeCalldata"] = to_hex(proposal.propose_calldata())
    _save(args, payload, args.name or Path(args.actions_file).stem)
    return 0


def cmd_role_proposal(args: argparse.Namespace) -> int:
    settings = get_settings(args)
    registry = to_address(args.registry or env_or("REGISTRY_ADDRESS")
                          or get_known_address("contractRegistry", settings.chain), "registry")
    account = to_address(pick(args.account, "FACTORY_ADDRESS", "account to grant (--account)"), "account")
    role = role_id(args.role)

    description = args.description or f"Grant {args.role} to {account} on {registry}"
    proposal = (
        ProposalBuilder(description, REGISTRY)
        .add_call(registry, "grantRole", [role, account], note=f"grantRole({args.role}, {account})")
        .build()
    )

    print(f"Registry: {registry}")
    print(f"Role:     {args.role} = {to_hex(role)}")
    print(f"Account:  {account}")

    if args.check:
        w3 = connect(args)
        if has_role(w3, registry, role, account):
            print(f"⚠️  {account} already holds {args.role}; the proposal would be a no-op")
        caller = _caller(args) or get_known_address("timelock", settings.chain)
        outcome = static_call(w3, registry, proposal.calldatas[0], sender=caller)
        print(f"Static call from {caller}: {'✅' if outcome.success else '❌'} {outcome.describe()}")

    print()
    report_proposal(proposal)
    _save(args, proposal.to_payload(), args.name or "grant-role")
    return 0


def cmd_submit_proposal(args: argparse.Namespace) -> int:
    settings = get_settings(args)
    proposal = Proposal.from_payload(load_payload(args.payload))
    governor = to_address(pick(args.governor, "GOVERNOR_ADDRESS", "governor address (--governor)"), "governor")

    report_proposal(proposal)
    if args.dry_run:
        print(f"\nDry run: would call {governor}.propose with {to_hex(proposal.propose_calldata())}")
        return 0

    w3 = connect(args)
    account = load_account(settings.require_private_key())
    print(f"\n📤 Submitting proposal from {account.address} to {governor}")
    receipt = send_transaction(w3, account, governor, proposal.propose_calldata())
    tx_hash = to_hex(bytes(receipt["transactionHash"]))
    print(f"✅ Proposal submitted in block {receipt['blockNumber']}")
    print(f"🔗 {tx_link(tx_hash, settings.chain)}")
    print(f"proposalId = {proposal.proposal_id}")
    return 0


def _add_output_args(parser: argparse.ArgumentParser) -> None:
    parser.add_argument("--name", help="Payload file name prefix")
    parser.add_argument("--out-dir", help="Payload directory (env PROPOSALS_DIR, default proposals)")
    parser.add_argument("--no-save", action="store_true", help="Do not write a payload file")


def register(sub: argparse._SubParsersAction) -> None:
    p_dep = sub.add_parser("deploy-proposal", help="Build a proposal that deploys a contract through a factory")
    p_dep.add_argument("--kind", choices=[k.value for k in FactoryKind], default=FactoryKind.SINGLETON.value)
    p_dep.add_argument("--factory", help="Factory address (env FACTORY_ADDRESS; well-known default for singleton/immutable)")
    add_salt_args(p_dep)
    add_initcode_args(p_dep)
    p_dep.add_argument("--caller", help="Account executing the proposal, normally the timelock (env TIMELOCK_ADDRESS)")
    p_dep.add_argument("--onchain-predict", action="store_true", help="Ask a create2 factory's computeAddress view")
    p_dep.add_argument("--registry", help="Registry for --kind register (env REGISTRY_ADDRESS)")
    p_dep.add_argument("--contract-kind", help="Registry kind label, hashed to bytes32")
    p_dep.add_argument("--version", type=int, default=1, help="Registry version (default 1)")
    p_dep.add_argument("--label", help="Registry label")
    p_dep.add_argument("--uri", help="Registry URI")
    p_dep.add_argument("--follow-up", help=f"Actions file appended after the deployment; may use {PREDICTED_PLACEHOLDER}")
    p_dep.add_argument("--description", help="Proposal description")
    p_dep.add_argument("--check", action="store_true", help="Static-call the deployment from the caller")
    p_dep.add_argument("--offline", action="store_true", help="Never connect; CREATE addresses stay unknown")
    _add_output_args(p_dep)
    p_dep.set_defaults(func=cmd_deploy_proposal)

    p_build = sub.add_parser("build-proposal", help="Encode an actions file into proposal arrays")
    p_build.add_argument("actions_file", help="JSON actions file")
    p_build.add_argument("--description", help="Proposal description (overrides the file)")
    p_build.add_argument("--propose-calldata", action="store_true", help="Also print Governor.propose calldata")
    p_build.add_argument("--json", action="store_true", help="Print the payload as JSON")
    _add_output_args(p_build)
    p_build.set_defaults(func=cmd_build_proposal)

    p_role = sub.add_parser("role-proposal", help="Build a grantRole proposal for the registry")
    p_role.add_argument("--registry", help="Registry address (env REGISTRY_ADDRESS)")
    p_role.add_argument("--role", default="REGISTRAR_ROLE", help="Role name or 32-byte id (default REGISTRAR_ROLE)")
    p_role.add_argument("--account", help="Account receiving the role (env FACTORY_ADDRESS)")
    p_role.add_argument("--caller", help="Account executing the proposal (env TIMELOCK_ADDRESS)")
    p_role.add_argument("--description", help="Proposal description")
    p_role.add_argument("--check", action="store_true", help="Check current role and static-call grantRole")
    _add_output_args(p_role)
    p_role.set_defaults(func=cmd_role_proposal)

    p_submit = sub.add_parser("submit-proposal", help="Submit Governor.propose for a saved payload")
    p_submit.add_argument("payload", help="Payload JSON written by a proposal command")
    p_submit.add_argument("--governor", help="Governor address (env GOVERNOR_ADDRESS)")
    p_submit.add_argument("--dry-run", action="store_true", help="Print the propose calldata without sending")
    p_submit.set_defaults(func=cmd_submit_proposal)
