"""
Signing and sending transactions from the configured key.

One transaction per call: build with EIP-1559 fees when the chain reports a
base fee, estimate gas with a buffer, sign locally with eth_account, send the
raw transaction and wait for the receipt. Nothing is retried.
"""
from __future__ import annotations

import logging
from typing import Any, Optional

from eth_account import Account
from eth_account.signers.local import LocalAccount
from web3 import Web3

from daokit.config.network import GAS_LIMIT_BUFFER, RECEIPT_TIMEOUT
from daokit.errors import DeploymentCheckError, TransactionFailed, ValidationError
from daokit.helpers.hexutil import hex_to_bytes, to_address, to_hex
from daokit.helpers.inspect import require_code

logger = logging.getLogger(__name__)

__all__ = ["load_account", "build_transaction", "send_transaction", "deploy_contract", "PRIORITY_FEE_GWEI"]

PRIORITY_FEE_GWEI = 2


def load_account(private_key: str) -> LocalAccount:
    key = private_key.strip()
    if not key.startswith("0x"):
        key = "0x" + key
    try:
        return Account.from_key(key)
    except ValueError as e:
        raise ValidationError("PRIVATE_KEY is not a valid secp256k1 private key") from e


def build_transaction(
    w3: Web3,
    sender: str,
    to: Optional[str],
    data: bytes | str = b"",
    value: int = 0,
    gas: Optional[int] = None,
) -> dict[str, Any]:
    """Build an unsigned transaction dict; ``to=None`` creates a contract."""
    tx: dict[str, Any] = {
        "from": to_address(sender, "sender"),
        "value": value,
        "data": to_hex(hex_to_bytes(data, "data")),
        "nonce": w3.eth.get_transaction_count(to_address(sender, "sender")),
        "chainId": w3.eth.chain_id,
    }
    if to is not None:
        tx["to"] = to_address(to, "to")

    # EIP-1559 fees
    latest_block = w3.eth.get_block("latest")
    base_fee = latest_block.get("baseFeePerGas")
    if base_fee is not None:
        priority_fee = Web3.to_wei(PRIORITY_FEE_GWEI, "gwei")
        tx["maxPriorityFeePerGas"] = priority_fee
        tx["maxFeePerGas"] = base_fee * 2 + priority_fee
    else:
        tx["gasPrice"] = w3.eth.gas_price

    if gas is None:
        estimate = w3.eth.estimate_gas(tx)
        gas = int(estimate * GAS_LIMIT_BUFFER)
        logger.debug("Gas estimate %d, limit %d", estimate, gas)
    tx["gas"] = gas
    return tx


def send_transaction(
    w3: Web3,
    account: LocalAccount,
    to: Optional[str],
    data: bytes | str = b"",
    value: int = 0,
    gas: Optional[int] = None,
) -> Any:
    """
    Sign, send and wait for one transaction.

    Returns:
        The transaction receipt

    Raises:
        TransactionFailed: receipt status is 0
    """
    tx = build_transaction(w3, account.address, to, data, value, gas)
    signed = account.sign_transaction(tx)
    tx_hash = w3.eth.send_raw_transaction(signed.raw_transaction)
    tx_hex = to_hex(bytes(tx_hash))
    logger.info("Transaction sent: %s", tx_hex)

    receipt = w3.eth.wait_for_transaction_receipt(tx_hash, timeout=RECEIPT_TIMEOUT)
    if receipt["status"] != 1:
        logger.error("Transaction %s reverted in block %s", tx_hex, receipt.get("blockNumber"))
        raise TransactionFailed(tx_hex, receipt)
    logger.info("Confirmed in block %s, gas used %s", receipt.get("blockNumber"), receipt.get("gasUsed"))
    return receipt


def deploy_contract(w3: Web3, account: LocalAccount, init_code: bytes | str, value: int = 0) -> tuple[str, Any]:
    """
    Deploy ``init_code`` with a plain creation transaction.

    Returns:
        (contract address, receipt)

    Raises:
        TransactionFailed: the creation transaction reverted
        DeploymentCheckError: no contract address or no code after deployment
    """
    receipt = send_transaction(w3, account, None, init_code, value)
    address = receipt.get("contractAddress")
    if not address:
        raise DeploymentCheckError("Creation receipt carries no contract address")
    require_code(w3, address, "freshly deployed contract")
    return to_address(address), receipt
