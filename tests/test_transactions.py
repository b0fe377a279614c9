import pytest
from eth_account import Account

from conftest import REGISTRY, SAMPLE_BYTECODE, SAMPLE_RUNTIME, TEST_ACCOUNT, TEST_PRIVATE_KEY
from daokit.errors import DeploymentCheckError, TransactionFailed, ValidationError
from daokit.helpers.transactions import build_transaction, deploy_contract, load_account, send_transaction

CREATED = "0x1111111111111111111111111111111111111111"


def test_load_account_accepts_bare_hex():
    assert load_account(TEST_PRIVATE_KEY[2:]).address == TEST_ACCOUNT
    with pytest.raises(ValidationError):
        load_account("0x1234")


def test_build_transaction_uses_eip1559_fees(fake_w3):
    fake_w3.eth.nonces[TEST_ACCOUNT.lower()] = 7
    tx = build_transaction(fake_w3, TEST_ACCOUNT, REGISTRY, b"\x01\x02", value=3)

    assert tx["to"] == REGISTRY
    assert tx["nonce"] == 7
    assert tx["chainId"] == 11155111
    assert tx["data"] == "0x0102"
    assert tx["maxPriorityFeePerGas"] == 2 * 10**9
    assert tx["maxFeePerGas"] == 2 * 10**9 + 2 * 10**9
    assert tx["gas"] == 120_000
    assert "gasPrice" not in tx


def test_build_transaction_legacy_gas_price(fake_w3, monkeypatch):
    monkeypatch.setattr(fake_w3.eth, "get_block", lambda number: {"number": 100})
    tx = build_transaction(fake_w3, TEST_ACCOUNT, None, SAMPLE_BYTECODE, gas=500_000)

    assert "to" not in tx
    assert tx["gasPrice"] == 10**9
    assert tx["gas"] == 500_000


def test_send_transaction_signs_for_sender(fake_w3):
    account = load_account(TEST_PRIVATE_KEY)
    receipt = send_transaction(fake_w3, account, REGISTRY, "0x2f2ff15d")

    assert receipt["status"] == 1
    (raw,) = fake_w3.eth.sent
    assert Account.recover_transaction(raw) == TEST_ACCOUNT


def test_send_transaction_raises_on_revert(fake_w3):
    fake_w3.eth.receipt_status = 0
    with pytest.raises(TransactionFailed) as exc:
        send_transaction(fake_w3, load_account(TEST_PRIVATE_KEY), REGISTRY, b"")
    assert exc.value.tx_hash == "0x" + "11" * 32
    assert exc.value.receipt["status"] == 0


def test_deploy_contract_checks_code(fake_w3):
    account = load_account(TEST_PRIVATE_KEY)
    fake_w3.eth.contract_address = CREATED
    fake_w3.eth.code[CREATED] = bytes.fromhex(SAMPLE_RUNTIME[2:])

    address, receipt = deploy_contract(fake_w3, account, SAMPLE_BYTECODE)

    assert address.lower() == CREATED
    assert receipt["contractAddress"] == CREATED


def test_deploy_contract_without_code_fails(fake_w3):
    account = load_account(TEST_PRIVATE_KEY)
    with pytest.raises(DeploymentCheckError):
        deploy_contract(fake_w3, account, SAMPLE_BYTECODE)

    fake_w3.eth.contract_address = CREATED
    with pytest.raises(DeploymentCheckError):
        deploy_contract(fake_w3, account, SAMPLE_BYTECODE)
