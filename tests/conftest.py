import logging

import pytest
import requests
from eth_utils import to_checksum_address

TIMELOCK = to_checksum_address("0xd54343a590e8faaa1cb9ea9f1fddef4abd365310")
SINGLETON_FACTORY = "0xce0042B868300000d44A59004Da54A005ffdcf9f"
IMMUTABLE_FACTORY = "0x0000000000FFe8B47B3e2130213B802212439497"
COUNTER_FACTORY = to_checksum_address("0x7e3ac36e1aed213c9d34a188cea7649205c21a8e")
REGISTRY = to_checksum_address("0x793db78e2d4dd68564735743fabc45482e6b9eeb")
WORKING_FACTORY = to_checksum_address("0xe53e754a335610813051485166d5ad641d485918")

# Minimal creation code with solc-style trailing metadata (a1 64 'solc' ... 000a)
SAMPLE_BYTECODE = (
    "0x6080604052348015600f57600080fd5b50603f80601d6000396000f3fe"
    "6080604052600080fdfea164736f6c6343000818000a"
)
SAMPLE_RUNTIME = "0x6080604052600080fdfea164736f6c6343000818000a"

# Known private key (hardhat account #0); never holds real funds
TEST_PRIVATE_KEY = "0xac0974bec39a17e36ba4a6b4d238ff944bacb478cbed5efcae784d7bf4f2ff80"
TEST_ACCOUNT = "0xf39Fd6e51aad88F6F4ce6aB8827279cffFb92266"

ENV_VARS = [
    "RPC_URL", "CHAIN", "PRIVATE_KEY", "ETHERSCAN_API_KEY", "EXPLORER_API_URL",
    "PROPOSALS_DIR", "ARTIFACTS_DIR", "DAOKIT_LOG_DIR",
    "FACTORY_ADDRESS", "REGISTRY_ADDRESS", "TIMELOCK_ADDRESS", "GOVERNOR_ADDRESS",
    "SALT", "SALT_STRING", "INITCODE", "ARGS", "BYTECODE", "PREDICTED",
]


class FakeEth:
    """In-memory stand-in for ``w3.eth``; responses are set per test."""

    def __init__(self):
        self.chain_id = 11155111
        self.block_number = 100
        self.gas_price = 10**9
        self.code = {}
        self.call_results = {}
        self.calls = []
        self.nonces = {}
        self.blocks = {}
        self.receipts = {}
        self.storage = {}
        self.sent = []
        self.receipt_status = 1
        self.contract_address = None

    def set_call(self, to, selector, result):
        self.call_results[(to.lower(), bytes(selector))] = result

    def get_code(self, address, block_identifier=None):
        return self.code.get(address.lower(), b"")

    def call(self, tx, block_identifier=None):
        self.calls.append(tx)
        result = self.call_results[(tx["to"].lower(), bytes(tx["data"])[:4])]
        if isinstance(result, Exception):
            raise result
        return result

    def get_transaction_count(self, address, block_identifier=None):
        return self.nonces.get(address.lower(), 0)

    def get_block(self, number, full_transactions=False):
        if number == "latest":
            return {"number": self.block_number, "baseFeePerGas": 10**9}
        return self.blocks.get(number, {"number": number, "transactions": []})

    def get_transaction_receipt(self, tx_hash):
        return self.receipts[tx_hash]

    def get_storage_at(self, address, slot):
        return self.storage.get((address.lower(), slot), b"")

    def get_balance(self, address):
        return 10**18

    def estimate_gas(self, tx):
        return 100_000

    def send_raw_transaction(self, raw):
        self.sent.append(bytes(raw))
        return b"\x11" * 32

    def wait_for_transaction_receipt(self, tx_hash, timeout=None):
        return {
            "status": self.receipt_status,
            "transactionHash": tx_hash,
            "blockNumber": self.block_number + 1,
            "gasUsed": 90_000,
            "contractAddress": self.contract_address,
        }


class FakeProvider:
    endpoint_uri = "http://fake-rpc"


class FakeWeb3:
    def __init__(self):
        self.eth = FakeEth()
        self.provider = FakeProvider()

    def is_connected(self):
        return True


class FakeResponse:
    def __init__(self, body, status_code=200):
        self.body = body
        self.status_code = status_code

    def raise_for_status(self):
        if self.status_code >= 400:
            raise requests.HTTPError(f"{self.status_code} error")

    def json(self):
        return self.body


@pytest.fixture
def fake_w3():
    return FakeWeb3()


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    for name in ENV_VARS:
        monkeypatch.delenv(name, raising=False)
    yield
    logger = logging.getLogger("daokit")
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()
