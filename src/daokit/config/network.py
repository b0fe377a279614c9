"""
Network configuration for daokit.

Contains RPC URLs and block explorer endpoints for the chains the DAO stack
is deployed on. Environment variables override the defaults.
"""

import os
from typing import Any

from daokit.errors import MissingConfiguration


# =============================================================================
# CHAIN CONFIGURATIONS
# =============================================================================

CHAINS: dict[str, dict[str, Any]] = {
    "sepolia": {
        "chain_id": 11155111,
        "name": "Sepolia",
        "currency": "ETH",
        "block_time": 12,
        "rpc_urls": [
            "https://ethereum-sepolia-rpc.publicnode.com",
            "https://rpc.sepolia.org",
        ],
        "explorer": {
            "name": "Etherscan Sepolia",
            "url": "https://sepolia.etherscan.io",
            "api_url": "https://api-sepolia.etherscan.io/api",
        },
        "blockscout": "https://eth-sepolia.blockscout.com",
    },
    "mainnet": {
        "chain_id": 1,
        "name": "Ethereum Mainnet",
        "currency": "ETH",
        "block_time": 12,
        "rpc_urls": [
            "https://ethereum-rpc.publicnode.com",
            "https://rpc.ankr.com/eth",
        ],
        "explorer": {
            "name": "Etherscan",
            "url": "https://etherscan.io",
            "api_url": "https://api.etherscan.io/api",
        },
        "blockscout": "https://eth.blockscout.com",
    },
    "holesky": {
        "chain_id": 17000,
        "name": "Holesky",
        "currency": "ETH",
        "block_time": 12,
        "rpc_urls": [
            "https://ethereum-holesky-rpc.publicnode.com",
        ],
        "explorer": {
            "name": "Etherscan Holesky",
            "url": "https://holesky.etherscan.io",
            "api_url": "https://api-holesky.etherscan.io/api",
        },
        "blockscout": "https://eth-holesky.blockscout.com",
    },
}

# Chain ID to name mapping
CHAIN_ID_TO_NAME: dict[int, str] = {
    config["chain_id"]: name for name, config in CHAINS.items()
}

DEFAULT_CHAIN = "sepolia"


# =============================================================================
# HELPER FUNCTIONS
# =============================================================================

def get_chain_config(chain: str | int | None = None) -> dict[str, Any]:
    """Get configuration for a specific chain.

    Args:
        chain: Chain name (e.g., 'sepolia', 'mainnet') or chain ID.
               If None, uses CHAIN environment variable or defaults to 'sepolia'.

    Returns:
        Chain configuration dictionary.

    Raises:
        MissingConfiguration: If chain is not supported.
    """
    if chain is None:
        chain = os.getenv("CHAIN", DEFAULT_CHAIN).lower()

    if isinstance(chain, int):
        name = CHAIN_ID_TO_NAME.get(chain)
        if name is None:
            raise MissingConfiguration(f"Unsupported chain ID: {chain}")
        chain = name

    chain = chain.lower()
    if chain not in CHAINS:
        raise MissingConfiguration(f"Unsupported chain: {chain}. Supported: {list(CHAINS.keys())}")

    return CHAINS[chain]


def get_rpc_url(chain: str | int | None = None) -> str:
    """Get the primary RPC URL for a chain.

    Uses RPC_URL environment variable if set, otherwise returns first default.
    """
    env_rpc = os.getenv("RPC_URL")
    if env_rpc:
        return env_rpc

    config = get_chain_config(chain)
    return config["rpc_urls"][0]


def get_chain_id(chain: str | None = None) -> int:
    """Get the chain ID for a chain name."""
    config = get_chain_config(chain)
    return config["chain_id"]


def get_explorer_url(chain: str | int | None = None) -> str:
    """Get the block explorer URL for a chain."""
    config = get_chain_config(chain)
    return config["explorer"]["url"]


def get_explorer_api_url(chain: str | int | None = None) -> str:
    """Get the block explorer API URL for a chain (EXPLORER_API_URL wins)."""
    env_api = os.getenv("EXPLORER_API_URL")
    if env_api:
        return env_api
    config = get_chain_config(chain)
    return config["explorer"]["api_url"]


def get_blockscout_url(chain: str | int | None = None) -> str:
    config = get_chain_config(chain)
    return config["blockscout"]


def address_link(address: str, chain: str | int | None = None) -> str:
    return f"{get_explorer_url(chain)}/address/{address}#code"


def tx_link(tx_hash: str, chain: str | int | None = None) -> str:
    return f"{get_explorer_url(chain)}/tx/{tx_hash}"


# =============================================================================
# NETWORK CONSTANTS
# =============================================================================

GAS_LIMIT_BUFFER: float = 1.2  # 20% buffer on gas estimates

# Network timeouts; calls are never retried
RPC_TIMEOUT: int = 30  # seconds
EXPLORER_TIMEOUT: int = 30  # seconds
RECEIPT_TIMEOUT: int = 300  # seconds
