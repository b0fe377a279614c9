"""
Web3 setup helper - provides common web3 instance utilities.

Public API
----------
get_web3_instance(rpc_url=None, chain=None)
    Return a Web3 instance connected to the specified RPC URL.
    Falls back to the RPC_URL environment variable, then to the chain's
    default public endpoint.
require_connection(w3)
    Fail fast when the endpoint does not answer.
"""
from __future__ import annotations

import logging
from typing import Optional

from web3 import Web3

from daokit.config.network import RPC_TIMEOUT, get_rpc_url

__all__ = ["get_web3_instance", "require_connection"]

logger = logging.getLogger(__name__)

# Cached web3 instance
_w3_instance: Optional[Web3] = None


def get_web3_instance(rpc_url: str | None = None, chain: str | None = None) -> Web3:
    """
    Get a Web3 instance connected to the specified RPC URL.

    Args:
        rpc_url: Optional RPC URL. If not provided, uses RPC_URL or the
            chain's default endpoint.
        chain: Chain name used for the default endpoint.

    Returns:
        Web3 instance
    """
    global _w3_instance

    if rpc_url is None:
        rpc_url = get_rpc_url(chain)

    # Return cached instance if URL matches
    if _w3_instance is not None and _w3_instance.provider.endpoint_uri == rpc_url:
        return _w3_instance

    logger.debug("Connecting to %s", rpc_url)
    _w3_instance = Web3(Web3.HTTPProvider(rpc_url, request_kwargs={"timeout": RPC_TIMEOUT}))
    return _w3_instance


def require_connection(w3: Web3) -> Web3:
    """
    Raises:
        ConnectionError: If the RPC endpoint is unreachable
    """
    if not w3.is_connected():
        endpoint = getattr(w3.provider, "endpoint_uri", "RPC endpoint")
        raise ConnectionError(f"Failed to connect to {endpoint}")
    return w3
