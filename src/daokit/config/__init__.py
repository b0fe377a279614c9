"""
Configuration package for daokit.
"""

from daokit.config.network import (
    CHAINS,
    DEFAULT_CHAIN,
    GAS_LIMIT_BUFFER,
    RPC_TIMEOUT,
    EXPLORER_TIMEOUT,
    get_chain_config,
    get_chain_id,
    get_rpc_url,
    get_explorer_url,
    get_explorer_api_url,
)

from daokit.config.contracts import (
    WELL_KNOWN_ADDRESSES,
    CONTRACT_ADDRESSES,
    CONTRACT_WARNINGS,
    get_known_address,
    get_contract_warning,
)

from daokit.config.settings import (
    Settings,
    env_or,
    require_env,
    load_env_file,
)

__all__ = [
    # Network
    'CHAINS',
    'DEFAULT_CHAIN',
    'GAS_LIMIT_BUFFER',
    'RPC_TIMEOUT',
    'EXPLORER_TIMEOUT',
    'get_chain_config',
    'get_chain_id',
    'get_rpc_url',
    'get_explorer_url',
    'get_explorer_api_url',

    # Contracts
    'WELL_KNOWN_ADDRESSES',
    'CONTRACT_ADDRESSES',
    'CONTRACT_WARNINGS',
    'get_known_address',
    'get_contract_warning',

    # Settings
    'Settings',
    'env_or',
    'require_env',
    'load_env_file',
]
