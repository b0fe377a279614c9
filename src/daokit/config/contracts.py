"""
Contract addresses for daokit.

Well-known factories deployed at the same address on every chain, and the
DAO deployment recorded per chain. Commands take addresses from flags or
environment first and only fall back to these.
"""

from typing import Any

from eth_utils import to_checksum_address

from daokit.errors import MissingConfiguration

# Deterministic deployers available on most EVM chains
WELL_KNOWN_ADDRESSES: dict[str, str] = {
    # EIP-2470 singleton factory: deploy(bytes initCode, bytes32 salt)
    "singletonFactory": "0xce0042B868300000d44A59004Da54A005ffdcf9f",
    # ImmutableCreate2Factory: safeCreate2(bytes32 salt, bytes initializationCode)
    "immutableCreate2Factory": "0x0000000000FFe8B47B3e2130213B802212439497",
}

# DAO deployment by chain
CONTRACT_ADDRESSES: dict[str, dict[str, str]] = {
    "sepolia": {
        "timelock": "0xD54343A590e8fAAa1cb9ea9F1fddef4ABd365310",
        "contractRegistry": "0x793DB78E2d4dD68564735743FABc45482e6B9eeB",
        "counterFactory": "0x7E3aC36e1aeD213c9d34a188CeA7649205c21a8e",
        "bytecodeFactory": "0x596E8CC6e08aA684FFf78FdBF7E5146386ff76A0",
        "workingFactory": "0xe53e754a335610813051485166D5ad641d485918",
        "minimalFactory": "0x692F8333979866221638227b0570c3FcaCe001c6",
    },
}

# Addresses that must not be used as deployment targets
CONTRACT_WARNINGS: dict[str, str] = {
    "0x596e8cc6e08aa684fff78fdbf7e5146386ff76a0": """
    WARNING: the original BytecodeFactory does not hold REGISTRAR_ROLE on the
    ContractRegistry, so deployAndRegister through it reverts. Use the
    WorkingFactory or grant the role first.
    """.strip(),
}


def get_known_address(name: str, chain: str = "sepolia") -> str:
    """Look up a known address by name.

    Raises:
        MissingConfiguration: If the name is unknown for the chain.
    """
    if name in WELL_KNOWN_ADDRESSES:
        return to_checksum_address(WELL_KNOWN_ADDRESSES[name])
    chain_addresses: dict[str, Any] = CONTRACT_ADDRESSES.get(chain, {})
    if name not in chain_addresses:
        raise MissingConfiguration(f"No known address for {name!r} on {chain}")
    return to_checksum_address(chain_addresses[name])


def get_contract_warning(address: str) -> str:
    """Get warning message for a contract address if any."""
    return CONTRACT_WARNINGS.get(address.lower(), "")
