"""
Deployment factory interfaces.

Human-readable fragments, parsed into descriptors by
``daokit.helpers.abi_signature.ContractInterface``.
"""

# EIP-2470 singleton factory
SINGLETON_FACTORY_ABI = [
    "function deploy(bytes initCode, bytes32 salt) payable returns (address createdContract)",
]

# ImmutableCreate2Factory; the salt must start with the caller address or zero
IMMUTABLE_FACTORY_ABI = [
    "function safeCreate2(bytes32 salt, bytes initializationCode) payable returns (address deploymentAddress)",
    "function findCreate2Address(bytes32 salt, bytes initCode) view returns (address deploymentAddress)",
    "function hasBeenDeployed(address deploymentAddress) view returns (bool)",
]

# BytecodeFactory / WorkingFactory / MinimalFactory
BYTECODE_FACTORY_ABI = [
    "function deploy(bytes initcode) payable returns (address addr)",
    "function deployCreate2(bytes32 salt, bytes initcode) payable returns (address addr)",
    "function computeAddress(bytes32 salt, bytes initcode) view returns (address)",
    "function deployAndRegister(bytes initcode, address registry, bytes32 kind, uint64 version, string label, string uri) payable returns (address)",
    "function owner() view returns (address)",
]

COUNTER_FACTORY_ABI = [
    "function computeAddress(bytes32 salt, uint256 initial, address ctrOwner) view returns (address)",
    "function deployCounter(bytes32 salt, uint256 initial, address ctrOwner) returns (address)",
]
