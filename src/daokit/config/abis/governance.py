"""
Governance and access-control interfaces.
"""

GOVERNOR_ABI = [
    "function propose(address[] targets, uint256[] values, bytes[] calldatas, string description) returns (uint256)",
    "function hashProposal(address[] targets, uint256[] values, bytes[] calldatas, bytes32 descriptionHash) pure returns (uint256)",
    "function state(uint256 proposalId) view returns (uint8)",
    "function timelock() view returns (address)",
]

REGISTRY_ABI = [
    "function REGISTRAR_ROLE() view returns (bytes32)",
    "function DEFAULT_ADMIN_ROLE() view returns (bytes32)",
    "function hasRole(bytes32 role, address account) view returns (bool)",
    "function grantRole(bytes32 role, address account)",
    "function revokeRole(bytes32 role, address account)",
    "function getRoleAdmin(bytes32 role) view returns (bytes32)",
    "function setConfig(bytes32 key, uint256 val)",
]

OWNABLE_ABI = [
    "function owner() view returns (address)",
    "function transferOwnership(address newOwner)",
]
