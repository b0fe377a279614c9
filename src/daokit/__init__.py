"""
daokit: deployment, governance-proposal and debugging tooling for an
Ethereum DAO stack (timelock, Governor, CREATE2 factories, registry).
"""

__version__ = "0.1.0"
