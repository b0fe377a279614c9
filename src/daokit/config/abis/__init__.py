"""
Contract interfaces used by the daokit commands.
"""

from .factories import (
    SINGLETON_FACTORY_ABI,
    IMMUTABLE_FACTORY_ABI,
    BYTECODE_FACTORY_ABI,
    COUNTER_FACTORY_ABI,
)
from .governance import (
    GOVERNOR_ABI,
    REGISTRY_ABI,
    OWNABLE_ABI,
)

__all__ = [
    # Factories
    'SINGLETON_FACTORY_ABI',
    'IMMUTABLE_FACTORY_ABI',
    'BYTECODE_FACTORY_ABI',
    'COUNTER_FACTORY_ABI',

    # Governance
    'GOVERNOR_ABI',
    'REGISTRY_ABI',
    'OWNABLE_ABI',
]
