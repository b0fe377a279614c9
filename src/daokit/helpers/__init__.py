"""
Library core: address prediction, init code assembly, proposal encoding,
and the RPC / explorer helpers the commands build on.
"""

from daokit.helpers.create2 import (
    compute_create2_address,
    compute_create2_address_from_hash,
    compute_create_address,
    predict_via_factory,
)
from daokit.helpers.initcode import assemble, build_initcode, initcode_hash
from daokit.helpers.proposal import Proposal, ProposalAction, ProposalBuilder, encode_proposal

__all__ = [
    # AddressPredictor
    'compute_create2_address',
    'compute_create2_address_from_hash',
    'compute_create_address',
    'predict_via_factory',

    # InitcodeBuilder
    'assemble',
    'build_initcode',
    'initcode_hash',

    # ProposalEncoder
    'Proposal',
    'ProposalAction',
    'ProposalBuilder',
    'encode_proposal',
]
