import pytest
from eth_abi import decode, encode
from eth_utils import keccak

from conftest import COUNTER_FACTORY, REGISTRY, TIMELOCK
from daokit.config.abis import REGISTRY_ABI
from daokit.errors import ArgumentMismatch, EmptyProposal, InvalidAddress, UnknownFunction
from daokit.helpers.abi_signature import ContractInterface, FunctionDescriptor
from daokit.helpers.proposal import (
    PROPOSE,
    IntendedCall,
    Proposal,
    ProposalAction,
    ProposalBuilder,
    encode_proposal,
)

SET_CONFIG = "function setConfig(bytes32 key, uint256 val)"


def test_single_set_config_action():
    key = keccak(text="fee")
    proposal = encode_proposal([IntendedCall(REGISTRY, SET_CONFIG, [key, 250])], "Set fee")

    assert proposal.targets == [REGISTRY]
    assert proposal.values == [0]
    assert len(proposal.calldatas) == 1
    calldata = proposal.calldatas[0]
    assert calldata[:4] == keccak(text="setConfig(bytes32,uint256)")[:4]
    assert FunctionDescriptor.parse(SET_CONFIG).decode_call(calldata) == (key, 250)


def test_max_step_config_round_trip():
    key = keccak(text="maxStep")
    proposal = encode_proposal([IntendedCall(REGISTRY, SET_CONFIG, [key, 3])], "Set maxStep")

    (calldata,) = proposal.calldatas
    assert calldata == keccak(text="setConfig(bytes32,uint256)")[:4] + encode(["bytes32", "uint256"], [key, 3])
    assert FunctionDescriptor.parse(SET_CONFIG).decode_call(calldata) == (key, 3)


def test_actions_keep_insertion_order():
    builder = ProposalBuilder("Three steps")
    builder.add_call(COUNTER_FACTORY, "function deployCounter(bytes32 salt, uint256 initial, address ctrOwner)",
                     [b"\x01" * 32, 0, TIMELOCK])
    builder.add_call(REGISTRY, SET_CONFIG, [b"\x02" * 32, 1], value=5)
    builder.add_raw(TIMELOCK, "0x", value=7, note="top up")
    proposal = builder.build()

    assert len(builder) == 3
    assert proposal.targets == [COUNTER_FACTORY, REGISTRY, TIMELOCK]
    assert proposal.values == [0, 5, 7]
    assert proposal.actions[0].note == "deployCounter(bytes32,uint256,address)"
    assert proposal.calldatas[1][:4] == keccak(text="setConfig(bytes32,uint256)")[:4]
    assert proposal.calldatas[2] == b""
    assert proposal.actions[2].note == "top up"


def test_empty_proposal_is_rejected():
    with pytest.raises(EmptyProposal):
        ProposalBuilder("nothing").build()
    with pytest.raises(EmptyProposal):
        encode_proposal([])


def test_proposal_id_matches_governor_hash():
    proposal = encode_proposal([IntendedCall(REGISTRY, SET_CONFIG, [b"\x00" * 32, 1])], "Set fee")
    expected = keccak(encode(
        ["address[]", "uint256[]", "bytes[]", "bytes32"],
        [[REGISTRY], [0], proposal.calldatas, keccak(text="Set fee")],
    ))
    assert proposal.proposal_id == int.from_bytes(expected, "big")

    renamed = Proposal(actions=proposal.actions, description="Set fee again")
    assert renamed.proposal_id != proposal.proposal_id


def test_propose_calldata_decodes_back():
    proposal = encode_proposal([IntendedCall(REGISTRY, SET_CONFIG, [b"\x00" * 32, 1])], "Set fee")
    calldata = proposal.propose_calldata()

    assert calldata[:4] == PROPOSE.selector
    targets, values, calldatas, description = decode(
        ["address[]", "uint256[]", "bytes[]", "string"], calldata[4:]
    )
    assert [t.lower() for t in targets] == [REGISTRY.lower()]
    assert list(values) == [0]
    assert list(calldatas) == proposal.calldatas
    assert description == "Set fee"


def test_payload_round_trip():
    proposal = (
        ProposalBuilder("Grant role")
        .add_raw(REGISTRY, "0x2f2ff15d" + "00" * 64, note="grantRole")
        .build()
    )
    payload = proposal.to_payload()

    assert payload["targets"] == [REGISTRY]
    assert payload["values"] == ["0"]
    assert payload["calldatas"][0].startswith("0x2f2ff15d")
    assert payload["proposalId"] == str(proposal.proposal_id)
    assert payload["descriptionHash"] == "0x" + keccak(text="Grant role").hex()

    rebuilt = Proposal.from_payload(payload)
    assert rebuilt.proposal_id == proposal.proposal_id


def test_payload_with_uneven_arrays_is_rejected():
    payload = {"targets": [REGISTRY, TIMELOCK], "values": ["0"], "calldatas": ["0x"], "description": ""}
    with pytest.raises(ArgumentMismatch):
        Proposal.from_payload(payload)


def test_builder_resolves_names_through_interface():
    builder = ProposalBuilder("Grant", interface=ContractInterface(REGISTRY_ABI))
    role = keccak(text="REGISTRAR_ROLE")
    builder.add_call(REGISTRY, "grantRole", [role, TIMELOCK])
    (action,) = builder.build().actions

    assert action.calldata[:4].hex() == "2f2ff15d"
    assert action.note == "grantRole(bytes32,address)"
    with pytest.raises(UnknownFunction):
        builder.add_call(REGISTRY, "renounceEverything", [])


@pytest.mark.parametrize("value", [-1, 2**256, True, "1"])
def test_action_value_must_be_uint256(value):
    with pytest.raises(ArgumentMismatch):
        ProposalAction(REGISTRY, value, b"")


def test_action_target_is_validated():
    with pytest.raises(InvalidAddress):
        ProposalAction("0x1234", 0, b"")
    assert ProposalAction(REGISTRY.lower(), 0, "0x").target == REGISTRY


def test_bad_arguments_fail_before_adding():
    builder = ProposalBuilder()
    with pytest.raises(ArgumentMismatch):
        builder.add_call(REGISTRY, SET_CONFIG, [b"\x00" * 32])
    assert len(builder) == 0


def test_truncated_bytes32_argument_is_rejected():
    with pytest.raises(ArgumentMismatch):
        encode_proposal([IntendedCall(REGISTRY, SET_CONFIG, ["0x1234", 3])])
    builder = ProposalBuilder("Grant", interface=ContractInterface(REGISTRY_ABI))
    with pytest.raises(ArgumentMismatch):
        builder.add_call(REGISTRY, "grantRole", ["0x1234", TIMELOCK])
    assert len(builder) == 0
