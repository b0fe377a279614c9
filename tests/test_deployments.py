import pytest
from eth_abi import decode
from eth_utils import keccak

from conftest import IMMUTABLE_FACTORY, REGISTRY, SAMPLE_BYTECODE, SINGLETON_FACTORY, TIMELOCK, WORKING_FACTORY
from daokit.errors import MissingConfiguration
from daokit.helpers.create2 import compute_create2_address, compute_create_address, protected_salt, salt_from_label
from daokit.helpers.deployments import FactoryKind, plan_deployment
from daokit.helpers.initcode import assemble

BUNDLE = assemble(SAMPLE_BYTECODE, ["uint256", "address"], [0, TIMELOCK])
SALT = salt_from_label("DAO:Counter:v1")
BYTECODE_FACTORY = "0x596e8cc6e08aa684fff78fdbf7e5146386ff76a0"


def test_singleton_plan_defaults_to_well_known_factory():
    plan = plan_deployment("singleton", BUNDLE, salt=SALT)

    assert plan.kind is FactoryKind.SINGLETON
    assert plan.factory == SINGLETON_FACTORY
    assert plan.calldata[:4] == keccak(text="deploy(bytes,bytes32)")[:4]
    init_code, salt = decode(["bytes", "bytes32"], plan.calldata[4:])
    assert init_code == BUNDLE.init_code
    assert salt == SALT
    assert plan.predicted == compute_create2_address(SINGLETON_FACTORY, SALT, BUNDLE.init_code)
    assert plan.warnings == ()


def test_plan_action_targets_factory():
    plan = plan_deployment(FactoryKind.SINGLETON, BUNDLE, salt=SALT)
    action = plan.action()
    assert action.target == SINGLETON_FACTORY
    assert action.value == 0
    assert action.calldata == plan.calldata
    assert plan.summary()["predictedAddress"] == plan.predicted


def test_immutable_plan_with_protected_salt():
    salt = protected_salt(TIMELOCK, "DAO:Counter:v1")
    plan = plan_deployment("immutable", BUNDLE, salt=salt, caller=TIMELOCK)

    assert plan.factory == IMMUTABLE_FACTORY
    assert plan.calldata[:4] == keccak(text="safeCreate2(bytes32,bytes)")[:4]
    assert plan.predicted == compute_create2_address(IMMUTABLE_FACTORY, salt, BUNDLE.init_code)
    assert plan.warnings == ()


def test_immutable_plan_warns_on_foreign_salt_prefix():
    salt = protected_salt(REGISTRY, "DAO:Counter:v1")
    plan = plan_deployment("immutable", BUNDLE, salt=salt, caller=TIMELOCK)
    assert len(plan.warnings) == 1
    assert "safeCreate2 will revert" in plan.warnings[0]


def test_create2_plan_predicts_locally():
    plan = plan_deployment("create2", BUNDLE, factory=WORKING_FACTORY, salt=SALT)
    assert plan.calldata[:4] == keccak(text="deployCreate2(bytes32,bytes)")[:4]
    assert plan.predicted == compute_create2_address(WORKING_FACTORY, SALT, BUNDLE.init_code)


def test_create2_plan_requires_factory_and_salt():
    with pytest.raises(MissingConfiguration):
        plan_deployment("create2", BUNDLE, salt=SALT)
    with pytest.raises(MissingConfiguration):
        plan_deployment("create2", BUNDLE, factory=WORKING_FACTORY)


def test_onchain_prediction_needs_connection():
    with pytest.raises(MissingConfiguration):
        plan_deployment("create2", BUNDLE, factory=WORKING_FACTORY, salt=SALT, onchain=True)


def test_create_plan_predicts_from_factory_nonce(fake_w3):
    fake_w3.eth.nonces[WORKING_FACTORY.lower()] = 4
    plan = plan_deployment("create", BUNDLE, factory=WORKING_FACTORY, w3=fake_w3)

    assert plan.calldata[:4] == keccak(text="deploy(bytes)")[:4]
    assert plan.salt is None
    assert plan.predicted == compute_create_address(WORKING_FACTORY, 4)
    assert any("CREATE address" in w for w in plan.warnings)


def test_create_plan_without_connection_has_no_prediction():
    plan = plan_deployment("create", BUNDLE, factory=WORKING_FACTORY)
    assert plan.predicted is None
    assert plan.summary()["salt"] is None


def test_register_plan_encodes_registry_arguments():
    plan = plan_deployment(
        "register", BUNDLE, factory=WORKING_FACTORY, registry=REGISTRY,
        contract_kind="Counter", version=2, label="counter-v2", uri="ipfs://meta",
    )
    assert plan.calldata[:4] == keccak(text="deployAndRegister(bytes,address,bytes32,uint64,string,string)")[:4]
    init_code, registry, kind, version, label, uri = decode(
        ["bytes", "address", "bytes32", "uint64", "string", "string"], plan.calldata[4:]
    )
    assert init_code == BUNDLE.init_code
    assert registry.lower() == REGISTRY.lower()
    assert kind == keccak(text="Counter")
    assert (version, label, uri) == (2, "counter-v2", "ipfs://meta")


def test_register_plan_requires_registry():
    with pytest.raises(MissingConfiguration):
        plan_deployment("register", BUNDLE, factory=WORKING_FACTORY)


def test_known_broken_factory_adds_warning():
    plan = plan_deployment("create", BUNDLE, factory=BYTECODE_FACTORY)
    assert any("REGISTRAR_ROLE" in w for w in plan.warnings)


def test_unknown_kind_is_rejected():
    with pytest.raises(ValueError):
        plan_deployment("create3", BUNDLE, factory=WORKING_FACTORY)
