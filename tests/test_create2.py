import pytest
from eth_abi import encode
from eth_utils import keccak, to_checksum_address

from conftest import COUNTER_FACTORY, SAMPLE_BYTECODE, SINGLETON_FACTORY, TIMELOCK
from daokit.errors import ArgumentMismatch, EmptyBytecode, InvalidAddress, InvalidSalt
from daokit.helpers.create2 import (
    compute_create2_address,
    compute_create2_address_from_hash,
    compute_create_address,
    parse_salt,
    predict_create_via_nonce,
    predict_via_factory,
    protected_salt,
    salt_from_label,
    salt_has_caller_prefix,
)
from daokit.helpers.initcode import build_initcode

ZERO = "0x0000000000000000000000000000000000000000"
ZERO_SALT = "0x" + "00" * 32

# EIP-1014 examples
EIP1014_VECTORS = [
    (ZERO, ZERO_SALT, "0x00", "0x4D1A2e2bB4F88F0250f26Ffff098B0b30B26BF38"),
    ("0xdeadbeef00000000000000000000000000000000", ZERO_SALT, "0x00",
     "0xB928f69Bb1D91Cd65274e3c79d8986362984fDA3"),
    ("0xdeadbeef00000000000000000000000000000000",
     "0x000000000000000000000000feed000000000000000000000000000000000000", "0x00",
     "0xD04116cDd17beBE565EB2422F2497E06cC1C9833"),
    (ZERO, ZERO_SALT, "0xdeadbeef", "0x70f2b2914A2a4b783FaEFb75f459A580616Fcb5e"),
    ("0x00000000000000000000000000000000deadbeef",
     "0x00000000000000000000000000000000000000000000000000000000cafebabe", "0xdeadbeef",
     "0x60f3f640a8508fC6a86d45DF051962668E1e8AC7"),
    ("0x00000000000000000000000000000000deadbeef",
     "0x00000000000000000000000000000000000000000000000000000000cafebabe", "0x" + "deadbeef" * 11,
     "0x1d8bfDC5D46DC4f61D6b6115972536eBE6A8854C"),
]


@pytest.mark.parametrize("factory,salt,init_code,expected", EIP1014_VECTORS)
def test_create2_eip1014_vectors(factory, salt, init_code, expected):
    assert compute_create2_address(factory, salt, init_code) == expected


def test_create2_from_hash_matches_full_init_code():
    init_code = build_initcode(SAMPLE_BYTECODE, ["address"], [TIMELOCK])
    salt = salt_from_label("DAO:Counter:v1")
    assert compute_create2_address_from_hash(SINGLETON_FACTORY, salt, keccak(init_code)) == \
        compute_create2_address(SINGLETON_FACTORY, salt, init_code)


def test_create2_is_deterministic_and_sensitive_to_every_input():
    init_code = build_initcode(SAMPLE_BYTECODE, ["address"], [TIMELOCK])
    salt = salt_from_label("DAO:Counter:v1")
    first = compute_create2_address(SINGLETON_FACTORY, salt, init_code)
    assert first == compute_create2_address(SINGLETON_FACTORY, salt, init_code)

    flipped = bytearray(init_code)
    flipped[-1] ^= 0x01
    assert compute_create2_address(SINGLETON_FACTORY, salt, bytes(flipped)) != first
    assert compute_create2_address(SINGLETON_FACTORY, salt_from_label("DAO:Counter:v2"), init_code) != first
    assert compute_create2_address(COUNTER_FACTORY, salt, init_code) != first


def test_create2_accepts_lowercase_factory_and_returns_checksum():
    lower = compute_create2_address(SINGLETON_FACTORY.lower(), ZERO_SALT, "0x00")
    assert lower == compute_create2_address(SINGLETON_FACTORY, ZERO_SALT, "0x00")
    assert lower != lower.lower()


def test_create2_rejects_empty_init_code():
    with pytest.raises(EmptyBytecode):
        compute_create2_address(SINGLETON_FACTORY, ZERO_SALT, "0x")


@pytest.mark.parametrize("salt", ["0x1234", "0x" + "00" * 33, "not-hex", b"\x00" * 31])
def test_create2_rejects_bad_salt(salt):
    with pytest.raises(InvalidSalt):
        compute_create2_address(SINGLETON_FACTORY, salt, "0x00")


@pytest.mark.parametrize("factory", ["0x1234", "0xce0042b868300000d44a59004da54a005ffdcf9", "0xCE0042b868300000d44A59004Da54A005ffdcf9f"])
def test_create2_rejects_bad_factory(factory):
    with pytest.raises(InvalidAddress):
        compute_create2_address(factory, ZERO_SALT, "0x00")


@pytest.mark.parametrize("nonce,expected", [
    (0, "0xcd234a471b72ba2f1ccf0a70fcaba648a5eecd8d"),
    (1, "0x343c43a37d37dff08ae8c4a11544c718abb4fcf8"),
    (2, "0xf778b86fa74e846c4f0a1fbd1335fe81c00a0c91"),
])
def test_create_address_from_nonce(nonce, expected):
    deployer = "0x6ac7ea33f8831ea9dcc53393aaa88b25a785dbf0"
    assert compute_create_address(deployer, nonce).lower() == expected


def test_create_address_rejects_negative_nonce():
    with pytest.raises(ArgumentMismatch):
        compute_create_address(TIMELOCK, -1)


def test_salt_helpers():
    assert salt_from_label("DAO:Counter:v1") == keccak(text="DAO:Counter:v1")
    assert parse_salt("0x" + "ab" * 32) == b"\xab" * 32

    salt = protected_salt(TIMELOCK, "DAO:Counter:v1")
    assert len(salt) == 32
    assert salt[:20] == bytes.fromhex(TIMELOCK[2:])
    assert salt[20:] == keccak(text="DAO:Counter:v1")[:12]
    assert salt_has_caller_prefix(salt, TIMELOCK.lower())
    assert not salt_has_caller_prefix(salt, SINGLETON_FACTORY)


COMPUTE_COUNTER = "function computeAddress(bytes32 salt, uint256 initial, address ctrOwner) view returns (address)"


def test_predict_via_factory_returns_factory_answer(fake_w3):
    predicted = "0xa87db77625fee6496e0c51e4930a0f4367accbff"
    salt = salt_from_label("counter")
    selector = keccak(text="computeAddress(bytes32,uint256,address)")[:4]
    fake_w3.eth.set_call(COUNTER_FACTORY, selector, encode(["address"], [predicted]))

    result = predict_via_factory(fake_w3, COUNTER_FACTORY, COMPUTE_COUNTER, [salt, 0, TIMELOCK], sender=TIMELOCK)

    assert result.lower() == predicted
    call = fake_w3.eth.calls[0]
    assert call["from"] == TIMELOCK
    assert call["data"][:4] == selector
    assert call["data"][4:] == encode(["bytes32", "uint256", "address"], [salt, 0, TIMELOCK])


def test_predict_via_factory_validates_before_calling(fake_w3):
    with pytest.raises(ArgumentMismatch):
        predict_via_factory(fake_w3, COUNTER_FACTORY, COMPUTE_COUNTER, [b"\x00" * 32, 0])
    with pytest.raises(ArgumentMismatch):
        predict_via_factory(fake_w3, COUNTER_FACTORY, "function value() view returns (uint256)")
    assert fake_w3.eth.calls == []


def test_predict_via_factory_short_answer(fake_w3):
    fake_w3.eth.set_call(COUNTER_FACTORY, keccak(text="computeAddress(bytes32,uint256,address)")[:4], b"")
    with pytest.raises(ArgumentMismatch):
        predict_via_factory(fake_w3, COUNTER_FACTORY, COMPUTE_COUNTER, [b"\x00" * 32, 0, TIMELOCK])


def test_predict_create_via_nonce(fake_w3):
    deployer = "0x6ac7ea33f8831ea9dcc53393aaa88b25a785dbf0"
    fake_w3.eth.nonces[deployer] = 2
    assert predict_create_via_nonce(fake_w3, deployer).lower() == "0xf778b86fa74e846c4f0a1fbd1335fe81c00a0c91"


def test_counter_1_address_is_stable():
    salt = keccak(text="counter-1")
    init_code = build_initcode(SAMPLE_BYTECODE, ["uint256", "address"], [0, TIMELOCK])
    preimage = b"\xff" + bytes.fromhex("7E3aC36e1aeD213c9d34a188CeA7649205c21a8e") + salt + keccak(init_code)
    expected = to_checksum_address(keccak(preimage)[12:])

    assert COUNTER_FACTORY.lower() == "0x7e3ac36e1aed213c9d34a188cea7649205c21a8e"
    assert compute_create2_address(COUNTER_FACTORY, salt, init_code) == expected
    assert compute_create2_address(COUNTER_FACTORY, "0x" + salt.hex(), "0x" + init_code.hex()) == expected
    rebuilt = build_initcode(SAMPLE_BYTECODE, "uint256,address", ["0", TIMELOCK.lower()])
    assert compute_create2_address(COUNTER_FACTORY, salt, rebuilt) == expected
