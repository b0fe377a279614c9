import json
from pathlib import Path

import pytest

from conftest import COUNTER_FACTORY, SINGLETON_FACTORY
from daokit.config.contracts import get_contract_warning, get_known_address
from daokit.config.network import (
    address_link,
    get_chain_config,
    get_chain_id,
    get_explorer_api_url,
    get_rpc_url,
    tx_link,
)
from daokit.config.settings import Settings, env_or, load_env_file, pick, require_env
from daokit.errors import ArgumentMismatch, MissingConfiguration
from daokit.helpers.payloads import load_payload, save_payload, slugify


def test_chain_config_by_name_and_id():
    assert get_chain_config("Sepolia")["chain_id"] == 11155111
    assert get_chain_config(1)["name"] == "Ethereum Mainnet"
    assert get_chain_id("holesky") == 17000
    with pytest.raises(MissingConfiguration, match="Unsupported chain"):
        get_chain_config("goerli")
    with pytest.raises(MissingConfiguration):
        get_chain_config(5)


def test_chain_defaults_to_env(monkeypatch):
    monkeypatch.setenv("CHAIN", "mainnet")
    assert get_chain_config()["chain_id"] == 1


def test_env_overrides_urls(monkeypatch):
    assert get_rpc_url("sepolia") == "https://ethereum-sepolia-rpc.publicnode.com"
    monkeypatch.setenv("RPC_URL", "http://localhost:8545")
    monkeypatch.setenv("EXPLORER_API_URL", "http://localhost:4000/api")
    assert get_rpc_url("sepolia") == "http://localhost:8545"
    assert get_explorer_api_url("sepolia") == "http://localhost:4000/api"


def test_explorer_links():
    assert address_link(SINGLETON_FACTORY, "sepolia") == \
        f"https://sepolia.etherscan.io/address/{SINGLETON_FACTORY}#code"
    assert tx_link("0xabc", "mainnet") == "https://etherscan.io/tx/0xabc"


def test_known_addresses():
    assert get_known_address("singletonFactory") == SINGLETON_FACTORY
    assert get_known_address("counterFactory", "sepolia") == COUNTER_FACTORY
    with pytest.raises(MissingConfiguration):
        get_known_address("counterFactory", "mainnet")
    assert get_contract_warning(get_known_address("bytecodeFactory"))
    assert get_contract_warning(COUNTER_FACTORY) == ""


def test_env_helpers(monkeypatch):
    monkeypatch.setenv("PRIVATE_KEY", "  ")
    assert env_or("PRIVATE_KEY", "fallback") == "fallback"
    with pytest.raises(MissingConfiguration, match="PRIVATE_KEY"):
        require_env("PRIVATE_KEY", "signing")

    monkeypatch.setenv("SALT", " 0x01 ")
    assert require_env("SALT") == "0x01"
    assert pick("0x02", "SALT") == "0x02"
    assert pick(None, "SALT") == "0x01"
    assert pick(None, "PREDICTED", default="0x03") == "0x03"
    with pytest.raises(MissingConfiguration, match="PREDICTED"):
        pick(None, "PREDICTED", "predicted address")


def test_load_env_file_does_not_override(tmp_path, monkeypatch):
    env_file = tmp_path / ".env"
    env_file.write_text("RPC_URL=http://from-file\nETHERSCAN_API_KEY=file-key\n")
    monkeypatch.setenv("RPC_URL", "http://from-env")

    assert load_env_file(str(env_file))
    assert env_or("RPC_URL") == "http://from-env"
    assert env_or("ETHERSCAN_API_KEY") == "file-key"
    assert not load_env_file(str(tmp_path / "missing.env"))
    assert not load_env_file(None)
    monkeypatch.delenv("ETHERSCAN_API_KEY")


def test_settings_from_env(monkeypatch):
    monkeypatch.setenv("CHAIN", "MAINNET")
    monkeypatch.setenv("PROPOSALS_DIR", "out/proposals")
    settings = Settings.from_env(rpc_url="http://cli")

    assert settings.chain == "mainnet"
    assert settings.rpc_url == "http://cli"
    assert settings.proposals_dir == Path("out/proposals")
    with pytest.raises(MissingConfiguration):
        settings.require_private_key()
    with pytest.raises(MissingConfiguration):
        settings.require_api_key()
    assert Settings.from_env(chain="holesky").chain == "holesky"
    with pytest.raises(MissingConfiguration, match="goerli"):
        Settings.from_env(chain="goerli")


def test_slugify():
    assert slugify("Deploy Counter v1!") == "deploy-counter-v1"
    assert slugify("***") == "proposal"


def test_save_and_load_payload(tmp_path):
    payload = {"targets": [SINGLETON_FACTORY], "values": ["0"], "calldatas": ["0x"]}
    path = save_payload(payload, "Deploy Counter", tmp_path / "proposals")

    assert path.parent == tmp_path / "proposals"
    assert path.name.startswith("deploy-counter-")
    assert path.suffix == ".json"
    assert json.loads(path.read_text()) == payload
    assert load_payload(path) == payload


def test_load_payload_errors(tmp_path):
    with pytest.raises(MissingConfiguration, match="Cannot read payload"):
        load_payload(tmp_path / "missing.json")

    broken = tmp_path / "broken.json"
    broken.write_text("{not json")
    with pytest.raises(ArgumentMismatch, match="not valid JSON"):
        load_payload(broken)

    listed = tmp_path / "list.json"
    listed.write_text("[]")
    with pytest.raises(ArgumentMismatch):
        load_payload(listed)
