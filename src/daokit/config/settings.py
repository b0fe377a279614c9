"""
Runtime settings read from the environment.

``.env`` files are loaded with python-dotenv before anything reads
``os.environ``; values already present in the environment win.
"""

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv

from daokit.config.network import DEFAULT_CHAIN, get_chain_config
from daokit.errors import MissingConfiguration


def load_env_file(path: Optional[str] = ".env") -> bool:
    """Load ``path`` into ``os.environ`` without overriding existing values."""
    if not path:
        return False
    if not Path(path).exists():
        return False
    return load_dotenv(path, override=False)


def env_or(name: str, default: Optional[str] = None) -> Optional[str]:
    """Environment value with blanks treated as unset."""
    value = os.getenv(name)
    if value is None or not value.strip():
        return default
    return value.strip()


def require_env(name: str, purpose: str = "") -> str:
    """
    Get a required environment variable.

    Raises:
        MissingConfiguration: variable unset or blank
    """
    value = env_or(name)
    if value is None:
        hint = f" ({purpose})" if purpose else ""
        raise MissingConfiguration(f"Missing required environment variable {name}{hint}")
    return value


def pick(cli_value: Optional[str], env_name: str, purpose: str = "", default: Optional[str] = None) -> str:
    """CLI flag first, then environment, then ``default``; otherwise fatal."""
    if cli_value:
        return cli_value
    value = env_or(env_name, default)
    if value is None:
        raise MissingConfiguration(
            f"{purpose or env_name} not given: pass it as an option or set {env_name}"
        )
    return value


@dataclass(frozen=True)
class Settings:
    chain: str = DEFAULT_CHAIN
    rpc_url: Optional[str] = None
    private_key: Optional[str] = None
    etherscan_api_key: Optional[str] = None
    proposals_dir: Path = Path("proposals")
    artifacts_dir: Path = Path("artifacts")
    log_dir: Path = Path("logs")

    @classmethod
    def from_env(cls, chain: Optional[str] = None, rpc_url: Optional[str] = None) -> "Settings":
        chain = (chain or env_or("CHAIN", DEFAULT_CHAIN)).lower()
        get_chain_config(chain)
        return cls(
            chain=chain,
            rpc_url=rpc_url or env_or("RPC_URL"),
            private_key=env_or("PRIVATE_KEY"),
            etherscan_api_key=env_or("ETHERSCAN_API_KEY"),
            proposals_dir=Path(env_or("PROPOSALS_DIR", "proposals")),
            artifacts_dir=Path(env_or("ARTIFACTS_DIR", "artifacts")),
            log_dir=Path(env_or("DAOKIT_LOG_DIR", "logs")),
        )

    def require_private_key(self) -> str:
        if not self.private_key:
            raise MissingConfiguration("PRIVATE_KEY is required to send transactions")
        return self.private_key

    def require_api_key(self) -> str:
        if not self.etherscan_api_key:
            raise MissingConfiguration("ETHERSCAN_API_KEY is required for verification")
        return self.etherscan_api_key
