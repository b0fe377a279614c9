"""
Exception types raised by daokit.

Validation errors are raised before any network access. Reverts observed
while probing contracts are not exceptions; see ``daokit.helpers.diagnostics``.
"""
from __future__ import annotations

from typing import Any


class DaokitError(Exception):
    """Base class for all daokit errors."""


class ValidationError(DaokitError, ValueError):
    """Malformed user input (addresses, hex, argument shapes, env vars)."""


class InvalidAddress(ValidationError):
    pass


class InvalidHex(ValidationError):
    pass


class InvalidSalt(ValidationError):
    pass


class EmptyBytecode(ValidationError):
    """Creation bytecode or init code is empty."""


class ArgumentMismatch(ValidationError):
    """Argument count, type or value does not match the declared ABI types."""


class UnknownFunction(ValidationError):
    """A function fragment cannot be parsed or resolved to something encodable."""


class EmptyProposal(ValidationError):
    pass


class MissingConfiguration(ValidationError):
    """A required environment variable or CLI option is absent."""


class ArtifactNotFound(ValidationError):
    pass


class DeploymentCheckError(DaokitError):
    """An address that must hold a contract has no code."""


class TransactionFailed(DaokitError):
    def __init__(self, tx_hash: str, receipt: Any = None):
        super().__init__(f"Transaction {tx_hash} reverted (status 0)")
        self.tx_hash = tx_hash
        self.receipt = receipt


class VerificationError(DaokitError):
    """The explorer API answered with a status other than "1"."""

    def __init__(self, message: str, result: Any = None):
        super().__init__(f"{message}: {result}" if result else message)
        self.api_message = message
        self.result = result
