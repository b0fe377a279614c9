"""
Etherscan-style verification API client.

Public API
----------
ExplorerClient(api_url, api_key, timeout)
    submit_verification(request) -> guid
    check_status(guid) -> VerificationStatus
    wait_for_verification(guid, attempts, interval) -> VerificationStatus
    get_source_code(address) -> dict
    is_verified(address) -> bool
VerificationRequest
    Dataclass describing one ``verifysourcecode`` submission.
"""
from __future__ import annotations

import logging
import time
from dataclasses import dataclass
from typing import Any, Optional

import requests

from daokit.config.network import EXPLORER_TIMEOUT
from daokit.errors import ValidationError, VerificationError
from daokit.helpers.hexutil import hex_to_bytes, strip0x, to_address

logger = logging.getLogger(__name__)

__all__ = ["ExplorerClient", "VerificationRequest", "VerificationStatus", "LICENSE_CODES"]

# Etherscan licenseType codes
LICENSE_CODES: dict[str, str] = {
    "none": "1",
    "unlicense": "2",
    "mit": "3",
    "gpl-2.0": "4",
    "gpl-3.0": "5",
    "lgpl-2.1": "6",
    "lgpl-3.0": "7",
    "bsd-2-clause": "8",
    "bsd-3-clause": "9",
    "mpl-2.0": "10",
    "osl-3.0": "11",
    "apache-2.0": "12",
    "agpl-3.0": "13",
    "bsl-1.1": "14",
}

CODE_FORMATS = ("solidity-single-file", "solidity-standard-json-input")


@dataclass(frozen=True)
class VerificationRequest:
    contract_address: str
    source_code: str
    contract_name: str
    compiler_version: str
    optimization_used: bool = True
    runs: int = 200
    license: str = "mit"
    constructor_arguments: str = ""
    code_format: str = "solidity-single-file"
    evm_version: Optional[str] = None

    def __post_init__(self):
        object.__setattr__(self, "contract_address", to_address(self.contract_address, "contract address"))
        if self.code_format not in CODE_FORMATS:
            raise ValidationError(f"Unsupported code format {self.code_format!r}")
        if self.license.lower() not in LICENSE_CODES:
            raise ValidationError(f"Unknown license {self.license!r} (known: {', '.join(LICENSE_CODES)})")
        # validated, then sent without 0x
        hex_to_bytes(self.constructor_arguments, "constructor arguments")
        if not self.compiler_version.startswith("v"):
            object.__setattr__(self, "compiler_version", "v" + self.compiler_version)

    def to_form(self, api_key: str) -> dict[str, str]:
        form = {
            "apikey": api_key,
            "module": "contract",
            "action": "verifysourcecode",
            "contractaddress": self.contract_address,
            "sourcecode": self.source_code,
            "codeformat": self.code_format,
            "contractname": self.contract_name,
            "compilerversion": self.compiler_version,
            "optimizationUsed": "1" if self.optimization_used else "0",
            "runs": str(self.runs),
            "licenseType": LICENSE_CODES[self.license.lower()],
            # (sic) the API spells it this way
            "constructorArguements": strip0x(self.constructor_arguments),
        }
        if self.evm_version:
            form["evmversion"] = self.evm_version
        return form


@dataclass(frozen=True)
class VerificationStatus:
    status: str
    message: str
    result: str

    @property
    def verified(self) -> bool:
        return self.status == "1" or "already verified" in self.result.lower()

    @property
    def pending(self) -> bool:
        return "pending" in self.result.lower()


class ExplorerClient:
    def __init__(self, api_url: str, api_key: str, timeout: int = EXPLORER_TIMEOUT):
        self.api_url = api_url
        self.api_key = api_key
        self.timeout = timeout

    # ---------- helpers ----------

    def _json(self, response: requests.Response) -> dict[str, Any]:
        response.raise_for_status()
        body = response.json()
        logger.debug("Explorer response: %s", body)
        return body

    def _get(self, params: dict[str, str]) -> dict[str, Any]:
        query = {"apikey": self.api_key, "module": "contract", **params}
        return self._json(requests.get(self.api_url, params=query, timeout=self.timeout))

    # ---------- core ----------

    def submit_verification(self, request: VerificationRequest) -> str:
        """
        Submit source code for verification.

        Returns:
            The GUID to poll with :meth:`check_status`

        Raises:
            VerificationError: the API answered with a status other than "1"
            requests.RequestException: transport failure
        """
        logger.info("Submitting %s at %s for verification", request.contract_name, request.contract_address)
        body = self._json(requests.post(self.api_url, data=request.to_form(self.api_key), timeout=self.timeout))
        if str(body.get("status")) != "1":
            raise VerificationError(body.get("message", "Verification submission rejected"), body.get("result"))
        return body["result"]

    def check_status(self, guid: str) -> VerificationStatus:
        body = self._get({"action": "checkverifystatus", "guid": guid})
        return VerificationStatus(
            status=str(body.get("status", "0")),
            message=str(body.get("message", "")),
            result=str(body.get("result", "")),
        )

    def wait_for_verification(self, guid: str, attempts: int = 12, interval: float = 5.0) -> VerificationStatus:
        """Poll until the status leaves "Pending" or ``attempts`` run out."""
        status = self.check_status(guid)
        for _ in range(attempts - 1):
            if not status.pending:
                break
            logger.info("Status: %s", status.result)
            time.sleep(interval)
            status = self.check_status(guid)
        return status

    def get_source_code(self, address: str) -> dict[str, Any]:
        body = self._get({"action": "getsourcecode", "address": to_address(address)})
        if str(body.get("status")) != "1":
            raise VerificationError(body.get("message", "getsourcecode failed"), body.get("result"))
        result = body.get("result") or [{}]
        return result[0] if isinstance(result, list) else result

    def is_verified(self, address: str) -> bool:
        return bool(self.get_source_code(address).get("SourceCode"))
