"""
Signature explorers: server-side inspection and validation of signed files.

For detached CAdES signatures the signed data never leaves the machine:
the explorer asks the server which digests it needs (``RequiredHashes``),
computes them locally and sends only the digests.
"""

from __future__ import annotations

__all__ = ["CadesSignatureExplorer", "PadesSignatureExplorer", "SignatureExplorer"]

import base64
import logging
from pathlib import Path
from typing import TYPE_CHECKING, Any

from ..constants import CMS_SIGNATURE_MIME_TYPE, PDF_MIME_TYPE
from ..errors import ParameterError, RestPkiError
from .digest import DigestAlgorithm
from .models import SignatureInfo

if TYPE_CHECKING:
    from ..network.client import RestPkiClient

_logger = logging.getLogger(__name__)


def _b64(data: bytes) -> str:
    return base64.b64encode(data).decode("ascii")


class SignatureExplorer:
    """Validation options shared by all explorers.

    Attributes:
        signature_file: Content of the signed file to open.
        validate: Whether the server should validate the signatures.
        default_signature_policy_id: Policy used for signatures without an
            acceptable explicit policy.
        acceptable_explicit_policies: Policy ids accepted when declared by
            the signature itself (see ``StandardSignaturePolicyCatalog``).
        security_context_id: Trust anchors used during validation.
    """

    _open_path: str
    _mime_type: str

    def __init__(self, client: RestPkiClient) -> None:
        self._client = client
        self.signature_file: bytes | None = None
        self.validate = True
        self.default_signature_policy_id: str | None = None
        self.acceptable_explicit_policies: list[str] | None = None
        self.security_context_id: str | None = None

    def set_signature_file_path(self, path: str | Path) -> None:
        self.signature_file = Path(path).read_bytes()

    def _build_request(self) -> dict[str, Any]:
        if not self.signature_file:
            raise ParameterError("The signature file to open was not set")
        return {
            "validate": self.validate,
            "defaultSignaturePolicyId": self.default_signature_policy_id,
            "securityContextId": self.security_context_id,
            "acceptableExplicitPolicies": self.acceptable_explicit_policies,
            "dataHashes": None,
            "file": {
                "content": _b64(self.signature_file),
                "mimeType": self._mime_type,
                "blobId": None,
            },
        }

    def _open(self, request: dict[str, Any]) -> SignatureInfo:
        response = self._client.post(self._open_path, request)
        if not isinstance(response, dict):
            raise RestPkiError(f"Unexpected response to {self._open_path}.")
        info = SignatureInfo.from_model(response)
        _logger.info("Opened signature file: %d signer(s)", len(info.signers))
        return info

    def open(self) -> SignatureInfo:
        """Submit the file and return its signers with validation results."""
        return self._open(self._build_request())


class PadesSignatureExplorer(SignatureExplorer):
    _open_path = "Api/PadesSignatures/Open"
    _mime_type = PDF_MIME_TYPE


class CadesSignatureExplorer(SignatureExplorer):
    """Opens CMS files; detached signatures need the signed data file."""

    _open_path = "Api/CadesSignatures/Open"
    _mime_type = CMS_SIGNATURE_MIME_TYPE

    def __init__(self, client: RestPkiClient) -> None:
        super().__init__(client)
        self.data_file: bytes | None = None

    def set_data_file_path(self, path: str | Path) -> None:
        self.data_file = Path(path).read_bytes()

    def open(self) -> SignatureInfo:
        request = self._build_request()
        if self.data_file is not None:
            algorithms = self._get_required_hashes()
            if algorithms:
                request["dataHashes"] = self._compute_data_hashes(self.data_file, algorithms)
        return self._open(request)

    def _get_required_hashes(self) -> list[DigestAlgorithm]:
        if self.signature_file is None:
            raise ParameterError("The signature file to open was not set")
        response = self._client.post(
            "Api/CadesSignatures/RequiredHashes",
            {"content": _b64(self.signature_file), "mimeType": self._mime_type},
        )
        if not response:
            return []
        if not isinstance(response, list):
            raise RestPkiError("Unexpected response to Api/CadesSignatures/RequiredHashes.")
        algorithms = [DigestAlgorithm.from_api_name(name) for name in response]
        _logger.debug("Server requires data hashes: %s", ", ".join(map(str, algorithms)))
        return algorithms

    @staticmethod
    def _compute_data_hashes(
        data: bytes, algorithms: list[DigestAlgorithm]
    ) -> list[dict[str, str | None]]:
        return [
            {"algorithm": alg.api_name, "value": _b64(alg.compute(data)), "hexValue": None}
            for alg in algorithms
        ]
