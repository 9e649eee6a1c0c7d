"""
Signature finishers: the second half of the start/finish handshake.

A finisher consumes the token produced by a starter. When the signature
was computed client-side, the signature bytes are sent along
(``SignedBytes``); for the Web PKI flow the server already holds them and
the token alone finalizes the signature (``Finalize``).
"""

from __future__ import annotations

__all__ = [
    "CadesSignatureFinisher",
    "PadesSignatureFinisher",
    "SignatureFinisher",
    "XmlSignatureFinisher",
]

import base64
import binascii
import logging
from pathlib import Path
from typing import TYPE_CHECKING

from ..errors import ParameterError, RestPkiError, StateError
from .models import CertificateInfo

if TYPE_CHECKING:
    from ..network.client import RestPkiClient

_logger = logging.getLogger(__name__)


class SignatureFinisher:
    """Common flow of all signature finishers.

    Subclasses set ``_base_path`` (e.g. ``Api/PadesSignatures``) and
    ``_result_field`` (the response field holding the signed artifact).
    """

    _base_path: str
    _result_field: str

    def __init__(self, client: RestPkiClient, token: str | None = None) -> None:
        self._client = client
        self.token = token
        self._signature_base64: str | None = None
        self._done = False
        self._result: bytes = b""
        self._callback_argument: str | None = None
        self._certificate_info: CertificateInfo | None = None

    def set_signature(self, signature: bytes) -> None:
        """Set the signature computed client-side over the to-sign data."""
        self._signature_base64 = base64.b64encode(signature).decode("ascii")

    def set_signature_base64(self, signature: str) -> None:
        self._signature_base64 = signature

    def _require_done(self, what: str) -> None:
        if not self._done:
            raise StateError(f"{what} can only be read after calling finish()")

    @property
    def callback_argument(self) -> str | None:
        self._require_done("callback_argument")
        return self._callback_argument

    @property
    def certificate_info(self) -> CertificateInfo | None:
        self._require_done("certificate_info")
        return self._certificate_info

    def finish(self) -> bytes:
        """Finalize the signature and return the signed artifact.

        Raises:
            ParameterError: If the token was not set.
            StateError: If this finisher already finished.
            RestError: On API failures (including validation failures).
        """
        if not self.token:
            raise ParameterError("The token was not set")
        if self._done:
            raise StateError("This signature was already finished")

        if self._signature_base64:
            path = f"{self._base_path}/{self.token}/SignedBytes"
            response = self._client.post(path, {"signature": self._signature_base64})
        else:
            path = f"{self._base_path}/{self.token}/Finalize"
            response = self._client.post(path)

        if not isinstance(response, dict):
            raise RestPkiError(f"Unexpected response to {path}.")

        encoded = response.get(self._result_field)
        if not encoded:
            raise RestPkiError(f"Server response did not include {self._result_field!r}.")
        try:
            self._result = base64.b64decode(encoded)
        except binascii.Error as e:
            raise RestPkiError(f"Invalid Base64 in {self._result_field!r}: {e}") from e

        self._callback_argument = response.get("callbackArgument")
        self._certificate_info = CertificateInfo.from_optional(response.get("certificate"))
        self._done = True
        _logger.info("Finished signature: %s (%d bytes)", self._result_field, len(self._result))
        return self._result

    def _write_result(self, path: str | Path) -> None:
        self._require_done("The signed content")
        Path(path).write_bytes(self._result)


class PadesSignatureFinisher(SignatureFinisher):
    _base_path = "Api/PadesSignatures"
    _result_field = "signedPdf"

    @property
    def signed_pdf(self) -> bytes:
        self._require_done("signed_pdf")
        return self._result

    def write_signed_pdf_to_path(self, path: str | Path) -> None:
        self._write_result(path)


class CadesSignatureFinisher(SignatureFinisher):
    _base_path = "Api/CadesSignatures"
    _result_field = "cms"

    @property
    def cms(self) -> bytes:
        self._require_done("cms")
        return self._result

    def write_cms_to_path(self, path: str | Path) -> None:
        self._write_result(path)


class XmlSignatureFinisher(SignatureFinisher):
    _base_path = "Api/XmlSignatures"
    _result_field = "signedXml"

    @property
    def signed_xml(self) -> bytes:
        self._require_done("signed_xml")
        return self._result

    def write_signed_xml_to_path(self, path: str | Path) -> None:
        self._write_result(path)
