"""
Signature starters: the first half of the start/finish handshake.

A starter collects the signer metadata and the document, posts them to
the API and receives either:

- a **token** (:meth:`SignatureStarter.start_with_webpki`) which the
  browser-side Web PKI component uses to sign, or
- **client-side instructions** (:meth:`SignatureStarter.start`): the token
  plus the data/hash the caller must sign with the signer's private key
  before handing the signature to a finisher.

Required fields are checked locally before any network call.
"""

from __future__ import annotations

__all__ = [
    "CadesSignatureStarter",
    "ClientSideSignatureInstructions",
    "FullXmlSignatureStarter",
    "PadesSignatureStarter",
    "SignatureStarter",
    "XmlElementSignatureStarter",
    "XmlSignatureStarter",
]

import base64
import binascii
import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass
from pathlib import Path
from typing import TYPE_CHECKING, Any
from xml.etree.ElementTree import ParseError as _XMLParseError

import defusedxml.ElementTree as ET
from defusedxml import DefusedXmlException

from ..constants import PDF_MAGIC
from ..errors import ParameterError, RestPkiError, StateError
from .cert_info import load_certificate_der
from .digest import DigestAlgorithm
from .models import CertificateInfo
from .policies import XmlInsertionOption

if TYPE_CHECKING:
    from ..network.client import RestPkiClient
    from .marks import PadesMeasurementUnits, PadesVisualRepresentation, PdfMark
    from .policies import XmlIdResolutionTable

_logger = logging.getLogger(__name__)


def _b64(data: bytes) -> str:
    return base64.b64encode(data).decode("ascii")


def _b64decode_field(response: dict[str, Any], key: str) -> bytes:
    value = response.get(key)
    if not value:
        return b""
    try:
        return base64.b64decode(value)
    except binascii.Error as e:
        raise RestPkiError(f"Invalid Base64 in response field {key!r}: {e}") from e


def _to_model(value: Any) -> Any:
    """Serialize descriptor objects; plain JSON values pass through."""
    if hasattr(value, "to_model"):
        return value.to_model()
    return getattr(value, "value", value)


@dataclass(frozen=True)
class ClientSideSignatureInstructions:
    """What the caller must sign to complete a signature started with :meth:`start`.

    Attributes:
        token: Opaque token to hand to the matching finisher.
        to_sign_data: Bytes to sign (the signer hashes them with the digest algorithm).
        to_sign_hash: Pre-computed digest of ``to_sign_data``.
        digest_algorithm_oid: Dotted OID of the digest algorithm.
    """

    token: str
    to_sign_data: bytes
    to_sign_hash: bytes
    digest_algorithm_oid: str | None

    @property
    def digest_algorithm(self) -> DigestAlgorithm | None:
        if not self.digest_algorithm_oid:
            return None
        return DigestAlgorithm.from_oid(self.digest_algorithm_oid)

    @classmethod
    def from_response(cls, response: dict[str, Any]) -> ClientSideSignatureInstructions:
        return cls(
            token=_require_token(response),
            to_sign_data=_b64decode_field(response, "toSignData"),
            to_sign_hash=_b64decode_field(response, "toSignHash"),
            digest_algorithm_oid=response.get("digestAlgorithmOid"),
        )


def _require_token(response: Any) -> str:
    token = response.get("token") if isinstance(response, dict) else None
    if not isinstance(token, str) or not token:
        raise RestPkiError("Server response did not include a signature token.")
    return token


class SignatureStarter(ABC):
    """Common state and flow of all signature starters."""

    _start_path: str
    _kind: str

    def __init__(self, client: RestPkiClient) -> None:
        self._client = client
        self.signer_certificate_base64: str | None = None
        self.signature_policy_id: str | None = None
        self.security_context_id: str | None = None
        self.callback_argument: str | None = None
        self._done = False
        self._certificate_info: CertificateInfo | None = None

    # ── Signer metadata ───────────────────────────────────────────────

    def set_signer_certificate(self, certificate: bytes) -> None:
        """Set the signer certificate from DER or PEM bytes."""
        self.signer_certificate_base64 = _b64(load_certificate_der(certificate))

    def set_signer_certificate_base64(self, certificate: str) -> None:
        self.signer_certificate_base64 = certificate

    @property
    def certificate_info(self) -> CertificateInfo | None:
        """Signer certificate as described by the server (None if not sent)."""
        if not self._done:
            raise StateError(
                "certificate_info can only be read after calling one of the start methods"
            )
        return self._certificate_info

    # ── Start ─────────────────────────────────────────────────────────

    def start_with_webpki(self) -> str:
        """Start the signature for the Web PKI flow and return the token."""
        response = self._start(require_certificate=False)
        return _require_token(response)

    def start(self) -> ClientSideSignatureInstructions:
        """Start the signature for client-side signing.

        Requires the signer certificate.
        """
        response = self._start(require_certificate=True)
        return ClientSideSignatureInstructions.from_response(response)

    def _start(self, *, require_certificate: bool) -> dict[str, Any]:
        self._validate_content()
        if require_certificate and not self.signer_certificate_base64:
            raise ParameterError("The signer certificate was not set")
        if not self.signature_policy_id:
            raise ParameterError("The signature policy was not set")

        request = {
            "certificate": self.signer_certificate_base64,
            "signaturePolicyId": self.signature_policy_id,
            "securityContextId": self.security_context_id,
            "callbackArgument": self.callback_argument,
        }
        request.update(self._content_request())

        _logger.info("Starting %s signature (client-side=%s)", self._kind, require_certificate)
        response = self._client.post(self._start_path, request)
        if not isinstance(response, dict):
            raise RestPkiError(f"Unexpected response to {self._kind} signature start.")

        self._certificate_info = CertificateInfo.from_optional(response.get("certificate"))
        self._done = True
        return response

    @abstractmethod
    def _validate_content(self) -> None:
        """Raise ParameterError if the document to sign is missing or invalid."""

    @abstractmethod
    def _content_request(self) -> dict[str, Any]:
        """Request fields specific to the signature type."""


class PadesSignatureStarter(SignatureStarter):
    """Starts a PAdES (PDF) signature."""

    _start_path = "Api/PadesSignatures"
    _kind = "PAdES"

    def __init__(self, client: RestPkiClient) -> None:
        super().__init__(client)
        self.pdf_to_sign: bytes | None = None
        self.pdf_marks: list[PdfMark | dict[str, Any]] = []
        self.bypass_marks_if_signed = True
        self.measurement_units: PadesMeasurementUnits | str | None = None
        self.page_optimization: dict[str, Any] | None = None
        self.visual_representation: PadesVisualRepresentation | dict[str, Any] | None = None

    def set_pdf_to_sign_path(self, path: str | Path) -> None:
        self.pdf_to_sign = Path(path).read_bytes()

    def add_pdf_mark(self, mark: PdfMark | dict[str, Any]) -> None:
        self.pdf_marks.append(mark)

    def _validate_content(self) -> None:
        if not self.pdf_to_sign:
            raise ParameterError("The PDF to sign was not set")
        if not self.pdf_to_sign.startswith(PDF_MAGIC):
            raise ParameterError("The content to sign does not appear to be a PDF file")

    def _content_request(self) -> dict[str, Any]:
        if self.pdf_to_sign is None:
            raise ParameterError("The PDF to sign was not set")
        visual = self.visual_representation
        return {
            "pdfToSign": _b64(self.pdf_to_sign),
            "pdfMarks": [_to_model(m) for m in self.pdf_marks],
            "bypassMarksIfSigned": self.bypass_marks_if_signed,
            "measurementUnits": _to_model(self.measurement_units),
            "pageOptimization": self.page_optimization,
            "visualRepresentation": _to_model(visual) if visual is not None else None,
        }


class CadesSignatureStarter(SignatureStarter):
    """Starts a CAdES (CMS) signature, or a co-signature of an existing CMS."""

    _start_path = "Api/CadesSignatures"
    _kind = "CAdES"

    def __init__(self, client: RestPkiClient) -> None:
        super().__init__(client)
        self.content_to_sign: bytes | None = None
        self.cms_to_cosign: bytes | None = None
        self.encapsulate_content: bool | None = None

    def set_file_to_sign(self, path: str | Path) -> None:
        self.content_to_sign = Path(path).read_bytes()

    def set_cms_file_to_cosign(self, path: str | Path) -> None:
        self.cms_to_cosign = Path(path).read_bytes()

    def _validate_content(self) -> None:
        if not self.content_to_sign and not self.cms_to_cosign:
            raise ParameterError(
                "The content to sign was not set and no CMS to be co-signed was given"
            )

    def _content_request(self) -> dict[str, Any]:
        request: dict[str, Any] = {"encapsulateContent": self.encapsulate_content}
        if self.content_to_sign:
            request["contentToSign"] = _b64(self.content_to_sign)
        if self.cms_to_cosign:
            request["cmsToCoSign"] = _b64(self.cms_to_cosign)
        return request


class XmlSignatureStarter(SignatureStarter):
    """Shared options of the XML signature starters."""

    _kind = "XML"

    def __init__(self, client: RestPkiClient) -> None:
        super().__init__(client)
        self._xml_to_sign: bytes | None = None
        self.signature_element_id: str | None = None
        self._location_xpath: str | None = None
        self._location_insertion_option: XmlInsertionOption | None = None
        self._location_namespaces: dict[str, str] | None = None

    @property
    def xml_to_sign(self) -> bytes | None:
        return self._xml_to_sign

    @xml_to_sign.setter
    def xml_to_sign(self, content: bytes) -> None:
        try:
            ET.fromstring(content)
        except (_XMLParseError, DefusedXmlException) as e:
            raise ParameterError(f"The XML to sign is not well-formed: {e}") from e
        self._xml_to_sign = content

    def set_xml_to_sign_path(self, path: str | Path) -> None:
        self.xml_to_sign = Path(path).read_bytes()

    def set_signature_element_location(
        self,
        xpath: str,
        insertion_option: XmlInsertionOption | str,
        namespaces: dict[str, str] | None = None,
    ) -> None:
        """Place the signature element relative to the node matched by *xpath*.

        Args:
            xpath: XPath of the reference node.
            insertion_option: Where to insert relative to that node.
            namespaces: Prefix to namespace URI map used by *xpath*.
        """
        self._location_xpath = xpath
        self._location_insertion_option = XmlInsertionOption(insertion_option)
        self._location_namespaces = namespaces

    def _validate_content(self) -> None:
        if not self._xml_to_sign:
            raise ParameterError("The XML was not set")

    def _content_request(self) -> dict[str, Any]:
        request: dict[str, Any] = {"signatureElementId": self.signature_element_id}
        if self._xml_to_sign is not None:
            request["xml"] = _b64(self._xml_to_sign)
        if self._location_xpath and self._location_insertion_option:
            location: dict[str, Any] = {
                "xPath": self._location_xpath,
                "insertionOption": self._location_insertion_option.value,
            }
            if self._location_namespaces:
                location["namespaces"] = [
                    {"prefix": prefix, "uri": uri}
                    for prefix, uri in self._location_namespaces.items()
                ]
            request["signatureElementLocation"] = location
        return request


class FullXmlSignatureStarter(XmlSignatureStarter):
    """Signs the whole XML document (enveloped signature)."""

    _start_path = "Api/XmlSignatures/FullXmlSignature"


class XmlElementSignatureStarter(XmlSignatureStarter):
    """Signs a single element of the XML document, identified by its Id."""

    _start_path = "Api/XmlSignatures/XmlElementSignature"

    def __init__(self, client: RestPkiClient) -> None:
        super().__init__(client)
        self.to_sign_element_id: str | None = None
        self.id_resolution_table: XmlIdResolutionTable | None = None

    def _validate_content(self) -> None:
        super()._validate_content()
        if not self.to_sign_element_id:
            raise ParameterError("The XML element Id to sign was not set")

    def _content_request(self) -> dict[str, Any]:
        request = super()._content_request()
        request["elementToSignId"] = self.to_sign_element_id
        if self.id_resolution_table is not None:
            request["idResolutionTable"] = self.id_resolution_table.to_model()
        return request
