"""
Read-only snapshots of certificate and signer information returned by the API.

Models are built from the server's JSON with :meth:`from_model`.
Unknown keys are ignored; the raw JSON is kept in ``raw`` for callers
that need fields not modelled here.
"""

from __future__ import annotations

__all__ = [
    "CertificateInfo",
    "DigestValue",
    "NameInfo",
    "PkiBrazilFields",
    "SignatureInfo",
    "SignaturePolicyInfo",
    "SignerInfo",
    "parse_api_datetime",
]

import base64
import binascii
import datetime
import logging
from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any

from ..errors import RestPkiError
from .digest import DigestAlgorithm
from .validation import ValidationResults

_logger = logging.getLogger(__name__)


def parse_api_datetime(value: str | None) -> datetime.datetime | None:
    """Parse an ISO 8601 timestamp from the API.

    Naive timestamps are assumed to be UTC. Returns None for empty or
    unparseable values.
    """
    if not value:
        return None
    text = value.strip()
    if text.endswith("Z"):
        text = text[:-1] + "+00:00"
    # The API may send 7 fractional digits; fromisoformat accepts at most 6
    if "." in text:
        head, _, tail = text.partition(".")
        digits = ""
        rest = ""
        for i, ch in enumerate(tail):
            if not ch.isdigit():
                rest = tail[i:]
                break
            digits += ch
        text = f"{head}.{digits[:6]}{rest}" if digits else head + rest
    try:
        parsed = datetime.datetime.fromisoformat(text)
    except ValueError:
        _logger.debug("Cannot parse API timestamp %r", value)
        return None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=datetime.timezone.utc)
    return parsed


def _str_or_none(model: Mapping[str, Any], key: str) -> str | None:
    val = model.get(key)
    return val if isinstance(val, str) and val else None


@dataclass(frozen=True)
class NameInfo:
    """Distinguished name fields."""

    common_name: str | None = None
    organization: str | None = None
    organization_unit: str | None = None
    country: str | None = None
    state_name: str | None = None
    locality: str | None = None
    email_address: str | None = None

    @classmethod
    def from_model(cls, model: Mapping[str, Any] | None) -> NameInfo:
        if not model:
            return cls()
        return cls(
            common_name=_str_or_none(model, "commonName"),
            organization=_str_or_none(model, "organization"),
            organization_unit=_str_or_none(model, "organizationUnit"),
            country=_str_or_none(model, "country"),
            state_name=_str_or_none(model, "stateName"),
            locality=_str_or_none(model, "locality"),
            email_address=_str_or_none(model, "emailAddress"),
        )


@dataclass(frozen=True)
class PkiBrazilFields:
    """ICP-Brasil specific certificate fields."""

    certificate_type: str | None = None
    cpf: str | None = None
    cnpj: str | None = None
    responsavel: str | None = None
    company_name: str | None = None
    date_of_birth: str | None = None
    rg_numero: str | None = None
    rg_emissor: str | None = None
    rg_emissor_uf: str | None = None
    oab_numero: str | None = None
    oab_uf: str | None = None

    @classmethod
    def from_model(cls, model: Mapping[str, Any]) -> PkiBrazilFields:
        return cls(
            certificate_type=_str_or_none(model, "certificateType"),
            cpf=_str_or_none(model, "cpf"),
            cnpj=_str_or_none(model, "cnpj"),
            responsavel=_str_or_none(model, "responsavel"),
            company_name=_str_or_none(model, "companyName"),
            date_of_birth=_str_or_none(model, "dateOfBirth"),
            rg_numero=_str_or_none(model, "rgNumero"),
            rg_emissor=_str_or_none(model, "rgEmissor"),
            rg_emissor_uf=_str_or_none(model, "rgEmissorUF"),
            oab_numero=_str_or_none(model, "oabNumero"),
            oab_uf=_str_or_none(model, "oabUF"),
        )


@dataclass(frozen=True)
class CertificateInfo:
    """Certificate snapshot as described by the server."""

    subject_name: NameInfo = field(default_factory=NameInfo)
    issuer_name: NameInfo = field(default_factory=NameInfo)
    email_address: str | None = None
    serial_number: str | None = None
    validity_start: datetime.datetime | None = None
    validity_end: datetime.datetime | None = None
    pki_brazil: PkiBrazilFields | None = None
    issuer: CertificateInfo | None = None
    raw: Mapping[str, Any] = field(default_factory=dict, compare=False, repr=False)

    @classmethod
    def from_model(cls, model: Mapping[str, Any]) -> CertificateInfo:
        pki_brazil = model.get("pkiBrazil")
        issuer = model.get("issuer")
        return cls(
            subject_name=NameInfo.from_model(model.get("subjectName")),
            issuer_name=NameInfo.from_model(model.get("issuerName")),
            email_address=_str_or_none(model, "emailAddress"),
            serial_number=_str_or_none(model, "serialNumber"),
            validity_start=parse_api_datetime(model.get("validityStart")),
            validity_end=parse_api_datetime(model.get("validityEnd")),
            pki_brazil=PkiBrazilFields.from_model(pki_brazil) if pki_brazil else None,
            issuer=cls.from_model(issuer) if issuer else None,
            raw=dict(model),
        )

    @classmethod
    def from_optional(cls, model: Mapping[str, Any] | None) -> CertificateInfo | None:
        return cls.from_model(model) if model else None

    @property
    def common_name(self) -> str | None:
        return self.subject_name.common_name


@dataclass(frozen=True)
class DigestValue:
    """A digest algorithm and the digest bytes."""

    algorithm: DigestAlgorithm
    value: bytes

    @classmethod
    def from_model(cls, model: Mapping[str, Any]) -> DigestValue:
        algorithm = DigestAlgorithm.from_api_name(model.get("algorithm") or "")
        try:
            value = base64.b64decode(model.get("value") or "")
        except binascii.Error as e:
            raise RestPkiError(f"Invalid Base64 in message digest: {e}") from e
        return cls(algorithm=algorithm, value=value)

    @property
    def hex_value(self) -> str:
        return self.value.hex().upper()


@dataclass(frozen=True)
class SignaturePolicyInfo:
    """Identifier of the signature policy a signature claims to follow."""

    oid: str | None = None
    version: str | None = None
    name: str | None = None

    @classmethod
    def from_model(cls, model: Mapping[str, Any]) -> SignaturePolicyInfo:
        version = model.get("version")
        return cls(
            oid=_str_or_none(model, "oid"),
            version=str(version) if version is not None else None,
            name=_str_or_none(model, "name"),
        )


@dataclass(frozen=True)
class SignerInfo:
    """One signer found by an explorer."""

    certificate: CertificateInfo | None = None
    validation_results: ValidationResults | None = None
    message_digest: DigestValue | None = None
    signing_time: datetime.datetime | None = None
    signature_policy: SignaturePolicyInfo | None = None
    raw: Mapping[str, Any] = field(default_factory=dict, compare=False, repr=False)

    @classmethod
    def from_model(cls, model: Mapping[str, Any]) -> SignerInfo:
        vr = model.get("validationResults")
        md = model.get("messageDigest")
        policy = model.get("signaturePolicy")
        return cls(
            certificate=CertificateInfo.from_optional(model.get("certificate")),
            validation_results=ValidationResults.from_model(vr) if vr is not None else None,
            message_digest=DigestValue.from_model(md) if md else None,
            signing_time=parse_api_datetime(model.get("signingTime")),
            signature_policy=SignaturePolicyInfo.from_model(policy) if policy else None,
            raw=dict(model),
        )

    @property
    def is_valid(self) -> bool | None:
        """True/False when the signature was validated, None otherwise."""
        if self.validation_results is None:
            return None
        return self.validation_results.is_valid


@dataclass(frozen=True)
class SignatureInfo:
    """Result of opening a signed file."""

    signers: tuple[SignerInfo, ...] = ()
    encapsulated_content_type: str | None = None
    has_encapsulated_content: bool = False
    raw: Mapping[str, Any] = field(default_factory=dict, compare=False, repr=False)

    @classmethod
    def from_model(cls, model: Mapping[str, Any]) -> SignatureInfo:
        return cls(
            signers=tuple(SignerInfo.from_model(s) for s in model.get("signers") or ()),
            encapsulated_content_type=_str_or_none(model, "encapsulatedContentType"),
            has_encapsulated_content=bool(model.get("hasEncapsulatedContent")),
            raw=dict(model),
        )

    @property
    def all_valid(self) -> bool:
        """True when no validated signer has errors."""
        return all(s.is_valid is not False for s in self.signers)
