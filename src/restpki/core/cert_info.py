# pyright: reportUnknownMemberType=false, reportUnknownVariableType=false, reportUnknownArgumentType=false
"""
Local certificate handling with asn1crypto.

Used to normalize signer certificates before they are sent to the server
(PEM or DER in, DER out) and to describe certificates found in CMS files
without a round trip to the server.
"""

from __future__ import annotations

__all__ = [
    "extract_cert_info_from_cms",
    "extract_cert_info_from_x509",
    "list_cms_certificates",
    "load_certificate_der",
]

import datetime
import logging

from asn1crypto import cms as asn1_cms
from asn1crypto import pem as asn1_pem
from asn1crypto import x509 as asn1_x509

from ..errors import CertificateError

_logger = logging.getLogger(__name__)

# OIDs for common subject fields
_OID_CN = "2.5.4.3"
_OID_EMAIL = "1.2.840.113549.1.9.1"
_OID_ORG = "2.5.4.10"


def _extract_info_from_cert_object(cert: asn1_x509.Certificate) -> dict[str, str | None]:
    """Extract CN, email, org, dn from an asn1crypto certificate object.

    Also logs warnings for expired or not-yet-valid certificates.
    """
    subject = cert.subject

    try:
        not_before = cert.not_valid_before
        not_after = cert.not_valid_after
        now = datetime.datetime.now(datetime.timezone.utc)
        if not_before and now < not_before:
            _logger.warning("Certificate is not yet valid (notBefore: %s)", not_before)
        elif not_after and now > not_after:
            _logger.warning("Certificate has expired (notAfter: %s)", not_after)
    except (KeyError, TypeError, ValueError) as e:
        _logger.debug("Cannot check certificate validity dates: %s", e)

    fields: dict[str, str | None] = {"name": None, "email": None, "organization": None}
    oid_map = {_OID_CN: "name", _OID_EMAIL: "email", _OID_ORG: "organization"}

    for rdn in subject.chosen:
        for attr in rdn:
            oid = attr["type"].dotted
            if oid in oid_map:
                fields[oid_map[oid]] = attr["value"].native

    fields["dn"] = subject.human_friendly
    return fields


def load_certificate_der(data: bytes) -> bytes:
    """
    Normalize a certificate to DER.

    Accepts DER or PEM (``-----BEGIN CERTIFICATE-----``) input and checks
    that it parses as an X.509 certificate.

    Raises:
        CertificateError: If the bytes are not a certificate.
    """
    if not data:
        raise CertificateError("Empty certificate.")
    der = data
    if asn1_pem.detect(data):
        try:
            type_name, _, der = asn1_pem.unarmor(data)
        except ValueError as e:
            raise CertificateError(f"Invalid PEM certificate: {e}") from e
        if type_name != "CERTIFICATE":
            raise CertificateError(f"Expected a PEM CERTIFICATE block, got {type_name}")
    try:
        cert = asn1_x509.Certificate.load(der)
        # Force parsing; load() is lazy
        _ = cert.subject
    except (ValueError, TypeError, OSError) as e:
        raise CertificateError(f"Failed to parse X.509 certificate: {e}") from e
    return der


def extract_cert_info_from_x509(cert_der: bytes) -> dict[str, str | None]:
    """
    Extract subject info from a DER- or PEM-encoded X.509 certificate.

    Returns:
        dict with keys: name (CN), email, organization, dn (full subject).

    Raises:
        CertificateError if parsing fails.
    """
    cert = asn1_x509.Certificate.load(load_certificate_der(cert_der))
    return _extract_info_from_cert_object(cert)


def _load_signed_data(cms_der: bytes) -> asn1_cms.SignedData:
    try:
        signed_data = asn1_cms.ContentInfo.load(cms_der)["content"]
        # Force parsing; load() is lazy
        _ = signed_data["certificates"]
        _ = signed_data["signer_infos"]
    except (ValueError, TypeError, KeyError, OSError) as e:
        raise CertificateError(f"Failed to parse CMS/PKCS#7 blob: {e}") from e
    return signed_data


def _cms_certificates(signed_data: asn1_cms.SignedData) -> list[asn1_x509.Certificate]:
    certs = signed_data["certificates"]
    if not certs:
        return []
    return [c.chosen for c in certs if c.name == "certificate"]


def _find_signer_certificate(signed_data: asn1_cms.SignedData) -> asn1_x509.Certificate | None:
    """Return the certificate referenced by the first SignerInfo's sid.

    The certificates field is a SET OF and comes back DER-sorted, so its
    order says nothing about which certificate signed.
    """
    signer_infos = signed_data["signer_infos"]
    if not signer_infos:
        return None
    sid = signer_infos[0]["sid"]
    for cert in _cms_certificates(signed_data):
        if sid.name == "issuer_and_serial_number":
            if (
                cert.issuer == sid.chosen["issuer"]
                and cert.serial_number == sid.chosen["serial_number"].native
            ):
                return cert
        elif cert.key_identifier == sid.chosen.native:
            return cert
    return None


def extract_cert_info_from_cms(cms_der: bytes) -> dict[str, str | None]:
    """
    Extract the signer certificate's subject info from a CMS/PKCS#7 DER blob.

    The signer is the certificate matching the first SignerInfo's
    issuer/serial number or subject key identifier.

    Returns:
        dict with keys: name (CN), email, organization, dn (full subject).

    Raises:
        CertificateError if parsing fails or no signer certificate is embedded.
    """
    cert = _find_signer_certificate(_load_signed_data(cms_der))
    if cert is None:
        raise CertificateError("No signer certificate found in CMS blob.")
    return _extract_info_from_cert_object(cert)


def list_cms_certificates(cms_der: bytes) -> list[dict[str, str]]:
    """
    Describe every certificate embedded in a CMS/PKCS#7 blob.

    Returns:
        One dict per certificate with subject, issuer, serial, not_before
        and not_after as display strings.

    Raises:
        CertificateError if the blob cannot be parsed.
    """
    described = []
    for cert in _cms_certificates(_load_signed_data(cms_der)):
        validity = cert["tbs_certificate"]["validity"]
        described.append(
            {
                "subject": cert.subject.human_friendly,
                "issuer": cert.issuer.human_friendly,
                "serial": str(cert.serial_number),
                "not_before": str(validity["not_before"].native),
                "not_after": str(validity["not_after"].native),
            }
        )
    return described
