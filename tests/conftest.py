"""Shared test fixtures for the restpki test suite."""

from __future__ import annotations

import datetime
from unittest.mock import Mock, patch

import pytest
from asn1crypto import cms as asn1_cms
from asn1crypto import keys as asn1_keys
from asn1crypto import x509 as asn1_x509

ENDPOINT = "https://restpki.example.com/"

# Minimal PDF header; the server does the real parsing
FAKE_PDF = b"%PDF-1.7\n1 0 obj\n<< /Type /Catalog >>\nendobj\ntrailer\n<< >>\n%%EOF\n"


def make_certificate(
    common_name: str = "Alice Example",
    email: str | None = "alice@example.com",
    organization: str | None = "Example Org",
    not_after: datetime.datetime | None = None,
    serial_number: int = 4242,
) -> asn1_x509.Certificate:
    """Build an (unsigned) X.509 certificate with asn1crypto."""
    subject: dict[str, str] = {"common_name": common_name}
    if organization:
        subject["organization_name"] = organization
    if email:
        subject["email_address"] = email
    not_before = datetime.datetime(2020, 1, 1, tzinfo=datetime.timezone.utc)
    not_after = not_after or datetime.datetime(2040, 1, 1, tzinfo=datetime.timezone.utc)
    tbs = asn1_x509.TbsCertificate(
        {
            "version": "v3",
            "serial_number": serial_number,
            "signature": {"algorithm": "sha256_rsa"},
            "issuer": asn1_x509.Name.build({"common_name": "Test Root CA"}),
            "validity": {
                "not_before": asn1_x509.Time(name="utc_time", value=not_before),
                "not_after": asn1_x509.Time(name="utc_time", value=not_after),
            },
            "subject": asn1_x509.Name.build(subject),
            "subject_public_key_info": {
                "algorithm": {"algorithm": "rsa"},
                "public_key": asn1_keys.RSAPublicKey(
                    {"modulus": (1 << 2047) + 12345, "public_exponent": 65537}
                ),
            },
        }
    )
    return asn1_x509.Certificate(
        {
            "tbs_certificate": tbs,
            "signature_algorithm": {"algorithm": "sha256_rsa"},
            "signature_value": b"\x00" * 256,
        }
    )


def make_cms(
    *certs: asn1_x509.Certificate, signer: asn1_x509.Certificate | None = None
) -> bytes:
    """Wrap certificates in a SignedData ContentInfo.

    With ``signer``, one SignerInfo referencing it by issuer and serial
    number is added (the signature value is a placeholder).
    """
    signer_infos = []
    if signer is not None:
        sid = asn1_cms.SignerIdentifier(
            name="issuer_and_serial_number",
            value=asn1_cms.IssuerAndSerialNumber(
                {"issuer": signer.issuer, "serial_number": signer.serial_number}
            ),
        )
        signer_infos.append(
            asn1_cms.SignerInfo(
                {
                    "version": "v1",
                    "sid": sid,
                    "digest_algorithm": {"algorithm": "sha256"},
                    "signature_algorithm": {"algorithm": "rsassa_pkcs1v15"},
                    "signature": b"\x00" * 256,
                }
            )
        )
    signed_data = asn1_cms.SignedData(
        {
            "version": "v1",
            "digest_algorithms": [],
            "encap_content_info": {"content_type": "data"},
            "certificates": list(certs),
            "signer_infos": signer_infos,
        }
    )
    return asn1_cms.ContentInfo({"content_type": "signed_data", "content": signed_data}).dump()


@pytest.fixture
def cert_der() -> bytes:
    return make_certificate().dump()


@pytest.fixture(autouse=True)
def _clean_env(monkeypatch):
    """Keep RESTPKI_* variables from the developer's shell out of the tests."""
    for name in ("RESTPKI_URL", "RESTPKI_ACCESS_TOKEN", "RESTPKI_TIMEOUT"):
        monkeypatch.delenv(name, raising=False)


@pytest.fixture(autouse=True)
def _clear_session_token():
    from restpki.config.credentials import clear_session_token

    clear_session_token()
    yield
    clear_session_token()


@pytest.fixture
def config_dir(tmp_path):
    """Redirect config to a temp directory and disable the real keyring."""
    config_file = tmp_path / "config.json"
    with (
        patch("restpki.config._storage.CONFIG_DIR", tmp_path),
        patch("restpki.config._storage.CONFIG_FILE", config_file),
        patch("restpki.config.credentials._keyring_available", False),
    ):
        yield tmp_path, config_file


@pytest.fixture
def mock_client():
    """A RestPkiClient double with a fixed endpoint URL."""
    from restpki.network.client import RestPkiClient

    client = Mock(spec=RestPkiClient)
    client.endpoint_url = ENDPOINT
    return client
