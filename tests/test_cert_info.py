"""Tests for restpki.core.cert_info -- local certificate parsing with asn1crypto."""

from __future__ import annotations

import datetime
import logging

import pytest
from asn1crypto import pem

from restpki.core.cert_info import (
    extract_cert_info_from_cms,
    extract_cert_info_from_x509,
    list_cms_certificates,
    load_certificate_der,
)
from restpki.errors import CertificateError

from .conftest import make_certificate, make_cms

# ── load_certificate_der ──────────────────────────────────────────


def test_load_der(cert_der):
    assert load_certificate_der(cert_der) == cert_der


def test_load_pem(cert_der):
    assert load_certificate_der(pem.armor("CERTIFICATE", cert_der)) == cert_der


def test_load_pem_wrong_block(cert_der):
    with pytest.raises(CertificateError, match="Expected a PEM CERTIFICATE block"):
        load_certificate_der(pem.armor("PRIVATE KEY", cert_der))


@pytest.mark.parametrize("data", [b"", b"\x00\x01garbage"])
def test_load_invalid(data):
    with pytest.raises(CertificateError):
        load_certificate_der(data)


# ── Subject extraction ────────────────────────────────────────────


def test_extract_from_x509(cert_der):
    info = extract_cert_info_from_x509(cert_der)
    assert info["name"] == "Alice Example"
    assert info["email"] == "alice@example.com"
    assert info["organization"] == "Example Org"
    assert "Alice Example" in (info["dn"] or "")


def test_extract_without_optional_fields():
    cert = make_certificate("Bob", email=None, organization=None)
    info = extract_cert_info_from_x509(cert.dump())
    assert info["name"] == "Bob"
    assert info["email"] is None
    assert info["organization"] is None


def test_expired_certificate_warns(caplog):
    cert = make_certificate(not_after=datetime.datetime(2021, 1, 1, tzinfo=datetime.timezone.utc))
    with caplog.at_level(logging.WARNING, logger="restpki.core.cert_info"):
        extract_cert_info_from_x509(cert.dump())
    assert "expired" in caplog.text


def test_extract_from_cms_picks_signer_not_first_certificate():
    carol = make_certificate("Carol", serial_number=1)
    root = make_certificate("Root", serial_number=2)
    # Either order of the chain yields the certificate the SignerInfo names
    for chain in ((carol, root), (root, carol)):
        assert extract_cert_info_from_cms(make_cms(*chain, signer=carol))["name"] == "Carol"
    assert extract_cert_info_from_cms(make_cms(carol, root, signer=root))["name"] == "Root"


def test_extract_from_cms_without_signer_info():
    with pytest.raises(CertificateError, match="No signer certificate"):
        extract_cert_info_from_cms(make_cms(make_certificate("Carol")))


def test_extract_from_cms_signer_not_embedded():
    carol = make_certificate("Carol", serial_number=1)
    other = make_certificate("Other", serial_number=99)
    with pytest.raises(CertificateError, match="No signer certificate"):
        extract_cert_info_from_cms(make_cms(carol, signer=other))


def test_extract_from_cms_without_certificates():
    with pytest.raises(CertificateError, match="No signer certificate"):
        extract_cert_info_from_cms(make_cms())


def test_extract_from_garbage_cms():
    with pytest.raises(CertificateError, match="Failed to parse CMS"):
        extract_cert_info_from_cms(b"\x30\x03\x02\x01")


# ── list_cms_certificates ─────────────────────────────────────────


def test_list_cms_certificates():
    cms = make_cms(
        make_certificate("Carol", serial_number=1), make_certificate("Dan", serial_number=2)
    )
    described = sorted(list_cms_certificates(cms), key=lambda c: c["serial"])
    assert len(described) == 2
    carol, dan = described
    assert "Carol" in carol["subject"]
    assert "Dan" in dan["subject"]
    assert "Test Root CA" in carol["issuer"]
    assert carol["serial"] == "1"
    assert carol["not_before"].startswith("2020-01-01")
    assert carol["not_after"].startswith("2040-01-01")


def test_list_cms_without_certificates():
    assert list_cms_certificates(make_cms()) == []
