"""Tests for restpki.core.explorers and restpki.core.authentication."""

from __future__ import annotations

import base64
import hashlib

import pytest

from restpki.core.authentication import Authentication
from restpki.core.explorers import CadesSignatureExplorer, PadesSignatureExplorer
from restpki.core.policies import StandardSignaturePolicyCatalog
from restpki.errors import ParameterError, RestPkiError, StateError

from .conftest import FAKE_PDF

OPEN_RESPONSE = {
    "signers": [
        {
            "certificate": {"subjectName": {"commonName": "Alice"}},
            "validationResults": {"passedChecks": [{"type": "Ok", "message": "ok"}]},
        }
    ]
}


def _b64(data: bytes) -> str:
    return base64.b64encode(data).decode()


# ── PAdES explorer ──────────────────────────────────────────────────


def test_file_required(mock_client):
    with pytest.raises(ParameterError, match="signature file to open was not set"):
        PadesSignatureExplorer(mock_client).open()
    mock_client.post.assert_not_called()


def test_pades_open_request(mock_client):
    mock_client.post.return_value = OPEN_RESPONSE
    explorer = PadesSignatureExplorer(mock_client)
    explorer.signature_file = FAKE_PDF
    explorer.acceptable_explicit_policies = StandardSignaturePolicyCatalog.pki_brazil_pades()
    explorer.security_context_id = "ctx"

    info = explorer.open()

    mock_client.post.assert_called_once_with(
        "Api/PadesSignatures/Open",
        {
            "validate": True,
            "defaultSignaturePolicyId": None,
            "securityContextId": "ctx",
            "acceptableExplicitPolicies": StandardSignaturePolicyCatalog.pki_brazil_pades(),
            "dataHashes": None,
            "file": {"content": _b64(FAKE_PDF), "mimeType": "application/pdf", "blobId": None},
        },
    )
    assert len(info.signers) == 1
    assert info.signers[0].certificate is not None
    assert info.signers[0].certificate.common_name == "Alice"
    assert info.all_valid


def test_open_without_validation(mock_client, tmp_path):
    mock_client.post.return_value = {"signers": []}
    path = tmp_path / "doc.pdf"
    path.write_bytes(FAKE_PDF)
    explorer = PadesSignatureExplorer(mock_client)
    explorer.set_signature_file_path(path)
    explorer.validate = False
    explorer.open()
    _, request = mock_client.post.call_args.args
    assert request["validate"] is False


def test_open_unexpected_response(mock_client):
    mock_client.post.return_value = "nope"
    explorer = PadesSignatureExplorer(mock_client)
    explorer.signature_file = FAKE_PDF
    with pytest.raises(RestPkiError, match="Unexpected response"):
        explorer.open()


# ── CAdES explorer ──────────────────────────────────────────────────


def test_cades_attached_skips_required_hashes(mock_client):
    mock_client.post.return_value = OPEN_RESPONSE
    explorer = CadesSignatureExplorer(mock_client)
    explorer.signature_file = b"\x30\x80cms"
    explorer.open()

    mock_client.post.assert_called_once()
    path, request = mock_client.post.call_args.args
    assert path == "Api/CadesSignatures/Open"
    assert request["file"]["mimeType"] == "application/pkcs7-signature"
    assert request["dataHashes"] is None


def test_cades_detached_sends_data_hashes(mock_client):
    data = b"the signed data"
    cms = b"\x30\x80cms"
    mock_client.post.side_effect = [["SHA256", "SHA1"], OPEN_RESPONSE]
    explorer = CadesSignatureExplorer(mock_client)
    explorer.signature_file = cms
    explorer.data_file = data

    explorer.open()

    first, second = mock_client.post.call_args_list
    assert first.args == (
        "Api/CadesSignatures/RequiredHashes",
        {"content": _b64(cms), "mimeType": "application/pkcs7-signature"},
    )
    assert second.args[0] == "Api/CadesSignatures/Open"
    assert second.args[1]["dataHashes"] == [
        {"algorithm": "SHA256", "value": _b64(hashlib.sha256(data).digest()), "hexValue": None},
        {"algorithm": "SHA1", "value": _b64(hashlib.sha1(data).digest()), "hexValue": None},
    ]


def test_cades_detached_no_hashes_needed(mock_client):
    mock_client.post.side_effect = [[], OPEN_RESPONSE]
    explorer = CadesSignatureExplorer(mock_client)
    explorer.signature_file = b"cms"
    explorer.data_file = b"data"
    explorer.open()
    assert mock_client.post.call_args.args[1]["dataHashes"] is None


def test_cades_unknown_required_hash(mock_client):
    mock_client.post.return_value = ["GOST"]
    explorer = CadesSignatureExplorer(mock_client)
    explorer.signature_file = b"cms"
    explorer.data_file = b"data"
    with pytest.raises(RestPkiError, match="Unsupported digest algorithm"):
        explorer.open()


def test_cades_data_file_path(mock_client, tmp_path):
    path = tmp_path / "data.bin"
    path.write_bytes(b"xyz")
    explorer = CadesSignatureExplorer(mock_client)
    explorer.set_data_file_path(path)
    assert explorer.data_file == b"xyz"


# ── Authentication ──────────────────────────────────────────────────


def test_auth_start(mock_client):
    mock_client.post.return_value = {"token": "auth-tok"}
    assert Authentication(mock_client).start_with_webpki("ctx") == "auth-tok"
    mock_client.post.assert_called_once_with("Api/Authentications", {"securityContextId": "ctx"})


def test_auth_start_requires_context(mock_client):
    with pytest.raises(ParameterError, match="security context"):
        Authentication(mock_client).start_with_webpki("")


def test_auth_start_missing_token(mock_client):
    mock_client.post.return_value = {}
    with pytest.raises(RestPkiError, match="authentication token"):
        Authentication(mock_client).start_with_webpki("ctx")


def test_auth_complete(mock_client):
    mock_client.post.return_value = {
        "certificate": {"subjectName": {"commonName": "Alice"}},
        "validationResults": {"errors": [{"type": "Revoked", "message": "revoked"}]},
    }
    auth = Authentication(mock_client)
    results = auth.complete_with_webpki("auth-tok")

    mock_client.post.assert_called_once_with("Api/Authentications/auth-tok/Finalize")
    assert not results.is_valid
    assert auth.certificate is not None
    assert auth.certificate.common_name == "Alice"


def test_auth_complete_requires_token(mock_client):
    with pytest.raises(ParameterError, match="token"):
        Authentication(mock_client).complete_with_webpki("")


def test_auth_certificate_before_complete(mock_client):
    with pytest.raises(StateError):
        _ = Authentication(mock_client).certificate
