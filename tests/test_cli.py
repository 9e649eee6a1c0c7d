"""Tests for restpki.ui.cli -- argument parsing and command handlers."""

from __future__ import annotations

import base64
import json
import tempfile
from pathlib import Path
from unittest.mock import patch

import pytest

from restpki.config import (
    BUILTIN_PROFILES,
    get_active_profile,
    make_custom_profile,
    resolve_access_token,
    save_access_token,
    save_server_config,
)
from restpki.config._storage import save_config
from restpki.constants import DEFAULT_ENDPOINT_URL
from restpki.core.authentication import Authentication
from restpki.core.policies import StandardSecurityContexts, StandardSignaturePolicies
from restpki.core.validation import ValidationResults
from restpki.errors import ConfigError, RestUnreachableError, ValidationError
from restpki.ui.cli import build_parser, main

from .conftest import ENDPOINT, FAKE_PDF, make_certificate, make_cms


@pytest.fixture
def cli_client(config_dir, mock_client):
    """Patch client construction for every command module."""
    with patch("restpki.ui.cli.sign.get_client", return_value=mock_client):
        yield mock_client


@pytest.fixture
def pdf_file(tmp_path):
    path = tmp_path / "doc.pdf"
    path.write_bytes(FAKE_PDF)
    return path


def _exit_code(argv: list[str]) -> int | str | None:
    with pytest.raises(SystemExit) as exc_info:
        main(argv)
    return exc_info.value.code


# ── Parser ──────────────────────────────────────────────────────────


def test_version(config_dir, capsys):
    assert _exit_code(["--version"]) == 0
    assert capsys.readouterr().out.startswith("restpki ")


def test_no_command_prints_help(config_dir, capsys):
    assert _exit_code([]) == 1
    assert "usage: restpki" in capsys.readouterr().out


def test_finish_requires_output(config_dir):
    assert _exit_code(["pades", "finish", "tok"]) == 2


def test_parser_kind_defaults(config_dir):
    args = build_parser().parse_args(["cades", "start", "--cosign", "a.p7s", "--detached"])
    assert args.kind == "cades"
    assert args.action == "start"
    assert args.file is None
    assert args.detached is True


def test_missing_action(cli_client, capsys):
    assert _exit_code(["xml"]) == 1
    assert "restpki xml {start,finish}" in capsys.readouterr().err


# ── require_client ──────────────────────────────────────────────────


def test_unconfigured_declines_setup(config_dir, pdf_file, capsys):
    with (
        patch("restpki.ui.cli.sign.get_client", side_effect=ConfigError("No endpoint")),
        patch("builtins.input", return_value="n"),
    ):
        assert _exit_code(["pades", "start", str(pdf_file)]) == 1
    assert "No endpoint" in capsys.readouterr().err


def test_unconfigured_runs_setup(config_dir, mock_client, pdf_file):
    mock_client.post.return_value = {"token": "tok"}
    with (
        patch(
            "restpki.ui.cli.sign.get_client",
            side_effect=[ConfigError("No endpoint"), mock_client],
        ),
        patch("builtins.input", return_value="y"),
        patch("restpki.ui.cli.sign.cmd_setup") as setup,
    ):
        main(["pades", "start", str(pdf_file)])
    setup.assert_called_once()


# ── start ───────────────────────────────────────────────────────────


def test_pades_start_webpki(cli_client, pdf_file, capsys):
    cli_client.post.return_value = {"token": "tok-1"}
    main(["pades", "start", str(pdf_file), "--callback-argument", "cb"])

    assert json.loads(capsys.readouterr().out) == {"token": "tok-1"}
    path, request = cli_client.post.call_args.args
    assert path == "Api/PadesSignatures"
    assert request["signaturePolicyId"] == StandardSignaturePolicies.PADES_BASIC
    assert request["callbackArgument"] == "cb"
    assert request["securityContextId"] is None


def test_pades_start_uses_profile_security_context(cli_client, pdf_file, capsys):
    save_server_config(BUILTIN_PROFILES["pki.rest"])
    cli_client.endpoint_url = DEFAULT_ENDPOINT_URL
    cli_client.post.return_value = {"token": "tok"}
    main(["pades", "start", str(pdf_file)])
    _, request = cli_client.post.call_args.args
    assert request["securityContextId"] == StandardSecurityContexts.PKI_BRAZIL


def test_start_ignores_saved_context_for_other_endpoint(cli_client, pdf_file):
    save_server_config(BUILTIN_PROFILES["pki.rest"])
    cli_client.post.return_value = {"token": "tok"}
    main(["pades", "start", str(pdf_file)])
    _, request = cli_client.post.call_args.args
    assert request["securityContextId"] is None


def test_pades_start_visual(cli_client, pdf_file, capsys):
    from restpki.core.presets import PadesVisualPositioningPresets

    PadesVisualPositioningPresets.clear_cache()
    cli_client.get.return_value = {"pageNumber": -1}
    cli_client.post.return_value = {"token": "tok"}
    main(["pades", "start", str(pdf_file), "--visual"])
    PadesVisualPositioningPresets.clear_cache()

    cli_client.get.assert_called_once_with("Api/PadesVisualPositioningPresets/Footnote")
    _, request = cli_client.post.call_args.args
    assert request["visualRepresentation"]["position"] == {"pageNumber": -1}
    assert "{{signerName}}" in request["visualRepresentation"]["text"]["text"]


def test_pades_start_client_side(cli_client, pdf_file, tmp_path, cert_der, capsys):
    cert_path = tmp_path / "signer.cer"
    cert_path.write_bytes(cert_der)
    cli_client.post.return_value = {
        "token": "tok",
        "toSignHash": base64.b64encode(b"\x01\x02").decode(),
        "digestAlgorithmOid": "2.16.840.1.101.3.4.2.1",
    }
    main(["pades", "start", str(pdf_file), "--cert", str(cert_path), "--policy", "pol"])

    captured = capsys.readouterr()
    assert "Signer certificate: Alice Example" in captured.err
    assert json.loads(captured.out) == {
        "token": "tok",
        "toSignHash": "AQI=",
        "digestAlgorithm": "SHA256",
    }
    _, request = cli_client.post.call_args.args
    assert request["certificate"] == base64.b64encode(cert_der).decode()
    assert request["signaturePolicyId"] == "pol"


def test_start_invalid_certificate(cli_client, pdf_file, tmp_path, capsys):
    cert_path = tmp_path / "bad.cer"
    cert_path.write_bytes(b"junk")
    assert _exit_code(["pades", "start", str(pdf_file), "--cert", str(cert_path)]) == 1
    assert "Error:" in capsys.readouterr().err
    cli_client.post.assert_not_called()


def test_start_missing_file(cli_client, tmp_path, capsys):
    assert _exit_code(["pades", "start", str(tmp_path / "nope.pdf")]) == 1
    assert "PDF not found" in capsys.readouterr().err


def test_start_validation_failure(cli_client, pdf_file, capsys):
    results = ValidationResults.from_model(
        {"errors": [{"type": "CertificateExpired", "message": "Certificate expired"}]}
    )
    cli_client.post.side_effect = ValidationError("POST", ENDPOINT, results)
    assert _exit_code(["pades", "start", str(pdf_file)]) == 1
    err = capsys.readouterr().err
    assert "FAILED" in err
    assert "- Certificate expired" in err


def test_start_unreachable(cli_client, pdf_file, capsys):
    cli_client.post.side_effect = RestUnreachableError("POST", ENDPOINT, "refused")
    assert _exit_code(["pades", "start", str(pdf_file)]) == 1
    assert "UNREACHABLE" in capsys.readouterr().err


def test_cades_start_needs_input(cli_client, capsys):
    assert _exit_code(["cades", "start"]) == 1
    assert "--cosign" in capsys.readouterr().err


def test_cades_start_detached(cli_client, tmp_path, capsys):
    data = tmp_path / "data.txt"
    data.write_bytes(b"hello")
    cli_client.post.return_value = {"token": "tok"}
    main(["cades", "start", str(data), "--detached"])
    path, request = cli_client.post.call_args.args
    assert path == "Api/CadesSignatures"
    assert request["encapsulateContent"] is False
    assert request["signaturePolicyId"] == StandardSignaturePolicies.CADES_BES


def test_xml_element_start(cli_client, tmp_path, capsys):
    xml = tmp_path / "doc.xml"
    xml.write_bytes(b'<root><item Id="a1"/></root>')
    cli_client.post.return_value = {"token": "tok"}
    main(["xml", "start", str(xml), "--element-id", "a1"])
    path, request = cli_client.post.call_args.args
    assert path == "Api/XmlSignatures/XmlElementSignature"
    assert request["elementToSignId"] == "a1"


def test_xml_start_malformed(cli_client, tmp_path, capsys):
    xml = tmp_path / "doc.xml"
    xml.write_bytes(b"<root>")
    assert _exit_code(["xml", "start", str(xml)]) == 1
    assert "not well-formed" in capsys.readouterr().err


# ── finish ──────────────────────────────────────────────────────────


def test_pades_finish(cli_client, tmp_path, capsys):
    out = tmp_path / "signed.pdf"
    cli_client.post.return_value = {
        "signedPdf": base64.b64encode(FAKE_PDF).decode(),
        "certificate": {"subjectName": {"commonName": "Alice"}},
    }
    main(["pades", "finish", "tok", "-o", str(out)])

    cli_client.post.assert_called_once_with("Api/PadesSignatures/tok/Finalize")
    assert out.read_bytes() == FAKE_PDF
    stdout = capsys.readouterr().out
    assert "Finishing PADES signature... OK -> signed.pdf" in stdout
    assert "Signer: Alice" in stdout


def test_cades_finish_with_signature(cli_client, tmp_path):
    sig = tmp_path / "sig.bin"
    sig.write_bytes(b"\x01\x02")
    out = tmp_path / "out.p7s"
    cli_client.post.return_value = {"cms": base64.b64encode(b"cms").decode()}
    main(["cades", "finish", "tok", "-o", str(out), "-s", str(sig)])
    cli_client.post.assert_called_once_with(
        "Api/CadesSignatures/tok/SignedBytes", {"signature": "AQI="}
    )
    assert out.read_bytes() == b"cms"


def test_finish_failure(cli_client, tmp_path, capsys):
    cli_client.post.side_effect = RestUnreachableError("POST", ENDPOINT)
    out = tmp_path / "signed.xml"
    assert _exit_code(["xml", "finish", "tok", "-o", str(out)]) == 1
    assert "UNREACHABLE" in capsys.readouterr().err
    assert not out.exists()


def test_finish_missing_output_directory_keeps_token(cli_client, tmp_path, capsys):
    out = tmp_path / "missing" / "signed.pdf"
    assert _exit_code(["pades", "finish", "tok", "-o", str(out)]) == 1
    assert "Output directory does not exist" in capsys.readouterr().err
    cli_client.post.assert_not_called()


def test_finish_write_failure_reports_recovery_copy(cli_client, tmp_path, capsys, monkeypatch):
    monkeypatch.setattr(tempfile, "tempdir", str(tmp_path))
    cli_client.post.return_value = {"signedPdf": base64.b64encode(FAKE_PDF).decode()}
    out = tmp_path / "signed.pdf"
    with patch("restpki.ui.workflows.atomic_write", side_effect=OSError(28, "No space left")):
        assert _exit_code(["pades", "finish", "tok", "-o", str(out)]) == 1
    err = capsys.readouterr().err
    assert "No space left" in err
    assert "Signed file saved to:" in err
    saved = err.split("Signed file saved to: ")[1].strip()
    assert Path(saved).read_bytes() == FAKE_PDF


# ── open ────────────────────────────────────────────────────────────


def _open_response(*errors: str) -> dict:
    results = {"errors": [{"type": "E", "message": m} for m in errors]}
    if not errors:
        results = {"passedChecks": [{"type": "Ok", "message": "Signature intact"}]}
    return {
        "signers": [
            {
                "certificate": {"subjectName": {"commonName": "Alice"}},
                "validationResults": results,
            }
        ]
    }


def test_open_pdf_valid(cli_client, pdf_file, capsys):
    cli_client.post.return_value = _open_response()
    main(["open", str(pdf_file)])

    path, request = cli_client.post.call_args.args
    assert path == "Api/PadesSignatures/Open"
    assert request["defaultSignaturePolicyId"] == StandardSignaturePolicies.PADES_BASIC
    out = capsys.readouterr().out
    assert "Signer 1/1: Alice [VALID]" in out
    assert "RESULT: no validation errors" in out


def test_open_invalid_exits_1(cli_client, pdf_file, capsys):
    cli_client.post.return_value = _open_response("Certificate revoked")
    assert _exit_code(["open", str(pdf_file)]) == 1
    out = capsys.readouterr().out
    assert "[INVALID]" in out
    assert "RESULT: 1 of 1 signer(s) FAILED" in out


def test_open_cms_detached(cli_client, tmp_path, capsys):
    cms = tmp_path / "doc.p7s"
    cms.write_bytes(b"\x30\x80cms")
    data = tmp_path / "doc.txt"
    data.write_bytes(b"data")
    cli_client.post.side_effect = [["SHA256"], _open_response()]
    main(["open", str(cms), "--data", str(data), "--no-validate"])

    first, second = cli_client.post.call_args_list
    assert first.args[0] == "Api/CadesSignatures/RequiredHashes"
    assert second.args[0] == "Api/CadesSignatures/Open"
    assert second.args[1]["validate"] is False
    assert second.args[1]["dataHashes"][0]["algorithm"] == "SHA256"


def test_open_no_signatures(cli_client, pdf_file, capsys):
    cli_client.post.return_value = {"signers": []}
    main(["open", str(pdf_file)])
    assert "No signatures found" in capsys.readouterr().out


# ── info ────────────────────────────────────────────────────────────


def test_info_lists_certificates(config_dir, tmp_path, capsys):
    carol = make_certificate("Carol", email="carol@example.com", serial_number=4242)
    sig = tmp_path / "doc.p7s"
    sig.write_bytes(make_cms(make_certificate("Dan", serial_number=7), carol, signer=carol))
    main(["info", str(sig)])
    out = capsys.readouterr().out
    assert "Signer: Carol <carol@example.com>" in out
    assert "Certificates (2):" in out
    assert "Dan" in out
    assert "Serial:  4242" in out


def test_info_without_signer_info(config_dir, tmp_path, capsys):
    sig = tmp_path / "doc.p7s"
    sig.write_bytes(make_cms(make_certificate("Carol")))
    main(["info", str(sig)])
    out = capsys.readouterr().out
    assert "Signer:" not in out
    assert "Certificates (1):" in out


def test_info_garbage(config_dir, tmp_path, capsys):
    sig = tmp_path / "doc.p7s"
    sig.write_bytes(b"not a cms")
    assert _exit_code(["info", str(sig)]) == 1
    assert "Error parsing signature" in capsys.readouterr().err


# ── auth ────────────────────────────────────────────────────────────


def test_auth_start(cli_client, capsys):
    cli_client.get_authentication.return_value = Authentication(cli_client)
    cli_client.post.return_value = {"token": "auth-tok"}
    main(["auth", "start", "--security-context", "ctx"])
    assert capsys.readouterr().out.strip() == "auth-tok"


def test_auth_start_needs_context(cli_client, capsys):
    assert _exit_code(["auth", "start"]) == 1
    assert "--security-context" in capsys.readouterr().err


def test_auth_finish_accepted(cli_client, capsys):
    cli_client.get_authentication.return_value = Authentication(cli_client)
    cli_client.post.return_value = {
        "certificate": {"subjectName": {"commonName": "Alice"}, "emailAddress": "a@example.com"},
        "validationResults": {"passedChecks": [{"type": "Ok", "message": "ok"}]},
    }
    main(["auth", "finish", "auth-tok"])
    out = capsys.readouterr().out
    assert "Certificate: Alice" in out
    assert "AUTHENTICATED" in out


def test_auth_finish_rejected(cli_client, capsys):
    cli_client.get_authentication.return_value = Authentication(cli_client)
    cli_client.post.return_value = {
        "validationResults": {"errors": [{"type": "E", "message": "Untrusted root"}]},
    }
    assert _exit_code(["auth", "finish", "auth-tok"]) == 1
    err = capsys.readouterr().err
    assert "REJECTED" in err
    assert "- Untrusted root" in err


# ── setup / logout / reset ──────────────────────────────────────────


def test_setup_builtin_profile(config_dir, capsys):
    with (
        patch("getpass.getpass", return_value="tok"),
        patch("builtins.input", return_value="y"),
        patch("restpki.ui.cli.setup.RestPkiClient.ping", return_value=(True, "ok")),
    ):
        main(["setup", "--profile", "pki.rest"])

    assert get_active_profile() is BUILTIN_PROFILES["pki.rest"]
    assert resolve_access_token(BUILTIN_PROFILES["pki.rest"].url) == "tok"
    assert "Saved to" in capsys.readouterr().out


def test_setup_custom_endpoint(config_dir):
    answers = iter(["2", ENDPOINT, "ctx", "n"])
    with (
        patch("getpass.getpass", return_value="tok"),
        patch("builtins.input", side_effect=lambda _prompt="": next(answers)),
        patch("restpki.ui.cli.setup.RestPkiClient.ping", return_value=(True, "ok")),
    ):
        main(["setup"])

    profile = get_active_profile()
    assert profile is not None
    assert profile.url == ENDPOINT
    assert profile.default_security_context == "ctx"


def test_setup_ping_failure(config_dir, capsys):
    with (
        patch("getpass.getpass", return_value="tok"),
        patch(
            "restpki.ui.cli.setup.RestPkiClient.ping",
            return_value=(False, "Access token rejected by the server"),
        ),
    ):
        assert _exit_code(["setup", "--profile", "pki.rest"]) == 1
    assert "Access token rejected" in capsys.readouterr().err
    assert get_active_profile() is None


def test_setup_replaces_invalid_saved_url(config_dir, capsys):
    save_config({"url": "http://pki.example.com/"})
    with (
        patch("getpass.getpass", return_value="tok"),
        patch("builtins.input", return_value="y"),
        patch("restpki.ui.cli.setup.RestPkiClient.ping", return_value=(True, "ok")),
    ):
        main(["setup", "--profile", "pki.rest"])

    assert "Ignoring saved configuration" in capsys.readouterr().err
    assert get_active_profile() is BUILTIN_PROFILES["pki.rest"]


def test_setup_unknown_profile(config_dir, capsys):
    assert _exit_code(["setup", "--profile", "nope"]) == 1
    assert "Unknown profile" in capsys.readouterr().err


def test_logout(config_dir, capsys):
    save_server_config(make_custom_profile(ENDPOINT))
    save_access_token(ENDPOINT, "tok")
    main(["logout"])
    assert resolve_access_token(ENDPOINT) == ""
    assert get_active_profile() is not None
    assert "Logged out" in capsys.readouterr().out


def test_reset(config_dir, capsys):
    save_server_config(make_custom_profile(ENDPOINT))
    main(["reset"])
    assert get_active_profile() is None
    assert "All configuration cleared" in capsys.readouterr().out
