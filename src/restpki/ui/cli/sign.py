"""Signature command handlers for the restpki CLI.

Each document type has a ``start`` and a ``finish`` action. ``start``
prints JSON (the token and, for client-side signing, the hash to sign);
``finish`` writes the signed artifact.
"""

from __future__ import annotations

import argparse
import base64
import json
import sys
from pathlib import Path
from typing import TYPE_CHECKING

from ...api import get_client
from ...config import get_default_security_context
from ...core.cert_info import extract_cert_info_from_x509
from ...core.finishers import CadesSignatureFinisher, PadesSignatureFinisher, XmlSignatureFinisher
from ...core.marks import PadesVisualRepresentation, PadesVisualText
from ...core.policies import StandardSignaturePolicies
from ...core.presets import PadesVisualPositioningPresets
from ...core.starters import (
    CadesSignatureStarter,
    FullXmlSignatureStarter,
    PadesSignatureStarter,
    XmlElementSignatureStarter,
)
from ...errors import ConfigError, RestPkiError
from ..helpers import (
    check_output_writable,
    confirm_choice,
    format_size_kb,
    print_validation_results,
    safe_read_file,
    warn_if_large,
)
from ..workflows import finish_signature, start_signature
from .setup import cmd_setup

if TYPE_CHECKING:
    from ...core.finishers import SignatureFinisher
    from ...core.starters import SignatureStarter
    from ...core.validation import ValidationResults
    from ...network.client import RestPkiClient

_DEFAULT_POLICIES = {
    "pades": StandardSignaturePolicies.PADES_BASIC,
    "cades": StandardSignaturePolicies.CADES_BES,
    "xml": StandardSignaturePolicies.XML_XADES_BES,
}

_FINISHERS: dict[str, type[SignatureFinisher]] = {
    "pades": PadesSignatureFinisher,
    "cades": CadesSignatureFinisher,
    "xml": XmlSignatureFinisher,
}

_VISUAL_TEXT = "Signed by {{signerName}} ({{signerNationalId}})"


def require_client() -> RestPkiClient:
    """Build an API client, offering the setup wizard if nothing is configured."""
    try:
        return get_client()
    except ConfigError as e:
        print(f"{e}", file=sys.stderr)

    if confirm_choice("Run setup wizard?"):
        cmd_setup(argparse.Namespace(profile=None))
        try:
            client = get_client()
        except ConfigError as e:
            print(f"Error: {e}", file=sys.stderr)
        else:
            print()
            return client

    print("Set RESTPKI_URL / RESTPKI_ACCESS_TOKEN or run `restpki setup`.", file=sys.stderr)
    sys.exit(1)


def print_failure(
    message: str | None, validation: ValidationResults | None = None, unreachable: bool = False
) -> None:
    print("UNREACHABLE" if unreachable else "FAILED", file=sys.stderr)
    print(f"  {message}", file=sys.stderr)
    if validation is not None:
        print_validation_results(validation, indent="    ")


def _read_document(path_str: str, kind: str) -> bytes:
    path = Path(path_str)
    data = safe_read_file(path, kind)
    if data is None:
        sys.exit(1)
    warn_if_large(path, len(data))
    return data


def _apply_signer_options(
    starter: SignatureStarter, args: argparse.Namespace, kind: str, endpoint_url: str
) -> None:
    if args.cert:
        cert = safe_read_file(Path(args.cert), "certificate")
        if cert is None:
            sys.exit(1)
        try:
            starter.set_signer_certificate(cert)
            subject = extract_cert_info_from_x509(cert)
        except RestPkiError as e:
            print(f"Error: {e}", file=sys.stderr)
            sys.exit(1)
        # stdout carries the JSON output
        print(f"Signer certificate: {subject['name'] or subject['dn']}", file=sys.stderr)
    starter.signature_policy_id = args.policy or _DEFAULT_POLICIES[kind]
    starter.security_context_id = args.security_context or get_default_security_context(
        endpoint_url
    )
    starter.callback_argument = args.callback_argument


def _run_start(starter: SignatureStarter, client_side: bool) -> None:
    result = start_signature(starter, client_side=client_side)
    if not result.ok:
        print_failure(result.error_message, result.validation, result.unreachable)
        sys.exit(1)

    output: dict[str, str | None] = {"token": result.token}
    if client_side:
        output["toSignHash"] = (
            base64.b64encode(result.to_sign_hash).decode("ascii") if result.to_sign_hash else None
        )
        output["digestAlgorithm"] = result.digest_algorithm
    print(json.dumps(output, indent=2))


def _pades_start(args: argparse.Namespace, client: RestPkiClient) -> PadesSignatureStarter:
    starter = PadesSignatureStarter(client)
    try:
        starter.pdf_to_sign = _read_document(args.file, "PDF")
        if args.visual:
            position = PadesVisualPositioningPresets.get_footnote(client)
            starter.visual_representation = PadesVisualRepresentation(
                position=position, text=PadesVisualText(_VISUAL_TEXT)
            )
    except RestPkiError as e:
        print_failure(str(e))
        sys.exit(1)
    return starter


def _cades_start(args: argparse.Namespace, client: RestPkiClient) -> CadesSignatureStarter:
    if not args.file and not args.cosign:
        print("Error: give a file to sign and/or --cosign CMS.", file=sys.stderr)
        sys.exit(1)
    starter = CadesSignatureStarter(client)
    if args.file:
        starter.content_to_sign = _read_document(args.file, "file")
    if args.cosign:
        starter.cms_to_cosign = _read_document(args.cosign, "CMS")
    starter.encapsulate_content = not args.detached
    return starter


def _xml_start(
    args: argparse.Namespace, client: RestPkiClient
) -> FullXmlSignatureStarter | XmlElementSignatureStarter:
    starter: FullXmlSignatureStarter | XmlElementSignatureStarter
    if args.element_id:
        starter = XmlElementSignatureStarter(client)
        starter.to_sign_element_id = args.element_id
    else:
        starter = FullXmlSignatureStarter(client)
    try:
        starter.xml_to_sign = _read_document(args.file, "XML")
    except RestPkiError as e:
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(1)
    starter.signature_element_id = args.signature_element_id
    return starter


def cmd_start(args: argparse.Namespace) -> None:
    """Handle '<kind> start'."""
    kind = args.kind
    client = require_client()
    builders = {"pades": _pades_start, "cades": _cades_start, "xml": _xml_start}
    starter = builders[kind](args, client)
    _apply_signer_options(starter, args, kind, client.endpoint_url)
    _run_start(starter, client_side=bool(args.cert))


def cmd_finish(args: argparse.Namespace) -> None:
    """Handle '<kind> finish'."""
    out = Path(args.output)
    # Finishing spends the token, so refuse before contacting the server
    problem = check_output_writable(out)
    if problem:
        print(f"Error: {problem}", file=sys.stderr)
        sys.exit(1)

    client = require_client()
    finisher = _FINISHERS[args.kind](client, args.token)
    if args.signature:
        signature = safe_read_file(Path(args.signature), "signature")
        if signature is None:
            sys.exit(1)
        finisher.set_signature(signature)

    print(f"Finishing {args.kind.upper()} signature...", end=" ", flush=True)
    result = finish_signature(finisher, out)
    if not result.ok:
        print_failure(result.error_message, result.validation, result.unreachable)
        if result.recovery_path is not None:
            print(f"  Signed file saved to: {result.recovery_path}", file=sys.stderr)
        sys.exit(1)

    print(f"OK -> {out.name} ({format_size_kb(result.output_size)})")
    if result.signer_name:
        print(f"  Signer: {result.signer_name}")


def cmd_sign(args: argparse.Namespace) -> None:
    """Dispatch the 'pades', 'cades' and 'xml' subcommands."""
    if args.action == "start":
        cmd_start(args)
    elif args.action == "finish":
        cmd_finish(args)
    else:
        print(f"Usage: restpki {args.kind} {{start,finish}} ...", file=sys.stderr)
        sys.exit(1)
