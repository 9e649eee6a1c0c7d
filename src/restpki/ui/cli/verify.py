"""
Signature inspection.

cmd_open asks the server to open and validate a signed file.
cmd_info shows the signer and the certificates of a CMS file locally
with asn1crypto.
"""

from __future__ import annotations

import sys
from pathlib import Path
from typing import TYPE_CHECKING

from ...config import get_default_security_context
from ...constants import PDF_MAGIC
from ...core.cert_info import extract_cert_info_from_cms, list_cms_certificates
from ...core.explorers import CadesSignatureExplorer, PadesSignatureExplorer
from ...core.policies import StandardSignaturePolicies, StandardSignaturePolicyCatalog
from ...errors import CertificateError
from ..helpers import format_size_kb, safe_read_file
from ..workflows import open_signature
from .sign import print_failure, require_client

if TYPE_CHECKING:
    import argparse

    from ...core.explorers import SignatureExplorer


def _build_explorer(args: argparse.Namespace, content: bytes) -> SignatureExplorer:
    client = require_client()
    explorer: SignatureExplorer
    if content.startswith(PDF_MAGIC):
        explorer = PadesSignatureExplorer(client)
        default_policy = StandardSignaturePolicies.PADES_BASIC
        catalog = StandardSignaturePolicyCatalog.pki_brazil_pades()
    else:
        cades = CadesSignatureExplorer(client)
        if args.data:
            data = safe_read_file(Path(args.data), "data file")
            if data is None:
                sys.exit(1)
            cades.data_file = data
        explorer = cades
        default_policy = StandardSignaturePolicies.CADES_BES
        catalog = StandardSignaturePolicyCatalog.pki_brazil_cades()

    explorer.signature_file = content
    explorer.validate = not args.no_validate
    explorer.default_signature_policy_id = args.policy or default_policy
    explorer.acceptable_explicit_policies = catalog
    explorer.security_context_id = args.security_context or get_default_security_context(
        client.endpoint_url
    )
    return explorer


def cmd_open(args: argparse.Namespace) -> None:
    """Open a signed PDF or CMS file on the server and print its signers."""
    path = Path(args.file)
    content = safe_read_file(path, "signed file")
    if content is None:
        sys.exit(1)

    explorer = _build_explorer(args, content)
    print(f"Opening {path.name} ({format_size_kb(len(content))})...")
    result = open_signature(explorer)
    if not result.ok:
        print_failure(result.error_message, unreachable=result.unreachable)
        sys.exit(1)

    entries = result.entries or []
    if not entries:
        print("  No signatures found.")
        return

    for entry in entries:
        status = {True: "VALID", False: "INVALID", None: "not validated"}[entry.valid]
        print(f"\n  Signer {entry.index + 1}/{entry.total}: {entry.signer_name} [{status}]")
        for line in entry.detail_lines:
            print(f"    {line}")

    print()
    if result.all_valid:
        print("  RESULT: no validation errors")
    else:
        failed = sum(1 for e in entries if e.valid is False)
        print(f"  RESULT: {failed} of {len(entries)} signer(s) FAILED")
        sys.exit(1)


def cmd_info(args: argparse.Namespace) -> None:
    """Show the certificates embedded in a CMS signature file."""
    sig_path = Path(args.signature)
    sig_bytes = safe_read_file(sig_path, "signature")
    if sig_bytes is None:
        sys.exit(1)
    print(f"Signature: {sig_path.name} ({len(sig_bytes)} bytes)")

    try:
        certs = list_cms_certificates(sig_bytes)
    except CertificateError as e:
        print(f"  Error parsing signature: {e}", file=sys.stderr)
        sys.exit(1)

    if not certs:
        print("  No certificates found in signature.")
        return

    try:
        signer = extract_cert_info_from_cms(sig_bytes)
    except CertificateError:
        # Certificates only, no SignerInfo pointing at one of them
        signer = None
    if signer is not None:
        email = f" <{signer['email']}>" if signer["email"] else ""
        print(f"Signer: {signer['name'] or signer['dn']}{email}")

    print(f"\nCertificates ({len(certs)}):")
    for i, cert in enumerate(certs):
        if len(certs) > 1:
            print(f"\n  [{i + 1}]")
        print(f"  Subject: {cert['subject']}")
        print(f"  Issuer:  {cert['issuer']}")
        print(f"  Serial:  {cert['serial']}")
        print(f"  Valid:   {cert['not_before']} - {cert['not_after']}")
