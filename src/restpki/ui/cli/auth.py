"""Certificate authentication command handlers."""

from __future__ import annotations

import sys
from typing import TYPE_CHECKING

from ...config import get_default_security_context
from ...errors import RestPkiError, RestUnreachableError
from ..helpers import print_validation_results
from .sign import print_failure, require_client

if TYPE_CHECKING:
    import argparse


def cmd_auth_start(args: argparse.Namespace) -> None:
    """Print a token for the Web PKI component to sign."""
    client = require_client()
    security_context = args.security_context or get_default_security_context(client.endpoint_url)
    if not security_context:
        print("Error: no security context; pass --security-context.", file=sys.stderr)
        sys.exit(1)
    auth = client.get_authentication()
    try:
        token = auth.start_with_webpki(security_context)
    except RestPkiError as e:
        print_failure(str(e), unreachable=isinstance(e, RestUnreachableError))
        sys.exit(1)
    print(token)


def cmd_auth_finish(args: argparse.Namespace) -> None:
    """Complete an authentication and report whether the certificate is accepted."""
    auth = require_client().get_authentication()
    try:
        results = auth.complete_with_webpki(args.token)
    except RestPkiError as e:
        print_failure(str(e), unreachable=isinstance(e, RestUnreachableError))
        sys.exit(1)

    certificate = auth.certificate
    if certificate is not None:
        print(f"Certificate: {certificate.common_name or 'Unknown'}")
        if certificate.email_address:
            print(f"  Email: {certificate.email_address}")
    if results.is_valid:
        print("AUTHENTICATED")
        return
    print("REJECTED", file=sys.stderr)
    print_validation_results(results)
    sys.exit(1)


def cmd_auth(args: argparse.Namespace) -> None:
    if args.action == "start":
        cmd_auth_start(args)
    elif args.action == "finish":
        cmd_auth_finish(args)
    else:
        print("Usage: restpki auth {start,finish} ...", file=sys.stderr)
        sys.exit(1)
