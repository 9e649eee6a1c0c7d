"""
Command-line interface for restpki.

Argument parsing, logging setup, dispatch, and configuration subcommands.
Signature logic lives in ``sign``, inspection in ``verify``.
"""

from __future__ import annotations

import argparse
import logging
import sys

from ...config import BUILTIN_PROFILES, get_server_config
from ...constants import __version__
from .auth import cmd_auth
from .setup import cmd_setup
from .sign import cmd_sign
from .verify import cmd_info, cmd_open


def _cmd_logout() -> None:
    """Forget the access token, keeping the endpoint configuration."""
    from ...config import logout

    logout()
    print("Logged out. Endpoint configuration preserved.")
    print("Run 'restpki setup' to log in again.")


def _cmd_reset() -> None:
    """Clear all configuration: access token and endpoint profile."""
    from ...config import reset_all

    reset_all()
    print("All configuration cleared.")
    print("Run 'restpki setup' to reconfigure.")


def _configure_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )


def _add_signer_options(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        "--cert",
        default=None,
        help="Signer certificate (DER or PEM). Enables client-side signing: "
        "the hash to sign is printed with the token",
    )
    parser.add_argument("--policy", default=None, help="Signature policy Id")
    parser.add_argument(
        "--security-context", default=None, help="Security context Id (default: from profile)"
    )
    parser.add_argument(
        "--callback-argument", default=None, help="Opaque value returned by finish"
    )


def _add_finish_parser(sub: argparse._SubParsersAction, artifact: str) -> None:  # noqa: SLF001
    p_finish = sub.add_parser("finish", help=f"Finish the signature and save the {artifact}")
    p_finish.add_argument("token", help="Token printed by 'start'")
    p_finish.add_argument("-o", "--output", required=True, help=f"Where to write the {artifact}")
    p_finish.add_argument(
        "-s",
        "--signature",
        default=None,
        help="File with the signature computed over the hash from 'start' (client-side flow)",
    )


def build_parser() -> argparse.ArgumentParser:
    url, _, _ = get_server_config()
    url_hint = f" (current: {url})" if url else " (run `restpki setup` first)"

    parser = argparse.ArgumentParser(
        prog="restpki",
        description="Create and validate PAdES, CAdES and XML signatures with REST PKI.",
        epilog=(
            "Environment variables:\n"
            f"  RESTPKI_URL           Endpoint URL{url_hint}\n"
            "  RESTPKI_ACCESS_TOKEN  API access token\n"
            "  RESTPKI_TIMEOUT       Timeout in seconds (default: 60)\n"
        ),
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument("-V", "--version", action="version", version=f"restpki {__version__}")
    parser.add_argument(
        "-v", "--verbose", action="store_true", default=False, help="Enable debug logging"
    )

    sub = parser.add_subparsers(dest="command", help="Available commands")

    # pades
    p_pades = sub.add_parser("pades", help="PAdES (PDF) signatures")
    p_pades.set_defaults(kind="pades")
    pades_sub = p_pades.add_subparsers(dest="action")
    p_start = pades_sub.add_parser("start", help="Start signing a PDF")
    p_start.add_argument("file", help="PDF to sign")
    p_start.add_argument(
        "--visual",
        action="store_true",
        default=False,
        help="Add a visual representation in the page footer",
    )
    _add_signer_options(p_start)
    _add_finish_parser(pades_sub, "signed PDF")

    # cades
    p_cades = sub.add_parser("cades", help="CAdES (CMS/PKCS#7) signatures")
    p_cades.set_defaults(kind="cades")
    cades_sub = p_cades.add_subparsers(dest="action")
    p_start = cades_sub.add_parser("start", help="Start signing a file")
    p_start.add_argument("file", nargs="?", default=None, help="File to sign")
    p_start.add_argument("--cosign", default=None, help="Existing CMS to co-sign")
    p_start.add_argument(
        "--detached",
        action="store_true",
        default=False,
        help="Do not encapsulate the signed content in the CMS",
    )
    _add_signer_options(p_start)
    _add_finish_parser(cades_sub, "CMS (.p7s)")

    # xml
    p_xml = sub.add_parser("xml", help="XML signatures (XAdES/XmlDSig)")
    p_xml.set_defaults(kind="xml")
    xml_sub = p_xml.add_subparsers(dest="action")
    p_start = xml_sub.add_parser("start", help="Start signing an XML document")
    p_start.add_argument("file", help="XML to sign")
    p_start.add_argument(
        "--element-id", default=None, help="Sign only the element with this Id attribute"
    )
    p_start.add_argument(
        "--signature-element-id", default=None, help="Id attribute of the signature element"
    )
    _add_signer_options(p_start)
    _add_finish_parser(xml_sub, "signed XML")

    # open
    p_open = sub.add_parser("open", help="Open and validate a signed PDF or CMS file")
    p_open.add_argument("file", help="Signed PDF or .p7s file")
    p_open.add_argument("--data", default=None, help="Signed data of a detached CMS")
    p_open.add_argument("--policy", default=None, help="Default signature policy Id")
    p_open.add_argument(
        "--security-context", default=None, help="Security context Id (default: from profile)"
    )
    p_open.add_argument(
        "--no-validate",
        action="store_true",
        default=False,
        help="Only list the signers, without validating them",
    )

    # info
    p_info = sub.add_parser("info", help="Show certificates of a CMS file (offline)")
    p_info.add_argument("signature", help="CMS signature file (.p7s)")

    # auth
    p_auth = sub.add_parser("auth", help="Certificate authentication (Web PKI)")
    auth_sub = p_auth.add_subparsers(dest="action")
    p_auth_start = auth_sub.add_parser("start", help="Print a token for the Web PKI component")
    p_auth_start.add_argument(
        "--security-context", default=None, help="Security context Id (default: from profile)"
    )
    p_auth_finish = auth_sub.add_parser("finish", help="Complete the authentication")
    p_auth_finish.add_argument("token", help="Token from 'auth start'")

    # setup
    p_setup = sub.add_parser("setup", help="Configure endpoint and access token")
    p_setup.add_argument(
        "--profile",
        default=None,
        help=f"Use a built-in profile ({', '.join(sorted(BUILTIN_PROFILES))})",
    )

    # logout / reset
    sub.add_parser("logout", help="Forget the access token (keep the endpoint)")
    sub.add_parser("reset", help="Clear all configuration")

    return parser


def main(argv: list[str] | None = None) -> None:
    parser = build_parser()
    args = parser.parse_args(argv)
    _configure_logging(args.verbose)

    if args.command in ("pades", "cades", "xml"):
        cmd_sign(args)
    elif args.command == "open":
        cmd_open(args)
    elif args.command == "info":
        cmd_info(args)
    elif args.command == "auth":
        cmd_auth(args)
    elif args.command == "setup":
        cmd_setup(args)
    elif args.command == "logout":
        _cmd_logout()
    elif args.command == "reset":
        _cmd_reset()
    else:
        parser.print_help()
        sys.exit(1)


if __name__ == "__main__":
    main()
