"""Shared signature workflows.

UI-agnostic orchestration of the start, finish and open operations.
The CLI is a thin wrapper around these functions.

Constraints:
- No stdout/stderr output (no print)
- No sys.exit()
- No argparse imports
- Returns structured results, never raises on business errors
"""

from __future__ import annotations

import logging
import os
import tempfile
from dataclasses import dataclass
from pathlib import Path
from typing import TYPE_CHECKING

from ..errors import ConfigError, RestPkiError, RestUnreachableError, ValidationError
from .helpers import atomic_write

if TYPE_CHECKING:
    from ..core.explorers import SignatureExplorer
    from ..core.finishers import SignatureFinisher
    from ..core.models import SignatureInfo
    from ..core.starters import SignatureStarter
    from ..core.validation import ValidationResults

_logger = logging.getLogger(__name__)


# ── Result types ──────────────────────────────────────────────────


@dataclass(frozen=True, slots=True)
class StartResult:
    """Result of starting a signature."""

    ok: bool
    token: str | None = None
    to_sign_hash: bytes | None = None
    digest_algorithm: str | None = None
    error_message: str | None = None
    unreachable: bool = False
    validation: ValidationResults | None = None


@dataclass(frozen=True, slots=True)
class FinishResult:
    """Result of finishing a signature and saving the signed artifact."""

    ok: bool
    output_path: Path | None = None
    output_size: int = 0
    signer_name: str | None = None
    error_message: str | None = None
    unreachable: bool = False
    validation: ValidationResults | None = None
    recovery_path: Path | None = None


@dataclass(frozen=True, slots=True)
class SignerEntry:
    """Display data for one signer of an opened file."""

    index: int
    total: int
    valid: bool | None
    signer_name: str
    detail_lines: list[str]


@dataclass(frozen=True, slots=True)
class OpenResult:
    """Display data for all signers of an opened file."""

    ok: bool
    all_valid: bool = False
    entries: list[SignerEntry] | None = None
    error_message: str | None = None
    unreachable: bool = False


# ── Error classification ──────────────────────────────────────────


@dataclass(frozen=True, slots=True)
class _ErrorInfo:
    message: str
    unreachable: bool = False
    validation: ValidationResults | None = None


def _classify_error(error: Exception) -> _ErrorInfo:
    """Convert a caught exception into displayable error data."""
    if isinstance(error, ValidationError):
        return _ErrorInfo(
            message=error.validation_results.summary(), validation=error.validation_results
        )
    if isinstance(error, RestUnreachableError):
        return _ErrorInfo(message=str(error), unreachable=True)
    if isinstance(error, (RestPkiError, ConfigError, ValueError, OSError)):
        return _ErrorInfo(message=str(error))

    _logger.exception("Unexpected error during REST PKI operation")
    return _ErrorInfo(message="An unexpected error occurred. Check logs for details.")


# ── Signature workflows ──────────────────────────────────────────


def start_signature(starter: SignatureStarter, *, client_side: bool) -> StartResult:
    """Run a configured starter.

    Args:
        starter: Starter with document and signer metadata already set.
        client_side: Use :meth:`~SignatureStarter.start` (needs the signer
            certificate) instead of the Web PKI flow.
    """
    try:
        if client_side:
            instructions = starter.start()
        else:
            return StartResult(ok=True, token=starter.start_with_webpki())
    except Exception as e:
        info = _classify_error(e)
        return StartResult(
            ok=False,
            error_message=info.message,
            unreachable=info.unreachable,
            validation=info.validation,
        )

    algorithm = instructions.digest_algorithm
    return StartResult(
        ok=True,
        token=instructions.token,
        to_sign_hash=instructions.to_sign_hash,
        digest_algorithm=algorithm.api_name if algorithm else None,
    )


def _save_recovery_copy(data: bytes, output_path: Path) -> Path | None:
    """Write ``data`` to a fresh file in the temp directory."""
    try:
        fd, name = tempfile.mkstemp(prefix=f"{output_path.stem}-", suffix=output_path.suffix)
        with os.fdopen(fd, "wb") as f:
            f.write(data)
    except OSError as e:
        _logger.error("Could not save a recovery copy of the signed artifact: %s", e)
        return None
    _logger.warning("Signed artifact saved to %s", name)
    return Path(name)


def finish_signature(finisher: SignatureFinisher, output_path: Path) -> FinishResult:
    """Finish a signature and write the signed artifact atomically."""
    try:
        signed = finisher.finish()
    except Exception as e:
        info = _classify_error(e)
        return FinishResult(
            ok=False,
            error_message=info.message,
            unreachable=info.unreachable,
            validation=info.validation,
        )

    try:
        atomic_write(output_path, signed)
    except OSError as e:
        if isinstance(e, PermissionError):
            message = f"Permission denied: {output_path}"
        else:
            message = f"Cannot write {output_path}: {e.strerror or e}"
        # The token is spent; the server will not return this artifact again
        return FinishResult(
            ok=False,
            error_message=message,
            recovery_path=_save_recovery_copy(signed, output_path),
        )

    certificate = finisher.certificate_info
    return FinishResult(
        ok=True,
        output_path=output_path,
        output_size=len(signed),
        signer_name=certificate.common_name if certificate else None,
    )


# ── Open workflow ─────────────────────────────────────────────────


def format_signature_info(info: SignatureInfo) -> OpenResult:
    """Convert explorer output into structured display data."""
    total = len(info.signers)
    entries: list[SignerEntry] = []
    for i, signer in enumerate(info.signers):
        cert = signer.certificate
        name = (cert.common_name if cert else None) or "Unknown"

        lines: list[str] = []
        if cert is not None:
            if cert.email_address:
                lines.append(f"Email: {cert.email_address}")
            if cert.issuer_name.common_name:
                lines.append(f"Issuer: {cert.issuer_name.common_name}")
            if cert.pki_brazil is not None and cert.pki_brazil.cpf:
                lines.append(f"CPF: {cert.pki_brazil.cpf}")
        if signer.signing_time is not None:
            lines.append(f"Signing time: {signer.signing_time.isoformat()}")
        if signer.signature_policy is not None and signer.signature_policy.oid:
            lines.append(f"Policy: {signer.signature_policy.oid}")
        if signer.message_digest is not None:
            digest = signer.message_digest
            lines.append(f"Message digest ({digest.algorithm}): {digest.hex_value}")
        if signer.validation_results is not None:
            lines.extend(str(signer.validation_results).expandtabs(2).splitlines())

        entries.append(
            SignerEntry(
                index=i,
                total=total,
                valid=signer.is_valid,
                signer_name=name,
                detail_lines=lines,
            )
        )
    return OpenResult(ok=True, all_valid=info.all_valid, entries=entries)


def open_signature(explorer: SignatureExplorer) -> OpenResult:
    """Open a signed file on the server and format its signers."""
    try:
        info = explorer.open()
    except Exception as e:
        error = _classify_error(e)
        return OpenResult(ok=False, error_message=error.message, unreachable=error.unreachable)
    return format_signature_info(info)
