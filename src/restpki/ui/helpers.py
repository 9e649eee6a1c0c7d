"""
Common CLI helper functions for restpki.

Prompting, file reading/writing and validation output shared by the
setup wizard and the signature commands.
"""

from __future__ import annotations

import getpass
import os
import sys
import tempfile
from pathlib import Path
from typing import TYPE_CHECKING

from ..constants import BYTES_PER_MB, PDF_WARN_SIZE

if TYPE_CHECKING:
    from ..core.validation import ValidationResults

__all__ = [
    "atomic_write",
    "check_output_writable",
    "confirm_choice",
    "format_size_kb",
    "offer_save_token",
    "print_validation_results",
    "prompt_access_token",
    "safe_input",
    "safe_read_file",
    "warn_if_large",
]

_BYTES_PER_KB = 1024


def format_size_kb(size_bytes: int) -> str:
    """Format a byte count as a human-readable KB string (e.g. '123.4 KB')."""
    return f"{size_bytes / _BYTES_PER_KB:.1f} KB"


def safe_input(prompt: str) -> str | None:
    """Prompt user for input, returning None on EOF/KeyboardInterrupt.

    Returns:
        Stripped user input, or None if cancelled (Ctrl-C, Ctrl-D).
    """
    try:
        return input(prompt).strip()
    except (EOFError, KeyboardInterrupt):
        print()
        return None


def confirm_choice(message: str, default_yes: bool = True) -> bool:
    """
    Prompt user for yes/no confirmation.

    Args:
        message: Question to ask the user (without the [Y/n] suffix).
        default_yes: If True, empty input defaults to yes.
    """
    suffix = "[Y/n]" if default_yes else "[y/N]"
    try:
        answer = input(f"{message} {suffix} ").strip().lower()
    except (EOFError, KeyboardInterrupt):
        print()
        return False

    if default_yes:
        return answer in ("", "y", "yes")
    return answer in ("y", "yes")


def safe_read_file(path: Path, kind: str = "file") -> bytes | None:
    """
    Read a file with uniform error handling.

    Args:
        path: Path to the file to read.
        kind: Descriptive name for error messages (e.g., "PDF", "signature").

    Returns:
        File contents, or None if the file doesn't exist or can't be read.
    """
    if not path.exists():
        print(f"Error: {kind} not found: {path}", file=sys.stderr)
        return None

    try:
        return path.read_bytes()
    except OSError as e:
        print(f"Error reading {kind}: {e}", file=sys.stderr)
        return None


def warn_if_large(path: Path, size: int) -> None:
    """Warn on stderr when a document is big enough to slow down the upload."""
    if size <= PDF_WARN_SIZE:
        return
    print(
        f"  Warning: {path.name} is {size / BYTES_PER_MB:.0f} MB. "
        f"Files over {PDF_WARN_SIZE // BYTES_PER_MB} MB may be slow or fail.",
        file=sys.stderr,
    )


def print_validation_results(results: ValidationResults, indent: str = "  ") -> None:
    """Print a validation report to stderr, one line per entry."""
    for line in str(results).splitlines():
        if line.strip():
            print(f"{indent}{line.expandtabs(2)}", file=sys.stderr)


def prompt_access_token() -> str:
    """
    Prompt for the API access token without echoing it.

    Raises:
        SystemExit: If the user cancels or enters nothing.
    """
    try:
        token = getpass.getpass("REST PKI access token: ").strip()
    except (EOFError, KeyboardInterrupt):
        print()
        sys.exit(1)
    if not token:
        print("Error: an access token is required.", file=sys.stderr)
        sys.exit(1)
    return token


def offer_save_token(url: str, token: str) -> None:
    """Ask the user whether to save the token; keep it for this session otherwise."""
    from ..config import get_token_storage_info, save_access_token, set_session_token

    if confirm_choice("\nSave access token for future use?"):
        save_access_token(url, token)
        print(f"Access token saved to: {get_token_storage_info()}")
        print("  (env var RESTPKI_ACCESS_TOKEN always takes priority)")
    else:
        set_session_token(token)
        print("Access token not saved.")


def atomic_write(path: Path, data: bytes) -> None:
    """Write data to a file via temp file + rename.

    Args:
        path: Target file path.
        data: Bytes to write.
    """
    fd, tmp_path = tempfile.mkstemp(dir=path.parent, suffix=".tmp")
    tmp = Path(tmp_path)
    try:
        os.write(fd, data)
        os.fsync(fd)
        os.close(fd)
        fd = -1
        tmp.replace(path)
    except Exception:
        if fd >= 0:
            os.close(fd)
        tmp.unlink(missing_ok=True)
        raise


def check_output_writable(path: Path) -> str | None:
    """Return why a new file cannot be created at ``path``, or None if it can."""
    parent = path.parent
    if not parent.is_dir():
        return f"Output directory does not exist: {parent}"
    if not os.access(parent, os.W_OK):
        return f"Output directory is not writable: {parent}"
    return None
