"""
Application-wide constants for restpki.

All timeout values, size limits, and other magic numbers are centralized
here for easy maintenance and configuration.
"""

from __future__ import annotations

import importlib.metadata

try:
    __version__ = importlib.metadata.version("restpki")
except importlib.metadata.PackageNotFoundError:
    __version__ = "0.3.0"

__all__ = [
    "BYTES_PER_MB",
    "CMS_SIGNATURE_MIME_TYPE",
    "DEFAULT_ENDPOINT_URL",
    "DEFAULT_MAX_RETRIES",
    "DEFAULT_RETRY_BACKOFF",
    "DEFAULT_RETRY_DELAY",
    "DEFAULT_TIMEOUT",
    "DEFAULT_TIMEOUT_PING",
    "ENV_TIMEOUT",
    "ENV_TOKEN",
    "ENV_URL",
    "ERROR_CODE_VALIDATION",
    "HTTP_STATUS_UNPROCESSABLE",
    "MAX_RESPONSE_SIZE",
    "MAX_TIMEOUT",
    "MIN_TIMEOUT",
    "PDF_MAGIC",
    "PDF_MIME_TYPE",
    "PDF_WARN_SIZE",
    "RECV_BUFFER_SIZE",
    "__version__",
]

# ── Timeout values (seconds) ──────────────────────────────────────────

# Signature start/finish/open calls carry whole documents
DEFAULT_TIMEOUT = 60

# Connectivity check during setup
DEFAULT_TIMEOUT_PING = 15


# ── Size units ────────────────────────────────────────────────────────

BYTES_PER_MB = 1024 * 1024


# ── Size limits (bytes) ───────────────────────────────────────────────

# Maximum response body size (signed PDFs come back Base64-encoded in JSON)
MAX_RESPONSE_SIZE = 100 * 1024 * 1024

# Chunk size when reading response bodies
RECV_BUFFER_SIZE = 8192

# Documents above this size get a warning in the CLI
PDF_WARN_SIZE = 25 * 1024 * 1024


# ── Retry configuration ───────────────────────────────────────────────

# Maximum number of retry attempts on transient failures
DEFAULT_MAX_RETRIES = 3

# Initial delay between retries (seconds)
DEFAULT_RETRY_DELAY = 1.0

# Exponential backoff multiplier for retry delay
DEFAULT_RETRY_BACKOFF = 2.0


# ── Protocol constants ────────────────────────────────────────────────

DEFAULT_ENDPOINT_URL = "https://pki.rest/"

HTTP_STATUS_UNPROCESSABLE = 422

# Error code carried by 422 responses whose body holds validation results
ERROR_CODE_VALIDATION = "ValidationError"

PDF_MIME_TYPE = "application/pdf"
CMS_SIGNATURE_MIME_TYPE = "application/pkcs7-signature"

PDF_MAGIC = b"%PDF-"


# ── Environment variable names ──────────────────────────────────────

ENV_URL = "RESTPKI_URL"
ENV_TOKEN = "RESTPKI_ACCESS_TOKEN"
ENV_TIMEOUT = "RESTPKI_TIMEOUT"


# ── Timeout validation ──────────────────────────────────────────────

MIN_TIMEOUT = 1
MAX_TIMEOUT = 3600
