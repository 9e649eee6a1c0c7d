"""
HTTP transport for REST PKI.

Thin layer over ``urllib.request`` that returns the status code and body
of every response the server produced (2xx or not) and turns everything
else (DNS failures, refused connections, TLS problems, timeouts) into
:class:`~restpki.errors.RestUnreachableError`.

Public API:
- http_request for GET/POST calls
- Automatic retry with exponential backoff on transient failures; a POST
  is only resent when it never reached the server
"""

from __future__ import annotations

__all__ = ["HttpResponse", "http_request"]

import logging
import socket
import time
import urllib.error
import urllib.request
from typing import TYPE_CHECKING, NamedTuple, Protocol, TypeVar
from urllib.parse import urlparse

from ..constants import (
    BYTES_PER_MB,
    DEFAULT_MAX_RETRIES,
    DEFAULT_RETRY_BACKOFF,
    DEFAULT_RETRY_DELAY,
    DEFAULT_TIMEOUT,
    MAX_RESPONSE_SIZE,
    RECV_BUFFER_SIZE,
)
from ..errors import ConfigError, RestPkiError, RestUnreachableError

if TYPE_CHECKING:
    import http.client
    from collections.abc import Callable

_T = TypeVar("_T")

_logger = logging.getLogger(__name__)


class HttpResponse(NamedTuple):
    """Status code and raw body of an HTTP response."""

    status: int
    body: bytes


def _require_https_url(url: str) -> None:
    """Reject non-HTTPS URLs to prevent token leakage over plaintext.

    Raises:
        ConfigError: If the URL scheme is not https or has no host.
    """
    parsed = urlparse(url)
    scheme = parsed.scheme.lower()
    if scheme != "https":
        raise ConfigError(
            f"Only HTTPS URLs are allowed (got {scheme or 'no scheme'}://). "
            "The access token must not be sent over unencrypted connections."
        )
    if not parsed.hostname:
        raise ConfigError(f"Cannot extract hostname from URL: {url}")


# ── Retry logic ──────────────────────────────────────────────────────


# Raised while opening the connection, before any request byte is sent
_NOT_SENT_ERRORS = (ConnectionRefusedError, socket.gaierror)


def _can_resend(method: str, cause: object) -> bool:
    """GETs are always resent; a POST only if the server cannot have seen it.

    A POST that timed out or lost its connection may already have started
    a session or spent a token, so it is reported rather than repeated.
    """
    return method == "GET" or isinstance(cause, _NOT_SENT_ERRORS)


def _is_retryable_error(exc: RestPkiError) -> bool:
    """Check if an error is transient and worth retrying."""
    if isinstance(exc, RestUnreachableError):
        return exc.retryable
    return False


def _with_retry(
    fn: Callable[[], _T],
    max_retries: int = DEFAULT_MAX_RETRIES,
    delay: float = DEFAULT_RETRY_DELAY,
    backoff: float = DEFAULT_RETRY_BACKOFF,
    operation: str = "request",
) -> _T:
    """
    Execute a function with exponential backoff retry.

    Args:
        fn: Function to execute (takes no arguments, returns result).
        max_retries: Maximum number of retry attempts.
        delay: Initial delay between retries in seconds.
        backoff: Multiplier for delay after each retry.
        operation: Description of operation for logging.

    Returns:
        Result from successful fn() call.

    Raises:
        Last exception if all retries fail.
    """
    last_exc: RestPkiError | None = None
    current_delay = delay

    for attempt in range(max_retries + 1):
        try:
            return fn()
        except RestPkiError as exc:  # noqa: PERF203 -- try-except is the retry mechanism
            last_exc = exc
            if attempt >= max_retries or not _is_retryable_error(exc):
                raise

            _logger.warning(
                "%s failed (attempt %d/%d): %s. Retrying in %.1fs...",
                operation,
                attempt + 1,
                max_retries + 1,
                exc,
                current_delay,
            )
            time.sleep(current_delay)
            current_delay *= backoff

    # Should not reach here, but satisfy type checker
    if last_exc is not None:
        raise last_exc
    raise RuntimeError("Retry logic error")


# ── urllib plumbing ──────────────────────────────────────────────────


class _Readable(Protocol):
    def read(self, amt: int = ...) -> bytes: ...


def _read_with_limit(response: _Readable, url: str) -> bytes:
    """Read an HTTP response body with size limit to prevent memory exhaustion."""
    chunks: list[bytes] = []
    total_size = 0
    while True:
        chunk = response.read(RECV_BUFFER_SIZE)
        if not chunk:
            break
        total_size += len(chunk)
        if total_size > MAX_RESPONSE_SIZE:
            raise RestPkiError(
                f"Response from {url} exceeds {MAX_RESPONSE_SIZE // BYTES_PER_MB} MB limit"
            )
        chunks.append(chunk)
    return b"".join(chunks)


class _SafeRedirectHandler(urllib.request.HTTPRedirectHandler):
    """Redirect handler that refuses HTTPS to HTTP downgrades."""

    def redirect_request(  # type: ignore[override]  # urllib stubs use incompatible signature
        self,
        req: urllib.request.Request,
        fp: http.client.HTTPResponse,
        code: int,
        msg: str,
        headers: http.client.HTTPMessage,
        newurl: str,
    ) -> urllib.request.Request | None:
        parsed_orig = urlparse(req.full_url)
        parsed_new = urlparse(newurl)
        if parsed_orig.scheme == "https" and parsed_new.scheme == "http":
            raise RestPkiError(f"Refused redirect from HTTPS to HTTP: {newurl}")
        return super().redirect_request(req, fp, code, msg, headers, newurl)


_safe_opener = urllib.request.build_opener(_SafeRedirectHandler)


def _safe_urlopen(request: urllib.request.Request, *, timeout: int) -> http.client.HTTPResponse:
    """Open a Request with safe redirect handling.

    Refuses HTTPS to HTTP downgrades. Thin wrapper to simplify testing.
    """
    return _safe_opener.open(request, timeout=timeout)


def _urllib_request(
    method: str,
    url: str,
    body: bytes | None,
    headers: dict[str, str] | None,
    timeout: int,
) -> HttpResponse:
    """Perform a single request; HTTP error statuses are returned, not raised."""
    _logger.debug(
        "%s %s (timeout=%ds, %d bytes)", method, url, timeout, len(body) if body else 0
    )
    req = urllib.request.Request(url, data=body, method=method)  # noqa: S310 -- URL is validated as HTTPS by _require_https_url in caller
    if headers:
        for k, v in headers.items():
            req.add_header(k, v)
    try:
        with _safe_urlopen(req, timeout=timeout) as response:
            data = _read_with_limit(response, url)
            status = response.status
    except urllib.error.HTTPError as exc:
        # The server answered; the caller decides what the status means
        try:
            data = _read_with_limit(exc, url) if exc.fp is not None else b""
        finally:
            exc.close()
        _logger.debug("%s %s -> HTTP %d (%d bytes)", method, url, exc.code, len(data))
        return HttpResponse(exc.code, data)
    except urllib.error.URLError as exc:
        reason = str(exc.reason) if exc.reason else str(exc)
        raise RestUnreachableError(
            method, url, reason, retryable=_can_resend(method, exc.reason)
        ) from exc
    except TimeoutError as exc:
        raise RestUnreachableError(
            method, url, f"timed out after {timeout}s", retryable=_can_resend(method, exc)
        ) from exc
    except OSError as exc:
        raise RestUnreachableError(
            method, url, str(exc), retryable=_can_resend(method, exc)
        ) from exc

    _logger.debug("%s %s -> HTTP %d (%d bytes)", method, url, status, len(data))
    return HttpResponse(status, data)


# ── Public API ───────────────────────────────────────────────────────


def http_request(
    method: str,
    url: str,
    *,
    body: bytes | None = None,
    headers: dict[str, str] | None = None,
    timeout: int = DEFAULT_TIMEOUT,
    max_retries: int = DEFAULT_MAX_RETRIES,
) -> HttpResponse:
    """
    Send an HTTP request with retry on transient network failures.

    Non-2xx responses are returned to the caller unchanged; only failures
    to obtain a response at all are raised.

    Args:
        method: HTTP verb ("GET" or "POST").
        url: Absolute HTTPS URL.
        body: Request body bytes (None for no body).
        headers: Additional HTTP headers.
        timeout: HTTP timeout in seconds.
        max_retries: Maximum retry attempts on transient failures.

    Returns:
        HttpResponse with status code and body bytes.

    Raises:
        ConfigError: If the URL is not HTTPS.
        RestUnreachableError: If no response could be obtained.
        RestPkiError: If the response is too large or redirects to HTTP.
    """
    _require_https_url(url)

    def _do_request() -> HttpResponse:
        return _urllib_request(method, url, body, headers, timeout)

    if max_retries > 0:
        return _with_retry(_do_request, max_retries=max_retries, operation=f"{method} {url}")
    return _do_request()
