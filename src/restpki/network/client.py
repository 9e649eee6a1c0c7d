"""
REST PKI API client.

Wraps :func:`~restpki.network.transport.http_request` with bearer-token
authentication, JSON encoding/decoding, and the mapping of error
responses onto the :mod:`restpki.errors` hierarchy.
"""

from __future__ import annotations

__all__ = ["RestPkiClient"]

import json
import logging
from typing import TYPE_CHECKING, Any
from urllib.parse import urljoin

from ..constants import (
    DEFAULT_MAX_RETRIES,
    DEFAULT_TIMEOUT,
    DEFAULT_TIMEOUT_PING,
    ERROR_CODE_VALIDATION,
    HTTP_STATUS_UNPROCESSABLE,
    __version__,
)
from ..core.validation import ValidationResults
from ..errors import (
    ConfigError,
    RestError,
    RestHttpError,
    RestPkiApiError,
    RestPkiError,
    ValidationError,
)
from .transport import http_request

if TYPE_CHECKING:
    from ..core.authentication import Authentication
    from .transport import HttpResponse

_logger = logging.getLogger(__name__)

# Cheap authenticated GET used to check endpoint and token during setup
_PING_PATH = "Api/PadesVisualPositioningPresets/NewPage"


def _decode_json(body: bytes) -> Any:
    if not body.strip():
        return None
    return json.loads(body.decode("utf-8"))


class RestPkiClient:
    """Client for a REST PKI endpoint.

    Args:
        endpoint_url: Base URL of the service (e.g. ``https://pki.rest/``).
        access_token: API access token sent as a bearer token.
        timeout: Request timeout in seconds.
        max_retries: Retry attempts on transient network failures.
    """

    def __init__(
        self,
        endpoint_url: str,
        access_token: str,
        *,
        timeout: int = DEFAULT_TIMEOUT,
        max_retries: int = DEFAULT_MAX_RETRIES,
    ) -> None:
        if not endpoint_url:
            raise ConfigError("The REST PKI endpoint URL was not set.")
        if not access_token:
            raise ConfigError("The REST PKI access token was not set.")
        # urljoin drops the last path segment of a base without a trailing slash
        self.endpoint_url = endpoint_url if endpoint_url.endswith("/") else endpoint_url + "/"
        self._access_token = access_token
        self.timeout = timeout
        self.max_retries = max_retries

    def __repr__(self) -> str:
        return f"RestPkiClient({self.endpoint_url!r})"

    def _headers(self, has_body: bool) -> dict[str, str]:
        headers = {
            "Authorization": f"Bearer {self._access_token}",
            "Accept": "application/json",
            "User-Agent": f"restpki-python/{__version__}",
        }
        if has_body:
            headers["Content-Type"] = "application/json"
        return headers

    def _url(self, path: str) -> str:
        return urljoin(self.endpoint_url, path.lstrip("/"))

    def get(self, path: str) -> Any:
        """GET ``path`` and return the decoded JSON response."""
        url = self._url(path)
        response = http_request(
            "GET",
            url,
            headers=self._headers(has_body=False),
            timeout=self.timeout,
            max_retries=self.max_retries,
        )
        return self._check_and_decode("GET", url, response)

    def post(self, path: str, data: Any = None) -> Any:
        """POST ``data`` as JSON to ``path`` and return the decoded JSON response.

        When *data* is empty the request is sent without a body.
        """
        url = self._url(path)
        body = json.dumps(data).encode("utf-8") if data else None
        response = http_request(
            "POST",
            url,
            body=body if body is not None else b"",
            headers=self._headers(has_body=body is not None),
            timeout=self.timeout,
            max_retries=self.max_retries,
        )
        return self._check_and_decode("POST", url, response)

    def _check_and_decode(self, verb: str, url: str, response: HttpResponse) -> Any:
        if not 200 <= response.status <= 299:
            raise self._error_from_response(verb, url, response)
        try:
            return _decode_json(response.body)
        except (UnicodeDecodeError, json.JSONDecodeError) as e:
            raise RestPkiError(f"Invalid JSON in response to {verb} {url}: {e}") from e

    @staticmethod
    def _error_from_response(verb: str, url: str, response: HttpResponse) -> RestError:
        status = response.status
        try:
            model = _decode_json(response.body)
        except (UnicodeDecodeError, json.JSONDecodeError):
            _logger.debug("Undecodable error body from %s %s (HTTP %d)", verb, url, status)
            return RestHttpError(verb, url, status)

        if not isinstance(model, dict):
            return RestHttpError(verb, url, status)

        code = model.get("code")
        if status == HTTP_STATUS_UNPROCESSABLE and code:
            if code == ERROR_CODE_VALIDATION:
                results = ValidationResults.from_model(model.get("validationResults"))
                _logger.info("%s %s failed validation: %s", verb, url, results.summary())
                return ValidationError(verb, url, results)
            _logger.info("%s %s rejected with error code %s", verb, url, code)
            return RestPkiApiError(verb, url, code, model.get("detail"))

        return RestHttpError(verb, url, status, model.get("message"))

    def get_authentication(self) -> Authentication:
        """Return an :class:`~restpki.core.authentication.Authentication` bound to this client."""
        from ..core.authentication import Authentication

        return Authentication(self)

    def ping(self, timeout: int = DEFAULT_TIMEOUT_PING) -> tuple[bool, str]:
        """
        Check that the endpoint is reachable and accepts the access token.

        Never raises on REST failures.

        Returns:
            (ok, info) where *ok* is bool and *info* is a status string.
        """
        url = self._url(_PING_PATH)
        try:
            response = http_request(
                "GET", url, headers=self._headers(has_body=False), timeout=timeout, max_retries=0
            )
            self._check_and_decode("GET", url, response)
        except RestHttpError as exc:
            if exc.status_code in (401, 403):
                return False, "Access token rejected by the server"
            return False, f"Connection failed: {exc}"
        except RestPkiError as exc:
            return False, f"Connection failed: {exc}"
        return True, "REST PKI endpoint confirmed"
