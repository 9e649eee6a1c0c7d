"""Certificate authentication: prove possession of a certificate's private key."""

from __future__ import annotations

__all__ = ["Authentication"]

import logging
from typing import TYPE_CHECKING

from ..errors import ParameterError, RestPkiError, StateError
from .models import CertificateInfo
from .validation import ValidationResults

if TYPE_CHECKING:
    from ..network.client import RestPkiClient

_logger = logging.getLogger(__name__)


class Authentication:
    """Two-step authentication handshake with the Web PKI component.

    ``start_with_webpki`` returns a token carrying a nonce that the browser
    signs; ``complete_with_webpki`` lets the server check the signature and
    the certificate against the security context.
    """

    def __init__(self, client: RestPkiClient) -> None:
        self._client = client
        self._certificate: CertificateInfo | None = None
        self._done = False

    def start_with_webpki(self, security_context_id: str) -> str:
        if not security_context_id:
            raise ParameterError("The security context was not set")
        response = self._client.post(
            "Api/Authentications", {"securityContextId": security_context_id}
        )
        token = response.get("token") if isinstance(response, dict) else None
        if not token:
            raise RestPkiError("Server response did not include an authentication token.")
        return token

    def complete_with_webpki(self, token: str) -> ValidationResults:
        """Finish the authentication.

        Returns:
            Validation results of the certificate; the user is authenticated
            only when ``is_valid`` is True.
        """
        if not token:
            raise ParameterError("The token was not set")
        response = self._client.post(f"Api/Authentications/{token}/Finalize")
        if not isinstance(response, dict):
            raise RestPkiError("Unexpected response to authentication finalize.")
        self._certificate = CertificateInfo.from_optional(response.get("certificate"))
        self._done = True
        results = ValidationResults.from_model(response.get("validationResults"))
        _logger.info("Authentication completed: %s", results.summary())
        return results

    @property
    def certificate(self) -> CertificateInfo | None:
        if not self._done:
            raise StateError("certificate can only be read after calling complete_with_webpki()")
        return self._certificate
