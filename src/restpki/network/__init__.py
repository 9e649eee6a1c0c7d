"""HTTP transport and the REST PKI API client."""

from __future__ import annotations

from .client import RestPkiClient
from .transport import HttpResponse, http_request

__all__ = ["HttpResponse", "RestPkiClient", "http_request"]
