"""
restpki -- Python client for the REST PKI signature service.

Creates and validates PAdES, CAdES and XML signatures and performs
certificate authentication through a REST PKI endpoint. Private keys
never leave the caller: the service prepares the data to sign and
assembles the final signature.
"""

from __future__ import annotations

from .api import get_client, open_cades_signature, open_pades_signature
from .constants import __version__
from .core import (
    Authentication,
    CadesSignatureExplorer,
    CadesSignatureFinisher,
    CadesSignatureStarter,
    DigestAlgorithm,
    FullXmlSignatureStarter,
    PadesSignatureExplorer,
    PadesSignatureFinisher,
    PadesSignatureStarter,
    PadesVisualPositioningPresets,
    ValidationResults,
    XmlElementSignatureStarter,
    XmlSignatureFinisher,
)
from .core.policies import (
    StandardSecurityContexts,
    StandardSignaturePolicies,
    StandardSignaturePolicyCatalog,
)
from .errors import (
    CertificateError,
    ConfigError,
    ParameterError,
    RestError,
    RestHttpError,
    RestPkiApiError,
    RestPkiError,
    RestUnreachableError,
    StateError,
    ValidationError,
)
from .network.client import RestPkiClient

__all__ = [
    "Authentication",
    "CadesSignatureExplorer",
    "CadesSignatureFinisher",
    "CadesSignatureStarter",
    "CertificateError",
    "ConfigError",
    "DigestAlgorithm",
    "FullXmlSignatureStarter",
    "PadesSignatureExplorer",
    "PadesSignatureFinisher",
    "PadesSignatureStarter",
    "PadesVisualPositioningPresets",
    "ParameterError",
    "RestError",
    "RestHttpError",
    "RestPkiApiError",
    "RestPkiClient",
    "RestPkiError",
    "RestUnreachableError",
    "StandardSecurityContexts",
    "StandardSignaturePolicies",
    "StandardSignaturePolicyCatalog",
    "StateError",
    "ValidationError",
    "ValidationResults",
    "XmlElementSignatureStarter",
    "XmlSignatureFinisher",
    "__version__",
    "get_client",
    "open_cades_signature",
    "open_pades_signature",
]
