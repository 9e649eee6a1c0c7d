"""Signature workflows and the value objects exchanged with REST PKI."""

from __future__ import annotations

from .authentication import Authentication
from .digest import DigestAlgorithm
from .explorers import CadesSignatureExplorer, PadesSignatureExplorer, SignatureExplorer
from .finishers import (
    CadesSignatureFinisher,
    PadesSignatureFinisher,
    SignatureFinisher,
    XmlSignatureFinisher,
)
from .models import CertificateInfo, SignatureInfo, SignerInfo
from .presets import PadesVisualPositioningPresets
from .starters import (
    CadesSignatureStarter,
    ClientSideSignatureInstructions,
    FullXmlSignatureStarter,
    PadesSignatureStarter,
    SignatureStarter,
    XmlElementSignatureStarter,
)
from .validation import ValidationItem, ValidationResults

__all__ = [
    "Authentication",
    "CadesSignatureExplorer",
    "CadesSignatureFinisher",
    "CadesSignatureStarter",
    "CertificateInfo",
    "ClientSideSignatureInstructions",
    "DigestAlgorithm",
    "FullXmlSignatureStarter",
    "PadesSignatureExplorer",
    "PadesSignatureFinisher",
    "PadesSignatureStarter",
    "PadesVisualPositioningPresets",
    "SignatureExplorer",
    "SignatureFinisher",
    "SignatureInfo",
    "SignatureStarter",
    "SignerInfo",
    "ValidationItem",
    "ValidationResults",
    "XmlElementSignatureStarter",
    "XmlSignatureFinisher",
]
