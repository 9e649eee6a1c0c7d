"""Well-known security contexts, signature policies and XML signing options."""

from __future__ import annotations

__all__ = [
    "StandardSecurityContexts",
    "StandardSignaturePolicies",
    "StandardSignaturePolicyCatalog",
    "XmlIdResolutionTable",
    "XmlInsertionOption",
]

import enum
from typing import Any


class StandardSecurityContexts:
    PKI_BRAZIL = "201856ce-273c-4058-a872-8937bd547d36"
    PKI_ITALY = "c438b17e-4862-446b-86ad-6f85734f0bfe"
    WINDOWS_SERVER = "3881384c-a54d-45c5-bbe9-976b674f5ec7"


class StandardSignaturePolicies:
    PADES_BASIC = "78d20b33-014d-440e-ad07-929f05d00cdf"
    PADES_BASIC_WITH_ICPBR_CERTS = "3fec800c-366c-49bf-82c5-2e72154e70f6"
    PADES_T_WITH_ICPBR_CERTS = "6a39aeea-a2d0-4754-bf8c-19da15296ddb"
    PADES_ICPBR_ADR_BASICA = "531d5012-4c0d-4b6f-89e8-ebdcc605d7c2"
    PADES_ICPBR_ADR_TEMPO = "10f0d9a5-a0a9-42e9-9523-e181ce05a25b"

    CADES_BES = "a4522485-c9e5-46c3-950b-0d6e951e17d1"
    CADES_ICPBR_ADR_BASICA = "3ddd8001-1672-4eb5-a4a2-6e32b17ddc46"
    CADES_ICPBR_ADR_TEMPO = "a5332ad1-d105-447c-a4bb-b5d02177e439"
    CADES_ICPBR_ADR_VALIDACAO = "92378630-dddf-45eb-8296-8fee0b73d5bb"
    CADES_ICPBR_ADR_COMPLETA = "30d881e7-924a-4a14-b5cc-d5a1717d92f6"

    XML_XADES_BES = "1beba282-d1b6-4458-8e46-bd8ad6800b54"
    XML_DSIG_BASIC = "2bb5d8c9-49ba-4c62-8104-8141f6459d08"
    XML_ICPBR_NFE_PADRAO_NACIONAL = "a3c24251-d43a-4ba4-b25d-ee8e2ab24f06"
    XML_ICPBR_ADR_BASICA = "1cf5db62-58b6-40ba-88a3-d41bada9b621"
    XML_ICPBR_ADR_TEMPO = "5aa2e0af-5269-43b0-8d45-f4ef52921f04"


class StandardSignaturePolicyCatalog:
    """Lists of policies an explorer may accept as explicit policies.

    Passing one of these catalogs to
    :attr:`~restpki.core.explorers.SignatureExplorer.acceptable_explicit_policies`
    without a default policy restricts validation to those policies.
    """

    @staticmethod
    def pki_brazil_cades() -> list[str]:
        return [
            StandardSignaturePolicies.CADES_ICPBR_ADR_BASICA,
            StandardSignaturePolicies.CADES_ICPBR_ADR_TEMPO,
            StandardSignaturePolicies.CADES_ICPBR_ADR_COMPLETA,
        ]

    @staticmethod
    def pki_brazil_cades_with_signer_certificate_protection() -> list[str]:
        """Policies whose signatures survive revocation/expiry of the signer certificate."""
        return [
            StandardSignaturePolicies.CADES_ICPBR_ADR_TEMPO,
            StandardSignaturePolicies.CADES_ICPBR_ADR_COMPLETA,
        ]

    @staticmethod
    def pki_brazil_cades_with_ca_certificate_protection() -> list[str]:
        """Policies whose signatures also survive revocation/expiry of the CA certificate."""
        return [StandardSignaturePolicies.CADES_ICPBR_ADR_COMPLETA]

    @staticmethod
    def pki_brazil_pades() -> list[str]:
        return [
            StandardSignaturePolicies.PADES_ICPBR_ADR_BASICA,
            StandardSignaturePolicies.PADES_ICPBR_ADR_TEMPO,
        ]

    @staticmethod
    def pki_brazil_pades_with_signer_certificate_protection() -> list[str]:
        return [StandardSignaturePolicies.PADES_ICPBR_ADR_TEMPO]


class XmlInsertionOption(str, enum.Enum):
    """Where the signature element goes relative to the located node."""

    APPEND_CHILD = "AppendChild"
    PREPEND_CHILD = "PrependChild"
    APPEND_SIBLING = "AppendSibling"
    PREPEND_SIBLING = "PrependSibling"


class XmlIdResolutionTable:
    """Tells the server which attributes hold element ids in a custom XML schema."""

    def __init__(self, include_xml_id_global_attribute: bool | None = None) -> None:
        self.include_xml_id_global_attribute = include_xml_id_global_attribute
        self._global_id_attributes: list[dict[str, str | None]] = []
        self._element_id_attributes: list[dict[str, dict[str, str | None]]] = []

    def add_global_id_attribute(
        self, id_attribute_local_name: str, id_attribute_namespace: str | None = None
    ) -> None:
        self._global_id_attributes.append(
            {"localName": id_attribute_local_name, "namespace": id_attribute_namespace}
        )

    def set_element_id_attribute(
        self,
        element_local_name: str,
        element_namespace: str | None,
        id_attribute_local_name: str,
        id_attribute_namespace: str | None = None,
    ) -> None:
        self._element_id_attributes.append(
            {
                "element": {"localName": element_local_name, "namespace": element_namespace},
                "attribute": {
                    "localName": id_attribute_local_name,
                    "namespace": id_attribute_namespace,
                },
            }
        )

    def to_model(self) -> dict[str, Any]:
        return {
            "elementIdAttributes": list(self._element_id_attributes),
            "globalIdAttributes": list(self._global_id_attributes),
            "includeXmlIdAttribute": self.include_xml_id_global_attribute,
        }
