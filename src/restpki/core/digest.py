"""Digest algorithms known to REST PKI."""

from __future__ import annotations

__all__ = ["DigestAlgorithm"]

import enum
import hashlib

from ..errors import RestPkiError


class DigestAlgorithm(enum.Enum):
    """Digest algorithms known to the API.

    ``api_name`` is the name used on the wire (``"SHA256"``), ``display_name``
    the conventional spelling (``"SHA-256"``).
    """

    MD5 = ("MD5", "MD5", "1.2.840.113549.2.5", "md5")
    SHA1 = ("SHA1", "SHA-1", "1.3.14.3.2.26", "sha1")
    SHA256 = ("SHA256", "SHA-256", "2.16.840.1.101.3.4.2.1", "sha256")
    SHA384 = ("SHA384", "SHA-384", "2.16.840.1.101.3.4.2.2", "sha384")
    SHA512 = ("SHA512", "SHA-512", "2.16.840.1.101.3.4.2.3", "sha512")

    def __init__(self, api_name: str, display_name: str, oid: str, hashlib_name: str) -> None:
        self.api_name = api_name
        self.display_name = display_name
        self.oid = oid
        self.hashlib_name = hashlib_name

    def __str__(self) -> str:
        return self.display_name

    @classmethod
    def from_api_name(cls, name: str) -> DigestAlgorithm:
        """Resolve an API algorithm name (``"SHA256"``).

        Raises:
            RestPkiError: If the algorithm is not supported.
        """
        for alg in cls:
            if alg.api_name == name:
                return alg
        raise RestPkiError(f"Unsupported digest algorithm: {name}")

    @classmethod
    def from_oid(cls, oid: str) -> DigestAlgorithm | None:
        """Resolve a dotted OID, returning None for unknown algorithms."""
        for alg in cls:
            if alg.oid == oid:
                return alg
        return None

    def compute(self, data: bytes) -> bytes:
        """Return the digest of *data*."""
        return hashlib.new(self.hashlib_name, data).digest()
