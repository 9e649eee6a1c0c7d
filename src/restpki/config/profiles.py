"""
Server profiles for REST PKI endpoints.

A profile bundles the endpoint URL, request timeout and the security
context used by default when validating signatures. Built-in profiles are
defined here; other endpoints are represented as ad-hoc instances.
"""

from __future__ import annotations

__all__ = ["BUILTIN_PROFILES", "ServerProfile", "get_profile", "make_custom_profile"]

from dataclasses import dataclass
from urllib.parse import urlparse

from ..constants import DEFAULT_ENDPOINT_URL, DEFAULT_TIMEOUT
from ..core.policies import StandardSecurityContexts


@dataclass(frozen=True)
class ServerProfile:
    """Describes a REST PKI deployment."""

    name: str
    display_name: str
    url: str
    timeout: int = DEFAULT_TIMEOUT
    default_security_context: str | None = None


BUILTIN_PROFILES: dict[str, ServerProfile] = {
    "pki.rest": ServerProfile(
        name="pki.rest",
        display_name="REST PKI (pki.rest)",
        url=DEFAULT_ENDPOINT_URL,
        default_security_context=StandardSecurityContexts.PKI_BRAZIL,
    ),
}


def get_profile(name: str) -> ServerProfile:
    """
    Look up a built-in profile by name.

    Args:
        name: Profile name (case-insensitive).

    Raises:
        KeyError: If no built-in profile matches.
    """
    key = name.lower().strip()
    if key not in BUILTIN_PROFILES:
        available = ", ".join(sorted(BUILTIN_PROFILES))
        msg = f"Unknown profile {name!r}. Available: {available}"
        raise KeyError(msg)
    return BUILTIN_PROFILES[key]


def make_custom_profile(
    url: str, timeout: int = DEFAULT_TIMEOUT, security_context: str | None = None
) -> ServerProfile:
    """
    Create an ad-hoc profile for a self-hosted or alternative endpoint.

    Raises:
        ValueError: If the URL scheme or hostname is invalid.
    """
    parsed = urlparse(url)
    if parsed.scheme == "http":
        raise ValueError(
            "HTTP URLs are not supported. Use https:// to protect the access token in transit."
        )
    if parsed.scheme != "https":
        raise ValueError(f"Invalid URL scheme {parsed.scheme!r}. Use https://.")
    if not parsed.hostname:
        raise ValueError(f"Invalid URL: no hostname found in {url!r}")

    return ServerProfile(
        name="custom",
        display_name=f"Custom ({url})",
        url=url,
        timeout=timeout,
        default_security_context=security_context,
    )
