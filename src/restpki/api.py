"""High-level convenience API.

:func:`get_client` builds a :class:`~restpki.network.client.RestPkiClient`
from explicit arguments, environment variables or the configuration saved
by ``restpki setup``. :func:`open_pades_signature` and
:func:`open_cades_signature` wrap the explorers for one-shot inspection.

For lower-level control, instantiate the starters, finishers and
explorers in :mod:`restpki.core` directly.
"""

from __future__ import annotations

__all__ = ["get_client", "open_cades_signature", "open_pades_signature"]

import logging

from .config import (
    get_active_profile,
    get_default_security_context,
    get_server_config,
    resolve_access_token,
)
from .config.profiles import ServerProfile, get_profile, make_custom_profile
from .constants import DEFAULT_TIMEOUT
from .core.explorers import CadesSignatureExplorer, PadesSignatureExplorer
from .core.models import SignatureInfo
from .errors import ConfigError
from .network.client import RestPkiClient

_logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Private resolution helpers
# ---------------------------------------------------------------------------


def _resolve_profile(profile: str | None, url: str | None) -> ServerProfile | None:
    """Resolve a ServerProfile from explicit args or saved config.

    Priority:
        1. ``profile`` name -> built-in profile lookup.
        2. ``url`` -> ad-hoc custom profile.
        3. Saved config via :func:`get_active_profile`.
    """
    if profile is not None and url is not None:
        raise ConfigError("Cannot specify both 'profile' and 'url'. Use one or the other.")
    if profile is not None:
        try:
            return get_profile(profile)
        except KeyError as e:
            raise ConfigError(str(e.args[0])) from e
    if url is not None:
        try:
            return make_custom_profile(url)
        except ValueError as e:
            raise ConfigError(str(e)) from e
    return get_active_profile()


def _resolve_url_and_timeout(
    profile_obj: ServerProfile | None,
    explicit: bool,
    explicit_timeout: int | None,
) -> tuple[str, int]:
    """Resolve final URL and timeout values.

    Without an explicit profile or URL, env vars and saved config win over
    the profile defaults.

    Raises:
        ConfigError: If no URL can be determined from any source.
    """
    url: str | None = None
    timeout = explicit_timeout
    if explicit and profile_obj is not None:
        url = profile_obj.url
        if timeout is None:
            timeout = profile_obj.timeout
    else:
        config_url, config_timeout, _ = get_server_config()
        url = config_url
        if timeout is None:
            timeout = config_timeout

    if not url:
        raise ConfigError(
            "No REST PKI endpoint configured. "
            "Pass url='https://...' or profile='pki.rest', "
            "or run `restpki setup` to save a profile."
        )
    return url, timeout if timeout is not None else DEFAULT_TIMEOUT


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------


def get_client(
    *,
    url: str | None = None,
    access_token: str | None = None,
    profile: str | None = None,
    timeout: int | None = None,
) -> RestPkiClient:
    """Build an API client.

    Endpoint resolution (first match wins):
        1. ``profile="pki.rest"`` -- a built-in server profile.
        2. ``url="https://..."`` -- a custom endpoint.
        3. ``RESTPKI_URL`` or the configuration saved by ``restpki setup``.

    The access token comes from *access_token*, then ``RESTPKI_ACCESS_TOKEN``,
    then the system keychain.

    Raises:
        ConfigError: If no endpoint or no access token can be resolved.
    """
    explicit = profile is not None or url is not None
    profile_obj = _resolve_profile(profile, url)
    resolved_url, resolved_timeout = _resolve_url_and_timeout(profile_obj, explicit, timeout)

    token = access_token or resolve_access_token(resolved_url)
    if not token:
        raise ConfigError(
            "No access token configured. "
            "Pass access_token=..., set RESTPKI_ACCESS_TOKEN, or run `restpki setup`."
        )
    _logger.debug("Using endpoint %s (timeout=%ds)", resolved_url, resolved_timeout)
    return RestPkiClient(resolved_url, token, timeout=resolved_timeout)


def open_pades_signature(
    pdf_bytes: bytes,
    *,
    client: RestPkiClient | None = None,
    validate: bool = True,
    signature_policy_id: str | None = None,
    security_context_id: str | None = None,
) -> SignatureInfo:
    """Open a signed PDF on the server and return its signers.

    Args:
        pdf_bytes: Signed PDF content.
        client: API client; built with :func:`get_client` if ``None``.
        validate: Whether to validate each signature.
        signature_policy_id: Default signature policy for validation.
        security_context_id: Security context; defaults to the profile's.
    """
    client = client or get_client()
    explorer = PadesSignatureExplorer(client)
    _configure_explorer(
        explorer, client, pdf_bytes, validate, signature_policy_id, security_context_id
    )
    return explorer.open()


def open_cades_signature(
    cms_bytes: bytes,
    *,
    data_file: bytes | None = None,
    client: RestPkiClient | None = None,
    validate: bool = True,
    signature_policy_id: str | None = None,
    security_context_id: str | None = None,
) -> SignatureInfo:
    """Open a CMS (``.p7s``) file on the server and return its signers.

    For detached signatures pass the signed content as *data_file*; only
    its digests are sent.
    """
    client = client or get_client()
    explorer = CadesSignatureExplorer(client)
    explorer.data_file = data_file
    _configure_explorer(
        explorer, client, cms_bytes, validate, signature_policy_id, security_context_id
    )
    return explorer.open()


def _configure_explorer(
    explorer: PadesSignatureExplorer | CadesSignatureExplorer,
    client: RestPkiClient,
    content: bytes,
    validate: bool,
    signature_policy_id: str | None,
    security_context_id: str | None,
) -> None:
    explorer.signature_file = content
    explorer.validate = validate
    explorer.default_signature_policy_id = signature_policy_id
    if security_context_id is None:
        security_context_id = get_default_security_context(client.endpoint_url)
    explorer.security_context_id = security_context_id
