"""
Configuration management for restpki.

Stores the server profile and preferences in ~/.restpki/config.json.
Access token management lives in ``credentials.py``.
"""

from __future__ import annotations

__all__ = [
    "CONFIG_DIR",
    "CONFIG_FILE",
    "get_active_profile",
    "get_default_security_context",
    "get_server_config",
    "logout",
    "reset_all",
    "save_server_config",
]

import logging
import os

from ..constants import DEFAULT_TIMEOUT, ENV_TIMEOUT, ENV_URL, MAX_TIMEOUT, MIN_TIMEOUT
from ..errors import ConfigError
from ._storage import CONFIG_DIR, CONFIG_FILE, load_config, load_raw_config, save_config
from .credentials import clear_access_token, clear_session_token
from .profiles import BUILTIN_PROFILES, ServerProfile, make_custom_profile

_logger = logging.getLogger(__name__)


def _env_timeout() -> int | None:
    timeout_str = os.environ.get(ENV_TIMEOUT, "").strip()
    if not timeout_str:
        return None
    try:
        timeout = int(timeout_str)
    except ValueError:
        _logger.warning("Invalid %s value %r, using default", ENV_TIMEOUT, timeout_str)
        return DEFAULT_TIMEOUT
    if timeout < MIN_TIMEOUT or timeout > MAX_TIMEOUT:
        _logger.warning(
            "%s=%d out of range [%d, %d], using default",
            ENV_TIMEOUT,
            timeout,
            MIN_TIMEOUT,
            MAX_TIMEOUT,
        )
        return DEFAULT_TIMEOUT
    return timeout


def get_server_config() -> tuple[str | None, int | None, str | None]:
    """
    Resolve the active endpoint URL and timeout.

    Priority: env vars > config file > built-in profile.

    Returns:
        (url, timeout, profile_name) or (None, None, None) if nothing is
        configured and no env vars are set.
    """
    config = load_config()
    profile_name = config.get("profile")

    url = os.environ.get(ENV_URL, "").strip() or config.get("url", "")
    if not url and profile_name:
        profile = BUILTIN_PROFILES.get(profile_name)
        if profile:
            url = profile.url

    if not url:
        return None, None, None

    timeout = _env_timeout()
    if timeout is None:
        timeout = config.get("timeout")
    if timeout is None and profile_name in BUILTIN_PROFILES:
        timeout = BUILTIN_PROFILES[profile_name].timeout
    if timeout is None:
        timeout = DEFAULT_TIMEOUT

    return url, timeout, profile_name


def get_active_profile() -> ServerProfile | None:
    """
    Get the ServerProfile for the currently configured endpoint.

    Returns:
        ServerProfile (built-in or custom), or None if not configured.

    Raises:
        ConfigError: If the saved URL is not a valid HTTPS URL.
    """
    config = load_config()
    profile_name = config.get("profile")
    if profile_name and profile_name in BUILTIN_PROFILES:
        return BUILTIN_PROFILES[profile_name]

    url = config.get("url", "")
    if not url:
        return None
    try:
        return make_custom_profile(
            url, config.get("timeout", DEFAULT_TIMEOUT), config.get("security_context")
        )
    except ValueError as e:
        raise ConfigError(f"Invalid saved endpoint URL: {e}") from e


def get_default_security_context(endpoint_url: str | None = None) -> str | None:
    """
    Security context of the active profile, if it defines one.

    Args:
        endpoint_url: Endpoint the context is meant for. When given, the
            saved profile only applies if it points at the same endpoint.
    """
    profile = get_active_profile()
    if profile is None:
        return None
    if endpoint_url is not None and profile.url.rstrip("/") != endpoint_url.rstrip("/"):
        _logger.debug("Saved profile is for %s, not %s", profile.url, endpoint_url)
        return None
    return profile.default_security_context


def save_server_config(profile: ServerProfile) -> None:
    """Save the server profile to config."""
    config = load_raw_config()
    config["profile"] = profile.name
    config["url"] = profile.url
    config["timeout"] = profile.timeout
    if profile.default_security_context:
        config["security_context"] = profile.default_security_context
    else:
        config.pop("security_context", None)
    save_config(config)


def logout() -> None:
    """Forget the access token, keeping the server profile."""
    clear_access_token()
    clear_session_token()


def reset_all() -> None:
    """Clear the access token and the server profile."""
    clear_access_token()
    clear_session_token()
    save_config({})
