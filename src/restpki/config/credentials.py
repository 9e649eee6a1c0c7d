"""
Access token management for restpki.

The token is stored in the system keychain (keyring) under the endpoint
URL, falling back to the config file when no keychain backend works.
"""

from __future__ import annotations

__all__ = [
    "clear_access_token",
    "clear_session_token",
    "get_access_token",
    "get_token_storage_info",
    "is_keyring_available",
    "resolve_access_token",
    "save_access_token",
    "set_session_token",
]

import logging
import os
import threading

import keyring
from keyring.errors import KeyringError

from ..constants import ENV_TOKEN
from ._storage import CONFIG_FILE, load_config, load_raw_config, save_config

_logger = logging.getLogger(__name__)

# Keyring service name; the account name is the endpoint URL
_KEYRING_SERVICE = "restpki"

# Tests switch this off to keep the real keychain untouched
_keyring_available = True

# Session-level token cache (not persisted to disk), set by the setup
# wizard when the user chooses not to save the token.
_session_lock = threading.Lock()
_session_token: str | None = None


def set_session_token(token: str) -> None:
    """Cache the access token in memory for the current process."""
    global _session_token
    with _session_lock:
        _session_token = token


def clear_session_token() -> None:
    global _session_token
    with _session_lock:
        _session_token = None


def is_keyring_available() -> bool:
    """Check if secure keyring storage is available."""
    return _keyring_available


def get_token_storage_info() -> str:
    """Return a human-readable description of where the token is stored."""
    if _keyring_available:
        backend = keyring.get_keyring()
        module = type(backend).__module__ or ""
        if "macOS" in module:
            return "macOS Keychain"
        if "Windows" in module or "WinVault" in module:
            return "Windows Credential Manager"
        if "SecretService" in module:
            return "Linux Secret Service"
        if "KWallet" in module:
            return "KDE Wallet"
        return f"System keychain ({type(backend).__name__})"
    return f"{CONFIG_FILE} (plaintext)"


def _keyring_delete(account: str) -> None:
    """Delete a keyring entry (best-effort)."""
    if not _keyring_available or not account:
        return
    try:
        keyring.delete_password(_KEYRING_SERVICE, account)
        _logger.debug("Deleted keyring entry")
    except KeyringError:
        pass  # entry doesn't exist
    except (OSError, RuntimeError) as e:
        _logger.debug("Keyring delete failed: %s", e)


def get_access_token(url: str) -> str | None:
    """
    Get the saved access token for the endpoint *url*.

    Looks in the system keychain first, then in the config file.
    """
    if _keyring_available:
        try:
            token = keyring.get_password(_KEYRING_SERVICE, url)
        except KeyringError as e:
            _logger.debug("Keyring read failed, trying config file: %s", e)
        except (OSError, RuntimeError) as e:
            _logger.debug("Keyring backend error, trying config file: %s", e)
        else:
            if token:
                _logger.debug("get_access_token: found token in keyring")
                return token

    token = load_config().get("access_token")
    if token:
        _logger.debug("get_access_token: found token in config file (plaintext)")
        return token
    return None


def resolve_access_token(url: str | None) -> str:
    """Resolve the access token.

    Priority: env var > session cache > saved token.

    Returns:
        The token, or an empty string if none is configured.
    """
    token = os.environ.get(ENV_TOKEN, "").strip()
    source = "env"
    if not token:
        with _session_lock:
            token = _session_token or ""
        source = "session"
    if not token and url:
        token = get_access_token(url) or ""
        source = "saved"
    _logger.debug("resolve_access_token: has_token=%s, source=%s", bool(token), source)
    return token


def save_access_token(url: str, token: str) -> bool:
    """
    Save the access token for the endpoint *url*.

    Returns:
        True if the token went to the system keychain, False if it fell
        back to the config file (plaintext, chmod 600).
    """
    config = load_raw_config()
    if _keyring_available:
        try:
            keyring.set_password(_KEYRING_SERVICE, url, token)
        except KeyringError as e:
            _logger.warning("Keyring save failed, using config file: %s", e)
        except (OSError, RuntimeError) as e:
            _logger.warning("Keyring backend error, using config file: %s", e)
        else:
            if config.pop("access_token", None) is not None:
                save_config(config)
            return True

    _logger.warning("Access token will be saved in plaintext (%s)", CONFIG_FILE)
    config["access_token"] = token
    save_config(config)
    return False


def clear_access_token(url: str | None = None) -> None:
    """Remove the saved access token from all storage backends."""
    config = load_raw_config()
    account = url or config.get("url")
    if isinstance(account, str):
        _keyring_delete(account)
    if config.pop("access_token", None) is not None:
        save_config(config)
    _logger.info("Cleared saved access token")
