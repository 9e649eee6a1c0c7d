"""
Configuration and server profile management.

Import from this package rather than from the individual submodules
(config, credentials, profiles).
"""

from __future__ import annotations

from .config import (
    CONFIG_FILE,
    get_active_profile,
    get_default_security_context,
    get_server_config,
    logout,
    reset_all,
    save_server_config,
)
from .credentials import (
    clear_access_token,
    clear_session_token,
    get_access_token,
    get_token_storage_info,
    is_keyring_available,
    resolve_access_token,
    save_access_token,
    set_session_token,
)
from .profiles import BUILTIN_PROFILES, ServerProfile, get_profile, make_custom_profile

__all__ = [
    "BUILTIN_PROFILES",
    "CONFIG_FILE",
    "ServerProfile",
    "clear_access_token",
    "clear_session_token",
    "get_access_token",
    "get_active_profile",
    "get_default_security_context",
    "get_profile",
    "get_server_config",
    "get_token_storage_info",
    "is_keyring_available",
    "logout",
    "make_custom_profile",
    "reset_all",
    "resolve_access_token",
    "save_access_token",
    "save_server_config",
    "set_session_token",
]
