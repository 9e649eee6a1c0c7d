"""
On-disk storage for ~/.restpki/config.json.

The file holds the server profile and, when no keychain is available,
the REST PKI access token in plaintext. It is only ever written whole,
through a 0600 temp file renamed into place inside a 0700 directory.
"""

from __future__ import annotations

__all__ = [
    "CONFIG_DIR",
    "CONFIG_FILE",
    "load_config",
    "load_raw_config",
    "save_config",
]

import json
import logging
import os
import tempfile
from pathlib import Path
from typing import Any, TypedDict, cast

from ..constants import MAX_TIMEOUT, MIN_TIMEOUT

_logger = logging.getLogger(__name__)

CONFIG_DIR = Path.home() / ".restpki"
CONFIG_FILE = CONFIG_DIR / "config.json"


class ConfigDict(TypedDict, total=False):
    """Known keys of config.json."""

    profile: str
    url: str
    timeout: int
    security_context: str
    access_token: str


_STR_KEYS = ("profile", "url", "security_context", "access_token")


def load_raw_config() -> dict[str, object]:
    """Read config.json as-is; missing, unreadable or corrupt files read as empty.

    Callers that modify one key load this, change it and pass it back to
    :func:`save_config`, so keys written by other versions are kept.
    """
    try:
        data: Any = json.loads(CONFIG_FILE.read_text(encoding="utf-8"))
        if isinstance(data, dict):
            return cast("dict[str, object]", data)
    except FileNotFoundError:
        pass
    except json.JSONDecodeError as e:
        _logger.warning("Config file corrupted, ignoring: %s", e)
    except OSError as e:
        _logger.warning("Cannot read config file: %s", e)
    return {}


def _valid_timeout(value: object) -> int | None:
    if not isinstance(value, int) or isinstance(value, bool):
        return None
    if not MIN_TIMEOUT <= value <= MAX_TIMEOUT:
        _logger.warning(
            "Config timeout=%d out of range [%d, %d], ignoring", value, MIN_TIMEOUT, MAX_TIMEOUT
        )
        return None
    return value


def _validate_config_dict(data: dict[str, object]) -> ConfigDict:
    """Keep non-empty strings for the string keys and an in-range timeout."""
    result: ConfigDict = {}
    for key in _STR_KEYS:
        val = data.get(key)
        if isinstance(val, str) and val:
            result[key] = val  # type: ignore[literal-required]  # dynamic key from known set
    timeout = _valid_timeout(data.get("timeout"))
    if timeout is not None:
        result["timeout"] = timeout
    return result


def load_config() -> ConfigDict:
    """Load config.json, returning only known keys with the expected types."""
    return _validate_config_dict(load_raw_config())


def _restrict(path: Path, mode: int) -> None:
    if os.name == "nt":
        return
    try:
        path.chmod(mode)
    except OSError:
        _logger.warning(
            "Failed to restrict permissions on %s; a saved access token may be exposed", path
        )


def save_config(config: dict[str, object]) -> None:
    """Replace config.json with *config* (file 0600, directory 0700)."""
    CONFIG_DIR.mkdir(parents=True, exist_ok=True, mode=0o700)
    _restrict(CONFIG_DIR, 0o700)
    content = json.dumps(config, indent=2, ensure_ascii=False) + "\n"
    fd, tmp_path = tempfile.mkstemp(dir=CONFIG_DIR, suffix=".tmp")
    tmp = Path(tmp_path)
    try:
        with os.fdopen(fd, "w", encoding="utf-8") as f:
            fd = -1
            f.write(content)
            f.flush()
            os.fsync(f.fileno())
        _restrict(tmp, 0o600)
        tmp.replace(CONFIG_FILE)
    except BaseException:
        if fd >= 0:
            os.close(fd)
        tmp.unlink(missing_ok=True)
        raise
