"""Server-provided positioning presets for PAdES visual representations."""

from __future__ import annotations

__all__ = ["PadesVisualPositioningPresets"]

import logging
import threading
from typing import TYPE_CHECKING, Any, ClassVar
from urllib.parse import urlencode

if TYPE_CHECKING:
    from ..network.client import RestPkiClient

_logger = logging.getLogger(__name__)


class PadesVisualPositioningPresets:
    """Fetches and caches positioning presets.

    Presets never change for a given endpoint, so each one is fetched once
    per process and endpoint.
    """

    _cache: ClassVar[dict[tuple[str, str], Any]] = {}
    _lock: ClassVar[threading.Lock] = threading.Lock()

    @classmethod
    def get_footnote(
        cls,
        client: RestPkiClient,
        page_number: int | None = None,
        rows: int | None = None,
    ) -> Any:
        """Signature box in the page footer, stacking one row per signer."""
        params: dict[str, int] = {}
        if page_number:
            params["pageNumber"] = page_number
        if rows:
            params["rows"] = rows
        segment = "Footnote"
        if params:
            segment += "?" + urlencode(params)
        return cls._get_preset(client, segment)

    @classmethod
    def get_new_page(cls, client: RestPkiClient) -> Any:
        """Signature boxes on a page appended to the document."""
        return cls._get_preset(client, "NewPage")

    @classmethod
    def clear_cache(cls) -> None:
        with cls._lock:
            cls._cache.clear()

    @classmethod
    def _get_preset(cls, client: RestPkiClient, segment: str) -> Any:
        key = (client.endpoint_url, segment)
        with cls._lock:
            if key in cls._cache:
                return cls._cache[key]
        preset = client.get(f"Api/PadesVisualPositioningPresets/{segment}")
        _logger.debug("Fetched positioning preset %s", segment)
        with cls._lock:
            cls._cache[key] = preset
        return preset
