from __future__ import annotations

import threading
from typing import Any, Optional

from product_catalog.core.logging import get_logger

logger = get_logger(__name__)

ACTIVE_PRODUCTS_VIEW = "products:active"


class ViewCache:
    """
    In-process snapshots of rendered views, keyed by view name.

    ``invalidate`` is fire-and-forget: the next ``get`` of that key misses and the
    view is recomputed by the caller. Each invalidation also bumps the key's
    generation, so a snapshot computed before it can be refused with
    ``set_if_fresh``.
    """

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._views: dict[str, Any] = {}
        self._generations: dict[str, int] = {}

    def get(self, key: str) -> Optional[Any]:
        with self._lock:
            return self._views.get(key)

    def generation(self, key: str) -> int:
        with self._lock:
            return self._generations.get(key, 0)

    def set(self, key: str, value: Any) -> None:
        with self._lock:
            self._views[key] = value

    def set_if_fresh(self, key: str, value: Any, generation: int) -> bool:
        """Store ``value`` only if ``key`` was not invalidated since ``generation`` was read."""
        with self._lock:
            if self._generations.get(key, 0) != generation:
                logger.debug("View %s changed while it was computed; snapshot discarded", key)
                return False
            self._views[key] = value
            return True

    def invalidate(self, key: str) -> None:
        with self._lock:
            self._generations[key] = self._generations.get(key, 0) + 1
            dropped = self._views.pop(key, None) is not None
        logger.debug("View %s invalidated (snapshot dropped=%s)", key, dropped)
