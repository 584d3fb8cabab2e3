from __future__ import annotations

import logging
import uuid
from typing import Dict, Optional, Set

from flask_caching import Cache

from .base import CacheEntry

logger = logging.getLogger(__name__)


class CacheFacade:
    """Thin wrapper making a provider's entry map injectable.

    Without a Flask-Caching instance entries live in a private dict. With one,
    entries are stored under a per-facade namespace so several providers can
    share a backend without seeing each other's keys. Expiry is decided by the
    engine, so entries are written without a backend timeout.

    Backend errors (an unreachable Redis, an unpicklable payload) are logged
    and turn reads into misses and writes into no-ops.
    """

    def __init__(self, cache: Optional[Cache] = None, namespace: Optional[str] = None) -> None:
        self.cache = cache
        self.namespace = namespace or uuid.uuid4().hex
        self._local: Dict[str, CacheEntry] = {}
        self._keys: Set[str] = set()

    def _ns(self, key: str) -> str:
        return f"datahub:{self.namespace}:{key}"

    def get(self, key: str) -> Optional[CacheEntry]:
        if self.cache is None:
            return self._local.get(key)
        try:
            return self.cache.get(self._ns(key))
        except Exception as e:  # noqa: BLE001
            logger.warning("Cache read failed for %s: %s", key, e)
            return None

    def set(self, key: str, entry: CacheEntry) -> None:
        if self.cache is None:
            self._local[key] = entry
            return
        try:
            self.cache.set(self._ns(key), entry, timeout=0)
        except Exception as e:  # noqa: BLE001
            logger.warning("Cache write skipped for %s: %s", key, e)
            return
        self._keys.add(key)

    def delete(self, key: str) -> None:
        if self.cache is None:
            self._local.pop(key, None)
            return
        self._keys.discard(key)
        try:
            self.cache.delete(self._ns(key))
        except Exception as e:  # noqa: BLE001
            logger.warning("Cache delete failed for %s: %s", key, e)

    def clear(self) -> None:
        if self.cache is None:
            self._local.clear()
            return
        keys, self._keys = self._keys, set()
        if not keys:
            return
        try:
            self.cache.delete_many(*(self._ns(k) for k in keys))
        except Exception as e:  # noqa: BLE001
            logger.warning("Cache clear failed: %s", e)

    def __len__(self) -> int:
        if self.cache is None:
            return len(self._local)
        return len(self._keys)
