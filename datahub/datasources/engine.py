"""Multi-source fetch engine.

`DataProvider.get()` walks a backend's sources in ascending priority, caches
the first success, falls back to a fresh-enough cache entry, and otherwise
returns a degraded result. It never raises.
"""
from __future__ import annotations

import logging
import time
from typing import Any, Callable, Generic, List, Optional

from flask_caching import Cache

from ..utils import stable_key
from .base import (
    CacheEntry,
    DataProviderConfig,
    DataSource,
    FetchResult,
    SourceBackend,
    T,
    cache_source,
    error_source,
)
from .cache import CacheFacade

logger = logging.getLogger(__name__)

# handed to backends when params have no usable cache key
UNKEYED = "unkeyed"


class DataProvider(Generic[T]):
    """Orchestrates ordered attempts across the sources of one backend."""

    def __init__(
        self,
        backend: SourceBackend[T],
        config: Optional[DataProviderConfig] = None,
        key_fn: Callable[[Any], str] = stable_key,
        cache: Optional[Cache] = None,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self.backend = backend
        self.config = config or DataProviderConfig()
        self.key_fn = key_fn
        self.cache = CacheFacade(cache)
        self.clock = clock

    # ---- Orchestration ----
    async def get(self, params: Any = None) -> FetchResult[T]:
        key = self._key(params)
        now = self.clock()
        self._reopen_due(now)

        sources = sorted(self.backend.list_sources(), key=lambda s: s.priority)
        attempted: List[DataSource] = []

        for source in sources:
            if not source.available:
                logger.warning("Source %s is not available, skipping", source.name)
                continue
            if attempted and not self.config.fallback_enabled:
                break

            attempted.append(source)
            data = await self._attempt(source, params, key if key is not None else UNKEYED)
            if data is not None:
                ts = self.clock()
                if key is not None:
                    self.cache.set(key, CacheEntry(data=data, timestamp=ts))
                source.last_sync = ts
                return FetchResult(data=data, source=source, timestamp=ts, cached=False)

        entry = self._get_cached(key) if key is not None else None
        if entry is not None:
            logger.info("All sources exhausted for %s, serving cached entry", key)
            return FetchResult(data=entry.data, source=cache_source(), timestamp=entry.timestamp, cached=True)

        if self.config.graceful_degradation:
            return self.backend.degraded_result(attempted, self.clock())

        return FetchResult(
            data=None,
            source=error_source(),
            timestamp=self.clock(),
            cached=False,
            error="All data sources failed",
        )

    async def _attempt(self, source: DataSource, params: Any, key: str) -> Optional[T]:
        """Try one source up to 1 + max_retries times; close it if every try raises."""
        last_error: Optional[str] = None
        for _ in range(self.config.max_retries + 1):
            try:
                data = await self.backend.fetch_from_source(source, params, key)
            except Exception as e:  # noqa: BLE001
                last_error = str(e) or e.__class__.__name__
                logger.error("Failed to fetch from %s: %s", source.name, last_error)
                continue
            source.failures = 0
            source.error = None
            source.retry_at = None
            return data

        self._close(source, last_error)
        return None

    # ---- Circuit handling ----
    def _close(self, source: DataSource, message: Optional[str]) -> None:
        source.available = False
        source.error = message
        source.failures += 1
        if self.config.reopen_after is not None:
            delay = min(self.config.reopen_after * 2 ** (source.failures - 1), self.config.reopen_max)
            source.retry_at = self.clock() + delay

    def _reopen_due(self, now: float) -> None:
        if self.config.reopen_after is None:
            return
        for source in self.backend.list_sources():
            if not source.available and source.retry_at is not None and source.retry_at <= now:
                logger.info("Reopening source %s after backoff", source.name)
                source.available = True
                source.retry_at = None

    # ---- Cache ----
    def _key(self, params: Any) -> Optional[str]:
        try:
            return self.key_fn(params)
        except Exception as e:  # noqa: BLE001
            logger.warning("Cache key derivation failed, fetching uncached: %s", e)
            return None

    def _get_cached(self, key: str) -> Optional[CacheEntry[T]]:
        entry = self.cache.get(key)
        if not isinstance(entry, CacheEntry):
            return None
        if self.clock() - entry.timestamp > self.config.cache_timeout:
            self.cache.delete(key)
            return None
        return entry

    def invalidate_cache(self, params: Any = None) -> None:
        key = self._key(params)
        if key is not None:
            self.cache.delete(key)

    def clear_cache(self) -> None:
        self.cache.clear()

    # ---- Source registry ----
    def update_source_status(self, source_id: str, available: bool) -> None:
        for source in self.backend.list_sources():
            if source.id == source_id:
                source.available = available
                if available:
                    source.retry_at = None
                return

    def get_sources_status(self) -> List[DataSource]:
        return self.backend.list_sources()
