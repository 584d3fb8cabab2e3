"""Offline-first persistence: a durable key/value cache and an ordered write queue.

The manager is built once at the composition root and handed to whoever
needs it. Cache reads and writes always go through the store; the sync queue
lives in memory and is persisted on `save_sync_queue()` and after each drain.
"""
from __future__ import annotations

import json
import logging
import time
from dataclasses import asdict, dataclass
from typing import Any, Awaitable, Callable, Dict, List, Optional

from .config import Settings, get_settings
from .connectivity import ConnectivityMonitor
from .datasources.api import ApiDataProvider, Fetcher
from .datasources.base import DataProviderConfig
from .datasources.rest import HttpSyncer
from .storage import KeyValueStore, create_store

logger = logging.getLogger(__name__)

CACHE_KEY = "offline_data_cache"
QUEUE_KEY = "sync_queue"


@dataclass
class SyncQueueItem:
    key: str
    data: Any
    timestamp: float

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


Syncer = Callable[[SyncQueueItem], Awaitable[None]]


class OfflineDataManager:
    def __init__(
        self,
        store: KeyValueStore,
        connectivity: ConnectivityMonitor,
        syncer: Syncer,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self.store = store
        self.connectivity = connectivity
        self.syncer = syncer
        self.clock = clock
        self.is_online = connectivity.is_online
        self.sync_queue: List[SyncQueueItem] = []
        self._draining = False

        connectivity.subscribe("online", self.handle_online)
        connectivity.subscribe("offline", self.handle_offline)
        self._load_sync_queue()

    # ---- Connectivity ----
    async def handle_online(self) -> None:
        logger.info("Back online, syncing %d pending item(s)", len(self.sync_queue))
        self.is_online = True
        await self.sync_pending()

    def handle_offline(self) -> None:
        logger.info("Gone offline, queueing writes")
        self.is_online = False

    def is_currently_online(self) -> bool:
        return self.is_online

    # ---- Persistent cache ----
    def _get_cache(self) -> Dict[str, Dict[str, Any]]:
        stored = self.store.get(CACHE_KEY)
        if not stored:
            return {}
        try:
            cache = json.loads(stored)
        except json.JSONDecodeError:
            logger.warning("Failed to parse offline cache, starting empty")
            return {}
        return cache if isinstance(cache, dict) else {}

    def _save_cache(self, cache: Dict[str, Dict[str, Any]]) -> None:
        self.store.set(CACHE_KEY, json.dumps(cache, default=str))

    def cache_data(self, key: str, data: Any) -> None:
        cache = self._get_cache()
        cache[key] = {"data": data, "timestamp": self.clock()}
        self._save_cache(cache)

    def get_cached_data(self, key: str, max_age: Optional[float] = None) -> Any:
        """Cached value for `key`, or None; entries older than `max_age` seconds are evicted."""
        cache = self._get_cache()
        if key not in cache:
            return None
        cached = cache[key]
        timestamp = cached.get("timestamp") if isinstance(cached, dict) else None
        if not isinstance(timestamp, (int, float)) or isinstance(timestamp, bool):
            logger.warning("Evicting malformed offline cache entry: %s", key)
            del cache[key]
            self._save_cache(cache)
            return None
        if max_age is not None and self.clock() - timestamp > max_age:
            del cache[key]
            self._save_cache(cache)
            return None
        return cached.get("data")

    def invalidate_cache(self, key: str) -> None:
        cache = self._get_cache()
        if cache.pop(key, None) is not None:
            self._save_cache(cache)

    def clear_cache(self) -> None:
        self.store.remove(CACHE_KEY)
        self.sync_queue = []

    def get_cache_size(self) -> int:
        return len(self._get_cache())

    # ---- Sync queue ----
    def queue_for_sync(self, key: str, data: Any) -> None:
        self.sync_queue.append(SyncQueueItem(key=key, data=data, timestamp=self.clock()))

    def _load_sync_queue(self) -> None:
        stored = self.store.get(QUEUE_KEY)
        if not stored:
            return
        try:
            self.sync_queue = [SyncQueueItem(**raw) for raw in json.loads(stored)]
        except (json.JSONDecodeError, TypeError, KeyError) as e:
            logger.warning("Discarding unreadable sync queue: %s", e)
            self.sync_queue = []

    def save_sync_queue(self) -> None:
        self.store.set(QUEUE_KEY, json.dumps([item.to_dict() for item in self.sync_queue], default=str))

    async def sync_pending(self) -> None:
        """Drain the queue in order; stop at the first failure, leaving it at the head.

        An item leaves the queue only after its sync succeeds, so a cancelled
        drain keeps the in-flight item for the next reconnect.
        """
        if self._draining:
            return
        self._draining = True
        try:
            while self.sync_queue:
                item = self.sync_queue[0]
                logger.info("Syncing: %s", item.key)
                try:
                    await self.syncer(item)
                except Exception as e:  # noqa: BLE001
                    logger.error("Sync failed for %s: %s", item.key, e)
                    break
                # clear_cache() may have emptied the queue while the sync was awaited
                if self.sync_queue and self.sync_queue[0] is item:
                    self.sync_queue.pop(0)
        finally:
            self._draining = False
            self.save_sync_queue()

    def get_sync_queue_size(self) -> int:
        return len(self.sync_queue)


def offline_first_provider(
    fetcher: Fetcher,
    cache_key: str,
    manager: OfflineDataManager,
    config: Optional[DataProviderConfig] = None,
    **kwargs: Any,
) -> ApiDataProvider:
    """ApiDataProvider that serves `manager`'s cache while offline and writes through on success."""

    async def offline_first(params: Any = None) -> Any:
        if not manager.is_currently_online():
            cached = manager.get_cached_data(cache_key)
            if cached is not None:
                logger.info("Serving from offline cache: %s", cache_key)
                return cached
        result = await fetcher(params)
        manager.cache_data(cache_key, result)
        return result

    return ApiDataProvider(offline_first, config=config, **kwargs)


def create_offline_manager(
    settings: Optional[Settings] = None,
    store: Optional[KeyValueStore] = None,
    connectivity: Optional[ConnectivityMonitor] = None,
    syncer: Optional[Syncer] = None,
) -> OfflineDataManager:
    """Build the manager from settings; any collaborator can be supplied instead."""
    settings = settings or get_settings()
    return OfflineDataManager(
        store=store if store is not None else create_store(settings),
        connectivity=connectivity or ConnectivityMonitor(settings=settings),
        syncer=syncer or HttpSyncer(settings=settings),
    )
