from .connectivity import ConnectivityMonitor
from .datasources import (
    ApiDataProvider,
    CompositeDataProvider,
    DataProvider,
    DataProviderConfig,
    DataSource,
    FetchResult,
    RestFetcher,
    SourceType,
)
from .errors import DataHubError, FetchError, SyncError
from .offline import OfflineDataManager, SyncQueueItem, create_offline_manager, offline_first_provider
from .storage import JsonFileStore, KeyValueStore, MemoryStore, SqlStore, create_store

__all__ = [
    "ApiDataProvider",
    "CompositeDataProvider",
    "ConnectivityMonitor",
    "DataHubError",
    "DataProvider",
    "DataProviderConfig",
    "DataSource",
    "FetchError",
    "FetchResult",
    "JsonFileStore",
    "KeyValueStore",
    "MemoryStore",
    "OfflineDataManager",
    "RestFetcher",
    "SourceType",
    "SqlStore",
    "SyncError",
    "SyncQueueItem",
    "create_offline_manager",
    "create_store",
    "offline_first_provider",
]
