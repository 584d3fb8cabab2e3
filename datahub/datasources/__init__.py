"""Data layer package: the fetch engine and its source backends.

Public exports:
- DataProvider engine and its value types
- ApiDataProvider, CompositeDataProvider
- CacheFacade
- RestFetcher, HttpSyncer
"""
from .base import CacheEntry, DataProviderConfig, DataSource, FetchResult, SourceBackend, SourceType
from .cache import CacheFacade
from .engine import DataProvider
from .api import ApiDataProvider
from .composite import CompositeDataProvider
from .rest import HttpSyncer, RestFetcher, rest_fetchers

__all__ = [
    "CacheEntry",
    "DataProviderConfig",
    "DataSource",
    "FetchResult",
    "SourceBackend",
    "SourceType",
    "CacheFacade",
    "DataProvider",
    "ApiDataProvider",
    "CompositeDataProvider",
    "HttpSyncer",
    "RestFetcher",
    "rest_fetchers",
]
