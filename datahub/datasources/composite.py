from __future__ import annotations

import logging
from typing import Any, Callable, List, Optional

from ..utils import stable_key
from .base import DataProviderConfig, DataSource, FetchResult, SourceType, T
from .engine import DataProvider

logger = logging.getLogger(__name__)


class CompositeSources:
    """Flattens the source registries of several child providers into one chain.

    Sources are the children's own objects, so a failure recorded by a child
    is visible here and vice versa. Ownership is resolved by identity, which
    keeps children with identical source ids apart.
    """

    def __init__(self) -> None:
        self.providers: List[DataProvider] = []

    def add(self, provider: DataProvider) -> None:
        self.providers.append(provider)

    def list_sources(self) -> List[DataSource]:
        sources: List[DataSource] = []
        for provider in self.providers:
            sources.extend(provider.get_sources_status())
        return sources

    def _owner(self, source: DataSource) -> Optional[DataProvider]:
        for provider in self.providers:
            if any(s is source for s in provider.get_sources_status()):
                return provider
        return None

    async def fetch_from_source(self, source: DataSource, params: Any, cache_key: str) -> Optional[T]:
        provider = self._owner(source)
        if provider is None:
            logger.warning("No child provider owns source %s", source.id)
            return None
        result = await provider.get(params)
        return result.data

    def degraded_result(self, attempted: List[DataSource], now: float) -> FetchResult[T]:
        count = len(attempted)
        error = f"No data available from {count} sources" if count > 0 else "No data available from any provider"
        source = DataSource(id="composite-fallback", name="Composite Fallback", type=SourceType.FALLBACK, priority=100)
        return FetchResult(data=None, source=source, timestamp=now, cached=False, error=error)


class CompositeDataProvider(DataProvider[T]):
    """Combines independent providers (e.g. two mirrors) behind one `get()`."""

    def __init__(
        self,
        providers: Optional[List[DataProvider]] = None,
        config: Optional[DataProviderConfig] = None,
        key_fn: Callable[[Any], str] = stable_key,
        **kwargs: Any,
    ) -> None:
        super().__init__(CompositeSources(), config=config, key_fn=key_fn, **kwargs)
        for provider in providers or []:
            self.add_provider(provider)

    def add_provider(self, provider: DataProvider) -> None:
        self.backend.add(provider)
