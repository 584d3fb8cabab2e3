import os
from typing import Any, Dict, List, Optional

import pytest

# Ensure a predictable environment before importing the package
os.environ.setdefault("PORT", "8060")
os.environ.setdefault("DEBUG", "0")
os.environ.setdefault("STORAGE_BACKEND", "MEMORY")
os.environ.setdefault("CACHE_TYPE", "SimpleCache")
os.environ.setdefault("CACHE_TIMEOUT_SECONDS", "300")

from datahub.connectivity import ConnectivityMonitor  # noqa: E402
from datahub.datasources.base import DataSource, FetchResult, SourceType  # noqa: E402
from datahub.offline import OfflineDataManager  # noqa: E402
from datahub.storage import MemoryStore  # noqa: E402


class FakeClock:
    """Manually advanced replacement for time.time."""

    def __init__(self, start: float = 1_000_000.0) -> None:
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


class ScriptedSources:
    """Backend whose sources return or raise whatever the test scripted.

    `script` maps source id to a value, an exception instance, or a callable
    taking params.
    """

    def __init__(self, sources: List[DataSource], script: Optional[Dict[str, Any]] = None) -> None:
        self.sources = sources
        self.script = script or {}
        self.calls: List[str] = []

    def list_sources(self) -> List[DataSource]:
        return self.sources

    async def fetch_from_source(self, source: DataSource, params: Any, cache_key: str) -> Any:
        self.calls.append(source.id)
        outcome = self.script.get(source.id)
        if isinstance(outcome, Exception):
            raise outcome
        if callable(outcome):
            return outcome(params)
        return outcome

    def degraded_result(self, attempted: List[DataSource], now: float) -> FetchResult:
        source = DataSource(id="degraded", name="Graceful Degradation", type=SourceType.FALLBACK, priority=100)
        return FetchResult(
            data=None,
            source=source,
            timestamp=now,
            error=f"Service temporarily unavailable after {len(attempted)} sources",
        )


def api_source(source_id: str, priority: int, available: bool = True) -> DataSource:
    return DataSource(id=source_id, name=source_id.upper(), type=SourceType.API, priority=priority, available=available)


class RecordingSyncer:
    """Async syncer that records delivered keys and fails on the listed ones."""

    def __init__(self, fail_keys=()) -> None:
        self.fail_keys = set(fail_keys)
        self.delivered: List[str] = []

    async def __call__(self, item) -> None:
        if item.key in self.fail_keys:
            raise ConnectionError(f"cannot deliver {item.key}")
        self.delivered.append(item.key)


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def store() -> MemoryStore:
    return MemoryStore()


@pytest.fixture
def monitor() -> ConnectivityMonitor:
    return ConnectivityMonitor(online=False)


@pytest.fixture
def syncer() -> RecordingSyncer:
    return RecordingSyncer()


@pytest.fixture
def manager(store, monitor, syncer, clock) -> OfflineDataManager:
    return OfflineDataManager(store=store, connectivity=monitor, syncer=syncer, clock=clock)
