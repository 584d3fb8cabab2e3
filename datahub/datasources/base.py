from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any, Generic, List, Optional, Protocol, TypeVar

from pydantic import BaseModel, ConfigDict, Field

from ..config import Settings

T = TypeVar("T")


class SourceType(str, Enum):
    API = "api"
    LOCAL = "local"
    CACHE = "cache"
    FALLBACK = "fallback"


@dataclass
class DataSource:
    """One fetch origin. Mutated in place by the engine as attempts succeed or fail."""

    id: str
    name: str
    type: SourceType
    priority: int
    available: bool = True
    last_sync: Optional[float] = None
    error: Optional[str] = None
    failures: int = 0
    retry_at: Optional[float] = None

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "type": self.type.value,
            "priority": self.priority,
            "available": self.available,
            "last_sync": self.last_sync,
            "error": self.error,
            "failures": self.failures,
            "retry_at": self.retry_at,
        }


@dataclass
class FetchResult(Generic[T]):
    data: Optional[T]
    source: DataSource
    timestamp: float
    cached: bool = False
    error: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.data is not None


@dataclass
class CacheEntry(Generic[T]):
    data: T
    timestamp: float


class DataProviderConfig(BaseModel):
    """Per-provider behaviour knobs; frozen once a provider is built.

    `reopen_after` enables exponential backoff for closed sources. When it is
    None a failed source stays closed until `update_source_status` reopens it.
    """

    model_config = ConfigDict(frozen=True)

    max_retries: int = Field(default=0, ge=0)
    cache_timeout: float = Field(default=5 * 60, ge=0)
    fallback_enabled: bool = True
    graceful_degradation: bool = True
    reopen_after: Optional[float] = Field(default=None, gt=0)
    reopen_max: float = Field(default=5 * 60, gt=0)

    @classmethod
    def from_settings(cls, settings: Settings, **overrides: Any) -> "DataProviderConfig":
        values = {
            "max_retries": settings.max_retries,
            "cache_timeout": settings.cache_timeout_seconds,
            "fallback_enabled": settings.fallback_enabled,
            "graceful_degradation": settings.graceful_degradation,
            "reopen_after": settings.source_reopen_seconds,
            "reopen_max": settings.source_reopen_max_seconds,
        }
        values.update(overrides)
        return cls(**values)


class SourceBackend(Protocol[T]):
    """What a provider plugs into the engine: its sources and how to read one."""

    def list_sources(self) -> List[DataSource]: ...

    async def fetch_from_source(self, source: DataSource, params: Any, cache_key: str) -> Optional[T]: ...

    def degraded_result(self, attempted: List[DataSource], now: float) -> FetchResult[T]: ...


def cache_source() -> DataSource:
    return DataSource(id="cache", name="Local Cache", type=SourceType.CACHE, priority=0)


def error_source() -> DataSource:
    return DataSource(
        id="error",
        name="No Available Source",
        type=SourceType.FALLBACK,
        priority=999,
        available=False,
        error="All data sources failed",
    )
