"""Persistent key-value stores backing local-storage sources and the offline manager.

All stores hold plain strings; callers serialize with JSON. Stores are
synchronous and complete each call without yielding to the event loop.
"""
from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Dict, Optional, Protocol

from sqlalchemy import Column, MetaData, String, Table, Text, create_engine, delete, insert, select, update
from sqlalchemy.engine import Engine

from .config import Settings, get_settings

logger = logging.getLogger(__name__)


class KeyValueStore(Protocol):
    """Synchronous string store (get/set/remove)."""

    def get(self, key: str) -> Optional[str]: ...

    def set(self, key: str, value: str) -> None: ...

    def remove(self, key: str) -> None: ...


class MemoryStore:
    """Process-local store; used in tests and when persistence is disabled."""

    def __init__(self, initial: Optional[Dict[str, str]] = None) -> None:
        self._data: Dict[str, str] = dict(initial or {})

    def get(self, key: str) -> Optional[str]:
        return self._data.get(key)

    def set(self, key: str, value: str) -> None:
        self._data[key] = value

    def remove(self, key: str) -> None:
        self._data.pop(key, None)

    def keys(self):
        return list(self._data)


class JsonFileStore:
    """All keys in a single JSON document on disk, rewritten on every mutation."""

    def __init__(self, path: Path | str) -> None:
        self.path = Path(path)
        self.path.parent.mkdir(parents=True, exist_ok=True)
        self._data = self._load()

    def _load(self) -> Dict[str, str]:
        if not self.path.exists():
            return {}
        try:
            with open(self.path, "r", encoding="utf-8") as f:
                data = json.load(f)
        except (json.JSONDecodeError, OSError) as e:
            logger.warning("Ignoring unreadable store file %s: %s", self.path, e)
            return {}
        if not isinstance(data, dict):
            return {}
        return {str(k): str(v) for k, v in data.items()}

    def _flush(self) -> None:
        tmp = self.path.with_suffix(self.path.suffix + ".tmp")
        with open(tmp, "w", encoding="utf-8") as f:
            json.dump(self._data, f)
        tmp.replace(self.path)

    def get(self, key: str) -> Optional[str]:
        return self._data.get(key)

    def set(self, key: str, value: str) -> None:
        self._data[key] = value
        self._flush()

    def remove(self, key: str) -> None:
        if self._data.pop(key, None) is not None:
            self._flush()


_metadata = MetaData()

kv_table = Table(
    "kv_store",
    _metadata,
    Column("key", String(512), primary_key=True),
    Column("value", Text, nullable=False),
)


class SqlStore:
    """Key-value rows in a single `kv_store` table via SQLAlchemy Core."""

    def __init__(self, db_url: str = "", engine: Optional[Engine] = None) -> None:
        if engine is None:
            if db_url.startswith("sqlite:///") and len(db_url) > len("sqlite:///"):
                Path(db_url[len("sqlite:///"):]).parent.mkdir(parents=True, exist_ok=True)
            engine = create_engine(db_url, pool_pre_ping=True)
        self.engine = engine
        _metadata.create_all(self.engine)

    def get(self, key: str) -> Optional[str]:
        with self.engine.connect() as conn:
            return conn.execute(select(kv_table.c.value).where(kv_table.c.key == key)).scalar_one_or_none()

    def set(self, key: str, value: str) -> None:
        with self.engine.begin() as conn:
            result = conn.execute(update(kv_table).where(kv_table.c.key == key).values(value=value))
            if result.rowcount == 0:
                conn.execute(insert(kv_table).values(key=key, value=value))

    def remove(self, key: str) -> None:
        with self.engine.begin() as conn:
            conn.execute(delete(kv_table).where(kv_table.c.key == key))


def create_store(settings: Optional[Settings] = None) -> KeyValueStore:
    """Pick the store named by STORAGE_BACKEND."""
    settings = settings or get_settings()
    backend = settings.storage_backend
    if backend == "SQL":
        return SqlStore(settings.storage_db_url)
    if backend == "FILE":
        return JsonFileStore(settings.storage_path)
    return MemoryStore()
