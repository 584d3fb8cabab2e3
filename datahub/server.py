import datetime as dt
from typing import Dict, Optional

from flask import Flask, abort
from flask_caching import Cache

from .config import Settings, get_settings
from .datasources.engine import DataProvider
from .offline import OfflineDataManager


class ServerFactory:
    """Class-based factory for the status server and the shared provider cache."""

    def __init__(self, settings: Optional[Settings] = None) -> None:
        self.settings = settings or get_settings()

    def create_server(
        self,
        providers: Optional[Dict[str, DataProvider]] = None,
        offline: Optional[OfflineDataManager] = None,
    ) -> Flask:
        server = Flask(__name__)
        providers = providers if providers is not None else {}

        @server.route("/health")
        def health():
            return {"status": "ok", "time": dt.datetime.now(dt.timezone.utc).isoformat()}

        @server.route("/status")
        def status():
            body = {
                "title": self.settings.app_title,
                "providers": {
                    name: [s.to_dict() for s in p.get_sources_status()] for name, p in providers.items()
                },
            }
            if offline is not None:
                body["offline"] = {
                    "online": offline.is_currently_online(),
                    "cache_size": offline.get_cache_size(),
                    "sync_queue_size": offline.get_sync_queue_size(),
                }
            return body

        @server.route("/status/<name>")
        def provider_status(name: str):
            provider = providers.get(name)
            if provider is None:
                abort(404, description=f"Unknown provider: {name}")
            return {"name": name, "sources": [s.to_dict() for s in provider.get_sources_status()]}

        return server

    def create_cache(self, server: Flask) -> Cache:
        cache = Cache(server, config={
            "CACHE_TYPE": self.settings.cache_type,
            "CACHE_DEFAULT_TIMEOUT": int(self.settings.cache_timeout_seconds),
            **({"CACHE_REDIS_URL": self.settings.redis_url} if self.settings.cache_type == "RedisCache" else {})
        })
        return cache


# Module-level wrappers over a shared factory instance
_factory = ServerFactory()


def create_server(
    providers: Optional[Dict[str, DataProvider]] = None,
    offline: Optional[OfflineDataManager] = None,
) -> Flask:
    return _factory.create_server(providers, offline)


def create_cache(server: Flask) -> Cache:
    return _factory.create_cache(server)
