# Composition root: builds providers, the offline manager, and the Flask status `server`
from datahub import config
from datahub.datasources import ApiDataProvider, DataProviderConfig, rest_fetchers
from datahub.connectivity import start_watch_thread
from datahub.offline import create_offline_manager
from datahub.server import ServerFactory
from datahub.storage import create_store
from datahub.utils import configure_logging

CONTENT_TYPES = ("papers", "videos", "repos", "models", "jobs", "news", "posts")

settings = config.get_settings()
configure_logging(settings)

store = create_store(settings)
offline = create_offline_manager(settings, store=store)
# probes CONNECTIVITY_PROBE_URL; the online transition drains the sync queue
start_watch_thread(offline.connectivity)

factory = ServerFactory(settings)
providers = {}
server = factory.create_server(providers, offline)
cache = factory.create_cache(server)

provider_config = DataProviderConfig.from_settings(settings)
for content_type in CONTENT_TYPES:
    primary, fallback = rest_fetchers(content_type, settings)
    providers[content_type] = ApiDataProvider(
        primary,
        config=provider_config,
        store=store,
        fallback_fetcher=fallback,
        cache=cache,
    )


if __name__ == "__main__":  # pragma: no cover
    # For production: gunicorn app:server -c gunicorn.conf.py
    server.run(host="0.0.0.0", port=config.PORT, debug=config.DEBUG)
