import pytest

from datahub import config
from datahub.datasources.api import ApiDataProvider
from datahub.offline import OfflineDataManager
from datahub.server import ServerFactory


async def _down(params=None):
    raise ConnectionError("down")


@pytest.fixture
def status_client(manager):
    provider = ApiDataProvider(_down)
    provider.get_sources_status()[0].available = False
    provider.get_sources_status()[0].error = "down"
    server = ServerFactory(config.get_settings()).create_server({"papers": provider}, manager)
    return server.test_client()


def test_health_endpoint(status_client):
    rv = status_client.get("/health")
    assert rv.status_code == 200
    js = rv.get_json()
    assert js["status"] == "ok"
    assert "time" in js


def test_status_lists_sources_and_offline_state(status_client, manager: OfflineDataManager):
    manager.cache_data("papers", [])
    manager.queue_for_sync("favorite", {"id": 1})

    js = status_client.get("/status").get_json()

    primary = js["providers"]["papers"][0]
    assert primary["id"] == "primary-api"
    assert primary["available"] is False
    assert primary["error"] == "down"
    assert js["offline"] == {"online": False, "cache_size": 1, "sync_queue_size": 1}


def test_provider_status_unknown_is_404(status_client):
    assert status_client.get("/status/videos").status_code == 404
    assert status_client.get("/status/papers").get_json()["name"] == "papers"


def test_server_factory_cache_follows_settings():
    settings = config.get_settings()
    factory = ServerFactory(settings)
    server = factory.create_server()
    cache = factory.create_cache(server)
    assert cache.config.get("CACHE_TYPE") == settings.cache_type
    assert server.test_client().get("/status").get_json()["providers"] == {}
