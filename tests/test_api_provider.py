import json

import pytest

from datahub.datasources.api import ApiDataProvider, local_storage_key
from datahub.datasources.base import SourceType
from datahub.storage import MemoryStore


def failing(message="api down"):
    async def fetcher(params=None):
        raise ConnectionError(message)

    return fetcher


def returning(value, calls=None):
    async def fetcher(params=None):
        if calls is not None:
            calls.append(params)
        return value

    return fetcher


def test_registers_fixed_chain():
    provider = ApiDataProvider(returning(1), store=MemoryStore())
    sources = provider.get_sources_status()
    assert [(s.id, s.priority, s.type) for s in sources] == [
        ("primary-api", 1, SourceType.API),
        ("fallback-api", 2, SourceType.API),
        ("local-storage", 3, SourceType.LOCAL),
    ]
    assert all(s.available for s in sources)


def test_local_storage_unavailable_without_store():
    provider = ApiDataProvider(returning(1))
    local = provider.get_sources_status()[2]
    assert local.available is False


@pytest.mark.asyncio
async def test_primary_success_passes_params_to_fetcher():
    calls = []
    provider = ApiDataProvider(returning({"papers": []}, calls))

    result = await provider.get({"category": "cs.AI"})

    assert result.data == {"papers": []}
    assert result.source.id == "primary-api"
    assert calls == [{"category": "cs.AI"}]


@pytest.mark.asyncio
async def test_distinct_fallback_fetcher_used_after_primary_fails():
    provider = ApiDataProvider(failing(), fallback_fetcher=returning("mirror"))

    result = await provider.get()

    assert result.data == "mirror"
    assert result.source.id == "fallback-api"
    assert provider.get_sources_status()[0].error == "api down"


@pytest.mark.asyncio
async def test_local_storage_serves_remembered_payload():
    store = MemoryStore()
    provider = ApiDataProvider(failing(), store=store)
    provider.remember({"page": 2}, {"videos": ["v1"]})

    result = await provider.get({"page": 2})

    assert result.data == {"videos": ["v1"]}
    assert result.source.id == "local-storage"
    assert store.get(local_storage_key("local-storage", '{"page":2}')) == json.dumps({"videos": ["v1"]})


@pytest.mark.asyncio
async def test_malformed_local_entry_is_a_miss():
    store = MemoryStore({local_storage_key("local-storage", "default"): "{not json"})
    provider = ApiDataProvider(failing(), store=store)

    result = await provider.get()

    assert result.data is None
    assert result.error == "Service temporarily unavailable after 3 sources"
    assert provider.get_sources_status()[2].available is True


@pytest.mark.asyncio
async def test_degradation_message_when_nothing_attempted():
    provider = ApiDataProvider(failing())
    await provider.get()

    result = await provider.get()

    assert result.source.id == "degraded"
    assert result.source.priority == 100
    assert result.error == "Service temporarily unavailable"
