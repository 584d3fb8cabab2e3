import asyncio
from typing import Any, Dict, Optional

import requests

from ..config import Settings, get_settings
from ..errors import FetchError, SyncError


class RestFetcher:
    """Async fetcher over a REST endpoint, usable as an ApiDataProvider fetcher.

    Params (a dict, or None) are sent as the query string. A 404 or an empty
    body means "no data" and yields None; any other failure raises FetchError.
    """

    def __init__(self, base_url: str, path: str = "", settings: Optional[Settings] = None) -> None:
        self.settings = settings or get_settings()
        self.base_url = (base_url or "").rstrip("/")
        self.path = path.lstrip("/")

    @property
    def url(self) -> str:
        return f"{self.base_url}/{self.path}" if self.path else self.base_url

    def fetch(self, params: Optional[Dict[str, Any]] = None) -> Any:
        if not self.base_url:
            raise FetchError("No base URL configured", details={"path": self.path})
        try:
            resp = requests.get(self.url, params=params, timeout=self.settings.request_timeout_seconds)
        except requests.exceptions.RequestException as e:
            raise FetchError(f"Request to {self.url} failed: {e}") from e
        if resp.status_code == 404:
            return None
        try:
            resp.raise_for_status()
        except requests.exceptions.HTTPError as e:
            raise FetchError(f"{self.url} returned {resp.status_code}", details={"status": resp.status_code}) from e
        if not resp.content:
            return None
        return resp.json()

    async def __call__(self, params: Optional[Dict[str, Any]] = None) -> Any:
        return await asyncio.to_thread(self.fetch, params)


def rest_fetchers(path: str, settings: Optional[Settings] = None):
    """Primary and fallback fetchers for one resource path, from API_BASE_URL/FALLBACK_API_BASE_URL."""
    settings = settings or get_settings()
    primary = RestFetcher(settings.api_base_url, path, settings)
    fallback = RestFetcher(settings.fallback_api_base_url, path, settings) if settings.fallback_api_base_url else None
    return primary, fallback


class HttpSyncer:
    """Delivers queued writes by POSTing `{key, data, timestamp}` to SYNC_ENDPOINT_URL."""

    def __init__(self, url: str = "", settings: Optional[Settings] = None) -> None:
        self.settings = settings or get_settings()
        self.url = url or self.settings.sync_endpoint_url

    def post(self, item) -> None:
        if not self.url:
            raise SyncError("No sync endpoint configured", details={"key": item.key})
        try:
            resp = requests.post(self.url, json=item.to_dict(), timeout=self.settings.request_timeout_seconds)
            resp.raise_for_status()
        except requests.exceptions.RequestException as e:
            raise SyncError(f"Sync of {item.key} failed: {e}", details={"key": item.key}) from e

    async def __call__(self, item) -> None:
        await asyncio.to_thread(self.post, item)
