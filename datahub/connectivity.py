from __future__ import annotations

import asyncio
import inspect
import logging
import threading
from typing import Any, Callable, Dict, List, Optional

import requests

from .config import Settings, get_settings

logger = logging.getLogger(__name__)

EVENTS = ("online", "offline")


class ConnectivityMonitor:
    """Online flag plus subscribable "online"/"offline" transition events.

    Listeners may be plain callables or coroutine functions; `set_online`
    awaits them in subscription order. Setting the flag to its current value
    emits nothing.
    """

    def __init__(self, online: bool = True, probe_url: str = "", settings: Optional[Settings] = None) -> None:
        self.settings = settings or get_settings()
        self.is_online = online
        self.probe_url = probe_url or self.settings.connectivity_probe_url
        self._listeners: Dict[str, List[Callable[[], Any]]] = {e: [] for e in EVENTS}

    def subscribe(self, event: str, callback: Callable[[], Any]) -> None:
        if event not in self._listeners:
            raise ValueError(f"Unknown connectivity event: {event}")
        self._listeners[event].append(callback)

    def unsubscribe(self, event: str, callback: Callable[[], Any]) -> None:
        if callback in self._listeners.get(event, []):
            self._listeners[event].remove(callback)

    async def set_online(self, online: bool) -> None:
        if online == self.is_online:
            return
        self.is_online = online
        event = "online" if online else "offline"
        logger.info("Connectivity changed: %s", event)
        for callback in list(self._listeners[event]):
            result = callback()
            if inspect.isawaitable(result):
                await result

    def _check(self) -> bool:
        try:
            resp = requests.get(self.probe_url, timeout=self.settings.request_timeout_seconds)
        except requests.exceptions.RequestException as e:
            logger.debug("Connectivity probe failed: %s", e)
            return False
        return resp.status_code < 500

    async def probe(self) -> bool:
        """Check CONNECTIVITY_PROBE_URL and emit a transition if the result differs from the flag."""
        if not self.probe_url:
            return self.is_online
        online = await asyncio.to_thread(self._check)
        await self.set_online(online)
        return online

    async def watch(self, interval: Optional[float] = None) -> None:
        """Probe forever, every `interval` seconds (CONNECTIVITY_PROBE_INTERVAL_SECONDS)."""
        interval = interval if interval is not None else self.settings.connectivity_probe_interval_seconds
        while True:
            await self.probe()
            await asyncio.sleep(interval)


def start_watch_thread(monitor: ConnectivityMonitor, interval: Optional[float] = None) -> Optional[threading.Thread]:
    """Run `monitor.watch()` on its own event loop in a daemon thread.

    Listeners (the offline manager's drain included) then run on that loop.
    Returns None when no probe URL is configured; connectivity is then driven
    by whoever calls `set_online()`.
    """
    if not monitor.probe_url:
        return None
    th = threading.Thread(
        target=asyncio.run,
        args=(monitor.watch(interval),),
        name="connectivity-watch",
        daemon=True,
    )
    th.start()
    return th
