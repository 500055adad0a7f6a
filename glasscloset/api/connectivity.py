"""Network path monitoring consulted before any request is sent."""

from __future__ import annotations

import asyncio
import logging
from typing import Protocol

import httpx

logger = logging.getLogger(__name__)


class ConnectivityMonitor(Protocol):
    """Reports whether a network path to the backend currently exists."""

    @property
    def is_connected(self) -> bool:
        ...

    def update(self, connected: bool) -> None:
        ...


class NetworkMonitor:
    """Keeps the last known path status; updated by probes and by the outcome of each request."""

    def __init__(self, connected: bool = True) -> None:
        self._connected = connected

    @property
    def is_connected(self) -> bool:
        return self._connected

    def update(self, connected: bool) -> None:
        if connected != self._connected:
            logger.info("Network path is now %s.", "available" if connected else "unavailable")
        self._connected = connected

    async def probe(self, base_url: str, timeout: float = 5.0) -> bool:
        """Open a TCP connection to the backend host and record the outcome."""

        url = httpx.URL(base_url)
        host = url.host
        port = url.port or (443 if url.scheme == "https" else 80)
        try:
            _, writer = await asyncio.wait_for(asyncio.open_connection(host, port), timeout)
        except (OSError, asyncio.TimeoutError) as exc:
            logger.warning("Connectivity probe to %s:%s failed: %s", host, port, exc)
            self.update(False)
            return False
        writer.close()
        await writer.wait_closed()
        self.update(True)
        return True
