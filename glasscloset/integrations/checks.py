"""Connectivity checks for the closet backend."""

from __future__ import annotations

import asyncio
from dataclasses import dataclass
from pathlib import Path
from typing import Awaitable, Callable

from glasscloset.api.auth import TokenStore
from glasscloset.api.client import AnalysisClient
from glasscloset.api.connectivity import NetworkMonitor
from glasscloset.config.settings import get_settings
from glasscloset.errors import ClosetError


@dataclass(slots=True)
class IntegrationCheckResult:
    """Structured result describing the integration check outcome."""

    name: str
    success: bool
    message: str


async def _run_check(
    name: str,
    factory: Callable[[], Awaitable[bool]],
    success_message: str,
) -> IntegrationCheckResult:
    try:
        result = await factory()
    except ClosetError as exc:
        return IntegrationCheckResult(name=name, success=False, message=exc.description)

    if result:
        return IntegrationCheckResult(name=name, success=True, message=success_message)
    return IntegrationCheckResult(
        name=name,
        success=False,
        message="Service responded with non-success status.",
    )


async def check_backend() -> IntegrationCheckResult:
    """Ping the backend health endpoint and return the result."""

    settings = get_settings()
    client = AnalysisClient(settings, token_provider=TokenStore(Path(settings.token_path)).get_token)

    async def _ping() -> bool:
        try:
            return await client.ping()
        finally:
            await client.close()

    return await _run_check(
        name="Closet API",
        factory=_ping,
        success_message="Closet API is reachable.",
    )


async def check_network_path() -> IntegrationCheckResult:
    """Open a TCP connection to the backend host."""

    settings = get_settings()
    monitor = NetworkMonitor()

    async def _probe() -> bool:
        return await monitor.probe(settings.api_base_url)

    return await _run_check(
        name="Network",
        factory=_probe,
        success_message="Backend host accepts connections.",
    )


async def run_all_checks() -> list[IntegrationCheckResult]:
    """Execute all integration checks concurrently."""

    return list(await asyncio.gather(check_network_path(), check_backend()))
