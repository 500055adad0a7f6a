"""Shared fixtures for client and pipeline tests."""

from __future__ import annotations

from typing import Any, Callable

import httpx
import pytest
from PIL import Image

from glasscloset.api.client import AnalysisClient
from glasscloset.api.connectivity import NetworkMonitor
from glasscloset.config.settings import Settings

ClientFactory = Callable[..., AnalysisClient]


@pytest.fixture
def settings() -> Settings:
    return Settings(api_base_url="https://closet.test", connect_retries=0)


@pytest.fixture
def make_client(settings: Settings) -> ClientFactory:
    """Build an ``AnalysisClient`` whose requests are answered by ``handler``."""

    def _make(
        handler: Callable[[httpx.Request], Any],
        *,
        token: str | None = "test-token",
        connected: bool = True,
    ) -> AnalysisClient:
        return AnalysisClient(
            settings,
            token_provider=lambda: token,
            connectivity=NetworkMonitor(connected),
            transport=httpx.MockTransport(handler),
        )

    return _make


@pytest.fixture
def photo() -> Image.Image:
    image = Image.new("RGB", (40, 20), (200, 200, 200))
    image.putpixel((0, 0), (255, 0, 0))
    return image
