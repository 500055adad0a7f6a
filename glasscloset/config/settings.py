"""Application configuration loaded from environment variables."""

from __future__ import annotations

import os
from dataclasses import dataclass
from functools import lru_cache
from pathlib import Path


def _load_env_file(path: str = ".env") -> None:
    """Populate os.environ from the provided .env file if it exists."""

    env_path = Path(path)
    if not env_path.exists():
        return

    for line in env_path.read_text(encoding="utf-8").splitlines():
        stripped = line.strip()
        if not stripped or stripped.startswith("#") or "=" not in stripped:
            continue
        key, value = stripped.split("=", 1)
        os.environ.setdefault(key.strip(), value.strip())


def _env_flag(name: str, default: bool = False) -> bool:
    raw = os.getenv(name)
    if raw is None:
        return default
    return raw.strip().lower() in {"1", "true", "yes", "on"}


@dataclass(frozen=True, slots=True)
class Settings:
    """Centralised client settings based on OS environment variables."""

    environment: str = "dev"
    log_level: str = "INFO"

    api_base_url: str = "http://localhost:8000"
    request_timeout: float = 60.0
    resource_timeout: float = 60.0
    connect_retries: int = 2
    token_path: str = "data/session.json"

    jpeg_quality: int = 80

    detection_enabled: bool = False
    detection_model: str = "yolov8n.pt"
    detection_confidence: float = 0.1
    crop_to_detection: bool = False


def _build_settings() -> Settings:
    _load_env_file()

    return Settings(
        environment=os.getenv("ENVIRONMENT", "dev"),
        log_level=os.getenv("LOG_LEVEL", "INFO"),
        api_base_url=os.getenv("CLOSET_API_BASE_URL", "http://localhost:8000"),
        request_timeout=float(os.getenv("CLOSET_REQUEST_TIMEOUT", "60")),
        resource_timeout=float(os.getenv("CLOSET_RESOURCE_TIMEOUT", "60")),
        connect_retries=int(os.getenv("CLOSET_CONNECT_RETRIES", "2")),
        token_path=os.getenv("CLOSET_TOKEN_PATH", "data/session.json"),
        jpeg_quality=int(os.getenv("CLOSET_JPEG_QUALITY", "80")),
        detection_enabled=_env_flag("CLOSET_DETECTION_ENABLED"),
        detection_model=os.getenv("CLOSET_DETECTION_MODEL", "yolov8n.pt"),
        detection_confidence=float(os.getenv("CLOSET_DETECTION_CONFIDENCE", "0.1")),
        crop_to_detection=_env_flag("CLOSET_CROP_TO_DETECTION"),
    )


@lru_cache
def get_settings() -> Settings:
    """Return cached settings instance to avoid re-reading configuration."""

    return _build_settings()
