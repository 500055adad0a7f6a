"""Logging configuration module."""

from __future__ import annotations

import logging

from glasscloset.config.settings import get_settings


def configure_logging() -> None:
    """Configure root logger according to project conventions."""

    settings = get_settings()
    logging.basicConfig(
        level=getattr(logging, settings.log_level.upper(), logging.INFO),
        format="%(asctime)s | %(levelname)s | %(name)s | %(message)s",
    )
    # httpx request lines carry the login query parameters
    logging.getLogger("httpx").setLevel(logging.WARNING)


def shorten_token(token: str | None) -> str:
    """Return a log-safe form of a bearer token."""

    if not token:
        return "nil"
    if len(token) > 20:
        return f"{token[:10]}...{token[-10:]}"
    return token
