"""Shared request rate limiter."""

from slowapi import Limiter
from slowapi.util import get_remote_address

from taskboard.config import get_settings

limiter = Limiter(key_func=get_remote_address)

_UNLIMITED = "1000000/minute"  # Effectively unlimited when disabled


def default_rate_limit() -> str:
    """Rate limit for reads, resolved per request from settings."""
    settings = get_settings()
    if not settings.rate_limit_enabled:
        return _UNLIMITED
    return settings.rate_limit_default


def write_rate_limit() -> str:
    """Stricter rate limit for creates, updates and deletes."""
    settings = get_settings()
    if not settings.rate_limit_enabled:
        return _UNLIMITED
    return settings.rate_limit_writes
